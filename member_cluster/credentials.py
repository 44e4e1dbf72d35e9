"""Credential resolution for member clusters.

A credential resolver turns a ClusterSpec into the ClientCredentials used to
talk to that cluster. The cluster client factory takes a resolver as a
parameter, so tests and out-of-cluster tooling can substitute a static or
file-based resolver for the default secret-backed one.
"""

import os
from pathlib import Path
from typing import Any, Protocol

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import HTTPError

from member_cluster.exceptions import (
    ConfigurationError,
    CredentialError,
    MissingSecretKeyError,
    NamespaceNotSetError,
    SecretFetchError,
)
from member_cluster.logging_config import get_logger
from member_cluster.models.cluster import ClientCredentials, ClusterSpec

logger = get_logger(__name__)

POD_NAMESPACE_ENV = "POD_NAMESPACE"
KUBECONFIG_SECRET_DATA_KEY = "kubeconfig"


class CredentialResolver(Protocol):
    """Resolves the client credentials for a member cluster."""

    def resolve(self, spec: ClusterSpec) -> ClientCredentials:
        ...


class StaticCredentialResolver:
    """Resolver that returns the same credentials for every cluster."""

    def __init__(self, credentials: ClientCredentials):
        self.credentials = credentials

    def resolve(self, spec: ClusterSpec) -> ClientCredentials:
        return self.credentials


class KubeconfigFileResolver:
    """Resolver that reads credentials from a local kubeconfig file."""

    def __init__(self, path: str | Path, context: str | None = None):
        self.path = Path(path).expanduser()
        self.context = context

    def resolve(self, spec: ClusterSpec) -> ClientCredentials:
        logger.debug(f"Reading kubeconfig for cluster {spec.name} from {self.path}")
        if not self.path.exists():
            raise ConfigurationError(
                f"Kubeconfig file not found: {self.path}",
                "Specify an existing kubeconfig with --kubeconfig",
            )
        return ClientCredentials.from_kubeconfig(self.path.read_bytes(), context=self.context)


class SecretCredentialResolver:
    """
    Resolver that reads a member cluster's kubeconfig from a local secret.

    The secret lives in the namespace this process runs in (taken from the
    POD_NAMESPACE environment variable) and is named by the cluster's
    secret_ref. Its data must hold the kubeconfig under the "kubeconfig" key.
    """

    def __init__(
        self,
        core_api: Any = None,
        namespace_env: str = POD_NAMESPACE_ENV,
        secret_data_key: str = KUBECONFIG_SECRET_DATA_KEY,
    ):
        """Initialize the resolver.

        Args:
            core_api: CoreV1Api for the local cluster; an in-cluster client is
                created on each resolve when omitted
            namespace_env: Environment variable holding the local namespace
            secret_data_key: Secret data key holding the kubeconfig document
        """
        self.core_api = core_api
        self.namespace_env = namespace_env
        self.secret_data_key = secret_data_key

    def _namespace(self) -> str:
        namespace = os.environ.get(self.namespace_env, "")
        if not namespace:
            raise NamespaceNotSetError(
                f"unexpected: {self.namespace_env} env var returned empty string",
                f"Set {self.namespace_env} to the namespace holding the cluster secrets, "
                "usually via the downward API (fieldRef: metadata.namespace)",
            )
        return namespace

    def _local_core_api(self) -> Any:
        if self.core_api is not None:
            return self.core_api

        configuration = client.Configuration()
        try:
            config.load_incluster_config(client_configuration=configuration)
        except ConfigException as e:
            raise CredentialError(f"error in creating in-cluster client: {e}")
        return client.CoreV1Api(client.ApiClient(configuration))

    def resolve(self, spec: ClusterSpec) -> ClientCredentials:
        """Fetch and parse the kubeconfig secret for the given cluster.

        Raises:
            NamespaceNotSetError: If the namespace variable is unset
            ConfigurationError: If the cluster has no secret reference
            CredentialError: If the in-cluster client cannot be created
            SecretFetchError: If the secret cannot be read
            MissingSecretKeyError: If the secret lacks the kubeconfig key
            KubeconfigParseError: If the kubeconfig document is malformed
        """
        namespace = self._namespace()

        if spec.secret_ref is None:
            raise ConfigurationError(
                f"Cluster {spec.name} has no secret reference",
                "Set secretRef.name to the secret holding the cluster kubeconfig",
            )
        secret_name = spec.secret_ref.name

        core_api = self._local_core_api()

        logger.debug(f"Fetching secret {namespace}/{secret_name} for cluster {spec.name}")
        try:
            secret = core_api.read_namespaced_secret(secret_name, namespace)
        except ApiException as e:
            logger.error(f"Failed to fetch secret {namespace}/{secret_name}: {e.status} {e.reason}")
            raise SecretFetchError(
                f"error in fetching secret: {namespace}/{secret_name}",
                f"API server responded with {e.status} {e.reason}",
            )
        except (OSError, HTTPError) as e:
            logger.error(f"Failed to fetch secret {namespace}/{secret_name}: {e}")
            raise SecretFetchError(f"error in fetching secret: {namespace}/{secret_name}", str(e))

        data = secret.data or {}
        if self.secret_data_key not in data:
            raise MissingSecretKeyError(self.secret_data_key, f"{namespace}/{secret_name}")

        return ClientCredentials.from_secret_value(data[self.secret_data_key])

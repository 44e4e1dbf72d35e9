"""Authenticated API clients for member clusters."""

import copy
from ipaddress import IPv4Address, IPv6Address
from typing import Any

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from member_cluster.credentials import CredentialResolver
from member_cluster.exceptions import ClientConstructionError
from member_cluster.health import probe_cluster_health
from member_cluster.logging_config import get_logger
from member_cluster.models.cluster import (
    ClientCredentials,
    ClusterSpec,
    ClusterStatus,
    ClusterTopology,
)
from member_cluster.network import choose_host_ip, select_server_address
from member_cluster.ratelimit import TokenBucket
from member_cluster.topology import discover_topology

logger = get_logger(__name__)

USER_AGENT_NAME = "Cluster-Controller"
KUBE_API_QPS = 20.0
KUBE_API_BURST = 30


class RateLimitedApiClient(client.ApiClient):
    """ApiClient that waits on a token bucket before every API call."""

    def __init__(self, configuration: client.Configuration, rate_limiter: TokenBucket):
        super().__init__(configuration=configuration)
        self.rate_limiter = rate_limiter
        self.user_agent = USER_AGENT_NAME

    def call_api(self, *args, **kwargs):
        self.rate_limiter.acquire()
        return super().call_api(*args, **kwargs)


class DiscoveryClient:
    """Handle for raw path and server capability queries against a cluster."""

    def __init__(self, api_client: client.ApiClient):
        self.api_client = api_client

    def get_raw(self, path: str) -> str:
        """GET an absolute API path and return the response body as text.

        Works with both generations of the kubernetes client: releases built
        with openapi-generator split the request into param_serialize and a
        positional call_api, older ones take the path and options directly.

        Raises:
            kubernetes.client.rest.ApiException: On a non-2xx response
            urllib3.exceptions.HTTPError: On transport failures
        """
        if hasattr(self.api_client, "param_serialize"):
            data = self._get_serialized(path)
        else:
            response = self.api_client.call_api(
                path,
                "GET",
                auth_settings=["BearerToken"],
                _preload_content=False,
                _return_http_data_only=True,
            )
            data = response.data
        return data.decode("utf-8", errors="replace")

    def _get_serialized(self, path: str) -> bytes:
        method, url, header_params, body, post_params = self.api_client.param_serialize(
            method="GET",
            resource_path=path,
            auth_settings=["BearerToken"],
        )
        response = self.api_client.call_api(method, url, header_params, body, post_params)
        response.read()
        if not 200 <= response.status <= 299:
            raise ApiException(status=response.status, reason=response.reason)
        return response.data

    def server_version(self) -> str:
        """Return the cluster's git version string (e.g. v1.29.2)."""
        return client.VersionApi(self.api_client).get_code().git_version


class ClusterClient:
    """Discovery and data-plane handles bound to one member cluster endpoint."""

    def __init__(self, server_address: str, discovery: DiscoveryClient, core: Any):
        self.server_address = server_address
        self.discovery = discovery
        self.core = core

    def get_cluster_health_status(self) -> ClusterStatus:
        """Probe /healthz and report Ready/Offline conditions."""
        return probe_cluster_health(self)

    def get_cluster_zones(self) -> ClusterTopology:
        """Discover the zones and region the cluster's nodes run in."""
        return discover_topology(self.core)

    def close(self) -> None:
        """Release the connection pools of both handles."""
        self.discovery.api_client.close()
        self.core.api_client.close()

    def __enter__(self) -> "ClusterClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _normalize_host(server_address: str) -> str:
    if "://" in server_address:
        return server_address.rstrip("/")
    return f"https://{server_address}".rstrip("/")


def _named_entry(entries: Any, name: Any) -> dict | None:
    if not isinstance(entries, list):
        return None
    for entry in entries:
        if isinstance(entry, dict) and entry.get("name") == name:
            return entry
    return None


def kubeconfig_for_server(
    kubeconfig: dict[str, Any], server_address: str, context: str | None = None
) -> dict[str, Any]:
    """
    Return a copy of kubeconfig whose active cluster points at server_address.

    The active cluster is the one referenced by context, or by current-context
    when no context is given. The input document is left untouched. When the
    context or cluster cannot be found the copy is returned unchanged and the
    kubeconfig loader reports the problem.
    """
    kubeconfig = copy.deepcopy(kubeconfig)

    context_entry = _named_entry(
        kubeconfig.get("contexts"), context or kubeconfig.get("current-context")
    )
    if context_entry is None or not isinstance(context_entry.get("context"), dict):
        return kubeconfig

    cluster_entry = _named_entry(
        kubeconfig.get("clusters"), context_entry["context"].get("cluster")
    )
    if cluster_entry is None or not isinstance(cluster_entry.get("cluster"), dict):
        return kubeconfig

    cluster_entry["cluster"]["server"] = _normalize_host(server_address)
    return kubeconfig


def build_client_configuration(
    server_address: str, credentials: ClientCredentials
) -> client.Configuration:
    """
    Build a client configuration for the given endpoint and credentials.

    The server of the kubeconfig's active cluster is replaced by
    server_address before loading. The loader re-reads the document whenever
    it refreshes the token, so the replacement has to live in the kubeconfig
    rather than on the resulting configuration.

    Raises:
        ClientConstructionError: If the kubeconfig cannot be turned into a configuration.
    """
    configuration = client.Configuration()
    try:
        config.load_kube_config_from_dict(
            config_dict=kubeconfig_for_server(
                credentials.kubeconfig, server_address, credentials.context
            ),
            context=credentials.context,
            client_configuration=configuration,
            persist_config=False,
        )
    except (ConfigException, KeyError, TypeError, ValueError) as e:
        raise ClientConstructionError(
            f"Failed to build client configuration for {server_address}",
            f"The kubeconfig could not be loaded: {e}",
        )

    return configuration


def build_cluster_client(
    spec: ClusterSpec,
    credential_resolver: CredentialResolver,
    host_ip: str | IPv4Address | IPv6Address | None = None,
) -> ClusterClient | None:
    """
    Build a client for a member cluster.

    Args:
        spec: The member cluster's declared metadata
        credential_resolver: Resolves the cluster's client credentials
        host_ip: Local host IP; the default route source address when omitted

    Returns:
        A ClusterClient, or None if none of the cluster's client CIDRs contains
        the host IP. None is not an error: the cluster is simply not reachable
        from this host.

    Raises:
        HostInterfaceError: If the host IP cannot be determined
        InvalidCIDRError: If a client CIDR is malformed
        CredentialError: If credentials cannot be resolved
        ClientConstructionError: If either API handle cannot be constructed
    """
    if host_ip is None:
        host_ip = choose_host_ip()

    server_address = select_server_address(host_ip, spec.server_address_by_client_cidrs)
    if not server_address:
        logger.debug(f"No server address of cluster {spec.name} applies to host IP {host_ip}")
        return None

    credentials = credential_resolver.resolve(spec)
    configuration = build_client_configuration(server_address, credentials)

    try:
        discovery = DiscoveryClient(
            RateLimitedApiClient(configuration, TokenBucket(KUBE_API_QPS, KUBE_API_BURST))
        )
        core = client.CoreV1Api(
            RateLimitedApiClient(configuration, TokenBucket(KUBE_API_QPS, KUBE_API_BURST))
        )
    except (OSError, ValueError) as e:
        raise ClientConstructionError(
            f"Failed to create API clients for cluster {spec.name}", str(e)
        )

    logger.info(f"Built client for cluster {spec.name} at {server_address}")
    return ClusterClient(server_address, discovery, core)

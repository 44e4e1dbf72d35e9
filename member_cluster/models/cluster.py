"""Data models for member cluster specs, credentials and status."""

import base64
import binascii
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from member_cluster.exceptions import ConfigurationError, KubeconfigParseError


class ServerAddressByClientCIDR(BaseModel):
    """Server address a client should use when its IP falls in client_cidr."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    client_cidr: str = Field(alias="clientCIDR")
    server_address: str = Field(alias="serverAddress")

    @field_validator("client_cidr", "server_address")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Validate the field is not empty."""
        if not v or not v.strip():
            raise ValueError("value cannot be empty")
        return v.strip()


class SecretReference(BaseModel):
    """Reference to the secret holding a member cluster's kubeconfig."""

    model_config = ConfigDict(frozen=True)

    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate secret name is not empty."""
        if not v:
            raise ValueError("secret name cannot be empty")
        return v


class ClusterSpec(BaseModel):
    """Declared metadata of a registered member cluster."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    server_address_by_client_cidrs: list[ServerAddressByClientCIDR] = Field(
        default_factory=list, alias="serverAddressByClientCIDRs"
    )
    secret_ref: SecretReference | None = Field(default=None, alias="secretRef")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate cluster name is not empty."""
        if not v:
            raise ValueError("cluster name cannot be empty")
        return v

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClusterSpec":
        """Parse a flat spec or a federation Cluster object (metadata + spec)."""
        if "spec" in data and isinstance(data["spec"], dict):
            metadata = data.get("metadata") or {}
            return cls.model_validate({**data["spec"], "name": metadata.get("name", "")})
        return cls.model_validate(data)

    @classmethod
    def load(cls, path: str | Path) -> "ClusterSpec":
        """Load a cluster spec from a YAML file.

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(
                f"Cluster spec not found: {path}",
                f"Expected location: {path.absolute()}",
            )

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse cluster spec {path}", str(e))

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Cluster spec {path} must be a YAML mapping",
                "See the README for an example cluster spec",
            )

        try:
            return cls.from_dict(data)
        except ValueError as e:
            raise ConfigurationError(f"Invalid cluster spec {path}", str(e))


class ClientCredentials(BaseModel):
    """Structured client credentials parsed from a kubeconfig document."""

    model_config = ConfigDict(frozen=True)

    kubeconfig: dict[str, Any]
    context: str | None = None

    @classmethod
    def from_kubeconfig(cls, data: bytes | str, context: str | None = None) -> "ClientCredentials":
        """Parse a kubeconfig document.

        Raises:
            KubeconfigParseError: If the document is not a non-empty YAML mapping
        """
        if isinstance(data, bytes):
            try:
                data = data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise KubeconfigParseError("kubeconfig is not valid UTF-8", str(e))

        try:
            document = yaml.safe_load(data)
        except yaml.YAMLError as e:
            raise KubeconfigParseError("Failed to parse kubeconfig document", str(e))

        if not document:
            raise KubeconfigParseError("kubeconfig document is empty")
        if not isinstance(document, dict):
            raise KubeconfigParseError(
                "kubeconfig document must be a mapping",
                f"Got {type(document).__name__} instead",
            )

        return cls(kubeconfig=document, context=context)

    @classmethod
    def from_secret_value(cls, value: str, context: str | None = None) -> "ClientCredentials":
        """Parse a base64-encoded kubeconfig as stored in a Secret's data."""
        try:
            decoded = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise KubeconfigParseError("kubeconfig secret data is not valid base64", str(e))
        return cls.from_kubeconfig(decoded, context=context)


class ClusterConditionType(str, Enum):
    """Condition types reported for a member cluster."""

    READY = "Ready"
    OFFLINE = "Offline"


class ConditionStatus(str, Enum):
    """Kubernetes-style condition status."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


class ClusterCondition(BaseModel):
    """A timestamped boolean health fact about a member cluster."""

    type: ClusterConditionType
    status: ConditionStatus
    reason: str
    message: str
    last_probe_time: datetime
    last_transition_time: datetime

    @property
    def is_true(self) -> bool:
        return self.status == ConditionStatus.TRUE


class ClusterTopology(BaseModel):
    """Failure zones and region a member cluster's nodes are spread over."""

    zones: list[str] = Field(default_factory=list)
    region: str = ""

    @field_validator("zones")
    @classmethod
    def normalize_zones(cls, v: list[str]) -> list[str]:
        """Deduplicate and sort zone names."""
        return sorted(set(v))


class ClusterStatus(BaseModel):
    """Snapshot of a member cluster's health and, optionally, its topology."""

    conditions: list[ClusterCondition] = Field(default_factory=list)
    zones: list[str] = Field(default_factory=list)
    region: str | None = None

    def get_condition(self, condition_type: ClusterConditionType) -> ClusterCondition | None:
        """Return the condition of the given type, if present."""
        for condition in self.conditions:
            if condition.type == condition_type:
                return condition
        return None

    @property
    def is_ready(self) -> bool:
        condition = self.get_condition(ClusterConditionType.READY)
        return condition is not None and condition.is_true

    @property
    def is_offline(self) -> bool:
        condition = self.get_condition(ClusterConditionType.OFFLINE)
        return condition is not None and condition.is_true

    def with_topology(self, topology: ClusterTopology) -> "ClusterStatus":
        """Return a copy of this status carrying the given topology."""
        return self.model_copy(update={"zones": list(topology.zones), "region": topology.region})

"""Custom exceptions for member cluster operations."""


class MemberClusterError(Exception):
    """Base exception for all member cluster errors."""

    def __init__(self, message: str, details: str = None):
        """Initialize the exception.

        Args:
            message: Main error message
            details: Additional details or suggestions
        """
        self.message = message
        self.details = details
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the complete error message.

        Returns:
            Formatted error message with details
        """
        if self.details:
            return f"{self.message}\n\nDetails: {self.details}"
        return self.message


class ConfigurationError(MemberClusterError):
    """Exception raised for configuration errors."""

    pass


class InvalidCIDRError(ConfigurationError):
    """Exception raised when a client CIDR cannot be parsed."""

    def __init__(self, cidr: str, details: str = None):
        self.cidr = cidr
        super().__init__(f"Invalid client CIDR: {cidr!r}", details)


class HostInterfaceError(MemberClusterError):
    """Exception raised when the local host IP cannot be determined."""

    pass


class CredentialError(MemberClusterError):
    """Base exception for credential resolution failures."""

    pass


class NamespaceNotSetError(CredentialError):
    """Exception raised when the local namespace is missing from the environment."""

    pass


class SecretFetchError(CredentialError):
    """Exception raised when the credentials secret cannot be read."""

    pass


class MissingSecretKeyError(CredentialError):
    """Exception raised when the secret lacks the client config data key."""

    def __init__(self, key: str, secret_name: str):
        self.key = key
        self.secret_name = secret_name
        super().__init__(
            f"secret does not have data with key: {key}",
            f"Secret '{secret_name}' must contain a '{key}' entry holding a kubeconfig document",
        )


class KubeconfigParseError(CredentialError):
    """Exception raised when an embedded kubeconfig document is malformed."""

    pass


class ClientConstructionError(MemberClusterError):
    """Exception raised when a cluster API handle cannot be constructed."""

    pass


class TopologyError(MemberClusterError):
    """Base exception for topology discovery failures."""

    pass


class NodeListError(TopologyError):
    """Exception raised when the node list cannot be fetched."""

    pass


class MissingLabelError(TopologyError):
    """Exception raised when a node lacks a required topology label."""

    kind = "Topology"

    def __init__(self, node_name: str, label: str):
        self.node_name = node_name
        self.label = label
        super().__init__(
            f"{self.kind} name for node {node_name} not found. No label with key {label}"
        )


class MissingZoneLabelError(MissingLabelError):
    """Exception raised when a node has no zone label."""

    kind = "Zone"


class MissingRegionLabelError(MissingLabelError):
    """Exception raised when a node has no region label."""

    kind = "Region"

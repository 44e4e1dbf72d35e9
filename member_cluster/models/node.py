"""Data models for the topology of member cluster nodes."""

from typing import Any

from pydantic import BaseModel

# Stable topology labels, read first
LABEL_TOPOLOGY_ZONE = "topology.kubernetes.io/zone"
LABEL_TOPOLOGY_REGION = "topology.kubernetes.io/region"

# Deprecated failure-domain labels still set by older kubelets
LABEL_ZONE_FAILURE_DOMAIN = "failure-domain.beta.kubernetes.io/zone"
LABEL_ZONE_REGION = "failure-domain.beta.kubernetes.io/region"

ZONE_LABELS = (LABEL_TOPOLOGY_ZONE, LABEL_ZONE_FAILURE_DOMAIN)
REGION_LABELS = (LABEL_TOPOLOGY_REGION, LABEL_ZONE_REGION)


def _first_label(labels: dict[str, str], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        if key in labels:
            return labels[key]
    return None


class NodeTopology(BaseModel):
    """Zone and region labels of a single node."""

    name: str
    zone: str | None = None
    region: str | None = None

    @classmethod
    def from_kubernetes_node(cls, node: Any) -> "NodeTopology":
        """Extract topology labels from a kubernetes V1Node."""
        labels = node.metadata.labels or {}
        return cls(
            name=node.metadata.name,
            zone=_first_label(labels, ZONE_LABELS),
            region=_first_label(labels, REGION_LABELS),
        )

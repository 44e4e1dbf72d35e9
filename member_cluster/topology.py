"""Zone and region discovery from member cluster node labels."""

from typing import Any

from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from member_cluster.exceptions import (
    MissingRegionLabelError,
    MissingZoneLabelError,
    NodeListError,
)
from member_cluster.logging_config import get_logger
from member_cluster.models.cluster import ClusterTopology
from member_cluster.models.node import REGION_LABELS, ZONE_LABELS, NodeTopology

logger = get_logger(__name__)


def get_zone_name_for_node(node: NodeTopology) -> str:
    """Return the zone a node runs in.

    Raises:
        MissingZoneLabelError: If the node carries no zone label
    """
    if node.zone is None:
        raise MissingZoneLabelError(node.name, " or ".join(ZONE_LABELS))
    return node.zone


def get_region_name_for_node(node: NodeTopology) -> str:
    """Return the region a node runs in.

    Raises:
        MissingRegionLabelError: If the node carries no region label
    """
    if node.region is None:
        raise MissingRegionLabelError(node.name, " or ".join(REGION_LABELS))
    return node.region


def list_node_topologies(core_api: Any) -> list[NodeTopology]:
    """List all nodes of a cluster and extract their topology labels.

    Raises:
        NodeListError: If the node list cannot be fetched
    """
    try:
        nodes = core_api.list_node()
    except ApiException as e:
        logger.error(f"Failed to list nodes while getting zone names: {e.status} {e.reason}")
        raise NodeListError(
            "Failed to list nodes while getting zone names",
            f"API server responded with {e.status} {e.reason}",
        )
    except (HTTPError, OSError) as e:
        logger.error(f"Failed to list nodes while getting zone names: {e}")
        raise NodeListError("Failed to list nodes while getting zone names", str(e))

    return [NodeTopology.from_kubernetes_node(node) for node in nodes.items]


def aggregate_topology(nodes: list[NodeTopology]) -> ClusterTopology:
    """
    Aggregate per-node labels into the cluster's zones and region.

    Every node must carry a zone label. The region is taken from the first
    node only and is not checked against the others.

    Raises:
        MissingZoneLabelError: If any node lacks a zone label
        MissingRegionLabelError: If the first node lacks a region label
    """
    zones: set[str] = set()
    region = ""

    for i, node in enumerate(nodes):
        zones.add(get_zone_name_for_node(node))
        if i == 0:
            region = get_region_name_for_node(node)

    return ClusterTopology(zones=sorted(zones), region=region)


def discover_topology(core_api: Any) -> ClusterTopology:
    """
    Find the names of all zones and the region in which a cluster has nodes.

    Args:
        core_api: CoreV1Api of the member cluster

    Returns:
        ClusterTopology with sorted unique zones; an empty cluster yields no
        zones and an empty region.

    Raises:
        NodeListError: If the nodes cannot be listed
        MissingZoneLabelError: If any node lacks a zone label
        MissingRegionLabelError: If the first node lacks a region label
    """
    nodes = list_node_topologies(core_api)
    topology = aggregate_topology(nodes)
    logger.debug(
        f"Discovered zones {topology.zones} in region {topology.region!r} from {len(nodes)} nodes"
    )
    return topology

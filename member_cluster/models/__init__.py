"""Data models for member cluster specs, status and topology."""

from member_cluster.models.cluster import (
    ClientCredentials,
    ClusterCondition,
    ClusterConditionType,
    ClusterSpec,
    ClusterStatus,
    ClusterTopology,
    ConditionStatus,
    SecretReference,
    ServerAddressByClientCIDR,
)
from member_cluster.models.node import NodeTopology

__all__ = [
    "ClientCredentials",
    "ClusterCondition",
    "ClusterConditionType",
    "ClusterSpec",
    "ClusterStatus",
    "ClusterTopology",
    "ConditionStatus",
    "NodeTopology",
    "SecretReference",
    "ServerAddressByClientCIDR",
]

"""Pydantic models for the cluster console."""

from clusterops.models.cluster import ClusterSnapshot, ClusterStats, parse_pod_map
from clusterops.models.common import ConsoleModel
from clusterops.models.node import HealthStatus, Node
from clusterops.models.pod import DEFAULT_SYNTHESIZED_CPU, Pod, PodStatus

__all__ = [
    # Common
    "ConsoleModel",
    # Node
    "Node",
    "HealthStatus",
    # Pod
    "Pod",
    "PodStatus",
    "DEFAULT_SYNTHESIZED_CPU",
    # Cluster
    "ClusterSnapshot",
    "ClusterStats",
    "parse_pod_map",
]

"""Cluster snapshot and statistics models."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

import pydantic
from pydantic import Field, TypeAdapter

from clusterops.exceptions import ResponseError
from clusterops.models.common import ConsoleModel
from clusterops.models.node import HealthStatus, Node
from clusterops.models.pod import Pod, PodStatus

_POD_MAP = TypeAdapter(dict[str, Pod])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClusterSnapshot(ConsoleModel):
    """All nodes as returned by one poll of ``GET /nodes``."""

    nodes: dict[str, Node] = Field(default_factory=dict)
    fetched_at: datetime = Field(default_factory=_utcnow)
    # Full pod records, when the poll also fetched GET /pods
    pods: dict[str, Pod] | None = None

    @classmethod
    def from_wire(cls, data: Any, *, fetched_at: datetime | None = None) -> ClusterSnapshot:
        """Parse the node-id → Node map.

        Raises:
            ResponseError: If the payload is not a node map.
        """
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ResponseError(f"Expected a node map, got {type(data).__name__}")
        try:
            snapshot = cls(nodes=data, fetched_at=fetched_at or _utcnow())
        except pydantic.ValidationError as e:
            raise ResponseError(f"Malformed node snapshot: {e}") from e
        return snapshot


def parse_pod_map(data: Any) -> dict[str, Pod]:
    """Parse the pod-id → Pod map returned by ``GET /pods``."""
    if data is None:
        return {}
    try:
        return _POD_MAP.validate_python(data)
    except pydantic.ValidationError as e:
        raise ResponseError(f"Malformed pod list: {e}") from e


class ClusterStats(ConsoleModel):
    """Aggregate figures for a reconciled view."""

    total_nodes: int = 0
    healthy_nodes: int = 0
    failed_nodes: int = 0
    stopped_nodes: int = 0
    starting_nodes: int = 0
    total_cpu: int = 0
    available_cpu: int = 0
    used_cpu: int = 0
    cpu_usage_percent: float = 0.0
    total_pods: int = 0
    running_pods: int = 0
    failed_pods: int = 0

    @classmethod
    def compute(cls, nodes: Mapping[str, Node], pods: Mapping[str, Pod]) -> ClusterStats:
        health = [str(n.health_status).lower() for n in nodes.values()]
        status = [str(p.status).lower() for p in pods.values()]
        total_cpu = sum(n.cpu_cores for n in nodes.values())
        available_cpu = sum(n.available_cpu for n in nodes.values())
        used_cpu = total_cpu - available_cpu
        return cls(
            total_nodes=len(nodes),
            healthy_nodes=health.count(HealthStatus.HEALTHY.value.lower()),
            failed_nodes=health.count(HealthStatus.FAILED.value.lower()),
            stopped_nodes=health.count(HealthStatus.STOPPED.value.lower()),
            starting_nodes=health.count(HealthStatus.STARTING.value.lower()),
            total_cpu=total_cpu,
            available_cpu=available_cpu,
            used_cpu=used_cpu,
            cpu_usage_percent=(used_cpu / total_cpu) * 100 if total_cpu > 0 else 0.0,
            total_pods=len(pods),
            running_pods=status.count(PodStatus.RUNNING.value.lower()),
            failed_pods=status.count(PodStatus.FAILED.value.lower()),
        )

"""Node models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from clusterops.models.common import ConsoleModel, trim_timestamp


class HealthStatus(str, Enum):
    """Node health status."""

    STARTING = "Starting"
    HEALTHY = "Healthy"
    FAILED = "Failed"
    STOPPED = "Stopped"


class Node(ConsoleModel):
    """A simulated compute host.

    ``available_cpu + sum(pod cpu)`` equals ``cpu_cores``; the cluster
    manager maintains that, the console only displays it.
    """

    id: str = Field(..., alias="ID", description="Server-assigned node ID")
    cpu_cores: int = Field(..., alias="CPUCores", description="Total CPU capacity")
    available_cpu: int = Field(..., alias="AvailableCPU", description="Unallocated CPU")
    pods: list[str] = Field(default_factory=list, alias="Pods", description="Assigned pod IDs")
    health_status: HealthStatus | str = Field(..., alias="HealthStatus")
    last_heartbeat: datetime | None = Field(None, alias="LastHeartbeat")
    heartbeat_count: int = Field(0, alias="HeartbeatCount")

    @field_validator("pods", mode="before")
    @classmethod
    def _null_pods(cls, value: Any) -> Any:
        # A node without pods is encoded as null
        return [] if value is None else value

    @field_validator("last_heartbeat", mode="before")
    @classmethod
    def _trim_heartbeat(cls, value: Any) -> Any:
        return trim_timestamp(value)

    @property
    def has_pods(self) -> bool:
        return bool(self.pods)

    @property
    def used_cpu(self) -> int:
        return self.cpu_cores - self.available_cpu

    @property
    def is_failed(self) -> bool:
        return self.health_status == HealthStatus.FAILED

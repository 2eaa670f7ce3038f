"""Pod models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from clusterops.models.common import ConsoleModel, trim_timestamp

# CPU shown for a pod known only by its ID
DEFAULT_SYNTHESIZED_CPU = 1


class PodStatus(str, Enum):
    """Pod status."""

    PENDING = "Pending"
    RUNNING = "Running"
    RESTARTING = "Restarting"
    FAILED = "Failed"


class Pod(ConsoleModel):
    """A simulated workload placed on a node."""

    id: str = Field(..., alias="ID", description="Pod ID")
    cpu_required: int = Field(..., alias="CPURequired", description="Requested CPU")
    node_id: str | None = Field(None, alias="NodeID", description="Owning node, once placed")
    status: PodStatus | str = Field(PodStatus.PENDING, alias="Status")
    created_at: datetime | None = Field(None, alias="CreatedAt")

    # True when built from a node's pod-ID list rather than a full record
    synthesized: bool = Field(False, exclude=True)

    @field_validator("node_id", mode="before")
    @classmethod
    def _empty_node(cls, value: Any) -> Any:
        return value or None

    @field_validator("created_at", mode="before")
    @classmethod
    def _trim_created(cls, value: Any) -> Any:
        return trim_timestamp(value)

    @classmethod
    def synthesize(cls, pod_id: str, node_id: str, *, created_at: datetime | None = None) -> Pod:
        """Build a best-effort record for a pod listed under ``node_id``."""
        return cls(
            id=pod_id,
            cpu_required=DEFAULT_SYNTHESIZED_CPU,
            node_id=node_id,
            status=PodStatus.RUNNING,
            created_at=created_at,
            synthesized=True,
        )

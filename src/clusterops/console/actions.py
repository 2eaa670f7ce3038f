"""Action orchestration.

Sequences operator commands: local validation and guards, an optional
confirmation gate for disruptive pod commands, the API call, then either a
refresh of the view or a user-facing error. Nothing here raises across the
UI boundary; every failure is returned as an ``ActionOutcome`` and posted
to the notification center.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

from clusterops.console.notifications import NotificationCenter
from clusterops.console.reconciler import StateReconciler
from clusterops.exceptions import (
    ActionRejectedError,
    ActionStateError,
    ClusterError,
    NotFoundError,
    ValidationError,
)
from clusterops.models.node import HealthStatus, Node
from clusterops.models.pod import Pod, PodStatus

if TYPE_CHECKING:
    from clusterops.client import ClusterClient

logger = logging.getLogger("clusterops.console")


class ActionKind(str, Enum):
    """What a command does."""

    ADD = "add"
    LAUNCH = "launch"
    STOP = "stop"
    RESTART = "restart"
    DELETE = "delete"
    SCHEDULE = "schedule"


class TargetType(str, Enum):
    """What a command acts on."""

    NODE = "node"
    POD = "pod"
    CLUSTER = "cluster"


class ConfirmationState(str, Enum):
    UNCONFIRMED = "unconfirmed"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class ActionPhase(str, Enum):
    CREATED = "created"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REJECTED = "rejected"
    DISCARDED = "discarded"


_TERMINAL = {ActionPhase.SUCCEEDED, ActionPhase.FAILED, ActionPhase.REJECTED, ActionPhase.DISCARDED}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PendingAction:
    """A command from the operator, tracked from creation to resolution.

    Gated actions start ``unconfirmed`` and only run once confirmed::

        created/unconfirmed -> confirmed -> in_flight -> succeeded|failed
        created/unconfirmed -> cancelled (discarded)
    """

    kind: ActionKind
    target_type: TargetType
    target_id: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    confirmation: ConfirmationState | None = None
    phase: ActionPhase = ActionPhase.CREATED
    error: ClusterError | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def requires_confirmation(self) -> bool:
        return self.confirmation is not None

    @property
    def resolved(self) -> bool:
        return self.phase in _TERMINAL

    @property
    def key(self) -> tuple[ActionKind, TargetType, str | None]:
        """Identity of the logical command, for double-submit detection."""
        return (self.kind, self.target_type, self.target_id)

    def describe(self) -> str:
        target = self.target_type.value
        if self.target_id:
            target = f"{target} {self.target_id[:8]}"
        return f"{self.kind.value} {target}"

    def confirm(self) -> None:
        if self.confirmation is not ConfirmationState.UNCONFIRMED:
            raise ActionStateError(f"Cannot confirm {self.describe()}: {self._state()}")
        self.confirmation = ConfirmationState.CONFIRMED

    def cancel(self) -> None:
        if self.confirmation is not ConfirmationState.UNCONFIRMED:
            raise ActionStateError(f"Cannot cancel {self.describe()}: {self._state()}")
        self.confirmation = ConfirmationState.CANCELLED
        self.phase = ActionPhase.DISCARDED

    def begin(self) -> None:
        if self.phase is not ActionPhase.CREATED:
            raise ActionStateError(f"Cannot start {self.describe()}: {self._state()}")
        if self.requires_confirmation and self.confirmation is not ConfirmationState.CONFIRMED:
            raise ActionStateError(f"{self.describe()} has not been confirmed")
        self.phase = ActionPhase.IN_FLIGHT

    def resolve(self, error: ClusterError | None = None) -> None:
        if self.phase is not ActionPhase.IN_FLIGHT:
            raise ActionStateError(f"Cannot resolve {self.describe()}: {self._state()}")
        self.error = error
        self.phase = ActionPhase.SUCCEEDED if error is None else ActionPhase.FAILED

    def reject(self, error: ClusterError) -> None:
        self.error = error
        self.phase = ActionPhase.REJECTED

    def _state(self) -> str:
        if self.confirmation is not None and self.phase is ActionPhase.CREATED:
            return self.confirmation.value
        return self.phase.value


@dataclass(frozen=True)
class ActionOutcome:
    """Result of running an action, safe to hand to the UI."""

    action: PendingAction
    message: str
    result: Any = None

    @property
    def ok(self) -> bool:
        return self.action.phase is ActionPhase.SUCCEEDED

    @property
    def error(self) -> ClusterError | None:
        return self.action.error


RefreshFn = Callable[[], Awaitable[Any]]


class ActionOrchestrator:
    """Runs operator commands against the cluster manager.

    Example:
        ```python
        outcome = await actions.add_node(4)
        if not outcome.ok:
            print(outcome.message)

        pending = actions.delete_pod(pod_id)
        outcome = await actions.confirm(pending)
        ```
    """

    def __init__(
        self,
        client: ClusterClient,
        reconciler: StateReconciler,
        *,
        refresh: RefreshFn | None = None,
        notifications: NotificationCenter | None = None,
    ) -> None:
        self._client = client
        self._reconciler = reconciler
        self._refresh = refresh
        self._notifications = notifications or NotificationCenter()
        self._awaiting: dict[str, PendingAction] = {}
        self._in_flight: dict[str, PendingAction] = {}

    @property
    def notifications(self) -> NotificationCenter:
        return self._notifications

    @property
    def pending(self) -> list[PendingAction]:
        """Actions waiting for the operator to confirm or cancel."""
        return list(self._awaiting.values())

    @property
    def in_flight(self) -> list[PendingAction]:
        return list(self._in_flight.values())

    # Node commands

    async def add_node(self, cpu_cores: int) -> ActionOutcome:
        action = PendingAction(ActionKind.ADD, TargetType.NODE, payload={"cpu_cores": cpu_cores})
        if cpu_cores < 1:
            return self._reject(action, ValidationError("CPU cores must be at least 1"))
        return await self._run(
            action,
            lambda: self._client.nodes.add(cpu_cores),
            success=lambda node_id: f"Node {node_id[:8]} added with {cpu_cores} CPU cores",
        )

    async def stop_node(self, node_id: str) -> ActionOutcome:
        action = PendingAction(ActionKind.STOP, TargetType.NODE, node_id)
        node = self._view_node(action)
        if isinstance(node, ActionOutcome):
            return node
        if node.has_pods:
            return self._reject(action, _busy(node, "stopped"))
        if node.health_status in (HealthStatus.STOPPED, HealthStatus.FAILED):
            status = node.health_status.value
            return self._reject(
                action, ActionRejectedError(f"Node {node_id[:8]} is already {status}")
            )
        return await self._run(
            action,
            lambda: self._client.nodes.stop(node_id),
            success=lambda _: f"Node {node_id[:8]} stopped",
        )

    async def restart_node(self, node_id: str) -> ActionOutcome:
        action = PendingAction(ActionKind.RESTART, TargetType.NODE, node_id)
        node = self._view_node(action)
        if isinstance(node, ActionOutcome):
            return node
        if node.has_pods:
            return self._reject(action, _busy(node, "restarted"))
        if node.health_status == HealthStatus.STARTING:
            return self._reject(
                action, ActionRejectedError(f"Node {node_id[:8]} is still starting")
            )
        return await self._run(
            action,
            lambda: self._client.nodes.restart(node_id),
            success=lambda _: f"Node {node_id[:8]} restarting",
        )

    async def delete_node(self, node_id: str) -> ActionOutcome:
        """Delete a failed, empty node.

        The node leaves the view immediately and stays out of it even if
        the delete call fails.
        """
        action = PendingAction(ActionKind.DELETE, TargetType.NODE, node_id)
        node = self._view_node(action)
        if isinstance(node, ActionOutcome):
            return node
        if node.has_pods:
            return self._reject(action, _busy(node, "deleted"))
        if not node.is_failed:
            return self._reject(
                action,
                ActionRejectedError(
                    f"Node {node_id[:8]} is {node.health_status.value}; "
                    "only failed nodes can be deleted"
                ),
            )
        if action.key in self._in_flight_keys():
            return self._reject(action, _duplicate(action))

        self._reconciler.remove_optimistically(node_id)
        return await self._run(
            action,
            lambda: self._client.nodes.delete(node_id),
            success=lambda _: f"Node {node_id[:8]} deleted",
            on_resolved=lambda error: self._reconciler.resolve_removal(node_id, error),
        )

    # Pod commands

    async def launch_pod(self, cpu_required: int) -> ActionOutcome:
        """Launch a pod. Placement failures come back verbatim from the server."""
        action = PendingAction(
            ActionKind.LAUNCH, TargetType.POD, payload={"cpu_required": cpu_required}
        )
        if cpu_required < 1:
            return self._reject(action, ValidationError("CPU required must be at least 1"))
        return await self._run(
            action,
            lambda: self._client.pods.launch(cpu_required),
            success=lambda pod_id: f"Pod {pod_id[:8]} launched with {cpu_required} CPU",
        )

    def delete_pod(self, pod_id: str) -> PendingAction:
        """Hold a pod deletion until the operator confirms it."""
        return self._gate(PendingAction(ActionKind.DELETE, TargetType.POD, pod_id))

    def restart_pod(self, pod_id: str) -> PendingAction:
        """Hold a pod restart until the operator confirms it."""
        return self._gate(PendingAction(ActionKind.RESTART, TargetType.POD, pod_id))

    # Cluster commands

    async def set_scheduler(self, algorithm: str) -> ActionOutcome:
        action = PendingAction(
            ActionKind.SCHEDULE, TargetType.CLUSTER, payload={"algorithm": algorithm}
        )
        if not algorithm:
            return self._reject(action, ValidationError("A scheduling algorithm is required"))
        return await self._run(
            action,
            lambda: self._client.scheduler.set_algorithm(algorithm),
            success=lambda _: f"Scheduler set to {algorithm}",
            refresh=False,
        )

    # Confirmation gate

    def find(self, action_id: str) -> PendingAction | None:
        """Look up an action awaiting confirmation."""
        return self._awaiting.get(action_id)

    async def confirm(self, action: PendingAction) -> ActionOutcome:
        """Confirm a held action and run it."""
        try:
            action.confirm()
        except ActionStateError as e:
            logger.info("%s", e)
            return ActionOutcome(action, e.message)
        finally:
            self._awaiting.pop(action.id, None)

        pod_id = action.target_id or ""
        if action.kind is ActionKind.DELETE:
            return await self._run(
                action,
                lambda: self._client.pods.delete(pod_id),
                success=lambda _: f"Pod {pod_id[:8]} deleted",
            )
        return await self._run(
            action,
            lambda: self._client.pods.restart(pod_id),
            success=lambda _: f"Pod {pod_id[:8]} restarting",
        )

    def cancel(self, action: PendingAction) -> PendingAction:
        """Discard a held action without side effects."""
        self._awaiting.pop(action.id, None)
        try:
            action.cancel()
        except ActionStateError as e:
            logger.debug("%s", e)
        else:
            logger.debug("Cancelled %s", action.describe())
        return action

    # Internals

    def _gate(self, action: PendingAction) -> PendingAction:
        pod = self._view_pod(action)
        if pod is None:
            return action
        if action.kind is ActionKind.RESTART and pod.status == PodStatus.RESTARTING:
            self._reject(
                action, ActionRejectedError(f"Pod {pod.id[:8]} is already restarting")
            )
            return action
        if action.key in self._in_flight_keys():
            self._reject(action, _duplicate(action))
            return action

        action.confirmation = ConfirmationState.UNCONFIRMED
        self._awaiting[action.id] = action
        return action

    def _view_node(self, action: PendingAction) -> Node | ActionOutcome:
        node = self._reconciler.view.node(action.target_id or "")
        if node is None:
            return self._reject(action, _missing(action))
        return node

    def _view_pod(self, action: PendingAction) -> Pod | None:
        pod = self._reconciler.view.pod(action.target_id or "")
        if pod is None:
            self._reject(action, _missing(action))
        return pod

    def _in_flight_keys(self) -> set[tuple[ActionKind, TargetType, str | None]]:
        return {a.key for a in self._in_flight.values()}

    async def _run(
        self,
        action: PendingAction,
        call: Callable[[], Awaitable[Any]],
        *,
        success: Callable[[Any], str],
        on_resolved: Callable[[ClusterError | None], None] | None = None,
        refresh: bool = True,
    ) -> ActionOutcome:
        if action.key in self._in_flight_keys():
            return self._reject(action, _duplicate(action))

        action.begin()
        self._in_flight[action.id] = action
        try:
            result = await call()
        except ClusterError as e:
            action.resolve(e)
            if on_resolved is not None:
                on_resolved(e)
            logger.info("%s failed: %s", action.describe(), e)
            self._notifications.error(
                f"Failed to {action.describe()}: {e.message}", action_id=action.id
            )
            return ActionOutcome(action, e.message)
        finally:
            self._in_flight.pop(action.id, None)

        action.resolve()
        if on_resolved is not None:
            on_resolved(None)
        message = success(result)
        self._notifications.success(message, action_id=action.id)

        if refresh:
            await self._refresh_view()
        return ActionOutcome(action, message, result)

    async def _refresh_view(self) -> None:
        if self._refresh is None:
            return
        try:
            await self._refresh()
        except ClusterError as e:
            # The next scheduled poll heals the view
            logger.warning("Refresh after action failed: %s", e)

    def _reject(self, action: PendingAction, error: ClusterError) -> ActionOutcome:
        action.reject(error)
        logger.info("%s rejected: %s", action.describe(), error)
        self._notifications.error(error.message, action_id=action.id)
        return ActionOutcome(action, error.message)


def _busy(node: Node, verb: str) -> ActionRejectedError:
    return ActionRejectedError(
        f"Node {node.id[:8]} has {len(node.pods)} pod(s) and cannot be {verb}"
    )


def _missing(action: PendingAction) -> NotFoundError:
    target_id = action.target_id or ""
    return NotFoundError(
        f"{action.target_type.value.capitalize()} {target_id[:8]} is not in the current view",
        resource_type=action.target_type.value,
        resource_id=target_id,
    )


def _duplicate(action: PendingAction) -> ActionRejectedError:
    return ActionRejectedError(f"{action.describe().capitalize()} is already in progress")

"""State reconciliation.

The reconciler exclusively owns the console's authoritative local view.
Node maps are replaced wholesale on every snapshot; pods are derived from
each node's pod-ID list.

The one sanctioned local edit is the optimistic removal of a node that is
already in the Failed state. Such a node is tracked as ``LocallyRemoved``
and suppressed from every later snapshot until the server stops reporting
it, even if the delete call fails.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType

from clusterops.exceptions import ActionRejectedError, ClusterError, NotFoundError
from clusterops.models.cluster import ClusterSnapshot, ClusterStats
from clusterops.models.node import Node
from clusterops.models.pod import Pod

logger = logging.getLogger("clusterops.console")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RemovalState(str, Enum):
    """Progress of an optimistic node removal."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class LocallyRemoved:
    """A node hidden from the view ahead of server confirmation."""

    node: Node
    state: RemovalState = RemovalState.PENDING
    since: datetime = field(default_factory=_utcnow)
    error: ClusterError | None = None


@dataclass(frozen=True)
class ClusterView:
    """One reconciled, internally consistent view of the cluster."""

    nodes: Mapping[str, Node] = field(default_factory=dict)
    pods: Mapping[str, Pod] = field(default_factory=dict)
    fetched_at: datetime | None = None
    version: int = 0
    locally_removed: Mapping[str, LocallyRemoved] = field(default_factory=dict)

    def node(self, node_id: str) -> Node | None:
        return self.nodes.get(node_id)

    def pod(self, pod_id: str) -> Pod | None:
        return self.pods.get(pod_id)

    def pods_on(self, node_id: str) -> list[Pod]:
        node = self.nodes.get(node_id)
        if node is None:
            return []
        return [self.pods[pid] for pid in node.pods if pid in self.pods]

    def stats(self) -> ClusterStats:
        return ClusterStats.compute(self.nodes, self.pods)


ViewListener = Callable[[ClusterView], None]


class StateReconciler:
    """Merges server snapshots into the local view."""

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._view = ClusterView()
        self._removed: dict[str, LocallyRemoved] = {}
        self._listeners: list[ViewListener] = []

    @property
    def view(self) -> ClusterView:
        return self._view

    @property
    def locally_removed(self) -> Mapping[str, LocallyRemoved]:
        return MappingProxyType(dict(self._removed))

    def subscribe(self, listener: ViewListener) -> Callable[[], None]:
        """Call ``listener`` with every new view; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def apply(self, snapshot: ClusterSnapshot) -> ClusterView:
        """Replace the node map with ``snapshot`` and re-derive pods."""
        nodes = dict(snapshot.nodes)

        for node_id, removal in list(self._removed.items()):
            if node_id in nodes:
                nodes.pop(node_id)
                if removal.state is RemovalState.FAILED:
                    logger.debug(
                        "Node %s still reported after failed delete (%s); keeping it hidden",
                        node_id,
                        removal.error,
                    )
            elif removal.state is not RemovalState.PENDING:
                # Server no longer reports it; nothing left to suppress
                del self._removed[node_id]

        pods = self._derive_pods(nodes, snapshot)
        return self._publish(nodes, pods, snapshot.fetched_at)

    def _derive_pods(self, nodes: Mapping[str, Node], snapshot: ClusterSnapshot) -> dict[str, Pod]:
        full = snapshot.pods or {}
        previous = self._view.pods
        pods: dict[str, Pod] = {}

        for node in nodes.values():
            for pod_id in node.pods:
                record = full.get(pod_id)
                if record is not None:
                    if record.node_id != node.id:
                        record = record.model_copy(update={"node_id": node.id})
                    pods[pod_id] = record
                    continue

                known = previous.get(pod_id)
                if known is not None and known.node_id == node.id:
                    pods[pod_id] = known
                else:
                    pods[pod_id] = Pod.synthesize(pod_id, node.id, created_at=snapshot.fetched_at)

        return pods

    def remove_optimistically(self, node_id: str) -> LocallyRemoved:
        """Hide a Failed node before the delete call completes.

        Raises:
            NotFoundError: The node is not in the current view.
            ActionRejectedError: The node is not in the Failed state.
        """
        node = self._view.nodes.get(node_id)
        if node is None:
            raise NotFoundError(
                f"Node {node_id} is not in the current view",
                resource_type="node",
                resource_id=node_id,
            )
        if not node.is_failed:
            raise ActionRejectedError(
                f"Node {node_id} is {node.health_status.value}; "
                "only failed nodes are removed early"
            )

        removal = LocallyRemoved(node=node, since=self._clock())
        self._removed[node_id] = removal

        nodes = {nid: n for nid, n in self._view.nodes.items() if nid != node_id}
        pods = {pid: p for pid, p in self._view.pods.items() if p.node_id != node_id}
        self._publish(nodes, pods, self._view.fetched_at)
        logger.debug("Node %s removed locally pending delete", node_id)
        return removal

    def resolve_removal(self, node_id: str, error: ClusterError | None = None) -> None:
        """Record the outcome of the delete call for a locally removed node.

        The node stays hidden either way.
        """
        removal = self._removed.get(node_id)
        if removal is None:
            return
        if error is None:
            removal.state = RemovalState.CONFIRMED
        else:
            removal.state = RemovalState.FAILED
            removal.error = error
            logger.warning("Delete of node %s failed; it stays hidden: %s", node_id, error)

    def _publish(
        self,
        nodes: Mapping[str, Node],
        pods: Mapping[str, Pod],
        fetched_at: datetime | None,
    ) -> ClusterView:
        self._view = ClusterView(
            nodes=MappingProxyType(dict(nodes)),
            pods=MappingProxyType(dict(pods)),
            fetched_at=fetched_at,
            version=self._view.version + 1,
            locally_removed=self.locally_removed,
        )
        for listener in list(self._listeners):
            listener(self._view)
        return self._view

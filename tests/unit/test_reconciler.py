"""Tests for the state reconciler."""

from __future__ import annotations

from typing import Any

import pytest

from clusterops.console import ClusterView, RemovalState, StateReconciler
from clusterops.exceptions import ActionRejectedError, NotFoundError, ServerError
from clusterops.models import ClusterSnapshot, PodStatus, parse_pod_map


def _snapshot(nodes: dict[str, Any], pods: dict[str, Any] | None = None) -> ClusterSnapshot:
    snapshot = ClusterSnapshot.from_wire(nodes)
    if pods is not None:
        snapshot.pods = parse_pod_map(pods)
    return snapshot


class TestApply:
    """Test snapshot application."""

    def test_replaces_node_map(self, make_node) -> None:
        reconciler = StateReconciler()
        reconciler.apply(_snapshot({"a": make_node("a"), "b": make_node("b")}))

        view = reconciler.apply(_snapshot({"b": make_node("b")}))

        assert set(view.nodes) == {"b"}
        assert view.version == 2

    def test_synthesizes_pods_from_node_lists(self, make_node) -> None:
        reconciler = StateReconciler()

        view = reconciler.apply(_snapshot({"a": make_node("a", pods=["p1", "p2"])}))

        assert set(view.pods) == {"p1", "p2"}
        assert view.pods["p1"].node_id == "a"
        assert view.pods["p1"].synthesized
        assert [p.id for p in view.pods_on("a")] == ["p1", "p2"]

    def test_pods_follow_their_node(self, make_node) -> None:
        """Pods of a node that vanished are dropped with it."""
        reconciler = StateReconciler()
        reconciler.apply(_snapshot({"a": make_node("a", pods=["p1"]), "b": make_node("b")}))

        view = reconciler.apply(_snapshot({"b": make_node("b")}))

        assert view.pods == {}

    def test_full_pod_records_win(self, make_node, make_pod) -> None:
        reconciler = StateReconciler()

        view = reconciler.apply(
            _snapshot(
                {"a": make_node("a", pods=["p1"])},
                {"p1": make_pod("p1", cpu=3, node_id="stale", status="Restarting")},
            )
        )

        pod = view.pods["p1"]
        assert not pod.synthesized
        assert pod.cpu_required == 3
        assert pod.node_id == "a"
        assert pod.status == PodStatus.RESTARTING

    def test_unlisted_pod_records_are_ignored(self, make_node, make_pod) -> None:
        reconciler = StateReconciler()

        view = reconciler.apply(
            _snapshot({"a": make_node("a")}, {"p1": make_pod("p1", node_id="a")})
        )

        assert view.pods == {}

    def test_known_record_is_reused_on_same_node(self, make_node, make_pod) -> None:
        reconciler = StateReconciler()
        reconciler.apply(
            _snapshot({"a": make_node("a", pods=["p1"])}, {"p1": make_pod("p1", cpu=3)})
        )

        view = reconciler.apply(_snapshot({"a": make_node("a", pods=["p1"])}))

        assert view.pods["p1"].cpu_required == 3

    def test_listeners_see_every_view(self, make_node) -> None:
        reconciler = StateReconciler()
        seen: list[ClusterView] = []
        unsubscribe = reconciler.subscribe(seen.append)

        reconciler.apply(_snapshot({"a": make_node("a")}))
        unsubscribe()
        reconciler.apply(_snapshot({}))

        assert len(seen) == 1
        assert "a" in seen[0].nodes

    def test_unsubscribe_twice_is_harmless(self, make_node) -> None:
        reconciler = StateReconciler()
        unsubscribe = reconciler.subscribe(lambda view: None)

        unsubscribe()
        unsubscribe()
        reconciler.apply(_snapshot({"a": make_node("a")}))

        assert "a" in reconciler.view.nodes


class TestOptimisticRemoval:
    """Test local removal of failed nodes."""

    def test_rejects_missing_node(self) -> None:
        with pytest.raises(NotFoundError):
            StateReconciler().remove_optimistically("nope")

    def test_rejects_healthy_node(self, make_node) -> None:
        reconciler = StateReconciler()
        reconciler.apply(_snapshot({"a": make_node("a")}))

        with pytest.raises(ActionRejectedError):
            reconciler.remove_optimistically("a")

        assert "a" in reconciler.view.nodes

    def test_node_leaves_view_immediately(self, make_node) -> None:
        reconciler = StateReconciler()
        reconciler.apply(_snapshot({"f": make_node("f", health="Failed")}))

        removal = reconciler.remove_optimistically("f")

        assert "f" not in reconciler.view.nodes
        assert removal.state is RemovalState.PENDING
        assert "f" in reconciler.view.locally_removed

    def test_stays_hidden_while_server_reports_it(self, make_node) -> None:
        reconciler = StateReconciler()
        failed = make_node("f", health="Failed")
        reconciler.apply(_snapshot({"f": failed}))
        reconciler.remove_optimistically("f")

        view = reconciler.apply(_snapshot({"f": failed}))

        assert "f" not in view.nodes

    def test_failed_delete_does_not_resurrect(self, make_node) -> None:
        reconciler = StateReconciler()
        failed = make_node("f", health="Failed")
        reconciler.apply(_snapshot({"f": failed}))
        reconciler.remove_optimistically("f")

        reconciler.resolve_removal("f", ServerError("down"))
        view = reconciler.apply(_snapshot({"f": failed}))

        assert "f" not in view.nodes
        assert reconciler.locally_removed["f"].state is RemovalState.FAILED

    def test_tombstone_dropped_once_server_forgets_node(self, make_node) -> None:
        reconciler = StateReconciler()
        reconciler.apply(_snapshot({"f": make_node("f", health="Failed")}))
        reconciler.remove_optimistically("f")
        reconciler.resolve_removal("f")

        reconciler.apply(_snapshot({}))

        assert "f" not in reconciler.locally_removed

    def test_pending_tombstone_survives_absent_snapshot(self, make_node) -> None:
        """A poll that lands before the delete resolves keeps the tombstone."""
        reconciler = StateReconciler()
        reconciler.apply(_snapshot({"f": make_node("f", health="Failed")}))
        reconciler.remove_optimistically("f")

        reconciler.apply(_snapshot({}))

        assert reconciler.locally_removed["f"].state is RemovalState.PENDING

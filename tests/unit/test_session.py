"""Tests for the console session."""

from __future__ import annotations

import anyio
import httpx
import pytest
import respx

from clusterops.client import ClusterClient
from clusterops.console import ClusterConsole, Level, NotificationCenter
from clusterops.exceptions import ServerError


class TestSync:
    """Test one-shot synchronisation."""

    @pytest.mark.anyio
    async def test_transient_failures_are_invisible(
        self, client: ClusterClient, mock_api: respx.MockRouter, sample_nodes, sleeps
    ) -> None:
        """Two 503s then success within the retry budget show nothing to the user."""
        route = mock_api.get("/nodes").mock(
            side_effect=[
                httpx.Response(503),
                httpx.Response(503),
                httpx.Response(200, json=sample_nodes),
            ]
        )
        cluster = ClusterConsole(client)

        view = await cluster.sync()

        assert route.call_count == 3
        assert len(sleeps.delays) == 2
        assert len(view.nodes) == 3
        assert cluster.notifications.history == []
        assert cluster.notifications.stale is None

    @pytest.mark.anyio
    async def test_sync_raises_after_retries(
        self, client: ClusterClient, mock_api: respx.MockRouter
    ) -> None:
        mock_api.get("/nodes").mock(return_value=httpx.Response(503, text="down"))
        cluster = ClusterConsole(client)

        with pytest.raises(ServerError):
            await cluster.sync()

    @pytest.mark.anyio
    async def test_refresh_failure_marks_view_stale(
        self, client: ClusterClient, mock_api: respx.MockRouter
    ) -> None:
        mock_api.get("/nodes").mock(return_value=httpx.Response(503, text="down"))
        cluster = ClusterConsole(client)

        await cluster.refresh()

        assert cluster.notifications.stale is not None
        assert cluster.notifications.stale.level is Level.WARNING
        assert "down" in cluster.notifications.stale.message

    @pytest.mark.anyio
    async def test_include_pods_fetches_records(
        self, client: ClusterClient, mock_api: respx.MockRouter, make_node, make_pod
    ) -> None:
        mock_api.get("/nodes").mock(
            return_value=httpx.Response(200, json={"n1": make_node("n1", pods=["p1"])})
        )
        mock_api.get("/pods").mock(
            return_value=httpx.Response(200, json={"p1": make_pod("p1", cpu=3, node_id="n1")})
        )
        cluster = ClusterConsole(client, include_pods=True)

        view = await cluster.sync()

        assert view.pods["p1"].cpu_required == 3
        assert view.stats().total_pods == 1


class TestRunning:
    """Test the polling lifecycle."""

    @pytest.mark.anyio
    async def test_running_polls_and_feeds_heartbeats(
        self, client: ClusterClient, mock_api: respx.MockRouter, sample_nodes
    ) -> None:
        mock_api.get("/nodes").mock(return_value=httpx.Response(200, json=sample_nodes))
        cluster = ClusterConsole(client, poll_interval=10.0)

        async with cluster.running():
            with anyio.fail_after(2):
                while cluster.view.version < 1:
                    await anyio.sleep(0.01)
            assert cluster.poller.running

            await cluster.refresh()
            assert cluster.view.version == 2

        assert not cluster.poller.running
        assert set(cluster.heartbeats.node_ids) == {"node-a", "node-b", "node-c"}

    @pytest.mark.anyio
    async def test_shared_notification_center(self, client: ClusterClient) -> None:
        notifications = NotificationCenter()

        cluster = ClusterConsole(client, notifications=notifications)

        assert cluster.notifications is notifications
        assert cluster.actions.notifications is notifications
        assert cluster.poll_interval == client.config.poll_interval

"""Console session.

Wires the client, reconciler, poller, orchestrator, notifications and
heartbeat monitor together around one cancellation epoch.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

import anyio
from anyio.abc import TaskGroup

from clusterops.client import ClusterClient
from clusterops.console._epoch import Epoch
from clusterops.console.actions import ActionOrchestrator
from clusterops.console.notifications import NotificationCenter
from clusterops.console.poller import Poller
from clusterops.console.reconciler import ClusterView, StateReconciler
from clusterops.console.waveform import CLEANUP_INTERVAL, HeartbeatMonitor, now_ms
from clusterops.exceptions import ClusterError
from clusterops.models.cluster import ClusterSnapshot

logger = logging.getLogger("clusterops.console")


class ClusterConsole:
    """A live view of the cluster plus the commands that act on it.

    Example:
        ```python
        async with ClusterClient() as client:
            console = ClusterConsole(client)
            async with console.running():
                await anyio.sleep(1)
                print(console.view.stats())
                await console.actions.add_node(4)
        ```
    """

    def __init__(
        self,
        client: ClusterClient,
        *,
        poll_interval: float | None = None,
        include_pods: bool = False,
        notifications: NotificationCenter | None = None,
        clock: Callable[[], float] = now_ms,
    ) -> None:
        """Initialize the console.

        Args:
            client: Cluster manager client.
            poll_interval: Seconds between polls; defaults to the client's config.
            include_pods: Also fetch full pod records on every poll.
            notifications: Notification center to post to.
            clock: Millisecond wall clock for heartbeat classification.
        """
        self._client = client
        self._poll_interval = poll_interval or client.config.poll_interval
        self._include_pods = include_pods

        self.epoch = Epoch()
        self.notifications = notifications or NotificationCenter()
        self.reconciler = StateReconciler()
        self.heartbeats = HeartbeatMonitor(clock=clock, epoch=self.epoch)
        self.reconciler.subscribe(self.heartbeats.observe)
        self.poller = Poller(self.reconciler, notifications=self.notifications, epoch=self.epoch)
        self.actions = ActionOrchestrator(
            client,
            self.reconciler,
            refresh=self.refresh,
            notifications=self.notifications,
        )

    @property
    def client(self) -> ClusterClient:
        return self._client

    @property
    def view(self) -> ClusterView:
        return self.reconciler.view

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    async def fetch_snapshot(self) -> ClusterSnapshot:
        """Fetch one complete snapshot (and pod records if enabled)."""
        snapshot = await self._client.nodes.list()
        if self._include_pods:
            snapshot.pods = await self._client.pods.list()
        return snapshot

    async def sync(self) -> ClusterView:
        """Fetch and reconcile once.

        Raises:
            ClusterError: The fetch failed after retries.
        """
        snapshot = await self.fetch_snapshot()
        view = self.reconciler.apply(snapshot)
        self.notifications.clear_stale()
        return view

    async def refresh(self) -> None:
        """Bring the view up to date after a command.

        Uses the running poller so the single-fetch guarantee holds;
        otherwise performs a one-shot sync.
        """
        if self.poller.running:
            await self.poller.refresh()
            return
        try:
            await self.sync()
        except ClusterError as e:
            logger.warning("Cluster refresh failed: %s", e)
            self.notifications.set_stale(f"Showing last known cluster state: {e}")

    def start(self, task_group: TaskGroup) -> None:
        """Start polling and the heartbeat buffer cleanup timer."""
        self.poller.start(task_group, self._poll_interval, self.fetch_snapshot)
        self.heartbeats.start_cleanup(task_group, CLEANUP_INTERVAL)

    def stop(self) -> None:
        """Stop all timers; late completions become no-ops."""
        self.poller.stop()
        self.heartbeats.stop_cleanup()

    @asynccontextmanager
    async def running(self) -> AsyncIterator[ClusterConsole]:
        """Run the console's timers for the duration of the block."""
        async with anyio.create_task_group() as tg:
            self.start(tg)
            try:
                yield self
            finally:
                self.stop()

"""Periodic full-state refresh.

Ticks are scheduled against absolute deadlines so the cycle does not drift.
At most one fetch is in flight: a tick that comes due while the previous
fetch is still pending is coalesced into a no-op.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Awaitable, Callable

import anyio
from anyio.abc import TaskGroup

from clusterops.console._epoch import Epoch
from clusterops.console.notifications import NotificationCenter
from clusterops.console.reconciler import StateReconciler
from clusterops.exceptions import ClusterError
from clusterops.models.cluster import ClusterSnapshot

logger = logging.getLogger("clusterops.console")

FetchFn = Callable[[], Awaitable[ClusterSnapshot]]


class Poller:
    """Drives periodic snapshot fetches into a ``StateReconciler``.

    Example:
        ```python
        async with anyio.create_task_group() as tg:
            poller.start(tg, 5.0, client.nodes.list)
            ...
            poller.stop()
        ```
    """

    def __init__(
        self,
        reconciler: StateReconciler,
        *,
        notifications: NotificationCenter | None = None,
        epoch: Epoch | None = None,
    ) -> None:
        self._reconciler = reconciler
        self._notifications = notifications
        self._epoch = epoch or Epoch()

        self._token: int | None = None
        self._scope: anyio.CancelScope | None = None
        self._fetch: FetchFn | None = None
        self._interval = 0.0

        self._tick_marker: object | None = None
        self._idle: anyio.Event | None = None

        self.ticks = 0
        self.coalesced = 0
        self.failures = 0
        self.last_error: ClusterError | None = None

    @property
    def running(self) -> bool:
        return self._token is not None and self._epoch.is_current(self._token)

    @property
    def in_flight(self) -> bool:
        return self._tick_marker is not None

    @property
    def interval(self) -> float:
        return self._interval

    def start(self, task_group: TaskGroup, interval: float, fetch: FetchFn) -> None:
        """Begin polling every ``interval`` seconds, starting immediately."""
        if interval <= 0:
            raise ValueError("Poll interval must be positive")
        if self.running:
            raise RuntimeError("Poller is already running")

        self._fetch = fetch
        self._interval = interval
        self._token = self._epoch.current
        self._scope = anyio.CancelScope()
        task_group.start_soon(self._run, self._token, self._scope, name="cluster-poller")
        logger.debug("Polling every %.2fs", interval)

    def stop(self) -> None:
        """Halt polling. Completions that arrive afterwards are discarded."""
        if self._token is None:
            return
        self._epoch.advance()
        self._token = None
        if self._scope is not None:
            self._scope.cancel()
            self._scope = None
        # A queued tick cancelled before it ran never frees its slot
        self._release()
        logger.debug("Polling stopped")

    async def refresh(self) -> bool:
        """Poll now instead of waiting for the next tick.

        If a fetch is already in flight it may predate the caller's change,
        so this waits for it and then runs a fresh one.

        Returns:
            False if the poller is not running or was stopped meanwhile.
        """
        token = self._token
        if token is None or not self._epoch.is_current(token):
            return False

        while self._tick_marker is not None and self._idle is not None:
            await self._idle.wait()
            if not self._epoch.is_current(token):
                return False

        marker, idle = self._claim()
        await self._tick(token, marker, idle)
        return self._epoch.is_current(token)

    async def _run(self, token: int, scope: anyio.CancelScope) -> None:
        with scope:
            async with anyio.create_task_group() as tg:
                deadline = anyio.current_time()
                while self._epoch.is_current(token):
                    self._schedule(tg, token)
                    deadline += self._interval
                    now = anyio.current_time()
                    if deadline < now:
                        # Overran whole intervals; skip them rather than burst
                        deadline += math.ceil((now - deadline) / self._interval) * self._interval
                    await anyio.sleep_until(deadline)

    def _schedule(self, tg: TaskGroup, token: int) -> None:
        if self._tick_marker is not None:
            self.coalesced += 1
            logger.debug("Poll tick coalesced; previous fetch still in flight")
            return
        # The slot is taken before the task starts so a refresh cannot slip in
        marker, idle = self._claim()
        tg.start_soon(self._tick, token, marker, idle)

    def _claim(self) -> tuple[object, anyio.Event]:
        marker = object()
        idle = anyio.Event()
        self._tick_marker = marker
        self._idle = idle
        return marker, idle

    def _release(self) -> None:
        self._tick_marker = None
        if self._idle is not None:
            self._idle.set()

    async def _tick(self, token: int, marker: object, idle: anyio.Event) -> None:
        if self._fetch is None:
            raise RuntimeError("Poller has not been started")
        self.ticks += 1
        try:
            snapshot = await self._fetch()
        except ClusterError as exc:
            if self._epoch.is_current(token):
                self._on_failure(exc)
            else:
                logger.debug("Discarding poll failure that arrived after stop: %s", exc)
            return
        finally:
            if self._tick_marker is marker:
                self._tick_marker = None
            idle.set()

        if not self._epoch.is_current(token):
            logger.debug("Discarding poll result that arrived after stop")
            return

        self._reconciler.apply(snapshot)
        self.last_error = None
        if self._notifications is not None:
            self._notifications.clear_stale()

    def _on_failure(self, exc: ClusterError) -> None:
        self.failures += 1
        self.last_error = exc
        logger.warning("Cluster poll failed: %s", exc)
        if self._notifications is not None:
            self._notifications.set_stale(f"Showing last known cluster state: {exc}")

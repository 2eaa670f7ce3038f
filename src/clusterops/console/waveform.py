"""Liveness waveform generation.

Turns a node's heartbeat counter into a short ECG-like trace: every
observation where the counter has moved forward appends one fixed pulse,
and samples age out of a ten second window. Activity is classified from
the last-heartbeat timestamp alone.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable, Iterable
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple

import anyio
from anyio.abc import TaskGroup

from clusterops.console._epoch import Epoch

if TYPE_CHECKING:
    from clusterops.console.reconciler import ClusterView

logger = logging.getLogger("clusterops.console")

WINDOW_MS = 10_000
MAX_SAMPLES = 100
INACTIVE_AFTER_MS = 20_000
CLEANUP_INTERVAL = 1.0

# (offset ms, amplitude) for a single beat
PULSE: tuple[tuple[int, float], ...] = (
    (0, 0.0),
    (100, 0.0),
    (120, -0.2),  # Q
    (130, 2.0),  # R
    (140, -0.5),  # S
    (160, 0.0),
    (200, 0.2),  # T
    (250, 0.0),
    (600, 0.0),
)


class Sample(NamedTuple):
    timestamp: float
    amplitude: float


class Activity(str, Enum):
    """Liveness classification of a node."""

    ACTIVE = "active"
    INACTIVE = "inactive"


def now_ms() -> float:
    return time.time() * 1000


def to_ms(value: datetime | float | None) -> float | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.timestamp() * 1000
    return float(value)


def classify_activity(
    last_heartbeat: datetime | float | None,
    now: float,
    *,
    inactive_after_ms: float = INACTIVE_AFTER_MS,
) -> Activity:
    """Inactive once more than ``inactive_after_ms`` passed since the last heartbeat."""
    last = to_ms(last_heartbeat)
    if last is None or now - last > inactive_after_ms:
        return Activity.INACTIVE
    return Activity.ACTIVE


class LivenessWaveform:
    """Bounded, time-windowed sample buffer for one node."""

    def __init__(
        self,
        *,
        window_ms: float = WINDOW_MS,
        max_samples: int = MAX_SAMPLES,
        inactive_after_ms: float = INACTIVE_AFTER_MS,
        pulse: Iterable[tuple[int, float]] = PULSE,
        clock: Callable[[], float] = now_ms,
    ) -> None:
        self._window_ms = window_ms
        self._inactive_after_ms = inactive_after_ms
        self._pulse = tuple(pulse)
        self._clock = clock
        self._samples: deque[Sample] = deque(maxlen=max_samples)
        self._last_count: int | None = None
        self._last_heartbeat: float | None = None
        self.bursts = 0

    @property
    def last_count(self) -> int | None:
        return self._last_count

    def update(
        self,
        heartbeat_count: int,
        last_heartbeat: datetime | float | None,
        *,
        now: float | None = None,
    ) -> tuple[Sample, ...]:
        """Record one observation and return the current buffer.

        The first observation only establishes a baseline. A counter that
        went backwards means the node was recreated; it becomes the new
        baseline without a pulse.
        """
        now = self._clock() if now is None else now
        previous = self._last_count
        self._last_count = heartbeat_count
        self._last_heartbeat = to_ms(last_heartbeat)

        if previous is not None:
            if heartbeat_count > previous:
                self._samples.extend(Sample(now + offset, amp) for offset, amp in self._pulse)
                self.bursts += 1
            elif heartbeat_count < previous:
                logger.debug("Heartbeat counter reset from %d to %d", previous, heartbeat_count)

        return self.samples(now)

    def prune(self, now: float | None = None) -> None:
        """Drop samples that fell out of the window."""
        now = self._clock() if now is None else now
        # Pulses from close observations overlap, so the buffer is not strictly ordered
        if any(now - s.timestamp >= self._window_ms for s in self._samples):
            self._samples = deque(
                (s for s in self._samples if now - s.timestamp < self._window_ms),
                maxlen=self._samples.maxlen,
            )

    def samples(self, now: float | None = None) -> tuple[Sample, ...]:
        self.prune(now)
        return tuple(self._samples)

    def activity(self, now: float | None = None) -> Activity:
        now = self._clock() if now is None else now
        return classify_activity(
            self._last_heartbeat, now, inactive_after_ms=self._inactive_after_ms
        )


class HeartbeatMonitor:
    """One waveform per node, fed from reconciled views.

    The periodic cleanup timer shares the console's cancellation epoch.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = now_ms,
        epoch: Epoch | None = None,
        window_ms: float = WINDOW_MS,
        max_samples: int = MAX_SAMPLES,
        inactive_after_ms: float = INACTIVE_AFTER_MS,
    ) -> None:
        self._clock = clock
        self._epoch = epoch or Epoch()
        self._options = {
            "window_ms": window_ms,
            "max_samples": max_samples,
            "inactive_after_ms": inactive_after_ms,
        }
        self._waveforms: dict[str, LivenessWaveform] = {}
        self._scope: anyio.CancelScope | None = None

    @property
    def node_ids(self) -> list[str]:
        return list(self._waveforms)

    def waveform(self, node_id: str) -> LivenessWaveform | None:
        return self._waveforms.get(node_id)

    def observe(self, view: ClusterView) -> None:
        """Update every node's waveform from a reconciled ``ClusterView``."""
        now = self._clock()
        for node_id, node in view.nodes.items():
            waveform = self._waveforms.get(node_id)
            if waveform is None:
                waveform = LivenessWaveform(clock=self._clock, **self._options)
                self._waveforms[node_id] = waveform
            waveform.update(node.heartbeat_count, node.last_heartbeat, now=now)

        for node_id in list(self._waveforms):
            if node_id not in view.nodes:
                del self._waveforms[node_id]

    def activity(self, node_id: str, now: float | None = None) -> Activity:
        waveform = self._waveforms.get(node_id)
        if waveform is None:
            return Activity.INACTIVE
        return waveform.activity(now)

    def prune(self, now: float | None = None) -> None:
        now = self._clock() if now is None else now
        for waveform in self._waveforms.values():
            waveform.prune(now)

    def start_cleanup(self, task_group: TaskGroup, interval: float = CLEANUP_INTERVAL) -> None:
        """Prune every buffer each ``interval`` seconds until the epoch moves on."""
        self._scope = anyio.CancelScope()
        task_group.start_soon(self._cleanup, self._epoch.current, self._scope, interval)

    def stop_cleanup(self) -> None:
        if self._scope is not None:
            self._scope.cancel()
            self._scope = None

    async def _cleanup(self, token: int, scope: anyio.CancelScope, interval: float) -> None:
        with scope:
            while True:
                await anyio.sleep(interval)
                if not self._epoch.is_current(token):
                    return
                self.prune()

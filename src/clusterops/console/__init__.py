"""Resilient synchronization and action layer."""

from clusterops.console._epoch import Epoch
from clusterops.console.actions import (
    ActionKind,
    ActionOrchestrator,
    ActionOutcome,
    ActionPhase,
    ConfirmationState,
    PendingAction,
    TargetType,
)
from clusterops.console.notifications import Level, Notification, NotificationCenter
from clusterops.console.poller import Poller
from clusterops.console.reconciler import (
    ClusterView,
    LocallyRemoved,
    RemovalState,
    StateReconciler,
)
from clusterops.console.session import ClusterConsole
from clusterops.console.waveform import (
    Activity,
    HeartbeatMonitor,
    LivenessWaveform,
    Sample,
    classify_activity,
)

__all__ = [
    "ClusterConsole",
    "Epoch",
    # Actions
    "ActionOrchestrator",
    "ActionOutcome",
    "ActionKind",
    "ActionPhase",
    "ConfirmationState",
    "PendingAction",
    "TargetType",
    # Notifications
    "Level",
    "Notification",
    "NotificationCenter",
    # Sync
    "Poller",
    "StateReconciler",
    "ClusterView",
    "LocallyRemoved",
    "RemovalState",
    # Heartbeats
    "Activity",
    "HeartbeatMonitor",
    "LivenessWaveform",
    "Sample",
    "classify_activity",
]

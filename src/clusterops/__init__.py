"""
clusterops - Live operations console for a simulated compute cluster.

Polling, retries, reconciliation and guarded lifecycle commands.
"""

from clusterops._http import ApiRequest, RetryingClient, RetryPolicy
from clusterops._version import __version__
from clusterops.client import ClusterClient
from clusterops.console import ClusterConsole
from clusterops.exceptions import (
    ActionRejectedError,
    ActionStateError,
    ClusterError,
    ConnectionError,
    NotFoundError,
    ResponseError,
    ServerError,
    TimeoutError,
    TransportError,
    ValidationError,
)
from clusterops.models import ClusterSnapshot, HealthStatus, Node, Pod, PodStatus

__all__ = [
    # Version
    "__version__",
    # Clients
    "ClusterClient",
    "ClusterConsole",
    "RetryingClient",
    "RetryPolicy",
    "ApiRequest",
    # Models
    "ClusterSnapshot",
    "Node",
    "Pod",
    "HealthStatus",
    "PodStatus",
    # Exceptions
    "ClusterError",
    "TransportError",
    "ConnectionError",
    "TimeoutError",
    "ServerError",
    "ValidationError",
    "NotFoundError",
    "ResponseError",
    "ActionRejectedError",
    "ActionStateError",
]

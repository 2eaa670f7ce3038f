"""Cluster console exceptions.

All exceptions inherit from ClusterError for easy catching.
"""

from __future__ import annotations

from typing import Any


class ClusterError(Exception):
    """Base exception for all cluster console errors."""

    def __init__(self, message: str, *, response: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.response = response

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class TransportError(ClusterError):
    """A classified failure of a single API call.

    ``transient`` tells the retrying client whether another attempt could
    plausibly succeed.
    """

    transient: bool = False

    @property
    def status_code(self) -> int | None:
        return getattr(self.response, "status_code", None)


class ConnectionError(TransportError):
    """Failed to reach the cluster manager.

    Check network connectivity and the api_url configuration.
    """

    transient = True


class TimeoutError(TransportError):
    """The per-attempt deadline was exceeded."""

    transient = True


class ServerError(TransportError):
    """The cluster manager answered with a 5xx status."""

    transient = True


class ValidationError(TransportError):
    """The request was rejected as invalid (4xx).

    Deterministic: repeating the call would not change the outcome.
    """


class NotFoundError(TransportError):
    """The target node or pod no longer exists (404)."""

    def __init__(
        self, message: str, *, resource_type: str = "", resource_id: str = "", response: Any = None
    ) -> None:
        super().__init__(message, response=response)
        self.resource_type = resource_type
        self.resource_id = resource_id


class ResponseError(TransportError):
    """A successful response carried a payload that could not be parsed."""


class ActionRejectedError(ValidationError):
    """A command was refused locally, before any network call."""


class ActionStateError(ClusterError):
    """A pending action was driven through an invalid transition.

    For example, confirming an action that was already cancelled.
    """

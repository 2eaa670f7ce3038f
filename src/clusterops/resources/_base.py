"""Base resource class."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from clusterops.exceptions import NotFoundError, ResponseError

if TYPE_CHECKING:
    from clusterops._http import RetryingClient, RetryPolicy


class AsyncResource:
    """Base class for API resources.

    Reads and writes are issued under separate retry policies.
    """

    def __init__(
        self,
        http: RetryingClient,
        *,
        read_policy: RetryPolicy,
        write_policy: RetryPolicy,
    ) -> None:
        self._http = http
        self._read_policy = read_policy
        self._write_policy = write_policy


def extract_id(data: Any, key: str) -> str:
    """Pull a created resource ID out of a create response.

    The cluster manager answers with either a bare ID string or an object
    carrying the ID under ``key``.
    """
    if isinstance(data, str) and data:
        return data
    if isinstance(data, dict) and data.get(key):
        return str(data[key])
    raise ResponseError(f"Response did not include {key!r}")


def tag_not_found(error: NotFoundError, resource_type: str, resource_id: str) -> NotFoundError:
    """Record which resource vanished."""
    error.resource_type = resource_type
    error.resource_id = resource_id
    return error

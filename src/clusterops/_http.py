"""HTTP infrastructure for the cluster console.

Handles:
- Per-attempt deadlines
- Error classification (transient vs deterministic)
- Bounded retries with capped exponential backoff
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import anyio
import httpx

from clusterops._version import __version__
from clusterops.exceptions import (
    ConnectionError,
    NotFoundError,
    ResponseError,
    ServerError,
    TimeoutError,
    TransportError,
    ValidationError,
)

logger = logging.getLogger("clusterops.http")

DEFAULT_HEADERS = {
    "User-Agent": f"clusterops-python/{__version__}",
    "Accept": "application/json",
    "Content-Type": "application/json",
}


@dataclass(frozen=True)
class ApiRequest:
    """Description of a single logical API call."""

    method: str
    path: str
    json: dict[str, Any] | None = None

    def __str__(self) -> str:
        return f"{self.method} {self.path}"


@dataclass(frozen=True)
class RetryPolicy:
    """Per-call retry configuration.

    Attributes:
        max_retries: Retries allowed after the first attempt.
        base_delay: Backoff before the first retry, in seconds.
        timeout: Deadline for each individual attempt, in seconds.
        max_delay: Upper bound for any single backoff delay.
    """

    max_retries: int = 3
    base_delay: float = 0.2
    timeout: float = 10.0
    max_delay: float = 5.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("backoff delays must be >= 0")

    def delay_for(self, retry: int) -> float:
        """Backoff before the given retry (1-indexed)."""
        return min(self.base_delay * 2 ** (retry - 1), self.max_delay)


class AsyncTransport:
    """Issues one HTTP call per ``send`` with a hard deadline."""

    def __init__(
        self,
        base_url: str,
        *,
        verify_ssl: bool = True,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url,
            headers=DEFAULT_HEADERS.copy(),
            verify=verify_ssl,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def send(self, request: ApiRequest, *, timeout: float) -> Any:
        """Perform one attempt and return the decoded body.

        Raises:
            TransportError: A classified failure.
        """
        response: httpx.Response | None = None
        try:
            with anyio.move_on_after(timeout) as scope:
                response = await self._client.request(
                    request.method,
                    request.path,
                    json=request.json,
                    timeout=timeout,
                )
        except httpx.TimeoutException as e:
            raise TimeoutError(f"Request timed out: {e}") from e
        except httpx.TransportError as e:
            raise ConnectionError(f"Failed to connect: {e}") from e

        if scope.cancelled_caught or response is None:
            raise TimeoutError(f"Request timed out after {timeout:g}s: {request}")

        return _handle_response(response)


def _handle_response(response: httpx.Response) -> Any:
    """Decode a successful response or map an error status."""
    if response.is_success:
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text.strip()

    message = _extract_error_message(response)
    status = response.status_code

    if status == 404:
        raise NotFoundError(message, response=response)

    if 400 <= status < 500:
        raise ValidationError(message, response=response)

    if status >= 500:
        raise ServerError(message, response=response)

    raise ResponseError(message, response=response)


def _extract_error_message(response: httpx.Response) -> str:
    """Error bodies are opaque text meant for the user."""
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, str) and data:
        return data
    if isinstance(data, dict):
        if "message" in data:
            return str(data["message"])
        if "error" in data:
            error = data["error"]
            if isinstance(error, str):
                return error
            if isinstance(error, dict) and "message" in error:
                return str(error["message"])
        if "detail" in data:
            return str(data["detail"])

    text = response.text.strip()
    if text:
        return text

    return f"HTTP {response.status_code}: {response.reason_phrase}"


class RetryingClient:
    """Wraps a transport with bounded, sequential retries.

    Only transient failures (connection, timeout, 5xx) are retried. The
    caller is responsible for only retrying operations that are safe to
    repeat.
    """

    def __init__(
        self,
        transport: AsyncTransport,
        *,
        sleep: Callable[[float], Awaitable[Any]] = anyio.sleep,
    ) -> None:
        self._transport = transport
        self._sleep = sleep

    @property
    def base_url(self) -> str:
        return self._transport.base_url

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> RetryingClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def execute(self, request: ApiRequest, policy: RetryPolicy) -> Any:
        """Run ``request`` under ``policy``.

        Returns:
            The decoded body of the first successful attempt.

        Raises:
            TransportError: The deterministic failure, or the last transient
                failure once retries are exhausted.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._transport.send(request, timeout=policy.timeout)
            except TransportError as exc:
                if not exc.transient:
                    raise
                if attempt > policy.max_retries:
                    logger.debug("%s failed after %d attempts: %s", request, attempt, exc)
                    raise
                delay = policy.delay_for(attempt)
                logger.debug(
                    "%s attempt %d/%d failed (%s), retrying in %.2fs",
                    request,
                    attempt,
                    policy.max_retries + 1,
                    exc.__class__.__name__,
                    delay,
                )
                await self._sleep(delay)

    async def get(self, path: str, *, policy: RetryPolicy) -> Any:
        """Perform GET request."""
        return await self.execute(ApiRequest("GET", path), policy)

    async def post(
        self, path: str, *, json: dict[str, Any] | None = None, policy: RetryPolicy
    ) -> Any:
        """Perform POST request."""
        return await self.execute(ApiRequest("POST", path, json=json), policy)

    async def delete(self, path: str, *, policy: RetryPolicy) -> Any:
        """Perform DELETE request."""
        return await self.execute(ApiRequest("DELETE", path), policy)

"""Cluster manager client.

Main entry point for talking to the cluster manager API.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import anyio

from clusterops._config import ConsoleConfig
from clusterops._http import AsyncTransport, RetryingClient, RetryPolicy
from clusterops.resources.nodes import Nodes
from clusterops.resources.pods import Pods
from clusterops.resources.scheduler import Scheduler


class ClusterClient:
    """Asynchronous client for the cluster manager API.

    Example:
        ```python
        import anyio
        from clusterops import ClusterClient

        async def main():
            async with ClusterClient(base_url="http://localhost:8080") as client:
                snapshot = await client.nodes.list()
                pod_id = await client.pods.launch(cpu_required=2)

        anyio.run(main)
        ```

    Environment variables:
        CLUSTEROPS_API_URL: Base URL (default: http://localhost:8080)
        CLUSTEROPS_READ_TIMEOUT / CLUSTEROPS_READ_RETRIES: GET policy
        CLUSTEROPS_WRITE_TIMEOUT / CLUSTEROPS_WRITE_RETRIES: mutating policy
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        config: ConsoleConfig | None = None,
        read_policy: RetryPolicy | None = None,
        write_policy: RetryPolicy | None = None,
        verify_ssl: bool | None = None,
        transport: AsyncTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = anyio.sleep,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API origin. Falls back to CLUSTEROPS_API_URL or the config file.
            config: Explicit configuration; loaded from env and file if omitted.
            read_policy: Retry policy for GET calls.
            write_policy: Retry policy for mutating calls.
            verify_ssl: Whether to verify SSL certificates.
            transport: Pre-built transport, mainly for tests.
            sleep: Backoff sleep function, mainly for tests.
        """
        self._config = config or ConsoleConfig.load()

        self._base_url = base_url or self._config.base_url
        self._read_policy = read_policy or self._config.read_policy()
        self._write_policy = write_policy or self._config.write_policy()
        self._verify_ssl = verify_ssl if verify_ssl is not None else self._config.verify_ssl

        self._transport = transport or AsyncTransport(self._base_url, verify_ssl=self._verify_ssl)
        self._http = RetryingClient(self._transport, sleep=sleep)

        policies = {"read_policy": self._read_policy, "write_policy": self._write_policy}
        self.nodes = Nodes(self._http, **policies)
        self.pods = Pods(self._http, **policies)
        self.scheduler = Scheduler(self._http, **policies)

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._http.close()

    async def __aenter__(self) -> ClusterClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"ClusterClient(base_url={self._base_url!r})"

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def config(self) -> ConsoleConfig:
        return self._config

    @property
    def read_policy(self) -> RetryPolicy:
        return self._read_policy

    @property
    def write_policy(self) -> RetryPolicy:
        return self._write_policy

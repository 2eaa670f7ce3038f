"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
from pathlib import Path
from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any
from unittest.mock import patch

import pytest
import respx

from clusterops._config import ConsoleConfig
from clusterops._http import RetryPolicy
from clusterops.client import ClusterClient


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path) -> Generator[None, None, None]:
    """Keep tests away from the real config file and CLUSTEROPS_* variables."""
    env = {k: v for k, v in os.environ.items() if not k.startswith("CLUSTEROPS_")}
    config_file = tmp_path / "config.toml"
    with (
        patch.dict(os.environ, env, clear=True),
        patch("clusterops._config.CONFIG_FILE", config_file),
        patch("clusterops._config.CONFIG_DIR", tmp_path),
    ):
        yield


@pytest.fixture
def base_url() -> str:
    """Test API base URL."""
    return "http://cluster.test"


@pytest.fixture
def mock_api(base_url: str) -> Generator[respx.MockRouter, None, None]:
    """Mock API router."""
    with respx.mock(base_url=base_url, assert_all_called=False) as router:
        yield router


class RecordedSleep:
    """Stand-in for ``anyio.sleep`` that records backoff delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleeps() -> RecordedSleep:
    return RecordedSleep()


@pytest.fixture
async def client(base_url: str, sleeps: RecordedSleep) -> AsyncGenerator[ClusterClient, None]:
    """Client with fast, deterministic retry policies."""
    c = ClusterClient(
        base_url=base_url,
        config=ConsoleConfig(base_url=base_url),
        read_policy=RetryPolicy(max_retries=2, base_delay=0.1, timeout=1.0),
        write_policy=RetryPolicy(max_retries=1, base_delay=0.1, timeout=1.0),
        sleep=sleeps,
    )
    yield c
    await c.close()


# Sample response data
def _node(
    node_id: str,
    *,
    cpu: int = 4,
    available: int | None = None,
    pods: list[str] | None = None,
    health: str = "Healthy",
    heartbeats: int = 1,
    last_heartbeat: str = "2024-01-01T00:00:00.123456789Z",
) -> dict[str, Any]:
    """A node as the cluster manager serializes it."""
    return {
        "ID": node_id,
        "CPUCores": cpu,
        "AvailableCPU": cpu if available is None else available,
        "Pods": pods,
        "HealthStatus": health,
        "LastHeartbeat": last_heartbeat,
        "HeartbeatCount": heartbeats,
    }


def _pod(
    pod_id: str,
    *,
    cpu: int = 2,
    node_id: str = "",
    status: str = "Running",
) -> dict[str, Any]:
    return {
        "ID": pod_id,
        "CPURequired": cpu,
        "NodeID": node_id,
        "Status": status,
        "CreatedAt": "2024-01-01T00:00:00Z",
    }


@pytest.fixture
def make_node() -> Callable[..., dict[str, Any]]:
    """Factory for wire-format nodes."""
    return _node


@pytest.fixture
def make_pod() -> Callable[..., dict[str, Any]]:
    """Factory for wire-format pods."""
    return _pod


@pytest.fixture
def sample_nodes() -> dict[str, Any]:
    """Two healthy nodes, one with a pod, plus a failed empty node."""
    return {
        "node-a": _node("node-a", cpu=4, available=2, pods=["pod-1"]),
        "node-b": _node("node-b", cpu=8),
        "node-c": _node("node-c", cpu=2, health="Failed"),
    }

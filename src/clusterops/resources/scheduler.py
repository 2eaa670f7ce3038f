"""Scheduler resource."""

from __future__ import annotations

from enum import Enum

from clusterops.resources._base import AsyncResource


class SchedulingAlgorithm(str, Enum):
    """Pod placement algorithms known to the cluster manager."""

    FIRST_FIT = "first-fit"
    BEST_FIT = "best-fit"
    WORST_FIT = "worst-fit"
    ROUND_ROBIN = "round-robin"
    MOST_PODS = "most-pods"
    LEAST_PODS = "least-pods"


class Scheduler(AsyncResource):
    """Scheduling policy resource."""

    async def set_algorithm(self, algorithm: SchedulingAlgorithm | str) -> None:
        """Switch the placement algorithm for future pods.

        Raises:
            ValidationError: The cluster manager does not know ``algorithm``.
        """
        value = algorithm.value if isinstance(algorithm, SchedulingAlgorithm) else algorithm
        await self._http.post(
            "/scheduler", json={"algorithm": value}, policy=self._write_policy
        )

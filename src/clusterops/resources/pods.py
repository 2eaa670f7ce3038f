"""Pods resource."""

from __future__ import annotations

from clusterops.exceptions import NotFoundError
from clusterops.models.cluster import parse_pod_map
from clusterops.models.pod import Pod
from clusterops.resources._base import AsyncResource, extract_id, tag_not_found


class Pods(AsyncResource):
    """Pods resource for launching and managing workloads."""

    async def list(self) -> dict[str, Pod]:
        """Fetch full pod records keyed by pod ID."""
        data = await self._http.get("/pods", policy=self._read_policy)
        return parse_pod_map(data)

    async def launch(self, cpu_required: int) -> str:
        """Launch a pod; the cluster manager picks the node.

        Args:
            cpu_required: CPU the pod reserves on its node.

        Returns:
            The new pod ID.

        Raises:
            ValidationError: No node has enough available CPU. The message
                is the cluster manager's own.
        """
        data = await self._http.post(
            "/pods", json={"cpuRequired": cpu_required}, policy=self._write_policy
        )
        return extract_id(data, "podId")

    async def delete(self, pod_id: str) -> None:
        """Delete a pod and release its CPU."""
        try:
            await self._http.delete(f"/pods/{pod_id}", policy=self._write_policy)
        except NotFoundError as e:
            raise tag_not_found(e, "pod", pod_id)

    async def restart(self, pod_id: str) -> None:
        """Restart a pod."""
        try:
            await self._http.post(f"/pods/{pod_id}/restart", policy=self._write_policy)
        except NotFoundError as e:
            raise tag_not_found(e, "pod", pod_id)

"""Nodes resource."""

from __future__ import annotations

from clusterops.exceptions import NotFoundError
from clusterops.models.cluster import ClusterSnapshot
from clusterops.resources._base import AsyncResource, extract_id, tag_not_found


class Nodes(AsyncResource):
    """Nodes resource for managing simulated hosts.

    Example:
        ```python
        async with ClusterClient(base_url="http://localhost:8080") as client:
            snapshot = await client.nodes.list()
            for node in snapshot.nodes.values():
                print(f"{node.id}: {node.health_status.value}")

            node_id = await client.nodes.add(cpu_cores=4)
        ```
    """

    async def list(self) -> ClusterSnapshot:
        """Fetch every node in one snapshot.

        Returns:
            ClusterSnapshot keyed by node ID.
        """
        data = await self._http.get("/nodes", policy=self._read_policy)
        return ClusterSnapshot.from_wire(data)

    async def add(self, cpu_cores: int) -> str:
        """Add a node.

        Args:
            cpu_cores: Total CPU capacity of the new node.

        Returns:
            The server-assigned node ID.
        """
        data = await self._http.post(
            "/nodes", json={"cpuCores": cpu_cores}, policy=self._write_policy
        )
        return extract_id(data, "nodeId")

    async def stop(self, node_id: str) -> None:
        """Stop a node."""
        try:
            await self._http.post(f"/nodes/{node_id}/stop", policy=self._write_policy)
        except NotFoundError as e:
            raise tag_not_found(e, "node", node_id)

    async def restart(self, node_id: str) -> None:
        """Restart a node."""
        try:
            await self._http.post(f"/nodes/{node_id}/restart", policy=self._write_policy)
        except NotFoundError as e:
            raise tag_not_found(e, "node", node_id)

    async def delete(self, node_id: str) -> None:
        """Delete a node."""
        try:
            await self._http.delete(f"/nodes/{node_id}", policy=self._write_policy)
        except NotFoundError as e:
            raise tag_not_found(e, "node", node_id)

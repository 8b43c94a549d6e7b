"""
GraphStore Protocol Definition.

This module defines the interface every persistence backend must implement.
Both RestGraphStore (console REST API) and MemoryGraphStore (in-process)
conform to this protocol.

Payloads use the wire shape documented in product_graph.models.
"""

from typing import Any, Dict, List, Protocol, runtime_checkable


@runtime_checkable
class GraphStore(Protocol):
    """
    Abstract protocol for graph stores.

    The store owns persistence, validation and authentication. The editor only
    ever sends the complete desired graph, never a diff.
    """

    @property
    def backend_type(self) -> str:
        """Return the backend type identifier ('rest' or 'memory')."""
        ...

    async def fetch_graph(self) -> Dict[str, Any]:
        """
        Fetch the authoritative graph.

        Returns:
            Dict with 'nodes' and 'edges' lists.

        Raises:
            NetworkError, AuthenticationError, StoreError
        """
        ...

    async def save_graph(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace the stored graph with payload, all or nothing.

        Returns:
            The decoded response body, possibly carrying identifier remaps:
            - id_map: Dict[local_edge_id -> remote_edge_id], or
            - edges: List of {client_id, id, ...}
            An empty dict when the store returns no body.

        Raises:
            NetworkError, ValidationError, AuthenticationError, StoreError
        """
        ...

    async def list_products(self) -> List[Dict[str, Any]]:
        """
        List catalog products.

        Returns:
            List of dicts with at least 'id' and 'name'.
        """
        ...

    async def close(self) -> None:
        """Release transport resources."""
        ...

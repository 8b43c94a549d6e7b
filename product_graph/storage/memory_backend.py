"""
In-process Graph Store.

Implements the GraphStore protocol with a dict held in memory. It applies the
same acceptance rules the REST backend does (complete graph, referential
invariant, value domains) so it can stand in for the backend offline and in
tests.
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from product_graph.errors import GraphModelError, ValidationError
from product_graph.graph_model import GraphModel

logger = logging.getLogger(__name__)


class MemoryGraphStore:
    """
    Graph store kept in process memory.

    Args:
        graph: Initial stored graph in wire shape.
        products: Catalog entries ({id, name}) returned by list_products().
        assign_ids: When True, edges saved with a locally generated id
            ('edge-...') are given a store id ('rel-<n>') and the mapping is
            returned as 'id_map', like a backend that owns edge identity.
    """

    def __init__(
        self,
        graph: Optional[Dict[str, Any]] = None,
        products: Optional[List[Dict[str, Any]]] = None,
        assign_ids: bool = False,
    ):
        self._graph: Dict[str, Any] = copy.deepcopy(graph) if graph else {"nodes": [], "edges": []}
        self._products = copy.deepcopy(products) if products else []
        self._assign_ids = assign_ids
        self._next_id = 1
        self.save_count = 0

    @property
    def backend_type(self) -> str:
        return "memory"

    @property
    def stored_graph(self) -> Dict[str, Any]:
        """Copy of what is currently stored."""
        return copy.deepcopy(self._graph)

    async def fetch_graph(self) -> Dict[str, Any]:
        return copy.deepcopy(self._graph)

    async def save_graph(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        incoming = copy.deepcopy(payload)

        # Validate the complete payload before replacing anything
        try:
            GraphModel().load_graph(
                incoming.get("nodes", []), incoming.get("edges", [])
            )
        except GraphModelError as e:
            logger.warning(f"Rejected graph save: {e}")
            raise ValidationError(f"Graph rejected: {e}", details={"error": str(e)}) from e

        id_map = {}
        if self._assign_ids:
            for edge in incoming.get("edges", []):
                if str(edge["id"]).startswith("edge-"):
                    remote_id = f"rel-{self._next_id}"
                    self._next_id += 1
                    id_map[edge["id"]] = remote_id
                    edge["id"] = remote_id

        self._graph = {"nodes": incoming.get("nodes", []), "edges": incoming.get("edges", [])}
        self.save_count += 1
        logger.info(f"Stored graph with {len(self._graph['nodes'])} nodes and {len(self._graph['edges'])} edges")
        return {"success": True, "id_map": id_map} if id_map else {"success": True}

    async def list_products(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._products)

    async def close(self) -> None:
        return None

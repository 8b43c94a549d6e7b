"""
In-memory product relationship graph.

GraphModel keeps nodes and typed, weighted edges in a NetworkX MultiDiGraph
keyed by edge id. Every mutating method validates first and applies second, so
a failed call leaves the graph untouched and every edge always resolves to two
nodes that exist.

Node attributes:  label, position (Position)
Edge attributes:  weight (float), type (EdgeType); the MultiDiGraph key is the edge id
"""

import logging
import uuid
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import networkx as nx

from product_graph.errors import (
    DuplicateEdgeError,
    EdgeNotFoundError,
    MalformedGraphError,
    NodeNotFoundError,
    SelfLoopError,
)
from product_graph.models import (
    DEFAULT_EDGE_TYPE,
    DEFAULT_WEIGHT,
    Edge,
    EdgeType,
    Graph,
    Node,
    Position,
    validate_weight,
)

logger = logging.getLogger(__name__)

_UNSET = object()


def new_edge_id() -> str:
    """Session-unique edge id, independent of the endpoints."""
    return f"edge-{uuid.uuid4().hex}"


class GraphModel:
    """
    Holds the Graph aggregate for one editing session.

    Args:
        allow_self_loops: Permit edges whose source and target are the same node.
        allow_parallel_edges: Permit more than one edge for the same (source, target) pair.
    """

    def __init__(self, allow_self_loops: bool = False, allow_parallel_edges: bool = False):
        self.allow_self_loops = allow_self_loops
        self.allow_parallel_edges = allow_parallel_edges
        self.G = nx.MultiDiGraph()
        # edge id -> (source, target), the MultiDiGraph needs both to find a keyed edge
        self._edge_index: Dict[str, Tuple[str, str]] = {}
        self._revision = 0

    @property
    def revision(self) -> int:
        """Incremented on every successful mutation (labels excluded)."""
        return self._revision

    def __len__(self) -> int:
        return self.G.number_of_nodes()

    # --- Loading ---

    def load_graph(self, nodes: Iterable[Any], edges: Iterable[Any]) -> Graph:
        """
        Replace the whole graph.

        Nodes and edges may be model objects or wire dicts. Raises
        MalformedGraphError (before touching the current graph) on duplicate
        ids or on any edge whose endpoint is not among the nodes.
        """
        try:
            graph = Graph.from_dict({
                "nodes": [n.to_dict() if isinstance(n, Node) else n for n in nodes],
                "edges": [e.to_dict() if isinstance(e, Edge) else e for e in edges],
            })
        except TypeError as e:
            raise MalformedGraphError(f"Unreadable graph payload: {e}") from e

        node_ids = set()
        for node in graph.nodes:
            if node.id in node_ids:
                raise MalformedGraphError(f"Duplicate node id: {node.id!r}")
            node_ids.add(node.id)

        edge_ids = set()
        for edge in graph.edges:
            if edge.id in edge_ids:
                raise MalformedGraphError(f"Duplicate edge id: {edge.id!r}")
            edge_ids.add(edge.id)
            for endpoint in (edge.source, edge.target):
                if endpoint not in node_ids:
                    raise MalformedGraphError(
                        f"Edge {edge.id!r} references missing node {endpoint!r}"
                    )

        G = nx.MultiDiGraph()
        index = {}
        for node in graph.nodes:
            G.add_node(node.id, label=node.label, position=node.position)
        for edge in graph.edges:
            G.add_edge(edge.source, edge.target, key=edge.id, weight=edge.weight, type=edge.type)
            index[edge.id] = (edge.source, edge.target)

        self.G = G
        self._edge_index = index
        self._revision += 1
        logger.info(f"Loaded graph with {len(graph.nodes)} nodes and {len(graph.edges)} edges")
        return graph

    # --- Queries ---

    def has_node(self, node_id: str) -> bool:
        return node_id in self.G

    def has_edge(self, edge_id: str) -> bool:
        return edge_id in self._edge_index

    def get_node(self, node_id: str) -> Node:
        if node_id not in self.G:
            raise NodeNotFoundError(node_id)
        attrs = self.G.nodes[node_id]
        return Node(id=node_id, label=attrs["label"], position=attrs["position"])

    def get_edge(self, edge_id: str) -> Edge:
        if edge_id not in self._edge_index:
            raise EdgeNotFoundError(edge_id)
        source, target = self._edge_index[edge_id]
        attrs = self.G.edges[source, target, edge_id]
        return Edge(id=edge_id, source=source, target=target,
                    weight=attrs["weight"], type=attrs["type"])

    def edges_between(self, source: str, target: str) -> List[Edge]:
        """Edges from source to target (direction matters)."""
        if not self.G.has_edge(source, target):
            return []
        return [self.get_edge(key) for key in self.G[source][target]]

    def neighbors(self, node_id: str, edge_type: Optional[Any] = None) -> List[str]:
        """Ids of nodes this node points to, optionally only through edges of one type."""
        if node_id not in self.G:
            raise NodeNotFoundError(node_id)
        wanted = EdgeType.parse(edge_type) if edge_type is not None else None
        result = []
        for _, target, attrs in self.G.out_edges(node_id, data=True):
            if wanted is not None and attrs["type"] != wanted:
                continue
            if target not in result:
                result.append(target)
        return result

    # --- Mutations ---

    def move_node(self, node_id: str, position: Any) -> Node:
        if node_id not in self.G:
            raise NodeNotFoundError(node_id)
        pos = Position.parse(position)
        self.G.nodes[node_id]["position"] = pos
        self._revision += 1
        logger.debug(f"Moved node {node_id} to ({pos.x}, {pos.y})")
        return self.get_node(node_id)

    def connect_nodes(self, source: str, target: str) -> Edge:
        """Create an edge with the default weight and type and a fresh id."""
        for endpoint in (source, target):
            if endpoint not in self.G:
                raise NodeNotFoundError(endpoint)
        if source == target and not self.allow_self_loops:
            raise SelfLoopError(source)
        if not self.allow_parallel_edges:
            existing = self.edges_between(source, target)
            if existing:
                raise DuplicateEdgeError(source, target, existing[0].id)

        edge_id = new_edge_id()
        while edge_id in self._edge_index:
            edge_id = new_edge_id()

        self.G.add_edge(source, target, key=edge_id, weight=DEFAULT_WEIGHT, type=DEFAULT_EDGE_TYPE)
        self._edge_index[edge_id] = (source, target)
        self._revision += 1
        logger.debug(f"Connected {source} -> {target} as {edge_id}")
        return self.get_edge(edge_id)

    def update_edge(self, edge_id: str, weight: Any = _UNSET, type: Any = _UNSET) -> Edge:
        """
        Partial update of an edge's weight and/or type.

        Both values are validated before either is written.
        """
        if edge_id not in self._edge_index:
            raise EdgeNotFoundError(edge_id)
        changes = {}
        if weight is not _UNSET:
            changes["weight"] = validate_weight(weight)
        if type is not _UNSET:
            changes["type"] = EdgeType.parse(type)

        if changes:
            source, target = self._edge_index[edge_id]
            self.G.edges[source, target, edge_id].update(changes)
            self._revision += 1
            logger.debug(f"Updated edge {edge_id}: {changes}")
        return self.get_edge(edge_id)

    def remove_edge(self, edge_id: str) -> None:
        """Remove one edge. Its endpoint nodes are kept."""
        if edge_id not in self._edge_index:
            raise EdgeNotFoundError(edge_id)
        source, target = self._edge_index.pop(edge_id)
        self.G.remove_edge(source, target, key=edge_id)
        self._revision += 1
        logger.debug(f"Removed edge {edge_id}")

    def rename_edge(self, old_id: str, new_id: str) -> Edge:
        """
        Give an edge the identifier assigned by the remote store.

        Content is unchanged, so the revision is not bumped.
        """
        if old_id not in self._edge_index:
            raise EdgeNotFoundError(old_id)
        if old_id == new_id:
            return self.get_edge(old_id)
        if new_id in self._edge_index:
            raise MalformedGraphError(f"Cannot rename {old_id!r}: id {new_id!r} is already in use")
        source, target = self._edge_index.pop(old_id)
        attrs = dict(self.G.edges[source, target, old_id])
        self.G.remove_edge(source, target, key=old_id)
        self.G.add_edge(source, target, key=new_id, **attrs)
        self._edge_index[new_id] = (source, target)
        return self.get_edge(new_id)

    def sync_labels(self, labels: Mapping[str, str]) -> int:
        """
        Re-sync node labels from the product catalog (product id -> name).

        Returns the number of labels that changed. Labels are catalog-owned, so
        this does not count as an edit.
        """
        changed = 0
        for node_id, attrs in self.G.nodes(data=True):
            name = labels.get(node_id)
            if name is not None and attrs["label"] != name:
                attrs["label"] = name
                changed += 1
        if changed:
            logger.info(f"Re-synced {changed} node labels from catalog")
        return changed

    # --- Export ---

    def snapshot(self) -> Graph:
        """Immutable copy of the current graph, safe to serialize while editing continues."""
        nodes = tuple(
            Node(id=nid, label=attrs["label"], position=attrs["position"])
            for nid, attrs in self.G.nodes(data=True)
        )
        edges = tuple(
            Edge(id=key, source=u, target=v, weight=attrs["weight"], type=attrs["type"])
            for u, v, key, attrs in self.G.edges(keys=True, data=True)
        )
        return Graph(nodes=nodes, edges=edges)

    def check_integrity(self) -> List[str]:
        """Return a list of referential problems; empty when the graph is consistent."""
        problems = []
        for edge_id, (source, target) in self._edge_index.items():
            for endpoint in (source, target):
                if endpoint not in self.G:
                    problems.append(f"Edge {edge_id} references missing node {endpoint}")
            if not self.G.has_edge(source, target, key=edge_id):
                problems.append(f"Edge {edge_id} is indexed but not in the graph")
        if len(self._edge_index) != self.G.number_of_edges():
            problems.append("Edge index and graph disagree on edge count")
        return problems

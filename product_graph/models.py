"""
Value types for the product relationship graph.

Node, Edge and Graph are frozen dataclasses: a Graph handed out by
GraphModel.snapshot() cannot be changed by later edits, and it converts to and
from the wire shape used by the REST backend:

    {
      "nodes": [{"id": "p1", "label": "Cumin", "position": {"x": 0, "y": 0}}],
      "edges": [{"id": "e1", "source": "p1", "target": "p2",
                 "weight": 0.5, "type": "similar"}]
    }
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from product_graph.errors import (
    InvalidEdgeTypeError,
    InvalidPositionError,
    InvalidWeightError,
    MalformedGraphError,
)


class EdgeType(str, Enum):
    SIMILAR = "similar"
    RELATED = "related"
    COMBO = "combo"

    @classmethod
    def parse(cls, value: Any) -> "EdgeType":
        """Return the EdgeType for a literal string (or EdgeType), else raise InvalidEdgeTypeError."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidEdgeTypeError(value) from None


MIN_WEIGHT = 0.0
MAX_WEIGHT = 1.0

# Applied to edges drawn on the canvas
DEFAULT_WEIGHT = 0.5
DEFAULT_EDGE_TYPE = EdgeType.SIMILAR


def validate_weight(weight: Any) -> float:
    """
    Return weight as a float if it lies in [0, 1].

    Booleans, strings, NaN and infinities are rejected. Values are never clamped.
    """
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        raise InvalidWeightError(weight)
    value = float(weight)
    if math.isnan(value) or not (MIN_WEIGHT <= value <= MAX_WEIGHT):
        raise InvalidWeightError(weight)
    return value


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def parse(cls, value: Any) -> "Position":
        """Accept a Position, an {x, y} mapping or an (x, y) pair."""
        if isinstance(value, Position):
            return value
        if isinstance(value, Mapping):
            coords = (value.get("x"), value.get("y"))
        elif isinstance(value, (tuple, list)) and len(value) == 2:
            coords = tuple(value)
        else:
            raise InvalidPositionError(value)

        for c in coords:
            if isinstance(c, bool) or not isinstance(c, (int, float)) or not math.isfinite(c):
                raise InvalidPositionError(value)
        return cls(float(coords[0]), float(coords[1]))

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Node:
    id: str
    label: str = ""
    position: Position = field(default_factory=Position)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label, "position": self.position.to_dict()}


@dataclass(frozen=True)
class Edge:
    id: str
    source: str
    target: str
    weight: float = DEFAULT_WEIGHT
    type: EdgeType = DEFAULT_EDGE_TYPE

    @property
    def display_label(self) -> str:
        """Canvas label, e.g. 'similar (0.5)'."""
        return f"{self.type.value} ({self.weight:g})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "weight": self.weight,
            "type": self.type.value,
        }


@dataclass(frozen=True)
class Graph:
    """Immutable, fully materialized graph. The unit that is loaded and saved."""
    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def edge_ids(self) -> List[str]:
        return [e.id for e in self.edges]

    def get_node(self, node_id: str) -> Node:
        for node in self.nodes:
            if node.id == node_id:
                return node
        raise KeyError(node_id)

    def get_edge(self, edge_id: str) -> Edge:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        raise KeyError(edge_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }

    def equivalent_to(self, other: "Graph") -> bool:
        """
        Compare by node set and edge content, ignoring edge ids.

        Used to check a save/load round trip where the remote store may have
        assigned its own edge identifiers.
        """
        if set(self.nodes) != set(other.nodes):
            return False
        def content(g: "Graph") -> Counter:
            return Counter((e.source, e.target, e.weight, e.type) for e in g.edges)
        return content(self) == content(other)

    @classmethod
    def from_dict(cls, payload: Any) -> "Graph":
        """
        Build a Graph from the wire shape.

        Any shape or value problem raises MalformedGraphError. The referential
        invariant is checked by GraphModel.load_graph, not here.
        """
        if not isinstance(payload, Mapping):
            raise MalformedGraphError(f"Graph payload must be an object, got {type(payload).__name__}")
        raw_nodes = payload.get("nodes", [])
        raw_edges = payload.get("edges", [])
        if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
            raise MalformedGraphError("Graph payload 'nodes' and 'edges' must be lists")
        return cls(
            nodes=tuple(_node_from_dict(n) for n in raw_nodes),
            edges=tuple(_edge_from_dict(e) for e in raw_edges),
        )


def _node_from_dict(raw: Any) -> Node:
    if not isinstance(raw, Mapping) or raw.get("id") in (None, ""):
        raise MalformedGraphError(f"Node entry without an id: {raw!r}")
    try:
        position = Position.parse(raw.get("position", {"x": 0, "y": 0}))
    except InvalidPositionError as e:
        raise MalformedGraphError(f"Node {raw['id']!r}: {e}") from e
    label = raw.get("label")
    return Node(id=str(raw["id"]), label="" if label is None else str(label), position=position)


def _edge_from_dict(raw: Any) -> Edge:
    if not isinstance(raw, Mapping):
        raise MalformedGraphError(f"Edge entry must be an object: {raw!r}")
    missing = [k for k in ("id", "source", "target") if raw.get(k) in (None, "")]
    if missing:
        raise MalformedGraphError(f"Edge entry missing {', '.join(missing)}: {raw!r}")
    try:
        weight = validate_weight(raw.get("weight", DEFAULT_WEIGHT))
        edge_type = EdgeType.parse(raw.get("type", DEFAULT_EDGE_TYPE.value))
    except (InvalidWeightError, InvalidEdgeTypeError) as e:
        raise MalformedGraphError(f"Edge {raw['id']!r}: {e}") from e
    return Edge(
        id=str(raw["id"]),
        source=str(raw["source"]),
        target=str(raw["target"]),
        weight=weight,
        type=edge_type,
    )


def catalog_labels(products: Iterable[Mapping[str, Any]]) -> Dict[str, str]:
    """Map product id -> name from catalog entries, skipping entries without either."""
    labels = {}
    for product in products:
        pid, name = product.get("id"), product.get("name")
        if pid is None or name is None:
            continue
        labels[str(pid)] = str(name)
    return labels

"""
Error taxonomy for the product graph editor.

Model-level errors (GraphModelError) are raised before any state is touched,
so the in-memory graph is never left half-edited. Store-level errors
(StoreError) come from the persistence round trip; they never discard local
edits.
"""

from typing import Any, Optional


class ProductGraphError(Exception):
    """Base class for every error raised by this package."""


# --- Model errors ---

class GraphModelError(ProductGraphError):
    """A graph operation was called with arguments it cannot apply."""


class NodeNotFoundError(GraphModelError):
    def __init__(self, node_id: str):
        super().__init__(f"Node not found: {node_id!r}")
        self.node_id = node_id


class EdgeNotFoundError(GraphModelError):
    def __init__(self, edge_id: str):
        super().__init__(f"Edge not found: {edge_id!r}")
        self.edge_id = edge_id


class InvalidWeightError(GraphModelError):
    def __init__(self, weight: Any):
        super().__init__(f"Edge weight must be a number in [0, 1], got {weight!r}")
        self.weight = weight


class InvalidEdgeTypeError(GraphModelError):
    def __init__(self, edge_type: Any):
        super().__init__(
            f"Edge type must be one of 'similar', 'related', 'combo', got {edge_type!r}"
        )
        self.edge_type = edge_type


class InvalidPositionError(GraphModelError):
    def __init__(self, position: Any):
        super().__init__(f"Position must have finite numeric x and y, got {position!r}")
        self.position = position


class SelfLoopError(GraphModelError):
    def __init__(self, node_id: str):
        super().__init__(f"Cannot connect node {node_id!r} to itself")
        self.node_id = node_id


class DuplicateEdgeError(GraphModelError):
    def __init__(self, source: str, target: str, existing_id: str):
        super().__init__(
            f"Nodes {source!r} -> {target!r} are already connected by edge {existing_id!r}"
        )
        self.source = source
        self.target = target
        self.existing_id = existing_id


class MalformedGraphError(GraphModelError):
    """A graph snapshot does not satisfy the referential invariant or the value domains."""


# --- Store / controller errors ---

class StoreError(ProductGraphError):
    """A load or save round trip failed."""


class NetworkError(StoreError):
    """Transient transport failure. Retrying is safe."""


class ValidationError(StoreError):
    """The graph was rejected, either locally before sending or by the remote store."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.details = details


class AuthenticationError(StoreError):
    """The remote store refused the session token."""


class SaveInProgressError(StoreError):
    def __init__(self, message: str = "A save is already in progress"):
        super().__init__(message)

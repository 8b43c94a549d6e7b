"""
Graph Editor Controller - single source of truth for an editing session.

The controller owns one GraphModel and coordinates between:
- the UI, which forwards edits through move_node/connect_nodes/update_edge/remove_edge
- the GraphStore, which loads and saves the complete graph

State machine:

    IDLE --load()--> LOADING --ok--> CLEAN --edit--> DIRTY
                        |                 \\           /
                        +--fail--> LOAD_FAILED     save()
                                                    |
                                   CLEAN <--ok-- SAVING --fail--> DIRTY

Edits never block and stay local until save() succeeds. A failed save leaves
every edit in place.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from product_graph.errors import (
    GraphModelError,
    MalformedGraphError,
    SaveInProgressError,
    StoreError,
    ValidationError,
)
from product_graph.graph_model import GraphModel
from product_graph.models import Edge, Graph, Node, catalog_labels
from product_graph.storage.protocol import GraphStore

logger = logging.getLogger(__name__)


class EditorState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOAD_FAILED = "load_failed"
    CLEAN = "clean"
    DIRTY = "dirty"
    SAVING = "saving"


class GraphEditorController:
    """
    Bridges a GraphModel to a GraphStore and tracks dirty state.

    Args:
        store: Persistence backend
        model: Optional pre-built model (a fresh GraphModel otherwise)
        resolve_labels: Take node labels from the product catalog on load
    """

    def __init__(self, store: GraphStore, model: Optional[GraphModel] = None,
                 resolve_labels: bool = True):
        self._store = store
        self._model = model if model is not None else GraphModel()
        self._resolve_labels = resolve_labels
        self._state = EditorState.IDLE
        self._saving = False
        self._loading = False
        # Last graph known to match the remote store
        self._baseline: Optional[Graph] = None
        self._listeners: List[Callable[[EditorState], None]] = []

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def model(self) -> GraphModel:
        return self._model

    @property
    def store(self) -> GraphStore:
        return self._store

    @property
    def is_dirty(self) -> bool:
        return self._state == EditorState.DIRTY

    @property
    def is_saving(self) -> bool:
        return self._saving

    def on_change(self, callback: Callable[[EditorState], None]) -> None:
        self._listeners.append(callback)

    def _set_state(self, state: EditorState) -> None:
        if state == self._state:
            return
        logger.debug(f"Editor state {self._state.value} -> {state.value}")
        self._state = state
        for callback in self._listeners:
            try:
                callback(state)
            except Exception as e:
                logger.error(f"Error in editor state callback: {e}")

    def snapshot(self) -> Graph:
        return self._model.snapshot()

    # --- Load ---

    async def load(self) -> Graph:
        """
        Fetch the graph from the store and replace the local one.

        On any failure the controller moves to LOAD_FAILED and the previously
        loaded graph, if any, is left untouched. Calling load() again retries.
        """
        if self._saving:
            raise SaveInProgressError("Cannot reload while a save is in progress")
        if self._loading:
            raise StoreError("A load is already in progress")

        self._loading = True
        self._set_state(EditorState.LOADING)
        try:
            payload = await self._store.fetch_graph()
            if not isinstance(payload, Mapping):
                raise MalformedGraphError(f"Graph payload must be an object, got {type(payload).__name__}")

            # Validate into a scratch model so a bad payload cannot touch the live one
            staged = GraphModel()
            graph = staged.load_graph(payload.get("nodes") or [], payload.get("edges") or [])
            labels = await self._fetch_labels() if self._resolve_labels else {}
        except (GraphModelError, StoreError) as e:
            logger.error(f"Failed to load product graph: {e}")
            self._set_state(EditorState.LOAD_FAILED)
            raise
        except Exception:
            logger.exception("Unexpected error while loading product graph")
            self._set_state(EditorState.LOAD_FAILED)
            raise
        finally:
            self._loading = False

        self._model.load_graph(graph.nodes, graph.edges)
        if labels:
            self._model.sync_labels(labels)
        self._baseline = self._model.snapshot()
        self._set_state(EditorState.CLEAN)
        return self._baseline

    async def _fetch_labels(self) -> Dict[str, str]:
        try:
            products = await self._store.list_products()
        except StoreError as e:
            logger.warning(f"Product catalog unavailable, keeping stored labels: {e}")
            return {}
        return catalog_labels(products)

    async def resync_labels(self) -> int:
        """Refresh node labels from the catalog. Does not change dirty state."""
        labels = await self._fetch_labels()
        changed = self._model.sync_labels(labels)
        if changed and self._baseline is not None and self._state == EditorState.CLEAN:
            self._baseline = self._model.snapshot()
        return changed

    # --- Edits ---

    def _mark_dirty(self) -> None:
        # Edits made while saving are picked up by the revision check in save()
        if self._state != EditorState.SAVING:
            self._set_state(EditorState.DIRTY)

    def move_node(self, node_id: str, position: Any) -> Node:
        node = self._model.move_node(node_id, position)
        self._mark_dirty()
        return node

    def connect_nodes(self, source: str, target: str) -> Edge:
        edge = self._model.connect_nodes(source, target)
        self._mark_dirty()
        return edge

    def update_edge(self, edge_id: str, **changes: Any) -> Edge:
        """Forward a partial update: update_edge(id, weight=0.9, type='combo')."""
        before = self._model.revision
        edge = self._model.update_edge(edge_id, **changes)
        if self._model.revision != before:
            self._mark_dirty()
        return edge

    def remove_edge(self, edge_id: str) -> None:
        self._model.remove_edge(edge_id)
        self._mark_dirty()

    def discard(self) -> Graph:
        """Throw away local edits and return to the last loaded or saved graph."""
        if self._saving:
            raise SaveInProgressError("Cannot discard while a save is in progress")
        if self._loading:
            raise StoreError("A load is already in progress")
        if self._baseline is None:
            raise StoreError("Nothing has been loaded yet")
        self._model.load_graph(self._baseline.nodes, self._baseline.edges)
        self._set_state(EditorState.CLEAN)
        logger.info("Discarded local graph edits")
        return self._baseline

    # --- Save ---

    async def save(self) -> None:
        """
        Submit the complete graph as one request.

        Raises SaveInProgressError immediately if a save is already running.
        On failure the local graph is left exactly as it was and the state
        returns to DIRTY.
        """
        if self._saving:
            raise SaveInProgressError()
        if self._loading:
            raise StoreError("A load is already in progress")
        if self._baseline is None:
            raise ValidationError("No graph has been loaded; refusing to overwrite the stored graph")

        self._saving = True
        self._set_state(EditorState.SAVING)
        snapshot = self._model.snapshot()
        revision = self._model.revision
        saved = False
        try:
            validate_for_save(snapshot)
            response = await self._store.save_graph(snapshot.to_dict())
            saved = True
        except StoreError as e:
            logger.error(f"Failed to save product graph: {e}")
            raise
        finally:
            self._saving = False
            if not saved:
                self._set_state(EditorState.DIRTY)

        id_map = remote_id_map(response)
        self._apply_id_map(id_map)
        self._baseline = _remap_edges(snapshot, id_map)
        logger.info(f"Saved product graph ({len(snapshot.nodes)} nodes, {len(snapshot.edges)} edges)")

        if self._model.revision == revision:
            self._set_state(EditorState.CLEAN)
        else:
            self._set_state(EditorState.DIRTY)

    def _apply_id_map(self, id_map: Mapping[str, str]) -> None:
        for local_id, remote_id in id_map.items():
            if local_id == remote_id:
                continue
            if not self._model.has_edge(local_id):
                logger.debug(f"Edge {local_id} was removed during save, skipping remap")
                continue
            try:
                self._model.rename_edge(local_id, remote_id)
            except MalformedGraphError as e:
                logger.warning(f"Could not adopt remote id for edge {local_id}: {e}")


def validate_for_save(graph: Graph) -> None:
    """Check value domains, unique ids and the referential invariant before sending."""
    try:
        GraphModel().load_graph(graph.nodes, graph.edges)
    except GraphModelError as e:
        raise ValidationError(f"Graph is not valid for saving: {e}") from e


def remote_id_map(response: Any) -> Dict[str, str]:
    """
    Extract local -> remote edge ids from a save response.

    Understands {"id_map": {local: remote}} and {"edges": [{"client_id": local, "id": remote}]}.
    """
    if not isinstance(response, Mapping):
        return {}
    id_map: Dict[str, str] = {}
    raw_map = response.get("id_map")
    if isinstance(raw_map, Mapping):
        for local_id, remote_id in raw_map.items():
            if remote_id is not None:
                id_map[str(local_id)] = str(remote_id)
    raw_edges = response.get("edges")
    if isinstance(raw_edges, list):
        for entry in raw_edges:
            if isinstance(entry, Mapping) and entry.get("client_id") is not None and entry.get("id") is not None:
                id_map[str(entry["client_id"])] = str(entry["id"])
    return id_map


def _remap_edges(graph: Graph, id_map: Mapping[str, str]) -> Graph:
    if not id_map:
        return graph
    edges = tuple(
        Edge(id=id_map.get(e.id, e.id), source=e.source, target=e.target, weight=e.weight, type=e.type)
        for e in graph.edges
    )
    return Graph(nodes=graph.nodes, edges=edges)

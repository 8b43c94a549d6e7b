"""
Tests for GraphModel: loading, edits and the referential invariant.
"""

import pytest

from product_graph.errors import (
    DuplicateEdgeError,
    EdgeNotFoundError,
    InvalidEdgeTypeError,
    InvalidPositionError,
    InvalidWeightError,
    MalformedGraphError,
    NodeNotFoundError,
    SelfLoopError,
)
from product_graph.graph_model import GraphModel
from product_graph.models import EdgeType, Graph, Position


def _nodes(*ids):
    return [{"id": i, "label": i.upper(), "position": {"x": 0, "y": 0}} for i in ids]


def assert_referential(model: GraphModel):
    snap = model.snapshot()
    node_ids = set(snap.node_ids())
    for edge in snap.edges:
        assert edge.source in node_ids and edge.target in node_ids
    assert model.check_integrity() == []


@pytest.fixture
def model():
    m = GraphModel()
    m.load_graph(_nodes("p1", "p2"), [])
    return m


@pytest.fixture
def loaded_model():
    m = GraphModel()
    m.load_graph(
        _nodes("p1", "p2", "p3"),
        [
            {"id": "e1", "source": "p1", "target": "p2", "weight": 0.3, "type": "related"},
            {"id": "e2", "source": "p2", "target": "p3", "weight": 1, "type": "combo"},
        ],
    )
    return m


class TestLoadGraph:

    def test_load_returns_graph(self):
        m = GraphModel()
        graph = m.load_graph(
            _nodes("p1", "p2"),
            [{"id": "e1", "source": "p1", "target": "p2", "weight": 0.25, "type": "combo"}],
        )
        assert isinstance(graph, Graph)
        assert graph.node_ids() == ["p1", "p2"]
        edge = m.get_edge("e1")
        assert edge.weight == 0.25
        assert edge.type == EdgeType.COMBO
        assert_referential(m)

    def test_missing_endpoint_fails_fast(self):
        m = GraphModel()
        with pytest.raises(MalformedGraphError):
            m.load_graph(_nodes("p1"), [{"id": "e1", "source": "p1", "target": "ghost",
                                         "weight": 0.5, "type": "similar"}])

    def test_failed_load_keeps_previous_graph(self, loaded_model):
        before = loaded_model.snapshot()
        with pytest.raises(MalformedGraphError):
            loaded_model.load_graph(_nodes("x"), [{"id": "e9", "source": "x", "target": "y"}])
        assert loaded_model.snapshot() == before

    def test_duplicate_ids_rejected(self):
        with pytest.raises(MalformedGraphError):
            GraphModel().load_graph(_nodes("p1", "p1"), [])
        with pytest.raises(MalformedGraphError):
            GraphModel().load_graph(_nodes("p1", "p2"), [
                {"id": "e1", "source": "p1", "target": "p2"},
                {"id": "e1", "source": "p2", "target": "p1"},
            ])

    def test_out_of_range_weight_rejected(self):
        with pytest.raises(MalformedGraphError):
            GraphModel().load_graph(_nodes("p1", "p2"), [
                {"id": "e1", "source": "p1", "target": "p2", "weight": 2.0, "type": "similar"},
            ])

    def test_unknown_type_rejected(self):
        with pytest.raises(MalformedGraphError):
            GraphModel().load_graph(_nodes("p1", "p2"), [
                {"id": "e1", "source": "p1", "target": "p2", "weight": 0.5, "type": "cousin"},
            ])

    def test_load_replaces_everything(self, loaded_model):
        loaded_model.load_graph(_nodes("a"), [])
        assert loaded_model.snapshot().node_ids() == ["a"]
        assert loaded_model.snapshot().edges == ()

    def test_accepts_model_objects(self, loaded_model):
        snap = loaded_model.snapshot()
        m = GraphModel()
        m.load_graph(snap.nodes, snap.edges)
        assert m.snapshot() == snap


class TestMoveNode:

    def test_move(self, model):
        node = model.move_node("p1", {"x": 120, "y": -40.5})
        assert node.position == Position(120.0, -40.5)
        assert model.get_node("p1").position == Position(120.0, -40.5)

    def test_move_accepts_pair(self, model):
        model.move_node("p2", (3, 4))
        assert model.get_node("p2").position == Position(3.0, 4.0)

    def test_move_missing_node(self, model):
        before = model.snapshot()
        with pytest.raises(NodeNotFoundError):
            model.move_node("nope", {"x": 1, "y": 1})
        assert model.snapshot() == before

    def test_move_invalid_position(self, model):
        before = model.snapshot()
        with pytest.raises(InvalidPositionError):
            model.move_node("p1", {"x": "left", "y": 1})
        with pytest.raises(InvalidPositionError):
            model.move_node("p1", {"x": float("inf"), "y": 1})
        assert model.snapshot() == before


class TestConnectNodes:

    def test_defaults(self, model):
        edge = model.connect_nodes("p1", "p2")
        assert edge.source == "p1" and edge.target == "p2"
        assert edge.weight == 0.5
        assert edge.type == EdgeType.SIMILAR
        assert model.has_edge(edge.id)
        assert_referential(model)

    def test_id_does_not_depend_on_endpoints(self):
        m = GraphModel(allow_parallel_edges=True)
        m.load_graph(_nodes("p1", "p2"), [])
        first = m.connect_nodes("p1", "p2")
        second = m.connect_nodes("p1", "p2")
        assert first.id != second.id
        assert first.id != "edge-p1-p2"
        assert len(m.snapshot().edges) == 2

    def test_parallel_edge_rejected_by_default(self, model):
        first = model.connect_nodes("p1", "p2")
        with pytest.raises(DuplicateEdgeError) as exc:
            model.connect_nodes("p1", "p2")
        assert exc.value.existing_id == first.id
        assert len(model.snapshot().edges) == 1

    def test_reverse_direction_is_a_different_pair(self, model):
        model.connect_nodes("p1", "p2")
        back = model.connect_nodes("p2", "p1")
        assert back.source == "p2"
        assert len(model.snapshot().edges) == 2

    def test_self_loop_rejected_by_default(self, model):
        with pytest.raises(SelfLoopError):
            model.connect_nodes("p1", "p1")
        assert model.snapshot().edges == ()

    def test_self_loop_allowed_when_configured(self):
        m = GraphModel(allow_self_loops=True)
        m.load_graph(_nodes("p1"), [])
        edge = m.connect_nodes("p1", "p1")
        assert edge.source == edge.target == "p1"

    def test_missing_endpoint(self, model):
        with pytest.raises(NodeNotFoundError):
            model.connect_nodes("p1", "p3")
        with pytest.raises(NodeNotFoundError):
            model.connect_nodes("p0", "p1")
        assert len(model.snapshot().edges) == 0

    def test_connect_then_remove_restores_edges(self, loaded_model):
        before = loaded_model.snapshot()
        edge = loaded_model.connect_nodes("p1", "p3")
        loaded_model.remove_edge(edge.id)
        after = loaded_model.snapshot()
        assert set(after.edges) == set(before.edges)
        assert after.nodes == before.nodes


class TestUpdateEdge:

    def test_partial_update(self, loaded_model):
        edge = loaded_model.update_edge("e1", weight=0.9)
        assert edge.weight == 0.9
        assert edge.type == EdgeType.RELATED
        edge = loaded_model.update_edge("e1", type="combo")
        assert edge.weight == 0.9
        assert edge.type == EdgeType.COMBO

    def test_invalid_weight_leaves_edge_unchanged(self, loaded_model):
        with pytest.raises(InvalidWeightError):
            loaded_model.update_edge("e1", weight=1.5, type="similar")
        edge = loaded_model.get_edge("e1")
        assert edge.weight == 0.3
        assert edge.type == EdgeType.RELATED

    @pytest.mark.parametrize("weight", [-0.01, 1.0001, float("nan"), "0.5", True, None])
    def test_rejected_weights(self, loaded_model, weight):
        with pytest.raises(InvalidWeightError):
            loaded_model.update_edge("e1", weight=weight)

    @pytest.mark.parametrize("weight", [0, 0.0, 1, 1.0])
    def test_boundary_weights(self, loaded_model, weight):
        assert loaded_model.update_edge("e1", weight=weight).weight == float(weight)

    def test_invalid_type(self, loaded_model):
        with pytest.raises(InvalidEdgeTypeError):
            loaded_model.update_edge("e1", weight=0.7, type="unknown")
        edge = loaded_model.get_edge("e1")
        assert edge.weight == 0.3

    def test_missing_edge(self, loaded_model):
        with pytest.raises(EdgeNotFoundError):
            loaded_model.update_edge("e404", weight=0.1)

    def test_no_changes_keeps_revision(self, loaded_model):
        rev = loaded_model.revision
        loaded_model.update_edge("e1")
        assert loaded_model.revision == rev


class TestRemoveEdge:

    def test_remove_keeps_nodes(self, loaded_model):
        loaded_model.remove_edge("e1")
        snap = loaded_model.snapshot()
        assert snap.edge_ids() == ["e2"]
        assert sorted(snap.node_ids()) == ["p1", "p2", "p3"]

    def test_remove_missing(self, loaded_model):
        with pytest.raises(EdgeNotFoundError):
            loaded_model.remove_edge("e404")
        assert len(loaded_model.snapshot().edges) == 2


class TestSnapshotAndQueries:

    def test_snapshot_is_independent(self, loaded_model):
        snap = loaded_model.snapshot()
        loaded_model.update_edge("e1", weight=0.8)
        loaded_model.move_node("p1", {"x": 50, "y": 50})
        loaded_model.remove_edge("e2")
        assert snap.get_edge("e1").weight == 0.3
        assert snap.get_node("p1").position == Position(0.0, 0.0)
        assert "e2" in snap.edge_ids()

    def test_snapshot_is_immutable(self, loaded_model):
        snap = loaded_model.snapshot()
        with pytest.raises(AttributeError):
            snap.edges[0].weight = 0.1  # type: ignore[misc]

    def test_neighbors(self, loaded_model):
        assert loaded_model.neighbors("p1") == ["p2"]
        assert loaded_model.neighbors("p2", edge_type="combo") == ["p3"]
        assert loaded_model.neighbors("p2", edge_type=EdgeType.SIMILAR) == []
        with pytest.raises(NodeNotFoundError):
            loaded_model.neighbors("zz")

    def test_edges_between(self, loaded_model):
        assert [e.id for e in loaded_model.edges_between("p1", "p2")] == ["e1"]
        assert loaded_model.edges_between("p2", "p1") == []

    def test_rename_edge(self, loaded_model):
        rev = loaded_model.revision
        edge = loaded_model.rename_edge("e1", "rel-7")
        assert edge.id == "rel-7" and edge.weight == 0.3
        assert not loaded_model.has_edge("e1")
        assert loaded_model.revision == rev
        with pytest.raises(MalformedGraphError):
            loaded_model.rename_edge("rel-7", "e2")
        assert_referential(loaded_model)

    def test_sync_labels(self, loaded_model):
        rev = loaded_model.revision
        changed = loaded_model.sync_labels({"p1": "Cumin", "p2": "P2", "zz": "Ghost"})
        assert changed == 1
        assert loaded_model.get_node("p1").label == "Cumin"
        assert loaded_model.revision == rev


def test_invariant_holds_through_edit_sequence():
    m = GraphModel(allow_parallel_edges=True)
    m.load_graph(_nodes("a", "b", "c"), [])
    created = []
    for src, tgt in [("a", "b"), ("b", "c"), ("c", "a"), ("a", "b")]:
        created.append(m.connect_nodes(src, tgt).id)
        assert_referential(m)
    m.update_edge(created[0], weight=0.1, type="related")
    assert_referential(m)
    m.remove_edge(created[1])
    assert_referential(m)
    with pytest.raises(NodeNotFoundError):
        m.connect_nodes("a", "d")
    assert_referential(m)
    assert len(m.snapshot().edges) == 3

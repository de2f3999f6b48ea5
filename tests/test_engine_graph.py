"""Tests for directedness resolution and the analysis graph builder."""

import math

import pytest

from archtrace.engine import (
    AnalysisEdge,
    ArchimateAdapter,
    BpmnAdapter,
    Element,
    GenericAdapter,
    Model,
    Relationship,
    UmlAdapter,
    build_adjacency,
    build_analysis_graph,
    get_adapter,
    get_traversal_steps,
    is_explicitly_undirected,
)
from archtrace.engine.graph import clamp_int, normalize_direction


class NeverDirected:
    """Adapter that declares every edge undirected."""

    def is_edge_directed(self, edge, model):
        return False


class AlwaysDirected:
    def is_edge_directed(self, edge, model):
        return True


class TestIsExplicitlyUndirected:
    def test_false_flag_is_undirected(self):
        assert is_explicitly_undirected({"isDirected": False}) is True

    def test_true_flag_is_directed(self):
        assert is_explicitly_undirected({"isDirected": True}) is False

    def test_missing_flag_is_directed(self):
        assert is_explicitly_undirected({}) is False
        assert is_explicitly_undirected(None) is False

    @pytest.mark.parametrize("value", [0, "false", "False", None, [], 0.0])
    def test_non_boolean_values_are_directed(self, value):
        assert is_explicitly_undirected({"isDirected": value}) is False

    @pytest.mark.parametrize("attrs", ["isDirected", ["isDirected", False], 42, object()])
    def test_malformed_attrs_are_directed(self, attrs):
        assert is_explicitly_undirected(attrs) is False


class TestAdapters:
    def _edge(self, rel_type, attrs=None):
        rel = Relationship(
            id="r", type=rel_type, source_element_id="a", target_element_id="b", attrs=attrs or {}
        )
        return AnalysisEdge(
            relationship_id="r",
            relationship_type=rel_type,
            from_id="a",
            to_id="b",
            relationship=rel,
        )

    def test_generic_is_always_directed(self):
        assert GenericAdapter().is_edge_directed(self._edge("Association"), Model()) is True

    def test_archimate_association_undirected_by_default(self):
        adapter = ArchimateAdapter()
        assert adapter.is_edge_directed(self._edge("Association"), Model()) is False
        assert (
            adapter.is_edge_directed(self._edge("Association", {"isDirected": True}), Model())
            is True
        )
        assert adapter.is_edge_directed(self._edge("Serving"), Model()) is True

    def test_uml_association_undirected_by_default(self):
        adapter = UmlAdapter()
        assert adapter.is_edge_directed(self._edge("uml.association"), Model()) is False
        assert adapter.is_edge_directed(self._edge("uml.generalization"), Model()) is True

    def test_bpmn_association_direction(self):
        adapter = BpmnAdapter()
        assert (
            adapter.is_edge_directed(
                self._edge("bpmn.association", {"associationDirection": "None"}), Model()
            )
            is False
        )
        assert (
            adapter.is_edge_directed(
                self._edge("bpmn.association", {"associationDirection": "One"}), Model()
            )
            is True
        )
        assert adapter.is_edge_directed(self._edge("bpmn.sequenceFlow"), Model()) is True

    def test_get_adapter(self):
        assert isinstance(get_adapter("ArchiMate"), ArchimateAdapter)
        assert isinstance(get_adapter("uml"), UmlAdapter)
        assert isinstance(get_adapter(None), GenericAdapter)
        assert isinstance(get_adapter("nonsense"), GenericAdapter)


class TestBuildAnalysisGraph:
    def test_nodes_are_all_elements(self, small_model):
        graph = build_analysis_graph(small_model)
        assert list(graph.nodes) == ["A", "B", "C", "D"]

    def test_forward_edges_follow_relationship_order(self, small_model):
        graph = build_analysis_graph(small_model)
        assert [e.relationship_id for e in graph.outgoing["A"]] == ["R1", "R3"]
        assert all(not e.reversed for e in graph.outgoing["A"])

    def test_undirected_relationship_gets_reverse_edge(self, small_model):
        graph = build_analysis_graph(small_model)
        reverse = [e for e in graph.outgoing["D"] if e.relationship_id == "R3"]
        assert len(reverse) == 1
        assert reverse[0].reversed is True
        assert reverse[0].undirected is True
        assert reverse[0].to_id == "A"
        forward = [e for e in graph.outgoing["A"] if e.relationship_id == "R3"][0]
        assert forward.undirected is True
        assert forward.reversed is False

    def test_directed_relationship_has_no_reverse_edge(self, small_model):
        graph = build_analysis_graph(small_model)
        assert [e.relationship_id for e in graph.outgoing.get("B", [])] == ["R2"]
        assert "R1" not in [e.relationship_id for e in graph.outgoing.get("B", [])]

    def test_dangling_relationships_are_skipped(self):
        model = Model()
        model.add_element(Element(id="a", type="T"))
        model.add_relationship(
            Relationship(id="r1", type="X", source_element_id="a", target_element_id="ghost")
        )
        model.add_relationship(
            Relationship(id="r2", type="X", source_element_id=None, target_element_id="a")
        )
        model.add_relationship(
            Relationship(id="r3", type="X", source_element_id="", target_element_id="a")
        )
        graph = build_analysis_graph(model)
        assert graph.edges() == []
        assert graph.outgoing == {}
        assert graph.incoming == {}

    def test_adjacency_symmetry(self, small_model, diamond_model):
        for model in (small_model, diamond_model):
            graph = build_analysis_graph(model, NeverDirected())
            for node_id, edges in graph.outgoing.items():
                for e in edges:
                    assert e.from_id == node_id
                    assert any(x is e for x in graph.incoming[e.to_id])
            for node_id, edges in graph.incoming.items():
                for e in edges:
                    assert e.to_id == node_id
                    assert any(x is e for x in graph.outgoing[e.from_id])

    def test_adapter_can_make_edges_undirected(self, small_model):
        graph = build_analysis_graph(small_model, NeverDirected())
        assert graph.stats()["num_synthetic_edges"] == 4
        assert [e.to_id for e in graph.outgoing["B"]] == ["A", "C"]

    def test_adapter_cannot_override_explicit_undirected_flag(self, small_model):
        graph = build_analysis_graph(small_model, AlwaysDirected())
        assert any(e.reversed and e.relationship_id == "R3" for e in graph.outgoing["D"])

    def test_build_does_not_modify_model(self, small_model):
        before = small_model.to_dict()
        build_analysis_graph(small_model, NeverDirected())
        assert small_model.to_dict() == before

    def test_archimate_adapter_on_association_without_flag(self, build_model):
        model = build_model(
            [("x", "T", None), ("y", "T", None)],
            [("r", "Association", "x", "y")],
        )
        directed = build_analysis_graph(model, GenericAdapter())
        assert "y" not in directed.outgoing
        undirected = build_analysis_graph(model, ArchimateAdapter())
        assert [e.to_id for e in undirected.outgoing["y"]] == ["x"]


class TestTraversalSteps:
    def test_outgoing(self, small_model):
        graph = build_analysis_graph(small_model)
        steps = get_traversal_steps(graph, "A", "outgoing")
        assert [(s.relationship_id, s.to_id) for s in steps] == [("R1", "B"), ("R3", "D")]

    def test_incoming_flips_steps(self, small_model):
        graph = build_analysis_graph(small_model)
        steps = get_traversal_steps(graph, "C", "incoming")
        assert [(s.from_id, s.to_id) for s in steps] == [("C", "B"), ("C", "D")]
        assert all(s.reversed for s in steps)

    def test_incoming_through_undirected(self, small_model):
        graph = build_analysis_graph(small_model)
        steps = get_traversal_steps(graph, "A", "incoming", frozenset({"Association"}))
        assert [s.to_id for s in steps] == ["D"]

    def test_both_does_not_repeat_undirected_hop(self, small_model):
        graph = build_analysis_graph(small_model)
        steps = get_traversal_steps(graph, "A", "both")
        keys = [s.key for s in steps]
        assert keys == ["R1:A->B", "R3:A->D"]

    def test_type_filter(self, small_model):
        graph = build_analysis_graph(small_model)
        steps = get_traversal_steps(graph, "A", "outgoing", frozenset({"Serving"}))
        assert [s.to_id for s in steps] == ["B"]

    def test_unknown_node_has_no_steps(self, small_model):
        graph = build_analysis_graph(small_model)
        assert get_traversal_steps(graph, "nope", "both") == []


class TestAdjacency:
    def test_neighbors_by_direction(self, small_model):
        adj = build_adjacency(build_analysis_graph(small_model))
        assert adj.neighbors("B", "outgoing") == ["C"]
        assert adj.neighbors("B", "incoming") == ["A"]
        assert adj.neighbors("B", "both") == ["C", "A"]

    def test_neighbors_are_distinct(self, small_model):
        adj = build_adjacency(build_analysis_graph(small_model))
        assert adj.neighbors("A", "both") == ["B", "D"]

    def test_type_restriction(self, small_model):
        adj = build_adjacency(build_analysis_graph(small_model), frozenset({"Flow"}))
        assert adj.neighbors("A", "both") == []
        assert adj.neighbors("C", "incoming") == ["B", "D"]

    def test_has_node(self, small_model):
        adj = build_adjacency(build_analysis_graph(small_model))
        assert adj.has_node("A")
        assert not adj.has_node("Z")
        assert not adj.has_node(None)


class TestBounds:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (4, 4),
            (-3, 0),
            (99, 16),
            (2.9, 2),
            (None, 6),
            (math.nan, 6),
            (math.inf, 16),
            (-math.inf, 0),
            (True, 6),
            ("7", 6),
        ],
    )
    def test_clamp_int(self, value, expected):
        assert clamp_int(value, 6, 0, 16) == expected

    def test_normalize_direction(self):
        assert normalize_direction("Outgoing") == "outgoing"
        assert normalize_direction("sideways") == "both"
        assert normalize_direction(None, "incoming") == "incoming"

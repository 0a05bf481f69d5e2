"""Tests for the graph State: cones, cycles, diamond filter, coloring and soft delete."""

import pydot
import pytest

from netstrat.errors import CycleNotFoundError, DotParseError, EdgeNotFoundError, NodeNotFoundError
from netstrat.graph.elements import Elements, Path
from netstrat.graph.settings import ConeSettings, Direction
from netstrat.graph.state import State


def _unquoted(attrs):
    return {key: str(value).strip('"') for key, value in attrs.items()}


def _dot_nodes(text):
    graph = pydot.graph_from_dot_data(text)[0]
    return {n.get_name().strip('"'): _unquoted(n.get_attributes()) for n in graph.get_nodes()}


def _dot_edges(text):
    graph = pydot.graph_from_dot_data(text)[0]
    return {
        (str(e.get_source()).strip('"'), str(e.get_destination()).strip('"')): _unquoted(e.get_attributes())
        for e in graph.get_edges()
    }


class TestStructure:

    def test_lookup(self, small_state):
        assert small_state.find_node("fin_3") == 3
        assert small_state.find_node("missing") is None
        assert small_state.find_edge("1", "2") == 1
        assert small_state.find_edge("2", "ini_0") is None
        assert small_state.edge_endpoints(4) == (2, 1)
        assert small_state.edge(4).name == "2 -> 1"
        assert small_state.find_node_by_id(small_state.node(2).id) == 2

    def test_ini_and_fin_sets(self, small_state):
        assert small_state.ini_set == {0}
        assert small_state.fin_set == {3}

    def test_unknown_indices(self, small_state):
        with pytest.raises(NodeNotFoundError):
            small_state.node(42)
        with pytest.raises(EdgeNotFoundError):
            small_state.edge(42)

    def test_duplicate_name(self, small_state):
        with pytest.raises(ValueError):
            small_state.add_node("1")

    def test_rename_refreshes_edges(self, small_state):
        small_state.rename_node(4, "fin_4")
        assert small_state.fin_set == {3, 4}
        assert small_state.edge(3).name == "1 -> fin_4"
        assert small_state.find_node("4") is None


class TestCones:

    def test_unlimited(self, small_state):
        cone = small_state.get_cone(0, Direction.OUTGOING, -1)
        assert cone == Elements(nodes={0, 1, 2, 3, 4}, edges={0, 1, 2, 3, 4})

    def test_zero_steps_is_root(self, small_state):
        assert small_state.get_cone(0, Direction.OUTGOING, 0) == Elements(nodes={0})

    def test_last_hop_edges_excluded(self, small_state):
        assert small_state.get_cone(0, Direction.OUTGOING, 1) == Elements(nodes={0, 1}, edges={0})
        assert small_state.get_cone(0, Direction.OUTGOING, 2) == Elements(nodes={0, 1, 2, 4}, edges={0, 1, 3})

    def test_incoming(self, small_state):
        cone = small_state.get_cone(3, Direction.INCOMING, -1)
        assert cone == Elements(nodes={0, 1, 2, 3}, edges={0, 1, 2, 4})

    def test_sink_cone_is_only_the_node(self, small_state):
        assert small_state.get_cone(4, Direction.OUTGOING, -1) == Elements(nodes={4})

    def test_cones_by_name(self, small_state):
        res = small_state.cones([
            ConeSettings(roots_names=["2"], direction=Direction.OUTGOING, max_steps=1),
            ConeSettings(roots_names=["4"], direction=Direction.INCOMING, max_steps=1),
        ])
        assert res == Elements(nodes={1, 2, 3, 4}, edges={2, 4, 3})

    def test_unknown_root(self, small_state):
        with pytest.raises(NodeNotFoundError):
            small_state.cones([ConeSettings(roots_names=["nope"])])

    def test_color_and_delete_cones(self, small_state):
        small_state.color_ini_cones()
        assert small_state.colored.nodes == {0, 1, 2, 3, 4}

        small_state.color_fin_cones()
        assert small_state.colored.nodes == {0, 1, 2, 3}

        small_state.delete_cones([ConeSettings(roots_names=["4"])])
        assert small_state.deleted == Elements(nodes={4}, edges={3})

    def test_delete_final_cone(self, small_state):
        small_state.delete_final_cone()
        assert small_state.deleted.nodes == {0, 1, 2, 3}
        assert small_state.active.nodes == {4, 5}


class TestDiamondFilter:

    def test_keeps_ini_to_fin_nodes(self, small_state):
        small_state.diamond_filter()
        assert small_state.node_indices() == [0, 1, 2, 3]
        assert small_state.edge_indices() == [0, 1, 2, 4]
        assert small_state.find_node("4") is None

    def test_idempotent(self, small_state):
        small_state.diamond_filter()
        nodes, edges = small_state.node_indices(), small_state.edge_indices()

        small_state.diamond_filter()
        assert small_state.node_indices() == nodes
        assert small_state.edge_indices() == edges
        assert small_state.ini_set == {0}
        assert small_state.fin_set == {3}


class TestCycles:

    def test_found(self, small_state):
        assert len(small_state.cycles) == 1
        cycle = small_state.cycles[0]
        assert cycle.paths == [Path(1, 1, 2), Path(2, 4, 1)]
        assert cycle.elements() == Elements(nodes={1, 2}, edges={1, 4})

    def test_self_loop(self, small_state):
        small_state.add_edge(4, 4, 1.0)
        small_state.recalculate_metadata()

        assert len(small_state.cycles) == 2
        assert any(c.paths == [Path(4, 5, 4)] for c in small_state.cycles)

    def test_each_initial_node_searched_once(self):
        """A later start skips nodes an earlier start already finished."""
        state = State()
        for name in ["ini_0", "1", "2", "ini_3", "4", "5"]:
            state.add_node(name)
        state.add_edge(0, 1)
        state.add_edge(1, 2)
        state.add_edge(2, 1)
        state.add_edge(3, 4)
        state.add_edge(4, 5)
        state.add_edge(5, 4)
        state.add_edge(3, 1)
        state.recalculate_metadata()

        assert [c.paths for c in state.cycles] == [
            [Path(1, 1, 2), Path(2, 2, 1)],
            [Path(4, 4, 5), Path(5, 5, 4)],
        ]

    def test_parallel_edges_use_lowest_index(self, small_state):
        small_state.add_edge(2, 1, 3.0)
        small_state.recalculate_metadata()

        assert [c.paths for c in small_state.cycles] == [[Path(1, 1, 2), Path(2, 4, 1)]]

    def test_color_and_delete(self, small_state):
        small_state.color_cycles([0])
        assert small_state.colored == Elements(nodes={1, 2}, edges={1, 4})

        small_state.delete_cycles([0])
        assert small_state.cycles == []

    def test_unknown_cycle(self, small_state):
        with pytest.raises(CycleNotFoundError):
            small_state.color_cycles([3])


class TestColorAndDelete:

    def test_color_sets_selected(self, small_state):
        small_state.color_nodes_and_edges(["1"], [("1", "2")])
        assert small_state.node(1).selected
        assert small_state.edge(1).selected
        assert not small_state.node(2).selected

        small_state.clear_color()
        assert not small_state.node(1).selected
        assert small_state.colored.is_empty()

    def test_unknown_edge(self, small_state):
        with pytest.raises(EdgeNotFoundError):
            small_state.color_nodes_and_edges([], [("4", "1")])

    def test_delete_node_deletes_incident_edges(self, small_state):
        small_state.delete_nodes_and_edges(["2"], [])
        assert small_state.deleted == Elements(nodes={2}, edges={1, 2, 4})
        assert small_state.cycles == []
        assert small_state.get_cone(0, Direction.OUTGOING, -1) == Elements(nodes={0, 1, 4}, edges={0, 3})

    def test_soft_delete_keeps_structure(self, small_state):
        small_state.delete_elements(Elements(nodes={2}))
        assert small_state.node_indices() == [0, 1, 2, 3, 4, 5]
        assert small_state.edge_indices() == [0, 1, 2, 3, 4]

    def test_restore_all(self, small_state):
        small_state.delete_elements(Elements(nodes={2}, edges={0}))
        small_state.restore_all()
        assert small_state.deleted.is_empty()
        assert len(small_state.cycles) == 1


class TestSnapshot:

    def test_apply_difference(self, small_state):
        before = small_state.snapshot()

        small_state.delete_elements(Elements(nodes={4}))
        small_state.color(Elements(nodes={1}))
        after = small_state.snapshot()

        small_state.apply_difference(after.compute_difference(before))
        assert small_state.snapshot() == before
        assert not small_state.node(4).deleted
        assert not small_state.node(1).selected

        small_state.apply_difference(before.compute_difference(after))
        assert small_state.snapshot() == after
        assert small_state.node(1).selected


class TestDerived:

    def test_longest_path(self, small_state):
        assert small_state.longest_path == 3

        small_state.delete_elements(Elements(edges={1}))
        assert small_state.longest_path == 0

    def test_adj_matrix(self, small_state):
        small_state.color(Elements(nodes={1}, edges={1}))
        small_state.delete_elements(Elements(edges={3}))

        matrix = small_state.adj_matrix()
        assert matrix.size == 6
        assert matrix.m[0, 1] == 1
        assert matrix.m[2, 1] == 1
        assert matrix.m[1, 4] == 0
        assert matrix.m.sum() == 4
        assert matrix.colored.elements == {(1, 2)}
        assert matrix.colored.rows == {1}
        assert matrix.deleted.elements == {(1, 4)}
        assert matrix.longest_path == 3


class TestDot:

    def test_render(self, small_state):
        small_state.color(Elements(nodes={1}))
        text = small_state.dot()

        assert text.startswith("digraph")
        nodes = _dot_nodes(text)
        assert nodes["0"]["label"] == "ini_0"
        assert nodes["1"]["color"] == "red"
        assert nodes["1"]["fontcolor"] == "red"
        assert nodes["2"]["color"] == "black"

    def test_penwidth(self, small_state):
        widths = {pair: float(attrs["penwidth"]) for pair, attrs in _dot_edges(small_state.dot()).items()}
        assert widths[("2", "3")] == 5.0
        assert widths[("1", "2")] == 2.5
        assert widths[("2", "1")] == 0.625

    def test_deleted_omitted(self, small_state):
        small_state.delete_elements(Elements(nodes={5}, edges={3}))

        assert "5" not in _dot_nodes(small_state.dot())
        assert ("1", "4") not in _dot_edges(small_state.dot())

        nodes = _dot_nodes(small_state.dot(include_deleted=True))
        edges = _dot_edges(small_state.dot(include_deleted=True))
        assert nodes["5"]["color"] == "gray"
        assert edges[("1", "4")]["color"] == "gray"

    def test_round_trip(self, small_state):
        small_state.color_cycles([0])
        small_state.delete_elements(Elements(nodes={5}, edges={3}))

        loaded = State.from_dot(small_state.dot(include_deleted=True))

        assert loaded.node_indices() == small_state.node_indices()
        assert [loaded.node(i).name for i in loaded.node_indices()] == [
            small_state.node(i).name for i in small_state.node_indices()
        ]
        assert [loaded.node(i).id for i in loaded.node_indices()] == [
            small_state.node(i).id for i in small_state.node_indices()
        ]
        assert [loaded.edge_endpoints(k) for k in loaded.edge_indices()] == [
            small_state.edge_endpoints(k) for k in small_state.edge_indices()
        ]
        assert [loaded.edge(k).weight for k in loaded.edge_indices()] == [1.0, 2.0, 4.0, 1.0, 0.5]
        assert loaded.colored == small_state.colored
        assert loaded.deleted == small_state.deleted
        assert loaded.ini_set == {0}
        assert loaded.fin_set == {3}
        assert len(loaded.cycles) == 1

    def test_malformed_text(self):
        with pytest.raises(DotParseError):
            State.from_dot("digraph { 0 -> }")

    def test_malformed_id(self):
        with pytest.raises(DotParseError):
            State.from_dot('digraph { 0 [label="ini_0", id="not-a-uuid"]; }')

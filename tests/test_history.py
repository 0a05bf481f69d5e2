"""Tests for step differences and the history tree."""

import pytest

from netstrat.errors import HistoryError
from netstrat.graph.elements import Elements
from netstrat.history import Difference, History, Snapshot, Step, StepDifference


def _snapshot(nodes, colored=()):
    return Snapshot(active=Elements(nodes=set(nodes)), colored=Elements(nodes=set(colored)))


@pytest.fixture
def tree():
    """
    History labelled like this:

            1
          /   \\
         2     3
        / \\   / \\
       4   5 6   7

    Returns the history and a label -> step index mapping.
    """
    history = History(Step("1"))
    idx = {"1": history.root}

    idx["2"] = history.add_step(Step("2"))
    idx["4"] = history.add_step(Step("4"))

    history.set_current_step(idx["2"])
    idx["5"] = history.add_step(Step("5"))

    history.set_current_step(idx["1"])
    idx["3"] = history.add_step(Step("3"))
    idx["6"] = history.add_step(Step("6"))

    history.set_current_step(idx["3"])
    idx["7"] = history.add_step(Step("7"))

    return history, idx


class TestDifference:

    def test_squash_add_then_remove(self):
        a = Difference(plus=Elements(nodes={1}))
        b = Difference(minus=Elements(nodes={1}))

        res = a.squash(b)
        assert res.plus == Elements()
        assert res.minus == Elements(nodes={1})

    def test_squash_remove_then_add(self):
        a = Difference(minus=Elements(edges={3}))
        b = Difference(plus=Elements(edges={3}))

        res = a.squash(b)
        assert res.plus == Elements(edges={3})
        assert res.minus == Elements()

    def test_reverse(self):
        d = Difference(plus=Elements(nodes={1}), minus=Elements(edges={2}))
        assert d.reverse() == Difference(plus=Elements(edges={2}), minus=Elements(nodes={1}))

    def test_step_difference_keeps_missing_parts(self):
        colored = Difference(plus=Elements(nodes={4}))
        res = StepDifference().squash(StepDifference(colored=colored))
        assert res.elements is None
        assert res.colored == colored
        assert not res.is_empty()
        assert StepDifference().is_empty()

    def test_dict_round_trip(self):
        d = StepDifference(
            elements=Difference(plus=Elements(nodes={1, 2}), minus=Elements(edges={5})),
            colored=None,
        )
        assert StepDifference.from_dict(d.to_dict()) == d


class TestHistoryTree:

    def test_lca(self, tree):
        history, idx = tree
        assert history.lca(idx["4"], idx["5"]) == idx["2"]
        assert history.lca(idx["4"], idx["6"]) == idx["1"]
        assert history.lca(idx["4"], idx["2"]) == idx["2"]
        assert history.lca(idx["4"], idx["1"]) == idx["1"]

    def test_generations(self, tree):
        history, idx = tree
        assert history.generation(idx["1"]) is None
        assert history.generation(idx["2"]) == 0
        assert history.generation(idx["4"]) == 0
        assert history.generation(idx["5"]) == 1
        assert history.generation(idx["3"]) == 2
        assert history.generation(idx["6"]) == 2
        assert history.generation(idx["7"]) == 3
        assert history.max_gen == 3

    def test_structure(self, tree):
        history, idx = tree
        assert history.children(idx["2"]) == [idx["4"], idx["5"]]
        assert history.parent(idx["6"]) == idx["3"]
        assert history.parent(idx["1"]) is None
        assert history.is_leaf(idx["7"])
        assert not history.is_leaf(idx["3"])
        assert history.is_parent_intersection(idx["4"])
        assert not history.is_parent_intersection(idx["1"])
        assert history.get(idx["5"]).name == "5"

    def test_path(self, tree):
        history, idx = tree
        assert history.path(idx["4"], idx["6"]) == [idx[n] for n in ["4", "2", "1", "3", "6"]]
        assert history.path(idx["2"], idx["4"]) == [idx["2"], idx["4"]]
        assert history.path(idx["5"], idx["5"]) == [idx["5"]]

    def test_navigation(self, tree):
        history, idx = tree
        history.set_current_step(idx["4"])

        assert history.go_up().name == "2"
        assert history.go_up().name == "1"
        assert history.go_up() is None

        assert history.go_down().name == "2"
        assert history.go_down().name == "4"
        assert history.go_down() is None

        assert history.go_sibling().name == "5"
        assert history.go_sibling().name == "4"

        history.set_current_step(idx["1"])
        assert history.go_sibling() is None

    def test_go_down_follows_branch_generation(self, tree):
        history, idx = tree
        history.set_current_step(idx["3"])
        assert history.go_down().name == "6"

    def test_unknown_step(self, tree):
        history, _ = tree
        with pytest.raises(HistoryError):
            history.set_current_step(100)

    def test_dot_marks_current(self, tree):
        history, idx = tree
        history.set_current_step(idx["5"])
        text = history.dot()
        assert text.startswith("digraph")
        assert "red" in text

    def test_dict_round_trip(self, tree):
        history, _ = tree
        restored = History.from_dict(history.to_dict())

        assert restored.to_dict() == history.to_dict()
        assert restored.add_step(Step("8")) == len(history)


class TestHistoryDiff:

    @pytest.fixture
    def recorded(self):
        history = History(Step("root", snapshot=_snapshot({0, 1, 2, 3})))
        idx = {"root": history.root}
        idx["del 3"] = history.record("del 3", _snapshot({0, 1, 2}))
        idx["color 1"] = history.record("color 1", _snapshot({0, 1, 2}, colored={1}))

        history.set_current_step(idx["del 3"])
        idx["del 2"] = history.record("del 2", _snapshot({0, 1}))
        return history, idx

    def test_snapshot_at(self, recorded):
        history, idx = recorded
        assert history.snapshot_at(idx["color 1"]) == _snapshot({0, 1, 2}, colored={1})
        assert history.snapshot_at(idx["del 2"]) == _snapshot({0, 1})

    def test_diff_between_siblings(self, recorded):
        history, idx = recorded
        assert history.current_step == idx["del 2"]

        diff = history.compute_diff(idx["color 1"])
        moved = history.snapshot_at(idx["del 2"]).apply_difference(diff)
        assert moved == history.snapshot_at(idx["color 1"])

    def test_diff_to_root(self, recorded):
        history, idx = recorded
        history.set_current_step(idx["color 1"])

        diff = history.compute_diff(idx["root"])
        moved = history.snapshot_at(idx["color 1"]).apply_difference(diff)
        assert moved == _snapshot({0, 1, 2, 3})

    def test_diff_to_self_is_empty(self, recorded):
        history, idx = recorded
        assert history.compute_diff(history.current_step).is_empty()


class TestStateHistory:

    def test_undo_and_redo_deletion(self, small_state):
        history = History(Step("initial", snapshot=small_state.snapshot()))

        small_state.delete_elements(Elements(nodes={4}))
        deleted_step = history.record("delete 4", small_state.snapshot())

        small_state.apply_difference(history.compute_diff(history.root))
        history.set_current_step(history.root)
        assert not small_state.node(4).deleted
        assert small_state.snapshot() == history.snapshot_at(history.root)

        small_state.apply_difference(history.compute_diff(deleted_step))
        history.set_current_step(deleted_step)
        assert small_state.node(4).deleted
        assert small_state.edge(3).deleted

"""
Edit History
============
A tree of graph edit steps with branching generations.

Why is this file needed?
------------------------
1. Undo/redo: moving the current step up and down the tree replays the
   stored differences instead of rebuilding the graph.
2. Branching: adding a step while standing on an inner node keeps the old
   branch and starts a new generation next to it.
3. Jumps: compute_diff() folds the differences along the path through the
   lowest common ancestor into a single StepDifference.

Classes:
    History: The step tree and the current position in it.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional
import logging

import networkx as nx
import pydot

from netstrat.config import COLOR_SELECTED
from netstrat.errors import HistoryError
from netstrat.history.difference import StepDifference
from netstrat.history.step import Snapshot, Step

logger = logging.getLogger(__name__)


class History:
    """
    Step tree stored in a networkx DiGraph.

    Nodes are integer step indices with the Step under the 'step' attribute.
    Each parent -> child edge carries its 'generation'.
    """

    def __init__(self, initial_step: Step) -> None:
        if initial_step.snapshot is None:
            initial_step.snapshot = Snapshot()

        self.tree: nx.DiGraph = nx.DiGraph()
        self._next_idx = 0
        self.max_gen = 0
        self.root = self._add_node(initial_step)
        self.current_step = self.root

    @staticmethod
    def new_with_initial_step(step: Step) -> History:
        return History(step)

    def _add_node(self, step: Step) -> int:
        idx = self._next_idx
        self.tree.add_node(idx, step=step)
        self._next_idx += 1
        return idx

    def _check(self, idx: int) -> None:
        if idx not in self.tree:
            raise HistoryError(f"History step {idx} does not exist.")

    def __len__(self) -> int:
        return self.tree.number_of_nodes()

    def get(self, idx: int) -> Step:
        self._check(idx)
        return self.tree.nodes[idx]["step"]

    def current(self) -> Step:
        return self.get(self.current_step)

    def parent(self, idx: int) -> Optional[int]:
        self._check(idx)
        return next(iter(self.tree.predecessors(idx)), None)

    def children(self, idx: int) -> List[int]:
        """Children ordered by generation."""
        self._check(idx)
        return sorted(self.tree.successors(idx), key=lambda c: self.tree.edges[idx, c]["generation"])

    def generation(self, idx: int) -> Optional[int]:
        """Generation of the edge leading into idx, None for the root."""
        parent = self.parent(idx)
        if parent is None:
            return None
        return self.tree.edges[parent, idx]["generation"]

    def is_leaf(self, idx: int) -> bool:
        self._check(idx)
        return self.tree.out_degree(idx) == 0

    def is_parent_intersection(self, idx: int) -> bool:
        """Shows if idx has siblings."""
        parent = self.parent(idx)
        if parent is None:
            return False
        return self.tree.out_degree(parent) > 1

    def add_step(self, step: Step) -> int:
        """
        Adds step as a child of the current step and makes it current.

        A leaf is extended in its own generation; an inner node gets a new
        branch with the next generation number.
        """
        parent = self.current_step
        if self.is_leaf(parent):
            gen = self.generation(parent)
            gen = 0 if gen is None else gen
        else:
            self.max_gen += 1
            gen = self.max_gen

        idx = self._add_node(step)
        self.tree.add_edge(parent, idx, generation=gen)
        self.current_step = idx

        logger.debug(f"added history step {idx} '{step.name}' under {parent}; generation: {gen}")
        return idx

    add_and_set_current_step = add_step

    def record(self, name: str, snapshot: Snapshot) -> int:
        """Adds a step holding the difference between the current snapshot and the given one."""
        diff = self.snapshot_at(self.current_step).compute_difference(snapshot)
        return self.add_step(Step(name=name, difference=diff))

    def set_current_step(self, idx: int) -> Step:
        self._check(idx)
        self.current_step = idx
        return self.get(idx)

    def go_up(self) -> Optional[Step]:
        parent = self.parent(self.current_step)
        if parent is None:
            return None
        return self.set_current_step(parent)

    def go_down(self) -> Optional[Step]:
        """Moves to the child in the current generation, or the oldest branch."""
        children = self.children(self.current_step)
        if not children:
            return None

        gen = self.generation(self.current_step)
        gen = 0 if gen is None else gen
        same_gen = [c for c in children if self.tree.edges[self.current_step, c]["generation"] == gen]
        return self.set_current_step(same_gen[0] if same_gen else children[0])

    def go_sibling(self) -> Optional[Step]:
        """Moves to the sibling with the next generation, wrapping to the first."""
        parent = self.parent(self.current_step)
        if parent is None:
            return None

        siblings = self.children(parent)
        pos = siblings.index(self.current_step)
        return self.set_current_step(siblings[(pos + 1) % len(siblings)])

    def ancestors(self, idx: int) -> List[int]:
        """Chain from idx up to the root, both included."""
        chain = [idx]
        parent = self.parent(idx)
        while parent is not None:
            chain.append(parent)
            parent = self.parent(parent)
        return chain

    def lca(self, a: int, b: int) -> int:
        """Lowest common ancestor of two steps."""
        seen = set(self.ancestors(a))
        for node in self.ancestors(b):
            if node in seen:
                return node

        # unreachable for a single rooted tree
        raise HistoryError(f"Steps {a} and {b} have no common ancestor.")

    def path(self, a: int, b: int) -> List[int]:
        """Steps walked from a up to the common ancestor and down to b, both ends included."""
        common = self.lca(a, b)
        up = self.ancestors(a)
        down = self.ancestors(b)
        return up[: up.index(common) + 1] + list(reversed(down[: down.index(common)]))

    def compute_diff(self, target: int) -> StepDifference:
        """
        Difference which turns the current step's state into target's state.

        Differences from the current step up to the common ancestor are
        reversed and squashed, then the differences from the ancestor down
        to target are squashed on top.
        """
        self._check(target)
        common = self.lca(self.current_step, target)

        diff = StepDifference()
        node = self.current_step
        while node != common:
            diff = diff.squash(self.get(node).difference.reverse())
            node = self.parent(node)

        forward: List[int] = []
        node = target
        while node != common:
            forward.append(node)
            node = self.parent(node)

        for node in reversed(forward):
            diff = diff.squash(self.get(node).difference)

        logger.debug(f"computed diff from step {self.current_step} to {target} via {common}")
        return diff

    def snapshot_at(self, idx: int) -> Snapshot:
        """Rebuilds the snapshot of idx from the nearest stored snapshot above it."""
        pending: List[int] = []
        node: Optional[int] = idx
        while node is not None and self.get(node).snapshot is None:
            pending.append(node)
            node = self.parent(node)

        if node is None:
            raise HistoryError(f"No stored snapshot above step {idx}.")

        snapshot = self.get(node).snapshot
        for step_idx in reversed(pending):
            snapshot = snapshot.apply_difference(self.get(step_idx).difference)
        return snapshot

    def dot(self) -> str:
        """DOT text of the step tree with the current step colored."""
        graph = pydot.Dot("history", graph_type="digraph")
        for idx in sorted(self.tree.nodes):
            attrs: Dict[str, Any] = {"label": self.get(idx).name}
            if idx == self.current_step:
                attrs["color"] = COLOR_SELECTED
            graph.add_node(pydot.Node(str(idx), **attrs))

        for parent, child, gen in sorted(self.tree.edges(data="generation")):
            graph.add_edge(pydot.Edge(str(parent), str(child), label=str(gen)))

        return graph.to_string()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": self.root,
            "current_step": self.current_step,
            "max_gen": self.max_gen,
            "steps": [{"idx": idx, **self.get(idx).to_dict()} for idx in sorted(self.tree.nodes)],
            "edges": [
                {"parent": p, "child": c, "generation": g}
                for p, c, g in sorted(self.tree.edges(data="generation"))
            ],
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> History:
        steps = {s["idx"]: Step.from_dict(s) for s in data["steps"]}

        history = History(steps[data["root"]])
        history.tree.clear()
        for idx, step in steps.items():
            history.tree.add_node(idx, step=step)
        for e in data.get("edges", []):
            history.tree.add_edge(e["parent"], e["child"], generation=e["generation"])

        history.root = data["root"]
        history.current_step = data.get("current_step", history.root)
        history.max_gen = data.get("max_gen", 0)
        history._next_idx = max(steps) + 1
        return history

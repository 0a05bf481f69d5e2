"""
Random Graph Generation
=======================
Builds a State from generation Settings.

Why is this file needed?
------------------------
1. Synthetic data: the graph is grown breadth first from randomly picked
   initial nodes, so every edge source is reachable from an initial node.
2. Reproducibility: all randomness comes from one numpy Generator seeded
   from Settings.seed.

Classes:
    Builder: Fluent builder, Builder().with_settings(s).build().
"""
from __future__ import annotations

from typing import List
import logging

import numpy as np

from netstrat.config import PREFIX_FIN, PREFIX_INI
from netstrat.graph.settings import EdgeWeight, Settings
from netstrat.graph.state import State

logger = logging.getLogger(__name__)


class Builder:
    def __init__(self) -> None:
        self.settings = Settings()

    def with_settings(self, settings: Settings) -> Builder:
        self.settings = settings
        return self

    def build(self) -> State:
        s = self.settings
        s.validate()
        logger.debug(f"building graph state with settings: {s}")

        rng = np.random.default_rng(s.seed)
        state = State()
        for i in range(s.total_cnt):
            state.add_node(f"{i}")

        ini_nodes = self._pick_inis(state, rng)
        targets = self._add_edges(state, rng, ini_nodes)
        self._pick_fins(state, rng, targets)

        if s.diamond_filter:
            state.diamond_filter()
        else:
            state.recalculate_metadata()

        logger.info(
            f"built graph: {len(state)} nodes, {len(state.edge_indices())} edges, "
            f"{len(state.ini_set)} ini, {len(state.fin_set)} fin"
        )
        return state

    def _pick_inis(self, state: State, rng: np.random.Generator) -> List[int]:
        cnt = min(self.settings.ini_cnt, self.settings.total_cnt)
        picked = sorted(int(i) for i in rng.choice(state.node_indices(), size=cnt, replace=False))
        for idx in picked:
            state.rename_node(idx, f"{PREFIX_INI}_{state.node(idx).name}")
        return picked

    def _add_edges(self, state: State, rng: np.random.Generator, ini_nodes: List[int]) -> List[int]:
        """
        Grows edges breadth first from the initial nodes.

        Every node starts edges at most once. Initial nodes get at least one
        outgoing edge. A pass which starts no new node ends the growth.

        Returns:
            Targets of all added edges, in insertion order.
        """
        s = self.settings
        nodes = state.node_indices()
        ini = set(ini_nodes)

        frontier = list(ini_nodes)
        starts: set[int] = set()
        pairs: set[tuple[int, int]] = set()
        targets: List[int] = []

        while True:
            next_frontier: List[int] = []
            started = 0
            for source in frontier:
                if source in starts:
                    continue
                starts.add(source)
                started += 1

                if source in ini:
                    degree = int(rng.integers(1, max(s.max_out_degree, 2)))
                else:
                    degree = int(rng.integers(0, s.max_out_degree))

                for _ in range(degree):
                    target = int(rng.choice(nodes))
                    if s.no_twin_edges and (source, target) in pairs:
                        continue

                    weight = s.edge_weight
                    if s.edge_weight_type == EdgeWeight.RANDOM:
                        weight = float(rng.random())

                    state.add_edge(source, target, weight)
                    pairs.add((source, target))
                    next_frontier.append(target)
                    targets.append(target)

            frontier = next_frontier
            if started == 0:
                break

        logger.debug(f"added {len(targets)} edges from {len(starts)} sources")
        return targets

    def _pick_fins(self, state: State, rng: np.random.Generator, targets: List[int]) -> None:
        ini = state.ini_set
        candidates = sorted({t for t in targets if t not in ini})
        cnt = min(self.settings.fin_cnt, len(candidates))
        if cnt == 0:
            if self.settings.fin_cnt > 0:
                logger.warning("no targeted nodes left to pick final nodes from")
            return

        for idx in rng.choice(candidates, size=cnt, replace=False):
            idx = int(idx)
            state.rename_node(idx, f"{PREFIX_FIN}_{state.node(idx).name}")

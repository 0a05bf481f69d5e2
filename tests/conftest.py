"""Shared fixtures for the netstrat test suite."""

import pytest

from netstrat.graph.settings import Settings
from netstrat.graph.state import State


@pytest.fixture
def small_state() -> State:
    """
    Hand-built graph:

        ini_0 -e0-> 1 -e1-> 2 -e2-> fin_3
                    1 -e3-> 4
                    2 -e4-> 1
        5 (isolated)
    """
    state = State()
    for name in ["ini_0", "1", "2", "fin_3", "4", "5"]:
        state.add_node(name)

    state.add_edge(0, 1, 1.0)
    state.add_edge(1, 2, 2.0)
    state.add_edge(2, 3, 4.0)
    state.add_edge(1, 4, 1.0)
    state.add_edge(2, 1, 0.5)
    state.recalculate_metadata()
    return state


@pytest.fixture
def seeded_settings() -> Settings:
    return Settings(
        ini_cnt=3,
        fin_cnt=3,
        total_cnt=15,
        max_out_degree=3,
        diamond_filter=False,
        seed=42,
    )

"""
DOT Handoff
===========
Converts a graph State to Graphviz DOT text and back.

Why is this file needed?
------------------------
1. Rendering: the core never draws anything itself. The DOT text is handed to
   an external renderer, so colors and pen widths are encoded here.
2. Reloading: parse_dot() rebuilds a State from text produced by
   render_dot(include_deleted=True), keeping node indices, ids, weights,
   colors and deletions.

Functions:
    render_dot: State -> DOT text.
    parse_dot: DOT text -> State.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Tuple
import logging
import uuid

import pydot
import pyparsing

from netstrat.config import (
    COLOR_DEFAULT,
    COLOR_DELETED,
    COLOR_SELECTED,
    MAX_DOT_PENWIDTH,
    MIN_DOT_PENWIDTH,
)
from netstrat.errors import DotParseError
from netstrat.graph.elements import Edge, Elements, Node

if TYPE_CHECKING:
    from netstrat.graph.state import State

logger = logging.getLogger(__name__)

# pydot reports default attribute statements as nodes with these names
_RESERVED_NODE_NAMES = {"node", "edge", "graph"}


def _element_color(deleted: bool, selected: bool) -> str:
    if deleted:
        return COLOR_DELETED
    if selected:
        return COLOR_SELECTED
    return COLOR_DEFAULT


def penwidth(weight: float, max_weight: float) -> float:
    """Edge width scaled to the heaviest edge, never thinner than MIN_DOT_PENWIDTH."""
    if max_weight <= 0:
        return MIN_DOT_PENWIDTH
    return max(weight / max_weight * MAX_DOT_PENWIDTH, MIN_DOT_PENWIDTH)


def render_dot(state: State, include_deleted: bool = False) -> str:
    """
    Builds the DOT digraph of a state.

    Args:
        state: Graph to render.
        include_deleted: Also emit soft-deleted nodes and edges (in gray).

    Returns:
        DOT text. Node ids are the node indices, labels are the names.
    """
    graph = pydot.Dot("netstrat", graph_type="digraph")

    shown_nodes = set()
    for idx in state.node_indices():
        node = state.node(idx)
        if node.deleted and not include_deleted:
            continue

        shown_nodes.add(idx)
        color = _element_color(node.deleted, node.selected)
        graph.add_node(pydot.Node(
            str(idx),
            label=node.name,
            color=color,
            fontcolor=color,
            id=str(node.id),
        ))

    shown_edges: List[Tuple[int, Edge]] = []
    for k in state.edge_indices():
        edge = state.edge(k)
        start, end = state.edge_endpoints(k)
        if start not in shown_nodes or end not in shown_nodes:
            continue
        if edge.deleted and not include_deleted:
            continue
        shown_edges.append((k, edge))

    max_weight = max((edge.weight for _, edge in shown_edges), default=0.0)
    for k, edge in shown_edges:
        start, end = state.edge_endpoints(k)
        graph.add_edge(pydot.Edge(
            str(start),
            str(end),
            label=str(edge.weight),
            color=_element_color(edge.deleted, edge.selected),
            penwidth=str(round(penwidth(edge.weight, max_weight), 3)),
            id=str(edge.id),
        ))

    logger.debug(f"rendered dot with {len(shown_nodes)} nodes and {len(shown_edges)} edges")
    return graph.to_string()


def _unquote(value: Any) -> str:
    return str(value).strip('"')


def _attrs(element: Any) -> Dict[str, str]:
    return {key: _unquote(value) for key, value in element.get_attributes().items()}


def _parse_uuid(value: str, owner: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError as e:
        raise DotParseError(f"{owner} has an invalid id '{value}'.") from e


def parse_dot(text: str) -> State:
    """
    Rebuilds a State from DOT text written by render_dot().

    Raises:
        DotParseError: The text is not DOT or holds no graph.
        DotParseError: An edge references an undeclared node or an id is malformed.
    """
    from netstrat.graph.state import State

    try:
        graphs = pydot.graph_from_dot_data(text)
    except pyparsing.ParseBaseException as e:
        raise DotParseError(f"Failed to parse DOT text: {e}") from e

    if not graphs:
        raise DotParseError("DOT text contains no graph.")

    graph = graphs[0]
    state = State()
    colored = Elements()
    deleted = Elements()

    for dot_node in graph.get_nodes():
        name = _unquote(dot_node.get_name())
        if name in _RESERVED_NODE_NAMES:
            continue

        try:
            idx = int(name)
        except ValueError as e:
            raise DotParseError(f"Node id '{name}' is not an index.") from e

        attrs = _attrs(dot_node)
        node = Node(name=attrs.get("label", name))
        if "id" in attrs:
            node.id = _parse_uuid(attrs["id"], f"Node '{name}'")

        state.add_node(node.name, idx=idx, node=node)
        if attrs.get("color") == COLOR_DELETED:
            deleted.add_node(idx)
        elif attrs.get("color") == COLOR_SELECTED:
            colored.add_node(idx)

    for dot_edge in graph.get_edges():
        start_name, end_name = _unquote(dot_edge.get_source()), _unquote(dot_edge.get_destination())
        try:
            start, end = int(start_name), int(end_name)
        except ValueError as e:
            raise DotParseError(f"Edge '{start_name} -> {end_name}' does not connect indices.") from e

        if start not in state.graph or end not in state.graph:
            raise DotParseError(f"Edge '{start} -> {end}' references an undeclared node.")

        attrs = _attrs(dot_edge)
        try:
            weight = float(attrs.get("label", 1.0))
        except ValueError as e:
            raise DotParseError(f"Edge '{start} -> {end}' has a non numeric weight.") from e

        edge = Edge(start_id=state.node(start).id, end_id=state.node(end).id, weight=weight)
        if "id" in attrs:
            edge.id = _parse_uuid(attrs["id"], f"Edge '{start} -> {end}'")

        k = state.add_edge(start, end, weight, edge=edge)
        if attrs.get("color") == COLOR_DELETED:
            deleted.add_edge(k)
        elif attrs.get("color") == COLOR_SELECTED:
            colored.add_edge(k)

    for idx in deleted.nodes:
        state.node(idx).mark_deleted()
    for k in deleted.edges:
        state.edge(k).mark_deleted()

    state.color(colored)
    state.recalculate_metadata()

    logger.info(f"loaded graph from dot: {len(state)} nodes, {len(state.edge_indices())} edges")
    return state

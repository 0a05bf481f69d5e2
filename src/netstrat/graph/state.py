"""
Graph State
===========
The mutable directed graph with soft delete, coloring and derived metadata.

Why is this file needed?
------------------------
1. Arena: nodes and edges live in a networkx MultiDiGraph under stable integer
   indices. Soft delete only flips a flag on the payload; the structure is
   removed only by the diamond filter.
2. Analysis: cones (bounded BFS), cycles (DFS back edges from initial nodes),
   the longest ini -> fin path and the adjacency matrix are all computed here.
3. History: snapshot() and apply_difference() are the bridge to the edit
   history, which only ever sees index sets.

Classes:
    State: The graph and its derived data.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple
import logging
import uuid

import networkx as nx
import numpy as np

from netstrat.config import PREFIX_FIN, PREFIX_INI
from netstrat.errors import CycleNotFoundError, EdgeNotFoundError, NodeNotFoundError
from netstrat.graph.elements import Cycle, Edge, Elements, Node, Path
from netstrat.graph.settings import ConeSettings, Direction, Settings
from netstrat.history.difference import StepDifference
from netstrat.history.step import Snapshot
from netstrat.matrix.adj_matrix import AdjMatrix, MatrixElements

logger = logging.getLogger(__name__)


class State:
    """
    Directed multigraph addressed by integer indices.

    Node payloads are stored under the 'node' attribute and edge payloads
    under the 'edge' attribute of a MultiDiGraph whose edge keys are the
    global edge indices.
    """

    def __init__(self) -> None:
        self.graph: nx.MultiDiGraph = nx.MultiDiGraph()
        self._next_node = 0
        self._next_edge = 0

        self._by_name: Dict[str, int] = {}
        self._by_id: Dict[uuid.UUID, int] = {}
        self._edge_ends: Dict[int, Tuple[int, int]] = {}

        self.ini_set: set[int] = set()
        self.fin_set: set[int] = set()
        self.cycles: List[Cycle] = []
        self.colored: Elements = Elements()
        self._longest_path: Optional[int] = None

    @staticmethod
    def from_settings(settings: Settings) -> State:
        from netstrat.graph.builder import Builder

        return Builder().with_settings(settings).build()

    @staticmethod
    def from_dot(text: str) -> State:
        from netstrat.graph.dot import parse_dot

        return parse_dot(text)

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def add_node(self, name: str, idx: Optional[int] = None, node: Optional[Node] = None) -> int:
        """
        Adds a node and returns its index.

        Args:
            name: Unique node name. Names starting with 'ini_' or 'fin_' put
                the node into the initial or final set.
            idx: Explicit index, used when rebuilding a graph. Defaults to the
                next free index.
            node: Prebuilt payload; its name is replaced by name.
        """
        if name in self._by_name:
            raise ValueError(f"Node with name '{name}' already exists.")

        if idx is None:
            idx = self._next_node
        elif idx in self.graph:
            raise ValueError(f"Node index {idx} is already taken.")

        node = node if node is not None else Node(name=name)
        node.name = name

        self.graph.add_node(idx, node=node)
        self._next_node = max(self._next_node, idx + 1)
        self._by_name[name] = idx
        self._by_id[node.id] = idx
        self._classify(idx)
        self._invalidate()
        return idx

    def add_edge(self, start: int, end: int, weight: float = 1.0, edge: Optional[Edge] = None) -> int:
        """Adds an edge start -> end and returns its index."""
        start_node = self.node(start)
        end_node = self.node(end)

        if edge is None:
            edge = Edge.between(start_node, end_node, weight)
        else:
            edge.start_id, edge.end_id = start_node.id, end_node.id
            edge.name = Edge.make_name(start_node, end_node)

        idx = self._next_edge
        self.graph.add_edge(start, end, key=idx, edge=edge)
        self._next_edge += 1
        self._edge_ends[idx] = (start, end)
        self._invalidate()
        return idx

    def rename_node(self, idx: int, name: str) -> None:
        """Renames a node and refreshes the names of its incident edges."""
        node = self.node(idx)
        if name != node.name and name in self._by_name:
            raise ValueError(f"Node with name '{name}' already exists.")

        del self._by_name[node.name]
        node.name = name
        self._by_name[name] = idx

        for u, v, edge in self._incident_edges(idx):
            edge.name = Edge.make_name(self.node(u), self.node(v))

        self._classify(idx)

    def remove_node(self, idx: int) -> None:
        """Hard-removes a node with its incident edges."""
        node = self.node(idx)
        for u, v, k in list(self.graph.in_edges(idx, keys=True)) + list(self.graph.out_edges(idx, keys=True)):
            self._edge_ends.pop(k, None)
            self.colored.edges.discard(k)

        self.graph.remove_node(idx)
        del self._by_name[node.name]
        del self._by_id[node.id]
        self.ini_set.discard(idx)
        self.fin_set.discard(idx)
        self.colored.nodes.discard(idx)
        self._invalidate()

    def _classify(self, idx: int) -> None:
        name = self.node(idx).name
        self.ini_set.discard(idx)
        self.fin_set.discard(idx)
        if name.startswith(f"{PREFIX_INI}_"):
            self.ini_set.add(idx)
        if name.startswith(f"{PREFIX_FIN}_"):
            self.fin_set.add(idx)

    def _incident_edges(self, idx: int) -> List[Tuple[int, int, Edge]]:
        res = list(self.graph.in_edges(idx, data="edge"))
        # self loops show up on both sides
        res += [e for e in self.graph.out_edges(idx, data="edge") if e[1] != idx]
        return res

    def _invalidate(self) -> None:
        self._longest_path = None

    def __len__(self) -> int:
        return self.graph.number_of_nodes()

    def node(self, idx: int) -> Node:
        if idx not in self.graph:
            raise NodeNotFoundError(f"Node with index {idx} not found.")
        return self.graph.nodes[idx]["node"]

    def edge(self, idx: int) -> Edge:
        u, v = self.edge_endpoints(idx)
        return self.graph.edges[u, v, idx]["edge"]

    def edge_endpoints(self, idx: int) -> Tuple[int, int]:
        if idx not in self._edge_ends:
            raise EdgeNotFoundError(f"Edge with index {idx} not found.")
        return self._edge_ends[idx]

    def node_indices(self) -> List[int]:
        return sorted(self.graph.nodes)

    def edge_indices(self) -> List[int]:
        return sorted(self._edge_ends)

    def find_node(self, name: str) -> Optional[int]:
        return self._by_name.get(name)

    def find_node_by_id(self, node_id: uuid.UUID) -> Optional[int]:
        return self._by_id.get(node_id)

    def find_edges(self, start_name: str, end_name: str) -> List[int]:
        start, end = self.find_node(start_name), self.find_node(end_name)
        if start is None or end is None or not self.graph.has_edge(start, end):
            return []
        return sorted(self.graph[start][end])

    def find_edge(self, start_name: str, end_name: str) -> Optional[int]:
        found = self.find_edges(start_name, end_name)
        return found[0] if found else None

    def _resolve(self, name: str) -> int:
        idx = self.find_node(name)
        if idx is None:
            raise NodeNotFoundError(f"Node with name '{name}' not found.")
        return idx

    def find_nodes_and_edges(self, nodes: Iterable[str], edges: Iterable[Tuple[str, str]]) -> Elements:
        """Resolves node names and (start, end) name pairs to indices."""
        res = Elements()
        for name in nodes:
            res.add_node(self._resolve(name))

        for start, end in edges:
            found = self.find_edges(start, end)
            if not found:
                raise EdgeNotFoundError(f"Edge '{start} -> {end}' not found.")
            res.edges.update(found)

        return res

    def _check_elements(self, elements: Elements) -> None:
        for idx in elements.nodes:
            self.node(idx)
        for idx in elements.edges:
            self.edge_endpoints(idx)

    # ------------------------------------------------------------------
    # Cones
    # ------------------------------------------------------------------

    def _active_neighbours(self, idx: int, direction: Direction) -> List[Tuple[int, int]]:
        """(edge index, neighbour) pairs over active edges, ordered by edge index."""
        if direction == Direction.OUTGOING:
            found = [(k, v) for _, v, k, e in self.graph.out_edges(idx, keys=True, data="edge") if not e.deleted]
        else:
            found = [(k, u) for u, _, k, e in self.graph.in_edges(idx, keys=True, data="edge") if not e.deleted]

        return sorted((k, n) for k, n in found if not self.node(n).deleted)

    def get_cone(self, root: int, direction: Direction = Direction.OUTGOING, max_steps: int = -1) -> Elements:
        """
        Nodes and edges reachable from root within max_steps hops.

        Args:
            root: Node index, always part of the cone.
            direction: Follow outgoing or incoming edges.
            max_steps: Hop limit, -1 for no limit. Edges leaving the last hop
                are not part of the cone.
        """
        self.node(root)
        res = Elements(nodes={root})
        if max_steps == 0:
            return res

        connected = []
        for edge_idx, neighbour in self._active_neighbours(root, direction):
            res.add_edge(edge_idx)
            connected.append(neighbour)

        steps = 0
        while connected:
            steps += 1
            next_connected: List[int] = []
            next_edges: List[int] = []

            for sibling in connected:
                if sibling in res.nodes:
                    continue
                res.add_node(sibling)

                for edge_idx, neighbour in self._active_neighbours(sibling, direction):
                    next_edges.append(edge_idx)
                    next_connected.append(neighbour)

            connected = next_connected

            if max_steps != -1 and steps >= max_steps:
                break

            res.edges.update(next_edges)

        logger.debug(f"cone from {root} ({direction}, max steps {max_steps}): {res}")
        return res

    def cones(self, cone_settings: Iterable[ConeSettings]) -> Elements:
        res = Elements()
        for cs in cone_settings:
            for name in cs.roots_names:
                res = res.union(self.get_cone(self._resolve(name), cs.direction, cs.max_steps))
        return res

    def _union_cones(self, roots: Iterable[int], direction: Direction) -> Elements:
        res = Elements()
        for root in sorted(roots):
            if self.node(root).deleted:
                continue
            res = res.union(self.get_cone(root, direction, -1))
        return res

    def color_cones(self, cone_settings: Iterable[ConeSettings]) -> None:
        self.color(self.cones(cone_settings))

    def delete_cones(self, cone_settings: Iterable[ConeSettings]) -> None:
        self.delete_elements(self.cones(cone_settings))

    def color_ini_cones(self) -> None:
        self.color(self._union_cones(self.ini_set, Direction.OUTGOING))

    def color_fin_cones(self) -> None:
        self.color(self._union_cones(self.fin_set, Direction.INCOMING))

    def delete_initial_cone(self) -> None:
        self.delete_elements(self._union_cones(self.ini_set, Direction.OUTGOING))

    def delete_final_cone(self) -> None:
        self.delete_elements(self._union_cones(self.fin_set, Direction.INCOMING))

    # ------------------------------------------------------------------
    # Diamond filter
    # ------------------------------------------------------------------

    def diamond_filter(self) -> None:
        """
        Keeps only nodes lying on some path from an initial to a final node.

        Everything else, including soft-deleted elements, is removed from the
        graph for good.
        """
        ini_cone = self._union_cones(self.ini_set, Direction.OUTGOING)
        fin_cone = self._union_cones(self.fin_set, Direction.INCOMING)
        keep = ini_cone.nodes & fin_cone.nodes

        removed = [idx for idx in self.node_indices() if idx not in keep]
        for idx in removed:
            self.remove_node(idx)

        dropped_edges = [k for k in self.edge_indices() if self.edge(k).deleted]
        for k in dropped_edges:
            u, v = self._edge_ends.pop(k)
            self.graph.remove_edge(u, v, key=k)
            self.colored.edges.discard(k)

        for idx in self.node_indices():
            self._classify(idx)

        logger.info(f"diamond filter removed {len(removed)} nodes and {len(dropped_edges)} deleted edges")
        self.recalculate_metadata()

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------

    def _find_cycles(self) -> List[Cycle]:
        """
        Depth first search from the initial nodes over active elements.

        Tree edges extend the current walk and finishing a node shortens it.
        A non-tree edge into a node still on the DFS stack is a back edge; it
        closes a cycle which starts at the last walk step leaving its target.
        Nodes finished by an earlier start are hidden from later searches, so
        every node is expanded at most once.
        """
        g = self._active_digraph()
        cycles: List[Cycle] = []
        walk: List[Path] = []
        on_stack: set[int] = set()
        finished: set[int] = set()

        for start in sorted(self.ini_set):
            if start not in g or start in finished:
                continue

            hidden = frozenset(finished)
            view = nx.subgraph_view(g, filter_node=lambda n: n not in hidden)
            for u, v, kind in nx.dfs_labeled_edges(view, source=start):
                if kind == "forward":
                    on_stack.add(v)
                    if u != v:
                        walk.append(Path(u, g.edges[u, v]["edge"], v))
                elif kind == "reverse":
                    on_stack.discard(v)
                    finished.add(v)
                    if u != v:
                        walk.pop()
                elif kind == "nontree" and v in on_stack:
                    walk.append(Path(u, g.edges[u, v]["edge"], v))
                    first = max(i for i, p in enumerate(walk) if p.start == v)
                    cycles.append(Cycle(list(walk[first:])))
                    logger.debug(f"discovered cycle: {cycles[-1]}")
                    walk.pop()

        logger.info(f"found {len(cycles)} cycles")
        return cycles

    def _cycles_elements(self, idxs: Iterable[int]) -> Elements:
        res = Elements()
        for i in idxs:
            if not 0 <= i < len(self.cycles):
                raise CycleNotFoundError(f"Cycle {i} not found; there are {len(self.cycles)} cycles.")
            res = res.union(self.cycles[i].elements())
        return res

    def color_cycles(self, idxs: Iterable[int]) -> None:
        self.color(self._cycles_elements(idxs))

    def delete_cycles(self, idxs: Iterable[int]) -> None:
        self.delete_elements(self._cycles_elements(idxs))

    # ------------------------------------------------------------------
    # Coloring
    # ------------------------------------------------------------------

    def color(self, elements: Elements) -> None:
        """Replaces the colored elements."""
        self._check_elements(elements)
        self.colored = elements.copy()
        self._sync_selected()
        logger.info(f"colored {len(self.colored.nodes)} nodes and {len(self.colored.edges)} edges")

    def color_nodes_and_edges(self, nodes: Iterable[str], edges: Iterable[Tuple[str, str]]) -> None:
        self.color(self.find_nodes_and_edges(nodes, edges))

    def clear_color(self) -> None:
        self.color(Elements())

    def _sync_selected(self) -> None:
        for idx, node in self.graph.nodes(data="node"):
            node.selected = idx in self.colored.nodes
        for _, _, k, edge in self.graph.edges(keys=True, data="edge"):
            edge.selected = k in self.colored.edges

    # ------------------------------------------------------------------
    # Soft delete
    # ------------------------------------------------------------------

    def delete_elements(self, elements: Elements) -> None:
        """Soft-deletes elements. Deleting a node deletes its incident edges too."""
        self._check_elements(elements)

        for idx in elements.nodes:
            self.node(idx).mark_deleted()
            for _, _, edge in self._incident_edges(idx):
                edge.mark_deleted()

        for idx in elements.edges:
            self.edge(idx).mark_deleted()

        logger.info(f"deleted {len(elements.nodes)} nodes and {len(elements.edges)} edges")
        self.recalculate_metadata()

    def delete_nodes_and_edges(self, nodes: Iterable[str], edges: Iterable[Tuple[str, str]]) -> None:
        self.delete_elements(self.find_nodes_and_edges(nodes, edges))

    def restore_elements(self, elements: Elements) -> None:
        self._check_elements(elements)

        for idx in elements.nodes:
            self.node(idx).restore()
        for idx in elements.edges:
            self.edge(idx).restore()

        logger.info(f"restored {len(elements.nodes)} nodes and {len(elements.edges)} edges")
        self.recalculate_metadata()

    def restore_all(self) -> None:
        self.restore_elements(self.deleted)

    @property
    def deleted(self) -> Elements:
        return Elements(
            nodes={idx for idx, node in self.graph.nodes(data="node") if node.deleted},
            edges={k for _, _, k, edge in self.graph.edges(keys=True, data="edge") if edge.deleted},
        )

    @property
    def active(self) -> Elements:
        return Elements(
            nodes={idx for idx, node in self.graph.nodes(data="node") if not node.deleted},
            edges={k for _, _, k, edge in self.graph.edges(keys=True, data="edge") if not edge.deleted},
        )

    # ------------------------------------------------------------------
    # History bridge
    # ------------------------------------------------------------------

    def snapshot(self) -> Snapshot:
        return Snapshot(active=self.active, colored=self.colored.copy())

    def apply_difference(self, diff: StepDifference) -> None:
        """Moves the state along a history difference."""
        target = self.snapshot().apply_difference(diff)

        for idx, node in self.graph.nodes(data="node"):
            node.deleted = idx not in target.active.nodes
        for _, _, k, edge in self.graph.edges(keys=True, data="edge"):
            edge.deleted = k not in target.active.edges

        self.colored = Elements(
            nodes=target.colored.nodes & set(self.graph.nodes),
            edges=target.colored.edges & set(self._edge_ends),
        )
        self._sync_selected()
        self.recalculate_metadata()

    # ------------------------------------------------------------------
    # Derived data
    # ------------------------------------------------------------------

    def recalculate_metadata(self) -> None:
        self._invalidate()
        self.cycles = self._find_cycles()

    def _active_digraph(self) -> nx.DiGraph:
        """Simple digraph of active elements; parallel edges keep the lowest index."""
        g = nx.DiGraph()
        active = self.active
        g.add_nodes_from(sorted(active.nodes))
        for k in sorted(active.edges):
            u, v = self._edge_ends[k]
            if u in active.nodes and v in active.nodes and not g.has_edge(u, v):
                g.add_edge(u, v, edge=k)
        return g

    @property
    def longest_path(self) -> int:
        """Edge count of the longest simple path from an initial to a final node."""
        if self._longest_path is None:
            g = self._active_digraph()
            longest = 0
            for ini in sorted(self.ini_set & set(g.nodes)):
                for fin in sorted(self.fin_set & set(g.nodes)):
                    for path in nx.all_simple_paths(g, ini, fin):
                        longest = max(longest, len(path) - 1)
            self._longest_path = longest
        return self._longest_path

    def _matrix_elements(self, elements: Elements) -> MatrixElements:
        res = MatrixElements()
        for k in elements.edges:
            res.elements.add(self.edge_endpoints(k))
        for idx in elements.nodes:
            res.rows.add(idx)
            res.cols.add(idx)
        return res

    def adj_matrix(self) -> AdjMatrix:
        """
        Adjacency matrix of the active graph.

        Its size is the highest node index + 1, so rows of removed nodes stay
        in place as zeros.
        """
        n = max(self.graph.nodes, default=-1) + 1
        m = np.zeros((n, n), dtype=np.int64)

        active = self.active
        for k in active.edges:
            u, v = self._edge_ends[k]
            if u in active.nodes and v in active.nodes:
                m[u, v] += 1

        return AdjMatrix(
            m,
            colored=self._matrix_elements(self.colored),
            deleted=self._matrix_elements(self.deleted),
            longest_path=self.longest_path,
        )

    def dot(self, include_deleted: bool = False) -> str:
        from netstrat.graph.dot import render_dot

        return render_dot(self, include_deleted=include_deleted)

"""
Graph Elements
==============
Node and edge payloads plus index-based element sets.

Why is this file needed?
------------------------
1. Identity: nodes and edges carry a UUID which survives DOT round trips and
   history serialization, while the graph itself is addressed by stable
   integer indices.
2. Set algebra: cones, cycles, colorings and deletions are all expressed as
   Elements (a set of node indices and a set of edge indices).

Classes:
    Node, Edge: Element payloads with soft-delete and selection flags.
    Elements: Index sets with union/sub/difference operations.
    Path, Cycle: Closed walks found by cycle detection.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, List
import uuid

if TYPE_CHECKING:
    from netstrat.history.difference import Difference


@dataclass
class Node:
    name: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    deleted: bool = False
    selected: bool = False

    def mark_deleted(self) -> None:
        self.deleted = True

    def restore(self) -> None:
        self.deleted = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "deleted": self.deleted,
            "selected": self.selected,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Node:
        return Node(
            name=data["name"],
            id=uuid.UUID(data["id"]),
            deleted=data.get("deleted", False),
            selected=data.get("selected", False),
        )


@dataclass
class Edge:
    start_id: uuid.UUID
    end_id: uuid.UUID
    weight: float = 1.0
    name: str = ""
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    deleted: bool = False
    selected: bool = False

    @staticmethod
    def between(start: Node, end: Node, weight: float) -> Edge:
        return Edge(
            start_id=start.id,
            end_id=end.id,
            weight=weight,
            name=Edge.make_name(start, end),
        )

    @staticmethod
    def make_name(start: Node, end: Node) -> str:
        return f"{start.name} -> {end.name}"

    def mark_deleted(self) -> None:
        self.deleted = True

    def restore(self) -> None:
        self.deleted = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "weight": self.weight,
            "start": str(self.start_id),
            "end": str(self.end_id),
            "name": self.name,
            "deleted": self.deleted,
            "selected": self.selected,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Edge:
        return Edge(
            start_id=uuid.UUID(data["start"]),
            end_id=uuid.UUID(data["end"]),
            weight=float(data["weight"]),
            name=data.get("name", ""),
            id=uuid.UUID(data["id"]),
            deleted=data.get("deleted", False),
            selected=data.get("selected", False),
        )


@dataclass
class Elements:
    """Set of node indices and edge indices of one graph."""
    nodes: set[int] = field(default_factory=set)
    edges: set[int] = field(default_factory=set)

    def __str__(self) -> str:
        return f"nodes: {sorted(self.nodes)}; edges: {sorted(self.edges)}"

    def copy(self) -> Elements:
        return Elements(set(self.nodes), set(self.edges))

    def is_empty(self) -> bool:
        return not self.nodes and not self.edges

    def add_node(self, idx: int) -> None:
        self.nodes.add(idx)

    def add_edge(self, idx: int) -> None:
        self.edges.add(idx)

    def union(self, other: Elements) -> Elements:
        return Elements(self.nodes | other.nodes, self.edges | other.edges)

    def sub(self, other: Elements) -> Elements:
        return Elements(self.nodes - other.nodes, self.edges - other.edges)

    def intersection(self, other: Elements) -> Elements:
        return Elements(self.nodes & other.nodes, self.edges & other.edges)

    def compute_difference(self, other: Elements) -> Difference:
        """Difference which turns self into other."""
        from netstrat.history.difference import Difference

        return Difference(plus=other.sub(self), minus=self.sub(other))

    def apply_difference(self, diff: Difference) -> Elements:
        return self.union(diff.plus).sub(diff.minus)

    def to_dict(self) -> Dict[str, List[int]]:
        return {"nodes": sorted(self.nodes), "edges": sorted(self.edges)}

    @staticmethod
    def from_dict(data: Dict[str, Iterable[int]]) -> Elements:
        return Elements(set(data.get("nodes", ())), set(data.get("edges", ())))


@dataclass(frozen=True)
class Path:
    """One step of a walk: start node, traversed edge, end node."""
    start: int
    edge: int
    end: int


@dataclass
class Cycle:
    paths: List[Path] = field(default_factory=list)

    def add_path(self, p: Path) -> None:
        self.paths.append(p)

    def __len__(self) -> int:
        return len(self.paths)

    def len(self) -> int:
        return len(self.paths)

    def elements(self) -> Elements:
        res = Elements()
        for p in self.paths:
            res.add_node(p.start)
            res.add_node(p.end)
            res.add_edge(p.edge)
        return res

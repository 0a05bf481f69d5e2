from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from netstrat.graph.elements import Elements
from netstrat.history.difference import StepDifference


@dataclass
class Snapshot:
    """The diffable part of a graph state: active and colored elements."""
    active: Elements = field(default_factory=Elements)
    colored: Elements = field(default_factory=Elements)

    def compute_difference(self, other: Snapshot) -> StepDifference:
        """Difference which turns self into other."""
        return StepDifference(
            elements=self.active.compute_difference(other.active),
            colored=self.colored.compute_difference(other.colored),
        )

    def apply_difference(self, diff: StepDifference) -> Snapshot:
        active = self.active.copy()
        colored = self.colored.copy()
        if diff.elements is not None:
            active = active.apply_difference(diff.elements)
        if diff.colored is not None:
            colored = colored.apply_difference(diff.colored)
        return Snapshot(active=active, colored=colored)

    def to_dict(self) -> Dict[str, Any]:
        return {"active": self.active.to_dict(), "colored": self.colored.to_dict()}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Snapshot:
        return Snapshot(
            active=Elements.from_dict(data.get("active", {})),
            colored=Elements.from_dict(data.get("colored", {})),
        )


@dataclass
class Step:
    """
    One node of the history tree.

    difference is relative to the parent step. The root carries a full
    snapshot instead; other steps may carry one as well.
    """
    name: str
    difference: StepDifference = field(default_factory=StepDifference)
    snapshot: Optional[Snapshot] = None

    def __str__(self) -> str:
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "difference": self.difference.to_dict(),
            "snapshot": self.snapshot.to_dict() if self.snapshot is not None else None,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Step:
        snapshot = data.get("snapshot")
        return Step(
            name=data["name"],
            difference=StepDifference.from_dict(data.get("difference", {})),
            snapshot=Snapshot.from_dict(snapshot) if snapshot is not None else None,
        )

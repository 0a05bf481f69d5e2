"""
Step Differences
================
Plus/minus element sets describing how one graph snapshot turns into
another, and their composition.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from netstrat.graph.elements import Elements


@dataclass
class Difference:
    plus: Elements = field(default_factory=Elements)
    minus: Elements = field(default_factory=Elements)

    def __str__(self) -> str:
        return f"+: {self.plus}\n-: {self.minus}"

    def is_empty(self) -> bool:
        return self.plus.is_empty() and self.minus.is_empty()

    def squash(self, other: Difference) -> Difference:
        """Difference equivalent to applying self and then other."""
        return Difference(
            plus=self.plus.sub(other.minus).union(other.plus),
            minus=self.minus.sub(other.plus).union(other.minus),
        )

    def reverse(self) -> Difference:
        return Difference(plus=self.minus.copy(), minus=self.plus.copy())

    def to_dict(self) -> Dict[str, Any]:
        return {"plus": self.plus.to_dict(), "minus": self.minus.to_dict()}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Difference:
        return Difference(
            plus=Elements.from_dict(data.get("plus", {})),
            minus=Elements.from_dict(data.get("minus", {})),
        )


def _squash_optional(first: Optional[Difference], second: Optional[Difference]) -> Optional[Difference]:
    if first is None:
        return second
    if second is None:
        return first
    return first.squash(second)


@dataclass
class StepDifference:
    """
    Change between two history steps.

    elements tracks the active (not deleted) elements, colored tracks the
    selection. None means the part did not change.
    """
    elements: Optional[Difference] = None
    colored: Optional[Difference] = None

    def is_empty(self) -> bool:
        return all(d is None or d.is_empty() for d in (self.elements, self.colored))

    def squash(self, other: StepDifference) -> StepDifference:
        return StepDifference(
            elements=_squash_optional(self.elements, other.elements),
            colored=_squash_optional(self.colored, other.colored),
        )

    def reverse(self) -> StepDifference:
        return StepDifference(
            elements=self.elements.reverse() if self.elements is not None else None,
            colored=self.colored.reverse() if self.colored is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "elements": self.elements.to_dict() if self.elements is not None else None,
            "colored": self.colored.to_dict() if self.colored is not None else None,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> StepDifference:
        elements = data.get("elements")
        colored = data.get("colored")
        return StepDifference(
            elements=Difference.from_dict(elements) if elements is not None else None,
            colored=Difference.from_dict(colored) if colored is not None else None,
        )

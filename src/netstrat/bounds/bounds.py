"""
Interval Arithmetic
===================
Closed integer intervals and ordered collections of them.

Why is this file needed?
------------------------
1. Loaded-range tracking: a paginated loader keeps a BoundsSet of epoch
   windows that are already fetched and merges new pages into it.
2. Scheduling: the difference between a requested range and the loaded
   ranges is what gets split into pages and downloaded.

Classes:
    Bounds: A single closed interval [lo, hi].
    BoundsSet: An immutable sequence of Bounds with union/diff operations.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional
import logging

from netstrat.errors import InvalidBoundsError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Bounds:
    """
    Closed integer interval [lo, hi].

    Equality is structural. The ordering operators implement a partial
    order by spatial position which treats "overlaps but starts before"
    the same as "strictly before"; subtract() depends on that.
    """
    lo: int
    hi: int

    def __post_init__(self) -> None:
        if self.lo > self.hi:
            raise InvalidBoundsError(f"Invalid bounds: lo ({self.lo}) > hi ({self.hi}).")

    def __repr__(self) -> str:
        return f"Bounds({self.lo}, {self.hi})"

    def compare(self, other: Bounds) -> int:
        """Returns -1, 1 or 0 following the spatial partial order."""
        if self.hi <= other.lo or (self.hi <= other.hi and self.lo <= other.lo):
            return -1
        if other.hi <= self.lo or (other.hi <= self.hi and other.lo <= self.lo):
            return 1
        return 0

    def __lt__(self, other: Bounds) -> bool:
        return self.compare(other) < 0

    def __gt__(self, other: Bounds) -> bool:
        return self.compare(other) > 0

    def __le__(self, other: Bounds) -> bool:
        return self.compare(other) <= 0

    def __ge__(self, other: Bounds) -> bool:
        return self.compare(other) >= 0

    def len(self) -> int:
        """Length as hi - lo, so a single point has length 0."""
        return self.hi - self.lo

    @property
    def length(self) -> int:
        return self.len()

    def contains(self, other: Bounds) -> bool:
        return self.lo <= other.lo and other.hi <= self.hi

    def intersects(self, other: Bounds) -> bool:
        return (
            other.contains(self)
            or self.lo <= other.lo <= self.hi
            or self.lo <= other.hi <= self.hi
        )

    def neighbours(self, other: Bounds) -> bool:
        return self.hi + 1 == other.lo or other.hi + 1 == self.lo

    def union(self, other: Bounds) -> Optional[Bounds]:
        """Merges two bounds into one if they touch, overlap or contain each other."""
        if not (
            self.contains(other)
            or other.contains(self)
            or self.intersects(other)
            or self.neighbours(other)
        ):
            return None

        return Bounds(min(self.lo, other.lo), max(self.hi, other.hi))

    def intersect(self, other: Bounds) -> Optional[Bounds]:
        """Common part of two bounds. Adjacent bounds do not intersect."""
        if not (self.intersects(other) or self.contains(other) or other.contains(self)):
            return None

        return Bounds(max(self.lo, other.lo), min(self.hi, other.hi))

    def subtract(self, other: Bounds) -> Optional[BoundsSet]:
        """
        Computes self minus other.

        Returns:
            None when nothing is left, otherwise a BoundsSet with one or
            two pieces.
        """
        if not self.intersects(other):
            return BoundsSet([self])

        if other.contains(self):
            return None

        if self < other:
            return BoundsSet([Bounds(self.lo, other.lo - 1)])

        if self > other:
            return BoundsSet([Bounds(other.hi + 1, self.hi)])

        if self.contains(other):
            # Split into the left and right remainders. Each recursive call
            # lands in one of the ordered branches above.
            res = BoundsSet()
            left = self.subtract(Bounds(other.lo, self.hi))
            if left is not None:
                res = res.concat(left)

            right = self.subtract(Bounds(self.lo, other.hi))
            if right is not None:
                res = res.concat(right)

            if len(res) == 0:
                return None

            return res

        return None


class BoundsSet:
    """
    Immutable sequence of Bounds.

    Every operation returns a new BoundsSet. Only union() guarantees a
    sorted, coalesced result.
    """

    __slots__ = ("_vals",)

    def __init__(self, vals: Iterable[Bounds] = ()) -> None:
        self._vals: tuple[Bounds, ...] = tuple(vals)

    def __repr__(self) -> str:
        return f"BoundsSet({list(self._vals)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoundsSet):
            return NotImplemented
        return self._vals == other._vals

    def __hash__(self) -> int:
        return hash(self._vals)

    def __len__(self) -> int:
        return len(self._vals)

    def __iter__(self) -> Iterator[Bounds]:
        return iter(self._vals)

    def __getitem__(self, idx: int) -> Bounds:
        return self._vals[idx]

    def vals(self) -> list[Bounds]:
        return list(self._vals)

    def len(self) -> int:
        return len(self._vals)

    def is_empty(self) -> bool:
        return not self._vals

    def concat(self, other: BoundsSet) -> BoundsSet:
        return BoundsSet(self._vals + other._vals)

    def sort(self) -> BoundsSet:
        """Stable sort by start, then end."""
        return BoundsSet(sorted(self._vals, key=lambda b: (b.lo, b.hi)))

    def left_edge(self) -> Optional[int]:
        if not self._vals:
            return None
        return self._vals[0].lo

    def union(self, other: BoundsSet) -> BoundsSet:
        """Concats, sorts and coalesces two bounds sequences."""
        merged: list[Bounds] = []
        for b in self.concat(other).sort():
            if not merged:
                merged.append(b)
                continue

            joined = merged[-1].union(b)
            if joined is not None:
                merged[-1] = joined
            else:
                merged.append(b)

        return BoundsSet(merged)

    merge = union

    def union_single(self, b: Bounds) -> BoundsSet:
        return self.union(BoundsSet([b]))

    merge_single = union_single

    def diff(self, other: BoundsSet) -> Optional[BoundsSet]:
        """
        Computes the parts of self which are not covered by other.

        Every bound of self is subtracted from every bound of other, then
        the pairwise intersections of those leftovers are kept: a region
        survives only if it is left over against more than one element
        of other. When no leftovers intersect, the leftovers themselves
        are the result.
        """
        if len(other) == 0:
            return self

        differences: list[Bounds] = []
        for s in self._vals:
            for o in other._vals:
                left = s.subtract(o)
                if left is not None:
                    differences.extend(left)

        intersections: list[Bounds] = []
        for i, first in enumerate(differences):
            for second in differences[i + 1:]:
                common = first.intersect(second)
                if common is not None and common not in intersections:
                    intersections.append(common)

        result = intersections if intersections else differences
        logger.debug(f"diff of {self} and {other}: {result}")

        if not result:
            return None

        return BoundsSet(result)

    def subtract(self, other: BoundsSet) -> Optional[BoundsSet]:
        """Exact set difference, removing each bound of other in turn."""
        if len(other) == 0:
            return self

        res: list[Bounds] = list(self._vals)
        for o in other._vals:
            curr: list[Bounds] = []
            for b in res:
                left = b.subtract(o)
                if left is not None:
                    curr.extend(left)
            res = curr

        if not res:
            return None

        return BoundsSet(res)

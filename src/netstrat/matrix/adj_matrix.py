"""
Adjacency Matrix Views
======================
Matrix powers, reachability and cone distances derived from the adjacency
matrix of the graph state.

Why is this file needed?
------------------------
1. Analysis: the n-th power counts walks of length n between nodes, the
   reach matrix marks nodes reachable within a number of steps and the cone
   distance compares reachability profiles of two nodes.
2. Caching: powers are computed by repeated multiplication, so recent
   results are kept in small LRU caches.

Classes:
    MatrixElements: Cells, rows and columns to highlight in a matrix view.
    AdjMatrix: The adjacency matrix with cached derived matrices.
"""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional
import logging

import numpy as np

from netstrat.config import MATRIX_CACHE_CAPACITY

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


@dataclass
class MatrixElements:
    elements: set[tuple[int, int]] = field(default_factory=set)
    rows: set[int] = field(default_factory=set)
    cols: set[int] = field(default_factory=set)


class LRUCache:
    """Bounded mapping which evicts the least recently used key."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"Cache capacity must be at least 1, got {capacity}.")
        self.capacity = capacity
        self._data: OrderedDict[int, npt.NDArray[np.int64]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: int) -> bool:
        return key in self._data

    def keys(self) -> list[int]:
        return list(self._data.keys())

    def get(self, key: int) -> Optional[npt.NDArray[np.int64]]:
        if key not in self._data:
            return None
        self._data.move_to_end(key)
        return self._data[key]

    def put(self, key: int, value: npt.NDArray[np.int64]) -> None:
        if key in self._data:
            self._data.move_to_end(key)
        elif len(self._data) >= self.capacity:
            evicted, _ = self._data.popitem(last=False)
            logger.debug(f"cache reached max size; evicted key {evicted}")
        self._data[key] = value

    def clear(self) -> None:
        self._data.clear()


class AdjMatrix:
    """
    Adjacency matrix of a graph state.

    Cell [i, j] counts the active edges from node index i to node index j.
    Rows and columns of removed indices stay in place and are all zero.
    """

    def __init__(
        self,
        m: npt.NDArray[np.int64],
        colored: Optional[MatrixElements] = None,
        deleted: Optional[MatrixElements] = None,
        longest_path: int = 0,
        cache_capacity: int = MATRIX_CACHE_CAPACITY,
    ) -> None:
        """
        Args:
            m: Square adjacency matrix.
            colored: Cells and lines belonging to colored elements.
            deleted: Cells and lines belonging to deleted elements.
            longest_path: Step count used by reach_matrix(-1).
            cache_capacity: Capacity of each of the two caches.
        """
        m = np.asarray(m, dtype=np.int64)
        if m.ndim != 2 or m.shape[0] != m.shape[1]:
            raise ValueError(f"Expected a square matrix, got shape {m.shape}.")

        self.m = m
        self.colored = colored if colored is not None else MatrixElements()
        self.deleted = deleted if deleted is not None else MatrixElements()
        self.longest_path = longest_path
        self._powers = LRUCache(cache_capacity)
        self._reaches = LRUCache(cache_capacity)

    @property
    def size(self) -> int:
        return self.m.shape[0]

    def uni_matrix(self) -> npt.NDArray[np.int64]:
        """Identity matrix, the zeroth power."""
        return np.eye(self.size, dtype=np.int64)

    def power(self, n: int) -> npt.NDArray[np.int64]:
        """
        Computes m^n by multiplying m by itself.

        Args:
            n: Exponent, must not be negative.

        Returns:
            A new array. Cached results are copied so callers cannot alter the cache.
        """
        if n < 0:
            raise ValueError(f"Matrix power must not be negative, got {n}.")
        if n == 0:
            return self.uni_matrix()
        if n == 1:
            return self.m.copy()

        cached = self._powers.get(n)
        if cached is not None:
            logger.debug(f"got adj matrix power {n} from cache")
            return cached.copy()

        logger.debug(f"computing adj matrix power {n}")
        res = self.m.copy()
        for _ in range(1, n):
            res = res @ self.m

        self._powers.put(n, res)
        return res.copy()

    def reach_matrix(self, steps: int = -1) -> npt.NDArray[np.int64]:
        """
        Marks which nodes reach which within the given number of steps.

        Args:
            steps: Max walk length, -1 uses the longest path of the graph.

        Returns:
            0/1 matrix of I + m + m^2 + ... + m^steps.
        """
        if steps == -1:
            steps = self.longest_path
        if steps < 0:
            raise ValueError(f"Reach steps must be -1 or non-negative, got {steps}.")

        cached = self._reaches.get(steps)
        if cached is not None:
            logger.debug(f"got reach matrix for {steps} steps from cache")
            return cached.copy()

        # One multiplication per step; every intermediate power goes to the cache
        acc = self.uni_matrix()
        running = self.uni_matrix()
        for k in range(1, steps + 1):
            running = running @ self.m
            if k > 1:
                self._powers.put(k, running.copy())
            acc = acc + running

        reach = (acc != 0).astype(np.int64)
        self._reaches.put(steps, reach)
        return reach.copy()

    def cone_distance_matrix(
        self, reach: Optional[npt.NDArray[np.int64]] = None
    ) -> npt.NDArray[np.int64]:
        """
        Pairwise distance between the reachability rows of two nodes.

        D[i, j] is the number of nodes reachable from exactly one of i and j.
        """
        if reach is None:
            reach = self.reach_matrix(-1)
        reach = np.asarray(reach, dtype=np.int64)

        return np.abs(reach[:, np.newaxis, :] - reach[np.newaxis, :, :]).sum(axis=2)

    def cached_powers(self) -> list[int]:
        return self._powers.keys()

    def cached_reaches(self) -> list[int]:
        return self._reaches.keys()

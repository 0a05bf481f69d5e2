"""
Pagination
==========
Splits a BoundsSet into pages that respect the per-request item limit of
the data source.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
import logging

from netstrat.bounds.bounds import BoundsSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Page:
    """A pair of start and end where the start is included and the end is not."""
    start: int
    end: int


@dataclass
class Pages:
    vals: list[Page] = field(default_factory=list)
    step: int = 1
    curr_page_idx: int = 0

    @classmethod
    def new(cls, bounds: BoundsSet, step: int, limit: int) -> Optional[Pages]:
        """
        Creates pages from bounds.

        Args:
            bounds: Ranges to split, consumed in their given order.
            step: Distance between two neighbouring items (e.g. sample interval in ms).
            limit: Max number of items per page.

        Returns:
            None if step or limit is smaller than 1.
        """
        logger.debug(f"initializing new pages; bounds: {bounds}; step: {step}; limit: {limit}")

        if step < 1:
            logger.error("invalid step. Step must be greater than 0")
            return None

        if limit < 1:
            logger.error("invalid limit. Limit must be greater than 0")
            return None

        page_len = step * limit
        vals: list[Page] = []
        for b in bounds:
            if b.len() <= page_len:
                logger.debug(f"not splitting bounds to pages; bounds: {b}; step: {step}")
                vals.append(Page(b.lo, b.hi))
                continue

            page_start = b.lo
            while True:
                page_end = min(page_start + page_len, b.hi)
                vals.append(Page(page_start, page_end))
                if page_end == b.hi:
                    break
                page_start = page_end

        logger.debug(f"computed pages: {vals}")

        return cls(vals=vals, step=step)

    def __len__(self) -> int:
        return len(self.vals)

    def len(self) -> int:
        return len(self.vals)

    def next(self) -> Optional[Page]:
        if self.curr_page_idx >= len(self.vals):
            return None

        page = self.vals[self.curr_page_idx]
        self.curr_page_idx += 1
        return page

    def page_size(self, page: Page) -> int:
        """Number of items in a page."""
        return (page.end - page.start) // self.step

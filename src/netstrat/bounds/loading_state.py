from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
import logging

from netstrat.bounds.bounds import BoundsSet
from netstrat.bounds.pages import Page, Pages

logger = logging.getLogger(__name__)


@dataclass
class LoadingState:
    """Tracks download progress over a sequence of pages."""
    pages: Pages = field(default_factory=Pages)
    loaded_pages: int = 0
    curr_page: Page = Page(0, 0)
    has_error: bool = False

    @classmethod
    def new(cls, bounds: BoundsSet, step: int, per_page_limit: int) -> Optional[LoadingState]:
        logger.debug(
            f"initializing LoadingState: bounds: {bounds}; step: {step}; per page limit: {per_page_limit}"
        )

        pages = Pages.new(bounds, step, per_page_limit)
        if pages is None:
            return None

        return cls(pages=pages)

    def left_edge(self) -> int:
        return self.curr_page.start

    def get_next_page(self) -> Optional[Page]:
        page = self.pages.next()
        if page is not None:
            self.curr_page = page
        return page

    def inc_loaded_pages(self, cnt: int) -> None:
        self.loaded_pages += cnt

    def progress(self) -> float:
        """Share of loaded pages, 1.0 when there is nothing to load."""
        if len(self.pages) == 0:
            return 1.0

        return self.loaded_pages / len(self.pages)

    def page_size(self) -> int:
        return self.pages.page_size(self.curr_page)

    def total_pages(self) -> int:
        return len(self.pages)

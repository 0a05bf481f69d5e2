from netstrat.bounds.bounds import Bounds, BoundsSet
from netstrat.bounds.pages import Page, Pages
from netstrat.bounds.loading_state import LoadingState

__all__ = ["Bounds", "BoundsSet", "Page", "Pages", "LoadingState"]

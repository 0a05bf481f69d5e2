"""
Error Types
===========
Typed errors raised by the bounds and graph engines.

Plain "nothing there" results (no merge possible, nothing left after a
subtraction, no next page) are returned as None instead.
"""


class NetstratError(Exception):
    """Base class for all netstrat errors."""


class InvalidBoundsError(NetstratError, ValueError):
    """Raised when a Bounds is built with lo > hi."""


class InvalidSettingsError(NetstratError, ValueError):
    """Raised when graph generation settings are inconsistent."""


class NodeNotFoundError(NetstratError, LookupError):
    """Raised when a node name or index does not resolve."""


class EdgeNotFoundError(NetstratError, LookupError):
    """Raised when an edge does not resolve."""


class CycleNotFoundError(NetstratError, IndexError):
    """Raised when a cycle index is out of range."""


class HistoryError(NetstratError):
    """Raised for unknown history steps."""


class DotParseError(NetstratError, ValueError):
    """Raised when DOT text cannot be turned into a graph."""

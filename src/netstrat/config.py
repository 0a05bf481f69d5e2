"""
Configuration & Constants
=========================
Central registry for the constants shared by the graph and matrix engines.

Why is this file needed?
------------------------
1. Naming: node name prefixes are written at generation time and read back
   when ini/fin sets are recomputed, so both sides must agree.
2. Rendering handoff: DOT colors and pen widths are the contract with the
   external Graphviz renderer.

Exports:
    PREFIX_INI (str): Name prefix of initial nodes.
    PREFIX_FIN (str): Name prefix of final nodes.
    MATRIX_CACHE_CAPACITY (int): Max number of cached matrix powers.
    LOGGER_NAME (str): Root of the package logger namespace.
"""

# Node name prefixes, joined to the original name with '_'
PREFIX_INI: str = "ini"
PREFIX_FIN: str = "fin"

# DOT edge pen width range
MAX_DOT_PENWIDTH: float = 5.0
MIN_DOT_PENWIDTH: float = 0.5

# DOT colors
COLOR_SELECTED: str = "red"
COLOR_DELETED: str = "gray"
COLOR_DEFAULT: str = "black"

# Per-map capacity of the matrix power / reach caches
MATRIX_CACHE_CAPACITY: int = 10

# Logging
LOGGER_NAME: str = "netstrat"
LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT: str = "%H:%M:%S"

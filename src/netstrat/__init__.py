"""
netstrat core engines.

Two independent engines with no knowledge of any GUI:

* bounds: integer interval sets used to track which time windows of
  paginated data are loaded, and the pagination helpers built on them.
* graph, matrix, history: a mutable directed graph with cones, cycles,
  diamond filtering, soft delete, DOT handoff, adjacency matrix powers and
  a branching history of edits.
"""
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

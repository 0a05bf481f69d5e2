"""
The GRAPH layer holds the mutable directed graph and everything derived from it:
generation from Settings, cones, cycles, the diamond filter, soft delete and the
DOT handoff format. Import State and Builder from their modules directly.
"""

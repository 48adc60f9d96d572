"""
Branch-and-bound search for turn-based resource-accumulation problems.

This package finds the best cumulative yield reachable within a fixed number
of turns, either by unlocking one-time rewards on a graph (one or more agents)
or by investing resources into production capacity. Independent instances
are solved in parallel worker processes.
"""

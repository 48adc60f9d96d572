"""
All-pairs shortest distances over a weighted location graph.

The reward-unlock search only ever needs true travel times between the
locations that carry a reward, so the topology is reduced to its metric
closure before (or while) searching. Distances are computed with a
numpy-vectorized Floyd-Warshall: one broadcasted minimum per pivot.
"""

import numpy as np


# Sentinel for "no path". Large enough to dominate any real distance while
# leaving headroom so that UNREACHABLE + UNREACHABLE does not wrap in int64.
UNREACHABLE = np.iinfo(np.int64).max // 4


def shortest_distances(edges):
    """
    Compute all-pairs shortest distances.

    Parameters:
        edges: sequence indexed by location; edges[i] is an iterable of
               (target, cost) pairs for the directed edges leaving i.

    Returns:
        np.ndarray of shape (n, n), dtype int64. dist[i, j] is the cheapest
        total cost from i to j, UNREACHABLE if there is no path.
    """
    n = len(edges)
    dist = np.full((n, n), UNREACHABLE, dtype=np.int64)
    np.fill_diagonal(dist, 0)
    for i, out in enumerate(edges):
        for target, cost in out:
            if cost < dist[i, target]:
                dist[i, target] = cost

    for k in range(n):
        via_k = dist[:, k:k + 1] + dist[k:k + 1, :]
        np.minimum(dist, via_k, out=dist)
    return dist


def reachable_from(dist, source):
    """Boolean mask of locations reachable from `source`."""
    return dist[source] < UNREACHABLE


def is_metric_closed(edges, dist=None):
    """
    True when every ordered pair of distinct locations is joined by a direct
    edge whose cost equals the shortest distance between them.

    On such a topology a walk never needs to pass through a location it does
    not stop at, which the reward-unlock search uses to skip detours.
    """
    n = len(edges)
    if dist is None:
        dist = shortest_distances(edges)
    for i, out in enumerate(edges):
        direct = {}
        for target, cost in out:
            if target not in direct or cost < direct[target]:
                direct[target] = cost
        for j in range(n):
            if j == i:
                continue
            if direct.get(j) != int(dist[i, j]):
                return False
    return True

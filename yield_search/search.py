"""
Public entry points for single-instance search.

    evaluate(instance, horizon) -> best yield
    solve(instance, horizon)    -> SearchResult with path and stats
"""

from collections import namedtuple

import numpy as np

from yield_search.driver import BranchAndBound, empty_stats
from yield_search.instances import RewardNetwork, RecipeBook
from yield_search.production import ProductionDomain
from yield_search.reward_unlock import RewardUnlockDomain

# Yields are reported as int64 in batch summaries.
INT64_MAX = int(np.iinfo(np.int64).max)

SearchResult = namedtuple("SearchResult", ["yield_", "path", "steps", "stats"])
"""
yield_: best yield found (exact unless stats['exhausted'])
path: list of Action records leading to it (the trailing idle turns are implicit)
steps: human-readable description of each action in `path`
stats: driver statistics (nodes_explored, pruned counts per filter, time, ...)
"""


class YieldOverflowError(ArithmeticError):
    """The instance can produce a yield wider than a signed 64-bit integer."""


def make_domain(instance, horizon):
    if isinstance(instance, RewardNetwork):
        return RewardUnlockDomain(instance, horizon)
    if isinstance(instance, RecipeBook):
        return ProductionDomain(instance, horizon)
    raise TypeError(f"Unsupported instance type: {type(instance).__name__}")


def check_yield_width(domain):
    ceiling = domain.yield_ceiling()
    if ceiling > INT64_MAX:
        raise YieldOverflowError(
            f"Yield ceiling {ceiling} for horizon {domain.horizon} does not fit in int64; "
            f"rates, capacities or the horizon are mis-scaled")


def solve(instance, horizon, policy=None, seed=None, budget=None, trace=None,
          verbose=False):
    """
    Branch-and-bound search for the best yield reachable within `horizon` turns.

    Parameters:
        instance: RewardNetwork or RecipeBook
        horizon: number of turns; <= 0 returns yield 0 without searching
        policy: PruningPolicy (default: every filter on)
        seed: if given, the action order at every node is shuffled with a
              numpy Generator seeded from it (the optimum does not change)
        budget: optional SearchBudget (max_nodes / time_limit)
        trace: optional callable(event, payload), see BranchAndBound
        verbose: print improvements

    Returns:
        SearchResult
    """
    domain = make_domain(instance, horizon)
    if horizon <= 0:
        return SearchResult(0, [], [], empty_stats())
    check_yield_width(domain)

    rng = np.random.default_rng(seed) if seed is not None else None
    driver = BranchAndBound(domain, policy=policy, budget=budget, rng=rng,
                            trace=trace, verbose=verbose)
    best, path, stats = driver.run()
    return SearchResult(best, path, [domain.describe(a) for a in path], stats)


def evaluate(instance, horizon, policy=None, seed=None, budget=None):
    """Best yield for `instance` within `horizon` turns."""
    return solve(instance, horizon, policy=policy, seed=seed, budget=budget).yield_

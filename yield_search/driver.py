"""
Depth-first branch-and-bound driver.

One driver runs one search over one domain. The domain owns a single mutable
state; every child is entered with domain.apply() and left with domain.undo()
inside try/finally, so the state is rewound on every exit path (leaf, prune,
empty expansion, exhausted budget).

Every node offers its idle value (the yield reached by doing nothing more
until the horizon) to the BestBound. That is the implicit wait action: a
branch that runs out of useful actions is still scored.
"""

import time
from dataclasses import dataclass
from typing import Optional

from yield_search.pruning import PruningPolicy, DominanceTable, FILTERS, node_filter, action_filter


class SearchBudgetExceeded(Exception):
    """Raised inside the recursion when the node or time budget runs out."""


@dataclass
class SearchBudget:
    """Per-search limits; when hit, the best yield so far is returned as approximate."""
    max_nodes: Optional[int] = None
    time_limit: Optional[float] = None  # seconds


class BestBound:
    """Best yield found so far and the path that reached it. Never decreases."""

    def __init__(self, value=0):
        self.value = value
        self.path = []

    def offer(self, value, path):
        if value > self.value:
            self.value = value
            self.path = list(path)
            return True
        return False


def empty_stats():
    return {
        'nodes_explored': 0,
        'leaves': 0,
        'improvements': 0,
        'overshoot': 0,
        'pruned': {name: 0 for name in FILTERS},
        'dominance_entries': 0,
        'time': 0.0,
        'exhausted': False,
    }


class BranchAndBound:
    """
    Parameters:
        domain: RewardUnlockDomain or ProductionDomain
        policy: PruningPolicy (default: every filter on)
        budget: optional SearchBudget
        rng: optional numpy Generator; when given, the action order at every
             node is shuffled with it
        trace: optional callable(event, payload) called with 'improve' on
               every bound improvement and 'leaf' on every leaf
        verbose: print every improvement
    """

    def __init__(self, domain, policy=None, budget=None, rng=None, trace=None,
                 verbose=False):
        self.domain = domain
        self.policy = policy if policy is not None else PruningPolicy()
        self.budget = budget
        self.rng = rng
        self.trace = trace
        self.verbose = verbose

        self.best = BestBound()
        self.table = DominanceTable() if self.policy.dominance else None
        self.stats = empty_stats()
        self.state = None
        self._t_start = None

    def run(self):
        """Search to completion (or budget). Returns (best_yield, path, stats)."""
        self._t_start = time.time()
        self.state = self.domain.initial_state()
        try:
            self._expand(self.state)
        except SearchBudgetExceeded:
            self.stats['exhausted'] = True
            if self.verbose:
                print(f"Budget exhausted after {self.stats['nodes_explored']} nodes, "
                      f"returning best yield {self.best.value}")

        self.stats['time'] = time.time() - self._t_start
        if self.table is not None:
            self.stats['dominance_entries'] = len(self.table)
        return self.best.value, list(self.best.path), self.stats

    def _check_budget(self):
        budget = self.budget
        nodes = self.stats['nodes_explored']
        if budget.max_nodes is not None and nodes > budget.max_nodes:
            raise SearchBudgetExceeded()
        if (budget.time_limit is not None and nodes % 256 == 0
                and time.time() - self._t_start > budget.time_limit):
            raise SearchBudgetExceeded()

    def _expand(self, state):
        domain = self.domain
        stats = self.stats

        # Only reachable with the horizon filter off.
        if domain.past_horizon(state):
            stats['overshoot'] += 1
            return

        stats['nodes_explored'] += 1
        if self.budget is not None:
            self._check_budget()

        value = domain.idle_yield(state)
        if self.best.offer(value, state.history):
            stats['improvements'] += 1
            if self.verbose:
                print(f"New best yield: {value} (nodes: {stats['nodes_explored']})")
            if self.trace is not None:
                self.trace('improve', {
                    'yield': value,
                    'path': [domain.describe(a) for a in state.history],
                    'nodes_explored': stats['nodes_explored'],
                })

        if domain.is_leaf(state):
            stats['leaves'] += 1
            if self.trace is not None:
                self.trace('leaf', {'yield': value, 'depth': len(state.history)})
            return

        pruned_by = node_filter(self.policy, domain, state, self.table, self.best.value)
        if pruned_by is not None:
            stats['pruned'][pruned_by] += 1
            return

        actions = domain.actions(state)
        if self.rng is not None and len(actions) > 1:
            actions = [actions[i] for i in self.rng.permutation(len(actions))]

        for action in actions:
            rejected_by = action_filter(self.policy, domain, state, action)
            if rejected_by is not None:
                stats['pruned'][rejected_by] += 1
                continue
            token = domain.apply(state, action)
            try:
                self._expand(state)
            finally:
                domain.undo(state, token)

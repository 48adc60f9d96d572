"""
Pruning policy consulted by the branch-and-bound driver.

Each filter is an independent toggle. Filters only cut search time: with any
subset enabled the driver reports the same optimum as with none.

  horizon     drop actions that would push the acting turn past the horizon
  repetition  drop moves that walk back onto the agent's trail (and, on a
              metric-closed topology, a move right after a move); drop
              purchases that were already affordable on the previous idle turn
  saturation  fast-forward nodes with nothing left to gain; drop actions that
              can no longer raise the yield
  dominance   prune nodes whose control-state fingerprint was already reached
              with an equal or better yield
  bound       prune nodes whose optimistic upper bound cannot beat the best
              yield found so far
"""

from dataclasses import dataclass, replace

FILTERS = ('horizon', 'repetition', 'saturation', 'dominance', 'bound')


@dataclass(frozen=True)
class PruningPolicy:
    horizon: bool = True
    repetition: bool = True
    saturation: bool = True
    dominance: bool = True
    bound: bool = True

    @classmethod
    def none(cls):
        return cls(**{name: False for name in FILTERS})

    @classmethod
    def only(cls, *names):
        _check_names(names)
        return cls(**{name: name in names for name in FILTERS})

    def without(self, *names):
        _check_names(names)
        return replace(self, **{name: False for name in names})

    @property
    def enabled(self):
        return tuple(name for name in FILTERS if getattr(self, name))


def _check_names(names):
    unknown = [n for n in names if n not in FILTERS]
    if unknown:
        raise ValueError(
            f"Unknown pruning filter(s): {', '.join(unknown)}. "
            f"Choose from: {', '.join(FILTERS)}")


class DominanceTable:
    """
    Best yield seen per control-state fingerprint.

    Exact only for domains whose future gains depend on the fingerprint alone
    (never on the yield accumulated so far). The table is owned by a single
    search and must not be shared between concurrently running branches.
    """

    def __init__(self):
        self._best = {}

    def admit(self, fingerprint, value):
        """Record `value` at `fingerprint`; False if an equal or better one was seen."""
        seen = self._best.get(fingerprint)
        if seen is not None and value <= seen:
            return False
        self._best[fingerprint] = value
        return True

    def __len__(self):
        return len(self._best)


def node_filter(policy, domain, state, table, best):
    """Name of the node-level filter that prunes `state`, or None."""
    if policy.saturation and domain.saturated(state):
        return 'saturation'
    if policy.dominance and table is not None and domain.supports_dominance:
        if not table.admit(domain.fingerprint(state), domain.idle_yield(state)):
            return 'dominance'
    if policy.bound and domain.upper_bound(state, best) <= best:
        return 'bound'
    return None


def action_filter(policy, domain, state, action):
    """Name of the action-level filter that rejects `action`, or None."""
    if policy.horizon and domain.exceeds_horizon(state, action):
        return 'horizon'
    if policy.repetition and domain.repeats(state, action):
        return 'repetition'
    if policy.saturation and domain.pointless(state, action):
        return 'saturation'
    return None

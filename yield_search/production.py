"""
Production-capacity search domain.

Every turn the agent either buys one unit of capacity it can afford or idles.
The cost is paid at the start of the turn, every unit of existing capacity
then produces one unit of its kind, and only after that is the new unit
added. Yield is the final stock of the RecipeBook's yield kind.
"""

import math

from yield_search.actions import Action, PRODUCE, IDLE, describe

IDLE_ACTION = Action(IDLE, 0, None, 1, 0)


def lead_times(book):
    """
    Minimum remaining turns (counting the purchase turn) for one more unit of
    each kind to still raise the final yield; math.inf if it never can.

    A yield-kind unit bought with r turns left produces r - 1, so it needs
    r >= 2. A unit of kind k first produces at the end of the next turn, so
    its output can be spent two turns after purchase: lead[k] is the smallest
    lead[j] + 2 over the kinds j whose recipe consumes k.
    """
    n = len(book.kinds)
    lead = [math.inf] * n
    lead[book.yield_kind] = 2
    changed = True
    while changed:
        changed = False
        for k in range(n):
            for j in range(n):
                if book.costs[j][k] > 0 and lead[j] + 2 < lead[k]:
                    lead[k] = lead[j] + 2
                    changed = True
    return lead


def _affordable(stock, cost):
    for have, need in zip(stock, cost):
        if have < need:
            return False
    return True


class ProductionState:
    """Mutable search state shared by every branch of one search."""

    __slots__ = ('turn', 'resources', 'capacity', 'deferred', 'history')

    def __init__(self, initial_capacity):
        self.turn = 0
        self.resources = [0] * len(initial_capacity)
        self.capacity = list(initial_capacity)
        # Bit set of kinds that were affordable on the idle turn just taken.
        self.deferred = 0
        self.history = []

    def snapshot(self):
        return (self.turn, tuple(self.resources), tuple(self.capacity),
                self.deferred, tuple(self.history))


class ProductionDomain:
    """Action generator and pruning hooks for a RecipeBook."""

    # The future depends on resource stocks, so two states with equal
    # control data can still have different futures.
    supports_dominance = False

    def __init__(self, book, horizon):
        self.book = book
        self.horizon = horizon
        self.n = len(book.kinds)
        self.costs = [list(row) for row in book.costs]
        self.yield_kind = book.yield_kind
        # Most of each resource that a single purchase can spend.
        self.max_spend = [max(row[r] for row in self.costs) for r in range(self.n)]
        self.lead = lead_times(book)
        self.useful = [k for k in range(self.n) if self.lead[k] != math.inf]
        # Closest to the yield kind first; kinds that can never matter last.
        self.order = sorted(range(self.n), key=lambda k: (self.lead[k], -k))

    def initial_state(self):
        return ProductionState(self.book.initial_capacity)

    def _affordable_mask(self, stock):
        mask = 0
        for k in range(self.n):
            if _affordable(stock, self.costs[k]):
                mask |= 1 << k
        return mask

    # ------------------------------------------------------------------
    # Action generation
    # ------------------------------------------------------------------

    def actions(self, state):
        stock = state.resources
        result = [Action(PRODUCE, 0, k, 1, 0)
                  for k in self.order if _affordable(stock, self.costs[k])]
        result.append(IDLE_ACTION)
        return result

    def apply(self, state, action):
        token = (action, tuple(state.resources), state.deferred)
        stock = state.resources
        capacity = state.capacity
        if action.kind == PRODUCE:
            cost = self.costs[action.target]
            for r in range(self.n):
                stock[r] += capacity[r] - cost[r]
            capacity[action.target] += 1
            state.deferred = 0
        else:
            state.deferred = self._affordable_mask(stock)
            for r in range(self.n):
                stock[r] += capacity[r]
        state.turn += 1
        state.history.append(action)
        return token

    def undo(self, state, token):
        action, resources, deferred = token
        if action.kind == PRODUCE:
            state.capacity[action.target] -= 1
        state.resources[:] = resources
        state.deferred = deferred
        state.turn -= 1
        state.history.pop()

    # ------------------------------------------------------------------
    # Driver hooks
    # ------------------------------------------------------------------

    def past_horizon(self, state):
        return state.turn > self.horizon

    def is_leaf(self, state):
        return state.turn >= self.horizon

    def idle_yield(self, state):
        y = self.yield_kind
        return state.resources[y] + state.capacity[y] * (self.horizon - state.turn)

    def exceeds_horizon(self, state, action):
        return state.turn + action.cost > self.horizon

    def repeats(self, state, action):
        """Buying a kind that was already affordable on the idle turn before."""
        return action.kind == PRODUCE and bool(state.deferred & (1 << action.target))

    def _capped(self, state, kind):
        return kind != self.yield_kind and state.capacity[kind] >= self.max_spend[kind]

    def saturated(self, state):
        remaining = self.horizon - state.turn
        for k in self.useful:
            if remaining >= self.lead[k] and not self._capped(state, k):
                return False
        return True

    def pointless(self, state, action):
        if action.kind != PRODUCE:
            return False
        kind = action.target
        if self.horizon - state.turn < self.lead[kind]:
            return True
        return self._capped(state, kind)

    def fingerprint(self, state):
        return None

    def upper_bound(self, state, best=None):
        """
        Cheap bound first (one more yield unit bought every remaining turn);
        if that cannot prune, a relaxed replay in which every affordable
        useful kind is bought every turn and nothing is ever paid.
        """
        y = self.yield_kind
        remaining = self.horizon - state.turn
        quick = (state.resources[y] + state.capacity[y] * remaining
                 + remaining * (remaining - 1) // 2)
        if best is None or quick <= best:
            return quick

        stock = list(state.resources)
        capacity = list(state.capacity)
        for _ in range(remaining):
            bought = [k for k in self.useful if _affordable(stock, self.costs[k])]
            for r in range(self.n):
                stock[r] += capacity[r]
            for k in bought:
                capacity[k] += 1
        return min(quick, stock[y])

    def yield_ceiling(self):
        horizon = max(self.horizon, 0)
        y = self.yield_kind
        return self.book.initial_capacity[y] * horizon + horizon * (horizon - 1) // 2

    def describe(self, action):
        return describe(action, self.book.kinds)

"""
Reward-unlock search domain.

One or more agents start at the network's start location at turn 0. The
acting agent is always the one with the smallest turn counter (lowest index on
ties), so the joint schedule is explored in time order and a reward can only
be consumed once across all agents. Unlocking location i at turn t costs one
turn and credits rates[i] * (horizon - t - 1) immediately.

A single UnlockState is mutated in place for the whole search; apply() returns
a snapshot token and undo() restores it.
"""

from yield_search.actions import Action, MOVE, UNLOCK, WAIT, describe
from yield_search.topology import shortest_distances, is_metric_closed


class UnlockState:
    """Mutable search state shared by every branch of one search."""

    __slots__ = ('turns', 'locations', 'trails', 'consumed', 'yield_', 'history')

    def __init__(self, agents, start):
        self.turns = [0] * agents
        self.locations = [start] * agents
        # Bit set of locations each agent stood on since its last unlock.
        self.trails = [1 << start] * agents
        # Bit set of unlocked reward locations.
        self.consumed = 0
        self.yield_ = 0
        self.history = []

    def acting_agent(self):
        turns = self.turns
        return turns.index(min(turns))

    def snapshot(self):
        """Comparable copy of every field, used by tests and debugging."""
        return (tuple(self.turns), tuple(self.locations), tuple(self.trails),
                self.consumed, self.yield_, tuple(self.history))


class RewardUnlockDomain:
    """Action generator and pruning hooks for a RewardNetwork."""

    # Future gains depend only on (turns, locations, trails, consumed),
    # never on the yield collected so far.
    supports_dominance = True

    def __init__(self, network, horizon):
        self.network = network
        self.horizon = horizon
        self.rates = network.rates
        self.edges = network.edges
        dist = shortest_distances(network.edges)
        self.closed = is_metric_closed(network.edges, dist)
        self.dist = dist.tolist()
        self.sources = network.reward_locations
        self.all_sources = 0
        for s in self.sources:
            self.all_sources |= 1 << s

    def initial_state(self):
        return UnlockState(self.network.agents, self.network.start)

    # ------------------------------------------------------------------
    # Action generation
    # ------------------------------------------------------------------

    def _arrival_value(self, state, location, turn):
        """Gain available by unlocking `location` right after arriving at `turn`."""
        if state.consumed & (1 << location):
            return 0
        return max(0, self.rates[location] * (self.horizon - turn - 1))

    def actions(self, state):
        horizon = self.horizon
        agent = state.acting_agent()
        location = state.locations[agent]
        turn = state.turns[agent]

        result = []
        rate = self.rates[location]
        if rate > 0 and not state.consumed & (1 << location):
            result.append(Action(UNLOCK, agent, location, 1, rate * (horizon - turn - 1)))

        moves = [Action(MOVE, agent, target, cost, 0) for target, cost in self.edges[location]]
        moves.sort(key=lambda m: -self._arrival_value(state, m.target, turn + m.cost))
        result.extend(moves)

        others_busy = any(t < horizon for i, t in enumerate(state.turns) if i != agent)
        if others_busy:
            result.append(Action(WAIT, agent, None, horizon - turn, 0))
        return result

    def apply(self, state, action):
        agent = action.agent
        token = (action, state.turns[agent], state.locations[agent], state.trails[agent])
        if action.kind == UNLOCK:
            state.consumed |= 1 << action.target
            state.yield_ += action.gain
            state.trails[agent] = 1 << action.target
        elif action.kind == MOVE:
            state.locations[agent] = action.target
            state.trails[agent] |= 1 << action.target
        state.turns[agent] += action.cost
        state.history.append(action)
        return token

    def undo(self, state, token):
        action, turn, location, trail = token
        agent = action.agent
        if action.kind == UNLOCK:
            state.consumed &= ~(1 << action.target)
            state.yield_ -= action.gain
        state.turns[agent] = turn
        state.locations[agent] = location
        state.trails[agent] = trail
        state.history.pop()

    # ------------------------------------------------------------------
    # Driver hooks
    # ------------------------------------------------------------------

    def past_horizon(self, state):
        return max(state.turns) > self.horizon

    def is_leaf(self, state):
        return min(state.turns) >= self.horizon

    def idle_yield(self, state):
        # Unlock gains are credited up front, so stopping now keeps the yield.
        return state.yield_

    def exceeds_horizon(self, state, action):
        return state.turns[action.agent] + action.cost > self.horizon

    def repeats(self, state, action):
        """Move back onto the agent's trail, or (closed topology) a move after a move."""
        if action.kind != MOVE:
            return False
        trail = state.trails[action.agent]
        if trail & (1 << action.target):
            return True
        # More than one bit set means the agent's last action was a move.
        return self.closed and trail & (trail - 1) != 0

    def saturated(self, state):
        return state.consumed == self.all_sources

    def pointless(self, state, action):
        """On a closed topology, a move whose destination has nothing left to unlock in time."""
        if action.kind != MOVE or not self.closed:
            return False
        arrival = state.turns[action.agent] + action.cost
        return self._arrival_value(state, action.target, arrival) == 0

    def fingerprint(self, state):
        # Agents are interchangeable, so the per-agent tuples are sorted.
        return (state.consumed,
                tuple(sorted(zip(state.turns, state.locations, state.trails))))

    def upper_bound(self, state, best=None):
        horizon = self.horizon
        consumed = state.consumed
        active = [(t, loc) for t, loc in zip(state.turns, state.locations) if t < horizon]
        bound = state.yield_
        for source in self.sources:
            if consumed & (1 << source):
                continue
            turns_left = 0
            for turn, location in active:
                left = horizon - 1 - turn - self.dist[location][source]
                if left > turns_left:
                    turns_left = left
            bound += self.rates[source] * turns_left
        return bound

    def yield_ceiling(self):
        """Largest yield any schedule could reach; used for the width check."""
        return sum(self.rates) * max(self.horizon, 0)

    def describe(self, action):
        return describe(action, self.network.locations)

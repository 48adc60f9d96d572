"""
Immutable problem instances.

An instance is built once, validated at construction and then shared
read-only by every branch of a search (and pickled as-is to worker
processes by the scheduler).

  - RewardNetwork: agents walk a weighted graph and unlock one-time rewards.
  - RecipeBook: a single agent buys production capacity with resources.
"""

from dataclasses import dataclass
from typing import Tuple

from yield_search.topology import UNREACHABLE, shortest_distances, reachable_from


@dataclass(frozen=True)
class RewardNetwork:
    """
    Locations with a per-turn reward rate, joined by directed weighted edges.

    edges[i] holds (target, cost) pairs; costs are turns and must be >= 1.
    Unlocking location i at turn t credits rates[i] * (horizon - t - 1).
    """
    locations: Tuple[str, ...]
    rates: Tuple[int, ...]
    edges: Tuple[Tuple[Tuple[int, int], ...], ...]
    start: int = 0
    agents: int = 1
    name: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'locations', tuple(self.locations))
        object.__setattr__(self, 'rates', tuple(int(r) for r in self.rates))
        object.__setattr__(self, 'edges', tuple(
            tuple((int(t), int(c)) for t, c in out) for out in self.edges
        ))
        self._validate()

    def _validate(self):
        n = len(self.locations)
        if n == 0:
            raise ValueError("RewardNetwork needs at least one location")
        if len(self.rates) != n or len(self.edges) != n:
            raise ValueError(
                f"Length mismatch: {n} locations, {len(self.rates)} rates, "
                f"{len(self.edges)} edge lists"
            )
        if not 0 <= self.start < n:
            raise ValueError(f"Start index {self.start} out of range [0, {n})")
        if self.agents < 1:
            raise ValueError(f"agents must be >= 1, got {self.agents}")
        for i, rate in enumerate(self.rates):
            if rate < 0:
                raise ValueError(f"Negative rate {rate} at {self.locations[i]}")
        for i, out in enumerate(self.edges):
            for target, cost in out:
                if not 0 <= target < n:
                    raise ValueError(
                        f"Edge {self.locations[i]} -> {target} points outside the network")
                if cost < 1:
                    raise ValueError(
                        f"Edge {self.locations[i]} -> {self.locations[target]} "
                        f"has cost {cost}; move costs must be >= 1")

        reachable = reachable_from(shortest_distances(self.edges), self.start)
        for i, rate in enumerate(self.rates):
            if rate > 0 and not reachable[i]:
                raise ValueError(
                    f"Reward location {self.locations[i]} is unreachable "
                    f"from {self.locations[self.start]}")

    @property
    def reward_locations(self):
        return [i for i, rate in enumerate(self.rates) if rate > 0]

    def index(self, location_name):
        return self.locations.index(location_name)


@dataclass(frozen=True)
class RecipeBook:
    """
    Production recipes: costs[k][r] units of resource r buy one unit of
    capacity of kind k. Each unit of capacity of kind k produces one unit of
    resource k per turn. Yield is the final stock of `yield_kind`.
    """
    kinds: Tuple[str, ...]
    costs: Tuple[Tuple[int, ...], ...]
    yield_kind: int
    initial_capacity: Tuple[int, ...]
    name: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'kinds', tuple(self.kinds))
        object.__setattr__(self, 'costs', tuple(
            tuple(int(c) for c in row) for row in self.costs
        ))
        object.__setattr__(self, 'initial_capacity',
                           tuple(int(c) for c in self.initial_capacity))
        self._validate()

    def _validate(self):
        n = len(self.kinds)
        if n == 0:
            raise ValueError("RecipeBook needs at least one kind")
        if len(self.costs) != n or any(len(row) != n for row in self.costs):
            raise ValueError(f"costs must be a {n}x{n} table (one recipe per kind)")
        if not 0 <= self.yield_kind < n:
            raise ValueError(f"yield_kind {self.yield_kind} out of range [0, {n})")
        if len(self.initial_capacity) != n:
            raise ValueError(
                f"initial_capacity has {len(self.initial_capacity)} entries, expected {n}")
        for k, row in enumerate(self.costs):
            if any(c < 0 for c in row):
                raise ValueError(f"Negative cost in recipe for {self.kinds[k]}")
            if row[self.yield_kind] > 0:
                raise ValueError(
                    f"Recipe for {self.kinds[k]} spends the yield kind "
                    f"{self.kinds[self.yield_kind]}")
        if any(c < 0 for c in self.initial_capacity):
            raise ValueError("Negative initial capacity")
        if sum(self.initial_capacity) == 0:
            raise ValueError("initial_capacity is all zero; nothing can ever be produced")

    def index(self, kind_name):
        return self.kinds.index(kind_name)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def network_from_tunnels(rates, tunnels, start, agents=1, name="", compress=True):
    """
    Build a RewardNetwork from named locations joined by unit-cost tunnels.

    Parameters:
        rates: dict location_name -> rate (insertion order fixes the indices)
        tunnels: dict location_name -> iterable of neighbour names; tunnels
                 are made bidirectional
        start: name of the start location
        agents: number of agents walking the network
        name: instance name
        compress: reduce the result to its metric closure over the start and
                  the reward-bearing locations (see compress_network)
    """
    names = list(rates)
    position = {loc: i for i, loc in enumerate(names)}
    if start not in position:
        raise ValueError(f"Unknown start location {start!r}")

    neighbours = [set() for _ in names]
    for loc, targets in tunnels.items():
        if loc not in position:
            raise ValueError(f"Tunnel from unknown location {loc!r}")
        for target in targets:
            if target not in position:
                raise ValueError(f"Tunnel {loc} -> {target}: unknown location {target!r}")
            neighbours[position[loc]].add(position[target])
            neighbours[position[target]].add(position[loc])

    network = RewardNetwork(
        locations=names,
        rates=[rates[loc] for loc in names],
        edges=[tuple((t, 1) for t in sorted(out)) for out in neighbours],
        start=position[start],
        agents=agents,
        name=name,
    )
    if compress:
        return compress_network(network)
    return network


def compress_network(network):
    """
    Metric closure of `network` over its start and reward-bearing locations.

    Zero-rate locations other than the start disappear; every kept pair is
    joined by an edge carrying the true shortest distance. The start becomes
    index 0, the other kept locations keep their relative order.
    """
    dist = shortest_distances(network.edges)
    keep = [network.start] + [
        i for i in network.reward_locations if i != network.start
    ]
    edges = []
    for a in keep:
        out = []
        for new_b, b in enumerate(keep):
            if b != a and dist[a, b] < UNREACHABLE:
                out.append((new_b, int(dist[a, b])))
        edges.append(tuple(out))

    return RewardNetwork(
        locations=[network.locations[i] for i in keep],
        rates=[network.rates[i] for i in keep],
        edges=edges,
        start=0,
        agents=network.agents,
        name=network.name,
    )


def recipe_book(kinds, recipes, yield_kind, initial_capacity, name=""):
    """
    Build a RecipeBook from named recipes.

    Parameters:
        kinds: ordered kind names
        recipes: dict kind -> dict resource_kind -> amount; every kind needs
                 an entry, resources left out of an entry cost 0
        yield_kind: name of the kind whose final stock is the yield
        initial_capacity: dict kind -> starting capacity (missing kinds start at 0)
        name: instance name
    """
    kinds = list(kinds)
    position = {k: i for i, k in enumerate(kinds)}
    for k in list(recipes) + list(initial_capacity) + [yield_kind]:
        if k not in position:
            raise ValueError(f"Unknown kind {k!r}")
    missing = [k for k in kinds if k not in recipes]
    if missing:
        raise ValueError(f"No recipe for kind(s): {', '.join(missing)}")

    costs = []
    for k in kinds:
        row = [0] * len(kinds)
        for resource, amount in (recipes[k] or {}).items():
            if resource not in position:
                raise ValueError(f"Recipe for {k} uses unknown resource {resource!r}")
            row[position[resource]] = amount
        costs.append(row)

    return RecipeBook(
        kinds=kinds,
        costs=costs,
        yield_kind=position[yield_kind],
        initial_capacity=[initial_capacity.get(k, 0) for k in kinds],
        name=name,
    )

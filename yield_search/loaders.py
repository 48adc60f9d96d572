"""
Load problem instances from YAML instance files.

A file holds either one instance mapping or an `instances:` list of them.

    kind: reward_unlock
    name: example
    start: AA
    agents: 1
    compress: true
    locations:
      AA: {rate: 0, tunnels: [DD, II, BB]}
      ...

    kind: production
    name: blueprint-1
    kinds: [ore, clay, obsidian, geode]
    yield: geode
    initial_capacity: {ore: 1}
    recipes:
      ore: {ore: 4}
      ...
"""

import yaml

from yield_search.instances import network_from_tunnels, recipe_book


def load_instances(path):
    """Load every instance in a YAML file. Returns a list."""
    with open(path, 'r') as f:
        doc = yaml.safe_load(f) or {}
    if isinstance(doc, dict) and 'instances' in doc:
        entries = doc['instances'] or []
    else:
        entries = [doc]
    return [instance_from_dict(entry) for entry in entries]


def instance_from_dict(entry):
    kind = entry.get('kind')
    if kind == 'reward_unlock':
        return _reward_network(entry)
    if kind == 'production':
        return _recipe_book(entry)
    raise ValueError(f"Unknown instance kind {kind!r} (expected 'reward_unlock' or 'production')")


def _reward_network(entry):
    locations = entry.get('locations') or {}
    if not locations:
        raise ValueError(f"Instance {entry.get('name', '')!r} has no locations")
    rates = {name: int((props or {}).get('rate', 0)) for name, props in locations.items()}
    tunnels = {name: list((props or {}).get('tunnels', [])) for name, props in locations.items()}
    return network_from_tunnels(
        rates, tunnels,
        start=entry.get('start', next(iter(locations))),
        agents=int(entry.get('agents', 1)),
        name=str(entry.get('name', '')),
        compress=bool(entry.get('compress', True)),
    )


def _recipe_book(entry):
    kinds = entry.get('kinds') or []
    if 'yield' not in entry:
        raise ValueError(f"Instance {entry.get('name', '')!r} has no yield kind")
    return recipe_book(
        kinds,
        entry.get('recipes') or {},
        yield_kind=entry['yield'],
        initial_capacity=entry.get('initial_capacity') or {},
        name=str(entry.get('name', '')),
    )

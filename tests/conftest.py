"""
Shared problem instances for the test suite.
"""

import os
import sys
import pytest

# Ensure project root is on path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from yield_search.instances import RewardNetwork, network_from_tunnels, recipe_book


EXAMPLE_RATES = {
    'AA': 0, 'BB': 13, 'CC': 2, 'DD': 20, 'EE': 3,
    'FF': 0, 'GG': 0, 'HH': 22, 'II': 0, 'JJ': 21,
}
EXAMPLE_TUNNELS = {
    'AA': ['DD', 'II', 'BB'],
    'BB': ['CC', 'AA'],
    'CC': ['DD', 'BB'],
    'DD': ['CC', 'AA', 'EE'],
    'EE': ['FF', 'DD'],
    'FF': ['EE', 'GG'],
    'GG': ['FF', 'HH'],
    'HH': ['GG'],
    'II': ['AA', 'JJ'],
    'JJ': ['II'],
}

BLUEPRINT_KINDS = ['ore', 'clay', 'obsidian', 'geode']
BLUEPRINT_1 = {
    'ore': {'ore': 4},
    'clay': {'ore': 2},
    'obsidian': {'ore': 3, 'clay': 14},
    'geode': {'ore': 2, 'obsidian': 7},
}
BLUEPRINT_2 = {
    'ore': {'ore': 2},
    'clay': {'ore': 3},
    'obsidian': {'ore': 3, 'clay': 8},
    'geode': {'ore': 3, 'obsidian': 12},
}


def example_network(agents=1, compress=True):
    return network_from_tunnels(EXAMPLE_RATES, EXAMPLE_TUNNELS, start='AA',
                                agents=agents, name='example', compress=compress)


def toy_network(agents=1):
    """
    S(0) -1- A(5) -1- B(3) -2- C(7), plus S -2- B. Not complete, so the
    detour rules stay off on it.
    """
    return RewardNetwork(
        locations=['S', 'A', 'B', 'C'],
        rates=[0, 5, 3, 7],
        edges=[
            ((1, 1), (2, 2)),
            ((0, 1), (2, 1)),
            ((0, 2), (1, 1), (3, 2)),
            ((2, 2),),
        ],
        start=0,
        agents=agents,
        name='toy',
    )


def blueprint(recipes, name=''):
    return recipe_book(BLUEPRINT_KINDS, recipes, yield_kind='geode',
                       initial_capacity={'ore': 1}, name=name)


def toy_book():
    """Ore robot costs 2 ore, geode robot costs 3 ore, one ore robot to start."""
    return recipe_book(['ore', 'geode'],
                       {'ore': {'ore': 2}, 'geode': {'ore': 3}},
                       yield_kind='geode', initial_capacity={'ore': 1}, name='toy')


@pytest.fixture(scope="session")
def example_single():
    return example_network(agents=1)


@pytest.fixture(scope="session")
def example_dual():
    return example_network(agents=2)


@pytest.fixture(scope="session")
def blueprint_1():
    return blueprint(BLUEPRINT_1, name='blueprint-1')


@pytest.fixture(scope="session")
def blueprint_2():
    return blueprint(BLUEPRINT_2, name='blueprint-2')

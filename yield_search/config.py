"""
Run configuration: YAML file merged over DEFAULTS.
"""

import copy
import os

import yaml

from yield_search.driver import SearchBudget
from yield_search.pruning import FILTERS, PruningPolicy


# ---------------------------------------------------------------------------
# Defaults (used if config.yaml missing or incomplete)
# ---------------------------------------------------------------------------
DEFAULTS = {
    'instances': 'experiments/instances/reward_example.yaml',
    'horizon': 30,
    'workers': None,
    'seed': None,
    'output_dir': 'experiments/results',
    'budget': {'max_nodes': None, 'time_limit': None},
    'pruning': {name: True for name in FILTERS},
}


def load_config(config_path):
    """Load YAML config, falling back to defaults for missing keys."""
    if os.path.exists(config_path):
        with open(config_path, 'r') as f:
            cfg = yaml.safe_load(f) or {}
    else:
        print(f"[WARN] Config not found at {config_path}, using defaults.")
        cfg = {}

    # Merge with defaults
    for key, default_val in DEFAULTS.items():
        if key not in cfg or (cfg[key] is None and isinstance(default_val, dict)):
            cfg[key] = copy.deepcopy(default_val)
        elif isinstance(default_val, dict):
            if not isinstance(cfg[key], dict):
                raise ValueError(
                    f"Config section '{key}' must be a mapping, got {cfg[key]!r}. "
                    f"Expected keys: {', '.join(default_val)}")
            for sub_key, sub_val in default_val.items():
                if sub_key not in cfg[key]:
                    cfg[key][sub_key] = sub_val

    return cfg


def policy_from_config(cfg):
    pruning = cfg.get('pruning') or {}
    unknown = sorted(set(pruning) - set(FILTERS))
    if unknown:
        raise ValueError(
            f"Unknown pruning filter(s) in config: {', '.join(unknown)}. "
            f"Choose from: {', '.join(FILTERS)}")
    return PruningPolicy(**{name: bool(pruning.get(name, True)) for name in FILTERS})


def budget_from_config(cfg):
    """SearchBudget from the `budget` section, or None when it sets no limit."""
    budget = cfg.get('budget') or {}
    max_nodes = budget.get('max_nodes')
    time_limit = budget.get('time_limit')
    if max_nodes is None and time_limit is None:
        return None
    return SearchBudget(
        max_nodes=int(max_nodes) if max_nodes is not None else None,
        time_limit=float(time_limit) if time_limit is not None else None,
    )

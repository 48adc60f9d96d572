"""
Batch search across independent problem instances.

Instances never share mutable state, so each one is solved start to finish by
a single worker process. Results arrive in completion order and are re-keyed
by instance id, so the returned mapping does not depend on scheduling.
"""

import time
from collections.abc import Mapping
from multiprocessing import Pool, cpu_count

import numpy as np
from tqdm import tqdm

from yield_search.search import solve


# ---------------------------------------------------------------------------
# Worker function (runs in subprocess)
# ---------------------------------------------------------------------------

def search_single_instance(args):
    """
    Run search on a single instance. Designed for multiprocessing.Pool.

    Args:
        args: tuple of (instance_id, instance, horizon, options) where options
              is a dict with optional 'policy', 'seed' and 'budget'

    Returns:
        dict with results for this instance
    """
    instance_id, instance, horizon, options = args

    t0 = time.time()
    result = solve(
        instance, horizon,
        policy=options.get('policy'),
        seed=options.get('seed'),
        budget=options.get('budget'),
    )
    elapsed = time.time() - t0

    return {
        'id': instance_id,
        'name': getattr(instance, 'name', ''),
        'horizon': horizon,
        'yield': int(result.yield_),
        'approximate': result.stats['exhausted'],
        'nodes_explored': result.stats['nodes_explored'],
        'pruned': dict(result.stats['pruned']),
        'time': elapsed,
        'path': result.steps,
    }


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def build_work_items(instances, horizon, policy=None, seed=None, budget=None):
    """
    Pair every instance with its id. A mapping keeps its keys; a sequence is
    keyed by position.
    """
    if isinstance(instances, Mapping):
        keyed = list(instances.items())
    else:
        keyed = list(enumerate(instances))
    options = {'policy': policy, 'seed': seed, 'budget': budget}
    return [(key, instance, horizon, options) for key, instance in keyed]


def default_workers(n_items):
    return max(1, min(cpu_count(), n_items))


def imap_results(work_items, num_workers=None):
    """
    Yield one result dict per work item, in completion order.

    With a single worker (or a single item) the batch runs in this process.
    """
    if num_workers is None:
        num_workers = default_workers(len(work_items))
    if num_workers <= 1 or len(work_items) <= 1:
        for item in work_items:
            yield search_single_instance(item)
        return

    with Pool(processes=num_workers) as pool:
        # Use imap_unordered for better load balancing
        for result in pool.imap_unordered(search_single_instance, work_items):
            yield result


def run_batch(instances, horizon, policy=None, num_workers=None, seed=None,
              budget=None, progress=False):
    """
    Solve every instance and return {instance_id: result dict}, ordered like
    the input.
    """
    work_items = build_work_items(instances, horizon, policy=policy, seed=seed,
                                  budget=budget)
    results = imap_results(work_items, num_workers)
    if progress:
        results = tqdm(results, total=len(work_items), desc=f"horizon={horizon}")

    by_id = {}
    for record in results:
        by_id[record['id']] = record
    return {item[0]: by_id[item[0]] for item in work_items}


def evaluate_many(instances, horizon, policy=None, num_workers=None, seed=None,
                  budget=None, progress=False):
    """
    Best yield for each instance.

    Parameters:
        instances: mapping instance_id -> instance, or a sequence of instances
                   (ids are then the positions)
        horizon: number of turns, shared by every instance
        policy: PruningPolicy used for every search
        num_workers: worker processes (default: CPU count, capped at the
                     number of instances)
        seed: shuffle seed forwarded to every search
        budget: SearchBudget applied to each instance separately
        progress: show a tqdm progress bar

    Returns:
        dict instance_id -> yield, one entry per instance
    """
    records = run_batch(instances, horizon, policy=policy, num_workers=num_workers,
                        seed=seed, budget=budget, progress=progress)
    return {key: record['yield'] for key, record in records.items()}


def summarize(records):
    """Aggregate metrics over a list of result dicts."""
    yields = np.array([r['yield'] for r in records], dtype=np.int64)
    nodes = np.array([r['nodes_explored'] for r in records], dtype=np.int64)
    times = np.array([r['time'] for r in records], dtype=np.float64)
    return {
        'instances': len(records),
        'approximate': sum(1 for r in records if r['approximate']),
        'total_yield': int(yields.sum()) if len(records) else 0,
        'mean_yield': float(yields.mean()) if len(records) else 0.0,
        'max_yield': int(yields.max()) if len(records) else 0,
        'total_nodes': int(nodes.sum()) if len(records) else 0,
        'total_search_time': float(times.sum()) if len(records) else 0.0,
    }

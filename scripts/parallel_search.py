#!/usr/bin/env python3
"""
Parallel branch-and-bound runner over a file of problem instances.

Every instance in the instance file is searched independently in its own
worker process. Progress is streamed to a JSONL file; per-instance details
and aggregate metrics are written as JSON next to it.

Usage:
    python scripts/parallel_search.py                                   # experiments/config.yaml
    python scripts/parallel_search.py --instances experiments/instances/production_example.yaml --horizon 24
    python scripts/parallel_search.py --workers 8                       # 8 parallel workers
    python scripts/parallel_search.py --max-nodes 100000                # approximate, bounded search
    python scripts/parallel_search.py --disable dominance --disable bound
"""

import os
import sys
import json
import time
import argparse
import datetime

import yaml

# Ensure project root is on path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from yield_search.config import load_config, policy_from_config, budget_from_config
from yield_search.loaders import load_instances
from yield_search.pruning import FILTERS
from yield_search.scheduler import (
    build_work_items, default_workers, imap_results, summarize,
)


# ---------------------------------------------------------------------------
# Parallel runner
# ---------------------------------------------------------------------------

def run_parallel_search(instances, horizon, policy, budget=None, seed=None,
                        num_workers=4, output_dir=None):
    """
    Run branch-and-bound in parallel across all instances.

    Args:
        instances: list of RewardNetwork / RecipeBook
        horizon: number of turns for every instance
        policy: PruningPolicy
        budget: optional SearchBudget per instance
        seed: optional action-order shuffle seed
        num_workers: number of parallel worker processes
        output_dir: where to save results
    """
    n = len(instances)
    print(f"\n{'='*60}")
    print(f"  Searching {n} instance(s) with {num_workers} workers")
    print(f"  Horizon: {horizon}")
    print(f"  Filters: {', '.join(policy.enabled) or 'none'}")
    if budget is not None:
        print(f"  Budget:  max_nodes={budget.max_nodes}, time_limit={budget.time_limit}")
    print(f"{'='*60}\n")

    work_items = build_work_items(instances, horizon, policy=policy, seed=seed,
                                  budget=budget)

    results = []
    t_start = time.time()

    progress_path = os.path.join(output_dir, 'progress.jsonl')
    progress_fh = open(progress_path, 'w')

    try:
        for result in imap_results(work_items, num_workers):
            results.append(result)
            progress_fh.write(json.dumps(result) + '\n')
            progress_fh.flush()

            done = len(results)
            flag = " (approximate)" if result['approximate'] else ""
            print(f"    [{done}/{n}] {result['name'] or result['id']}: "
                  f"yield={result['yield']}{flag}, nodes={result['nodes_explored']:,}, "
                  f"{result['time']:.2f}s")
    finally:
        progress_fh.close()

    total_time = time.time() - t_start

    # Sort by id for consistent output
    results.sort(key=lambda r: r['id'])

    metrics = summarize(results)
    metrics.update({
        'horizon': horizon,
        'filters': list(policy.enabled),
        'workers': num_workers,
        'total_time': total_time,
    })

    print(f"\n  => {metrics['instances']} instance(s), total yield {metrics['total_yield']}, "
          f"{metrics['total_nodes']:,} nodes in {total_time:.1f}s")
    if metrics['approximate']:
        print(f"     {metrics['approximate']} result(s) hit the search budget and may be suboptimal")

    detail_path = os.path.join(output_dir, 'details.json')
    with open(detail_path, 'w') as f:
        json.dump(results, f, indent=2)

    metrics_path = os.path.join(output_dir, 'metrics.json')
    with open(metrics_path, 'w') as f:
        json.dump(metrics, f, indent=2)

    return results, metrics


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main():
    parser = argparse.ArgumentParser(
        description='Parallel branch-and-bound yield search'
    )
    parser.add_argument('--config', type=str,
                        default=os.path.join(PROJECT_ROOT, 'experiments', 'config.yaml'),
                        help='Path to config.yaml')
    parser.add_argument('--instances', type=str, default=None,
                        help='Instance YAML file (overrides config)')
    parser.add_argument('--horizon', type=int, default=None,
                        help='Number of turns (overrides config)')
    parser.add_argument('--workers', type=int, default=None,
                        help='Number of parallel workers (default: CPU count)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Shuffle action order with this seed')
    parser.add_argument('--max-nodes', type=int, default=None,
                        help='Max nodes to explore per instance')
    parser.add_argument('--time-limit', type=float, default=None,
                        help='Max seconds per instance')
    parser.add_argument('--disable', action='append', default=[], choices=FILTERS,
                        help='Disable a pruning filter (repeatable)')
    args = parser.parse_args()

    cfg = load_config(args.config)

    # Apply CLI overrides
    for key in ('instances', 'horizon', 'workers', 'seed'):
        value = getattr(args, key)
        if value is not None:
            cfg[key] = value
            print(f"[CLI override] {key} = {value}")
    if args.max_nodes is not None:
        cfg['budget']['max_nodes'] = args.max_nodes
        print(f"[CLI override] max_nodes = {args.max_nodes}")
    if args.time_limit is not None:
        cfg['budget']['time_limit'] = args.time_limit
        print(f"[CLI override] time_limit = {args.time_limit}")
    for name in args.disable:
        cfg['pruning'][name] = False
        print(f"[CLI override] pruning.{name} = False")

    policy = policy_from_config(cfg)
    budget = budget_from_config(cfg)

    instance_path = cfg['instances']
    if not os.path.isabs(instance_path):
        instance_path = os.path.join(PROJECT_ROOT, instance_path)
    if not os.path.exists(instance_path):
        print(f"ERROR: Instance file not found: {instance_path}")
        sys.exit(1)

    instances = load_instances(instance_path)
    num_workers = cfg['workers'] or default_workers(len(instances))

    # Create output directory
    timestamp = datetime.datetime.now().strftime('%Y-%m-%d_%H-%M-%S')
    output_root = cfg['output_dir']
    if not os.path.isabs(output_root):
        output_root = os.path.join(PROJECT_ROOT, output_root)
    output_dir = os.path.join(output_root, timestamp)
    os.makedirs(output_dir, exist_ok=True)

    with open(os.path.join(output_dir, 'config_used.yaml'), 'w') as f:
        yaml.dump({**cfg, 'workers': num_workers, 'timestamp': timestamp}, f,
                  default_flow_style=False)

    print()
    print("=" * 60)
    print("  Yield Search Parallel Runner")
    print("=" * 60)
    print(f"  Instances: {instance_path} ({len(instances)})")
    print(f"  Horizon:   {cfg['horizon']}")
    print(f"  Workers:   {num_workers}")
    print(f"  Seed:      {cfg['seed']}")
    print(f"  Output:    {output_dir}")
    print("=" * 60)

    run_parallel_search(
        instances, cfg['horizon'], policy,
        budget=budget, seed=cfg['seed'],
        num_workers=num_workers, output_dir=output_dir,
    )
    print(f"\nResults saved to: {output_dir}/")


if __name__ == '__main__':
    main()

#!/usr/bin/env python3
"""
Headless simulation of a browsing session.

Builds the tree from a session file, runs the physics for a number of
ticks, validates the result and prints a report.

Usage:
    treegraph-simulate
    treegraph-simulate session.json --ticks 600
    treegraph-simulate session.json --config engine.json --json

Session file format:
    {"history": [...], "similarity_map": {"<id>": [...]}, "active_node": {...}}
"""

from typing import Any, Dict, List, Optional
from pathlib import Path
import argparse
import json
import logging
import sys

from .config import load_config
from .engine import TreeGraphEngine
from .errors import TreeGraphError
from .validator import get_validation_summary, validate_tree

FRAME_MS = 1000.0 / 60.0

SAMPLE_SESSION: Dict[str, Any] = {
    'history': [
        {'id': 1, 'text_for_embedding': 'Bronze figure of a seated cat'},
        {'id': 3, 'text_for_embedding': 'Faience amulet of Bastet'},
    ],
    'similarity_map': {
        '1': [
            {'id': 2, 'text_for_embedding': 'Mummified cat in linen wrappings'},
            {'id': 3, 'text_for_embedding': 'Faience amulet of Bastet'},
            {'id': 4, 'text_for_embedding': 'Limestone stela with cat relief'},
        ],
        '3': [
            {'id': 5, 'text_for_embedding': 'Glazed steatite scarab'},
            {'id': 6, 'text_for_embedding': 'Sistrum handle with Hathor head'},
        ],
    },
    'active_node': {'id': 3, 'text_for_embedding': 'Faience amulet of Bastet'},
}


def load_session(path: Optional[str]) -> Dict[str, Any]:
    if path is None:
        return SAMPLE_SESSION
    with open(Path(path), 'r', encoding='utf-8') as f:
        return json.load(f)


def run_simulation(session: Dict[str, Any], ticks: int,
                   config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Build the tree for a session and run the physics.

    Returns:
        Report dict with counts, rest statistics, validation and snapshot
    """
    now = 0.0
    engine = TreeGraphEngine(config, clock=lambda: now, wall_clock=lambda: now)
    created = engine.update(session.get('history', []),
                            session.get('similarity_map', {}),
                            session.get('active_node'), now_ms=now)

    stabilized_ticks = 0
    collisions = 0
    first_rest: Optional[int] = None
    for frame in range(ticks):
        now += FRAME_MS
        if not engine.tick(now, now):
            break
        step = engine.last_step
        if step is None:
            continue
        collisions += step.collisions
        if step.stabilized:
            stabilized_ticks += 1
            if first_rest is None:
                first_rest = frame

    validation = validate_tree(engine.store)
    inspector = engine.inspect()
    return {
        'status': engine.status.value,
        'error': engine.error,
        'created': len(created),
        'nodes': inspector.node_count,
        'links': inspector.link_count,
        'max_depth': inspector.max_depth,
        'ticks': engine.frame,
        'stabilized_ticks': stabilized_ticks,
        'first_rest_tick': first_rest,
        'collisions': collisions,
        'validation': get_validation_summary(validation),
        'errors': validation.errors,
        'snapshot': engine.snapshot(),
    }


def print_report(report: Dict[str, Any]) -> None:
    print('=' * 50)
    print('Tree Graph Simulation')
    print('=' * 50)
    print(f"\nStatus: {report['status']}")
    if report['error']:
        print(f"Error: {report['error']}")
    print(f"Nodes: {report['nodes']}  Links: {report['links']}  Max depth: {report['max_depth']}")
    print(f"Ticks: {report['ticks']}  Stabilized: {report['stabilized_ticks']}  "
          f"First rest: {report['first_rest_tick']}  Collisions fixed: {report['collisions']}")

    print('\nNodes:')
    nodes: List[Dict[str, Any]] = report['snapshot']['nodes']
    for node in nodes[:10]:
        indent = '  ' * node['depth']
        print(f"  {indent}{node['description']} ({node['x']:.1f}, {node['y']:.1f})")
    if len(nodes) > 10:
        print(f"  ... and {len(nodes) - 10} more")

    summary = report['validation']
    print(f"\nValidation: {'PASSED' if summary['valid'] else 'FAILED'}")
    for error in report['errors']:
        print(f"  - {error}")
    print('=' * 50)


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Run the tree graph engine headless")
    parser.add_argument('session', nargs='?', help="Session JSON file (default: built-in sample)")
    parser.add_argument('--ticks', type=int, default=300)
    parser.add_argument('--config', help="Engine config JSON file")
    parser.add_argument('--json', action='store_true', help="Print the report as JSON")
    parser.add_argument('-v', '--verbose', action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="[%(name)s] %(message)s")

    try:
        session = load_session(args.session)
        config = load_config(args.config).to_dict()
    except (OSError, json.JSONDecodeError, TreeGraphError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    report = run_simulation(session, args.ticks, config)
    if args.json:
        print(json.dumps(report, indent=2))
    else:
        print_report(report)
    return 0 if report['validation']['valid'] and report['status'] == 'ready' else 1


if __name__ == '__main__':
    sys.exit(main())

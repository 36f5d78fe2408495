#!/usr/bin/env python3
"""
elimtree: Sparse elimination with elimination trees

Usage:
    # Eliminate a discrete problem from a JSON file
    python main.py eliminate --input problem.json --output result.json

    # Override the ordering stored in the file
    python main.py eliminate --input problem.json --ordering A,B

    # Run demos
    python main.py demo --example chain
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from elimtree import (
    EliminationTree,
    JacobianFactor,
    OrderingError,
    __version__,
    eliminate_qr,
    optimize,
    solve_discrete,
)
from elimtree.discrete.conditional import discrete_joint
from elimtree.discrete.factor import brute_force_joint

logger = logging.getLogger("elimtree.cli")


def load_problem_from_json(
    filepath: str,
) -> Tuple[Dict[str, int], Dict[str, Tuple[Tuple[str, ...], np.ndarray]], List[str]]:
    """
    Load a discrete elimination problem from a JSON file.

    Expected format:
    {
        "variables": {"A": 2, "B": 3},
        "factors": {
            "f1": {"scope": ["A", "B"], "values": [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]]}
        },
        "ordering": ["A", "B"]
    }

    The ordering is optional and defaults to the sorted variable names.
    """
    with open(filepath, "r") as f:
        data = json.load(f)

    var_domains = data["variables"]

    factors = {}
    for name, fdata in data["factors"].items():
        scope = tuple(fdata["scope"])
        values = np.array(fdata["values"], dtype=np.float64)
        factors[name] = (scope, values)

    ordering = list(data.get("ordering", sorted(var_domains)))
    return var_domains, factors, ordering


def result_to_json(result) -> Dict[str, Any]:
    """Serializable view of an EliminationResult, keys rendered as names."""
    name = result.registry.name
    parents = result.tree.parents()
    return {
        "ordering": [name(node.key) for node in result.tree.nodes],
        "tree": {name(k): (None if p is None else name(p)) for k, p in parents.items()},
        "conditionals": [
            {
                "frontal": name(c.frontal),
                "parents": [name(k) for k in c.parents],
                "table": c.table.tolist(),
            }
            for c in result.bayes_net
        ],
        "remaining": [
            {"scope": [name(k) for k in f.keys], "values": f.table.tolist()}
            for f in result.remaining
            if f is not None
        ],
    }


def parse_ordering(ordering_str: str) -> List[str]:
    """Parse a comma-separated ordering: 'A,B,C'"""
    return [v.strip() for v in ordering_str.split(",") if v.strip()]


def cmd_eliminate(args) -> int:
    """Execute the eliminate command."""
    logger.info("Loading problem from: %s", args.input)
    var_domains, factors, ordering = load_problem_from_json(args.input)
    if args.ordering:
        ordering = parse_ordering(args.ordering)

    print("Problem:")
    print(f"  Variables: {len(var_domains)}")
    for var, size in sorted(var_domains.items()):
        print(f"    {var}: domain size {size}")
    print(f"  Factors: {len(factors)}")
    for name, (scope, values) in sorted(factors.items()):
        print(f"    {name}: scope {scope}, shape {values.shape}")
    print(f"  Ordering: {', '.join(ordering)}")

    try:
        result = solve_discrete(var_domains, factors, ordering)
    except OrderingError as e:
        logger.error("Invalid ordering: %s", e)
        return 2
    except ValueError as e:
        logger.error("Invalid problem: %s", e)
        return 1

    fmt = result.registry.formatter()
    print("\nElimination tree:")
    result.tree.print("  ", fmt)
    print("\nBayes net:")
    result.bayes_net.print("  ", fmt)
    print("\nRemaining factors:")
    result.remaining.print("  ", fmt)

    if args.output:
        with open(args.output, "w") as f:
            json.dump(result_to_json(result), f, indent=2)
        print(f"\nResults saved to: {args.output}")

    return 0


def demo_simple_chain() -> bool:
    """Demo: Simple Chain A -- B -- C"""
    print("=" * 60)
    print("Demo: Simple Chain A -- B -- C")
    print("=" * 60)

    var_domains = {"A": 2, "B": 2, "C": 2}
    factors = {
        "f_A": (("A",), np.array([0.6, 0.4])),
        "f_AB": (("A", "B"), np.array([[0.9, 0.1], [0.2, 0.8]])),
        "f_BC": (("B", "C"), np.array([[0.3, 0.7], [0.5, 0.5]])),
    }

    result = solve_discrete(var_domains, factors, ["A", "B", "C"])
    fmt = result.registry.formatter()

    print("\nElimination tree:")
    result.tree.print("  ", fmt)
    print("\nBayes net:")
    result.bayes_net.print("  ", fmt)

    joint = discrete_joint(result.bayes_net)
    original = brute_force_joint(result.tree.remaining_factors + [
        f for node in result.tree.nodes for f in node.factors
    ])
    original_table = original.table / original.table.sum()
    match = np.allclose(joint.table, original_table)
    print(f"\nVerification (brute force joint): match = {match}")
    return bool(match)


def demo_linear_chain() -> bool:
    """Demo: 1-D odometry chain x0 -- x1 -- x2 with a prior on x0"""
    print("=" * 60)
    print("Demo: Linear odometry chain x0 -- x1 -- x2")
    print("=" * 60)

    eye = np.eye(1)
    factors = [
        JacobianFactor({0: eye}, [0.0]),
        JacobianFactor({0: -eye, 1: eye}, [1.0]),
        JacobianFactor({1: -eye, 2: eye}, [1.0]),
    ]

    tree = EliminationTree.build(factors, [0, 1, 2])
    print("\nElimination tree:")
    tree.print("  ", lambda k: f"x{k}")

    bayes_net, _ = tree.eliminate(eliminate_qr)
    values = optimize(bayes_net)
    values.print("\nSolution", lambda k: f"x{k}")

    match = np.allclose(values.as_vector([0, 1, 2]), [0.0, 1.0, 2.0])
    print(f"\nVerification (expected 0, 1, 2): match = {match}")
    return bool(match)


def cmd_demo(args) -> int:
    """Execute demo command."""
    demos = {
        "chain": demo_simple_chain,
        "linear": demo_linear_chain,
    }
    selected = list(demos) if args.example == "all" else [args.example]

    results = []
    for name in selected:
        results.append(demos[name]())
        print()

    passed = sum(results)
    print(f"Demos passed: {passed}/{len(results)}")
    return 0 if passed == len(results) else 1


def cmd_info(args) -> int:
    """Show system information."""
    print(f"elimtree {__version__}")
    print()
    print("Python:", sys.version.split()[0])
    print("NumPy:", np.__version__)

    import scipy
    import networkx

    print("SciPy:", scipy.__version__)
    print("NetworkX:", networkx.__version__)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="elimtree",
        description="elimtree: Sparse elimination with elimination trees",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Eliminate a discrete problem from a JSON file
  elimtree eliminate --input problem.json --output result.json

  # Partial elimination with an explicit ordering
  elimtree eliminate --input problem.json --ordering A,B

  # Run demos
  elimtree demo --example all
"""
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"elimtree {__version__}"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    elim_parser = subparsers.add_parser("eliminate", help="Eliminate a discrete factor graph")
    elim_parser.add_argument("--input", "-i", type=str, required=True, help="Input JSON file")
    elim_parser.add_argument("--output", "-o", type=str, help="Output JSON file")
    elim_parser.add_argument("--ordering", type=str, help="Ordering override: 'A,B,C'")

    demo_parser = subparsers.add_parser("demo", help="Run demonstration examples")
    demo_parser.add_argument(
        "--example", "-e",
        choices=["chain", "linear", "all"],
        default="all",
        help="Which example to run (default: all)"
    )

    subparsers.add_parser("info", help="Show system information")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "eliminate":
        if not Path(args.input).exists():
            logger.error("Input file not found: %s", args.input)
            return 1
        return cmd_eliminate(args)
    elif args.command == "demo":
        return cmd_demo(args)
    elif args.command == "info":
        return cmd_info(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""
elimtree/solver.py

High-level elimination interface.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from elimtree.core.registry import KeyRegistry
from elimtree.discrete.factor import DiscreteFactor
from elimtree.discrete.eliminate import eliminate_discrete
from elimtree.inference.bayes_net import BayesNet
from elimtree.inference.elimination_tree import EliminationTree
from elimtree.inference.factor_graph import EliminateFunction, FactorGraph, Key
from elimtree.linear.eliminate import eliminate_qr, optimize
from elimtree.linear.jacobian_factor import JacobianFactor
from elimtree.linear.vector_values import VectorValues

logger = logging.getLogger(__name__)


@dataclass
class EliminationResult:
    """Result from eliminating a named discrete problem."""
    bayes_net: BayesNet
    remaining: FactorGraph
    tree: EliminationTree
    registry: KeyRegistry


def eliminate_sequential(
    graph: Sequence,
    ordering: Sequence[Key],
    function: EliminateFunction,
    variable_index: Optional[Mapping[Key, Sequence[int]]] = None,
) -> Tuple[BayesNet, FactorGraph]:
    """
    Build the elimination tree for ``ordering`` and eliminate it.

    Args:
        graph: Factors, indexable by position
        ordering: Keys to eliminate (possibly a subset)
        function: Elimination function for one key
        variable_index: Optional precomputed variable index; pass one to
            reuse it across repeated partial eliminations

    Returns:
        (bayes_net, remaining factors)
    """
    tree = EliminationTree.build(graph, ordering, variable_index)
    return tree.eliminate(function)


def solve_discrete(
    var_domains: Dict[str, int],
    factors_named: Dict[str, Tuple[Tuple[str, ...], np.ndarray]],
    ordering: Sequence[str],
) -> EliminationResult:
    """
    Eliminate a discrete factor graph given by variable names.

    Args:
        var_domains: Map from variable name to domain size
        factors_named: Map from factor name to (scope names, table)
        ordering: Variable names to eliminate, in order

    Returns:
        EliminationResult; keys in the result are registry keys

    Example:
        >>> var_domains = {"A": 2, "B": 2}
        >>> factors = {
        ...     "f1": (("A",), np.array([0.3, 0.7])),
        ...     "f2": (("A", "B"), np.array([[0.9, 0.1], [0.2, 0.8]])),
        ... }
        >>> result = solve_discrete(var_domains, factors, ["A", "B"])
        >>> len(result.bayes_net)
        2
    """
    # Ordering names no factor touches still get keys, so the tree builder
    # reports them as an OrderingError
    names = set(var_domains)
    names.update(ordering)
    for fname, (scope, _) in factors_named.items():
        names.update(scope)
    registry = KeyRegistry.build(names)

    graph = FactorGraph()
    for fname in sorted(factors_named):
        scope, table = factors_named[fname]
        table = np.asarray(table, dtype=np.float64)
        for v, size in zip(scope, table.shape):
            if v in var_domains and var_domains[v] != size:
                raise ValueError(
                    f"factor {fname}: axis for {v} has size {size}, domain is {var_domains[v]}"
                )
        graph.push_back(DiscreteFactor(registry.keys_for(scope), table))

    tree = EliminationTree.build(graph, registry.keys_for(ordering))
    bayes_net, remaining = tree.eliminate(eliminate_discrete)
    logger.debug("solve_discrete: %d conditionals, %d remaining factors", len(bayes_net), len(remaining))
    return EliminationResult(bayes_net=bayes_net, remaining=remaining, tree=tree, registry=registry)


def solve_linear(
    factors: Sequence[JacobianFactor],
    ordering: Sequence[Key],
    given: Optional[VectorValues] = None,
) -> VectorValues:
    """
    Least-squares solution of a linear factor graph by QR elimination.

    Args:
        factors: Jacobian factors
        ordering: Keys to eliminate
        given: Values for keys not in the ordering

    Returns:
        VectorValues minimizing the sum of squared residuals
    """
    bayes_net, _ = eliminate_sequential(factors, ordering, eliminate_qr)
    return optimize(bayes_net, given)

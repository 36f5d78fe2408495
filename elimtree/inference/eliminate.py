"""
elimtree/inference/eliminate.py

Tree-based elimination.

Walks the forest in post-order. At every node the owned factors and the
separators produced by its children are handed to the elimination
function, which returns a conditional for the node's key and a separator
factor for the parent.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from elimtree.inference.bayes_net import BayesNet
from elimtree.inference.factor_graph import EliminateFunction, FactorGraph
from elimtree.inference.traversal import postorder

logger = logging.getLogger(__name__)


def eliminate_node(
    node,
    child_results: List[Optional[Any]],
    function: EliminateFunction,
    output: BayesNet,
) -> Optional[Any]:
    """
    Eliminate a single node.

    Args:
        node: Node with ``key``, ``factors`` and ``children``
        child_results: Separator of each child, in child order
        function: Elimination function
        output: Bayes net receiving the conditional

    Returns:
        Separator factor for the parent, or None
    """
    gathered: List[Any] = list(node.factors)
    gathered.extend(r for r in child_results if r is not None)

    conditional, separator = function(gathered, [node.key])
    output.push_back(conditional)
    return separator


def eliminate_tree(forest, function: EliminateFunction) -> Tuple[BayesNet, FactorGraph]:
    """
    Eliminate all nodes of an elimination forest.

    Args:
        forest: EliminationTree (or any object with nodes/roots/remaining_factors)
        function: (factors, [key]) -> (conditional, separator or None)

    Returns:
        (bayes_net, remaining) where the Bayes net holds conditionals in
        post-order and ``remaining`` holds the forest's untouched factors
        followed by the separators left over at the roots.

    Exceptions raised by ``function`` propagate unchanged.
    """
    bayes_net = BayesNet()
    results: Dict[int, Optional[Any]] = {}
    nodes = forest.nodes

    for u in postorder(forest):
        node = nodes[u]
        child_results = [results.pop(c) for c in node.children]
        results[u] = eliminate_node(node, child_results, function, bayes_net)

    remaining = FactorGraph(forest.remaining_factors)
    for r in forest.roots:
        sep = results.pop(r)
        if sep is not None:
            remaining.push_back(sep)

    logger.debug(
        "Eliminated %d variables over %d roots, %d factors remain",
        len(bayes_net), len(forest.roots), len(remaining),
    )
    return bayes_net, remaining

"""
Inference module: elimination trees and tree-based elimination.
"""

from elimtree.inference.factor_graph import (
    EliminateFunction,
    FactorGraph,
    Key,
    KeyFormatter,
    factor_equals,
    format_factor,
)
from elimtree.inference.variable_index import VariableIndex
from elimtree.inference.bayes_net import BayesNet
from elimtree.inference.elimination_tree import EliminationNode, EliminationTree
from elimtree.inference.eliminate import eliminate_node, eliminate_tree
from elimtree.inference.traversal import (
    clone_forest,
    format_forest,
    forests_equal,
    postorder,
    preorder_with_depth,
    print_forest,
)

__all__ = [
    # factor graph
    "EliminateFunction",
    "FactorGraph",
    "Key",
    "KeyFormatter",
    "factor_equals",
    "format_factor",
    # variable index
    "VariableIndex",
    # bayes net
    "BayesNet",
    # elimination tree
    "EliminationNode",
    "EliminationTree",
    # eliminate
    "eliminate_node",
    "eliminate_tree",
    # traversal
    "clone_forest",
    "format_forest",
    "forests_equal",
    "postorder",
    "preorder_with_depth",
    "print_forest",
]

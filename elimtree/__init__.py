"""
elimtree: Sparse elimination with elimination trees

Builds the elimination forest of a factor graph for a given ordering and
eliminates it in post-order, producing a Bayes net over the eliminated
variables and the factors left over the rest.

Key components:
- inference: Variable index, elimination tree, tree elimination, traversals
- discrete: Table factors and sum-product elimination
- linear: Jacobian factors, QR elimination and back-substitution
- core: Error types and key registry
"""

__version__ = "1.0.0"
__author__ = "elimtree developers"

from elimtree.core.errors import IndeterminantLinearSystem, OrderingError, StructuralMismatch
from elimtree.core.registry import KeyRegistry
from elimtree.inference.factor_graph import FactorGraph
from elimtree.inference.variable_index import VariableIndex
from elimtree.inference.bayes_net import BayesNet
from elimtree.inference.elimination_tree import EliminationNode, EliminationTree
from elimtree.inference.eliminate import eliminate_tree
from elimtree.inference.traversal import clone_forest, forests_equal, print_forest
from elimtree.discrete.factor import DiscreteFactor
from elimtree.discrete.conditional import DiscreteConditional
from elimtree.discrete.eliminate import eliminate_discrete
from elimtree.linear.vector_values import VectorValues
from elimtree.linear.jacobian_factor import JacobianFactor
from elimtree.linear.gaussian_conditional import GaussianConditional
from elimtree.linear.eliminate import eliminate_qr, optimize
from elimtree.solver import EliminationResult, eliminate_sequential, solve_discrete, solve_linear

__all__ = [
    # Errors
    "OrderingError",
    "StructuralMismatch",
    "IndeterminantLinearSystem",
    "KeyRegistry",
    # Inference
    "FactorGraph",
    "VariableIndex",
    "BayesNet",
    "EliminationNode",
    "EliminationTree",
    "eliminate_tree",
    "clone_forest",
    "forests_equal",
    "print_forest",
    # Discrete
    "DiscreteFactor",
    "DiscreteConditional",
    "eliminate_discrete",
    # Linear
    "VectorValues",
    "JacobianFactor",
    "GaussianConditional",
    "eliminate_qr",
    "optimize",
    # Solver
    "EliminationResult",
    "eliminate_sequential",
    "solve_discrete",
    "solve_linear",
]

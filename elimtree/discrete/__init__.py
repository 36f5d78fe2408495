"""
Discrete module: table factors, conditionals and sum-product elimination.
"""

from elimtree.discrete.factor import DiscreteFactor, brute_force_joint, product_all
from elimtree.discrete.conditional import DiscreteConditional, discrete_joint
from elimtree.discrete.eliminate import eliminate_discrete

__all__ = [
    "DiscreteFactor",
    "DiscreteConditional",
    "brute_force_joint",
    "discrete_joint",
    "eliminate_discrete",
    "product_all",
]

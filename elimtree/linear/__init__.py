"""
Linear module: Jacobian factors, Gaussian conditionals and QR elimination.
"""

from elimtree.linear.block_matrix import VerticalBlockMatrix
from elimtree.linear.vector_values import VectorValues
from elimtree.linear.jacobian_factor import JacobianFactor
from elimtree.linear.gaussian_conditional import GaussianConditional
from elimtree.linear.eliminate import eliminate_qr, optimize

__all__ = [
    "VerticalBlockMatrix",
    "VectorValues",
    "JacobianFactor",
    "GaussianConditional",
    "eliminate_qr",
    "optimize",
]

"""
Core module: error types and key registry.
"""

from elimtree.core.errors import IndeterminantLinearSystem, OrderingError, StructuralMismatch
from elimtree.core.registry import KeyRegistry

__all__ = [
    "OrderingError",
    "StructuralMismatch",
    "IndeterminantLinearSystem",
    "KeyRegistry",
]

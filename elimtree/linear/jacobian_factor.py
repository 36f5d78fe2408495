"""
elimtree/linear/jacobian_factor.py

Linear least-squares factor  0.5 * || sum_j A_j x_j - b ||^2.
"""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from elimtree.inference.factor_graph import Key, KeyFormatter
from elimtree.linear.block_matrix import VerticalBlockMatrix
from elimtree.linear.vector_values import VectorValues

Terms = Union[Mapping[Key, np.ndarray], Iterable[Tuple[Key, np.ndarray]]]


class JacobianFactor:
    """
    Whitened linear factor over one or more variables.

    Attributes:
        keys: Variable keys, in term order
        blocks: key -> A_j, each of shape (rows, dim(key))
        b: Right-hand side of shape (rows,)
    """

    def __init__(self, terms: Terms, b):
        items = list(terms.items()) if isinstance(terms, Mapping) else list(terms)
        self.b: np.ndarray = np.atleast_1d(np.asarray(b, dtype=np.float64))
        self.blocks: Dict[Key, np.ndarray] = {}
        keys = []
        for key, A in items:
            A = np.asarray(A, dtype=np.float64)
            if A.ndim == 1:
                A = A.reshape(-1, 1)
            if A.shape[0] != self.b.shape[0]:
                raise ValueError(
                    f"JacobianFactor: block for key {key!r} has {A.shape[0]} rows, "
                    f"b has {self.b.shape[0]}"
                )
            if key in self.blocks:
                raise ValueError(f"JacobianFactor: duplicate key {key!r}")
            self.blocks[key] = A
            keys.append(key)
        self.keys: Tuple[Key, ...] = tuple(keys)

    @property
    def rows(self) -> int:
        return self.b.shape[0]

    def dim(self, key: Key) -> int:
        return self.blocks[key].shape[1]

    def augmented_matrix(self, keys: Optional[Sequence[Key]] = None) -> VerticalBlockMatrix:
        """
        [A_1 ... A_k | b] with one column block per key plus one for b.

        Args:
            keys: Column block order (defaults to the factor's own key order)
        """
        order = self.keys if keys is None else tuple(keys)
        Ab = VerticalBlockMatrix([self.dim(k) for k in order] + [1], self.rows)
        for i, k in enumerate(order):
            Ab[i][:] = self.blocks[k]
        Ab[len(order)][:, 0] = self.b
        return Ab

    def unwhitened_error(self, values: VectorValues) -> np.ndarray:
        """Residual vector sum_j A_j x_j - b."""
        r = -self.b.copy()
        for k in self.keys:
            r += self.blocks[k] @ values[k]
        return r

    def error(self, values: VectorValues) -> float:
        r = self.unwhitened_error(values)
        return 0.5 * float(r @ r)

    def equals(self, other, tol: float = 1e-9) -> bool:
        if not isinstance(other, JacobianFactor):
            return False
        if set(self.keys) != set(other.keys) or self.rows != other.rows:
            return False
        for k in self.keys:
            if self.blocks[k].shape != other.blocks[k].shape:
                return False
            if not np.allclose(self.blocks[k], other.blocks[k], rtol=0.0, atol=tol):
                return False
        return bool(np.allclose(self.b, other.b, rtol=0.0, atol=tol))

    def format(self, key_formatter: KeyFormatter = str) -> str:
        names = ", ".join(key_formatter(k) for k in self.keys)
        return f"J({names}) rows={self.rows}"

    def __repr__(self) -> str:
        return f"JacobianFactor(keys={self.keys}, rows={self.rows})"

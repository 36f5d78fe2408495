"""
elimtree/linear/gaussian_conditional.py

Gaussian conditional in square-root form:  R x_f + sum_p S_p x_p = d.
"""

from __future__ import annotations

from typing import Dict, Iterable, Tuple

import numpy as np
from scipy.linalg import solve_triangular

from elimtree.inference.factor_graph import Key, KeyFormatter
from elimtree.linear.vector_values import VectorValues


class GaussianConditional:
    """
    Conditional density of a frontal variable given its parents.

    Attributes:
        frontal: Eliminated variable
        R: Upper-triangular (dim, dim) block on the frontal variable
        parents: Parent keys, in block order
        S: parent key -> (dim, dim(parent)) block
        d: Right-hand side of shape (dim,)
    """

    def __init__(self, frontal: Key, R, parents: Iterable[Tuple[Key, np.ndarray]], d):
        self.frontal = frontal
        self.R: np.ndarray = np.asarray(R, dtype=np.float64)
        self.d: np.ndarray = np.atleast_1d(np.asarray(d, dtype=np.float64))
        self.S: Dict[Key, np.ndarray] = {}
        parent_keys = []
        for key, S in parents:
            self.S[key] = np.asarray(S, dtype=np.float64)
            parent_keys.append(key)
        self.parents: Tuple[Key, ...] = tuple(parent_keys)

    @property
    def keys(self) -> Tuple[Key, ...]:
        return (self.frontal,) + self.parents

    def solve(self, values: VectorValues) -> np.ndarray:
        """
        Solve for the frontal variable given parent values.

        Raises:
            KeyError: if a parent has no value
        """
        rhs = self.d.copy()
        for k in self.parents:
            rhs -= self.S[k] @ values[k]
        return solve_triangular(self.R, rhs, lower=False)

    def equals(self, other, tol: float = 1e-9) -> bool:
        if not isinstance(other, GaussianConditional):
            return False
        if self.frontal != other.frontal or set(self.parents) != set(other.parents):
            return False
        if self.R.shape != other.R.shape or self.d.shape != other.d.shape:
            return False
        if any(self.S[k].shape != other.S[k].shape for k in self.parents):
            return False
        # QR fixes each row only up to sign
        signs = np.sign(np.diag(self.R)) * np.sign(np.diag(other.R))
        if not np.allclose(self.R, signs[:, None] * other.R, atol=tol):
            return False
        for k in self.parents:
            if not np.allclose(self.S[k], signs[:, None] * other.S[k], atol=tol):
                return False
        return bool(np.allclose(self.d, signs * other.d, atol=tol))

    def format(self, key_formatter: KeyFormatter = str) -> str:
        head = key_formatter(self.frontal)
        if not self.parents:
            return f"p({head}) dim={self.d.shape[0]}"
        tail = ", ".join(key_formatter(k) for k in self.parents)
        return f"p({head} | {tail}) dim={self.d.shape[0]}"

    def __repr__(self) -> str:
        return f"GaussianConditional(frontal={self.frontal!r}, parents={self.parents})"

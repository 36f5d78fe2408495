"""
elimtree/linear/vector_values.py

Per-variable vector storage: key -> numpy vector.
"""

from __future__ import annotations

import sys
from typing import Dict, Iterator, Mapping, Optional, Sequence, Tuple

import numpy as np

from elimtree.inference.factor_graph import Key, KeyFormatter


class VectorValues:
    """
    Collection of vectors indexed by variable key.

    Arithmetic between two VectorValues requires the same structure:
    the same keys with the same dimensions.
    """

    def __init__(self, values: Optional[Mapping[Key, np.ndarray]] = None):
        self.values: Dict[Key, np.ndarray] = {}
        if values is not None:
            for k, v in values.items():
                self.insert(k, v)

    @classmethod
    def zero(cls, like: "VectorValues") -> "VectorValues":
        """Zero vectors with the structure of ``like``."""
        return cls.same_structure(like)

    @classmethod
    def same_structure(cls, other: "VectorValues") -> "VectorValues":
        """Values with the keys and dimensions of ``other``, zero-filled."""
        out = cls()
        out.resize_like(other)
        return out

    @classmethod
    def zeros(cls, n_vars: int, var_dim: int) -> "VectorValues":
        """``n_vars`` zero vectors of size ``var_dim``, keyed 0..n_vars-1."""
        return cls({j: np.zeros(var_dim) for j in range(n_vars)})

    def resize_like(self, other: "VectorValues") -> None:
        """Drop current contents and take the structure of ``other``, zero-filled."""
        self.values = {k: np.zeros(v.shape[0]) for k, v in other.values.items()}

    def set_zero(self) -> None:
        for v in self.values.values():
            v.fill(0.0)

    def swap(self, other: "VectorValues") -> None:
        self.values, other.values = other.values, self.values

    def insert(self, key: Key, value) -> None:
        """
        Add a vector for a new key.

        Raises:
            ValueError: if ``key`` already has a value
        """
        if key in self.values:
            raise ValueError(f"VectorValues: requested variable {key!r} to insert already exists")
        self.values[key] = np.atleast_1d(np.asarray(value, dtype=np.float64)).copy()

    def update(self, other: "VectorValues") -> None:
        """Overwrite values for every key in ``other``."""
        for k, v in other.values.items():
            self.values[k] = v.copy()

    def dim(self, key: Key) -> int:
        return self.values[key].shape[0]

    def dims(self) -> Dict[Key, int]:
        return {k: v.shape[0] for k, v in self.values.items()}

    def keys(self) -> Tuple[Key, ...]:
        return tuple(sorted(self.values))

    def has_same_structure(self, other: "VectorValues") -> bool:
        return self.dims() == other.dims()

    def _check_structure(self, other: "VectorValues", op: str) -> None:
        if not self.has_same_structure(other):
            raise ValueError(f"VectorValues::{op} called with different vector sizes")

    def dot(self, other: "VectorValues") -> float:
        self._check_structure(other, "dot")
        return float(sum(np.dot(v, other.values[k]) for k, v in self.values.items()))

    def squared_norm(self) -> float:
        return float(sum(np.dot(v, v) for v in self.values.values()))

    def norm(self) -> float:
        return float(np.sqrt(self.squared_norm()))

    def as_vector(self, keys: Optional[Sequence[Key]] = None) -> np.ndarray:
        """Concatenation of the vectors for ``keys`` (all keys, sorted, by default)."""
        order = self.keys() if keys is None else tuple(keys)
        if not order:
            return np.zeros(0)
        return np.concatenate([self.values[k] for k in order])

    def equals(self, other: "VectorValues", tol: float = 1e-9) -> bool:
        if not isinstance(other, VectorValues):
            return False
        if self.dims() != other.dims():
            return False
        return all(
            np.allclose(v, other.values[k], rtol=0.0, atol=tol) for k, v in self.values.items()
        )

    def print(self, name: str = "", key_formatter: KeyFormatter = str, file=None) -> None:
        out = file if file is not None else sys.stdout
        print(f"{name}: {len(self.values)} elements", file=out)
        for k in self.keys():
            print(f"  {key_formatter(k)}: {self.values[k]}", file=out)

    def __add__(self, other: "VectorValues") -> "VectorValues":
        self._check_structure(other, "operator+")
        out = VectorValues.same_structure(self)
        for k, v in self.values.items():
            out.values[k] = v + other.values[k]
        return out

    def __sub__(self, other: "VectorValues") -> "VectorValues":
        self._check_structure(other, "operator-")
        out = VectorValues.same_structure(self)
        for k, v in self.values.items():
            out.values[k] = v - other.values[k]
        return out

    def __iadd__(self, other: "VectorValues") -> "VectorValues":
        self._check_structure(other, "operator+=")
        for k in self.values:
            self.values[k] = self.values[k] + other.values[k]
        return self

    def __getitem__(self, key: Key) -> np.ndarray:
        return self.values[key]

    def __contains__(self, key: Key) -> bool:
        return key in self.values

    def __iter__(self) -> Iterator[Key]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self) -> str:
        return f"VectorValues(vars={len(self.values)}, dim={sum(self.dims().values())})"

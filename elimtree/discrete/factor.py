"""
elimtree/discrete/factor.py

Discrete factors: nonnegative tables over finite-domain variables.

A DiscreteFactor is a dense numpy table with one axis per key.

Key operations:
  - product:  aligned pointwise multiplication on the union of keys
  - marginal: sum out every key not kept, output axes in the requested order
  - evaluate: table lookup for a full assignment

Determinism: product() orders the union of keys by sorting, so the same
inputs always give the same axis layout.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence, Tuple

import numpy as np

from elimtree.inference.factor_graph import Key, KeyFormatter


@dataclass(frozen=True, eq=False)
class DiscreteFactor:
    """
    A table over an ordered tuple of keys.

    Attributes:
        keys: Ordered variable keys (axis labels)
        table: ndarray shaped by the variables' cardinalities, same order
    """
    keys: Tuple[Key, ...]
    table: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "keys", tuple(self.keys))
        object.__setattr__(self, "table", np.asarray(self.table, dtype=np.float64))
        if len(self.keys) != self.table.ndim:
            raise ValueError(
                f"DiscreteFactor rank mismatch: |keys|={len(self.keys)} "
                f"but table.ndim={self.table.ndim}"
            )
        if len(set(self.keys)) != len(self.keys):
            raise ValueError(f"DiscreteFactor keys have duplicates: {self.keys}")

    def axis_of(self, key: Key) -> int:
        return self.keys.index(key)

    def cardinality(self, key: Key) -> int:
        """Domain size of ``key``, inferred from the table shape."""
        return self.table.shape[self.axis_of(key)]

    def cardinalities(self) -> dict:
        return dict(zip(self.keys, self.table.shape))

    def _aligned_view(self, target: Tuple[Key, ...], target_shape: Tuple[int, ...]) -> np.ndarray:
        """
        Table permuted into ``target`` order, with singleton axes for keys
        this factor lacks, broadcast to ``target_shape``.
        """
        src_pos = {k: i for i, k in enumerate(self.keys)}
        perm = [src_pos[k] for k in target if k in src_pos]

        data = self.table
        if perm and perm != list(range(data.ndim)):
            data = np.transpose(data, axes=perm)

        shape = []
        j = 0
        for k in target:
            if k in src_pos:
                shape.append(data.shape[j])
                j += 1
            else:
                shape.append(1)

        return np.broadcast_to(data.reshape(shape), target_shape)

    def product(self, other: "DiscreteFactor") -> "DiscreteFactor":
        """
        Pointwise product on the union of keys (sorted).

        Raises:
            ValueError: if a shared key has different cardinalities
        """
        mine = self.cardinalities()
        theirs = other.cardinalities()
        for k in set(mine) & set(theirs):
            if mine[k] != theirs[k]:
                raise ValueError(
                    f"Cardinality mismatch for key {k!r}: {mine[k]} vs {theirs[k]}"
                )

        union = tuple(sorted(set(mine) | set(theirs)))
        shape = tuple(mine[k] if k in mine else theirs[k] for k in union)
        a = self._aligned_view(union, shape)
        b = other._aligned_view(union, shape)
        return DiscreteFactor(union, a * b)

    def marginal(self, keys: Sequence[Key]) -> "DiscreteFactor":
        """
        Sum out every key not in ``keys``.

        Output axes are in exactly the order of ``keys`` (no sorting), so
        this also serves to permute a factor.
        """
        target = tuple(keys)
        present = set(self.keys)
        for k in target:
            if k not in present:
                raise ValueError(f"marginal key {k!r} not in factor keys {self.keys}")

        if target == self.keys:
            return self

        kept = set(target)
        kept_axes = [self.axis_of(k) for k in target]
        elim_axes = [i for i, k in enumerate(self.keys) if k not in kept]
        data = np.transpose(self.table, axes=kept_axes + elim_axes)
        if elim_axes:
            data = data.sum(axis=tuple(range(len(kept_axes), self.table.ndim)))
        return DiscreteFactor(target, data)

    def evaluate(self, assignment: Mapping[Key, int]) -> float:
        """Value of the table at a (superset) assignment of its keys."""
        return float(self.table[tuple(assignment[k] for k in self.keys)])

    def equals(self, other, tol: float = 1e-9) -> bool:
        """Same keys (in any order) and tables equal within ``tol``."""
        if not isinstance(other, DiscreteFactor):
            return False
        if set(self.keys) != set(other.keys):
            return False
        if self.cardinalities() != other.cardinalities():
            return False
        aligned = other.marginal(self.keys)
        return bool(np.allclose(self.table, aligned.table, rtol=0.0, atol=tol))

    def format(self, key_formatter: KeyFormatter = str) -> str:
        names = ", ".join(key_formatter(k) for k in self.keys)
        return f"f({names}) shape={self.table.shape}"

    def __repr__(self) -> str:
        return f"DiscreteFactor(keys={self.keys}, shape={self.table.shape})"


def product_all(factors: Iterable[DiscreteFactor]) -> DiscreteFactor:
    """Product of one or more factors."""
    it = iter(factors)
    try:
        acc = next(it)
    except StopIteration:
        raise ValueError("product_all needs at least one factor") from None
    for f in it:
        acc = acc.product(f)
    return acc


def brute_force_joint(factors: Iterable[Optional[DiscreteFactor]]) -> DiscreteFactor:
    """Dense product of every non-None factor, axes in sorted key order."""
    joint = product_all(f for f in factors if f is not None)
    return joint.marginal(tuple(sorted(joint.keys)))

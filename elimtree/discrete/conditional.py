"""
elimtree/discrete/conditional.py

Discrete conditional P(frontal | parents).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Tuple

import numpy as np

from elimtree.discrete.factor import DiscreteFactor, brute_force_joint
from elimtree.inference.factor_graph import Key, KeyFormatter


@dataclass(frozen=True, eq=False)
class DiscreteConditional:
    """
    Conditional probability table.

    Attributes:
        frontal: The eliminated variable
        parents: Conditioning variables, in table axis order
        table: ndarray of shape (card(frontal), *card(parents)); each column
            over the frontal axis sums to one (or is all zero when the parent
            configuration has no mass)
    """
    frontal: Key
    parents: Tuple[Key, ...]
    table: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "parents", tuple(self.parents))
        object.__setattr__(self, "table", np.asarray(self.table, dtype=np.float64))
        if self.table.ndim != 1 + len(self.parents):
            raise ValueError(
                f"DiscreteConditional rank mismatch: 1+|parents|={1 + len(self.parents)} "
                f"but table.ndim={self.table.ndim}"
            )

    @property
    def keys(self) -> Tuple[Key, ...]:
        return (self.frontal,) + self.parents

    def as_factor(self) -> DiscreteFactor:
        return DiscreteFactor(self.keys, self.table)

    def evaluate(self, assignment: Mapping[Key, int]) -> float:
        return float(self.table[tuple(assignment[k] for k in self.keys)])

    def equals(self, other, tol: float = 1e-9) -> bool:
        if not isinstance(other, DiscreteConditional):
            return False
        if self.frontal != other.frontal:
            return False
        return self.as_factor().equals(other.as_factor(), tol)

    def format(self, key_formatter: KeyFormatter = str) -> str:
        head = key_formatter(self.frontal)
        if not self.parents:
            return f"P({head})"
        tail = ", ".join(key_formatter(k) for k in self.parents)
        return f"P({head} | {tail})"

    def __repr__(self) -> str:
        return f"DiscreteConditional(frontal={self.frontal!r}, parents={self.parents})"


def discrete_joint(
    conditionals: Iterable[DiscreteConditional],
    factors: Iterable[Optional[DiscreteFactor]] = (),
) -> DiscreteFactor:
    """
    Dense product of a Bayes net's conditionals and any extra factors.

    Used to compare an elimination result against the brute-force joint.
    """
    parts = [c.as_factor() for c in conditionals]
    parts.extend(f for f in factors if f is not None)
    return brute_force_joint(parts)

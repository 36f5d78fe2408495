"""
elimtree/inference/bayes_net.py

Bayes net: the ordered conditionals produced by elimination.

Order matters: conditionals appear in elimination order, so every
conditional's parents are frontal variables of later conditionals
(or variables that were not eliminated at all).
"""

from __future__ import annotations

import sys
from typing import Any, Iterable, Iterator, List, Optional, Tuple

from elimtree.inference.factor_graph import Key, KeyFormatter, factor_equals, format_factor


class BayesNet:
    """Ordered sequence of conditionals."""

    def __init__(self, conditionals: Optional[Iterable[Any]] = None):
        self.conditionals: List[Any] = list(conditionals) if conditionals is not None else []

    def push_back(self, conditional: Any) -> None:
        self.conditionals.append(conditional)

    def keys(self) -> Tuple[Key, ...]:
        """Frontal keys in elimination order."""
        return tuple(c.keys[0] for c in self.conditionals)

    def equals(self, other: "BayesNet", tol: float = 1e-9) -> bool:
        if len(self) != len(other):
            return False
        return all(factor_equals(a, b, tol) for a, b in zip(self.conditionals, other.conditionals))

    def print(self, name: str = "", key_formatter: KeyFormatter = str, file=None) -> None:
        out = file if file is not None else sys.stdout
        print(f"{name}size: {len(self.conditionals)}", file=out)
        for i, c in enumerate(self.conditionals):
            print(f"  conditional {i}: {format_factor(c, key_formatter)}", file=out)

    def __len__(self) -> int:
        return len(self.conditionals)

    def __getitem__(self, idx: int) -> Any:
        return self.conditionals[idx]

    def __iter__(self) -> Iterator[Any]:
        return iter(self.conditionals)

    def __reversed__(self) -> Iterator[Any]:
        return reversed(self.conditionals)

    def __repr__(self) -> str:
        return f"BayesNet(conditionals={len(self.conditionals)})"

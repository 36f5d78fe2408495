"""
elimtree/inference/factor_graph.py

Factor graph container and the minimal factor protocol used by the core.

A factor is any object exposing ``keys`` (the variables it touches).
The elimination core only stores and forwards factors. Two optional
hooks are honoured when present:

- ``factor.equals(other, tol)`` for tolerance-based comparison
- ``factor.format(key_formatter)`` for printing
"""

from __future__ import annotations

import sys
from typing import Any, Callable, Hashable, Iterable, Iterator, List, Optional, Tuple

Key = Hashable
KeyFormatter = Callable[[Key], str]

# (factors, [key]) -> (conditional, separator or None)
EliminateFunction = Callable[[List[Any], List[Key]], Tuple[Any, Optional[Any]]]


def factor_equals(a: Any, b: Any, tol: float = 1e-9) -> bool:
    """Compare two (possibly None) factors, within tolerance when supported."""
    if a is None or b is None:
        return a is None and b is None
    if a is b:
        return True
    if hasattr(a, "equals") and callable(a.equals):
        return bool(a.equals(b, tol))
    return bool(a == b)


def format_factor(factor: Any, key_formatter: KeyFormatter = str) -> str:
    """Single-line text for a factor."""
    if factor is None:
        return "null factor"
    if hasattr(factor, "format") and callable(factor.format):
        return factor.format(key_formatter)
    return repr(factor)


class FactorGraph:
    """
    Ordered collection of factors, indexable by position.

    Positions are stable: the variable index refers to factors by position,
    so factors are only ever appended. ``None`` entries are allowed and are
    ignored by the variable index.
    """

    def __init__(self, factors: Optional[Iterable[Any]] = None):
        self.factors: List[Any] = list(factors) if factors is not None else []

    def push_back(self, factor: Any) -> None:
        """Append a factor, or every factor of an iterable of factors."""
        if factor is not None and not hasattr(factor, "keys") and isinstance(factor, Iterable):
            self.factors.extend(factor)
        else:
            self.factors.append(factor)

    def keys(self) -> Tuple[Key, ...]:
        """Sorted tuple of every key touched by some factor."""
        out = set()
        for f in self.factors:
            if f is not None:
                out.update(f.keys)
        return tuple(sorted(out))

    def equals(self, other: "FactorGraph", tol: float = 1e-9) -> bool:
        if len(self) != len(other):
            return False
        return all(factor_equals(a, b, tol) for a, b in zip(self.factors, other.factors))

    def print(self, name: str = "", key_formatter: KeyFormatter = str, file=None) -> None:
        out = file if file is not None else sys.stdout
        print(f"{name}size: {len(self.factors)}", file=out)
        for i, f in enumerate(self.factors):
            print(f"  factor {i}: {format_factor(f, key_formatter)}", file=out)

    def __len__(self) -> int:
        return len(self.factors)

    def __getitem__(self, idx: int) -> Any:
        return self.factors[idx]

    def __iter__(self) -> Iterator[Any]:
        return iter(self.factors)

    def __repr__(self) -> str:
        return f"FactorGraph(factors={len(self.factors)})"

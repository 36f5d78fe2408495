"""
elimtree/inference/variable_index.py

Variable index: for each key, the positions of the factors touching it.

The index is the adjacency structure the elimination tree builder scans.
Positions are listed in factor-graph order, each factor at most once per key.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Sequence, Tuple

from elimtree.inference.factor_graph import Key


class VariableIndex:
    """
    Variable-to-factor incidence of a factor graph.

    Maintains:
    - key -> ordered list of factor positions
    - the number of factors indexed (including None entries)
    - the total number of (key, factor) incidences
    """

    def __init__(self, factors: Iterable[Any] = ()):
        self.index: Dict[Key, List[int]] = {}
        self.n_factors: int = 0
        self.n_entries: int = 0
        self.augment(factors)

    def augment(self, factors: Iterable[Any]) -> None:
        """
        Index additional factors appended after those already indexed.

        Positions continue from ``n_factors``, so the index stays valid for
        a factor graph that only grows at the end.
        """
        for f in factors:
            i = self.n_factors
            self.n_factors += 1
            if f is None:
                continue
            for key in f.keys:
                entries = self.index.setdefault(key, [])
                if entries and entries[-1] == i:
                    continue
                entries.append(i)
                self.n_entries += 1

    def __getitem__(self, key: Key) -> List[int]:
        try:
            return self.index[key]
        except KeyError:
            raise KeyError(f"Requested variable {key!r} is not in this VariableIndex") from None

    def __contains__(self, key: Key) -> bool:
        return key in self.index

    def __iter__(self) -> Iterator[Key]:
        return iter(self.index)

    def __len__(self) -> int:
        return len(self.index)

    def keys(self) -> Tuple[Key, ...]:
        """All indexed keys, sorted."""
        return tuple(sorted(self.index))

    def factors_containing(self, key: Key) -> Sequence[int]:
        """Positions of the factors touching ``key`` (empty if none)."""
        return self.index.get(key, [])

    def __repr__(self) -> str:
        return f"VariableIndex(vars={len(self.index)}, factors={self.n_factors}, entries={self.n_entries})"

"""
elimtree/core/registry.py

Key registry for named variables.

The elimination core works on opaque, totally ordered integer keys.
Users usually think in variable names; the registry maps between the two
deterministically (names sorted, keys assigned 0..n-1).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple


@dataclass
class KeyRegistry:
    """
    Registry for mapping variable names to integer keys.

    Attributes:
        name_to_key: Variable name -> key
        key_to_name: Key -> variable name (list index is the key)
    """
    name_to_key: Dict[str, int]
    key_to_name: List[str]

    @staticmethod
    def build(names: Iterable[str]) -> "KeyRegistry":
        """
        Build a registry from variable names.

        Args:
            names: Variable names (duplicates are ignored)

        Returns:
            KeyRegistry with keys assigned in sorted name order
        """
        ordered = sorted(set(names))
        return KeyRegistry(
            name_to_key={n: i for i, n in enumerate(ordered)},
            key_to_name=ordered,
        )

    def key(self, name: str) -> int:
        """Get the key for a variable name."""
        return self.name_to_key[name]

    def name(self, key: int) -> str:
        """Get the variable name for a key."""
        return self.key_to_name[key]

    def keys_for(self, names: Sequence[str]) -> Tuple[int, ...]:
        """Translate a sequence of names, preserving order."""
        return tuple(self.name_to_key[n] for n in names)

    def formatter(self):
        """Key formatter usable by the print utilities."""
        def fmt(key: int) -> str:
            if 0 <= key < len(self.key_to_name):
                return self.key_to_name[key]
            return str(key)
        return fmt

    def __len__(self) -> int:
        return len(self.key_to_name)

    def __contains__(self, name: str) -> bool:
        return name in self.name_to_key

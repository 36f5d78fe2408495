"""
elimtree/core/errors.py

Exception types raised by the elimination machinery.

- OrderingError: the caller asked for an elimination ordering that does not
  match the factor graph. Recoverable: pick another ordering.
- StructuralMismatch: an elimination tree invariant was broken while
  building. Indicates a bug; never caught inside the library.
- IndeterminantLinearSystem: a Gaussian elimination step found a
  rank-deficient frontal block.
"""

from __future__ import annotations

from typing import Any, Optional


class OrderingError(ValueError):
    """The ordering names a variable the factor graph does not contain."""

    def __init__(self, message: str, key: Optional[Any] = None):
        super().__init__(message)
        self.key = key


class StructuralMismatch(RuntimeError):
    """Internal elimination tree invariant violation."""


class IndeterminantLinearSystem(RuntimeError):
    """
    Raised when a linear elimination step cannot solve for its frontal variable.

    Attributes:
        key: The variable whose block was found to be singular
    """

    def __init__(self, key: Any, detail: str = ""):
        msg = f"Indeterminant linear system detected while eliminating key {key!r}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
        self.key = key

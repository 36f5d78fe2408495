"""
elimtree/linear/block_matrix.py

Dense matrix partitioned into column blocks of fixed widths.

Used to stack Jacobian factors into one augmented system [A_1 ... A_k | b]
before QR, and to slice the result back into per-variable blocks.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np


class VerticalBlockMatrix:
    """
    Matrix whose columns are split into consecutive blocks.

    Attributes:
        matrix: The underlying (rows, cols) array
        offsets: Column offsets, len(block_dims) + 1 entries, last == cols
    """

    def __init__(self, block_dims: Sequence[int], rows: int, dtype: type = np.float64):
        offsets = [0]
        for d in block_dims:
            if d < 0:
                raise ValueError(f"Negative block width: {d}")
            offsets.append(offsets[-1] + int(d))
        self.offsets: List[int] = offsets
        self.matrix: np.ndarray = np.zeros((int(rows), offsets[-1]), dtype=dtype)

    @classmethod
    def from_matrix(cls, matrix: np.ndarray, block_dims: Sequence[int]) -> "VerticalBlockMatrix":
        out = cls(block_dims, matrix.shape[0], dtype=matrix.dtype)
        if out.cols != matrix.shape[1]:
            raise ValueError(
                f"Block widths sum to {out.cols} but matrix has {matrix.shape[1]} columns"
            )
        out.matrix = matrix
        return out

    @classmethod
    def like(cls, other: "VerticalBlockMatrix", rows: Optional[int] = None) -> "VerticalBlockMatrix":
        """Zero matrix with the column blocks of ``other`` and ``rows`` rows (default: the same)."""
        return cls(other.block_dims, other.rows if rows is None else rows, dtype=other.matrix.dtype)

    @property
    def rows(self) -> int:
        return self.matrix.shape[0]

    @property
    def cols(self) -> int:
        return self.matrix.shape[1]

    @property
    def block_dims(self) -> List[int]:
        return [self.offsets[i + 1] - self.offsets[i] for i in range(self.n_blocks)]

    @property
    def n_blocks(self) -> int:
        return len(self.offsets) - 1

    def block_range(self, i: int) -> Tuple[int, int]:
        return self.offsets[i], self.offsets[i + 1]

    def __getitem__(self, i: int) -> np.ndarray:
        """View of column block ``i`` (all rows)."""
        start, stop = self.block_range(i)
        return self.matrix[:, start:stop]

    def range(self, i: int, j: int) -> np.ndarray:
        """View of column blocks ``i`` (inclusive) to ``j`` (exclusive)."""
        return self.matrix[:, self.offsets[i]:self.offsets[j]]

    def row_range(self, start: int, stop: int) -> "VerticalBlockMatrix":
        """Rows ``start:stop`` with the same column blocks."""
        return VerticalBlockMatrix.from_matrix(self.matrix[start:stop], self.block_dims)

    def __repr__(self) -> str:
        return f"VerticalBlockMatrix(rows={self.rows}, blocks={self.n_blocks}, cols={self.cols})"

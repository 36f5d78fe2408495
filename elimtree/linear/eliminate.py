"""
elimtree/linear/eliminate.py

Dense QR elimination of one variable from a set of Jacobian factors,
and back-substitution over the resulting Gaussian Bayes net.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy.linalg import qr

from elimtree.core.errors import IndeterminantLinearSystem
from elimtree.inference.factor_graph import Key
from elimtree.linear.block_matrix import VerticalBlockMatrix
from elimtree.linear.gaussian_conditional import GaussianConditional
from elimtree.linear.jacobian_factor import JacobianFactor
from elimtree.linear.vector_values import VectorValues

SINGULAR_RTOL = 1e-12


def _collect_dims(factors: Sequence[JacobianFactor]) -> Dict[Key, int]:
    dims: Dict[Key, int] = {}
    for f in factors:
        for k in f.keys:
            d = f.dim(k)
            if dims.setdefault(k, d) != d:
                raise ValueError(f"Inconsistent dimensions for key {k!r}: {dims[k]} vs {d}")
    return dims


def eliminate_qr(
    factors: Sequence[JacobianFactor],
    keys: Sequence[Key],
) -> Tuple[GaussianConditional, Optional[JacobianFactor]]:
    """
    Eliminate one variable by QR on the stacked augmented system.

    Column blocks are ordered frontal key first, then the remaining keys
    sorted. After R = qr([A | b]), the first dim(frontal) rows form the
    conditional and the following rows (up to the number of unknowns) form
    the separator over the remaining keys.

    Args:
        factors: Jacobian factors touching the key
        keys: Exactly one key to eliminate

    Returns:
        (conditional, separator) with separator None when no other keys or
        no rows remain

    Raises:
        IndeterminantLinearSystem: if the frontal block is rank deficient
    """
    if len(keys) != 1:
        raise ValueError(f"eliminate_qr eliminates exactly one key, got {list(keys)}")
    key = keys[0]

    dims = _collect_dims(factors)
    if key not in dims:
        raise IndeterminantLinearSystem(key, "no factor involves this variable")

    order: List[Key] = [key] + sorted(k for k in dims if k != key)
    m = sum(f.rows for f in factors)
    Ab = VerticalBlockMatrix([dims[k] for k in order] + [1], m)

    row = 0
    for f in factors:
        stop = row + f.rows
        for i, k in enumerate(order):
            if k in f.blocks:
                Ab[i][row:stop] = f.blocks[k]
        Ab[len(order)][row:stop, 0] = f.b
        row = stop

    n = Ab.offsets[len(order)]
    d = dims[key]
    if m < d:
        raise IndeterminantLinearSystem(key, f"{m} rows for a {d}-dimensional variable")

    R = qr(Ab.matrix, mode="r")[0]
    R = R[:min(m, n + 1)]

    diag = np.abs(np.diag(R[:d, :d]))
    scale = max(1.0, float(np.abs(Ab.matrix).max()) if Ab.matrix.size else 1.0)
    if diag.size < d or diag.min() <= SINGULAR_RTOL * scale:
        raise IndeterminantLinearSystem(key, "frontal block is rank deficient")

    Rb = VerticalBlockMatrix.like(Ab, rows=R.shape[0])
    Rb.matrix[:] = R
    top = Rb.row_range(0, d)
    conditional = GaussianConditional(
        key,
        top[0],
        [(k, top[i]) for i, k in enumerate(order) if i > 0],
        top[len(order)][:, 0],
    )

    stop = min(R.shape[0], n)
    if len(order) == 1 or stop <= d:
        return conditional, None

    rest = Rb.row_range(d, stop)
    separator = JacobianFactor(
        [(k, rest[i]) for i, k in enumerate(order) if i > 0],
        rest[len(order)][:, 0],
    )
    return conditional, separator


def optimize(bayes_net, given: Optional[VectorValues] = None) -> VectorValues:
    """
    Back-substitute a Gaussian Bayes net.

    Conditionals are solved last-eliminated first, so every parent is known
    by the time a conditional needs it. Parents that were never eliminated
    must be supplied in ``given``.

    Returns:
        VectorValues holding ``given`` plus every frontal variable

    Raises:
        ValueError: if ``given`` holds a value for an eliminated variable
    """
    values = VectorValues()
    if given is not None:
        overlap = sorted(set(given) & {c.frontal for c in bayes_net})
        if overlap:
            raise ValueError(
                f"optimize: given values for eliminated variables {overlap}; "
                "only non-eliminated parents may be given"
            )
        values.update(given)
    for conditional in reversed(bayes_net):
        values.insert(conditional.frontal, conditional.solve(values))
    return values

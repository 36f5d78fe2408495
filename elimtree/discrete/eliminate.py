"""
elimtree/discrete/eliminate.py

Sum-product elimination of one discrete variable.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np

from elimtree.discrete.conditional import DiscreteConditional
from elimtree.discrete.factor import DiscreteFactor, product_all
from elimtree.inference.factor_graph import Key


def eliminate_discrete(
    factors: Sequence[DiscreteFactor],
    keys: Sequence[Key],
) -> Tuple[DiscreteConditional, Optional[DiscreteFactor]]:
    """
    Eliminate a single key from a set of discrete factors.

    The factors are multiplied into a joint phi(x, S) over the key x and the
    other keys S they touch. Then

        separator(S)  = sum_x phi(x, S)
        P(x | S)      = phi(x, S) / separator(S)      (0 where separator is 0)

    Args:
        factors: Factors to combine; at least one must touch the key
        keys: Exactly one key to eliminate

    Returns:
        (conditional, separator) with separator None when S is empty
    """
    if len(keys) != 1:
        raise ValueError(f"eliminate_discrete eliminates exactly one key, got {list(keys)}")
    key = keys[0]
    if not factors:
        raise ValueError(f"eliminate_discrete: no factors given for key {key!r}")

    joint = product_all(factors)
    if key not in joint.keys:
        raise ValueError(f"eliminate_discrete: key {key!r} not in any of the factors")

    parents = tuple(k for k in joint.keys if k != key)
    table = joint.marginal((key,) + parents).table

    sep = table.sum(axis=0)
    cond = np.divide(table, sep, out=np.zeros_like(table), where=(sep != 0))

    conditional = DiscreteConditional(key, parents, cond)
    separator = DiscreteFactor(parents, sep) if parents else None
    return conditional, separator

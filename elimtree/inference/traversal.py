"""
elimtree/inference/traversal.py

Generic traversals over an elimination forest.

A forest here is anything exposing:
- ``nodes``: arena of nodes, each with ``key``, ``factors`` and ``children``
  (children are arena indices)
- ``roots``: arena indices of the root nodes
- ``remaining_factors``: factors not owned by any node

Trees can be as deep as the number of eliminated variables, so every
traversal uses an explicit stack instead of recursion.
"""

from __future__ import annotations

import io
import sys
from typing import Any, Iterator, List, Sequence, Tuple

from elimtree.inference.factor_graph import KeyFormatter, factor_equals, format_factor


def _sorted_by_key(nodes: Sequence[Any], indices: Sequence[int]) -> List[int]:
    """Indices sorted by the key of the node they refer to."""
    return sorted(indices, key=lambda i: nodes[i].key)


def postorder(forest) -> Iterator[int]:
    """
    Post-order traversal of node indices (children before parents).

    Roots are visited in stored order, children in stored order. Uses the
    two-phase marked stack: a node is emitted on its second visit, once all
    of its children have been emitted.
    """
    nodes = forest.nodes
    for root in forest.roots:
        stack: List[Tuple[int, bool]] = [(root, False)]
        while stack:
            u, expanded = stack.pop()
            if expanded:
                yield u
                continue
            stack.append((u, True))
            for c in reversed(nodes[u].children):
                stack.append((c, False))


def preorder_with_depth(forest) -> Iterator[Tuple[int, int]]:
    """Canonical pre-order (roots and children sorted by key) with depths."""
    nodes = forest.nodes
    stack: List[Tuple[int, int]] = [(r, 0) for r in reversed(_sorted_by_key(nodes, forest.roots))]
    while stack:
        u, depth = stack.pop()
        yield u, depth
        for c in reversed(_sorted_by_key(nodes, nodes[u].children)):
            stack.append((c, depth + 1))


def clone_forest(forest):
    """
    Deep-copy the node structure of a forest.

    Every node record and child list is new; factor objects and the
    remaining factors are shared by reference.
    """
    new_nodes = [node.copy() for node in forest.nodes]
    return forest.__class__(
        nodes=new_nodes,
        roots=list(forest.roots),
        remaining_factors=list(forest.remaining_factors),
    )


def format_forest(forest, name: str = "", key_formatter: KeyFormatter = str) -> str:
    """
    Render a forest depth-first in canonical key order.

    Each node prints its key in parentheses followed by one line per owned
    factor. A node owning no factors prints an explicit marker line.
    """
    buf = io.StringIO()
    for u, depth in preorder_with_depth(forest):
        node = forest.nodes[u]
        prefix = name + "  " * depth
        buf.write(f"{prefix}({key_formatter(node.key)})\n")
        if not node.factors:
            buf.write(f"{prefix}| (no factors)\n")
        for f in node.factors:
            buf.write(f"{prefix}| {format_factor(f, key_formatter)}\n")
    return buf.getvalue()


def print_forest(forest, name: str = "", key_formatter: KeyFormatter = str, file=None) -> None:
    """Print ``format_forest`` to ``file`` (stdout by default)."""
    out = file if file is not None else sys.stdout
    out.write(format_forest(forest, name, key_formatter))


def forests_equal(a, b, tol: float = 1e-9) -> bool:
    """
    Structural equality of two forests.

    Walks both forests in lock step with explicit stacks, roots and children
    pushed in sorted key order. Nodes must agree on key, on owned factors
    (pairwise, both None or equal within ``tol``) and on child count. Any
    node left over on one stack means the node counts differ.
    """
    nodes1, nodes2 = a.nodes, b.nodes
    if len(a.roots) != len(b.roots):
        return False

    stack1 = _sorted_by_key(nodes1, a.roots)
    stack2 = _sorted_by_key(nodes2, b.roots)

    while stack1 and stack2:
        n1 = nodes1[stack1.pop()]
        n2 = nodes2[stack2.pop()]

        if n1.key != n2.key:
            return False
        if len(n1.factors) != len(n2.factors):
            return False
        for f1, f2 in zip(n1.factors, n2.factors):
            if not factor_equals(f1, f2, tol):
                return False
        if len(n1.children) != len(n2.children):
            return False

        stack1.extend(_sorted_by_key(nodes1, n1.children))
        stack2.extend(_sorted_by_key(nodes2, n2.children))

    return not stack1 and not stack2

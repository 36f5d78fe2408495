"""
elimtree/inference/elimination_tree.py

Elimination tree (forest) over an ordered set of variables.

The forest encodes which eliminations must precede which: an edge
child -> parent means the child's subtree shares a factor with the parent
variable and has to be fully eliminated before the parent. A post-order
walk of the forest is therefore a valid elimination sequence.

Nodes live in an arena indexed by ordering position; child links are arena
indices. The parent array used while building is discarded afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import networkx as nx

from elimtree.core.errors import OrderingError, StructuralMismatch
from elimtree.inference.factor_graph import EliminateFunction, Key, KeyFormatter
from elimtree.inference.traversal import clone_forest, format_forest, forests_equal, print_forest
from elimtree.inference.variable_index import VariableIndex

logger = logging.getLogger(__name__)


@dataclass
class EliminationNode:
    """
    One vertex of the elimination forest.

    Attributes:
        key: Variable eliminated at this node
        factors: Factors first touched at this key, in variable index order
        children: Arena indices of child nodes
    """
    key: Key
    factors: List[Any] = field(default_factory=list)
    children: List[int] = field(default_factory=list)

    def copy(self) -> "EliminationNode":
        """New node record with new lists holding the same factor objects."""
        return EliminationNode(key=self.key, factors=list(self.factors), children=list(self.children))


class EliminationTree:
    """
    Elimination forest plus the factors no ordered variable touches.

    Attributes:
        nodes: Node arena, one node per ordering position
        roots: Arena indices of the root nodes, in ordering order
        remaining_factors: Factors untouched by the ordering, in graph order
    """

    def __init__(
        self,
        nodes: Optional[List[EliminationNode]] = None,
        roots: Optional[List[int]] = None,
        remaining_factors: Optional[List[Any]] = None,
    ):
        self.nodes: List[EliminationNode] = nodes if nodes is not None else []
        self.roots: List[int] = roots if roots is not None else []
        self.remaining_factors: List[Any] = remaining_factors if remaining_factors is not None else []

    @classmethod
    def build(
        cls,
        graph: Sequence[Any],
        ordering: Sequence[Key],
        variable_index: Optional[Mapping[Key, Sequence[int]]] = None,
    ) -> "EliminationTree":
        """
        Build the elimination forest of ``graph`` for ``ordering``.

        Args:
            graph: Factors, indexable by position (None entries allowed)
            ordering: Keys to eliminate, in order. May be a subset of the
                graph's keys for partial elimination.
            variable_index: key -> positions of the factors touching it.
                Derived from ``graph`` when omitted.

        Returns:
            EliminationTree

        Raises:
            OrderingError: if the ordering repeats a key or names a key the
                variable index does not contain
        """
        if variable_index is None:
            variable_index = VariableIndex(graph)

        m = len(graph)
        n = len(ordering)

        nodes: List[EliminationNode] = []
        parent: List[Optional[int]] = [None] * n
        last_column: List[Optional[int]] = [None] * m
        factor_used = [False] * m
        seen: Dict[Key, int] = {}

        for j in range(n):
            key = ordering[j]
            if key in seen:
                raise OrderingError(
                    f"EliminationTree: ordering contains key {key!r} twice "
                    f"(positions {seen[key]} and {j})",
                    key=key,
                )
            seen[key] = j

            try:
                involved = variable_index[key]
            except KeyError:
                raise OrderingError(
                    f"EliminationTree: given ordering contains variable {key!r} "
                    f"that is not involved in the factor graph",
                    key=key,
                ) from None

            node = EliminationNode(key=key)
            nodes.append(node)

            for i in involved:
                k = last_column[i]
                if k is None:
                    # First ordered variable of factor i: node j owns it
                    node.factors.append(graph[i])
                    factor_used[i] = True
                else:
                    r = k
                    while parent[r] is not None:
                        r = parent[r]
                    if r != j:
                        parent[r] = j
                        node.children.append(r)
                last_column[i] = j

        if n and parent[n - 1] is not None:
            raise StructuralMismatch(
                f"EliminationTree: last ordered variable {ordering[n - 1]!r} is not a root"
            )

        roots = [j for j in range(n) if parent[j] is None]
        remaining = [graph[i] for i in range(m) if not factor_used[i]]

        logger.debug(
            "Built elimination tree: %d nodes, %d roots, %d remaining factors",
            n, len(roots), len(remaining),
        )
        return cls(nodes=nodes, roots=roots, remaining_factors=remaining)

    def eliminate(self, function: EliminateFunction):
        """
        Eliminate every node of the forest with ``function``.

        Returns:
            (BayesNet, FactorGraph of remaining factors)
        """
        from elimtree.inference.eliminate import eliminate_tree
        return eliminate_tree(self, function)

    def clone(self) -> "EliminationTree":
        """Deep copy of the structure sharing the factor objects."""
        return clone_forest(self)

    def swap(self, other: "EliminationTree") -> None:
        """Exchange contents with another tree."""
        self.nodes, other.nodes = other.nodes, self.nodes
        self.roots, other.roots = other.roots, self.roots
        self.remaining_factors, other.remaining_factors = other.remaining_factors, self.remaining_factors

    def equals(self, other: "EliminationTree", tol: float = 1e-9) -> bool:
        return forests_equal(self, other, tol)

    def print(self, name: str = "", key_formatter: KeyFormatter = str, file=None) -> None:
        print_forest(self, name, key_formatter, file=file)

    def format(self, name: str = "", key_formatter: KeyFormatter = str) -> str:
        return format_forest(self, name, key_formatter)

    def root_nodes(self) -> List[EliminationNode]:
        return [self.nodes[r] for r in self.roots]

    def node(self, key: Key) -> EliminationNode:
        """Node eliminating ``key``."""
        for node in self.nodes:
            if node.key == key:
                return node
        raise KeyError(f"Key {key!r} is not eliminated by this tree")

    def parents(self) -> Dict[Key, Optional[Key]]:
        """Map from each key to the key of its parent node (None for roots)."""
        out: Dict[Key, Optional[Key]] = {node.key: None for node in self.nodes}
        for node in self.nodes:
            for c in node.children:
                out[self.nodes[c].key] = node.key
        return out

    def to_networkx(self) -> nx.DiGraph:
        """
        Forest as a directed graph with edges child -> parent.

        Node attributes: ``factors`` (owned factor list), ``root`` (bool).
        """
        g = nx.DiGraph()
        root_set = set(self.roots)
        for j, node in enumerate(self.nodes):
            g.add_node(node.key, factors=node.factors, root=j in root_set)
        for node in self.nodes:
            for c in node.children:
                g.add_edge(self.nodes[c].key, node.key)
        return g

    def __len__(self) -> int:
        return len(self.nodes)

    def __repr__(self) -> str:
        return (
            f"EliminationTree(nodes={len(self.nodes)}, roots={len(self.roots)}, "
            f"remaining={len(self.remaining_factors)})"
        )

"""
Tests for forest traversals: post-order, clone, print, equality.
"""

import io

import numpy as np
import pytest

from elimtree.discrete.factor import DiscreteFactor
from elimtree.inference.elimination_tree import EliminationNode, EliminationTree
from elimtree.inference.factor_graph import FactorGraph
from elimtree.inference.traversal import (
    clone_forest,
    format_forest,
    forests_equal,
    postorder,
    preorder_with_depth,
    print_forest,
)

A, B, C, D, E = 0, 1, 2, 3, 4


@pytest.fixture
def abc_graph():
    f1 = DiscreteFactor((A, B), np.array([[0.9, 0.1], [0.2, 0.8]]))
    f2 = DiscreteFactor((B, C), np.array([[0.3, 0.7], [0.5, 0.5]]))
    f3 = DiscreteFactor((A,), np.array([0.6, 0.4]))
    return FactorGraph([f1, f2, f3])


@pytest.fixture
def star_tree():
    """Root E with children C (owning D's subtree) and A, B."""
    nodes = [
        EliminationNode(key=A, factors=["fa"]),
        EliminationNode(key=B, factors=["fb"]),
        EliminationNode(key=D, factors=["fd"]),
        EliminationNode(key=C, factors=["fc"], children=[2]),
        EliminationNode(key=E, factors=[], children=[3, 0, 1]),
    ]
    return EliminationTree(nodes=nodes, roots=[4], remaining_factors=["rest"])


class TestPostorder:
    def test_children_before_parents(self, star_tree):
        order = [star_tree.nodes[u].key for u in postorder(star_tree)]
        assert order == [D, C, A, B, E]

    def test_visits_every_node_once(self, abc_graph):
        tree = EliminationTree.build(abc_graph, [A, B, C])
        assert sorted(postorder(tree)) == [0, 1, 2]

    def test_multiple_roots_in_stored_order(self):
        nodes = [EliminationNode(key=B), EliminationNode(key=A)]
        forest = EliminationTree(nodes=nodes, roots=[0, 1])
        assert list(postorder(forest)) == [0, 1]


class TestPreorder:
    def test_sorted_children_with_depth(self, star_tree):
        visited = [(star_tree.nodes[u].key, d) for u, d in preorder_with_depth(star_tree)]
        assert visited == [(E, 0), (A, 1), (B, 1), (C, 1), (D, 2)]


class TestClone:
    def test_clone_equals_original(self, abc_graph):
        tree = EliminationTree.build(abc_graph, [A, B, C])
        dup = clone_forest(tree)
        assert forests_equal(dup, tree)
        assert isinstance(dup, EliminationTree)

    def test_clone_shares_factors_not_structure(self, abc_graph):
        tree = EliminationTree.build(abc_graph, [A])
        dup = tree.clone()
        assert len(tree.remaining_factors) == 1

        for n1, n2 in zip(tree.nodes, dup.nodes):
            assert n1 is not n2
            assert n1.children is not n2.children
            assert n1.factors is not n2.factors
            assert all(f1 is f2 for f1, f2 in zip(n1.factors, n2.factors))

        assert dup.remaining_factors is not tree.remaining_factors
        assert dup.remaining_factors[0] is tree.remaining_factors[0]

    def test_mutating_clone_leaves_original(self, star_tree):
        dup = star_tree.clone()
        dup.nodes[4].children.pop()
        dup.nodes[0].factors.clear()
        assert star_tree.nodes[4].children == [3, 0, 1]
        assert star_tree.nodes[0].factors == ["fa"]
        assert not forests_equal(dup, star_tree)


class TestPrint:
    def test_format_abc(self, abc_graph):
        tree = EliminationTree.build(abc_graph, [A, B, C])
        names = {A: "A", B: "B", C: "C"}
        text = format_forest(tree, "", names.get)

        assert text.splitlines() == [
            "(C)",
            "| (no factors)",
            "  (B)",
            "  | f(B, C) shape=(2, 2)",
            "    (A)",
            "    | f(A, B) shape=(2, 2)",
            "    | f(A) shape=(2,)",
        ]

    def test_null_factor_marker(self):
        nodes = [EliminationNode(key=A, factors=[None])]
        forest = EliminationTree(nodes=nodes, roots=[0])
        assert format_forest(forest, "T: ").splitlines() == ["T: (0)", "T: | null factor"]

    def test_print_to_stream(self, star_tree):
        buf = io.StringIO()
        print_forest(star_tree, file=buf)
        assert buf.getvalue() == format_forest(star_tree)

    def test_print_to_stdout(self, star_tree, capsys):
        star_tree.print()
        out = capsys.readouterr().out
        assert out.splitlines()[0] == "(4)"
        assert "| (no factors)" in out

    def test_deterministic(self, abc_graph):
        t1 = EliminationTree.build(abc_graph, [A, B, C])
        t2 = EliminationTree.build(abc_graph, [A, B, C])
        assert t1.format() == t2.format()


class TestEquality:
    def test_reflexive(self, star_tree):
        assert forests_equal(star_tree, star_tree)

    def test_child_order_ignored(self, star_tree):
        dup = star_tree.clone()
        dup.nodes[4].children = [1, 3, 0]
        assert forests_equal(dup, star_tree)

    def test_root_order_ignored(self):
        n1 = [EliminationNode(key=A), EliminationNode(key=B)]
        n2 = [EliminationNode(key=B), EliminationNode(key=A)]
        f1 = EliminationTree(nodes=n1, roots=[0, 1])
        f2 = EliminationTree(nodes=n2, roots=[0, 1])
        assert forests_equal(f1, f2)

    def test_different_key(self, star_tree):
        dup = star_tree.clone()
        dup.nodes[2].key = 9
        assert not forests_equal(dup, star_tree)

    def test_different_factor_count(self, star_tree):
        dup = star_tree.clone()
        dup.nodes[2].factors.append("extra")
        assert not forests_equal(dup, star_tree)

    def test_null_vs_factor(self, star_tree):
        dup = star_tree.clone()
        dup.nodes[2].factors[0] = None
        assert not forests_equal(dup, star_tree)
        assert not forests_equal(star_tree, dup)

    def test_both_null_equal(self):
        n1 = [EliminationNode(key=A, factors=[None])]
        n2 = [EliminationNode(key=A, factors=[None])]
        assert forests_equal(EliminationTree(nodes=n1, roots=[0]), EliminationTree(nodes=n2, roots=[0]))

    def test_factor_tolerance(self, abc_graph):
        tree = EliminationTree.build(abc_graph, [A, B, C])
        dup = tree.clone()
        f = dup.nodes[0].factors[0]
        dup.nodes[0].factors[0] = DiscreteFactor(f.keys, f.table + 1e-6)

        assert forests_equal(dup, tree, tol=1e-5)
        assert not forests_equal(dup, tree, tol=1e-8)

    def test_extra_subtree_node_detected(self, star_tree):
        dup = star_tree.clone()
        dup.nodes.append(EliminationNode(key=9, factors=["fx"]))
        dup.nodes[2].children.append(len(dup.nodes) - 1)
        assert not forests_equal(dup, star_tree)
        assert not forests_equal(star_tree, dup)

    def test_different_root_count(self):
        n1 = [EliminationNode(key=A), EliminationNode(key=B)]
        f1 = EliminationTree(nodes=n1, roots=[0, 1])
        f2 = EliminationTree(nodes=[EliminationNode(key=A)], roots=[0])
        assert not forests_equal(f1, f2)

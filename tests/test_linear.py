"""
Tests for the linear layer: vector values, Jacobian factors, QR elimination.
"""

import numpy as np
import pytest

from elimtree.core.errors import IndeterminantLinearSystem
from elimtree.inference.elimination_tree import EliminationTree
from elimtree.linear.block_matrix import VerticalBlockMatrix
from elimtree.linear.eliminate import eliminate_qr, optimize
from elimtree.linear.gaussian_conditional import GaussianConditional
from elimtree.linear.jacobian_factor import JacobianFactor
from elimtree.linear.vector_values import VectorValues


def random_linear_problem(rng, n=6, dim=2, n_loops=3):
    """Prior on x0, random odometry chain, a few random loop closures."""
    factors = [JacobianFactor({0: np.eye(dim)}, rng.randn(dim))]
    for i in range(n - 1):
        factors.append(JacobianFactor(
            {i: rng.randn(dim, dim), i + 1: np.eye(dim) + 0.1 * rng.randn(dim, dim)},
            rng.randn(dim),
        ))
    for _ in range(n_loops):
        i, j = (int(k) for k in rng.choice(n, size=2, replace=False))
        factors.append(JacobianFactor({i: rng.randn(dim, dim), j: rng.randn(dim, dim)}, rng.randn(dim)))
    return factors


def dense_solution(factors, keys, dim):
    col = {k: i * dim for i, k in enumerate(keys)}
    m = sum(f.rows for f in factors)
    A = np.zeros((m, dim * len(keys)))
    b = np.zeros(m)
    row = 0
    for f in factors:
        for k in f.keys:
            A[row:row + f.rows, col[k]:col[k] + dim] = f.blocks[k]
        b[row:row + f.rows] = f.b
        row += f.rows
    x, *_ = np.linalg.lstsq(A, b, rcond=None)
    return x


class TestVectorValues:
    def test_insert_and_lookup(self):
        v = VectorValues()
        v.insert(0, [1.0, 2.0])
        v.insert(1, 3.0)
        assert np.allclose(v[0], [1.0, 2.0])
        assert v.dims() == {0: 2, 1: 1}
        assert len(v) == 2 and 1 in v

    def test_insert_existing_raises(self):
        v = VectorValues({0: [1.0]})
        with pytest.raises(ValueError):
            v.insert(0, [2.0])

    def test_arithmetic(self):
        a = VectorValues({0: [1.0, 2.0], 1: [3.0]})
        b = VectorValues({0: [0.5, 0.5], 1: [1.0]})

        assert (a + b).equals(VectorValues({0: [1.5, 2.5], 1: [4.0]}))
        assert (a - b).equals(VectorValues({0: [0.5, 1.5], 1: [2.0]}))
        assert np.isclose(a.dot(b), 0.5 + 1.0 + 3.0)
        assert np.isclose(a.squared_norm(), 14.0)
        assert np.isclose(a.norm(), np.sqrt(14.0))

        a += b
        assert np.allclose(a.as_vector(), [1.5, 2.5, 4.0])

    def test_structure_mismatch_raises(self):
        a = VectorValues({0: [1.0, 2.0]})
        b = VectorValues({0: [1.0]})
        assert not a.has_same_structure(b)
        with pytest.raises(ValueError):
            a + b
        with pytest.raises(ValueError):
            a.dot(b)

    def test_zero_like(self):
        z = VectorValues.zero(VectorValues({0: [1.0, 2.0], 5: [3.0]}))
        assert z.dims() == {0: 2, 5: 1}
        assert z.norm() == 0.0

    def test_as_vector_order(self):
        v = VectorValues({2: [3.0], 0: [1.0, 2.0]})
        assert np.allclose(v.as_vector(), [1.0, 2.0, 3.0])
        assert np.allclose(v.as_vector([2, 0]), [3.0, 1.0, 2.0])

    def test_same_structure_and_zeros(self):
        like = VectorValues({0: [1.0, 2.0], 3: [5.0]})
        s = VectorValues.same_structure(like)
        assert s.has_same_structure(like)
        assert s.norm() == 0.0

        z = VectorValues.zeros(3, 2)
        assert z.keys() == (0, 1, 2)
        assert z.dims() == {0: 2, 1: 2, 2: 2}

    def test_resize_like_drops_contents(self):
        v = VectorValues({7: [1.0]})
        v.resize_like(VectorValues({0: [1.0, 2.0]}))
        assert v.dims() == {0: 2}
        assert np.allclose(v[0], 0.0)

    def test_set_zero_and_swap(self):
        a = VectorValues({0: [1.0, 2.0]})
        b = VectorValues({1: [3.0]})
        a.swap(b)
        assert a.keys() == (1,) and b.keys() == (0,)

        b.set_zero()
        assert np.allclose(b[0], [0.0, 0.0])

    def test_sum_does_not_alias_operands(self):
        a = VectorValues({0: [1.0]})
        total = a + VectorValues({0: [2.0]})
        total.set_zero()
        assert np.allclose(a[0], [1.0])

    def test_print(self, capsys):
        VectorValues({0: [1.0]}).print("x", lambda k: f"x{k}")
        out = capsys.readouterr().out
        assert out.startswith("x: 1 elements")
        assert "x0:" in out


class TestVerticalBlockMatrix:
    def test_offsets_and_views(self):
        m = VerticalBlockMatrix([2, 1, 3], rows=4)
        assert m.offsets == [0, 2, 3, 6]
        assert m.cols == 6 and m.n_blocks == 3

        m[1][:] = 7.0
        assert np.allclose(m.matrix[:, 2], 7.0)
        assert m.range(1, 3).shape == (4, 4)

    def test_like_and_row_range(self):
        m = VerticalBlockMatrix([2, 1], rows=3)
        m.matrix[:] = np.arange(9.0).reshape(3, 3)

        empty = VerticalBlockMatrix.like(m, rows=5)
        assert empty.block_dims == [2, 1]
        assert empty.matrix.shape == (5, 3)
        assert not empty.matrix.any()

        tail = m.row_range(1, 3)
        assert tail.block_dims == [2, 1]
        assert np.allclose(tail[1][:, 0], [5.0, 8.0])

    def test_from_matrix_width_mismatch(self):
        with pytest.raises(ValueError):
            VerticalBlockMatrix.from_matrix(np.zeros((2, 3)), [1, 1])


class TestJacobianFactor:
    def test_row_mismatch(self):
        with pytest.raises(ValueError):
            JacobianFactor({0: np.eye(2)}, [1.0, 2.0, 3.0])

    def test_error(self):
        f = JacobianFactor({0: np.eye(2), 1: -np.eye(2)}, [1.0, 0.0])
        x = VectorValues({0: [3.0, 1.0], 1: [1.0, 1.0]})
        assert np.allclose(f.unwhitened_error(x), [1.0, 0.0])
        assert np.isclose(f.error(x), 0.5)

    def test_augmented_matrix(self):
        f = JacobianFactor([(3, [[1.0], [2.0]]), (1, [[3.0], [4.0]])], [5.0, 6.0])
        Ab = f.augmented_matrix([1, 3])
        assert np.allclose(Ab.matrix, [[3.0, 1.0, 5.0], [4.0, 2.0, 6.0]])


class TestEliminateQR:
    def test_single_variable(self):
        cond, sep = eliminate_qr([JacobianFactor({0: [[2.0]]}, [4.0])], [0])
        assert sep is None
        assert np.allclose(cond.solve(VectorValues()), [2.0])

    def test_separator_keys(self):
        f1 = JacobianFactor({0: np.eye(2), 1: np.eye(2)}, [1.0, 1.0])
        f2 = JacobianFactor({0: np.eye(2), 2: np.eye(2)}, [0.0, 2.0])
        cond, sep = eliminate_qr([f1, f2], [0])

        assert cond.frontal == 0
        assert cond.parents == (1, 2)
        assert set(sep.keys) == {1, 2}
        assert sep.rows == 2

    def test_singular_frontal_raises(self):
        f = JacobianFactor({0: np.zeros((2, 1)), 1: np.ones((2, 1))}, [1.0, 2.0])
        with pytest.raises(IndeterminantLinearSystem) as info:
            eliminate_qr([f], [0])
        assert info.value.key == 0

    def test_too_few_rows_raises(self):
        with pytest.raises(IndeterminantLinearSystem):
            eliminate_qr([JacobianFactor({0: np.ones((1, 2))}, [1.0])], [0])

    def test_inconsistent_dims(self):
        f1 = JacobianFactor({0: np.eye(2)}, [1.0, 1.0])
        f2 = JacobianFactor({0: np.ones((1, 1))}, [1.0])
        with pytest.raises(ValueError):
            eliminate_qr([f1, f2], [0])

    def test_singularity_propagates_through_tree(self):
        factors = [
            JacobianFactor({1: np.eye(1)}, [1.0]),
            JacobianFactor({0: np.zeros((1, 1)), 1: np.eye(1)}, [1.0]),
        ]
        tree = EliminationTree.build(factors, [0, 1])
        with pytest.raises(IndeterminantLinearSystem):
            tree.eliminate(eliminate_qr)


class TestGaussianConditional:
    def test_solve(self):
        c = GaussianConditional(0, [[2.0]], [(1, [[1.0]])], [5.0])
        assert np.allclose(c.solve(VectorValues({1: [1.0]})), [2.0])

    def test_missing_parent(self):
        c = GaussianConditional(0, [[2.0]], [(1, [[1.0]])], [5.0])
        with pytest.raises(KeyError):
            c.solve(VectorValues())

    def test_equals_up_to_row_sign(self):
        c1 = GaussianConditional(0, [[2.0]], [(1, [[1.0]])], [5.0])
        c2 = GaussianConditional(0, [[-2.0]], [(1, [[-1.0]])], [-5.0])
        c3 = GaussianConditional(0, [[2.0]], [(1, [[1.5]])], [5.0])
        assert c1.equals(c2)
        assert not c1.equals(c3)

    def test_equals_different_dims_is_false(self):
        c2 = GaussianConditional(0, np.eye(2), [], np.zeros(2))
        c3 = GaussianConditional(0, np.eye(3), [], np.zeros(3))
        assert not c2.equals(c3)
        assert not c3.equals(c2)

    def test_equals_different_parent_dims_is_false(self):
        c1 = GaussianConditional(0, [[1.0]], [(1, [[1.0]])], [0.0])
        c2 = GaussianConditional(0, [[1.0]], [(1, [[1.0, 0.0]])], [0.0])
        assert not c1.equals(c2)


class TestLeastSquares:
    @pytest.fixture(params=[0, 1, 2])
    def rng(self, request):
        return np.random.RandomState(request.param)

    def test_matches_dense_solution(self, rng):
        factors = random_linear_problem(rng)
        ordering = [int(k) for k in rng.permutation(6)]

        bayes_net, remaining = EliminationTree.build(factors, ordering).eliminate(eliminate_qr)
        values = optimize(bayes_net)

        assert len(remaining) == 0
        keys = list(range(6))
        assert np.allclose(values.as_vector(keys), dense_solution(factors, keys, 2))

    def test_two_pass_partial_elimination(self, rng):
        factors = random_linear_problem(rng)
        first = [0, 1, 2]
        second = [3, 4, 5]

        bn1, remaining = EliminationTree.build(factors, first).eliminate(eliminate_qr)
        assert set(bn1.keys()) == set(first)
        for f in remaining:
            assert not set(f.keys) & set(first)

        bn2, leftover = EliminationTree.build(remaining, second).eliminate(eliminate_qr)
        assert len(leftover) == 0

        values = optimize(bn1, given=optimize(bn2))
        keys = list(range(6))
        assert np.allclose(values.as_vector(keys), dense_solution(factors, keys, 2))

    def test_given_overlapping_eliminated_key(self):
        factors = [JacobianFactor({0: np.eye(1), 1: -np.eye(1)}, [1.0])]
        bayes_net, _ = EliminationTree.build(factors, [0]).eliminate(eliminate_qr)
        with pytest.raises(ValueError, match=r"eliminated variables \[0\]"):
            optimize(bayes_net, given=VectorValues({0: [1.0], 1: [2.0]}))

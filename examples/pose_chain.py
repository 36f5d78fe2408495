"""
Example: Linear 2-D pose chain with a loop closure.

Five positions connected by odometry, a prior on the first and a
measurement between the first and the last. Eliminated by QR on the
elimination tree, then solved by back-substitution.
"""

import numpy as np
from elimtree import EliminationTree, JacobianFactor, eliminate_qr, optimize


def main():
    eye = np.eye(2)
    n = 5

    factors = [JacobianFactor({0: eye}, [0.0, 0.0])]
    for i in range(n - 1):
        factors.append(JacobianFactor({i: -eye, i + 1: eye}, [1.0, 0.0]))
    # Loop closure, slightly inconsistent with odometry
    factors.append(JacobianFactor({0: -eye, n - 1: eye}, [3.9, 0.1]))

    ordering = list(range(n))
    tree = EliminationTree.build(factors, ordering)
    print("Elimination tree:")
    tree.print("  ", lambda k: f"x{k}")

    bayes_net, remaining = tree.eliminate(eliminate_qr)
    print("\nBayes net:")
    bayes_net.print("  ", lambda k: f"x{k}")

    values = optimize(bayes_net)
    values.print("\nSolution", lambda k: f"x{k}")

    # Dense least-squares check
    A = np.zeros((sum(f.rows for f in factors), 2 * n))
    b = np.zeros(A.shape[0])
    row = 0
    for f in factors:
        for k in f.keys:
            A[row:row + f.rows, 2 * k:2 * k + 2] = f.blocks[k]
        b[row:row + f.rows] = f.b
        row += f.rows
    x, *_ = np.linalg.lstsq(A, b, rcond=None)
    print(f"\nMatches dense least squares: {np.allclose(values.as_vector(ordering), x)}")


if __name__ == "__main__":
    main()

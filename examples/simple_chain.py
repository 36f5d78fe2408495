"""
Example: Simple chain factor graph.

A--B--C with pairwise factors, eliminated in the order A, B, C.
"""

import numpy as np
from elimtree import solve_discrete
from elimtree.discrete.conditional import discrete_joint


def main():
    var_domains = {
        "A": 2,
        "B": 2,
        "C": 2,
    }

    # Unary on A
    phi_A = np.array([0.6, 0.4])

    # Pairwise on (A, B)
    phi_AB = np.array([
        [0.9, 0.1],
        [0.2, 0.8]
    ])

    # Pairwise on (B, C)
    phi_BC = np.array([
        [0.3, 0.7],
        [0.5, 0.5]
    ])

    factors = {
        "f_A": (("A",), phi_A),
        "f_AB": (("A", "B"), phi_AB),
        "f_BC": (("B", "C"), phi_BC),
    }

    print("Eliminating chain A--B--C in order A, B, C...")
    result = solve_discrete(var_domains, factors, ["A", "B", "C"])
    fmt = result.registry.formatter()

    print("\nElimination tree:")
    result.tree.print("  ", fmt)

    print("\nBayes net:")
    result.bayes_net.print("  ", fmt)

    # The root conditional is the marginal of the last variable
    print(f"\nP(C) = {result.bayes_net[-1].table}")

    print("\n--- Verification by brute force ---")
    joint = np.einsum("a,ab,bc->abc", phi_A, phi_AB, phi_BC)
    joint /= joint.sum()
    print(f"P(C) (brute force) = {joint.sum(axis=(0, 1))}")
    print(f"Joint match: {np.allclose(discrete_joint(result.bayes_net).table, joint)}")


if __name__ == "__main__":
    main()

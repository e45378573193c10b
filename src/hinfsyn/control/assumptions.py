# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Synthesis Assumption Checks

Structural preconditions of the Glover-Doyle γ-iteration, numbered as in
the paper:

- A1: (A, B2) stabilizable and (A, C2) detectable
- A2: D12 full column rank, D21 full row rank
- A5: A - B2 D12⁺ C1 full rank
- A6: A - B1 D21⁺ C2 full rank

Stabilizability and detectability use the Hautus (PBH) test restricted to
the eigenvalues of A with non-negative real part:

    stabilizable ⟺ rank([λI - A, B]) = n   for all Re(λ) ≥ 0
    detectable   ⟺ rank([λI - A; C]) = n   for all Re(λ) ≥ 0

A failed check is a signal, not an error: check_assumptions returns
False (and warns when verbose) and the caller decides whether to go on.
"""

import warnings

import numpy as np

from hinfsyn.control.exceptions import SynthesisAssumptionWarning
from hinfsyn.control.plant import ExtendedStateSpace
from hinfsyn.types.core import InputMatrix, OutputMatrix, StateMatrix

# ============================================================================
# Hautus Tests
# ============================================================================


def is_stabilizable(A: StateMatrix, B: InputMatrix) -> bool:
    """
    Hautus test for stabilizability of the pair (A, B).

    Args:
        A: State matrix (nx, nx)
        B: Input matrix (nx, nu)

    Returns:
        True if every eigenvalue with Re(λ) ≥ 0 is controllable

    Examples
    --------
    >>> A = np.diag([1.0, -1.0])
    >>> is_stabilizable(A, np.array([[1.0], [0.0]]))  # unstable mode reachable
    True
    >>> is_stabilizable(A, np.array([[0.0], [1.0]]))  # unstable mode unreachable
    False
    """
    A = np.asarray(A, dtype=float)
    B = np.asarray(B, dtype=float)
    n = A.shape[0]
    for lam in np.linalg.eigvals(A):
        if np.real(lam) >= 0:
            pencil = np.hstack([lam * np.eye(n) - A, B])
            if np.linalg.matrix_rank(pencil) != n:
                return False
    return True


def is_detectable(A: StateMatrix, C: OutputMatrix) -> bool:
    """
    Hautus test for detectability of the pair (A, C).

    Args:
        A: State matrix (nx, nx)
        C: Output matrix (ny, nx)

    Returns:
        True if every eigenvalue with Re(λ) ≥ 0 is observable
    """
    A = np.asarray(A, dtype=float)
    C = np.asarray(C, dtype=float)
    n = A.shape[0]
    for lam in np.linalg.eigvals(A):
        if np.real(lam) >= 0:
            pencil = np.vstack([lam * np.eye(n) - A, C])
            if np.linalg.matrix_rank(pencil) != n:
                return False
    return True


# ============================================================================
# Assumption Checker
# ============================================================================


def _violation(message: str, verbose: bool) -> bool:
    if verbose:
        warnings.warn(message, SynthesisAssumptionWarning, stacklevel=3)
    return False


def check_assumptions(plant: ExtendedStateSpace, verbose: bool = True) -> bool:
    """
    Check the assumptions of the γ-iteration synthesis (Theorem 1).

    Checks run in order and stop at the first failure.

    Args:
        plant: Generalized plant
        verbose: Warn on the violated assumption and report success

    Returns:
        True if all assumptions hold

    Examples
    --------
    >>> if not check_assumptions(P):
    ...     print("Synthesis may fail or return a meaningless controller")
    >>>
    >>> # Silent check
    >>> ok = check_assumptions(P, verbose=False)

    Notes
    -----
    Never raises for a violated assumption. A SynthesisAssumptionWarning
    names the failed condition when verbose is True.
    """
    A, B1, B2, C1, C2, D11, D12, D21, D22 = plant.ssdata()
    n = plant.nx

    # Assumption A1
    if not is_stabilizable(A, B2):
        return _violation(
            "The system A is not stabilizable through B2, violation of assumption A1.",
            verbose,
        )
    if not is_detectable(A, C2):
        return _violation(
            "The system A is not detectable through C2, violation of assumption A1.",
            verbose,
        )

    # Assumption A2
    if np.linalg.matrix_rank(D12) < D12.shape[1]:
        return _violation(
            "The matrix D12 does not have full column rank, violation of assumption A2.",
            verbose,
        )
    if np.linalg.matrix_rank(D21) < D21.shape[0]:
        return _violation(
            "The matrix D21 does not have full row rank, violation of assumption A2.",
            verbose,
        )

    # Assumption A5
    if np.linalg.matrix_rank(A - B2 @ np.linalg.pinv(D12) @ C1) < n:
        return _violation(
            "The matrix (A - B2*pinv(D12)*C1) does not have full rank, "
            "violation of assumption A5.",
            verbose,
        )

    # Assumption A6
    if np.linalg.matrix_rank(A - B1 @ np.linalg.pinv(D21) @ C2) < n:
        return _violation(
            "The matrix (A - B1*pinv(D21)*C2) does not have full rank, "
            "violation of assumption A6.",
            verbose,
        )

    if verbose:
        print("All assumptions are satisfied!")
    return True


__all__ = [
    "is_stabilizable",
    "is_detectable",
    "check_assumptions",
]

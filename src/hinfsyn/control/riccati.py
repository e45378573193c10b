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
Riccati Equations and γ-Iteration

Pure stateless functions implementing the core of the Glover-Doyle
synthesis on a plant in canonical coordinates (D12 = [0; I],
D21 = [0 I]):

**Riccati Solver:**
- Hamiltonian solve via ordered real Schur decomposition (Laub, 1979)
- X∞ / Y∞ Hamiltonians and the gains F, H (Glover-Doyle eqs. 7-12)

**Feasibility:**
- X∞ ≥ 0, Y∞ ≥ 0, ρ(X∞ Y∞) ≤ γ²

**γ-Search:**
- Fixed halving schedule over a bounded interval

Mathematical Background
-----------------------
With D1· = [D11 D12], D·1 = [D11; D21], B = [B1 B2], C = [C1; C2]:

    R  = D1·'D1· - diag(γ² I_m1, 0)                          (7)
    R̄  = D·1 D·1' - diag(γ² I_p1, 0)                          (8)

    HX = [A, 0; -C1'C1, -A'] - [B; -C1'D1·] R⁻¹ [D1·'C1, B']  (9)
    HY = [A', 0; -B1B1', -A] - [C'; -B1D·1'] R̄⁻¹ [D·1B1', C]  (10)

    F  = -R⁻¹ (D1·'C1 + B'X∞)                                 (11)
    H  = -(B1D·1' + Y∞C') R̄⁻¹                                 (12)

If the stable invariant subspace of a Hamiltonian is spanned by the
columns of [U11; U21], the stabilizing Riccati solution is U21 U11⁻¹.

γ schedule: starting at γ = hi, iteration k moves γ by |hi - lo| / 2^k,
down after a feasible probe and up after an infeasible one. The search
stops early when γ rises above hi. The returned γ is an upper bound on
the optimum, accurate to about |hi - lo| / 2^max_iter.

References
----------
Glover, K., & Doyle, J. C. (1988). State-space formulae for all
stabilizing controllers that satisfy an H∞-norm bound and relations to
risk sensitivity. Systems & Control Letters, 11(3), 167-172.

Laub, A. (1979). A Schur method for solving algebraic Riccati equations.
IEEE Transactions on Automatic Control, 24(6), 913-921.
"""

from typing import Optional

import numpy as np
from scipy import linalg

from hinfsyn.control.exceptions import NumericalConditioningError
from hinfsyn.control.plant import ExtendedStateSpace
from hinfsyn.types.core import HamiltonianMatrix, RiccatiSolution
from hinfsyn.types.hinf import GammaSearchSettings, RiccatiCertificate

# ============================================================================
# Linear Solves (Internal)
# ============================================================================


def _ldivide(Y: np.ndarray, X: np.ndarray, name: str = "matrix") -> np.ndarray:
    """Y⁻¹ X"""
    if Y.size == 0 or X.size == 0:
        return np.zeros((Y.shape[1], X.shape[1]))
    try:
        return linalg.solve(Y, X)
    except linalg.LinAlgError as exc:
        raise NumericalConditioningError(f"The {name} is singular") from exc


def _rdivide(X: np.ndarray, Y: np.ndarray, name: str = "matrix") -> np.ndarray:
    """X Y⁻¹"""
    return _ldivide(Y.T, X.T, name=name).T


# ============================================================================
# Hamiltonian Riccati Solver
# ============================================================================


def solve_hamiltonian_are(H: HamiltonianMatrix) -> RiccatiSolution:
    """
    Stabilizing solution of the Riccati equation associated with H.

    Orders the real Schur form of H so that eigenvalues with negative real
    part come first, then returns U21 U11⁻¹ from the leading n columns of
    the orthogonal factor.

    Args:
        H: Hamiltonian matrix (2n, 2n)

    Returns:
        Symmetric solution X (n, n)

    Raises:
        NumericalConditioningError: If H does not have exactly n stable
            eigenvalues (imaginary-axis eigenvalues), U11 is singular or
            ill-conditioned, or the solution is not finite

    Examples
    --------
    >>> # LQR-type Hamiltonian: A'X + XA - XBB'X + Q = 0
    >>> A = np.array([[1.0]]); B = np.array([[1.0]]); Q = np.array([[1.0]])
    >>> H = np.block([[A, -B @ B.T], [-Q, -A.T]])
    >>> solve_hamiltonian_are(H)  # 1 + sqrt(2)
    array([[2.41421356]])
    """
    H = np.asarray(H, dtype=float)
    m = H.shape[0]
    if H.shape != (m, m) or m % 2 != 0:
        raise ValueError(f"Hamiltonian must be square with even size, got {H.shape}")
    n = m // 2
    if n == 0:
        return np.zeros((0, 0))

    _, Z, sdim = linalg.schur(H, output="real", sort="lhp")
    if sdim != n:
        raise NumericalConditioningError(
            f"The Hamiltonian has {sdim} stable eigenvalues, expected {n} "
            "(eigenvalues on or near the imaginary axis)",
        )

    U11 = Z[:n, :n]
    U21 = Z[n:, :n]
    if np.linalg.cond(U11) * np.finfo(float).eps >= 1.0:
        raise NumericalConditioningError(
            "The leading quadrant of the stable invariant subspace is singular",
        )

    X = _rdivide(U21, U11, name="leading quadrant of the stable invariant subspace")
    if not np.all(np.isfinite(X)):
        raise NumericalConditioningError("The Riccati solution is not finite")
    return (X + X.T) / 2


def solve_matrix_equations(plant: ExtendedStateSpace, gamma: float) -> RiccatiCertificate:
    """
    Solve the dual matrix equations of the γ-iteration (eqs. 7-12).

    Args:
        plant: Plant in canonical coordinates (D12 = [0; I], D21 = [0 I])
        gamma: Probe value γ > 0

    Returns:
        RiccatiCertificate with X∞, Y∞, F, H for this γ (not yet checked
        for feasibility)

    Raises:
        NumericalConditioningError: If R, R̄ or a Hamiltonian solve is
            singular at this γ

    Examples
    --------
    >>> P_bar, _ = transform_plant_to_canonical(P)
    >>> cert = solve_matrix_equations(P_bar, gamma=5.0)
    >>> cert.X.shape == (P.nx, P.nx)
    True
    """
    A, B1, B2, C1, C2, D11, D12, D21, D22 = plant.ssdata()
    nw, nu = plant.nw, plant.nu
    nz, ny = plant.nz, plant.ny
    gamma_sq = float(gamma) ** 2

    B = plant.B
    C = plant.C

    # Equation (7)
    D1dot = np.hstack([D11, D12])
    R = D1dot.T @ D1dot
    R[:nw, :nw] -= gamma_sq * np.eye(nw)

    # Equation (8)
    Ddot1 = np.vstack([D11, D21])
    Rbar = Ddot1 @ Ddot1.T
    Rbar[:nz, :nz] -= gamma_sq * np.eye(nz)

    # Equations (9) and (10)
    zeros = np.zeros_like(A)
    HX = np.block([[A, zeros], [-C1.T @ C1, -A.T]]) - _rdivide(
        np.vstack([B, -C1.T @ D1dot]), R, name="matrix R"
    ) @ np.hstack([D1dot.T @ C1, B.T])
    HY = np.block([[A.T, zeros], [-B1 @ B1.T, -A]]) - _rdivide(
        np.vstack([C.T, -B1 @ Ddot1.T]), Rbar, name="matrix Rbar"
    ) @ np.hstack([Ddot1 @ B1.T, C])

    X = solve_hamiltonian_are(HX)
    Y = solve_hamiltonian_are(HY)

    # Equation (11)
    F = -_ldivide(R, D1dot.T @ C1 + B.T @ X, name="matrix R")

    # Equation (12)
    H = -_rdivide(B1 @ Ddot1.T + Y @ C.T, Rbar, name="matrix Rbar")

    return RiccatiCertificate(X=X, Y=Y, F=F, H=H, gamma=float(gamma))


# ============================================================================
# Feasibility
# ============================================================================


def _trace(iteration: Optional[int], gamma: float, verbose: bool, note: str = ""):
    if not verbose or iteration is None:
        return
    if iteration == 1:
        print("iteration, gamma")
    print(f"{iteration} {gamma}{note}")


def check_feasibility(
    X: RiccatiSolution,
    Y: RiccatiSolution,
    gamma: float,
    tolerance: float,
    iteration: Optional[int] = None,
    verbose: bool = False,
) -> bool:
    """
    Feasibility test of the Riccati solutions for a given γ.

    Args:
        X: Solution X∞ (nx, nx)
        Y: Solution Y∞ (nx, nx)
        gamma: Probe value γ
        tolerance: Slack on non-negativity of the eigenvalues
        iteration: Iteration index, only used for the verbose trace
        verbose: Print "iteration gamma" for this probe

    Returns:
        True if min Re λ(X) ≥ -tol, min Re λ(Y) ≥ -tol and
        ρ(XY) / γ² ≤ 1

    Examples
    --------
    >>> cert = solve_matrix_equations(P_bar, 5.0)
    >>> check_feasibility(cert.X, cert.Y, cert.gamma, tolerance=1e-10)
    True
    """
    _trace(iteration, gamma, verbose)

    if X.size == 0:
        return True

    min_x_eig = np.min(np.real(np.linalg.eigvals(X)))
    min_y_eig = np.min(np.real(np.linalg.eigvals(Y)))
    spectral_radius = np.max(np.abs(np.linalg.eigvals(X @ Y))) / gamma**2

    if min_x_eig < -tolerance:
        # X∞ must be positive semidefinite
        return False
    if min_y_eig < -tolerance:
        # Y∞ must be positive semidefinite
        return False
    if spectral_radius > 1:
        # ρ(X∞ Y∞) must not exceed γ²
        return False
    return True


# ============================================================================
# γ-Search
# ============================================================================


def gamma_iterations(
    plant: ExtendedStateSpace,
    settings: Optional[GammaSearchSettings] = None,
) -> Optional[RiccatiCertificate]:
    """
    Run the γ-iteration over the configured interval.

    Args:
        plant: Plant in canonical coordinates
        settings: Search configuration (defaults to GammaSearchSettings())

    Returns:
        Certificate of the smallest feasible γ visited, or None if no
        probe was feasible

    Notes
    -----
    A probe whose Riccati solve fails with NumericalConditioningError or
    LinAlgError counts as infeasible. The loop terminates early when an
    infeasible probe pushes γ above the upper bound.

    Examples
    --------
    >>> cert = gamma_iterations(P_bar, GammaSearchSettings(max_iter=30))
    >>> if cert is not None:
    ...     print(f"γ = {cert.gamma:.5f}")
    """
    if settings is None:
        settings = GammaSearchSettings()

    best: Optional[RiccatiCertificate] = None
    gamma_max = max(settings.interval)
    gamma = gamma_max

    for iteration in range(1, settings.max_iter + 1):
        try:
            certificate = solve_matrix_equations(plant, gamma)
        except (NumericalConditioningError, np.linalg.LinAlgError):
            _trace(iteration, gamma, settings.verbose, note=" (ill-conditioned)")
            feasible = False
        else:
            feasible = check_feasibility(
                certificate.X,
                certificate.Y,
                gamma,
                settings.tolerance,
                iteration,
                verbose=settings.verbose,
            )

        step = settings.width / 2**iteration
        if feasible:
            best = certificate
            gamma = gamma - step
        else:
            gamma = gamma + step
            if gamma > gamma_max:
                break

    return best


__all__ = [
    "solve_hamiltonian_are",
    "solve_matrix_equations",
    "check_feasibility",
    "gamma_iterations",
]

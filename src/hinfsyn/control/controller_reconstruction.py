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
Central Controller Reconstruction

Builds the central H∞ controller from a feasible Riccati certificate of
the canonical plant P̄, then maps it back to the coordinates of the
original plant.

The gains and D11 are partitioned along the canonical structure
(D12 = [0; I], D21 = [0 I]):

    F = [F11; F12; F2]   rows (m1 - p2, p2, m2)
    H = [H11  H12  H2]   columns (p1 - m2, m2, p2)

    D11 = [D1111  D1112]   rows (p1 - m2, m2)
          [D1121  D1122]   columns (m1 - p2, p2)

Equations (19)-(27) of Glover & Doyle (1988) then give the controller
realization (Â, B̂1, Ĉ1, D̂11). With u = R12 ū and ȳ = L21 y the
controller in original coordinates is

    Ac = Â,   Bc = B̂1 L21,   Cc = R12 Ĉ1,   Dc = R12 D̂11 L21
"""

import numpy as np
from scipy import linalg

from hinfsyn.control.coordinate_transform import CanonicalTransform
from hinfsyn.control.exceptions import DimensionMismatchError, NumericalConditioningError
from hinfsyn.control.plant import Controller, ExtendedStateSpace
from hinfsyn.control.riccati import _rdivide
from hinfsyn.types.hinf import RiccatiCertificate

# ============================================================================
# Positivity Check
# ============================================================================


def assert_real_and_psd(M: np.ndarray, msg: str = ""):
    """
    Check that a matrix is symmetric with strictly positive eigenvalues.

    Asymmetry below rounding level is ignored and the symmetric part is
    tested, so a repeated eigenvalue perturbed into a complex pair does
    not fail the check.

    Args:
        M: Square matrix about to be Cholesky-factored
        msg: Location appended to the error message

    Raises:
        NumericalConditioningError: If M is not symmetric up to rounding
            or its symmetric part has a non-positive eigenvalue

    Examples
    --------
    >>> assert_real_and_psd(np.eye(2))
    >>> assert_real_and_psd(-np.eye(2), msg=" in equation (20)")  # raises
    """
    if M.size == 0:
        return
    # Rounding leaves a tiny skew part on symmetric inputs
    if not np.allclose(M, M.T, rtol=1e-10, atol=1e-12 * max(1.0, np.max(np.abs(M)))):
        raise NumericalConditioningError(f"The matrix{msg} is not real symmetric.")
    eigenvalues = np.linalg.eigvalsh((M + M.T) / 2)
    if np.any(eigenvalues <= 0):
        raise NumericalConditioningError(f"The matrix{msg} is not PSD.")


def _cholesky(M: np.ndarray, lower: bool, msg: str) -> np.ndarray:
    assert_real_and_psd(M, msg=msg)
    if M.size == 0:
        return M.copy()
    try:
        return linalg.cholesky((M + M.T) / 2, lower=lower)
    except linalg.LinAlgError as exc:
        raise NumericalConditioningError(f"The matrix{msg} is not PSD.") from exc


# ============================================================================
# Controller Synthesis
# ============================================================================


def synthesize_controller(
    plant: ExtendedStateSpace,
    certificate: RiccatiCertificate,
    transform: CanonicalTransform,
) -> Controller:
    """
    Synthesize the central controller from a feasible certificate.

    Args:
        plant: Plant in canonical coordinates (output of
            transform_plant_to_canonical)
        certificate: Feasible certificate (X∞, Y∞, F, H, γ)
        transform: Coordinate transforms used to build the canonical plant

    Returns:
        Controller in the coordinates of the original plant, with
        nx states, ny inputs and nu outputs

    Raises:
        DimensionMismatchError: If m1 < p2 or p1 < m2
        NumericalConditioningError: If the matrices factored in equations
            (20) or (21) are not real positive definite, or Z∞ is singular

    Examples
    --------
    >>> P_bar, T = transform_plant_to_canonical(P)
    >>> cert = gamma_iterations(P_bar)
    >>> K = synthesize_controller(P_bar, cert, T)
    >>> Ac, Bc, Cc, Dc = K.ssdata()

    Notes
    -----
    The controller D22 block is zero. Plants with nonzero D22 would need a
    loop shift, which is not implemented.
    """
    A, B1, B2, C1, C2, D11, D12, D21, D22 = plant.ssdata()
    X, Y, F, H = certificate.X, certificate.Y, certificate.F, certificate.H
    gamma_sq = certificate.gamma**2

    C = plant.C
    P1, P2 = plant.nz, plant.ny
    M1, M2 = plant.nw, plant.nu

    if M1 < P2 or P1 < M2:
        raise DimensionMismatchError(
            f"Canonical partitioning requires nw >= ny and nz >= nu, "
            f"got nw={M1}, ny={P2}, nz={P1}, nu={M2}",
        )

    # Equation (11)
    F12 = F[M1 - P2 : M1, :]
    F2 = F[M1 : M1 + M2, :]

    # Equation (12)
    H12 = H[:, P1 - M2 : P1]
    H2 = H[:, P1 : P1 + P2]

    # Definition of D in the assumptions section
    D1111 = D11[: P1 - M2, : M1 - P2]
    D1112 = D11[: P1 - M2, M1 - P2 : M1]
    D1121 = D11[P1 - M2 : P1, : M1 - P2]
    D1122 = D11[P1 - M2 : P1, M1 - P2 : M1]

    I_z = np.eye(P1 - M2)
    I_w = np.eye(M1 - P2)

    # Equation (19)
    D11hat = (
        _rdivide(-D1121 @ D1111.T, gamma_sq * I_z - D1111 @ D1111.T) @ D1112 - D1122
    )

    # Equation (20)
    D12hatD12hat = np.eye(M2) - _rdivide(D1121, gamma_sq * I_w - D1111.T @ D1111) @ D1121.T
    D12hat = _cholesky(D12hatD12hat, lower=True, msg=" in equation (20)")

    # Equation (21)
    D21hatD21hat = np.eye(P2) - _rdivide(D1112.T, gamma_sq * I_z - D1111 @ D1111.T) @ D1112
    D21hat = _cholesky(D21hatD21hat, lower=False, msg=" in equation (21)")

    # Equation (27)
    Zinv = np.eye(plant.nx) - Y @ X / gamma_sq

    # Equation (22)
    B2hat = (B2 + H12) @ D12hat

    # Equation (23), using the inverse of (27)
    C2hat = _rdivide(-D21hat @ (C2 + F12), Zinv, name="matrix Zinv")

    # Equation (24)
    B2hat_D12hat_inv = _rdivide(B2hat, D12hat, name="matrix D12hat")
    B1hat = -H2 + B2hat_D12hat_inv @ D11hat

    # Equation (25), using the inverse of (27)
    C1hat = _rdivide(F2, Zinv, name="matrix Zinv") + _rdivide(
        D11hat, D21hat, name="matrix D21hat"
    ) @ C2hat

    # Equation (26)
    Ahat = A + H @ C + B2hat_D12hat_inv @ C1hat

    return Controller(
        A=Ahat,
        B=B1hat @ transform.left21,
        C=transform.right12 @ C1hat,
        D=transform.right12 @ D11hat @ transform.left21,
        dt=plant.dt,
    )


__all__ = [
    "assert_real_and_psd",
    "synthesize_controller",
]

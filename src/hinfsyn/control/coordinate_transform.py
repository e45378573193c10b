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
Coordinate Transforms to Canonical Feedthrough Form

The Riccati and controller formulas assume (assumption A3)

    D12 = [0; I]    and    D21 = [0 I]

Any plant with full-rank D12, D21 can be brought to this form by a
change of input/output coordinates. For a block M (m x n) of full rank
scale_matrix finds (T_left, T_right) with

    T_left @ M @ T_right = I        (m = n)
                         = [0; I]   (m > n)
                         = [0  I]   (m < n)

using either a QR or an SVD factorization:

QR (square):  M = Q R                T_left = Q',             T_right = R⁻¹
QR (tall):    M = [Q1 Q2] [R1; 0]    T_left = [Q2'; Q1'],     T_right = R1⁻¹
QR (wide):    M' = [Q1 Q2] [R1; 0]   T_left = R1⁻ᵀ,           T_right = [Q2 Q1]

SVD (square): M = U S V'             T_left = S⁻¹ U',         T_right = V
SVD (tall):   M = [U1 U2] [S; 0] V'  T_left = [U2'; S⁻¹ U1'], T_right = V
SVD (wide):   M = U [S 0] [V1 V2]'   T_left = S⁻¹ U',         T_right = [V2 V1]

The pairs for D12 and D21 are kept in a CanonicalTransform so the
synthesized controller can be mapped back to the original coordinates.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from scipy import linalg

from hinfsyn.control.exceptions import RankDeficiencyError
from hinfsyn.control.plant import ExtendedStateSpace
from hinfsyn.types.core import FeedthroughMatrix, TransformMatrix, TransformPair
from hinfsyn.types.hinf import TransformMethod

# ============================================================================
# Transform Container
# ============================================================================


@dataclass(frozen=True, eq=False)
class CanonicalTransform:
    """
    Coordinate-transform pairs of one synthesis call.

    Attributes
    ----------
    left12, right12 : TransformMatrix
        Pair scaling D12 (left acts on z, right acts on u)
    left21, right21 : TransformMatrix
        Pair scaling D21 (left acts on y, right acts on w)
    """

    left12: TransformMatrix
    right12: TransformMatrix
    left21: TransformMatrix
    right21: TransformMatrix


# ============================================================================
# Factorization Strategies (Internal)
# ============================================================================


def _coordinate_transform_qr(M: np.ndarray) -> TransformPair:
    m, n = M.shape
    if m == n:
        Q, R = linalg.qr(M)
        return Q.T, linalg.inv(R)
    if m > n:
        # Rank n: the trailing columns of Q span the left null space
        Q, R = linalg.qr(M)
        left = np.vstack([Q[:, n:].T, Q[:, :n].T])
        return left, linalg.inv(R[:n, :n])
    # Rank m: factor the transpose
    Q, R = linalg.qr(M.T)
    left = linalg.inv(R[:m, :m]).T
    right = np.hstack([Q[:, m:], Q[:, :m]])
    return left, right


def _coordinate_transform_svd(M: np.ndarray) -> TransformPair:
    m, n = M.shape
    U, s, Vh = linalg.svd(M, full_matrices=True)
    V = Vh.T
    S_inv = np.diag(1.0 / s)
    if m == n:
        return S_inv @ U.T, V
    if m > n:
        left = np.vstack([U[:, n:].T, S_inv @ U[:, :n].T])
        return left, V
    right = np.hstack([V[:, m:], V[:, :m]])
    return S_inv @ U.T, right


# ============================================================================
# Public API
# ============================================================================


def scale_matrix(
    M: FeedthroughMatrix,
    method: TransformMethod = TransformMethod.QR,
) -> TransformPair:
    """
    Find (T_left, T_right) such that T_left @ M @ T_right is canonical.

    Args:
        M: Full-rank matrix (m, n) with min(m, n) > 0
        method: TransformMethod.QR or TransformMethod.SVD

    Returns:
        (T_left, T_right), of shapes (m, m) and (n, n)

    Raises:
        RankDeficiencyError: If min(m, n) == 0 or rank(M) < min(m, n)
        ValueError: If method is not a TransformMethod

    Examples
    --------
    >>> D12 = np.array([[1.0], [2.0]])
    >>> Tl, Tr = scale_matrix(D12)
    >>> np.allclose(Tl @ D12 @ Tr, [[0.0], [1.0]])
    True
    >>> Tl, Tr = scale_matrix(D12, method=TransformMethod.SVD)
    """
    M = np.asarray(M, dtype=float)
    if M.ndim != 2 or min(M.shape) == 0:
        raise RankDeficiencyError(
            f"Cannot scale the system, minimum size of the matrix must be greater "
            f"than 0, got shape {M.shape}",
        )
    if np.linalg.matrix_rank(M) != min(M.shape):
        raise RankDeficiencyError(
            "Cannot scale the system, assumption A2 is violated "
            f"(rank {np.linalg.matrix_rank(M)} < {min(M.shape)})",
        )

    if method is TransformMethod.QR:
        return _coordinate_transform_qr(M)
    if method is TransformMethod.SVD:
        return _coordinate_transform_svd(M)
    raise ValueError(
        f"The method {method!r} is not supported, use TransformMethod.QR or TransformMethod.SVD",
    )


def transform_plant_to_canonical(
    plant: ExtendedStateSpace,
    method: TransformMethod = TransformMethod.QR,
) -> Tuple[ExtendedStateSpace, CanonicalTransform]:
    """
    Transform a plant P into P̄ with D̄12 = [0; I] and D̄21 = [0 I].

    Args:
        plant: Generalized plant with full-rank D12 and D21
        method: Factorization used by scale_matrix

    Returns:
        (plant_bar, transform) where transform holds the four matrices
        needed to map a controller of P̄ back to P

    Raises:
        RankDeficiencyError: If D12 or D21 cannot be scaled

    Examples
    --------
    >>> P_bar, T = transform_plant_to_canonical(P)
    >>> np.allclose(P_bar.D12, np.vstack([np.zeros((P.nz - P.nu, P.nu)), np.eye(P.nu)]))
    True
    """
    left12, right12 = scale_matrix(plant.D12, method=method)
    left21, right21 = scale_matrix(plant.D21, method=method)

    plant_bar = ExtendedStateSpace(
        A=plant.A,
        B1=plant.B1 @ right21,
        B2=plant.B2 @ right12,
        C1=left12 @ plant.C1,
        C2=left21 @ plant.C2,
        D11=left12 @ plant.D11 @ right21,
        D12=left12 @ plant.D12 @ right12,
        D21=left21 @ plant.D21 @ right21,
        D22=left21 @ plant.D22 @ right12,
        dt=plant.dt,
    )
    transform = CanonicalTransform(
        left12=left12,
        right12=right12,
        left21=left21,
        right21=right21,
    )
    return plant_bar, transform


__all__ = [
    "CanonicalTransform",
    "scale_matrix",
    "transform_plant_to_canonical",
]

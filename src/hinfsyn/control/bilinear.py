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
Balanced Bilinear Transforms

State-space bilinear maps between discrete and continuous time with the
frequency warping

    s = (z - 1) / (dt (z + 1))        z = (1 + dt s) / (1 - dt s)

The map preserves the L∞ norm, so a discrete-time plant can be synthesized
in continuous time and the controller discretized back:

>>> Pc = bilinear_plant_d2c(Pd)
>>> feasible, Kc, gamma = hinf_synthesize(Pc)
>>> Kd = bilinear_controller_c2d(Kc, Pd.dt)

After each transform B and C are rescaled by λ = sqrt(σmax(B) / σmax(C))
so that ||B||₂ = ||C||₂. The scaling is a state coordinate change and does
not alter the transfer function.
"""

from typing import Optional

import numpy as np
from scipy import linalg

from hinfsyn.control.exceptions import NumericalConditioningError
from hinfsyn.control.plant import Controller, ExtendedStateSpace
from hinfsyn.types.core import StateSpaceData

# ============================================================================
# Helpers (Internal)
# ============================================================================


def _check_sampling_time(dt: Optional[float]) -> float:
    if dt is None or not dt > 0:
        raise ValueError(f"The sampling time dt must be positive, got {dt}")
    return float(dt)


def _balance(B: np.ndarray, C: np.ndarray, tolerance: float):
    sigma_B = np.max(linalg.svdvals(B)) if B.size else 0.0
    sigma_C = np.max(linalg.svdvals(C)) if C.size else 0.0
    if not (sigma_B > tolerance and sigma_C > tolerance):
        raise NumericalConditioningError(
            "The problem is poorly conditioned, B or C vanishes after the bilinear "
            "transform. Consider an alternate discretization scheme.",
        )
    lam = np.sqrt(sigma_B / sigma_C)
    return B / lam, C * lam


def _split(plant_blocks: StateSpaceData, plant: ExtendedStateSpace, dt: Optional[float]):
    A, B, C, D = plant_blocks
    nw, nz = plant.nw, plant.nz
    return ExtendedStateSpace.from_partitioned(A, B, C, D, nw=nw, nz=nz, dt=dt)


# ============================================================================
# Matrix Transforms
# ============================================================================


def bilinear_d2c(
    Ad: np.ndarray,
    Bd: np.ndarray,
    Cd: np.ndarray,
    Dd: np.ndarray,
    dt: float,
    tolerance: float = 1e-12,
) -> StateSpaceData:
    """
    Balanced bilinear transform from discrete to continuous time.

    Args:
        Ad, Bd, Cd, Dd: Discrete-time realization
        dt: Sampling time (> 0)
        tolerance: Lower bound on σmax of the transformed B and C

    Returns:
        Continuous-time realization (Ac, Bc, Cc, Dc)

    Raises:
        ValueError: If dt ≤ 0
        NumericalConditioningError: If Ad + I is singular or B, C vanish

    Examples
    --------
    >>> Ac, Bc, Cc, Dc = bilinear_d2c([[0.5]], [[1.0]], [[1.0]], [[0.0]], dt=0.1)
    >>> Ac  # (0.5 - 1) / (0.5 + 1) / 0.1
    array([[-3.33333333]])
    """
    dt = _check_sampling_time(dt)
    Ad, Bd, Cd, Dd = (np.atleast_2d(np.asarray(M, dtype=float)) for M in (Ad, Bd, Cd, Dd))

    I = np.eye(Ad.shape[0])
    Pd = Ad - I
    Qd = Ad + I
    ialpha = 1 / dt

    try:
        Cd_Qd = linalg.solve(Qd.T, Cd.T).T
        Ac = ialpha * linalg.solve(Qd.T, Pd.T).T
        Bc = linalg.solve(Qd, Bd)
    except linalg.LinAlgError as exc:
        raise NumericalConditioningError(
            "Ad + I is singular, the system has a pole at z = -1",
        ) from exc
    Cc = 2 * ialpha * Cd_Qd
    Dc = Dd - Cd_Qd @ Bd

    Bc, Cc = _balance(Bc, Cc, tolerance)
    return Ac, Bc, Cc, Dc


def bilinear_c2d(
    Ac: np.ndarray,
    Bc: np.ndarray,
    Cc: np.ndarray,
    Dc: np.ndarray,
    dt: float,
    tolerance: float = 1e-12,
) -> StateSpaceData:
    """
    Balanced bilinear transform from continuous to discrete time.

    Args:
        Ac, Bc, Cc, Dc: Continuous-time realization
        dt: Sampling time (> 0)
        tolerance: Lower bound on σmax of the transformed B and C

    Returns:
        Discrete-time realization (Ad, Bd, Cd, Dd)

    Raises:
        ValueError: If dt ≤ 0
        NumericalConditioningError: If σmin(I - dt Ac) < 1e-12 or B, C vanish
    """
    dt = _check_sampling_time(dt)
    Ac, Bc, Cc, Dc = (np.atleast_2d(np.asarray(M, dtype=float)) for M in (Ac, Bc, Cc, Dc))

    I = np.eye(Ac.shape[0])
    alpha = dt

    PP = I - alpha * Ac
    QQ = I + alpha * Ac
    if PP.size and np.min(linalg.svdvals(PP)) < 1e-12:
        raise NumericalConditioningError(
            "The transformation is extremely poorly conditioned, with "
            "min(svd(I - dt*Ac)) < 1e-12. Consider an alternate discretization scheme.",
        )

    Ad = linalg.solve(PP, QQ)
    Bd = linalg.solve(PP, Bc)
    Cc_PP = linalg.solve(PP.T, Cc.T).T
    Cd = 2 * alpha * Cc_PP
    Dd = alpha * Cc_PP @ Bc + Dc

    Bd, Cd = _balance(Bd, Cd, tolerance)
    return Ad, Bd, Cd, Dd


# ============================================================================
# Plant and Controller Transforms
# ============================================================================


def bilinear_plant_d2c(plant: ExtendedStateSpace, tolerance: float = 1e-12) -> ExtendedStateSpace:
    """
    Continuous-time equivalent of a discrete-time generalized plant.

    Raises:
        ValueError: If the plant is continuous-time

    Examples
    --------
    >>> Pd = ExtendedStateSpace(A, B1, B2, C1, C2, D11, D12, D21, D22, dt=0.01)
    >>> Pc = bilinear_plant_d2c(Pd)
    >>> Pc.is_discrete
    False
    """
    if not plant.is_discrete:
        raise ValueError("The input must be a discrete-time system")
    blocks = bilinear_d2c(plant.A, plant.B, plant.C, plant.D, plant.dt, tolerance=tolerance)
    return _split(blocks, plant, dt=None)


def bilinear_plant_c2d(
    plant: ExtendedStateSpace,
    dt: float,
    tolerance: float = 1e-12,
) -> ExtendedStateSpace:
    """
    Discrete-time equivalent of a continuous-time generalized plant.

    Raises:
        ValueError: If the plant is discrete-time or dt ≤ 0
    """
    if plant.is_discrete:
        raise ValueError("The input must be a continuous-time system")
    dt = _check_sampling_time(dt)
    blocks = bilinear_c2d(plant.A, plant.B, plant.C, plant.D, dt, tolerance=tolerance)
    return _split(blocks, plant, dt=dt)


def bilinear_controller_c2d(
    controller: Controller,
    dt: float,
    tolerance: float = 1e-12,
) -> Controller:
    """Discrete-time equivalent of a continuous-time controller."""
    if controller.dt is not None:
        raise ValueError("The input must be a continuous-time controller")
    dt = _check_sampling_time(dt)
    Ad, Bd, Cd, Dd = bilinear_c2d(*controller.ssdata(), dt, tolerance=tolerance)
    return Controller(A=Ad, B=Bd, C=Cd, D=Dd, dt=dt)


__all__ = [
    "bilinear_d2c",
    "bilinear_c2d",
    "bilinear_plant_d2c",
    "bilinear_plant_c2d",
    "bilinear_controller_c2d",
]

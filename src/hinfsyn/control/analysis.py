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
Closed-Loop Analysis

Post-synthesis checks of an H∞ design:

- analyze_stability: eigenvalue stability of a state matrix
- hinf_norm_estimate: frequency-sweep lower bound on ||G||∞
- analyze_closed_loop: both, applied to the w → z loop of a design

The norm estimate samples σmax(G(jω)) on a grid and is therefore a lower
bound on the true H∞ norm. With a dense enough grid it is accurate to a
few percent for lightly damped systems.
"""

from typing import Optional

import control
import numpy as np
from scipy import linalg

from hinfsyn.control.plant import Controller, ExtendedStateSpace
from hinfsyn.control.signals import closed_loop
from hinfsyn.types.core import InputMatrix, OutputMatrix, StateMatrix
from hinfsyn.types.hinf import ClosedLoopAnalysis, StabilityInfo

# ============================================================================
# Stability
# ============================================================================


def analyze_stability(
    A: StateMatrix,
    system_type: str = "continuous",
    tolerance: float = 1e-10,
) -> StabilityInfo:
    """
    Analyze system stability via eigenvalue analysis.

    Stability criteria:
        Continuous (dx/dt = Ax): All Re(λ) < 0 (left half-plane)
        Discrete (x[k+1] = Ax): All |λ| < 1 (inside unit circle)

    Args:
        A: State matrix (nx, nx)
        system_type: 'continuous' or 'discrete'
        tolerance: Tolerance for marginal stability detection

    Returns:
        StabilityInfo containing:
            - eigenvalues: Eigenvalues of A (complex array)
            - max_real_part: max Re(λ)
            - spectral_radius: max |λ|
            - is_stable: True if asymptotically stable
            - is_marginally_stable: True if critically stable
            - is_unstable: True if unstable

    Examples
    --------
    >>> A = np.array([[0, 1], [-2, -3]])
    >>> stability = analyze_stability(A, system_type='continuous')
    >>> print(stability['is_stable'])  # True
    >>>
    >>> Ad = np.array([[0.9, 0.1], [0, 0.8]])
    >>> stability = analyze_stability(Ad, system_type='discrete')
    >>> print(stability['spectral_radius'])  # 0.9

    Notes
    -----
    An empty state matrix (static loop) is reported as stable.
    """
    A_np = np.asarray(A, dtype=float)

    if A_np.ndim != 2 or A_np.shape[0] != A_np.shape[1]:
        raise ValueError(f"A must be square matrix, got shape {A_np.shape}")
    if system_type not in ("continuous", "discrete"):
        raise ValueError(f"system_type must be 'continuous' or 'discrete', got '{system_type}'")

    eigenvalues = np.linalg.eigvals(A_np)
    if eigenvalues.size == 0:
        return {
            "eigenvalues": eigenvalues,
            "max_real_part": -np.inf,
            "spectral_radius": 0.0,
            "is_stable": True,
            "is_marginally_stable": False,
            "is_unstable": False,
        }

    max_real = np.max(np.real(eigenvalues))
    spectral_radius = np.max(np.abs(eigenvalues))

    if system_type == "continuous":
        is_stable = max_real < -tolerance
        is_marginally_stable = np.abs(max_real) <= tolerance
        is_unstable = max_real > tolerance
    else:
        is_stable = spectral_radius < 1.0 - tolerance
        is_marginally_stable = np.abs(spectral_radius - 1.0) <= tolerance
        is_unstable = spectral_radius > 1.0 + tolerance

    result: StabilityInfo = {
        "eigenvalues": eigenvalues,
        "max_real_part": float(max_real),
        "spectral_radius": float(spectral_radius),
        "is_stable": bool(is_stable),
        "is_marginally_stable": bool(is_marginally_stable),
        "is_unstable": bool(is_unstable),
    }
    return result


# ============================================================================
# Norm Estimate
# ============================================================================


def _default_frequencies(A: np.ndarray, dt: Optional[float]) -> np.ndarray:
    """Sweep grid covering every pole, with the pole frequencies added."""
    poles = np.linalg.eigvals(A)
    if dt is not None:
        # Pole angles mapped to rad/s, folded into [0, π/dt]
        resonances = np.abs(np.angle(poles)) / dt
        grid = np.linspace(0.0, np.pi / dt, 2000)
    else:
        magnitudes = np.abs(poles)
        nonzero = magnitudes[magnitudes > 0]
        lo, hi = 1e-4, 1e4
        if nonzero.size:
            lo = min(lo, nonzero.min() / 100)
            hi = max(hi, nonzero.max() * 100)
        resonances = np.concatenate([nonzero, np.abs(np.imag(poles))])
        grid = np.concatenate([[0.0], np.logspace(np.log10(lo), np.log10(hi), 2000)])
    return np.unique(np.concatenate([grid, resonances]))


def hinf_norm_estimate(
    A: StateMatrix,
    B: InputMatrix,
    C: OutputMatrix,
    D: np.ndarray,
    frequencies: Optional[np.ndarray] = None,
    dt: Optional[float] = None,
) -> float:
    """
    Estimate ||C (sI - A)⁻¹ B + D||∞ by a frequency sweep.

    Args:
        A, B, C, D: Realization of a stable system
        frequencies: Angular frequencies ω ≥ 0 to sample (rad/s). Default
            is a log-spaced grid reaching two decades past the slowest and
            fastest poles (at least [1e-4, 1e4]), plus ω = 0 and the pole
            frequencies themselves.
        dt: Sampling time for a discrete-time system (evaluates at
            z = exp(jω dt), ω up to the Nyquist frequency)

    Returns:
        max over ω of σmax(G(jω))

    Examples
    --------
    >>> # 1 / (s + 1) has H∞ norm 1, reached at ω = 0
    >>> hinf_norm_estimate([[-1.0]], [[1.0]], [[1.0]], [[0.0]])
    1.0
    """
    A, B, C, D = (np.atleast_2d(np.asarray(M, dtype=float)) for M in (A, B, C, D))

    if A.shape[0] == 0:
        return float(np.max(linalg.svdvals(D))) if D.size else 0.0

    if frequencies is None:
        frequencies = _default_frequencies(A, dt)
    frequencies = np.asarray(frequencies, dtype=float)

    sys = control.ss(A, B, C, D) if dt is None else control.ss(A, B, C, D, dt)
    response = control.frequency_response(sys, frequencies)

    # fresp is (outputs, inputs, frequencies)
    gains = np.moveaxis(np.asarray(response.fresp), -1, 0)
    return float(np.max(np.linalg.svd(gains, compute_uv=False)))


# ============================================================================
# Design Verification
# ============================================================================


def analyze_closed_loop(
    plant: ExtendedStateSpace,
    controller: Controller,
    gamma: Optional[float] = None,
) -> ClosedLoopAnalysis:
    """
    Stability and H∞ norm of the w → z loop closed by a controller.

    Args:
        plant: Generalized plant
        controller: Controller with plant.ny inputs and plant.nu outputs
        gamma: Achieved bound from synthesis, compared to the estimate

    Returns:
        ClosedLoopAnalysis. hinf_norm_estimate is inf for an unstable
        loop; meets_bound is None when gamma is None.

    Examples
    --------
    >>> feasible, K, gamma = hinf_synthesize(P)
    >>> report = analyze_closed_loop(P, K, gamma)
    >>> report['is_stable'], report['meets_bound']
    (True, True)
    """
    Acl, Bcl, Ccl, Dcl = closed_loop(plant, controller)
    system_type = "continuous" if plant.dt is None else "discrete"
    stability = analyze_stability(Acl, system_type=system_type)

    if stability["is_stable"]:
        norm = hinf_norm_estimate(Acl, Bcl, Ccl, Dcl, dt=plant.dt)
    else:
        norm = float("inf")

    meets_bound = None if gamma is None else bool(norm <= gamma)

    return {
        "eigenvalues": stability["eigenvalues"],
        "is_stable": stability["is_stable"],
        "hinf_norm_estimate": norm,
        "gamma": gamma,
        "meets_bound": meets_bound,
    }


__all__ = [
    "analyze_stability",
    "hinf_norm_estimate",
    "analyze_closed_loop",
]

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
H∞ Synthesis Types

Result and configuration types for the γ-iteration:
- Coordinate transform strategy (QR / SVD)
- γ-search settings
- Riccati certificate produced per γ probe
- Orchestrator result (feasible, controller, γ)
- Closed-loop analysis and signal dictionaries

Mathematical Background
----------------------
For a probe γ the two Hamiltonians HX, HY yield stabilizing solutions
X∞, Y∞. The probe is feasible when

    X∞ ≥ 0,   Y∞ ≥ 0,   ρ(X∞ Y∞) ≤ γ²

and a controller with ‖F_l(P, K)‖∞ < γ exists. The γ-search records the
smallest feasible probe it visits.

Usage
-----
>>> from hinfsyn.types.hinf import GammaSearchSettings, HInfSynthesisResult
>>>
>>> settings = GammaSearchSettings(max_iter=30, interval=(0.5, 10.0))
>>> result: HInfSynthesisResult = hinf_synthesize(P, max_iter=30)
>>> feasible, K, gamma = result
"""

import numbers
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple, Optional, Tuple

import numpy as np
from typing_extensions import TypedDict

from .core import GainMatrix, RiccatiSolution, StateSpaceData

if TYPE_CHECKING:
    from hinfsyn.control.plant import Controller


# ============================================================================
# Coordinate Transform Strategy
# ============================================================================


class TransformMethod(Enum):
    """
    Factorization used to scale a feedthrough block to canonical form.

    QR and SVD produce different transforms but the same canonical block
    ([0; I], [0 I] or I).
    """

    QR = "qr"
    SVD = "svd"


# ============================================================================
# γ-Search Configuration
# ============================================================================


@dataclass(frozen=True)
class GammaSearchSettings:
    """
    Configuration of the γ-iteration.

    Attributes
    ----------
    max_iter : int
        Number of γ probes (≥ 1)
    interval : Tuple[float, float]
        Search bounds (lo, hi), 0 < lo < hi. The search starts at hi.
    tolerance : float
        Slack on the non-negativity of the eigenvalues of X∞ and Y∞
    verbose : bool
        Print the per-iteration γ trace
    method : TransformMethod
        Coordinate transform strategy

    Examples
    --------
    >>> settings = GammaSearchSettings()
    >>> settings.interval
    (0.6666666666666666, 20.0)
    >>> GammaSearchSettings(interval=(5.0, 1.0))  # ValueError
    """

    max_iter: int = 20
    interval: Tuple[float, float] = (2 / 3, 20.0)
    tolerance: float = 1e-10
    verbose: bool = False
    method: TransformMethod = TransformMethod.QR

    def __post_init__(self):
        if isinstance(self.max_iter, bool) or not isinstance(self.max_iter, numbers.Integral):
            raise ValueError(f"max_iter must be an integer, got {self.max_iter!r}")
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be at least 1, got {self.max_iter}")

        if len(self.interval) != 2:
            raise ValueError(f"interval must be a pair (lo, hi), got {self.interval!r}")
        lo, hi = (float(v) for v in self.interval)
        if not (np.isfinite(lo) and np.isfinite(hi)):
            raise ValueError(f"interval bounds must be finite, got {self.interval!r}")
        if lo <= 0 or hi <= 0:
            raise ValueError(f"interval bounds must be positive, got {self.interval!r}")
        if lo >= hi:
            raise ValueError(f"interval must satisfy lo < hi, got {self.interval!r}")

        if not self.tolerance > 0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}")
        if not isinstance(self.method, TransformMethod):
            raise ValueError(
                f"method must be a TransformMethod, got {self.method!r}",
            )

        # Normalize to plain types on the frozen instance
        object.__setattr__(self, "max_iter", int(self.max_iter))
        object.__setattr__(self, "interval", (lo, hi))
        object.__setattr__(self, "tolerance", float(self.tolerance))

    @property
    def width(self) -> float:
        """Interval width |hi - lo|, the base of the step schedule."""
        return abs(self.interval[1] - self.interval[0])

    @property
    def resolution(self) -> float:
        """Final step size |hi - lo| / 2**max_iter."""
        return self.width / 2**self.max_iter


# ============================================================================
# Riccati Certificate
# ============================================================================


@dataclass(frozen=True)
class RiccatiCertificate:
    """
    Riccati solutions and gains computed for one γ probe.

    Fields
    ------
    X : RiccatiSolution
        Stabilizing solution of the X Hamiltonian (nx, nx)
    Y : RiccatiSolution
        Stabilizing solution of the Y Hamiltonian (nx, nx)
    F : GainMatrix
        State-feedback gain (nw + nu, nx), Glover-Doyle eq. (11)
    H : GainMatrix
        Output-injection gain (nx, nz + ny), Glover-Doyle eq. (12)
    gamma : float
        γ the certificate was computed for
    """

    X: RiccatiSolution
    Y: RiccatiSolution
    F: GainMatrix
    H: GainMatrix
    gamma: float

    @property
    def spectral_radius(self) -> float:
        """ρ(X∞ Y∞)."""
        return float(np.max(np.abs(np.linalg.eigvals(self.X @ self.Y))))


# ============================================================================
# Orchestrator Result
# ============================================================================


class HInfSynthesisResult(NamedTuple):
    """
    Outcome of the γ-iteration.

    Unpacks as ``(feasible, controller, gamma)``. When no γ in the search
    interval is feasible, ``controller`` and ``gamma`` are None.

    Examples
    --------
    >>> feasible, K, gamma = hinf_synthesize(P)
    >>> if feasible:
    ...     print(f"‖F_l(P, K)‖∞ < {gamma:.4f}")
    """

    feasible: bool
    controller: Optional["Controller"]
    gamma: Optional[float]


# ============================================================================
# Analysis Types
# ============================================================================


class StabilityInfo(TypedDict):
    """
    Eigenvalue-based stability analysis result.

    Fields
    ------
    eigenvalues : np.ndarray
        Eigenvalues of the system matrix (complex)
    max_real_part : float
        Largest real part (continuous time)
    spectral_radius : float
        Largest magnitude (discrete time)
    is_stable : bool
        Asymptotically stable
    is_marginally_stable : bool
        Eigenvalue on the stability boundary
    is_unstable : bool
        Eigenvalue outside the stability region
    """

    eigenvalues: np.ndarray
    max_real_part: float
    spectral_radius: float
    is_stable: bool
    is_marginally_stable: bool
    is_unstable: bool


class ClosedLoopAnalysis(TypedDict):
    """
    Closed-loop verification of a synthesized controller.

    Fields
    ------
    eigenvalues : np.ndarray
        Closed-loop poles
    is_stable : bool
        All poles strictly stable
    hinf_norm_estimate : float
        Frequency-sweep lower estimate of ‖F_l(P, K)‖∞
    gamma : Optional[float]
        Bound the controller was synthesized for
    meets_bound : Optional[bool]
        hinf_norm_estimate ≤ γ (None when γ is not given)
    """

    eigenvalues: np.ndarray
    is_stable: bool
    hinf_norm_estimate: float
    gamma: Optional[float]
    meets_bound: Optional[bool]


class ClosedLoopSignals(TypedDict):
    """
    Closed-loop transfer functions between the exogenous input w and the
    loop signals, each as an (A, B, C, D) realization.

    Fields
    ------
    Pcl : StateSpaceData
        w → z, weighted performance outputs
    S : StateSpaceData
        w → e, sensitivity
    CS : StateSpaceData
        w → u, control sensitivity
    T : StateSpaceData
        w → y, complementary sensitivity
    """

    Pcl: StateSpaceData
    S: StateSpaceData
    CS: StateSpaceData
    T: StateSpaceData


# ============================================================================
# Export All
# ============================================================================

__all__ = [
    "TransformMethod",
    "GammaSearchSettings",
    "RiccatiCertificate",
    "HInfSynthesisResult",
    "StabilityInfo",
    "ClosedLoopAnalysis",
    "ClosedLoopSignals",
]

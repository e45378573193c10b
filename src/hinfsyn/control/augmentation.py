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
Mixed-Sensitivity Plant Augmentation

Builds the generalized plant of the weighted mixed-sensitivity problem

         ┌─────┐ z1      ┌─────┐ z2      ┌─────┐ z3
         │ WS  │──►      │ WU  │──►      │ WT  │──►
         └──▲──┘         └──▲──┘         └──▲──┘
    w ──►(+)┴──► e ──► K ──►┴── u ──► G ────┴──► y
          ▲ -                                    │
          └──────────────────────────────────────┘

with performance outputs z = [WS e; WU u; WT y] and measurement e.
The state is ordered [xg, xws, xwu, xwt].

Plant and weights are given as LTI values:

- Gain(value): static gain
- TransferFunction(num, den): SISO rational function
- StateSpace(A, B, C, D): state-space realization
- Empty(): absent weight (drops the matching output block)

Plain numbers, arrays, None and python-control systems are converted by
as_lti.

Examples
--------
>>> G = TransferFunction([200.0], [0.025, 1.2, 1.0])
>>> WS = TransferFunction([1.0, 2.0], [1.0, 0.002])
>>> WU = Gain(0.1)
>>> P = hinf_partition(G, WS, WU, Empty())
>>> P.nz, P.ny
(2, 1)
"""

from dataclasses import dataclass
from typing import Any

import control
import numpy as np
from scipy import signal

from hinfsyn.control.exceptions import DimensionMismatchError
from hinfsyn.control.plant import ExtendedStateSpace
from hinfsyn.types.core import ArrayLike, StateSpaceData

# ============================================================================
# LTI Variants
# ============================================================================


class LTIWeight:
    """Base class of the LTI values accepted by hinf_partition."""

    def to_state_space(self) -> StateSpaceData:
        """Return a realization (A, B, C, D) as 2-D float arrays."""
        raise NotImplementedError


@dataclass(frozen=True)
class Empty(LTIWeight):
    """Absent weight, contributes no states and no outputs."""

    def to_state_space(self) -> StateSpaceData:
        return (np.zeros((0, 0)), np.zeros((0, 0)), np.zeros((0, 0)), np.zeros((0, 0)))


@dataclass(frozen=True, eq=False)
class Gain(LTIWeight):
    """
    Static gain.

    Examples
    --------
    >>> Gain(0.1).to_state_space()[3]
    array([[0.1]])
    """

    value: ArrayLike

    def to_state_space(self) -> StateSpaceData:
        D = np.atleast_2d(np.asarray(self.value, dtype=float))
        if D.ndim != 2:
            raise DimensionMismatchError(f"A gain must be at most 2-D, got shape {D.shape}")
        p, m = D.shape
        return np.zeros((0, 0)), np.zeros((0, m)), np.zeros((p, 0)), D


@dataclass(frozen=True, eq=False)
class TransferFunction(LTIWeight):
    """
    SISO transfer function num(s) / den(s).

    Coefficients are in descending powers of s.

    Examples
    --------
    >>> A, B, C, D = TransferFunction([1.0], [1.0, 1.0]).to_state_space()
    >>> A
    array([[-1.]])
    """

    num: ArrayLike
    den: ArrayLike

    def to_state_space(self) -> StateSpaceData:
        num = np.atleast_1d(np.asarray(self.num, dtype=float))
        den = np.atleast_1d(np.asarray(self.den, dtype=float))
        if num.ndim != 1 or den.ndim != 1:
            raise DimensionMismatchError("Only SISO transfer functions are supported")
        if not np.any(den != 0):
            raise ValueError("The denominator of a transfer function cannot be zero")

        num = np.trim_zeros(num, "f")
        if num.size == 0:
            num = np.zeros(1)
        den = np.trim_zeros(den, "f")
        if num.size > den.size:
            raise ValueError("Improper transfer function, deg(num) > deg(den)")
        if den.size == 1:
            # tf2ss would add a spurious zero mode
            gain = num[0] / den[0]
            return Gain(gain).to_state_space()

        A, B, C, D = signal.tf2ss(num, den)
        n = den.size - 1
        return (
            np.reshape(A, (n, n)).astype(float),
            np.reshape(B, (n, 1)).astype(float),
            np.reshape(C, (1, n)).astype(float),
            np.reshape(D, (1, 1)).astype(float),
        )


@dataclass(frozen=True, eq=False)
class StateSpace(LTIWeight):
    """
    State-space realization (A, B, C, D).

    Examples
    --------
    >>> W = StateSpace.from_control(control.tf([1.0], [1.0, 1.0]))
    """

    A: ArrayLike
    B: ArrayLike
    C: ArrayLike
    D: ArrayLike

    @classmethod
    def from_control(cls, sys) -> "StateSpace":
        """Convert a python-control StateSpace or TransferFunction."""
        sys = control.ss(sys)
        return cls(A=sys.A, B=sys.B, C=sys.C, D=sys.D)

    def to_state_space(self) -> StateSpaceData:
        A, B, C, D = (np.asarray(M, dtype=float) for M in (self.A, self.B, self.C, self.D))
        A = np.reshape(A, (A.shape[0], A.shape[0])) if A.size else np.zeros((0, 0))
        n = A.shape[0]
        D = np.atleast_2d(D)
        p, m = D.shape
        B = np.reshape(B, (n, m))
        C = np.reshape(C, (p, n))
        return A, B, C, D


def as_lti(value: Any) -> LTIWeight:
    """
    Convert a plant or weight description to an LTIWeight.

    Args:
        value: LTIWeight, python-control system, None, number or array.
            None and empty arrays map to Empty().

    Returns:
        LTIWeight

    Examples
    --------
    >>> as_lti(2.0)
    Gain(value=2.0)
    >>> as_lti(None)
    Empty()
    """
    if isinstance(value, LTIWeight):
        return value
    if value is None:
        return Empty()
    if isinstance(value, (control.StateSpace, control.TransferFunction)):
        return StateSpace.from_control(value)
    if np.size(value) == 0:
        return Empty()
    return Gain(value)


# ============================================================================
# Generalized Plant Construction
# ============================================================================


def _weight_realization(weight: Any, n_inputs: int, name: str) -> StateSpaceData:
    A, B, C, D = as_lti(weight).to_state_space()
    if A.size == 0 and B.size == 0 and C.size == 0 and D.size == 0:
        return np.zeros((0, 0)), np.zeros((0, n_inputs)), np.zeros((0, 0)), np.zeros((0, n_inputs))
    if B.shape[1] != n_inputs:
        raise DimensionMismatchError(
            f"The weight {name} must have {n_inputs} inputs, got {B.shape[1]}",
        )
    return A, B, C, D


def hinf_partition(G: Any, WS: Any, WU: Any, WT: Any) -> ExtendedStateSpace:
    """
    Build the mixed-sensitivity generalized plant.

    Args:
        G: Plant to control (ny outputs, nu inputs)
        WS: Weight on the error e (sensitivity), ny inputs
        WU: Weight on the control u (control sensitivity), nu inputs
        WT: Weight on the output y (complementary sensitivity), ny inputs

    Returns:
        Continuous-time ExtendedStateSpace with nw = ny disturbance
        inputs, nu controls, nz = (outputs of WS, WU, WT) performance
        outputs and ny measurements

    Raises:
        DimensionMismatchError: If G has an empty realization or a
            weight's input count disagrees with G

    Examples
    --------
    >>> P = hinf_partition(G, WS, WU, WT)
    >>> hinf_assumptions(P)
    """
    Ag, Bg, Cg, Dg = as_lti(G).to_state_space()
    if min(Ag.shape + Bg.shape + Cg.shape + Dg.shape) == 0:
        raise DimensionMismatchError(
            "Expansion of systems with a dimensionless A, B, C or D is not supported",
        )

    ng = Ag.shape[0]
    ny, nu = Dg.shape

    Aws, Bws, Cws, Dws = _weight_realization(WS, ny, "WS")
    Awu, Bwu, Cwu, Dwu = _weight_realization(WU, nu, "WU")
    Awt, Bwt, Cwt, Dwt = _weight_realization(WT, ny, "WT")

    nws, nwu, nwt = Aws.shape[0], Awu.shape[0], Awt.shape[0]
    pws, pwu, pwt = Dws.shape[0], Dwu.shape[0], Dwt.shape[0]

    def zeros(rows: int, cols: int) -> np.ndarray:
        return np.zeros((rows, cols))

    A = np.block(
        [
            [Ag, zeros(ng, nws), zeros(ng, nwu), zeros(ng, nwt)],
            [-Bws @ Cg, Aws, zeros(nws, nwu), zeros(nws, nwt)],
            [zeros(nwu, ng), zeros(nwu, nws), Awu, zeros(nwu, nwt)],
            [Bwt @ Cg, zeros(nwt, nws), zeros(nwt, nwu), Awt],
        ]
    )
    B1 = np.vstack([zeros(ng, ny), Bws, zeros(nwu, ny), zeros(nwt, ny)])
    B2 = np.vstack([Bg, zeros(nws, nu), Bwu, zeros(nwt, nu)])

    C1 = np.block(
        [
            [-Dws @ Cg, Cws, zeros(pws, nwu), zeros(pws, nwt)],
            [zeros(pwu, ng), zeros(pwu, nws), Cwu, zeros(pwu, nwt)],
            [Dwt @ Cg, zeros(pwt, nws), zeros(pwt, nwu), Cwt],
        ]
    )
    C2 = np.hstack([-Cg, zeros(ny, nws), zeros(ny, nwu), zeros(ny, nwt)])

    D11 = np.vstack([Dws, zeros(pwu, ny), zeros(pwt, ny)])
    D12 = np.vstack([zeros(pws, nu), Dwu, zeros(pwt, nu)])
    D21 = np.eye(ny)
    D22 = -Dg

    return ExtendedStateSpace(
        A=A, B1=B1, B2=B2, C1=C1, C2=C2, D11=D11, D12=D12, D21=D21, D22=D22
    )


__all__ = [
    "LTIWeight",
    "Empty",
    "Gain",
    "TransferFunction",
    "StateSpace",
    "as_lti",
    "hinf_partition",
]

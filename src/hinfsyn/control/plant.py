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
Generalized Plant and Controller Realizations

Immutable state-space containers exchanged by every stage of the
synthesis:

**ExtendedStateSpace** - the generalized plant

    ẋ = A x + B1 w + B2 u
    z = C1 x + D11 w + D12 u
    y = C2 x + D21 w + D22 u

**Controller** - the dynamic output-feedback law

    ẋc = Ac xc + Bc y
    u  = Cc xc + Dc y

Both are frozen dataclasses. Blocks are converted to 2-D float64 arrays,
copied and marked read-only on construction, so a transform always
produces a new instance. Dimensions are validated before any numerical
work and inconsistencies raise DimensionMismatchError.

Usage
-----
>>> import numpy as np
>>> from hinfsyn.control.plant import ExtendedStateSpace
>>>
>>> P = ExtendedStateSpace(
...     A=[[1.0]], B1=[[1.0, 0.0]], B2=[[1.0]],
...     C1=[[1.0], [0.0]], C2=[[1.0]],
...     D11=np.zeros((2, 2)), D12=[[0.0], [1.0]],
...     D21=[[0.0, 1.0]], D22=[[0.0]],
... )
>>> P.nx, P.nw, P.nu, P.nz, P.ny
(1, 2, 1, 2, 1)
"""

from dataclasses import dataclass, field, fields, replace
from typing import Optional, Tuple

import control
import numpy as np

from hinfsyn.control.exceptions import DimensionMismatchError
from hinfsyn.types.backends import to_numpy
from hinfsyn.types.core import (
    ArrayLike,
    FeedthroughMatrix,
    InputMatrix,
    OutputMatrix,
    StateMatrix,
    StateSpaceData,
)

# ============================================================================
# Array Coercion (Internal)
# ============================================================================


def _as_matrix(value: ArrayLike, name: str) -> np.ndarray:
    """
    Convert a block to a read-only 2-D float64 copy.

    Scalars become (1, 1) and 1-D inputs become a single row.
    """
    arr = np.array(to_numpy(value), dtype=float)
    if arr.ndim == 0:
        arr = arr.reshape(1, 1)
    elif arr.ndim == 1:
        arr = arr.reshape(1, -1)
    elif arr.ndim != 2:
        raise DimensionMismatchError(f"{name} must be a matrix, got {arr.ndim}-D input")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} must contain only finite values")
    arr.setflags(write=False)
    return arr


def _check_shape(arr: np.ndarray, expected: Tuple[int, int], name: str):
    if arr.shape != expected:
        raise DimensionMismatchError(f"{name} must be {expected}, got {arr.shape}")


def _check_dt(dt: Optional[float]) -> Optional[float]:
    if dt is None:
        return None
    dt = float(dt)
    if not dt > 0:
        raise ValueError(f"dt must be positive for a discrete-time system, got {dt}")
    return dt


# ============================================================================
# Generalized Plant
# ============================================================================


@dataclass(frozen=True, eq=False)
class ExtendedStateSpace:
    """
    Generalized (extended) state-space plant.

    Attributes
    ----------
    A : StateMatrix
        State matrix (nx, nx)
    B1 : InputMatrix
        Disturbance input matrix (nx, nw)
    B2 : InputMatrix
        Control input matrix (nx, nu)
    C1 : OutputMatrix
        Performance output matrix (nz, nx)
    C2 : OutputMatrix
        Measurement output matrix (ny, nx)
    D11, D12, D21, D22 : FeedthroughMatrix
        Feedthrough blocks (nz, nw), (nz, nu), (ny, nw), (ny, nu)
    dt : Optional[float]
        Sampling time, None for continuous time

    Raises
    ------
    DimensionMismatchError
        If any block disagrees with (nx, nw, nu, nz, ny)
    ValueError
        If a block contains non-finite values or dt ≤ 0

    Examples
    --------
    >>> P = ExtendedStateSpace.from_partitioned(A, B, C, D, nw=2, nz=2)
    >>> A, B1, B2, C1, C2, D11, D12, D21, D22 = P.ssdata()
    >>>
    >>> # Transforms return new plants
    >>> P2 = P.with_blocks(D11=np.zeros_like(P.D11))
    """

    A: StateMatrix
    B1: InputMatrix
    B2: InputMatrix
    C1: OutputMatrix
    C2: OutputMatrix
    D11: FeedthroughMatrix
    D12: FeedthroughMatrix
    D21: FeedthroughMatrix
    D22: FeedthroughMatrix
    dt: Optional[float] = None

    def __post_init__(self):
        for f in fields(self):
            if f.name == "dt":
                continue
            object.__setattr__(self, f.name, _as_matrix(getattr(self, f.name), f.name))
        object.__setattr__(self, "dt", _check_dt(self.dt))

        nx = self.A.shape[0]
        _check_shape(self.A, (nx, nx), "A")
        if self.B1.shape[0] != nx:
            raise DimensionMismatchError(f"B1 must have {nx} rows, got {self.B1.shape[0]}")
        if self.B2.shape[0] != nx:
            raise DimensionMismatchError(f"B2 must have {nx} rows, got {self.B2.shape[0]}")
        if self.C1.shape[1] != nx:
            raise DimensionMismatchError(f"C1 must have {nx} columns, got {self.C1.shape[1]}")
        if self.C2.shape[1] != nx:
            raise DimensionMismatchError(f"C2 must have {nx} columns, got {self.C2.shape[1]}")

        nw, nu = self.B1.shape[1], self.B2.shape[1]
        nz, ny = self.C1.shape[0], self.C2.shape[0]
        _check_shape(self.D11, (nz, nw), "D11")
        _check_shape(self.D12, (nz, nu), "D12")
        _check_shape(self.D21, (ny, nw), "D21")
        _check_shape(self.D22, (ny, nu), "D22")

    # ========================================================================
    # Constructors
    # ========================================================================

    @classmethod
    def from_partitioned(
        cls,
        A: ArrayLike,
        B: ArrayLike,
        C: ArrayLike,
        D: ArrayLike,
        nw: int,
        nz: int,
        dt: Optional[float] = None,
    ) -> "ExtendedStateSpace":
        """
        Build a plant from a stacked realization.

        Args:
            A: State matrix (nx, nx)
            B: Stacked input matrix [B1 B2] (nx, nw + nu)
            C: Stacked output matrix [C1; C2] (nz + ny, nx)
            D: Stacked feedthrough [[D11 D12]; [D21 D22]]
            nw: Number of disturbance inputs (leading columns of B)
            nz: Number of performance outputs (leading rows of C)
            dt: Sampling time, None for continuous time

        Returns:
            ExtendedStateSpace
        """
        B = _as_matrix(B, "B")
        C = _as_matrix(C, "C")
        D = _as_matrix(D, "D")
        if not (0 <= nw <= B.shape[1] and 0 <= nz <= C.shape[0]):
            raise DimensionMismatchError(
                f"Cannot split B {B.shape} at nw={nw} and C {C.shape} at nz={nz}",
            )
        _check_shape(D, (C.shape[0], B.shape[1]), "D")
        return cls(
            A=A,
            B1=B[:, :nw],
            B2=B[:, nw:],
            C1=C[:nz, :],
            C2=C[nz:, :],
            D11=D[:nz, :nw],
            D12=D[:nz, nw:],
            D21=D[nz:, :nw],
            D22=D[nz:, nw:],
            dt=dt,
        )

    def with_blocks(self, **changes) -> "ExtendedStateSpace":
        """Return a new plant with the given blocks replaced."""
        return replace(self, **changes)

    # ========================================================================
    # Dimensions
    # ========================================================================

    @property
    def nx(self) -> int:
        """Number of states."""
        return self.A.shape[0]

    @property
    def nw(self) -> int:
        """Number of disturbance inputs (m1)."""
        return self.B1.shape[1]

    @property
    def nu(self) -> int:
        """Number of control inputs (m2)."""
        return self.B2.shape[1]

    @property
    def nz(self) -> int:
        """Number of performance outputs (p1)."""
        return self.C1.shape[0]

    @property
    def ny(self) -> int:
        """Number of measured outputs (p2)."""
        return self.C2.shape[0]

    @property
    def is_discrete(self) -> bool:
        return self.dt is not None

    # ========================================================================
    # Stacked Blocks
    # ========================================================================

    @property
    def B(self) -> np.ndarray:
        """[B1 B2]"""
        return np.hstack([self.B1, self.B2])

    @property
    def C(self) -> np.ndarray:
        """[C1; C2]"""
        return np.vstack([self.C1, self.C2])

    @property
    def D(self) -> np.ndarray:
        """[[D11 D12]; [D21 D22]]"""
        return np.block([[self.D11, self.D12], [self.D21, self.D22]])

    def ssdata(self) -> Tuple[np.ndarray, ...]:
        """Return (A, B1, B2, C1, C2, D11, D12, D21, D22)."""
        return (
            self.A,
            self.B1,
            self.B2,
            self.C1,
            self.C2,
            self.D11,
            self.D12,
            self.D21,
            self.D22,
        )

    def __repr__(self) -> str:
        domain = "continuous" if self.dt is None else f"discrete, dt={self.dt}"
        return (
            f"ExtendedStateSpace(nx={self.nx}, nw={self.nw}, nu={self.nu}, "
            f"nz={self.nz}, ny={self.ny}, {domain})"
        )


# ============================================================================
# Controller
# ============================================================================


@dataclass(frozen=True, eq=False)
class Controller:
    """
    Dynamic output-feedback controller u = K(s) y.

    Attributes
    ----------
    A : StateMatrix
        Controller state matrix (nk, nk)
    B : InputMatrix
        Measurement input matrix (nk, ny)
    C : OutputMatrix
        Control output matrix (nu, nk)
    D : FeedthroughMatrix
        Direct feedthrough (nu, ny)
    dt : Optional[float]
        Sampling time, None for continuous time

    Examples
    --------
    >>> feasible, K, gamma = hinf_synthesize(P)
    >>> Ac, Bc, Cc, Dc = K.ssdata()
    >>> sys = K.to_statespace()  # python-control StateSpace
    """

    A: StateMatrix
    B: InputMatrix
    C: OutputMatrix
    D: FeedthroughMatrix
    dt: Optional[float] = field(default=None)

    def __post_init__(self):
        for name in ("A", "B", "C", "D"):
            object.__setattr__(self, name, _as_matrix(getattr(self, name), name))
        object.__setattr__(self, "dt", _check_dt(self.dt))

        nk = self.A.shape[0]
        _check_shape(self.A, (nk, nk), "A")
        if self.B.shape[0] != nk:
            raise DimensionMismatchError(f"B must have {nk} rows, got {self.B.shape[0]}")
        if self.C.shape[1] != nk:
            raise DimensionMismatchError(f"C must have {nk} columns, got {self.C.shape[1]}")
        _check_shape(self.D, (self.C.shape[0], self.B.shape[1]), "D")

    @property
    def nx(self) -> int:
        """Number of controller states."""
        return self.A.shape[0]

    @property
    def nu(self) -> int:
        """Number of controller inputs (plant measurements)."""
        return self.B.shape[1]

    @property
    def ny(self) -> int:
        """Number of controller outputs (plant controls)."""
        return self.C.shape[0]

    def ssdata(self) -> StateSpaceData:
        """Return (A, B, C, D)."""
        return self.A, self.B, self.C, self.D

    def to_statespace(self) -> control.StateSpace:
        """
        Convert to a python-control StateSpace.

        Returns:
            control.StateSpace with the same realization and sampling time
        """
        if self.dt is None:
            return control.ss(self.A, self.B, self.C, self.D)
        return control.ss(self.A, self.B, self.C, self.D, self.dt)

    def __repr__(self) -> str:
        return f"Controller(nx={self.nx}, inputs={self.nu}, outputs={self.ny})"


__all__ = [
    "ExtendedStateSpace",
    "Controller",
]

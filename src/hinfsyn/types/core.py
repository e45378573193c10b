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
Core Types - Matrix Roles of a Generalized Plant

Semantic aliases for the blocks of a generalized (extended) state-space
plant and of the objects computed from it during H∞ synthesis:

    ẋ = A x + B1 w + B2 u
    z = C1 x + D11 w + D12 u
    y = C2 x + D21 w + D22 u

- w : disturbance input (nw = m1)
- u : control input (nu = m2)
- z : performance output (nz = p1)
- y : measured output (ny = p2)

The aliases carry no runtime behavior. They document which role a matrix
plays so signatures read like the equations they implement.

Usage
-----
>>> from hinfsyn.types.core import StateMatrix, InputMatrix, RiccatiSolution
>>>
>>> def closed_loop_matrix(A: StateMatrix, B2: InputMatrix, K) -> StateMatrix:
...     return A + B2 @ K
"""

from typing import TYPE_CHECKING, Sequence, Tuple, Union

import numpy as np

if TYPE_CHECKING:
    import jax.numpy as jnp
    import torch


# ============================================================================
# Basic Array Types - Multi-Backend Support
# ============================================================================

ArrayLike = Union[np.ndarray, "torch.Tensor", "jnp.ndarray", Sequence, float]
"""
Array-like input accepted at the public boundary.

Can be a NumPy array, PyTorch tensor, JAX array, nested sequence or scalar.
Everything is converted to a 2-D float64 NumPy array before use.
"""

ScalarLike = Union[float, int, np.number]
"""Scalar value (γ, tolerances, sampling times)."""


# ============================================================================
# Matrix Types - Semantic Naming by Role
# ============================================================================

StateMatrix = np.ndarray
"""
State matrix A (nx, nx).

Also used for any square matrix living on the state space: the Riccati
solutions X∞, Y∞ and the controller state matrix Âc.
"""

InputMatrix = np.ndarray
"""
Input matrix (nx, ·).

B1 (nx, nw) maps disturbances, B2 (nx, nu) maps controls, and the
controller input matrix Bc (nx, ny) maps measurements.
"""

OutputMatrix = np.ndarray
"""
Output matrix (·, nx).

C1 (nz, nx) for performance outputs, C2 (ny, nx) for measurements, and
the controller output matrix Cc (nu, nx).
"""

FeedthroughMatrix = np.ndarray
"""
Direct transmission block D11, D12, D21, D22 or the controller's Dc.

Examples
--------
>>> # Canonical coordinates after scaling
>>> D12: FeedthroughMatrix = np.vstack([np.zeros((1, 1)), np.eye(1)])  # [0; I]
>>> D21: FeedthroughMatrix = np.hstack([np.zeros((1, 1)), np.eye(1)])  # [0 I]
"""

HamiltonianMatrix = np.ndarray
"""
Hamiltonian matrix (2nx, 2nx).

Eigenvalues come in pairs (λ, -λ̄). The stable invariant subspace gives
the stabilizing solution of the associated Riccati equation.
"""

RiccatiSolution = np.ndarray
"""Stabilizing solution X∞ or Y∞ (nx, nx), symmetric."""

GainMatrix = np.ndarray
"""
Gain matrix.

F (nw + nu, nx) is the state-feedback gain of the X equation,
H (nx, nz + ny) the output-injection gain of the Y equation.
"""

TransformMatrix = np.ndarray
"""Left or right coordinate transform of a feedthrough block."""

TransformPair = Tuple[TransformMatrix, TransformMatrix]
"""(T_left, T_right) such that T_left @ D @ T_right is canonical."""

StateSpaceData = Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]
"""Plain (A, B, C, D) realization tuple."""


# ============================================================================
# Export All
# ============================================================================

__all__ = [
    "ArrayLike",
    "ScalarLike",
    "StateMatrix",
    "InputMatrix",
    "OutputMatrix",
    "FeedthroughMatrix",
    "HamiltonianMatrix",
    "RiccatiSolution",
    "GainMatrix",
    "TransformMatrix",
    "TransformPair",
    "StateSpaceData",
]

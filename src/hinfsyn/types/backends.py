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
Backend Types

Defines the computational backend identifier accepted at the public
boundary of the synthesis routines, together with the conversion helpers
that move arrays in and out of NumPy.

All numerical work (Schur, QR, SVD, Cholesky) happens in NumPy/SciPy.
Backends only matter for the arrays a caller passes in and gets back.

Usage
-----
>>> from hinfsyn.types.backends import Backend, to_numpy, from_numpy
>>>
>>> backend: Backend = 'torch'
>>> A_np = to_numpy(A_torch, backend)
>>> A_back = from_numpy(A_np, backend)
"""

from typing import Literal, Tuple

import numpy as np

# ============================================================================
# Backend Types
# ============================================================================

Backend = Literal["numpy", "torch", "jax"]
"""
Backend identifier for numerical computation.

Valid values:
- 'numpy': NumPy arrays (CPU-based, stable, universal)
- 'torch': PyTorch tensors
- 'jax': JAX arrays

Examples
--------
>>> backend: Backend = 'torch'
>>> synthesis = HInfSynthesis(backend=backend)
"""

VALID_BACKENDS: Tuple[str, ...] = ("numpy", "torch", "jax")


def validate_backend(backend: str) -> Backend:
    """
    Validate and normalize backend string.

    Parameters
    ----------
    backend : str
        Backend name to validate

    Returns
    -------
    Backend
        Validated backend (typed)

    Raises
    ------
    ValueError
        If backend is not valid

    Examples
    --------
    >>> validate_backend('numpy')
    'numpy'
    >>> validate_backend('pytorch')  # ValueError
    """
    if backend not in VALID_BACKENDS:
        raise ValueError(f"Invalid backend '{backend}'. " f"Choose from: {VALID_BACKENDS}")
    return backend


# ============================================================================
# Backend Conversion Utilities
# ============================================================================


def to_numpy(arr, backend: Backend = "numpy") -> np.ndarray:
    """
    Convert array to NumPy for scipy operations.

    Args:
        arr: Array in any backend (or nested sequence / scalar)
        backend: Source backend identifier

    Returns:
        NumPy array
    """
    if isinstance(arr, np.ndarray):
        return arr

    if backend == "torch" or hasattr(arr, "detach"):
        # PyTorch tensor
        return arr.detach().cpu().numpy()
    if backend == "jax" or hasattr(arr, "__array__"):
        # JAX array
        return np.array(arr)
    return np.asarray(arr)


def from_numpy(arr: np.ndarray, backend: Backend = "numpy"):
    """
    Convert NumPy array back to target backend.

    Args:
        arr: NumPy array
        backend: Target backend

    Returns:
        Array in target backend
    """
    if backend == "numpy":
        return arr
    if backend == "torch":
        import torch

        return torch.from_numpy(np.ascontiguousarray(arr))
    if backend == "jax":
        import jax.numpy as jnp

        return jnp.array(arr)
    return arr


# ============================================================================
# Export All
# ============================================================================

__all__ = [
    "Backend",
    "VALID_BACKENDS",
    "validate_backend",
    "to_numpy",
    "from_numpy",
]

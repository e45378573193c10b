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
H∞ Synthesis Wrapper

Thin wrapper around the pure functions in hinf_design.py. It only carries
a backend setting and converts the controller matrices into that
backend, so a design can be dropped into a torch or JAX pipeline.

Usage
-----
>>> synthesis = HInfSynthesis(backend='torch')
>>> if synthesis.check_assumptions(P):
...     result = synthesis.synthesize(P, max_iter=30)
>>> Ac, Bc, Cc, Dc = result['controller']  # torch tensors
"""

from typing import Any, Optional, Tuple

from typing_extensions import TypedDict

from hinfsyn.control.plant import ExtendedStateSpace
from hinfsyn.types.backends import Backend, from_numpy, validate_backend
from hinfsyn.types.hinf import TransformMethod


class BackendSynthesisResult(TypedDict):
    """
    Synthesis result with controller matrices in the wrapper's backend.

    Attributes
    ----------
    feasible : bool
        A feasible γ was found
    controller : Optional[Tuple]
        (Ac, Bc, Cc, Dc) as backend arrays, None if infeasible
    gamma : Optional[float]
        Achieved γ, None if infeasible
    dt : Optional[float]
        Controller sampling time
    """

    feasible: bool
    controller: Optional[Tuple[Any, Any, Any, Any]]
    gamma: Optional[float]
    dt: Optional[float]


class HInfSynthesis:
    """
    H∞ synthesis wrapper with a fixed computational backend.

    Attributes
    ----------
    backend : Backend
        Backend of the returned arrays ('numpy', 'torch', 'jax')

    Examples
    --------
    >>> synthesis = HInfSynthesis(backend='numpy')
    >>> result = synthesis.synthesize(P)
    >>> result['gamma']
    2.7320...
    """

    def __init__(self, backend: Backend = "numpy"):
        """
        Initialize the wrapper.

        Args:
            backend: Backend of returned arrays ('numpy', 'torch', 'jax')

        Raises:
            ValueError: If backend is not recognized
        """
        self.backend = validate_backend(backend)

    def check_assumptions(self, plant: ExtendedStateSpace, verbose: bool = True) -> bool:
        """Routes to hinf_assumptions()."""
        from hinfsyn.control.hinf_design import hinf_assumptions

        return hinf_assumptions(plant, verbose=verbose)

    def synthesize(
        self,
        plant: ExtendedStateSpace,
        max_iter: int = 20,
        interval: Tuple[float, float] = (2 / 3, 20),
        verbose: bool = False,
        tolerance: float = 1e-10,
        method: TransformMethod = TransformMethod.QR,
    ) -> BackendSynthesisResult:
        """
        Synthesize an H∞ controller.

        Routes to hinf_synthesize() and converts the controller matrices.

        Args:
            plant: Generalized plant (D22 must be zero)
            max_iter: Maximum number of γ probes
            interval: (lo, hi) search interval for γ
            verbose: Print the γ trace
            tolerance: Slack on non-negativity of the Riccati solutions
            method: Factorization for the canonical coordinate transform

        Returns:
            BackendSynthesisResult

        Examples
        --------
        >>> result = HInfSynthesis(backend='jax').synthesize(P)
        >>> if result['feasible']:
        ...     Ac, Bc, Cc, Dc = result['controller']
        """
        from hinfsyn.control.hinf_design import hinf_synthesize

        feasible, controller, gamma = hinf_synthesize(
            plant,
            max_iter=max_iter,
            interval=interval,
            verbose=verbose,
            tolerance=tolerance,
            method=method,
        )
        if not feasible:
            return {"feasible": False, "controller": None, "gamma": None, "dt": None}

        matrices = tuple(from_numpy(M.copy(), self.backend) for M in controller.ssdata())
        return {
            "feasible": True,
            "controller": matrices,
            "gamma": gamma,
            "dt": controller.dt,
        }


# ============================================================================
# Export
# ============================================================================

__all__ = [
    "BackendSynthesisResult",
    "HInfSynthesis",
]

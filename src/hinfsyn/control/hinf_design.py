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
H∞ Controller Design

Top-level entry points of the γ-iteration synthesis:

- hinf_assumptions: structural preconditions (A1, A2, A5, A6)
- hinf_synthesize: sub-optimal H∞ output-feedback controller

Pipeline
--------
1. Transform P to canonical coordinates P̄ (D̄12 = [0; I], D̄21 = [0 I])
2. γ-iteration over the configured interval on P̄
3. Central controller from the best feasible certificate, mapped back
   to the coordinates of P

Usage
-----
>>> from hinfsyn.control import ExtendedStateSpace, hinf_assumptions, hinf_synthesize
>>>
>>> P = ExtendedStateSpace(A, B1, B2, C1, C2, D11, D12, D21, D22)
>>> if hinf_assumptions(P):
...     feasible, K, gamma = hinf_synthesize(P, max_iter=30, interval=(0.5, 10))
>>> if feasible:
...     Ac, Bc, Cc, Dc = K.ssdata()

References
----------
Glover, K., & Doyle, J. C. (1988). State-space formulae for all
stabilizing controllers that satisfy an H∞-norm bound and relations to
risk sensitivity. Systems & Control Letters, 11(3), 167-172.
"""

from typing import Tuple

import numpy as np

from hinfsyn.control.assumptions import check_assumptions
from hinfsyn.control.controller_reconstruction import synthesize_controller
from hinfsyn.control.coordinate_transform import transform_plant_to_canonical
from hinfsyn.control.exceptions import UnsupportedPlantError
from hinfsyn.control.plant import ExtendedStateSpace
from hinfsyn.control.riccati import gamma_iterations
from hinfsyn.types.hinf import GammaSearchSettings, HInfSynthesisResult, TransformMethod

# ============================================================================
# Public API
# ============================================================================


def hinf_assumptions(plant: ExtendedStateSpace, verbose: bool = True) -> bool:
    """
    Check whether a plant satisfies the γ-iteration assumptions.

    Alias of check_assumptions, see that function for the list of checks.

    Examples
    --------
    >>> hinf_assumptions(P)
    All assumptions are satisfied!
    True
    """
    return check_assumptions(plant, verbose=verbose)


def hinf_synthesize(
    plant: ExtendedStateSpace,
    max_iter: int = 20,
    interval: Tuple[float, float] = (2 / 3, 20),
    verbose: bool = False,
    tolerance: float = 1e-10,
    method: TransformMethod = TransformMethod.QR,
) -> HInfSynthesisResult:
    """
    Synthesize a sub-optimal H∞ controller by γ-iteration.

    Args:
        plant: Generalized plant (D22 must be zero)
        max_iter: Maximum number of γ probes
        interval: (lo, hi) search interval for γ, 0 < lo < hi
        verbose: Print "iteration gamma" for each probe
        tolerance: Slack on non-negativity of the Riccati solutions
        method: Factorization for the canonical coordinate transform

    Returns:
        HInfSynthesisResult(feasible, controller, gamma). When no probe is
        feasible the result is (False, None, None).

    Raises:
        ValueError: If the search configuration is invalid
        UnsupportedPlantError: If D22 is nonzero
        RankDeficiencyError: If D12 or D21 is rank deficient
        NumericalConditioningError: If the controller cannot be built at
            the selected γ

    Examples
    --------
    >>> result = hinf_synthesize(P)
    >>> result.feasible, result.gamma
    (True, 2.7320...)
    >>>
    >>> # Tighter search with SVD scaling
    >>> result = hinf_synthesize(
    ...     P,
    ...     max_iter=40,
    ...     interval=(1.0, 5.0),
    ...     method=TransformMethod.SVD,
    ... )
    >>>
    >>> # Interval entirely below the optimum
    >>> hinf_synthesize(P, interval=(0.01, 0.05))
    HInfSynthesisResult(feasible=False, controller=None, gamma=None)

    Notes
    -----
    Assumptions are not checked here. Call hinf_assumptions first, a
    plant that violates them may still return a controller that does not
    stabilize the loop.
    """
    settings = GammaSearchSettings(
        max_iter=max_iter,
        interval=interval,
        tolerance=tolerance,
        verbose=verbose,
        method=method,
    )

    if np.any(np.abs(plant.D22) > 0):
        raise UnsupportedPlantError(
            "Cannot synthesize a controller for a plant with nonzero D22, "
            "loop shifting is not implemented",
        )

    plant_bar, transform = transform_plant_to_canonical(plant, method=settings.method)

    certificate = gamma_iterations(plant_bar, settings)
    if certificate is None:
        return HInfSynthesisResult(feasible=False, controller=None, gamma=None)

    controller = synthesize_controller(plant_bar, certificate, transform)
    return HInfSynthesisResult(feasible=True, controller=controller, gamma=certificate.gamma)


__all__ = [
    "hinf_assumptions",
    "hinf_synthesize",
]

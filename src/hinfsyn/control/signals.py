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
Closed-Loop Signals

Interconnection of a generalized plant P with a controller u = K y:

    ẋ  = A x + B1 w + B2 u            ẋc = Ac xc + Bc y
    z  = C1 x + D11 w + D12 u         u  = Cc xc + Dc y
    y  = C2 x + D21 w + D22 u

Eliminating u with M = (I - Dc D22)⁻¹ gives the closed-loop state
[x; xc] and

    Acl = [A + B2 M Dc C2,             B2 M Cc          ]
          [Bc C2 + Bc D22 M Dc C2,     Ac + Bc D22 M Cc ]

    Bcl = [B1 + B2 M Dc D21;  Bc D21 + Bc D22 M Dc D21]

Outputs of hinf_signals:

- Pcl: w → z, the performance channel
- S:   w → e (y of the plant), sensitivity for a mixed-sensitivity plant
- CS:  w → u, control sensitivity
- T:   w → output of G, complementary sensitivity
"""

import numpy as np
from scipy import linalg

from hinfsyn.control.augmentation import as_lti
from hinfsyn.control.exceptions import DimensionMismatchError, NumericalConditioningError
from hinfsyn.control.plant import Controller, ExtendedStateSpace
from hinfsyn.types.core import StateSpaceData
from hinfsyn.types.hinf import ClosedLoopSignals

# ============================================================================
# Interconnection (Internal)
# ============================================================================


def _check_interconnection(plant: ExtendedStateSpace, controller: Controller):
    if controller.nu != plant.ny or controller.ny != plant.nu:
        raise DimensionMismatchError(
            f"Controller with {controller.nu} inputs and {controller.ny} outputs cannot "
            f"close a loop with ny={plant.ny}, nu={plant.nu}",
        )
    if controller.dt != plant.dt:
        raise ValueError(
            f"Plant and controller must share the same sampling time, "
            f"got {plant.dt} and {controller.dt}",
        )


def _feedback_gain(plant: ExtendedStateSpace, controller: Controller) -> np.ndarray:
    """M = (I - Dc D22)⁻¹"""
    W = np.eye(plant.nu) - controller.D @ plant.D22
    try:
        return linalg.inv(W)
    except linalg.LinAlgError as exc:
        raise NumericalConditioningError(
            "The loop is ill-posed, I - Dc*D22 is singular",
        ) from exc


def _closed_loop_dynamics(plant, controller, M):
    A, B1, B2, C1, C2, D11, D12, D21, D22 = plant.ssdata()
    Ac, Bc, Cc, Dc = controller.ssdata()

    Acl = np.block(
        [
            [A + B2 @ M @ Dc @ C2, B2 @ M @ Cc],
            [Bc @ C2 + Bc @ D22 @ M @ Dc @ C2, Ac + Bc @ D22 @ M @ Cc],
        ]
    )
    Bcl = np.vstack([B1 + B2 @ M @ Dc @ D21, Bc @ D21 + Bc @ D22 @ M @ Dc @ D21])
    return Acl, Bcl


# ============================================================================
# Public API
# ============================================================================


def closed_loop(plant: ExtendedStateSpace, controller: Controller) -> StateSpaceData:
    """
    Closed-loop realization of the performance channel w → z.

    Args:
        plant: Generalized plant
        controller: Controller with plant.ny inputs and plant.nu outputs

    Returns:
        (Acl, Bcl, Ccl, Dcl) with state [x; xc]

    Raises:
        DimensionMismatchError: If the controller does not fit the plant
        NumericalConditioningError: If I - Dc D22 is singular
        ValueError: If plant and controller sampling times differ

    Examples
    --------
    >>> feasible, K, gamma = hinf_synthesize(P)
    >>> Acl, Bcl, Ccl, Dcl = closed_loop(P, K)
    >>> np.all(np.linalg.eigvals(Acl).real < 0)
    True
    """
    _check_interconnection(plant, controller)
    M = _feedback_gain(plant, controller)
    Acl, Bcl = _closed_loop_dynamics(plant, controller, M)

    _, _, _, C1, C2, D11, D12, D21, _ = plant.ssdata()
    _, _, Cc, Dc = controller.ssdata()
    Ccl = np.hstack([C1 + D12 @ M @ Dc @ C2, D12 @ M @ Cc])
    Dcl = D11 + D12 @ M @ Dc @ D21
    return Acl, Bcl, Ccl, Dcl


def hinf_signals(plant: ExtendedStateSpace, G, controller: Controller) -> ClosedLoopSignals:
    """
    Closed-loop transfer realizations of a mixed-sensitivity design.

    Args:
        plant: Generalized plant, typically from hinf_partition
        G: Plant to control, the one passed to hinf_partition (LTIWeight,
            python-control system or array). Its state must be the leading
            block of the plant state.
        controller: Controller with plant.ny inputs and plant.nu outputs

    Returns:
        ClosedLoopSignals with realizations Pcl (w → z), S (w → e),
        CS (w → u) and T (w → y)

    Raises:
        DimensionMismatchError: If the controller or G does not fit the plant
        NumericalConditioningError: If I - Dc D22 is singular

    Examples
    --------
    >>> P = hinf_partition(G, WS, WU, WT)
    >>> feasible, K, gamma = hinf_synthesize(P)
    >>> signals = hinf_signals(P, G, K)
    >>> A_S, B_S, C_S, D_S = signals['S']
    """
    _check_interconnection(plant, controller)
    Ag, Bg, Cg, Dg = as_lti(G).to_state_space()
    if Cg.shape[1] > plant.nx or Dg.shape[1] != plant.nu:
        raise DimensionMismatchError(
            f"G with {Cg.shape[1]} states and {Dg.shape[1]} inputs does not fit "
            f"a plant with nx={plant.nx}, nu={plant.nu}",
        )

    M = _feedback_gain(plant, controller)
    Acl, Bcl = _closed_loop_dynamics(plant, controller, M)

    _, _, _, C1, C2, D11, D12, D21, D22 = plant.ssdata()
    _, _, Cc, Dc = controller.ssdata()

    # Controller output u expressed on the closed-loop state
    C_u = np.hstack([M @ Dc @ C2, M @ Cc])
    D_u = M @ Dc @ D21

    Pw2z = (
        Acl,
        Bcl,
        np.hstack([C1 + D12 @ M @ Dc @ C2, D12 @ M @ Cc]),
        D11 + D12 @ M @ Dc @ D21,
    )
    Pw2e = (
        Acl,
        Bcl,
        np.hstack([C2 + D22 @ M @ Dc @ C2, D22 @ M @ Cc]),
        D21 + D22 @ M @ Dc @ D21,
    )
    Pw2u = (Acl, Bcl, C_u, D_u)

    Cg_padded = np.hstack([Cg, np.zeros((Cg.shape[0], Acl.shape[1] - Cg.shape[1]))])
    Pw2y = (Acl, Bcl, Cg_padded + Dg @ C_u, Dg @ D_u)

    return ClosedLoopSignals(Pcl=Pw2z, S=Pw2e, CS=Pw2u, T=Pw2y)


__all__ = [
    "closed_loop",
    "hinf_signals",
]

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
H∞ Control Design and Analysis
==============================

γ-iteration synthesis of sub-optimal H∞ output-feedback controllers
(Glover & Doyle, 1988), with mixed-sensitivity plant augmentation,
bilinear transforms and closed-loop analysis.

Synthesis
---------
>>> from hinfsyn.control import ExtendedStateSpace, hinf_assumptions, hinf_synthesize
>>>
>>> P = ExtendedStateSpace(A, B1, B2, C1, C2, D11, D12, D21, D22)
>>> hinf_assumptions(P)
>>> feasible, K, gamma = hinf_synthesize(P, max_iter=30)
>>>
>>> # Backend wrapper
>>> result = HInfSynthesis(backend='torch').synthesize(P)

Mixed Sensitivity
-----------------
>>> from hinfsyn.control import TransferFunction, Gain, Empty, hinf_partition, hinf_signals
>>>
>>> P = hinf_partition(G, WS, WU, Empty())
>>> feasible, K, gamma = hinf_synthesize(P)
>>> signals = hinf_signals(P, G, K)

Analysis
--------
>>> report = analyze_closed_loop(P, K, gamma)
>>> report['is_stable'], report['hinf_norm_estimate']

Authors
-------
Gil Benezer

License
-------
GNU Affero General Public License v3.0
"""

# Classes
from .hinf_synthesis import HInfSynthesis
from .plant import Controller, ExtendedStateSpace

# Exceptions
from .exceptions import (
    DimensionMismatchError,
    HInfSynthesisError,
    NumericalConditioningError,
    RankDeficiencyError,
    SynthesisAssumptionWarning,
    UnsupportedPlantError,
)

# Functional interface
from .analysis import analyze_closed_loop, analyze_stability, hinf_norm_estimate
from .assumptions import check_assumptions, is_detectable, is_stabilizable
from .augmentation import Empty, Gain, StateSpace, TransferFunction, hinf_partition
from .bilinear import (
    bilinear_c2d,
    bilinear_controller_c2d,
    bilinear_d2c,
    bilinear_plant_c2d,
    bilinear_plant_d2c,
)
from .controller_reconstruction import synthesize_controller
from .coordinate_transform import CanonicalTransform, scale_matrix, transform_plant_to_canonical
from .hinf_design import hinf_assumptions, hinf_synthesize
from .riccati import (
    check_feasibility,
    gamma_iterations,
    solve_hamiltonian_are,
    solve_matrix_equations,
)
from .signals import closed_loop, hinf_signals

# Export public API
__all__ = [
    # Classes
    "HInfSynthesis",
    "ExtendedStateSpace",
    "Controller",
    "CanonicalTransform",
    # Exceptions
    "HInfSynthesisError",
    "DimensionMismatchError",
    "RankDeficiencyError",
    "NumericalConditioningError",
    "UnsupportedPlantError",
    "SynthesisAssumptionWarning",
    # Synthesis
    "hinf_assumptions",
    "hinf_synthesize",
    "check_assumptions",
    "is_stabilizable",
    "is_detectable",
    "scale_matrix",
    "transform_plant_to_canonical",
    "solve_hamiltonian_are",
    "solve_matrix_equations",
    "check_feasibility",
    "gamma_iterations",
    "synthesize_controller",
    # Mixed sensitivity
    "Empty",
    "Gain",
    "TransferFunction",
    "StateSpace",
    "hinf_partition",
    "hinf_signals",
    "closed_loop",
    # Bilinear transforms
    "bilinear_d2c",
    "bilinear_c2d",
    "bilinear_plant_d2c",
    "bilinear_plant_c2d",
    "bilinear_controller_c2d",
    # Analysis
    "analyze_stability",
    "hinf_norm_estimate",
    "analyze_closed_loop",
]

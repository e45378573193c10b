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
Type definitions for hinfsyn.

- core: semantic matrix aliases
- backends: backend identifiers and array conversion
- hinf: γ-iteration settings, certificates and results
"""

from .backends import VALID_BACKENDS, Backend, from_numpy, to_numpy, validate_backend
from .core import (
    ArrayLike,
    FeedthroughMatrix,
    GainMatrix,
    HamiltonianMatrix,
    InputMatrix,
    OutputMatrix,
    RiccatiSolution,
    ScalarLike,
    StateMatrix,
    StateSpaceData,
    TransformMatrix,
    TransformPair,
)
from .hinf import (
    ClosedLoopAnalysis,
    ClosedLoopSignals,
    GammaSearchSettings,
    HInfSynthesisResult,
    RiccatiCertificate,
    StabilityInfo,
    TransformMethod,
)

__all__ = [
    # Backends
    "Backend",
    "VALID_BACKENDS",
    "validate_backend",
    "to_numpy",
    "from_numpy",
    # Core aliases
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
    # H∞ types
    "TransformMethod",
    "GammaSearchSettings",
    "RiccatiCertificate",
    "HInfSynthesisResult",
    "StabilityInfo",
    "ClosedLoopAnalysis",
    "ClosedLoopSignals",
]

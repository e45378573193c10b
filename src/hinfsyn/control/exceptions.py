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
Exceptions and warnings raised during H∞ synthesis.

Fatal conditions raise; expected negative outcomes (failed assumption,
infeasible γ) are return values. The failed-assumption diagnostics go
through ``warnings.warn`` with SynthesisAssumptionWarning.
"""


# ============================================================================
# Exceptions
# ============================================================================


class HInfSynthesisError(Exception):
    """Base class for all synthesis errors"""
    pass


class DimensionMismatchError(HInfSynthesisError, ValueError):
    """Raised when plant or controller blocks have inconsistent dimensions"""
    pass


class RankDeficiencyError(HInfSynthesisError, ValueError):
    """Raised when a feedthrough block cannot be scaled to canonical form"""
    pass


class NumericalConditioningError(HInfSynthesisError, ArithmeticError):
    """Raised when a factorization fails its realness, positivity or conditioning check"""
    pass


class UnsupportedPlantError(HInfSynthesisError, NotImplementedError):
    """Raised for plant structures the synthesis does not handle (nonzero D22)"""
    pass


# ============================================================================
# Warnings
# ============================================================================


class SynthesisAssumptionWarning(UserWarning):
    """Emitted when a plant violates one of the synthesis assumptions"""
    pass


__all__ = [
    "HInfSynthesisError",
    "DimensionMismatchError",
    "RankDeficiencyError",
    "NumericalConditioningError",
    "UnsupportedPlantError",
    "SynthesisAssumptionWarning",
]

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
Unit Tests for H∞ Controller Synthesis

Tests cover:
- Central controller reconstruction
- Closed-loop stability and norm bound of synthesized controllers
- Top-level hinf_synthesize configuration and results
- Error taxonomy (rank deficiency, nonzero D22, non-PSD factors)
- Invariance under input scaling and factorization method
"""

import unittest

import numpy as np
import pytest
from numpy.testing import assert_allclose

from hinfsyn.control.analysis import analyze_closed_loop
from hinfsyn.control.controller_reconstruction import assert_real_and_psd, synthesize_controller
from hinfsyn.control.coordinate_transform import CanonicalTransform, transform_plant_to_canonical
from hinfsyn.control.exceptions import (
    DimensionMismatchError,
    HInfSynthesisError,
    NumericalConditioningError,
    RankDeficiencyError,
    UnsupportedPlantError,
)
from hinfsyn.control.hinf_design import hinf_synthesize
from hinfsyn.control.plant import Controller, ExtendedStateSpace
from hinfsyn.control.riccati import solve_matrix_equations
from hinfsyn.control.signals import closed_loop
from hinfsyn.types.hinf import GammaSearchSettings, HInfSynthesisResult, RiccatiCertificate, TransformMethod

GAMMA_OPT = 1.0 + np.sqrt(3.0)


def benchmark_plant(**overrides):
    blocks = dict(
        A=[[1.0]],
        B1=[[1.0, 0.0]],
        B2=[[1.0]],
        C1=[[1.0], [0.0]],
        C2=[[1.0]],
        D11=np.zeros((2, 2)),
        D12=[[0.0], [1.0]],
        D21=[[0.0, 1.0]],
        D22=[[0.0]],
    )
    blocks.update(overrides)
    return ExtendedStateSpace(**blocks)


def rotated_plant(Q):
    """Two-input plant whose D1121 block is 0.5 Q for an orthogonal Q."""
    D11 = np.zeros((3, 3))
    D11[1:, :2] = 0.5 * Q
    return ExtendedStateSpace(
        A=[[0.5, 1.0], [0.0, -1.0]],
        B1=[[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
        B2=np.eye(2),
        C1=[[1.0, 1.0], [0.0, 0.0], [0.0, 0.0]],
        C2=[[1.0, 0.0]],
        D11=D11,
        D12=[[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]],
        D21=[[0.0, 0.0, 1.0]],
        D22=np.zeros((1, 2)),
    )


def static_plant():
    """Plant without states, z = D11 w + D12 u and y = D21 w."""
    return ExtendedStateSpace(
        A=np.zeros((0, 0)),
        B1=np.zeros((0, 2)),
        B2=np.zeros((0, 1)),
        C1=np.zeros((2, 0)),
        C2=np.zeros((1, 0)),
        D11=np.diag([0.5, 0.0]),
        D12=[[0.0], [1.0]],
        D21=[[0.0, 1.0]],
        D22=[[0.0]],
    )


def mimo_plant():
    """Unstable two-state plant with a non-canonical D12 and nonzero D11."""
    return ExtendedStateSpace(
        A=[[0.5, 1.0], [0.0, -1.0]],
        B1=[[1.0, 0.0, 0.0], [0.5, 0.0, 0.0]],
        B2=[[0.0], [1.0]],
        C1=[[1.0, 0.0], [0.0, 1.0], [0.0, 0.0]],
        C2=[[1.0, 0.0]],
        D11=[[0.1, 0.0, 0.0], [0.0, 0.0, 0.0], [0.0, 0.0, 0.0]],
        D12=[[0.0], [0.0], [2.0]],
        D21=[[0.0, 1.0, 0.5]],
        D22=[[0.0]],
    )


# ============================================================================
# Controller Reconstruction
# ============================================================================


class TestAssertRealAndPSD(unittest.TestCase):
    def test_positive_definite(self):
        assert_real_and_psd(np.diag([1.0, 2.0]))
        assert_real_and_psd(np.zeros((0, 0)))

    def test_not_positive(self):
        with self.assertRaises(NumericalConditioningError) as ctx:
            assert_real_and_psd(np.diag([1.0, -1.0]), msg=" in equation (20)")
        self.assertIn("equation (20)", str(ctx.exception))
        self.assertIn("not PSD", str(ctx.exception))

    def test_complex_eigenvalues(self):
        with self.assertRaises(NumericalConditioningError) as ctx:
            assert_real_and_psd(np.array([[1.0, 1.0], [-1.0, 1.0]]))
        self.assertIn("not real", str(ctx.exception))

    def test_rounding_asymmetry_ignored(self):
        # Repeated eigenvalue split into 0.99 ± 6.9e-19j by the skew part
        M = np.array([[0.99, -9.7e-19], [4.9e-19, 0.99]])
        self.assertTrue(np.any(np.linalg.eigvals(M).imag != 0))
        assert_real_and_psd(M, msg=" in equation (20)")

    def test_asymmetric(self):
        with self.assertRaises(NumericalConditioningError):
            assert_real_and_psd(np.array([[1.0, 0.5], [0.0, 1.0]]))


class TestSynthesizeController(unittest.TestCase):
    def setUp(self):
        self.plant = benchmark_plant()
        self.plant_bar, self.transform = transform_plant_to_canonical(self.plant)

    def test_dimensions(self):
        cert = solve_matrix_equations(self.plant_bar, 5.0)
        K = synthesize_controller(self.plant_bar, cert, self.transform)
        self.assertIsInstance(K, Controller)
        self.assertEqual(K.nx, self.plant.nx)
        self.assertEqual(K.nu, self.plant.ny)
        self.assertEqual(K.ny, self.plant.nu)

    def test_stabilizes_benchmark(self):
        for gamma in (3.0, 5.0, 20.0):
            cert = solve_matrix_equations(self.plant_bar, gamma)
            K = synthesize_controller(self.plant_bar, cert, self.transform)
            Acl, _, _, _ = closed_loop(self.plant, K)
            self.assertTrue(np.all(np.real(np.linalg.eigvals(Acl)) < 0))

    def test_closed_form_on_canonical_plant(self):
        # Identity transforms: Ĉ1 = F2 Z∞, Â = A + H C + B2 Ĉ1
        gamma = 5.0
        cert = solve_matrix_equations(self.plant, gamma)
        identity = CanonicalTransform(
            left12=np.eye(2), right12=np.eye(1), left21=np.eye(1), right21=np.eye(2)
        )
        K = synthesize_controller(self.plant, cert, identity)

        X = cert.X[0, 0]
        Z = 1.0 / (1.0 - X * X / gamma**2)
        assert_allclose(K.C, [[-X * Z]], rtol=1e-10)
        assert_allclose(K.D, [[0.0]], atol=1e-12)
        assert_allclose(K.B, [[X]], rtol=1e-10)

    def test_partition_mismatch(self):
        # Two measurements but a single disturbance
        plant = ExtendedStateSpace(
            A=[[1.0]],
            B1=[[1.0]],
            B2=[[1.0]],
            C1=[[1.0], [0.0]],
            C2=[[1.0], [1.0]],
            D11=np.zeros((2, 1)),
            D12=[[0.0], [1.0]],
            D21=[[0.0], [1.0]],
            D22=np.zeros((2, 1)),
        )
        cert = RiccatiCertificate(
            X=np.eye(1), Y=np.eye(1), F=np.zeros((2, 1)), H=np.zeros((1, 4)), gamma=1.0
        )
        identity = CanonicalTransform(
            left12=np.eye(2), right12=np.eye(1), left21=np.eye(2), right21=np.eye(1)
        )
        with self.assertRaises(DimensionMismatchError):
            synthesize_controller(plant, cert, identity)

    def test_non_psd_factor(self):
        # D11 too large for γ makes equation (20) indefinite
        plant = benchmark_plant(D11=[[0.0, 0.0], [5.0, 0.0]])
        plant_bar, T = transform_plant_to_canonical(plant)
        cert = RiccatiCertificate(
            X=np.eye(1), Y=np.eye(1), F=np.zeros((3, 1)), H=np.zeros((1, 3)), gamma=1.0
        )
        with self.assertRaises(NumericalConditioningError):
            synthesize_controller(plant_bar, cert, T)


class TestMultiInputReconstruction(unittest.TestCase):
    """Reconstruction with two control inputs and a rotated D1121 block."""

    def setUp(self):
        rng = np.random.default_rng(0)
        self.rotations = [np.linalg.qr(rng.standard_normal((2, 2)))[0] for _ in range(40)]

    def test_equation_20_factor(self):
        # I - D1121 D1121' / γ² = (1 - 0.25 / γ²) I for an orthogonal block
        gamma = 20.0
        for Q in self.rotations:
            plant_bar, T = transform_plant_to_canonical(rotated_plant(Q))
            cert = solve_matrix_equations(plant_bar, gamma)
            K = synthesize_controller(plant_bar, cert, T)
            self.assertEqual((K.nx, K.nu, K.ny), (2, 1, 2))

    def test_stabilizes_and_meets_bound(self):
        for Q in self.rotations[:10]:
            P = rotated_plant(Q)
            feasible, K, gamma = hinf_synthesize(P, max_iter=5, interval=(3.0, 20.0))
            self.assertTrue(feasible)

            report = analyze_closed_loop(P, K, gamma)
            self.assertTrue(report["is_stable"])
            self.assertLessEqual(report["hinf_norm_estimate"], gamma)


# ============================================================================
# Top-Level Synthesis
# ============================================================================


class TestHInfSynthesize:
    def test_default_run(self):
        result = hinf_synthesize(benchmark_plant())
        assert isinstance(result, HInfSynthesisResult)
        feasible, K, gamma = result
        assert feasible
        assert isinstance(K, Controller)
        resolution = GammaSearchSettings().resolution
        assert -1e-8 <= gamma - GAMMA_OPT <= 2 * resolution

    def test_controller_meets_bound(self):
        P = benchmark_plant()
        feasible, K, gamma = hinf_synthesize(P, max_iter=5, interval=(3.0, 20.0))
        assert feasible
        assert gamma == pytest.approx(4.0625)

        report = analyze_closed_loop(P, K, gamma)
        assert report["is_stable"]
        assert report["hinf_norm_estimate"] <= gamma * 1.01
        assert report["meets_bound"]

    def test_mimo_plant(self):
        P = mimo_plant()
        feasible, K, gamma = hinf_synthesize(P, max_iter=1)
        assert feasible
        assert gamma == 20.0
        assert (K.nx, K.nu, K.ny) == (2, 1, 1)

        report = analyze_closed_loop(P, K, gamma)
        assert report["is_stable"]
        assert report["hinf_norm_estimate"] <= gamma

    def test_static_plant(self):
        P = static_plant()
        feasible, K, gamma = hinf_synthesize(P)
        assert feasible
        assert K.nx == 0
        assert gamma >= 2 / 3

        report = analyze_closed_loop(P, K, gamma)
        assert report["is_stable"]
        assert report["hinf_norm_estimate"] == pytest.approx(0.5)
        assert report["meets_bound"]

    def test_interval_too_tight(self):
        result = hinf_synthesize(benchmark_plant(), interval=(0.01, 0.05))
        assert result == HInfSynthesisResult(False, None, None)
        assert not result.feasible

    @pytest.mark.parametrize("method", list(TransformMethod))
    def test_method_independent(self, method):
        reference = hinf_synthesize(benchmark_plant())
        result = hinf_synthesize(benchmark_plant(), method=method)
        assert result.gamma == pytest.approx(reference.gamma, abs=1e-9)

    def test_input_scaling_invariance(self):
        settings = GammaSearchSettings()
        reference = hinf_synthesize(benchmark_plant())
        scaled = hinf_synthesize(benchmark_plant(B2=[[3.0]], D12=[[0.0], [3.0]]))
        assert scaled.feasible
        assert abs(scaled.gamma - reference.gamma) <= 2 * settings.resolution

    def test_verbose_trace(self, capsys):
        hinf_synthesize(benchmark_plant(), max_iter=3, verbose=True)
        lines = capsys.readouterr().out.strip().splitlines()
        assert lines[0] == "iteration, gamma"
        assert len(lines) == 4

    def test_nonzero_D22(self):
        with pytest.raises(UnsupportedPlantError):
            hinf_synthesize(benchmark_plant(D22=[[0.5]]))
        with pytest.raises(NotImplementedError):
            hinf_synthesize(benchmark_plant(D22=[[0.5]]))

    def test_rank_deficient_D12(self):
        with pytest.raises(RankDeficiencyError):
            hinf_synthesize(benchmark_plant(D12=[[0.0], [0.0]]))

    def test_rank_deficient_D21(self):
        with pytest.raises(HInfSynthesisError):
            hinf_synthesize(benchmark_plant(D21=[[0.0, 0.0]]))

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_iter": 0},
            {"max_iter": 2.5},
            {"interval": (5.0, 1.0)},
            {"interval": (0.0, 1.0)},
            {"interval": (1.0,)},
            {"tolerance": 0.0},
            {"method": "qr"},
        ],
    )
    def test_invalid_configuration(self, kwargs):
        with pytest.raises(ValueError):
            hinf_synthesize(benchmark_plant(), **kwargs)

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
Unit Tests for Balanced Bilinear Transforms

Tests cover:
- Transfer function preservation under s = (z - 1) / (dt (z + 1))
- Balancing of B and C
- Plant and controller transforms
- Conditioning and sampling time errors
"""

import unittest

import numpy as np
import pytest
from numpy.testing import assert_allclose

from hinfsyn.control.bilinear import (
    bilinear_c2d,
    bilinear_controller_c2d,
    bilinear_d2c,
    bilinear_plant_c2d,
    bilinear_plant_d2c,
)
from hinfsyn.control.exceptions import NumericalConditioningError
from hinfsyn.control.plant import Controller, ExtendedStateSpace


def evaluate(A, B, C, D, point):
    n = A.shape[0]
    return C @ np.linalg.solve(point * np.eye(n) - A, B) + D


class TestMatrixTransforms(unittest.TestCase):
    def setUp(self):
        self.dt = 0.1
        self.Ad = np.array([[0.5, 0.1], [0.0, 0.8]])
        self.Bd = np.array([[1.0], [0.5]])
        self.Cd = np.array([[1.0, -1.0]])
        self.Dd = np.array([[0.2]])
        self.z_points = [np.exp(1j * w) for w in (0.1, 0.7, 2.0)]

    def _s_of_z(self, z):
        return (z - 1) / (self.dt * (z + 1))

    def test_d2c_preserves_transfer_function(self):
        Ac, Bc, Cc, Dc = bilinear_d2c(self.Ad, self.Bd, self.Cd, self.Dd, self.dt)
        for z in self.z_points:
            assert_allclose(
                evaluate(Ac, Bc, Cc, Dc, self._s_of_z(z)),
                evaluate(self.Ad, self.Bd, self.Cd, self.Dd, z),
                rtol=1e-10,
            )

    def test_round_trip(self):
        continuous = bilinear_d2c(self.Ad, self.Bd, self.Cd, self.Dd, self.dt)
        Ad, Bd, Cd, Dd = bilinear_c2d(*continuous, self.dt)
        assert_allclose(Ad, self.Ad, atol=1e-12)
        for z in self.z_points:
            assert_allclose(
                evaluate(Ad, Bd, Cd, Dd, z),
                evaluate(self.Ad, self.Bd, self.Cd, self.Dd, z),
                rtol=1e-10,
            )

    def test_balanced(self):
        _, Bc, Cc, _ = bilinear_d2c(self.Ad, self.Bd, self.Cd, self.Dd, self.dt)
        assert_allclose(np.linalg.norm(Bc, 2), np.linalg.norm(Cc, 2))
        _, Bd, Cd, _ = bilinear_c2d(-np.eye(2), np.ones((2, 1)), np.ones((1, 2)), [[0.0]], 0.5)
        assert_allclose(np.linalg.norm(Bd, 2), np.linalg.norm(Cd, 2))

    def test_scalar_values(self):
        Ac, _, _, _ = bilinear_d2c([[0.5]], [[1.0]], [[1.0]], [[0.0]], dt=0.1)
        assert_allclose(Ac, [[(0.5 - 1.0) / (0.5 + 1.0) / 0.1]])

    def test_pole_at_minus_one(self):
        with self.assertRaises(NumericalConditioningError):
            bilinear_d2c([[-1.0]], [[1.0]], [[1.0]], [[0.0]], dt=0.1)

    def test_pole_at_inverse_dt(self):
        with self.assertRaises(NumericalConditioningError):
            bilinear_c2d([[10.0]], [[1.0]], [[1.0]], [[0.0]], dt=0.1)

    def test_vanishing_input(self):
        with self.assertRaises(NumericalConditioningError):
            bilinear_c2d([[-1.0]], [[0.0]], [[1.0]], [[0.0]], dt=0.1)

    def test_invalid_sampling_time(self):
        for dt in (0.0, -0.1, None):
            with self.assertRaises(ValueError):
                bilinear_c2d([[-1.0]], [[1.0]], [[1.0]], [[0.0]], dt=dt)


class TestPlantTransforms:
    @pytest.fixture
    def continuous_plant(self):
        return ExtendedStateSpace(
            A=[[-1.0, 1.0], [0.0, -2.0]],
            B1=[[1.0, 0.0], [0.0, 0.0]],
            B2=[[0.0], [1.0]],
            C1=[[1.0, 0.0], [0.0, 0.0]],
            C2=[[0.0, 1.0]],
            D11=np.zeros((2, 2)),
            D12=[[0.0], [1.0]],
            D21=[[0.0, 1.0]],
            D22=[[0.0]],
        )

    def test_c2d_keeps_partition(self, continuous_plant):
        Pd = bilinear_plant_c2d(continuous_plant, 0.05)
        assert Pd.dt == 0.05
        assert (Pd.nw, Pd.nu, Pd.nz, Pd.ny) == (2, 1, 2, 1)

    def test_round_trip(self, continuous_plant):
        Pd = bilinear_plant_c2d(continuous_plant, 0.05)
        Pc = bilinear_plant_d2c(Pd)
        assert not Pc.is_discrete
        assert_allclose(Pc.A, continuous_plant.A, atol=1e-10)
        s = 0.4j
        assert_allclose(
            evaluate(Pc.A, Pc.B, Pc.C, Pc.D, s),
            evaluate(continuous_plant.A, continuous_plant.B, continuous_plant.C, continuous_plant.D, s),
            rtol=1e-9,
            atol=1e-12,
        )

    def test_wrong_time_domain(self, continuous_plant):
        with pytest.raises(ValueError):
            bilinear_plant_d2c(continuous_plant)
        Pd = bilinear_plant_c2d(continuous_plant, 0.05)
        with pytest.raises(ValueError):
            bilinear_plant_c2d(Pd, 0.05)

    def test_controller_c2d(self):
        K = Controller(A=[[-2.0]], B=[[1.0]], C=[[3.0]], D=[[0.5]])
        Kd = bilinear_controller_c2d(K, 0.1)
        assert Kd.dt == 0.1
        z = np.exp(0.3j)
        s = (z - 1) / (0.1 * (z + 1))
        assert_allclose(evaluate(*Kd.ssdata(), z), evaluate(*K.ssdata(), s), rtol=1e-10)

        with pytest.raises(ValueError):
            bilinear_controller_c2d(Kd, 0.1)

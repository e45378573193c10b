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
Unit Tests for Canonical Coordinate Transforms

Tests cover:
- scale_matrix for square, tall and wide matrices (QR and SVD)
- Rank-deficient and empty inputs
- Plant transform to D12 = [0; I], D21 = [0 I]
"""

import unittest

import numpy as np
import pytest
from numpy.testing import assert_allclose

from hinfsyn.control.coordinate_transform import scale_matrix, transform_plant_to_canonical
from hinfsyn.control.exceptions import RankDeficiencyError
from hinfsyn.control.plant import ExtendedStateSpace
from hinfsyn.types.hinf import TransformMethod


def canonical(m, n):
    if m == n:
        return np.eye(m)
    if m > n:
        return np.vstack([np.zeros((m - n, n)), np.eye(n)])
    return np.hstack([np.zeros((m, n - m)), np.eye(m)])


class TestScaleMatrix(unittest.TestCase):
    def setUp(self):
        self.rng = np.random.default_rng(42)
        self.atol = 1e-10

    def _check(self, m, n, method):
        M = self.rng.standard_normal((m, n))
        left, right = scale_matrix(M, method=method)
        self.assertEqual(left.shape, (m, m))
        self.assertEqual(right.shape, (n, n))
        assert_allclose(left @ M @ right, canonical(m, n), atol=self.atol)

    def test_square_qr(self):
        for n in (1, 2, 4):
            self._check(n, n, TransformMethod.QR)

    def test_tall_qr(self):
        self._check(3, 1, TransformMethod.QR)
        self._check(5, 2, TransformMethod.QR)

    def test_wide_qr(self):
        self._check(1, 3, TransformMethod.QR)
        self._check(2, 5, TransformMethod.QR)

    def test_square_svd(self):
        for n in (1, 2, 4):
            self._check(n, n, TransformMethod.SVD)

    def test_tall_svd(self):
        self._check(3, 1, TransformMethod.SVD)
        self._check(5, 2, TransformMethod.SVD)

    def test_wide_svd(self):
        self._check(1, 3, TransformMethod.SVD)
        self._check(2, 5, TransformMethod.SVD)

    def test_default_is_qr(self):
        M = np.array([[1.0], [2.0]])
        left, right = scale_matrix(M)
        left_qr, right_qr = scale_matrix(M, method=TransformMethod.QR)
        assert_allclose(left, left_qr)
        assert_allclose(right, right_qr)

    def test_rank_deficient(self):
        M = np.array([[1.0, 2.0], [2.0, 4.0]])
        for method in TransformMethod:
            with self.assertRaises(RankDeficiencyError):
                scale_matrix(M, method=method)

    def test_empty_matrix(self):
        with self.assertRaises(RankDeficiencyError):
            scale_matrix(np.zeros((0, 2)))

    def test_unknown_method(self):
        with self.assertRaises(ValueError):
            scale_matrix(np.eye(2), method="qr")


class TestTransformPlant:
    @pytest.fixture
    def plant(self):
        return ExtendedStateSpace(
            A=[[-1.0, 1.0], [0.0, 2.0]],
            B1=[[1.0, 0.5], [0.0, 1.0]],
            B2=[[0.0], [1.0]],
            C1=[[1.0, 0.0], [0.0, 0.0]],
            C2=[[1.0, 1.0]],
            D11=[[0.1, 0.0], [0.0, 0.0]],
            D12=[[1.0], [2.0]],
            D21=[[3.0, 1.0]],
            D22=[[0.0]],
        )

    @pytest.mark.parametrize("method", list(TransformMethod))
    def test_canonical_feedthrough(self, plant, method):
        plant_bar, transform = transform_plant_to_canonical(plant, method=method)
        assert_allclose(plant_bar.D12, [[0.0], [1.0]], atol=1e-12)
        assert_allclose(plant_bar.D21, [[0.0, 1.0]], atol=1e-12)
        assert transform.left12.shape == (2, 2)
        assert transform.right12.shape == (1, 1)
        assert transform.left21.shape == (1, 1)
        assert transform.right21.shape == (2, 2)

    def test_state_matrix_unchanged(self, plant):
        plant_bar, _ = transform_plant_to_canonical(plant)
        assert_allclose(plant_bar.A, plant.A)
        assert plant_bar is not plant

    def test_blocks_consistent_with_transform(self, plant):
        plant_bar, T = transform_plant_to_canonical(plant)
        assert_allclose(plant_bar.B2, plant.B2 @ T.right12)
        assert_allclose(plant_bar.C1, T.left12 @ plant.C1)
        assert_allclose(plant_bar.D11, T.left12 @ plant.D11 @ T.right21)

    def test_rank_deficient_plant(self, plant):
        with pytest.raises(RankDeficiencyError):
            transform_plant_to_canonical(plant.with_blocks(D12=[[0.0], [0.0]]))

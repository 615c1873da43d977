"""
Tests for the statistics data model (StatsSampling, SlopeCoefficients).
"""

from dataclasses import FrozenInstanceError

import numpy as np
import pytest

from linereg.core.compute.matrix import SymmetricMatrix
from linereg.core.exceptions import DimensionMismatchError, ValidationError
from linereg.statistics import SlopeCoefficients, Statistics, StatsSampling


DENSE = [[4.0, 1.0], [1.0, 3.0]]


class TestStatsSampling:

    def test_from_dense(self):
        snapshot = StatsSampling.from_arrays(5, [1.0, 2.0], DENSE, 7.0)
        assert snapshot.features_count == 2
        assert snapshot.count == 5
        assert snapshot.covariance_matrix[0, 1] == 1.0
        assert snapshot.response_variance == 7.0

    def test_from_jagged(self):
        snapshot = StatsSampling.from_arrays(5, [1.0, 2.0], [[4.0], [1.0, 3.0]], 7.0)
        np.testing.assert_array_equal(snapshot.covariance_matrix.to_dense(), DENSE)

    def test_lower_triangular_rows(self):
        snapshot = StatsSampling.from_arrays(5, [1.0, 2.0], DENSE, 7.0)
        rows = snapshot.covariance_lower_triangular_matrix
        np.testing.assert_array_equal(rows[0], [4.0])
        np.testing.assert_array_equal(rows[1], [1.0, 3.0])

    def test_covariance_length_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            StatsSampling.from_arrays(5, [1.0, 2.0, 3.0], DENSE, 7.0)

    def test_matrix_size_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            StatsSampling(
                features_count=3,
                count=5,
                features_response_covariance=np.zeros(3),
                covariance_matrix=SymmetricMatrix.zeros(2),
                response_variance=1.0,
            )

    def test_matrix_type_checked(self):
        with pytest.raises(ValidationError, match="SymmetricMatrix"):
            StatsSampling(
                features_count=2,
                count=5,
                features_response_covariance=np.zeros(2),
                covariance_matrix=np.eye(2),
                response_variance=1.0,
            )

    def test_negative_count(self):
        with pytest.raises(ValidationError, match="non-negative"):
            StatsSampling.from_arrays(-1, [1.0, 2.0], DENSE, 7.0)

    def test_immutable(self):
        snapshot = StatsSampling.from_arrays(5, [1.0, 2.0], DENSE, 7.0)
        with pytest.raises(FrozenInstanceError):
            snapshot.count = 6
        with pytest.raises(ValueError):
            snapshot.features_response_covariance[0] = 9.0

    def test_matrix_copied(self):
        matrix = SymmetricMatrix.from_dense(DENSE)
        snapshot = StatsSampling.from_arrays(5, [1.0, 2.0], matrix, 7.0)
        matrix[0, 0] = 100.0
        assert snapshot.covariance_matrix[0, 0] == 4.0


class TestSlopeCoefficients:

    def test_features_count(self):
        assert SlopeCoefficients([1.0, 2.0, 3.0]).features_count == 3

    def test_read_only(self):
        coefficients = SlopeCoefficients(np.array([1.0, 2.0]))
        with pytest.raises(ValueError):
            coefficients.coefficients[0] = 5.0

    def test_source_copied(self):
        source = np.array([1.0, 2.0])
        coefficients = SlopeCoefficients(source)
        source[0] = 9.0
        assert coefficients.coefficients[0] == 1.0

    def test_rejects_2d(self):
        with pytest.raises(DimensionMismatchError):
            SlopeCoefficients(np.ones((2, 2)))


class TestStatistics:

    def test_value_equality(self):
        assert Statistics(rss=1.0, mse=0.5) == Statistics(rss=1.0, mse=0.5)

"""
Tests for ModelSampling (context plus four term samplers).

Validates:
    - Creation per strategy and the strategy registry
    - Routing of observations to context and samplers
    - Merge: associativity, commutativity, partition invariance
    - Snapshot extraction
"""

import numpy as np
import pytest

from linereg.core.compute.tolerances import select_tolerance
from linereg.core.exceptions import (
    DimensionMismatchError,
    EmptySamplingError,
    ValidationError,
)
from linereg.sampling import ModelSampling, available_strategies, get_factory
from linereg.sampling.exact import ExactModelSamplingFactory
from linereg.statistics.model import StatsSampling


def _sampling(X, y, strategy):
    sampling = ModelSampling.create(X.shape[1], strategy=strategy)
    sampling.sample_batch(X, y)
    return sampling


def _assert_snapshots_close(a, b, strategy):
    tol = select_tolerance(strategy)
    assert a.count == b.count
    np.testing.assert_allclose(
        a.features_response_covariance, b.features_response_covariance,
        rtol=tol.rtol, atol=tol.atol,
    )
    np.testing.assert_allclose(
        a.covariance_matrix.packed, b.covariance_matrix.packed,
        rtol=tol.rtol, atol=tol.atol,
    )
    assert a.response_variance == pytest.approx(b.response_variance, rel=tol.rtol)


# ═══════════════════════════════════════════════════════════════════════
# Creation
# ═══════════════════════════════════════════════════════════════════════


class TestCreation:

    def test_create(self, strategy):
        sampling = ModelSampling.create(3, strategy=strategy)
        assert sampling.strategy == strategy
        assert sampling.features_count == 3
        assert sampling.count == 0
        assert len(sampling.samplers) == 4
        assert all(s.context is sampling.context for s in sampling.samplers)

    def test_default_strategy_is_exact(self):
        assert ModelSampling.create(1).strategy == 'exact'

    def test_unknown_strategy(self):
        with pytest.raises(ValueError, match="Unknown strategy"):
            ModelSampling.create(2, strategy='qr')

    @pytest.mark.parametrize("bad", [0, -3])
    def test_bad_features_count(self, bad):
        with pytest.raises(ValidationError):
            ModelSampling.create(bad)

    def test_registry(self):
        assert available_strategies() == ('exact', 'stable')
        assert isinstance(get_factory('exact'), ExactModelSamplingFactory)

    def test_mismatched_contexts_rejected(self):
        factory = get_factory('exact')
        ctx = factory.create_context(2)
        other = factory.create_context(2)
        with pytest.raises(ValueError, match="bound to another context"):
            ModelSampling(
                factory,
                ctx,
                factory.create_response_variance_term_sampling(ctx),
                factory.create_coefficient_linear_term_sampling(other),
                factory.create_coefficient_square_term_sampling(ctx),
                factory.create_intercept_sampling(ctx),
            )

    def test_repr(self):
        assert repr(ModelSampling.create(2)) == (
            "ModelSampling(strategy='exact', features_count=2, count=0)"
        )


# ═══════════════════════════════════════════════════════════════════════
# Sampling
# ═══════════════════════════════════════════════════════════════════════


class TestSampling:

    def test_sample_counts(self, strategy):
        sampling = ModelSampling.create(2, strategy=strategy)
        sampling.sample([1.0, 2.0], 3.0)
        sampling.sample(np.array([0.5, -1.0]), 1.0)
        assert sampling.count == 2

    def test_dimension_mismatch_leaves_count(self, strategy):
        sampling = ModelSampling.create(2, strategy=strategy)
        sampling.sample([1.0, 2.0], 3.0)
        with pytest.raises(DimensionMismatchError):
            sampling.sample([1.0, 2.0, 3.0], 1.0)
        assert sampling.count == 1

    def test_batch_mismatch_leaves_count(self, strategy):
        sampling = ModelSampling.create(2, strategy=strategy)
        with pytest.raises(DimensionMismatchError):
            sampling.sample_batch(np.ones((3, 2)), np.ones(2))
        assert sampling.count == 0

    def test_single_and_batch_agree(self, simple_regression_data, strategy):
        X, y, _ = simple_regression_data
        single = ModelSampling.create(3, strategy=strategy)
        for row, value in zip(X, y):
            single.sample(row, value)
        _assert_snapshots_close(
            single.snapshot(), _sampling(X, y, strategy).snapshot(), strategy
        )

    def test_means(self, perfect_line, strategy):
        sampling = _sampling(*perfect_line, strategy)
        np.testing.assert_allclose(sampling.features_mean(), [2.0])
        assert sampling.response_mean() == pytest.approx(4.0)

    def test_empty_snapshot_raises(self, strategy):
        with pytest.raises(EmptySamplingError):
            ModelSampling.create(2, strategy=strategy).snapshot()

    def test_empty_mean_raises_arithmetic(self, strategy):
        with pytest.raises(ArithmeticError):
            ModelSampling.create(2, strategy=strategy).features_mean()


# ═══════════════════════════════════════════════════════════════════════
# Merge
# ═══════════════════════════════════════════════════════════════════════


class TestMerge:

    @pytest.fixture
    def partitions(self, simple_regression_data):
        X, y, _ = simple_regression_data
        return [(X[:30], y[:30]), (X[30:110], y[30:110]), (X[110:], y[110:])]

    def test_merged_equals_single_pass(self, simple_regression_data, partitions,
                                       strategy):
        X, y, _ = simple_regression_data
        merged = ModelSampling.create(3, strategy=strategy)
        for part in partitions:
            merged.merge(_sampling(*part, strategy))
        _assert_snapshots_close(
            merged.snapshot(), _sampling(X, y, strategy).snapshot(), strategy
        )

    def test_associative(self, partitions, strategy):
        a, b = ([_sampling(*p, strategy) for p in partitions] for _ in range(2))
        # (A + B) + C
        a[0].merge(a[1])
        a[0].merge(a[2])
        # A + (B + C)
        b[1].merge(b[2])
        b[0].merge(b[1])
        _assert_snapshots_close(a[0].snapshot(), b[0].snapshot(), strategy)

    def test_commutative(self, partitions, strategy):
        first, second = (_sampling(*partitions[0], strategy),
                         _sampling(*partitions[1], strategy))
        first_copy, second_copy = (_sampling(*partitions[0], strategy),
                                   _sampling(*partitions[1], strategy))
        first.merge(second)
        second_copy.merge(first_copy)
        _assert_snapshots_close(first.snapshot(), second_copy.snapshot(), strategy)

    def test_merge_leaves_peer(self, partitions, strategy):
        target = _sampling(*partitions[0], strategy)
        peer = _sampling(*partitions[1], strategy)
        before = peer.snapshot()
        target.merge(peer)
        assert peer.count == 80
        _assert_snapshots_close(peer.snapshot(), before, strategy)

    def test_merge_empty_is_identity(self, partitions, strategy):
        target = _sampling(*partitions[0], strategy)
        before = target.snapshot()
        target.merge(ModelSampling.create(3, strategy=strategy))
        _assert_snapshots_close(target.snapshot(), before, strategy)

    def test_merge_dimension_mismatch(self, strategy):
        target = ModelSampling.create(2, strategy=strategy)
        target.sample([1.0, 2.0], 1.0)
        with pytest.raises(DimensionMismatchError):
            target.merge(ModelSampling.create(3, strategy=strategy))
        assert target.count == 1

    def test_merge_other_strategy(self):
        with pytest.raises(ValueError, match="cannot merge strategy"):
            ModelSampling.create(2, strategy='exact').merge(
                ModelSampling.create(2, strategy='stable')
            )

    def test_merge_wrong_type(self):
        with pytest.raises(TypeError):
            ModelSampling.create(2).merge(object())


# ═══════════════════════════════════════════════════════════════════════
# Snapshot
# ═══════════════════════════════════════════════════════════════════════


class TestSnapshot:

    def test_perfect_line(self, perfect_line, strategy):
        snapshot = _sampling(*perfect_line, strategy).snapshot()
        assert isinstance(snapshot, StatsSampling)
        assert snapshot.count == 3
        assert snapshot.features_count == 1
        assert snapshot.covariance_matrix[0, 0] == pytest.approx(2.0)
        np.testing.assert_allclose(snapshot.features_response_covariance, [4.0])
        assert snapshot.response_variance == pytest.approx(8.0)

    def test_snapshot_detached(self, perfect_line, strategy):
        sampling = _sampling(*perfect_line, strategy)
        snapshot = sampling.snapshot()
        sampling.sample([10.0], 0.0)
        assert snapshot.count == 3
        assert snapshot.covariance_matrix[0, 0] == pytest.approx(2.0)

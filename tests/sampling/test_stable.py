"""
Tests for the Welford / Chan sampling strategy.

Validates:
    - Running means and co-moments against numpy and the exact strategy
    - Batch and pairwise merge agree with per-observation updates
    - The response variance sampler's private state
    - Behaviour with large offsets, where raw sums lose precision
"""

import numpy as np
import pytest

from linereg.core.exceptions import DimensionMismatchError, EmptySamplingError
from linereg.sampling.base import ResponseVarianceTermSampling, SamplingContext
from linereg.sampling.exact import ExactSamplingContext
from linereg.sampling.stable import (
    StableCoefficientLinearTermSampling,
    StableModelSamplingFactory,
    StableResponseVarianceTermSampling,
    StableSamplingContext,
)


def _sampled(X, y):
    ctx = StableSamplingContext(X.shape[1])
    rv = StableResponseVarianceTermSampling(ctx)
    for row, value in zip(X, y):
        ctx.sample(row, value)
        rv.sample(row, value)
    return ctx, rv


# ═══════════════════════════════════════════════════════════════════════
# Welford updates
# ═══════════════════════════════════════════════════════════════════════


class TestWelford:

    def test_perfect_line(self, perfect_line):
        ctx, rv = _sampled(*perfect_line)
        assert ctx.count == 3
        np.testing.assert_allclose(ctx.features_mean(), [2.0])
        assert ctx.response_mean() == pytest.approx(4.0)
        assert ctx.covariance_matrix()[0, 0] == pytest.approx(2.0)
        assert StableCoefficientLinearTermSampling(ctx).features_response_covariance()[0] \
            == pytest.approx(4.0)
        assert rv.response_variance() == pytest.approx(8.0)

    def test_against_numpy(self, simple_regression_data):
        X, y, _ = simple_regression_data
        ctx, rv = _sampled(X, y)

        Xc = X - X.mean(axis=0)
        yc = y - y.mean()
        np.testing.assert_allclose(ctx.features_mean(), X.mean(axis=0), rtol=1e-12)
        np.testing.assert_allclose(
            ctx.covariance_matrix().to_dense(), Xc.T @ Xc, rtol=1e-10, atol=1e-10
        )
        np.testing.assert_allclose(
            ctx.features_response_comoment, Xc.T @ yc, rtol=1e-10, atol=1e-10
        )
        assert rv.response_variance() == pytest.approx(yc @ yc, rel=1e-10)

    def test_single_observation_zero_comoment(self):
        ctx = StableSamplingContext(2)
        ctx.sample([3.0, 4.0], 5.0)
        np.testing.assert_array_equal(ctx.covariance_matrix().packed, np.zeros(3))
        np.testing.assert_array_equal(ctx.features_mean(), [3.0, 4.0])

    def test_agrees_with_exact(self, simple_regression_data):
        X, y, _ = simple_regression_data
        stable, _ = _sampled(X, y)
        exact = ExactSamplingContext(3)
        exact.sample_batch(X, y)
        np.testing.assert_allclose(
            stable.covariance_matrix().packed,
            exact.covariance_matrix().packed,
            rtol=1e-9, atol=1e-9,
        )

    def test_large_offset(self, rng):
        # Variance 1 around 1e9: Σx² - (Σx)²/n cancels almost every digit
        x = 1e9 + rng.standard_normal(1000)
        ctx, rv = _sampled(x.reshape(-1, 1), x)
        xc = x - x.mean()
        assert ctx.covariance_matrix()[0, 0] == pytest.approx(xc @ xc, rel=1e-5)
        assert rv.response_variance() == pytest.approx(xc @ xc, rel=1e-5)

    @pytest.mark.parametrize("accessor", ["features_mean", "response_mean",
                                          "covariance_matrix"])
    def test_empty_raises(self, accessor):
        with pytest.raises(EmptySamplingError):
            getattr(StableSamplingContext(1), accessor)()


# ═══════════════════════════════════════════════════════════════════════
# Batches and merge
# ═══════════════════════════════════════════════════════════════════════


class TestCombine:

    def test_batch_matches_single(self, simple_regression_data):
        X, y, _ = simple_regression_data
        single, _ = _sampled(X, y)
        batch = StableSamplingContext(3)
        batch.sample_batch(X[:50], y[:50])
        batch.sample_batch(X[50:], y[50:])

        assert batch.count == 200
        np.testing.assert_allclose(batch.mean_features, single.mean_features, rtol=1e-12)
        np.testing.assert_allclose(
            batch.features_comoment.packed, single.features_comoment.packed,
            rtol=1e-10, atol=1e-10,
        )
        np.testing.assert_allclose(
            batch.features_response_comoment,
            single.features_response_comoment,
            rtol=1e-10, atol=1e-10,
        )

    def test_empty_batch_is_noop(self):
        ctx = StableSamplingContext(2)
        ctx.sample_batch(np.zeros((0, 2)), np.zeros(0))
        assert ctx.count == 0

    def test_merge_matches_single(self, simple_regression_data):
        X, y, _ = simple_regression_data
        single, single_rv = _sampled(X, y)
        left, left_rv = _sampled(X[:120], y[:120])
        right, right_rv = _sampled(X[120:], y[120:])

        left.merge(right)
        left_rv.merge(right_rv)
        assert left.count == 200
        assert left_rv.count == 200
        np.testing.assert_allclose(left.mean_response, single.mean_response, rtol=1e-12)
        np.testing.assert_allclose(
            left.features_comoment.packed, single.features_comoment.packed,
            rtol=1e-10, atol=1e-10,
        )
        assert left_rv.response_variance() == pytest.approx(
            single_rv.response_variance(), rel=1e-10
        )

    def test_merge_into_empty_copies(self, perfect_line):
        full, _ = _sampled(*perfect_line)
        empty = StableSamplingContext(1)
        empty.merge(full)
        assert empty.count == 3
        assert empty.covariance_matrix()[0, 0] == pytest.approx(2.0)
        # The peer's matrix is not shared
        empty.features_comoment[0, 0] = 0.0
        assert full.features_comoment[0, 0] == pytest.approx(2.0)

    def test_self_merge_doubles(self, perfect_line):
        ctx, rv = _sampled(*perfect_line)
        ctx.merge(ctx)
        rv.merge(rv)
        assert ctx.count == 6
        assert ctx.covariance_matrix()[0, 0] == pytest.approx(4.0)
        assert rv.response_variance() == pytest.approx(16.0)

    def test_merge_dimension_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            StableSamplingContext(2).merge(StableSamplingContext(1))

    def test_merge_other_strategy(self):
        with pytest.raises(TypeError):
            StableSamplingContext(1).merge(ExactSamplingContext(1))


# ═══════════════════════════════════════════════════════════════════════
# Contracts
# ═══════════════════════════════════════════════════════════════════════


class TestContracts:

    def test_context_protocol(self):
        assert isinstance(StableSamplingContext(1), SamplingContext)

    def test_factory(self):
        factory = StableModelSamplingFactory()
        ctx = factory.create_context(2)
        rv = factory.create_response_variance_term_sampling(ctx)
        assert factory.name == 'stable'
        assert isinstance(rv, ResponseVarianceTermSampling)
        assert rv.context is ctx
        assert rv.count == 0

    def test_response_variance_empty_raises(self):
        rv = StableResponseVarianceTermSampling(StableSamplingContext(1))
        with pytest.raises(EmptySamplingError):
            rv.response_variance()

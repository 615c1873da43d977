"""
Exact-sum sampling strategy.

Accumulates raw sums (Σx, Σy, Σy², Σxy, Σxxᵗ) in a single pass and
derives centered quantities from them on demand:

    Cov(i, j)   = Σxᵢxⱼ - Σxᵢ·Σxⱼ / n
    Cov(i, y)   = Σxᵢy - x̄ᵢ·Σy - ȳ·Σxᵢ + n·x̄ᵢ·ȳ
    Var(y)      = Σy² - (Σy)² / n

All three are co-moments, i.e. not divided by n.

Merging is plain element-wise addition, so it is associative and
commutative up to rounding. Sums of raw products are prone to
cancellation and overflow for large magnitudes or counts; the 'stable'
strategy (linereg.sampling.stable) is the drop-in alternative.
"""

from __future__ import annotations

from typing import Any
import numpy as np
from numpy.typing import ArrayLike, NDArray

from linereg.core.compute.matrix import SymmetricMatrix, packed_length
from linereg.core.validation import (
    check_features_count,
    check_observation,
    check_batch,
    require_observations,
)
from linereg.sampling._common import (
    BoundTermSampling,
    check_same_kind,
    warn_if_negative,
)
from linereg.sampling.base import (
    ROLE_RESPONSE_VARIANCE,
    ROLE_COEFFICIENT_LINEAR,
    ROLE_COEFFICIENT_SQUARE,
    ROLE_INTERCEPT,
)
from linereg.sampling.state import StateWriter, StateReader

STRATEGY_NAME = 'exact'


class ExactSamplingContext:
    """Raw-sum accumulators for one regression problem."""

    def __init__(self, features_count: int):
        p = check_features_count(features_count)
        self._features_count = p
        self._count = 0
        self.feature_sums = np.zeros(p, dtype=np.float64)
        self.features_response_product_sum = np.zeros(p, dtype=np.float64)
        self.feature_product_sums = SymmetricMatrix.zeros(p)
        self.response_sum = 0.0
        self.response_square_sum = 0.0

    @property
    def features_count(self) -> int:
        return self._features_count

    @property
    def count(self) -> int:
        return self._count

    # === Accumulation ===

    def sample(self, feature_values: ArrayLike, response_value: float) -> None:
        x, y = check_observation(feature_values, response_value, self._features_count)

        self._count += 1
        self.response_sum += y
        self.response_square_sum += y * y
        self.feature_sums += x
        self.features_response_product_sum += x * y
        self.feature_product_sums.add_outer(x)

    def sample_batch(self, X: ArrayLike, y: ArrayLike) -> None:
        X_arr, y_arr = check_batch(X, y, self._features_count)

        self._count += X_arr.shape[0]
        self.response_sum += float(y_arr.sum())
        self.response_square_sum += float(y_arr @ y_arr)
        self.feature_sums += X_arr.sum(axis=0)
        self.features_response_product_sum += X_arr.T @ y_arr
        self.feature_product_sums.add_gram(X_arr)

    def merge(self, other: ExactSamplingContext) -> None:
        check_same_kind(self, other, 'other')

        self._count += other._count
        self.response_sum += other.response_sum
        self.response_square_sum += other.response_square_sum
        self.feature_sums += other.feature_sums
        self.features_response_product_sum += other.features_response_product_sum
        self.feature_product_sums.iadd(other.feature_product_sums)

    # === Derived values ===

    def features_mean(self) -> NDArray[np.floating[Any]]:
        require_observations(self._count, 'features_mean')
        return self.feature_sums / self._count

    def response_mean(self) -> float:
        require_observations(self._count, 'response_mean')
        return self.response_sum / self._count

    def covariance_matrix(self) -> SymmetricMatrix:
        mean = self.features_mean()
        # x̄ᵢ·Σxⱼ == Σxᵢ·Σxⱼ / n
        rows, cols = np.tril_indices(self._features_count)
        packed = (
            self.feature_product_sums.packed
            - mean[rows] * self.feature_sums[cols]
        )
        covariance = SymmetricMatrix(self._features_count, packed)
        for i, v in enumerate(covariance.diagonal()):
            warn_if_negative(v, f"feature variance [{i}]")
        return covariance

    # === State ===

    def save_state(self, destination: StateWriter) -> None:
        destination.put('context.count', self._count)
        destination.put('context.feature_sums', self.feature_sums)
        destination.put(
            'context.features_response_product_sum',
            self.features_response_product_sum,
        )
        destination.put('context.feature_product_sums', self.feature_product_sums.packed)
        destination.put('context.response_sum', self.response_sum)
        destination.put('context.response_square_sum', self.response_square_sum)

    def load_state(self, source: StateReader) -> None:
        p = self._features_count
        source.expect(STRATEGY_NAME, p)

        # Read everything before assigning anything
        count = source.read_count('context.count')
        feature_sums = source.read_array('context.feature_sums', (p,))
        frp_sum = source.read_array('context.features_response_product_sum', (p,))
        product_sums = source.read_array(
            'context.feature_product_sums', (packed_length(p),)
        )
        response_sum = float(source.read_scalar('context.response_sum'))
        response_square_sum = float(source.read_scalar('context.response_square_sum'))

        self._count = count
        self.feature_sums = feature_sums
        self.features_response_product_sum = frp_sum
        self.feature_product_sums = SymmetricMatrix(p, product_sums)
        self.response_sum = response_sum
        self.response_square_sum = response_square_sum

    def __repr__(self) -> str:
        return (
            f"ExactSamplingContext(features_count={self._features_count}, "
            f"count={self._count})"
        )


# === Term samplers ===
#
# All four read from the bound context and keep no private state.


class ExactResponseVarianceTermSampling(BoundTermSampling):
    role = ROLE_RESPONSE_VARIANCE
    context_type = ExactSamplingContext

    def response_variance(self) -> float:
        ctx = self._context
        require_observations(ctx.count, 'response_variance')
        variance = (
            ctx.response_square_sum
            - ctx.response_sum / ctx.count * ctx.response_sum
        )
        warn_if_negative(variance, 'response variance')
        return variance


class ExactCoefficientLinearTermSampling(BoundTermSampling):
    role = ROLE_COEFFICIENT_LINEAR
    context_type = ExactSamplingContext

    def features_response_covariance(self) -> NDArray[np.floating[Any]]:
        ctx = self._context
        features_mean = ctx.features_mean()
        response_mean = ctx.response_mean()
        return (
            ctx.features_response_product_sum
            - features_mean * ctx.response_sum
            - response_mean * ctx.feature_sums
            + ctx.count * features_mean * response_mean
        )


class ExactCoefficientSquareTermSampling(BoundTermSampling):
    role = ROLE_COEFFICIENT_SQUARE
    context_type = ExactSamplingContext

    def covariance_matrix(self) -> SymmetricMatrix:
        return self._context.covariance_matrix()


class ExactInterceptSampling(BoundTermSampling):
    role = ROLE_INTERCEPT
    context_type = ExactSamplingContext

    def features_mean(self) -> NDArray[np.floating[Any]]:
        return self._context.features_mean()

    def response_mean(self) -> float:
        return self._context.response_mean()


class ExactModelSamplingFactory:
    """Factory for the exact-sum strategy."""

    @property
    def name(self) -> str:
        return STRATEGY_NAME

    def create_context(self, features_count: int) -> ExactSamplingContext:
        return ExactSamplingContext(features_count)

    def create_response_variance_term_sampling(
        self, context: ExactSamplingContext
    ) -> ExactResponseVarianceTermSampling:
        return ExactResponseVarianceTermSampling(context)

    def create_coefficient_linear_term_sampling(
        self, context: ExactSamplingContext
    ) -> ExactCoefficientLinearTermSampling:
        return ExactCoefficientLinearTermSampling(context)

    def create_coefficient_square_term_sampling(
        self, context: ExactSamplingContext
    ) -> ExactCoefficientSquareTermSampling:
        return ExactCoefficientSquareTermSampling(context)

    def create_intercept_sampling(
        self, context: ExactSamplingContext
    ) -> ExactInterceptSampling:
        return ExactInterceptSampling(context)

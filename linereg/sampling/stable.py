"""
Numerically stable sampling strategy (Welford / Chan et al.).

Instead of raw sums of products, the context keeps running means and
centered co-moments, updated per observation with Welford's recurrence

    n' = n + 1
    d  = x - x̄
    x̄' = x̄ + d / n'
    C' = C + (n / n') · d dᵗ

and combined across partitions with the pairwise update of Chan, Golub
and LeVeque:

    n  = nₐ + n_b
    δ  = x̄_b - x̄ₐ
    C  = Cₐ + C_b + (nₐ·n_b / n) · δ δᵗ

The derived values are the same unnormalized co-moments the exact
strategy produces, without the cancellation of Σx² - (Σx)²/n.

The response variance sampler keeps its own Welford state for y, so it
is the one role in this package with genuine private state: it must see
every observation (ModelSampling routes them) and is checkpointed under
its own records.
"""

from __future__ import annotations

from typing import Any
import numpy as np
from numpy.typing import ArrayLike, NDArray

from linereg.core.compute.matrix import SymmetricMatrix, packed_length
from linereg.core.exceptions import SerializationError
from linereg.core.validation import (
    check_features_count,
    check_observation,
    check_batch,
    require_observations,
)
from linereg.sampling._common import (
    BoundTermSampling,
    check_same_kind,
)
from linereg.sampling.base import (
    ROLE_RESPONSE_VARIANCE,
    ROLE_COEFFICIENT_LINEAR,
    ROLE_COEFFICIENT_SQUARE,
    ROLE_INTERCEPT,
)
from linereg.sampling.state import StateWriter, StateReader

STRATEGY_NAME = 'stable'


class StableSamplingContext:
    """Running means and centered co-moments for one regression problem."""

    def __init__(self, features_count: int):
        p = check_features_count(features_count)
        self._features_count = p
        self._count = 0
        self.mean_features = np.zeros(p, dtype=np.float64)
        self.mean_response = 0.0
        self.features_comoment = SymmetricMatrix.zeros(p)
        self.features_response_comoment = np.zeros(p, dtype=np.float64)

    @property
    def features_count(self) -> int:
        return self._features_count

    @property
    def count(self) -> int:
        return self._count

    # === Accumulation ===

    def sample(self, feature_values: ArrayLike, response_value: float) -> None:
        x, y = check_observation(feature_values, response_value, self._features_count)

        n = self._count + 1
        dx = x - self.mean_features
        dy = y - self.mean_response
        weight = (n - 1) / n

        self.features_comoment.add_outer(dx, scale=weight)
        self.features_response_comoment += weight * dx * dy
        self.mean_features += dx / n
        self.mean_response += dy / n
        self._count = n

    def sample_batch(self, X: ArrayLike, y: ArrayLike) -> None:
        X_arr, y_arr = check_batch(X, y, self._features_count)
        n_b = X_arr.shape[0]
        if n_b == 0:
            return

        mean_x = X_arr.mean(axis=0)
        mean_y = float(y_arr.mean())
        Xc = X_arr - mean_x
        yc = y_arr - mean_y
        comoment = SymmetricMatrix.zeros(self._features_count)
        comoment.add_gram(Xc)
        self._combine(n_b, mean_x, mean_y, comoment, Xc.T @ yc)

    def merge(self, other: StableSamplingContext) -> None:
        check_same_kind(self, other, 'other')
        self._combine(
            other._count,
            other.mean_features.copy(),
            other.mean_response,
            other.features_comoment.copy(),
            other.features_response_comoment.copy(),
        )

    def _combine(
        self,
        n_b: int,
        mean_x_b: NDArray[np.floating[Any]],
        mean_y_b: float,
        comoment_b: SymmetricMatrix,
        cross_b: NDArray[np.floating[Any]],
    ) -> None:
        """Pairwise update with a partition summarized by its moments."""
        if n_b == 0:
            return
        n_a = self._count
        n = n_a + n_b
        dx = mean_x_b - self.mean_features
        dy = mean_y_b - self.mean_response
        weight = n_a * n_b / n

        comoment = self.features_comoment + comoment_b
        comoment.add_outer(dx, scale=weight)
        cross = self.features_response_comoment + cross_b + weight * dx * dy

        self.mean_features = self.mean_features + dx * (n_b / n)
        self.mean_response = self.mean_response + dy * (n_b / n)
        self.features_comoment = comoment
        self.features_response_comoment = cross
        self._count = n

    # === Derived values ===

    def features_mean(self) -> NDArray[np.floating[Any]]:
        require_observations(self._count, 'features_mean')
        return self.mean_features.copy()

    def response_mean(self) -> float:
        require_observations(self._count, 'response_mean')
        return self.mean_response

    def covariance_matrix(self) -> SymmetricMatrix:
        require_observations(self._count, 'covariance_matrix')
        return self.features_comoment.copy()

    # === State ===

    def save_state(self, destination: StateWriter) -> None:
        destination.put('context.count', self._count)
        destination.put('context.mean_features', self.mean_features)
        destination.put('context.mean_response', self.mean_response)
        destination.put('context.features_comoment', self.features_comoment.packed)
        destination.put(
            'context.features_response_comoment', self.features_response_comoment
        )

    def load_state(self, source: StateReader) -> None:
        p = self._features_count
        source.expect(STRATEGY_NAME, p)

        count = source.read_count('context.count')
        mean_features = source.read_array('context.mean_features', (p,))
        mean_response = float(source.read_scalar('context.mean_response'))
        comoment = source.read_array('context.features_comoment', (packed_length(p),))
        cross = source.read_array('context.features_response_comoment', (p,))

        self._count = count
        self.mean_features = mean_features
        self.mean_response = mean_response
        self.features_comoment = SymmetricMatrix(p, comoment)
        self.features_response_comoment = cross

    def __repr__(self) -> str:
        return (
            f"StableSamplingContext(features_count={self._features_count}, "
            f"count={self._count})"
        )


# === Term samplers ===


class StableResponseVarianceTermSampling(BoundTermSampling):
    """Keeps its own Welford state (count, mean, M2) for the response."""

    role = ROLE_RESPONSE_VARIANCE
    context_type = StableSamplingContext

    def __init__(self, context: StableSamplingContext):
        super().__init__(context)
        self._count = 0
        self._mean = 0.0
        self._m2 = 0.0

    def sample(self, feature_values: ArrayLike, response_value: float) -> None:
        _, y = check_observation(feature_values, response_value, self.features_count)
        self._count += 1
        delta = y - self._mean
        self._mean += delta / self._count
        self._m2 += delta * (y - self._mean)

    def sample_batch(self, X: ArrayLike, y: ArrayLike) -> None:
        _, y_arr = check_batch(X, y, self.features_count)
        if y_arr.shape[0] == 0:
            return
        mean_b = float(y_arr.mean())
        m2_b = float(((y_arr - mean_b) ** 2).sum())
        self._combine(y_arr.shape[0], mean_b, m2_b)

    def merge(self, from_sample: StableResponseVarianceTermSampling) -> None:
        check_same_kind(self, from_sample, 'from_sample')
        self._combine(from_sample._count, from_sample._mean, from_sample._m2)

    def _combine(self, n_b: int, mean_b: float, m2_b: float) -> None:
        if n_b == 0:
            return
        n_a = self._count
        n = n_a + n_b
        delta = mean_b - self._mean
        self._m2 = self._m2 + m2_b + delta * delta * n_a * n_b / n
        self._mean = self._mean + delta * n_b / n
        self._count = n

    @property
    def count(self) -> int:
        return self._count

    def response_variance(self) -> float:
        require_observations(self._count, 'response_variance')
        return self._m2

    def save_state(self, destination: StateWriter) -> None:
        prefix = f'sampler.{self.role}'
        destination.put(f'{prefix}.count', self._count)
        destination.put(f'{prefix}.mean', self._mean)
        destination.put(f'{prefix}.m2', self._m2)

    def load_state(self, source: StateReader) -> None:
        """
        Restore the Welford state. The context must already be restored.

        Raises:
            SerializationError: If the count disagrees with the context or
                M2 is negative
        """
        prefix = f'sampler.{self.role}'
        count = source.read_count(f'{prefix}.count')
        if count != self._context.count:
            raise SerializationError(
                f"record '{prefix}.count' is {count}, context count is "
                f"{self._context.count}",
                key=f'{prefix}.count',
            )
        mean = float(source.read_scalar(f'{prefix}.mean'))
        m2 = float(source.read_scalar(f'{prefix}.m2'))
        if m2 < 0:
            raise SerializationError(
                f"record '{prefix}.m2' must be non-negative, got {m2}",
                key=f'{prefix}.m2',
            )

        self._count = count
        self._mean = mean
        self._m2 = m2


class StableCoefficientLinearTermSampling(BoundTermSampling):
    role = ROLE_COEFFICIENT_LINEAR
    context_type = StableSamplingContext

    def features_response_covariance(self) -> NDArray[np.floating[Any]]:
        ctx = self._context
        require_observations(ctx.count, 'features_response_covariance')
        return ctx.features_response_comoment.copy()


class StableCoefficientSquareTermSampling(BoundTermSampling):
    role = ROLE_COEFFICIENT_SQUARE
    context_type = StableSamplingContext

    def covariance_matrix(self) -> SymmetricMatrix:
        return self._context.covariance_matrix()


class StableInterceptSampling(BoundTermSampling):
    role = ROLE_INTERCEPT
    context_type = StableSamplingContext

    def features_mean(self) -> NDArray[np.floating[Any]]:
        return self._context.features_mean()

    def response_mean(self) -> float:
        return self._context.response_mean()


class StableModelSamplingFactory:
    """Factory for the Welford strategy."""

    @property
    def name(self) -> str:
        return STRATEGY_NAME

    def create_context(self, features_count: int) -> StableSamplingContext:
        return StableSamplingContext(features_count)

    def create_response_variance_term_sampling(
        self, context: StableSamplingContext
    ) -> StableResponseVarianceTermSampling:
        return StableResponseVarianceTermSampling(context)

    def create_coefficient_linear_term_sampling(
        self, context: StableSamplingContext
    ) -> StableCoefficientLinearTermSampling:
        return StableCoefficientLinearTermSampling(context)

    def create_coefficient_square_term_sampling(
        self, context: StableSamplingContext
    ) -> StableCoefficientSquareTermSampling:
        return StableCoefficientSquareTermSampling(context)

    def create_intercept_sampling(
        self, context: StableSamplingContext
    ) -> StableInterceptSampling:
        return StableInterceptSampling(context)

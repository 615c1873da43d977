"""
Model sampling: one context and its four term samplers, owned together.

This module provides ModelSampling (the public accumulation API) and the
strategy registry.

    >>> from linereg.sampling import ModelSampling
    >>> sampling = ModelSampling.create(features_count=2)
    >>> sampling.sample([1.0, 2.0], 3.0)
    >>> sampling.sample_batch(X, y)
    >>> snapshot = sampling.snapshot()

Partial samplings over disjoint partitions combine with merge(), in any
order or reduction-tree shape. Results agree within floating-point
rounding; bit-exact reproducibility across different merge orders is not
guaranteed.

No ModelSampling is safe for concurrent mutation: give each thread or
partition its own instance and merge afterwards.
"""

from __future__ import annotations

from typing import Any, BinaryIO, Literal
import numpy as np
from numpy.typing import ArrayLike, NDArray

from linereg.core.exceptions import DimensionMismatchError, SerializationError
from linereg.core.validation import check_observation, check_batch
from linereg.sampling.base import (
    ModelSamplingFactory,
    SamplingContext,
    TermSampling,
    ResponseVarianceTermSampling,
    CoefficientLinearTermSampling,
    CoefficientSquareTermSampling,
    InterceptSampling,
)
from linereg.sampling.exact import ExactModelSamplingFactory
from linereg.sampling.stable import StableModelSamplingFactory
from linereg.sampling.state import StateWriter, StateReader
from linereg.statistics.model import StatsSampling


# Type alias for strategy selection
StrategyChoice = Literal['exact', 'stable']

_FACTORIES: dict[str, ModelSamplingFactory] = {
    'exact': ExactModelSamplingFactory(),
    'stable': StableModelSamplingFactory(),
}


def get_factory(strategy: StrategyChoice = 'exact') -> ModelSamplingFactory:
    """
    Look up the factory for a sampling strategy.

    Args:
        strategy: Numerical strategy to use:
            - 'exact': Raw sums of products (default)
            - 'stable': Welford running means and co-moments

    Raises:
        ValueError: If unknown strategy specified
    """
    try:
        return _FACTORIES[strategy]
    except (KeyError, TypeError):
        raise ValueError(
            f"Unknown strategy: {strategy!r}. "
            f"Expected one of {sorted(_FACTORIES)}"
        ) from None


def available_strategies() -> tuple[str, ...]:
    return tuple(sorted(_FACTORIES))


class ModelSampling:
    """
    Accumulator for the sufficient statistics of one regression problem.

    Owns a SamplingContext and the four term samplers bound to it. Every
    observation goes to the context first, then to each sampler, so
    samplers with private state (e.g. the stable response variance) see
    exactly what the context saw.
    """

    def __init__(
        self,
        factory: ModelSamplingFactory,
        context: SamplingContext,
        response_variance: ResponseVarianceTermSampling,
        coefficient_linear: CoefficientLinearTermSampling,
        coefficient_square: CoefficientSquareTermSampling,
        intercept: InterceptSampling,
    ):
        samplers = (response_variance, coefficient_linear, coefficient_square, intercept)
        for sampler in samplers:
            if sampler.context is not context:
                raise ValueError(
                    f"{type(sampler).__name__} is bound to another context"
                )
        self._factory = factory
        self._context = context
        self._response_variance = response_variance
        self._coefficient_linear = coefficient_linear
        self._coefficient_square = coefficient_square
        self._intercept = intercept

    @classmethod
    def create(
        cls,
        features_count: int,
        *,
        strategy: StrategyChoice = 'exact',
    ) -> ModelSampling:
        """Create an empty sampling with the given strategy."""
        return cls.from_factory(get_factory(strategy), features_count)

    @classmethod
    def from_factory(
        cls,
        factory: ModelSamplingFactory,
        features_count: int,
    ) -> ModelSampling:
        """Create an empty sampling from any factory honouring the contract."""
        context = factory.create_context(features_count)
        return cls(
            factory=factory,
            context=context,
            response_variance=factory.create_response_variance_term_sampling(context),
            coefficient_linear=factory.create_coefficient_linear_term_sampling(context),
            coefficient_square=factory.create_coefficient_square_term_sampling(context),
            intercept=factory.create_intercept_sampling(context),
        )

    # === Properties ===

    @property
    def strategy(self) -> str:
        return self._factory.name

    @property
    def features_count(self) -> int:
        return self._context.features_count

    @property
    def count(self) -> int:
        return self._context.count

    @property
    def context(self) -> SamplingContext:
        return self._context

    @property
    def samplers(self) -> tuple[TermSampling, ...]:
        return (
            self._response_variance,
            self._coefficient_linear,
            self._coefficient_square,
            self._intercept,
        )

    # === Accumulation ===

    def sample(self, feature_values: ArrayLike, response_value: float) -> None:
        """
        Accumulate one observation.

        Raises:
            DimensionMismatchError: If len(feature_values) != features_count;
                nothing is accumulated in that case
        """
        x, y = check_observation(feature_values, response_value, self.features_count)
        self._context.sample(x, y)
        for sampler in self.samplers:
            sampler.sample(x, y)

    def sample_batch(self, X: ArrayLike, y: ArrayLike) -> None:
        """Accumulate the rows of X (n x p) with responses y (n,)."""
        X_arr, y_arr = check_batch(X, y, self.features_count)
        self._context.sample_batch(X_arr, y_arr)
        for sampler in self.samplers:
            sampler.sample_batch(X_arr, y_arr)

    def merge(self, other: ModelSampling) -> None:
        """
        Add the observations of another sampling to this one.

        Merging is associative and commutative up to floating-point
        rounding; rounding differences grow with reduction-tree depth.

        Raises:
            TypeError: If other is not a ModelSampling
            ValueError: If other uses another strategy
            DimensionMismatchError: If features counts differ
        """
        if not isinstance(other, ModelSampling):
            raise TypeError(
                f"other: expected ModelSampling, got {type(other).__name__}"
            )
        if other.strategy != self.strategy:
            raise ValueError(
                f"cannot merge strategy {other.strategy!r} into {self.strategy!r}"
            )
        if other.features_count != self.features_count:
            raise DimensionMismatchError(
                f"other: features_count {other.features_count} does not match "
                f"{self.features_count}",
                expected=self.features_count,
                actual=other.features_count,
            )

        self._context.merge(other._context)
        for sampler, peer in zip(self.samplers, other.samplers):
            sampler.merge(peer)

    # === Derived values ===

    def features_mean(self) -> NDArray[np.floating[Any]]:
        return self._intercept.features_mean()

    def response_mean(self) -> float:
        return self._intercept.response_mean()

    def snapshot(self) -> StatsSampling:
        """
        Immutable statistics snapshot for the calculation phase.

        Raises:
            EmptySamplingError: If nothing has been sampled
        """
        return StatsSampling.from_samplers(
            self._context,
            self._response_variance,
            self._coefficient_linear,
            self._coefficient_square,
        )

    # === State ===

    def save(self, destination: BinaryIO) -> None:
        """
        Write a checkpoint: the shared context once, then each sampler's
        private state.
        """
        writer = StateWriter(self.strategy, self.features_count)
        self._context.save_state(writer)
        for sampler in self.samplers:
            sampler.save_state(writer)
        writer.write(destination)

    @classmethod
    def load(
        cls,
        source: BinaryIO,
        *,
        features_count: int | None = None,
    ) -> ModelSampling:
        """
        Restore a checkpoint into a new sampling.

        Args:
            source: Binary file object written by save()
            features_count: If given, the stream must match it

        Raises:
            SerializationError: If the stream is malformed or incompatible
        """
        reader = StateReader.read(source)
        factory = get_factory_for_stream(reader)
        expected = reader.features_count if features_count is None else features_count
        restored = cls.from_factory(factory, expected)
        restored._restore(reader)
        return restored

    def load_state(self, source: BinaryIO) -> None:
        """
        Replace this sampling's state with a checkpoint.

        All or nothing: the stream is restored into fresh objects first and
        swapped in only after every record validated.

        Raises:
            SerializationError: If the stream is malformed, written by another
                strategy or for another features count
        """
        reader = StateReader.read(source)
        fresh = type(self).from_factory(self._factory, self.features_count)
        fresh._restore(reader)

        self._context = fresh._context
        self._response_variance = fresh._response_variance
        self._coefficient_linear = fresh._coefficient_linear
        self._coefficient_square = fresh._coefficient_square
        self._intercept = fresh._intercept

    def _restore(self, reader: StateReader) -> None:
        self._context.load_state(reader)
        for sampler in self.samplers:
            sampler.load_state(reader)

    def __repr__(self) -> str:
        return (
            f"ModelSampling(strategy={self.strategy!r}, "
            f"features_count={self.features_count}, count={self.count})"
        )


def get_factory_for_stream(reader: StateReader) -> ModelSamplingFactory:
    """Factory for the strategy named in a stream header."""
    try:
        return get_factory(reader.strategy)
    except ValueError as e:
        raise SerializationError(str(e), key='header.strategy') from e


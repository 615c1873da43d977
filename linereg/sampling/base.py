"""
Sampling contracts.

These define structural interfaces that every sampling strategy must
satisfy. We use Protocol (structural typing) rather than ABC (nominal typing)
so that strategies share no implementation, only a contract.

Ownership model:
    One SamplingContext owns the accumulators of a regression problem.
    Term samplers are created bound to that context and expose it as
    `sampler.context`; they derive one category of statistic from it and
    hold private state only when their strategy needs it. A ModelSampling
    bundle (see linereg.sampling.model) owns the context and its four
    samplers together.

Contract shared by every term sampler:
    sample(x, y)       observe one observation (no-op when the context
                       already captured everything)
    merge(other)       combine peer state of the same concrete role type
    save_state(w)      write only the sampler's private state
    load_state(r)      restore only the sampler's private state
"""

from __future__ import annotations

from typing import Protocol, Any, runtime_checkable
import numpy as np
from numpy.typing import ArrayLike, NDArray

from linereg.core.compute.matrix import SymmetricMatrix
from linereg.sampling.state import StateWriter, StateReader


# Role identifiers, also used to namespace private state records.
ROLE_RESPONSE_VARIANCE = 'response_variance'
ROLE_COEFFICIENT_LINEAR = 'coefficient_linear'
ROLE_COEFFICIENT_SQUARE = 'coefficient_square'
ROLE_INTERCEPT = 'intercept'


@runtime_checkable
class SamplingContext(Protocol):
    """
    Shared accumulators for one regression problem instance.

    features_count is fixed at construction. Accumulators are mutated only
    by sample() and merge().
    """

    @property
    def features_count(self) -> int:
        ...

    @property
    def count(self) -> int:
        """Number of observations seen."""
        ...

    def sample(self, feature_values: ArrayLike, response_value: float) -> None:
        """
        Accumulate one observation.

        Raises:
            DimensionMismatchError: If len(feature_values) != features_count.
                Nothing is mutated in that case.
        """
        ...

    def sample_batch(self, X: ArrayLike, y: ArrayLike) -> None:
        """Accumulate n observations at once; same result as n sample() calls."""
        ...

    def merge(self, other: SamplingContext) -> None:
        """
        Add another context's observations to this one.

        Associative and commutative up to floating-point rounding.
        """
        ...

    def features_mean(self) -> NDArray[np.floating[Any]]:
        """Raises EmptySamplingError when count == 0."""
        ...

    def response_mean(self) -> float:
        """Raises EmptySamplingError when count == 0."""
        ...

    def covariance_matrix(self) -> SymmetricMatrix:
        """Unnormalized features covariance (co-moment) matrix."""
        ...

    def save_state(self, destination: StateWriter) -> None:
        ...

    def load_state(self, source: StateReader) -> None:
        """All-or-nothing: raises SerializationError without mutating."""
        ...


@runtime_checkable
class TermSampling(Protocol):
    """Capabilities shared by the four term sampler roles."""

    @property
    def role(self) -> str:
        ...

    @property
    def context(self) -> SamplingContext:
        """The context this sampler is bound to."""
        ...

    def sample(self, feature_values: ArrayLike, response_value: float) -> None:
        ...

    def sample_batch(self, X: ArrayLike, y: ArrayLike) -> None:
        ...

    def merge(self, from_sample: TermSampling) -> None:
        ...

    def save_state(self, destination: StateWriter) -> None:
        ...

    def load_state(self, source: StateReader) -> None:
        ...


@runtime_checkable
class ResponseVarianceTermSampling(TermSampling, Protocol):

    def response_variance(self) -> float:
        """
        Σ(y - ȳ)², bias corrected but not divided by count.

        StatsCalculator consumes this unnormalized value.
        """
        ...


@runtime_checkable
class CoefficientLinearTermSampling(TermSampling, Protocol):

    def features_response_covariance(self) -> NDArray[np.floating[Any]]:
        """Entry i: Σ(xᵢ - x̄ᵢ)(y - ȳ), unnormalized."""
        ...


@runtime_checkable
class CoefficientSquareTermSampling(TermSampling, Protocol):

    def covariance_matrix(self) -> SymmetricMatrix:
        """Features covariance matrix used as the normal-equations matrix."""
        ...


@runtime_checkable
class InterceptSampling(TermSampling, Protocol):

    def features_mean(self) -> NDArray[np.floating[Any]]:
        ...

    def response_mean(self) -> float:
        ...


@runtime_checkable
class ModelSamplingFactory(Protocol):
    """
    Creates a context and the four term samplers of one strategy.

    Every sampler returned is bound to the context passed in. Factories have
    no side effects beyond object construction, which makes them the single
    place where a numerical strategy is chosen.
    """

    @property
    def name(self) -> str:
        """Strategy identifier, e.g. 'exact' or 'stable'."""
        ...

    def create_context(self, features_count: int) -> SamplingContext:
        ...

    def create_response_variance_term_sampling(
        self, context: SamplingContext
    ) -> ResponseVarianceTermSampling:
        ...

    def create_coefficient_linear_term_sampling(
        self, context: SamplingContext
    ) -> CoefficientLinearTermSampling:
        ...

    def create_coefficient_square_term_sampling(
        self, context: SamplingContext
    ) -> CoefficientSquareTermSampling:
        ...

    def create_intercept_sampling(self, context: SamplingContext) -> InterceptSampling:
        ...

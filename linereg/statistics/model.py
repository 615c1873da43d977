"""
Statistics data model.

StatsSampling is the immutable snapshot extracted from a sampling once
accumulation is complete; it, not the accumulator, flows into the
calculation phase. SlopeCoefficients come from the coefficient solver.
StatsModel pairs the two, and Statistics is the calculator's output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING
import numpy as np
from numpy.typing import ArrayLike, NDArray

from linereg.core.exceptions import DimensionMismatchError, ValidationError
from linereg.core.validation import check_array, check_1d, check_length
from linereg.core.compute.matrix import SymmetricMatrix

if TYPE_CHECKING:
    from linereg.sampling.base import (
        SamplingContext,
        ResponseVarianceTermSampling,
        CoefficientLinearTermSampling,
        CoefficientSquareTermSampling,
    )


def _frozen(array: NDArray[Any]) -> NDArray[Any]:
    array = np.array(array, dtype=np.float64, copy=True)
    array.flags.writeable = False
    return array


@dataclass(frozen=True, eq=False)
class StatsSampling:
    """
    Immutable snapshot of aggregated regression statistics.

    Attributes:
        features_count: Number of features
        count: Number of observations aggregated
        features_response_covariance: Σ(xᵢ - x̄ᵢ)(y - ȳ) per feature
        covariance_matrix: Features co-moment matrix, symmetric
        response_variance: Σ(y - ȳ)², not divided by count
    """
    features_count: int
    count: int
    features_response_covariance: NDArray[np.floating[Any]]
    covariance_matrix: SymmetricMatrix
    response_variance: float

    def __post_init__(self):
        cov = check_array(self.features_response_covariance, 'features_response_covariance')
        check_1d(cov, 'features_response_covariance')
        check_length(cov, self.features_count, 'features_response_covariance')
        if not isinstance(self.covariance_matrix, SymmetricMatrix):
            raise ValidationError(
                f"covariance_matrix: expected SymmetricMatrix, got "
                f"{type(self.covariance_matrix).__name__}"
            )
        if self.covariance_matrix.size != self.features_count:
            raise DimensionMismatchError(
                f"covariance_matrix: expected size {self.features_count}, "
                f"got {self.covariance_matrix.size}",
                expected=self.features_count,
                actual=self.covariance_matrix.size,
            )
        if self.count < 0:
            raise ValidationError(f"count: must be non-negative, got {self.count}")
        object.__setattr__(self, 'features_response_covariance', _frozen(cov))
        object.__setattr__(self, 'covariance_matrix', self.covariance_matrix.copy())
        object.__setattr__(self, 'response_variance', float(self.response_variance))

    @classmethod
    def from_samplers(
        cls,
        context: SamplingContext,
        response_variance: ResponseVarianceTermSampling,
        coefficient_linear: CoefficientLinearTermSampling,
        coefficient_square: CoefficientSquareTermSampling,
    ) -> StatsSampling:
        """Derive a snapshot from a context and its term samplers."""
        return cls(
            features_count=context.features_count,
            count=context.count,
            features_response_covariance=coefficient_linear.features_response_covariance(),
            covariance_matrix=coefficient_square.covariance_matrix(),
            response_variance=response_variance.response_variance(),
        )

    @classmethod
    def from_arrays(
        cls,
        count: int,
        features_response_covariance: ArrayLike,
        covariance_matrix: ArrayLike,
        response_variance: float,
    ) -> StatsSampling:
        """Build from plain arrays; covariance_matrix is dense or jagged lower-triangular."""
        if isinstance(covariance_matrix, SymmetricMatrix):
            matrix = covariance_matrix
        elif isinstance(covariance_matrix, (list, tuple)) and any(
            np.ndim(row) == 1 and len(row) != len(covariance_matrix)
            for row in covariance_matrix
        ):
            matrix = SymmetricMatrix.from_lower_triangular(list(covariance_matrix))
        else:
            matrix = SymmetricMatrix.from_dense(covariance_matrix)
        cov = check_array(features_response_covariance, 'features_response_covariance')
        return cls(
            features_count=matrix.size,
            count=count,
            features_response_covariance=cov,
            covariance_matrix=matrix,
            response_variance=response_variance,
        )

    @property
    def covariance_lower_triangular_matrix(self) -> list[NDArray[np.floating[Any]]]:
        """Jagged rows of the covariance matrix, entry [i][j] for j <= i."""
        return self.covariance_matrix.lower_triangular()


@dataclass(frozen=True, eq=False)
class SlopeCoefficients:
    """Slope coefficients, one per feature."""
    coefficients: NDArray[np.floating[Any]]

    def __post_init__(self):
        c = check_array(self.coefficients, 'coefficients')
        check_1d(c, 'coefficients')
        object.__setattr__(self, 'coefficients', _frozen(c))

    @property
    def features_count(self) -> int:
        return self.coefficients.shape[0]


@dataclass(frozen=True, eq=False)
class StatsModel:
    """A statistics snapshot together with the coefficients fitted to it."""
    stats_sampling: StatsSampling
    slope_coefficients: SlopeCoefficients


@dataclass(frozen=True)
class Statistics:
    """
    Goodness of fit.

    Attributes:
        rss: Residual sum of squares
        mse: rss / count
    """
    rss: float
    mse: float

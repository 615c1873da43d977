"""
Residual statistics from aggregated sufficient statistics.

Given the co-moments of a sampling and fitted slope coefficients c, the
residual sum of squares of the centered model is

    RSS = Var(y) - 2·cᵗ·Cov(X, y) + cᵗ·Cov(X, X)·c

where all three terms are unnormalized co-moments. The quadratic form is
evaluated over the lower triangle only: each off-diagonal pair is visited
once and doubled.
"""

from linereg.core.exceptions import DimensionMismatchError
from linereg.core.validation import require_observations
from linereg.statistics.model import (
    StatsModel,
    StatsSampling,
    SlopeCoefficients,
    Statistics,
)


class StatsCalculator:
    """Stateless calculator of RSS and MSE."""

    def calculate(self, model: StatsModel) -> Statistics:
        """
        Compute residual sum of squares and mean squared error.

        Args:
            model: Snapshot plus coefficients; neither is modified

        Returns:
            Statistics with rss and mse = rss / count

        Raises:
            DimensionMismatchError: If coefficients and snapshot disagree
                on the features count
            EmptySamplingError: If the snapshot holds no observations
        """
        sampling = model.stats_sampling
        features_count = sampling.features_count
        coefficients = model.slope_coefficients.coefficients
        if coefficients.shape[0] != features_count:
            raise DimensionMismatchError(
                f"slope_coefficients: expected {features_count} coefficients, "
                f"got {coefficients.shape[0]}",
                expected=features_count,
                actual=coefficients.shape[0],
            )
        require_observations(sampling.count, 'mse')

        covariance = sampling.features_response_covariance
        matrix = sampling.covariance_matrix

        squared_error = sampling.response_variance
        for i in range(features_count):
            c = float(coefficients[i])
            squared_error -= 2 * float(covariance[i]) * c

            for j in range(i + 1):
                if i == j:
                    # Variance term
                    squared_error += c * c * matrix[i, i]
                else:
                    # Covariance term, mirrored entry counted here too
                    squared_error += 2 * c * float(coefficients[j]) * matrix[i, j]

        rss = squared_error
        return Statistics(rss=rss, mse=rss / sampling.count)


def calculate_statistics(
    sampling: StatsSampling,
    coefficients: SlopeCoefficients,
) -> Statistics:
    """Shorthand for StatsCalculator().calculate(StatsModel(...))."""
    return StatsCalculator().calculate(
        StatsModel(stats_sampling=sampling, slope_coefficients=coefficients)
    )

"""
Slope coefficients from aggregated statistics.

Solves the centered normal equations

    Cov(X, X) · c = Cov(X, y)

using the co-moments of a StatsSampling (the 1/n factors cancel), and
recovers the intercept from the means:

    b₀ = ȳ - Σ cᵢ·x̄ᵢ
"""

from typing import Any
import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import linalg

from linereg.core.compute.tolerances import CONDITION_THRESHOLD
from linereg.core.exceptions import SingularMatrixError
from linereg.core.validation import (
    check_array,
    check_1d,
    check_length,
    require_observations,
)
from linereg.statistics.model import StatsSampling, SlopeCoefficients


def solve_coefficients(sampling: StatsSampling) -> SlopeCoefficients:
    """
    Solve for the slope coefficients.

    Uses a Cholesky factorization of the (positive semi-definite)
    covariance matrix, falling back to a symmetric indefinite solve when
    rounding has left it marginally indefinite.

    Args:
        sampling: Statistics snapshot

    Returns:
        SlopeCoefficients of length features_count

    Raises:
        EmptySamplingError: If the snapshot holds no observations
        SingularMatrixError: If the covariance matrix is rank deficient
            (a constant feature, collinear features, or fewer observations
            than features + 1)
    """
    require_observations(sampling.count, 'coefficients')
    A = sampling.covariance_matrix.to_dense()
    b = np.asarray(sampling.features_response_covariance, dtype=np.float64)
    p = sampling.features_count

    # Rounding in the accumulated co-moments grows with the count
    eigenvalues = np.abs(np.linalg.eigvalsh(A))
    tol = max(sampling.count, p) * np.finfo(A.dtype).eps * eigenvalues.max()
    rank = int(np.sum(eigenvalues > tol))
    if rank < p:
        raise SingularMatrixError(
            f"features covariance matrix is rank deficient (rank={rank}, expected={p})",
            matrix_name='features covariance',
            rank=rank,
            expected_rank=p,
        )

    try:
        factor = linalg.cho_factor(A, lower=True, check_finite=True)
        coefficients = linalg.cho_solve(factor, b)
    except linalg.LinAlgError:
        try:
            coefficients = linalg.solve(A, b, assume_a='sym')
        except linalg.LinAlgError as e:
            raise SingularMatrixError(
                f"features covariance matrix is singular: {e}",
                matrix_name='features covariance',
                rank=rank,
                expected_rank=p,
            ) from e

    return SlopeCoefficients(coefficients)


def condition_number(sampling: StatsSampling) -> float:
    """2-norm condition number of the features covariance matrix."""
    return float(np.linalg.cond(sampling.covariance_matrix.to_dense()))


def is_ill_conditioned(sampling: StatsSampling) -> bool:
    return condition_number(sampling) > CONDITION_THRESHOLD


def intercept(
    features_mean: ArrayLike,
    response_mean: float,
    coefficients: SlopeCoefficients,
) -> float:
    """
    Intercept of the uncentered model.

    Raises:
        DimensionMismatchError: If means and coefficients differ in length
    """
    mean = check_array(features_mean, 'features_mean')
    check_1d(mean, 'features_mean')
    c: NDArray[np.floating[Any]] = coefficients.coefficients
    check_length(mean, c.shape[0], 'features_mean')
    return float(response_mean - mean @ c)

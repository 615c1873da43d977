"""
Input validation for observations, batches and accumulator state.

Every accumulator validates a whole observation (or batch) before it
touches any running sum, so a rejected input leaves the sampling exactly
as it was. Messages name the offending parameter and the actual value.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from linereg.core.exceptions import (
    ValidationError,
    DimensionMismatchError,
    EmptySamplingError,
)


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to a float64 numpy array.

    Accepts any array-like and converts to numpy array. Rejects inputs
    that result in object dtype (indicating mixed types or non-numeric data).

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        numpy.ndarray with float64 dtype

    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    if not np.issubdtype(result.dtype, np.number):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    return result.astype(np.float64, copy=False)


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_ndim(array: NDArray[np.floating[Any]], ndim: int, name: str) -> None:
    """
    Verify array has exactly the specified number of dimensions.

    Raises:
        DimensionMismatchError: If array has wrong number of dimensions
    """
    if array.ndim != ndim:
        raise DimensionMismatchError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}"
        )


def check_1d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 1-dimensional."""
    check_ndim(array, 1, name)


def check_2d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 2-dimensional."""
    check_ndim(array, 2, name)


def check_length(array: NDArray[np.floating[Any]], expected: int, name: str) -> None:
    """
    Verify a vector has exactly `expected` entries.

    Args:
        array: 1D array to check
        expected: Required length (usually the features count)
        name: Parameter name for error messages

    Raises:
        DimensionMismatchError: If the length differs
    """
    actual = array.shape[0]
    if actual != expected:
        raise DimensionMismatchError(
            f"{name}: expected length {expected}, got {actual}",
            expected=expected,
            actual=actual,
        )


def check_features_count(features_count: int) -> int:
    """
    Verify a features count is a positive integer.

    Returns:
        The features count as a plain int

    Raises:
        ValidationError: If not a positive integer
    """
    if isinstance(features_count, bool) or not isinstance(
        features_count, (int, np.integer)
    ):
        raise ValidationError(
            f"features_count: expected int, got {type(features_count).__name__}"
        )
    if features_count < 1:
        raise ValidationError(
            f"features_count: must be positive, got {features_count}"
        )
    return int(features_count)


def check_observation(
    feature_values: ArrayLike,
    response_value: float,
    features_count: int,
) -> tuple[NDArray[np.floating[Any]], float]:
    """
    Validate a single (features, response) observation.

    Everything is checked before the caller mutates any accumulator.

    Returns:
        Tuple of (1D float64 feature vector, response as float)

    Raises:
        ValidationError: If values are non-numeric or non-finite
        DimensionMismatchError: If the feature vector has the wrong shape
    """
    x = check_array(feature_values, 'feature_values')
    check_1d(x, 'feature_values')
    check_length(x, features_count, 'feature_values')
    check_finite(x, 'feature_values')

    y = check_array(response_value, 'response_value')
    if y.ndim != 0:
        raise DimensionMismatchError(
            f"response_value: expected scalar, got shape {y.shape}"
        )
    check_finite(y, 'response_value')
    return x, float(y)


def check_batch(
    X: ArrayLike,
    y: ArrayLike,
    features_count: int,
) -> tuple[NDArray[np.floating[Any]], NDArray[np.floating[Any]]]:
    """
    Validate a batch of observations (n x p features, n responses).

    A 1D X is treated as a single-feature column.

    Raises:
        ValidationError: If values are non-numeric or non-finite
        DimensionMismatchError: If shapes are inconsistent
    """
    X_arr = check_array(X, 'X')
    y_arr = check_array(y, 'y')
    if X_arr.ndim == 1 and features_count == 1:
        X_arr = X_arr.reshape(-1, 1)
    if y_arr.ndim == 2 and y_arr.shape[1] == 1:
        y_arr = y_arr.ravel()

    check_2d(X_arr, 'X')
    check_1d(y_arr, 'y')
    if X_arr.shape[1] != features_count:
        raise DimensionMismatchError(
            f"X: expected {features_count} columns, got {X_arr.shape[1]}",
            expected=features_count,
            actual=X_arr.shape[1],
        )
    if X_arr.shape[0] != y_arr.shape[0]:
        raise DimensionMismatchError(
            f"Inconsistent lengths: X={X_arr.shape[0]}, y={y_arr.shape[0]}"
        )
    check_finite(X_arr, 'X')
    check_finite(y_arr, 'y')
    return X_arr, y_arr


def require_observations(count: int, quantity: str) -> None:
    """
    Verify an accumulator has seen at least one observation.

    Every quantity that divides by the observation count calls this first,
    so an empty sampling fails consistently instead of returning NaN.

    Raises:
        EmptySamplingError: If count == 0
    """
    if count == 0:
        raise EmptySamplingError(
            f"{quantity}: undefined for an empty sampling (count == 0)"
        )

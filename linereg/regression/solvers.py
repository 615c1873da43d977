"""
Fit dispatch for streaming regression.

This module provides the fit functions (public API). Each builds or
accepts a ModelSampling, takes its snapshot, solves for coefficients and
scores the fit with the StatsCalculator.
"""

from typing import Any, Iterable
import warnings

from numpy.typing import ArrayLike

from linereg.core.compute.timing import Timer
from linereg.core.compute.tolerances import CONDITION_THRESHOLD
from linereg.core.exceptions import (
    DimensionMismatchError,
    NumericalWarning,
    ValidationError,
)
from linereg.core.result import Result
from linereg.core.validation import (
    check_array,
    check_batch,
    check_features_count,
)
from linereg.regression.coefficients import (
    solve_coefficients,
    intercept,
    condition_number,
)
from linereg.regression.solution import StreamingParams, StreamingSolution
from linereg.sampling.model import ModelSampling, StrategyChoice
from linereg.statistics.calculator import StatsCalculator
from linereg.statistics.model import StatsModel


def fit(
    X: ArrayLike,
    y: ArrayLike,
    *,
    strategy: StrategyChoice = 'exact',
    batch_size: int | None = None,
) -> StreamingSolution:
    """
    Fit a linear regression with intercept from in-memory arrays.

    The rows are fed through a ModelSampling (in batches of batch_size
    rows, or all at once), so the result is identical to streaming the
    same observations one by one.

    Args:
        X: Features (n x p). A 1D array is a single feature.
        y: Response vector (n,)
        strategy: Sampling strategy:
            - 'exact': Raw sums of products
            - 'stable': Welford running means and co-moments
        batch_size: Rows per sample_batch call; None for one call

    Returns:
        StreamingSolution with coefficients, intercept and statistics

    Raises:
        ValidationError: If inputs are invalid
        DimensionMismatchError: If X and y have inconsistent dimensions
        SingularMatrixError: If the features covariance matrix is singular
    """
    X_arr = check_array(X, 'X')
    if X_arr.ndim == 1:
        X_arr = X_arr.reshape(-1, 1)
    if X_arr.ndim != 2:
        raise DimensionMismatchError(f"X: expected 1D or 2D array, got {X_arr.ndim}D")
    if batch_size is not None and batch_size < 1:
        raise ValidationError(f"batch_size must be positive, got {batch_size}")

    timer = Timer()
    timer.start()

    sampling = ModelSampling.create(X_arr.shape[1], strategy=strategy)
    X_arr, y_arr = check_batch(X_arr, y, sampling.features_count)
    n = X_arr.shape[0]
    step = batch_size or max(n, 1)
    for start in range(0, n, step):
        with timer.section('sampling'):
            sampling.sample_batch(X_arr[start:start + step], y_arr[start:start + step])

    return _solve(sampling, timer)


def fit_stream(
    observations: Iterable[tuple[ArrayLike, float]],
    features_count: int,
    *,
    strategy: StrategyChoice = 'exact',
) -> StreamingSolution:
    """
    Fit from an iterable of (feature_values, response_value) pairs.

    The iterable is consumed once; nothing but the sufficient statistics
    is kept in memory.
    """
    check_features_count(features_count)
    timer = Timer()
    timer.start()

    sampling = ModelSampling.create(features_count, strategy=strategy)
    with timer.section('sampling'):
        for feature_values, response_value in observations:
            sampling.sample(feature_values, response_value)

    return _solve(sampling, timer)


def fit_sampling(sampling: ModelSampling) -> StreamingSolution:
    """
    Fit from an already aggregated sampling (e.g. after merging partitions
    or restoring a checkpoint). The sampling is not modified.
    """
    if not isinstance(sampling, ModelSampling):
        raise TypeError(
            f"sampling: expected ModelSampling, got {type(sampling).__name__}"
        )
    timer = Timer()
    timer.start()
    return _solve(sampling, timer)


def _solve(sampling: ModelSampling, timer: Timer) -> StreamingSolution:
    warnings_list: list[str] = []

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter('always', NumericalWarning)

        with timer.section('snapshot'):
            snapshot = sampling.snapshot()
            features_mean = sampling.features_mean()
            response_mean = sampling.response_mean()

        with timer.section('solve'):
            coefficients = solve_coefficients(snapshot)
            cond = condition_number(snapshot)
            b0 = intercept(features_mean, response_mean, coefficients)

        with timer.section('statistics'):
            statistics = StatsCalculator().calculate(
                StatsModel(stats_sampling=snapshot, slope_coefficients=coefficients)
            )

    for w in caught:
        if issubclass(w.category, NumericalWarning):
            warnings_list.append(str(w.message))
        else:
            warnings.warn_explicit(w.message, w.category, w.filename, w.lineno)

    if cond > CONDITION_THRESHOLD:
        warnings_list.append(
            f"features covariance matrix is ill-conditioned (cond={cond:.3g}); "
            f"coefficients may be inaccurate"
        )

    timer.stop()

    params = StreamingParams(
        coefficients=coefficients,
        intercept=b0,
        statistics=statistics,
        stats_sampling=snapshot,
        features_mean=features_mean,
        response_mean=response_mean,
    )
    info: dict[str, Any] = {
        'strategy': sampling.strategy,
        'count': sampling.count,
        'features_count': sampling.features_count,
        'condition_number': cond,
        # sample_batch calls made by fit(); 1 for fit_stream, 0 for fit_sampling
        'batches': timer.calls('sampling'),
    }

    return StreamingSolution(
        _result=Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=sampling.strategy,
            warnings=tuple(warnings_list),
        )
    )

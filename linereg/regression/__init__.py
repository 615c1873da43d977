"""
Linear regression from streamed sufficient statistics.

Public API:
    fit(X, y, ...) -> StreamingSolution
    fit_stream(observations, features_count, ...) -> StreamingSolution
    fit_sampling(sampling) -> StreamingSolution

Coefficients are solved from the centered normal equations of a
StatsSampling snapshot; RSS and MSE come from the StatsCalculator.

Example:
    >>> from linereg.regression import fit
    >>> result = fit(X, y, strategy='stable')
    >>> print(result.coefficients, result.intercept)
    >>> print(result.summary())
"""

from linereg.regression.coefficients import (
    solve_coefficients,
    intercept,
    condition_number,
    is_ill_conditioned,
)
from linereg.regression.solution import StreamingSolution, StreamingParams
from linereg.regression.solvers import fit, fit_stream, fit_sampling

__all__ = [
    "fit",
    "fit_stream",
    "fit_sampling",
    "solve_coefficients",
    "intercept",
    "condition_number",
    "is_ill_conditioned",
    "StreamingSolution",
    "StreamingParams",
]

"""
Residual statistics of a fitted model.

Public API:
    StatsCalculator().calculate(StatsModel(...)) -> Statistics
    calculate_statistics(sampling, coefficients) -> Statistics

Example:
    >>> from linereg.statistics import calculate_statistics, SlopeCoefficients
    >>> stats = calculate_statistics(sampling.snapshot(), SlopeCoefficients([2.0]))
    >>> stats.rss, stats.mse
"""

from linereg.statistics.model import (
    StatsSampling,
    SlopeCoefficients,
    StatsModel,
    Statistics,
)
from linereg.statistics.calculator import StatsCalculator, calculate_statistics

__all__ = [
    "StatsCalculator",
    "calculate_statistics",
    "StatsSampling",
    "SlopeCoefficients",
    "StatsModel",
    "Statistics",
]

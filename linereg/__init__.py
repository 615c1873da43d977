"""
linereg: single-pass sufficient statistics for linear regression.

Accumulates the statistics of an ordinary least-squares problem over
streamed or partitioned observations, without materializing the design
matrix. Partial accumulators merge in any order and checkpoint to a
binary stream.

Submodules:
    sampling: ModelSampling, strategies ('exact', 'stable'), state streams
    statistics: StatsSampling snapshot, StatsCalculator (RSS, MSE)
    regression: Coefficient solver and fit functions
    core: Exceptions, validation, result envelope, compute utilities
"""

__version__ = "0.1.0"

from linereg import sampling
from linereg import statistics
from linereg import regression
from linereg.sampling import ModelSampling
from linereg.statistics import StatsCalculator
from linereg.regression import fit, fit_stream, fit_sampling

__all__ = [
    "__version__",
    "sampling",
    "statistics",
    "regression",
    "ModelSampling",
    "StatsCalculator",
    "fit",
    "fit_stream",
    "fit_sampling",
]

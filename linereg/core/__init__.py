"""
Core infrastructure for linereg.

This module provides shared abstractions and utilities used by the
sampling, statistics and regression sub-packages.

Key components:
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing and tolerance tiers
"""

from linereg.core.result import Result
from linereg.core.exceptions import (
    LineregError,
    ValidationError,
    DimensionMismatchError,
    NumericalError,
    EmptySamplingError,
    SingularMatrixError,
    SerializationError,
    NumericalWarning,
)

__all__ = [
    # Result
    "Result",
    # Exceptions
    "LineregError",
    "ValidationError",
    "DimensionMismatchError",
    "NumericalError",
    "EmptySamplingError",
    "SingularMatrixError",
    "SerializationError",
    "NumericalWarning",
]

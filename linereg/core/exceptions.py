"""
Exception hierarchy for linereg.

Every error raised by the library derives from LineregError. Bad input
raises a ValidationError and failed arithmetic a NumericalError;
checkpoints that cannot be restored raise SerializationError.
Diagnostic values travel as attributes on the exception.
"""


class LineregError(Exception):
    """Base exception for all linereg errors."""
    pass


class ValidationError(LineregError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionMismatchError(ValidationError):
    """
    Dimensions of vectors or accumulators disagree.

    Raised when a feature vector, a coefficient vector, a merge peer or a
    restored state does not match the features count of its target.

    Attributes:
        expected: The features count the target was built for
        actual: The features count that was supplied
    """

    def __init__(
        self,
        message: str,
        expected: int | None = None,
        actual: int | None = None,
    ):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class NumericalError(LineregError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class EmptySamplingError(NumericalError, ZeroDivisionError):
    """
    A derived quantity was requested from an accumulator with no observations.

    Means, variances and the mean squared error all divide by the
    observation count. Rather than returning NaN, every such accessor raises
    this error, which is also an ArithmeticError (via ZeroDivisionError).
    """
    pass


class SingularMatrixError(NumericalError):
    """
    Matrix is singular or nearly singular.

    Raised when the features covariance matrix cannot be solved for slope
    coefficients.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        rank: Numerical rank, if computed
        expected_rank: Expected rank (the features count)
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        rank: int | None = None,
        expected_rank: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.rank = rank
        self.expected_rank = expected_rank


class SerializationError(LineregError):
    """
    A state stream could not be restored.

    Raised for malformed, truncated or incompatible streams, including a
    stream written for a different strategy or features count. A failed
    load never leaves the target partially restored.

    Attributes:
        key: Name of the offending record, if the failure is record-specific
    """

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class NumericalWarning(UserWarning):
    """Non-fatal numerical issue, e.g. cancellation in raw-sum accumulators."""
    pass

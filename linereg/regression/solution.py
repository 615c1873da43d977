"""
Regression solution types.

Contains the parameter payload and user-facing solution wrapper.
"""

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray

from linereg.core.result import Result
from linereg.statistics.model import StatsSampling, SlopeCoefficients, Statistics


@dataclass(frozen=True, eq=False)
class StreamingParams:
    """
    Parameter payload for a regression fitted from sufficient statistics.

    This is the immutable data computed by the fit pipeline.
    """
    coefficients: SlopeCoefficients
    intercept: float
    statistics: Statistics
    stats_sampling: StatsSampling
    features_mean: NDArray[np.floating[Any]]
    response_mean: float


@dataclass
class StreamingSolution:
    """
    User-facing regression results.

    Wraps the Result and provides convenient accessors for coefficients,
    intercept and goodness-of-fit statistics.
    """
    _result: Result[StreamingParams]

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        return self._result.params.coefficients.coefficients

    @property
    def slope_coefficients(self) -> SlopeCoefficients:
        return self._result.params.coefficients

    @property
    def intercept(self) -> float:
        return self._result.params.intercept

    @property
    def stats_sampling(self) -> StatsSampling:
        return self._result.params.stats_sampling

    @property
    def statistics(self) -> Statistics:
        return self._result.params.statistics

    @property
    def rss(self) -> float:
        return self._result.params.statistics.rss

    @property
    def mse(self) -> float:
        return self._result.params.statistics.mse

    @property
    def tss(self) -> float:
        """Total sum of squares (the unnormalized response variance)."""
        return self._result.params.stats_sampling.response_variance

    @property
    def r_squared(self) -> float:
        if self.tss == 0:
            return 1.0 if self.rss == 0 else 0.0
        return 1.0 - (self.rss / self.tss)

    @property
    def count(self) -> int:
        return self._result.params.stats_sampling.count

    @property
    def features_count(self) -> int:
        return self._result.params.stats_sampling.features_count

    def predict(self, X: Any) -> NDArray[np.floating[Any]]:
        """Fitted values intercept + X c for rows of X (n x p) or one row (p,)."""
        X_arr = np.asarray(X, dtype=np.float64)
        return self.intercept + X_arr @ self.coefficients

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def has_warning(self, substring: str) -> bool:
        return self._result.has_warning(substring)

    def summary(self) -> str:
        """Generate a plain-text summary."""
        lines = [
            "Streaming Linear Regression Results",
            "=" * 60,
            f"Observations: {self.count}",
            f"Features: {self.features_count}",
            f"Strategy: {self.backend_name}",
            f"RSS: {self.rss:.6f}",
            f"MSE: {self.mse:.6f}",
            f"R-squared: {self.r_squared:.6f}",
            "",
            "Coefficients:",
            "-" * 60,
            f"  (Intercept): {self.intercept:14.6f}",
        ]
        for i, coef in enumerate(self.coefficients):
            lines.append(f"  β[{i}]:       {coef:14.6f}")
        lines.append("-" * 60)
        if self.warnings:
            lines.append("Warnings:")
            lines.extend(f"  {w}" for w in self.warnings)
        if self.timing:
            lines.append(f"Time: {self.timing.get('total_seconds', 0):.4f}s")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"StreamingSolution(n={self.count}, p={self.features_count}, "
            f"strategy={self.backend_name!r}, r_squared={self.r_squared:.4f})"
        )

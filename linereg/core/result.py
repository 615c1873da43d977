"""
Result envelope shared by the fit functions.

A fit returns its payload (coefficients, intercept, statistics) wrapped in
a Result that also carries the strategy that produced it, metadata such as
the observation count and condition number, per-phase timings, and any
numerical warnings collected on the way. Results never change after
construction.
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable fit result.

    Attributes:
        params: Payload of type P
        info: Metadata, e.g. {'strategy': 'exact', 'count': 1000}
        timing: Seconds per fit phase plus 'total_seconds'; None when the
            result was built without a timer
        backend_name: Name of the sampling strategy
        warnings: Messages of the NumericalWarnings raised during the fit
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Any iterable of messages is accepted
        object.__setattr__(self, 'warnings', tuple(str(w) for w in self.warnings))

    def has_warning(self, substring: str) -> bool:
        return any(substring in w for w in self.warnings)

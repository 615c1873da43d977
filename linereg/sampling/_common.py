"""
Shared utilities for sampling strategies.
"""

from __future__ import annotations

import warnings
from typing import Any, ClassVar

from numpy.typing import ArrayLike

from linereg.core.exceptions import (
    DimensionMismatchError,
    NumericalWarning,
)
from linereg.sampling.state import StateWriter, StateReader


def check_same_kind(target: Any, other: Any, name: str) -> None:
    """
    Verify a merge peer has the same concrete type and features count.

    Raises:
        TypeError: If the peer is of another type (role or strategy)
        DimensionMismatchError: If features counts differ
    """
    if type(other) is not type(target):
        raise TypeError(
            f"{name}: cannot merge {type(other).__name__} into "
            f"{type(target).__name__}"
        )
    if other.features_count != target.features_count:
        raise DimensionMismatchError(
            f"{name}: features_count {other.features_count} does not match "
            f"{target.features_count}",
            expected=target.features_count,
            actual=other.features_count,
        )


def warn_if_negative(value: float, quantity: str) -> None:
    """Warn when cancellation drove a sum of squares below zero."""
    if value < 0:
        warnings.warn(
            f"{quantity} is negative ({value:.6g}); sums of raw products lost "
            f"precision through cancellation. Consider strategy='stable'.",
            NumericalWarning,
            stacklevel=3,
        )


class BoundTermSampling:
    """
    Term sampler bound to one context, with no private state.

    Subclasses set `role` and `context_type` and add their derived
    accessor. sample/save_state/load_state are no-ops because the bound
    context already captures everything; merge only validates the peer.
    A strategy whose role needs private state overrides these four.
    """

    role: ClassVar[str]
    context_type: ClassVar[type]

    def __init__(self, context: Any):
        if not isinstance(context, self.context_type):
            raise TypeError(
                f"{type(self).__name__} requires a {self.context_type.__name__}, "
                f"got {type(context).__name__}"
            )
        self._context = context

    @property
    def context(self) -> Any:
        return self._context

    @property
    def features_count(self) -> int:
        return self._context.features_count

    def sample(self, feature_values: ArrayLike, response_value: float) -> None:
        pass

    def sample_batch(self, X: ArrayLike, y: ArrayLike) -> None:
        pass

    def merge(self, from_sample: BoundTermSampling) -> None:
        check_same_kind(self, from_sample, 'from_sample')

    def save_state(self, destination: StateWriter) -> None:
        pass

    def load_state(self, source: StateReader) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(features_count={self.features_count})"

"""
Wall-clock timing of fit phases.

A fit runs through named phases (sampling, snapshot, solve, statistics).
The timer records the elapsed time of the whole fit, the accumulated time
of each phase, and how often each phase was entered; a fit that samples
in batches enters 'sampling' once per batch.
"""

import time
from contextlib import contextmanager
from typing import Iterator


class Timer:
    """
    Phase timer for one fit.

    Usage:
        timer = Timer()
        timer.start()
        for X_part, y_part in batches:
            with timer.section('sampling'):
                sampling.sample_batch(X_part, y_part)
        with timer.section('solve'):
            coefficients = solve_coefficients(snapshot)
        timer.stop()

        timer.result()          # {'total_seconds': ..., 'sampling': ..., 'solve': ...}
        timer.calls('sampling') # number of batches
    """

    def __init__(self):
        self._elapsed: dict[str, float] = {}
        self._calls: dict[str, int] = {}
        self._started_at: float | None = None
        self._total: float | None = None

    def start(self) -> None:
        self._started_at = time.perf_counter()
        self._total = None

    def stop(self) -> None:
        if self._started_at is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._total = time.perf_counter() - self._started_at

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """Time one entry into phase `name`; entries accumulate."""
        entered_at = time.perf_counter()
        try:
            yield
        finally:
            self._elapsed[name] = (
                self._elapsed.get(name, 0.0) + time.perf_counter() - entered_at
            )
            self._calls[name] = self._calls.get(name, 0) + 1

    def calls(self, name: str) -> int:
        """Number of times phase `name` was entered (0 if never)."""
        return self._calls.get(name, 0)

    def result(self) -> dict[str, float]:
        """
        Elapsed seconds: 'total_seconds' first, then each phase in the
        order it was first entered.

        Raises:
            RuntimeError: If the timer has not been stopped
        """
        if self._total is None:
            raise RuntimeError("Timer.result() called before stop()")
        return {'total_seconds': self._total, **self._elapsed}


@contextmanager
def timed() -> Iterator[Timer]:
    """
    Time a block as a whole:

        with timed() as timer:
            sampling.sample_batch(X, y)
        timer.result()['total_seconds']
    """
    timer = Timer()
    timer.start()
    try:
        yield timer
    finally:
        timer.stop()

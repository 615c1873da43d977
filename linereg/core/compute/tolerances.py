"""
Tolerance tiers for numerical comparison.

Merging partial accumulators in a different order, or sampling the same
observations in a different partitioning, is only equivalent up to
floating-point rounding. These tiers define how close is close enough:
- Exact sums: raw sums of products, rounding grows with magnitude and count
- Stable updates: Welford co-moments, tighter agreement
- Ill-conditioned: nearly collinear features, relaxed

Used by the test suite and by the coefficient solver's condition check.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """rtol/atol pair for comparing accumulated statistics."""
    rtol: float
    atol: float
    name: str
    description: str


EXACT_SUMS = ToleranceTier(
    rtol=1e-9,
    atol=1e-9,
    name='exact_sums',
    description='Raw sum accumulators, equivalent across merge orders',
)

STABLE_UPDATES = ToleranceTier(
    rtol=1e-10,
    atol=1e-10,
    name='stable_updates',
    description='Welford co-moments, equivalent across merge orders',
)

ILL_CONDITIONED = ToleranceTier(
    rtol=1e-4,
    atol=1e-6,
    name='ill_conditioned',
    description='Nearly collinear features (cond > 1e8)',
)

# Above this condition number of the features covariance matrix the solver
# reports a warning; the coefficients lose roughly log10(cond) digits.
CONDITION_THRESHOLD = 1e8


def select_tolerance(
    strategy: str,
    is_ill_conditioned: bool = False,
) -> ToleranceTier:
    """Select appropriate tolerance tier for a sampling strategy."""
    if is_ill_conditioned:
        return ILL_CONDITIONED
    if strategy == 'stable':
        return STABLE_UPDATES
    return EXACT_SUMS

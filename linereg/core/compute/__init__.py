"""
Shared compute infrastructure for linereg.

Submodules:
    timing: Execution timing utilities
    tolerances: Tolerance tiers for numerical comparison
    matrix: Symmetric matrix stored as a packed lower triangle
"""

from linereg.core.compute.timing import Timer, timed
from linereg.core.compute.matrix import SymmetricMatrix, packed_length
from linereg.core.compute.tolerances import (
    ToleranceTier,
    EXACT_SUMS,
    STABLE_UPDATES,
    ILL_CONDITIONED,
    CONDITION_THRESHOLD,
    select_tolerance,
)

__all__ = [
    # Timing
    "Timer",
    "timed",
    # Matrices
    "SymmetricMatrix",
    "packed_length",
    # Tolerances
    "ToleranceTier",
    "EXACT_SUMS",
    "STABLE_UPDATES",
    "ILL_CONDITIONED",
    "CONDITION_THRESHOLD",
    "select_tolerance",
]

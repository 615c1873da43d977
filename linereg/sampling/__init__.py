"""
Incremental sampling of regression sufficient statistics.

Public API:
    ModelSampling.create(features_count, strategy='exact') -> ModelSampling

A ModelSampling consumes observations one at a time (sample) or in
batches (sample_batch), merges with samplings over other partitions
(merge), checkpoints to a binary stream (save / load) and produces an
immutable StatsSampling snapshot (snapshot).

Strategies:
    'exact': raw sums of products, derived quantities computed on demand
    'stable': Welford running means and co-moments

Example:
    >>> from linereg.sampling import ModelSampling
    >>> sampling = ModelSampling.create(features_count=3)
    >>> for x, y in observations:
    ...     sampling.sample(x, y)
    >>> snapshot = sampling.snapshot()
"""

from linereg.sampling.base import (
    SamplingContext,
    TermSampling,
    ResponseVarianceTermSampling,
    CoefficientLinearTermSampling,
    CoefficientSquareTermSampling,
    InterceptSampling,
    ModelSamplingFactory,
)
from linereg.sampling.exact import ExactSamplingContext, ExactModelSamplingFactory
from linereg.sampling.stable import StableSamplingContext, StableModelSamplingFactory
from linereg.sampling.state import StateWriter, StateReader
from linereg.sampling.model import (
    ModelSampling,
    StrategyChoice,
    get_factory,
    available_strategies,
)

__all__ = [
    # Public API
    "ModelSampling",
    "StrategyChoice",
    "get_factory",
    "available_strategies",
    # Contracts
    "SamplingContext",
    "TermSampling",
    "ResponseVarianceTermSampling",
    "CoefficientLinearTermSampling",
    "CoefficientSquareTermSampling",
    "InterceptSampling",
    "ModelSamplingFactory",
    # Strategies
    "ExactSamplingContext",
    "ExactModelSamplingFactory",
    "StableSamplingContext",
    "StableModelSamplingFactory",
    # State streams
    "StateWriter",
    "StateReader",
]

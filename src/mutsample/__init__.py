"""MutSample: down-sample mutations for subclonal clustering and expand the results.

Public API is intentionally small:

    sampled = sample_mutations(dataset, 500, seed=1)
    ... cluster sampled.data ...
    dataset, clustering = unsample_mutations(sampled, clustering)

"""

from __future__ import annotations

__all__ = [
    "__version__",
    "ClusteringResult",
    "NotSampledError",
    "RawDataset",
    "SampledDataset",
    "SamplingConfig",
    "SamplingError",
    "sample_mutations",
    "sample_with_config",
    "sampling_summary",
    "unsample_mutations",
]

__version__ = "0.1.0"

from .models import ClusteringResult, RawDataset, SampledDataset
from .sampler import SamplingConfig, sample_mutations, sample_with_config, sampling_summary
from .strategies import SamplingError
from .unsampler import NotSampledError, unsample_mutations

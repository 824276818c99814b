"""Sampling methods that choose which eligible mutations go into clustering.

A sampling method is any callable

    method(dataset, eligible, num_muts_sample, rng) -> SelectionResult

where ``eligible`` is the sorted index array from
:func:`mutsample.eligibility.eligible_indices`. Built-in methods are registered in
``SAMPLING_METHODS`` under a name; the integer ids used by older pipelines
(1 = uniform, 2 = subclonal) are accepted as aliases.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, Optional, Union

import numpy as np

from .models import RawDataset
from .utils import as_index_array

logger = logging.getLogger(__name__)

# Mutations below this cellular fraction are clearly subclonal. This is a
# modelling assumption; callers may pass their own threshold.
SUBCLONAL_CCF_THRESHOLD = 0.9


class SamplingError(ValueError):
    """Raised when a sampling method cannot produce the requested selection."""


@dataclass(frozen=True)
class SelectionResult:
    """Indices chosen by a sampling method.

    ``applied`` is False when the method could not be applied as requested and
    fell back to another behaviour; ``message`` then says why.
    """

    indices: np.ndarray
    applied: bool = True
    message: Optional[str] = None


SamplingMethod = Callable[[RawDataset, np.ndarray, int, np.random.Generator], SelectionResult]


def uniform_sampling(
    dataset: RawDataset,
    eligible: np.ndarray,
    num_muts_sample: int,
    rng: np.random.Generator,
) -> SelectionResult:
    """Draw ``num_muts_sample`` eligible mutations uniformly without replacement."""
    eligible = as_index_array(eligible)
    if num_muts_sample < 0:
        raise SamplingError(f"Number of mutations to sample must be >= 0, got {num_muts_sample}")
    if num_muts_sample > 0 and eligible.size == 0:
        raise SamplingError("No mutations are available for sampling")
    if num_muts_sample > eligible.size:
        raise SamplingError(
            f"Cannot sample {num_muts_sample} mutations from {eligible.size} available; "
            "raise min_sampling_factor or lower the sample size"
        )
    chosen = rng.choice(eligible, size=num_muts_sample, replace=False)
    return SelectionResult(indices=np.sort(chosen))


def subclonal_sampling(
    dataset: RawDataset,
    eligible: np.ndarray,
    num_muts_sample: int,
    rng: np.random.Generator,
    *,
    threshold: float = SUBCLONAL_CCF_THRESHOLD,
) -> SelectionResult:
    """Keep only eligible mutations with cellular fraction below ``threshold``.

    Only defined for single-sample datasets. With several samples every eligible
    mutation is returned and the result is flagged as not applied. The target count
    and ``rng`` are not used.
    """
    eligible = as_index_array(eligible)
    if dataset.n_samples != 1:
        msg = (
            "Taking only subclonal data does not work for multi-sample cases, "
            "returning all data available for sampling"
        )
        logger.warning(msg)
        return SelectionResult(indices=eligible, applied=False, message=msg)

    logger.info("Taking only subclonal data (cellular fraction < %.2f)", threshold)
    ccf = np.asarray(dataset.subclonal_fraction, dtype=float)[eligible, 0]
    return SelectionResult(indices=eligible[ccf < threshold])


SAMPLING_METHODS: Dict[str, SamplingMethod] = {
    "uniform": uniform_sampling,
    "subclonal": subclonal_sampling,
}

_METHOD_ALIASES: Dict[int, str] = {1: "uniform", 2: "subclonal"}


def method_name(identifier: Union[str, int, SamplingMethod]) -> str:
    if callable(identifier):
        return getattr(identifier, "__name__", type(identifier).__name__)
    if isinstance(identifier, int) and not isinstance(identifier, bool):
        return _METHOD_ALIASES.get(identifier, str(identifier))
    return str(identifier)


def resolve_sampling_method(
    identifier: Union[str, int, SamplingMethod],
    *,
    subclonal_threshold: float = SUBCLONAL_CCF_THRESHOLD,
) -> Optional[SamplingMethod]:
    """Map a method name, legacy integer id, or callable to a sampling method.

    Returns None for identifiers that name no known method.
    """
    if callable(identifier):
        return identifier
    name = method_name(identifier)
    method = SAMPLING_METHODS.get(name)
    if method is subclonal_sampling:
        return partial(subclonal_sampling, threshold=subclonal_threshold)
    return method

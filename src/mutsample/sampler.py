"""Down-sample mutations before clustering.

The clustering engine scales poorly with the number of mutations. The sampler
picks a subset to cluster and records, for every mutation of the original dataset,
which sampled mutation it resembles most so results can be expanded afterwards by
:func:`mutsample.unsampler.unsample_mutations`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Dict, Optional, Union

import numpy as np

from .eligibility import eligible_indices
from .models import CNA, PER_MUTATION_FIELDS, RawDataset, SampledDataset
from .similarity import DEFAULT_CHUNK_SIZE, DEFAULT_MAX_BLOCK_ELEMENTS, most_similar_mutation
from .strategies import (
    SUBCLONAL_CCF_THRESHOLD,
    SamplingError,
    SamplingMethod,
    SelectionResult,
    method_name,
    resolve_sampling_method,
)
from .utils import as_index_array, make_rng, take_rows, take_square
from .validation import check_dataset

logger = logging.getLogger(__name__)

DEFAULT_MIN_SAMPLING_FACTOR = 1.5

Dataset = Union[RawDataset, SampledDataset]


@dataclass(frozen=True)
class SamplingConfig:
    """Parameters of a sampling run.

    Attributes
    ----------
    num_muts_sample:
        Number of mutations to sample.
    min_sampling_factor:
        Sampling only happens when at least ``floor(min_sampling_factor *
        num_muts_sample)`` mutations are eligible, so that a small dataset is not
        sampled down to a tiny fraction of itself.
    sampling_method:
        ``"uniform"`` (or 1), ``"subclonal"`` (or 2), or a sampling method callable.
    sample_snvs_only:
        Only sample SNVs; CNA pseudo-SNVs are always kept.
    remove_snvs:
        Remove all SNVs and sample CNA pseudo-SNVs only.
    seed:
        Seed for the random generator used by uniform sampling.
        Mutually exclusive with an explicit generator passed at call time.
    subclonal_threshold:
        Cellular fraction below which a mutation counts as subclonal.
    chunk_size, max_block_elements:
        Row and element limits of one distance block when mapping mutations.
    """

    num_muts_sample: int
    min_sampling_factor: float = DEFAULT_MIN_SAMPLING_FACTOR
    sampling_method: Union[str, int, SamplingMethod] = "uniform"
    sample_snvs_only: bool = True
    remove_snvs: bool = False
    seed: Optional[int] = None
    subclonal_threshold: float = SUBCLONAL_CCF_THRESHOLD
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_block_elements: int = DEFAULT_MAX_BLOCK_ELEMENTS


def _select_rows(dataset: RawDataset, selection: np.ndarray) -> RawDataset:
    """Row-select every per-mutation attribute; carry the rest through unchanged."""
    changes = {name: take_rows(getattr(dataset, name), selection) for name in PER_MUTATION_FIELDS}
    changes["conflict_array"] = take_square(dataset.conflict_array, selection)
    # removed_indices is not re-sliced: it refers to the pre-filter dataset and may
    # address rows beyond the sampled data.
    logger.debug("Carrying %d removed indices through unchanged", np.size(dataset.removed_indices))
    return replace(dataset, cndata=None, **changes)


def sample_mutations(
    dataset: Dataset,
    num_muts_sample: int,
    min_sampling_factor: float = DEFAULT_MIN_SAMPLING_FACTOR,
    sampling_method: Union[str, int, SamplingMethod] = "uniform",
    sample_snvs_only: bool = True,
    remove_snvs: bool = False,
    *,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    subclonal_threshold: float = SUBCLONAL_CCF_THRESHOLD,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_block_elements: int = DEFAULT_MAX_BLOCK_ELEMENTS,
    progress: bool = False,
) -> Dataset:
    """Sample mutations from ``dataset`` to reduce its size.

    Returns a :class:`SampledDataset` whose ``full_data`` holds a read-only copy of
    the original. The input is returned unchanged when it was already sampled, when
    too few mutations are eligible, or when ``sampling_method`` is not recognised.

    Uniform sampling draws from ``rng`` when given, else from a generator seeded with
    ``seed``; passing both raises ValueError.

    Raises
    ------
    SamplingError
        The sampling method could not produce a usable selection (e.g. the target
        exceeds the eligible mutations, or nothing was selected).
    ValueError
        The dataset attributes are inconsistent, or both ``seed`` and ``rng`` were
        given.
    """
    if isinstance(dataset, SampledDataset):
        logger.info("Dataset was already sampled; returning it unchanged")
        return dataset

    check_dataset(dataset)

    avail_for_sampling = eligible_indices(dataset, sample_snvs_only, remove_snvs)
    min_required = math.floor(min_sampling_factor * num_muts_sample)
    if avail_for_sampling.size < min_required:
        logger.warning(
            "Only %d mutations available, fewer than %s x %d = %d; not performing sampling",
            avail_for_sampling.size,
            min_sampling_factor,
            num_muts_sample,
            min_required,
        )
        return dataset

    method = resolve_sampling_method(sampling_method, subclonal_threshold=subclonal_threshold)
    name = method_name(sampling_method)
    if method is None:
        logger.warning("Unsupported sampling method %r supplied. No sampling performed.", sampling_method)
        return dataset

    logger.info("Sampling %d of %d mutations", num_muts_sample, avail_for_sampling.size)

    full_data = replace(dataset.copy(readonly=True), cndata=None)

    result = method(dataset, avail_for_sampling, num_muts_sample, make_rng(seed, rng))
    if not isinstance(result, SelectionResult):
        result = SelectionResult(indices=as_index_array(result))
    selection = as_index_array(result.indices)
    if selection.size and (selection.min() < 0 or selection.max() >= dataset.n_mutations):
        raise SamplingError(f"Sampling method {name!r} returned indices outside the dataset")
    logger.info("Subsampled number of mutations: %d", selection.size)
    n_selected = int(np.unique(selection).size)

    if sample_snvs_only and not remove_snvs:
        selection = np.union1d(selection, dataset.type_indices(CNA))
    else:
        selection = np.unique(selection)

    if selection.size == 0:
        raise SamplingError(f"Sampling method {name!r} selected no mutations")

    most_similar = most_similar_mutation(
        full_data,
        selection,
        chunk_size=chunk_size,
        max_block_elements=max_block_elements,
        progress=progress,
    )

    return SampledDataset(
        data=_select_rows(full_data, selection),
        sampling_selection=selection,
        full_data=full_data,
        most_similar_mut=most_similar,
        cndata=dataset.cndata,
        sampling_method=name,
        method_applied=result.applied,
        n_eligible=int(avail_for_sampling.size),
        n_selected=n_selected,
    )


def sample_with_config(
    dataset: Dataset,
    config: SamplingConfig,
    *,
    rng: Optional[np.random.Generator] = None,
    progress: bool = False,
) -> Dataset:
    """Run :func:`sample_mutations` with parameters from a :class:`SamplingConfig`."""
    return sample_mutations(
        dataset,
        config.num_muts_sample,
        min_sampling_factor=config.min_sampling_factor,
        sampling_method=config.sampling_method,
        sample_snvs_only=config.sample_snvs_only,
        remove_snvs=config.remove_snvs,
        seed=config.seed,
        rng=rng,
        subclonal_threshold=config.subclonal_threshold,
        chunk_size=config.chunk_size,
        max_block_elements=config.max_block_elements,
        progress=progress,
    )


def sampling_summary(dataset: Dataset) -> Dict[str, object]:
    """JSON-serialisable description of how a dataset was sampled."""
    if not isinstance(dataset, SampledDataset):
        return {
            "sampled": False,
            "n_full": dataset.n_mutations,
            "n_sampled": dataset.n_mutations,
        }

    selected_types = np.asarray(dataset.data.mutation_type)
    return {
        "sampled": True,
        "n_full": dataset.n_full,
        "n_eligible": dataset.n_eligible,
        "n_selected": dataset.n_selected,
        "n_sampled": dataset.n_mutations,
        "n_cna_sampled": int(np.sum(selected_types == CNA)),
        "n_samples": dataset.n_samples,
        "sampling_method": dataset.sampling_method,
        "method_applied": bool(dataset.method_applied),
        "fraction_sampled": float(dataset.n_mutations) / float(max(dataset.n_full, 1)),
    }

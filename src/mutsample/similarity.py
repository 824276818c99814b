from __future__ import annotations

import logging
from typing import Iterable

import numpy as np
from tqdm import tqdm

from .models import RawDataset
from .utils import as_index_array

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 2048
# Upper bound on the elements of one (rows x selection x samples) distance block;
# 2**22 float64 values is 32 MiB.
DEFAULT_MAX_BLOCK_ELEMENTS = 2**22


def block_rows(n_selected: int, n_samples: int, chunk_size: int, max_block_elements: int) -> int:
    """Rows per distance block so the block holds at most ``max_block_elements`` values."""
    per_row = max(1, n_selected * n_samples)
    return max(1, min(chunk_size, max_block_elements // per_row))


def most_similar_mutation(
    full_data: RawDataset,
    selection: np.ndarray,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_block_elements: int = DEFAULT_MAX_BLOCK_ELEMENTS,
    progress: bool = False,
) -> np.ndarray:
    """Map every mutation of ``full_data`` onto a row of the sampled data.

    Returns an int array ``m`` of length ``full_data.n_mutations`` with values in
    ``[0, len(selection))``. A selected mutation maps onto its own position in
    ``selection``. Any other mutation maps onto the selected mutation with the
    smallest L1 distance in cellular fraction summed over samples; ties go to the
    earliest entry of ``selection``. NaN distances never win.

    Rows are compared in blocks of at most ``chunk_size`` rows, shrunk further so a
    block never holds more than ``max_block_elements`` distance values. A single row
    is always processed, whatever the budget.
    """
    selection = as_index_array(selection)
    n_full = full_data.n_mutations
    if selection.size == 0:
        raise ValueError("Cannot map mutations onto an empty selection")
    if chunk_size < 1:
        raise ValueError("chunk_size must be >= 1")
    if max_block_elements < 1:
        raise ValueError("max_block_elements must be >= 1")

    ccf = np.asarray(full_data.subclonal_fraction, dtype=float)
    if ccf.ndim == 1:
        ccf = ccf[:, None]
    ccf_selected = ccf[selection]

    step = block_rows(selection.size, ccf.shape[1], chunk_size, max_block_elements)
    most_similar = np.empty(n_full, dtype=np.int64)

    starts: Iterable[int] = range(0, n_full, step)
    if progress:
        starts = tqdm(starts, total=len(starts), unit="block", desc="Mapping mutations")

    for start in starts:
        stop = min(start + step, n_full)
        dist = np.abs(ccf[start:stop, None, :] - ccf_selected[None, :, :]).sum(axis=2)
        dist[np.isnan(dist)] = np.inf
        # argmin returns the first minimum, which gives the tie-break on selection order
        most_similar[start:stop] = np.argmin(dist, axis=1)

    # Selected mutations map onto themselves even when another selected mutation
    # has an identical cellular fraction.
    most_similar[selection] = np.arange(selection.size, dtype=np.int64)

    logger.debug(
        "Mapped %d mutations onto %d sampled mutations (%d samples, %d rows per block)",
        n_full,
        selection.size,
        ccf.shape[1],
        step,
    )
    return most_similar

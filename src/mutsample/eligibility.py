from __future__ import annotations

import logging

import numpy as np

from .models import CNA, SNV, RawDataset

logger = logging.getLogger(__name__)


def eligible_indices(dataset: RawDataset, sample_snvs_only: bool, remove_snvs: bool) -> np.ndarray:
    """Return the sorted row indices that a sampling method may choose from.

    sample_snvs_only:
        Only SNVs may be sampled. CNA pseudo-SNVs are added back by the sampler
        afterwards so they always survive sampling.
    remove_snvs:
        Drop SNVs altogether and sample only CNA pseudo-SNVs (for clustering runs of
        copy-number events only). Takes precedence over ``sample_snvs_only``.
    """
    if sample_snvs_only and not remove_snvs:
        logger.debug("Sampling only SNVs")
        return dataset.type_indices(SNV)
    if remove_snvs:
        logger.debug("Sampling only CNAs, removing all SNVs")
        return dataset.type_indices(CNA)
    logger.debug("Sampling all data")
    return np.arange(dataset.n_mutations, dtype=np.int64)

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Tuple

import numpy as np

from .models import ClusteringResult, RawDataset, SampledDataset
from .validation import check_clustering_result

logger = logging.getLogger(__name__)


class NotSampledError(TypeError):
    """Raised when unsampling a dataset that was never sampled."""


def _expanded_counts(assignments: np.ndarray, cluster_locations: np.ndarray, count_column: int) -> np.ndarray:
    """Overwrite the member count column with a tally of ``assignments``.

    Clusters that received no mutations get a count of 0. The table keeps its dtype
    and every other column is copied unchanged.
    """
    locations = np.array(cluster_locations, copy=True)
    cluster_ids, counts = np.unique(assignments, return_counts=True)
    tally = dict(zip(cluster_ids.tolist(), counts.tolist()))

    known = set()
    for row, cluster in enumerate(locations[:, 0].tolist()):
        known.add(cluster)
        locations[row, count_column] = tally.get(cluster, 0)

    missing = sorted(c for c in tally if c not in known)
    if missing:
        logger.warning(
            "Assigned clusters %s are missing from the cluster summary table; "
            "their %d mutations are not counted",
            missing,
            sum(tally[c] for c in missing),
        )
    return locations


def unsample_mutations(
    dataset: SampledDataset, clustering_result: ClusteringResult
) -> Tuple[RawDataset, ClusteringResult]:
    """Expand a clustering of sampled mutations back onto the full dataset.

    Every mutation is assigned to the cluster of its most similar sampled mutation.
    Best-assignment likelihoods, and the full likelihood table when the clustering
    produced one, are expanded the same way. The member count column of the cluster
    summary table is recomputed from the expanded assignments; other columns pass
    through unchanged.

    Returns
    -------
    dataset:
        The original, pre-sampling dataset with its copy-number side data re-attached.
    clustering:
        The clustering result with one row per mutation of the original dataset.

    Raises
    ------
    NotSampledError
        ``dataset`` carries no ``most_similar_mut``/``full_data``, i.e. it did not
        come from :func:`mutsample.sampler.sample_mutations`.
    ValueError
        The clustering result does not have one row per sampled mutation.
    """
    if not isinstance(dataset, SampledDataset):
        raise NotSampledError(
            "Dataset was not sampled: most_similar_mut and full_data are missing. "
            "Only datasets returned by sample_mutations can be unsampled."
        )
    check_clustering_result(clustering_result, dataset.n_mutations)

    most_similar = dataset.most_similar_mut

    best_node_assignments = np.asarray(clustering_result.best_node_assignments)[most_similar]
    cluster_locations = _expanded_counts(
        best_node_assignments,
        np.asarray(clustering_result.cluster_locations),
        clustering_result.count_column,
    )
    best_assignment_likelihoods = np.asarray(clustering_result.best_assignment_likelihoods)[most_similar]

    # Not all assignment methods return a full likelihood table
    if clustering_result.has_all_likelihoods:
        all_assignment_likelihoods = np.asarray(clustering_result.all_assignment_likelihoods)[most_similar, :]
    else:
        all_assignment_likelihoods = None

    clustering = ClusteringResult(
        best_node_assignments=best_node_assignments,
        best_assignment_likelihoods=best_assignment_likelihoods,
        cluster_locations=cluster_locations,
        all_assignment_likelihoods=all_assignment_likelihoods,
        count_column=clustering_result.count_column,
    )

    new_dataset = replace(dataset.full_data.copy(), cndata=dataset.cndata)
    logger.info(
        "Expanded clustering of %d sampled mutations to %d mutations",
        dataset.n_mutations,
        new_dataset.n_mutations,
    )
    return new_dataset, clustering

from __future__ import annotations

import logging
from typing import List

import numpy as np

from .models import PER_MUTATION_FIELDS, PER_SAMPLE_FIELDS, ClusteringResult, RawDataset

logger = logging.getLogger(__name__)


def check_dataset(dataset: RawDataset) -> None:
    """Ensure per-mutation attributes line up; raise ValueError listing every problem."""
    n = dataset.n_mutations
    problems: List[str] = []

    for name in PER_MUTATION_FIELDS:
        values = np.asarray(getattr(dataset, name))
        if values.ndim == 0 or values.shape[0] != n:
            problems.append(f"{name} has {values.shape[0] if values.ndim else 0} rows, expected {n}")

    if np.ndim(dataset.mut_count) != 2:
        problems.append("mut_count must be a 2-D (mutations x samples) matrix")
    else:
        s = dataset.n_samples
        for name in PER_SAMPLE_FIELDS:
            values = np.asarray(getattr(dataset, name))
            if values.ndim != 2 or values.shape[1] != s:
                problems.append(f"{name} must have {s} sample columns, got shape {values.shape}")
        if np.size(dataset.cellularity) != s:
            problems.append(f"cellularity has {np.size(dataset.cellularity)} values, expected {s}")

    if dataset.conflict_array is not None:
        shape = np.shape(dataset.conflict_array)
        if shape != (n, n):
            problems.append(f"conflict_array must be {n}x{n}, got shape {shape}")

    if problems:
        raise ValueError("Inconsistent dataset: " + "; ".join(problems))


def check_clustering_result(result: ClusteringResult, n_rows: int) -> None:
    """Ensure a clustering result describes exactly ``n_rows`` mutations."""
    problems: List[str] = []
    if result.n_mutations != n_rows:
        problems.append(f"best_node_assignments has {result.n_mutations} rows, expected {n_rows}")
    n_lik = np.shape(result.best_assignment_likelihoods)[0] if np.ndim(result.best_assignment_likelihoods) else 0
    if n_lik != n_rows:
        problems.append(f"best_assignment_likelihoods has {n_lik} rows, expected {n_rows}")
    if result.has_all_likelihoods and np.shape(result.all_assignment_likelihoods)[0] != n_rows:
        problems.append(
            f"all_assignment_likelihoods has {np.shape(result.all_assignment_likelihoods)[0]} rows, "
            f"expected {n_rows}"
        )

    locations = np.asarray(result.cluster_locations)
    if locations.ndim != 2 or locations.shape[1] < 2:
        problems.append("cluster_locations must be a 2-D table with an id column and a count column")
    elif not -locations.shape[1] <= result.count_column < locations.shape[1]:
        problems.append(f"count_column {result.count_column} is out of range for {locations.shape[1]} columns")
    elif result.count_column % locations.shape[1] == 0:
        problems.append(f"count_column {result.count_column} points at the cluster id column")

    if problems:
        raise ValueError("Clustering result does not match the sampled dataset: " + "; ".join(problems))

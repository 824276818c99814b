from __future__ import annotations

from typing import Optional, Sequence, Union

import numpy as np

from .models import CNA, SNV, ClusteringResult, RawDataset, SampledDataset


def make_toy_dataset(
    n_snv: int,
    n_cna: int = 0,
    n_samples: int = 1,
    *,
    seed: int = 7,
    ccf: Optional[Sequence[Sequence[float]]] = None,
    with_conflicts: bool = False,
    cndata: Optional[object] = None,
) -> RawDataset:
    """Create a small synthetic dataset suitable for quick demos/tests.

    SNVs come first, then CNA pseudo-SNVs, spread over chromosome 1 in increasing
    position. Read counts are drawn around the requested cellular fractions so the
    derived quantities are roughly consistent, but nothing downstream depends on it.

    Parameters
    ----------
    ccf:
        Optional (n_snv + n_cna, n_samples) cellular fractions. Drawn uniformly in
        [0.05, 1.0] when omitted.
    with_conflicts:
        Attach a symmetric random (N, N) conflict matrix.
    cndata:
        Side dataset to attach as ``cndata``.
    """
    rng = np.random.default_rng(seed)
    n = n_snv + n_cna

    if ccf is None:
        subclonal_fraction = rng.uniform(0.05, 1.0, size=(n, n_samples))
    else:
        subclonal_fraction = np.asarray(ccf, dtype=float).reshape(n, n_samples)

    cellularity = np.full(n_samples, 0.8)
    total_cn = np.full((n, n_samples), 2.0)
    depth = rng.poisson(60, size=(n, n_samples)) + 1
    vaf = subclonal_fraction * cellularity[None, :] / total_cn
    mut_count = rng.binomial(depth, np.clip(np.nan_to_num(vaf), 0.0, 1.0))
    wt_count = depth - mut_count
    kappa = cellularity[None, :] / (2.0 * (1.0 - cellularity[None, :]) + cellularity[None, :] * total_cn)

    mutation_type = np.array([SNV] * n_snv + [CNA] * n_cna, dtype=object)

    conflict_array = None
    if with_conflicts:
        upper = np.triu(rng.random((n, n)) < 0.1, k=1)
        conflict_array = (upper | upper.T).astype(np.int8)

    position = np.arange(1, n + 1, dtype=np.int64)[:, None] * 1000
    return RawDataset(
        chromosome=np.full((n, 1), "1", dtype=object),
        position=position,
        wt_count=wt_count,
        mut_count=mut_count,
        total_copy_number=total_cn,
        copy_number_adjustment=np.ones((n, n_samples)),
        non_deleted_muts=np.ones(n, dtype=bool),
        kappa=kappa,
        mutation_copy_number=subclonal_fraction.copy(),
        subclonal_fraction=subclonal_fraction,
        mutation_type=mutation_type,
        phase=np.full((n, n_samples), "unphased", dtype=object),
        cellularity=cellularity,
        removed_indices=np.array([n + 3, n + 7], dtype=np.int64),
        chromosome_not_filtered=np.full(n + 2, "1", dtype=object),
        mut_position_not_filtered=np.arange(1, n + 3, dtype=np.int64) * 1000,
        conflict_array=conflict_array,
        cndata=cndata,
    )


def toy_clustering(
    dataset: Union[RawDataset, SampledDataset],
    centres: Sequence[Sequence[float]],
    *,
    with_likelihoods: bool = True,
) -> ClusteringResult:
    """Assign every mutation to the nearest cluster centre by cellular fraction.

    Stands in for a real clustering engine. ``centres`` is (K, samples); cluster ids
    are 1..K. Likelihoods are a softmax over negative L1 distances.
    """
    data = dataset.data if isinstance(dataset, SampledDataset) else dataset
    ccf = np.asarray(data.subclonal_fraction, dtype=float)
    centres_arr = np.asarray(centres, dtype=float).reshape(-1, ccf.shape[1])

    dist = np.abs(ccf[:, None, :] - centres_arr[None, :, :]).sum(axis=2)
    weights = np.exp(-10.0 * dist)
    lik = weights / weights.sum(axis=1, keepdims=True)

    best = np.argmin(dist, axis=1)
    cluster_ids = np.arange(1, centres_arr.shape[0] + 1)
    assignments = cluster_ids[best]
    counts = np.array([np.sum(assignments == c) for c in cluster_ids], dtype=float)

    return ClusteringResult(
        best_node_assignments=assignments,
        best_assignment_likelihoods=lik[np.arange(lik.shape[0]), best],
        cluster_locations=np.column_stack([cluster_ids.astype(float), centres_arr, counts]),
        all_assignment_likelihoods=lik if with_likelihoods else None,
    )

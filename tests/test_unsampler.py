import logging

import numpy as np
import pytest

from mutsample.models import ClusteringResult
from mutsample.sampler import sample_mutations
from mutsample.strategies import SelectionResult
from mutsample.toy_data import make_toy_dataset, toy_clustering
from mutsample.unsampler import NotSampledError, unsample_mutations

CENTRES_1D = [[0.2], [0.5], [0.9]]


def _sampled(n_snv=120, n_cna=4, n_samples=1, **kwargs):
    ds = make_toy_dataset(n_snv, n_cna=n_cna, n_samples=n_samples, cndata={"segments": 7}, **kwargs)
    return ds, sample_mutations(ds, 30, seed=21)


def test_unsample_round_trip_recovers_dataset():
    ds, sampled = _sampled(with_conflicts=True)
    clustering = toy_clustering(sampled, CENTRES_1D)

    recovered, expanded = unsample_mutations(sampled, clustering)

    assert recovered.n_mutations == ds.n_mutations
    assert recovered.equals(ds)
    assert recovered.cndata is ds.cndata
    assert expanded.n_mutations == ds.n_mutations
    assert expanded.best_assignment_likelihoods.shape == (ds.n_mutations,)
    assert expanded.all_assignment_likelihoods.shape == (ds.n_mutations, 3)


def _ten_sampled():
    ds = make_toy_dataset(10, ccf=[[0.1], [0.2], [0.3], [0.4], [0.5], [0.6], [0.7], [0.8], [0.9], [1.0]])

    def pick(dataset, eligible, n, rng):
        return SelectionResult(indices=np.array([1, 4, 6, 8]))

    return sample_mutations(ds, 4, min_sampling_factor=1.0, sampling_method=pick)


def test_unsample_assigns_most_similar_cluster():
    sampled = _ten_sampled()
    clustering = ClusteringResult(
        best_node_assignments=np.array([1, 1, 2, 2]),
        best_assignment_likelihoods=np.array([0.9, 0.8, 0.7, 0.6]),
        cluster_locations=np.array([[1.0, 0.3, 2.0], [2.0, 0.8, 2.0]]),
    )

    _, expanded = unsample_mutations(sampled, clustering)

    m = sampled.most_similar_mut
    assert expanded.best_node_assignments.tolist() == clustering.best_node_assignments[m].tolist()
    assert expanded.best_node_assignments[0] == 1
    assert expanded.best_node_assignments[9] == 2
    assert expanded.best_assignment_likelihoods.tolist() == clustering.best_assignment_likelihoods[m].tolist()
    # cluster id and location columns pass through; count column is recomputed
    assert expanded.cluster_locations[:, :2].tolist() == [[1.0, 0.3], [2.0, 0.8]]
    assert expanded.cluster_locations[:, -1].sum() == 10
    assert expanded.all_assignment_likelihoods is None


def test_unsample_count_conservation_multi_sample():
    ds, sampled = _sampled(n_samples=2)
    clustering = toy_clustering(sampled, [[0.2, 0.3], [0.6, 0.5], [0.9, 0.9]])

    _, expanded = unsample_mutations(sampled, clustering)

    counts = expanded.cluster_locations[:, -1]
    assert counts.sum() == ds.n_mutations
    for cluster_id, count in zip(expanded.cluster_locations[:, 0], counts):
        assert np.sum(expanded.best_node_assignments == cluster_id) == count


def test_unsample_empty_cluster_gets_zero_count():
    ds, sampled = _sampled()
    clustering = toy_clustering(sampled, CENTRES_1D + [[5.0]])

    _, expanded = unsample_mutations(sampled, clustering)

    assert expanded.cluster_locations[3, -1] == 0
    assert expanded.cluster_locations[:, -1].sum() == ds.n_mutations


def test_unsample_unknown_cluster_is_logged(caplog):
    sampled = _ten_sampled()
    clustering = ClusteringResult(
        best_node_assignments=np.array([1, 1, 2, 3]),
        best_assignment_likelihoods=np.ones(4),
        cluster_locations=np.array([[1.0, 2.0], [2.0, 1.0]]),
    )

    with caplog.at_level(logging.WARNING, logger="mutsample.unsampler"):
        _, expanded = unsample_mutations(sampled, clustering)

    assert expanded.cluster_locations.shape == (2, 2)
    assert "missing from the cluster summary table" in caplog.text
    # mutations 8 and 9 follow selected mutation 8 into cluster 3
    assert expanded.best_node_assignments[8] == 3
    assert expanded.best_node_assignments[9] == 3


def test_unsample_likelihood_matrix_only_when_populated():
    _, sampled = _sampled()
    clustering = toy_clustering(sampled, CENTRES_1D, with_likelihoods=False)
    _, expanded = unsample_mutations(sampled, clustering)
    assert expanded.all_assignment_likelihoods is None

    nan_lik = ClusteringResult(
        best_node_assignments=clustering.best_node_assignments,
        best_assignment_likelihoods=clustering.best_assignment_likelihoods,
        cluster_locations=clustering.cluster_locations,
        all_assignment_likelihoods=np.full((sampled.n_mutations, 3), np.nan),
    )
    _, expanded = unsample_mutations(sampled, nan_lik)
    assert expanded.all_assignment_likelihoods is None


def test_unsample_does_not_modify_inputs():
    ds, sampled = _sampled()
    clustering = toy_clustering(sampled, CENTRES_1D)
    locations = clustering.cluster_locations.copy()
    assignments = clustering.best_node_assignments.copy()

    recovered, expanded = unsample_mutations(sampled, clustering)

    assert np.array_equal(clustering.cluster_locations, locations)
    assert np.array_equal(clustering.best_node_assignments, assignments)
    assert expanded.cluster_locations is not clustering.cluster_locations
    # the recovered dataset is independent of the snapshot held by the sampled dataset
    recovered.subclonal_fraction[0, 0] = -1.0
    assert sampled.full_data.subclonal_fraction[0, 0] != -1.0


def test_unsample_requires_sampled_dataset():
    ds = make_toy_dataset(5)
    clustering = toy_clustering(ds, CENTRES_1D)
    with pytest.raises(NotSampledError, match="most_similar_mut"):
        unsample_mutations(ds, clustering)
    with pytest.raises(TypeError):
        unsample_mutations(ds, clustering)

    # a dataset left unsampled by a no-op is still a raw dataset
    small = sample_mutations(ds, 10)
    with pytest.raises(NotSampledError):
        unsample_mutations(small, clustering)


def test_unsample_rejects_mismatched_clustering():
    ds, sampled = _sampled()
    wrong = toy_clustering(ds, CENTRES_1D)
    with pytest.raises(ValueError, match="best_node_assignments"):
        unsample_mutations(sampled, wrong)


def test_unsample_rejects_count_column_on_cluster_ids():
    sampled = _ten_sampled()
    clustering = ClusteringResult(
        best_node_assignments=np.array([7, 7, 9, 9]),
        best_assignment_likelihoods=np.ones(4),
        cluster_locations=np.array([[7.0, 0.3], [9.0, 0.8]]),
        count_column=0,
    )
    with pytest.raises(ValueError, match="cluster id column"):
        unsample_mutations(sampled, clustering)

    aliased = ClusteringResult(
        best_node_assignments=clustering.best_node_assignments,
        best_assignment_likelihoods=clustering.best_assignment_likelihoods,
        cluster_locations=clustering.cluster_locations,
        count_column=-2,
    )
    with pytest.raises(ValueError, match="cluster id column"):
        unsample_mutations(sampled, aliased)


def test_unsample_keeps_cluster_table_dtype():
    sampled = _ten_sampled()
    table = np.array([[1, 30, 2], [2, 80, 2]], dtype=np.int64)
    clustering = ClusteringResult(
        best_node_assignments=np.array([1, 1, 2, 2]),
        best_assignment_likelihoods=np.ones(4),
        cluster_locations=table,
    )

    _, expanded = unsample_mutations(sampled, clustering)

    assert expanded.cluster_locations.dtype == np.int64
    assert expanded.cluster_locations[:, :2].tolist() == [[1, 30], [2, 80]]
    assert expanded.cluster_locations[:, 2].sum() == 10
    assert table[:, 2].tolist() == [2, 2]

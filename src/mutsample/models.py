from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Optional, Tuple

import numpy as np

# Mutation type tags
SNV = "SNV"
CNA = "CNA"
INDEL = "indel"

# Attributes with one row per mutation; sampling row-selects all of them.
PER_MUTATION_FIELDS: Tuple[str, ...] = (
    "chromosome",
    "position",
    "wt_count",
    "mut_count",
    "total_copy_number",
    "copy_number_adjustment",
    "non_deleted_muts",
    "kappa",
    "mutation_copy_number",
    "subclonal_fraction",
    "mutation_type",
    "phase",
)

# Per-mutation attributes that also carry one column per tumour sample.
PER_SAMPLE_FIELDS: Tuple[str, ...] = (
    "wt_count",
    "mut_count",
    "total_copy_number",
    "copy_number_adjustment",
    "kappa",
    "mutation_copy_number",
    "subclonal_fraction",
)


def _array_equal(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is None and b is None
    a = np.asarray(a)
    b = np.asarray(b)
    if a.shape != b.shape:
        return False
    if a.dtype.kind in "fc" and b.dtype.kind in "fc":
        return bool(np.array_equal(a, b, equal_nan=True))
    return bool(np.array_equal(a, b))


@dataclass(frozen=True, eq=False)
class RawDataset:
    """A set of mutations observed across one or more tumour samples.

    Matrices have one row per mutation and one column per sample, except
    ``chromosome``/``position`` (single column) and the 1-D per-mutation vectors
    ``non_deleted_muts`` and ``mutation_type``.

    Attributes
    ----------
    removed_indices:
        Indices of mutations removed upstream. Carried through sampling as-is.
    chromosome_not_filtered, mut_position_not_filtered:
        Pre-filter coordinates, carried through sampling as-is.
    cellularity:
        Tumour purity per sample.
    conflict_array:
        Optional (N, N) matrix of incompatible mutation pairs. ``None`` means no
        matrix was computed, which is different from an all-zero matrix.
    cndata:
        Optional copy-number side dataset. It is not part of the mutation matrices
        and is never row-selected.
    """

    chromosome: np.ndarray
    position: np.ndarray
    wt_count: np.ndarray
    mut_count: np.ndarray
    total_copy_number: np.ndarray
    copy_number_adjustment: np.ndarray
    non_deleted_muts: np.ndarray
    kappa: np.ndarray
    mutation_copy_number: np.ndarray
    subclonal_fraction: np.ndarray
    mutation_type: np.ndarray
    phase: np.ndarray
    cellularity: np.ndarray
    removed_indices: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))
    chromosome_not_filtered: Optional[np.ndarray] = None
    mut_position_not_filtered: Optional[np.ndarray] = None
    conflict_array: Optional[np.ndarray] = None
    cndata: Optional[Any] = None

    @property
    def n_mutations(self) -> int:
        return int(np.shape(self.mut_count)[0])

    @property
    def n_samples(self) -> int:
        return int(np.shape(self.mut_count)[1])

    def type_indices(self, mutation_type: str) -> np.ndarray:
        """Sorted row indices of mutations carrying the given type tag."""
        return np.flatnonzero(np.asarray(self.mutation_type) == mutation_type)

    def copy(self, *, readonly: bool = False) -> "RawDataset":
        """Deep-copy every array attribute. ``cndata`` is shared, not copied."""
        changes = {}
        for f in fields(self):
            if f.name == "cndata":
                continue
            value = getattr(self, f.name)
            if value is None:
                continue
            arr = np.array(value, copy=True)
            if readonly:
                arr.setflags(write=False)
            changes[f.name] = arr
        return replace(self, **changes)

    def equals(self, other: object) -> bool:
        """Attribute-for-attribute equality; NaNs compare equal."""
        if not isinstance(other, RawDataset):
            return False
        for f in fields(self):
            a = getattr(self, f.name)
            b = getattr(other, f.name)
            if f.name == "cndata":
                if a is not b and not _array_equal(a, b):
                    return False
                continue
            if not _array_equal(a, b):
                return False
        return True


@dataclass(frozen=True, eq=False)
class SampledDataset:
    """A down-sampled dataset that remembers how to get back to the full one.

    ``data`` is what the clustering engine sees. ``most_similar_mut[i]`` is the row
    of ``data`` whose clustering outcome is reported for mutation ``i`` of
    ``full_data``; it is a plain index array, not a reference into ``data``.

    ``n_eligible`` counts the mutations the sampling method could choose from and
    ``n_selected`` those it chose, before CNA pseudo-SNVs were added back.
    """

    data: RawDataset
    sampling_selection: np.ndarray
    full_data: RawDataset
    most_similar_mut: np.ndarray
    cndata: Optional[Any] = None
    sampling_method: str = "uniform"
    method_applied: bool = True
    n_eligible: int = 0
    n_selected: int = 0

    @property
    def n_mutations(self) -> int:
        return self.data.n_mutations

    @property
    def n_samples(self) -> int:
        return self.data.n_samples

    @property
    def n_full(self) -> int:
        return self.full_data.n_mutations


@dataclass(frozen=True, eq=False)
class ClusteringResult:
    """Output of a clustering engine, one row per clustered mutation.

    Attributes
    ----------
    best_node_assignments:
        Cluster id per mutation.
    best_assignment_likelihoods:
        Likelihood of the best assignment per mutation.
    cluster_locations:
        Cluster summary table; column 0 is the cluster id and ``count_column``
        holds the number of member mutations.
    all_assignment_likelihoods:
        Optional (N, K) likelihood of every mutation under every cluster. Not all
        assignment methods produce it.
    """

    best_node_assignments: np.ndarray
    best_assignment_likelihoods: np.ndarray
    cluster_locations: np.ndarray
    all_assignment_likelihoods: Optional[np.ndarray] = None
    count_column: int = -1

    @property
    def n_mutations(self) -> int:
        return int(np.shape(self.best_node_assignments)[0])

    @property
    def has_all_likelihoods(self) -> bool:
        lik = self.all_assignment_likelihoods
        if lik is None:
            return False
        lik = np.asarray(lik, dtype=float)
        return lik.size > 0 and bool(np.any(~np.isnan(lik)))

from __future__ import annotations

import logging
from typing import Iterable, Optional

import numpy as np

logger = logging.getLogger(__name__)


def make_rng(seed: Optional[int] = None, rng: Optional[np.random.Generator] = None) -> np.random.Generator:
    """Return ``rng`` if given, else a fresh generator seeded with ``seed``.

    Passing both is ambiguous and raises ValueError.
    """
    if seed is not None and rng is not None:
        raise ValueError("Pass either seed or rng, not both")
    if rng is not None:
        return rng
    return np.random.default_rng(seed)


def as_index_array(indices: Iterable[int]) -> np.ndarray:
    if not isinstance(indices, np.ndarray):
        indices = list(indices)
    return np.asarray(indices, dtype=np.int64).reshape(-1)


def take_rows(values: Optional[np.ndarray], rows: np.ndarray) -> Optional[np.ndarray]:
    """Row-select an array, keeping its remaining axes."""
    if values is None:
        return None
    return np.asarray(values)[rows]


def take_square(values: Optional[np.ndarray], rows: np.ndarray) -> Optional[np.ndarray]:
    """Select ``rows`` on both axes of a square matrix."""
    if values is None:
        return None
    return np.asarray(values)[np.ix_(rows, rows)]


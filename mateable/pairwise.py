"""Pairwise distance and temporal overlap.

Builds the symmetric N×N matrices every metric engine starts from:
  - distance_matrix: Euclidean distance between positions (2-D or 3-D)
  - overlap_matrix: shared active days of closed [start, end] windows
  - receptivity_by_day: day × individual activity table, the shared input
    of the day-based synchrony indices
  - nearest_neighbors: k nearest spatial neighbours (KD-tree)
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
import pandas as pd
from scipy.spatial import cKDTree
from scipy.spatial.distance import pdist, squareform

from mateable.errors import InvalidParameterError
from mateable.scene import Scene
from mateable.types import Dimension, PotentialMatrix


# ═══════════════════════════════════════════════════════════════════════
# SPACE
# ═══════════════════════════════════════════════════════════════════════

def pairwise_distances(positions: np.ndarray) -> np.ndarray:
    """(N, N) Euclidean distance array from (N, d) coordinates."""
    return squareform(pdist(np.asarray(positions, dtype=np.float64), 'euclidean'))


def distance_matrix(scene: Scene, compare_to_self: bool = False) -> PotentialMatrix:
    """Pairwise Euclidean distance between individuals.

    The diagonal is always 0. ``compare_to_self`` is recorded on the result
    and only decides whether self-pairs join later aggregates.

    Raises:
        DimensionError: If the scene has no space dimension.
    """
    scene.require(Dimension.SPACE)
    return PotentialMatrix(scene.ids, pairwise_distances(scene.positions),
                           compare_to_self=compare_to_self)


def nearest_neighbors(
    scene: Scene,
    k: int = 1,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Distances to, and ids of, each individual's k nearest neighbours.

    Args:
        scene: Scene with a space dimension.
        k: Number of neighbours (1 <= k < N).

    Returns:
        (distances, neighbour_ids): DataFrames indexed by id with columns
        1..k, ordered nearest first.

    Raises:
        DimensionError: If the scene has no space dimension.
        InvalidParameterError: If k is out of range.
    """
    scene.require(Dimension.SPACE)
    if not 1 <= k < scene.n:
        raise InvalidParameterError(f"k must be in [1, {scene.n - 1}], got {k}")
    tree = cKDTree(scene.positions)
    dist, idx = tree.query(scene.positions, k=k + 1)
    # Drop the self hit; with co-located points self may come back later or
    # not at all, in which case the farthest hit goes (all are at distance 0)
    is_self = idx == np.arange(scene.n)[:, None]
    is_self[~is_self.any(axis=1), -1] = True
    keep = ~is_self
    dist = dist[keep].reshape(scene.n, k)
    idx = idx[keep].reshape(scene.n, k)
    ids = np.empty(scene.n, dtype=object)
    ids[:] = list(scene.ids)
    columns = list(range(1, k + 1))
    index = pd.Index(list(scene.ids), name='id')
    return (pd.DataFrame(dist, index=index, columns=columns),
            pd.DataFrame(ids[idx], index=index, columns=columns))


# ═══════════════════════════════════════════════════════════════════════
# TIME
# ═══════════════════════════════════════════════════════════════════════

def window_overlap(start: np.ndarray, end: np.ndarray) -> np.ndarray:
    """(N, N) count of shared integer days of closed windows.

    The diagonal holds each window's own duration (end - start + 1).
    """
    start = np.asarray(start, dtype=np.int64)
    end = np.asarray(end, dtype=np.int64)
    latest_start = np.maximum.outer(start, start)
    earliest_end = np.minimum.outer(end, end)
    return np.clip(earliest_end - latest_start + 1, 0, None)


def overlap_matrix(scene: Scene, compare_to_self: bool = False) -> PotentialMatrix:
    """Shared active days between every pair of participating individuals.

    Args:
        scene: Scene with a time dimension.
        compare_to_self: If True the diagonal is each individual's duration;
            otherwise it is 0.

    Raises:
        DimensionError: If the scene has no time dimension.
    """
    ids, start, end = scene.windows()
    overlap = window_overlap(start, end)
    if not compare_to_self:
        np.fill_diagonal(overlap, 0)
    return PotentialMatrix(ids, overlap, compare_to_self=compare_to_self)


def receptivity_by_day(scene: Scene, summary: bool = False):
    """Which participating individuals are active on each day.

    Args:
        scene: Scene with a time dimension.
        summary: If True, collapse to the number active per day.

    Returns:
        DataFrame of bools indexed by day (every day from the earliest start
        to the latest end) with one column per participating id, or with
        ``summary=True`` a Series day → active count.

    Raises:
        DimensionError: If the scene has no time dimension.
    """
    ids, start, end = scene.windows()
    if len(ids) == 0:
        table = pd.DataFrame(index=pd.Index([], name='day', dtype=np.int64),
                             columns=list(ids), dtype=bool)
    else:
        days = np.arange(start.min(), end.max() + 1)
        active = (days[:, None] >= start[None, :]) & (days[:, None] <= end[None, :])
        table = pd.DataFrame(active, index=pd.Index(days, name='day'),
                             columns=list(ids))
    if summary:
        return table.sum(axis=1).astype(np.int64).rename('n_active')
    return table


def active_counts(receptivity: pd.DataFrame) -> np.ndarray:
    """Per-day active count e_t aligned with the table's rows."""
    return receptivity.to_numpy(dtype=bool).sum(axis=1)

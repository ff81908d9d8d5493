"""Temporal synchrony: mating potential in the time dimension.

Eight indices of how much each individual's reproductive window overlaps
with the rest of the population. Notation, over participating individuals:

  N     population size
  e_t   number of individuals active on day t
  D_i   active days of i (|D_i| = end_i - start_i + 1)
  O_ij  days shared by i and j
  U_ij  days on which i or j is active = |D_i| + |D_j| - O_ij

Pairwise-first methods (individual value = mean over partners):
  kempenaers  O_ij / U_ij
  overlap     O_ij (raw days); individual value uses O_ij / |D_i|
  simple1     1 if O_ij > 0 else 0
  simple2     O_ij / min(|D_i|, |D_j|)
  simple3     O_ij / max(|D_i|, |D_j|)
  sync_nn     O_ij kept only between temporal nearest neighbours;
              individual value O_i,nn(i) / |D_i|

Individual-first methods (no pairwise view):
  augspurger  mean over t in D_i of (e_t - 1) / (N - 1)
  sync_prop   fraction of t in D_i with e_t > 1

References:
  - Augspurger 1983, Biotropica 15:257 (synchrony index)
  - Kempenaers 1993, Ornis Scandinavica 24:84 (breeding synchrony)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Hashable, Optional, Tuple, Union

import numpy as np
import pandas as pd

from mateable.errors import ValidationError
from mateable.pairwise import active_counts, receptivity_by_day, window_overlap
from mateable.scene import Scene
from mateable.types import (
    AverageType,
    Dimension,
    INDIVIDUAL_FIRST_METHODS,
    PotentialMatrix,
    PotentialResult,
    SynchronyMethod,
)
from mateable.utils import aggregate, parse_method, row_means


@dataclass(frozen=True)
class _Windows:
    """Participating windows plus quantities shared by all indices."""
    ids: Tuple[Hashable, ...]
    start: np.ndarray
    end: np.ndarray
    durations: np.ndarray
    overlap: np.ndarray            # (N, N) int, diagonal = durations
    receptivity: Optional[pd.DataFrame] = None

    @property
    def n(self) -> int:
        return len(self.ids)

    def activity(self) -> Tuple[np.ndarray, np.ndarray]:
        """(T, N) bool activity table and (T,) active counts e_t."""
        table = self.receptivity.to_numpy(dtype=bool)
        return table, active_counts(self.receptivity)


def _with_diagonal(pairwise: np.ndarray, diagonal, compare_to_self: bool) -> np.ndarray:
    out = pairwise.astype(np.float64, copy=True)
    np.fill_diagonal(out, diagonal if compare_to_self else 0.0)
    return out


# ═══════════════════════════════════════════════════════════════════════
# INDIVIDUAL-FIRST INDICES
# ═══════════════════════════════════════════════════════════════════════

def _augspurger(w: _Windows, compare_to_self: bool):
    active, e = w.activity()
    others_active = (e - 1) / (w.n - 1)
    return None, (active.T @ others_active) / w.durations


def _sync_prop(w: _Windows, compare_to_self: bool):
    active, e = w.activity()
    shared_days = active.T.astype(np.int64) @ (e > 1).astype(np.int64)
    return None, shared_days / w.durations


# ═══════════════════════════════════════════════════════════════════════
# PAIRWISE-FIRST INDICES
# ═══════════════════════════════════════════════════════════════════════

def _kempenaers(w: _Windows, compare_to_self: bool):
    d = w.durations
    union = np.add.outer(d, d) - w.overlap
    jaccard = w.overlap / union
    pairwise = _with_diagonal(jaccard, 1.0, compare_to_self)
    return pairwise, row_means(pairwise, compare_to_self)


def _overlap(w: _Windows, compare_to_self: bool):
    pairwise = _with_diagonal(w.overlap, w.durations, compare_to_self)
    proportion = pairwise / w.durations[:, None]
    return pairwise, row_means(proportion, compare_to_self)


def _simple1(w: _Windows, compare_to_self: bool):
    pairwise = _with_diagonal(w.overlap > 0, 1.0, compare_to_self)
    return pairwise, row_means(pairwise, compare_to_self)


def _simple2(w: _Windows, compare_to_self: bool):
    d = w.durations
    pairwise = _with_diagonal(w.overlap / np.minimum.outer(d, d), 1.0, compare_to_self)
    return pairwise, row_means(pairwise, compare_to_self)


def _simple3(w: _Windows, compare_to_self: bool):
    d = w.durations
    pairwise = _with_diagonal(w.overlap / np.maximum.outer(d, d), 1.0, compare_to_self)
    return pairwise, row_means(pairwise, compare_to_self)


def temporal_nearest_neighbors(start: np.ndarray, end: np.ndarray) -> np.ndarray:
    """Index of each window's nearest other window in time.

    Nearest means most shared days; among windows sharing no days, the one
    separated by the fewest empty days. Ties go to the earlier index.
    """
    start = np.asarray(start, dtype=np.int64)
    end = np.asarray(end, dtype=np.int64)
    # Shared days when positive, minus the empty days in between otherwise
    closeness = (np.minimum.outer(end, end) - np.maximum.outer(start, start) + 1
                 ).astype(np.float64)
    np.fill_diagonal(closeness, -np.inf)
    return np.argmax(closeness, axis=1)


def _sync_nn(w: _Windows, compare_to_self: bool):
    nn = temporal_nearest_neighbors(w.start, w.end)
    rows = np.arange(w.n)
    linked = np.zeros((w.n, w.n), dtype=bool)
    linked[rows, nn] = True
    linked |= linked.T
    pairwise = _with_diagonal(np.where(linked, w.overlap, 0), w.durations,
                              compare_to_self)
    return pairwise, w.overlap[rows, nn] / w.durations


SYNCHRONY_METHODS: Dict[SynchronyMethod, Callable] = {
    SynchronyMethod.AUGSPURGER: _augspurger,
    SynchronyMethod.KEMPENAERS: _kempenaers,
    SynchronyMethod.OVERLAP: _overlap,
    SynchronyMethod.SYNC_PROP: _sync_prop,
    SynchronyMethod.SYNC_NN: _sync_nn,
    SynchronyMethod.SIMPLE1: _simple1,
    SynchronyMethod.SIMPLE2: _simple2,
    SynchronyMethod.SIMPLE3: _simple3,
}

def _check_receptivity(table: pd.DataFrame, ids, start: np.ndarray,
                       end: np.ndarray) -> None:
    """Raise ValidationError unless ``table`` describes exactly these windows."""
    if list(table.columns) != list(ids):
        raise ValidationError(
            "receptivity table columns do not match the scene's "
            "participating individuals"
        )
    try:
        days = table.index.to_numpy(dtype=np.int64)
        active = table.to_numpy(dtype=bool)
    except (TypeError, ValueError) as err:
        raise ValidationError(f"receptivity table is malformed: {err}") from err
    expected = (days[:, None] >= start[None, :]) & (days[:, None] <= end[None, :])
    # Column sums catch a day index that does not cover every window
    if (not np.array_equal(active, expected)
            or not np.array_equal(active.sum(axis=0), end - start + 1)):
        raise ValidationError(
            "receptivity table does not match the scene's time windows"
        )


# ═══════════════════════════════════════════════════════════════════════
# ENGINE
# ═══════════════════════════════════════════════════════════════════════

def synchrony(
    scene: Scene,
    method: Union[str, SynchronyMethod] = SynchronyMethod.AUGSPURGER,
    average_type: Union[str, AverageType] = AverageType.MEAN,
    compare_to_self: bool = False,
    receptivity: Optional[pd.DataFrame] = None,
) -> PotentialResult:
    """Temporal mating potential of a scene.

    Non-participating individuals (no time window) are left out of every
    view.

    Args:
        scene: Scene with a time dimension.
        method: One of SynchronyMethod.
        average_type: 'mean' or 'median' for the population value.
        compare_to_self: If True, pairwise diagonals hold the self value
            (duration for 'overlap' and 'sync_nn', 1 otherwise) and
            self-pairs join the individual means of pairwise-first methods.
        receptivity: Table from receptivity_by_day(scene), to share one
            table across several calls. Built here when omitted.

    Returns:
        PotentialResult. ``pairwise`` is None for 'augspurger' and
        'sync_prop'.

    Raises:
        UnknownMethodError: Unknown method or average type.
        DimensionError: Scene has no time dimension.
        ValidationError: Fewer than 2 participating individuals, or a
            ``receptivity`` table that does not match the scene.
    """
    method = parse_method(SynchronyMethod, method)
    average_type = parse_method(AverageType, average_type)
    scene.require(Dimension.TIME)

    ids, start, end = scene.windows()
    if len(ids) < 2:
        raise ValidationError(
            f"synchrony needs at least 2 participating individuals, got {len(ids)}"
        )

    if method in INDIVIDUAL_FIRST_METHODS:
        if receptivity is None:
            receptivity = receptivity_by_day(scene)
        else:
            _check_receptivity(receptivity, ids, start, end)

    windows = _Windows(
        ids=ids,
        start=start,
        end=end,
        durations=end - start + 1,
        overlap=window_overlap(start, end),
        receptivity=receptivity,
    )
    pairwise, individual = SYNCHRONY_METHODS[method](windows, compare_to_self)

    return PotentialResult(
        method=method.value,
        dimension=Dimension.TIME,
        ids=ids,
        values=individual,
        population=aggregate(individual, average_type),
        pairwise=None if pairwise is None else PotentialMatrix(
            ids, pairwise, compare_to_self=compare_to_self),
        average_type=average_type,
        compare_to_self=compare_to_self,
        dimensions=scene.dimensions,
    )

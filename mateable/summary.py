"""Scene summary statistics.

A SceneSummary holds the named scalars a reader (or a renderer) needs to
describe a scene at a glance, and doubles as the parameter set for
simulate_from_summary(): read a real scene, summarise it, simulate null
scenes that share its extent, timing and size.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import numpy as np

from mateable.errors import DimensionError
from mateable.pairwise import nearest_neighbors, receptivity_by_day
from mateable.scene import Scene


@dataclass(frozen=True)
class SceneSummary:
    """Read-only summary of one scene.

    Fields for a dimension the scene lacks are None. Durations here are
    ``end - start`` (the simulator's duration parameter), one less than the
    active day count. Standard deviations are sample (ddof=1) values.
    """
    n: int
    n_participating: Optional[int] = None
    # Space
    x_min: Optional[float] = None
    x_max: Optional[float] = None
    y_min: Optional[float] = None
    y_max: Optional[float] = None
    z_min: Optional[float] = None
    z_max: Optional[float] = None
    mean_nn_distance: Optional[float] = None
    median_nn_distance: Optional[float] = None
    # Time
    mean_start: Optional[float] = None
    sd_start: Optional[float] = None
    mean_duration: Optional[float] = None
    sd_duration: Optional[float] = None
    first_day: Optional[int] = None
    last_day: Optional[int] = None
    peak_day: Optional[int] = None
    peak_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def simulation_parameters(self) -> Dict[str, Any]:
        """Keyword arguments for simulate_scene() matching this summary.

        Raises:
            DimensionError: If the summarised scene lacked space or time.
        """
        if self.x_min is None or self.mean_start is None:
            raise DimensionError(
                "simulation parameters need a summary of a scene with both "
                "space and time dimensions"
            )
        return {
            'size': self.n,
            'mean_sd': self.mean_start,
            'sd_sd': self.sd_start,
            'mean_dur': self.mean_duration,
            'sd_dur': self.sd_duration,
            'x_range': (self.x_min, self.x_max),
            'y_range': (self.y_min, self.y_max),
        }


def _sd(values: np.ndarray) -> float:
    return float(np.std(values, ddof=1)) if len(values) > 1 else 0.0


def summarize_scene(scene: Scene) -> SceneSummary:
    """Summarise a scene's spatial extent, timing and peak participation."""
    fields: Dict[str, Any] = {'n': scene.n}

    if scene.has_space:
        pos = scene.positions
        fields.update(
            x_min=float(pos[:, 0].min()), x_max=float(pos[:, 0].max()),
            y_min=float(pos[:, 1].min()), y_max=float(pos[:, 1].max()),
        )
        if pos.shape[1] == 3:
            fields.update(z_min=float(pos[:, 2].min()), z_max=float(pos[:, 2].max()))
        nn_dist, _ = nearest_neighbors(scene, k=1)
        fields.update(
            mean_nn_distance=float(nn_dist[1].mean()),
            median_nn_distance=float(nn_dist[1].median()),
        )

    if scene.has_time:
        ids, start, end = scene.windows()
        fields['n_participating'] = len(ids)
        if len(ids):
            duration = end - start
            counts = receptivity_by_day(scene, summary=True)
            fields.update(
                mean_start=float(start.mean()), sd_start=_sd(start),
                mean_duration=float(duration.mean()), sd_duration=_sd(duration),
                first_day=int(start.min()), last_day=int(end.max()),
                peak_day=int(counts.idxmax()), peak_count=int(counts.max()),
            )

    return SceneSummary(**fields)

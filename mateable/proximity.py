"""Spatial proximity: mating potential in the space dimension.

Proximity is a bounded, monotonically decreasing transform of pairwise
distance, scaled by the largest separation observed in the scene (d_max):

  maxProp      max(0, 1 - d_ij / d_max)
  maxPropSqrd  max(0, 1 - (d_ij / d_max)^2)

Both are 1 at zero distance and 0 for the most distant pair. When every
individual sits at the same point (d_max = 0) all proximities are 1.
"""

from __future__ import annotations

import warnings
from typing import Callable, Dict, Union

import numpy as np

from mateable.pairwise import pairwise_distances
from mateable.scene import Scene
from mateable.types import (
    AverageType,
    Dimension,
    PotentialMatrix,
    PotentialResult,
    ProximityMethod,
)
from mateable.utils import aggregate, parse_method, row_means


def _max_prop(scaled: np.ndarray) -> np.ndarray:
    return np.clip(1.0 - scaled, 0.0, 1.0)


def _max_prop_sqrd(scaled: np.ndarray) -> np.ndarray:
    return np.clip(1.0 - scaled ** 2, 0.0, 1.0)


PROXIMITY_METHODS: Dict[ProximityMethod, Callable[[np.ndarray], np.ndarray]] = {
    ProximityMethod.MAX_PROP: _max_prop,
    ProximityMethod.MAX_PROP_SQRD: _max_prop_sqrd,
}


def proximity(
    scene: Scene,
    method: Union[str, ProximityMethod] = ProximityMethod.MAX_PROP_SQRD,
    average_type: Union[str, AverageType] = AverageType.MEAN,
    compare_to_self: bool = False,
) -> PotentialResult:
    """Spatial mating potential of a scene.

    Args:
        scene: Scene with a space dimension.
        method: One of ProximityMethod.
        average_type: 'mean' or 'median' for the population value.
        compare_to_self: If True the diagonal is 1 and self-pairs join the
            individual means; otherwise the diagonal is 0 and left out.

    Returns:
        PotentialResult with values in [0, 1].

    Raises:
        UnknownMethodError: Unknown method or average type.
        DimensionError: Scene has no space dimension.
    """
    method = parse_method(ProximityMethod, method)
    average_type = parse_method(AverageType, average_type)
    scene.require(Dimension.SPACE)

    distances = pairwise_distances(scene.positions)
    d_max = distances.max()
    if d_max > 0:
        pairwise = PROXIMITY_METHODS[method](distances / d_max)
    else:
        warnings.warn(
            "all individuals share one position; every proximity is 1",
            UserWarning,
            stacklevel=2,
        )
        pairwise = np.ones_like(distances)
    np.fill_diagonal(pairwise, 1.0 if compare_to_self else 0.0)
    individual = row_means(pairwise, compare_to_self)

    return PotentialResult(
        method=method.value,
        dimension=Dimension.SPACE,
        ids=scene.ids,
        values=individual,
        population=aggregate(individual, average_type),
        pairwise=PotentialMatrix(scene.ids, pairwise, compare_to_self=compare_to_self),
        average_type=average_type,
        compare_to_self=compare_to_self,
        dimensions=scene.dimensions,
    )

"""Genetic compatibility: mating potential in the compatibility dimension.

Two breeding systems are modelled, each with a binary pairwise rule:

  dioecious      compatible iff the two sex codes differ
  singleLocusSI  sporophytic self-incompatibility at one S-locus: compatible
                 iff the two allele pairs share no allele label. Sharing
                 either allele blocks fertilization in both directions.

No individual is ever compatible with itself, so the diagonal is always
False and self-pairs never join the individual means.
"""

from __future__ import annotations

from typing import Callable, Dict, Union

import numpy as np

from mateable.errors import DimensionError
from mateable.scene import Scene
from mateable.types import (
    AverageType,
    CompatibilityMethod,
    Dimension,
    PotentialMatrix,
    PotentialResult,
    REQUIRED_COMPAT_MODEL,
)
from mateable.utils import aggregate, parse_method, row_means


def _dioecious(scene: Scene) -> np.ndarray:
    sex = np.asarray(scene.sex)
    return np.not_equal.outer(sex, sex)


def _single_locus_si(scene: Scene) -> np.ndarray:
    alleles = scene.alleles
    a1, a2 = alleles[:, 0], alleles[:, 1]
    shared = (np.equal.outer(a1, a1) | np.equal.outer(a1, a2)
              | np.equal.outer(a2, a1) | np.equal.outer(a2, a2))
    return ~shared.astype(bool)


COMPATIBILITY_METHODS: Dict[CompatibilityMethod, Callable[[Scene], np.ndarray]] = {
    CompatibilityMethod.DIOECIOUS: _dioecious,
    CompatibilityMethod.SINGLE_LOCUS_SI: _single_locus_si,
}


def compatibility(
    scene: Scene,
    method: Union[str, CompatibilityMethod] = CompatibilityMethod.SINGLE_LOCUS_SI,
    average_type: Union[str, AverageType] = AverageType.MEAN,
) -> PotentialResult:
    """Compatibility mating potential of a scene.

    Args:
        scene: Scene with a compatibility dimension.
        method: 'dioecious' (needs sex codes) or 'singleLocusSI' (needs
            allele pairs).
        average_type: 'mean' or 'median' for the population value.

    Returns:
        PotentialResult with a boolean pairwise matrix. Individual values
        are the proportion of other individuals each one is compatible with.

    Raises:
        UnknownMethodError: Unknown method or average type.
        DimensionError: Scene has no compatibility dimension, or its
            compat_model does not match ``method``.
    """
    method = parse_method(CompatibilityMethod, method)
    average_type = parse_method(AverageType, average_type)
    scene.require(Dimension.COMPAT)
    required = REQUIRED_COMPAT_MODEL[method]
    if scene.compat_model is not required:
        raise DimensionError(
            f"method '{method.value}' needs a '{required.value}' scene, "
            f"got '{scene.compat_model.value}'"
        )

    pairwise = np.asarray(COMPATIBILITY_METHODS[method](scene), dtype=bool)
    np.fill_diagonal(pairwise, False)
    individual = row_means(pairwise, include_diagonal=False)

    return PotentialResult(
        method=method.value,
        dimension=Dimension.COMPAT,
        ids=scene.ids,
        values=individual,
        population=aggregate(individual, average_type),
        pairwise=PotentialMatrix(scene.ids, pairwise, compare_to_self=False),
        average_type=average_type,
        compare_to_self=False,
        dimensions=scene.dimensions,
    )

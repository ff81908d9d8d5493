"""Mating potential in every dimension a scene carries.

Convenience layer over the scene builders, the simulator and the three
engines: reads column roles, simulation parameters, methods and aggregation
from a MateableConfig and returns one PotentialResult per dimension.
"""

from __future__ import annotations

from typing import Dict, Hashable, Optional, Sequence, Union

from mateable.compatibility import compatibility
from mateable.config import MateableConfig, default_config
from mateable.multiyear import MultiYearResult, apply_multi_year
from mateable.proximity import proximity
from mateable.scene import (
    MultiYearScene,
    Records,
    Scene,
    build_multi_year_scene,
    build_scene,
)
from mateable.simulate import simulate_multi_year_scene, simulate_scene
from mateable.synchrony import synchrony
from mateable.types import (
    CompatModel,
    CompatibilityMethod,
    Dimension,
    PotentialResult,
)

_METHOD_FOR_MODEL = {
    CompatModel.SEX_BASED: CompatibilityMethod.DIOECIOUS,
    CompatModel.SINGLE_LOCUS_SI: CompatibilityMethod.SINGLE_LOCUS_SI,
}


def _compatibility_for(config: MateableConfig):
    def engine(scene: Scene, average_type: str) -> PotentialResult:
        method = config.compatibility.method
        if method is None:
            method = _METHOD_FOR_MODEL.get(scene.compat_model,
                                           CompatibilityMethod.SINGLE_LOCUS_SI)
        return compatibility(scene, method, average_type=average_type)
    return engine


def _engines(config: MateableConfig):
    a = config.analysis
    return {
        Dimension.SPACE: (proximity, dict(
            method=config.proximity.method, average_type=a.average_type,
            compare_to_self=a.compare_to_self)),
        Dimension.TIME: (synchrony, dict(
            method=config.synchrony.method, average_type=a.average_type,
            compare_to_self=a.compare_to_self)),
        Dimension.COMPAT: (_compatibility_for(config), dict(
            average_type=a.average_type)),
    }


def mating_potential(
    scene: Scene,
    config: Optional[MateableConfig] = None,
) -> Dict[Dimension, PotentialResult]:
    """One PotentialResult per dimension the scene carries.

    Args:
        scene: Any scene.
        config: Method and aggregation choices (defaults if None).

    Returns:
        Dict keyed by Dimension, in space, time, compatibility order.
    """
    config = config or default_config()
    engines = _engines(config)
    results = {}
    for dimension in scene.dimensions.active:
        engine, kwargs = engines[dimension]
        results[dimension] = engine(scene, **kwargs)
    return results


def multi_year_potential(
    multi_year_scene: MultiYearScene,
    config: Optional[MateableConfig] = None,
) -> Dict[Dimension, MultiYearResult]:
    """mating_potential() across years.

    Every dimension carried by at least one year is computed for all years;
    years lacking it show up as failures in that dimension's result.
    """
    config = config or default_config()
    engines = _engines(config)
    dimensions = [d for d in Dimension
                  if any(s.dimensions.has(d) for s in multi_year_scene.values())]
    return {
        d: apply_multi_year(multi_year_scene, engines[d][0], **engines[d][1])
        for d in dimensions
    }


# ═══════════════════════════════════════════════════════════════════════
# SCENES FROM CONFIG
# ═══════════════════════════════════════════════════════════════════════

def scene_from_config(
    records: Records,
    config: Optional[MateableConfig] = None,
    multi_year: bool = False,
) -> Union[Scene, MultiYearScene]:
    """Build a Scene, or a MultiYearScene, using the config's column roles.

    Args:
        records: Sequence of mappings or DataFrame.
        config: Supplies ``columns`` (defaults if None).
        multi_year: If True, partition by ``columns.year``.
    """
    config = config or default_config()
    columns = config.columns.dimension_columns()
    if multi_year:
        return build_multi_year_scene(records, columns,
                                      year_column=config.columns.year)
    return build_scene(records, columns)


def simulate_from_config(
    config: Optional[MateableConfig] = None,
    years: Optional[Sequence[Hashable]] = None,
) -> Union[Scene, MultiYearScene]:
    """Simulate with the config's ``simulation`` section.

    With ``years``, one independent scene per year is drawn from streams
    spawned from ``simulation.seed``.
    """
    config = config or default_config()
    params = config.simulation.kwargs()
    if years is None:
        return simulate_scene(**params)
    seed = params.pop('seed')
    return simulate_multi_year_scene(years, seed=seed, **params)

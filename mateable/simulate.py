"""Synthetic scene simulator for null-model comparison.

Each simulated individual gets:
  - a position drawn uniformly from x_range × y_range
  - a window start ~ Normal(mean_sd, sd_sd), rounded to a whole day
  - a duration ~ Normal(mean_dur, sd_dur), rounded and clamped at 0 days,
    so that end = start + duration
  - a sex code uniform on {1, 2} (sex_coded=True) or two S-allele labels
    drawn with replacement from 1..allele_pool_size

Simulated scenes always carry all three dimensions. Ids are 1..size.

Passing ``seed`` (or a Generator) makes a run reproducible; with neither,
each call draws fresh OS entropy and results are not reproducible.
"""

from __future__ import annotations

import math
import numbers
import warnings
from typing import Any, Hashable, Optional, Sequence, Tuple

import numpy as np

from mateable.errors import InvalidParameterError
from mateable.rng import create_year_rngs, make_rng
from mateable.scene import MultiYearScene, Scene
from mateable.summary import SceneSummary
from mateable.types import CompatModel, Dimensions, SEX_CODES


# ═══════════════════════════════════════════════════════════════════════
# DEFAULTS
# ═══════════════════════════════════════════════════════════════════════

DEFAULT_SIZE: int = 30
DEFAULT_MEAN_SD: float = 194.0        # mean start day (day-of-year, ~Jul 13)
DEFAULT_SD_SD: float = 6.0            # start day spread (days)
DEFAULT_MEAN_DUR: float = 11.0        # mean duration (days)
DEFAULT_SD_DUR: float = 3.0           # duration spread (days)
DEFAULT_RANGE: Tuple[float, float] = (0.0, 100.0)
DEFAULT_ALLELE_POOL_SIZE: int = 10


def _check_range(name: str, bounds: Sequence[float]) -> Tuple[float, float]:
    try:
        lo, hi = (float(b) for b in bounds)
    except (TypeError, ValueError):
        raise InvalidParameterError(
            f"{name} must be a (min, max) pair, got {bounds!r}"
        ) from None
    if not (math.isfinite(lo) and math.isfinite(hi)):
        raise InvalidParameterError(f"{name} bounds must be finite, got {bounds!r}")
    if lo > hi:
        raise InvalidParameterError(f"{name} is inverted: min {lo} > max {hi}")
    return lo, hi


def _check_count(name: str, value: Any, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidParameterError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidParameterError(f"{name} must be >= {minimum}, got {value}")
    return int(value)


def _check_normal(name: str, mean: Any, sd: Any) -> Tuple[float, float]:
    try:
        mean, sd = float(mean), float(sd)
    except (TypeError, ValueError):
        raise InvalidParameterError(
            f"mean and standard deviation of {name} must be numbers, "
            f"got {mean!r} and {sd!r}"
        ) from None
    if not math.isfinite(mean):
        raise InvalidParameterError(f"mean of {name} must be finite, got {mean}")
    if not math.isfinite(sd) or sd < 0:
        raise InvalidParameterError(
            f"standard deviation of {name} must be >= 0, got {sd}"
        )
    return mean, sd


def _check_seed(seed: Any) -> Optional[int]:
    if seed is None:
        return None
    return _check_count('seed', seed, 0)


# ═══════════════════════════════════════════════════════════════════════
# SIMULATION
# ═══════════════════════════════════════════════════════════════════════

def simulate_scene(
    size: int = DEFAULT_SIZE,
    mean_sd: float = DEFAULT_MEAN_SD,
    sd_sd: float = DEFAULT_SD_SD,
    mean_dur: float = DEFAULT_MEAN_DUR,
    sd_dur: float = DEFAULT_SD_DUR,
    x_range: Sequence[float] = DEFAULT_RANGE,
    y_range: Sequence[float] = DEFAULT_RANGE,
    allele_pool_size: int = DEFAULT_ALLELE_POOL_SIZE,
    sex_coded: bool = False,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> Scene:
    """Generate a synthetic scene from distributional parameters.

    Args:
        size: Number of individuals (>= 2).
        mean_sd: Mean window start day.
        sd_sd: Standard deviation of start day (>= 0).
        mean_dur: Mean duration (end - start) in days.
        sd_dur: Standard deviation of duration (>= 0).
        x_range: (min, max) of the uniform x coordinate.
        y_range: (min, max) of the uniform y coordinate.
        allele_pool_size: Number of S-alleles to draw from (>= 1).
        sex_coded: If True, draw sex codes instead of S-alleles.
        seed: RNG seed; ignored when ``rng`` is given.
        rng: Generator to draw from.

    Returns:
        Scene with space, time and compatibility dimensions.

    Raises:
        InvalidParameterError: size < 2, a non-numeric mean or standard
            deviation, a negative standard deviation, an inverted range,
            allele_pool_size < 1 or a negative seed.
    """
    size = _check_count('size', size, 2)
    mean_sd, sd_sd = _check_normal('start day', mean_sd, sd_sd)
    mean_dur, sd_dur = _check_normal('duration', mean_dur, sd_dur)
    x_lo, x_hi = _check_range('x_range', x_range)
    y_lo, y_hi = _check_range('y_range', y_range)
    if not sex_coded:
        allele_pool_size = _check_count('allele_pool_size', allele_pool_size, 1)
    if rng is None:
        rng = make_rng(_check_seed(seed))

    x = rng.uniform(x_lo, x_hi, size)
    y = rng.uniform(y_lo, y_hi, size)
    start = np.rint(rng.normal(mean_sd, sd_sd, size)).astype(np.int64)
    raw_duration = np.rint(rng.normal(mean_dur, sd_dur, size))
    n_clamped = int((raw_duration < 0).sum())
    if n_clamped:
        warnings.warn(
            f"{n_clamped} of {size} simulated durations were negative and "
            f"set to 0 days",
            UserWarning,
            stacklevel=2,
        )
    end = start + np.maximum(raw_duration, 0).astype(np.int64)

    if sex_coded:
        compat_model = CompatModel.SEX_BASED
        sex = rng.choice(np.array(SEX_CODES, dtype=np.int8), size)
        alleles = None
    else:
        compat_model = CompatModel.SINGLE_LOCUS_SI
        sex = None
        alleles = [tuple(int(a) for a in pair)
                   for pair in rng.integers(1, allele_pool_size + 1, (size, 2))]

    return Scene(
        ids=tuple(range(1, size + 1)),
        dimensions=Dimensions(has_space=True, has_time=True, has_compat=True),
        compat_model=compat_model,
        positions=np.column_stack([x, y]),
        start=start,
        end=end,
        participating=np.ones(size, dtype=bool),
        alleles=alleles,
        sex=sex,
    )


def simulate_from_summary(
    summary: SceneSummary,
    size: Optional[int] = None,
    allele_pool_size: int = DEFAULT_ALLELE_POOL_SIZE,
    sex_coded: bool = False,
    seed: Optional[int] = None,
) -> Scene:
    """Simulate a null scene matching a real scene's summary.

    Args:
        summary: From summarize_scene() on a scene with space and time.
        size: Override the population size (default: summary.n).
        allele_pool_size: Number of S-alleles to draw from.
        sex_coded: If True, draw sex codes instead of S-alleles.
        seed: RNG seed.
    """
    params = summary.simulation_parameters()
    if size is not None:
        params['size'] = size
    return simulate_scene(allele_pool_size=allele_pool_size, sex_coded=sex_coded,
                          seed=seed, **params)


def simulate_multi_year_scene(
    years: Sequence[Hashable],
    seed: Optional[int] = None,
    **params: Any,
) -> MultiYearScene:
    """Simulate one independent scene per year.

    Each year draws from its own RNG stream spawned from ``seed``, so a
    given year's scene does not depend on how many years follow it.

    Args:
        years: Year labels, in chronological order.
        seed: Master RNG seed.
        **params: Keyword arguments for simulate_scene() (except seed/rng).
    """
    if len(set(years)) != len(years):
        raise InvalidParameterError(f"year labels must be unique, got {list(years)}")
    rngs = create_year_rngs(_check_seed(seed), list(years))
    return MultiYearScene(
        (year, simulate_scene(rng=rngs[year], **params)) for year in years
    )

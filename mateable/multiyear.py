"""Multi-year adapter: apply any scene-level engine across seasons.

apply_multi_year() runs one engine (synchrony, proximity, compatibility or
any callable taking a Scene) on every year of a MultiYearScene, in year
order. A year whose computation raises a MateableError is recorded as a
YearFailure tagged with its label and the remaining years still run;
callers that want all-or-nothing behaviour call raise_for_failures().

The result also carries the union of individual ids over all years so
renderers can request one consistent subset of individuals across years.
An individual missing from a year is simply absent from that year's
result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

import numpy as np

from mateable.errors import InvalidParameterError, MateableError
from mateable.rng import make_rng
from mateable.scene import MultiYearScene
from mateable.types import PotentialResult

Engine = Callable[..., PotentialResult]


@dataclass(frozen=True)
class YearFailure:
    """One year's failed computation."""
    year: Hashable
    error: MateableError


@dataclass(frozen=True)
class MultiYearResult:
    """Ordered year → PotentialResult mapping plus cross-year metadata.

    Attributes:
        years: Every year label of the input, in order.
        results: Successful years, in year order.
        failures: Failed years, in year order.
        all_ids: Union of ids over all input years, first-seen order.
    """
    years: Tuple[Hashable, ...]
    results: Dict[Hashable, PotentialResult] = field(default_factory=dict)
    failures: Dict[Hashable, YearFailure] = field(default_factory=dict)
    all_ids: Tuple[Hashable, ...] = ()

    def __getitem__(self, year: Hashable) -> PotentialResult:
        return self.results[year]

    def __iter__(self):
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def keys(self):
        return self.results.keys()

    def items(self):
        return self.results.items()

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def common_ids(self) -> Tuple[Hashable, ...]:
        """Ids present in every successful year, in first-seen order."""
        if not self.results:
            return ()
        present = [set(r.ids) for r in self.results.values()]
        return tuple(k for k in self.all_ids if all(k in p for p in present))

    def population(self) -> Dict[Hashable, float]:
        """Population value per successful year."""
        return {year: r.population for year, r in self.results.items()}

    def raise_for_failures(self) -> None:
        """Re-raise the first per-year failure, if any."""
        for failure in self.failures.values():
            raise failure.error

    def sample_ids(
        self,
        n: int,
        seed: Optional[int] = None,
        common_only: bool = False,
    ) -> List[Hashable]:
        """Draw one id subset to show consistently across years.

        Args:
            n: Number of ids (capped at the pool size).
            seed: RNG seed.
            common_only: Draw only from ids present in every year.

        Returns:
            Sampled ids, kept in first-seen order.
        """
        if n < 0:
            raise InvalidParameterError(f"n must be >= 0, got {n}")
        pool = self.common_ids if common_only else self.all_ids
        n = min(n, len(pool))
        chosen = make_rng(seed).choice(len(pool), size=n, replace=False)
        return [pool[i] for i in np.sort(chosen)]


def apply_multi_year(
    multi_year_scene: MultiYearScene,
    engine: Engine,
    **kwargs: Any,
) -> MultiYearResult:
    """Run ``engine(scene, **kwargs)`` independently for every year.

    Args:
        multi_year_scene: Ordered year → Scene mapping.
        engine: synchrony, proximity, compatibility or any callable with
            the same shape.
        **kwargs: Passed unchanged to every call.

    Returns:
        MultiYearResult whose years follow the input order.
    """
    results: Dict[Hashable, PotentialResult] = {}
    failures: Dict[Hashable, YearFailure] = {}
    for year, scene in multi_year_scene.items():
        try:
            results[year] = engine(scene, **kwargs)
        except MateableError as err:
            err.year = year
            failures[year] = YearFailure(year, err)
    return MultiYearResult(
        years=multi_year_scene.years,
        results=results,
        failures=failures,
        all_ids=multi_year_scene.all_ids,
    )

"""Scene data model and record validation.

A Scene is one reproductive season of one population: per-individual
coordinates in up to three dimensions plus capability flags saying which
dimensions are present.

Core classes:
  - DimensionColumns: column-role mapping (which record fields hold which
    coordinate)
  - Scene: immutable, validated population snapshot
  - MultiYearScene: ordered mapping year → Scene (insertion order is
    chronological order)

Core functions:
  - build_scene: validate records and build a Scene
  - build_multi_year_scene: partition records by a year key and build one
    Scene per year

Individuals whose time window is absent (both start and end missing) are
non-participating: they stay in the scene for spatial and compatibility
work but are left out of every temporal computation.
"""

from __future__ import annotations

import math
import warnings
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import (
    Any, Dict, Hashable, Iterable, Iterator, List, Optional, Sequence, Tuple,
    Union,
)

import numpy as np
import pandas as pd

from mateable.errors import DimensionError, ValidationError
from mateable.types import CompatModel, Dimension, Dimensions, SEX_CODES

Records = Union[pd.DataFrame, Sequence[Mapping]]


# ═══════════════════════════════════════════════════════════════════════
# COLUMN ROLES
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DimensionColumns:
    """Names of the record fields that supply each coordinate.

    A dimension is active when its column group is named:
      space:         x and y (z optional)
      time:          start and end
      compatibility: s1 and s2 (allele pair) OR sex (sex code)
    """
    id: str = 'id'
    x: Optional[str] = None
    y: Optional[str] = None
    z: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None
    s1: Optional[str] = None
    s2: Optional[str] = None
    sex: Optional[str] = None

    def __post_init__(self):
        if (self.x is None) != (self.y is None):
            raise ValidationError("space columns need both x and y")
        if self.z is not None and self.x is None:
            raise ValidationError("z column given without x and y")
        if (self.start is None) != (self.end is None):
            raise ValidationError("time columns need both start and end")
        if (self.s1 is None) != (self.s2 is None):
            raise ValidationError("allele columns need both s1 and s2")
        if self.s1 is not None and self.sex is not None:
            raise ValidationError(
                "give either allele columns (s1, s2) or a sex column, not both"
            )

    @property
    def dimensions(self) -> Dimensions:
        return Dimensions(
            has_space=self.x is not None,
            has_time=self.start is not None,
            has_compat=self.s1 is not None or self.sex is not None,
        )

    @property
    def compat_model(self) -> CompatModel:
        if self.sex is not None:
            return CompatModel.SEX_BASED
        if self.s1 is not None:
            return CompatModel.SINGLE_LOCUS_SI
        return CompatModel.NONE

    @property
    def spatial(self) -> Tuple[str, ...]:
        return tuple(c for c in (self.x, self.y, self.z) if c is not None)


# ═══════════════════════════════════════════════════════════════════════
# SCENE
# ═══════════════════════════════════════════════════════════════════════

def _frozen(values: Optional[np.ndarray]) -> Optional[np.ndarray]:
    if values is None:
        return None
    values = np.array(values, copy=True)
    values.setflags(write=False)
    return values


@dataclass(frozen=True, eq=False)
class Scene:
    """Immutable population snapshot for one season.

    Attributes:
        ids: Individual ids in insertion order (unique).
        dimensions: Capability flags.
        compat_model: Declared breeding system.
        positions: (N, 2) or (N, 3) float64 coordinates, or None.
        start: (N,) int64 first active day, or None. Holds 0 for
            non-participating individuals.
        end: (N,) int64 last active day, or None.
        participating: (N,) bool, True where the individual has a window.
        alleles: (N, 2) object array of S-allele labels, or None.
        sex: (N,) int8 sex codes in {1, 2}, or None.
    """
    ids: Tuple[Hashable, ...]
    dimensions: Dimensions
    compat_model: CompatModel = CompatModel.NONE
    positions: Optional[np.ndarray] = None
    start: Optional[np.ndarray] = None
    end: Optional[np.ndarray] = None
    participating: Optional[np.ndarray] = None
    alleles: Optional[np.ndarray] = None
    sex: Optional[np.ndarray] = None
    _index: Dict[Hashable, int] = field(init=False, repr=False)

    def __post_init__(self):
        ids = tuple(self.ids)
        object.__setattr__(self, 'ids', ids)
        n = len(ids)
        if n < 2:
            raise ValidationError(
                f"a scene needs at least 2 individuals, got {n}"
            )
        index: Dict[Hashable, int] = {}
        for i, k in enumerate(ids):
            if k in index:
                raise ValidationError(f"duplicate individual id {k!r}")
            index[k] = i
        object.__setattr__(self, '_index', index)

        dims = self.dimensions
        if dims.has_space:
            pos = np.asarray(self.positions, dtype=np.float64)
            if pos.ndim != 2 or pos.shape[0] != n or pos.shape[1] not in (2, 3):
                raise ValidationError(
                    f"positions must be (N, 2) or (N, 3), got {pos.shape}"
                )
            object.__setattr__(self, 'positions', _frozen(pos))
        elif self.positions is not None:
            raise ValidationError("positions given but space dimension is off")

        if dims.has_time:
            participating = (np.ones(n, dtype=bool) if self.participating is None
                             else np.asarray(self.participating, dtype=bool))
            start = np.where(participating, np.asarray(self.start), 0).astype(np.int64)
            end = np.where(participating, np.asarray(self.end), 0).astype(np.int64)
            if start.shape != (n,) or end.shape != (n,):
                raise ValidationError("start and end must have one entry per individual")
            bad = np.flatnonzero(start > end)
            if bad.size:
                k = ids[bad[0]]
                raise ValidationError(
                    f"individual {k!r}: start ({start[bad[0]]}) > end ({end[bad[0]]})"
                )
            object.__setattr__(self, 'start', _frozen(start))
            object.__setattr__(self, 'end', _frozen(end))
            object.__setattr__(self, 'participating', _frozen(participating))
        elif self.start is not None or self.end is not None:
            raise ValidationError("time windows given but time dimension is off")

        if dims.has_compat:
            if self.compat_model is CompatModel.SEX_BASED:
                sex = np.asarray(self.sex, dtype=np.int8)
                if sex.shape != (n,) or not np.isin(sex, SEX_CODES).all():
                    raise ValidationError(f"sex codes must be one of {SEX_CODES}")
                object.__setattr__(self, 'sex', _frozen(sex))
            elif self.compat_model is CompatModel.SINGLE_LOCUS_SI:
                pairs = [tuple(pair) for pair in self.alleles]
                if len(pairs) != n or any(len(p) != 2 for p in pairs):
                    raise ValidationError("alleles must hold one pair per individual")
                # Filled per element so mixed int/str labels keep their types
                alleles = np.empty((n, 2), dtype=object)
                for i, (a1, a2) in enumerate(pairs):
                    alleles[i, 0] = a1
                    alleles[i, 1] = a2
                object.__setattr__(self, 'alleles', _frozen(alleles))
            else:
                raise ValidationError(
                    "compatibility dimension is on but compat_model is 'none'"
                )
        elif self.compat_model is not CompatModel.NONE:
            raise ValidationError(
                f"compat_model '{self.compat_model.value}' needs a compatibility column"
            )

    # ── basic accessors ──────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, item: Hashable) -> bool:
        return item in self._index

    @property
    def n(self) -> int:
        return len(self.ids)

    @property
    def has_space(self) -> bool:
        return self.dimensions.has_space

    @property
    def has_time(self) -> bool:
        return self.dimensions.has_time

    @property
    def has_compat(self) -> bool:
        return self.dimensions.has_compat

    def index_of(self, individual_id: Hashable) -> int:
        return self._index[individual_id]

    def require(self, dimension: Union[str, Dimension]) -> None:
        """Raise DimensionError unless the scene carries ``dimension``."""
        dimension = Dimension(dimension)
        if not self.dimensions.has(dimension):
            raise DimensionError(
                f"operation needs the {dimension.value} dimension, "
                f"which this scene does not carry"
            )

    # ── time views (participating individuals only) ──────────────────

    @property
    def participating_ids(self) -> Tuple[Hashable, ...]:
        self.require(Dimension.TIME)
        return tuple(k for k, p in zip(self.ids, self.participating) if p)

    def windows(self) -> Tuple[Tuple[Hashable, ...], np.ndarray, np.ndarray]:
        """(ids, start, end) of participating individuals."""
        self.require(Dimension.TIME)
        mask = self.participating
        return self.participating_ids, self.start[mask], self.end[mask]

    @property
    def durations(self) -> np.ndarray:
        """Active day count (end - start + 1) of participating individuals."""
        _, start, end = self.windows()
        return end - start + 1

    # ── derived scenes ───────────────────────────────────────────────

    def subset(self, ids: Iterable[Hashable]) -> 'Scene':
        """New scene restricted to ``ids``, kept in this scene's order.

        Ids not present in the scene are ignored.
        """
        wanted = set(ids)
        keep = np.array([k in wanted for k in self.ids], dtype=bool)

        def take(values):
            return None if values is None else np.asarray(values)[keep]

        return Scene(
            ids=tuple(k for k, w in zip(self.ids, keep) if w),
            dimensions=self.dimensions,
            compat_model=self.compat_model,
            positions=take(self.positions),
            start=take(self.start),
            end=take(self.end),
            participating=take(self.participating),
            alleles=take(self.alleles),
            sex=take(self.sex),
        )

    def to_frame(self) -> pd.DataFrame:
        """Tabular copy of the scene, one row per individual."""
        data: Dict[str, Any] = {}
        if self.has_space:
            for axis, name in enumerate('xyz'[:self.positions.shape[1]]):
                data[name] = self.positions[:, axis]
        if self.has_time:
            data['start'] = np.where(self.participating, self.start, np.nan)
            data['end'] = np.where(self.participating, self.end, np.nan)
        if self.compat_model is CompatModel.SEX_BASED:
            data['sex'] = self.sex
        elif self.compat_model is CompatModel.SINGLE_LOCUS_SI:
            data['s1'] = self.alleles[:, 0]
            data['s2'] = self.alleles[:, 1]
        return pd.DataFrame(data, index=pd.Index(list(self.ids), name='id'))


# ═══════════════════════════════════════════════════════════════════════
# RECORD VALIDATION
# ═══════════════════════════════════════════════════════════════════════

def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _as_coordinate(value: Any, where: str) -> float:
    if isinstance(value, (bool, np.bool_)):
        raise ValidationError(f"{where}: coordinate must be a number, got {value!r}")
    try:
        coord = float(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f"{where}: coordinate must be a number, got {value!r}"
        ) from None
    if not math.isfinite(coord):
        raise ValidationError(f"{where}: coordinate must be finite, got {value!r}")
    return coord


def _as_integer(value: Any, where: str, kind: str = "integer day") -> int:
    if isinstance(value, (bool, np.bool_)):
        raise ValidationError(f"{where}: expected an {kind}, got {value!r}")
    try:
        day = float(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f"{where}: expected an {kind}, got {value!r}"
        ) from None
    if not math.isfinite(day) or not day.is_integer():
        raise ValidationError(f"{where}: expected an {kind}, got {value!r}")
    return int(day)


def _as_records(records: Records) -> List[Mapping]:
    if isinstance(records, pd.DataFrame):
        return records.to_dict('records')
    return list(records)


def _field(record: Mapping, column: str, where: str) -> Any:
    if column not in record:
        raise ValidationError(f"{where}: missing column '{column}'")
    return record[column]


def build_scene(
    records: Records,
    columns: DimensionColumns,
    compat_model: Optional[Union[str, CompatModel]] = None,
) -> Scene:
    """Validate per-individual records and build a Scene.

    Args:
        records: Sequence of mappings (one per individual) or a DataFrame.
        columns: Which fields supply identity and each coordinate group.
            Dimension flags are inferred from the groups named here.
        compat_model: Optional declared breeding system. Must agree with
            the compatibility columns when given.

    Returns:
        Immutable Scene.

    Raises:
        ValidationError: On duplicate or missing ids, missing columns,
            invalid values, start > end, a half-present window, or fewer
            than 2 individuals.
    """
    rows = _as_records(records)
    dims = columns.dimensions
    inferred = columns.compat_model
    if compat_model is not None:
        try:
            declared = CompatModel(compat_model)
        except ValueError:
            raise ValidationError(f"unknown compat_model {compat_model!r}") from None
        if declared is not inferred:
            raise ValidationError(
                f"compat_model '{declared.value}' does not match the supplied "
                f"columns (which imply '{inferred.value}')"
            )

    ids: List[Hashable] = []
    positions: List[List[float]] = []
    start: List[int] = []
    end: List[int] = []
    participating: List[bool] = []
    alleles: List[Tuple[Any, Any]] = []
    sex: List[int] = []

    for row_no, record in enumerate(rows):
        where = f"record {row_no}"
        individual_id = _field(record, columns.id, where)
        if _is_missing(individual_id):
            raise ValidationError(f"{where}: missing id")
        where = f"record {row_no} (id={individual_id!r})"
        ids.append(individual_id)

        if dims.has_space:
            positions.append([
                _as_coordinate(_field(record, c, where), f"{where}, column '{c}'")
                for c in columns.spatial
            ])

        if dims.has_time:
            s = _field(record, columns.start, where)
            e = _field(record, columns.end, where)
            if _is_missing(s) and _is_missing(e):
                participating.append(False)
                start.append(0)
                end.append(0)
            elif _is_missing(s) or _is_missing(e):
                raise ValidationError(
                    f"{where}: time window needs both start and end"
                )
            else:
                s = _as_integer(s, f"{where}, column '{columns.start}'")
                e = _as_integer(e, f"{where}, column '{columns.end}'")
                if s > e:
                    raise ValidationError(f"{where}: start ({s}) > end ({e})")
                participating.append(True)
                start.append(s)
                end.append(e)

        if inferred is CompatModel.SEX_BASED:
            code = _field(record, columns.sex, where)
            if _is_missing(code):
                raise ValidationError(f"{where}: missing sex code")
            code = _as_integer(code, f"{where}, column '{columns.sex}'",
                               kind="integer sex code")
            if code not in SEX_CODES:
                raise ValidationError(
                    f"{where}: sex code must be one of {SEX_CODES}, got {code}"
                )
            sex.append(code)
        elif inferred is CompatModel.SINGLE_LOCUS_SI:
            a1 = _field(record, columns.s1, where)
            a2 = _field(record, columns.s2, where)
            if _is_missing(a1) or _is_missing(a2):
                raise ValidationError(f"{where}: needs two S-allele labels")
            alleles.append((a1, a2))

    if dims.has_time and not all(participating):
        n_out = participating.count(False)
        warnings.warn(
            f"{n_out} of {len(ids)} individuals have no time window and are "
            f"non-participating in temporal computations",
            UserWarning,
            stacklevel=2,
        )

    return Scene(
        ids=tuple(ids),
        dimensions=dims,
        compat_model=inferred,
        positions=np.array(positions, dtype=np.float64) if dims.has_space else None,
        start=np.array(start, dtype=np.int64) if dims.has_time else None,
        end=np.array(end, dtype=np.int64) if dims.has_time else None,
        participating=np.array(participating, dtype=bool) if dims.has_time else None,
        alleles=alleles if inferred is CompatModel.SINGLE_LOCUS_SI else None,
        sex=np.array(sex, dtype=np.int8) if inferred is CompatModel.SEX_BASED else None,
    )


# ═══════════════════════════════════════════════════════════════════════
# MULTI-YEAR SCENE
# ═══════════════════════════════════════════════════════════════════════

class MultiYearScene(Mapping):
    """Ordered mapping year label → Scene.

    Insertion order is chronological order for every consumer. Year labels
    are unique.
    """

    def __init__(self, scenes: Union[Mapping, Iterable[Tuple[Hashable, Scene]]]):
        pairs = scenes.items() if isinstance(scenes, Mapping) else scenes
        self._scenes: Dict[Hashable, Scene] = {}
        for year, scene in pairs:
            if year in self._scenes:
                raise ValidationError(f"duplicate year label {year!r}")
            if not isinstance(scene, Scene):
                raise ValidationError(
                    f"year {year!r}: expected a Scene, got {type(scene).__name__}"
                )
            self._scenes[year] = scene

    def __getitem__(self, year: Hashable) -> Scene:
        return self._scenes[year]

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._scenes)

    def __len__(self) -> int:
        return len(self._scenes)

    def __repr__(self) -> str:
        inner = ', '.join(f"{y!r}: n={len(s)}" for y, s in self._scenes.items())
        return f"MultiYearScene({{{inner}}})"

    @property
    def years(self) -> Tuple[Hashable, ...]:
        return tuple(self._scenes)

    @property
    def all_ids(self) -> Tuple[Hashable, ...]:
        """Union of ids over all years, in first-seen order."""
        seen: Dict[Hashable, None] = {}
        for scene in self._scenes.values():
            for k in scene.ids:
                seen.setdefault(k, None)
        return tuple(seen)

    def subset(self, ids: Iterable[Hashable]) -> 'MultiYearScene':
        """Restrict every year to ``ids``; absent ids are simply omitted.

        A year left with fewer than two of the requested individuals is
        dropped from the result, with a warning naming it.
        """
        wanted = set(ids)
        pairs = []
        dropped = []
        for year, scene in self._scenes.items():
            if sum(k in wanted for k in scene.ids) < 2:
                dropped.append(year)
                continue
            pairs.append((year, scene.subset(wanted)))
        if dropped:
            warnings.warn(
                f"years {dropped} keep fewer than 2 of the requested "
                f"individuals and were dropped",
                UserWarning,
                stacklevel=2,
            )
        return MultiYearScene(pairs)


def build_multi_year_scene(
    records: Records,
    columns: DimensionColumns,
    year_column: str = 'year',
    sort_years: bool = False,
    compat_model: Optional[Union[str, CompatModel]] = None,
) -> MultiYearScene:
    """Partition records by a year key and build one Scene per year.

    Each year is validated independently with build_scene().

    Args:
        records: Sequence of mappings or DataFrame holding every year.
        columns: Column roles shared by all years.
        year_column: Field holding the year label.
        sort_years: If True, order years by label; otherwise by first
            appearance in ``records``.
        compat_model: Optional declared breeding system.

    Raises:
        ValidationError: If a record lacks a year label, or any year fails
            validation. The error's ``year`` attribute names that year.
    """
    by_year: Dict[Hashable, List[Mapping]] = {}
    for row_no, record in enumerate(_as_records(records)):
        if year_column not in record or _is_missing(record[year_column]):
            raise ValidationError(f"record {row_no}: missing year column '{year_column}'")
        by_year.setdefault(record[year_column], []).append(record)

    years = sorted(by_year) if sort_years else list(by_year)
    pairs = []
    for year in years:
        try:
            pairs.append((year, build_scene(by_year[year], columns, compat_model)))
        except ValidationError as err:
            err.year = year
            raise
    return MultiYearScene(pairs)

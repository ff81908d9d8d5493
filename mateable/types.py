"""Core data types for mateable.

This module is the single source of truth for:
  - Method and model enumerations (SynchronyMethod, ProximityMethod,
    CompatibilityMethod, CompatModel, AverageType, Dimension)
  - The Dimensions capability struct carried by every Scene
  - Result objects handed to renderers (PotentialMatrix, PotentialResult)

All engines import these types from here. No other module defines method
names.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Hashable, List, Optional, Tuple

import numpy as np
import pandas as pd


# ═══════════════════════════════════════════════════════════════════════
# ENUMERATIONS
# ═══════════════════════════════════════════════════════════════════════

class Dimension(str, Enum):
    """Coordinate dimensions a scene may carry."""
    SPACE = 'space'
    TIME = 'time'
    COMPAT = 'compatibility'


class CompatModel(str, Enum):
    """Breeding system declared by a scene.

    NONE         : no compatibility coordinate
    SEX_BASED    : dioecy; each individual carries a sex code in {1, 2}
    SINGLE_LOCUS_SI: sporophytic self-incompatibility; each individual
                      carries two allele labels at one S-locus
    """
    NONE = 'none'
    SEX_BASED = 'sexBased'
    SINGLE_LOCUS_SI = 'singleLocusSI'


class SynchronyMethod(str, Enum):
    """Temporal synchrony indices (see synchrony.py for formulas)."""
    AUGSPURGER = 'augspurger'
    KEMPENAERS = 'kempenaers'
    OVERLAP = 'overlap'
    SYNC_PROP = 'sync_prop'
    SYNC_NN = 'sync_nn'
    SIMPLE1 = 'simple1'
    SIMPLE2 = 'simple2'
    SIMPLE3 = 'simple3'


class ProximityMethod(str, Enum):
    """Spatial proximity transforms of pairwise distance."""
    MAX_PROP = 'maxProp'
    MAX_PROP_SQRD = 'maxPropSqrd'


class CompatibilityMethod(str, Enum):
    """Pairwise compatibility rules."""
    DIOECIOUS = 'dioecious'
    SINGLE_LOCUS_SI = 'singleLocusSI'


class AverageType(str, Enum):
    """Population aggregate of individual values."""
    MEAN = 'mean'
    MEDIAN = 'median'


# Individual-first synchrony methods have no pairwise view
INDIVIDUAL_FIRST_METHODS = frozenset({
    SynchronyMethod.AUGSPURGER,
    SynchronyMethod.SYNC_PROP,
})

# Scene model each compatibility rule needs
REQUIRED_COMPAT_MODEL = {
    CompatibilityMethod.DIOECIOUS: CompatModel.SEX_BASED,
    CompatibilityMethod.SINGLE_LOCUS_SI: CompatModel.SINGLE_LOCUS_SI,
}

# Valid sex codes under CompatModel.SEX_BASED
SEX_CODES = (1, 2)


# ═══════════════════════════════════════════════════════════════════════
# CAPABILITY FLAGS
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Dimensions:
    """Which coordinate dimensions a scene carries."""
    has_space: bool = False
    has_time: bool = False
    has_compat: bool = False

    def has(self, dimension: Dimension) -> bool:
        return {
            Dimension.SPACE: self.has_space,
            Dimension.TIME: self.has_time,
            Dimension.COMPAT: self.has_compat,
        }[Dimension(dimension)]

    @property
    def active(self) -> Tuple[Dimension, ...]:
        """Active dimensions in canonical order (space, time, compat)."""
        return tuple(d for d in Dimension if self.has(d))


# ═══════════════════════════════════════════════════════════════════════
# RESULT OBJECTS
# ═══════════════════════════════════════════════════════════════════════

def _readonly(values: np.ndarray) -> np.ndarray:
    values = np.array(values, copy=True)
    values.setflags(write=False)
    return values


@dataclass(frozen=True, eq=False)
class PotentialMatrix:
    """Symmetric N×N matrix indexed by individual id.

    Attributes:
        ids: Row/column ids, in scene order.
        values: (N, N) float or bool array, read-only.
        compare_to_self: Diagonal policy. False means the diagonal holds
            0/False and self-pairs are left out of aggregates. True means the
            diagonal holds the self-referential value and self-pairs join
            aggregates.
    """
    ids: Tuple[Hashable, ...]
    values: np.ndarray
    compare_to_self: bool = False
    _index: dict = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        values = _readonly(self.values)
        n = len(self.ids)
        if values.shape != (n, n):
            raise ValueError(
                f"PotentialMatrix values must be ({n}, {n}), got {values.shape}"
            )
        object.__setattr__(self, 'ids', tuple(self.ids))
        object.__setattr__(self, 'values', values)
        object.__setattr__(self, '_index', {k: i for i, k in enumerate(self.ids)})

    def __len__(self) -> int:
        return len(self.ids)

    def __getitem__(self, pair: Tuple[Hashable, Hashable]) -> Any:
        """Value for an (id_i, id_j) pair."""
        id_i, id_j = pair
        return self.values[self._index[id_i], self._index[id_j]].item()

    def is_symmetric(self) -> bool:
        return bool(np.array_equal(self.values, self.values.T))

    def to_frame(self) -> pd.DataFrame:
        """Labelled copy of the matrix for renderers."""
        return pd.DataFrame(np.array(self.values), index=list(self.ids),
                            columns=list(self.ids))


@dataclass(frozen=True, eq=False)
class PotentialResult:
    """Output of one metric engine call.

    Three aligned views plus the metadata a renderer needs to label them.

    Attributes:
        method: Method or model name the values were computed with.
        dimension: Dimension the metric describes.
        ids: Individual ids, aligned with ``values``.
        values: (N,) individual-level values, read-only.
        population: Mean or median of ``values``.
        pairwise: Pairwise matrix, or None for individual-first methods.
        average_type: Aggregate used for ``population``.
        compare_to_self: Diagonal policy used by the engine.
        dimensions: Capability flags of the source scene.
    """
    method: str
    dimension: Dimension
    ids: Tuple[Hashable, ...]
    values: np.ndarray
    population: float
    pairwise: Optional[PotentialMatrix] = None
    average_type: AverageType = AverageType.MEAN
    compare_to_self: bool = False
    dimensions: Dimensions = field(default_factory=Dimensions)

    def __post_init__(self):
        object.__setattr__(self, 'ids', tuple(self.ids))
        object.__setattr__(self, 'values', _readonly(self.values))
        if len(self.ids) != len(self.values):
            raise ValueError(
                f"{len(self.ids)} ids but {len(self.values)} individual values"
            )

    @property
    def individual(self) -> List[Tuple[Hashable, float]]:
        """Ordered (id, value) sequence."""
        return [(k, float(v)) for k, v in zip(self.ids, self.values)]

    def to_series(self) -> pd.Series:
        return pd.Series(np.array(self.values), index=list(self.ids),
                         name=self.method)

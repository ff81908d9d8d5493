"""Configuration system for mateable.

Hierarchical YAML configuration with deep-merge support:
  base.yaml → override.yaml → programmatic overrides

Sections map 1:1 to YAML top-level keys. Every default lives on a
dataclass field; engines take explicit arguments, and a MateableConfig is
just a convenient way to carry a consistent set of them.

Example YAML:

    columns:
      id: plant
      x: easting
      y: northing
      start: first_day
      end: last_day
      s1: s_allele_1
      s2: s_allele_2
    analysis:
      average_type: median
    synchrony:
      method: kempenaers
"""

from __future__ import annotations

import copy
import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from mateable.errors import InvalidParameterError, ValidationError
from mateable.scene import DimensionColumns
from mateable.simulate import (
    DEFAULT_ALLELE_POOL_SIZE,
    DEFAULT_MEAN_DUR,
    DEFAULT_MEAN_SD,
    DEFAULT_RANGE,
    DEFAULT_SD_DUR,
    DEFAULT_SD_SD,
    DEFAULT_SIZE,
)
from mateable.types import (
    AverageType,
    CompatibilityMethod,
    ProximityMethod,
    SynchronyMethod,
)
from mateable.utils import parse_method


# ═══════════════════════════════════════════════════════════════════════
# CONFIGURATION DATACLASSES
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class ColumnsSection:
    """Record field names for identity, coordinates and year.

    Leave a group unset (None) when the data lack that dimension.
    """
    id: str = 'id'
    x: Optional[str] = 'x'
    y: Optional[str] = 'y'
    z: Optional[str] = None
    start: Optional[str] = 'start'
    end: Optional[str] = 'end'
    s1: Optional[str] = None
    s2: Optional[str] = None
    sex: Optional[str] = None
    year: str = 'year'

    def dimension_columns(self) -> DimensionColumns:
        return DimensionColumns(
            id=self.id, x=self.x, y=self.y, z=self.z,
            start=self.start, end=self.end,
            s1=self.s1, s2=self.s2, sex=self.sex,
        )


@dataclass
class AnalysisSection:
    """Aggregation settings shared by every engine."""
    average_type: str = AverageType.MEAN.value
    compare_to_self: bool = False


@dataclass
class SynchronySection:
    method: str = SynchronyMethod.AUGSPURGER.value


@dataclass
class ProximitySection:
    method: str = ProximityMethod.MAX_PROP_SQRD.value


@dataclass
class CompatibilitySection:
    """Compatibility rule.

    None picks the rule matching each scene's declared compat_model.
    """
    method: Optional[str] = None


@dataclass
class SimulationSection:
    """Scene simulator parameters (see simulate.simulate_scene)."""
    size: int = DEFAULT_SIZE
    mean_sd: float = DEFAULT_MEAN_SD
    sd_sd: float = DEFAULT_SD_SD
    mean_dur: float = DEFAULT_MEAN_DUR
    sd_dur: float = DEFAULT_SD_DUR
    x_range: Tuple[float, float] = DEFAULT_RANGE
    y_range: Tuple[float, float] = DEFAULT_RANGE
    allele_pool_size: int = DEFAULT_ALLELE_POOL_SIZE
    sex_coded: bool = False
    seed: Optional[int] = None

    def kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for simulate_scene()."""
        return dataclasses.asdict(self)


@dataclass
class MateableConfig:
    """Complete configuration.

    Load from YAML via `load_config()`.
    """
    columns: ColumnsSection = field(default_factory=ColumnsSection)
    analysis: AnalysisSection = field(default_factory=AnalysisSection)
    synchrony: SynchronySection = field(default_factory=SynchronySection)
    proximity: ProximitySection = field(default_factory=ProximitySection)
    compatibility: CompatibilitySection = field(default_factory=CompatibilitySection)
    simulation: SimulationSection = field(default_factory=SimulationSection)


_SECTION_MAP = {
    'columns': ColumnsSection,
    'analysis': AnalysisSection,
    'synchrony': SynchronySection,
    'proximity': ProximitySection,
    'compatibility': CompatibilitySection,
    'simulation': SimulationSection,
}


# ═══════════════════════════════════════════════════════════════════════
# YAML LOADING & MERGING
# ═══════════════════════════════════════════════════════════════════════

def deep_merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into base. Modifies base in place.

    - Dict values are merged recursively
    - Non-dict values are replaced
    - Keys in override but not base are added

    Args:
        base: Base dictionary (modified in place).
        override: Override dictionary.

    Returns:
        The merged base dictionary.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _dict_to_section(section_cls, data: Dict) -> Any:
    """Convert a dict to a dataclass, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(section_cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    return section_cls(**filtered)


def _yaml_to_config(data: Dict) -> MateableConfig:
    """Convert a merged YAML dict to a MateableConfig."""
    sections = {}
    for key, cls in _SECTION_MAP.items():
        if key in data and isinstance(data[key], dict):
            sections[key] = _dict_to_section(cls, data[key])
        else:
            sections[key] = cls()

    # YAML has no tuples
    sim = sections['simulation']
    for name in ('x_range', 'y_range'):
        value = getattr(sim, name)
        if isinstance(value, list):
            setattr(sim, name, tuple(value))

    return MateableConfig(**sections)


def validate_config(config: MateableConfig) -> None:
    """Validate configuration constraints.

    Checks:
      - Method and average-type names are known
      - Column groups are complete
      - Simulation parameters are in their domains

    Raises:
        UnknownMethodError: Unknown method or average type.
        ValidationError: Incomplete column group.
        InvalidParameterError: Simulation parameter out of domain.
    """
    parse_method(AverageType, config.analysis.average_type)
    parse_method(SynchronyMethod, config.synchrony.method)
    parse_method(ProximityMethod, config.proximity.method)
    if config.compatibility.method is not None:
        parse_method(CompatibilityMethod, config.compatibility.method)

    # Raises ValidationError on half-specified groups
    config.columns.dimension_columns()
    if not config.columns.year:
        raise ValidationError("columns.year must name a field")

    sim = config.simulation
    if sim.size < 2:
        raise InvalidParameterError(f"simulation.size must be >= 2, got {sim.size}")
    if sim.sd_sd < 0 or sim.sd_dur < 0:
        raise InvalidParameterError(
            f"simulation standard deviations must be >= 0, "
            f"got sd_sd={sim.sd_sd}, sd_dur={sim.sd_dur}"
        )
    for name in ('x_range', 'y_range'):
        bounds = getattr(sim, name)
        if len(bounds) != 2 or bounds[0] > bounds[1]:
            raise InvalidParameterError(
                f"simulation.{name} must be (min, max) with min <= max, got {bounds}"
            )
    if sim.allele_pool_size < 1:
        raise InvalidParameterError(
            f"simulation.allele_pool_size must be >= 1, got {sim.allele_pool_size}"
        )
    if sim.seed is not None and sim.seed < 0:
        raise InvalidParameterError("simulation.seed must be non-negative")


def load_config(
    base_path: Union[str, Path],
    override_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict] = None,
) -> MateableConfig:
    """Load and merge hierarchical YAML configuration.

    Merge order: base → override file → programmatic overrides.
    Each layer overrides only the fields it specifies.

    Args:
        base_path: Path to base configuration YAML.
        override_path: Optional override YAML (skipped if missing).
        overrides: Optional dict of overrides.

    Returns:
        Validated MateableConfig.

    Raises:
        FileNotFoundError: If base_path doesn't exist.
        MateableError: If validation fails.
    """
    base_path = Path(base_path)
    if not base_path.exists():
        raise FileNotFoundError(f"Config file not found: {base_path}")

    with open(base_path) as f:
        config_dict = yaml.safe_load(f) or {}

    if override_path is not None:
        override_path = Path(override_path)
        if override_path.exists():
            with open(override_path) as f:
                override = yaml.safe_load(f) or {}
            deep_merge(config_dict, override)

    if overrides is not None:
        deep_merge(config_dict, copy.deepcopy(overrides))

    config = _yaml_to_config(config_dict)
    validate_config(config)
    return config


def default_config() -> MateableConfig:
    """Return a MateableConfig with all default values."""
    config = MateableConfig()
    validate_config(config)
    return config

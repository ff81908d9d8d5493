"""mateable: mating potential in space, time and compatibility.

Quantifies the mating potential among members of a plant or animal
population from up to three coordinate dimensions:
  - Spatial location (proximity)
  - Reproductive-activity window, e.g. flowering or spawning days (synchrony)
  - Sex or self-incompatibility alleles (compatibility)

Each metric is available per pair, per individual and for the whole
population, for a single season (Scene) or an ordered run of seasons
(MultiYearScene). A simulator generates synthetic scenes for null-model
comparison.
"""

__version__ = "0.1.0"

from mateable.errors import (
    DimensionError,
    InvalidParameterError,
    MateableError,
    UnknownMethodError,
    ValidationError,
)
from mateable.types import (
    AverageType,
    CompatModel,
    CompatibilityMethod,
    Dimension,
    Dimensions,
    PotentialMatrix,
    PotentialResult,
    ProximityMethod,
    SynchronyMethod,
)
from mateable.scene import (
    DimensionColumns,
    MultiYearScene,
    Scene,
    build_multi_year_scene,
    build_scene,
)
from mateable.pairwise import (
    distance_matrix,
    nearest_neighbors,
    overlap_matrix,
    receptivity_by_day,
)
from mateable.synchrony import synchrony
from mateable.proximity import proximity
from mateable.compatibility import compatibility
from mateable.simulate import (
    simulate_from_summary,
    simulate_multi_year_scene,
    simulate_scene,
)
from mateable.summary import SceneSummary, summarize_scene
from mateable.multiyear import MultiYearResult, YearFailure, apply_multi_year
from mateable.potential import (
    mating_potential,
    multi_year_potential,
    scene_from_config,
    simulate_from_config,
)
from mateable.config import MateableConfig, default_config, load_config

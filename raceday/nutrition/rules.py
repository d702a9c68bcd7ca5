"""Scheduling rules.

Every timing and quantity constant used by the scheduler and the plan
validator lives in SchedulingRules. A rules instance is injected into both,
so alternate rule sets can be loaded from YAML and tested independently.
"""

from pathlib import Path

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from raceday.nutrition.enums import RacePhase, SpacingClass, SportType


class SchedulingRules(BaseModel):
    """Timing and quantity rules for event placement and validation.

    All durations are minutes; fractions are of total race duration.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Slot cadence
    slot_interval_min: dict[SportType, int] = Field(
        default_factory=lambda: {
            SportType.TRIATHLON: 20,
            SportType.BIKE: 18,
            SportType.RUN: 25,
        }
    )
    max_slot_shift_min: int = Field(default=8, ge=0)
    max_portions_per_intake: int = Field(default=2, ge=1)

    # Pre-race intake
    pre_race_lead_min: int = Field(default=15, ge=0)
    pre_race_min_duration_min: int = Field(default=60, ge=0)
    # Largest pre-race product, as a share of the total carb target
    pre_race_max_target_fraction: float = Field(default=0.25, ge=0.0, le=1.0)

    # Minimum spacing between events of the same spacing class
    min_gel_spacing_bike: int = Field(default=15, ge=0)
    min_gel_spacing_run: int = Field(default=20, ge=0)
    min_solid_spacing_bike: int = Field(default=25, ge=0)
    min_solid_spacing_run: int = Field(default=30, ge=0)
    min_drink_spacing: int = Field(default=12, ge=0)
    min_caffeine_spacing: int = Field(default=45, ge=0)

    # Clustering and caps
    cluster_window_min: int = Field(default=5, ge=0)
    max_intakes_per_hour: int = Field(default=4, ge=1)
    max_consecutive_same_product: int = Field(default=3, ge=1)

    # Blackout zones
    no_solids_before_t2_min: int = Field(default=15, ge=0)
    no_fueling_after_t2_min: int = Field(default=5, ge=0)
    no_solids_before_finish_min: int = Field(default=10, ge=0)

    # Carb distribution across triathlon phases
    triathlon_bike_carb_ratio: float = Field(default=0.70, ge=0.0, le=1.0)

    # Caffeine
    caffeine_windows: tuple[tuple[float, float], ...] = (
        (0.40, 0.55),
        (0.65, 0.80),
        (0.85, 0.95),
    )
    caffeine_start_hour: dict[SportType, float] = Field(
        default_factory=lambda: {
            SportType.TRIATHLON: 1.5,
            SportType.BIKE: 1.0,
            SportType.RUN: 1.5,
        }
    )
    preferred_caffeine_dose_mg: float = Field(default=75.0, gt=0)

    # Sips
    sip_interval_min: int = Field(default=10, ge=1)
    sip_volume_ml: float = Field(default=50.0, gt=0)
    min_sip_volume_ml: float = Field(default=20.0, ge=0)

    # Validator thresholds
    coverage_min_fraction: float = Field(default=0.85, ge=0.0, le=1.0)
    front_load_window_fraction: float = Field(default=0.25, ge=0.0, le=1.0)
    front_load_max_fraction: float = Field(default=0.40, ge=0.0, le=1.0)
    target_tolerance: float = Field(default=0.10, ge=0.0)
    diversity_max_share: float = Field(default=0.60, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_windows(self) -> "SchedulingRules":
        for start, end in self.caffeine_windows:
            if not 0.0 <= start <= end <= 1.0:
                raise ValueError(f"Invalid caffeine window ({start}, {end})")
        for sport in SportType:
            if sport not in self.slot_interval_min:
                raise ValueError(f"Missing slot interval for sport '{sport}'")
            if sport not in self.caffeine_start_hour:
                raise ValueError(f"Missing caffeine start hour for sport '{sport}'")
        return self

    def slot_interval(self, sport: SportType, override: int | None = None) -> int:
        """Return the solid-placement cadence for a sport, honouring an override."""
        if override is not None:
            return override
        return self.slot_interval_min[sport]

    def caffeine_start_min(self, sport: SportType) -> int:
        return int(round(self.caffeine_start_hour[sport] * 60))

    def min_spacing(self, spacing_class: SpacingClass, phase: RacePhase) -> int:
        """Minimum minutes between two events of a spacing class.

        Bike-phase values apply on the bike; run values apply elsewhere.
        """
        on_bike = phase == RacePhase.BIKE
        match spacing_class:
            case SpacingClass.GEL:
                return self.min_gel_spacing_bike if on_bike else self.min_gel_spacing_run
            case SpacingClass.SOLID_FOOD:
                return self.min_solid_spacing_bike if on_bike else self.min_solid_spacing_run
            case SpacingClass.DRINK:
                return self.min_drink_spacing


DEFAULT_RULES = SchedulingRules()


def load_rules(path: str | Path) -> SchedulingRules:
    """Load scheduling rules from a YAML file.

    Keys missing from the file keep their default values.

    Args:
        path: Path to the YAML file

    Returns:
        Validated SchedulingRules

    Raises:
        ValueError: If the file is missing, is not a mapping, or holds invalid values
    """
    rules_path = Path(path)
    if not rules_path.exists():
        raise ValueError(f"Rules file not found: {rules_path}")

    with rules_path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Rules file must contain a mapping: {rules_path}")

    try:
        rules = SchedulingRules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid scheduling rules in {rules_path}: {e}") from e

    logger.info("Loaded scheduling rules", path=str(rules_path), overrides=sorted(data))
    return rules

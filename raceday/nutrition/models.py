"""Core immutable data models for race nutrition planning.

This module defines the canonical data structures that represent:
- Race and athlete inputs
- Products and their physical properties
- Nutrition targets (hourly, total and per phase)
- The scheduled intake events and the assembled plan

All models are frozen (immutable); a fresh set is built for every
planning call.
"""

from dataclasses import dataclass, field

from raceday.nutrition.enums import (
    IntensityLevel,
    ProductClass,
    ProductTexture,
    RacePhase,
    SpacingClass,
    SportType,
    TemperatureCondition,
)

# Carbohydrate concentration range (g per 100 ml) treated as isotonic
ISOTONIC_MIN_PERCENT = 6.0
ISOTONIC_MAX_PERCENT = 8.0


# -----------------------------
# Inputs
# -----------------------------
@dataclass(frozen=True)
class AthleteProfile:
    """Athlete characteristics.

    Attributes:
        weight_kg: Body weight in kilograms (0 < w <= 250)
    """

    weight_kg: float


@dataclass(frozen=True)
class RaceProfile:
    """Race or training session characteristics.

    Attributes:
        sport: Sport type
        duration_hours: Expected duration in hours (0 < d <= 24)
        temperature: Temperature bucket
        intensity: Expected effort
        temperature_c: Raw temperature in °C, when known
    """

    sport: SportType
    duration_hours: float
    temperature: TemperatureCondition
    intensity: IntensityLevel
    temperature_c: float | None = None

    @property
    def duration_minutes(self) -> int:
        return int(round(self.duration_hours * 60))


def _default_texture(product_class: ProductClass) -> ProductTexture:
    match product_class:
        case ProductClass.GEL:
            return ProductTexture.GEL
        case ProductClass.DRINK:
            return ProductTexture.LIQUID
        case ProductClass.BAR:
            return ProductTexture.BAKE
        case ProductClass.CHEW:
            return ProductTexture.CHEW


@dataclass(frozen=True)
class Product:
    """A nutrition product available to the planner.

    Attributes:
        name: Product name (unique within a product list)
        product_class: gel, drink, bar or chew
        carbs_g: Carbohydrates per portion
        sodium_mg: Sodium per portion
        volume_ml: Volume per portion (drinks; gels may carry a small volume)
        caffeine_mg: Caffeine per portion, None when caffeine-free
        texture: Physical format; derived from the class when omitted
        brand: Brand name, informational only
    """

    name: str
    product_class: ProductClass
    carbs_g: float
    sodium_mg: float = 0.0
    volume_ml: float = 0.0
    caffeine_mg: float | None = None
    texture: ProductTexture | None = None
    brand: str | None = None

    def __post_init__(self) -> None:
        if self.texture is None:
            object.__setattr__(self, "texture", _default_texture(self.product_class))

    @property
    def has_caffeine(self) -> bool:
        return bool(self.caffeine_mg) and self.caffeine_mg > 0

    @property
    def caffeine(self) -> float:
        return self.caffeine_mg if self.has_caffeine else 0.0

    @property
    def is_drink(self) -> bool:
        return self.product_class == ProductClass.DRINK

    @property
    def is_solid(self) -> bool:
        """True for anything eaten rather than drunk (gels, bars, chews)."""
        return not self.is_drink

    @property
    def spacing_class(self) -> SpacingClass:
        match self.product_class:
            case ProductClass.GEL:
                return SpacingClass.GEL
            case ProductClass.BAR | ProductClass.CHEW:
                return SpacingClass.SOLID_FOOD
            case ProductClass.DRINK:
                return SpacingClass.DRINK

    @property
    def is_isotonic(self) -> bool:
        if self.volume_ml <= 0:
            return False
        carb_percent = self.carbs_g / self.volume_ml * 100
        return ISOTONIC_MIN_PERCENT <= carb_percent <= ISOTONIC_MAX_PERCENT


# -----------------------------
# Targets
# -----------------------------
@dataclass(frozen=True)
class PhaseSegment:
    """A contiguous race phase on the minute timeline.

    Attributes:
        phase: Race phase
        start_min: First minute of the phase (inclusive)
        end_min: Last minute of the phase (exclusive)
    """

    phase: RacePhase
    start_min: int
    end_min: int

    @property
    def duration_min(self) -> int:
        return self.end_min - self.start_min

    @property
    def is_fuelable(self) -> bool:
        return self.phase != RacePhase.SWIM

    def contains(self, time_min: float) -> bool:
        return self.start_min <= time_min < self.end_min


@dataclass(frozen=True)
class PhaseTargets:
    """Phase-specific nutrition targets.

    Attributes:
        carbs_g: Carbohydrates to deliver during the phase
        sodium_mg: Sodium to deliver during the phase
        fluid_ml: Fluid to deliver during the phase
        duration_min: Phase length in minutes
    """

    carbs_g: float
    sodium_mg: float
    fluid_ml: float
    duration_min: int


@dataclass(frozen=True)
class NutritionTargets:
    """Hourly and total targets for one race.

    Attributes:
        carbs_per_hour: Carbohydrate target (g/h)
        fluids_per_hour: Fluid target (ml/h)
        sodium_per_hour: Sodium target (mg/h)
        total_carbs_g: Carbohydrate target for the whole race
        total_fluids_ml: Fluid target for the whole race
        total_sodium_mg: Sodium target for the whole race
        caffeine_ceiling_mg: Maximum cumulative caffeine for this athlete and intensity
        caffeine_enabled: Whether caffeine may be scheduled at all
        phase_targets: Optional per-phase breakdown
    """

    carbs_per_hour: float
    fluids_per_hour: float
    sodium_per_hour: float
    total_carbs_g: float
    total_fluids_ml: float
    total_sodium_mg: float
    caffeine_ceiling_mg: float
    caffeine_enabled: bool = False
    phase_targets: dict[RacePhase, PhaseTargets] = field(default_factory=dict)

    @property
    def caffeine_target_mg(self) -> float:
        return self.caffeine_ceiling_mg if self.caffeine_enabled else 0.0


# -----------------------------
# Schedule
# -----------------------------
@dataclass(frozen=True)
class NutritionEvent:
    """A single scheduled intake.

    Attributes:
        time_min: Minutes from race start (negative = before the start)
        phase: Race phase the intake falls in
        product: Product consumed
        portions: Portions consumed (fractional for sips)
        action: Human-readable action ("Squeeze", "Sip", "Chew", ...)
        carbs_g: Carbohydrates delivered by this event
        caffeine_mg: Caffeine delivered by this event
        sodium_mg: Sodium delivered by this event
        fluid_ml: Fluid delivered by this event
        total_carbs_so_far: Cumulative carbohydrates including this event
        total_caffeine_so_far: Cumulative caffeine including this event
        sip_ml: Volume of a sip event, None for full-portion events
    """

    time_min: int
    phase: RacePhase
    product: Product
    portions: float
    action: str
    carbs_g: float
    caffeine_mg: float
    sodium_mg: float
    fluid_ml: float
    total_carbs_so_far: float
    total_caffeine_so_far: float
    sip_ml: float | None = None

    @property
    def is_sip(self) -> bool:
        return self.sip_ml is not None

    @property
    def product_name(self) -> str:
        return self.product.name

    @property
    def has_caffeine(self) -> bool:
        return self.caffeine_mg > 0


@dataclass(frozen=True)
class PlanResult:
    """Ordered schedule with validator diagnostics."""

    events: list[NutritionEvent]
    warnings: list[str]
    errors: list[str]

    @property
    def is_usable(self) -> bool:
        return not self.errors


# -----------------------------
# Assembled Plan
# -----------------------------
@dataclass(frozen=True)
class ShoppingItem:
    """Shopping summary line for one product.

    Attributes:
        product_name: Product name
        total_portions: Portions needed for the race (sips add fractional portions)
        total_carbs_g: Carbohydrates delivered by this product
    """

    product_name: str
    total_portions: float
    total_carbs_g: float


@dataclass(frozen=True)
class ShoppingSummary:
    """Products to buy, grouped by product name."""

    items: list[ShoppingItem]
    total_product_count: int
    total_carbs_g: float


@dataclass(frozen=True)
class NutritionTotals:
    """Totals delivered by the schedule."""

    carbs_g: float
    fluids_ml: float
    sodium_mg: float
    caffeine_mg: float


@dataclass(frozen=True)
class NutritionPlan:
    """Complete race nutrition plan.

    Attributes:
        race: Race profile used for calculation
        athlete: Athlete profile used for calculation
        targets: Hourly and total targets
        phases: Phase timeline
        events: Time-ordered intake schedule
        totals: Nutrients delivered by the schedule
        shopping: Shopping summary
        warnings: Non-blocking validator findings
        errors: Blocking validator findings
    """

    race: RaceProfile
    athlete: AthleteProfile
    targets: NutritionTargets
    phases: list[PhaseSegment]
    events: list[NutritionEvent]
    totals: NutritionTotals
    shopping: ShoppingSummary
    warnings: list[str]
    errors: list[str]

    @property
    def is_usable(self) -> bool:
        return not self.errors

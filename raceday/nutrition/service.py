"""Planning service.

Orchestrates validation → targets → scheduling → validation → assembly.

generate_plan raises on invalid input and missing products. try_generate_plan
and plan_from_request return a PlanOutcome instead, so callers can branch on
expected failures without exception handling. SchedulingInvariantError is a
defect and always propagates.
"""

from dataclasses import dataclass
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field

from raceday.catalog.models import ProductFilter
from raceday.catalog.repository import DEFAULT_DATA_DIR, CatalogProvider, ProductCatalog, to_products
from raceday.config.settings import settings
from raceday.nutrition.assembler import assemble_plan
from raceday.nutrition.enums import IntensityLevel, ProductClass, ProductTexture, SportType
from raceday.nutrition.errors import MissingProductError, ValidationError
from raceday.nutrition.models import AthleteProfile, NutritionPlan, PlanResult, Product, RaceProfile
from raceday.nutrition.plan_validator import validate_schedule
from raceday.nutrition.rules import DEFAULT_RULES, SchedulingRules, load_rules
from raceday.nutrition.scheduler import EventScheduler
from raceday.nutrition.targets import calculate_targets
from raceday.nutrition.timeline import build_timeline
from raceday.nutrition.validation import (
    temperature_condition_from_celsius,
    validate_athlete_profile,
    validate_interval,
    validate_products,
    validate_race_profile,
)

# Product types a runner does not carry when products come from the catalogue
RUN_EXCLUDED_TYPES = ("drink", "recovery")


@dataclass(frozen=True)
class PlanOutcome:
    """Result of a planning request.

    Attributes:
        status: OK (usable plan), REJECTED (plan has validator errors),
            INVALID_INPUT or MISSING_PRODUCT
        plan: The computed plan (OK and REJECTED only)
        error: Error message (all statuses except OK)
        field: Offending input field (INVALID_INPUT only)
        product_class: Missing product class (MISSING_PRODUCT only)
    """

    status: Literal["OK", "REJECTED", "INVALID_INPUT", "MISSING_PRODUCT"]
    plan: NutritionPlan | None = None
    error: str | None = None
    field: str | None = None
    product_class: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "OK"


class ProductInput(BaseModel):
    """Product supplied explicitly with a request."""

    name: str
    product_class: ProductClass
    carbs_g: float
    sodium_mg: float = 0.0
    volume_ml: float = 0.0
    caffeine_mg: float | None = None
    texture: ProductTexture | None = None

    def to_product(self) -> Product:
        return Product(
            name=self.name,
            product_class=self.product_class,
            carbs_g=self.carbs_g,
            sodium_mg=self.sodium_mg,
            volume_ml=self.volume_ml,
            caffeine_mg=self.caffeine_mg,
            texture=self.texture,
        )


class PlanRequest(BaseModel):
    """Parameters of a planning request.

    Ranges are checked by the planner itself so that failures carry the
    offending field; the model only enforces types.
    """

    weight_kg: float
    sport: SportType
    duration_hours: float
    temperature_c: float = 20.0
    intensity: IntensityLevel
    caffeine_enabled: bool = False
    interval_min: int | None = Field(default=None, description="Custom slot interval (1-120 min)")
    products: list[ProductInput] | None = Field(
        default=None, description="Explicit products; when omitted the catalogue filter is used"
    )
    product_filter: ProductFilter | None = None
    advanced: bool | None = Field(default=None, description="Per-kg carb targets; None uses the configured default")


def default_rules() -> SchedulingRules:
    """Scheduling rules from RACEDAY_RULES_FILE, or the built-in defaults."""
    if settings.rules_file:
        return load_rules(settings.rules_file)
    return DEFAULT_RULES


def default_provider() -> CatalogProvider:
    """Catalogue provider for RACEDAY_CATALOG_DIR, or the packaged catalogue."""
    return CatalogProvider(settings.catalog_dir or DEFAULT_DATA_DIR)


def build_race_profile(
    sport: SportType,
    duration_hours: float,
    temperature_c: float,
    intensity: IntensityLevel,
) -> RaceProfile:
    """Build a race profile from a raw temperature (≤5 °C cold, ≥25 °C hot)."""
    return RaceProfile(
        sport=sport,
        duration_hours=duration_hours,
        temperature=temperature_condition_from_celsius(temperature_c),
        intensity=intensity,
        temperature_c=temperature_c,
    )


def generate_plan(
    race: RaceProfile,
    athlete: AthleteProfile,
    products: list[Product],
    caffeine_enabled: bool = False,
    interval_min: int | None = None,
    advanced: bool = False,
    rules: SchedulingRules = DEFAULT_RULES,
) -> NutritionPlan:
    """Generate a complete nutrition plan.

    Args:
        race: Race profile
        athlete: Athlete profile
        products: Products available for the race
        caffeine_enabled: Whether caffeine may be scheduled
        interval_min: Custom slot interval in minutes
        advanced: Use per-kg carbohydrate targets
        rules: Scheduling rules

    Returns:
        NutritionPlan, usable iff it carries no validator errors

    Raises:
        ValidationError: If an input is out of range
        MissingProductError: If a mandatory product class is absent
        SchedulingInvariantError: If the scheduler breaks an internal invariant
    """
    validate_race_profile(race)
    validate_athlete_profile(athlete)
    validate_interval(interval_min)
    validate_products(products)

    logger.info(
        "Generating nutrition plan",
        sport=race.sport.value,
        duration_hours=race.duration_hours,
        intensity=race.intensity.value,
        temperature=race.temperature.value,
        product_count=len(products),
        caffeine_enabled=caffeine_enabled,
    )

    targets = calculate_targets(race, athlete, caffeine_enabled=caffeine_enabled, advanced=advanced, rules=rules)
    events = EventScheduler(rules).schedule(race, athlete, targets, products, interval_override=interval_min)

    segments = build_timeline(race.sport, race.duration_hours)
    interval = rules.slot_interval(race.sport, interval_min)
    warnings, errors = validate_schedule(events, targets, segments, rules, interval, products=products)

    plan = assemble_plan(race, athlete, targets, segments, PlanResult(events=events, warnings=warnings, errors=errors))
    logger.info(
        "Nutrition plan generated",
        event_count=len(plan.events),
        total_carbs_g=round(plan.totals.carbs_g, 1),
        target_carbs_g=round(targets.total_carbs_g, 1),
        warning_count=len(warnings),
        error_count=len(errors),
    )
    return plan


def try_generate_plan(
    race: RaceProfile,
    athlete: AthleteProfile,
    products: list[Product],
    caffeine_enabled: bool = False,
    interval_min: int | None = None,
    advanced: bool = False,
    rules: SchedulingRules = DEFAULT_RULES,
) -> PlanOutcome:
    """Same as generate_plan, returning expected failures as a PlanOutcome."""
    try:
        plan = generate_plan(
            race,
            athlete,
            products,
            caffeine_enabled=caffeine_enabled,
            interval_min=interval_min,
            advanced=advanced,
            rules=rules,
        )
    except ValidationError as e:
        logger.warning("Plan request rejected: invalid input", field=e.field, error=str(e))
        return PlanOutcome(status="INVALID_INPUT", error=str(e), field=e.field)
    except MissingProductError as e:
        logger.warning("Plan request rejected: missing product", product_class=e.product_class)
        return PlanOutcome(status="MISSING_PRODUCT", error=str(e), product_class=e.product_class)

    if plan.errors:
        return PlanOutcome(status="REJECTED", plan=plan, error="; ".join(plan.errors))
    return PlanOutcome(status="OK", plan=plan)


def resolve_products(request: PlanRequest, catalog: ProductCatalog) -> list[Product]:
    """Products for a request: the explicit list, or the filtered catalogue.

    Catalogue-based running plans never include drinks or recovery products.
    """
    if request.products is not None:
        return [p.to_product() for p in request.products]

    product_filter = request.product_filter or ProductFilter()
    if request.sport == SportType.RUN:
        product_filter = product_filter.excluding(*RUN_EXCLUDED_TYPES)
    return to_products(catalog.filtered(product_filter))


def plan_from_request(
    request: PlanRequest,
    provider: CatalogProvider | None = None,
    rules: SchedulingRules | None = None,
) -> PlanOutcome:
    """Turn a request into a plan outcome.

    Raises:
        CatalogError: If catalogue data cannot be loaded
        SchedulingInvariantError: If the scheduler breaks an internal invariant
    """
    try:
        race = build_race_profile(request.sport, request.duration_hours, request.temperature_c, request.intensity)
    except ValidationError as e:
        logger.warning("Plan request rejected: invalid input", field=e.field, error=str(e))
        return PlanOutcome(status="INVALID_INPUT", error=str(e), field=e.field)

    if request.products is not None:
        products = resolve_products(request, ProductCatalog([]))
    else:
        products = resolve_products(request, (provider or default_provider()).products())

    advanced = settings.advanced_targets if request.advanced is None else request.advanced
    return try_generate_plan(
        race,
        AthleteProfile(weight_kg=request.weight_kg),
        products,
        caffeine_enabled=request.caffeine_enabled,
        interval_min=request.interval_min,
        advanced=advanced,
        rules=rules or default_rules(),
    )

"""Tests for the planning service: outcomes, product resolution, scenarios."""

import math

import pytest

from raceday.catalog.models import ProductFilter
from raceday.catalog.repository import CatalogProvider
from raceday.nutrition import service
from raceday.nutrition.enums import (
    IntensityLevel,
    ProductClass,
    SportType,
    TemperatureCondition,
)
from raceday.nutrition.errors import MissingProductError, SchedulingInvariantError, ValidationError
from raceday.nutrition.models import AthleteProfile, Product, RaceProfile
from raceday.nutrition.plan_validator import CheckCode
from raceday.nutrition.rules import DEFAULT_RULES
from raceday.nutrition.service import (
    PlanRequest,
    ProductInput,
    build_race_profile,
    generate_plan,
    plan_from_request,
    resolve_products,
    try_generate_plan,
)


def test_scenario_a_plan(scenario_a_race: RaceProfile, heavy_athlete: AthleteProfile, gel: Product, drink: Product) -> None:
    plan = generate_plan(scenario_a_race, heavy_athlete, [gel, drink])

    assert plan.targets.carbs_per_hour == 70
    assert plan.targets.fluids_per_hour == 550
    assert plan.targets.sodium_per_hour == 500
    assert plan.events
    assert plan.events[-1].total_carbs_so_far == pytest.approx(315, rel=0.10)
    assert plan.totals.carbs_g == pytest.approx(plan.events[-1].total_carbs_so_far)
    assert plan.errors == []
    assert plan.is_usable
    assert {item.product_name for item in plan.shopping.items} == {gel.name, drink.name}


def test_scenario_b_duration_too_long(heavy_athlete: AthleteProfile, gel: Product, drink: Product) -> None:
    race = RaceProfile(
        sport=SportType.TRIATHLON,
        duration_hours=25,
        temperature=TemperatureCondition.MODERATE,
        intensity=IntensityLevel.MODERATE,
    )
    with pytest.raises(ValidationError, match="duration_hours"):
        generate_plan(race, heavy_athlete, [gel, drink])

    outcome = try_generate_plan(race, heavy_athlete, [gel, drink])
    assert outcome.status == "INVALID_INPUT"
    assert outcome.field == "duration_hours"
    assert outcome.plan is None


def test_scenario_c_no_products(scenario_a_race: RaceProfile, heavy_athlete: AthleteProfile) -> None:
    with pytest.raises(MissingProductError, match="gel"):
        generate_plan(scenario_a_race, heavy_athlete, [])

    outcome = try_generate_plan(scenario_a_race, heavy_athlete, [])
    assert outcome.status == "MISSING_PRODUCT"
    assert outcome.product_class == "gel"


def test_scenario_d_run_without_drinks() -> None:
    """A catalogue-based run plan excludes drinks and recovery products and still generates."""
    request = PlanRequest(
        weight_kg=70,
        sport=SportType.RUN,
        duration_hours=3.0,
        temperature_c=15,
        intensity=IntensityLevel.MODERATE,
        product_filter=ProductFilter(exclude_types=("drink", "recovery")),
    )
    outcome = plan_from_request(request, provider=CatalogProvider())

    assert outcome.status == "OK"
    assert outcome.plan is not None
    assert outcome.plan.events
    assert not any(e.product.is_drink for e in outcome.plan.events)


def test_run_filter_always_excludes_drinks() -> None:
    request = PlanRequest(
        weight_kg=70,
        sport=SportType.RUN,
        duration_hours=2.0,
        intensity=IntensityLevel.MODERATE,
        product_filter=ProductFilter(brand="SiS"),
    )
    products = resolve_products(request, CatalogProvider().products())

    assert products
    assert all(p.brand == "SiS" for p in products)
    assert not any(p.product_class == ProductClass.DRINK for p in products)


def test_bike_filter_keeps_drinks_and_skips_recovery() -> None:
    request = PlanRequest(weight_kg=70, sport=SportType.BIKE, duration_hours=4.0, intensity=IntensityLevel.HARD)
    products = resolve_products(request, CatalogProvider().products())

    assert any(p.product_class == ProductClass.DRINK for p in products)
    assert not any("Recovery" in p.name for p in products)


def test_explicit_products_used_as_given(gel: Product) -> None:
    request = PlanRequest(
        weight_kg=70,
        sport=SportType.RUN,
        duration_hours=2.0,
        intensity=IntensityLevel.EASY,
        products=[ProductInput(name="Energy Gel", product_class=ProductClass.GEL, carbs_g=25, sodium_mg=100)],
    )
    products = resolve_products(request, CatalogProvider().products())
    assert products == [gel]


def test_request_with_caffeine(gel: Product, drink: Product) -> None:
    request = PlanRequest(
        weight_kg=75,
        sport=SportType.BIKE,
        duration_hours=4.0,
        temperature_c=28,
        intensity=IntensityLevel.HARD,
        caffeine_enabled=True,
        products=[
            ProductInput(name="Energy Gel", product_class=ProductClass.GEL, carbs_g=25, sodium_mg=100),
            ProductInput(name="Caffeine Gel", product_class=ProductClass.GEL, carbs_g=25, caffeine_mg=75),
            ProductInput(name="Electrolyte Drink", product_class=ProductClass.DRINK, carbs_g=30, sodium_mg=300, volume_ml=500),
        ],
    )
    outcome = plan_from_request(request, provider=CatalogProvider())

    assert outcome.status == "OK"
    assert outcome.plan.race.temperature == TemperatureCondition.HOT
    assert 0 < outcome.plan.totals.caffeine_mg <= outcome.plan.targets.caffeine_ceiling_mg


def test_request_temperature_out_of_range() -> None:
    request = PlanRequest(
        weight_kg=70,
        sport=SportType.RUN,
        duration_hours=2.0,
        temperature_c=60,
        intensity=IntensityLevel.EASY,
    )
    outcome = plan_from_request(request, provider=CatalogProvider())
    assert outcome.status == "INVALID_INPUT"
    assert outcome.field == "temperature_c"


def test_request_interval_out_of_range() -> None:
    request = PlanRequest(
        weight_kg=70,
        sport=SportType.RUN,
        duration_hours=2.0,
        intensity=IntensityLevel.EASY,
        interval_min=200,
    )
    outcome = plan_from_request(request, provider=CatalogProvider())
    assert outcome.status == "INVALID_INPUT"
    assert outcome.field == "interval_min"


def test_request_missing_drink_for_bike() -> None:
    request = PlanRequest(
        weight_kg=70,
        sport=SportType.BIKE,
        duration_hours=3.0,
        intensity=IntensityLevel.MODERATE,
        product_filter=ProductFilter(exclude_types=("drink",)),
    )
    outcome = plan_from_request(request, provider=CatalogProvider())
    assert outcome.status == "MISSING_PRODUCT"
    assert outcome.product_class == "drink"


@pytest.mark.parametrize(
    ("celsius", "expected"),
    [(0, TemperatureCondition.COLD), (15, TemperatureCondition.MODERATE), (30, TemperatureCondition.HOT)],
)
def test_build_race_profile(celsius: float, expected: TemperatureCondition) -> None:
    race = build_race_profile(SportType.BIKE, 3.0, celsius, IntensityLevel.MODERATE)
    assert race.temperature == expected
    assert race.temperature_c == celsius


def test_validator_errors_reject_plan(
    monkeypatch: pytest.MonkeyPatch, run_race: RaceProfile, athlete: AthleteProfile, gel: Product
) -> None:
    monkeypatch.setattr(service, "validate_schedule", lambda *args, **kwargs: ([], ["HOURLY_CAP: hour 1 has 5 intakes"]))
    outcome = try_generate_plan(run_race, athlete, [gel])

    assert outcome.status == "REJECTED"
    assert outcome.plan is not None
    assert not outcome.plan.is_usable
    assert "HOURLY_CAP" in outcome.error


def test_invariant_errors_propagate(
    monkeypatch: pytest.MonkeyPatch, run_race: RaceProfile, athlete: AthleteProfile, gel: Product
) -> None:
    def broken(*args: object, **kwargs: object) -> list:
        raise SchedulingInvariantError("caffeine ceiling exceeded")

    monkeypatch.setattr(service.EventScheduler, "schedule", broken)
    with pytest.raises(SchedulingInvariantError):
        try_generate_plan(run_race, athlete, [gel])


def test_advanced_targets_from_request(gel: Product) -> None:
    request = PlanRequest(
        weight_kg=60,
        sport=SportType.RUN,
        duration_hours=2.0,
        intensity=IntensityLevel.MODERATE,
        advanced=True,
        products=[ProductInput(name="Energy Gel", product_class=ProductClass.GEL, carbs_g=25, sodium_mg=100)],
    )
    outcome = plan_from_request(request, provider=CatalogProvider())
    assert outcome.plan is not None
    assert outcome.plan.targets.carbs_per_hour == pytest.approx(72)


@pytest.mark.parametrize(
    ("field", "overrides"),
    [
        ("weight_kg", {"weight_kg": math.nan}),
        ("duration_hours", {"duration_hours": math.nan}),
        ("duration_hours", {"duration_hours": math.inf}),
        ("temperature_c", {"temperature_c": math.nan}),
    ],
)
def test_non_finite_request_values_rejected(field: str, overrides: dict) -> None:
    values = {
        "weight_kg": 70,
        "sport": SportType.BIKE,
        "duration_hours": 4.0,
        "intensity": IntensityLevel.HARD,
        "caffeine_enabled": True,
    }
    outcome = plan_from_request(PlanRequest(**(values | overrides)), provider=CatalogProvider())

    assert outcome.status == "INVALID_INPUT"
    assert outcome.field == field
    assert outcome.plan is None


@pytest.mark.parametrize("sport", [SportType.RUN, SportType.BIKE])
@pytest.mark.parametrize("duration", [1.5, 2.0, 2.5, 3.0])
@pytest.mark.parametrize("intensity", list(IntensityLevel))
def test_short_catalogue_races_not_front_loaded(
    sport: SportType, duration: float, intensity: IntensityLevel
) -> None:
    request = PlanRequest(weight_kg=70, sport=sport, duration_hours=duration, intensity=intensity, advanced=False)
    outcome = plan_from_request(request, provider=CatalogProvider(), rules=DEFAULT_RULES)

    assert outcome.plan is not None
    assert not [w for w in outcome.plan.warnings if w.startswith(CheckCode.FRONT_LOADED)]


def test_pre_race_intake_sized_to_target() -> None:
    """A 1h easy run (50 g) has no product small enough for a pre-race intake."""
    request = PlanRequest(weight_kg=70, sport=SportType.RUN, duration_hours=1.0, intensity=IntensityLevel.EASY, advanced=False)
    outcome = plan_from_request(request, provider=CatalogProvider(), rules=DEFAULT_RULES)

    assert outcome.plan is not None
    assert all(e.time_min >= 0 for e in outcome.plan.events)
    assert outcome.plan.totals.carbs_g <= outcome.plan.targets.total_carbs_g


def test_short_hard_run_meets_carb_target() -> None:
    """The last slot of a 1h run falls in the finish blackout and moves before it."""
    request = PlanRequest(weight_kg=70, sport=SportType.RUN, duration_hours=1.0, intensity=IntensityLevel.HARD, advanced=False)
    outcome = plan_from_request(request, provider=CatalogProvider(), rules=DEFAULT_RULES)

    plan = outcome.plan
    assert plan is not None
    assert plan.targets.total_carbs_g == 90
    deviation = abs(plan.totals.carbs_g - 90) / 90
    assert deviation <= DEFAULT_RULES.target_tolerance
    assert not [w for w in plan.warnings if w.startswith(CheckCode.CARB_TARGET_MISS)]
    in_race = [e.time_min for e in plan.events if e.time_min >= 0]
    assert max(in_race) < 50

"""Root conftest for all tests.

Shared products, profiles and an event builder for hand-made schedules.
"""

from collections.abc import Callable

import pytest

from raceday.nutrition.enums import (
    IntensityLevel,
    ProductClass,
    RacePhase,
    SportType,
    TemperatureCondition,
)
from raceday.nutrition.models import (
    AthleteProfile,
    NutritionEvent,
    NutritionTargets,
    Product,
    RaceProfile,
)
from raceday.nutrition.selection import action_label

EventEntry = tuple[int, Product, RacePhase] | tuple[int, Product, RacePhase, float | None]


@pytest.fixture
def gel() -> Product:
    return Product(name="Energy Gel", product_class=ProductClass.GEL, carbs_g=25, sodium_mg=100)


@pytest.fixture
def drink() -> Product:
    return Product(
        name="Electrolyte Drink",
        product_class=ProductClass.DRINK,
        carbs_g=30,
        sodium_mg=300,
        volume_ml=500,
    )


@pytest.fixture
def bar() -> Product:
    return Product(name="Oat Bar", product_class=ProductClass.BAR, carbs_g=40, sodium_mg=80)


@pytest.fixture
def chew() -> Product:
    return Product(name="Energy Chews", product_class=ProductClass.CHEW, carbs_g=30, sodium_mg=50)


@pytest.fixture
def caffeine_gel() -> Product:
    return Product(
        name="Caffeine Gel",
        product_class=ProductClass.GEL,
        carbs_g=25,
        sodium_mg=50,
        caffeine_mg=100,
    )


@pytest.fixture
def scenario_a_race() -> RaceProfile:
    """4.5h triathlon in moderate conditions at moderate effort."""
    return RaceProfile(
        sport=SportType.TRIATHLON,
        duration_hours=4.5,
        temperature=TemperatureCondition.MODERATE,
        intensity=IntensityLevel.MODERATE,
    )


@pytest.fixture
def heavy_athlete() -> AthleteProfile:
    return AthleteProfile(weight_kg=90)


@pytest.fixture
def athlete() -> AthleteProfile:
    return AthleteProfile(weight_kg=70)


@pytest.fixture
def run_race() -> RaceProfile:
    """3h run in moderate conditions at moderate effort."""
    return RaceProfile(
        sport=SportType.RUN,
        duration_hours=3.0,
        temperature=TemperatureCondition.MODERATE,
        intensity=IntensityLevel.MODERATE,
    )


@pytest.fixture
def simple_targets() -> NutritionTargets:
    """Targets for a 3h run at 70 g/h with a 210 mg caffeine ceiling, caffeine enabled."""
    return NutritionTargets(
        carbs_per_hour=70,
        fluids_per_hour=500,
        sodium_per_hour=400,
        total_carbs_g=210,
        total_fluids_ml=1500,
        total_sodium_mg=1200,
        caffeine_ceiling_mg=210,
        caffeine_enabled=True,
    )


@pytest.fixture
def make_events() -> Callable[[list[EventEntry]], list[NutritionEvent]]:
    """Build events from (time, product, phase[, sip_ml]) entries, in the given order.

    Full-portion events take one portion; sip events take sip_ml / volume.
    Cumulative totals follow the given order.
    """

    def _make(entries: list[EventEntry]) -> list[NutritionEvent]:
        events: list[NutritionEvent] = []
        carbs = 0.0
        caffeine = 0.0
        for entry in entries:
            time_min, product, phase = entry[0], entry[1], entry[2]
            sip_ml = entry[3] if len(entry) > 3 else None
            portions = sip_ml / product.volume_ml if sip_ml is not None else 1.0
            carbs += product.carbs_g * portions
            caffeine += product.caffeine * portions
            events.append(
                NutritionEvent(
                    time_min=time_min,
                    phase=phase,
                    product=product,
                    portions=portions,
                    action=action_label(product, sip=sip_ml is not None),
                    carbs_g=product.carbs_g * portions,
                    caffeine_mg=product.caffeine * portions,
                    sodium_mg=product.sodium_mg * portions,
                    fluid_ml=sip_ml if sip_ml is not None else product.volume_ml,
                    total_carbs_so_far=carbs,
                    total_caffeine_so_far=caffeine,
                    sip_ml=sip_ml,
                )
            )
        return events

    return _make

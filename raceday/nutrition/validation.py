"""Input validation for planning requests.

All checks run before any target is computed or event is scheduled.
Each failure raises ValidationError tagged with the offending field.
"""

import math

from raceday.nutrition.constants import (
    COLD_THRESHOLD_C,
    HOT_THRESHOLD_C,
    MAX_DURATION_HOURS,
    MAX_INTERVAL_MIN,
    MAX_TEMPERATURE_C,
    MAX_WEIGHT_KG,
    MIN_INTERVAL_MIN,
    MIN_TEMPERATURE_C,
)
from raceday.nutrition.enums import TemperatureCondition
from raceday.nutrition.errors import ValidationError
from raceday.nutrition.models import AthleteProfile, Product, RaceProfile


def validate_race_profile(race: RaceProfile) -> None:
    if not math.isfinite(race.duration_hours) or not 0 < race.duration_hours <= MAX_DURATION_HOURS:
        raise ValidationError(
            "duration_hours",
            f"must be greater than 0 and at most {MAX_DURATION_HOURS:g} hours, got {race.duration_hours}",
        )
    if race.temperature_c is not None:
        validate_temperature(race.temperature_c)


def validate_athlete_profile(athlete: AthleteProfile) -> None:
    if not math.isfinite(athlete.weight_kg) or not 0 < athlete.weight_kg <= MAX_WEIGHT_KG:
        raise ValidationError(
            "weight_kg",
            f"must be greater than 0 and at most {MAX_WEIGHT_KG:g} kg, got {athlete.weight_kg}",
        )


def validate_temperature(temperature_c: float) -> None:
    if not math.isfinite(temperature_c) or not MIN_TEMPERATURE_C <= temperature_c <= MAX_TEMPERATURE_C:
        raise ValidationError(
            "temperature_c",
            f"must be between {MIN_TEMPERATURE_C:g} and {MAX_TEMPERATURE_C:g} °C, got {temperature_c}",
        )


def validate_interval(interval_min: int | None) -> None:
    if interval_min is None:
        return
    if interval_min < MIN_INTERVAL_MIN or interval_min > MAX_INTERVAL_MIN:
        raise ValidationError(
            "interval_min",
            f"must be between {MIN_INTERVAL_MIN} and {MAX_INTERVAL_MIN} minutes, got {interval_min}",
        )


def validate_product(product: Product) -> None:
    """Reject products with negative or meaningless nutrient values."""
    if not product.name.strip():
        raise ValidationError("products", "product name must not be empty")
    nutrients = (product.carbs_g, product.sodium_mg, product.volume_ml)
    if not all(math.isfinite(value) for value in nutrients):
        raise ValidationError("products", f"product '{product.name}' has non-numeric nutrient values")
    if product.carbs_g < 0 or product.sodium_mg < 0 or product.volume_ml < 0:
        raise ValidationError("products", f"product '{product.name}' has negative nutrient values")
    if product.caffeine_mg is not None and not math.isfinite(product.caffeine_mg):
        raise ValidationError("products", f"product '{product.name}' has non-numeric caffeine")
    if product.caffeine_mg is not None and product.caffeine_mg < 0:
        raise ValidationError("products", f"product '{product.name}' has negative caffeine")


def validate_products(products: list[Product]) -> None:
    seen: set[str] = set()
    for product in products:
        validate_product(product)
        if product.name in seen:
            raise ValidationError("products", f"duplicate product name '{product.name}'")
        seen.add(product.name)


def temperature_condition_from_celsius(temperature_c: float) -> TemperatureCondition:
    """Map a raw temperature to its bucket (≤5 cold, ≥25 hot)."""
    validate_temperature(temperature_c)
    if temperature_c <= COLD_THRESHOLD_C:
        return TemperatureCondition.COLD
    if temperature_c >= HOT_THRESHOLD_C:
        return TemperatureCondition.HOT
    return TemperatureCondition.MODERATE

"""Target calculator.

Pure functions turning (race, athlete) into hourly and total carbohydrate,
fluid and sodium targets plus the caffeine ceiling.
"""

from loguru import logger

from raceday.nutrition.constants import (
    BASE_FLUIDS_PER_HOUR,
    BASE_SODIUM_PER_HOUR,
    CAFFEINE_ABSOLUTE_MAX_PER_KG,
    CAFFEINE_PER_KG,
    CARBS_PER_HOUR,
    CARBS_PER_KG_CAP,
    CARBS_PER_KG_PER_HOUR,
    COLD_FLUID_REDUCTION,
    HEAVY_ATHLETE_FLUID_BONUS,
    HEAVY_ATHLETE_KG,
    HEAVY_ATHLETE_SODIUM_BONUS,
    HOT_FLUID_BONUS,
    HOT_SODIUM_BONUS,
    LIGHT_ATHLETE_FLUID_REDUCTION,
    LIGHT_ATHLETE_KG,
    LONG_RACE_CARB_BONUS,
    LONG_RACE_HOURS,
    MAX_FLUIDS_PER_HOUR,
    MAX_SODIUM_PER_HOUR,
    MIN_FLUIDS_PER_HOUR,
    MIN_SODIUM_PER_HOUR,
)
from raceday.nutrition.enums import IntensityLevel, RacePhase, TemperatureCondition
from raceday.nutrition.models import (
    AthleteProfile,
    NutritionTargets,
    PhaseSegment,
    PhaseTargets,
    RaceProfile,
)
from raceday.nutrition.rules import DEFAULT_RULES, SchedulingRules
from raceday.nutrition.timeline import build_timeline, carb_distribution, fuelable_minutes
from raceday.nutrition.validation import validate_athlete_profile, validate_race_profile


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def carbs_per_hour(race: RaceProfile, athlete: AthleteProfile, advanced: bool = False) -> float:
    if advanced:
        per_kg = CARBS_PER_KG_PER_HOUR[race.sport] * athlete.weight_kg
        return min(per_kg, CARBS_PER_KG_CAP[race.sport])

    carbs = CARBS_PER_HOUR[race.intensity]
    if race.duration_hours > LONG_RACE_HOURS and race.intensity != IntensityLevel.EASY:
        carbs += LONG_RACE_CARB_BONUS
    return carbs


def fluids_per_hour(race: RaceProfile, athlete: AthleteProfile) -> float:
    fluids = BASE_FLUIDS_PER_HOUR

    match race.temperature:
        case TemperatureCondition.HOT:
            fluids += HOT_FLUID_BONUS
        case TemperatureCondition.COLD:
            fluids -= COLD_FLUID_REDUCTION
        case TemperatureCondition.MODERATE:
            pass

    if athlete.weight_kg > HEAVY_ATHLETE_KG:
        fluids += HEAVY_ATHLETE_FLUID_BONUS
    elif athlete.weight_kg < LIGHT_ATHLETE_KG:
        fluids -= LIGHT_ATHLETE_FLUID_REDUCTION

    return _clamp(fluids, MIN_FLUIDS_PER_HOUR, MAX_FLUIDS_PER_HOUR)


def sodium_per_hour(race: RaceProfile, athlete: AthleteProfile) -> float:
    sodium = BASE_SODIUM_PER_HOUR
    if race.temperature == TemperatureCondition.HOT:
        sodium += HOT_SODIUM_BONUS
    if athlete.weight_kg > HEAVY_ATHLETE_KG:
        sodium += HEAVY_ATHLETE_SODIUM_BONUS
    return _clamp(sodium, MIN_SODIUM_PER_HOUR, MAX_SODIUM_PER_HOUR)


def caffeine_ceiling(race: RaceProfile, athlete: AthleteProfile) -> float:
    """Maximum cumulative caffeine (mg) for the athlete at this intensity."""
    per_kg = min(CAFFEINE_PER_KG[race.intensity], CAFFEINE_ABSOLUTE_MAX_PER_KG)
    return athlete.weight_kg * per_kg


def phase_breakdown(
    segments: list[PhaseSegment],
    total_carbs: float,
    total_fluids: float,
    total_sodium: float,
    rules: SchedulingRules,
) -> dict[RacePhase, PhaseTargets]:
    """Split totals across phases.

    Carbs follow the phase carb distribution; fluid and sodium are split by
    fuelable duration. The swim receives nothing.
    """
    distribution = carb_distribution(segments, rules)
    fuel_min = fuelable_minutes(segments)

    breakdown: dict[RacePhase, PhaseTargets] = {}
    for segment in segments:
        share = segment.duration_min / fuel_min if segment.is_fuelable and fuel_min > 0 else 0.0
        breakdown[segment.phase] = PhaseTargets(
            carbs_g=total_carbs * distribution[segment.phase],
            sodium_mg=total_sodium * share,
            fluid_ml=total_fluids * share,
            duration_min=segment.duration_min,
        )
    return breakdown


def calculate_targets(
    race: RaceProfile,
    athlete: AthleteProfile,
    caffeine_enabled: bool = False,
    advanced: bool = False,
    rules: SchedulingRules = DEFAULT_RULES,
) -> NutritionTargets:
    """Calculate hourly and total nutrition targets.

    Args:
        race: Race profile
        athlete: Athlete profile
        caffeine_enabled: Whether caffeine may be scheduled
        advanced: Use the per-kg carbohydrate model
        rules: Scheduling rules (carb distribution across phases)

    Returns:
        NutritionTargets with a per-phase breakdown

    Raises:
        ValidationError: If duration, weight or temperature is out of range
    """
    validate_race_profile(race)
    validate_athlete_profile(athlete)

    carbs = carbs_per_hour(race, athlete, advanced=advanced)
    fluids = fluids_per_hour(race, athlete)
    sodium = sodium_per_hour(race, athlete)
    ceiling = caffeine_ceiling(race, athlete)

    total_carbs = carbs * race.duration_hours
    total_fluids = fluids * race.duration_hours
    total_sodium = sodium * race.duration_hours

    segments = build_timeline(race.sport, race.duration_hours)
    breakdown = phase_breakdown(segments, total_carbs, total_fluids, total_sodium, rules)

    logger.info(
        "Calculated nutrition targets",
        sport=race.sport.value,
        intensity=race.intensity.value,
        carbs_per_hour=carbs,
        fluids_per_hour=fluids,
        sodium_per_hour=sodium,
        caffeine_ceiling_mg=ceiling,
        advanced=advanced,
    )

    return NutritionTargets(
        carbs_per_hour=carbs,
        fluids_per_hour=fluids,
        sodium_per_hour=sodium,
        total_carbs_g=total_carbs,
        total_fluids_ml=total_fluids,
        total_sodium_mg=total_sodium,
        caffeine_ceiling_mg=ceiling,
        caffeine_enabled=caffeine_enabled,
        phase_targets=breakdown,
    )

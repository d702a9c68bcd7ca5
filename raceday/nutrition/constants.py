"""Physiological constants for nutrition targets.

Values follow current sports-nutrition guidance for endurance events.
"""

from raceday.nutrition.enums import IntensityLevel, SportType

# -----------------------------
# Carbohydrates
# -----------------------------
CARBS_PER_HOUR: dict[IntensityLevel, float] = {
    IntensityLevel.EASY: 50.0,
    IntensityLevel.MODERATE: 70.0,
    IntensityLevel.HARD: 90.0,
}

# Extra carbohydrate for long non-easy efforts
LONG_RACE_HOURS = 5.0
LONG_RACE_CARB_BONUS = 10.0

# Per-kg mode (advanced athletes with a trained gut)
CARBS_PER_KG_PER_HOUR: dict[SportType, float] = {
    SportType.TRIATHLON: 1.25,
    SportType.BIKE: 1.4,
    SportType.RUN: 1.2,
}

CARBS_PER_KG_CAP: dict[SportType, float] = {
    SportType.TRIATHLON: 90.0,
    SportType.BIKE: 100.0,
    SportType.RUN: 90.0,
}

# -----------------------------
# Fluids (ml/h)
# -----------------------------
BASE_FLUIDS_PER_HOUR = 500.0
HOT_FLUID_BONUS = 200.0
COLD_FLUID_REDUCTION = 100.0
HEAVY_ATHLETE_FLUID_BONUS = 50.0
LIGHT_ATHLETE_FLUID_REDUCTION = 50.0
MIN_FLUIDS_PER_HOUR = 300.0
MAX_FLUIDS_PER_HOUR = 900.0

HEAVY_ATHLETE_KG = 80.0
LIGHT_ATHLETE_KG = 60.0

# -----------------------------
# Sodium (mg/h)
# -----------------------------
BASE_SODIUM_PER_HOUR = 400.0
HOT_SODIUM_BONUS = 200.0
HEAVY_ATHLETE_SODIUM_BONUS = 100.0
MIN_SODIUM_PER_HOUR = 300.0
MAX_SODIUM_PER_HOUR = 1000.0

# -----------------------------
# Caffeine (mg/kg)
# -----------------------------
CAFFEINE_PER_KG: dict[IntensityLevel, float] = {
    IntensityLevel.EASY: 1.0,
    IntensityLevel.MODERATE: 3.0,
    IntensityLevel.HARD: 4.0,
}

CAFFEINE_ABSOLUTE_MAX_PER_KG = 5.0

# -----------------------------
# Temperature (°C)
# -----------------------------
COLD_THRESHOLD_C = 5.0
HOT_THRESHOLD_C = 25.0

# -----------------------------
# Input ranges
# -----------------------------
MAX_DURATION_HOURS = 24.0
MAX_WEIGHT_KG = 250.0
MIN_TEMPERATURE_C = -20.0
MAX_TEMPERATURE_C = 50.0
MIN_INTERVAL_MIN = 1
MAX_INTERVAL_MIN = 120

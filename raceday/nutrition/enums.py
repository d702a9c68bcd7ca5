"""Canonical enums for race nutrition planning.

All enums are string-based so they serialize cleanly to JSON and match
the keys used in catalogue files and rule overrides.
"""

from enum import StrEnum


# -----------------------------
# Race Description
# -----------------------------
class SportType(StrEnum):
    """Sport of the race being planned."""

    RUN = "run"
    BIKE = "bike"
    TRIATHLON = "triathlon"


class IntensityLevel(StrEnum):
    """Expected race effort."""

    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"


class TemperatureCondition(StrEnum):
    """Temperature bucket affecting fluid and sodium needs.

    COLD is at or below 5°C, HOT is at or above 25°C.
    """

    COLD = "cold"
    MODERATE = "moderate"
    HOT = "hot"


class RacePhase(StrEnum):
    """Discipline segment of a race."""

    SWIM = "swim"
    BIKE = "bike"
    RUN = "run"


# -----------------------------
# Products
# -----------------------------
class ProductClass(StrEnum):
    """Plannable product class."""

    GEL = "gel"
    DRINK = "drink"
    BAR = "bar"
    CHEW = "chew"


class ProductTexture(StrEnum):
    """Physical format of a product, used for suitability and action labels."""

    LIGHT_GEL = "light_gel"
    GEL = "gel"
    CHEW = "chew"
    BAKE = "bake"
    LIQUID = "liquid"


class SpacingClass(StrEnum):
    """Group of products sharing a minimum spacing rule."""

    GEL = "gel"
    SOLID_FOOD = "solid_food"  # bars and chews
    DRINK = "drink"

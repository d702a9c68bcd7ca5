"""Product scorer and selector.

Drinks are scored first (they carry the fluid and sodium need), then solids
are ranked per phase to close the remaining carbohydrate gap. All rankings
are deterministic: ties are broken by product name.
"""

from raceday.nutrition.enums import ProductClass, ProductTexture, RacePhase, SportType
from raceday.nutrition.errors import MissingProductError
from raceday.nutrition.models import NutritionTargets, Product
from raceday.nutrition.rules import SchedulingRules

# Carbohydrate density (g/l) above which a drink earns no extra credit
MAX_DRINK_CARB_DENSITY = 80.0

DRINK_SODIUM_WEIGHT = 60.0
DRINK_CARB_WEIGHT = 40.0

CARB_FIT_WEIGHT = 30.0
SODIUM_BONUS_PER_100MG = 2.0
MAX_SODIUM_BONUS = 10.0

# Phase suitability by texture; isotonic gels score separately on the run
BIKE_SUITABILITY: dict[ProductTexture, float] = {
    ProductTexture.BAKE: 20.0,
    ProductTexture.CHEW: 15.0,
    ProductTexture.GEL: 10.0,
    ProductTexture.LIGHT_GEL: 5.0,
    ProductTexture.LIQUID: 0.0,
}

RUN_SUITABILITY: dict[ProductTexture, float] = {
    ProductTexture.GEL: 25.0,
    ProductTexture.LIGHT_GEL: 20.0,
    ProductTexture.CHEW: -10.0,
    ProductTexture.BAKE: -30.0,
    ProductTexture.LIQUID: 0.0,
}

ISOTONIC_GEL_RUN_SUITABILITY = 40.0


def require_products(products: list[Product], sport: SportType) -> None:
    """Ensure the mandatory product classes are present.

    A carbohydrate solid is always required. A drink is required unless the
    race is a run (runners rely on course water).

    Raises:
        MissingProductError: Naming the first missing class ("gel", then "drink")
    """
    if not any(p.is_solid and p.carbs_g > 0 for p in products):
        raise MissingProductError(ProductClass.GEL.value)
    if sport != SportType.RUN and not any(p.is_drink for p in products):
        raise MissingProductError(ProductClass.DRINK.value)


# -----------------------------
# Drinks
# -----------------------------
def drink_score(product: Product, targets: NutritionTargets) -> float:
    """Score a drink on sodium concentration fit and carbohydrate density."""
    if product.volume_ml <= 0:
        return 0.0

    target_concentration = targets.sodium_per_hour / targets.fluids_per_hour * 1000
    concentration = product.sodium_mg / product.volume_ml * 1000
    sodium_fit = 1.0 - min(abs(concentration - target_concentration) / target_concentration, 1.0)

    carb_density = product.carbs_g / product.volume_ml * 1000
    carb_fit = min(carb_density, MAX_DRINK_CARB_DENSITY) / MAX_DRINK_CARB_DENSITY

    return DRINK_SODIUM_WEIGHT * sodium_fit + DRINK_CARB_WEIGHT * carb_fit


def select_sip_drink(products: list[Product], targets: NutritionTargets) -> Product | None:
    """Best caffeine-free drink for sip delivery, None if there is none."""
    drinks = [p for p in products if p.is_drink and p.volume_ml > 0 and not p.has_caffeine]
    if not drinks:
        return None
    return sorted(drinks, key=lambda p: (-drink_score(p, targets), p.name))[0]


# -----------------------------
# Solids
# -----------------------------
def phase_suitability(product: Product, phase: RacePhase) -> float:
    match phase:
        case RacePhase.BIKE:
            return BIKE_SUITABILITY[product.texture]
        case RacePhase.RUN:
            if product.product_class == ProductClass.GEL and product.is_isotonic:
                return ISOTONIC_GEL_RUN_SUITABILITY
            return RUN_SUITABILITY[product.texture]
        case RacePhase.SWIM:
            return 0.0


def solid_score(product: Product, phase: RacePhase, carb_need: float) -> float:
    score = phase_suitability(product, phase)
    if carb_need > 0:
        score += CARB_FIT_WEIGHT * (1.0 - min(abs(product.carbs_g - carb_need) / carb_need, 1.0))
    score += min(product.sodium_mg / 100 * SODIUM_BONUS_PER_100MG, MAX_SODIUM_BONUS)
    return score


def rank_solids(products: list[Product], phase: RacePhase, carb_need: float) -> list[Product]:
    """Caffeine-free carbohydrate solids ordered best first for a phase.

    Products scoring at or below zero are dropped unless nothing else remains.
    """
    candidates = [p for p in products if p.is_solid and p.carbs_g > 0 and not p.has_caffeine]
    scored = sorted(
        ((solid_score(p, phase, carb_need), p) for p in candidates),
        key=lambda item: (-item[0], item[1].name),
    )
    positive = [p for score, p in scored if score > 0]
    return positive if positive else [p for _, p in scored]


def pre_race_product(products: list[Product], max_carbs_g: float | None = None) -> Product | None:
    """Caffeine-free solid for the pre-race intake: a bake first, then a gel, then anything.

    Products carrying more than max_carbs_g are not considered.
    """

    def preference(product: Product) -> int:
        if product.texture == ProductTexture.BAKE:
            return 0
        if product.product_class == ProductClass.GEL:
            return 1
        return 2

    candidates = [p for p in products if p.is_solid and p.carbs_g > 0 and not p.has_caffeine]
    if max_carbs_g is not None:
        candidates = [p for p in candidates if p.carbs_g <= max_carbs_g]
    if not candidates:
        return None
    return sorted(candidates, key=lambda p: (preference(p), p.name))[0]


# -----------------------------
# Caffeine
# -----------------------------
def rank_caffeine(products: list[Product], rules: SchedulingRules) -> list[Product]:
    """Caffeinated products ordered by closeness to the preferred dose."""
    caffeinated = [p for p in products if p.has_caffeine]
    return sorted(
        caffeinated,
        key=lambda p: (abs(p.caffeine - rules.preferred_caffeine_dose_mg), p.name),
    )


def action_label(product: Product, sip: bool = False) -> str:
    if sip:
        return "Sip"
    match product.texture:
        case ProductTexture.GEL | ProductTexture.LIGHT_GEL:
            return "Squeeze"
        case ProductTexture.BAKE:
            return "Eat"
        case ProductTexture.CHEW:
            return "Chew"
        case ProductTexture.LIQUID:
            return "Drink"

"""Plan assembler: totals, shopping summary and the final NutritionPlan."""

import math

from raceday.nutrition.models import (
    AthleteProfile,
    NutritionEvent,
    NutritionPlan,
    NutritionTargets,
    NutritionTotals,
    PhaseSegment,
    PlanResult,
    RaceProfile,
    ShoppingItem,
    ShoppingSummary,
)


def compute_totals(events: list[NutritionEvent]) -> NutritionTotals:
    return NutritionTotals(
        carbs_g=sum(e.carbs_g for e in events),
        fluids_ml=sum(e.fluid_ml for e in events),
        sodium_mg=sum(e.sodium_mg for e in events),
        caffeine_mg=sum(e.caffeine_mg for e in events),
    )


def build_shopping_summary(events: list[NutritionEvent]) -> ShoppingSummary:
    """Group events by product name.

    Sip portions are fractional; the overall product count rounds each
    product's portions up to whole items to buy.
    """
    portions: dict[str, float] = {}
    carbs: dict[str, float] = {}
    for event in events:
        portions[event.product_name] = portions.get(event.product_name, 0.0) + event.portions
        carbs[event.product_name] = carbs.get(event.product_name, 0.0) + event.carbs_g

    items = [
        ShoppingItem(product_name=name, total_portions=portions[name], total_carbs_g=carbs[name])
        for name in sorted(portions)
    ]
    return ShoppingSummary(
        items=items,
        total_product_count=sum(math.ceil(round(item.total_portions, 6)) for item in items),
        total_carbs_g=sum(item.total_carbs_g for item in items),
    )


def assemble_plan(
    race: RaceProfile,
    athlete: AthleteProfile,
    targets: NutritionTargets,
    phases: list[PhaseSegment],
    result: PlanResult,
) -> NutritionPlan:
    return NutritionPlan(
        race=race,
        athlete=athlete,
        targets=targets,
        phases=phases,
        events=result.events,
        totals=compute_totals(result.events),
        shopping=build_shopping_summary(result.events),
        warnings=result.warnings,
        errors=result.errors,
    )

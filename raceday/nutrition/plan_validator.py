"""Plan validator.

Runs the post-hoc checks over a finished schedule. Each finding is a string
prefixed with its check code, e.g. "SPACING_VIOLATION: ...".

Errors (the plan is not usable):
- CAFFEINE_CEILING, SPACING_VIOLATION, CLUSTERING, BLACKOUT_VIOLATION,
  HOURLY_CAP, MONOTONICITY, EMPTY_SCHEDULE

Warnings (the plan is usable):
- LOW_COVERAGE, FRONT_LOADED, CARB_TARGET_MISS, LOW_DIVERSITY
"""

from collections import Counter
from enum import StrEnum

from loguru import logger

from raceday.nutrition.invariants import (
    blackout_windows,
    blocking_window,
    counts_toward_cap,
    early_carbs,
    front_load_cutoff,
    hour_bucket,
    in_swim,
    race_end_minute,
    required_spacing,
)
from raceday.nutrition.models import NutritionEvent, NutritionTargets, PhaseSegment, Product
from raceday.nutrition.rules import SchedulingRules
from raceday.nutrition.timeline import fuelable_segments

CEILING_EPSILON = 1e-6

# Minimum non-sip intakes before product diversity is judged
DIVERSITY_MIN_EVENTS = 3


class CheckCode(StrEnum):
    """Diagnostic code prefixed to every validator finding."""

    LOW_COVERAGE = "LOW_COVERAGE"
    FRONT_LOADED = "FRONT_LOADED"
    CAFFEINE_CEILING = "CAFFEINE_CEILING"
    SPACING_VIOLATION = "SPACING_VIOLATION"
    CLUSTERING = "CLUSTERING"
    BLACKOUT_VIOLATION = "BLACKOUT_VIOLATION"
    HOURLY_CAP = "HOURLY_CAP"
    MONOTONICITY = "MONOTONICITY"
    EMPTY_SCHEDULE = "EMPTY_SCHEDULE"
    CARB_TARGET_MISS = "CARB_TARGET_MISS"
    LOW_DIVERSITY = "LOW_DIVERSITY"


def _finding(code: CheckCode, message: str) -> str:
    return f"{code.value}: {message}"


# -----------------------------
# Warnings
# -----------------------------
def check_coverage(
    events: list[NutritionEvent],
    segments: list[PhaseSegment],
    slot_interval: int,
    rules: SchedulingRules,
) -> list[str]:
    """Share of fuelable minutes with a carb event within one slot interval."""
    minutes = [m for s in fuelable_segments(segments) for m in range(s.start_min, s.end_min)]
    if not minutes:
        return []

    fuel_times = sorted(e.time_min for e in events if e.carbs_g > 0)
    covered = sum(1 for m in minutes if any(abs(t - m) <= slot_interval for t in fuel_times))
    fraction = covered / len(minutes)
    if fraction < rules.coverage_min_fraction:
        return [
            _finding(
                CheckCode.LOW_COVERAGE,
                f"only {fraction:.0%} of race time has fuel within {slot_interval} min "
                f"(minimum {rules.coverage_min_fraction:.0%})",
            )
        ]
    return []


def check_front_load(
    events: list[NutritionEvent], segments: list[PhaseSegment], rules: SchedulingRules
) -> list[str]:
    total_carbs = sum(e.carbs_g for e in events)
    if total_carbs <= 0:
        return []

    share = early_carbs(events, front_load_cutoff(segments, rules)) / total_carbs
    if share > rules.front_load_max_fraction:
        return [
            _finding(
                CheckCode.FRONT_LOADED,
                f"{share:.0%} of carbohydrates are taken in the first "
                f"{rules.front_load_window_fraction:.0%} of the race (maximum {rules.front_load_max_fraction:.0%})",
            )
        ]
    return []


def check_carb_target(
    events: list[NutritionEvent], targets: NutritionTargets, rules: SchedulingRules
) -> list[str]:
    if targets.total_carbs_g <= 0:
        return []
    scheduled = sum(e.carbs_g for e in events)
    deviation = (scheduled - targets.total_carbs_g) / targets.total_carbs_g
    if abs(deviation) > rules.target_tolerance:
        return [
            _finding(
                CheckCode.CARB_TARGET_MISS,
                f"scheduled {scheduled:.0f} g carbohydrates vs target {targets.total_carbs_g:.0f} g "
                f"({deviation:+.0%})",
            )
        ]
    return []


def check_diversity(
    events: list[NutritionEvent], products: list[Product] | None, rules: SchedulingRules
) -> list[str]:
    """Warn when one product dominates although alternatives were available."""
    intakes = [e for e in events if not e.is_sip]
    if len(intakes) < DIVERSITY_MIN_EVENTS:
        return []
    if products is not None:
        solids = {p.name for p in products if p.is_solid and p.carbs_g > 0}
        if len(solids) < 2:
            return []

    name, count = Counter(e.product_name for e in intakes).most_common(1)[0]
    share = count / len(intakes)
    if share > rules.diversity_max_share:
        return [
            _finding(
                CheckCode.LOW_DIVERSITY,
                f"'{name}' makes up {share:.0%} of intakes (maximum {rules.diversity_max_share:.0%})",
            )
        ]
    return []


# -----------------------------
# Errors
# -----------------------------
def check_caffeine(events: list[NutritionEvent], targets: NutritionTargets) -> list[str]:
    errors: list[str] = []
    cumulative = 0.0
    for event in events:
        cumulative += event.caffeine_mg
        if not targets.caffeine_enabled and event.caffeine_mg > 0:
            errors.append(
                _finding(
                    CheckCode.CAFFEINE_CEILING,
                    f"caffeine scheduled at {event.time_min} min although caffeine is disabled",
                )
            )
        elif cumulative > targets.caffeine_ceiling_mg + CEILING_EPSILON:
            errors.append(
                _finding(
                    CheckCode.CAFFEINE_CEILING,
                    f"cumulative caffeine {cumulative:.0f} mg at {event.time_min} min exceeds "
                    f"ceiling {targets.caffeine_ceiling_mg:.0f} mg",
                )
            )
    return errors


def check_spacing(events: list[NutritionEvent], rules: SchedulingRules) -> list[str]:
    """Same-class spacing, caffeine spacing and clustering over consecutive non-sip pairs."""
    errors: list[str] = []
    intakes = [e for e in events if counts_toward_cap(e)]

    last_by_class: dict[str, NutritionEvent] = {}
    last_caffeine: NutritionEvent | None = None
    previous: NutritionEvent | None = None

    for event in intakes:
        spacing_class = event.product.spacing_class
        earlier = last_by_class.get(spacing_class)
        if earlier is not None:
            minimum = required_spacing(event.product, event.phase, rules)
            if event.time_min - earlier.time_min < minimum:
                errors.append(
                    _finding(
                        CheckCode.SPACING_VIOLATION,
                        f"{spacing_class.value} events at {earlier.time_min} and {event.time_min} min "
                        f"are closer than {minimum} min",
                    )
                )

        if event.has_caffeine:
            if last_caffeine is not None and event.time_min - last_caffeine.time_min < rules.min_caffeine_spacing:
                errors.append(
                    _finding(
                        CheckCode.SPACING_VIOLATION,
                        f"caffeine events at {last_caffeine.time_min} and {event.time_min} min "
                        f"are closer than {rules.min_caffeine_spacing} min",
                    )
                )
            last_caffeine = event

        if previous is not None and event.time_min - previous.time_min < rules.cluster_window_min:
            errors.append(
                _finding(
                    CheckCode.CLUSTERING,
                    f"intakes at {previous.time_min} and {event.time_min} min are within "
                    f"{rules.cluster_window_min} min of each other",
                )
            )

        last_by_class[spacing_class] = event
        previous = event
    return errors


def check_blackout(
    events: list[NutritionEvent], segments: list[PhaseSegment], rules: SchedulingRules
) -> list[str]:
    errors: list[str] = []
    windows = blackout_windows(segments, rules)
    for event in events:
        window = blocking_window(event.time_min, event.product, windows)
        if window is not None:
            errors.append(
                _finding(
                    CheckCode.BLACKOUT_VIOLATION,
                    f"{event.product_name} at {event.time_min} min falls in the {window.reason} blackout "
                    f"[{window.start_min}, {window.end_min})",
                )
            )
        elif in_swim(segments, event.time_min):
            errors.append(
                _finding(CheckCode.BLACKOUT_VIOLATION, f"{event.product_name} at {event.time_min} min during the swim")
            )
    return errors


def check_hourly_cap(events: list[NutritionEvent], rules: SchedulingRules) -> list[str]:
    counts = Counter(hour_bucket(e.time_min) for e in events if counts_toward_cap(e))
    return [
        _finding(
            CheckCode.HOURLY_CAP,
            f"hour {hour + 1} has {count} intakes (maximum {rules.max_intakes_per_hour})",
        )
        for hour, count in sorted(counts.items())
        if count > rules.max_intakes_per_hour
    ]


def check_monotonicity(events: list[NutritionEvent]) -> list[str]:
    errors: list[str] = []
    for previous, current in zip(events, events[1:]):
        if current.time_min < previous.time_min:
            errors.append(
                _finding(CheckCode.MONOTONICITY, f"event at {current.time_min} min follows {previous.time_min} min")
            )
        if current.total_carbs_so_far < previous.total_carbs_so_far:
            errors.append(
                _finding(CheckCode.MONOTONICITY, f"cumulative carbohydrates decrease at {current.time_min} min")
            )
        if current.total_caffeine_so_far < previous.total_caffeine_so_far:
            errors.append(
                _finding(CheckCode.MONOTONICITY, f"cumulative caffeine decreases at {current.time_min} min")
            )
    return errors


def check_non_empty(
    events: list[NutritionEvent], segments: list[PhaseSegment], slot_interval: int
) -> list[str]:
    if events or race_end_minute(segments) < slot_interval:
        return []
    return [_finding(CheckCode.EMPTY_SCHEDULE, "no intake could be scheduled")]


def validate_schedule(
    events: list[NutritionEvent],
    targets: NutritionTargets,
    segments: list[PhaseSegment],
    rules: SchedulingRules,
    slot_interval: int,
    products: list[Product] | None = None,
) -> tuple[list[str], list[str]]:
    """Run every check over a finished schedule.

    Args:
        events: Time-ordered events from the scheduler
        targets: Targets the schedule was built for
        segments: Phase timeline of the race
        rules: Scheduling rules the schedule was built with
        slot_interval: Slot interval used for solid placement
        products: Products that were available (enables the diversity check's
            single-product exemption)

    Returns:
        (warnings, errors)
    """
    warnings = [
        *check_coverage(events, segments, slot_interval, rules),
        *check_front_load(events, segments, rules),
        *check_carb_target(events, targets, rules),
        *check_diversity(events, products, rules),
    ]
    errors = [
        *check_caffeine(events, targets),
        *check_spacing(events, rules),
        *check_blackout(events, segments, rules),
        *check_hourly_cap(events, rules),
        *check_monotonicity(events),
        *check_non_empty(events, segments, slot_interval),
    ]

    logger.info(
        "Validated nutrition schedule",
        event_count=len(events),
        warning_count=len(warnings),
        error_count=len(errors),
    )
    for error in errors:
        logger.warning("Schedule validation error", finding=error)
    return warnings, errors

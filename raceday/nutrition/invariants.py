"""Scheduling invariants.

Single source of truth for the timing rules shared by the event scheduler
(when deciding whether a minute is feasible) and the plan validator (when
checking a finished schedule). Both must agree, so neither re-derives them.
"""

from dataclasses import dataclass

from raceday.nutrition.enums import RacePhase
from raceday.nutrition.models import NutritionEvent, PhaseSegment, Product
from raceday.nutrition.rules import SchedulingRules
from raceday.nutrition.timeline import phase_at, transition_minute

MINUTES_PER_HOUR = 60


@dataclass(frozen=True)
class BlackoutWindow:
    """Half-open window [start_min, end_min) where intake is restricted.

    Attributes:
        start_min: First blocked minute
        end_min: First minute after the window
        solids_only: True if only solids are blocked; False if all intake is
        reason: Short label used in diagnostics
    """

    start_min: int
    end_min: int
    solids_only: bool
    reason: str

    def blocks(self, time_min: int, product: Product) -> bool:
        if not self.start_min <= time_min < self.end_min:
            return False
        return product.is_solid or not self.solids_only


def race_end_minute(segments: list[PhaseSegment]) -> int:
    return segments[-1].end_min


def blackout_windows(segments: list[PhaseSegment], rules: SchedulingRules) -> list[BlackoutWindow]:
    """Transition and finish blackout windows for a timeline."""
    windows: list[BlackoutWindow] = []
    t2 = transition_minute(segments)
    if t2 is not None:
        windows.append(
            BlackoutWindow(t2 - rules.no_solids_before_t2_min, t2, solids_only=True, reason="before T2")
        )
        windows.append(
            BlackoutWindow(t2, t2 + rules.no_fueling_after_t2_min, solids_only=False, reason="after T2")
        )

    end = race_end_minute(segments)
    windows.append(
        BlackoutWindow(end - rules.no_solids_before_finish_min, end, solids_only=True, reason="before finish")
    )
    return windows


def blocking_window(
    time_min: int, product: Product, windows: list[BlackoutWindow]
) -> BlackoutWindow | None:
    for window in windows:
        if window.blocks(time_min, product):
            return window
    return None


def in_swim(segments: list[PhaseSegment], time_min: int) -> bool:
    return time_min >= 0 and phase_at(segments, time_min) == RacePhase.SWIM


def required_spacing(product: Product, later_phase: RacePhase, rules: SchedulingRules) -> int:
    """Minimum spacing before an event of this product's spacing class.

    Mixed-phase pairs use the phase of the later event.
    """
    return rules.min_spacing(product.spacing_class, later_phase)


def hour_bucket(time_min: int) -> int:
    """Clock hour an event counts towards (pre-race minutes fall in hour -1)."""
    return time_min // MINUTES_PER_HOUR


def counts_toward_cap(event: NutritionEvent) -> bool:
    """Sips are exempt from clustering and the per-hour cap."""
    return not event.is_sip


def spacing_conflict(
    time_min: int,
    product: Product,
    phase: RacePhase,
    events: list[NutritionEvent],
    rules: SchedulingRules,
) -> NutritionEvent | None:
    """First non-sip event of the same spacing class that is too close."""
    for event in events:
        if event.is_sip or event.product.spacing_class != product.spacing_class:
            continue
        later_phase = phase if time_min >= event.time_min else event.phase
        if abs(time_min - event.time_min) < required_spacing(product, later_phase, rules):
            return event
    return None


def caffeine_conflict(
    time_min: int, events: list[NutritionEvent], rules: SchedulingRules
) -> NutritionEvent | None:
    for event in events:
        if event.has_caffeine and abs(time_min - event.time_min) < rules.min_caffeine_spacing:
            return event
    return None


def cluster_conflict(
    time_min: int, events: list[NutritionEvent], rules: SchedulingRules
) -> NutritionEvent | None:
    for event in events:
        if counts_toward_cap(event) and abs(time_min - event.time_min) < rules.cluster_window_min:
            return event
    return None


def hour_is_full(time_min: int, events: list[NutritionEvent], rules: SchedulingRules) -> bool:
    bucket = hour_bucket(time_min)
    count = sum(1 for e in events if counts_toward_cap(e) and hour_bucket(e.time_min) == bucket)
    return count >= rules.max_intakes_per_hour


def front_load_cutoff(segments: list[PhaseSegment], rules: SchedulingRules) -> float:
    """Race minute before which intake counts as early."""
    return race_end_minute(segments) * rules.front_load_window_fraction


def early_carbs(events: list[NutritionEvent], cutoff: float) -> float:
    """Carbohydrates taken during race time before the cutoff; the pre-race intake is not race time."""
    return sum(e.carbs_g for e in events if 0 <= e.time_min < cutoff)

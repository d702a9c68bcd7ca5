"""Event scheduler.

Places discrete intake events on the race timeline. Placement runs in four
passes, each seeing everything placed before it:

1. Caffeine, one event per strategic window (when enabled)
2. Sips, at a fixed cadence through every fuelable phase
3. Pre-race intake, sized against the carb target
4. Solids, slot by slot, sized to close the phase carbohydrate gap. Early
   slots are capped by the front-load limit; a slot inside a blackout window
   may move back to just before it.

A slot that cannot be honoured is omitted, never raised; the plan validator
reports the resulting coverage gaps. The only exceptions raised are input
problems detected before placement starts and internal invariant breaks.
"""

import math
from dataclasses import dataclass, field, replace

from loguru import logger

from raceday.nutrition.enums import RacePhase
from raceday.nutrition.errors import SchedulingInvariantError
from raceday.nutrition.invariants import (
    BlackoutWindow,
    blackout_windows,
    blocking_window,
    caffeine_conflict,
    cluster_conflict,
    early_carbs,
    front_load_cutoff,
    hour_bucket,
    hour_is_full,
    in_swim,
    race_end_minute,
    spacing_conflict,
)
from raceday.nutrition.models import (
    AthleteProfile,
    NutritionEvent,
    NutritionTargets,
    PhaseSegment,
    Product,
    RaceProfile,
)
from raceday.nutrition.rules import DEFAULT_RULES, SchedulingRules
from raceday.nutrition.selection import (
    action_label,
    pre_race_product,
    rank_caffeine,
    rank_solids,
    require_products,
    select_sip_drink,
)
from raceday.nutrition.timeline import build_timeline, carb_distribution, fuelable_segments, phase_at
from raceday.nutrition.validation import validate_interval

CEILING_EPSILON = 1e-6


@dataclass
class _Draft:
    """Mutable working state for one scheduling call.

    Attributes:
        segments: Phase timeline
        windows: Blackout windows for the timeline
        events: Events placed so far (cumulative totals not yet filled in)
        credits: Phase ledger entries (phase, time, carbs) used for gap sizing
    """

    segments: list[PhaseSegment]
    windows: list[BlackoutWindow]
    events: list[NutritionEvent] = field(default_factory=list)
    credits: list[tuple[RacePhase, int, float]] = field(default_factory=list)

    @property
    def total_min(self) -> int:
        return race_end_minute(self.segments)

    def add(self, event: NutritionEvent, credit_phase: RacePhase) -> None:
        self.events.append(event)
        self.credits.append((credit_phase, event.time_min, event.carbs_g))

    def phase_carbs_before(self, phase: RacePhase, time_min: int) -> float:
        return sum(carbs for p, t, carbs in self.credits if p == phase and t < time_min)

    def last_fuel_before(self, time_min: int) -> int | None:
        times = [e.time_min for e in self.events if e.carbs_g > 0 and e.time_min <= time_min]
        return max(times) if times else None

    def trailing_product_run(self, time_min: int) -> tuple[str | None, int]:
        """Name of the most recent non-sip product before a minute and how many times in a row it was used."""
        previous = sorted(
            (e for e in self.events if not e.is_sip and e.time_min < time_min),
            key=lambda e: e.time_min,
        )
        if not previous:
            return None, 0
        name = previous[-1].product_name
        count = 0
        for event in reversed(previous):
            if event.product_name != name:
                break
            count += 1
        return name, count


def _make_event(
    time_min: int,
    phase: RacePhase,
    product: Product,
    portions: float,
    sip_ml: float | None = None,
) -> NutritionEvent:
    fluid = sip_ml if sip_ml is not None else product.volume_ml * portions
    return NutritionEvent(
        time_min=time_min,
        phase=phase,
        product=product,
        portions=portions,
        action=action_label(product, sip=sip_ml is not None),
        carbs_g=product.carbs_g * portions,
        caffeine_mg=product.caffeine * portions,
        sodium_mg=product.sodium_mg * portions,
        fluid_ml=fluid,
        total_carbs_so_far=0.0,
        total_caffeine_so_far=0.0,
        sip_ml=sip_ml,
    )


class EventScheduler:
    """Greedy, phase-aware intake scheduler.

    The scheduler holds no per-call state; one instance can serve
    concurrent callers.
    """

    def __init__(self, rules: SchedulingRules = DEFAULT_RULES):
        self.rules = rules

    def schedule(
        self,
        race: RaceProfile,
        athlete: AthleteProfile,
        targets: NutritionTargets,
        products: list[Product],
        interval_override: int | None = None,
    ) -> list[NutritionEvent]:
        """Build the time-ordered intake schedule for a race.

        Args:
            race: Race profile
            athlete: Athlete profile
            targets: Targets from the target calculator
            products: Products available to the planner
            interval_override: Custom slot interval in minutes (1-120)

        Returns:
            Events ordered by time with cumulative carbs and caffeine filled in

        Raises:
            ValidationError: If the interval override is out of range
            MissingProductError: If a mandatory product class is absent
            SchedulingInvariantError: If the finished schedule breaks the caffeine ceiling
        """
        validate_interval(interval_override)
        require_products(products, race.sport)

        segments = build_timeline(race.sport, race.duration_hours)
        draft = _Draft(segments=segments, windows=blackout_windows(segments, self.rules))
        interval = self.rules.slot_interval(race.sport, interval_override)

        logger.debug(
            "Scheduling nutrition events",
            sport=race.sport.value,
            total_min=draft.total_min,
            interval_min=interval,
            product_count=len(products),
            weight_kg=athlete.weight_kg,
        )

        if targets.caffeine_enabled:
            self._place_caffeine(draft, race, targets, products)
        self._place_sips(draft, targets, products)
        self._place_pre_race(draft, targets, products)
        self._place_solids(draft, targets, products, interval)

        events = self._finalize(draft.events, targets)

        logger.info(
            "Scheduled nutrition events",
            sport=race.sport.value,
            event_count=len(events),
            sip_count=sum(1 for e in events if e.is_sip),
            total_carbs_g=round(events[-1].total_carbs_so_far, 1) if events else 0.0,
            total_caffeine_mg=round(events[-1].total_caffeine_so_far, 1) if events else 0.0,
        )
        return events

    # -----------------------------
    # Feasibility
    # -----------------------------
    def _is_feasible(self, draft: _Draft, time_min: int, product: Product) -> bool:
        """Whether a full-portion event may be placed at a minute."""
        if time_min < 0 or time_min >= draft.total_min:
            return False
        if in_swim(draft.segments, time_min):
            return False
        if blocking_window(time_min, product, draft.windows) is not None:
            return False
        if cluster_conflict(time_min, draft.events, self.rules) is not None:
            return False
        phase = phase_at(draft.segments, time_min)
        if spacing_conflict(time_min, product, phase, draft.events, self.rules) is not None:
            return False
        if product.has_caffeine and caffeine_conflict(time_min, draft.events, self.rules) is not None:
            return False
        return not hour_is_full(time_min, draft.events, self.rules)

    def _first_feasible(self, draft: _Draft, start: int, end: int, product: Product) -> int | None:
        """First feasible minute in [start, end], None if there is none."""
        for minute in range(start, end + 1):
            if self._is_feasible(draft, minute, product):
                return minute
        return None

    # -----------------------------
    # Passes
    # -----------------------------
    def _place_caffeine(
        self,
        draft: _Draft,
        race: RaceProfile,
        targets: NutritionTargets,
        products: list[Product],
    ) -> None:
        candidates = rank_caffeine(products, self.rules)
        if not candidates:
            logger.warning("Caffeine enabled but no caffeinated product supplied")
            return

        total = draft.total_min
        start_floor = self.rules.caffeine_start_min(race.sport)
        delivered = 0.0

        for window_start, window_end in self.rules.caffeine_windows:
            low = max(math.ceil(window_start * total), start_floor)
            high = min(math.floor(window_end * total), total - 1)
            if low > high:
                logger.debug("Caffeine window closed", window_start=window_start, window_end=window_end)
                continue

            for product in candidates:
                if delivered + product.caffeine > targets.caffeine_ceiling_mg + CEILING_EPSILON:
                    continue
                minute = self._first_feasible(draft, low, high, product)
                if minute is None:
                    continue
                phase = phase_at(draft.segments, minute)
                draft.add(_make_event(minute, phase, product, 1), credit_phase=phase)
                delivered += product.caffeine
                break

    def _place_sips(self, draft: _Draft, targets: NutritionTargets, products: list[Product]) -> None:
        drink = select_sip_drink(products, targets)
        if drink is None:
            return

        fluid_by_hour: dict[int, float] = {}
        for event in draft.events:
            bucket = hour_bucket(event.time_min)
            fluid_by_hour[bucket] = fluid_by_hour.get(bucket, 0.0) + event.fluid_ml

        for segment in fuelable_segments(draft.segments):
            minute = segment.start_min
            while minute < segment.end_min:
                if self._sip_allowed(draft, minute, drink):
                    bucket = hour_bucket(minute)
                    remaining = targets.fluids_per_hour - fluid_by_hour.get(bucket, 0.0)
                    volume = min(self.rules.sip_volume_ml, remaining)
                    if volume >= self.rules.min_sip_volume_ml:
                        portions = volume / drink.volume_ml
                        draft.add(
                            _make_event(minute, segment.phase, drink, portions, sip_ml=volume),
                            credit_phase=segment.phase,
                        )
                        fluid_by_hour[bucket] = fluid_by_hour.get(bucket, 0.0) + volume
                minute += self.rules.sip_interval_min

    def _sip_allowed(self, draft: _Draft, minute: int, drink: Product) -> bool:
        if blocking_window(minute, drink, draft.windows) is not None:
            return False
        for event in draft.events:
            if (
                not event.is_sip
                and event.product.is_drink
                and abs(minute - event.time_min) < self.rules.min_drink_spacing
            ):
                return False
        return True

    def _place_pre_race(self, draft: _Draft, targets: NutritionTargets, products: list[Product]) -> None:
        if self.rules.pre_race_lead_min <= 0 or draft.total_min < self.rules.pre_race_min_duration_min:
            return
        max_carbs = targets.total_carbs_g * self.rules.pre_race_max_target_fraction
        product = pre_race_product(products, max_carbs_g=max_carbs)
        if product is None:
            logger.debug("Skipped pre-race intake", max_carbs_g=round(max_carbs, 1))
            return

        fuelable = fuelable_segments(draft.segments)
        credit_phase = fuelable[0].phase if fuelable else draft.segments[0].phase
        event = _make_event(-self.rules.pre_race_lead_min, draft.segments[0].phase, product, 1)
        draft.add(event, credit_phase=credit_phase)

    def _place_solids(
        self,
        draft: _Draft,
        targets: NutritionTargets,
        products: list[Product],
        interval: int,
    ) -> None:
        distribution = carb_distribution(draft.segments, self.rules)

        for segment in fuelable_segments(draft.segments):
            if segment.phase in targets.phase_targets:
                phase_carbs = targets.phase_targets[segment.phase].carbs_g
            else:
                phase_carbs = targets.total_carbs_g * distribution[segment.phase]

            offset = interval if segment.start_min == 0 else interval // 2
            slot = segment.start_min + offset
            while slot < segment.end_min:
                self._fill_slot(draft, segment, slot, phase_carbs, targets, products, interval)
                slot += interval

    def _fill_slot(
        self,
        draft: _Draft,
        segment: PhaseSegment,
        slot: int,
        phase_carbs: float,
        targets: NutritionTargets,
        products: list[Product],
        interval: int,
    ) -> None:
        horizon = slot + interval
        progress = min(max((horizon - segment.start_min) / segment.duration_min, 0.0), 1.0)
        due = phase_carbs * progress
        gap = due - draft.phase_carbs_before(segment.phase, horizon)

        last_fuel = draft.last_fuel_before(slot)
        since = horizon - (last_fuel if last_fuel is not None else min(segment.start_min, 0))
        forced = since > 2 * interval

        if gap <= 0 and not forced:
            return

        ranked = self._rotate(draft, slot, rank_solids(products, segment.phase, max(gap, 0.0)))
        latest = min(slot + self.rules.max_slot_shift_min, segment.end_min - 1)
        cutoff = front_load_cutoff(draft.segments, self.rules)
        early_budget = self._early_budget(targets) - early_carbs(draft.events, cutoff)

        for product in ranked:
            portions = min(int(max(gap, 0.0) / product.carbs_g + 0.5), self.rules.max_portions_per_intake)
            if portions == 0:
                if not forced:
                    continue
                portions = 1
            minute = self._first_feasible(draft, slot, latest, product)
            if minute is None:
                minute = self._before_blackout(draft, segment, slot, product)
            if minute is None:
                continue
            if minute < cutoff:
                portions = min(portions, int(early_budget // product.carbs_g))
                if portions <= 0:
                    continue
            draft.add(_make_event(minute, segment.phase, product, portions), credit_phase=segment.phase)
            return

        logger.debug(
            "Skipped solid slot",
            phase=segment.phase.value,
            slot_min=slot,
            gap_g=round(gap, 1),
            forced=forced,
        )

    def _early_budget(self, targets: NutritionTargets) -> float:
        """Carbs allowed before the front-load cutoff: the front-load limit less the target tolerance."""
        margin = max(1.0 - self.rules.target_tolerance, 0.0)
        return targets.total_carbs_g * self.rules.front_load_max_fraction * margin

    def _before_blackout(self, draft: _Draft, segment: PhaseSegment, slot: int, product: Product) -> int | None:
        """Latest feasible minute before the blackout window holding a slot.

        The search stops at the previous intake; None when the slot is not
        in a blackout window or nothing earlier fits.
        """
        window = blocking_window(slot, product, draft.windows)
        if window is None:
            return None
        floor = segment.start_min
        for event in draft.events:
            if not event.is_sip and floor <= event.time_min < window.start_min:
                floor = event.time_min + 1
        for minute in range(window.start_min - 1, floor - 1, -1):
            if self._is_feasible(draft, minute, product):
                return minute
        return None

    def _rotate(self, draft: _Draft, slot: int, ranked: list[Product]) -> list[Product]:
        """Move an over-used product to the back when an alternative exists."""
        name, count = draft.trailing_product_run(slot)
        if count < self.rules.max_consecutive_same_product or len(ranked) < 2:
            return ranked
        return [p for p in ranked if p.name != name] + [p for p in ranked if p.name == name]

    # -----------------------------
    # Finalization
    # -----------------------------
    def _finalize(self, events: list[NutritionEvent], targets: NutritionTargets) -> list[NutritionEvent]:
        """Order events and fill in cumulative carbs and caffeine."""
        ordered = sorted(events, key=lambda e: (e.time_min, e.is_sip, e.product_name))

        finalized: list[NutritionEvent] = []
        carbs = 0.0
        caffeine = 0.0
        for event in ordered:
            carbs += event.carbs_g
            caffeine += event.caffeine_mg
            finalized.append(replace(event, total_carbs_so_far=carbs, total_caffeine_so_far=caffeine))

        if caffeine > targets.caffeine_target_mg + CEILING_EPSILON:
            raise SchedulingInvariantError(
                f"Scheduled caffeine {caffeine:.1f} mg exceeds allowed {targets.caffeine_target_mg:.1f} mg"
            )
        return finalized

"""Phase timeline.

Derives phase boundaries on the minute timeline and the share of race
carbohydrates each phase should receive.
"""

from dataclasses import dataclass

from raceday.nutrition.enums import RacePhase, SportType
from raceday.nutrition.models import PhaseSegment
from raceday.nutrition.rules import SchedulingRules


@dataclass(frozen=True)
class TriathlonPreset:
    """Reference split for a triathlon distance.

    Attributes:
        swim_hours: Swim duration at the nominal finish time
        bike_hours: Bike duration at the nominal finish time
        nominal_hours: Finish time the split is calibrated for
    """

    swim_hours: float
    bike_hours: float
    nominal_hours: float


HALF_DISTANCE = TriathlonPreset(swim_hours=0.5, bike_hours=2.75, nominal_hours=5.0)
FULL_DISTANCE = TriathlonPreset(swim_hours=1.0, bike_hours=5.0, nominal_hours=11.0)

# Races of this length or longer are planned on the full-distance split
FULL_DISTANCE_THRESHOLD_HOURS = 8.0


def triathlon_preset(duration_hours: float) -> TriathlonPreset:
    if duration_hours >= FULL_DISTANCE_THRESHOLD_HOURS:
        return FULL_DISTANCE
    return HALF_DISTANCE


def build_timeline(sport: SportType, duration_hours: float) -> list[PhaseSegment]:
    """Build the ordered phase segments for a race.

    Triathlon splits are scaled by actual / nominal duration and rounded to
    whole minutes. Segments that end up empty are dropped.
    """
    total_min = max(1, int(round(duration_hours * 60)))

    match sport:
        case SportType.RUN:
            return [PhaseSegment(RacePhase.RUN, 0, total_min)]
        case SportType.BIKE:
            return [PhaseSegment(RacePhase.BIKE, 0, total_min)]
        case SportType.TRIATHLON:
            preset = triathlon_preset(duration_hours)
            scale = duration_hours / preset.nominal_hours
            swim_end = min(int(round(preset.swim_hours * scale * 60)), total_min)
            bike_end = min(int(round((preset.swim_hours + preset.bike_hours) * scale * 60)), total_min)
            segments = [
                PhaseSegment(RacePhase.SWIM, 0, swim_end),
                PhaseSegment(RacePhase.BIKE, swim_end, bike_end),
                PhaseSegment(RacePhase.RUN, bike_end, total_min),
            ]
            return [s for s in segments if s.duration_min > 0]


def phase_at(segments: list[PhaseSegment], time_min: float) -> RacePhase:
    """Return the phase of a minute; pre-race maps to the first phase, post-finish to the last."""
    if time_min < segments[0].start_min:
        return segments[0].phase
    for segment in segments:
        if segment.contains(time_min):
            return segment.phase
    return segments[-1].phase


def fuelable_segments(segments: list[PhaseSegment]) -> list[PhaseSegment]:
    return [s for s in segments if s.is_fuelable]


def fuelable_minutes(segments: list[PhaseSegment]) -> int:
    return sum(s.duration_min for s in fuelable_segments(segments))


def transition_minute(segments: list[PhaseSegment]) -> int | None:
    """Minute of the bike→run transition (T2), None when the race has none."""
    for previous, current in zip(segments, segments[1:]):
        if previous.phase == RacePhase.BIKE and current.phase == RacePhase.RUN:
            return current.start_min
    return None


def carb_distribution(segments: list[PhaseSegment], rules: SchedulingRules) -> dict[RacePhase, float]:
    """Share of total carbohydrates per phase.

    A single fuelable phase takes everything. With both bike and run present
    the bike takes the configured ratio. The swim always takes nothing.
    """
    phases = [s.phase for s in fuelable_segments(segments)]
    distribution = {s.phase: 0.0 for s in segments}

    if RacePhase.BIKE in phases and RacePhase.RUN in phases:
        distribution[RacePhase.BIKE] = rules.triathlon_bike_carb_ratio
        distribution[RacePhase.RUN] = 1.0 - rules.triathlon_bike_carb_ratio
    elif phases:
        distribution[phases[0]] = 1.0

    return distribution

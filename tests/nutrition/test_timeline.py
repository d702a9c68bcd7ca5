"""Tests for the phase timeline."""

import pytest

from raceday.nutrition.enums import RacePhase, SportType
from raceday.nutrition.models import PhaseSegment
from raceday.nutrition.rules import DEFAULT_RULES, SchedulingRules
from raceday.nutrition.timeline import (
    FULL_DISTANCE,
    HALF_DISTANCE,
    build_timeline,
    carb_distribution,
    fuelable_minutes,
    phase_at,
    transition_minute,
    triathlon_preset,
)


def test_single_sport_is_one_phase() -> None:
    assert build_timeline(SportType.RUN, 3.0) == [PhaseSegment(RacePhase.RUN, 0, 180)]
    assert build_timeline(SportType.BIKE, 2.5) == [PhaseSegment(RacePhase.BIKE, 0, 150)]


def test_half_distance_at_nominal_duration() -> None:
    segments = build_timeline(SportType.TRIATHLON, 5.0)
    assert segments == [
        PhaseSegment(RacePhase.SWIM, 0, 30),
        PhaseSegment(RacePhase.BIKE, 30, 195),
        PhaseSegment(RacePhase.RUN, 195, 300),
    ]


def test_full_distance_at_nominal_duration() -> None:
    segments = build_timeline(SportType.TRIATHLON, 11.0)
    assert segments == [
        PhaseSegment(RacePhase.SWIM, 0, 60),
        PhaseSegment(RacePhase.BIKE, 60, 360),
        PhaseSegment(RacePhase.RUN, 360, 660),
    ]


def test_half_distance_scales_with_duration() -> None:
    """A 4.5h race is 90% of the 5h preset."""
    segments = build_timeline(SportType.TRIATHLON, 4.5)
    assert [s.phase for s in segments] == [RacePhase.SWIM, RacePhase.BIKE, RacePhase.RUN]
    assert segments[0].end_min == 27
    assert segments[1].end_min == 176
    assert segments[-1].end_min == 270


def test_segments_are_contiguous() -> None:
    for duration in (1.0, 2.25, 4.5, 7.9, 8.1, 13.0, 24.0):
        segments = build_timeline(SportType.TRIATHLON, duration)
        assert segments[0].start_min == 0
        assert segments[-1].end_min == round(duration * 60)
        for previous, current in zip(segments, segments[1:]):
            assert previous.end_min == current.start_min


@pytest.mark.parametrize(("duration", "preset"), [(5.0, HALF_DISTANCE), (7.9, HALF_DISTANCE), (8.0, FULL_DISTANCE), (8.5, FULL_DISTANCE)])
def test_preset_threshold(duration: float, preset: object) -> None:
    assert triathlon_preset(duration) == preset


def test_phase_at_boundaries() -> None:
    segments = build_timeline(SportType.TRIATHLON, 5.0)
    assert phase_at(segments, -15) == RacePhase.SWIM
    assert phase_at(segments, 0) == RacePhase.SWIM
    assert phase_at(segments, 29) == RacePhase.SWIM
    assert phase_at(segments, 30) == RacePhase.BIKE
    assert phase_at(segments, 195) == RacePhase.RUN
    assert phase_at(segments, 400) == RacePhase.RUN


def test_transition_minute() -> None:
    assert transition_minute(build_timeline(SportType.TRIATHLON, 5.0)) == 195
    assert transition_minute(build_timeline(SportType.RUN, 3.0)) is None


def test_fuelable_minutes_exclude_swim() -> None:
    assert fuelable_minutes(build_timeline(SportType.TRIATHLON, 5.0)) == 270
    assert fuelable_minutes(build_timeline(SportType.BIKE, 2.0)) == 120


def test_carb_distribution_triathlon() -> None:
    distribution = carb_distribution(build_timeline(SportType.TRIATHLON, 5.0), DEFAULT_RULES)
    assert distribution[RacePhase.SWIM] == 0
    assert distribution[RacePhase.BIKE] == pytest.approx(0.7)
    assert distribution[RacePhase.RUN] == pytest.approx(0.3)


def test_carb_distribution_uses_configured_ratio() -> None:
    rules = SchedulingRules(triathlon_bike_carb_ratio=0.6)
    distribution = carb_distribution(build_timeline(SportType.TRIATHLON, 5.0), rules)
    assert distribution[RacePhase.BIKE] == pytest.approx(0.6)
    assert distribution[RacePhase.RUN] == pytest.approx(0.4)


def test_carb_distribution_single_sport() -> None:
    assert carb_distribution(build_timeline(SportType.BIKE, 3.0), DEFAULT_RULES) == {RacePhase.BIKE: 1.0}

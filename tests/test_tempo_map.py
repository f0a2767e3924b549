"""Tests for tick <-> seconds conversion."""

import pytest

from fretline.tempo_map import TempoEvent, TempoMap, TempoMapError, TempoSegment


def test_constant_tempo_round_trip():
    tempo_map = TempoMap.from_tempo_events(480, [TempoEvent(0, 120)])
    seconds = tempo_map.tick_to_seconds(960)
    assert seconds == pytest.approx(1.0)
    assert tempo_map.seconds_to_tick(seconds) == 960


def test_tempo_change_uses_previous_tempo_up_to_the_change():
    tempo_map = TempoMap.from_tempo_events(480, [TempoEvent(0, 120), TempoEvent(480, 60)])
    assert tempo_map.tick_to_seconds(480) == pytest.approx(0.5)
    assert tempo_map.tick_to_seconds(960) == pytest.approx(1.5)
    assert tempo_map.seconds_to_tick(1.5) == 960


def test_missing_tick_zero_event_is_synthesized_at_120_bpm():
    tempo_map = TempoMap.from_tempo_events(480, [(960, 60)])
    assert len(tempo_map.segments) == 2
    assert tempo_map.segments[0].start_tick == 0
    assert tempo_map.segments[0].bpm == pytest.approx(120.0)
    assert tempo_map.tick_to_seconds(960) == pytest.approx(1.0)
    assert tempo_map.tick_to_seconds(1440) == pytest.approx(2.0)


def test_events_are_sorted_by_tick():
    tempo_map = TempoMap.from_tempo_events(480, [(480, 60), (0, 120)])
    assert [s.start_tick for s in tempo_map.segments] == [0, 480]
    assert tempo_map.bpm_at(100) == pytest.approx(120.0)
    assert tempo_map.bpm_at(480) == pytest.approx(60.0)


def test_round_trip_holds_for_every_tick_across_segments():
    tempo_map = TempoMap.from_tempo_events(480, [(0, 120), (1920, 90), (3840, 150)])
    for tick in range(0, 6000, 7):
        assert tempo_map.seconds_to_tick(tempo_map.tick_to_seconds(tick)) == tick


def test_tick_to_seconds_is_monotonic():
    tempo_map = TempoMap.from_tempo_events(96, [(0, 200), (500, 45), (900, 180)])
    seconds = [tempo_map.tick_to_seconds(t) for t in range(0, 2000, 3)]
    assert seconds == sorted(seconds)


def test_negative_ticks_extrapolate_from_first_segment():
    tempo_map = TempoMap.constant(480)
    assert tempo_map.tick_to_seconds(-480) == pytest.approx(-0.5)
    assert tempo_map.seconds_to_tick(-0.5) == -480


def test_segments_are_immutable():
    tempo_map = TempoMap.constant(480)
    assert isinstance(tempo_map.segments, tuple)


def test_invalid_resolution_or_tempo_raises():
    with pytest.raises(TempoMapError):
        TempoMap.from_tempo_events(0, [(0, 120)])
    with pytest.raises(TempoMapError):
        TempoMap.from_tempo_events(480, [(0, 0)])


def test_segments_must_start_at_tick_zero_in_order():
    with pytest.raises(TempoMapError):
        TempoMap(480, [TempoSegment(start_tick=240, start_seconds=0.0, us_per_quarter=500_000)])
    with pytest.raises(TempoMapError):
        TempoMap(
            480,
            [
                TempoSegment(start_tick=0, start_seconds=0.0, us_per_quarter=500_000),
                TempoSegment(start_tick=960, start_seconds=1.0, us_per_quarter=500_000),
                TempoSegment(start_tick=480, start_seconds=0.5, us_per_quarter=500_000),
            ],
        )
    with pytest.raises(TempoMapError):
        TempoMap(480, [])

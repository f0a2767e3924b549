"""Tick <-> seconds conversion under a piecewise-constant tempo."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

from fretline.config import DEFAULT_BPM

_US_PER_MINUTE = 60_000_000
_US_PER_SECOND = 1_000_000


class TempoMapError(ValueError):
    """Raised for a non-positive resolution or tempo, or malformed segments."""


@dataclass(frozen=True)
class TempoEvent:
    tick: int
    bpm: float


@dataclass(frozen=True)
class TempoSegment:
    start_tick: int
    start_seconds: float
    us_per_quarter: float

    @property
    def bpm(self) -> float:
        return _US_PER_MINUTE / self.us_per_quarter


TempoEventLike = Union[TempoEvent, tuple[int, float]]


def _as_event(event: TempoEventLike) -> TempoEvent:
    if isinstance(event, TempoEvent):
        return event
    tick, bpm = event
    return TempoEvent(tick=int(tick), bpm=float(bpm))


class TempoMap:
    """Immutable list of tempo segments, always starting at tick 0."""

    def __init__(self, ticks_per_quarter: int, segments: Iterable[TempoSegment]) -> None:
        if ticks_per_quarter <= 0:
            raise TempoMapError(f"ticks_per_quarter must be positive, got {ticks_per_quarter}")
        self._ticks_per_quarter = int(ticks_per_quarter)
        self._segments = tuple(segments)
        if not self._segments:
            raise TempoMapError("A tempo map needs at least one segment")
        if self._segments[0].start_tick != 0:
            raise TempoMapError(f"First segment must start at tick 0, got {self._segments[0].start_tick}")
        ticks = [segment.start_tick for segment in self._segments]
        if ticks != sorted(ticks):
            raise TempoMapError(f"Segments must be ordered by start tick, got {ticks}")

    @classmethod
    def from_tempo_events(
        cls, ticks_per_quarter: int, events: Iterable[TempoEventLike]
    ) -> TempoMap:
        """Build a map from ``(tick, bpm)`` events.

        A 120 BPM event is synthesized at tick 0 if none is present. Each
        segment's start time is accumulated with the previous segment's
        tempo.
        """
        if ticks_per_quarter <= 0:
            raise TempoMapError(f"ticks_per_quarter must be positive, got {ticks_per_quarter}")

        ordered = sorted((_as_event(e) for e in events), key=lambda e: e.tick)
        if not ordered or ordered[0].tick != 0:
            ordered.insert(0, TempoEvent(tick=0, bpm=DEFAULT_BPM))

        segments: list[TempoSegment] = []
        last_tick = 0
        last_seconds = 0.0
        us_per_quarter = _US_PER_MINUTE / DEFAULT_BPM

        for event in ordered:
            if event.bpm <= 0:
                raise TempoMapError(f"Tempo must be positive, got {event.bpm} BPM at tick {event.tick}")
            delta_ticks = event.tick - last_tick
            last_seconds += (delta_ticks / ticks_per_quarter) * (us_per_quarter / _US_PER_SECOND)
            us_per_quarter = _US_PER_MINUTE / event.bpm
            segments.append(TempoSegment(event.tick, last_seconds, us_per_quarter))
            last_tick = event.tick

        return cls(ticks_per_quarter, segments)

    @classmethod
    def constant(cls, ticks_per_quarter: int, bpm: float = DEFAULT_BPM) -> TempoMap:
        return cls.from_tempo_events(ticks_per_quarter, [TempoEvent(0, bpm)])

    @property
    def ticks_per_quarter(self) -> int:
        return self._ticks_per_quarter

    @property
    def segments(self) -> tuple[TempoSegment, ...]:
        return self._segments

    def tick_to_seconds(self, tick: float) -> float:
        seg = self._segment_for_tick(tick)
        delta_ticks = tick - seg.start_tick
        return seg.start_seconds + (delta_ticks / self._ticks_per_quarter) * (
            seg.us_per_quarter / _US_PER_SECOND
        )

    def seconds_to_tick(self, seconds: float) -> int:
        seg = self._segment_for_seconds(seconds)
        delta_seconds = seconds - seg.start_seconds
        return round(
            seg.start_tick
            + (delta_seconds * _US_PER_SECOND * self._ticks_per_quarter) / seg.us_per_quarter
        )

    def bpm_at(self, tick: float) -> float:
        return self._segment_for_tick(tick).bpm

    # Segments are few, a linear scan is enough.
    def _segment_for_tick(self, tick: float) -> TempoSegment:
        selected = self._segments[0]
        for seg in self._segments:
            if seg.start_tick <= tick:
                selected = seg
            else:
                break
        return selected

    def _segment_for_seconds(self, seconds: float) -> TempoSegment:
        selected = self._segments[0]
        for seg in self._segments:
            if seg.start_seconds <= seconds:
                selected = seg
            else:
                break
        return selected

    def __repr__(self) -> str:
        return f"TempoMap(ticks_per_quarter={self._ticks_per_quarter}, segments={len(self._segments)})"

"""Core data models shared across the engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ProfileError(ValueError):
    """Raised when a difficulty profile or generator option set is contradictory."""


class RepresentativePolicy(Enum):
    """Which pitch of a chord cluster becomes the playable target."""

    HIGHEST = "highest"
    LOWEST = "lowest"


class PlayState(Enum):
    PLAYING = "Playing"
    WAITING_FOR_HIT = "WaitingForHit"
    FINISHED = "Finished"


class Transition(Enum):
    NONE = "none"
    ENTERED_WAITING = "entered_waiting"
    VALIDATED_HIT = "validated_hit"
    TIMEOUT_MISS = "timeout_miss"
    FINISHED = "finished"


class Rating(Enum):
    PERFECT = "Perfect"
    GREAT = "Great"
    OK = "OK"
    MISS = "Miss"


@dataclass(frozen=True)
class SourceNote:
    """A note as delivered by MIDI parsing or transcription, in ticks."""

    tick_on: int
    tick_off: int
    midi_note: int  # MIDI note number 0-127
    velocity: float = 0.8  # 0.0-1.0
    channel: int = 0
    track: int = 0

    @property
    def duration_ticks(self) -> int:
        return self.tick_off - self.tick_on


@dataclass(frozen=True)
class FretRange:
    min: int = 0
    max: int = 12


def _unique(values) -> tuple[int, ...]:
    seen: list[int] = []
    for value in values:
        value = int(value)
        if value not in seen:
            seen.append(value)
    return tuple(seen)


@dataclass(frozen=True)
class DifficultyProfile:
    """Restrictions on what the player is asked to play.

    ``allowed_strings`` is ordered: earlier strings win ties between
    otherwise equal fretboard positions. When ``allowed_fret_list`` is set
    it replaces the ``allowed_frets`` range entirely.
    """

    allowed_strings: tuple[int, ...]
    allowed_fingers: tuple[int, ...]
    allowed_frets: FretRange = FretRange()
    allowed_fret_list: tuple[int, ...] | None = None
    pitch_tolerance_semitones: int = 0
    max_simultaneous_notes: int = 1
    avg_seconds_per_note: float | None = None
    target_notes_per_minute: float | None = None
    prefer_open_strings: bool = True
    gating_timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "allowed_strings", _unique(self.allowed_strings))
        object.__setattr__(self, "allowed_fingers", _unique(self.allowed_fingers))
        if self.allowed_fret_list is not None:
            object.__setattr__(self, "allowed_fret_list", _unique(self.allowed_fret_list))
        self._validate()

    def _validate(self) -> None:
        if not self.allowed_strings:
            raise ProfileError("allowed_strings must not be empty")
        bad_strings = [s for s in self.allowed_strings if not 1 <= s <= 6]
        if bad_strings:
            raise ProfileError(f"allowed_strings out of range 1-6: {bad_strings}")

        if not self.allowed_fingers:
            raise ProfileError("allowed_fingers must not be empty")
        bad_fingers = [f for f in self.allowed_fingers if not 0 <= f <= 4]
        if bad_fingers:
            raise ProfileError(f"allowed_fingers out of range 0-4: {bad_fingers}")

        if self.allowed_fret_list is not None:
            if not self.allowed_fret_list:
                raise ProfileError("allowed_fret_list must not be empty when given")
            if any(f < 0 for f in self.allowed_fret_list):
                raise ProfileError(f"allowed_fret_list has negative frets: {self.allowed_fret_list}")
        else:
            if self.allowed_frets.min < 0:
                raise ProfileError(f"allowed_frets.min must be >= 0, got {self.allowed_frets.min}")
            if self.allowed_frets.min > self.allowed_frets.max:
                raise ProfileError(
                    f"allowed_frets.min ({self.allowed_frets.min}) > max ({self.allowed_frets.max})"
                )

        if self.pitch_tolerance_semitones < 0:
            raise ProfileError("pitch_tolerance_semitones must be >= 0")
        if self.max_simultaneous_notes not in (1, 2):
            raise ProfileError(
                f"max_simultaneous_notes must be 1 or 2, got {self.max_simultaneous_notes}"
            )
        for name in ("avg_seconds_per_note", "target_notes_per_minute", "gating_timeout_seconds"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ProfileError(f"{name} must be positive, got {value}")

    @property
    def min_note_gap_seconds(self) -> float:
        """Pacing hint as a minimum gap between targets (0 = no pacing)."""
        if self.avg_seconds_per_note is not None:
            return float(self.avg_seconds_per_note)
        if self.target_notes_per_minute is not None:
            return 60.0 / self.target_notes_per_minute
        return 0.0


@dataclass(frozen=True)
class TargetNote:
    """A playable note bound to a string, fret and finger."""

    id: str
    tick: int
    duration_ticks: int
    string: int  # 1-6, 1 = high E
    fret: int
    finger: int  # 0 = open string
    expected_midi: int
    source_midi: int | None = None


@dataclass(frozen=True)
class RuntimeState:
    state: PlayState = PlayState.PLAYING
    current_tick: int = 0
    active_target_index: int = 0
    waiting_target_id: str | None = None
    waiting_started_at_s: float | None = None


@dataclass(frozen=True)
class ScoreEvent:
    target_id: str
    rating: Rating
    delta_ms: float
    points: int


@dataclass
class ScoreSummary:
    total_score: int = 0
    hit_distribution: dict[Rating, int] = field(
        default_factory=lambda: {rating: 0 for rating in Rating}
    )
    average_reaction_ms: float = 0.0
    longest_streak: int = 0

    @property
    def total_events(self) -> int:
        return sum(self.hit_distribution.values())

    @property
    def accuracy_pct(self) -> float:
        total = self.total_events
        if total == 0:
            return 0.0
        hits = total - self.hit_distribution[Rating.MISS]
        return round(hits / total * 100.0, 1)

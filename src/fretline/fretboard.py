"""Fretboard geometry: pitch lookup, finger choice and position ranking."""

from __future__ import annotations

from dataclasses import dataclass

from fretline.config import MAX_FINGER, STANDARD_TUNING
from fretline.models import DifficultyProfile

# Match quality, best first.
TIER_EXACT = 0
TIER_OCTAVE = 1
TIER_NEAR = 2
TIER_NEAR_OCTAVE = 3

# Octave shifts tried for fallback matches; order only breaks fret ties.
_OCTAVE_SHIFTS = (12, -12, 24, -24)


@dataclass(frozen=True)
class Position:
    """One way to play a pitch: string, fret, finger plus its ranking data."""

    string: int
    fret: int
    finger: int
    midi: int
    tier: int
    distance: int  # semitones from the (possibly octave-shifted) wanted pitch
    rank: tuple


def midi_for_string_fret(string: int, fret: int) -> int:
    return STANDARD_TUNING[string] + fret


def allowed_frets(profile: DifficultyProfile) -> list[int]:
    """Frets the profile allows, ascending. An explicit list beats the range."""
    if profile.allowed_fret_list:
        return sorted(set(profile.allowed_fret_list))
    return list(range(profile.allowed_frets.min, profile.allowed_frets.max + 1))


def natural_finger(fret: int) -> int:
    """First-position finger for a fret; higher frets map to higher fingers."""
    if fret <= 0:
        return 0
    return min(fret, MAX_FINGER)


def playable_fingers(fret: int, fingers: tuple[int, ...]) -> tuple[int, ...]:
    """Allowed fingers that can stop ``fret``, best first.

    Finger ``k`` puts the hand box at ``fret - k + 1``, which has to stay at
    fret 1 or above, so only fingers ``1..min(fret, 4)`` qualify. Open strings
    are always played with finger 0.
    """
    if fret == 0:
        return (0,)
    natural = natural_finger(fret)
    usable = [f for f in fingers if 1 <= f <= natural]
    return tuple(sorted(usable, key=lambda f: (abs(f - natural), f)))


def _classify(midi: int, pitch: int, tolerance: int) -> tuple[int, int, int] | None:
    """Return ``(tier, distance, shift_rank)`` or None when out of reach."""
    delta = midi - pitch
    if delta == 0:
        return TIER_EXACT, 0, 0
    if delta in _OCTAVE_SHIFTS:
        return TIER_OCTAVE, 0, _OCTAVE_SHIFTS.index(delta)
    if abs(delta) <= tolerance:
        return TIER_NEAR, abs(delta), 0

    best: tuple[int, int, int] | None = None
    for shift_rank, shift in enumerate(_OCTAVE_SHIFTS):
        distance = abs(midi - (pitch + shift))
        if 0 < distance <= tolerance:
            candidate = (TIER_NEAR_OCTAVE, distance, shift_rank)
            if best is None or candidate < best:
                best = candidate
    return best


def find_positions(
    pitch: int, profile: DifficultyProfile, exclude_strings: frozenset[int] = frozenset()
) -> list[Position]:
    """All positions reachable for ``pitch`` under ``profile``, best first.

    Ranking: match tier, pitch distance, fret (lower first, open strings
    last when ``prefer_open_strings`` is off), octave shift, order in
    ``allowed_strings``, finger preference.
    """
    frets = allowed_frets(profile)
    positions: list[Position] = []

    for string_rank, string in enumerate(profile.allowed_strings):
        if string in exclude_strings:
            continue
        for fret in frets:
            midi = midi_for_string_fret(string, fret)
            match = _classify(midi, pitch, profile.pitch_tolerance_semitones)
            if match is None:
                continue
            tier, distance, shift_rank = match
            fret_key = fret if profile.prefer_open_strings else (fret == 0, fret)
            for finger_rank, finger in enumerate(playable_fingers(fret, profile.allowed_fingers)):
                positions.append(
                    Position(
                        string=string,
                        fret=fret,
                        finger=finger,
                        midi=midi,
                        tier=tier,
                        distance=distance,
                        rank=(tier, distance, fret_key, shift_rank, string_rank, finger_rank),
                    )
                )

    positions.sort(key=lambda p: p.rank)
    return positions

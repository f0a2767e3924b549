"""Global constants, default settings and difficulty presets."""

from __future__ import annotations

from fretline.models import DifficultyProfile, FretRange, ProfileError

# Standard tuning, string number -> open-string MIDI pitch (1 = high E)
STANDARD_TUNING: dict[int, int] = {
    1: 64,
    2: 59,
    3: 55,
    4: 50,
    5: 45,
    6: 40,
}

# Tempo
DEFAULT_BPM = 120.0

# Target generation
CLUSTER_WINDOW_MS = 45  # onsets closer than this form one chord cluster
MAX_FINGER = 4

# Runtime gating
APPROACH_THRESHOLD_TICKS = 120
TARGET_HIT_GRACE_SECONDS = 0.25
FALLBACK_TIMEOUT_SECONDS = 2.5

# Hit validation from pitch frames
DEFAULT_HOLD_MS = 80
DEFAULT_MIN_CONFIDENCE = 0.7
PITCH_FRAME_BUFFER = 64

# Hit rating windows (milliseconds) and points
PERFECT_WINDOW_MS = 50
GREAT_WINDOW_MS = 120
OK_WINDOW_MS = 250
PERFECT_POINTS = 100
GREAT_POINTS = 70
OK_POINTS = 40

DIFFICULTY_PRESETS: dict[str, DifficultyProfile] = {
    "Easy": DifficultyProfile(
        allowed_strings=(6, 5, 4),
        allowed_frets=FretRange(0, 3),
        allowed_fingers=(1,),
        avg_seconds_per_note=2.0,
        pitch_tolerance_semitones=2,
        max_simultaneous_notes=1,
    ),
    "Medium": DifficultyProfile(
        allowed_strings=(6, 5, 4, 3),
        allowed_frets=FretRange(0, 5),
        allowed_fingers=(1, 2, 3),
        avg_seconds_per_note=1.2,
        pitch_tolerance_semitones=1,
        max_simultaneous_notes=1,
    ),
    "Hard": DifficultyProfile(
        allowed_strings=(1, 2, 3, 4, 5, 6),
        allowed_frets=FretRange(0, 12),
        allowed_fingers=(1, 2, 3, 4),
        avg_seconds_per_note=0.6,
        pitch_tolerance_semitones=0,
        max_simultaneous_notes=1,
    ),
}


def get_preset(name: str) -> DifficultyProfile:
    """Look up a difficulty preset by name (case-insensitive)."""
    for key, profile in DIFFICULTY_PRESETS.items():
        if key.lower() == name.lower():
            return profile
    raise ProfileError(
        f"Unknown difficulty preset: {name!r} (expected one of {', '.join(DIFFICULTY_PRESETS)})"
    )

"""Decide whether a stream of detected pitches counts as a held hit."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from fretline.config import DEFAULT_HOLD_MS, DEFAULT_MIN_CONFIDENCE


@dataclass(frozen=True)
class PitchFrame:
    """One pitch-detector reading."""

    t_seconds: float
    midi_estimate: float | None  # None = no pitch detected
    confidence: float = 1.0


def _frame_matches(frame: PitchFrame, expected_midi: int, tolerance: float, min_confidence: float) -> bool:
    return (
        frame.midi_estimate is not None
        and frame.confidence >= min_confidence
        and abs(frame.midi_estimate - expected_midi) <= tolerance
    )


def is_valid_held_hit(
    frames: Sequence[PitchFrame],
    expected_midi: int,
    tolerance: float = 0,
    hold_ms: float = DEFAULT_HOLD_MS,
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
) -> bool:
    """True when an unbroken run of matching frames lasts at least ``hold_ms``.

    A single wrong or low-confidence frame breaks the run.
    """
    if len(frames) < 2:
        return False

    run_start: float | None = None
    for frame in frames:
        if _frame_matches(frame, expected_midi, tolerance, min_confidence):
            if run_start is None:
                run_start = frame.t_seconds
            if (frame.t_seconds - run_start) * 1000.0 >= hold_ms:
                return True
        else:
            run_start = None
    return False

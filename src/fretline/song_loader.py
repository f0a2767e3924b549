"""Load MIDI files into sanitized source notes and a tempo map."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable

import mido

from fretline.models import SourceNote
from fretline.tempo_map import TempoEvent, TempoMap

logger = logging.getLogger(__name__)


class SongLoadError(Exception):
    """Raised when a song file cannot be parsed."""


@dataclass
class LoadedMidi:
    title: str
    ticks_per_quarter: int
    tempo_map: TempoMap
    source_notes: list[SourceNote] = field(default_factory=list)
    tempo_events: list[TempoEvent] = field(default_factory=list)


def sanitize_source_notes(notes: Iterable[SourceNote]) -> list[SourceNote]:
    """Drop empty notes, clamp velocity to [0, 1], sort by (tick_on, pitch)."""
    cleaned = [
        replace(n, velocity=min(1.0, max(0.0, n.velocity)))
        for n in notes
        if n.tick_off > n.tick_on
    ]
    cleaned.sort(key=lambda n: (n.tick_on, n.midi_note))
    return cleaned


def load_midi(file_path: str | Path) -> LoadedMidi:
    """Load a .mid/.midi file.

    Raises:
        SongLoadError: If the file cannot be parsed or uses SMPTE timing.
    """
    path = Path(file_path)
    try:
        if path.suffix.lower() not in (".mid", ".midi"):
            raise SongLoadError(f"Unsupported file format: {path.suffix}")
        return _load_midi(path)
    except SongLoadError:
        raise
    except Exception as exc:
        raise SongLoadError(f"Failed to load {path.name}: {exc}") from exc


def _load_midi(path: Path) -> LoadedMidi:
    mid = mido.MidiFile(str(path))
    ticks_per_quarter = mid.ticks_per_beat
    if ticks_per_quarter <= 0 or ticks_per_quarter & 0x8000:
        raise SongLoadError(f"{path.name}: SMPTE time division is not supported")

    notes: list[SourceNote] = []
    tempo_events: list[TempoEvent] = []

    for track_idx, track in enumerate(mid.tracks):
        abs_tick = 0
        pending: dict[tuple[int, int], tuple[int, int]] = {}  # (channel, pitch) -> (tick_on, velocity)

        for msg in track:
            abs_tick += msg.time

            if msg.type == "set_tempo":
                tempo_events.append(TempoEvent(tick=abs_tick, bpm=mido.tempo2bpm(msg.tempo)))

            elif msg.type == "note_on" and msg.velocity > 0:
                key = (msg.channel, msg.note)
                # Re-struck pitch closes the sounding one
                if key in pending:
                    notes.append(_close(pending.pop(key), abs_tick, key, track_idx))
                pending[key] = (abs_tick, msg.velocity)

            elif msg.type in ("note_off", "note_on"):
                key = (msg.channel, msg.note)
                if key in pending:
                    notes.append(_close(pending.pop(key), abs_tick, key, track_idx))

        if pending:
            logger.warning(
                "%s: track %d ends with %d unterminated notes, dropping them",
                path.name, track_idx, len(pending),
            )

    source_notes = sanitize_source_notes(notes)
    return LoadedMidi(
        title=path.stem,
        ticks_per_quarter=ticks_per_quarter,
        source_notes=source_notes,
        tempo_events=tempo_events,
        tempo_map=TempoMap.from_tempo_events(ticks_per_quarter, tempo_events),
    )


def _close(
    started: tuple[int, int], tick_off: int, key: tuple[int, int], track_idx: int
) -> SourceNote:
    tick_on, velocity = started
    channel, pitch = key
    return SourceNote(
        tick_on=tick_on,
        tick_off=tick_off,
        midi_note=pitch,
        velocity=velocity / 127.0,
        channel=channel,
        track=track_idx,
    )

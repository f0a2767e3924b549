"""Reduce a polyphonic note stream to playable guitar target notes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from fretline.config import CLUSTER_WINDOW_MS
from fretline.fretboard import Position, find_positions
from fretline.models import (
    DifficultyProfile,
    ProfileError,
    RepresentativePolicy,
    SourceNote,
    TargetNote,
)
from fretline.tempo_map import TempoMap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratorOptions:
    """Knobs for target generation that are not part of a difficulty profile."""

    representative_policy: RepresentativePolicy = RepresentativePolicy.HIGHEST
    cluster_window_ms: float = CLUSTER_WINDOW_MS

    def __post_init__(self) -> None:
        policy = self.representative_policy
        if isinstance(policy, str):
            try:
                policy = RepresentativePolicy(policy.lower())
            except ValueError as exc:
                raise ProfileError(f"Unknown representative policy: {policy!r}") from exc
            object.__setattr__(self, "representative_policy", policy)
        if self.cluster_window_ms < 0:
            raise ProfileError(f"cluster_window_ms must be >= 0, got {self.cluster_window_ms}")


class TargetNoteGenerator:
    """Turns sanitized source notes into an ordered list of TargetNotes.

    Processing order:

    1. group near-simultaneous onsets into clusters,
    2. drop clusters that come too soon after the last kept one (pacing),
    3. pick the representative pitch(es) of each cluster,
    4. map each pitch onto the fretboard, avoiding same fret + same finger
       repeats when the profile leaves an alternative.

    Notes that cannot be placed anywhere on the allowed fretboard are
    dropped; only an invalid profile raises.
    """

    def __init__(
        self,
        profile: DifficultyProfile,
        tempo_map: TempoMap,
        options: GeneratorOptions | None = None,
    ) -> None:
        if not isinstance(profile, DifficultyProfile):
            raise ProfileError(f"Expected a DifficultyProfile, got {type(profile).__name__}")
        self.profile = profile
        self.tempo_map = tempo_map
        self.options = options or GeneratorOptions()

    def generate(self, source_notes: Iterable[SourceNote]) -> list[TargetNote]:
        notes = sorted(source_notes, key=lambda n: (n.tick_on, n.midi_note))
        clusters = self._apply_pacing(self._cluster(notes))

        placed: list[tuple[int, int, Position, int]] = []  # (tick, duration, position, source pitch)
        previous: Position | None = None

        for cluster in clusters:
            tick = cluster[0].tick_on
            used_strings: set[int] = set()
            for note in self._pick_notes(cluster):
                positions = find_positions(note.midi_note, self.profile, frozenset(used_strings))
                if not positions:
                    logger.debug("Dropping unmappable note %d at tick %d", note.midi_note, tick)
                    continue
                position = self._choose(positions, previous)
                placed.append((tick, note.duration_ticks, position, note.midi_note))
                used_strings.add(position.string)
                previous = position

        targets = [
            TargetNote(
                id=f"target-{index}-{tick}",
                tick=tick,
                duration_ticks=duration,
                string=position.string,
                fret=position.fret,
                finger=position.finger,
                expected_midi=position.midi,
                source_midi=source_midi,
            )
            for index, (tick, duration, position, source_midi) in enumerate(placed)
        ]
        logger.debug("Generated %d targets from %d source notes", len(targets), len(notes))
        return targets

    def _cluster(self, notes: list[SourceNote]) -> list[list[SourceNote]]:
        """Chain notes whose onsets sit within the cluster window of their predecessor."""
        window_s = self.options.cluster_window_ms / 1000.0
        clusters: list[list[SourceNote]] = []
        last_seconds = 0.0
        for note in notes:
            seconds = self.tempo_map.tick_to_seconds(note.tick_on)
            if clusters and seconds - last_seconds <= window_s:
                clusters[-1].append(note)
            else:
                clusters.append([note])
            last_seconds = seconds
        return clusters

    def _apply_pacing(self, clusters: list[list[SourceNote]]) -> list[list[SourceNote]]:
        min_gap = self.profile.min_note_gap_seconds
        if min_gap <= 0:
            return clusters

        kept: list[list[SourceNote]] = []
        last_seconds = float("-inf")
        for cluster in clusters:
            seconds = self.tempo_map.tick_to_seconds(cluster[0].tick_on)
            if seconds - last_seconds >= min_gap:
                kept.append(cluster)
                last_seconds = seconds
            else:
                logger.debug("Pacing skips cluster at tick %d", cluster[0].tick_on)
        return kept

    def _pick_notes(self, cluster: list[SourceNote]) -> list[SourceNote]:
        """Representative first, then the opposite extreme if two notes are allowed."""
        highest = max(cluster, key=lambda n: n.midi_note)
        lowest = min(cluster, key=lambda n: n.midi_note)
        if self.options.representative_policy is RepresentativePolicy.HIGHEST:
            picks = [highest, lowest]
        else:
            picks = [lowest, highest]

        if self.profile.max_simultaneous_notes == 1 or picks[0].midi_note == picks[1].midi_note:
            return picks[:1]
        return picks

    @staticmethod
    def _choose(positions: list[Position], previous: Position | None) -> Position:
        best = positions[0]
        # Open strings repeat freely, no finger is involved.
        if previous is None or best.fret == 0:
            return best
        if (best.fret, best.finger) != (previous.fret, previous.finger):
            return best

        same_pitch = [p for p in positions if p.midi == best.midi]
        for p in same_pitch:
            if p.fret != previous.fret:
                return p
        for p in same_pitch:
            if p.finger != previous.finger:
                return p
        return best


def generate_target_notes(
    source_notes: Iterable[SourceNote],
    profile: DifficultyProfile,
    tempo_map: TempoMap,
    options: GeneratorOptions | None = None,
) -> list[TargetNote]:
    return TargetNoteGenerator(profile, tempo_map, options).generate(source_notes)

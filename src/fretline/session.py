"""Play session: drives the state machine once per frame and keeps the score log."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import replace
from typing import Sequence

from fretline.config import (
    DEFAULT_HOLD_MS,
    DEFAULT_MIN_CONFIDENCE,
    PITCH_FRAME_BUFFER,
    TARGET_HIT_GRACE_SECONDS,
)
from fretline.hit_detection import PitchFrame, is_valid_held_hit
from fretline.models import (
    DifficultyProfile,
    PlayState,
    RuntimeState,
    ScoreEvent,
    ScoreSummary,
    TargetNote,
    Transition,
)
from fretline.scoring import score_hit, score_miss, summarize_scores
from fretline.state_machine import (
    RuntimeUpdate,
    UpdateOptions,
    create_initial_state,
    update_runtime_state,
)
from fretline.tempo_map import TempoMap

logger = logging.getLogger(__name__)


class PlaySession:
    """Single-writer owner of one RuntimeState and its ScoreEvent log.

    The host calls :meth:`feed_pitch` for every detector reading and
    :meth:`tick` once per frame with the wall clock and the song clock.
    While waiting for a hit the host is expected to hold the song clock.
    """

    def __init__(
        self,
        targets: Sequence[TargetNote],
        tempo_map: TempoMap,
        profile: DifficultyProfile,
        grace_seconds: float = TARGET_HIT_GRACE_SECONDS,
        fallback_timeout_seconds: float | None = None,
        hold_ms: float = DEFAULT_HOLD_MS,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    ) -> None:
        self._targets = tuple(targets)
        self._tempo_map = tempo_map
        self._profile = profile
        self._grace_seconds = grace_seconds
        self._fallback_timeout_seconds = fallback_timeout_seconds
        self._hold_ms = hold_ms
        self._min_confidence = min_confidence
        self._state = create_initial_state()
        self._events: list[ScoreEvent] = []
        self._frames: deque[PitchFrame] = deque(maxlen=PITCH_FRAME_BUFFER)

    @property
    def state(self) -> RuntimeState:
        return self._state

    @property
    def targets(self) -> tuple[TargetNote, ...]:
        return self._targets

    @property
    def events(self) -> tuple[ScoreEvent, ...]:
        return tuple(self._events)

    @property
    def finished(self) -> bool:
        return self._state.state is PlayState.FINISHED

    @property
    def active_target(self) -> TargetNote | None:
        index = self._state.active_target_index
        if 0 <= index < len(self._targets):
            return self._targets[index]
        return None

    @property
    def gating_timeout_seconds(self) -> float | None:
        if self._profile.gating_timeout_seconds is not None:
            return self._profile.gating_timeout_seconds
        return self._fallback_timeout_seconds

    def feed_pitch(self, frame: PitchFrame) -> None:
        if not self.finished:
            self._frames.append(frame)

    def tick(self, now_seconds: float, song_seconds: float) -> RuntimeUpdate:
        previous = self._state
        if previous.state is PlayState.FINISHED:
            return RuntimeUpdate(previous, Transition.NONE)

        state = previous
        if state.state is PlayState.PLAYING:
            state = replace(state, current_tick=self._tempo_map.seconds_to_tick(song_seconds))

        active = self.active_target
        target_seconds = self._tempo_map.tick_to_seconds(active.tick) if active else None
        hit_valid = active is not None and self._can_validate(state, song_seconds, target_seconds)
        if hit_valid:
            hit_valid = is_valid_held_hit(
                list(self._frames),
                active.expected_midi,
                self._profile.pitch_tolerance_semitones,
                self._hold_ms,
                self._min_confidence,
            )

        options = UpdateOptions(
            gating_timeout_seconds=self.gating_timeout_seconds,
            late_hit_window_seconds=self._grace_seconds,
            target_time_seconds=target_seconds,
            song_time_seconds=song_seconds,
        )
        update = update_runtime_state(state, self._targets, now_seconds, hit_valid, options)
        self._state = update.state
        self._record(update, previous, now_seconds, song_seconds, target_seconds)
        return update

    def summary(self) -> ScoreSummary:
        return summarize_scores(self._events)

    def _can_validate(
        self, state: RuntimeState, song_seconds: float, target_seconds: float | None
    ) -> bool:
        if state.state is PlayState.WAITING_FOR_HIT:
            return True
        return target_seconds is not None and abs(song_seconds - target_seconds) <= self._grace_seconds

    def _record(
        self,
        update: RuntimeUpdate,
        previous: RuntimeState,
        now_seconds: float,
        song_seconds: float,
        target_seconds: float | None,
    ) -> None:
        transition = update.transition
        target = update.target

        if transition is Transition.ENTERED_WAITING:
            logger.debug("Waiting for %s", update.state.waiting_target_id)
            self._frames.clear()

        elif transition is Transition.VALIDATED_HIT and target is not None:
            if previous.state is PlayState.PLAYING and target_seconds is not None:
                delta_ms = abs(song_seconds - target_seconds) * 1000.0
            else:
                delta_ms = self._waited_ms(previous, now_seconds)
            event = score_hit(target.id, delta_ms)
            self._events.append(event)
            self._frames.clear()
            logger.debug("Hit %s: %s (%.0f ms)", target.id, event.rating.value, delta_ms)

        elif transition is Transition.TIMEOUT_MISS and target is not None:
            self._events.append(score_miss(target.id, self._waited_ms(previous, now_seconds)))
            self._frames.clear()
            logger.debug("Timed out on %s", target.id)

        elif transition is Transition.FINISHED:
            summary = self.summary()
            logger.info(
                "Session finished: score %d, longest streak %d, accuracy %.1f%%",
                summary.total_score, summary.longest_streak, summary.accuracy_pct,
            )

    def _waited_ms(self, previous: RuntimeState, now_seconds: float) -> float:
        if previous.waiting_started_at_s is None:
            return (self.gating_timeout_seconds or 0.0) * 1000.0
        return (now_seconds - previous.waiting_started_at_s) * 1000.0

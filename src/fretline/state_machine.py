"""Runtime gating state machine: a pure update function over RuntimeState."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

from fretline.config import APPROACH_THRESHOLD_TICKS
from fretline.models import PlayState, RuntimeState, TargetNote, Transition


@dataclass(frozen=True)
class UpdateOptions:
    """Per-call gating options.

    Supplying ``target_time_seconds`` switches the approach test from ticks
    to the song clock (``song_time_seconds``, or ``now_seconds`` when that
    is absent): gating starts once the late-hit window after the target
    has passed, and the caller's ``current_tick`` is kept on entering the
    waiting state.
    """

    approach_threshold_ticks: int = APPROACH_THRESHOLD_TICKS
    gating_timeout_seconds: float | None = None
    late_hit_window_seconds: float | None = None
    target_time_seconds: float | None = None
    song_time_seconds: float | None = None
    finish_when_no_targets: bool = True

    @property
    def time_driven(self) -> bool:
        return self.target_time_seconds is not None


@dataclass(frozen=True)
class RuntimeUpdate:
    state: RuntimeState
    transition: Transition
    target: TargetNote | None = None


_DEFAULT_OPTIONS = UpdateOptions()


def create_initial_state() -> RuntimeState:
    return RuntimeState()


def _approached(
    state: RuntimeState, target: TargetNote, now_seconds: float, options: UpdateOptions
) -> bool:
    if options.time_driven:
        song_now = options.song_time_seconds if options.song_time_seconds is not None else now_seconds
        late_window = options.late_hit_window_seconds or 0.0
        return song_now >= options.target_time_seconds + late_window
    return state.current_tick >= target.tick - options.approach_threshold_ticks


def _advance(state: RuntimeState, current_tick: int) -> RuntimeState:
    return RuntimeState(
        state=PlayState.PLAYING,
        current_tick=current_tick,
        active_target_index=state.active_target_index + 1,
    )


def update_runtime_state(
    state: RuntimeState,
    targets: Sequence[TargetNote],
    now_seconds: float,
    is_hit_valid: bool,
    options: UpdateOptions | None = None,
) -> RuntimeUpdate:
    """Compute the next state for one frame.

    Never mutates its inputs and never raises for in-domain values: an
    index past the end of ``targets`` resolves to the ``finished``
    transition (or a no-op when ``finish_when_no_targets`` is off).
    """
    options = options or _DEFAULT_OPTIONS

    if state.state is PlayState.FINISHED:
        return RuntimeUpdate(state, Transition.NONE)

    index = state.active_target_index
    if not 0 <= index < len(targets):
        if not options.finish_when_no_targets:
            return RuntimeUpdate(state, Transition.NONE)
        finished = replace(
            state,
            state=PlayState.FINISHED,
            waiting_target_id=None,
            waiting_started_at_s=None,
        )
        return RuntimeUpdate(finished, Transition.FINISHED)

    target = targets[index]

    if state.state is PlayState.PLAYING:
        if _approached(state, target, now_seconds, options):
            waiting = replace(
                state,
                state=PlayState.WAITING_FOR_HIT,
                waiting_target_id=target.id,
                waiting_started_at_s=now_seconds,
                current_tick=state.current_tick if options.time_driven else target.tick,
            )
            return RuntimeUpdate(waiting, Transition.ENTERED_WAITING, target)
        if is_hit_valid:
            return RuntimeUpdate(_advance(state, state.current_tick), Transition.VALIDATED_HIT, target)
        return RuntimeUpdate(state, Transition.NONE)

    # WAITING_FOR_HIT
    if is_hit_valid:
        return RuntimeUpdate(_advance(state, target.tick + 1), Transition.VALIDATED_HIT, target)

    timeout = options.gating_timeout_seconds
    if (
        timeout is not None
        and state.waiting_started_at_s is not None
        and now_seconds - state.waiting_started_at_s >= timeout
    ):
        return RuntimeUpdate(_advance(state, target.tick + 1), Transition.TIMEOUT_MISS, target)

    return RuntimeUpdate(state, Transition.NONE)

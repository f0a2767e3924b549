"""Tests for the runtime gating state machine."""

from fretline.models import PlayState, RuntimeState, TargetNote, Transition
from fretline.state_machine import UpdateOptions, create_initial_state, update_runtime_state

TARGET = TargetNote(
    id="t-1", tick=1000, duration_ticks=180, string=4, fret=2, finger=1, expected_midi=52
)


def _playing(tick, index=0):
    return RuntimeState(state=PlayState.PLAYING, current_tick=tick, active_target_index=index)


def _waiting(started_at):
    return RuntimeState(
        state=PlayState.WAITING_FOR_HIT,
        current_tick=TARGET.tick,
        active_target_index=0,
        waiting_target_id=TARGET.id,
        waiting_started_at_s=started_at,
    )


def test_initial_state():
    state = create_initial_state()
    assert state.state == PlayState.PLAYING
    assert state.active_target_index == 0
    assert state.current_tick == 0
    assert state.waiting_target_id is None


def test_enters_waiting_at_approach_threshold():
    update = update_runtime_state(_playing(880), [TARGET], 10, False, UpdateOptions(approach_threshold_ticks=120))
    assert update.transition == Transition.ENTERED_WAITING
    assert update.state.state == PlayState.WAITING_FOR_HIT
    assert update.state.waiting_target_id == TARGET.id
    assert update.state.waiting_started_at_s == 10
    assert update.state.current_tick == TARGET.tick
    assert update.target == TARGET


def test_stays_playing_before_threshold():
    state = _playing(879)
    update = update_runtime_state(state, [TARGET], 10, False, UpdateOptions(approach_threshold_ticks=120))
    assert update.transition == Transition.NONE
    assert update.state is state


def test_default_threshold_is_used_without_options():
    assert update_runtime_state(_playing(880), [TARGET], 0, False).transition == Transition.ENTERED_WAITING


def test_enters_waiting_only_after_late_window_with_target_time():
    state = _playing(1010)
    options = dict(target_time_seconds=10, late_hit_window_seconds=0.5)
    before = update_runtime_state(state, [TARGET], 10.49, False, UpdateOptions(**options))
    assert before.transition == Transition.NONE

    after = update_runtime_state(state, [TARGET], 10.5, False, UpdateOptions(**options))
    assert after.transition == Transition.ENTERED_WAITING
    assert after.state.state == PlayState.WAITING_FOR_HIT
    assert after.state.current_tick == 1010


def test_song_time_drives_waiting_when_supplied():
    state = _playing(1010)
    options = dict(target_time_seconds=10, late_hit_window_seconds=0.5)
    before = update_runtime_state(state, [TARGET], 200, False, UpdateOptions(song_time_seconds=10.49, **options))
    assert before.transition == Transition.NONE

    after = update_runtime_state(state, [TARGET], 200, False, UpdateOptions(song_time_seconds=10.5, **options))
    assert after.transition == Transition.ENTERED_WAITING
    assert after.state.waiting_started_at_s == 200


def test_validates_hit_directly_while_playing():
    options = UpdateOptions(target_time_seconds=10, late_hit_window_seconds=0.5)
    update = update_runtime_state(_playing(1002), [TARGET], 10.2, True, options)
    assert update.transition == Transition.VALIDATED_HIT
    assert update.state.state == PlayState.PLAYING
    assert update.state.active_target_index == 1
    assert update.target == TARGET


def test_early_hit_in_tick_mode_is_accepted():
    update = update_runtime_state(_playing(500), [TARGET], 5, True)
    assert update.transition == Transition.VALIDATED_HIT
    assert update.state.active_target_index == 1
    assert update.state.current_tick == 500


def test_approach_wins_over_simultaneous_hit():
    update = update_runtime_state(_playing(950), [TARGET], 5, True)
    assert update.transition == Transition.ENTERED_WAITING


def test_valid_hit_while_waiting_advances():
    update = update_runtime_state(_waiting(12), [TARGET], 12.2, True)
    assert update.transition == Transition.VALIDATED_HIT
    assert update.state.state == PlayState.PLAYING
    assert update.state.active_target_index == 1
    assert update.state.current_tick == TARGET.tick + 1
    assert update.state.waiting_target_id is None
    assert update.state.waiting_started_at_s is None


def test_timeout_miss_after_gating_timeout():
    update = update_runtime_state(_waiting(20), [TARGET], 22.5, False, UpdateOptions(gating_timeout_seconds=2))
    assert update.transition == Transition.TIMEOUT_MISS
    assert update.state.state == PlayState.PLAYING
    assert update.state.active_target_index == 1
    assert update.target == TARGET


def test_timeout_boundary_is_inclusive():
    options = UpdateOptions(gating_timeout_seconds=2)
    assert update_runtime_state(_waiting(20), [TARGET], 21.99, False, options).transition == Transition.NONE
    assert update_runtime_state(_waiting(20), [TARGET], 22.0, False, options).transition == Transition.TIMEOUT_MISS


def test_waiting_without_timeout_never_expires():
    state = _waiting(0)
    update = update_runtime_state(state, [TARGET], 1_000_000, False)
    assert update.transition == Transition.NONE
    assert update.state is state


def test_finishes_when_targets_are_exhausted():
    update = update_runtime_state(_playing(1200, index=1), [TARGET], 30, False)
    assert update.transition == Transition.FINISHED
    assert update.state.state == PlayState.FINISHED

    again = update_runtime_state(update.state, [TARGET], 31, True)
    assert again.transition == Transition.NONE
    assert again.state is update.state


def test_finish_can_be_deferred():
    state = _playing(1200, index=1)
    update = update_runtime_state(state, [TARGET], 30, False, UpdateOptions(finish_when_no_targets=False))
    assert update.transition == Transition.NONE
    assert update.state.state == PlayState.PLAYING
    assert update.state.active_target_index == 1


def test_empty_target_list_finishes_immediately():
    assert update_runtime_state(create_initial_state(), [], 0, False).transition == Transition.FINISHED


def test_input_state_is_not_mutated():
    state = _playing(880)
    update_runtime_state(state, [TARGET], 10, False)
    assert state == _playing(880)


def test_full_walk_fires_each_transition_once():
    second = TargetNote(id="t-2", tick=2000, duration_ticks=100, string=5, fret=0, finger=0, expected_midi=45)
    targets = [TARGET, second]
    options = UpdateOptions(approach_threshold_ticks=120, gating_timeout_seconds=2)
    seen = []

    state = RuntimeState(current_tick=900)
    update = update_runtime_state(state, targets, 1.0, False, options)
    seen.append(update.transition)
    update = update_runtime_state(update.state, targets, 1.2, True, options)
    seen.append(update.transition)
    assert update.state.active_target_index == 1

    playing = RuntimeState(current_tick=1900, active_target_index=update.state.active_target_index)
    update = update_runtime_state(playing, targets, 2.0, False, options)
    seen.append(update.transition)
    update = update_runtime_state(update.state, targets, 4.0, False, options)
    seen.append(update.transition)
    assert update.state.active_target_index == 2

    update = update_runtime_state(update.state, targets, 4.1, False, options)
    seen.append(update.transition)
    update = update_runtime_state(update.state, targets, 4.2, False, options)
    seen.append(update.transition)

    assert seen == [
        Transition.ENTERED_WAITING,
        Transition.VALIDATED_HIT,
        Transition.ENTERED_WAITING,
        Transition.TIMEOUT_MISS,
        Transition.FINISHED,
        Transition.NONE,
    ]

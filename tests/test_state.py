"""Tests for the pure playback state machine."""

from dataclasses import replace

import pytest

from lessonplay.engine import Phase, PlaybackStatus, transition
from lessonplay.engine.state import (
    CancelTakeawayDwell,
    InteractionResolved,
    LessonCompleted,
    NarrationFinished,
    Next,
    Pause,
    Play,
    Previous,
    ResetScene,
    SceneChanged,
    SpeakNarration,
    StartTakeawayDwell,
    StopNarration,
    TakeawayElapsed,
    Tick,
    ToggleMute,
    initial_state,
)
from lessonplay.models import InteractionKind, Lesson

from conftest import choice, make_scene


@pytest.fixture()
def lesson():
    return Lesson(
        title="Machine",
        scenes=[
            make_scene("talk", 10, "Some words to say"),
            make_scene("quiz", 10, interaction=choice()),
            make_scene("wrap", 10, key_takeaway="Remember this"),
        ],
    )


def playing(lesson, now_ms=0.0, **changes):
    state = transition(initial_state(), Play(now_ms), lesson).state
    return replace(state, **changes)


class TestPlayPause:
    def test_starts_paused(self):
        state = initial_state()
        assert state.status == PlaybackStatus.PAUSED
        assert state.position.scene_index == 0
        assert state.position.progress == 0.0

    def test_play_speaks_narration(self, lesson):
        result = transition(initial_state(), Play(0.0), lesson)
        assert result.state.playing
        assert result.state.status == PlaybackStatus.PLAYING
        assert result.effects == (SpeakNarration("Some words to say"),)

    def test_play_without_voice_is_silent(self, lesson):
        result = transition(initial_state(), Play(0.0), lesson, voice_supported=False)
        assert result.state.playing
        assert result.effects == ()

    def test_play_while_muted_is_silent(self, lesson):
        result = transition(initial_state(muted=True), Play(0.0), lesson)
        assert result.effects == ()

    def test_play_twice_is_a_no_op(self, lesson):
        state = playing(lesson)
        assert transition(state, Play(50.0), lesson).state is state

    def test_pause_banks_play_time(self, lesson):
        state = playing(lesson)
        result = transition(state, Pause(4000.0), lesson)
        assert not result.state.playing
        assert result.state.banked_ms == 4000.0
        assert StopNarration() in result.effects

        resumed = transition(result.state, Play(9000.0), lesson).state
        assert resumed.played_ms(10_000.0) == 5000.0


class TestTick:
    def test_progress_from_play_time(self, lesson):
        state = playing(lesson)
        state = transition(state, Tick(2500.0), lesson).state
        assert state.progress == pytest.approx(25.0)

    def test_ignored_while_paused(self, lesson):
        state = initial_state()
        assert transition(state, Tick(5000.0), lesson).state is state

    def test_waits_for_narration(self, lesson):
        state = playing(lesson)
        result = transition(state, Tick(10_000.0, speaking=True), lesson)
        assert result.state.phase == Phase.WAITING_FOR_NARRATION
        assert result.state.progress == 100.0
        assert result.effects == ()

    def test_advances_when_narration_is_done(self, lesson):
        state = playing(lesson)
        result = transition(state, Tick(10_000.0, speaking=False), lesson)
        assert result.state.scene_index == 1
        assert result.state.progress == 0.0
        assert ResetScene(1) in result.effects
        assert result.effects[-1] == SceneChanged(1)

    def test_narration_finished_moves_on(self, lesson):
        state = playing(lesson, phase=Phase.WAITING_FOR_NARRATION, progress=100.0)
        result = transition(state, NarrationFinished(12_000.0), lesson)
        assert result.state.scene_index == 1
        assert result.state.run_started_ms == 12_000.0


class TestInteraction:
    def test_unresolved_interaction_blocks(self, lesson):
        state = playing(lesson, scene_index=1, narration_started=True)
        for now in range(10_000, 100_000, 100):
            state = transition(state, Tick(float(now)), lesson).state
        assert state.scene_index == 1
        assert state.phase == Phase.WAITING_FOR_INTERACTION
        assert state.status == PlaybackStatus.WAITING_FOR_INTERACTION

    def test_resolution_advances(self, lesson):
        state = playing(lesson, scene_index=1, phase=Phase.WAITING_FOR_INTERACTION)
        result = transition(state, InteractionResolved(InteractionKind.CHOICE, 20_000.0), lesson)
        assert result.state.scene_index == 2

    def test_choice_resolved_while_paused_resumes(self, lesson):
        state = replace(
            initial_state(), scene_index=1, phase=Phase.WAITING_FOR_INTERACTION, progress=100.0,
            banked_ms=10_000.0,
        )
        result = transition(state, InteractionResolved(InteractionKind.CHOICE, 30_000.0), lesson)
        assert result.state.playing
        assert result.state.scene_index == 2

    def test_reveal_resolved_while_paused_waits_for_play(self, lesson):
        state = replace(
            initial_state(), scene_index=1, phase=Phase.WAITING_FOR_INTERACTION, progress=100.0,
        )
        result = transition(state, InteractionResolved(InteractionKind.CLICK_REVEAL, 30_000.0), lesson)
        assert not result.state.playing
        assert result.state.phase == Phase.RUNNING
        assert result.state.interaction_resolved
        assert result.state.scene_index == 1


class TestTakeaway:
    def test_takeaway_dwell_then_complete(self, lesson):
        state = playing(lesson, scene_index=2, narration_started=True)
        result = transition(state, Tick(10_000.0), lesson)
        assert result.state.phase == Phase.SHOWING_KEY_TAKEAWAY
        assert result.effects == (StartTakeawayDwell(2),)

        done = transition(result.state, TakeawayElapsed(2, 13_000.0), lesson)
        assert done.state.phase == Phase.COMPLETE
        assert done.state.status == PlaybackStatus.COMPLETE
        assert LessonCompleted() in done.effects

    def test_pause_cancels_dwell_and_play_restarts_it(self, lesson):
        state = playing(lesson, scene_index=2, phase=Phase.SHOWING_KEY_TAKEAWAY, takeaway_shown=True)
        paused = transition(state, Pause(11_000.0), lesson)
        assert CancelTakeawayDwell() in paused.effects

        resumed = transition(paused.state, Play(20_000.0), lesson)
        assert StartTakeawayDwell(2) in resumed.effects

    def test_stale_dwell_is_ignored(self, lesson):
        state = playing(lesson, scene_index=2, phase=Phase.SHOWING_KEY_TAKEAWAY)
        assert transition(state, TakeawayElapsed(1, 5000.0), lesson).state is state


class TestNavigation:
    def test_next_resets_scene_and_keeps_playing(self, lesson):
        state = transition(playing(lesson), Tick(5000.0), lesson).state
        result = transition(state, Next(5000.0), lesson)
        assert result.state.scene_index == 1
        assert result.state.progress == 0.0
        assert result.state.playing
        assert result.effects[0] == StopNarration()
        assert result.effects[-1] == SceneChanged(1)

    def test_next_on_last_scene_is_a_no_op(self, lesson):
        state = playing(lesson, scene_index=2)
        assert transition(state, Next(0.0), lesson).state is state

    def test_previous_on_first_scene_restarts_it(self, lesson):
        state = transition(playing(lesson), Tick(5000.0), lesson).state
        result = transition(state, Previous(5000.0), lesson)
        assert result.state.scene_index == 0
        assert result.state.progress == 0.0
        assert ResetScene(0) in result.effects
        assert not any(isinstance(e, SceneChanged) for e in result.effects)

    def test_previous_goes_back(self, lesson):
        state = playing(lesson, scene_index=2)
        result = transition(state, Previous(0.0), lesson)
        assert result.state.scene_index == 1
        assert SceneChanged(1) in result.effects


class TestMute:
    def test_mute_stops_narration(self, lesson):
        result = transition(playing(lesson), ToggleMute(100.0), lesson)
        assert result.state.muted
        assert result.effects == (StopNarration(),)

    def test_unmute_restarts_narration(self, lesson):
        state = playing(lesson, muted=True, narration_started=False)
        result = transition(state, ToggleMute(100.0), lesson)
        assert not result.state.muted
        assert result.effects == (SpeakNarration("Some words to say"),)

    def test_muted_scene_does_not_wait_for_narration(self, lesson):
        state = playing(lesson, muted=True)
        result = transition(state, Tick(10_000.0, speaking=True), lesson)
        assert result.state.scene_index == 1


class TestComplete:
    def test_complete_is_terminal(self, lesson):
        state = playing(lesson, phase=Phase.COMPLETE)
        for event in (Play(0.0), Pause(0.0), Tick(0.0), Next(0.0), Previous(0.0), ToggleMute(0.0)):
            result = transition(state, event, lesson)
            assert result.state is state
            assert result.effects == ()

    def test_unknown_event(self, lesson):
        with pytest.raises(TypeError):
            transition(initial_state(), object(), lesson)

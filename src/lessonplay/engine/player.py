"""Lesson player: runs the playback state machine against real collaborators."""

import logging
from typing import Callable, List, Optional

from ..config import PlaybackConfig, config
from ..models import InteractionKind, Lesson, Scene, format_time
from .clock import Scheduler, TimerHandle
from .gate import ChoiceFeedback, InteractionGate
from .narration import NarrationSession, Narrator
from .state import (
    CancelTakeawayDwell,
    Effect,
    Event,
    InteractionResolved,
    LessonCompleted,
    NarrationFinished,
    Next,
    Pause,
    Phase,
    Play,
    PlaybackPosition,
    PlaybackState,
    PlaybackStatus,
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
    transition,
)
from .subtitles import SubtitleSynchronizer, SubtitleWindow

logger = logging.getLogger(__name__)


class LessonPlayer:
    """Plays a lesson: owns timers, narration, the interaction gate and subtitles.

    All state changes go through :func:`~lessonplay.engine.state.transition`;
    this class only turns host input and timer callbacks into events and
    carries out the resulting effects.

    Example:
        >>> scheduler = ManualScheduler()
        >>> player = LessonPlayer(lesson, SilentNarrator(), scheduler, on_complete=done)
        >>> player.play()
        >>> scheduler.advance(10_000)
    """

    def __init__(
        self,
        lesson: Lesson,
        narrator: Narrator,
        scheduler: Scheduler,
        on_complete: Optional[Callable[[], None]] = None,
        on_scene_change: Optional[Callable[[int], None]] = None,
        playback: Optional[PlaybackConfig] = None,
        muted: bool = False,
    ) -> None:
        """Initialize the player.

        Args:
            lesson: Validated lesson to play.
            narrator: Speech collaborator. May be unsupported.
            scheduler: Timer source.
            on_complete: Called exactly once after the last scene.
            on_scene_change: Called with the new index on every scene change.
            playback: Timing configuration. Defaults to config.playback.
            muted: Start with narration muted.
        """
        self.lesson = lesson
        self._scheduler = scheduler
        self._narration = NarrationSession(narrator)
        self._on_complete = on_complete
        self._on_scene_change = on_scene_change
        self._playback = playback or config.playback

        self._state = initial_state(muted=muted)
        self._ticker: Optional[TimerHandle] = None
        self._dwell: Optional[TimerHandle] = None
        self._gate: Optional[InteractionGate] = None
        self._subtitle: SubtitleSynchronizer = self._new_subtitle(0)
        self._completed = False
        self._closed = False
        self.scene_history: List[int] = [0]

        self._reset_scene(0)

    # ------------------------------------------------------------------
    # Read-only view
    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def status(self) -> PlaybackStatus:
        return self._state.status

    @property
    def position(self) -> PlaybackPosition:
        return self._state.position

    @property
    def scene(self) -> Scene:
        return self.lesson.scenes[self._state.scene_index]

    @property
    def is_playing(self) -> bool:
        return self._state.playing

    @property
    def is_muted(self) -> bool:
        return self._state.muted

    @property
    def is_complete(self) -> bool:
        return self._state.phase == Phase.COMPLETE

    @property
    def is_narrating(self) -> bool:
        return self._narration.is_speaking

    @property
    def gate(self) -> Optional[InteractionGate]:
        """Interaction gate of the current scene visit, if the scene has one."""
        return self._gate

    @property
    def awaiting_interaction(self) -> bool:
        return self._state.phase == Phase.WAITING_FOR_INTERACTION

    @property
    def active_takeaway(self) -> Optional[str]:
        """Key takeaway text while it is on screen."""
        if self._state.phase == Phase.SHOWING_KEY_TAKEAWAY:
            return self.scene.key_takeaway
        return None

    @property
    def subtitle(self) -> SubtitleSynchronizer:
        return self._subtitle

    @property
    def subtitle_window(self) -> Optional[SubtitleWindow]:
        """Subtitle words to render; hidden while an interaction is on screen."""
        if self.awaiting_interaction:
            return None
        return self._subtitle.window()

    @property
    def total_duration(self) -> float:
        return self.lesson.total_duration

    @property
    def current_time(self) -> float:
        return self.lesson.elapsed_time(self._state.scene_index, self._state.progress)

    @property
    def overall_progress(self) -> float:
        """Lesson-wide progress in percent, for a scrub bar."""
        count = self.lesson.scene_count
        return (self._state.scene_index / count) * 100.0 + self._state.progress / count

    @property
    def time_label(self) -> str:
        return f"{format_time(self.current_time)} / {format_time(self.total_duration)}"

    @property
    def scene_label(self) -> str:
        return f"Scene {self._state.scene_index + 1} of {self.lesson.scene_count}"

    # ------------------------------------------------------------------
    # Host controls
    def play(self) -> None:
        self._dispatch(Play(self._now()))

    def pause(self) -> None:
        self._dispatch(Pause(self._now()))

    def toggle_play(self) -> None:
        if self._state.playing:
            self.pause()
        else:
            self.play()

    def toggle_mute(self) -> None:
        self._dispatch(ToggleMute(self._now()))

    def next_scene(self) -> None:
        self._dispatch(Next(self._now()))

    def previous_scene(self) -> None:
        self._dispatch(Previous(self._now()))

    def select_option(self, option_id: str) -> Optional[ChoiceFeedback]:
        """Answer the current choice interaction.

        Returns:
            The resulting feedback, or None when no interaction is awaited.
        """
        if not self._accepting_input():
            return None
        return self._gate.select(option_id)

    def retry_choice(self) -> bool:
        if not self._accepting_input():
            return False
        return self._gate.retry()

    def reveal_item(self, item_id: str) -> bool:
        """Reveal one item of the current click-reveal interaction."""
        if not self._accepting_input():
            return False
        return self._gate.reveal(item_id)

    def close(self) -> None:
        """Stop narration and tear down every timer."""
        if self._closed:
            return
        self._closed = True
        self._narration.stop()
        self._stop_ticker()
        self._cancel_dwell()
        if self._gate is not None:
            self._gate.cancel()
        self._subtitle.close()
        logger.debug("Player closed")

    # ------------------------------------------------------------------
    # Event plumbing
    def _now(self) -> float:
        return self._scheduler.now()

    def _dispatch(self, event: Event) -> None:
        if self._closed:
            logger.debug(f"Ignoring {type(event).__name__} after close")
            return
        result = transition(self._state, event, self.lesson, self._narration.supported)
        previous = self._state
        self._state = result.state
        for effect in result.effects:
            self._apply(effect)
        if previous.phase != self._state.phase:
            logger.debug(f"Phase {previous.phase.value} -> {self._state.phase.value}")
        self._sync_timers()
        self._sync_subtitle()

    def _apply(self, effect: Effect) -> None:
        if isinstance(effect, SpeakNarration):
            self._narration.start(effect.text)
        elif isinstance(effect, StopNarration):
            self._narration.stop()
        elif isinstance(effect, StartTakeawayDwell):
            self._start_dwell(effect.scene_index)
        elif isinstance(effect, CancelTakeawayDwell):
            self._cancel_dwell()
        elif isinstance(effect, ResetScene):
            self._reset_scene(effect.scene_index)
        elif isinstance(effect, SceneChanged):
            self.scene_history.append(effect.scene_index)
            logger.info(f"Scene {effect.scene_index + 1}/{self.lesson.scene_count}: {self.scene.id}")
            if self._on_scene_change is not None:
                self._on_scene_change(effect.scene_index)
        elif isinstance(effect, LessonCompleted):
            self._complete()

    def _on_tick(self) -> None:
        speaking = self._narration.is_speaking
        if self._state.phase == Phase.WAITING_FOR_NARRATION and not speaking:
            self._dispatch(NarrationFinished(self._now()))
        else:
            self._dispatch(Tick(self._now(), speaking))

    def _on_gate_resolved(self, kind: InteractionKind) -> None:
        self._dispatch(InteractionResolved(kind, self._now()))

    def _on_dwell_elapsed(self, scene_index: int) -> None:
        self._dwell = None
        self._dispatch(TakeawayElapsed(scene_index, self._now()))

    def _accepting_input(self) -> bool:
        if self._gate is None or not self.awaiting_interaction:
            logger.debug("No interaction awaited, ignoring input")
            return False
        return True

    # ------------------------------------------------------------------
    # Scene-scoped resources
    def _reset_scene(self, index: int) -> None:
        if self._gate is not None:
            self._gate.cancel()
        self._subtitle.close()
        self._cancel_dwell()
        # Scene change tears the ticker down; _sync_timers starts a fresh one
        self._stop_ticker()

        scene = self.lesson.scenes[index]
        self._subtitle = self._new_subtitle(index)
        self._gate = None
        if scene.interaction is not None:
            self._gate = InteractionGate(
                scene.interaction, self._scheduler, self._on_gate_resolved, self._playback
            )

    def _new_subtitle(self, index: int) -> SubtitleSynchronizer:
        scene = self.lesson.scenes[index]
        return SubtitleSynchronizer(scene.narration, scene.duration, self._scheduler, self._playback)

    def _sync_timers(self) -> None:
        if self._state.playing and self._state.phase != Phase.COMPLETE:
            if self._ticker is None:
                self._ticker = self._scheduler.call_every(
                    self._playback.tick_interval_ms, self._on_tick, name="progress-tick"
                )
        else:
            self._stop_ticker()

    def _sync_subtitle(self) -> None:
        self._subtitle.update(self._state.playing, self._narration.is_speaking)

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def _start_dwell(self, scene_index: int) -> None:
        self._cancel_dwell()
        self._dwell = self._scheduler.call_later(
            self._playback.takeaway_dwell_ms,
            lambda: self._on_dwell_elapsed(scene_index),
            name="takeaway-dwell",
        )

    def _cancel_dwell(self) -> None:
        if self._dwell is not None:
            self._dwell.cancel()
            self._dwell = None

    def _complete(self) -> None:
        if self._completed:
            return
        self._completed = True
        self._stop_ticker()
        self._subtitle.close()
        logger.info(f"Lesson complete: {self.lesson.title}")
        if self._on_complete is not None:
            self._on_complete()

"""Playback state machine.

Playback state is a single immutable :class:`PlaybackState`; every input is
an event and :func:`transition` maps ``(state, event)`` to a new state plus a
list of effects for the player to carry out (speak, stop, start timers,
notify the host). Nothing here touches a clock, a narrator or a callback.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple, Union

from ..models import InteractionKind, Lesson, Scene


class Phase(str, Enum):
    """What the current scene is doing."""
    RUNNING = "running"
    WAITING_FOR_NARRATION = "waiting_for_narration"
    WAITING_FOR_INTERACTION = "waiting_for_interaction"
    SHOWING_KEY_TAKEAWAY = "showing_key_takeaway"
    COMPLETE = "complete"


class PlaybackStatus(str, Enum):
    """Status reported to hosts."""
    PAUSED = "paused"
    PLAYING = "playing"
    WAITING_FOR_NARRATION = "waiting_for_narration"
    WAITING_FOR_INTERACTION = "waiting_for_interaction"
    SHOWING_KEY_TAKEAWAY = "showing_key_takeaway"
    COMPLETE = "complete"


@dataclass(frozen=True)
class PlaybackPosition:
    """Scene index and progress within that scene (0-100)."""

    scene_index: int
    progress: float


@dataclass(frozen=True)
class PlaybackState:
    """Complete playback state.

    ``banked_ms`` is play time accumulated in the scene before the current
    run; ``run_started_ms`` is when the current run began (None while
    paused). Progress is derived from the two on every tick.
    """

    scene_index: int = 0
    progress: float = 0.0
    phase: Phase = Phase.RUNNING
    playing: bool = False
    muted: bool = False
    narration_started: bool = False
    interaction_resolved: bool = False
    takeaway_shown: bool = False
    banked_ms: float = 0.0
    run_started_ms: Optional[float] = None

    @property
    def position(self) -> PlaybackPosition:
        return PlaybackPosition(self.scene_index, self.progress)

    @property
    def status(self) -> PlaybackStatus:
        if self.phase == Phase.COMPLETE:
            return PlaybackStatus.COMPLETE
        if not self.playing:
            return PlaybackStatus.PAUSED
        if self.phase == Phase.RUNNING:
            return PlaybackStatus.PLAYING
        return PlaybackStatus(self.phase.value)

    def played_ms(self, now_ms: float) -> float:
        """Scene play time up to ``now_ms``."""
        if self.run_started_ms is None:
            return self.banked_ms
        return self.banked_ms + max(0.0, now_ms - self.run_started_ms)


# Events ---------------------------------------------------------------------

@dataclass(frozen=True)
class Play:
    now_ms: float


@dataclass(frozen=True)
class Pause:
    now_ms: float


@dataclass(frozen=True)
class Tick:
    now_ms: float
    speaking: bool = False


@dataclass(frozen=True)
class NarrationFinished:
    now_ms: float


@dataclass(frozen=True)
class InteractionResolved:
    kind: InteractionKind
    now_ms: float


@dataclass(frozen=True)
class TakeawayElapsed:
    scene_index: int
    now_ms: float


@dataclass(frozen=True)
class Next:
    now_ms: float


@dataclass(frozen=True)
class Previous:
    now_ms: float


@dataclass(frozen=True)
class ToggleMute:
    now_ms: float


Event = Union[
    Play, Pause, Tick, NarrationFinished, InteractionResolved,
    TakeawayElapsed, Next, Previous, ToggleMute,
]


# Effects --------------------------------------------------------------------

@dataclass(frozen=True)
class SpeakNarration:
    text: str


@dataclass(frozen=True)
class StopNarration:
    pass


@dataclass(frozen=True)
class StartTakeawayDwell:
    scene_index: int


@dataclass(frozen=True)
class CancelTakeawayDwell:
    pass


@dataclass(frozen=True)
class ResetScene:
    scene_index: int


@dataclass(frozen=True)
class SceneChanged:
    scene_index: int


@dataclass(frozen=True)
class LessonCompleted:
    pass


Effect = Union[
    SpeakNarration, StopNarration, StartTakeawayDwell, CancelTakeawayDwell,
    ResetScene, SceneChanged, LessonCompleted,
]


@dataclass(frozen=True)
class Transition:
    """Result of feeding one event to the machine."""

    state: PlaybackState
    effects: Tuple[Effect, ...] = ()


# Readiness checks, in priority order
CHECK_NARRATION = 1
CHECK_INTERACTION = 2
CHECK_TAKEAWAY = 3


def initial_state(muted: bool = False) -> PlaybackState:
    """Paused at the start of the first scene."""
    return PlaybackState(muted=muted)


def transition(
    state: PlaybackState,
    event: Event,
    lesson: Lesson,
    voice_supported: bool = True,
) -> Transition:
    """Apply ``event`` to ``state``.

    Args:
        state: Current state.
        event: Input to apply.
        lesson: Scenes being played.
        voice_supported: Whether a narrator is available right now.

    Returns:
        The next state and the effects it requires.
    """
    if state.phase == Phase.COMPLETE:
        return Transition(state)

    effects: List[Effect] = []
    scene = lesson.scenes[state.scene_index]

    if isinstance(event, Play):
        if state.playing:
            return Transition(state)
        state = replace(state, playing=True, run_started_ms=event.now_ms, narration_started=False)
        state = _maybe_speak(state, scene, voice_supported, effects)
        if state.phase == Phase.SHOWING_KEY_TAKEAWAY:
            effects.append(StartTakeawayDwell(state.scene_index))

    elif isinstance(event, Pause):
        if not state.playing:
            return Transition(state)
        state = replace(
            state,
            playing=False,
            banked_ms=state.played_ms(event.now_ms),
            run_started_ms=None,
        )
        effects.append(StopNarration())
        if state.phase == Phase.SHOWING_KEY_TAKEAWAY:
            effects.append(CancelTakeawayDwell())

    elif isinstance(event, Tick):
        if not state.playing or state.phase != Phase.RUNNING:
            return Transition(state)
        played = state.played_ms(event.now_ms)
        progress = min(100.0, played / (scene.duration * 1000.0) * 100.0)
        state = replace(state, progress=progress)
        if progress >= 100.0:
            state = _check_readiness(
                state, lesson, voice_supported, event.speaking, CHECK_NARRATION, event.now_ms, effects
            )

    elif isinstance(event, NarrationFinished):
        if not state.playing or state.phase != Phase.WAITING_FOR_NARRATION:
            return Transition(state)
        state = replace(state, phase=Phase.RUNNING)
        state = _check_readiness(
            state, lesson, voice_supported, False, CHECK_INTERACTION, event.now_ms, effects
        )

    elif isinstance(event, InteractionResolved):
        if state.phase != Phase.WAITING_FOR_INTERACTION:
            return Transition(state)
        state = replace(state, interaction_resolved=True, phase=Phase.RUNNING)
        if not state.playing and event.kind == InteractionKind.CHOICE:
            # Answering correctly resumes playback; narration is not replayed
            state = replace(state, playing=True, run_started_ms=event.now_ms)
        if state.playing:
            state = _check_readiness(
                state, lesson, voice_supported, False, CHECK_TAKEAWAY, event.now_ms, effects
            )

    elif isinstance(event, TakeawayElapsed):
        if state.phase != Phase.SHOWING_KEY_TAKEAWAY or event.scene_index != state.scene_index:
            return Transition(state)
        state = _advance(state, lesson, voice_supported, event.now_ms, effects)

    elif isinstance(event, Next):
        if state.scene_index >= lesson.last_index:
            return Transition(state)
        effects.extend([StopNarration(), CancelTakeawayDwell()])
        state = _enter_scene(state, lesson, state.scene_index + 1, voice_supported, event.now_ms, effects)
        effects.append(SceneChanged(state.scene_index))

    elif isinstance(event, Previous):
        effects.extend([StopNarration(), CancelTakeawayDwell()])
        target = max(0, state.scene_index - 1)
        changed = target != state.scene_index
        state = _enter_scene(state, lesson, target, voice_supported, event.now_ms, effects)
        if changed:
            effects.append(SceneChanged(state.scene_index))

    elif isinstance(event, ToggleMute):
        if not state.muted:
            state = replace(state, muted=True)
            effects.append(StopNarration())
        else:
            state = replace(state, muted=False)
            if state.playing:
                state = replace(state, narration_started=False)
                state = _maybe_speak(state, scene, voice_supported, effects)

    else:
        raise TypeError(f"Unknown playback event: {event!r}")

    return Transition(state, tuple(effects))


def _maybe_speak(
    state: PlaybackState,
    scene: Scene,
    voice_supported: bool,
    effects: List[Effect],
) -> PlaybackState:
    """Start narration unless it already ran during this play session."""
    if (
        state.playing
        and not state.muted
        and voice_supported
        and scene.has_narration
        and not state.narration_started
    ):
        effects.append(SpeakNarration(scene.narration))
        return replace(state, narration_started=True)
    return state


def _check_readiness(
    state: PlaybackState,
    lesson: Lesson,
    voice_supported: bool,
    speaking: bool,
    first_check: int,
    now_ms: float,
    effects: List[Effect],
) -> PlaybackState:
    scene = lesson.scenes[state.scene_index]

    if first_check <= CHECK_NARRATION and voice_supported and not state.muted and speaking:
        return replace(state, phase=Phase.WAITING_FOR_NARRATION)

    if first_check <= CHECK_INTERACTION and scene.interaction is not None and not state.interaction_resolved:
        return replace(state, phase=Phase.WAITING_FOR_INTERACTION)

    if first_check <= CHECK_TAKEAWAY and scene.key_takeaway and not state.takeaway_shown:
        effects.append(StartTakeawayDwell(state.scene_index))
        return replace(state, phase=Phase.SHOWING_KEY_TAKEAWAY, takeaway_shown=True)

    return _advance(state, lesson, voice_supported, now_ms, effects)


def _advance(
    state: PlaybackState,
    lesson: Lesson,
    voice_supported: bool,
    now_ms: float,
    effects: List[Effect],
) -> PlaybackState:
    if state.scene_index >= lesson.last_index:
        effects.extend([StopNarration(), LessonCompleted()])
        return replace(
            state,
            phase=Phase.COMPLETE,
            playing=False,
            progress=100.0,
            banked_ms=state.played_ms(now_ms),
            run_started_ms=None,
        )
    effects.append(StopNarration())
    state = _enter_scene(state, lesson, state.scene_index + 1, voice_supported, now_ms, effects)
    effects.append(SceneChanged(state.scene_index))
    return state


def _enter_scene(
    state: PlaybackState,
    lesson: Lesson,
    index: int,
    voice_supported: bool,
    now_ms: float,
    effects: List[Effect],
) -> PlaybackState:
    """Start a fresh visit of scene ``index``, keeping play and mute settings."""
    state = PlaybackState(
        scene_index=index,
        playing=state.playing,
        muted=state.muted,
        run_started_ms=now_ms if state.playing else None,
    )
    effects.append(ResetScene(index))
    return _maybe_speak(state, lesson.scenes[index], voice_supported, effects)

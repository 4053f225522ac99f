"""Playback engine: scheduler, subtitle timing, interaction gate and state machine."""

from .clock import Scheduler, TimerHandle, ManualScheduler, RealtimeScheduler
from .subtitles import (
    SubtitleSynchronizer,
    SubtitleWindow,
    SubtitleWord,
    split_words,
    time_per_word_ms,
    word_index_at,
    visible_window,
)
from .gate import ChoiceFeedback, InteractionGate
from .narration import Narrator, NarrationSession
from .state import Phase, PlaybackPosition, PlaybackState, PlaybackStatus, transition
from .player import LessonPlayer

__all__ = [
    # Clock
    "Scheduler",
    "TimerHandle",
    "ManualScheduler",
    "RealtimeScheduler",
    # Subtitles
    "SubtitleSynchronizer",
    "SubtitleWindow",
    "SubtitleWord",
    "split_words",
    "time_per_word_ms",
    "word_index_at",
    "visible_window",
    # Interaction
    "ChoiceFeedback",
    "InteractionGate",
    # Narration
    "Narrator",
    "NarrationSession",
    # State machine
    "Phase",
    "PlaybackPosition",
    "PlaybackState",
    "PlaybackStatus",
    "transition",
    "LessonPlayer",
]

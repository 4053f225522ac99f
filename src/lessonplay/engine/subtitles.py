"""Karaoke subtitle timing.

The speech engine never reports word boundaries, so the highlighted word is
estimated from the scene duration and the narration length. Position is
always re-derived from the session start time, never accumulated per poll.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from ..config import PlaybackConfig, config
from .clock import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


def split_words(text: str) -> List[str]:
    """Split narration on whitespace, dropping empty segments."""
    return text.split()


def time_per_word_ms(
    word_count: int,
    duration: float,
    duration_fraction: float = 0.85,
    max_seconds_per_word: float = 0.35,
) -> float:
    """Estimated milliseconds spent on each word.

    The whole narration is assumed to fit in ``duration_fraction`` of the
    scene, and no word is assumed to take longer than
    ``max_seconds_per_word``; the smaller total wins.

    Args:
        word_count: Number of words in the narration.
        duration: Nominal scene duration in seconds.
        duration_fraction: Share of the scene the narration may span.
        max_seconds_per_word: Upper bound on time per word in seconds.

    Returns:
        Milliseconds per word, or 0.0 when there are no words.
    """
    if word_count <= 0:
        return 0.0
    total_seconds = min(duration * duration_fraction, word_count * max_seconds_per_word)
    return (total_seconds * 1000.0) / word_count


def word_index_at(elapsed_ms: float, per_word_ms: float, word_count: int) -> int:
    """Index of the word being spoken ``elapsed_ms`` into the narration."""
    if word_count <= 0:
        return -1
    if per_word_ms <= 0:
        return word_count - 1
    index = math.floor(max(0.0, elapsed_ms) / per_word_ms)
    return min(index, word_count - 1)


@dataclass(frozen=True)
class SubtitleWord:
    """A rendered subtitle word."""

    text: str
    index: int
    emphasized: bool
    current: bool


@dataclass(frozen=True)
class SubtitleWindow:
    """Bounded slice of the narration shown on screen."""

    words: List[SubtitleWord]
    start: int
    end: int
    current_index: int

    @property
    def text(self) -> str:
        return " ".join(word.text for word in self.words)

    def lines(self, words_per_line: int) -> List[List[SubtitleWord]]:
        """Break the window into display lines."""
        return [
            self.words[i:i + words_per_line]
            for i in range(0, len(self.words), words_per_line)
        ]


def visible_window(words: List[str], current_index: int, max_words: int = 24) -> SubtitleWindow:
    """Select at most ``max_words`` words centered on ``current_index``.

    The window is clamped so it never runs past either end of the narration.
    Words at or before the current index are emphasized; later ones are dim.
    """
    if max_words <= 0:
        raise ValueError("max_words must be positive")
    count = len(words)
    if count <= max_words:
        start = 0
    else:
        centre = max(current_index, 0)
        start = centre - max_words // 2
        start = max(0, min(start, count - max_words))
    end = min(count, start + max_words)

    rendered = [
        SubtitleWord(
            text=words[i],
            index=i,
            emphasized=i <= current_index,
            current=i == current_index,
        )
        for i in range(start, end)
    ]
    return SubtitleWindow(words=rendered, start=start, end=end, current_index=current_index)


class SubtitleSynchronizer:
    """Word cursor for one scene's narration.

    Feed it the two gating signals through :meth:`update`; while both are
    true it polls the scheduler and moves the cursor forward.
    """

    def __init__(
        self,
        text: str,
        duration: float,
        scheduler: Scheduler,
        playback: Optional[PlaybackConfig] = None,
    ) -> None:
        self._playback = playback or config.playback
        self._scheduler = scheduler
        self.words = split_words(text)
        self.time_per_word_ms = time_per_word_ms(
            len(self.words),
            duration,
            self._playback.subtitle_duration_fraction,
            self._playback.subtitle_max_seconds_per_word,
        )
        self.current_index = -1
        self.session_start_ms: Optional[float] = None
        self._poller: Optional[TimerHandle] = None
        self._playing = False
        self._narrating = False

    @property
    def word_count(self) -> int:
        return len(self.words)

    @property
    def session_active(self) -> bool:
        """True while the cursor is following live narration."""
        return self._poller is not None

    @property
    def visible(self) -> bool:
        return self._playing and self.word_count > 0

    def update(self, playing: bool, narrating: bool) -> None:
        """React to changes of the playing and narrating signals."""
        was_following = self._playing and self._narrating
        self._playing = playing
        self._narrating = narrating

        if not playing:
            self._stop_polling()
            self.current_index = -1
            self.session_start_ms = None
            return

        if narrating and not was_following:
            self._start_session()
        elif not narrating and self.session_active:
            # Remaining words are assumed spoken
            self._stop_polling()
            self.current_index = self.word_count - 1

    def window(self) -> Optional[SubtitleWindow]:
        """Words to render now, or None when the subtitle is hidden."""
        if not self.visible:
            return None
        return visible_window(self.words, self.current_index, self._playback.subtitle_window_size)

    def close(self) -> None:
        """Tear down the poll timer."""
        self._stop_polling()

    def _start_session(self) -> None:
        self._stop_polling()
        if not self.words:
            return
        self.session_start_ms = self._scheduler.now()
        self.current_index = 0
        self._poller = self._scheduler.call_every(
            self._playback.subtitle_poll_ms, self._poll, name="subtitle-poll"
        )
        logger.debug(
            f"Subtitle session started: {self.word_count} words, "
            f"{self.time_per_word_ms:.0f}ms per word"
        )

    def _poll(self) -> None:
        if self.session_start_ms is None:
            return
        elapsed = self._scheduler.now() - self.session_start_ms
        index = word_index_at(elapsed, self.time_per_word_ms, self.word_count)
        if index > self.current_index:
            self.current_index = index

    def _stop_polling(self) -> None:
        if self._poller is not None:
            self._poller.cancel()
            self._poller = None

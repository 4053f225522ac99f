"""Narrator implementations that need no audio device."""

import logging
from typing import List, Optional

from ..engine.clock import Scheduler, TimerHandle
from ..engine.narration import Narrator

logger = logging.getLogger(__name__)


class SilentNarrator(Narrator):
    """Narrator for hosts without speech synthesis. Never speaks."""

    def speak(self, text: str) -> None:
        pass

    def stop(self) -> None:
        pass

    @property
    def is_speaking(self) -> bool:
        return False

    @property
    def is_supported(self) -> bool:
        return False


class ScriptedNarrator(Narrator):
    """Pretends to read text aloud at a fixed speaking rate.

    Speech "finishes" when a scheduler timer fires, which makes narration
    length deterministic for simulations and tests.
    """

    DEFAULT_WORDS_PER_MINUTE = 150.0
    DEFAULT_RATE = 0.9

    def __init__(
        self,
        scheduler: Scheduler,
        words_per_minute: float = DEFAULT_WORDS_PER_MINUTE,
        rate: float = DEFAULT_RATE,
    ) -> None:
        """Initialize the narrator.

        Args:
            scheduler: Scheduler whose clock paces the speech.
            words_per_minute: Speaking speed at rate 1.0.
            rate: Speed multiplier, as in browser speech synthesis.
        """
        if words_per_minute <= 0 or rate <= 0:
            raise ValueError("Speaking speed must be positive")
        self._scheduler = scheduler
        self._words_per_minute = words_per_minute * rate
        self._timer: Optional[TimerHandle] = None
        self._speaking = False
        self.spoken: List[str] = []
        self.stop_count = 0

    def estimate_ms(self, text: str) -> float:
        """How long ``text`` takes to read, in milliseconds."""
        return len(text.split()) / self._words_per_minute * 60_000.0

    def speak(self, text: str) -> None:
        self._cancel()
        if not text.strip():
            self._speaking = False
            return
        self.spoken.append(text)
        self._speaking = True
        self._timer = self._scheduler.call_later(self.estimate_ms(text), self._finish, name="speech")
        logger.debug(f"Speaking for {self.estimate_ms(text):.0f}ms")

    def stop(self) -> None:
        self.stop_count += 1
        self._cancel()
        self._speaking = False

    @property
    def is_speaking(self) -> bool:
        return self._speaking

    @property
    def is_supported(self) -> bool:
        return True

    def _finish(self) -> None:
        self._timer = None
        self._speaking = False

    def _cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

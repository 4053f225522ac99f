"""Narration collaborator contract and the session wrapper used by the player."""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class Narrator(ABC):
    """Text-to-speech capability injected into the player.

    Completion is signalled only by ``is_speaking`` turning false; the player
    polls it.
    """

    @abstractmethod
    def speak(self, text: str) -> None:
        """Start reading ``text`` aloud, cancelling anything in progress."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """Stop speaking immediately."""
        ...

    @property
    @abstractmethod
    def is_speaking(self) -> bool:
        ...

    @property
    @abstractmethod
    def is_supported(self) -> bool:
        ...


class NarrationSession:
    """Shields playback from the narrator.

    Any failure of the collaborator is logged and read as "not speaking",
    so timer-paced playback carries on without a voice.
    """

    def __init__(self, narrator: Narrator) -> None:
        self._narrator = narrator
        self._failed = False

    @property
    def supported(self) -> bool:
        if self._failed:
            return False
        try:
            return bool(self._narrator.is_supported)
        except Exception as e:
            self._mark_failed("is_supported", e)
            return False

    @property
    def is_speaking(self) -> bool:
        if not self.supported:
            return False
        try:
            return bool(self._narrator.is_speaking)
        except Exception as e:
            self._mark_failed("is_speaking", e)
            return False

    def start(self, text: str) -> bool:
        """Speak ``text`` if a voice is available.

        Returns:
            True if the narrator accepted the text.
        """
        if not text.strip() or not self.supported:
            return False
        try:
            self._narrator.speak(text)
        except Exception as e:
            self._mark_failed("speak", e)
            return False
        logger.debug(f"Narration started ({len(text.split())} words)")
        return True

    def stop(self) -> None:
        if self._failed:
            return
        try:
            self._narrator.stop()
        except Exception as e:
            self._mark_failed("stop", e)

    def _mark_failed(self, operation: str, error: Exception) -> None:
        logger.warning(f"Narrator {operation} failed, continuing without voice: {error}")
        self._failed = True

"""Shared test fixtures for lessonplay tests."""

from typing import List, Optional

import pytest

from lessonplay.config import PlaybackConfig
from lessonplay.engine import ManualScheduler, Narrator
from lessonplay.models import Lesson, Scene


class FakeNarrator(Narrator):
    """Narrator whose speech only ends when the test says so."""

    def __init__(self, supported: bool = True) -> None:
        self.supported = supported
        self.speaking = False
        self.spoken: List[str] = []
        self.stop_count = 0

    def speak(self, text: str) -> None:
        self.spoken.append(text)
        self.speaking = True

    def stop(self) -> None:
        self.stop_count += 1
        self.speaking = False

    def finish(self) -> None:
        self.speaking = False

    @property
    def is_speaking(self) -> bool:
        return self.speaking

    @property
    def is_supported(self) -> bool:
        return self.supported


class BrokenNarrator(Narrator):
    """Narrator that claims support but fails on every call to speak."""

    def speak(self, text: str) -> None:
        raise RuntimeError("audio device unavailable")

    def stop(self) -> None:
        pass

    @property
    def is_speaking(self) -> bool:
        return False

    @property
    def is_supported(self) -> bool:
        return True


def make_scene(
    scene_id: str,
    duration: float = 10.0,
    narration: str = "",
    interaction: Optional[dict] = None,
    key_takeaway: Optional[str] = None,
) -> Scene:
    data = {"id": scene_id, "duration": duration, "narration": narration}
    if interaction is not None:
        data["interaction"] = interaction
    if key_takeaway is not None:
        data["key_takeaway"] = key_takeaway
    return Scene(**data)


def choice(correct: str = "b", ids: tuple = ("a", "b", "c")) -> dict:
    return {
        "type": "choice",
        "question": "Which one?",
        "options": [
            {"id": option_id, "label": option_id.upper(), "is_correct": option_id == correct}
            for option_id in ids
        ],
        "correct_feedback": "Well done",
        "incorrect_feedback": "Try again",
        "hint": "Think about it",
    }


def click_reveal(ids: tuple = ("a", "b", "c")) -> dict:
    return {
        "type": "click-reveal",
        "question": "Tap to reveal",
        "options": [{"id": option_id, "label": option_id.upper()} for option_id in ids],
        "hint": "Tap every card",
    }


@pytest.fixture()
def scheduler():
    """Manual clock starting at zero."""
    return ManualScheduler()


@pytest.fixture()
def playback():
    """Playback timing with the stock delays, independent of the environment."""
    return PlaybackConfig(
        tick_interval_ms=100.0,
        subtitle_poll_ms=50.0,
        choice_resolve_delay_ms=1500.0,
        reveal_resolve_delay_ms=1000.0,
        takeaway_dwell_ms=3000.0,
    )


@pytest.fixture()
def narrator():
    return FakeNarrator()


@pytest.fixture()
def two_scene_lesson():
    """Two plain 10 second scenes with no narration."""
    return Lesson(title="Plain", scenes=[make_scene("one"), make_scene("two")])


@pytest.fixture()
def lesson_yaml(tmp_path):
    """A small but complete lesson file."""
    path = tmp_path / "lesson.yaml"
    path.write_text(
        """title: Test Lesson
scenes:
- id: intro
  duration: 4
  narration: Hello and welcome to this short lesson about testing.
  key_takeaway: Tests catch regressions.
- id: quiz
  duration: 3
  narration: Pick the right answer.
  interaction:
    type: choice
    question: Which is right?
    options:
    - id: wrong
      label: Not this one
    - id: right
      label: This one
      is_correct: true
- id: cards
  duration: 3
  narration: Reveal both cards.
  interaction:
    type: click-reveal
    options:
    - id: first
      label: First fact
    - id: second
      label: Second fact
"""
    )
    return path

"""Data models for lesson playback."""

from .scene import (
    Scene,
    Interaction,
    InteractionKind,
    InteractionOption,
    ChoiceInteraction,
    ClickRevealInteraction,
    VisualElement,
    Position,
)
from .lesson import Lesson, format_time

__all__ = [
    "Scene",
    "Interaction",
    "InteractionKind",
    "InteractionOption",
    "ChoiceInteraction",
    "ClickRevealInteraction",
    "VisualElement",
    "Position",
    "Lesson",
    "format_time",
]

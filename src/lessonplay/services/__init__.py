"""Collaborators the engine talks to: speech and the drafting model."""

from .narrators import SilentNarrator, ScriptedNarrator

__all__ = [
    "SilentNarrator",
    "ScriptedNarrator",
]

"""AI agents for drafting lesson content."""

from .base import BaseAgent, extract_json
from .script import ScriptAgent, ScriptInput

__all__ = ["BaseAgent", "ScriptAgent", "ScriptInput", "extract_json"]

"""Script agent: drafts a narrated lesson from a topic."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..models import Lesson, Scene
from .base import BaseAgent

logger = logging.getLogger(__name__)

MIN_SCENE_SECONDS = 1.0

SYSTEM_PROMPT = """You are an instructional designer writing short narrated video lessons.
Each lesson is a sequence of scenes. Every scene is read aloud by a narrator
while simple animated elements are shown.

Output valid JSON only, with no additional text or markdown formatting:
{
  "title": "...",
  "scenes": [
    {
      "id": "kebab-case-id",
      "duration": 10,
      "narration": "Two to four sentences read aloud.",
      "visual_type": "intro | concept | example | diagram | summary | interactive",
      "elements": [{"type": "text", "content": "...", "position": {"x": 50, "y": 40}, "animation": "fadeIn", "delay": 0.5}],
      "key_takeaway": "Optional one-line takeaway",
      "interaction": {
        "type": "choice",
        "question": "...",
        "options": [{"id": "a", "label": "...", "is_correct": false}, {"id": "b", "label": "...", "is_correct": true}],
        "correct_feedback": "...",
        "incorrect_feedback": "...",
        "hint": "..."
      }
    }
  ]
}

Interactions are optional and at most one per scene. Use "choice" with exactly
one correct option, or "click-reveal" with 2-4 options whose labels are facts to
uncover. Narration should take roughly 2.5 words per second of scene duration."""


@dataclass
class ScriptInput:
    """Input data for the script agent."""

    topic: str
    duration: int
    num_scenes: Optional[int] = None
    audience: Optional[str] = None
    interactive: bool = True


class ScriptAgent(BaseAgent):
    """Agent that turns a topic into a validated :class:`Lesson`."""

    name = "ScriptAgent"
    system_prompt = SYSTEM_PROMPT

    def run(self, input_data: ScriptInput) -> Lesson:
        """Draft a lesson for the topic.

        Raises:
            ValueError: If the reply is not a valid lesson.
        """
        self._logger.info(
            f"Drafting lesson on '{input_data.topic}' ({input_data.duration}s)"
        )
        data = self._ask_json(self._build_prompt(input_data), temperature=0.8)
        lesson = self._build_lesson(self._normalize(data, input_data))
        lesson = fit_durations(lesson, input_data.duration)
        self._logger.info(f"Drafted {lesson.scene_count} scenes")
        return lesson

    def _build_prompt(self, input_data: ScriptInput) -> str:
        lines = [
            f"TOPIC: {input_data.topic}",
            f"TOTAL DURATION: {input_data.duration} seconds",
        ]
        if input_data.num_scenes:
            lines.append(f"NUMBER OF SCENES: {input_data.num_scenes}")
        else:
            lines.append(f"SUGGESTED SCENES: {max(3, input_data.duration // 10)}")
        if input_data.audience:
            lines.append(f"AUDIENCE: {input_data.audience}")
        if input_data.interactive:
            lines.append("Include at least one interactive check after the key concept.")
        else:
            lines.append("Do not include interactions.")
        return "\n".join(lines)

    def _normalize(self, data: Any, input_data: ScriptInput) -> dict:
        """Fill in what the model tends to leave out."""
        if isinstance(data, list):
            data = {"scenes": data}
        if not isinstance(data, dict) or not isinstance(data.get("scenes"), list):
            raise ValueError("Response does not contain a scenes array")

        data.setdefault("title", input_data.topic)
        for i, scene in enumerate(data["scenes"]):
            if isinstance(scene, dict):
                scene.setdefault("id", f"scene-{i + 1}")
                if not input_data.interactive:
                    scene.pop("interaction", None)
        return data


def fit_durations(lesson: Lesson, target: float) -> Lesson:
    """Scale scene durations so they add up to ``target`` seconds.

    Each scene keeps at least ``MIN_SCENE_SECONDS``; rounding error lands on
    the last scene.
    """
    if target <= 0:
        return lesson
    scale = target / lesson.total_duration
    durations = [max(MIN_SCENE_SECONDS, round(s.duration * scale, 1)) for s in lesson.scenes]
    durations[-1] = max(MIN_SCENE_SECONDS, round(durations[-1] + target - sum(durations), 1))

    scenes: list[Scene] = [
        scene.model_copy(update={"duration": duration})
        for scene, duration in zip(lesson.scenes, durations)
    ]
    return lesson.model_copy(update={"scenes": scenes})

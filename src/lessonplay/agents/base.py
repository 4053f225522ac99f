"""Shared plumbing for agents that ask Claude for lesson documents."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import ValidationError

from ..config import config
from ..models import Lesson
from ..services.anthropic import AnthropicClient

logger = logging.getLogger(__name__)


class BaseAgent(ABC):
    """Claude-backed agent whose replies are JSON lesson documents.

    Subclasses set ``name`` and ``system_prompt`` and implement ``run``.
    The base class owns the client, pulls JSON out of free-form replies and
    turns drafted data into a validated :class:`Lesson`.
    """

    name = "agent"
    system_prompt = ""

    def __init__(
        self,
        client: Optional[AnthropicClient] = None,
        model: Optional[str] = None,
    ) -> None:
        """Initialize the agent.

        Args:
            client: Client used for requests. Created if not provided.
            model: Model to use. Defaults to config.default_model.
        """
        self._model = model or config.default_model
        self._client = client or AnthropicClient(model=self._model)
        self._logger = logging.getLogger(f"{__name__}.{self.name}")

    @property
    def model(self) -> str:
        return self._model

    @abstractmethod
    def run(self, input_data: Any) -> Lesson:
        ...

    def _ask_json(self, prompt: str, max_tokens: int = 4096, temperature: float = 0.7) -> Any:
        """Send ``prompt`` and decode the JSON document in the reply.

        Raises:
            ValueError: If the reply holds no parseable JSON.
        """
        reply = self._client.create_message(
            prompt=prompt,
            max_tokens=max_tokens,
            system=self.system_prompt,
            temperature=temperature,
        )
        self._logger.debug(f"Reply length: {len(reply)}")
        try:
            return json.loads(extract_json(reply))
        except json.JSONDecodeError as e:
            self._logger.debug(f"Raw reply: {reply}")
            raise ValueError(f"Invalid JSON in response: {e}")

    def _build_lesson(self, data: dict) -> Lesson:
        """Validate drafted data as a lesson.

        Raises:
            ValueError: If the data is not a valid lesson.
        """
        try:
            return Lesson(**data)
        except ValidationError as e:
            raise ValueError(f"Drafted lesson failed validation: {e}")


def extract_json(text: str) -> str:
    """Pull the JSON document out of a reply that may wrap it in prose or fences."""
    if "```" in text:
        start = text.find("```")
        start = text.find("\n", start) + 1
        end = text.find("```", start)
        if 0 < start < end:
            return text[start:end].strip()

    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return text.strip()
    start = min(starts)
    opener = text[start]
    closer = "}" if opener == "{" else "]"
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return text[start:].strip()

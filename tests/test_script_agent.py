"""Tests for the lesson script drafting agent."""

import json

import pytest

from lessonplay.agents import BaseAgent, ScriptAgent, ScriptInput
from lessonplay.agents.base import extract_json
from lessonplay.agents.script import fit_durations
from lessonplay.models import InteractionKind, Lesson

from conftest import choice, make_scene


class FakeClient:
    """Stands in for AnthropicClient, replaying canned replies."""

    def __init__(self, reply):
        self.reply = reply
        self.calls = []

    def create_message(self, prompt, max_tokens=4096, system=None, temperature=0.7):
        self.calls.append({"prompt": prompt, "system": system, "temperature": temperature})
        return self.reply


def drafted_lesson():
    return {
        "title": "Photosynthesis",
        "scenes": [
            {"id": "intro", "duration": 10, "narration": "Plants make food from light."},
            {
                "duration": 20,
                "narration": "Which part of the plant captures light?",
                "interaction": choice(correct="a", ids=("a", "b")),
                "key_takeaway": "Leaves capture light.",
            },
        ],
    }


class TestScriptAgent:
    def test_run_returns_fitted_lesson(self):
        client = FakeClient(json.dumps(drafted_lesson()))
        agent = ScriptAgent(client=client, model="test-model")

        lesson = agent.run(ScriptInput(topic="photosynthesis", duration=60, audience="kids"))

        assert isinstance(lesson, Lesson)
        assert lesson.title == "Photosynthesis"
        assert lesson.scenes[1].id == "scene-2"
        assert lesson.total_duration == pytest.approx(60.0)
        assert lesson.scenes[1].interaction.kind == InteractionKind.CHOICE

        call = client.calls[0]
        assert "TOPIC: photosynthesis" in call["prompt"]
        assert "AUDIENCE: kids" in call["prompt"]
        assert call["system"] == agent.system_prompt
        assert agent.model == "test-model"

    def test_fenced_reply(self):
        reply = "Here is your lesson:\n```json\n" + json.dumps(drafted_lesson()) + "\n```\nEnjoy!"
        agent = ScriptAgent(client=FakeClient(reply), model="test-model")
        lesson = agent.run(ScriptInput(topic="photosynthesis", duration=30))
        assert lesson.scene_count == 2

    def test_non_interactive_strips_interactions(self):
        agent = ScriptAgent(client=FakeClient(json.dumps(drafted_lesson())), model="test-model")
        lesson = agent.run(ScriptInput(topic="photosynthesis", duration=30, interactive=False))
        assert all(scene.interaction is None for scene in lesson.scenes)
        assert "Do not include interactions" in agent._client.calls[0]["prompt"]

    def test_missing_title_defaults_to_topic(self):
        data = drafted_lesson()
        del data["title"]
        agent = ScriptAgent(client=FakeClient(json.dumps(data)), model="test-model")
        assert agent.run(ScriptInput(topic="Leaves", duration=30)).title == "Leaves"

    def test_invalid_json(self):
        agent = ScriptAgent(client=FakeClient("{not json"), model="test-model")
        with pytest.raises(ValueError, match="Invalid JSON"):
            agent.run(ScriptInput(topic="x", duration=30))

    def test_invalid_lesson(self):
        data = drafted_lesson()
        data["scenes"][1]["interaction"]["options"][0]["is_correct"] = False
        agent = ScriptAgent(client=FakeClient(json.dumps(data)), model="test-model")
        with pytest.raises(ValueError, match="failed validation"):
            agent.run(ScriptInput(topic="x", duration=30))

    def test_reply_without_scenes(self):
        agent = ScriptAgent(client=FakeClient('{"title": "Empty"}'), model="test-model")
        with pytest.raises(ValueError, match="scenes"):
            agent.run(ScriptInput(topic="x", duration=30))


class OutlineAgent(BaseAgent):
    """Minimal agent that returns whatever lesson the model drafts."""

    name = "OutlineAgent"
    system_prompt = "Reply with a lesson as JSON."

    def run(self, input_data):
        return self._build_lesson(self._ask_json(input_data))


class TestBaseAgent:
    def test_decodes_reply_and_builds_lesson(self):
        client = FakeClient("Sure:\n" + json.dumps({
            "title": "Outline",
            "scenes": [{"id": "only", "duration": 5}],
        }))
        agent = OutlineAgent(client=client, model="test-model")

        lesson = agent.run("outline please")

        assert lesson.title == "Outline"
        assert client.calls[0]["system"] == "Reply with a lesson as JSON."
        assert client.calls[0]["prompt"] == "outline please"

    def test_invalid_lesson_becomes_value_error(self):
        client = FakeClient(json.dumps({"title": "Empty", "scenes": []}))
        agent = OutlineAgent(client=client, model="test-model")
        with pytest.raises(ValueError, match="failed validation"):
            agent.run("outline please")

    def test_reply_without_json(self):
        agent = OutlineAgent(client=FakeClient("I cannot help with that."), model="test-model")
        with pytest.raises(ValueError, match="Invalid JSON"):
            agent.run("outline please")


class TestExtractJson:
    def test_object_inside_prose(self):
        text = 'Sure! {"a": {"b": "}"}} hope that helps'
        assert json.loads(extract_json(text)) == {"a": {"b": "}"}}

    def test_bare_array(self):
        assert json.loads(extract_json('[1, [2, 3]] trailing')) == [1, [2, 3]]

    def test_escaped_quotes(self):
        text = '{"say": "a \\"quoted\\" brace }"}'
        assert json.loads(extract_json(text)) == {"say": 'a "quoted" brace }'}


class TestFitDurations:
    def test_scales_to_target(self):
        lesson = Lesson(title="T", scenes=[make_scene("a", 10), make_scene("b", 20)])
        fitted = fit_durations(lesson, 60)
        assert [s.duration for s in fitted.scenes] == [pytest.approx(20.0), pytest.approx(40.0)]

    def test_keeps_a_minimum_per_scene(self):
        lesson = Lesson(title="T", scenes=[make_scene("a", 1), make_scene("b", 99)])
        fitted = fit_durations(lesson, 10)
        assert fitted.scenes[0].duration == 1.0
        assert fitted.total_duration == pytest.approx(10.0)

    def test_non_positive_target_is_ignored(self):
        lesson = Lesson(title="T", scenes=[make_scene("a", 5)])
        assert fit_durations(lesson, 0) is lesson

"""Tests for lesson and scene models."""

import pytest
from pydantic import ValidationError

from lessonplay.models import (
    ChoiceInteraction,
    ClickRevealInteraction,
    InteractionKind,
    Lesson,
    Scene,
    format_time,
)

from conftest import choice, click_reveal, make_scene


class TestScene:
    def test_defaults(self):
        scene = Scene(id="intro", duration=5)
        assert scene.narration == ""
        assert scene.interaction is None
        assert scene.key_takeaway is None
        assert scene.elements == []
        assert not scene.has_narration

    def test_duration_must_be_positive(self):
        with pytest.raises(ValidationError):
            Scene(id="intro", duration=0)

    def test_blank_takeaway_is_dropped(self):
        scene = make_scene("intro", key_takeaway="   ")
        assert scene.key_takeaway is None

    def test_words_split_on_whitespace(self):
        scene = make_scene("intro", narration="  one two\n three  ")
        assert scene.words == ["one", "two", "three"]
        assert scene.has_narration

    def test_interaction_variant_is_selected_by_type(self):
        assert isinstance(make_scene("q", interaction=choice()).interaction, ChoiceInteraction)
        revealed = make_scene("r", interaction=click_reveal()).interaction
        assert isinstance(revealed, ClickRevealInteraction)
        assert revealed.kind == InteractionKind.CLICK_REVEAL


class TestInteractionValidation:
    def test_choice_needs_two_options(self):
        data = choice(ids=("a",), correct="a")
        with pytest.raises(ValidationError):
            make_scene("q", interaction=data)

    def test_choice_needs_a_correct_option(self):
        data = choice(correct="missing")
        with pytest.raises(ValidationError, match="correct option"):
            make_scene("q", interaction=data)

    def test_choice_allows_several_correct_options(self):
        data = choice()
        data["options"][0]["is_correct"] = True
        scene = make_scene("q", interaction=data)
        assert sum(o.is_correct for o in scene.interaction.options) == 2

    def test_option_ids_must_be_unique(self):
        with pytest.raises(ValidationError, match="Duplicate option id"):
            make_scene("r", interaction=click_reveal(ids=("a", "a")))

    def test_click_reveal_needs_an_item(self):
        with pytest.raises(ValidationError):
            make_scene("r", interaction=click_reveal(ids=()))

    def test_unknown_interaction_type(self):
        with pytest.raises(ValidationError):
            make_scene("x", interaction={"type": "drag-drop", "options": []})


class TestLesson:
    def test_needs_a_scene(self):
        with pytest.raises(ValidationError):
            Lesson(title="Empty", scenes=[])

    def test_scene_ids_must_be_unique(self):
        with pytest.raises(ValidationError, match="Duplicate scene id"):
            Lesson(title="Dupes", scenes=[make_scene("a"), make_scene("a")])

    def test_durations(self):
        lesson = Lesson(
            title="Timing",
            scenes=[make_scene("a", 8), make_scene("b", 10), make_scene("c", 12)],
        )
        assert lesson.scene_count == 3
        assert lesson.last_index == 2
        assert lesson.total_duration == 30
        assert lesson.scene_start_time(0) == 0
        assert lesson.scene_start_time(2) == 18
        assert lesson.elapsed_time(1, 50.0) == pytest.approx(13.0)

    def test_yaml_round_trip(self, tmp_path):
        lesson = Lesson(
            title="Saved",
            scenes=[
                make_scene("a", 5, "Hello there", key_takeaway="Say hello"),
                make_scene("b", 6, interaction=choice()),
            ],
        )
        path = tmp_path / "saved.yaml"
        lesson.to_yaml(path)

        loaded = Lesson.from_yaml(path)
        assert loaded == lesson
        assert "key_takeaway: Say hello" in path.read_text()

    def test_load_file(self, lesson_yaml):
        lesson = Lesson.from_yaml(lesson_yaml)
        assert lesson.title == "Test Lesson"
        assert [s.id for s in lesson.scenes] == ["intro", "quiz", "cards"]
        assert lesson.scenes[2].interaction.kind == InteractionKind.CLICK_REVEAL


class TestFormatTime:
    @pytest.mark.parametrize("seconds,expected", [
        (0, "0:00"),
        (9.9, "0:09"),
        (75, "1:15"),
        (600, "10:00"),
        (-3, "0:00"),
    ])
    def test_format(self, seconds, expected):
        assert format_time(seconds) == expected

"""Scene data model."""

from enum import Enum
from typing import List, Literal, Optional, Union, Annotated
from pydantic import BaseModel, Field, field_validator


class InteractionKind(str, Enum):
    """Interaction variants a scene can embed."""
    CHOICE = "choice"
    CLICK_REVEAL = "click-reveal"


class InteractionOption(BaseModel):
    """One selectable or revealable item of an interaction."""

    id: str = Field(..., description="Option identifier, unique within the interaction")
    label: str = Field(..., description="Text shown to the learner")
    is_correct: bool = Field(default=False, description="Correctness flag (choice only)")

    class Config:
        """Pydantic config."""
        frozen = True


def _unique_ids(options: List[InteractionOption]) -> List[InteractionOption]:
    seen: set[str] = set()
    for option in options:
        if option.id in seen:
            raise ValueError(f"Duplicate option id: {option.id}")
        seen.add(option.id)
    return options


class ChoiceInteraction(BaseModel):
    """Multiple-choice check that blocks the scene until answered correctly."""

    type: Literal["choice"] = "choice"
    question: str = Field(..., description="Question text")
    options: List[InteractionOption] = Field(..., description="Answer options", min_length=2)
    correct_feedback: Optional[str] = Field(None, description="Shown after a correct answer")
    incorrect_feedback: Optional[str] = Field(None, description="Shown after a wrong answer")
    hint: Optional[str] = Field(None, description="Shown until an option is selected")

    class Config:
        """Pydantic config."""
        frozen = True

    @field_validator("options")
    @classmethod
    def _check_options(cls, options: List[InteractionOption]) -> List[InteractionOption]:
        _unique_ids(options)
        # A question without a correct option could never be passed
        if not any(option.is_correct for option in options):
            raise ValueError("Choice interaction needs at least one correct option")
        return options

    @property
    def kind(self) -> InteractionKind:
        return InteractionKind.CHOICE


class ClickRevealInteraction(BaseModel):
    """Set of items the learner reveals one by one; passes once all are seen."""

    type: Literal["click-reveal"] = "click-reveal"
    question: Optional[str] = Field(None, description="Prompt shown above the items")
    options: List[InteractionOption] = Field(..., description="Items to reveal", min_length=1)
    hint: Optional[str] = Field(None, description="Shown until the first reveal")

    class Config:
        """Pydantic config."""
        frozen = True

    @field_validator("options")
    @classmethod
    def _check_options(cls, options: List[InteractionOption]) -> List[InteractionOption]:
        return _unique_ids(options)

    @property
    def kind(self) -> InteractionKind:
        return InteractionKind.CLICK_REVEAL


Interaction = Annotated[
    Union[ChoiceInteraction, ClickRevealInteraction],
    Field(discriminator="type"),
]


class Position(BaseModel):
    """Element anchor in percent of the canvas."""

    x: float = 50.0
    y: float = 50.0

    class Config:
        """Pydantic config."""
        frozen = True


class VisualElement(BaseModel):
    """Animated on-screen element. Opaque to playback."""

    type: str = Field(default="text", description="text, icon, shape, character, ...")
    content: Union[str, List[str]] = Field(default="", description="Element payload")
    position: Position = Field(default_factory=Position)
    animation: str = Field(default="fadeIn", description="Entrance animation name")
    delay: float = Field(default=0.0, description="Entrance delay in seconds", ge=0)
    color: Optional[str] = None
    size: Optional[str] = None

    class Config:
        """Pydantic config."""
        frozen = True


class Scene(BaseModel):
    """Represents a single narrated scene of a lesson."""

    id: str = Field(..., description="Unique scene identifier")
    duration: float = Field(..., description="Scene duration in seconds", gt=0)
    narration: str = Field(default="", description="Text read aloud during the scene")
    visual_type: str = Field(default="concept", description="Scene category for hosts")
    elements: List[VisualElement] = Field(default_factory=list, description="Visual payload")
    interaction: Optional[Interaction] = Field(None, description="Blocking check")
    key_takeaway: Optional[str] = Field(None, description="Shown once before advancing")

    class Config:
        """Pydantic config."""
        frozen = True

    @field_validator("key_takeaway")
    @classmethod
    def _blank_takeaway_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @property
    def words(self) -> List[str]:
        """Narration split on whitespace."""
        return self.narration.split()

    @property
    def has_narration(self) -> bool:
        return bool(self.narration.strip())

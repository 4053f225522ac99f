"""Lesson data model."""

from typing import List
from pathlib import Path
from pydantic import BaseModel, Field, field_validator
import yaml

from .scene import Scene


def format_time(seconds: float) -> str:
    """Render seconds as m:ss for scene counters and scrub bars."""
    total = max(0, int(seconds))
    return f"{total // 60}:{total % 60:02d}"


class Lesson(BaseModel):
    """Narrated lesson script: a title and an ordered list of scenes."""

    title: str = Field(..., description="Display title")
    scenes: List[Scene] = Field(..., description="Ordered scenes", min_length=1)

    class Config:
        """Pydantic config."""
        frozen = True

    @field_validator("scenes")
    @classmethod
    def _unique_scene_ids(cls, scenes: List[Scene]) -> List[Scene]:
        seen: set[str] = set()
        for scene in scenes:
            if scene.id in seen:
                raise ValueError(f"Duplicate scene id: {scene.id}")
            seen.add(scene.id)
        return scenes

    @classmethod
    def from_yaml(cls, path: Path) -> "Lesson":
        """Load lesson from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save lesson to YAML file."""
        with open(path, "w") as f:
            yaml.safe_dump(
                self.model_dump(exclude_none=True),
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )

    @property
    def scene_count(self) -> int:
        return len(self.scenes)

    @property
    def last_index(self) -> int:
        return len(self.scenes) - 1

    @property
    def total_duration(self) -> float:
        """Sum of nominal scene durations in seconds."""
        return sum(scene.duration for scene in self.scenes)

    def scene_start_time(self, index: int) -> float:
        """Nominal lesson time at which scene ``index`` begins."""
        return sum(scene.duration for scene in self.scenes[:index])

    def elapsed_time(self, index: int, progress: float) -> float:
        """Nominal lesson time for a position within scene ``index``."""
        return self.scene_start_time(index) + (progress / 100.0) * self.scenes[index].duration

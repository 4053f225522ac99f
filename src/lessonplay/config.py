"""Configuration management."""

import os
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_float(name: str, default: float) -> float:
    """Read a float from the environment, falling back to a default."""
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return float(value)


class PlaybackConfig(BaseModel):
    """Timer periods and presentation delays for lesson playback.

    All durations are milliseconds unless the field name says otherwise.
    """

    tick_interval_ms: float = Field(
        default_factory=lambda: _env_float("LESSONPLAY_TICK_MS", 100.0),
        description="Progress ticker period",
        gt=0,
    )
    subtitle_poll_ms: float = Field(
        default_factory=lambda: _env_float("LESSONPLAY_SUBTITLE_POLL_MS", 50.0),
        description="Subtitle cursor poll period",
        gt=0,
    )
    choice_resolve_delay_ms: float = Field(
        default_factory=lambda: _env_float("LESSONPLAY_CHOICE_DELAY_MS", 1500.0),
        description="Delay between a correct answer and the gate opening",
        ge=0,
    )
    reveal_resolve_delay_ms: float = Field(
        default_factory=lambda: _env_float("LESSONPLAY_REVEAL_DELAY_MS", 1000.0),
        description="Delay between the last reveal and the gate opening",
        ge=0,
    )
    takeaway_dwell_ms: float = Field(
        default_factory=lambda: _env_float("LESSONPLAY_TAKEAWAY_DWELL_MS", 3000.0),
        description="How long a key takeaway stays on screen",
        ge=0,
    )
    subtitle_duration_fraction: float = Field(
        default=0.85,
        description="Share of the scene duration the subtitle may span",
        gt=0,
        le=1,
    )
    subtitle_max_seconds_per_word: float = Field(
        default=0.35,
        description="Upper bound on estimated time per spoken word",
        gt=0,
    )
    subtitle_lines: int = Field(default=3, description="Visible subtitle lines", ge=1)
    subtitle_words_per_line: int = Field(default=8, description="Words per subtitle line", ge=1)

    class Config:
        """Pydantic config."""
        frozen = True

    @property
    def subtitle_window_size(self) -> int:
        """Maximum number of words rendered at once."""
        return self.subtitle_lines * self.subtitle_words_per_line


class Config(BaseModel):
    """Application configuration."""

    # API Keys
    anthropic_api_key: str = Field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY", ""),
        description="Anthropic API key"
    )

    # Model settings
    default_model: str = Field(
        default_factory=lambda: os.getenv("LESSONPLAY_MODEL", "claude-sonnet-4-20250514"),
        description="Default Claude model"
    )

    playback: PlaybackConfig = Field(
        default_factory=PlaybackConfig,
        description="Playback timing"
    )

    class Config:
        """Pydantic config."""
        frozen = False

    def validate_required(self) -> None:
        """Validate that credentials needed for script drafting are set."""
        if not self.anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY not set")


# Global config instance
config = Config()

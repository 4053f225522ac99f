"""CLI entry point for the lesson player."""

import logging
import typer
from pathlib import Path
from typing import Optional

from . import __version__
from .config import config
from .engine import ChoiceFeedback, LessonPlayer, ManualScheduler, RealtimeScheduler, Scheduler
from .models import ChoiceInteraction, Lesson, format_time
from .services import ScriptedNarrator, SilentNarrator

app = typer.Typer(
    name="lessonplay",
    help="Interactive narrated lesson player",
    no_args_is_help=True
)

LEARNER_STEP_MS = 250.0


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"lessonplay version {__version__}")
        raise typer.Exit()


def load_lesson(path: Path) -> Lesson:
    """Load a lesson file, turning any failure into a CLI error."""
    if not path.exists():
        typer.echo(f"❌ No lesson found at {path}")
        raise typer.Exit(1)
    try:
        return Lesson.from_yaml(path)
    except Exception as e:
        typer.echo(f"❌ Error loading lesson: {e}")
        raise typer.Exit(1)


LESSON_OPTION = typer.Option(
    Path("lesson.yaml"),
    "--lesson",
    "-l",
    help="Path to lesson YAML file",
    file_okay=True,
    dir_okay=False
)


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    )
) -> None:
    """Lesson Player - Play narrated lessons with interactive checks."""
    pass


@app.command()
def status(lesson_path: Path = LESSON_OPTION) -> None:
    """Show a lesson's scenes and timing."""
    lesson = load_lesson(lesson_path)

    typer.echo(f"📚 Lesson: {lesson.title}")
    typer.echo(f"   Scenes: {lesson.scene_count}")
    typer.echo(f"   Total duration: {format_time(lesson.total_duration)} ({lesson.total_duration:.1f}s)")

    interactive = sum(1 for scene in lesson.scenes if scene.interaction is not None)
    takeaways = sum(1 for scene in lesson.scenes if scene.key_takeaway)
    typer.echo(f"   Interactive checks: {interactive}")
    typer.echo(f"   Key takeaways: {takeaways}")

    typer.echo("\n🎞️  Scenes:")
    for i, scene in enumerate(lesson.scenes):
        markers = []
        if scene.interaction is not None:
            markers.append(f"❓ {scene.interaction.kind.value}")
        if scene.key_takeaway:
            markers.append("💡 takeaway")
        if not scene.has_narration:
            markers.append("🔇 no narration")
        suffix = f"  [{', '.join(markers)}]" if markers else ""
        typer.echo(
            f"   {i + 1}. {scene.id}: {scene.duration}s @ {format_time(lesson.scene_start_time(i))}{suffix}"
        )
        if scene.narration:
            preview = scene.narration[:60] + "..." if len(scene.narration) > 60 else scene.narration
            typer.echo(f"      → {preview}")


@app.command()
def validate(lesson_path: Path = LESSON_OPTION) -> None:
    """Check that a lesson file loads and passes content validation."""
    lesson = load_lesson(lesson_path)
    typer.echo(f"✅ {lesson_path} is valid: {lesson.scene_count} scenes, {lesson.total_duration:.1f}s")


class AutoLearner:
    """Answers interactions on behalf of a simulated learner."""

    def __init__(self, player: LessonPlayer, wrong_first: bool = False) -> None:
        self._player = player
        self._wrong_first = wrong_first
        self._tried_wrong: set[int] = set()
        self.actions: list[str] = []

    def step(self) -> None:
        player = self._player
        gate = player.gate
        if gate is None or not player.awaiting_interaction or gate.resolving or gate.resolved:
            return
        index = player.position.scene_index
        interaction = gate.interaction

        if isinstance(interaction, ChoiceInteraction):
            if gate.feedback == ChoiceFeedback.INCORRECT:
                player.retry_choice()
                self._log("retry")
                return
            wrong = next((o for o in interaction.options if not o.is_correct), None)
            if self._wrong_first and wrong is not None and index not in self._tried_wrong:
                self._tried_wrong.add(index)
                player.select_option(wrong.id)
                self._log(f"chose {wrong.id} ✗")
                return
            correct = next(o for o in interaction.options if o.is_correct)
            player.select_option(correct.id)
            self._log(f"chose {correct.id} ✓")
            return

        hidden = [o for o in interaction.options if o.id not in gate.revealed_item_ids]
        if hidden:
            player.reveal_item(hidden[0].id)
            self._log(f"revealed {hidden[0].id}")

    def _log(self, action: str) -> None:
        self.actions.append(action)
        typer.echo(f"   🧑‍🎓 {action}")


@app.command()
def simulate(
    lesson_path: Path = LESSON_OPTION,
    no_voice: bool = typer.Option(
        False,
        "--no-voice",
        help="Play without a narrator (timer-paced only)"
    ),
    mute: bool = typer.Option(
        False,
        "--mute",
        "-m",
        help="Start muted"
    ),
    wrong_first: bool = typer.Option(
        False,
        "--wrong-first",
        "-w",
        help="Answer every choice wrong once before answering correctly"
    ),
    words_per_minute: float = typer.Option(
        ScriptedNarrator.DEFAULT_WORDS_PER_MINUTE,
        "--wpm",
        help="Simulated speaking speed",
        min=30,
        max=600
    ),
    realtime: bool = typer.Option(
        False,
        "--realtime",
        "-r",
        help="Run on the wall clock instead of simulated time"
    ),
    max_minutes: float = typer.Option(
        60.0,
        "--max-minutes",
        help="Give up if the lesson has not finished after this long"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Play a lesson end to end with a simulated learner and narrator."""
    setup_logging(verbose)
    lesson = load_lesson(lesson_path)

    scheduler: Scheduler = RealtimeScheduler() if realtime else ManualScheduler()
    narrator = SilentNarrator() if no_voice else ScriptedNarrator(scheduler, words_per_minute)
    finished: list[float] = []

    def on_scene_change(index: int) -> None:
        scene = lesson.scenes[index]
        typer.echo(f"⏱  {format_time(scheduler.now() / 1000.0)}  → Scene {index + 1}/{lesson.scene_count}: {scene.id}")

    def on_complete() -> None:
        finished.append(scheduler.now())

    player = LessonPlayer(
        lesson,
        narrator,
        scheduler,
        on_complete=on_complete,
        on_scene_change=on_scene_change,
        playback=config.playback,
        muted=mute,
    )
    learner = AutoLearner(player, wrong_first=wrong_first)
    learner_timer = scheduler.call_every(LEARNER_STEP_MS, learner.step, name="learner")

    typer.echo(f"▶️  Playing: {lesson.title} ({lesson.scene_count} scenes, {format_time(lesson.total_duration)})")
    typer.echo(f"⏱  0:00  → Scene 1/{lesson.scene_count}: {lesson.scenes[0].id}")
    player.play()

    try:
        if isinstance(scheduler, ManualScheduler):
            done = scheduler.run_until(lambda: bool(finished), limit_ms=max_minutes * 60_000.0)
        else:
            done = scheduler.run(lambda: bool(finished), timeout_s=max_minutes * 60.0)
    except KeyboardInterrupt:
        typer.echo("\n⏹  Stopped")
        raise typer.Exit(130)
    finally:
        learner_timer.cancel()
        player.close()

    if not done:
        typer.echo(f"❌ Lesson did not finish within {max_minutes:g} minutes")
        raise typer.Exit(1)

    elapsed = finished[0] / 1000.0
    typer.echo(f"\n✅ Lesson complete in {format_time(elapsed)} (nominal {format_time(lesson.total_duration)})")
    typer.echo(f"   Interactions: {len(learner.actions)} learner actions")
    if isinstance(narrator, ScriptedNarrator):
        typer.echo(f"   Narrations: {len(narrator.spoken)}")


@app.command()
def draft(
    topic: str = typer.Argument(
        ...,
        help="Topic the lesson should teach"
    ),
    duration: int = typer.Option(
        60,
        "--duration",
        "-d",
        help="Target duration in seconds",
        min=10,
        max=1800
    ),
    scenes: Optional[int] = typer.Option(
        None,
        "--scenes",
        "-s",
        help="Number of scenes (auto-calculated if not specified)"
    ),
    audience: Optional[str] = typer.Option(
        None,
        "--audience",
        "-a",
        help="Who the lesson is for (e.g., 'high school students')"
    ),
    no_interactions: bool = typer.Option(
        False,
        "--no-interactions",
        help="Draft a lesson without interactive checks"
    ),
    output: Path = typer.Option(
        Path("lesson.yaml"),
        "--output",
        "-o",
        help="Output lesson file path"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Draft a narrated lesson script from a topic using AI."""
    from .agents import ScriptAgent, ScriptInput

    setup_logging(verbose)
    typer.echo(f"✍️  Drafting lesson: {topic}")
    typer.echo(f"   Target duration: {duration}s")

    try:
        config.validate_required()
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    try:
        agent = ScriptAgent()
        typer.echo(f"   Using model: {agent.model}")
        lesson = agent.run(ScriptInput(
            topic=topic,
            duration=duration,
            num_scenes=scenes,
            audience=audience,
            interactive=not no_interactions,
        ))
    except Exception as e:
        typer.echo(f"❌ Error drafting lesson: {e}")
        raise typer.Exit(1)

    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        lesson.to_yaml(output)
    except Exception as e:
        typer.echo(f"❌ Error saving lesson: {e}")
        raise typer.Exit(1)

    typer.echo(f"\n✅ Lesson saved: {output}")
    typer.echo(f"   Scenes: {lesson.scene_count}")
    typer.echo(f"   Total duration: {format_time(lesson.total_duration)}")
    for scene in lesson.scenes:
        kind = f" ❓ {scene.interaction.kind.value}" if scene.interaction is not None else ""
        typer.echo(f"   • {scene.id}: {scene.duration}s{kind}")


if __name__ == "__main__":
    app()

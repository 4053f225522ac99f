"""Interaction gate: blocks a scene until its embedded check is satisfied."""

import logging
from enum import Enum
from typing import Callable, FrozenSet, Optional, Union

from ..config import PlaybackConfig, config
from ..models import ChoiceInteraction, ClickRevealInteraction, InteractionKind
from .clock import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class ChoiceFeedback(str, Enum):
    """Feedback state of a choice interaction."""
    NONE = "none"
    CORRECT = "correct"
    INCORRECT = "incorrect"


class InteractionGate:
    """Resolution state for one visit of one scene's interaction.

    A fresh gate is created every time a scene is entered; resolution is
    reported once through ``on_resolved`` after the configured delay.
    """

    def __init__(
        self,
        interaction: Union[ChoiceInteraction, ClickRevealInteraction],
        scheduler: Scheduler,
        on_resolved: Callable[[InteractionKind], None],
        playback: Optional[PlaybackConfig] = None,
    ) -> None:
        self.interaction = interaction
        self._scheduler = scheduler
        self._on_resolved = on_resolved
        self._playback = playback or config.playback

        self.selected_option_id: Optional[str] = None
        self.feedback = ChoiceFeedback.NONE
        self._revealed: set[str] = set()
        self._timer: Optional[TimerHandle] = None
        self._resolved = False

    @property
    def kind(self) -> InteractionKind:
        return self.interaction.kind

    @property
    def resolved(self) -> bool:
        return self._resolved

    @property
    def resolving(self) -> bool:
        """True between a satisfying input and the resolution callback."""
        return self._timer is not None and self._timer.active

    @property
    def revealed_item_ids(self) -> FrozenSet[str]:
        return frozenset(self._revealed)

    @property
    def hint(self) -> Optional[str]:
        """Hint text, visible until the learner has acted."""
        if self.selected_option_id is not None or self._revealed:
            return None
        return self.interaction.hint

    @property
    def feedback_text(self) -> Optional[str]:
        if not isinstance(self.interaction, ChoiceInteraction):
            return None
        if self.feedback == ChoiceFeedback.CORRECT:
            return self.interaction.correct_feedback
        if self.feedback == ChoiceFeedback.INCORRECT:
            return self.interaction.incorrect_feedback
        return None

    def select(self, option_id: str) -> ChoiceFeedback:
        """Pick an answer of a choice interaction.

        A wrong answer never resolves the gate; the learner has to call
        :meth:`retry` before choosing again. Selections made while one is
        already pending are ignored.

        Raises:
            ValueError: If this is not a choice interaction or the option is unknown.
        """
        if not isinstance(self.interaction, ChoiceInteraction):
            raise ValueError(f"Cannot select an option on a {self.kind.value} interaction")
        option = next((o for o in self.interaction.options if o.id == option_id), None)
        if option is None:
            raise ValueError(f"Unknown option: {option_id}")

        if self._resolved or self.selected_option_id is not None:
            logger.debug(f"Ignoring selection of {option_id}: {self.selected_option_id} is pending")
            return self.feedback

        self.selected_option_id = option_id
        if option.is_correct:
            self.feedback = ChoiceFeedback.CORRECT
            self._schedule_resolution(self._playback.choice_resolve_delay_ms)
        else:
            self.feedback = ChoiceFeedback.INCORRECT
        logger.info(f"Choice {option_id} answered {self.feedback.value}")
        return self.feedback

    def retry(self) -> bool:
        """Clear a wrong answer so another option can be chosen.

        Returns:
            True if there was a wrong answer to clear.
        """
        if self.feedback != ChoiceFeedback.INCORRECT:
            return False
        self.selected_option_id = None
        self.feedback = ChoiceFeedback.NONE
        return True

    def reveal(self, item_id: str) -> bool:
        """Reveal one item of a click-reveal interaction.

        Returns:
            True if the item was newly revealed, False if it already was.

        Raises:
            ValueError: If this is not a click-reveal interaction or the item is unknown.
        """
        if not isinstance(self.interaction, ClickRevealInteraction):
            raise ValueError(f"Cannot reveal items on a {self.kind.value} interaction")
        all_ids = {option.id for option in self.interaction.options}
        if item_id not in all_ids:
            raise ValueError(f"Unknown item: {item_id}")
        if item_id in self._revealed:
            return False

        self._revealed.add(item_id)
        if self._revealed == all_ids and not self._resolved and not self.resolving:
            self._schedule_resolution(self._playback.reveal_resolve_delay_ms)
        return True

    def cancel(self) -> None:
        """Drop a pending resolution (the scene is being left)."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule_resolution(self, delay_ms: float) -> None:
        self.cancel()
        self._timer = self._scheduler.call_later(delay_ms, self._resolve, name="gate-resolve")

    def _resolve(self) -> None:
        self._timer = None
        if self._resolved:
            return
        self._resolved = True
        logger.debug(f"{self.kind.value} interaction resolved")
        self._on_resolved(self.kind)

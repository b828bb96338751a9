"""
Finite step graph for the booking flow.

Defines the five booking steps and every legal transition between them.
BookingStateMachine drives this graph; any event that has no edge from the
current step is rejected instead of leaving the flow half-updated.

Usage:
    steps = BookingStepMachine()
    steps.transition(TransitionTrigger.DATE_SELECTED)
    assert steps.current_step == BookingStep.SELECTING_TIME
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from booking_widget.errors import InvalidTransitionError

logger = logging.getLogger(__name__)


class BookingStep(str, Enum):
    """All steps of one booking attempt."""
    SELECTING_DATE = "selecting_date"
    SELECTING_TIME = "selecting_time"
    FILLING_FORM = "filling_form"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"


class TransitionTrigger(str, Enum):
    """Events that cause step transitions."""
    DATE_SELECTED = "date_selected"
    SLOT_SELECTED = "slot_selected"
    FORM_SUBMITTED = "form_submitted"
    BOOKING_SUCCEEDED = "booking_succeeded"
    SLOT_CONFLICT = "slot_conflict"
    SUBMISSION_FAILED = "submission_failed"
    RANGE_CHANGED = "range_changed"
    TIMEZONE_CHANGED = "timezone_changed"
    BACK = "back"


@dataclass
class Transition:
    """A single valid step transition."""
    from_step: BookingStep
    to_step: BookingStep
    trigger: TransitionTrigger
    guard: Optional[Callable[[], bool]] = None


@dataclass
class StepEntry:
    """Recorded history entry for a step visit."""
    step: BookingStep
    entered_at: datetime
    trigger: Optional[TransitionTrigger] = None


class BookingStepMachine:
    """
    Deterministic step graph for a single booking draft.

    CONFIRMED has no outgoing edges: booking again needs a fresh machine.
    SUBMITTING only leaves through a submission outcome, so nothing else can
    interleave with an in-flight request.
    """

    TRANSITIONS: list[Transition] = [
        # --- Date and time selection ---
        Transition(BookingStep.SELECTING_DATE, BookingStep.SELECTING_TIME,
                   TransitionTrigger.DATE_SELECTED),
        Transition(BookingStep.SELECTING_TIME, BookingStep.SELECTING_TIME,
                   TransitionTrigger.DATE_SELECTED),
        Transition(BookingStep.SELECTING_TIME, BookingStep.FILLING_FORM,
                   TransitionTrigger.SLOT_SELECTED),

        # --- Contact form ---
        Transition(BookingStep.FILLING_FORM, BookingStep.SUBMITTING,
                   TransitionTrigger.FORM_SUBMITTED),

        # --- Submission outcome ---
        Transition(BookingStep.SUBMITTING, BookingStep.CONFIRMED,
                   TransitionTrigger.BOOKING_SUCCEEDED),
        Transition(BookingStep.SUBMITTING, BookingStep.SELECTING_DATE,
                   TransitionTrigger.SLOT_CONFLICT),
        Transition(BookingStep.SUBMITTING, BookingStep.FILLING_FORM,
                   TransitionTrigger.SUBMISSION_FAILED),

        # --- Back navigation ---
        Transition(BookingStep.SELECTING_TIME, BookingStep.SELECTING_DATE,
                   TransitionTrigger.BACK),
        Transition(BookingStep.FILLING_FORM, BookingStep.SELECTING_TIME,
                   TransitionTrigger.BACK),

        # --- Calendar range changes ---
        Transition(BookingStep.SELECTING_DATE, BookingStep.SELECTING_DATE,
                   TransitionTrigger.RANGE_CHANGED),
        Transition(BookingStep.SELECTING_TIME, BookingStep.SELECTING_DATE,
                   TransitionTrigger.RANGE_CHANGED),
        Transition(BookingStep.FILLING_FORM, BookingStep.SELECTING_DATE,
                   TransitionTrigger.RANGE_CHANGED),

        # --- Visitor timezone changes ---
        Transition(BookingStep.SELECTING_DATE, BookingStep.SELECTING_DATE,
                   TransitionTrigger.TIMEZONE_CHANGED),
        Transition(BookingStep.SELECTING_TIME, BookingStep.SELECTING_DATE,
                   TransitionTrigger.TIMEZONE_CHANGED),
        Transition(BookingStep.FILLING_FORM, BookingStep.FILLING_FORM,
                   TransitionTrigger.TIMEZONE_CHANGED),
    ]

    def __init__(self) -> None:
        self._current_step = BookingStep.SELECTING_DATE
        self._history: list[StepEntry] = [
            StepEntry(step=BookingStep.SELECTING_DATE, entered_at=datetime.now(timezone.utc))
        ]
        self._conflict_count: int = 0

    @property
    def current_step(self) -> BookingStep:
        return self._current_step

    @property
    def conflict_count(self) -> int:
        return self._conflict_count

    def can_transition(self, trigger: TransitionTrigger) -> bool:
        return trigger in self.get_valid_triggers()

    def transition(self, trigger: TransitionTrigger) -> BookingStep:
        """
        Execute a step transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new booking step.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_step == self._current_step and t.trigger == trigger:
                if t.guard is not None and not t.guard():
                    continue

                old_step = self._current_step
                self._current_step = t.to_step

                self._history.append(StepEntry(
                    step=self._current_step,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))

                if trigger == TransitionTrigger.SLOT_CONFLICT:
                    self._conflict_count += 1

                logger.debug(
                    "Step transition: %s -> %s (trigger: %s)",
                    old_step.value, self._current_step.value, trigger.value,
                )
                return self._current_step

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_step.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[TransitionTrigger]:
        """Return all triggers valid from the current step."""
        return [t.trigger for t in self.TRANSITIONS if t.from_step == self._current_step]

    def get_history(self) -> list[StepEntry]:
        """Return the full step transition history."""
        return list(self._history)

    def get_step_trace(self) -> list[str]:
        """Return ordered list of step names visited."""
        return [entry.step.value for entry in self._history]

    def is_terminal(self) -> bool:
        """Check if the draft has been confirmed."""
        return self._current_step == BookingStep.CONFIRMED

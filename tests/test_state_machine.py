"""Tests for the booking step graph."""

import pytest

from booking_widget.errors import InvalidTransitionError
from booking_widget.scheduling.state_machine import (
    BookingStep,
    BookingStepMachine,
    TransitionTrigger,
)


def _to_form(machine: BookingStepMachine) -> None:
    machine.transition(TransitionTrigger.DATE_SELECTED)
    machine.transition(TransitionTrigger.SLOT_SELECTED)


class TestInitialStep:
    def test_starts_in_selecting_date(self, step_machine):
        assert step_machine.current_step == BookingStep.SELECTING_DATE

    def test_initial_history_has_one_entry(self, step_machine):
        assert len(step_machine.get_history()) == 1

    def test_initial_conflict_count_is_zero(self, step_machine):
        assert step_machine.conflict_count == 0

    def test_not_terminal_at_start(self, step_machine):
        assert not step_machine.is_terminal()


class TestSelectionTransitions:
    def test_date_selected_moves_to_selecting_time(self, step_machine):
        assert step_machine.transition(TransitionTrigger.DATE_SELECTED) == BookingStep.SELECTING_TIME

    def test_another_date_keeps_selecting_time(self, step_machine):
        step_machine.transition(TransitionTrigger.DATE_SELECTED)
        assert step_machine.transition(TransitionTrigger.DATE_SELECTED) == BookingStep.SELECTING_TIME

    def test_slot_selected_moves_to_form(self, step_machine):
        _to_form(step_machine)
        assert step_machine.current_step == BookingStep.FILLING_FORM

    def test_slot_cannot_be_selected_before_date(self, step_machine):
        with pytest.raises(InvalidTransitionError):
            step_machine.transition(TransitionTrigger.SLOT_SELECTED)

    def test_form_cannot_be_submitted_from_date_step(self, step_machine):
        with pytest.raises(InvalidTransitionError):
            step_machine.transition(TransitionTrigger.FORM_SUBMITTED)


class TestSubmissionOutcomes:
    def test_success_confirms(self, step_machine):
        _to_form(step_machine)
        step_machine.transition(TransitionTrigger.FORM_SUBMITTED)
        assert step_machine.transition(TransitionTrigger.BOOKING_SUCCEEDED) == BookingStep.CONFIRMED
        assert step_machine.is_terminal()

    def test_conflict_returns_to_date_selection(self, step_machine):
        _to_form(step_machine)
        step_machine.transition(TransitionTrigger.FORM_SUBMITTED)
        assert step_machine.transition(TransitionTrigger.SLOT_CONFLICT) == BookingStep.SELECTING_DATE
        assert step_machine.conflict_count == 1

    def test_other_failure_returns_to_form(self, step_machine):
        _to_form(step_machine)
        step_machine.transition(TransitionTrigger.FORM_SUBMITTED)
        assert step_machine.transition(TransitionTrigger.SUBMISSION_FAILED) == BookingStep.FILLING_FORM

    def test_submitting_ignores_range_changes(self, step_machine):
        _to_form(step_machine)
        step_machine.transition(TransitionTrigger.FORM_SUBMITTED)
        assert not step_machine.can_transition(TransitionTrigger.RANGE_CHANGED)
        with pytest.raises(InvalidTransitionError):
            step_machine.transition(TransitionTrigger.RANGE_CHANGED)

    def test_cannot_submit_twice(self, step_machine):
        _to_form(step_machine)
        step_machine.transition(TransitionTrigger.FORM_SUBMITTED)
        with pytest.raises(InvalidTransitionError):
            step_machine.transition(TransitionTrigger.FORM_SUBMITTED)


class TestTerminalStep:
    def test_confirmed_has_no_outgoing_edges(self, step_machine):
        _to_form(step_machine)
        step_machine.transition(TransitionTrigger.FORM_SUBMITTED)
        step_machine.transition(TransitionTrigger.BOOKING_SUCCEEDED)
        assert step_machine.get_valid_triggers() == []


class TestRangeAndTimezoneChanges:
    @pytest.mark.parametrize("steps_taken", [0, 1, 2])
    def test_range_change_returns_to_date_selection(self, step_machine, steps_taken):
        triggers = [TransitionTrigger.DATE_SELECTED, TransitionTrigger.SLOT_SELECTED]
        for trigger in triggers[:steps_taken]:
            step_machine.transition(trigger)
        assert step_machine.transition(TransitionTrigger.RANGE_CHANGED) == BookingStep.SELECTING_DATE

    def test_timezone_change_on_form_stays_on_form(self, step_machine):
        _to_form(step_machine)
        assert step_machine.transition(TransitionTrigger.TIMEZONE_CHANGED) == BookingStep.FILLING_FORM

    def test_timezone_change_while_picking_time_returns_to_dates(self, step_machine):
        step_machine.transition(TransitionTrigger.DATE_SELECTED)
        assert step_machine.transition(TransitionTrigger.TIMEZONE_CHANGED) == BookingStep.SELECTING_DATE


class TestBackNavigation:
    def test_back_from_form_to_times(self, step_machine):
        _to_form(step_machine)
        assert step_machine.transition(TransitionTrigger.BACK) == BookingStep.SELECTING_TIME

    def test_back_from_times_to_dates(self, step_machine):
        step_machine.transition(TransitionTrigger.DATE_SELECTED)
        assert step_machine.transition(TransitionTrigger.BACK) == BookingStep.SELECTING_DATE

    def test_no_back_from_first_step(self, step_machine):
        with pytest.raises(InvalidTransitionError):
            step_machine.transition(TransitionTrigger.BACK)


class TestHistory:
    def test_step_trace(self, step_machine):
        _to_form(step_machine)
        assert step_machine.get_step_trace() == [
            "selecting_date", "selecting_time", "filling_form",
        ]

    def test_history_records_trigger(self, step_machine):
        step_machine.transition(TransitionTrigger.DATE_SELECTED)
        last = step_machine.get_history()[-1]
        assert last.trigger == TransitionTrigger.DATE_SELECTED
        assert last.step == BookingStep.SELECTING_TIME

    def test_history_is_a_copy(self, step_machine):
        step_machine.get_history().clear()
        assert len(step_machine.get_history()) == 1

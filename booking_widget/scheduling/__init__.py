from booking_widget.scheduling.availability_cache import AvailabilityCache
from booking_widget.scheduling.booking_flow import BookingStateMachine
from booking_widget.scheduling.bounds import BookingWindow, compute_bounds
from booking_widget.scheduling.projector import (
    ProjectedSlot,
    ProjectionResult,
    ProjectionWarning,
    project,
)
from booking_widget.scheduling.state_machine import (
    BookingStep,
    BookingStepMachine,
    TransitionTrigger,
)

__all__ = [
    "AvailabilityCache",
    "BookingStateMachine",
    "BookingStep",
    "BookingStepMachine",
    "BookingWindow",
    "ProjectedSlot",
    "ProjectionResult",
    "ProjectionWarning",
    "TransitionTrigger",
    "compute_bounds",
    "project",
]

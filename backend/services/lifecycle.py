"""Appointment status lifecycle.

    requested -> approved -> completed
              \            \-> cancelled
               \-> declined

declined, completed and cancelled are terminal.
"""

from backend.core.errors import InvalidTransitionError
from backend.models.enums import AppointmentStatus

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.REQUESTED: frozenset({AppointmentStatus.APPROVED, AppointmentStatus.DECLINED}),
    AppointmentStatus.APPROVED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.DECLINED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

INITIAL_STATUS = AppointmentStatus.REQUESTED

TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)


def is_terminal(status: AppointmentStatus) -> bool:
    return status in TERMINAL_STATUSES


def check_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """Validate moving from ``current`` to ``target``.

    Returns False when the target is already the current status (nothing to
    write), True when the edge exists. Raises ``InvalidTransitionError``
    otherwise.
    """
    if current == target:
        return False
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value)
    return True

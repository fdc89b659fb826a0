"""Error taxonomy for the appointment core.

Every error carries the HTTP status it maps to so the exception handlers in
``backend.main`` stay a single lookup.
"""


class AppointmentError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AppointmentError):
    """Missing or malformed input."""
    status_code = 400


class InvalidTransitionError(AppointmentError):
    """Requested status change is not an edge of the lifecycle graph."""
    status_code = 400

    def __init__(self, current: str, target: str, message: str | None = None) -> None:
        super().__init__(message or f"Cannot change appointment status from '{current}' to '{target}'.")
        self.current = current
        self.target = target


class AuthorizationError(AppointmentError):
    status_code = 403


class NotFoundError(AppointmentError):
    status_code = 404


class PersistenceError(AppointmentError):
    # The real cause is logged; clients only ever see the generic message.
    status_code = 500

    def __init__(self, message: str = "Internal Server Error") -> None:
        super().__init__(message)

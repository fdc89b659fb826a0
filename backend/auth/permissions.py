from dataclasses import dataclass

from backend.core.errors import AuthorizationError
from backend.models.enums import Role


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as seen by the appointment core."""
    user_id: int
    role: Role


def visible_to(principal: Principal, appointment) -> bool:
    """Return whether ``principal`` may see ``appointment``.

    Works on ORM rows and response models alike since both expose
    ``student_id`` and ``faculty_id``.
    """
    if principal.role is Role.ADMIN:
        return True
    if principal.role is Role.FACULTY:
        return appointment.faculty_id == principal.user_id
    if principal.role is Role.STUDENT:
        return appointment.student_id == principal.user_id
    raise AuthorizationError(f"Unsupported role: {principal.role!r}")


def require_role(principal: Principal, *roles: Role, message: str) -> None:
    if principal.role not in roles:
        raise AuthorizationError(message)

import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from backend.core.errors import InvalidTransitionError, NotFoundError, PersistenceError, ValidationError
from backend.models.appointment import Appointment
from backend.models.enums import AppointmentStatus, Mode, Role
from backend.services import lifecycle

logger = logging.getLogger(__name__)


class AppointmentStore:
    """Reads and writes appointment rows on an open session.

    The caller owns the transaction; the store only flushes.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def create_appointment(self, student_id, faculty_id, mode, reason) -> Appointment:
        if not student_id or not faculty_id or not mode or not reason:
            raise ValidationError('Invalid request.')
        try:
            mode = Mode(mode)
        except ValueError as exc:
            raise ValidationError(f"Invalid mode. Must be one of: {', '.join(m.value for m in Mode)}.") from exc

        appointment = Appointment(
            student_id=student_id,
            faculty_id=faculty_id,
            mode=mode.value,
            status=lifecycle.INITIAL_STATUS.value,
            reason=reason,
        )
        self.session.add(appointment)
        self.session.flush()
        self.session.refresh(appointment)
        return appointment

    def get_appointments_for_role(self, user_id: int, role: Role) -> list[Appointment]:
        query = self.session.query(Appointment)
        if role is Role.FACULTY:
            query = query.filter(Appointment.faculty_id == user_id)
        elif role is Role.STUDENT:
            query = query.filter(Appointment.student_id == user_id)
        elif role is not Role.ADMIN:
            raise ValidationError(f'Unsupported role: {role!r}')
        return query.order_by(Appointment.created_at.asc(), Appointment.id.asc()).all()

    def list_all(self) -> list[Appointment]:
        return self.session.query(Appointment).order_by(
            Appointment.created_at.asc(),
            Appointment.id.asc(),
        ).all()

    def get_appointment_by_id(self, appointment_id: int, for_update: bool = False) -> Appointment:
        query = self.session.query(Appointment).filter(Appointment.id == appointment_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        appointment = query.first()
        if appointment is None:
            raise NotFoundError('Appointment not found.')
        return appointment

    def update_status(self, appointment_id: int, new_status: AppointmentStatus) -> Appointment:
        appointment, _ = self.apply_status(appointment_id, new_status)
        return appointment

    def apply_status(self, appointment_id: int, new_status: AppointmentStatus) -> tuple[Appointment, bool]:
        """Move the appointment to ``new_status``; the flag says whether a row was written."""
        new_status = AppointmentStatus(new_status)
        # Every successful write moves strictly forward in the lifecycle, so a
        # writer can lose the race at most once per remaining edge.
        for _ in range(len(lifecycle.ALLOWED_TRANSITIONS)):
            appointment = self.get_appointment_by_id(appointment_id, for_update=True)
            current = AppointmentStatus(appointment.status)
            if not lifecycle.check_transition(current, new_status):
                return appointment, False

            result = self.session.execute(
                update(Appointment)
                .where(Appointment.id == appointment_id, Appointment.status == current.value)
                .values(status=new_status.value)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                self.session.refresh(appointment)
                logger.info(
                    'Appointment %s status %s -> %s',
                    appointment_id,
                    current.value,
                    new_status.value,
                )
                return appointment, True

            logger.info(
                'Appointment %s changed while moving %s -> %s; re-reading',
                appointment_id,
                current.value,
                new_status.value,
            )

        raise PersistenceError()

    def update_reason(self, appointment_id: int, reason: str) -> Appointment:
        if not reason or not reason.strip():
            raise ValidationError('Reason is required.')
        appointment = self.get_appointment_by_id(appointment_id, for_update=True)
        current = AppointmentStatus(appointment.status)
        if lifecycle.is_terminal(current):
            raise InvalidTransitionError(
                current.value,
                current.value,
                message=f"Cannot change the reason of a {current.value} appointment.",
            )
        appointment.reason = reason.strip()
        self.session.flush()
        return appointment

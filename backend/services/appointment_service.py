import logging

from starlette.concurrency import run_in_threadpool

from backend.auth.permissions import Principal, require_role, visible_to
from backend.core.errors import AuthorizationError, ValidationError
from backend.database import SessionLocal, transaction
from backend.models.enums import AppointmentStatus, Role
from backend.models.user import User
from backend.schemas.appointment import AppointmentResponse
from backend.services.appointment_store import AppointmentStore
from backend.services.broadcaster import AppointmentBroadcaster

logger = logging.getLogger(__name__)


class AppointmentService:
    """Entry point for every appointment operation.

    Checks who may do what, runs the store inside one transaction per call
    and, after a status change commits, pushes a fresh snapshot through the
    broadcaster it owns.
    """

    def __init__(self, session_factory=SessionLocal, broadcaster: AppointmentBroadcaster | None = None) -> None:
        self.session_factory = session_factory
        self.broadcaster = broadcaster or AppointmentBroadcaster()

    async def request_appointment(self, principal: Principal, faculty_id: int, mode, reason: str) -> AppointmentResponse:
        require_role(principal, Role.STUDENT, message='Only students can request appointments.')
        return await run_in_threadpool(self._request_appointment, principal, faculty_id, mode, reason)

    async def get_appointments(self, principal: Principal) -> list[AppointmentResponse]:
        return await run_in_threadpool(self._get_appointments, principal)

    async def get_appointment(self, principal: Principal, appointment_id: int) -> AppointmentResponse:
        return await run_in_threadpool(self._get_appointment, principal, appointment_id)

    async def update_reason(self, principal: Principal, appointment_id: int, reason: str | None) -> AppointmentResponse:
        require_role(principal, Role.STUDENT, message='Only students can change the reason of an appointment.')
        return await run_in_threadpool(self._update_reason, principal, appointment_id, reason)

    async def update_appointment_status(
        self,
        principal: Principal,
        appointment_id: int,
        status: AppointmentStatus,
    ) -> AppointmentResponse:
        require_role(
            principal,
            Role.FACULTY,
            Role.ADMIN,
            message='Only faculty can update appointment status.',
        )
        appointment, changed = await run_in_threadpool(self._update_status, principal, appointment_id, status)
        if changed:
            await self.broadcaster.publish(self.snapshot)
        return appointment

    async def snapshot(self, principal: Principal | None = None) -> list[AppointmentResponse]:
        appointments = await run_in_threadpool(self._load_snapshot)
        if principal is None:
            return appointments
        return [appointment for appointment in appointments if visible_to(principal, appointment)]

    async def subscribe(self, connection, principal: Principal):
        return await self.broadcaster.subscribe_with(self.snapshot, connection, principal)

    def unsubscribe(self, subscription) -> None:
        self.broadcaster.unsubscribe(subscription)

    def _request_appointment(self, principal, faculty_id, mode, reason) -> AppointmentResponse:
        with transaction(
            'request_appointment',
            self.session_factory,
            student_id=principal.user_id,
            faculty_id=faculty_id,
        ) as session:
            faculty = session.query(User).filter(User.id == faculty_id).first()
            if faculty is None or faculty.role != Role.FACULTY.value:
                raise ValidationError('Selected faculty member does not exist.')

            appointment = AppointmentStore(session).create_appointment(
                student_id=principal.user_id,
                faculty_id=faculty_id,
                mode=mode,
                reason=reason,
            )
            logger.info(
                'Student %s requested appointment %s with faculty %s',
                principal.user_id,
                appointment.id,
                faculty_id,
            )
            return AppointmentResponse.model_validate(appointment)

    def _get_appointments(self, principal: Principal) -> list[AppointmentResponse]:
        with transaction('get_appointments', self.session_factory, user_id=principal.user_id) as session:
            appointments = AppointmentStore(session).get_appointments_for_role(principal.user_id, principal.role)
            return [AppointmentResponse.model_validate(appointment) for appointment in appointments]

    def _get_appointment(self, principal: Principal, appointment_id: int) -> AppointmentResponse:
        with transaction('get_appointment', self.session_factory, appointment_id=appointment_id) as session:
            appointment = AppointmentStore(session).get_appointment_by_id(appointment_id)
            if not visible_to(principal, appointment):
                raise AuthorizationError('You do not have access to this appointment.')
            return AppointmentResponse.model_validate(appointment)

    def _update_reason(self, principal: Principal, appointment_id: int, reason: str | None) -> AppointmentResponse:
        with transaction('update_reason', self.session_factory, appointment_id=appointment_id) as session:
            store = AppointmentStore(session)
            appointment = store.get_appointment_by_id(appointment_id)
            if appointment.student_id != principal.user_id:
                raise AuthorizationError('Only the student who requested this appointment can change it.')
            if reason is not None:
                appointment = store.update_reason(appointment_id, reason)
            return AppointmentResponse.model_validate(appointment)

    def _update_status(
        self,
        principal: Principal,
        appointment_id: int,
        status: AppointmentStatus,
    ) -> tuple[AppointmentResponse, bool]:
        status = AppointmentStatus(status)
        with transaction(
            'update_status',
            self.session_factory,
            appointment_id=appointment_id,
            status=status.value,
        ) as session:
            store = AppointmentStore(session)
            appointment = store.get_appointment_by_id(appointment_id)
            if principal.role is Role.FACULTY and appointment.faculty_id != principal.user_id:
                raise AuthorizationError('Only the assigned faculty member can update this appointment.')

            appointment, changed = store.apply_status(appointment_id, status)
            return AppointmentResponse.model_validate(appointment), changed

    def _load_snapshot(self) -> list[AppointmentResponse]:
        with transaction('load_snapshot', self.session_factory) as session:
            return [AppointmentResponse.model_validate(appointment) for appointment in AppointmentStore(session).list_all()]

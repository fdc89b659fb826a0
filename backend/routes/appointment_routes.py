from fastapi import APIRouter, Depends, status
from fastapi.requests import HTTPConnection

from backend.auth.dependencies import get_current_user
from backend.auth.permissions import Principal
from backend.schemas.appointment import (
    AppointmentRequest,
    AppointmentResponse,
    ReasonUpdateRequest,
    StatusUpdateRequest,
)
from backend.services.appointment_service import AppointmentService

router = APIRouter(tags=['appointments'])


def get_appointment_service(connection: HTTPConnection) -> AppointmentService:
    return connection.app.state.appointment_service


@router.get('', response_model=list[AppointmentResponse])
async def list_appointments(
    principal: Principal = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return await service.get_appointments(principal)


@router.post('/request', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def request_appointment(
    data: AppointmentRequest,
    principal: Principal = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return await service.request_appointment(principal, data.faculty_id, data.mode, data.reason)


@router.get('/{appointment_id}', response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    principal: Principal = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return await service.get_appointment(principal, appointment_id)


@router.put('/{appointment_id}', response_model=AppointmentResponse)
async def update_appointment_reason(
    appointment_id: int,
    data: ReasonUpdateRequest,
    principal: Principal = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return await service.update_reason(principal, appointment_id, data.reason)


@router.patch('/{appointment_id}/status', response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: int,
    data: StatusUpdateRequest,
    principal: Principal = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return await service.update_appointment_status(principal, appointment_id, data.status)

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from backend.auth.dependencies import get_current_user, get_websocket_principal
from backend.auth.permissions import Principal
from backend.routes.appointment_routes import get_appointment_service
from backend.schemas.appointment import AppointmentResponse
from backend.services.appointment_service import AppointmentService

router = APIRouter(tags=['notifications'])

logger = logging.getLogger(__name__)


@router.get('/notifications', response_model=list[AppointmentResponse])
async def get_notifications(
    principal: Principal = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return await service.snapshot(principal)


@router.websocket('/ws/appointments')
async def appointment_events(
    websocket: WebSocket,
    principal: Principal = Depends(get_websocket_principal),
    service: AppointmentService = Depends(get_appointment_service),
):
    await websocket.accept()
    subscription = await service.subscribe(websocket, principal)
    logger.info('Appointment observer connected for user %s', principal.user_id)
    try:
        while True:
            # Inbound messages are ignored; reading only detects the close.
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info('Appointment observer disconnected for user %s', principal.user_id)
    finally:
        service.unsubscribe(subscription)

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.core import config
from backend.core.errors import AppointmentError
from backend.database import Base, SessionLocal, engine, ensure_appointment_schema
from backend.models import appointment, user  # noqa: F401  register tables on Base
from backend.routes import appointment_routes, auth_routes, faculty_routes, notification_routes
from backend.services.appointment_service import AppointmentService

logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

config.validate_runtime_config()

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.state.appointment_service = AppointmentService(SessionLocal)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.exception_handler(AppointmentError)
async def handle_appointment_error(request: Request, exc: AppointmentError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error('%s %s failed: %s', request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={'error': exc.message})


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info('Rejected %s %s: %s', request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={'message': 'Invalid request.'})


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={'error': exc.detail},
        headers=getattr(exc, 'headers', None),
    )


@app.get('/')
def root():
    return {'status': 'Appointment API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(notification_routes.router)
app.include_router(faculty_routes.router)

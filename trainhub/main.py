import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from trainhub.core import config
from trainhub.core.errors import TrainhubError
from trainhub.database import Base, engine, ensure_scheduling_schema
from trainhub.models import availability, booking, booking_request, service, user  # noqa: F401
from trainhub.routes import (
    auth_routes,
    availability_routes,
    booking_request_routes,
    booking_routes,
    client_routes,
    slot_routes,
)

logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
)
logger = logging.getLogger(__name__)

config.validate_runtime_config()

app = FastAPI(title='trainhub scheduling')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_scheduling_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.exception_handler(TrainhubError)
async def handle_trainhub_error(request: Request, exc: TrainhubError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error('%s %s failed: %s', request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {'loc': [str(part) for part in error.get('loc', ())], 'msg': error.get('msg', '')}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={'error': 'Invalid request', 'details': details})


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={'error': str(exc.detail)})


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception('Unexpected error on %s %s', request.method, request.url.path)
    return JSONResponse(status_code=500, content={'error': 'Internal server error'})


@app.get('/')
def root():
    return {'status': 'trainhub scheduling API running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(availability_routes.router, prefix='/api/availability')
app.include_router(client_routes.router, prefix='/api/client')
app.include_router(slot_routes.router, prefix='/api/slots')
app.include_router(booking_routes.router, prefix='/api/bookings')
app.include_router(booking_request_routes.router, prefix='/api/booking-requests')

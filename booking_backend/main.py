import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from booking_backend.core import config
from booking_backend.database import Base, engine, ensure_booking_schema
from booking_backend.models import availability_template, blackout, booking, organization, service  # noqa: F401
from booking_backend.routes import (
    availability_routes,
    booking_routes,
    organization_routes,
    public_routes,
    service_routes,
)

logging.basicConfig(level=config.LOG_LEVEL)

app = FastAPI(title='Booking Availability API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_booking_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Booking Availability API Running'}


app.include_router(public_routes.router, prefix='/public')
app.include_router(organization_routes.router, prefix='/organizations')
app.include_router(service_routes.router, prefix='/organizations')
app.include_router(availability_routes.router, prefix='/organizations')
app.include_router(booking_routes.router, prefix='/organizations')

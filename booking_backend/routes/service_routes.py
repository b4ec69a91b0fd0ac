import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking_backend.database import get_db
from booking_backend.models.booking import Booking
from booking_backend.models.service import Service
from booking_backend.routes.common import database_unavailable, ensure_database_ready, require_organization
from booking_backend.scheduling.slots import MAX_SERVICE_DURATION_MINUTES, MIN_SERVICE_DURATION_MINUTES
from booking_backend.scheduling.storage import SqlAlchemyStorage

logger = logging.getLogger(__name__)

router = APIRouter(tags=['services'])

MIN_SERVICE_NAME_LENGTH = 2
MAX_SERVICE_NAME_LENGTH = 80


def normalize_service_name(value: str) -> str:
    normalized = value.strip()
    if not MIN_SERVICE_NAME_LENGTH <= len(normalized) <= MAX_SERVICE_NAME_LENGTH:
        raise ValueError(
            f'Service name must be between {MIN_SERVICE_NAME_LENGTH} and {MAX_SERVICE_NAME_LENGTH} characters.'
        )
    return normalized


def check_duration(value: int) -> int:
    if not MIN_SERVICE_DURATION_MINUTES <= value <= MAX_SERVICE_DURATION_MINUTES:
        raise ValueError(
            f'Duration must be between {MIN_SERVICE_DURATION_MINUTES} and {MAX_SERVICE_DURATION_MINUTES} minutes.'
        )
    return value


def check_price(value: int | None) -> int | None:
    if value is not None and value <= 0:
        raise ValueError('Price must be a positive number.')
    return value


class CreateServiceRequest(BaseModel):
    name: str
    duration_min: int
    price: int | None = None
    is_active: bool = True

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return normalize_service_name(value)

    @field_validator('duration_min')
    @classmethod
    def validate_duration(cls, value: int) -> int:
        return check_duration(value)

    @field_validator('price')
    @classmethod
    def validate_price(cls, value: int | None) -> int | None:
        return check_price(value)


class UpdateServiceRequest(BaseModel):
    name: str | None = None
    duration_min: int | None = None
    price: int | None = None
    is_active: bool | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        if value is None:
            raise ValueError('Service name cannot be empty.')
        return normalize_service_name(value)

    @field_validator('duration_min')
    @classmethod
    def validate_duration(cls, value: int | None) -> int | None:
        if value is None:
            raise ValueError('Duration cannot be empty.')
        return check_duration(value)

    @field_validator('price')
    @classmethod
    def validate_price(cls, value: int | None) -> int | None:
        return check_price(value)

    @field_validator('is_active')
    @classmethod
    def validate_is_active(cls, value: bool | None) -> bool | None:
        if value is None:
            raise ValueError('Active flag cannot be empty.')
        return value


class AdminServiceResponse(BaseModel):
    id: int
    organization_id: int
    name: str
    duration_min: int
    price: int | None = None
    is_active: bool

    class Config:
        from_attributes = True


def require_service_row(db: Session, organization_id: int, service_id: int) -> Service:
    service = db.query(Service).filter(
        Service.id == service_id,
        Service.organization_id == organization_id,
    ).first()

    if not service:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Service not found.',
        )

    return service


@router.get('/{organization_id}/services', response_model=list[AdminServiceResponse])
def list_services(organization_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        require_organization(SqlAlchemyStorage(db), organization_id)

        return db.query(Service).filter(
            Service.organization_id == organization_id,
        ).order_by(Service.name.asc(), Service.id.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/{organization_id}/services', response_model=AdminServiceResponse, status_code=status.HTTP_201_CREATED)
def create_service(organization_id: int, data: CreateServiceRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        require_organization(SqlAlchemyStorage(db), organization_id)

        service = Service(
            organization_id=organization_id,
            name=data.name,
            duration_min=data.duration_min,
            price=data.price,
            is_active=data.is_active,
        )
        db.add(service)
        db.commit()
        db.refresh(service)

        return service
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.patch('/{organization_id}/services/{service_id}', response_model=AdminServiceResponse)
def update_service(
    organization_id: int,
    service_id: int,
    data: UpdateServiceRequest,
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        service = require_service_row(db, organization_id, service_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(service, field, value)

        db.commit()
        db.refresh(service)

        return service
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/{organization_id}/services/{service_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_service(organization_id: int, service_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        service = require_service_row(db, organization_id, service_id)

        # Bookings keep their service; retired services are deactivated instead.
        has_bookings = db.query(Booking.id).filter(Booking.service_id == service.id).first() is not None
        if has_bookings:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='Service has bookings. Deactivate it instead.',
            )

        db.delete(service)
        db.commit()

        logger.info('Service %s of organization %s deleted', service_id, organization_id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

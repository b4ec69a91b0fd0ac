import logging
import re

import pytz
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from booking_backend.core import config
from booking_backend.database import get_db
from booking_backend.models.organization import Organization
from booking_backend.routes.common import database_unavailable, ensure_database_ready

logger = logging.getLogger(__name__)

router = APIRouter(tags=['organizations'])

MIN_ORGANIZATION_NAME_LENGTH = 2
MAX_ORGANIZATION_NAME_LENGTH = 80
MIN_SLUG_LENGTH = 2
MAX_SLUG_LENGTH = 50
SLUG_PATTERN = re.compile(r'^[a-z0-9-]+$')
SLUG_TAKEN_DETAIL = 'This URL is already taken.'


def normalize_organization_name(value: str) -> str:
    normalized = value.strip()
    if not MIN_ORGANIZATION_NAME_LENGTH <= len(normalized) <= MAX_ORGANIZATION_NAME_LENGTH:
        raise ValueError(
            f'Name must be between {MIN_ORGANIZATION_NAME_LENGTH} and {MAX_ORGANIZATION_NAME_LENGTH} characters.'
        )
    return normalized


def normalize_slug(value: str) -> str:
    normalized = value.strip().lower()
    if not MIN_SLUG_LENGTH <= len(normalized) <= MAX_SLUG_LENGTH:
        raise ValueError(f'URL must be between {MIN_SLUG_LENGTH} and {MAX_SLUG_LENGTH} characters.')
    if not SLUG_PATTERN.match(normalized):
        raise ValueError('URL can only contain lowercase letters, digits and dashes.')
    return normalized


def normalize_timezone(value: str) -> str:
    normalized = value.strip()
    if normalized not in pytz.all_timezones_set:
        raise ValueError(f"Unknown timezone '{normalized}'.")
    return normalized


class CreateOrganizationRequest(BaseModel):
    name: str
    slug: str
    timezone: str = config.DEFAULT_TIMEZONE

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return normalize_organization_name(value)

    @field_validator('slug')
    @classmethod
    def validate_slug(cls, value: str) -> str:
        return normalize_slug(value)

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        return normalize_timezone(value)


class UpdateOrganizationRequest(BaseModel):
    name: str | None = None
    slug: str | None = None
    timezone: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        if value is None:
            raise ValueError('Name cannot be empty.')
        return normalize_organization_name(value)

    @field_validator('slug')
    @classmethod
    def validate_slug(cls, value: str | None) -> str | None:
        if value is None:
            raise ValueError('URL cannot be empty.')
        return normalize_slug(value)

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, value: str | None) -> str | None:
        if value is None:
            raise ValueError('Timezone cannot be empty.')
        return normalize_timezone(value)


class OrganizationResponse(BaseModel):
    id: int
    name: str
    slug: str
    timezone: str

    class Config:
        from_attributes = True


def require_organization_row(db: Session, organization_id: int) -> Organization:
    organization = db.query(Organization).filter(Organization.id == organization_id).first()
    if not organization:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Organization not found.',
        )
    return organization


def ensure_slug_available(db: Session, slug: str, organization_id: int | None = None) -> None:
    existing = db.query(Organization).filter(Organization.slug == slug).first()
    if existing and existing.id != organization_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=SLUG_TAKEN_DETAIL,
        )


@router.post('', response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
def create_organization(data: CreateOrganizationRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        ensure_slug_available(db, data.slug)

        organization = Organization(name=data.name, slug=data.slug, timezone=data.timezone)
        db.add(organization)
        db.commit()
        db.refresh(organization)

        logger.info('Organization %s created with slug %s', organization.id, organization.slug)
        return organization
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=SLUG_TAKEN_DETAIL,
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/{organization_id}', response_model=OrganizationResponse)
def get_organization(organization_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return require_organization_row(db, organization_id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.patch('/{organization_id}', response_model=OrganizationResponse)
def update_organization(organization_id: int, data: UpdateOrganizationRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        organization = require_organization_row(db, organization_id)
        changes = data.model_dump(exclude_unset=True)

        if 'slug' in changes:
            ensure_slug_available(db, changes['slug'], organization_id)

        for field, value in changes.items():
            setattr(organization, field, value)

        db.commit()
        db.refresh(organization)

        if 'timezone' in changes:
            logger.info('Organization %s moved to timezone %s', organization_id, organization.timezone)
        return organization
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=SLUG_TAKEN_DETAIL,
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from booking_backend.database import ensure_booking_schema
from booking_backend.scheduling.storage import SchedulingStorage
from booking_backend.scheduling.types import OrganizationInfo

logger = logging.getLogger(__name__)

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def database_unavailable(exc: SQLAlchemyError) -> HTTPException:
    logger.exception('Database request failed', exc_info=exc)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def ensure_database_ready() -> None:
    try:
        ensure_booking_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


def require_organization(storage: SchedulingStorage, organization_id: int) -> OrganizationInfo:
    organization = storage.get_organization(organization_id)
    if organization is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Organization not found.',
        )
    return organization


def require_organization_by_slug(storage: SchedulingStorage, org_slug: str) -> OrganizationInfo:
    organization = storage.get_organization_by_slug(org_slug)
    if organization is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Organization not found.',
        )
    return organization

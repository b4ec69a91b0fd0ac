from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking_backend.database import get_db
from booking_backend.models.availability_template import AvailabilityTemplate
from booking_backend.models.blackout import Blackout
from booking_backend.routes.common import database_unavailable, ensure_database_ready, require_organization
from booking_backend.scheduling.availability import MAX_SLOT_STEP_MINUTES, MIN_SLOT_STEP_MINUTES
from booking_backend.scheduling.calendar import MINUTES_PER_DAY, to_utc
from booking_backend.scheduling.storage import SqlAlchemyStorage, from_naive_utc, to_naive_utc

router = APIRouter(tags=['availability'])

MAX_BLACKOUT_REASON_LENGTH = 200


class CreateAvailabilityTemplateRequest(BaseModel):
    weekday: int
    start_minutes: int
    end_minutes: int
    slot_step_min: int

    @field_validator('weekday')
    @classmethod
    def validate_weekday(cls, value: int) -> int:
        if not 0 <= value <= 6:
            raise ValueError('Weekday must be between 0 (Sunday) and 6 (Saturday).')
        return value

    @field_validator('start_minutes')
    @classmethod
    def validate_start_minutes(cls, value: int) -> int:
        if not 0 <= value <= MINUTES_PER_DAY - 1:
            raise ValueError('Start must be between 0 and 1439 minutes after midnight.')
        return value

    @field_validator('end_minutes')
    @classmethod
    def validate_end_minutes(cls, value: int) -> int:
        if not 1 <= value <= MINUTES_PER_DAY:
            raise ValueError('End must be between 1 and 1440 minutes after midnight.')
        return value

    @field_validator('slot_step_min')
    @classmethod
    def validate_slot_step(cls, value: int) -> int:
        if not MIN_SLOT_STEP_MINUTES <= value <= MAX_SLOT_STEP_MINUTES:
            raise ValueError(
                f'Slot step must be between {MIN_SLOT_STEP_MINUTES} and {MAX_SLOT_STEP_MINUTES} minutes.'
            )
        return value

    @model_validator(mode='after')
    def validate_window(self) -> 'CreateAvailabilityTemplateRequest':
        if self.end_minutes <= self.start_minutes:
            raise ValueError('End must be after start.')
        return self


class AvailabilityTemplateResponse(BaseModel):
    id: int
    organization_id: int
    weekday: int
    start_minutes: int
    end_minutes: int
    slot_step_min: int

    class Config:
        from_attributes = True


class CreateBlackoutRequest(BaseModel):
    starts_at: datetime
    ends_at: datetime
    reason: str | None = None

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_BLACKOUT_REASON_LENGTH:
            raise ValueError(f'Reason must be {MAX_BLACKOUT_REASON_LENGTH} characters or fewer.')

        return normalized

    @model_validator(mode='after')
    def validate_range(self) -> 'CreateBlackoutRequest':
        if to_utc(self.ends_at) <= to_utc(self.starts_at):
            raise ValueError('End must be after start.')
        return self


class BlackoutResponse(BaseModel):
    id: int
    organization_id: int
    starts_at: datetime
    ends_at: datetime
    reason: str | None = None


def blackout_response(blackout: Blackout) -> BlackoutResponse:
    return BlackoutResponse(
        id=blackout.id,
        organization_id=blackout.organization_id,
        starts_at=from_naive_utc(blackout.starts_at),
        ends_at=from_naive_utc(blackout.ends_at),
        reason=blackout.reason,
    )


@router.get('/{organization_id}/availability', response_model=list[AvailabilityTemplateResponse])
def list_availability_templates(organization_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        storage = SqlAlchemyStorage(db)
        require_organization(storage, organization_id)

        return db.query(AvailabilityTemplate).filter(
            AvailabilityTemplate.organization_id == organization_id,
        ).order_by(
            AvailabilityTemplate.weekday.asc(),
            AvailabilityTemplate.start_minutes.asc(),
            AvailabilityTemplate.id.asc(),
        ).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post(
    '/{organization_id}/availability',
    response_model=AvailabilityTemplateResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_availability_template(
    organization_id: int,
    data: CreateAvailabilityTemplateRequest,
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        require_organization(SqlAlchemyStorage(db), organization_id)

        template = AvailabilityTemplate(
            organization_id=organization_id,
            weekday=data.weekday,
            start_minutes=data.start_minutes,
            end_minutes=data.end_minutes,
            slot_step_min=data.slot_step_min,
        )
        db.add(template)
        db.commit()
        db.refresh(template)

        return template
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/{organization_id}/availability/{template_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_availability_template(organization_id: int, template_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        template = db.query(AvailabilityTemplate).filter(
            AvailabilityTemplate.id == template_id,
            AvailabilityTemplate.organization_id == organization_id,
        ).first()

        if not template:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Availability template not found.',
            )

        db.delete(template)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/{organization_id}/blackouts', response_model=list[BlackoutResponse])
def list_blackouts(organization_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        require_organization(SqlAlchemyStorage(db), organization_id)

        blackouts = db.query(Blackout).filter(
            Blackout.organization_id == organization_id,
        ).order_by(Blackout.starts_at.asc(), Blackout.id.asc()).all()

        return [blackout_response(blackout) for blackout in blackouts]
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/{organization_id}/blackouts', response_model=BlackoutResponse, status_code=status.HTTP_201_CREATED)
def create_blackout(organization_id: int, data: CreateBlackoutRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        require_organization(SqlAlchemyStorage(db), organization_id)

        blackout = Blackout(
            organization_id=organization_id,
            starts_at=to_naive_utc(data.starts_at),
            ends_at=to_naive_utc(data.ends_at),
            reason=data.reason,
        )
        db.add(blackout)
        db.commit()
        db.refresh(blackout)

        return blackout_response(blackout)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/{organization_id}/blackouts/{blackout_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_blackout(organization_id: int, blackout_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        blackout = db.query(Blackout).filter(
            Blackout.id == blackout_id,
            Blackout.organization_id == organization_id,
        ).first()

        if not blackout:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Blackout not found.',
            )

        db.delete(blackout)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

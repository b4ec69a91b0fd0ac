"""Availability template model definitions."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer

from booking_backend.database import Base


class AvailabilityTemplate(Base):
    """Weekly recurring opening window. Rows are created and deleted, never updated."""
    __tablename__ = "availability_templates"
    __table_args__ = (
        CheckConstraint("weekday BETWEEN 0 AND 6", name="ck_templates_weekday"),
        CheckConstraint("end_minutes > start_minutes", name="ck_templates_window"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    weekday = Column(Integer, nullable=False)  # 0 = Sunday
    start_minutes = Column(Integer, nullable=False)
    end_minutes = Column(Integer, nullable=False)
    slot_step_min = Column(Integer, nullable=False)

"""Blackout model definitions."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String

from booking_backend.database import Base


class Blackout(Base):
    """Closed period for an organization. Instants are stored as naive UTC."""
    __tablename__ = "blackouts"
    __table_args__ = (
        CheckConstraint("ends_at > starts_at", name="ck_blackouts_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    starts_at = Column(DateTime, nullable=False)
    ends_at = Column(DateTime, nullable=False)
    reason = Column(String)

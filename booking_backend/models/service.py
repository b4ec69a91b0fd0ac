"""Service model definitions."""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, String

from booking_backend.database import Base


class Service(Base):
    """A bookable offering; its duration sizes the generated slots."""
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration_min BETWEEN 5 AND 480", name="ck_services_duration"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    duration_min = Column(Integer, nullable=False)
    price = Column(Integer)
    is_active = Column(Boolean, nullable=False, default=True)

"""Organization model definitions."""

from sqlalchemy import Column, Integer, String

from booking_backend.core import config
from booking_backend.database import Base


class Organization(Base):
    """A tenant whose services customers book."""
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    timezone = Column(String, nullable=False, default=config.DEFAULT_TIMEZONE)

"""Appointment model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Integer, String, Time
from barbershop.database import Base


class Appointment(Base):
    """Represents a confirmed customer booking."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    service = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    duration = Column(Integer, nullable=False)
    status = Column(String, default="booked")
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

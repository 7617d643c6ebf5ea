"""Availability window model definitions."""

from sqlalchemy import Column, Date, Integer, Time
from barbershop.database import Base


class Availability(Base):
    """An admin-declared window during which bookings are accepted."""
    __tablename__ = "availability"

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

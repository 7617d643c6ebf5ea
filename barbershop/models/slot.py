"""Slot model definitions."""

from sqlalchemy import Boolean, Column, Date, ForeignKey, Integer, Time, UniqueConstraint
from barbershop.database import Base


class Slot(Base):
    """A single bookable interval generated from an availability window.

    ``is_booked`` and ``appointment_id`` describe the same fact: a slot is
    booked exactly when it references an appointment.
    """
    __tablename__ = "slots"
    __table_args__ = (UniqueConstraint("date", "start_time", name="uq_slots_date_start"),)

    id = Column(Integer, primary_key=True)
    # Deleting a window leaves its slots in place.
    availability_id = Column(Integer, ForeignKey("availability.id", ondelete="SET NULL"), nullable=True)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_booked = Column(Boolean, nullable=False, default=False)
    appointment_id = Column(Integer, unique=True, nullable=True)

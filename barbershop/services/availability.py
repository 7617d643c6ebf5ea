import logging
from datetime import date, time

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from barbershop.core.errors import NotFoundError, PartialWriteError, StoreUnavailableError, ValidationError
from barbershop.models.appointment import Appointment
from barbershop.models.availability import Availability
from barbershop.models.slot import Slot
from barbershop.services.booking import require_fields
from barbershop.services.slot_generator import DEFAULT_INTERVAL_MINUTES, generate_time_slots

logger = logging.getLogger(__name__)


def _overlaps(start: time, end: time, other_start: time, other_end: time) -> bool:
    # An end at or before its start ran past midnight.
    if end <= start:
        end = time.max
    if other_end <= other_start:
        other_end = time.max
    return start < other_end and other_start < end


def create_availability(
    db: Session,
    *,
    window_date: date | None,
    start_time: time | None,
    end_time: time | None,
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
    single_transaction: bool = True,
) -> tuple[Availability, list[Slot]]:
    """Save an availability window together with the slots generated from it."""
    require_fields(date=window_date, start_time=start_time, end_time=end_time)
    generated = generate_time_slots(window_date, start_time, end_time, interval_minutes)

    try:
        existing = db.query(Slot.start_time, Slot.end_time).filter(Slot.date == window_date).all()
    except SQLAlchemyError as exc:
        raise StoreUnavailableError() from exc

    clashes = sorted(
        slot.start_time
        for slot in generated
        if any(_overlaps(slot.start_time, slot.end_time, start, end) for start, end in existing)
    )
    if clashes:
        listed = ', '.join(clash.strftime('%H:%M') for clash in clashes)
        raise ValidationError(f'Slots already exist on {window_date.isoformat()} overlapping {listed}.')

    availability = Availability(date=window_date, start_time=start_time, end_time=end_time)
    try:
        db.add(availability)
        if single_transaction:
            db.flush()
        else:
            db.commit()
        availability_id = availability.id
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreUnavailableError() from exc

    slots = [
        Slot(
            availability_id=availability_id,
            date=slot.date,
            start_time=slot.start_time,
            end_time=slot.end_time,
            is_booked=False,
            appointment_id=None,
        )
        for slot in generated
    ]
    try:
        db.add_all(slots)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        if single_transaction:
            raise StoreUnavailableError() from exc
        logger.error('Availability %s saved but its slots could not be generated.', availability_id)
        raise PartialWriteError(
            'The availability was saved, but its slots could not be generated.',
            availability_id=availability_id,
        ) from exc

    db.refresh(availability)
    logger.info('Availability %s saved with %s slot(s).', availability_id, len(slots))
    return availability, slots


def delete_availability(db: Session, availability_id: int) -> None:
    """Delete a window. Slots generated from it stay bookable."""
    try:
        availability = db.query(Availability).filter(Availability.id == availability_id).first()
    except SQLAlchemyError as exc:
        raise StoreUnavailableError() from exc

    if availability is None:
        raise NotFoundError('Availability not found.')

    try:
        db.query(Slot).filter(Slot.availability_id == availability_id).update(
            {Slot.availability_id: None},
            synchronize_session=False,
        )
        db.delete(availability)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreUnavailableError() from exc


def list_availability(db: Session) -> list[Availability]:
    try:
        return db.query(Availability).order_by(
            Availability.date.asc(),
            Availability.start_time.asc(),
        ).all()
    except SQLAlchemyError as exc:
        raise StoreUnavailableError() from exc


def list_upcoming_dates(db: Session, today: date) -> list[date]:
    try:
        rows = db.query(Availability.date).filter(
            Availability.date >= today,
        ).distinct().order_by(Availability.date.asc()).all()
    except SQLAlchemyError as exc:
        raise StoreUnavailableError() from exc

    return [available_date for (available_date,) in rows]


def list_free_start_times(db: Session, slot_date: date) -> list[time]:
    try:
        rows = db.query(Slot.start_time).filter(
            Slot.date == slot_date,
            Slot.is_booked.is_(False),
        ).distinct().order_by(Slot.start_time.asc()).all()
    except SQLAlchemyError as exc:
        raise StoreUnavailableError() from exc

    return [start_time for (start_time,) in rows]


def list_slots_with_appointments(db: Session, slot_date: date) -> list[tuple[Slot, Appointment | None]]:
    try:
        return db.query(Slot, Appointment).outerjoin(
            Appointment,
            Appointment.id == Slot.appointment_id,
        ).filter(
            Slot.date == slot_date,
        ).order_by(Slot.start_time.asc()).all()
    except SQLAlchemyError as exc:
        raise StoreUnavailableError() from exc

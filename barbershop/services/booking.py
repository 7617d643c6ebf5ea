"""Booking, editing and cancellation of appointments.

A slot and its appointment are written in two separate steps. With
``single_transaction=True`` both steps share one database transaction, so a
failure leaves nothing behind. Otherwise each step commits on its own and a
failure of the second step raises ``PartialWriteError`` carrying the ids the
reconciliation sweep needs to find it again.
"""

import logging
from datetime import date, time

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from barbershop.core.errors import (
    NotFoundError,
    PartialWriteError,
    SlotInUseError,
    SlotNotLinkedError,
    SlotUnavailableError,
    StoreUnavailableError,
    ValidationError,
)
from barbershop.models.appointment import Appointment
from barbershop.models.slot import Slot

logger = logging.getLogger(__name__)

BOOKED_STATUS = 'booked'
COMBINED_SERVICE = 'hair & beard'
SERVICE_DURATIONS = {
    'hair': 30,
    'beard': 30,
    COMBINED_SERVICE: 60,
}
SERVICE_PRICES_CHF = {
    'hair': 30,
    'beard': 20,
    COMBINED_SERVICE: 45,
}


def normalize_service(service: str) -> str:
    normalized = ' '.join(service.strip().lower().split())
    if normalized not in SERVICE_DURATIONS:
        raise ValidationError(f'Unknown service "{service}".')
    return normalized


def require_fields(**fields) -> None:
    missing = [
        name
        for name, value in fields.items()
        if value is None or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        raise ValidationError(f'Missing required fields: {", ".join(missing)}.')


def find_slot(db: Session, slot_date: date, slot_time: time) -> Slot | None:
    return db.query(Slot).filter(
        Slot.date == slot_date,
        Slot.start_time == slot_time,
    ).first()


def claim_slot(db: Session, slot_id: int, appointment_id: int) -> bool:
    """Mark a slot as booked unless another booking got there first."""
    claimed = db.query(Slot).filter(
        Slot.id == slot_id,
        Slot.is_booked.is_(False),
    ).update(
        {Slot.is_booked: True, Slot.appointment_id: appointment_id},
        synchronize_session=False,
    )
    return claimed == 1


def free_slots(db: Session, *criteria) -> int:
    return db.query(Slot).filter(*criteria).update(
        {Slot.is_booked: False, Slot.appointment_id: None},
        synchronize_session=False,
    )


def _end_first_step(db: Session, single_transaction: bool) -> None:
    if single_transaction:
        db.flush()
    else:
        db.commit()


def book_appointment(
    db: Session,
    *,
    name: str | None,
    phone: str | None,
    service: str | None,
    slot_date: date | None,
    slot_time: time | None,
    single_transaction: bool = True,
) -> tuple[Appointment, Slot]:
    require_fields(name=name, phone=phone, service=service, date=slot_date, time=slot_time)
    normalized_service = normalize_service(service)
    slot_time = slot_time.replace(second=0, microsecond=0)

    try:
        slot = find_slot(db, slot_date, slot_time)
    except SQLAlchemyError as exc:
        raise StoreUnavailableError() from exc

    if slot is None or slot.is_booked:
        raise SlotUnavailableError('This slot is no longer available. Please pick another one.')
    slot_id = slot.id

    appointment = Appointment(
        name=name.strip(),
        phone=phone.strip(),
        service=normalized_service,
        date=slot_date,
        start_time=slot_time,
        duration=SERVICE_DURATIONS[normalized_service],
        status=BOOKED_STATUS,
    )
    try:
        db.add(appointment)
        _end_first_step(db, single_transaction)
        appointment_id = appointment.id
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreUnavailableError() from exc

    try:
        claimed = claim_slot(db, slot_id, appointment_id)
        if claimed:
            db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        if single_transaction:
            raise StoreUnavailableError() from exc
        logger.error('Appointment %s saved but slot %s could not be marked as booked.', appointment_id, slot_id)
        raise PartialWriteError(
            'The appointment was saved, but the slot could not be marked as booked.',
            appointment_id=appointment_id,
            slot_id=slot_id,
        ) from exc

    if not claimed:
        db.rollback()
        if not single_transaction:
            _discard_appointment(db, appointment_id, slot_id)
        raise SlotUnavailableError('This slot is no longer available. Please pick another one.')

    db.refresh(appointment)
    db.refresh(slot)
    return appointment, slot


def _discard_appointment(db: Session, appointment_id: int, slot_id: int) -> None:
    try:
        db.query(Appointment).filter(Appointment.id == appointment_id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error('Slot %s was taken and appointment %s could not be removed.', slot_id, appointment_id)
        raise PartialWriteError(
            'The slot was taken by another booking and the provisional appointment could not be removed.',
            appointment_id=appointment_id,
            slot_id=slot_id,
        ) from exc


def edit_appointment(
    db: Session,
    appointment_id: int,
    *,
    name: str | None = None,
    phone: str | None = None,
    service: str | None = None,
) -> Appointment:
    """Update the customer details of an appointment.

    Date and time are fixed once booked, so the linked slot is never touched.
    """
    try:
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    except SQLAlchemyError as exc:
        raise StoreUnavailableError() from exc

    if appointment is None:
        raise NotFoundError('Appointment not found.')

    updated_name = appointment.name if name is None else name.strip()
    updated_phone = appointment.phone if phone is None else phone.strip()
    updated_service = appointment.service if service is None else service
    require_fields(name=updated_name, phone=updated_phone, service=updated_service)
    normalized_service = normalize_service(updated_service)

    try:
        appointment.name = updated_name
        appointment.phone = updated_phone
        appointment.service = normalized_service
        appointment.duration = SERVICE_DURATIONS[normalized_service]
        db.commit()
        db.refresh(appointment)
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreUnavailableError() from exc

    return appointment


def delete_appointment_and_free_slot(
    db: Session,
    appointment_id: int,
    *,
    single_transaction: bool = True,
) -> int:
    """Cancel an appointment and free every slot that points at it.

    Returns the number of slots freed.
    """
    try:
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    except SQLAlchemyError as exc:
        raise StoreUnavailableError() from exc

    if appointment is None:
        raise NotFoundError('Appointment not found.')

    try:
        db.delete(appointment)
        _end_first_step(db, single_transaction)
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreUnavailableError() from exc

    try:
        freed = free_slots(db, Slot.appointment_id == appointment_id)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        if single_transaction:
            raise StoreUnavailableError() from exc
        logger.error('Appointment %s deleted but its slot could not be freed.', appointment_id)
        raise PartialWriteError(
            'The appointment was deleted, but its slot could not be freed.',
            appointment_id=appointment_id,
        ) from exc

    logger.info('Appointment %s cancelled, %s slot(s) freed.', appointment_id, freed)
    return freed


def release_slot(db: Session, slot_id: int, *, single_transaction: bool = True) -> int:
    """Delete the appointment held by a slot and free the slot.

    Returns the id of the deleted appointment.
    """
    try:
        slot = db.query(Slot).filter(Slot.id == slot_id).first()
    except SQLAlchemyError as exc:
        raise StoreUnavailableError() from exc

    if slot is None:
        raise NotFoundError('Slot not found.')

    appointment_id = slot.appointment_id
    if appointment_id is None:
        raise SlotNotLinkedError('No appointment is linked to this slot.')

    try:
        db.query(Appointment).filter(Appointment.id == appointment_id).delete(synchronize_session=False)
        _end_first_step(db, single_transaction)
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreUnavailableError() from exc

    try:
        free_slots(db, Slot.id == slot_id)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        if single_transaction:
            raise StoreUnavailableError() from exc
        logger.error('Appointment %s deleted but slot %s could not be released.', appointment_id, slot_id)
        raise PartialWriteError(
            'The appointment was deleted, but the slot could not be released.',
            appointment_id=appointment_id,
            slot_id=slot_id,
        ) from exc

    logger.info('Slot %s released, appointment %s deleted.', slot_id, appointment_id)
    return appointment_id


def delete_free_slot(db: Session, slot_id: int) -> None:
    try:
        slot = db.query(Slot).filter(Slot.id == slot_id).first()
    except SQLAlchemyError as exc:
        raise StoreUnavailableError() from exc

    if slot is None:
        raise NotFoundError('Slot not found.')

    if slot.is_booked or slot.appointment_id is not None:
        raise SlotInUseError('Booked slots cannot be deleted. Release the appointment first.')

    try:
        deleted = db.query(Slot).filter(
            Slot.id == slot_id,
            Slot.is_booked.is_(False),
            Slot.appointment_id.is_(None),
        ).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreUnavailableError() from exc

    if deleted == 0:
        raise SlotInUseError('Booked slots cannot be deleted. Release the appointment first.')


def list_appointments(db: Session, since: date, on_date: date | None = None) -> list[Appointment]:
    query = db.query(Appointment).filter(Appointment.date >= since)
    if on_date is not None:
        query = query.filter(Appointment.date == on_date)

    try:
        return query.order_by(Appointment.date.asc(), Appointment.start_time.asc()).all()
    except SQLAlchemyError as exc:
        raise StoreUnavailableError() from exc

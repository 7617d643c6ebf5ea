"""On-demand detection and repair of slot/appointment drift."""

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from barbershop.core.errors import StoreUnavailableError
from barbershop.models.appointment import Appointment
from barbershop.models.slot import Slot

logger = logging.getLogger(__name__)

MISSING_SLOT = 'missing_slot'
WRONG_REFERENCE = 'wrong_reference'
SLOT_NOT_BOOKED = 'slot_not_booked'
BOOKED_WITHOUT_APPOINTMENT = 'booked_without_appointment'
APPOINTMENT_WITHOUT_BOOKING = 'appointment_without_booking'


@dataclass(frozen=True)
class ConsistencyIssue:
    kind: str
    message: str
    slot_id: int | None = None
    appointment_id: int | None = None


@dataclass
class ConsistencyReport:
    issues: list[ConsistencyIssue] = field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.issues)


def fix_orphaned_slots(db: Session) -> int:
    """Unbook every slot that is marked booked but references no appointment.

    Returns the number of slots repaired.
    """
    try:
        repaired = db.query(Slot).filter(
            Slot.appointment_id.is_(None),
            Slot.is_booked.is_(True),
        ).update({Slot.is_booked: False}, synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreUnavailableError() from exc

    if repaired:
        logger.warning('Repaired %s orphaned slot(s).', repaired)
    else:
        logger.info('No orphaned slots found.')
    return repaired


def check_slot_consistency(db: Session) -> ConsistencyReport:
    """Compare every appointment with its slot and every slot with itself.

    Read-only: problems are reported, never fixed.
    """
    try:
        appointments = db.query(Appointment).order_by(Appointment.id.asc()).all()
        slots = db.query(Slot).order_by(Slot.id.asc()).all()
    except SQLAlchemyError as exc:
        raise StoreUnavailableError() from exc

    slots_by_start = {(slot.date, slot.start_time): slot for slot in slots}
    report = ConsistencyReport()

    for appointment in appointments:
        slot = slots_by_start.get((appointment.date, appointment.start_time))
        if slot is None:
            report.issues.append(ConsistencyIssue(
                kind=MISSING_SLOT,
                message=f'Appointment {appointment.id} has no matching slot.',
                appointment_id=appointment.id,
            ))
        elif slot.appointment_id != appointment.id:
            report.issues.append(ConsistencyIssue(
                kind=WRONG_REFERENCE,
                message=f'Slot {slot.id} does not reference appointment {appointment.id}.',
                slot_id=slot.id,
                appointment_id=appointment.id,
            ))
        elif not slot.is_booked:
            report.issues.append(ConsistencyIssue(
                kind=SLOT_NOT_BOOKED,
                message=f'Slot {slot.id} is not marked as booked.',
                slot_id=slot.id,
                appointment_id=appointment.id,
            ))

    for slot in slots:
        if slot.is_booked and slot.appointment_id is None:
            report.issues.append(ConsistencyIssue(
                kind=BOOKED_WITHOUT_APPOINTMENT,
                message=f'Slot {slot.id} is marked as booked but has no appointment.',
                slot_id=slot.id,
            ))
        if not slot.is_booked and slot.appointment_id is not None:
            report.issues.append(ConsistencyIssue(
                kind=APPOINTMENT_WITHOUT_BOOKING,
                message=f'Slot {slot.id} is marked as free but references appointment {slot.appointment_id}.',
                slot_id=slot.id,
                appointment_id=slot.appointment_id,
            ))

    return report

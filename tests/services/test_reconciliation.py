from datetime import time

from barbershop.models.appointment import Appointment
from barbershop.models.slot import Slot
from barbershop.services.reconciliation import (
    APPOINTMENT_WITHOUT_BOOKING,
    BOOKED_WITHOUT_APPOINTMENT,
    MISSING_SLOT,
    SLOT_NOT_BOOKED,
    WRONG_REFERENCE,
    check_slot_consistency,
    fix_orphaned_slots,
)


def test_fix_orphaned_slots_unbooks_slots_without_appointment(db, slot_factory, booked_slot_factory) -> None:
    orphan = slot_factory(time(9, 0), time(9, 45), is_booked=True)
    _, healthy = booked_slot_factory(time(9, 45), time(10, 30))

    fixed = fix_orphaned_slots(db)

    assert fixed == 1
    db.refresh(orphan)
    db.refresh(healthy)
    assert orphan.is_booked is False
    assert healthy.is_booked is True


def test_fix_orphaned_slots_is_idempotent(db, slot_factory) -> None:
    slot_factory(time(9, 0), time(9, 45), is_booked=True)
    slot_factory(time(9, 45), time(10, 30), is_booked=True)

    assert fix_orphaned_slots(db) == 2
    assert fix_orphaned_slots(db) == 0


def test_check_slot_consistency_reports_nothing_for_consistent_data(db, slot_factory, booked_slot_factory) -> None:
    booked_slot_factory(time(9, 0), time(9, 45))
    booked_slot_factory(time(9, 45), time(10, 30))
    slot_factory(time(10, 30), time(11, 15))

    report = check_slot_consistency(db)

    assert report.has_issues is False
    assert report.issues == []


def test_check_slot_consistency_reports_every_kind_of_drift(db, slot_factory, booked_slot_factory) -> None:
    lonely, _ = booked_slot_factory(time(9, 0), time(9, 45))
    db.query(Slot).filter(Slot.appointment_id == lonely.id).delete(synchronize_session=False)
    db.commit()

    misreferenced, misreferenced_slot = booked_slot_factory(time(9, 45), time(10, 30))
    misreferenced_slot.appointment_id = 9999
    db.commit()

    unbooked, unbooked_slot = booked_slot_factory(time(10, 30), time(11, 15))
    unbooked_slot.is_booked = False
    db.commit()

    orphan = slot_factory(time(11, 15), time(12, 0), is_booked=True)

    report = check_slot_consistency(db)
    found = {(issue.kind, issue.slot_id, issue.appointment_id) for issue in report.issues}

    assert report.has_issues is True
    assert found == {
        (MISSING_SLOT, None, lonely.id),
        (WRONG_REFERENCE, misreferenced_slot.id, misreferenced.id),
        (SLOT_NOT_BOOKED, unbooked_slot.id, unbooked.id),
        (APPOINTMENT_WITHOUT_BOOKING, unbooked_slot.id, unbooked.id),
        (BOOKED_WITHOUT_APPOINTMENT, orphan.id, None),
    }


def test_check_slot_consistency_is_read_only(db, slot_factory) -> None:
    slot_factory(time(9, 0), time(9, 45), is_booked=True)
    db.add(Appointment(
        name='Lea',
        phone='+41795550000',
        service='beard',
        date=db.query(Slot).one().date,
        start_time=time(13, 0),
        duration=30,
        status='booked',
    ))
    db.commit()

    check_slot_consistency(db)

    assert db.query(Slot).one().is_booked is True
    assert db.query(Appointment).count() == 1

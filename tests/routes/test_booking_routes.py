from datetime import date, time

import pytest
from fastapi import BackgroundTasks, HTTPException

from barbershop.core.errors import StoreUnavailableError
from barbershop.models.appointment import Appointment
from barbershop.routes.booking_routes import (
    CreateBookingRequest,
    create_booking,
    list_booking_dates,
    list_free_slots,
    list_services,
)

DAY = date(2026, 3, 10)


class FakeNotifier:
    def __init__(self):
        self.messages = []

    def send_message(self, text: str, appointment_id: int | None = None) -> bool:
        self.messages.append(text)
        return True


@pytest.fixture(autouse=True)
def database_ready(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('barbershop.routes.booking_routes.ensure_database_ready', lambda: None)


def _request(**overrides) -> CreateBookingRequest:
    fields = {
        'name': ' Noah ',
        'phone': ' +41761112233 ',
        'service': ' Beard ',
        'date': DAY,
        'time': time(9, 0),
    }
    fields.update(overrides)
    return CreateBookingRequest(**fields)


def test_create_booking_request_normalizes_fields() -> None:
    request = _request()

    assert request.name == 'Noah'
    assert request.phone == '+41761112233'
    assert request.service == 'beard'


def test_list_services_exposes_prices_and_durations() -> None:
    options = {option.service: option for option in list_services()}

    assert options['hair'].price_chf == 30
    assert options['beard'].price_chf == 20
    assert options['hair & beard'].price_chf == 45
    assert options['hair & beard'].duration_minutes == 60


def test_create_booking_returns_appointment_and_schedules_notification(db, settings, slot_factory) -> None:
    slot = slot_factory(time(9, 0), time(9, 45))
    background_tasks = BackgroundTasks()
    notifier = FakeNotifier()

    response = create_booking(
        data=_request(),
        background_tasks=background_tasks,
        db=db,
        settings=settings,
        notifier=notifier,
    )

    assert response.slot_id == slot.id
    assert response.service == 'beard'
    assert response.duration == 30
    assert response.status == 'booked'
    assert len(background_tasks.tasks) == 1
    task = background_tasks.tasks[0]
    assert task.func == notifier.send_message
    assert 'Noah' in task.args[0]
    assert task.args[1] == response.id


def test_create_booking_rejects_taken_slot_with_conflict(db, settings, booked_slot_factory) -> None:
    booked_slot_factory(time(9, 0), time(9, 45))
    background_tasks = BackgroundTasks()

    with pytest.raises(HTTPException) as exception_info:
        create_booking(
            data=_request(),
            background_tasks=background_tasks,
            db=db,
            settings=settings,
            notifier=FakeNotifier(),
        )

    assert exception_info.value.status_code == 409
    assert background_tasks.tasks == []
    assert db.query(Appointment).count() == 1


def test_create_booking_rejects_blank_name(db, settings, slot_factory) -> None:
    slot_factory(time(9, 0), time(9, 45))

    with pytest.raises(HTTPException) as exception_info:
        create_booking(
            data=_request(name='  '),
            background_tasks=BackgroundTasks(),
            db=db,
            settings=settings,
            notifier=FakeNotifier(),
        )

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Missing required fields: name.'


def test_create_booking_returns_service_unavailable_when_database_is_down(db, settings, monkeypatch) -> None:
    def database_down() -> None:
        raise StoreUnavailableError()

    monkeypatch.setattr('barbershop.routes.booking_routes.ensure_database_ready', database_down)

    with pytest.raises(HTTPException) as exception_info:
        create_booking(
            data=_request(),
            background_tasks=BackgroundTasks(),
            db=db,
            settings=settings,
            notifier=FakeNotifier(),
        )

    assert exception_info.value.status_code == 503


def test_list_free_slots_returns_only_unbooked_start_times(db, slot_factory, booked_slot_factory) -> None:
    slot_factory(time(9, 0), time(9, 45))
    booked_slot_factory(time(9, 45), time(10, 30))

    assert list_free_slots(slot_date=DAY, db=db) == [time(9, 0)]


def test_list_booking_dates_uses_today(db, monkeypatch) -> None:
    captured = {}

    def fake_upcoming_dates(session, today):
        captured['today'] = today
        return [DAY]

    monkeypatch.setattr('barbershop.routes.booking_routes.list_upcoming_dates', fake_upcoming_dates)

    assert list_booking_dates(db=db) == [DAY]
    assert captured['today'] == date.today()

from datetime import date, time

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from barbershop.core.config import Settings, get_settings
from barbershop.core.errors import BookingError
from barbershop.database import ensure_database_ready, get_db
from barbershop.routes.dependencies import get_notifier, to_http_exception
from barbershop.services.availability import list_free_start_times, list_upcoming_dates
from barbershop.services.booking import SERVICE_DURATIONS, SERVICE_PRICES_CHF, book_appointment
from barbershop.services.notifications import TelegramNotifier, format_booking_message

router = APIRouter(tags=['booking'])


class ServiceOptionResponse(BaseModel):
    service: str
    duration_minutes: int
    price_chf: int


class CreateBookingRequest(BaseModel):
    name: str
    phone: str
    service: str
    date: date
    time: time

    @field_validator('name', 'phone')
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()

    @field_validator('service')
    @classmethod
    def normalize_service(cls, value: str) -> str:
        return value.strip().lower()


class AppointmentResponse(BaseModel):
    id: int
    name: str
    phone: str
    service: str
    date: date
    start_time: time
    duration: int
    status: str

    class Config:
        from_attributes = True


class BookingResponse(AppointmentResponse):
    slot_id: int


@router.get('/services', response_model=list[ServiceOptionResponse])
def list_services():
    return [
        ServiceOptionResponse(
            service=service,
            duration_minutes=duration_minutes,
            price_chf=SERVICE_PRICES_CHF[service],
        )
        for service, duration_minutes in SERVICE_DURATIONS.items()
    ]


@router.get('/dates', response_model=list[date])
def list_booking_dates(db: Session = Depends(get_db)):
    try:
        ensure_database_ready()
        return list_upcoming_dates(db, date.today())
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.get('/slots', response_model=list[time])
def list_free_slots(
    slot_date: date = Query(..., alias='date'),
    db: Session = Depends(get_db),
):
    try:
        ensure_database_ready()
        return list_free_start_times(db, slot_date)
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.post('/appointments', response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: CreateBookingRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    notifier: TelegramNotifier = Depends(get_notifier),
):
    try:
        ensure_database_ready()
        appointment, slot = book_appointment(
            db,
            name=data.name,
            phone=data.phone,
            service=data.service,
            slot_date=data.date,
            slot_time=data.time,
            single_transaction=settings.single_transaction_writes,
        )
    except BookingError as exc:
        raise to_http_exception(exc) from exc

    background_tasks.add_task(notifier.send_message, format_booking_message(appointment), appointment.id)

    return BookingResponse(
        id=appointment.id,
        name=appointment.name,
        phone=appointment.phone,
        service=appointment.service,
        date=appointment.date,
        start_time=appointment.start_time,
        duration=appointment.duration,
        status=appointment.status or 'booked',
        slot_id=slot.id,
    )

from datetime import date, time

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from barbershop.auth.dependencies import get_current_admin
from barbershop.core.config import Settings, get_settings
from barbershop.core.errors import BookingError
from barbershop.database import ensure_database_ready, get_db
from barbershop.routes.booking_routes import AppointmentResponse
from barbershop.routes.dependencies import to_http_exception
from barbershop.services import availability as availability_service
from barbershop.services import booking as booking_service
from barbershop.services import reconciliation

router = APIRouter(tags=['admin'], dependencies=[Depends(get_current_admin)])


class CreateAvailabilityRequest(BaseModel):
    date: date
    start_time: time
    end_time: time
    interval_minutes: int | None = Field(default=None, gt=0)


class AvailabilityResponse(BaseModel):
    id: int
    date: date
    start_time: time
    end_time: time

    class Config:
        from_attributes = True


class SlotResponse(BaseModel):
    id: int
    availability_id: int | None = None
    date: date
    start_time: time
    end_time: time
    is_booked: bool
    appointment_id: int | None = None

    class Config:
        from_attributes = True


class CreateAvailabilityResponse(AvailabilityResponse):
    slots: list[SlotResponse]


class AdminSlotResponse(SlotResponse):
    appointment_name: str | None = None
    appointment_service: str | None = None


class UpdateAppointmentRequest(BaseModel):
    name: str | None = None
    phone: str | None = None
    service: str | None = None

    @field_validator('name', 'phone', 'service')
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip()


class CancellationResponse(BaseModel):
    appointment_id: int
    freed_slots: int


class ReleaseResponse(BaseModel):
    slot_id: int
    appointment_id: int


class OrphanRepairResponse(BaseModel):
    fixed: int


class ConsistencyIssueResponse(BaseModel):
    kind: str
    message: str
    slot_id: int | None = None
    appointment_id: int | None = None

    class Config:
        from_attributes = True


class ConsistencyReportResponse(BaseModel):
    issues: list[ConsistencyIssueResponse]
    has_issues: bool


@router.get('/availability', response_model=list[AvailabilityResponse])
def list_availability(db: Session = Depends(get_db)):
    try:
        ensure_database_ready()
        return availability_service.list_availability(db)
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.post('/availability', response_model=CreateAvailabilityResponse, status_code=status.HTTP_201_CREATED)
def create_availability(
    data: CreateAvailabilityRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        ensure_database_ready()
        availability, slots = availability_service.create_availability(
            db,
            window_date=data.date,
            start_time=data.start_time,
            end_time=data.end_time,
            interval_minutes=data.interval_minutes or settings.slot_interval_minutes,
            single_transaction=settings.single_transaction_writes,
        )
    except BookingError as exc:
        raise to_http_exception(exc) from exc

    return CreateAvailabilityResponse(
        id=availability.id,
        date=availability.date,
        start_time=availability.start_time,
        end_time=availability.end_time,
        slots=[SlotResponse.model_validate(slot) for slot in slots],
    )


@router.delete('/availability/{availability_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_availability(availability_id: int, db: Session = Depends(get_db)):
    try:
        ensure_database_ready()
        availability_service.delete_availability(db, availability_id)
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.get('/slots', response_model=list[AdminSlotResponse])
def list_slots(
    slot_date: date = Query(..., alias='date'),
    db: Session = Depends(get_db),
):
    try:
        ensure_database_ready()
        rows = availability_service.list_slots_with_appointments(db, slot_date)
    except BookingError as exc:
        raise to_http_exception(exc) from exc

    return [
        AdminSlotResponse(
            id=slot.id,
            availability_id=slot.availability_id,
            date=slot.date,
            start_time=slot.start_time,
            end_time=slot.end_time,
            is_booked=slot.is_booked,
            appointment_id=slot.appointment_id,
            appointment_name=appointment.name if appointment else None,
            appointment_service=appointment.service if appointment else None,
        )
        for slot, appointment in rows
    ]


@router.delete('/slots/{slot_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_slot(slot_id: int, db: Session = Depends(get_db)):
    try:
        ensure_database_ready()
        booking_service.delete_free_slot(db, slot_id)
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.post('/slots/{slot_id}/release', response_model=ReleaseResponse)
def release_slot(
    slot_id: int,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        ensure_database_ready()
        appointment_id = booking_service.release_slot(
            db,
            slot_id,
            single_transaction=settings.single_transaction_writes,
        )
    except BookingError as exc:
        raise to_http_exception(exc) from exc

    return ReleaseResponse(slot_id=slot_id, appointment_id=appointment_id)


@router.get('/appointments', response_model=list[AppointmentResponse])
def list_appointments(
    slot_date: date | None = Query(default=None, alias='date'),
    db: Session = Depends(get_db),
):
    try:
        ensure_database_ready()
        return booking_service.list_appointments(db, since=date.today(), on_date=slot_date)
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.patch('/appointments/{appointment_id}', response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: UpdateAppointmentRequest,
    db: Session = Depends(get_db),
):
    try:
        ensure_database_ready()
        return booking_service.edit_appointment(
            db,
            appointment_id,
            name=data.name,
            phone=data.phone,
            service=data.service,
        )
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.delete('/appointments/{appointment_id}', response_model=CancellationResponse)
def cancel_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        ensure_database_ready()
        freed_slots = booking_service.delete_appointment_and_free_slot(
            db,
            appointment_id,
            single_transaction=settings.single_transaction_writes,
        )
    except BookingError as exc:
        raise to_http_exception(exc) from exc

    return CancellationResponse(appointment_id=appointment_id, freed_slots=freed_slots)


@router.post('/reconciliation/orphans', response_model=OrphanRepairResponse)
def repair_orphaned_slots(db: Session = Depends(get_db)):
    try:
        ensure_database_ready()
        return OrphanRepairResponse(fixed=reconciliation.fix_orphaned_slots(db))
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.get('/reconciliation/audit', response_model=ConsistencyReportResponse)
def audit_slot_consistency(db: Session = Depends(get_db)):
    try:
        ensure_database_ready()
        report = reconciliation.check_slot_consistency(db)
    except BookingError as exc:
        raise to_http_exception(exc) from exc

    return ConsistencyReportResponse(
        issues=[ConsistencyIssueResponse.model_validate(issue) for issue in report.issues],
        has_issues=report.has_issues,
    )

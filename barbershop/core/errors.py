"""Domain errors raised by the booking services.

Each error carries the HTTP status the routes answer with, so the service
layer stays free of web concerns.
"""


class BookingError(Exception):
    """Base class for every error a booking operation can surface."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def detail(self):
        return self.message


class ValidationError(BookingError):
    """A required field is missing or invalid. Nothing was written."""


class NotFoundError(BookingError):
    status_code = 404


class SlotUnavailableError(BookingError):
    """The requested slot does not exist or is already booked."""

    status_code = 409


class SlotInUseError(BookingError):
    """A booked slot cannot be deleted directly."""

    status_code = 409


class SlotNotLinkedError(BookingError):
    """The slot has no appointment to release."""


class PartialWriteError(BookingError):
    """The second step of a two-step write failed after the first committed.

    The ids of the rows involved are kept so the inconsistency can be found
    again by the reconciliation sweep.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        appointment_id: int | None = None,
        slot_id: int | None = None,
        availability_id: int | None = None,
    ) -> None:
        super().__init__(message)
        self.appointment_id = appointment_id
        self.slot_id = slot_id
        self.availability_id = availability_id

    @property
    def entity_ids(self) -> dict[str, int]:
        ids = {
            'appointment_id': self.appointment_id,
            'slot_id': self.slot_id,
            'availability_id': self.availability_id,
        }
        return {key: value for key, value in ids.items() if value is not None}

    @property
    def detail(self):
        return {'message': self.message, 'partial_write': True, **self.entity_ids}


class StoreUnavailableError(BookingError):
    status_code = 503

    def __init__(self, message: str = 'Database unavailable. Verify DATABASE_URL and database credentials.') -> None:
        super().__init__(message)

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from barbershop.core.errors import ValidationError

DEFAULT_INTERVAL_MINUTES = 45


@dataclass(frozen=True)
class GeneratedSlot:
    date: date
    start_time: time
    end_time: time


def generate_time_slots(
    slot_date: date,
    start_time: time,
    end_time: time,
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
) -> list[GeneratedSlot]:
    """Split an availability window into consecutive slots.

    Slots are emitted while the cursor is before ``end_time``; the last slot
    is not clipped, so it may run past the end of the window when the
    remainder is shorter than one interval.
    """
    if interval_minutes <= 0:
        raise ValidationError('Slot interval must be a positive number of minutes.')
    if start_time >= end_time:
        raise ValidationError('Start time must be before end time.')

    step = timedelta(minutes=interval_minutes)
    current = datetime.combine(slot_date, start_time.replace(second=0, microsecond=0))
    window_end = datetime.combine(slot_date, end_time)

    slots: list[GeneratedSlot] = []
    while current < window_end:
        following = current + step
        slots.append(GeneratedSlot(date=slot_date, start_time=current.time(), end_time=following.time()))
        current = following

    return slots

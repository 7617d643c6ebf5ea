from functools import lru_cache

from fastapi import HTTPException

from barbershop.core.config import get_settings
from barbershop.core.errors import BookingError
from barbershop.services.notifications import TelegramNotifier


@lru_cache
def get_notifier() -> TelegramNotifier:
    return TelegramNotifier.from_settings(get_settings())


def to_http_exception(exc: BookingError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.detail)

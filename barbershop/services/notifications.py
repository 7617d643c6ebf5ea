import logging

import httpx

from barbershop.core.config import Settings
from barbershop.models.appointment import Appointment

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Posts booking messages to a Telegram chat.

    Sending is best effort: failures are logged and reported as ``False``,
    never raised, so a booking is not affected by the chat being down.
    """

    def __init__(
        self,
        bot_token: str | None,
        chat_id: str | None,
        base_url: str = "https://api.telegram.org",
        client: httpx.Client | None = None,
    ) -> None:
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=10.0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TelegramNotifier":
        return cls(
            bot_token=settings.telegram_bot_token,
            chat_id=settings.telegram_chat_id,
            base_url=settings.telegram_api_base_url,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._bot_token and self._chat_id)

    def send_message(self, text: str, appointment_id: int | None = None) -> bool:
        if not self.is_configured:
            logger.warning("Telegram bot token or chat id missing, message for appointment %s not sent.", appointment_id)
            return False

        try:
            url = f"{self._base_url}/bot{self._bot_token}/sendMessage"
            response = self._client.post(url, json={"chat_id": self._chat_id, "text": text})
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.error("Telegram message for appointment %s failed: %s", appointment_id, exc)
            return False

        logger.info("Telegram message for appointment %s sent.", appointment_id)
        return True


def format_booking_message(appointment: Appointment) -> str:
    return "\n".join([
        "New booking",
        f"Name: {appointment.name}",
        f"Phone: {appointment.phone}",
        f"Service: {appointment.service}",
        f"Date: {appointment.date.strftime('%d.%m.%Y')}",
        f"Time: {appointment.start_time.strftime('%H:%M')}",
    ])

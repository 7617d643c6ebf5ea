from functools import lru_cache

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict


load_dotenv()

DEFAULT_JWT_SECRET = "change-me"


class Settings(BaseSettings):
    app_env: str = "development"

    database_url: str = "sqlite:///./barbershop.db"
    cors_origins: list[str] = ["http://localhost:3000"]

    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 60

    admin_email: str = "admin@barbershop.local"
    admin_password: str = ""

    slot_interval_minutes: int = 45
    # When false every step of a dual write commits on its own.
    single_transaction_writes: bool = True

    telegram_bot_token: str | None = None
    telegram_chat_id: str | None = None
    telegram_api_base_url: str = "https://api.telegram.org"

    model_config = SettingsConfigDict(extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()


def validate_runtime_config(settings: Settings) -> None:
    if settings.app_env.lower() != "production":
        return
    if settings.jwt_secret_key == DEFAULT_JWT_SECRET:
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if not settings.admin_password:
        raise RuntimeError("ADMIN_PASSWORD must be set in production.")

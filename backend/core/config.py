import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./appointments.db")

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
CORS_ORIGINS = [FRONTEND_URL, "http://localhost:3001"]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Used for any weekday a doctor has not configured.
DEFAULT_DAY_START = os.getenv("DEFAULT_DAY_START", "09:00")
DEFAULT_DAY_END = os.getenv("DEFAULT_DAY_END", "17:00")
DEFAULT_SLOT_MINUTES = _get_int(os.getenv("DEFAULT_SLOT_MINUTES"), 30)

UPCOMING_WINDOW_DAYS = _get_int(os.getenv("UPCOMING_WINDOW_DAYS"), 7)
MAX_APPOINTMENT_NOTES_LENGTH = _get_int(os.getenv("MAX_APPOINTMENT_NOTES_LENGTH"), 600)

SEED_SAMPLE_DATA = _get_bool(
    os.getenv("SEED_SAMPLE_DATA"),
    default=APP_ENV.lower() != "production",
)


def validate_runtime_config() -> None:
    from backend.booking.availability import parse_clock

    if DEFAULT_SLOT_MINUTES <= 0:
        raise RuntimeError("DEFAULT_SLOT_MINUTES must be a positive number of minutes.")
    for name, value in (("DEFAULT_DAY_START", DEFAULT_DAY_START), ("DEFAULT_DAY_END", DEFAULT_DAY_END)):
        try:
            parse_clock(value)
        except ValueError as exc:
            raise RuntimeError(f"{name} must be a HH:MM time of day.") from exc
    if APP_ENV.lower() == "production" and DATABASE_URL.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must point at a server database in production.")

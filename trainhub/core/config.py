import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./trainhub.db")

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session")

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), ["http://localhost:3000"])

# Wall clock that availability windows and booking timestamps are expressed in.
TIMEZONE = os.getenv("TIMEZONE", "UTC")

SLOT_INCREMENT_MINUTES = int(os.getenv("SLOT_INCREMENT_MINUTES", "30"))
DEFAULT_SERVICE_DURATION_MINUTES = int(os.getenv("DEFAULT_SERVICE_DURATION_MINUTES", "60"))
MAX_SLOT_RANGE_DAYS = int(os.getenv("MAX_SLOT_RANGE_DAYS", "14"))
BOOKING_REQUEST_TTL_HOURS = int(os.getenv("BOOKING_REQUEST_TTL_HOURS", "48"))
SOFT_HOLD_MINUTES = int(os.getenv("SOFT_HOLD_MINUTES", "15"))

HONOR_BLOCKED_WINDOWS = _get_bool(os.getenv("HONOR_BLOCKED_WINDOWS"), default=True)
REQUIRE_PREFERRED_TIME_ON_ACCEPT = _get_bool(os.getenv("REQUIRE_PREFERRED_TIME_ON_ACCEPT"), default=False)
SEED_DEFAULT_AVAILABILITY = _get_bool(os.getenv("SEED_DEFAULT_AVAILABILITY"), default=True)

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if SLOT_INCREMENT_MINUTES <= 0:
        raise RuntimeError("SLOT_INCREMENT_MINUTES must be positive.")

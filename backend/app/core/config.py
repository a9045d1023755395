from pydantic import BaseModel
import os
import re
import logging
from datetime import timedelta

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "dev-secret-change-me"

_DURATION_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def parse_duration(value: str) -> timedelta:
    """
    Parse a jsonwebtoken-style duration ("7d", "12h", "30m", "45s") or a
    bare number of seconds into a timedelta.

    Raises:
        ValueError: If the value is not a recognised duration
    """
    raw = str(value).strip().lower()
    if raw.isdigit():
        return timedelta(seconds=int(raw))
    match = re.fullmatch(r"(\d+)\s*([smhd])", raw)
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


class Settings(BaseModel):
    ENV: str = os.getenv("ENV", "dev")  # local, dev, staging, prod
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "DocVault")
    API_PREFIX: str = os.getenv("API_PREFIX", "/api/documentManagement")

    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./docvault.db")
    AUTO_CREATE_TABLES: bool = os.getenv("AUTO_CREATE_TABLES", "true").lower() == "true"

    # Session tokens (JWT_SECRET signs every session; JWT_EXPIRES_IN uses the "7d" notation)
    JWT_SECRET: str = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
    JWT_EXPIRES_IN: str = os.getenv("JWT_EXPIRES_IN", "7d")
    ALGORITHM: str = "HS256"

    # OTP issuance rate limit, per mobile number
    OTP_RATE_LIMIT_WINDOW: int = int(os.getenv("OTP_RATE_LIMIT_WINDOW", "60"))  # seconds
    OTP_RATE_LIMIT_MAX: int = int(os.getenv("OTP_RATE_LIMIT_MAX", "3"))
    OTP_SWEEP_INTERVAL_SECONDS: int = int(os.getenv("OTP_SWEEP_INTERVAL_SECONDS", "60"))  # 0 disables the sweeper
    REDIS_URL: str = os.getenv("REDIS_URL", "")

    # SMS delivery (Twilio). Missing credentials switch generateOTP to dev-mode fallback.
    TWILIO_ACCOUNT_SID: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    TWILIO_AUTH_TOKEN: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    TWILIO_FROM_NUMBER: str = os.getenv("TWILIO_FROM_NUMBER", "")

    # Document storage
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "./uploads")
    MAX_UPLOAD_SIZE_MB: int = int(os.getenv("MAX_UPLOAD_SIZE_MB", "10"))

    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")  # comma-separated

    @property
    def twilio_enabled(self) -> bool:
        """True only when account SID, auth token and sender number are all set."""
        return bool(self.TWILIO_ACCOUNT_SID and self.TWILIO_AUTH_TOKEN and self.TWILIO_FROM_NUMBER)

    @property
    def session_token_lifetime(self) -> timedelta:
        return parse_duration(self.JWT_EXPIRES_IN)

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()


def validate_config():
    """Validate configuration at startup. Raises ValueError if invalid."""
    try:
        settings.session_token_lifetime
    except ValueError as e:
        logger.error(f"JWT_EXPIRES_IN is invalid: {e}")
        raise

    if settings.OTP_RATE_LIMIT_MAX < 1 or settings.OTP_RATE_LIMIT_WINDOW < 1:
        error_msg = "OTP_RATE_LIMIT_MAX and OTP_RATE_LIMIT_WINDOW must be positive"
        logger.error(error_msg)
        raise ValueError(error_msg)

    if not settings.twilio_enabled:
        logger.warning("Twilio is not configured - generateOTP will return codes inline (dev mode)")

    if settings.ENV.lower() in {"prod", "production"}:
        if not settings.JWT_SECRET or settings.JWT_SECRET == DEFAULT_JWT_SECRET:
            error_msg = (
                "CRITICAL SECURITY ERROR: JWT_SECRET must be set and not use default value in production. "
                "Set JWT_SECRET environment variable to a secure random value."
            )
            logger.error(error_msg)
            raise ValueError(error_msg)

        if settings.DATABASE_URL.startswith("sqlite"):
            error_msg = "SQLite database is not supported in production. Use PostgreSQL."
            logger.error(error_msg)
            raise ValueError(error_msg)

import logging
import os

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    # Assert "format" keywords (date-time, email, ...) instead of treating them as annotations.
    FORMAT_CHECK: bool = _env_flag("JSONSHAPE_FORMAT_CHECK", True)
    # Collect every error; when off, checking stops at the first one.
    ALL_ERRORS: bool = _env_flag("JSONSHAPE_ALL_ERRORS", True)


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Set up root logging for scripts and services embedding jsonshape."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(levelname)s | %(name)s | %(message)s",
    )

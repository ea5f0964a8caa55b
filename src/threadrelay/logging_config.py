import datetime
import logging
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .settings import Settings, get_settings

_LOGGING_CONFIGURED = False


def _resolve_timezone(name: Optional[str]) -> datetime.tzinfo:
    if name:
        try:
            return ZoneInfo(name)
        except ZoneInfoNotFoundError:
            pass
    return datetime.datetime.now().astimezone().tzinfo or datetime.timezone.utc


class TimezoneFormatter(logging.Formatter):
    """ISO-8601 timestamps in LOG_TIMEZONE, or the system zone."""

    def __init__(self, fmt: str, *, timezone_name: Optional[str] = None) -> None:
        super().__init__(fmt)
        self._tzinfo = _resolve_timezone(timezone_name)

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        stamp = datetime.datetime.fromtimestamp(record.created, tz=self._tzinfo)
        return stamp.isoformat(timespec="milliseconds")


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure process-wide logging once: a console handler on the root
    logger so uvicorn and threadrelay logs share one format.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    settings = settings or get_settings()
    level_value = getattr(logging, settings.log_level.upper(), logging.INFO)
    formatter = TimezoneFormatter(
        "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        timezone_name=settings.log_timezone,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level_value)
    logging.getLogger("threadrelay").setLevel(level_value)

    has_console = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in root_logger.handlers
    )
    if not has_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    _LOGGING_CONFIGURED = True

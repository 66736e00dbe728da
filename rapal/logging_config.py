import datetime
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .settings import Settings, settings as default_settings


APP_LOGGER_NAME = "rapal"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"

_LOGGING_CONFIGURED = False


def log_timezone(name: str | None) -> datetime.tzinfo | None:
    """LOG_TIMEZONE as a tzinfo; None (machine local time) when unset or unknown."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        return None


class ZoneFormatter(logging.Formatter):
    def __init__(self, fmt: str = LOG_FORMAT, tz: datetime.tzinfo | None = None):
        super().__init__(fmt)
        self.tz = tz

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        created = datetime.datetime.fromtimestamp(record.created, tz=self.tz)
        return created.isoformat(timespec="milliseconds")


def dated_log_name(default_name: str) -> str:
    # logs/rapal.log.2024-05-01 -> logs/rapal-2024-05-01.log
    path, _, day = default_name.rpartition(".")
    base = Path(path)
    return str(base.with_name(f"{base.stem}-{day}{base.suffix}"))


def _resolve_level(level_name: object) -> int:
    if not isinstance(level_name, str):
        return logging.INFO
    return getattr(logging, level_name.upper(), logging.INFO)


def setup_logging(config: Settings | None = None) -> None:
    """
    Configure application logging once per process.

    Records from the ``rapal`` logger go to a daily rotating file under
    LOG_DIR (unless LOG_TO_FILE is off); everything, uvicorn included,
    goes to the console through the root logger.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    config = config or default_settings
    level_value = _resolve_level(config.log_level)

    formatter = ZoneFormatter(tz=log_timezone(config.log_timezone))

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(level_value)
    app_logger.propagate = True

    if config.log_to_file:
        log_dir = Path(config.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            log_dir / f"{APP_LOGGER_NAME}.log",
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8",
        )
        file_handler.suffix = "%Y-%m-%d"
        file_handler.namer = dated_log_name
        file_handler.setFormatter(formatter)
        file_handler.addFilter(lambda record: record.name.startswith(APP_LOGGER_NAME))
        app_logger.addHandler(file_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(level_value)
    has_console = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in root_logger.handlers
    )
    if not has_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    _LOGGING_CONFIGURED = True


logger = logging.getLogger(APP_LOGGER_NAME)

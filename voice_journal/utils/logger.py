"""
Logging configuration for structured text logging.
"""
import logging
import sys
from typing import Dict
from voice_journal.config import settings

LOGGER_NAMESPACE = "voice_journal"

# Attributes every LogRecord carries; anything else was passed as a structured field
_RECORD_ATTRIBUTES = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName"
})


class StructuredFormatter(logging.Formatter):
    """Formats records as `time | level | logger | message | key=value ...`."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
        line = f"{timestamp}.{int(record.msecs):03d} | {record.levelname:8} | {record.name} | {record.getMessage()}"

        fields = {
            key: value for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES
        }
        if fields:
            line += " | " + " ".join(f"{k}={v}" for k, v in fields.items())

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


def setup_logging() -> logging.Logger:
    """
    Configure and return the package logger.

    Per-library levels come from the *_LOG_LEVEL settings:
    - APP_LOG_LEVEL: voice_journal logs (falls back to LOG_LEVEL)
    - SQLALCHEMY_LOG_LEVEL: SQLAlchemy engine and pool (default: WARNING)
    - UVICORN_LOG_LEVEL: Uvicorn (default: INFO)
    - HTTPX_LOG_LEVEL: HTTPX, used for gateway and function calls (default: WARNING)
    - ASYNCPG_LOG_LEVEL: PostgreSQL driver (default: WARNING)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAMESPACE)
    app_log_level = (settings.APP_LOG_LEVEL or settings.LOG_LEVEL).upper()
    logger.setLevel(getattr(logging, app_log_level))

    # Re-running setup (tests, reload) must not stack handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, app_log_level))
    console_handler.setFormatter(StructuredFormatter())
    logger.addHandler(console_handler)
    logger.propagate = False

    library_levels = _configure_third_party_loggers()

    print("=" * 60)
    print("LOG CONFIGURATION")
    print("=" * 60)
    print(f"{'APP_LOG_LEVEL:':22}{app_log_level}")
    for setting_name, level in library_levels.items():
        print(f"{setting_name + ':':22}{level}")
    print("=" * 60)

    return logger


def _configure_third_party_loggers() -> Dict[str, str]:
    """
    Apply log levels to third-party libraries.

    Returns:
        Mapping of setting name to applied level
    """
    levels = {
        "SQLALCHEMY_LOG_LEVEL": (settings.SQLALCHEMY_LOG_LEVEL or "WARNING").upper(),
        "UVICORN_LOG_LEVEL": (settings.UVICORN_LOG_LEVEL or "INFO").upper(),
        "HTTPX_LOG_LEVEL": (settings.HTTPX_LOG_LEVEL or "WARNING").upper(),
        "ASYNCPG_LOG_LEVEL": (settings.ASYNCPG_LOG_LEVEL or "WARNING").upper(),
    }
    loggers = {
        "SQLALCHEMY_LOG_LEVEL": ["sqlalchemy.engine", "sqlalchemy.pool"],
        "UVICORN_LOG_LEVEL": ["uvicorn", "uvicorn.access"],
        "HTTPX_LOG_LEVEL": ["httpx", "httpcore"],
        "ASYNCPG_LOG_LEVEL": ["asyncpg"],
    }

    for setting_name, names in loggers.items():
        for name in names:
            logging.getLogger(name).setLevel(getattr(logging, levels[setting_name]))

    return levels


class StructuredLogger:
    """Wrapper around logging.Logger that turns keyword arguments into structured fields."""

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def _log(self, level: int, msg: str, *args, **kwargs):
        exc_info = kwargs.pop("exc_info", False)

        # LogRecord rejects extras that shadow its own attributes
        extra = {
            (f"ctx_{key}" if key in _RECORD_ATTRIBUTES else key): value
            for key, value in kwargs.items()
        }

        self._logger.log(level, msg, *args, extra=extra, exc_info=exc_info, stacklevel=3)

    def debug(self, msg: str, *args, **kwargs):
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self._log(logging.ERROR, msg, *args, **kwargs)

    def critical(self, msg: str, *args, **kwargs):
        self._log(logging.CRITICAL, msg, *args, **kwargs)


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger under the package namespace.

    Args:
        name: Logger name (prefixed with 'voice_journal.')

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(logging.getLogger(f"{LOGGER_NAMESPACE}.{name}"))


# Initialize package logger
package_logger = setup_logging()

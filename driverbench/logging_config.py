"""
Logging setup for driverbench.

Module loggers live under ``driverbench.*`` and share one console format.
Engine events go to ``driverbench.events`` with their own format, which
carries the driver and query each record is about, so a run can be followed
per driver with a plain ``grep driver=asyncpg``.

Environment:
    DRIVERBENCH_LOG_LEVEL: level for driverbench loggers (default INFO).
    DRIVERBENCH_ENV: ``production`` adds source locations to the console format.
    DRIVERBENCH_LOG_FILE: also write driverbench records to this rotating file.
"""

import functools
import logging
import logging.config
import os
import sys
import time
from typing import Any, Dict

ROOT_LOGGER = "driverbench"
EVENTS_LOGGER = "driverbench.events"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
EVENT_FORMAT = "%(asctime)s | %(levelname)-8s | driver=%(driver)s query=%(query)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | driver=%(driver)s query=%(query)s | %(message)s"

# levels for the libraries driverbench drives
LIBRARY_LEVELS = {
    "uvicorn": "INFO",
    "fastapi": "INFO",
    "asyncpg": "WARNING",
    # one INFO line per request, i.e. per sample
    "httpx": "WARNING",
    "httpcore": "WARNING",
}

EVENT_FIELDS = ("driver", "query")


class EventFieldsFilter(logging.Filter):
    """Default the ``driver`` and ``query`` record fields to ``-``."""

    def filter(self, record: logging.LogRecord) -> bool:
        for field in EVENT_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, "-")
        return True


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(f"DRIVERBENCH_{name}", default)


def get_log_level() -> str:
    return _env("LOG_LEVEL", "INFO").upper()


def get_log_format() -> str:
    if _env("ENV", "development").lower() == "production":
        return "%(asctime)s | %(name)s | %(levelname)s | %(message)s | %(pathname)s:%(lineno)d"
    return "%(asctime)s | %(name)-24s | %(levelname)-8s | %(message)s"


def _handler(formatter: str, level: str, **extra) -> Dict[str, Any]:
    return {
        "class": "logging.StreamHandler",
        "stream": sys.stdout,
        "formatter": formatter,
        "level": level,
        **extra,
    }


def get_logging_config() -> Dict[str, Any]:
    """Build the ``dictConfig`` mapping from the current environment."""
    level = get_log_level()

    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "event_fields": {"()": EventFieldsFilter},
        },
        "formatters": {
            "standard": {"format": get_log_format(), "datefmt": DATE_FORMAT},
            "events": {"format": EVENT_FORMAT, "datefmt": DATE_FORMAT},
            "file": {"format": FILE_FORMAT, "datefmt": DATE_FORMAT},
        },
        "handlers": {
            "console": _handler("standard", level),
            "events_console": _handler("events", level, filters=["event_fields"]),
        },
        "loggers": {
            ROOT_LOGGER: {"level": level, "handlers": ["console"], "propagate": False},
            EVENTS_LOGGER: {"level": level, "handlers": ["events_console"], "propagate": False},
        },
        "root": {"level": "WARNING", "handlers": ["console"]},
    }
    for name, library_level in LIBRARY_LEVELS.items():
        config["loggers"][name] = {"level": library_level, "handlers": ["console"], "propagate": False}

    log_file = _env("LOG_FILE")
    if log_file:
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": log_file,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "formatter": "file",
            "filters": ["event_fields"],
            "level": level,
        }
        for name in (ROOT_LOGGER, EVENTS_LOGGER):
            config["loggers"][name]["handlers"].append("file")

    return config


def setup_logging() -> None:
    logging.config.dictConfig(get_logging_config())
    logger = logging.getLogger(ROOT_LOGGER)
    logger.debug("Logging configured at %s", get_log_level())
    if _env("LOG_FILE"):
        logger.info("Also logging to %s", _env("LOG_FILE"))


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name`` under the ``driverbench`` hierarchy.

    ``__main__`` maps to ``driverbench.main``; other names outside the
    hierarchy are nested under it.
    """
    if name == "__main__":
        name = f"{ROOT_LOGGER}.main"
    elif name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def log_performance(logger: logging.Logger, operation: str):
    """
    Log the wall time of an async operation.

    Success is logged at INFO, failure at ERROR before the exception propagates.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.error("%s failed after %.3fs: %s", operation, time.perf_counter() - start, e)
                raise
            logger.info("%s finished in %.3fs", operation, time.perf_counter() - start)
            return result

        return wrapper

    return decorator


if not logging.getLogger().handlers:
    setup_logging()

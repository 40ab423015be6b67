"""
backend/cleanconnect/core/logging.py

Logging setup, applied once by `init_logging()` at process start (API and
expiry job).

Handlers:
- console: colorlog, level from LOG_LEVEL
- logs/app.log: everything, rotated at 1MB (5 files kept)
- logs/error.log: ERROR and above
- logs/money.log: ledger movements and payouts, rotated like app.log
"""

import os
from logging.config import dictConfig
from typing import Any

from cleanconnect.core.config import settings

LOG_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "..", "logs")

LINE_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"

# Loggers whose records also go to the money audit file
MONEY_LOGGERS = ("cleanconnect.ledger", "cleanconnect.cleaning")


def _rotating(filename: str, **extra: Any) -> dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "filename": os.path.join(LOG_DIR, filename),
        "maxBytes": 1024 * 1024,
        "backupCount": 5,
        "formatter": "plain",
        "encoding": "utf-8",
        **extra,
    }


def build_logging_config(level: str) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {"format": LINE_FORMAT},
            "colored": {
                "()": "colorlog.ColoredFormatter",
                "format": "%(log_color)s" + LINE_FORMAT,
                "log_colors": {
                    "DEBUG": "cyan",
                    "INFO": "green",
                    "WARNING": "yellow",
                    "ERROR": "red",
                    "CRITICAL": "bold_red",
                },
            },
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "colored"},
            "app_file": _rotating("app.log"),
            "error_file": _rotating("error.log", level="ERROR"),
            "money_file": _rotating("money.log", level="INFO"),
        },
        "loggers": {
            **{name: {"handlers": ["money_file"]} for name in MONEY_LOGGERS},
            "sqlalchemy.engine": {"level": "WARNING"},
            "aiosqlite": {"level": "WARNING"},
            "uvicorn.access": {"level": "WARNING"},
        },
        "root": {"level": level, "handlers": ["console", "app_file", "error_file"]},
    }


def init_logging() -> None:
    os.makedirs(LOG_DIR, exist_ok=True)
    dictConfig(build_logging_config(settings.LOG_LEVEL.upper()))

"""
app/core/logging.py

Centralized logging configuration for the application.
- Colored console output through colorlog
- Rotating file log at logs/app.log (1MB max, 5 backups)
- Separate logs/error.log for ERROR and above
- Log level controlled via LOG_LEVEL

Initialized once at startup from main.py.
"""

import os
from logging.config import dictConfig

from app.core.config import settings

# Logs live next to the project root, one level above the app package
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
LOG_DIR = os.path.join(BASE_DIR, "..", "..", "logs")

LOG_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s] in %(module)s: %(message)s"

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": LOG_FORMAT,
        },
        "color": {
            "()": "colorlog.ColoredFormatter",
            "format": f"%(log_color)s{LOG_FORMAT}",
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
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "color",
        },
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": os.path.join(LOG_DIR, "app.log"),
            "maxBytes": 1 * 1024 * 1024,  # 1MB
            "backupCount": 5,
            "formatter": "default",
            "encoding": "utf-8",
        },
        "error_file": {
            "class": "logging.FileHandler",
            "filename": os.path.join(LOG_DIR, "error.log"),
            "level": "ERROR",
            "formatter": "default",
            "encoding": "utf-8",
        },
    },
    "loggers": {
        "uvicorn": {"level": "WARNING"},
        "sqlalchemy": {"level": "WARNING"},
        "httpx": {"level": "WARNING"},
        "botocore": {"level": "WARNING"},
    },
    "root": {
        "level": settings.LOG_LEVEL.upper(),
        "handlers": ["console", "file", "error_file"],
    },
}


def init_logging() -> None:
    """Creates the log directory and applies LOGGING_CONFIG."""
    os.makedirs(LOG_DIR, exist_ok=True)
    dictConfig(LOGGING_CONFIG)

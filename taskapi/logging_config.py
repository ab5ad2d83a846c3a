# taskapi/logging_config.py
import logging
import logging.config
from pathlib import Path

from taskapi.config import settings


def build_logging_config(log_file: Path | None = None) -> dict:
    level = settings.LOG_LEVEL
    handlers = ["console"] + (["file"] if log_file else [])

    config = {
        "version": 1,
        "disable_existing_loggers": False,

        "formatters": {
            "standard": {
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            },
            "access": {
                "format": "%(asctime)s | %(levelname)s | uvicorn.access | %(message)s",
            },
        },

        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": level,
            },
        },

        "loggers": {
            # Uvicorn core logs
            "uvicorn": {"handlers": handlers, "level": "INFO", "propagate": False},
            "uvicorn.error": {"handlers": handlers, "level": "INFO", "propagate": False},
            "uvicorn.access": {
                "handlers": ["access_file"] if log_file else ["console"],
                "level": "INFO",
                "propagate": False,
            },
            # FastAPI / app logs
            "fastapi": {"handlers": handlers, "level": level, "propagate": False},
            "taskapi": {"handlers": handlers, "level": level, "propagate": False},
        },

        "root": {"handlers": handlers, "level": level},
    }

    if log_file:
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "standard",
            "filename": str(log_file),
            "maxBytes": 5 * 1024 * 1024,  # 5 MB
            "backupCount": 5,
            "encoding": "utf-8",
            "level": level,
        }
        config["handlers"]["access_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "access",
            "filename": str(log_file),
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 5,
            "encoding": "utf-8",
            "level": "INFO",
        }
    return config


def setup_logging() -> None:
    log_file = None
    if settings.LOG_TO_FILE:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / "app.log"
    logging.config.dictConfig(build_logging_config(log_file))
    logging.getLogger("taskapi").info("Logging initialized (level=%s)", settings.LOG_LEVEL)

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict

from app.core.config import settings

# Request-scoped fields set by RequestLoggingMiddleware; "-" outside a request.
CONTEXT_FIELDS = ("request_id", "session_id")


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        for field in CONTEXT_FIELDS:
            if not getattr(record, field, None):
                setattr(record, field, "-")
        return True


def _rotating(filename: Path, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "context",
        "filters": ["context"],
        "filename": str(filename),
        "maxBytes": 5 * 1024 * 1024,
        "backupCount": 3,
    }


def build_logging_config(level: str, log_dir: Path) -> Dict[str, Any]:
    app_handlers = ["console", "sabiprep", "errors"]
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"context": {"()": RequestContextFilter}},
        "formatters": {
            "context": {
                "format": "%(asctime)s %(levelname)s %(name)s [req=%(request_id)s session=%(session_id)s] %(message)s"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "context",
                "filters": ["context"],
                "stream": "ext://sys.stdout",
            },
            "sabiprep": _rotating(log_dir / "sabiprep.log", level),
            "errors": _rotating(log_dir / "sabiprep-error.log", "ERROR"),
        },
        "root": {"level": "WARNING", "handlers": ["console"]},
        "loggers": {
            "app": {"level": level, "handlers": app_handlers, "propagate": False},
            "apscheduler": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            "httpx": {"level": "WARNING", "handlers": ["console"], "propagate": False},
        },
    }


def configure_logging():
    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(settings.LOG_LEVEL.upper(), log_dir))

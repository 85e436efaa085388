import logging
import sys
from logging.config import dictConfig

from workshop_app.config import settings

CTX_FIELDS = ("workshop_id", "user_id", "rule", "rid")


def setup_logging() -> None:
    """Logging for the whole app: stdout, plain text or JSON (LOG_JSON=1)."""
    level = settings.log_level.upper()

    if settings.log_json:
        formatter = {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s "
                   "%(workshop_id)s %(user_id)s %(rule)s %(rid)s",
            "json_ensure_ascii": False,
        }
    else:
        formatter = {
            "format": (
                "%(asctime)s | %(levelname)5s | %(name)s | %(message)s "
                "| workshop=%(workshop_id)s user=%(user_id)s rule=%(rule)s rid=%(rid)s"
            ),
        }

    dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": formatter},
        "filters": {"ctx": {"()": CtxFilter}},
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
                "formatter": "default",
                "filters": ["ctx"],
            }
        },
        "root": {"level": level, "handlers": ["stdout"]},
        "loggers": {
            "sqlalchemy.engine": {"level": settings.log_sql.upper()},
            # APScheduler logs every job execution at INFO
            "apscheduler": {"level": "WARNING"},
            "workshop_app": {"level": level},
        },
    })


class CtxFilter(logging.Filter):
    """Fills context fields so the formatter works for records without extra."""
    def filter(self, record: logging.LogRecord) -> bool:
        for k in CTX_FIELDS:
            if not hasattr(record, k):
                setattr(record, k, "-")
        return True

"""Centralized logging configuration."""
from __future__ import annotations

import logging
from logging.config import dictConfig

from dailyplan.core.context import get_plan_scope, get_request_id

# Client libraries that log every HTTP exchange at INFO.
CHATTY_LOGGERS = ("httpx", "openai", "opik")


class PlanContextFilter(logging.Filter):
    """Stamp records with the request id and the plan run they belong to."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        record.plan_scope = get_plan_scope() or "-"
        return True


def configure_logging(*, log_level: str = "INFO", force: bool = False) -> None:
    """Configure application logging once at startup; ``force`` reapplies it."""
    if getattr(configure_logging, "_configured", False) and not force:
        return

    level = log_level.upper()
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plan": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(plan_scope)s | %(message)s",
                }
            },
            "filters": {
                "plan_context": {
                    "()": "dailyplan.core.logging.PlanContextFilter",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "plan",
                    "level": level,
                    "filters": ["plan_context"],
                }
            },
            "loggers": {name: {"level": "WARNING"} for name in CHATTY_LOGGERS},
            "root": {
                "handlers": ["console"],
                "level": level,
            },
        }
    )

    logging.getLogger(__name__).debug("Logging configured at %s", level)
    setattr(configure_logging, "_configured", True)

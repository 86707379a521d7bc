"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from expense_ledger.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_catch_up(
    user_id: str,
    definitions_checked: int,
    charges_created: int,
    conflicts: int,
    failures: int,
    duration_ms: float,
) -> None:
    """Log structured catch-up outcome for one user"""
    logging.info(
        "Catch-up completed",
        extra={
            "user_id": user_id,
            "step": "catch_up_complete",
            "definitions_checked": definitions_checked,
            "charges_created": charges_created,
            "conflicts": conflicts,
            "failures": failures,
            "duration_ms": duration_ms,
        },
    )


def log_rating(user_id: str, entry_id: str, status: str, score: float) -> None:
    logging.info(
        "Entry rated",
        extra={
            "user_id": user_id,
            "entry_id": entry_id,
            "step": "rating_saved",
            "rating_status": status,
            "score": score,
        },
    )

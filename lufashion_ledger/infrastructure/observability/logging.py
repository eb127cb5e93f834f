"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from lufashion_ledger.config import settings


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


def log_ledger_operation(
    request_id: str,
    operation: str,
    customer_id: str,
    outcome: str,
    persisted: bool,
    duration_ms: float,
    transaction_id: Optional[str] = None,
) -> None:
    """Log structured ledger operation outcome"""
    level = logging.INFO if persisted else logging.WARNING
    logging.log(
        level,
        "Ledger operation completed",
        extra={
            "request_id": request_id,
            "operation": operation,
            "customer_id": customer_id,
            "transaction_id": transaction_id,
            "outcome": outcome,
            "persisted": persisted,
            "duration_ms": duration_ms,
        },
    )

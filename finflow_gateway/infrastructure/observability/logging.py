"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from finflow_gateway.config import settings


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


def log_calendar(
    request_id: str,
    space_id: str,
    counts: Dict[str, int],
    total: int,
    partial: bool,
    duration_ms: float,
) -> None:
    """Log calendar aggregation outcome"""
    logging.info(
        "Calendar loaded",
        extra={
            "request_id": request_id,
            "space_id": space_id,
            "step": "calendar_loaded",
            **counts,
            "total": total,
            "partial": partial,
            "duration_ms": duration_ms,
        },
    )


def log_insight(
    request_id: str,
    space_id: str,
    profile: str,
    risk_level: str,
    action_count: int,
    duration_ms: float,
) -> None:
    """Log the classified profile for analysis"""
    logging.info(
        "Insight computed",
        extra={
            "request_id": request_id,
            "space_id": space_id,
            "step": "insight_complete",
            "profile": profile,
            "risk_level": risk_level,
            "action_count": action_count,
            "duration_ms": duration_ms,
        },
    )


def log_payment(
    request_id: str,
    space_id: str,
    kind: str,
    target_id: str,
    transaction_id: Optional[str],
    matched_obligation_id: Optional[str],
    duration_ms: float,
) -> None:
    """Log a confirmed payment"""
    logging.info(
        "Payment confirmed",
        extra={
            "request_id": request_id,
            "space_id": space_id,
            "step": f"{kind}_payment_confirmed",
            "target_id": target_id,
            "transaction_id": transaction_id,
            "matched_obligation_id": matched_obligation_id,
            "duration_ms": duration_ms,
        },
    )

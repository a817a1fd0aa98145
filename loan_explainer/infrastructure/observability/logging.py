"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

SERVICE_NAME = "loan-explainer"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = SERVICE_NAME


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_assessment(
    request_id: str,
    endpoint: str,
    decision: str,
    predicted_risk: float,
    final_decision: str,
    duration_ms: float,
) -> None:
    """Log structured assessment outcome for analysis"""
    logging.info(
        "Assessment completed",
        extra={
            "request_id": request_id,
            "step": endpoint,
            "decision": decision,
            "final_decision": final_decision,
            "predicted_risk": round(predicted_risk, 3),
            "duration_ms": duration_ms,
        },
    )

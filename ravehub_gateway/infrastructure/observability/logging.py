"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from ravehub_gateway.config import settings


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


def log_transition(
    request_id: str,
    transaction_id: str,
    source: str,
    previous_status: str,
    new_status: str,
    actor: str,
    changed: bool,
    installment_settled: bool,
) -> None:
    """Log structured state transition outcome for auditing"""
    logging.getLogger("ravehub_gateway.transitions").info(
        "Transition completed",
        extra={
            "request_id": request_id,
            "transaction_id": transaction_id,
            "step": "transition_complete",
            "source": source,
            "previous_status": previous_status,
            "new_status": new_status,
            "actor": actor,
            "changed": changed,
            "installment_settled": installment_settled,
        },
    )


def log_signature_failure(request_id: str, gateway: str, reason: str) -> None:
    """Security event: webhook rejected before touching any state"""
    logging.getLogger("ravehub_gateway.security").warning(
        "security.webhook.signature_failure",
        extra={"request_id": request_id, "gateway": gateway, "reason": reason},
    )

"""
Logging configuration for the application.

Events are structured key-value records. Completion codes, payment proofs
and customer contact details are masked before any renderer sees them.
"""

import logging
import sys
from typing import Any, Dict, Optional

import structlog

from techmarket.config.settings import settings

SENSITIVE_KEYS = frozenset({"otp", "customer_phone", "payment_proof", "proof"})
MASK = "***"


def redact(values: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``values`` with sensitive keys masked, one level of nesting deep."""
    masked = {}
    for key, value in values.items():
        if key in SENSITIVE_KEYS and value is not None:
            masked[key] = MASK
        elif isinstance(value, dict):
            masked[key] = {
                k: MASK if k in SENSITIVE_KEYS and v is not None else v
                for k, v in value.items()
            }
        else:
            masked[key] = value
    return masked


def redact_sensitive_fields(logger, method_name: str, event_dict: Dict[str, Any]):
    """structlog processor wrapping :func:`redact`."""
    return redact(event_dict)


def configure_logging() -> None:
    """Configure structured logging."""

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.ENVIRONMENT == "production"
        else structlog.dev.ConsoleRenderer(colors=settings.ENVIRONMENT == "development")
    )

    structlog.configure(
        processors=[
            # request_id and similar values bound by the HTTP middleware
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            redact_sensitive_fields,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL.upper()),
    )

    # Chatty libraries
    for name in ("sqlalchemy.engine", "sqlalchemy.pool", "asyncio", "httpx", "kombu"):
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("celery").setLevel(logging.INFO)


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """Get a structured logger."""
    return structlog.get_logger(name)

"""
Shared logging configuration for the Cloudflare exporter.
"""

import sys
import structlog
import logging
import uuid
import time
from typing import Any, Dict, Optional
from contextvars import ContextVar

# Context variables for scrape correlation
pass_id_var: ContextVar[Optional[str]] = ContextVar('pass_id', default=None)
family_var: ContextVar[Optional[str]] = ContextVar('family', default=None)
scope_var: ContextVar[Optional[str]] = ContextVar('scope', default=None)


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Configure structured logging for a service."""

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_service_context,
            add_scrape_context,
            add_timestamp,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )


def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add service context to log events."""
    # Logger names are "<service>.<component>"
    logger_name = event_dict.get("logger", "")
    if "." in logger_name:
        event_dict["service"] = logger_name.split(".")[0]

    return event_dict


def add_scrape_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add the current scrape pass, family and scope to log events."""
    pass_id = pass_id_var.get()
    if pass_id:
        event_dict.setdefault("pass_id", pass_id)

    family = family_var.get()
    if family:
        event_dict.setdefault("family", family)

    scope = scope_var.get()
    if scope:
        event_dict.setdefault("scope", scope)

    return event_dict


def add_timestamp(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add high-precision timestamp to log events."""
    event_dict["timestamp"] = time.time()
    return event_dict


def set_pass_id(pass_id: Optional[str] = None) -> str:
    """Set the scrape pass ID in context."""
    if pass_id is None:
        pass_id = uuid.uuid4().hex[:12]
    pass_id_var.set(pass_id)
    return pass_id


def set_task_context(family: Optional[str] = None, scope: Optional[str] = None):
    """Set fetch task context in logging."""
    if family:
        family_var.set(family)
    if scope:
        scope_var.set(scope)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)

"""Observability for RequestDesk: structured logging, request ids, metrics, health."""

from .logging_config import configure_logging, get_logger
from .metrics import (
    batch_chunks_total,
    notifications_total,
    transition_conflicts_total,
    transitions_total,
)
from .middleware import RequestIDMiddleware
from .request_id import get_request_id, set_request_id

__all__ = [
    "configure_logging",
    "get_logger",
    "batch_chunks_total",
    "notifications_total",
    "transition_conflicts_total",
    "transitions_total",
    "RequestIDMiddleware",
    "get_request_id",
    "set_request_id",
]

"""Observability utilities for the interview session service."""
from .logger import configure_handlers, format_human, log_event
from .tracing import span

__all__ = ["configure_handlers", "format_human", "log_event", "span"]

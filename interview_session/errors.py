"""Error taxonomy for interview session orchestration."""
from __future__ import annotations


class InterviewError(Exception):
    """Base class for every error raised by the interview core."""


class NotFoundError(InterviewError, KeyError):
    """Unknown interview, evaluation or user reference."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class InvalidStateError(InterviewError):
    """Operation not allowed for the interview's current status."""


class StoreError(InterviewError):
    """Persistence failure; fatal to the current operation."""


class GatewayError(InterviewError):
    """Model call failed where no fallback is defined."""


class InvalidArgumentError(InterviewError, ValueError):
    """Caller supplied an unparseable identifier or empty payload."""


class ParseError(InterviewError):
    """Model output could not be decoded; absorbed by the extractors."""


__all__ = [
    "GatewayError",
    "InterviewError",
    "InvalidArgumentError",
    "InvalidStateError",
    "NotFoundError",
    "ParseError",
    "StoreError",
]

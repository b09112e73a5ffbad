"""Structured logging utilities for interview sessions."""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
import time
import uuid
from typing import Any

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENABLE_FILE_LOGS = os.getenv("ENABLE_FILE_LOGS", "0") in ("1", "true", "True")
LOG_FILE = os.getenv("LOG_FILE", "logs/interview.log")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", "5242880"))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))

_HUMAN_FORMAT = "[%(asctime)s] %(levelname)s %(name)s :: %(message)s"
_HUMAN_KEYS = ("status", "role", "turns", "overall_score", "parsed", "language", "span", "ms", "error")

_logger = logging.getLogger("interview.events")
_logger.setLevel(LOG_LEVEL)
_logger.propagate = False
_files_enabled = False


def _is_json(record: logging.LogRecord) -> bool:
    return getattr(record, "is_json", False) is True


def _attach(handler: logging.Handler, *, json_lines: bool) -> None:
    handler.setLevel(LOG_LEVEL)
    if json_lines:
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler.addFilter(_is_json)
    else:
        handler.setFormatter(logging.Formatter(_HUMAN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handler.addFilter(lambda record: not _is_json(record))
    _logger.addHandler(handler)


def human_log_path(log_file: str) -> str:
    """``logs/interview.log`` -> ``logs/interview-human.log``."""

    root, _ = os.path.splitext(log_file)
    return f"{root}-human.log"


def configure_handlers(*, enable_files: bool = ENABLE_FILE_LOGS, log_file: str = LOG_FILE) -> None:
    """Replace the event handlers: stdout always, rotating JSON and human files when enabled."""

    global _files_enabled

    for handler in list(_logger.handlers):
        _logger.removeHandler(handler)
        handler.close()

    _attach(logging.StreamHandler(stream=sys.stdout), json_lines=False)
    _files_enabled = enable_files
    if not enable_files:
        return

    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    for path, json_lines in ((log_file, True), (human_log_path(log_file), False)):
        rotating = logging.handlers.RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT)
        _attach(rotating, json_lines=json_lines)


def _ensure_handlers() -> None:
    if not _logger.handlers:
        configure_handlers()


def format_human(evt: dict[str, Any]) -> str:
    base = f"interview={evt.get('interview_id')} kind={evt.get('kind')}"
    extras = [f"{key}={evt[key]}" for key in _HUMAN_KEYS if key in evt]
    return base + (" " + " ".join(extras) if extras else "")


def log_event(kind: str, interview_id: str, *, level: int = logging.INFO, **fields: Any) -> dict[str, Any]:
    """Emit a human line to the console and, when enabled, JSON/human lines to files.

    Returns the event payload so callers and tests can inspect what was logged.
    """

    _ensure_handlers()

    payload: dict[str, Any] = {
        "ts": time.time(),
        "trace": str(uuid.uuid4()),
        "kind": kind,
        "interview_id": interview_id,
    }
    payload.update(fields)

    # Human line (console + human file handler)
    human_record = _logger.makeRecord(
        name=_logger.name,
        level=level,
        fn="",
        lno=0,
        msg=format_human(payload),
        args=(),
        exc_info=None,
    )
    human_record.is_json = False  # type: ignore[attr-defined]
    _logger.handle(human_record)

    if _files_enabled:
        # JSON line (file only)
        json_record = _logger.makeRecord(
            name=_logger.name,
            level=level,
            fn="",
            lno=0,
            msg=json.dumps(payload, ensure_ascii=False, default=str),
            args=(),
            exc_info=None,
        )
        json_record.is_json = True  # type: ignore[attr-defined]
        _logger.handle(json_record)
    return payload


__all__ = ["configure_handlers", "format_human", "human_log_path", "log_event"]

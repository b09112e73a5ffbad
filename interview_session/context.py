"""Conversation context assembly for the interviewer model.

The stored message log is a pure record of the real conversation. Everything
the model needs beyond that (the interviewer persona, the problem snapshot and
the acknowledgment turn) is generated here on every call and never persisted.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from .models import Submission, Turn
from .prompts import CODE_ATTACHMENT_TEMPLATE, INTERVIEWER_TEMPLATE, PRIMING_ACK


_GATEWAY_ROLES = {"assistant": "assistant", "user": "user", "system": "user"}

TRUNCATION_MARKER = "[earlier conversation truncated]"


class AssembledContext(BaseModel):  # Ordered gateway input for one chat call
    system_instruction: str
    history: List[Dict[str, str]] = Field(default_factory=list)
    new_turn: str


def render_problem(snapshot: Mapping[str, Any]) -> str:
    """Serialize the frozen problem snapshot for prompt interpolation."""

    return json.dumps(snapshot, ensure_ascii=False, sort_keys=True)


def system_instruction(snapshot: Mapping[str, Any]) -> str:
    """Render the interviewer persona with the problem interpolated."""

    return INTERVIEWER_TEMPLATE.format(problem=render_problem(snapshot))


def attach_code(content: str, code: Optional[str] = None, language: Optional[str] = None) -> str:
    """Append an attached code block to the outgoing user content.

    The combined string is both what gets persisted and what gets sent.
    """

    if not code:
        return content
    lang = (language or "").strip() or "unknown"
    return content + CODE_ATTACHMENT_TEMPLATE.format(language=lang, code=code)


def ordered_turns(turns: Sequence[Turn]) -> List[Turn]:
    """Replay order: creation time, ties broken by per-interview sequence."""

    return sorted(turns, key=lambda turn: (turn.created_at, turn.sequence))


def priming_turns(snapshot: Mapping[str, Any]) -> List[Dict[str, str]]:
    """Synthetic leading pair standing in for a system role."""

    return [
        {"role": "user", "content": system_instruction(snapshot)},
        {"role": "assistant", "content": PRIMING_ACK},
    ]


def assemble(turns: Sequence[Turn], snapshot: Mapping[str, Any], new_turn: Turn) -> AssembledContext:
    """Build the gateway input for ``new_turn``.

    ``new_turn`` has already been appended to the log; it is excluded from the
    replayed history and sent separately.
    """

    history = priming_turns(snapshot)
    for turn in ordered_turns(turns):
        if turn.id == new_turn.id:
            continue
        history.append({"role": _GATEWAY_ROLES[turn.role], "content": turn.content})
    return AssembledContext(
        system_instruction=system_instruction(snapshot),
        history=history,
        new_turn=new_turn.content,
    )


def render_transcript(turns: Sequence[Turn], limit: Optional[int] = None) -> str:
    """Role-prefixed transcript lines in turn order.

    When ``limit`` is set and exceeded, the oldest lines are dropped first.
    """

    lines = [f"[{turn.role}]: {turn.content}" for turn in ordered_turns(turns)]
    text = "\n".join(lines)
    if limit is None or len(text) <= limit:
        return text
    kept: List[str] = []
    size = len(TRUNCATION_MARKER)
    for line in reversed(lines):
        size += len(line) + 1
        if size > limit:
            break
        kept.append(line)
    return "\n".join([TRUNCATION_MARKER] + list(reversed(kept)))


def render_submissions(submissions: Sequence[Submission]) -> str:
    """Concatenate every submission with its stored review feedback."""

    ordered = sorted(submissions, key=lambda item: item.submitted_at)
    blocks = [
        f"Code ({item.language}): {item.code}\nResult: {item.ai_feedback}\n\n"
        for item in ordered
    ]
    return "".join(blocks) if blocks else "(no code submitted)"


__all__ = [
    "AssembledContext",
    "TRUNCATION_MARKER",
    "assemble",
    "attach_code",
    "ordered_turns",
    "priming_turns",
    "render_problem",
    "render_submissions",
    "render_transcript",
    "system_instruction",
]

from __future__ import annotations  # Evaluation prompt building and tolerant score extraction

import json
import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from .context import render_problem, render_submissions, render_transcript
from .errors import ParseError
from .models import ScoreSet, Submission, Turn
from .prompts import EVALUATOR_FORMAT, EVALUATOR_TEMPLATE


logger = logging.getLogger(__name__)

SCORE_FIELDS = tuple(ScoreSet.model_fields)


def build_evaluation_prompt(
    snapshot: Mapping[str, Any],
    turns: Sequence[Turn],
    submissions: Sequence[Submission],
    *,
    transcript_limit: Optional[int] = None,
) -> str:  # Embed problem, transcript and submissions into the evaluator prompt
    prompt = EVALUATOR_TEMPLATE.format(
        problem=render_problem(snapshot),
        transcript=render_transcript(turns, limit=transcript_limit),
        submissions=render_submissions(submissions),
    )
    return prompt + EVALUATOR_FORMAT


def strip_code_fence(content: str) -> str:  # Drop a leading ```json / ``` marker and a trailing ```
    text = content.strip()
    for marker in ("```json", "```JSON", "```"):
        if text.startswith(marker):
            text = text[len(marker):]
            break
    text = text.rstrip()
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def decode_object(content: str) -> Dict[str, Any]:  # Decode fenced or bare JSON into a mapping
    cleaned = strip_code_fence(content or "")
    if not cleaned:
        raise ParseError("empty model output")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ParseError(f"model output is not JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise ParseError(f"expected a JSON object, got {type(data).__name__}")
    return data


def extract_scores(content: str) -> Tuple[ScoreSet, bool]:
    """Parse evaluator output into a ``ScoreSet``.

    Never raises. ``ok`` is False when nothing usable was decoded, in which
    case every score is zero and every text/list field is empty.
    """

    try:
        data = decode_object(content)
        if not any(key in data for key in SCORE_FIELDS):
            raise ParseError("no evaluation fields present")
        return ScoreSet.model_validate({key: data[key] for key in SCORE_FIELDS if key in data}), True
    except (ParseError, ValidationError) as exc:
        logger.warning("Evaluation output could not be parsed: %s", exc)
        return ScoreSet(), False


__all__ = [
    "SCORE_FIELDS",
    "build_evaluation_prompt",
    "decode_object",
    "extract_scores",
    "strip_code_fence",
]

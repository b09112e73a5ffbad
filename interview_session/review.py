from __future__ import annotations  # Code submission review prompt and parsing

import logging
from typing import Any, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator

from .context import render_problem
from .errors import ParseError
from .evaluation import decode_object
from .models import SimulatedTestResult
from .prompts import REVIEWER_TEMPLATE


logger = logging.getLogger(__name__)


class ReviewResult(BaseModel):  # Reviewer verdict for one submission
    is_correct: Optional[bool] = None
    feedback: str = ""
    complexity: str = ""
    suggestions: List[str] = Field(default_factory=list)
    simulated_results: List[SimulatedTestResult] = Field(default_factory=list)

    @field_validator("is_correct", mode="before")
    @classmethod
    def _verdict(cls, value: Any) -> Optional[bool]:
        return value if isinstance(value, bool) else None

    @field_validator("feedback", "complexity", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return value.strip() if isinstance(value, str) else ""

    @field_validator("suggestions", mode="before")
    @classmethod
    def _suggestions(cls, value: Any) -> List[str]:
        if not isinstance(value, (list, tuple)):
            return []
        return [" ".join(item.split()) for item in value if isinstance(item, str) and item.strip()]

    @field_validator("simulated_results", mode="before")
    @classmethod
    def _results(cls, value: Any) -> List[Any]:
        if not isinstance(value, (list, tuple)):
            return []
        return [item for item in value if isinstance(item, dict)]

    def render_feedback(self) -> str:  # Flatten the verdict into the stored feedback text
        parts: List[str] = []
        if self.feedback:
            parts.append(self.feedback)
        if self.complexity:
            parts.append(f"Complexity: {self.complexity}")
        if self.suggestions:
            parts.append("Suggestions:\n" + "\n".join(f"- {item}" for item in self.suggestions))
        return "\n\n".join(parts)


def build_review_prompt(snapshot: Mapping[str, Any], code: str, language: str) -> str:
    return REVIEWER_TEMPLATE.format(problem=render_problem(snapshot), code=code, language=language)


def extract_review(content: str) -> Tuple[ReviewResult, bool]:  # Tolerant reviewer output parsing
    try:
        return ReviewResult.model_validate(decode_object(content)), True
    except (ParseError, ValidationError) as exc:
        logger.warning("Review output could not be parsed: %s", exc)
        # Prose replies are still useful feedback; the verdict stays unknown.
        return ReviewResult(feedback=(content or "").strip()), False


__all__ = ["ReviewResult", "build_review_prompt", "extract_review"]

from __future__ import annotations  # Interview session domain models

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


SessionStatus = Literal["active", "completed", "abandoned"]
MessageRole = Literal["user", "assistant", "system"]

SCORE_MIN = 0
SCORE_MAX = 10


class Turn(BaseModel):  # Single persisted conversation message
    id: str
    interview_id: str
    role: MessageRole
    content: str
    sequence: int = Field(default=0, ge=0)
    created_at: datetime


class SimulatedTestResult(BaseModel):  # Model-simulated test case outcome
    input: str = ""
    expected: str = ""
    actual: str = ""
    passed: bool = False

    @field_validator("input", "expected", "actual", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str:  # Models often emit numbers or lists for test values
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)


class Submission(BaseModel):  # Code artifact submitted during the interview
    id: str
    interview_id: str
    code: str
    language: str
    ai_feedback: str = ""
    is_correct: Optional[bool] = None
    test_results: List[SimulatedTestResult] = Field(default_factory=list)
    submitted_at: datetime


class ScoreSet(BaseModel):  # Bounded evaluation scores extracted from model output
    problem_solving_score: int = 0
    code_quality_score: int = 0
    communication_score: int = 0
    technical_score: int = 0
    overall_score: int = 0
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    detailed_feedback: str = ""

    @field_validator(
        "problem_solving_score",
        "code_quality_score",
        "communication_score",
        "technical_score",
        "overall_score",
        mode="before",
    )
    @classmethod
    def _clamp(cls, value: Any) -> int:  # Coerce raw scores into the 0-10 range
        return clamp_score(value)

    @field_validator("strengths", "improvements", mode="before")
    @classmethod
    def _clean_items(cls, value: Any) -> List[str]:  # Keep non-blank string entries only
        if not isinstance(value, (list, tuple)):
            return []
        items: List[str] = []
        for item in value:
            if isinstance(item, str):
                cleaned = " ".join(item.split())
                if cleaned:
                    items.append(cleaned)
        return items

    @field_validator("detailed_feedback", mode="before")
    @classmethod
    def _feedback_text(cls, value: Any) -> str:
        return value.strip() if isinstance(value, str) else ""


class Evaluation(ScoreSet):  # Persisted end-of-interview scorecard
    id: str
    interview_id: str
    created_at: datetime


class InterviewSession(BaseModel):  # Interview header plus owned records
    id: str
    user_id: str
    problem_id: str
    problem_snapshot: Dict[str, Any]
    status: SessionStatus = "active"
    provider_session_id: Optional[str] = None
    started_at: datetime
    ended_at: Optional[datetime] = None
    turns: List[Turn] = Field(default_factory=list)
    submissions: List[Submission] = Field(default_factory=list)
    evaluation: Optional[Evaluation] = None

    @model_validator(mode="after")
    def _check_end_timestamp(self) -> "InterviewSession":  # ended_at is set iff the session left active
        if (self.status == "active") != (self.ended_at is None):
            raise ValueError(f"ended_at inconsistent with status '{self.status}'")
        return self

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class StartResult(BaseModel):  # Returned by start_interview
    interview_id: str
    greeting: str


class MessageResult(BaseModel):  # Returned by send_message
    message_id: str
    ai_response: str


class EndResult(BaseModel):  # Returned by end_interview
    evaluation_id: str
    overall_score: int
    feedback: str


def clamp_score(value: Any) -> int:  # Tolerant numeric coercion bounded to SCORE_MIN..SCORE_MAX
    if isinstance(value, bool) or value is None:
        return SCORE_MIN
    if isinstance(value, str):
        text = value.strip().split("/", 1)[0].strip()
        try:
            value = float(text)
        except ValueError:
            return SCORE_MIN
    try:
        number = float(value)
    except (TypeError, ValueError):
        return SCORE_MIN
    if number != number:  # NaN
        return SCORE_MIN
    return int(round(max(SCORE_MIN, min(SCORE_MAX, number))))


__all__ = [
    "EndResult",
    "Evaluation",
    "InterviewSession",
    "MessageResult",
    "MessageRole",
    "SCORE_MAX",
    "SCORE_MIN",
    "ScoreSet",
    "SessionStatus",
    "SimulatedTestResult",
    "StartResult",
    "Submission",
    "Turn",
    "clamp_score",
]

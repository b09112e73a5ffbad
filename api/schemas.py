"""Pydantic schemas for the interview session API."""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field


class StartInterviewReq(BaseModel):
    user_id: str
    problem_id: str
    problem_snapshot: Any = None


class StartInterviewResp(BaseModel):
    interview_id: str
    greeting: str


class SendMessageReq(BaseModel):
    content: str = ""
    code: Optional[str] = None
    language: Optional[str] = None


class SendMessageResp(BaseModel):
    message_id: str
    ai_response: str


class MessageOut(BaseModel):
    id: str
    role: Literal["user", "assistant", "system"]
    content: str
    created_at: datetime


class EndInterviewResp(BaseModel):
    evaluation_id: str
    overall_score: int
    feedback: str


class SubmitCodeReq(BaseModel):
    code: str = ""
    language: str = ""


class InterviewSummary(BaseModel):
    interview_id: str
    user_id: str
    problem_id: str
    status: Literal["active", "completed", "abandoned"]
    started_at: datetime
    ended_at: Optional[datetime] = None


class LlmRouteInfo(BaseModel):
    module: str
    route: str
    model: str


class HealthResp(BaseModel):
    status: Literal["ok"] = "ok"
    llm_routes: List[LlmRouteInfo] = Field(default_factory=list)

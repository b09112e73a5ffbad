"""FastAPI routes for interview session control."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator, List

from fastapi import APIRouter, Depends, HTTPException

from api.schemas import (
    EndInterviewResp,
    InterviewSummary,
    MessageOut,
    SendMessageReq,
    SendMessageResp,
    StartInterviewReq,
    StartInterviewResp,
    SubmitCodeReq,
)
from interview_session import (
    GatewayError,
    InterviewService,
    InterviewSession,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    StoreError,
    Submission,
    build_service,
)


logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache(maxsize=1)
def get_service() -> InterviewService:  # Overridden in tests via app.dependency_overrides
    return build_service()


@contextmanager
def _http_errors(action: str) -> Iterator[None]:  # Map interview errors onto HTTP status codes
    try:
        yield
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except GatewayError as exc:
        logger.exception("LLM request failed while trying to %s", action)
        raise HTTPException(status_code=502, detail=f"LLM request failed: {exc}") from exc
    except StoreError as exc:
        logger.exception("Storage failure while trying to %s", action)
        raise HTTPException(status_code=500, detail=f"Unable to {action}") from exc


@router.post("/interviews", response_model=StartInterviewResp, status_code=201)
def start_interview(req: StartInterviewReq, service: InterviewService = Depends(get_service)) -> StartInterviewResp:
    with _http_errors("start interview"):
        result = service.start_interview(req.user_id, req.problem_id, req.problem_snapshot)
    return StartInterviewResp(interview_id=result.interview_id, greeting=result.greeting)


@router.get("/interviews/{interview_id}", response_model=InterviewSession)
def get_interview(interview_id: str, service: InterviewService = Depends(get_service)) -> InterviewSession:
    with _http_errors("load interview"):
        return service.get_interview(interview_id)


@router.post("/interviews/{interview_id}/messages", response_model=SendMessageResp)
def send_message(
    interview_id: str,
    req: SendMessageReq,
    service: InterviewService = Depends(get_service),
) -> SendMessageResp:
    with _http_errors("send message"):
        result = service.send_message(interview_id, req.content, code=req.code, language=req.language)
    return SendMessageResp(message_id=result.message_id, ai_response=result.ai_response)


@router.get("/interviews/{interview_id}/messages", response_model=List[MessageOut])
def get_history(interview_id: str, service: InterviewService = Depends(get_service)) -> List[MessageOut]:
    with _http_errors("load messages"):
        turns = service.get_history(interview_id)
    return [MessageOut(id=turn.id, role=turn.role, content=turn.content, created_at=turn.created_at) for turn in turns]


@router.post("/interviews/{interview_id}/end", response_model=EndInterviewResp)
def end_interview(interview_id: str, service: InterviewService = Depends(get_service)) -> EndInterviewResp:
    with _http_errors("end interview"):
        result = service.end_interview(interview_id)
    return EndInterviewResp(
        evaluation_id=result.evaluation_id,
        overall_score=result.overall_score,
        feedback=result.feedback,
    )


@router.post("/interviews/{interview_id}/submissions", response_model=Submission, status_code=201)
def submit_code(
    interview_id: str,
    req: SubmitCodeReq,
    service: InterviewService = Depends(get_service),
) -> Submission:
    with _http_errors("submit code"):
        return service.submit_code(interview_id, req.code, req.language)


@router.get("/users/{user_id}/interviews", response_model=List[InterviewSummary])
def list_interviews(user_id: str, service: InterviewService = Depends(get_service)) -> List[InterviewSummary]:
    with _http_errors("list interviews"):
        sessions = service.list_interviews(user_id)
    return [
        InterviewSummary(
            interview_id=session.id,
            user_id=session.user_id,
            problem_id=session.problem_id,
            status=session.status,
            started_at=session.started_at,
            ended_at=session.ended_at,
        )
        for session in sessions
    ]

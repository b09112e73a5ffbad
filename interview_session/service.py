from __future__ import annotations  # Public facade: argument validation in front of the state machine

import logging
from pathlib import Path
from typing import Any, List, Mapping, Optional
from uuid import UUID

from config import EVALUATOR_KEY, INTERVIEWER_KEY, REVIEWER_KEY, Settings, load_config, resolve_routes
from config import settings as default_settings
from llm_gateway import HttpClient, ModelGateway

from .errors import InvalidArgumentError
from .models import EndResult, InterviewSession, MessageResult, StartResult, Submission, Turn
from .state_machine import InterviewStateMachine


logger = logging.getLogger(__name__)


def parse_id(value: Any, field: str = "id") -> str:  # Canonical lowercase UUID string or InvalidArgumentError
    if isinstance(value, UUID):
        return str(value)
    try:
        return str(UUID(str(value).strip()))
    except (TypeError, ValueError, AttributeError) as exc:
        raise InvalidArgumentError(f"{field} must be a UUID, got {value!r}") from exc


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{field} must be a non-empty string")
    return value


def _optional_text(value: Any, field: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidArgumentError(f"{field} must be a string")
    return value


class InterviewService:  # Entry point used by the HTTP layer
    def __init__(self, machine: InterviewStateMachine) -> None:
        self._machine = machine

    @property
    def machine(self) -> InterviewStateMachine:
        return self._machine

    def start_interview(self, user_id: Any, problem_id: Any, problem_snapshot: Any) -> StartResult:
        user = parse_id(user_id, "user_id")
        problem = parse_id(problem_id, "problem_id")
        if not isinstance(problem_snapshot, Mapping):
            raise InvalidArgumentError("problem_snapshot must be a JSON object")
        return self._machine.start(user, problem, dict(problem_snapshot))

    def send_message(
        self,
        interview_id: Any,
        content: Any,
        code: Any = None,
        language: Any = None,
    ) -> MessageResult:
        return self._machine.send_message(
            parse_id(interview_id, "interview_id"),
            _require_text(content, "content"),
            code=_optional_text(code, "code"),
            language=_optional_text(language, "language"),
        )

    def get_history(self, interview_id: Any) -> List[Turn]:
        return self._machine.store.list_messages(parse_id(interview_id, "interview_id"))

    def end_interview(self, interview_id: Any) -> EndResult:
        evaluation = self._machine.end(parse_id(interview_id, "interview_id"))
        return EndResult(
            evaluation_id=evaluation.id,
            overall_score=evaluation.overall_score,
            feedback=evaluation.detailed_feedback,
        )

    def get_interview(self, interview_id: Any) -> InterviewSession:
        return self._machine.store.find_session(parse_id(interview_id, "interview_id"))

    def list_interviews(self, user_id: Any) -> List[InterviewSession]:
        return self._machine.store.list_sessions_by_user(parse_id(user_id, "user_id"))

    def submit_code(self, interview_id: Any, code: Any, language: Any) -> Submission:
        return self._machine.submit_code(
            parse_id(interview_id, "interview_id"),
            _require_text(code, "code"),
            _require_text(language, "language").strip(),
        )


def build_service(
    app_settings: Optional[Settings] = None,
    *,
    client: Optional[HttpClient] = None,
) -> InterviewService:
    """Wire store, routes and gateways from settings and ``app_config.json``."""

    # Imported here: storage depends on this package's models.
    from storage.interviews import InterviewStore

    cfg_settings = app_settings or default_settings
    routes = resolve_routes(load_config(Path(cfg_settings.CONFIG_PATH)))
    logger.info(
        "Building interview service db=%s interviewer=%s evaluator=%s reviewer=%s",
        cfg_settings.DB_PATH,
        routes[INTERVIEWER_KEY].name,
        routes[EVALUATOR_KEY].name,
        routes[REVIEWER_KEY].name,
    )
    machine = InterviewStateMachine(
        InterviewStore(cfg_settings.DB_PATH),
        interviewer=ModelGateway(routes[INTERVIEWER_KEY], client=client),
        evaluator=ModelGateway(routes[EVALUATOR_KEY], client=client),
        reviewer=ModelGateway(routes[REVIEWER_KEY], client=client),
        fallback_greeting=cfg_settings.FALLBACK_GREETING,
        transcript_limit=cfg_settings.TRANSCRIPT_CHAR_LIMIT,
    )
    return InterviewService(machine)


__all__ = ["InterviewService", "build_service", "parse_id"]

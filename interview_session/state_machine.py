from __future__ import annotations  # Interview lifecycle orchestration over store and model gateways

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Sequence

from llm_gateway import LlmGatewayError
from observability import log_event, span

from .context import assemble, attach_code, system_instruction
from .errors import GatewayError, InvalidStateError, NotFoundError
from .evaluation import build_evaluation_prompt, extract_scores
from .models import (
    Evaluation,
    InterviewSession,
    MessageResult,
    MessageRole,
    ScoreSet,
    SessionStatus,
    SimulatedTestResult,
    StartResult,
    Submission,
    Turn,
)
from .prompts import GREETING_REQUEST
from .review import build_review_prompt, extract_review


logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_GREETING = "Hello! I'm ready to help you with this problem. How would you like to start?"

TRANSITIONS: Dict[SessionStatus, frozenset] = {
    "active": frozenset({"completed", "abandoned"}),
    "completed": frozenset(),
    "abandoned": frozenset(),
}


def can_transition(current: SessionStatus, target: SessionStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


class ReplyGateway(Protocol):  # Text generation used by the lifecycle
    def generate_reply(
        self,
        system_instruction: str,
        prior_turns: Sequence[Dict[str, str]],
        new_turn: str,
    ) -> str: ...

    def generate_once(self, prompt: str) -> str: ...


class SessionStore(Protocol):  # Persistence used by the lifecycle
    def create_session(self, *, user_id: str, problem_id: str, problem_snapshot: Dict[str, Any]) -> InterviewSession: ...

    def get_session(self, interview_id: str) -> InterviewSession: ...

    def find_session(self, interview_id: str) -> InterviewSession: ...

    def update_session(self, session: InterviewSession) -> None: ...

    def append_message(self, interview_id: str, role: MessageRole, content: str) -> Turn: ...

    def list_messages(self, interview_id: str) -> list[Turn]: ...

    def list_submissions(self, interview_id: str) -> list[Submission]: ...

    def create_submission(self, interview_id: str, **fields: Any) -> Submission: ...

    def create_evaluation(self, interview_id: str, scores: ScoreSet) -> Evaluation: ...

    def find_evaluation(self, interview_id: str) -> Evaluation: ...

    def list_sessions_by_user(self, user_id: str) -> list[InterviewSession]: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InterviewStateMachine:  # active -> completed | abandoned, with the model calls each step needs
    def __init__(
        self,
        store: SessionStore,
        *,
        interviewer: ReplyGateway,
        evaluator: Optional[ReplyGateway] = None,
        reviewer: Optional[ReplyGateway] = None,
        fallback_greeting: str = DEFAULT_FALLBACK_GREETING,
        transcript_limit: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._interviewer = interviewer
        self._evaluator = evaluator or interviewer
        self._reviewer = reviewer or self._evaluator
        self._fallback_greeting = fallback_greeting
        self._transcript_limit = transcript_limit
        self._clock = clock

    @property
    def store(self) -> SessionStore:
        return self._store

    def start(self, user_id: str, problem_id: str, problem_snapshot: Mapping[str, Any]) -> StartResult:
        session = self._store.create_session(
            user_id=user_id,
            problem_id=problem_id,
            problem_snapshot=dict(problem_snapshot),
        )
        log_event("interview_started", session.id, user_id=user_id, problem_id=problem_id)

        prompt = system_instruction(session.problem_snapshot) + GREETING_REQUEST
        greeting = ""
        with span("greeting", session.id):
            try:
                greeting = self._interviewer.generate_once(prompt).strip()
            except LlmGatewayError as exc:
                logger.warning("Greeting generation failed for %s, using fallback: %s", session.id, exc)
        if not greeting:
            greeting = self._fallback_greeting

        self._store.append_message(session.id, "assistant", greeting)
        return StartResult(interview_id=session.id, greeting=greeting)

    def send_message(
        self,
        interview_id: str,
        content: str,
        code: Optional[str] = None,
        language: Optional[str] = None,
    ) -> MessageResult:
        session = self._store.get_session(interview_id)
        self._require_active(session, "send a message")

        user_turn = self._store.append_message(interview_id, "user", attach_code(content, code, language))
        context = assemble(self._store.list_messages(interview_id), session.problem_snapshot, user_turn)

        with span("reply", interview_id):
            try:
                reply = self._interviewer.generate_reply(
                    context.system_instruction,
                    context.history,
                    context.new_turn,
                )
            except LlmGatewayError as exc:
                log_event("reply_failed", interview_id, level=logging.WARNING, error=str(exc))
                raise GatewayError(f"Interviewer reply failed for interview '{interview_id}'") from exc
        if not (reply or "").strip():
            # The user turn stays in the log; the candidate can resend.
            raise GatewayError(f"Interviewer returned an empty reply for interview '{interview_id}'")

        assistant_turn = self._store.append_message(interview_id, "assistant", reply)
        log_event("message_exchanged", interview_id, turns=assistant_turn.sequence)
        return MessageResult(message_id=assistant_turn.id, ai_response=reply)

    def end(self, interview_id: str) -> Evaluation:
        """Complete the interview and score it.

        Idempotent once an evaluation exists. A completed interview without an
        evaluation (earlier scoring failed) only re-runs the scoring step.
        """

        session = self._store.get_session(interview_id)
        if session.status == "completed":
            try:
                return self._store.find_evaluation(interview_id)
            except NotFoundError:
                logger.info("Interview %s completed without evaluation; re-running scoring", interview_id)
        else:
            session = self._transition(session, "completed")
        return self._evaluate(session)

    def abandon(self, interview_id: str) -> InterviewSession:
        session = self._store.get_session(interview_id)
        return self._transition(session, "abandoned")

    def submit_code(self, interview_id: str, code: str, language: str) -> Submission:
        session = self._store.get_session(interview_id)
        self._require_active(session, "submit code")

        prompt = build_review_prompt(session.problem_snapshot, code, language)
        feedback = ""
        is_correct: Optional[bool] = None
        results: list[SimulatedTestResult] = []
        with span("review", interview_id):
            try:
                review, parsed = extract_review(self._reviewer.generate_once(prompt))
            except LlmGatewayError as exc:
                logger.warning("Code review failed for %s; storing submission without feedback: %s", interview_id, exc)
            else:
                feedback = review.render_feedback()
                is_correct = review.is_correct
                results = review.simulated_results
                log_event("code_reviewed", interview_id, language=language, parsed=parsed)

        return self._store.create_submission(
            interview_id,
            code=code,
            language=language,
            ai_feedback=feedback,
            is_correct=is_correct,
            test_results=results,
        )

    def _require_active(self, session: InterviewSession, action: str) -> None:
        if not session.is_active:
            raise InvalidStateError(f"Cannot {action}: interview '{session.id}' is {session.status}")

    def _transition(self, session: InterviewSession, target: SessionStatus) -> InterviewSession:
        if not can_transition(session.status, target):
            raise InvalidStateError(
                f"Interview '{session.id}' cannot move from {session.status} to {target}"
            )
        updated = session.model_copy(update={"status": target, "ended_at": self._clock()})
        self._store.update_session(updated)
        log_event("status_changed", session.id, status=target)
        return updated

    def _evaluate(self, session: InterviewSession) -> Evaluation:
        prompt = build_evaluation_prompt(
            session.problem_snapshot,
            self._store.list_messages(session.id),
            self._store.list_submissions(session.id),
            transcript_limit=self._transcript_limit,
        )
        with span("evaluation", session.id):
            try:
                raw = self._evaluator.generate_once(prompt)
            except LlmGatewayError as exc:
                log_event("evaluation_failed", session.id, level=logging.WARNING, error=str(exc))
                raise GatewayError(f"Evaluation failed for interview '{session.id}'") from exc

        scores, parsed = extract_scores(raw)
        if not parsed:
            log_event("evaluation_parse_failed", session.id, level=logging.WARNING, parsed=False)
        evaluation = self._store.create_evaluation(session.id, scores)
        log_event("interview_completed", session.id, overall_score=evaluation.overall_score, parsed=parsed)
        return evaluation


__all__ = [
    "DEFAULT_FALLBACK_GREETING",
    "InterviewStateMachine",
    "ReplyGateway",
    "SessionStore",
    "TRANSITIONS",
    "can_transition",
]

from __future__ import annotations  # Interview conversation store

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence
from uuid import uuid4

from interview_session.errors import NotFoundError, StoreError
from interview_session.models import (
    Evaluation,
    InterviewSession,
    MessageRole,
    ScoreSet,
    SimulatedTestResult,
    Submission,
    Turn,
)

from .migrate import migrate
from .sqlite import get_conn


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ts(value: datetime) -> str:  # Fixed-width UTC text so SQL ordering matches time ordering
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


@contextmanager
def _store_errors(action: str) -> Iterator[None]:  # Surface sqlite failures as StoreError
    try:
        yield
    except sqlite3.Error as exc:
        logger.error("Store failure while trying to %s: %s", action, exc)
        raise StoreError(f"Unable to {action}") from exc


class InterviewStore:  # SQLite-backed sessions, turns, submissions and evaluations
    def __init__(self, path: Path | str) -> None:  # Initialize store and schema
        self._path = str(path)
        with _store_errors("initialize schema"):
            migrate(self._path)

    @property
    def path(self) -> str:
        return self._path

    def create_session(
        self,
        *,
        user_id: str,
        problem_id: str,
        problem_snapshot: Dict[str, Any],
    ) -> InterviewSession:  # Persist a new active session
        session = InterviewSession(
            id=str(uuid4()),
            user_id=user_id,
            problem_id=problem_id,
            problem_snapshot=problem_snapshot,
            status="active",
            started_at=_utcnow(),
        )
        with _store_errors("create interview"), get_conn(self._path) as conn:
            conn.execute(
                """
                INSERT INTO interviews (id, user_id, problem_id, problem_snapshot, status,
                                        provider_session_id, started_at, ended_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    session.id,
                    session.user_id,
                    session.problem_id,
                    json.dumps(session.problem_snapshot, ensure_ascii=False),
                    session.status,
                    session.provider_session_id,
                    _ts(session.started_at),
                    None,
                ),
            )
        return session

    def get_session(self, interview_id: str) -> InterviewSession:  # Load the session header only
        with _store_errors("load interview"), get_conn(self._path) as conn:
            row = conn.execute("SELECT * FROM interviews WHERE id = ?", (interview_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"Interview '{interview_id}' not found")
        return _session_from_row(row)

    def find_session(self, interview_id: str) -> InterviewSession:  # Load the session with its owned records
        session = self.get_session(interview_id)
        return session.model_copy(
            update={
                "turns": self.list_messages(interview_id),
                "submissions": self.list_submissions(interview_id),
                "evaluation": self._evaluation_or_none(interview_id),
            }
        )

    def list_sessions_by_user(self, user_id: str) -> List[InterviewSession]:  # Newest first
        with _store_errors("list interviews"), get_conn(self._path) as conn:
            rows = conn.execute(
                "SELECT * FROM interviews WHERE user_id = ? ORDER BY started_at DESC, id DESC",
                (user_id,),
            ).fetchall()
        return [_session_from_row(row) for row in rows]

    def update_session(self, session: InterviewSession) -> None:  # Persist status/end timestamp changes
        with _store_errors("update interview"), get_conn(self._path) as conn:
            cur = conn.execute(
                """
                UPDATE interviews
                SET status = ?, ended_at = ?, provider_session_id = ?
                WHERE id = ?
                """,
                (
                    session.status,
                    _ts(session.ended_at) if session.ended_at else None,
                    session.provider_session_id,
                    session.id,
                ),
            )
            if cur.rowcount == 0:
                raise NotFoundError(f"Interview '{session.id}' not found")

    def append_message(self, interview_id: str, role: MessageRole, content: str) -> Turn:  # Append one turn
        with _store_errors("append message"), get_conn(self._path) as conn:
            self._require_session(conn, interview_id)
            last = conn.execute(
                """
                SELECT COALESCE(MAX(sequence), 0) AS sequence, MAX(created_at) AS created_at
                FROM messages WHERE interview_id = ?
                """,
                (interview_id,),
            ).fetchone()
            created_at = _utcnow()
            if last["created_at"]:
                # Keep creation times monotonic per interview even if the clock steps back.
                created_at = max(created_at, datetime.fromisoformat(last["created_at"]))
            turn = Turn(
                id=str(uuid4()),
                interview_id=interview_id,
                role=role,
                content=content,
                sequence=int(last["sequence"]) + 1,
                created_at=created_at,
            )
            conn.execute(
                """
                INSERT INTO messages (id, interview_id, role, content, sequence, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (turn.id, turn.interview_id, turn.role, turn.content, turn.sequence, _ts(turn.created_at)),
            )
        return turn

    def list_messages(self, interview_id: str) -> List[Turn]:  # Ascending by creation time
        with _store_errors("list messages"), get_conn(self._path) as conn:
            self._require_session(conn, interview_id)
            rows = conn.execute(
                """
                SELECT id, interview_id, role, content, sequence, created_at
                FROM messages
                WHERE interview_id = ?
                ORDER BY created_at ASC, sequence ASC
                """,
                (interview_id,),
            ).fetchall()
        return [
            Turn(
                id=row["id"],
                interview_id=row["interview_id"],
                role=row["role"],
                content=row["content"],
                sequence=row["sequence"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    def create_submission(
        self,
        interview_id: str,
        *,
        code: str,
        language: str,
        ai_feedback: str = "",
        is_correct: Optional[bool] = None,
        test_results: Sequence[SimulatedTestResult] = (),
    ) -> Submission:  # Append a code submission
        submission = Submission(
            id=str(uuid4()),
            interview_id=interview_id,
            code=code,
            language=language,
            ai_feedback=ai_feedback,
            is_correct=is_correct,
            test_results=list(test_results),
            submitted_at=_utcnow(),
        )
        with _store_errors("create submission"), get_conn(self._path) as conn:
            self._require_session(conn, interview_id)
            conn.execute(
                """
                INSERT INTO submissions (id, interview_id, code, language, ai_feedback,
                                         is_correct, test_results, submitted_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    submission.id,
                    submission.interview_id,
                    submission.code,
                    submission.language,
                    submission.ai_feedback,
                    None if submission.is_correct is None else int(submission.is_correct),
                    json.dumps([item.model_dump() for item in submission.test_results]),
                    _ts(submission.submitted_at),
                ),
            )
        return submission

    def list_submissions(self, interview_id: str) -> List[Submission]:
        with _store_errors("list submissions"), get_conn(self._path) as conn:
            self._require_session(conn, interview_id)
            rows = conn.execute(
                "SELECT * FROM submissions WHERE interview_id = ? ORDER BY submitted_at ASC, rowid ASC",
                (interview_id,),
            ).fetchall()
        return [
            Submission(
                id=row["id"],
                interview_id=row["interview_id"],
                code=row["code"],
                language=row["language"],
                ai_feedback=row["ai_feedback"] or "",
                is_correct=None if row["is_correct"] is None else bool(row["is_correct"]),
                test_results=json.loads(row["test_results"] or "[]"),
                submitted_at=row["submitted_at"],
            )
            for row in rows
        ]

    def create_evaluation(self, interview_id: str, scores: ScoreSet) -> Evaluation:  # Insert the single scorecard
        evaluation = Evaluation(
            id=str(uuid4()),
            interview_id=interview_id,
            created_at=_utcnow(),
            **scores.model_dump(),
        )
        with _store_errors("create evaluation"), get_conn(self._path) as conn:
            self._require_session(conn, interview_id)
            conn.execute(
                """
                INSERT INTO evaluations (id, interview_id, problem_solving_score, code_quality_score,
                                         communication_score, technical_score, overall_score,
                                         strengths, improvements, detailed_feedback, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    evaluation.id,
                    evaluation.interview_id,
                    evaluation.problem_solving_score,
                    evaluation.code_quality_score,
                    evaluation.communication_score,
                    evaluation.technical_score,
                    evaluation.overall_score,
                    json.dumps(evaluation.strengths, ensure_ascii=False),
                    json.dumps(evaluation.improvements, ensure_ascii=False),
                    evaluation.detailed_feedback,
                    _ts(evaluation.created_at),
                ),
            )
        return evaluation

    def find_evaluation(self, interview_id: str) -> Evaluation:  # Raise NotFoundError when not yet evaluated
        evaluation = self._evaluation_or_none(interview_id)
        if evaluation is None:
            raise NotFoundError(f"Evaluation for interview '{interview_id}' not found")
        return evaluation

    def _evaluation_or_none(self, interview_id: str) -> Optional[Evaluation]:
        with _store_errors("load evaluation"), get_conn(self._path) as conn:
            row = conn.execute("SELECT * FROM evaluations WHERE interview_id = ?", (interview_id,)).fetchone()
        if row is None:
            return None
        return Evaluation(
            id=row["id"],
            interview_id=row["interview_id"],
            problem_solving_score=row["problem_solving_score"],
            code_quality_score=row["code_quality_score"],
            communication_score=row["communication_score"],
            technical_score=row["technical_score"],
            overall_score=row["overall_score"],
            strengths=json.loads(row["strengths"] or "[]"),
            improvements=json.loads(row["improvements"] or "[]"),
            detailed_feedback=row["detailed_feedback"] or "",
            created_at=row["created_at"],
        )

    def _require_session(self, conn: sqlite3.Connection, interview_id: str) -> None:
        row = conn.execute("SELECT 1 FROM interviews WHERE id = ?", (interview_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"Interview '{interview_id}' not found")


def _session_from_row(row: sqlite3.Row) -> InterviewSession:
    return InterviewSession(
        id=row["id"],
        user_id=row["user_id"],
        problem_id=row["problem_id"],
        problem_snapshot=json.loads(row["problem_snapshot"]),
        status=row["status"],
        provider_session_id=row["provider_session_id"],
        started_at=row["started_at"],
        ended_at=row["ended_at"],
    )


__all__ = ["InterviewStore"]

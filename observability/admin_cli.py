"""Lightweight CLI helpers for inspecting stored interviews."""
from __future__ import annotations

import argparse
from typing import Optional

from storage.sqlite import get_conn


def tail_interviews(limit: int = 20, db_path: Optional[str] = None) -> list[str]:
    lines: list[str] = []
    with get_conn(db_path) as conn:
        rows = conn.execute(
            """
            SELECT i.id, i.user_id, i.problem_id, i.status, i.started_at, e.overall_score
            FROM interviews i
            LEFT JOIN evaluations e ON e.interview_id = i.id
            ORDER BY i.started_at DESC
            LIMIT ?
            """,
            (limit,),
        ).fetchall()
    for row in rows:
        score = "-" if row["overall_score"] is None else row["overall_score"]
        lines.append(
            f"[{row['started_at']}] {row['id']} user={row['user_id']} problem={row['problem_id']} "
            f"status={row['status']} overall={score}"
        )
    return lines


def show_transcript(interview_id: str, db_path: Optional[str] = None) -> list[str]:
    with get_conn(db_path) as conn:
        rows = conn.execute(
            """
            SELECT role, content, created_at
            FROM messages
            WHERE interview_id = ?
            ORDER BY created_at ASC, sequence ASC
            """,
            (interview_id,),
        ).fetchall()
    return [f"[{row['created_at']}] [{row['role']}]: {row['content']}" for row in rows]


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-interviews", type=int, help="Show the latest interviews")
    parser.add_argument("--transcript", help="Print the message log of one interview")
    args = parser.parse_args()

    if args.tail_interviews:
        print("\n".join(tail_interviews(args.tail_interviews)))
    if args.transcript:
        print("\n".join(show_transcript(args.transcript)))


if __name__ == "__main__":
    main()

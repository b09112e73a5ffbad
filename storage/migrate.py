"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable, Optional

from config.settings import settings

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS interviews (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL,
  problem_id TEXT NOT NULL,
  problem_snapshot TEXT NOT NULL,
  status TEXT NOT NULL DEFAULT 'active',
  provider_session_id TEXT,
  started_at TEXT NOT NULL,
  ended_at TEXT
);
""",
    """
CREATE INDEX IF NOT EXISTS idx_interviews_user ON interviews (user_id, started_at);
""",
    """
CREATE TABLE IF NOT EXISTS messages (
  id TEXT PRIMARY KEY,
  interview_id TEXT NOT NULL,
  role TEXT NOT NULL,
  content TEXT NOT NULL,
  sequence INTEGER NOT NULL,
  created_at TEXT NOT NULL,
  UNIQUE (interview_id, sequence),
  FOREIGN KEY (interview_id) REFERENCES interviews(id)
);
""",
    """
CREATE TABLE IF NOT EXISTS submissions (
  id TEXT PRIMARY KEY,
  interview_id TEXT NOT NULL,
  code TEXT NOT NULL,
  language TEXT NOT NULL,
  ai_feedback TEXT NOT NULL DEFAULT '',
  is_correct INTEGER,
  test_results TEXT NOT NULL,
  submitted_at TEXT NOT NULL,
  FOREIGN KEY (interview_id) REFERENCES interviews(id)
);
""",
    """
CREATE TABLE IF NOT EXISTS evaluations (
  id TEXT PRIMARY KEY,
  interview_id TEXT NOT NULL UNIQUE,
  problem_solving_score INTEGER NOT NULL,
  code_quality_score INTEGER NOT NULL,
  communication_score INTEGER NOT NULL,
  technical_score INTEGER NOT NULL,
  overall_score INTEGER NOT NULL,
  strengths TEXT NOT NULL,
  improvements TEXT NOT NULL,
  detailed_feedback TEXT NOT NULL,
  created_at TEXT NOT NULL,
  FOREIGN KEY (interview_id) REFERENCES interviews(id)
);
""",
]


def migrate(db_path: Optional[str] = None) -> None:
    """Apply schema migrations to the SQLite database."""

    db_path = str(db_path or settings.DB_PATH)
    directory = os.path.dirname(db_path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    migrate()

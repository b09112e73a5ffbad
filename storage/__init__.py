"""SQLite persistence for interview sessions."""
from .interviews import InterviewStore
from .migrate import migrate
from .sqlite import get_conn

__all__ = ["InterviewStore", "get_conn", "migrate"]

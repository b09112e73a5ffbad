import json
import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.settings import settings
from interview_session import InterviewService, InterviewStateMachine
from llm_gateway import LlmGatewayError
from storage.interviews import InterviewStore
from storage.migrate import migrate


TWO_SUM = {
    "title": "Two Sum",
    "difficulty": "easy",
    "description": "Given an array of integers nums and an integer target, return indices of the two numbers that add up to target.",
    "examples": [{"input": "nums = [2,7,11,15], target = 9", "output": "[0,1]"}],
}

EVALUATION_JSON = json.dumps(
    {
        "problem_solving_score": 8,
        "code_quality_score": 7,
        "communication_score": 9,
        "technical_score": 8,
        "overall_score": 8,
        "strengths": ["Clear hash map approach", "Explained trade-offs"],
        "improvements": ["Mention edge cases earlier"],
        "detailed_feedback": "Solid interview with an optimal solution.",
    }
)


class FakeGateway:
    """Scripted stand-in for ``ModelGateway``; records every call."""

    def __init__(self, replies=None, once=None):
        self.replies = list(replies or [])
        self.once = list(once or [])
        self.reply_calls = []
        self.once_calls = []
        self.fail_reply = False
        self.fail_once = False

    def generate_reply(self, system_instruction, prior_turns, new_turn):
        self.reply_calls.append(
            {"system_instruction": system_instruction, "prior_turns": list(prior_turns), "new_turn": new_turn}
        )
        if self.fail_reply:
            raise LlmGatewayError("LLM returned status 503")
        return self.replies.pop(0) if self.replies else "Can you walk me through your approach?"

    def generate_once(self, prompt):
        self.once_calls.append(prompt)
        if self.fail_once:
            raise LlmGatewayError("LLM transport failed")
        return self.once.pop(0) if self.once else "Welcome! How would you approach this problem?"


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


@pytest.fixture
def store(tmp_db):
    return InterviewStore(tmp_db)


@pytest.fixture
def interviewer():
    return FakeGateway()


@pytest.fixture
def evaluator():
    return FakeGateway(once=[EVALUATION_JSON])


@pytest.fixture
def reviewer():
    return FakeGateway()


@pytest.fixture
def machine(store, interviewer, evaluator, reviewer):
    return InterviewStateMachine(store, interviewer=interviewer, evaluator=evaluator, reviewer=reviewer)


@pytest.fixture
def service(machine):
    return InterviewService(machine)


@pytest.fixture
def two_sum():
    return dict(TWO_SUM)


@pytest.fixture
def evaluation_json():
    return EVALUATION_JSON


@pytest.fixture
def make_gateway():
    return FakeGateway

"""Tests for the interview lifecycle state machine."""
from __future__ import annotations

import sqlite3
from datetime import datetime, timezone

import pytest

from interview_session.errors import GatewayError, InvalidStateError, NotFoundError, StoreError
from interview_session.prompts import PRIMING_ACK
from interview_session.state_machine import (
    DEFAULT_FALLBACK_GREETING,
    InterviewStateMachine,
    can_transition,
)
from llm_gateway import LlmGatewayError
import storage.interviews as interviews_module


USER = "11111111-1111-4111-8111-111111111111"
PROBLEM = "22222222-2222-4222-8222-222222222222"


def _start(machine: InterviewStateMachine, snapshot: dict) -> str:
    return machine.start(USER, PROBLEM, snapshot).interview_id


def test_transition_table():
    assert can_transition("active", "completed")
    assert can_transition("active", "abandoned")
    assert not can_transition("completed", "active")
    assert not can_transition("completed", "abandoned")
    assert not can_transition("abandoned", "completed")


def test_start_persists_greeting_as_first_turn(machine, store, interviewer, two_sum):
    result = machine.start(USER, PROBLEM, two_sum)

    turns = store.list_messages(result.interview_id)
    assert result.greeting == "Welcome! How would you approach this problem?"
    assert [(turn.role, turn.content) for turn in turns] == [("assistant", result.greeting)]
    assert "Two Sum" in interviewer.once_calls[0]
    assert "Please start the interview" in interviewer.once_calls[0]
    session = store.get_session(result.interview_id)
    assert session.status == "active"
    assert session.problem_snapshot == two_sum


def test_start_falls_back_when_greeting_fails(machine, store, interviewer, two_sum, caplog):
    interviewer.fail_once = True

    with caplog.at_level("WARNING"):
        result = machine.start(USER, PROBLEM, two_sum)

    assert result.greeting == DEFAULT_FALLBACK_GREETING
    assert store.list_messages(result.interview_id)[0].content == DEFAULT_FALLBACK_GREETING
    assert "using fallback" in caplog.text


def test_start_uses_configured_fallback(store, make_gateway, two_sum):
    interviewer = make_gateway(once=["   "])
    machine = InterviewStateMachine(store, interviewer=interviewer, fallback_greeting="Hi!")

    assert machine.start(USER, PROBLEM, two_sum).greeting == "Hi!"


def test_snapshot_is_frozen_at_start(machine, store, two_sum):
    interview_id = _start(machine, two_sum)
    two_sum["title"] = "Three Sum"

    assert store.get_session(interview_id).problem_snapshot["title"] == "Two Sum"


def test_send_message_round_trip(machine, store, interviewer, two_sum):
    interviewer.replies = ["What is the time complexity?"]
    interview_id = _start(machine, two_sum)

    result = machine.send_message(interview_id, "I would use a hash map.")

    turns = store.list_messages(interview_id)
    assert result.ai_response == "What is the time complexity?"
    assert result.message_id == turns[-1].id
    assert [turn.role for turn in turns] == ["assistant", "user", "assistant"]
    call = interviewer.reply_calls[0]
    assert call["new_turn"] == "I would use a hash map."
    assert len(call["prior_turns"]) == 1 + 2
    assert call["prior_turns"][1] == {"role": "assistant", "content": PRIMING_ACK}
    assert call["prior_turns"][2]["content"] == turns[0].content


def test_attached_code_changes_only_content(machine, store, interviewer, two_sum):
    interview_id = _start(machine, two_sum)
    machine.send_message(interview_id, "First idea.")

    machine.send_message(interview_id, "Here is my code", code="def two_sum(nums, target): ...", language="python")

    last_call = interviewer.reply_calls[-1]
    assert len(last_call["prior_turns"]) == 3 + 2
    assert last_call["new_turn"].startswith("Here is my code\n\n[USER ATTACHED CODE (python)]:")
    assert "def two_sum(nums, target): ..." in last_call["new_turn"]
    stored_user_turn = store.list_messages(interview_id)[-2]
    assert stored_user_turn.content == last_call["new_turn"]


def test_gateway_failure_keeps_user_turn(machine, store, interviewer, two_sum):
    interview_id = _start(machine, two_sum)
    interviewer.fail_reply = True

    with pytest.raises(GatewayError) as excinfo:
        machine.send_message(interview_id, "Are negative numbers allowed?")

    assert isinstance(excinfo.value.__cause__, LlmGatewayError)
    turns = store.list_messages(interview_id)
    assert [turn.role for turn in turns] == ["assistant", "user"]
    assert turns[-1].content == "Are negative numbers allowed?"


def test_empty_reply_is_a_gateway_failure(machine, store, interviewer, two_sum):
    interview_id = _start(machine, two_sum)
    interviewer.replies = ["  "]

    with pytest.raises(GatewayError):
        machine.send_message(interview_id, "Hello?")

    assert len(store.list_messages(interview_id)) == 2


def test_end_is_idempotent(machine, store, evaluator, two_sum):
    interview_id = _start(machine, two_sum)
    machine.send_message(interview_id, "Hash map, one pass.")

    first = machine.end(interview_id)
    second = machine.end(interview_id)

    assert first.id == second.id
    assert first.model_dump() == second.model_dump()
    assert len(evaluator.once_calls) == 1
    session = store.get_session(interview_id)
    assert session.status == "completed"
    assert session.ended_at is not None


def test_send_after_end_is_rejected_without_appending(machine, store, two_sum):
    interview_id = _start(machine, two_sum)
    machine.end(interview_id)
    before = len(store.list_messages(interview_id))

    with pytest.raises(InvalidStateError):
        machine.send_message(interview_id, "One more thing")
    with pytest.raises(InvalidStateError):
        machine.submit_code(interview_id, "pass", "python")

    assert len(store.list_messages(interview_id)) == before
    assert store.list_submissions(interview_id) == []


def test_abandoned_session_rejects_everything(machine, store, two_sum):
    interview_id = _start(machine, two_sum)

    abandoned = machine.abandon(interview_id)

    assert abandoned.status == "abandoned"
    assert store.get_session(interview_id).ended_at is not None
    with pytest.raises(InvalidStateError):
        machine.send_message(interview_id, "hello")
    with pytest.raises(InvalidStateError):
        machine.end(interview_id)
    with pytest.raises(InvalidStateError):
        machine.abandon(interview_id)
    assert len(store.list_messages(interview_id)) == 1


def test_malformed_evaluation_still_completes(store, make_gateway, two_sum):
    evaluator = make_gateway(once=["I think the candidate did fine overall!"])
    machine = InterviewStateMachine(store, interviewer=make_gateway(), evaluator=evaluator)
    interview_id = _start(machine, two_sum)

    evaluation = machine.end(interview_id)

    assert evaluation.overall_score == 0
    assert evaluation.strengths == []
    assert evaluation.detailed_feedback == ""
    assert store.get_session(interview_id).status == "completed"
    assert store.find_evaluation(interview_id).id == evaluation.id


def test_failed_evaluation_can_be_retried(store, make_gateway, evaluation_json, two_sum):
    evaluator = make_gateway(once=[evaluation_json])
    evaluator.fail_once = True
    fixed = datetime(2024, 6, 1, tzinfo=timezone.utc)
    machine = InterviewStateMachine(store, interviewer=make_gateway(), evaluator=evaluator, clock=lambda: fixed)
    interview_id = _start(machine, two_sum)

    with pytest.raises(GatewayError):
        machine.end(interview_id)

    session = store.get_session(interview_id)
    assert session.status == "completed"
    assert session.ended_at == fixed
    with pytest.raises(NotFoundError):
        store.find_evaluation(interview_id)

    evaluator.fail_once = False
    evaluation = machine.end(interview_id)

    assert evaluation.overall_score == 8
    assert store.get_session(interview_id).ended_at == fixed
    assert len(evaluator.once_calls) == 2


def test_evaluation_prompt_includes_transcript_and_submissions(machine, evaluator, reviewer, two_sum):
    reviewer.once = ['{"is_correct": true, "feedback": "Works."}']
    interview_id = _start(machine, two_sum)
    machine.send_message(interview_id, "Hash map from value to index.")
    machine.submit_code(interview_id, "def two_sum(nums, target): ...", "python")

    machine.end(interview_id)

    prompt = evaluator.once_calls[0]
    assert "[user]: Hash map from value to index." in prompt
    assert "Code (python): def two_sum(nums, target): ...\nResult: Works." in prompt


def test_submit_code_stores_review(machine, store, reviewer, two_sum):
    reviewer.once = [
        '```json\n{"is_correct": false, "feedback": "Misses duplicates.", "complexity": "Time: O(n)",'
        ' "suggestions": ["Check index before insert"],'
        ' "simulated_results": [{"input": "[3,3], 6", "expected": "[0,1]", "actual": "[]", "passed": false}]}\n```'
    ]
    interview_id = _start(machine, two_sum)

    submission = machine.submit_code(interview_id, "def two_sum(): ...", "python")

    assert submission.is_correct is False
    assert submission.ai_feedback.startswith("Misses duplicates.")
    assert "Complexity: Time: O(n)" in submission.ai_feedback
    assert submission.test_results[0].expected == "[0,1]"
    assert store.list_submissions(interview_id)[0].id == submission.id
    assert "def two_sum(): ..." in reviewer.once_calls[0]


def test_submit_code_survives_review_failure(machine, store, reviewer, two_sum):
    reviewer.fail_once = True
    interview_id = _start(machine, two_sum)

    submission = machine.submit_code(interview_id, "print('hi')", "python")

    assert submission.ai_feedback == ""
    assert submission.is_correct is None
    assert len(store.list_submissions(interview_id)) == 1


def test_unknown_interview_raises_not_found(machine):
    missing = "33333333-3333-4333-8333-333333333333"
    with pytest.raises(NotFoundError):
        machine.send_message(missing, "hello")
    with pytest.raises(NotFoundError):
        machine.end(missing)


def test_two_sum_scenario(machine, store, interviewer, evaluator, two_sum):
    interviewer.once = ["Hi! Let's look at Two Sum. What's your first thought?"]
    interviewer.replies = [
        "Good. Can you do better than O(n^2)?",
        "Nice, that's O(n). Any edge cases?",
    ]

    started = machine.start(USER, PROBLEM, two_sum)
    machine.send_message(started.interview_id, "Check every pair with two loops.")
    machine.send_message(
        started.interview_id,
        "Use a dict of seen values.",
        code="def two_sum(nums, target):\n    seen = {}\n    for i, n in enumerate(nums):\n        if target - n in seen:\n            return [seen[target - n], i]\n        seen[n] = i",
        language="python",
    )
    evaluation = machine.end(started.interview_id)

    session = store.find_session(started.interview_id)
    assert session.status == "completed"
    assert [turn.role for turn in session.turns] == ["assistant", "user", "assistant", "user", "assistant"]
    assert session.evaluation is not None
    assert session.evaluation.id == evaluation.id
    assert evaluation.overall_score == 8
    assert evaluation.strengths == ["Clear hash map approach", "Explained trade-offs"]
    assert len(interviewer.reply_calls[-1]["prior_turns"]) == 3 + 2


def _broken_conn(*_args, **_kwargs):
    raise sqlite3.OperationalError("database is locked")


def test_start_propagates_store_failure(machine, interviewer, two_sum, monkeypatch):
    monkeypatch.setattr(interviews_module, "get_conn", _broken_conn)

    with pytest.raises(StoreError) as excinfo:
        machine.start(USER, PROBLEM, two_sum)

    assert isinstance(excinfo.value.__cause__, sqlite3.OperationalError)
    assert interviewer.once_calls == []


def test_repeated_end_keeps_single_evaluation_row(machine, tmp_db, two_sum):
    interview_id = _start(machine, two_sum)

    first = machine.end(interview_id)
    second = machine.end(interview_id)

    conn = sqlite3.connect(tmp_db)
    try:
        count = conn.execute("SELECT COUNT(*) FROM evaluations WHERE interview_id = ?", (interview_id,)).fetchone()[0]
    finally:
        conn.close()
    assert first.id == second.id
    assert count == 1

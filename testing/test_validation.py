"""Tests for answer validation and escalation."""

from __future__ import annotations

import asyncio

from mathtutor.models import Answer, SessionCounters, VerifierVerdict
from mathtutor.services.verifier import EscalationUnavailable
from mathtutor.validation import validate


class FakeVerifier:
    """Verifier stub that records calls and returns a fixed verdict."""

    def __init__(self, is_equivalent: bool) -> None:
        self.is_equivalent = is_equivalent
        self.calls: list[tuple[str, str]] = []

    async def verify(self, student_answer: str, expected_answer: str) -> VerifierVerdict:
        self.calls.append((student_answer, expected_answer))
        return VerifierVerdict(is_equivalent=self.is_equivalent)


class FailingVerifier:
    async def verify(self, student_answer: str, expected_answer: str) -> VerifierVerdict:
        raise EscalationUnavailable("service down")


class CannedVerifier:
    """Verifier stub that returns whatever raw result it was given."""

    def __init__(self, result) -> None:
        self.result = result

    async def verify(self, student_answer: str, expected_answer: str):
        return self.result


class SlowVerifier:
    async def verify(self, student_answer: str, expected_answer: str) -> VerifierVerdict:
        await asyncio.sleep(1)
        return VerifierVerdict(is_equivalent=True)


def test_correct_answer_resets_streak_and_marks_solved():
    counters = SessionCounters(answer_attempts=2, consecutive_wrong=2)

    outcome, updated = asyncio.run(validate("1/2", "0.5", counters))

    assert outcome.is_valid is True
    assert outcome.answer.text == "1/2"
    assert updated.answer_attempts == 3
    assert updated.consecutive_wrong == 0
    assert updated.is_problem_solved is True


def test_wrong_answer_increments_streak_without_mutating_input():
    counters = SessionCounters()

    outcome, updated = asyncio.run(validate("42", "43", counters))

    assert outcome.is_valid is False
    assert updated.answer_attempts == 1
    assert updated.consecutive_wrong == 1
    assert updated.is_problem_solved is False
    assert counters == SessionCounters()


def test_solved_flag_is_never_cleared_by_a_later_wrong_answer():
    counters = SessionCounters(answer_attempts=1, is_problem_solved=True)

    _, updated = asyncio.run(validate("7", "8", counters))

    assert updated.is_problem_solved is True
    assert updated.consecutive_wrong == 1


def test_low_confidence_escalates_and_uses_verifier_verdict():
    verifier = FakeVerifier(is_equivalent=True)

    outcome, updated = asyncio.run(
        validate("five apples", "5", SessionCounters(), verifier)
    )

    assert verifier.calls == [("five apples", "5")]
    assert outcome.is_valid is True
    assert updated.is_problem_solved is True


def test_confident_local_verdict_is_not_escalated():
    verifier = FakeVerifier(is_equivalent=True)

    outcome, _ = asyncio.run(validate("42", "43", SessionCounters(), verifier))

    assert verifier.calls == []
    assert outcome.is_valid is False


def test_failing_verifier_falls_back_to_local_verdict():
    outcome, updated = asyncio.run(
        validate("five apples", "5", SessionCounters(), FailingVerifier())
    )

    assert outcome.is_valid is False
    assert updated.consecutive_wrong == 1


def test_verifier_timeout_falls_back_to_local_verdict():
    outcome, updated = asyncio.run(
        validate("five apples", "5", SessionCounters(), SlowVerifier(), timeout=0.01)
    )

    assert outcome.is_valid is False
    assert updated.answer_attempts == 1
    assert updated.consecutive_wrong == 1


def test_latex_form_is_preferred_when_present():
    answer = Answer(text="one half", latex="\\frac{1}{2}")

    outcome, _ = asyncio.run(validate(answer, "0.5", SessionCounters()))

    assert outcome.is_valid is True
    assert outcome.answer == answer


def test_malformed_verifier_result_falls_back_to_local_verdict():
    for result in (None, {"reason": "no verdict"}, "yes", {"isEquivalent": "maybe"}):
        outcome, updated = asyncio.run(
            validate("five apples", "5", SessionCounters(), CannedVerifier(result))
        )

        assert outcome.is_valid is False, result
        assert updated.consecutive_wrong == 1, result


def test_verifier_may_return_a_plain_json_shaped_dict():
    outcome, updated = asyncio.run(
        validate("five apples", "5", SessionCounters(), CannedVerifier({"isEquivalent": True}))
    )

    assert outcome.is_valid is True
    assert updated.is_problem_solved is True

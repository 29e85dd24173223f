"""Tests for the attempt replay CLI."""

from __future__ import annotations

import argparse
import asyncio
import json

from mathtutor.main import run_batch
from mathtutor.services.session_store import SessionStore


def _args(**overrides) -> argparse.Namespace:
    values = {"user_id": "student-1", "threshold": 3}
    values.update(overrides)
    return argparse.Namespace(**values)


def test_run_batch_persists_counters_and_evidence(tmp_path):
    store = SessionStore(tmp_path)
    attempts = [
        {
            "id": "p1",
            "problem": "Solve for x: 2x + 3 = 7",
            "expected": "2",
            "answers": ["5", "3", "4", "x = 2", "ignored"],
            "hints": 1,
        }
    ]

    results = asyncio.run(run_batch(attempts, store, _args()))

    assert len(results) == 1
    result = results[0]
    assert result["solved"] is True
    assert result["attempts"] == 4
    assert result["hints_used"] == 1
    assert result["modes"] == ["hint", "validate", "validate", "validate", "refocus"]
    assert result["mastery"] == {"linear-equations-one-step": 1}

    counters = store.load_counters("p1")
    assert counters.answer_attempts == 4
    evidence = store.load_evidence("student-1", "linear-equations-one-step")
    assert len(evidence) == 1
    assert evidence[0].turn_ids == {"p1-0", "p1-1", "p1-2", "p1-3"}


def test_run_batch_skips_unusable_attempts(tmp_path):
    store = SessionStore(tmp_path)
    attempts = [
        {"id": "empty"},
        {"id": "no-answer-key", "problem": "What is a prime number?", "answers": ["7"]},
        {"id": "p2", "problem": "12 + 7", "expected": "19", "answers": ["19"]},
    ]

    results = asyncio.run(run_batch(attempts, store, _args()))

    assert [r["id"] for r in results] == ["p2"]
    assert results[0]["mastery"] == {"addition-basic": 4}
    assert json.loads(store._counters_path("p2").read_text())["is_problem_solved"] is True

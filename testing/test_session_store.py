"""Tests for session counter and evidence persistence."""

import json

from mathtutor.models import Evidence, Rubric, SessionCounters
from mathtutor.services.session_store import SessionStore


def test_load_counters_missing_returns_fresh(tmp_path):
    store = SessionStore(tmp_path)

    assert store.load_counters("session-a") == SessionCounters()


def test_save_and_load_counters(tmp_path):
    store = SessionStore(tmp_path)
    counters = SessionCounters(answer_attempts=3, consecutive_wrong=2, hints_used=1)

    store.save_counters("session-a", counters)

    assert store.load_counters("session-a") == counters
    assert store.load_counters("session-b") == SessionCounters()


def test_corrupted_counters_start_fresh(tmp_path):
    store = SessionStore(tmp_path)
    store._counters_path("session-a").write_text("{not json")
    store._counters_path("session-b").write_text(json.dumps({"answer_attempts": -4}))

    assert store.load_counters("session-a") == SessionCounters()
    assert store.load_counters("session-b") == SessionCounters()


def test_append_evidence_accumulates_and_skips_bad_records(tmp_path):
    store = SessionStore(tmp_path)
    first = Evidence(turn_ids={"t1"}, rubric=Rubric(accuracy=0.9))
    second = Evidence(turn_ids={"t2", "t3"}, rubric=Rubric(accuracy=0.4))

    store.append_evidence("student/a", "linear-equations", first)
    records = store.append_evidence("student/a", "linear-equations", second)

    assert records == [first, second]
    path = store._evidence_path("student/a", "linear-equations")
    assert path.parent == tmp_path / "evidence"
    data = json.loads(path.read_text())
    data.append({"rubric": "broken"})
    path.write_text(json.dumps(data))

    assert store.load_evidence("student/a", "linear-equations") == [first, second]

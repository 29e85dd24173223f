"""Simple JSON-based persistence for session counters and skill evidence."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from mathtutor.config import settings
from mathtutor.models import Evidence, SessionCounters

log = logging.getLogger(__name__)


def _safe_name(value: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]", "_", value)


class SessionStore:
    """Persists counters per session and append-only evidence per user-skill."""

    def __init__(self, data_dir: str | Path | None = None):
        self.base_dir = Path(data_dir or settings.SESSION_DATA_DIR)
        self.sessions_dir = self.base_dir / "sessions"
        self.evidence_dir = self.base_dir / "evidence"
        self.sessions_dir.mkdir(parents=True, exist_ok=True)
        self.evidence_dir.mkdir(parents=True, exist_ok=True)

    def _counters_path(self, session_id: str) -> Path:
        return self.sessions_dir / f"counters_{_safe_name(session_id)}.json"

    def _evidence_path(self, user_id: str, skill_key: str) -> Path:
        return self.evidence_dir / f"{_safe_name(user_id)}_{_safe_name(skill_key)}.json"

    def _read_json(self, path: Path) -> Any:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text())
        except json.JSONDecodeError:
            log.warning(f"Corrupted store file {path}, ignoring")
            return None

    def load_counters(self, session_id: str) -> SessionCounters:
        """Saved counters, or fresh ones if missing or corrupted."""
        data = self._read_json(self._counters_path(session_id))
        if not isinstance(data, dict):
            return SessionCounters()
        try:
            return SessionCounters(**data)
        except ValidationError:
            log.warning(f"Invalid counters for session {session_id}, starting fresh")
            return SessionCounters()

    def save_counters(self, session_id: str, counters: SessionCounters) -> None:
        self._counters_path(session_id).write_text(
            json.dumps(counters.model_dump(), indent=2)
        )

    def load_evidence(self, user_id: str, skill_key: str) -> list[Evidence]:
        data = self._read_json(self._evidence_path(user_id, skill_key))
        if not isinstance(data, list):
            return []
        records = []
        for item in data:
            try:
                records.append(Evidence(**item))
            except (TypeError, ValidationError):
                continue  # Skip corrupted records
        return records

    def append_evidence(self, user_id: str, skill_key: str, evidence: Evidence) -> list[Evidence]:
        """Append one evidence record and return the full stored list."""
        records = self.load_evidence(user_id, skill_key)
        records.append(evidence)
        self._evidence_path(user_id, skill_key).write_text(
            json.dumps([record.model_dump(mode="json") for record in records], indent=2)
        )
        return records

#!/usr/bin/env python3
"""Math tutor - batch replay of practice attempts.

Usage:
    python -m mathtutor.main attempts.json                # Replay all attempts
    python -m mathtutor.main attempts.json --user-id u1   # Store evidence under u1
    python -m mathtutor.main attempts.json --escalate     # Ask the LLM on low confidence
    python -m mathtutor.main attempts.json --threshold 2  # Refocus after 2 wrong answers

Each attempt in the input file looks like:
    {"id": "p1", "problem": "Solve for x: 2x + 3 = 7", "expected": "2",
     "answers": ["5", "x = 2"], "hints": 1}
"""

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

from mathtutor.config import settings
from mathtutor.models import TurnMode
from mathtutor.services.session_store import SessionStore
from mathtutor.session import ProblemSession
from mathtutor.validation import EquivalenceVerifier

logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s: %(message)s")
log = logging.getLogger(__name__)


async def replay_attempt(
    session: ProblemSession,
    store: SessionStore,
    user_id: str,
    attempt: dict,
) -> dict:
    """Replay one practice attempt through the session. Returns its summary."""
    attempt_id = str(attempt.get("id", attempt.get("problem", "")))
    problem = session.start_problem(
        attempt["problem"],
        expected_answer=attempt.get("expected"),
        child_grade=attempt.get("grade"),
    )
    turn_ids: list[str] = []
    modes: list[str] = []

    for _ in range(int(attempt.get("hints", 0))):
        modes.append(session.next_turn_mode(TurnMode.HINT).value)

    for index, answer in enumerate(attempt.get("answers", [])):
        modes.append(session.next_turn_mode(TurnMode.VALIDATE).value)
        outcome, counters = await session.submit_answer(answer)
        turn_ids.append(f"{attempt_id}-{index}")
        log.info(
            f"[{attempt_id}] {answer!r} -> {'correct' if outcome.is_valid else 'wrong'} "
            f"(streak={counters.consecutive_wrong})"
        )
        if counters.is_problem_solved:
            break

    store.save_counters(attempt_id, session.counters)
    progress = session.complete(turn_ids)
    for item in progress:
        store.append_evidence(user_id, item.skill_key, item.evidence)

    return {
        "id": attempt_id,
        "problem_type": problem.problem_type.value,
        "grade": problem.grade,
        "topic": problem.topic,
        "solved": session.counters.is_problem_solved,
        "attempts": session.counters.answer_attempts,
        "hints_used": session.counters.hints_used,
        "modes": modes,
        "mastery": {item.skill_key: item.level for item in progress},
    }


async def run_batch(
    attempts: list[dict],
    store: SessionStore,
    args: argparse.Namespace,
    verifier: Optional[EquivalenceVerifier] = None,
) -> list[dict]:
    """Replay every attempt in order and persist counters and evidence."""
    session = ProblemSession(verifier=verifier, stuck_threshold=args.threshold)
    results = []
    for attempt in attempts:
        if not attempt.get("problem"):
            log.warning(f"Skipping attempt without a problem: {attempt}")
            continue
        try:
            results.append(await replay_attempt(session, store, args.user_id, attempt))
        except ValueError as e:
            log.error(f"Error for {attempt.get('id')}: {e}")
    return results


def main():
    parser = argparse.ArgumentParser(description="Math tutor attempt replay")
    parser.add_argument("attempts", type=Path, help="JSON file with a list of attempts")
    parser.add_argument("--user-id", type=str, default="local")
    parser.add_argument(
        "--threshold",
        type=int,
        default=settings.STUCK_THRESHOLD,
        help="Consecutive wrong answers before a refocus (default: 3)",
    )
    parser.add_argument(
        "--escalate", action="store_true", help="Escalate low-confidence answers to the LLM"
    )
    parser.add_argument("--data-dir", type=str, default=settings.SESSION_DATA_DIR)
    args = parser.parse_args()

    attempts = json.loads(args.attempts.read_text())
    log.info(f"Loaded {len(attempts)} attempts from {args.attempts}")

    verifier = None
    if args.escalate:
        from mathtutor.services.verifier import OpenAIEquivalenceVerifier

        verifier = OpenAIEquivalenceVerifier()

    store = SessionStore(args.data_dir)
    results = asyncio.run(run_batch(attempts, store, args, verifier))

    output = Path(args.data_dir) / "results.json"
    output.write_text(json.dumps(results, indent=2))
    log.info(f"Saved {len(results)} results to {output}")
    return results


if __name__ == "__main__":
    main()

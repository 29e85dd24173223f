"""Per-skill mastery aggregation."""

import logging
import math
from typing import Iterable

from mathtutor.models import Evidence, Rubric

log = logging.getLogger(__name__)

MAX_LEVEL = 4
RECENT_TURNS = 10  # Turns kept as evidence for a completed problem

# Lower bound of each level, highest first. Values exactly on a bound belong
# to that level; nothing is rounded up.
_LEVEL_FLOORS = ((0.9, 4), (0.7, 3), (0.5, 2), (0.25, 1))


def _completion_accuracy(attempts: int, hints_used: int, is_correct: bool) -> float:
    """Accuracy whose mastery level reflects how hard the student had to work."""
    if not is_correct:
        return 0.0
    if attempts <= 1 and hints_used == 0:
        return 1.0  # level 4
    if attempts <= 2 and hints_used <= 1:
        return 0.8  # level 3
    if attempts <= 3:
        return 0.6  # level 2
    return 0.3  # level 1


def _clamped_accuracy(accuracy: float) -> float:
    if math.isnan(accuracy):
        log.warning("Rubric accuracy is NaN, treating as 0.0")
        return 0.0
    if accuracy < 0.0 or accuracy > 1.0:
        clamped = min(1.0, max(0.0, accuracy))
        log.warning(f"Rubric accuracy {accuracy} outside [0, 1], clamped to {clamped}")
        return clamped
    return accuracy


def compute_mastery(evidence: Evidence) -> int:
    """Bucket rubric accuracy into a 0-4 mastery level.

    <0.25 -> 0, [0.25, 0.5) -> 1, [0.5, 0.7) -> 2, [0.7, 0.9) -> 3, >=0.9 -> 4.
    Evidence without any observed turn or snapshot is always level 0.
    """
    if not evidence.turn_ids and not evidence.snapshot_ids:
        return 0

    accuracy = _clamped_accuracy(evidence.rubric.accuracy)
    for floor, level in _LEVEL_FLOORS:
        if accuracy >= floor:
            return level
    return 0


def build_evidence(
    problem_text: str,
    turn_ids: Iterable[str],
    attempts: int,
    hints_used: int,
    is_correct: bool,
) -> Evidence:
    """Evidence record for one completed problem."""
    recent = list(turn_ids)[-RECENT_TURNS:]
    accuracy = _completion_accuracy(attempts, hints_used, is_correct)
    return Evidence(
        turn_ids=set(recent),
        snapshot_ids=set(),
        rubric=Rubric(
            accuracy=accuracy,
            method=f"Completed with {attempts} attempts and {hints_used} hints",
            explanation=f"Problem: {problem_text}",
        ),
    )

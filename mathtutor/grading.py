"""Answer extraction and practice grading."""

import re
from typing import Iterable, Optional

from mathtutor.equivalence import check
from mathtutor.models import Confidence, GradingResult, Mastery, Turn

HINT_PENALTY = 0.1
ATTEMPT_PENALTY = 0.1
FREE_ATTEMPTS = 3  # Attempts allowed before the attempt penalty applies

_EXPECTED_PATTERNS = (
    re.compile(r"answer\s*[=:]\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"solution\s*[=:]\s*([^\n]+)", re.IGNORECASE),
    # "solve: x+5=10" -> the part after the last "="
    re.compile(r"solve\s*[=:]\s*[^=]+=\s*([^\n]+)", re.IGNORECASE),
)

_ANSWER_MARKERS = (
    re.compile(r"(?:my\s+)?(?:final\s+)?answer\s+is\s*[:=]?\s*(.+)", re.IGNORECASE),
    re.compile(r"(?:my\s+)?answer\s*[:=]\s*(.+)", re.IGNORECASE),
    re.compile(r"solution\s+is\s*[:=]?\s*(.+)", re.IGNORECASE),
    re.compile(r"\bi\s+got\s+(.+)", re.IGNORECASE),
    re.compile(r"\bit\s+is\s+(.+)", re.IGNORECASE),
)
_BARE_NUMBER = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*$")


def extract_expected_answer(problem_text: str) -> Optional[str]:
    """Pull a reference answer out of structured problem text, if present."""
    text = (problem_text or "").strip().lower()
    for pattern in _EXPECTED_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def extract_student_answer(turns: Iterable[Turn]) -> Optional[str]:
    """Find the student's most recent answer in a conversation.

    Explicit markers ("my answer is 5", "I got 5") win, then a bare numeric
    reply. Falls back to the last user turn. A turn's LaTeX form is preferred
    over its text.
    """
    user_turns = [turn for turn in turns if turn.role == "user"]
    if not user_turns:
        return None

    for turn in reversed(user_turns):
        if not turn.text:
            continue
        latex = (turn.latex or "").strip()
        for marker in _ANSWER_MARKERS:
            match = marker.search(turn.text)
            if match:
                cleaned = re.sub(r"[.,;!?]+$", "", match.group(1).strip()).strip()
                if cleaned:
                    return latex or cleaned
        numeric = _BARE_NUMBER.match(turn.text)
        if numeric:
            return latex or numeric.group(1)

    last = user_turns[-1]
    if last.latex and last.latex.strip():
        return last.latex.strip()
    if last.text and last.text.strip():
        return last.text.strip()
    return None


def apply_penalties(base_score: float, attempts: int, hints_used: int) -> float:
    """Subtract hint and excess-attempt penalties; floor at 0, round to 2dp."""
    score = max(0.0, base_score - hints_used * HINT_PENALTY)
    if attempts > FREE_ATTEMPTS:
        score = max(0.0, score - ATTEMPT_PENALTY)
    return round(score, 2)


def _mastery_for_score(score: float) -> Mastery:
    if score >= 0.7:
        return Mastery.HIGH
    if score >= 0.4:
        return Mastery.MEDIUM
    return Mastery.LOW


def compute_score(
    student_answer: Optional[str],
    expected_answer: Optional[str],
    attempts: int,
    hints_used: int,
) -> GradingResult:
    """Grade a practice answer.

    Base score from the local equivalence verdict (1.0 high-confidence match,
    0.7 medium match, otherwise 0.0), minus 0.1 per
    hint and 0.1 when more than three attempts were needed.
    """
    if not expected_answer:
        return GradingResult(
            score=0.0, mastery=Mastery.LOW, reason="No expected answer provided for grading"
        )
    if not student_answer or not student_answer.strip():
        return GradingResult(score=0.0, mastery=Mastery.LOW, reason="No student answer provided")

    result = check(student_answer.strip(), expected_answer.strip())
    if result.is_equivalent:
        base = 1.0 if result.confidence == Confidence.HIGH else 0.7
    else:
        base = 0.0
    reason = result.reason or ("Equivalent" if result.is_equivalent else "Incorrect answer")

    score = apply_penalties(base, attempts, hints_used)

    penalty_note = ""
    if hints_used > 0:
        penalty_note += f" Penalty: -{hints_used * HINT_PENALTY:.1f} for {hints_used} hint(s)."
    if attempts > FREE_ATTEMPTS:
        penalty_note += f" Penalty: -{ATTEMPT_PENALTY:.1f} for {attempts} attempts."

    return GradingResult(
        score=score,
        mastery=_mastery_for_score(score),
        reason=f"{reason}.{penalty_note}".strip(),
    )

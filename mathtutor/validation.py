"""Answer validation with optional escalation.

The local equivalence check runs first. Only a LOW-confidence local verdict
is escalated to an external verifier, and a verifier that fails or times out
never fails the validation: the local verdict stands.
"""

import asyncio
import logging
from typing import Optional, Protocol, Tuple, Union

from mathtutor.config import settings
from mathtutor.equivalence import check
from mathtutor.models import (
    Answer,
    Confidence,
    SessionCounters,
    ValidationOutcome,
    VerifierVerdict,
)

log = logging.getLogger(__name__)


class EquivalenceVerifier(Protocol):
    """Protocol for the external equivalence verifier.

    Any async verifier implementing this interface can be passed to validate().
    """

    async def verify(self, student_answer: str, expected_answer: str) -> VerifierVerdict:
        ...


async def _escalate(
    escalate: EquivalenceVerifier,
    student_answer: str,
    expected_answer: str,
    timeout: float,
) -> Optional[bool]:
    """Ask the verifier; None means it was unavailable."""
    try:
        result = await asyncio.wait_for(
            escalate.verify(student_answer, expected_answer), timeout=timeout
        )
        # Accepts a VerifierVerdict, an object with is_equivalent, or {"isEquivalent": ...}
        verdict = VerifierVerdict.model_validate(result, from_attributes=True)
    except asyncio.TimeoutError:
        log.warning(f"Escalation timed out after {timeout:.1f}s, keeping local verdict")
        return None
    except Exception as e:
        log.warning(f"Escalation unavailable ({type(e).__name__}: {e}), keeping local verdict")
        return None
    return verdict.is_equivalent


async def validate(
    answer: Union[Answer, str],
    expected_answer: str,
    counters: SessionCounters,
    escalate: Optional[EquivalenceVerifier] = None,
    *,
    timeout: Optional[float] = None,
) -> Tuple[ValidationOutcome, SessionCounters]:
    """Validate one submission and fold the result into the session counters.

    Args:
        answer: Student answer (plain string or Answer with optional LaTeX).
        expected_answer: Reference answer.
        counters: Counters before this submission. Never mutated.
        escalate: Optional verifier consulted only on LOW local confidence.
        timeout: Seconds to wait for the verifier (default from settings).

    Returns:
        (outcome, updated counters). The counters are a new object built only
        from this call's verdict, so callers can swap them in atomically.
    """
    timeout = settings.ESCALATION_TIMEOUT_SECONDS if timeout is None else timeout
    if isinstance(answer, str):
        answer = Answer(text=answer)

    attempts = counters.answer_attempts + 1
    submitted = answer.comparable()

    local = check(submitted, expected_answer)
    is_valid = local.is_equivalent

    if local.confidence == Confidence.LOW:
        if escalate is None:
            log.warning("Low-confidence verdict and no verifier configured, keeping local verdict")
        else:
            escalated = await _escalate(escalate, submitted, expected_answer, timeout)
            if escalated is not None:
                is_valid = escalated

    if is_valid:
        updated = counters.model_copy(
            update={
                "answer_attempts": attempts,
                "consecutive_wrong": 0,
                "is_problem_solved": True,
            }
        )
    else:
        updated = counters.model_copy(
            update={
                "answer_attempts": attempts,
                "consecutive_wrong": counters.consecutive_wrong + 1,
            }
        )

    log.info(
        f"[VALIDATE attempt {attempts}] valid={is_valid} "
        f"(local={local.is_equivalent}/{local.confidence.value}, "
        f"wrong streak={updated.consecutive_wrong})"
    )
    return ValidationOutcome(is_valid=is_valid, answer=answer), updated

"""Problem session controller.

Owns one SessionCounters value and one TurnStateMachine for the problem a
student is currently solving, and serializes validations against them.
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Tuple, Union

from mathtutor.classifier import (
    classify_grade,
    classify_type,
    detect_topic,
    map_problem_to_skill_keys,
)
from mathtutor.grading import extract_expected_answer
from mathtutor.mastery import build_evidence, compute_mastery
from mathtutor.models import (
    Answer,
    ProblemContext,
    SessionCounters,
    SkillProgress,
    TurnMode,
    ValidationOutcome,
)
from mathtutor.prompts import get_problem_type_guidance
from mathtutor.turns import TurnStateMachine
from mathtutor.validation import EquivalenceVerifier, validate

log = logging.getLogger(__name__)


class ProblemSession:
    def __init__(
        self,
        verifier: Optional[EquivalenceVerifier] = None,
        stuck_threshold: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.verifier = verifier
        self.timeout = timeout
        self.counters = SessionCounters()
        self.turns = TurnStateMachine(threshold=stuck_threshold)
        self.problem = ProblemContext()
        self.generation = 0  # Bumped on every new problem
        self._lock = asyncio.Lock()

    def start_problem(
        self,
        problem_text: str,
        expected_answer: Optional[str] = None,
        child_grade: Optional[str] = None,
    ) -> ProblemContext:
        """Reset counters and turn state, then classify the new problem."""
        self.generation += 1
        self.counters = SessionCounters()
        self.turns.reset()

        problem_type = classify_type(problem_text)
        self.problem = ProblemContext(
            problem_text=problem_text,
            expected_answer=expected_answer or extract_expected_answer(problem_text),
            problem_type=problem_type,
            grade=classify_grade(problem_text, child_grade),
            topic=detect_topic(problem_type),
            guidance=get_problem_type_guidance(problem_type),
            skill_keys=map_problem_to_skill_keys(problem_text),
        )
        log.info(
            f"Starting problem: type={problem_type.value}, grade={self.problem.grade}, "
            f"skills={self.problem.skill_keys}"
        )
        return self.problem

    async def submit_answer(
        self, answer: Union[Answer, str], expected_answer: Optional[str] = None
    ) -> Tuple[ValidationOutcome, SessionCounters]:
        """Validate an answer for the current problem and apply the result.

        If a new problem starts while the escalation is pending, the late
        result is returned but not applied to the new problem's counters.
        """
        expected = expected_answer or self.problem.expected_answer
        if not expected:
            raise ValueError("No expected answer for the current problem")

        async with self._lock:
            generation = self.generation
            outcome, updated = await validate(
                answer, expected, self.counters, self.verifier, timeout=self.timeout
            )
            if generation != self.generation:
                log.warning("Problem changed during validation, discarding result")
                return outcome, self.counters
            self.counters = updated
            self.turns.observe(outcome)
            return outcome, updated

    def next_turn_mode(self, proposed: TurnMode) -> TurnMode:
        """Mode for the next tutor turn, with the stuck override applied."""
        mode = self.turns.next_mode(proposed, self.counters)
        if mode == TurnMode.HINT:
            self.counters = self.counters.model_copy(
                update={"hints_used": self.counters.hints_used + 1}
            )
        return mode

    def complete(self, turn_ids: Iterable[str]) -> List[SkillProgress]:
        """Mastery updates for every skill the current problem maps to."""
        if not self.problem.skill_keys:
            log.info(f"No skill keys mapped for problem: {self.problem.problem_text[:60]}")
            return []

        evidence = build_evidence(
            self.problem.problem_text,
            turn_ids,
            attempts=self.counters.answer_attempts,
            hints_used=self.counters.hints_used,
            is_correct=self.counters.is_problem_solved,
        )
        level = compute_mastery(evidence)
        return [
            SkillProgress(skill_key=key, level=level, evidence=evidence)
            for key in self.problem.skill_keys
        ]

"""Turn mode tracking and the stuck override.

The turn-producing collaborator picks each mode; this machine only
guarantees that a student stuck on STUCK_THRESHOLD consecutive wrong answers
gets a refocus turn next.
"""

import logging
from typing import Optional

from pydantic import BaseModel

from mathtutor.config import settings
from mathtutor.models import SessionCounters, TurnMode, ValidationOutcome

log = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    TurnMode.ASK: {TurnMode.ASK, TurnMode.HINT, TurnMode.VALIDATE},
    TurnMode.HINT: {TurnMode.ASK, TurnMode.HINT, TurnMode.VALIDATE},
    TurnMode.VALIDATE: {TurnMode.ASK, TurnMode.HINT, TurnMode.VALIDATE, TurnMode.REFOCUS},
    TurnMode.REFOCUS: {TurnMode.ASK, TurnMode.HINT, TurnMode.VALIDATE},
}


class TurnState(BaseModel):
    mode: TurnMode = TurnMode.ASK
    # consecutive_wrong value already answered by a refocus
    streak_offset: int = 0


def is_stuck(counters: SessionCounters, threshold: Optional[int] = None, offset: int = 0) -> bool:
    """True when the wrong-answer streak since the last refocus hit the threshold."""
    threshold = settings.STUCK_THRESHOLD if threshold is None else threshold
    return counters.consecutive_wrong - offset >= threshold


class TurnStateMachine:
    """Per-problem turn mode state. Not thread-safe; one per session."""

    def __init__(self, threshold: Optional[int] = None, state: Optional[TurnState] = None):
        self.threshold = settings.STUCK_THRESHOLD if threshold is None else threshold
        self.state = state or TurnState()

    @property
    def mode(self) -> TurnMode:
        return self.state.mode

    def reset(self) -> None:
        """Back to ASK for a new problem."""
        self.state = TurnState()

    def observe(self, outcome: ValidationOutcome) -> None:
        """A successful validation clears any pending streak."""
        if outcome.is_valid:
            self.state.streak_offset = 0

    def stuck(self, counters: SessionCounters) -> bool:
        self._sync(counters)
        return is_stuck(counters, self.threshold, self.state.streak_offset)

    def next_mode(self, proposed: TurnMode, counters: SessionCounters) -> TurnMode:
        """Return the mode the next tutor turn must use.

        Forces REFOCUS on the stuck condition regardless of the proposal.
        Proposals outside ALLOWED_TRANSITIONS fall back to ASK.
        """
        if self.stuck(counters):
            log.info(
                f">>> STUCK: {counters.consecutive_wrong} consecutive wrong answers, "
                f"forcing refocus (proposed={proposed.value})"
            )
            self.state.streak_offset = counters.consecutive_wrong
            self.state.mode = TurnMode.REFOCUS
            return TurnMode.REFOCUS

        mode = proposed
        if proposed not in ALLOWED_TRANSITIONS[self.state.mode]:
            log.warning(
                f"Rejected turn transition {self.state.mode.value} -> {proposed.value}, using ask"
            )
            mode = TurnMode.ASK

        self.state.mode = mode
        return mode

    def _sync(self, counters: SessionCounters) -> None:
        # Counters were reset elsewhere (solved or new problem).
        if counters.consecutive_wrong < self.state.streak_offset:
            self.state.streak_offset = 0

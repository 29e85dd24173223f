"""Pydantic models for type safety."""

from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ProblemType(str, Enum):
    ARITHMETIC = "arithmetic"
    ALGEBRA = "algebra"
    GEOMETRY = "geometry"
    WORD_PROBLEM = "word-problem"
    MULTI_STEP = "multi-step"
    UNKNOWN = "unknown"


class GradeBand(str, Enum):
    K_2 = "K-2"
    GRADES_3_5 = "3-5"
    GRADES_6_8 = "6-8"
    GRADES_9_12 = "9-12"
    NOT_SPECIFIED = "Not specified"


class TurnMode(str, Enum):
    ASK = "ask"
    HINT = "hint"
    VALIDATE = "validate"
    REFOCUS = "refocus"


class Mastery(str, Enum):
    """Coarse practice-session mastery attached to a graded answer."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EquivalenceResult(BaseModel):
    """Local equivalence verdict. LOW confidence means "escalate if possible"."""
    model_config = ConfigDict(frozen=True)

    is_equivalent: bool
    confidence: Confidence
    reason: Optional[str] = None


class VerifierVerdict(BaseModel):
    """Verdict returned by an external equivalence verifier."""
    is_equivalent: bool = Field(
        validation_alias=AliasChoices("is_equivalent", "isEquivalent")
    )
    reason: Optional[str] = None


class Answer(BaseModel):
    """A student submission, optionally with its math-markup form."""
    text: str
    latex: Optional[str] = None

    def comparable(self) -> str:
        """Markup wins over plain text when both are present."""
        if self.latex and self.latex.strip():
            return self.latex.strip()
        return self.text


class ValidationOutcome(BaseModel):
    is_valid: bool
    answer: Answer


class SessionCounters(BaseModel):
    """Per-problem counters owned by the conversation."""
    answer_attempts: int = Field(default=0, ge=0)
    consecutive_wrong: int = Field(default=0, ge=0)
    is_problem_solved: bool = False
    hints_used: int = Field(default=0, ge=0)


class Rubric(BaseModel):
    accuracy: float = 0.0  # Expected in [0, 1]; clamped by the aggregator
    method: str = ""
    explanation: str = ""


class Evidence(BaseModel):
    """Append-only record of what a student demonstrated for one skill."""
    turn_ids: set[str] = Field(default_factory=set)
    snapshot_ids: set[str] = Field(default_factory=set)
    rubric: Rubric = Field(default_factory=Rubric)


class Turn(BaseModel):
    id: str = ""
    role: str
    text: Optional[str] = None
    latex: Optional[str] = None


class GradingResult(BaseModel):
    score: float = Field(ge=0.0, le=1.0)
    mastery: Mastery
    reason: str


class SkillProgress(BaseModel):
    """Mastery update for one skill after a problem is completed."""
    skill_key: str
    level: int = Field(ge=0, le=4)
    evidence: Evidence


class ProblemContext(BaseModel):
    """What the session learned about the current problem."""
    problem_text: str = ""
    expected_answer: Optional[str] = None
    problem_type: ProblemType = ProblemType.UNKNOWN
    grade: str = GradeBand.NOT_SPECIFIED.value
    topic: str = "General Math"
    guidance: str = ""
    skill_keys: List[str] = []

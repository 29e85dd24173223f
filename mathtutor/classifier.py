"""Problem classification.

Both classifiers are ordered first-match rule cascades. The order matters:
algebra and geometry cues win over the generic multi-step and arithmetic
cues because they call for a more specific teaching strategy.
"""

import re
from typing import List, Optional

from mathtutor.models import GradeBand, ProblemType
from mathtutor.prompts import TOPIC_LABELS

# A single-letter variable next to an operator or equals sign ("2x + 3", "7 = y"),
# or an explicit "solve for x" / "find x".
_ALGEBRA = re.compile(
    r"(?<![a-z])[a-z]\s*[=+\-*/^]"
    r"|[=+\-*/^]\s*\d*[a-z](?![a-z])"
    r"|\bsolve for [a-z]\b"
    r"|\bfind [a-z]\b"
)
_GEOMETRY = re.compile(
    r"\b(triangle|circle|square|rectangle|angle|perimeter|area|volume|diameter|radius)s?\b"
)
_NARRATIVE = re.compile(r"\b(has|have|bought|sold|total|each)\b|\bif\b.*\bthen\b")
_OPERATOR = re.compile(r"[+\-*/=×÷]")
_LEADING_ARITHMETIC = re.compile(r"^\s*\d+\s*[+\-*/×÷]\s*\d+")

_ADVANCED = re.compile(
    r"quadratic|polynomial|trigonometry|\bsine\b|\bcosine\b|\btangent\b|\bsin\b|\bcos\b|\btan\b"
    r"|x\^2|\^\d+"
)
_MIDDLE = re.compile(r"fraction|percent|ratio|%|\d+\s*/\s*\d+")
_MULTIPLY_DIVIDE = re.compile(r"[×*÷/]")
_MULTI_DIGIT = re.compile(r"\d{2,}")
_SINGLE_DIGIT_SUM = re.compile(r"^\s*\d\s*[+\-]\s*\d\s*$")


def classify_type(problem_text: str) -> ProblemType:
    """Return exactly one problem type; UNKNOWN when nothing matches."""
    text = (problem_text or "").lower()
    if not text.strip():
        return ProblemType.UNKNOWN

    if _ALGEBRA.search(text):
        return ProblemType.ALGEBRA
    if _GEOMETRY.search(text):
        return ProblemType.GEOMETRY
    if len(text.split()) > 10 and _NARRATIVE.search(text):
        return ProblemType.WORD_PROBLEM
    if len(_OPERATOR.findall(text)) >= 3:
        return ProblemType.MULTI_STEP
    if _LEADING_ARITHMETIC.search(text):
        return ProblemType.ARITHMETIC
    return ProblemType.UNKNOWN


def classify_grade(problem_text: str, child_grade: Optional[str] = None) -> str:
    """Infer a grade band. An explicit child grade always wins, unchanged."""
    if child_grade:
        return child_grade

    text = (problem_text or "").lower()

    # 9-12: quadratics, polynomials, trigonometry, exponents
    if _ADVANCED.search(text):
        return GradeBand.GRADES_9_12.value

    # 6-8: fractions, percentages, ratios, variables
    if _MIDDLE.search(text) or _ALGEBRA.search(text):
        return GradeBand.GRADES_6_8.value

    # 3-5: multiplication/division or multi-digit numbers
    if _MULTIPLY_DIVIDE.search(text) or _MULTI_DIGIT.search(text):
        return GradeBand.GRADES_3_5.value

    # K-2: single-digit addition/subtraction
    if _SINGLE_DIGIT_SUM.match(text):
        return GradeBand.K_2.value

    return GradeBand.NOT_SPECIFIED.value


def detect_topic(problem_type: ProblemType) -> str:
    """Map a problem type to a user-facing topic label."""
    return TOPIC_LABELS.get(problem_type, "General Math")


def map_problem_to_skill_keys(problem_text: str) -> List[str]:
    """Skills a completed problem counts as evidence for."""
    problem_type = classify_type(problem_text)
    text = (problem_text or "").lower()
    skill_keys: List[str] = []

    if problem_type == ProblemType.ARITHMETIC:
        if "+" in text:
            skill_keys.append("addition-basic")
        if "-" in text:
            skill_keys.append("subtraction-basic")

    elif problem_type == ProblemType.ALGEBRA:
        if len(re.findall(r"[+\-*/]", text)) <= 1:
            skill_keys.append("linear-equations-one-step")
        else:
            skill_keys.append("linear-equations-two-step")

    elif problem_type == ProblemType.GEOMETRY:
        if re.search(r"area.*rectangle|rectangle.*area", text):
            skill_keys.append("area-rectangle")
        if "perimeter" in text:
            skill_keys.append("perimeter-basic")

    return skill_keys

"""Static guidance text and verifier prompts."""

from mathtutor.models import ProblemType

PROBLEM_TYPE_GUIDANCE = {
    ProblemType.ARITHMETIC: "Guide the student through the basic operation step by step.",
    ProblemType.ALGEBRA: (
        "Help the student identify the variable, what they know, and what steps "
        "isolate the variable. Use inverse operations."
    ),
    ProblemType.GEOMETRY: (
        "Guide the student to identify the shape, known measurements, and which "
        "formula applies."
    ),
    ProblemType.WORD_PROBLEM: (
        "Help the student extract the key information, identify what is being "
        "asked, then translate to math."
    ),
    ProblemType.MULTI_STEP: (
        "Break the problem into smaller steps. Guide them through one step at a "
        "time, checking understanding."
    ),
    ProblemType.UNKNOWN: "Analyze the problem with the student to understand what is being asked.",
}

TOPIC_LABELS = {
    ProblemType.ARITHMETIC: "Arithmetic",
    ProblemType.ALGEBRA: "Algebra",
    ProblemType.GEOMETRY: "Geometry",
    ProblemType.WORD_PROBLEM: "Word Problems",
    ProblemType.MULTI_STEP: "Multi-Step Problems",
    ProblemType.UNKNOWN: "General Math",
}


def get_problem_type_guidance(problem_type: ProblemType) -> str:
    """Return the teaching strategy line for a problem type."""
    return PROBLEM_TYPE_GUIDANCE.get(problem_type, PROBLEM_TYPE_GUIDANCE[ProblemType.UNKNOWN])


VERIFY_SYSTEM = "You are a math validation expert. Always respond with valid JSON only."

VERIFY_EQUIVALENCE = """<task>
Determine if the student's answer is mathematically equivalent to the expected answer.
</task>

<answers>
Student Answer: {student_answer}
Expected Answer: {expected_answer}
</answers>

<rules>
- Be strict but reasonable.
- Allow equivalent forms (e.g., "x=4" and "4=x", "2x+5" and "5+2x", "0.5" and "1/2").
- Units or words around a correct value are fine if the value is unambiguous.
</rules>

Return ONLY valid JSON:
{{
  "isEquivalent": true or false,
  "reason": "brief explanation of why they are or are not equivalent"
}}"""

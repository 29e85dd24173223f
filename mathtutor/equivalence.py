"""Local answer equivalence checking.

Checks run from cheapest to most expensive: exact string match, numeric
value match, then a sympy structural comparison. Anything that cannot be
decided locally comes back with LOW confidence so the caller can escalate.
This module never touches the network and never raises on bad input.
"""

import logging
import math
import re
from fractions import Fraction
from typing import Optional, Tuple

import sympy
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_multiplication_application,
    parse_expr,
    standard_transformations,
)

from mathtutor.config import settings
from mathtutor.models import Confidence, EquivalenceResult
from mathtutor.normalizer import normalize

log = logging.getLogger(__name__)

_TRANSFORMATIONS = standard_transformations + (
    implicit_multiplication_application,
    convert_xor,
)
_KNOWN_NAMES = {"sqrt", "sin", "cos", "tan", "log", "ln", "exp", "abs", "pi"}
_SYMPY_CHARS = re.compile(r"^[0-9a-z+\-*/^().= ]+$")
_NUMERIC_CHARS = re.compile(r"^[0-9.+\-/()]+$")
_WORD = re.compile(r"[a-z]{2,}")
_HUGE_POWER = re.compile(r"(\^|\*\*)\(?-?\d{3,}")
_ASSIGNMENT = re.compile(r"^([a-z])=([^=]+)$")
_LONE_LETTER = re.compile(r"(?<![a-z])[a-z](?![a-z])")
_MAX_EXPONENT = 100
_MAX_POWER_DIGITS = 1000  # Largest numeric power allowed, in decimal digits

# Deterministic sample points for the substitution test.
_SAMPLE_POINTS = (2.0, -3.0, 5.0, -7.0, 0.5, 11.0, -1.5, 13.0)

Parsed = Tuple[sympy.Expr, bool]  # (expression or lhs - rhs, is_equation)


def _result(is_equivalent: bool, confidence: Confidence, reason: str) -> EquivalenceResult:
    log.debug(f"Equivalence: {is_equivalent} ({confidence.value}) - {reason}")
    return EquivalenceResult(
        is_equivalent=is_equivalent, confidence=confidence, reason=reason
    )


def _strip_assignments(student: str, expected: str) -> Tuple[str, str]:
    """Drop an "x=" prefix when the other side is a bare value."""
    s_match = _ASSIGNMENT.match(student)
    e_match = _ASSIGNMENT.match(expected)
    if s_match and e_match:
        if s_match.group(1) == e_match.group(1):
            return s_match.group(2), e_match.group(2)
        return student, expected
    if s_match and "=" not in expected:
        return s_match.group(2), expected
    if e_match and "=" not in student:
        return student, e_match.group(2)
    return student, expected


def _parse_number(text: str) -> Optional[Fraction]:
    """Parse an integer, decimal or a/b fraction literal."""
    if not _NUMERIC_CHARS.match(text):
        return None
    parts = text.replace("(", "").replace(")", "").split("/")
    if len(parts) > 2:
        return None
    try:
        values = [Fraction(part) for part in parts]
    except (ValueError, ZeroDivisionError):
        return None
    if len(values) == 2:
        if values[1] == 0:
            return None
        return values[0] / values[1]
    return values[0]


def _close(a: float, b: float, rel_tol: float, abs_tol: float) -> bool:
    return a == b or math.isclose(a, b, rel_tol=rel_tol, abs_tol=abs_tol)


def _close_exact(a: Fraction, b: Fraction, rel_tol: float, abs_tol: float) -> bool:
    # Same test as math.isclose, on Fractions so huge literals cannot overflow.
    return abs(a - b) <= max(Fraction(abs_tol), Fraction(rel_tol) * max(abs(a), abs(b)))


def _bounded_powers(expr: sympy.Expr) -> bool:
    """False if evaluating any power in the unevaluated tree would blow up."""
    for power in expr.atoms(sympy.Pow):
        if not power.exp.is_number:
            continue
        exponent = sympy.N(power.exp)
        if not exponent.is_finite or abs(exponent) > _MAX_EXPONENT:
            return False
        if power.base.is_number:
            magnitude = abs(sympy.N(power.base))
            if magnitude > 1 and abs(exponent) * sympy.log(magnitude, 10) > _MAX_POWER_DIGITS:
                return False
    return True


def _parse_side(text: str) -> sympy.Expr:
    # Bind lone letters explicitly so names like "e" or "i" stay plain variables.
    symbols = {ch: sympy.Symbol(ch) for ch in set(_LONE_LETTER.findall(text))}
    # Powers are checked on the unevaluated tree; 9^9^9 must never be computed.
    raw = parse_expr(
        text, local_dict=symbols, transformations=_TRANSFORMATIONS, evaluate=False
    )
    if not _bounded_powers(raw):
        raise ValueError(f"Power too large in {text!r}")
    return parse_expr(
        text, local_dict=symbols, transformations=_TRANSFORMATIONS, evaluate=True
    )


def _to_sympy(text: str) -> Optional[Parsed]:
    """Parse a normalized answer, or None if it is not plain math."""
    if len(text) > settings.MAX_EXPRESSION_LENGTH or not _SYMPY_CHARS.match(text):
        return None
    if _HUGE_POWER.search(text) or text.count("=") > 1:
        return None
    # Multi-letter words other than known functions mean prose or units.
    if any(word not in _KNOWN_NAMES for word in _WORD.findall(text)):
        return None
    try:
        if "=" in text:
            lhs, rhs = text.split("=")
            return _parse_side(lhs) - _parse_side(rhs), True
        return _parse_side(text), False
    except Exception as e:
        log.debug(f"Could not parse {text!r}: {e}")
        return None


def _evaluate(expr: sympy.Expr, values: Optional[dict] = None) -> Optional[float]:
    try:
        if values:
            expr = expr.subs(values)
        value = float(expr.evalf())
    except Exception:
        return None
    return value if math.isfinite(value) else None


def _is_zero(expr: sympy.Expr) -> bool:
    try:
        return sympy.simplify(expr) == 0
    except Exception:
        return False


def _equations_match(a: sympy.Expr, b: sympy.Expr) -> Optional[bool]:
    """Compare two equations written as lhs - rhs.

    Equivalent when one side is a non-zero constant multiple of the other,
    or when both have the same solution set in a single shared variable.
    Returns None when undecidable.
    """
    if _is_zero(b):
        return _is_zero(a)
    try:
        ratio = sympy.simplify(a / b)
        if ratio.is_number and ratio != 0 and ratio.is_finite:
            return True
        symbols = a.free_symbols | b.free_symbols
        if len(symbols) != 1:
            return None
        (symbol,) = symbols
        return set(sympy.solve(a, symbol)) == set(sympy.solve(b, symbol))
    except Exception:
        return None


def _substitution_trials(
    a: sympy.Expr, b: sympy.Expr, trials: int, rel_tol: float, abs_tol: float
) -> Tuple[int, int]:
    """Evaluate both expressions at fixed sample points. Returns (passed, failed)."""
    symbols = sorted(a.free_symbols | b.free_symbols, key=lambda s: s.name)
    passed = failed = 0
    for trial in range(trials):
        values = {
            symbol: _SAMPLE_POINTS[(trial + i) % len(_SAMPLE_POINTS)] + 0.1 * i
            for i, symbol in enumerate(symbols)
        }
        a_val = _evaluate(a, values)
        b_val = _evaluate(b, values)
        if a_val is None or b_val is None:
            continue
        if _close(a_val, b_val, rel_tol, abs_tol):
            passed += 1
        else:
            failed += 1
    return passed, failed


def _check_structure(
    student: str, expected: str, rel_tol: float, abs_tol: float, trials: int
) -> EquivalenceResult:
    s_parsed = _to_sympy(student)
    e_parsed = _to_sympy(expected)
    if s_parsed is None or e_parsed is None:
        return _result(False, Confidence.LOW, "Could not parse answer")

    s_expr, s_is_eq = s_parsed
    e_expr, e_is_eq = e_parsed
    if s_is_eq != e_is_eq:
        return _result(False, Confidence.LOW, "Equation compared with expression")

    if s_is_eq:
        match = _equations_match(s_expr, e_expr)
        if match is None:
            return _result(False, Confidence.LOW, "Could not compare equations")
        if match:
            return _result(True, Confidence.MEDIUM, "Equations are equivalent")
        return _result(False, Confidence.MEDIUM, "Equations are not equivalent")

    # Constant expressions like "2+3" or "sqrt(4)" are still numeric values.
    if not s_expr.free_symbols and not e_expr.free_symbols:
        s_val = _evaluate(s_expr)
        e_val = _evaluate(e_expr)
        if s_val is None or e_val is None:
            return _result(False, Confidence.LOW, "Could not evaluate answer")
        if _close(s_val, e_val, rel_tol, abs_tol):
            return _result(True, Confidence.HIGH, "Numeric values match")
        return _result(False, Confidence.HIGH, "Numeric values differ")

    if _is_zero(s_expr - e_expr):
        return _result(True, Confidence.MEDIUM, "Expressions simplify to the same form")

    passed, failed = _substitution_trials(s_expr, e_expr, trials, rel_tol, abs_tol)
    if passed + failed == 0:
        return _result(False, Confidence.LOW, "Substitution checks inconclusive")
    if failed == 0:
        return _result(True, Confidence.MEDIUM, "All substitution checks passed")
    if passed > 0:
        return _result(False, Confidence.LOW, "Some substitution checks failed")
    return _result(False, Confidence.MEDIUM, "Expressions differ")


def check(
    student_answer: str,
    expected_answer: str,
    *,
    rel_tol: Optional[float] = None,
    abs_tol: Optional[float] = None,
    trials: Optional[int] = None,
) -> EquivalenceResult:
    """Decide whether a student answer matches the expected answer.

    Args:
        student_answer: Raw answer as typed or extracted.
        expected_answer: Raw reference answer.
        rel_tol: Relative tolerance for numeric matches (default from settings).
        abs_tol: Absolute tolerance for numeric matches (default from settings).
        trials: Number of substitution sample points (default from settings).

    Returns:
        EquivalenceResult. LOW confidence is a request to escalate, not a
        final verdict.
    """
    rel_tol = settings.NUMERIC_REL_TOL if rel_tol is None else rel_tol
    abs_tol = settings.NUMERIC_ABS_TOL if abs_tol is None else abs_tol
    trials = settings.SUBSTITUTION_TRIALS if trials is None else trials

    student = normalize(student_answer or "")
    expected = normalize(expected_answer or "")
    if not student or not expected:
        return _result(False, Confidence.LOW, "Empty answer")
    if student == expected:
        return _result(True, Confidence.HIGH, "Exact match")

    student, expected = _strip_assignments(student, expected)
    if student == expected:
        return _result(True, Confidence.HIGH, "Exact match")

    s_number = _parse_number(student)
    e_number = _parse_number(expected)
    if s_number is not None and e_number is not None:
        if s_number == e_number or _close_exact(s_number, e_number, rel_tol, abs_tol):
            return _result(True, Confidence.HIGH, "Numeric values match")
        return _result(False, Confidence.HIGH, "Numeric values differ")

    return _check_structure(student, expected, rel_tol, abs_tol, trials)

"""Tests for answer normalization."""

from mathtutor.normalizer import normalize


def test_normalize_lowercases_and_collapses_whitespace():
    assert normalize("  X   +   1  ") == "x+1"
    assert normalize("The   Answer") == "the answer"


def test_normalize_unwraps_math_delimiters():
    assert normalize("$x+1$") == "x+1"
    assert normalize("$$ 42 $$") == "42"
    assert normalize("\\(2x\\)") == "2x"
    assert normalize("\\[ y = 3 \\]") == "y=3"


def test_normalize_strips_trailing_punctuation_and_exposed_wrappers():
    assert normalize("42.") == "42"
    assert normalize("x = 5!!") == "x=5"
    assert normalize("$x$.") == "x"


def test_normalize_rewrites_latex_and_unicode_operators():
    assert normalize("\\frac{1}{2}") == "(1)/(2)"
    assert normalize("\\frac{\\frac{1}{2}}{3}") == "((1)/(2))/(3)"
    assert normalize("\\sqrt{16}") == "sqrt(16)"
    assert normalize("3 \\cdot 4") == "3*4"
    assert normalize("6 ÷ 2 × 3") == "6/2*3"
    assert normalize("x² − 1") == "x^2-1"
    assert normalize("2\\pi") == "2pi"


def test_normalize_drops_currency_prefix():
    assert normalize("$5") == "5"


def test_normalize_empty_input():
    assert normalize("") == ""
    assert normalize("   ") == ""
    assert normalize("?!.") == ""


def test_normalize_is_idempotent():
    samples = [
        "  $$ \\frac{3}{4} $$. ",
        "X = 4;",
        "$x$.",
        "\\( 2 \\times (x + 1) \\)",
        "½ of 10?",
        "5 apples, please!",
        "$$",
        "\\left( a \\right)",
    ]
    for sample in samples:
        once = normalize(sample)
        assert normalize(once) == once


def test_normalize_keeps_separately_wrapped_pieces_intact():
    assert normalize("$x$ + $y$") == "$x$+$y$"
    assert normalize("\\(a\\) + \\(b\\)") == "\\(a\\)+\\(b\\)"

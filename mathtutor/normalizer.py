"""Answer normalization.

Removes presentation noise so that two answers typed differently can be
compared as strings. Value-level unification (1/2 vs 0.5) is left to the
equivalence checker.
"""

import re

_DELIMITERS = (("$$", "$$"), ("\\(", "\\)"), ("\\[", "\\]"), ("$", "$"))

_UNICODE_OPERATORS = {
    "×": "*",
    "·": "*",
    "÷": "/",
    "−": "-",
    "–": "-",
    "²": "^2",
    "³": "^3",
    "°": "",
}

_LATEX_OPERATORS = {
    "\\cdot": "*",
    "\\times": "*",
    "\\div": "/",
    "\\left": "",
    "\\right": "",
}

_FRAC = re.compile(r"\\[dt]?frac\{([^{}]*)\}\{([^{}]*)\}")
_SQRT = re.compile(r"\\sqrt\{([^{}]*)\}")
_LATEX_SPACING = re.compile(r"\\[,;:! ]")
_LATEX_COMMAND = re.compile(r"\\([a-z]+)")
_OPERATOR_SPACING = re.compile(r"\s*([+\-*/^=(),<>])\s*")
_TRAILING_PUNCTUATION = re.compile(r"[.,;!?]+$")
_CURRENCY_PREFIX = re.compile(r"^\$(?=\d)")


def _unwrap_delimiters(text: str) -> str:
    for opening, closing in _DELIMITERS:
        if (
            len(text) >= len(opening) + len(closing)
            and text.startswith(opening)
            and text.endswith(closing)
        ):
            body = text[len(opening):len(text) - len(closing)]
            # "$x$ + $y$" is two wrapped pieces, not one.
            if opening in body or closing in body:
                continue
            return body.strip()
    return text


def _rewrite_latex(text: str) -> str:
    for command, replacement in _LATEX_OPERATORS.items():
        text = text.replace(command, replacement)
    # Innermost \frac and \sqrt first, so nested markup unwinds outward.
    while True:
        rewritten = _FRAC.sub(r"(\1)/(\2)", text)
        rewritten = _SQRT.sub(r"sqrt(\1)", rewritten)
        if rewritten == text:
            break
        text = rewritten
    text = _LATEX_SPACING.sub("", text)
    text = _LATEX_COMMAND.sub(r"\1", text)
    return text.replace("{", "(").replace("}", ")")


def _single_pass(text: str) -> str:
    text = text.strip().lower()
    text = _unwrap_delimiters(text)
    if text.count("$") == 1:
        text = _CURRENCY_PREFIX.sub("", text)
    for symbol, replacement in _UNICODE_OPERATORS.items():
        text = text.replace(symbol, replacement)
    text = _rewrite_latex(text)
    text = re.sub(r"\s+", " ", text).strip()
    text = _OPERATOR_SPACING.sub(r"\1", text)
    return _TRAILING_PUNCTUATION.sub("", text).strip()


def normalize(raw: str) -> str:
    """Canonicalize a raw answer string for comparison.

    Lowercases, unwraps $...$, \\(...\\) and \\[...\\] wrappers, rewrites
    common LaTeX and unicode operators into plain notation, collapses
    whitespace and drops trailing punctuation. Total: never raises, and
    ``normalize(normalize(s)) == normalize(s)``.
    """
    if not raw:
        return ""
    text = str(raw)
    # Each rewrite can expose another (e.g. "$x$." -> "$x$" -> "x").
    while True:
        cleaned = _single_pass(text)
        if cleaned == text:
            return cleaned
        text = cleaned

#!/usr/bin/env python3
"""Check the OpenAI verifier against a few known answer pairs (live API)."""

import asyncio

from dotenv import load_dotenv

load_dotenv()

from mathtutor.equivalence import check  # noqa: E402
from mathtutor.services.verifier import (  # noqa: E402
    EscalationUnavailable,
    OpenAIEquivalenceVerifier,
)

# (student, expected, should_match)
PAIRS = [
    ("five", "5", True),
    ("x equals four", "x=4", True),
    ("half", "1/2", True),
    ("6 apples", "5", False),
]


async def run():
    verifier = OpenAIEquivalenceVerifier()
    print(f"=== Verifier model: {verifier.model} ===")
    for student, expected, should_match in PAIRS:
        local = check(student, expected)
        try:
            verdict = await verifier.verify(student, expected)
        except EscalationUnavailable as e:
            print(f"  ✗ {student!r} vs {expected!r}: {str(e)[:60]}")
            continue
        mark = "✓" if verdict.is_equivalent == should_match else "✗"
        print(
            f"  {mark} {student!r} vs {expected!r}: llm={verdict.is_equivalent} "
            f"local={local.is_equivalent}/{local.confidence.value}"
        )


if __name__ == "__main__":
    asyncio.run(run())

"""OpenAI-backed equivalence verifier used for escalation."""

import json
import logging
import re
from typing import Any, Optional

import httpx
from openai import AsyncOpenAI, OpenAIError

from mathtutor.config import settings
from mathtutor.models import VerifierVerdict
from mathtutor.prompts import VERIFY_EQUIVALENCE, VERIFY_SYSTEM

log = logging.getLogger(__name__)


class EscalationUnavailable(RuntimeError):
    """The verifier could not produce a usable verdict."""


class OpenAIEquivalenceVerifier:
    def __init__(self, client: Optional[Any] = None, model: Optional[str] = None):
        if client is None:
            if not settings.OPENAI_API_KEY:
                raise ValueError("OPENAI_API_KEY is not set")
            client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=httpx.Timeout(settings.ESCALATION_TIMEOUT_SECONDS),
                max_retries=0,  # Retry policy belongs to the caller
            )
        self.client = client
        self.model = model or settings.OPENAI_MODEL

    def _parse_verdict(self, raw_text: str) -> VerifierVerdict:
        """Parse the model's JSON reply, tolerating markdown code fences."""
        try:
            data = json.loads(raw_text)
        except json.JSONDecodeError:
            fenced = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", raw_text)
            if not fenced:
                raise EscalationUnavailable(f"Verifier returned non-JSON: {raw_text[:80]!r}")
            try:
                data = json.loads(fenced.group(1))
            except json.JSONDecodeError as e:
                raise EscalationUnavailable(f"Verifier returned invalid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("isEquivalent"), bool):
            raise EscalationUnavailable("Verifier reply has no boolean isEquivalent")
        return VerifierVerdict(
            is_equivalent=data["isEquivalent"],
            reason=data.get("reason") or "LLM validation completed",
        )

    async def verify(self, student_answer: str, expected_answer: str) -> VerifierVerdict:
        """Ask the model whether two answers are mathematically equivalent."""
        prompt = VERIFY_EQUIVALENCE.format(
            student_answer=student_answer, expected_answer=expected_answer
        )
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": VERIFY_SYSTEM},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
                temperature=0.1,
                max_tokens=200,
            )
        except (OpenAIError, httpx.HTTPError) as e:
            raise EscalationUnavailable(f"OpenAI request failed: {e}") from e

        raw_text = (completion.choices[0].message.content or "").strip()
        verdict = self._parse_verdict(raw_text)
        log.info(
            f"[VERIFIER] {student_answer!r} vs {expected_answer!r}: "
            f"equivalent={verdict.is_equivalent}"
        )
        return verdict

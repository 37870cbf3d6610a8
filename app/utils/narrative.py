"""
Narrative generators for the expense analysis report.

Both generators share one contract: ``generate(payload) -> GenerationResult``.
The remote generator asks an OpenAI chat model for insights and reports any
problem as a failed result; the rule-based generator always succeeds.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

import openai

from app.core.config import OPENAI_KEY_PLACEHOLDER, settings
from app.core.exceptions import GenerationUnavailable
from app.utils.insights import PromptPayload, format_amount, render_fallback_narrative

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a financial advisor providing insights on expense patterns."

ClientFactory = Callable[[str, float], Any]


@dataclass(frozen=True)
class GenerationResult:
    text: Optional[str] = None
    error: Optional[GenerationUnavailable] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None

    @classmethod
    def success(cls, text: str) -> "GenerationResult":
        return cls(text=text)

    @classmethod
    def failure(cls, reason: str) -> "GenerationResult":
        return cls(error=GenerationUnavailable(reason))


def _default_client_factory(api_key: str, timeout: float):
    # A single attempt per report: the SDK's own retries are disabled.
    return openai.OpenAI(api_key=api_key, timeout=timeout, max_retries=0)


class RemoteNarrativeGenerator:
    """Generates the narrative with an OpenAI chat completion."""

    source = "remote"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self._api_key = settings.OPENAI_API_KEY if api_key is None else api_key
        self._model = model or settings.OPENAI_MODEL
        self._max_tokens = max_tokens or settings.OPENAI_MAX_TOKENS
        self._temperature = settings.OPENAI_TEMPERATURE if temperature is None else temperature
        self._timeout = timeout or settings.OPENAI_TIMEOUT_SECONDS
        self._client_factory = client_factory or _default_client_factory

    @property
    def is_configured(self) -> bool:
        key = (self._api_key or "").strip()
        return bool(key) and key != OPENAI_KEY_PLACEHOLDER

    @staticmethod
    def build_prompt(payload: PromptPayload) -> str:
        money = payload.currency
        lines: List[str] = [
            "Analyze the following expense data and provide insights:",
            "",
            f"Period: {payload.start_date.isoformat()} to {payload.end_date.isoformat()}",
            f"Total Expenses: {format_amount(payload.total, money)}",
            f"Number of Transactions: {payload.count}",
            "",
            "Category Breakdown:",
        ]
        for category, amount in payload.category_totals.items():
            lines.append(f"- {category}: {format_amount(amount, money)}")
        lines += [
            "",
            "Provide:",
            "1. Key spending patterns",
            "2. Areas where spending could be reduced",
            "3. Budget recommendations",
            "4. Any concerning trends",
        ]
        return "\n".join(lines) + "\n"

    def build_request(self, payload: PromptPayload) -> Dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": self.build_prompt(payload)},
            ],
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
        }

    def generate(self, payload: PromptPayload) -> GenerationResult:
        if not self.is_configured:
            logger.info("OpenAI API key not configured, skipping remote narrative")
            return GenerationResult.failure("OpenAI API key is not configured")

        try:
            client = self._client_factory(self._api_key, self._timeout)
            response = client.chat.completions.create(**self.build_request(payload))
            content = response.choices[0].message.content
        except Exception as e:
            # Auth errors, timeouts, rate limits and malformed responses all end up here.
            logger.warning(f"Remote narrative generation failed: {type(e).__name__}: {str(e)}")
            return GenerationResult.failure(f"{type(e).__name__}: {e}")

        if not content or not content.strip():
            logger.warning("Remote narrative generation returned an empty response")
            return GenerationResult.failure("Empty response from OpenAI")

        return GenerationResult.success(content.strip())


class FallbackNarrativeGenerator:
    """Deterministic rule-based narrative. Never fails."""

    source = "fallback"

    def __init__(self, threshold_percent: Optional[Decimal] = None) -> None:
        self._threshold_percent = threshold_percent

    def generate(self, payload: PromptPayload) -> GenerationResult:
        return GenerationResult.success(render_fallback_narrative(payload, self._threshold_percent))

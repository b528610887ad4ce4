"""
Claude Client for Page Copy

Async wrapper around the Anthropic Messages API used for intros,
benefits, FAQs, winner patterns and improvement options.

A failed call comes back as AnalysisResponse(success=False) instead of
raising. Nothing here retries: a failed call fails the city page (or
triggers the improver's fallback) that made it.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import anthropic

logger = logging.getLogger(__name__)

# USD per million tokens (input, output), matched on model family
MODEL_PRICING: Dict[str, Tuple[float, float]] = {
    "haiku": (0.80, 4.0),
    "sonnet": (3.0, 15.0),
    "opus": (15.0, 75.0),
}
DEFAULT_PRICING = MODEL_PRICING["sonnet"]


def pricing_for(model: str) -> Tuple[float, float]:
    for family, prices in MODEL_PRICING.items():
        if family in model:
            return prices
    return DEFAULT_PRICING


@dataclass
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def cost(self, model: str = "") -> float:
        input_price, output_price = pricing_for(model)
        return (self.input_tokens * input_price + self.output_tokens * output_price) / 1_000_000

    def add(self, other: "TokenUsage"):
        self.input_tokens += other.input_tokens
        self.output_tokens += other.output_tokens


@dataclass
class AnalysisResponse:
    """Result of one Claude call."""
    content: str
    usage: TokenUsage
    model: str
    stop_reason: str
    success: bool = True
    error: Optional[str] = None

    @property
    def truncated(self) -> bool:
        """Output hit max_tokens; JSON answers are likely cut off."""
        return self.stop_reason == "max_tokens"


class ClaudeClient:
    """
    Async Claude client with per-run usage tracking.

    Usage:
        claude = ClaudeClient(api_key=settings.ANTHROPIC_API_KEY)
        response = await claude.analyze(prompt, system=COPYWRITER_SYSTEM)
        if response.success:
            print(response.content)
        print(claude.get_usage_summary())
    """

    DEFAULT_MODEL = "claude-sonnet-4-20250514"
    MAX_TOKENS = 4000
    TEMPERATURE = 0.7

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 120.0,
    ):
        """
        Args:
            api_key: Anthropic API key (falls back to ANTHROPIC_API_KEY)
            model: Claude model id
            timeout: Per-request timeout in seconds
        """
        api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise ValueError("ANTHROPIC_API_KEY not provided")

        self.model = model or self.DEFAULT_MODEL
        self.async_client = anthropic.AsyncAnthropic(
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
        )

        self.total_usage = TokenUsage()
        self.call_count = 0
        self.failed_calls = 0

    def _failure(self, error: str, stop_reason: str = "error") -> AnalysisResponse:
        self.failed_calls += 1
        return AnalysisResponse(
            content="",
            usage=TokenUsage(),
            model=self.model,
            stop_reason=stop_reason,
            success=False,
            error=error,
        )

    async def analyze(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = MAX_TOKENS,
        temperature: float = TEMPERATURE,
    ) -> AnalysisResponse:
        """Send one user prompt and return the concatenated text blocks."""
        request: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system

        try:
            message = await self.async_client.messages.create(**request)
        except anthropic.APIStatusError as e:
            logger.error(f"Claude returned HTTP {e.status_code}: {e.message}")
            return self._failure(f"API error {e.status_code}: {e.message}")
        except anthropic.APIError as e:
            logger.error(f"Claude request failed: {e}")
            return self._failure(f"API error: {e}")

        text = "".join(block.text for block in message.content if getattr(block, "type", None) == "text")
        usage = TokenUsage(
            input_tokens=message.usage.input_tokens,
            output_tokens=message.usage.output_tokens,
        )
        self.total_usage.add(usage)
        self.call_count += 1

        response = AnalysisResponse(
            content=text,
            usage=usage,
            model=self.model,
            stop_reason=message.stop_reason or "",
        )
        if response.truncated:
            logger.warning(f"Claude output truncated at {max_tokens} tokens")

        logger.debug(
            f"Claude call #{self.call_count}: {usage.input_tokens} in / "
            f"{usage.output_tokens} out (${usage.cost(self.model):.4f})"
        )
        return response

    async def close(self):
        await self.async_client.close()

    def get_total_cost(self) -> float:
        return self.total_usage.cost(self.model)

    def get_usage_summary(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "calls": self.call_count,
            "failed_calls": self.failed_calls,
            "input_tokens": self.total_usage.input_tokens,
            "output_tokens": self.total_usage.output_tokens,
            "estimated_cost": round(self.get_total_cost(), 4),
        }

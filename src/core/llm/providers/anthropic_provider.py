"""Anthropic Claude provider for the LLM client abstraction.

Wraps the async ``anthropic`` SDK to expose the standard ``complete`` and
``complete_json`` interface expected by :class:`~src.core.llm.client.LLMClient`.
"""

from __future__ import annotations

import json

from src.core.llm.parsing import JSON_INSTRUCTION, parse_json
from src.utils.exceptions import LLMError
from src.utils.logging import get_logger

logger = get_logger("llm.anthropic")


class AnthropicProvider:
    """Provider implementation for Anthropic Claude models.

    Parameters
    ----------
    api_key:
        Anthropic API key.
    model:
        Model identifier, e.g. ``"claude-sonnet-4-20250514"``.
    max_tokens:
        Upper bound on the generated response length.
    """

    def __init__(self, api_key: str, model: str, max_tokens: int = 4096):
        try:
            import anthropic
        except ImportError as exc:
            raise LLMError(
                "anthropic",
                "The 'anthropic' package is not installed. "
                "Install it with: pip install anthropic",
            ) from exc

        if not api_key:
            raise LLMError("anthropic", "API key is required but was empty.")

        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens

    async def complete(self, system: str, user: str, temperature: float | None = None) -> str:
        """Call Claude and return the assistant's text response."""
        kwargs = {}
        if temperature is not None:
            kwargs["temperature"] = temperature
        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=[{"role": "user", "content": user}],
                **kwargs,
            )
        except Exception as exc:
            logger.error("anthropic_complete_error", error=str(exc))
            raise LLMError("anthropic", str(exc)) from exc

        return "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )

    async def complete_json(self, system: str, user: str, temperature: float | None = None) -> dict:
        """Call Claude and parse the response as a JSON object."""
        raw = await self.complete(system + JSON_INSTRUCTION, user, temperature)
        try:
            return parse_json(raw)
        except json.JSONDecodeError as exc:
            logger.error("anthropic_json_parse_error", raw=raw[:500], error=str(exc))
            raise LLMError(
                "anthropic",
                f"Failed to parse LLM response as JSON: {exc}",
            ) from exc

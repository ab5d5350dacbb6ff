"""OpenAI and OpenAI-compatible provider for the LLM client abstraction.

The same ``openai`` SDK serves OpenAI itself and every service exposing a
compatible ``/chat/completions`` endpoint (DeepSeek, Ollama, Groq, ...) via
a custom ``base_url``.
"""

from __future__ import annotations

import json

from src.core.llm.parsing import JSON_INSTRUCTION, parse_json
from src.utils.exceptions import LLMError
from src.utils.logging import get_logger

logger = get_logger("llm.openai")


class OpenAIProvider:
    """Provider implementation for OpenAI-style chat completion APIs.

    Parameters
    ----------
    api_key:
        API key.  Local servers such as Ollama accept any non-empty value.
    model:
        Model identifier, e.g. ``"gpt-4o"`` or ``"deepseek-chat"``.
    base_url:
        Endpoint root; ``None`` targets api.openai.com.
    provider_name:
        Name used in log events and :class:`LLMError` messages.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        provider_name: str = "openai",
        max_tokens: int = 4096,
    ):
        try:
            import openai
        except ImportError as exc:
            raise LLMError(
                provider_name,
                "The 'openai' package is not installed. "
                "Install it with: pip install openai",
            ) from exc

        if not api_key:
            raise LLMError(provider_name, "API key is required but was empty.")

        self.client = openai.AsyncOpenAI(api_key=api_key, base_url=base_url or None)
        self.model = model
        self.provider_name = provider_name
        self.max_tokens = max_tokens

    async def _chat(self, system: str, user: str, **kwargs) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                **kwargs,
            )
        except Exception as exc:
            logger.error("openai_complete_error", provider=self.provider_name, error=str(exc))
            raise LLMError(self.provider_name, str(exc)) from exc

        choice = response.choices[0] if response.choices else None
        if choice and choice.message and choice.message.content:
            return choice.message.content
        return ""

    async def complete(self, system: str, user: str, temperature: float | None = None) -> str:
        """Return the assistant's text response."""
        kwargs = {} if temperature is None else {"temperature": temperature}
        return await self._chat(system, user, **kwargs)

    async def complete_json(self, system: str, user: str, temperature: float | None = None) -> dict:
        """Request JSON mode and parse the response as a JSON object."""
        kwargs = {"response_format": {"type": "json_object"}}
        if temperature is not None:
            kwargs["temperature"] = temperature
        raw = await self._chat(system + JSON_INSTRUCTION, user, **kwargs)
        try:
            return parse_json(raw)
        except json.JSONDecodeError as exc:
            logger.error("openai_json_parse_error", provider=self.provider_name, error=str(exc))
            raise LLMError(
                self.provider_name,
                f"Failed to parse LLM response as JSON: {exc}",
            ) from exc

"""High-level LLM client abstraction.

Provides a unified interface for interacting with different LLM providers
through a single ``LLMClient`` class.  Supported providers:

  - ``anthropic`` - Anthropic Claude
  - ``openai`` - OpenAI GPT
  - ``deepseek``, ``ollama`` and other well-known OpenAI-compatible services
  - ``openai_compatible`` - Any OpenAI-compatible API with a custom base_url

The concrete provider is selected at initialisation time based on the
``provider`` string.
"""

from __future__ import annotations

from src.utils.exceptions import LLMError
from src.utils.logging import get_logger

# Well-known OpenAI-compatible providers and their default base URLs.
_KNOWN_COMPATIBLE_PROVIDERS: dict[str, str] = {
    "deepseek": "https://api.deepseek.com",
    "ollama": "http://localhost:11434/v1",
    "together": "https://api.together.xyz/v1",
    "groq": "https://api.groq.com/openai/v1",
    "moonshot": "https://api.moonshot.cn/v1",
}

# Providers that run locally and accept any API key.
LOCAL_PROVIDERS = frozenset({"ollama"})


class LLMClient:
    """Unified LLM client that delegates to a provider-specific backend.

    Parameters
    ----------
    provider:
        Provider name - ``"anthropic"``, ``"openai"``, ``"openai_compatible"``
        or any key in the well-known compatible providers registry.
    api_key:
        API key for the chosen provider.
    model:
        Model identifier (e.g. ``"claude-sonnet-4-20250514"``, ``"gpt-4o"``).
    base_url:
        Optional base URL.  Required for ``openai_compatible``; overrides the
        default for well-known compatible providers.
    max_tokens:
        Upper bound on the response length for every call.
    """

    def __init__(
        self,
        provider: str,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 4096,
    ):
        self.provider = provider
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.max_tokens = max_tokens
        self.logger = get_logger("llm")
        self._provider_client = self._init_provider()

    def _init_provider(self):
        """Instantiate the appropriate provider backend."""
        if self.provider == "anthropic":
            from src.core.llm.providers.anthropic_provider import AnthropicProvider

            return AnthropicProvider(self.api_key, self.model, self.max_tokens)

        from src.core.llm.providers.openai_provider import OpenAIProvider

        if self.provider == "openai":
            return OpenAIProvider(
                self.api_key, self.model, self.base_url, "openai", self.max_tokens,
            )

        if self.provider in _KNOWN_COMPATIBLE_PROVIDERS or self.provider == "openai_compatible":
            base_url = self.base_url or _KNOWN_COMPATIBLE_PROVIDERS.get(self.provider, "")
            if not base_url:
                raise LLMError(
                    self.provider,
                    "base_url is required for openai_compatible provider. "
                    "Set LLM_BASE_URL in your .env file.",
                )
            # Local servers ignore the key but the SDK insists on one.
            api_key = self.api_key or ("local" if self.provider in LOCAL_PROVIDERS else "")
            return OpenAIProvider(
                api_key, self.model, base_url, self.provider, self.max_tokens,
            )

        raise LLMError(
            self.provider,
            f"Unknown provider: {self.provider}. "
            f"Supported: anthropic, openai, "
            f"{', '.join(_KNOWN_COMPATIBLE_PROVIDERS)}, openai_compatible",
        )

    async def complete(self, system: str, user: str, temperature: float | None = None) -> str:
        """Send a system + user message pair and return the text response.

        Raises :class:`LLMError` on provider failures.
        """
        self.logger.info(
            "llm_complete",
            provider=self.provider,
            model=self.model,
            system_len=len(system),
            user_len=len(user),
        )
        try:
            result = await self._provider_client.complete(system, user, temperature)
        except LLMError:
            raise
        except Exception as exc:
            self.logger.error("llm_complete_error", error=str(exc))
            raise LLMError(self.provider, str(exc)) from exc
        self.logger.info("llm_complete_success", response_len=len(result))
        return result

    async def complete_json(
        self, system: str, user: str, temperature: float | None = None,
    ) -> dict:
        """Send a system + user message pair and parse the response as JSON.

        If the response cannot be parsed, a :class:`LLMError` is raised.
        """
        self.logger.info("llm_complete_json", provider=self.provider, model=self.model)
        try:
            result = await self._provider_client.complete_json(system, user, temperature)
        except LLMError:
            raise
        except Exception as exc:
            self.logger.error("llm_complete_json_error", error=str(exc))
            raise LLMError(self.provider, str(exc)) from exc
        self.logger.info("llm_complete_json_success", keys=sorted(result))
        return result

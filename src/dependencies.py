"""FastAPI dependency functions for injection into endpoint handlers.

Each function retrieves or constructs a service object that endpoints
need.  Dependencies that are expensive to create (the engine registry and
the run store) are stored on ``app.state`` during the lifespan and simply
looked up here.
"""

from __future__ import annotations

import uuid
from pathlib import Path

from fastapi import Request

from src.config import settings
from src.core.llm.client import LOCAL_PROVIDERS, LLMClient
from src.engine.models import AutomationConfig
from src.engine.orchestrator import AutomationOrchestrator
from src.engines.registry import EngineRegistry
from src.utils.exceptions import SessionNotFoundError
from src.utils.logging import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# In-memory run store.  In a production system this would be backed by a
# database or distributed cache.
# ---------------------------------------------------------------------------

class RunStore:
    """Holds one orchestrator per automation session.

    Each session writes its artifacts to ``<output_root>/<session_id>``.
    """

    def __init__(self, registry: EngineRegistry, output_root: str | Path) -> None:
        self.registry = registry
        self.output_root = Path(output_root)
        self._runs: dict[str, AutomationOrchestrator] = {}

    def create(self, config: AutomationConfig) -> AutomationOrchestrator:
        session_id = uuid.uuid4().hex
        orchestrator = AutomationOrchestrator(
            self.output_root / session_id,
            config=config,
            registry=self.registry,
            session_id=session_id,
        )
        self._runs[session_id] = orchestrator
        return orchestrator

    def get(self, session_id: str) -> AutomationOrchestrator:
        try:
            return self._runs[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def __len__(self) -> int:
        return len(self._runs)


# ---------------------------------------------------------------------------
# Registry & run store (initialised during app lifespan)
# ---------------------------------------------------------------------------

def get_engine_registry(request: Request) -> EngineRegistry:
    """Return the engine registry stored on ``app.state``."""
    return request.app.state.engine_registry


def get_run_store(request: Request) -> RunStore:
    """Return the run store stored on ``app.state``."""
    return request.app.state.run_store


# ---------------------------------------------------------------------------
# LLM client (optional -- returns None when no provider is configured)
# ---------------------------------------------------------------------------

def _resolve_api_key() -> str:
    """Pick the API key for the configured provider.

    Resolution order:
      1. Provider-specific key (``ANTHROPIC_API_KEY``, ``OPENAI_API_KEY``,
         ``DEEPSEEK_API_KEY``)
      2. Generic ``LLM_API_KEY``
    """
    provider_keys: dict[str, str] = {
        "anthropic": settings.anthropic_api_key,
        "openai": settings.openai_api_key,
        "deepseek": settings.deepseek_api_key,
    }
    return provider_keys.get(settings.llm_provider) or settings.llm_api_key


def get_llm_client() -> LLMClient | None:
    """Build an LLM client when a provider is configured.

    Returns ``None`` when no provider is set, or when the provider needs a
    key and none is available, so generation falls back to templates.
    """
    provider = settings.llm_provider
    if not provider:
        return None

    api_key = _resolve_api_key()
    if not api_key and provider not in LOCAL_PROVIDERS:
        logger.warning("llm_client_unavailable", provider=provider, reason="missing API key")
        return None

    return LLMClient(provider, api_key, settings.llm_model, base_url=settings.llm_base_url or None)

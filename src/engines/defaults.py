"""Reference engine catalogue and the default registry factory."""

from __future__ import annotations

from src.core.llm.client import LLMClient
from src.core.task.models import TaskType as T
from src.engines.backends import LLMBackend, TemplateBackend
from src.engines.models import EngineConfig
from src.engines.registry import EngineRegistry
from src.utils.logging import get_logger

logger = get_logger("engines.defaults")

# cost_weight is USD per million tokens.
DEFAULT_ENGINES: tuple[EngineConfig, ...] = (
    EngineConfig(
        name="claude-sonnet-4.5",
        provider="anthropic",
        display_name="Claude Sonnet 4.5",
        capabilities=[T.PLAN, T.VALIDATE, T.REASONING],
        priority=10,
        cost_weight=3.0,
        temperature=0.7,
        max_tokens=8192,
    ),
    EngineConfig(
        name="gpt-5-codex",
        provider="openai",
        display_name="GPT-5 Codex",
        capabilities=[T.SCAFFOLD, T.IMPLEMENT, T.REFACTOR, T.TEST_GEN],
        priority=10,
        cost_weight=5.0,
        temperature=0.3,
        max_tokens=16384,
    ),
    EngineConfig(
        name="gpt-5",
        provider="openai",
        display_name="GPT-5",
        capabilities=[T.REASONING, T.VALIDATE, T.PLAN],
        priority=9,
        cost_weight=4.0,
        temperature=0.7,
        max_tokens=16384,
    ),
    EngineConfig(
        name="gemini-2.5-pro",
        provider="google",
        display_name="Gemini 2.5 Pro",
        capabilities=[T.DOCS, T.VALIDATE],
        priority=9,
        cost_weight=2.0,
        temperature=0.5,
        max_tokens=8192,
    ),
    EngineConfig(
        name="grok-code-fast-1",
        provider="xai",
        display_name="Grok Code Fast",
        capabilities=[T.QUICK_FIX, T.REFACTOR],
        priority=8,
        cost_weight=1.0,
        fast=True,
        temperature=0.2,
        max_tokens=4096,
    ),
    EngineConfig(
        name="claude-3-5-sonnet-20241022",
        provider="anthropic",
        display_name="Claude 3.5 Sonnet",
        capabilities=[T.PLAN, T.REASONING, T.VALIDATE, T.DOCS],
        priority=8,
        cost_weight=3.0,
        temperature=0.7,
        max_tokens=8192,
    ),
    EngineConfig(
        name="gpt-4-turbo-preview",
        provider="openai",
        display_name="GPT-4 Turbo",
        capabilities=[T.PLAN, T.IMPLEMENT, T.VALIDATE, T.DOCS],
        priority=7,
        cost_weight=10.0,
        fast=True,
        temperature=0.7,
        max_tokens=4096,
    ),
)


def build_default_registry(llm_client: LLMClient | None = None) -> EngineRegistry:
    """Create a registry holding :data:`DEFAULT_ENGINES`.

    Without an LLM client every engine renders through the offline
    :class:`TemplateBackend`.  With one, engines of the client's provider
    are routed through an :class:`LLMBackend`; the rest keep the template
    fallback.
    """
    registry = EngineRegistry(default_backend=TemplateBackend())
    for engine in DEFAULT_ENGINES:
        registry.register(engine)

    if llm_client is not None:
        backend = LLMBackend(llm_client)
        registry.bind_provider(llm_client.provider, backend)
        logger.info("llm_backend_bound", provider=llm_client.provider, model=llm_client.model)

    logger.info("engine_registry_ready", engines=len(registry))
    return registry

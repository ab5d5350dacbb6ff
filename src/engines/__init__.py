"""Generation engines -- registry, selection policy and backends.

Public API::

    from src.engines import (
        EngineConfig,
        EngineRegistry,
        GenerationBackend,
        SelectionPreferences,
        build_default_registry,
    )
"""

from src.engines.base import GenerationBackend
from src.engines.defaults import DEFAULT_ENGINES, build_default_registry
from src.engines.models import (
    EngineConfig,
    ExecutionError,
    GeneratedFile,
    GenerationRequest,
    GenerationResponse,
    SelectionPreferences,
)
from src.engines.registry import EngineRegistry

__all__ = [
    "DEFAULT_ENGINES",
    "EngineConfig",
    "EngineRegistry",
    "ExecutionError",
    "GeneratedFile",
    "GenerationBackend",
    "GenerationRequest",
    "GenerationResponse",
    "SelectionPreferences",
    "build_default_registry",
]

"""Data models for the engine registry and generation backends."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, computed_field

from src.core.task.models import Complexity, TaskType


class EngineConfig(BaseModel):
    """A generation engine and the task types it can handle.

    ``name`` is the engine's identity in the registry.  ``cost_weight`` is
    the relative cost per token and doubles as a quality proxy.
    """

    name: str
    provider: str
    display_name: str = ""
    capabilities: list[TaskType]
    priority: int = 0
    cost_weight: float = 0.0
    fast: bool = False
    temperature: float = 0.7
    max_tokens: int = 4096

    model_config = {"frozen": True}


class SelectionPreferences(BaseModel):
    """Execution preferences steering :meth:`EngineRegistry.select`."""

    complexity: Complexity | None = None
    prefer_speed: bool = False
    prefer_quality: bool = False
    budget: Literal["low", "medium", "high"] | None = None


class GeneratedFile(BaseModel):
    """A single artifact produced by a backend."""

    path: str
    content: str
    language: str = "text"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def size(self) -> int:
        return len(self.content.encode("utf-8"))


class ExecutionError(BaseModel):
    """A problem found while executing a task.

    Backends report failures as values of this type; the executor adds its
    own validation findings.
    """

    kind: Literal["syntax", "type", "runtime", "validation"] = "runtime"
    message: str
    file: str | None = None
    line: int | None = None
    severity: Literal["error", "warning"] = "error"


class GenerationRequest(BaseModel):
    """What a backend is asked to produce."""

    task_type: TaskType
    description: str
    style_context: dict = Field(default_factory=dict)
    engine: EngineConfig | None = None


class GenerationResponse(BaseModel):
    """What a backend returns.  Failures are reported here, never raised."""

    files: list[GeneratedFile] = []
    errors: list[ExecutionError] = []
    warnings: list[str] = []
    metadata: dict = {}

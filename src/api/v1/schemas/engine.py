"""Request/response schemas for engine listing and selection."""

from pydantic import BaseModel

from src.core.task.models import TaskType
from src.engines.models import EngineConfig, SelectionPreferences


class EngineListResponse(BaseModel):
    engines: list[EngineConfig]
    total: int


class EngineSelectRequest(BaseModel):
    """Ask the registry which engine it would pick for a task type."""

    task_type: TaskType
    preferences: SelectionPreferences = SelectionPreferences()


class EngineSelectResponse(BaseModel):
    engine: EngineConfig
    explanation: str

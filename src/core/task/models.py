"""Task and plan data models for the build automation loop.

Defines the closed task-type vocabulary, the forward-only task lifecycle and
the :class:`Plan` produced by the plan builder.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from src.utils.exceptions import InvalidTransitionError


class TaskType(str, Enum):
    """Kinds of generation work a task can request."""

    PLAN = "plan"
    SCAFFOLD = "scaffold"
    IMPLEMENT = "implement"
    REFACTOR = "refactor"
    TEST_GEN = "test-gen"
    DOCS = "docs"
    QUICK_FIX = "quick-fix"
    VALIDATE = "validate"
    REASONING = "reasoning"


class TaskStatus(str, Enum):
    """Lifecycle states for a single task."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"


# Allowed forward moves; completed and failed are final.
_STATUS_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.IN_PROGRESS}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.FAILED: frozenset(),
}


class Complexity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(BaseModel):
    """A single unit of generation work.

    Attributes:
        id: Unique identifier within the plan.
        type: What kind of work the task asks a backend for.
        description: Human-readable instruction forwarded to the backend.
        dependencies: IDs of tasks that must complete before this one.
        status: Current lifecycle state; only ever moves forward.
        priority: Higher runs earlier within an execution pass.
        files: Files the task is expected to produce or touch.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:8])
    type: TaskType
    description: str
    dependencies: list[str] = []
    status: TaskStatus = TaskStatus.PENDING
    priority: int = 0
    files: list[str] = []

    def transition(self, new_status: TaskStatus) -> None:
        """Move to *new_status*, rejecting any backward or skipped move."""
        if new_status not in _STATUS_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"task {self.id}", self.status.value, new_status.value,
            )
        self.status = new_status

    @property
    def is_finished(self) -> bool:
        return self.status in (TaskStatus.COMPLETED, TaskStatus.FAILED)


class DataField(BaseModel):
    name: str
    type: str
    required: bool = True
    description: str = ""


class Relationship(BaseModel):
    type: Literal["one-to-one", "one-to-many", "many-to-many"]
    target: str


class DataModel(BaseModel):
    """An entity the generated application is expected to persist."""

    name: str
    fields: list[DataField]
    relationships: list[Relationship] = []


class Architecture(BaseModel):
    """Architecture sketch attached to a plan.

    Attributes:
        tech_stack: Ordered list of technologies.
        structure: Directory -> file names expected in that directory.
        data_models: Entities derived from domain-signalling objectives.
    """

    tech_stack: list[str] = []
    structure: dict[str, list[str]] = {}
    data_models: list[DataModel] = []


class Plan(BaseModel):
    """Decomposition of a build request into objectives, architecture and tasks.

    Attributes:
        id: Unique plan identifier.
        prompt: The source build request.
        objectives: Ordered objectives derived from the prompt.
        architecture: Stack, directory layout and data models.
        tasks: All tasks, in creation order.
        execution_order: Dependency waves of task IDs, roots first.
        complexity: Rough size estimate of the plan.
        created_at: Creation time (UTC).
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    prompt: str
    objectives: list[str]
    architecture: Architecture = Field(default_factory=Architecture)
    tasks: list[Task] = []
    execution_order: list[list[str]] = []
    complexity: Complexity = Complexity.LOW
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def get_task(self, task_id: str) -> Task | None:
        """Look up a task by its ID.  Returns ``None`` when not found."""
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def get_tasks_by_status(self, status: TaskStatus) -> list[Task]:
        """Return all tasks that currently have the given *status*."""
        return [t for t in self.tasks if t.status == status]

    def dependencies_met(self, task: Task) -> bool:
        """Return ``True`` when every dependency of *task* has completed."""
        for dep_id in task.dependencies:
            dep = self.get_task(dep_id)
            if dep is None or dep.status != TaskStatus.COMPLETED:
                return False
        return True

    def all_finished(self) -> bool:
        """Return ``True`` when every task has completed or failed."""
        return all(t.is_finished for t in self.tasks)

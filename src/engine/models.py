"""Data models for execution results, scoring, decisions and sessions."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from src.core.task.models import Plan
from src.engines.models import ExecutionError, GeneratedFile

__all__ = [
    "AutomationConfig",
    "AutomationContext",
    "AutomationState",
    "Decision",
    "DecisionContext",
    "DecisionOutcome",
    "DecisionRecord",
    "Dimension",
    "ExecutionError",
    "ExecutionMetadata",
    "ExecutionResult",
    "Issue",
    "Score",
    "ScoreMetrics",
    "Severity",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

class ExecutionMetadata(BaseModel):
    engine: str = ""
    tokens_used: int = 0
    duration_seconds: float = 0.0
    started_at: datetime | None = None
    finished_at: datetime | None = None


class ExecutionResult(BaseModel):
    """Outcome of executing a single task.

    Attributes:
        task_id: The originating task's identifier.
        success: ``True`` when no error-severity problem was recorded.
        files_generated: Artifacts produced by the backend.
        files_modified: Files the task declared it would touch.
        errors: Backend, validation and runtime problems.
        warnings: Free-form backend warnings.
        metadata: Engine used, token estimate and timing.
    """

    task_id: str
    success: bool
    files_generated: list[GeneratedFile] = []
    files_modified: list[str] = []
    errors: list[ExecutionError] = []
    warnings: list[str] = []
    metadata: ExecutionMetadata = Field(default_factory=ExecutionMetadata)


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

class Dimension(str, Enum):
    """Quality dimensions the scorer evaluates."""

    TESTS = "tests"
    ACCESSIBILITY = "accessibility"
    PERFORMANCE = "performance"
    SECURITY = "security"
    CODE_QUALITY = "code_quality"


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Issue(BaseModel):
    """A single finding attributed to one quality dimension."""

    dimension: Dimension
    severity: Severity
    message: str
    file: str | None = None
    line: int | None = None
    suggestion: str | None = None
    rule: str = ""


class ScoreMetrics(BaseModel):
    tests: int = 100
    accessibility: int = 100
    performance: int = 100
    security: int = 100
    code_quality: int = 100

    def get(self, dimension: Dimension) -> int:
        return getattr(self, dimension.value)


class Score(BaseModel):
    """Aggregated quality evaluation of one execution pass.

    Attributes:
        overall: Weighted combination of the metrics, 0-100.
        metrics: Per-dimension sub-scores, each 0-100.
        issues: Itemized findings.
        recommendations: Human-readable next steps.
        timestamp: When the evaluated work finished.
    """

    overall: int = Field(ge=0, le=100)
    metrics: ScoreMetrics
    issues: list[Issue] = []
    recommendations: list[str] = []
    timestamp: datetime

    def issues_by_severity(self, severity: Severity) -> list[Issue]:
        return [i for i in self.issues if i.severity == severity]


# ---------------------------------------------------------------------------
# Automation session
# ---------------------------------------------------------------------------

class AutomationState(str, Enum):
    """States of the automation control loop."""

    IDLE = "idle"
    PLANNING = "planning"
    EXECUTING = "executing"
    SCORING = "scoring"
    DECIDING = "deciding"
    COMPLETED = "completed"
    AWAITING_INPUT = "awaiting-input"
    FAILED = "failed"


class Decision(str, Enum):
    COMPLETE = "complete"
    RETRY = "retry"
    REQUEST_INPUT = "request-input"
    FAIL = "fail"


class DecisionRecord(BaseModel):
    """One entry of the append-only decision history."""

    timestamp: datetime = Field(default_factory=_utcnow)
    state: AutomationState
    decision: Decision | None = None
    reasoning: str
    score: Score | None = None
    user_input: str | None = None


class AutomationConfig(BaseModel):
    """Per-run configuration for the automation loop.

    ``quality_threshold`` is the minimum overall score accepted without a
    retry.  ``max_retries`` bounds retries for the whole session.
    """

    max_retries: int = Field(default=3, ge=0)
    quality_threshold: int = Field(default=70, ge=0, le=100)
    enable_tests: bool = True
    enable_accessibility: bool = True
    enable_performance: bool = True
    enable_security: bool = True
    enable_code_quality: bool = True
    auto_approve: bool = False
    verbose: bool = True
    max_parallel_tasks: int = Field(default=1, ge=1)
    task_timeout_seconds: float | None = Field(default=None, gt=0)

    def is_enabled(self, dimension: Dimension) -> bool:
        return getattr(self, f"enable_{dimension.value}")

    @classmethod
    def from_settings(cls, settings) -> "AutomationConfig":
        """Derive run defaults from the application :class:`Settings`."""
        return cls(
            max_retries=settings.max_retries,
            quality_threshold=settings.quality_threshold,
            auto_approve=settings.auto_approve,
            verbose=settings.verbose,
            max_parallel_tasks=settings.max_parallel_tasks,
            task_timeout_seconds=settings.task_timeout_seconds,
        )


class AutomationContext(BaseModel):
    """Everything known about one automation session.

    Owned exclusively by its orchestrator; ``decisions`` is append-only.
    """

    session_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    prompt: str = ""
    state: AutomationState = AutomationState.IDLE
    plan: Plan | None = None
    execution_results: list[ExecutionResult] = []
    scores: list[Score] = []
    decisions: list[DecisionRecord] = []
    output_directory: str
    config: AutomationConfig = Field(default_factory=AutomationConfig)
    retry_count: int = 0
    error: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def latest_score(self) -> Score | None:
        return self.scores[-1] if self.scores else None


# ---------------------------------------------------------------------------
# Decision engine I/O
# ---------------------------------------------------------------------------

class DecisionContext(BaseModel):
    score: Score
    retry_count: int = 0
    config: AutomationConfig = Field(default_factory=AutomationConfig)
    history: list[DecisionRecord] = []


class DecisionOutcome(BaseModel):
    decision: Decision
    reason: str

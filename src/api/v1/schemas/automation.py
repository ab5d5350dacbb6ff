"""Request/response schemas for automation runs."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from src.engine.models import AutomationConfig, AutomationContext, ScoreMetrics


class RunRequest(BaseModel):
    """Start a new automation session.

    ``repo_path`` names an existing project, relative to the server's
    workspace directory, to plan against; omit it to plan from scratch.
    """

    prompt: str = Field(..., max_length=10000)
    config: AutomationConfig | None = None
    repo_path: str | None = None


class ResumeRequest(BaseModel):
    """Additional input for a session waiting on a human."""

    user_input: str = Field(..., min_length=1, max_length=10000)
    repo_path: str | None = None


class TaskInfo(BaseModel):
    id: str
    type: str
    description: str
    status: str
    priority: int
    dependencies: list[str]


class ScoreInfo(BaseModel):
    overall: int
    metrics: ScoreMetrics
    issue_count: int
    recommendations: list[str]


class DecisionInfo(BaseModel):
    timestamp: datetime
    state: str
    decision: str | None
    reasoning: str
    user_input: str | None = None


class RunSummary(BaseModel):
    """Serialised view of an :class:`AutomationContext`."""

    session_id: str
    state: str
    retry_count: int
    error: str | None = None
    output_directory: str
    objectives: list[str] = []
    complexity: str | None = None
    tasks: list[TaskInfo] = []
    scores: list[ScoreInfo] = []
    decisions: list[DecisionInfo] = []
    files: list[str] = []

    @classmethod
    def from_context(cls, ctx: AutomationContext) -> "RunSummary":
        plan = ctx.plan
        files = sorted({
            f.path for r in ctx.execution_results if r.success for f in r.files_generated
        })
        return cls(
            session_id=ctx.session_id,
            state=ctx.state.value,
            retry_count=ctx.retry_count,
            error=ctx.error,
            output_directory=ctx.output_directory,
            objectives=plan.objectives if plan else [],
            complexity=plan.complexity.value if plan else None,
            tasks=[
                TaskInfo(
                    id=t.id,
                    type=t.type.value,
                    description=t.description,
                    status=t.status.value,
                    priority=t.priority,
                    dependencies=t.dependencies,
                )
                for t in (plan.tasks if plan else [])
            ],
            scores=[
                ScoreInfo(
                    overall=s.overall,
                    metrics=s.metrics,
                    issue_count=len(s.issues),
                    recommendations=s.recommendations,
                )
                for s in ctx.scores
            ],
            decisions=[
                DecisionInfo(
                    timestamp=d.timestamp,
                    state=d.state.value,
                    decision=d.decision.value if d.decision else None,
                    reasoning=d.reasoning,
                    user_input=d.user_input,
                )
                for d in ctx.decisions
            ],
            files=files,
        )


class EventListResponse(BaseModel):
    session_id: str
    events: list[dict]
    total: int

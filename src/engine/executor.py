"""Task executor -- selects an engine for each task and runs its backend.

The :class:`TaskExecutor` is the bridge between the plan and the engine
registry.  For every :class:`Task` it:

1. Selects an engine for the task type.
2. Resolves that engine's backend.
3. Invokes the backend, optionally under a timeout.
4. Validates the generated files.
5. Returns an :class:`ExecutionResult` summarising the outcome.
"""

from __future__ import annotations

import asyncio
import math
import re
import time
import traceback
from datetime import datetime, timezone

from src.core.task.models import Task
from src.engine.models import (
    AutomationConfig,
    ExecutionError,
    ExecutionMetadata,
    ExecutionResult,
)
from src.engines.models import (
    GeneratedFile,
    GenerationRequest,
    GenerationResponse,
    SelectionPreferences,
)
from src.engines.registry import EngineRegistry
from src.utils.exceptions import ExecutionFailure, UnsupportedTaskError
from src.utils.logging import get_logger

_HEX_COLOR_RE = re.compile(r"#[0-9A-Fa-f]{6}\b")
MAX_COMPONENT_LINES = 200


def estimate_tokens(files: list[GeneratedFile]) -> int:
    """Rough token estimate: one token per four characters."""
    return math.ceil(sum(len(f.content) for f in files) / 4)


def validate_generated_files(
    files: list[GeneratedFile],
    use_design_tokens: bool = True,
) -> list[ExecutionError]:
    """Return warning-level validation findings for *files*."""
    findings: list[ExecutionError] = []
    for file in files:
        if file.language != "typescript":
            continue
        if use_design_tokens and _HEX_COLOR_RE.search(file.content):
            findings.append(
                ExecutionError(
                    kind="validation",
                    message="Raw hex color found. Use design tokens instead",
                    file=file.path,
                    severity="warning",
                )
            )
        if "component" in file.path.lower():
            lines = file.content.count("\n") + 1
            if lines > MAX_COMPONENT_LINES:
                findings.append(
                    ExecutionError(
                        kind="validation",
                        message=(
                            f"Component has {lines} lines. "
                            f"Consider splitting (max {MAX_COMPONENT_LINES} LoC)"
                        ),
                        file=file.path,
                        severity="warning",
                    )
                )
    return findings


class TaskExecutor:
    """Execute individual tasks by delegating to registry backends.

    Parameters
    ----------
    registry:
        The populated :class:`EngineRegistry` from which engines and their
        backends are resolved.
    validate_output:
        Run :func:`validate_generated_files` on every response.
    """

    def __init__(self, registry: EngineRegistry, validate_output: bool = True) -> None:
        self.registry = registry
        self.validate_output = validate_output
        self.logger = get_logger("engine.executor")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def execute(
        self,
        task: Task,
        config: AutomationConfig | None = None,
        style_context: dict | None = None,
    ) -> ExecutionResult:
        """Execute a single *task* end-to-end.

        Safe to call for any task: unsupported types, backend exceptions and
        timeouts are returned inside the :class:`ExecutionResult` as
        ``runtime`` errors rather than propagated.
        """
        config = config or AutomationConfig()
        style_context = dict(style_context or {})
        started_at = datetime.now(timezone.utc)
        start = time.monotonic()
        engine_name = ""

        try:
            engine = self.registry.select(
                task.type,
                SelectionPreferences(prefer_quality="quick" not in task.description.lower()),
            )
            engine_name = engine.name
            self.logger.info(
                "task_start",
                task_id=task.id,
                task_type=task.type.value,
                engine=engine.name,
            )

            response = await self._invoke(task, engine, style_context, config.task_timeout_seconds)

            errors = list(response.errors)
            if self.validate_output:
                errors.extend(
                    validate_generated_files(
                        response.files,
                        bool(style_context.get("use_design_tokens", True)),
                    )
                )

            result = ExecutionResult(
                task_id=task.id,
                success=not any(e.severity == "error" for e in errors),
                files_generated=response.files,
                files_modified=list(task.files),
                errors=errors,
                warnings=list(response.warnings),
                metadata=self._metadata(
                    engine_name, estimate_tokens(response.files), start, started_at,
                ),
            )
            self.logger.info(
                "task_complete",
                task_id=task.id,
                success=result.success,
                files=len(result.files_generated),
                duration=result.metadata.duration_seconds,
            )
            return result

        except UnsupportedTaskError as exc:
            return self._fail(task, str(exc), engine_name, start, started_at)

        except ExecutionFailure as exc:
            return self._fail(task, str(exc), engine_name, start, started_at)

        except Exception as exc:
            # Catch-all so we never crash the control loop.
            self.logger.error(
                "task_unexpected_error",
                task_id=task.id,
                error=str(exc),
                traceback=traceback.format_exc(),
            )
            return self._fail(task, f"Unexpected error: {exc}", engine_name, start, started_at)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _invoke(
        self,
        task: Task,
        engine,
        style_context: dict,
        timeout: float | None,
    ) -> GenerationResponse:
        backend = self.registry.backend_for(engine)
        if backend is None:
            raise ExecutionFailure(task.id, f"No backend bound for engine {engine.name}")

        request = GenerationRequest(
            task_type=task.type,
            description=task.description,
            style_context=style_context,
            engine=engine,
        )
        try:
            if timeout is None:
                return await backend.invoke(request)
            return await asyncio.wait_for(backend.invoke(request), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise ExecutionFailure(
                task.id, f"backend {backend.name} timed out after {timeout}s",
            ) from exc

    @staticmethod
    def _metadata(
        engine: str,
        tokens: int,
        start: float,
        started_at: datetime,
    ) -> ExecutionMetadata:
        return ExecutionMetadata(
            engine=engine,
            tokens_used=tokens,
            duration_seconds=round(time.monotonic() - start, 4),
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )

    def _fail(
        self,
        task: Task,
        error_msg: str,
        engine: str,
        start: float,
        started_at: datetime,
    ) -> ExecutionResult:
        """Return a failure :class:`ExecutionResult` carrying a runtime error."""
        metadata = self._metadata(engine, 0, start, started_at)
        self.logger.error(
            "task_failed",
            task_id=task.id,
            error=error_msg,
            duration=metadata.duration_seconds,
        )
        return ExecutionResult(
            task_id=task.id,
            success=False,
            errors=[ExecutionError(kind="runtime", message=error_msg, severity="error")],
            metadata=metadata,
        )

"""Automation orchestrator -- drives plan, execute, score and decide.

State machine::

    idle -> planning -> executing -> scoring -> deciding
                           ^                       |
                           +------- retry ---------+
                                                   +-> completed
                                                   +-> awaiting-input
                                                   +-> failed

``completed`` and ``failed`` are terminal.  ``awaiting-input`` ends the run;
a later :meth:`AutomationOrchestrator.run` call carrying user input resumes
it by planning again.  The retry budget is shared by the whole session.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from src.core.planning.builder import PlanBuilder
from src.core.planning.repository import RepositoryContext, RepositoryContextProvider
from src.core.task.models import Plan, Task, TaskStatus
from src.core.task.scheduler import TaskScheduler
from src.engine.decision import DecisionEngine, check_transition, halts_run, next_state
from src.engine.events import (
    DecisionMadeEvent,
    ErrorEvent,
    EventLog,
    InfoEvent,
    PlanCreatedEvent,
    ScoreCalculatedEvent,
    StateChangeEvent,
    TaskCompletedEvent,
    TaskStartedEvent,
)
from src.engine.executor import TaskExecutor
from src.engine.models import (
    AutomationConfig,
    AutomationContext,
    AutomationState,
    Decision,
    DecisionContext,
    DecisionRecord,
    ExecutionResult,
)
from src.engine.renderer import FileRenderer
from src.engine.report import render_score_report
from src.engine.scorer import QualityScorer
from src.engines.defaults import build_default_registry
from src.engines.registry import EngineRegistry
from src.utils.exceptions import InvalidTransitionError, OrchestratorFault
from src.utils.logging import get_logger

logger = get_logger("engine.orchestrator")

CANCELLED = "cancelled"


class AutomationOrchestrator:
    """Run one automation session.

    Parameters
    ----------
    output_directory:
        Where generated artifacts are written.
    config:
        Run configuration; defaults to :class:`AutomationConfig`.
    registry:
        Engine registry; :func:`build_default_registry` when omitted.
    plan_builder, executor, scorer, decision_engine, renderer:
        Collaborators; defaults are constructed when omitted.
    session_id:
        Explicit session identifier; generated when omitted.
    """

    def __init__(
        self,
        output_directory: str | Path,
        config: AutomationConfig | None = None,
        registry: EngineRegistry | None = None,
        plan_builder: PlanBuilder | None = None,
        executor: TaskExecutor | None = None,
        scorer: QualityScorer | None = None,
        decision_engine: DecisionEngine | None = None,
        renderer: FileRenderer | None = None,
        session_id: str | None = None,
    ) -> None:
        self.context = AutomationContext(
            output_directory=str(output_directory),
            config=config or AutomationConfig(),
        )
        if session_id:
            self.context.session_id = session_id
        self.registry = registry or build_default_registry()
        self.plan_builder = plan_builder or PlanBuilder()
        self.executor = executor or TaskExecutor(self.registry)
        self.scorer = scorer or QualityScorer()
        self.decision_engine = decision_engine or DecisionEngine()
        self.renderer = renderer or FileRenderer(str(output_directory))
        self.scheduler = TaskScheduler()
        self.event_log = EventLog()
        self._lock = asyncio.Lock()
        self._cancel_requested = False

        self._info(f"Automation session started: {self.context.session_id}")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def session_id(self) -> str:
        return self.context.session_id

    def get_context(self) -> AutomationContext:
        return self.context

    def get_history(self) -> list:
        """Return the session's events in emission order."""
        return self.event_log.events()

    def cancel(self) -> None:
        """Ask the running session to stop before its next task attempt."""
        self._cancel_requested = True
        logger.info("cancel_requested", session_id=self.session_id)

    async def run(
        self,
        prompt: str = "",
        repo_context: RepositoryContext | RepositoryContextProvider | None = None,
        user_input: str | None = None,
    ) -> AutomationContext:
        """Run the control loop until it completes, fails or needs input.

        Starting from ``awaiting-input`` resumes the session: *user_input* is
        recorded and the session plans again with it, keeping its retry
        count.  Faults never propagate; they end the run in ``failed`` with
        the message in :attr:`AutomationContext.error`.

        Raises :class:`InvalidTransitionError` when the session is already
        running or finished.
        """
        ctx = self.context
        if ctx.state not in (AutomationState.IDLE, AutomationState.AWAITING_INPUT):
            raise InvalidTransitionError("automation", ctx.state.value, AutomationState.PLANNING.value)

        if prompt:
            ctx.prompt = prompt
        if user_input:
            ctx.decisions.append(
                DecisionRecord(
                    state=ctx.state,
                    reasoning="User input received",
                    user_input=user_input,
                )
            )
            self._info(f"User input received: {user_input}")

        logger.info("automation_start", session_id=ctx.session_id, resume=ctx.state.value)

        try:
            self._transition(AutomationState.PLANNING)
            self._plan_phase(self._planning_prompt(), repo_context)

            while not halts_run(ctx.state):
                if self._cancel_requested:
                    self._abort(CANCELLED)
                    break
                if ctx.state == AutomationState.EXECUTING:
                    await self._execute_phase()
                elif ctx.state == AutomationState.SCORING:
                    self._score_phase()
                elif ctx.state == AutomationState.DECIDING:
                    self._decide_phase()
                else:
                    raise OrchestratorFault(f"Unexpected state: {ctx.state.value}")
        except Exception as exc:
            logger.error("automation_fault", session_id=ctx.session_id, error=str(exc), exc_info=True)
            self.event_log.emit(ErrorEvent(session_id=ctx.session_id, message=str(exc)))
            self._abort(str(exc))

        self._info(f"Automation finished with state: {ctx.state.value}")
        logger.info(
            "automation_complete",
            session_id=ctx.session_id,
            state=ctx.state.value,
            retries=ctx.retry_count,
            scores=[s.overall for s in ctx.scores],
        )
        return ctx

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _plan_phase(
        self,
        prompt: str,
        repo_context: RepositoryContext | RepositoryContextProvider | None,
    ) -> Plan:
        self._info("Starting planning phase")
        plan = self.plan_builder.build(prompt, repo_context)
        self.context.plan = plan
        self.event_log.emit(
            PlanCreatedEvent(
                session_id=self.session_id,
                plan_id=plan.id,
                task_count=len(plan.tasks),
                complexity=plan.complexity.value,
            )
        )
        self._transition(AutomationState.EXECUTING)
        return plan

    async def _execute_phase(self) -> None:
        plan = self.context.plan
        if plan is None:
            raise OrchestratorFault("No plan available for execution")

        style_context = self._style_context(plan)
        pending = [t for t in self.scheduler.by_priority(plan.tasks) if t.status == TaskStatus.PENDING]
        self._info(f"Executing {len(pending)} pending task(s)")

        if self.context.config.max_parallel_tasks > 1:
            await self._execute_parallel(plan, style_context)
        else:
            for task in pending:
                if self._cancel_requested:
                    break
                if not plan.dependencies_met(task):
                    self._info(f"Skipping task {task.id} - dependencies not met")
                    continue
                await self._run_task(task, style_context)

        if self._cancel_requested:
            return
        self._transition(AutomationState.SCORING)

    async def _execute_parallel(self, plan: Plan, style_context: dict) -> None:
        """Run ready tasks concurrently, re-checking readiness after each finishes."""
        limit = self.context.config.max_parallel_tasks
        running: dict[asyncio.Task, Task] = {}
        started: set[str] = set()

        try:
            while True:
                if not self._cancel_requested:
                    async with self._lock:
                        ready = [
                            t for t in self.scheduler.ready_tasks(plan.tasks)
                            if t.id not in started
                        ]
                    for task in ready[: max(0, limit - len(running))]:
                        started.add(task.id)
                        running[asyncio.create_task(self._run_task(task, style_context))] = task
                if not running:
                    break
                done, _ = await asyncio.wait(running, return_when=asyncio.FIRST_COMPLETED)
                for finished in done:
                    running.pop(finished)
                    finished.result()
        finally:
            for pending in running:
                pending.cancel()
            if running:
                await asyncio.gather(*running, return_exceptions=True)

        for task in plan.tasks:
            if task.status == TaskStatus.PENDING and task.id not in started:
                self._info(f"Skipping task {task.id} - dependencies not met")

    async def _run_task(self, task: Task, style_context: dict) -> ExecutionResult:
        async with self._lock:
            task.transition(TaskStatus.IN_PROGRESS)
        self.event_log.emit(
            TaskStartedEvent(session_id=self.session_id, task_id=task.id, task_type=task.type.value)
        )

        result = await self.executor.execute(task, self.context.config, style_context)
        if result.success and result.files_generated:
            _, warnings = await self.renderer.render_all(result.files_generated)
            result.warnings.extend(warnings)

        async with self._lock:
            task.transition(TaskStatus.COMPLETED if result.success else TaskStatus.FAILED)
            self.context.execution_results.append(result)

        self.event_log.emit(
            TaskCompletedEvent(
                session_id=self.session_id,
                task_id=task.id,
                success=result.success,
                engine=result.metadata.engine,
                files=[f.path for f in result.files_generated],
            )
        )
        return result

    def _score_phase(self) -> None:
        self._info("Evaluating quality")
        score = self.scorer.score(self._current_results(), self.context.config)
        self.context.scores.append(score)
        self.event_log.emit(
            ScoreCalculatedEvent(
                session_id=self.session_id,
                overall=score.overall,
                issue_count=len(score.issues),
            )
        )
        if self.context.config.verbose:
            self._info(render_score_report(score))
        self._transition(AutomationState.DECIDING)

    def _decide_phase(self) -> None:
        ctx = self.context
        score = ctx.latest_score
        if score is None:
            raise OrchestratorFault("No score available for decision")

        decision_context = DecisionContext(
            score=score,
            retry_count=ctx.retry_count,
            config=ctx.config,
            history=list(ctx.decisions),
        )
        outcome = self.decision_engine.decide(decision_context)
        ctx.decisions.append(
            DecisionRecord(
                state=ctx.state,
                decision=outcome.decision,
                reasoning=outcome.reason,
                score=score,
            )
        )
        self.event_log.emit(
            DecisionMadeEvent(
                session_id=self.session_id,
                decision=outcome.decision.value,
                reason=outcome.reason,
            )
        )

        if ctx.config.verbose:
            self._info(self.decision_engine.explain(decision_context, outcome))
            actions = self.decision_engine.suggest_next_actions(outcome.decision, score)
            if actions:
                self._info("Suggested actions:\n" + "\n".join(f"- {a}" for a in actions))

        if outcome.decision == Decision.RETRY:
            ctx.retry_count += 1
        if outcome.decision == Decision.FAIL:
            ctx.error = outcome.reason
        self._transition(next_state(outcome.decision))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _transition(self, target: AutomationState) -> None:
        current = self.context.state
        check_transition(current, target)
        self.context.state = target
        self.event_log.emit(
            StateChangeEvent(
                session_id=self.session_id,
                from_state=current.value,
                to_state=target.value,
            )
        )
        logger.info("state_change", session_id=self.session_id, from_state=current.value, to_state=target.value)

    def _abort(self, reason: str) -> None:
        """Move to ``failed`` with *reason*, leaving no task in progress."""
        ctx = self.context
        if ctx.plan is not None:
            for task in ctx.plan.tasks:
                if task.status == TaskStatus.IN_PROGRESS:
                    task.transition(TaskStatus.FAILED)
        ctx.error = reason
        if ctx.state == AutomationState.FAILED:
            return
        ctx.decisions.append(
            DecisionRecord(
                state=ctx.state,
                decision=Decision.FAIL,
                reasoning=f"Run aborted: {reason}",
                score=ctx.latest_score,
            )
        )
        self._transition(AutomationState.FAILED)

    def _info(self, message: str) -> None:
        self.event_log.emit(InfoEvent(session_id=self.session_id, message=message))

    def _planning_prompt(self) -> str:
        inputs = [d.user_input for d in self.context.decisions if d.user_input]
        if not inputs:
            return self.context.prompt
        return "\n\n".join([self.context.prompt, *inputs])

    def _current_results(self) -> list[ExecutionResult]:
        """Latest result per task of the current plan, in first-attempt order."""
        plan = self.context.plan
        task_ids = {t.id for t in plan.tasks} if plan else set()
        latest: dict[str, ExecutionResult] = {}
        for result in self.context.execution_results:
            if result.task_id in task_ids:
                latest[result.task_id] = result
        return list(latest.values())

    def _style_context(self, plan: Plan) -> dict:
        style = {
            "title": "Generated App",
            "summary": plan.prompt,
            "use_design_tokens": True,
            "tech_stack": list(plan.architecture.tech_stack),
        }
        score = self.context.latest_score
        if score is not None:
            style["feedback"] = [
                f"[{i.severity.value}] {i.message}" + (f" ({i.file})" if i.file else "")
                for i in score.issues
            ]
        return style


async def run_automation(
    prompt: str,
    output_directory: str | Path,
    config: AutomationConfig | None = None,
    repo_context: RepositoryContext | RepositoryContextProvider | None = None,
    registry: EngineRegistry | None = None,
) -> AutomationContext:
    """Run a complete automation session for *prompt* and return its context."""
    orchestrator = AutomationOrchestrator(output_directory, config=config, registry=registry)
    return await orchestrator.run(prompt, repo_context)

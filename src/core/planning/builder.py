"""Plan builder -- turns a build request into a :class:`Plan`.

The :class:`PlanBuilder` ties together objective classification,
architecture design, task decomposition and task-graph validation into a
single ``build`` entry-point.  It never fails on degenerate input: an empty
or unstructured prompt still yields a minimal valid plan.
"""

from __future__ import annotations

from src.core.planning.architecture import ArchitectureDesigner
from src.core.planning.classifier import ObjectiveClassifier
from src.core.planning.repository import RepositoryContext, RepositoryContextProvider
from src.core.task.decomposer import TaskDecomposer
from src.core.task.models import Complexity, Plan, Task
from src.core.task.scheduler import TaskScheduler
from src.utils.logging import get_logger

logger = get_logger("planning.builder")


def estimate_complexity(objective_count: int, task_count: int) -> Complexity:
    """Estimate plan complexity from objective and task counts.

    Monotonic in both arguments: adding objectives or tasks never lowers
    the estimate.
    """
    if objective_count <= 3 and task_count <= 5:
        return Complexity.LOW
    if objective_count <= 6 and task_count <= 10:
        return Complexity.MEDIUM
    return Complexity.HIGH


class PlanBuilder:
    """Builds plans from natural-language build requests.

    Parameters
    ----------
    include_data_models:
        Forwarded to :class:`ArchitectureDesigner`.
    classifier, designer, decomposer, scheduler:
        Collaborators; defaults are constructed when omitted.
    """

    def __init__(
        self,
        include_data_models: bool = True,
        classifier: ObjectiveClassifier | None = None,
        designer: ArchitectureDesigner | None = None,
        decomposer: TaskDecomposer | None = None,
        scheduler: TaskScheduler | None = None,
    ):
        self.classifier = classifier or ObjectiveClassifier()
        self.designer = designer or ArchitectureDesigner(include_data_models)
        self.decomposer = decomposer or TaskDecomposer()
        self.scheduler = scheduler or TaskScheduler()

    def build(
        self,
        prompt: str,
        repo_context: RepositoryContext | RepositoryContextProvider | None = None,
    ) -> Plan:
        """Build a :class:`Plan` for *prompt*.

        Steps:
        1. Resolve the repository context (a provider failure degrades to
           baseline planning).
        2. Classify objectives.
        3. Design the architecture.
        4. Decompose objectives into tasks.
        5. Validate the task graph and compute execution waves.
        6. Estimate complexity.
        """
        prompt = prompt or ""
        context = self._resolve_context(repo_context)

        objectives = self.classifier.classify(prompt)
        architecture = self.designer.design(prompt, objectives, context)

        existing = set(context.existing_features) if context else set()
        tasks: list[Task] = self.decomposer.decompose(objectives, existing)
        execution_order = self.scheduler.schedule(tasks)

        plan = Plan(
            prompt=prompt,
            objectives=[o.text for o in objectives],
            architecture=architecture,
            tasks=tasks,
            execution_order=execution_order,
            complexity=estimate_complexity(len(objectives), len(tasks)),
        )

        logger.info(
            "plan_built",
            plan_id=plan.id,
            objectives=len(plan.objectives),
            tasks=len(plan.tasks),
            complexity=plan.complexity.value,
            repo_context=context is not None,
        )
        return plan

    # ----- Internal helpers -------------------------------------------------

    @staticmethod
    def _resolve_context(
        repo_context: RepositoryContext | RepositoryContextProvider | None,
    ) -> RepositoryContext | None:
        if repo_context is None or isinstance(repo_context, RepositoryContext):
            return repo_context
        try:
            return repo_context.get_context()
        except Exception as exc:
            logger.warning(
                "repository_context_unavailable",
                provider=type(repo_context).__name__,
                error=str(exc),
            )
            return None

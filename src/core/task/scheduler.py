"""Task graph validation and wave ordering.

Checks the structural invariants of a plan's task graph (unique IDs, known
dependencies, a single root, no cycles) and groups tasks into *waves* --
lists of task IDs whose dependencies all live in earlier waves.
"""

from __future__ import annotations

from collections import defaultdict, deque

from src.core.task.models import Task, TaskStatus
from src.utils.exceptions import PlanValidationError
from src.utils.logging import get_logger

logger = get_logger("task.scheduler")


class TaskScheduler:
    """Validates task graphs and answers readiness questions about them.

    The scheduler is stateless: every method works on the task list it is
    given, so the orchestrator can call it against the live, in-place mutated
    task list of a plan.
    """

    def schedule(self, tasks: list[Task]) -> list[list[str]]:
        """Validate *tasks* and return their dependency waves.

        Raises :class:`PlanValidationError` on duplicate IDs, unknown
        dependencies, zero or several roots, or a cycle.
        """
        if not tasks:
            return []

        task_map = self._index(tasks)
        self._validate_dependencies(task_map)
        self._validate_single_root(tasks)
        waves = self._topological_sort(tasks, task_map)

        logger.debug(
            "schedule_complete",
            total_tasks=len(tasks),
            waves=len(waves),
        )
        return waves

    def ready_tasks(self, tasks: list[Task]) -> list[Task]:
        """Return pending tasks whose dependencies have all completed.

        Ordered by descending priority; ties keep plan order.
        """
        status = {t.id: t.status for t in tasks}
        ready = [
            t for t in tasks
            if t.status == TaskStatus.PENDING
            and all(status.get(d) == TaskStatus.COMPLETED for d in t.dependencies)
        ]
        return sorted(ready, key=lambda t: -t.priority)

    @staticmethod
    def by_priority(tasks: list[Task]) -> list[Task]:
        """Return *tasks* in descending priority (stable)."""
        return sorted(tasks, key=lambda t: -t.priority)

    # ----- Internal helpers -------------------------------------------------

    @staticmethod
    def _index(tasks: list[Task]) -> dict[str, Task]:
        task_map: dict[str, Task] = {}
        for task in tasks:
            if task.id in task_map:
                raise PlanValidationError(f"Duplicate task id: {task.id}")
            task_map[task.id] = task
        return task_map

    @staticmethod
    def _validate_dependencies(task_map: dict[str, Task]) -> None:
        """Ensure every referenced dependency exists in the task set."""
        for task in task_map.values():
            for dep_id in task.dependencies:
                if dep_id not in task_map:
                    raise PlanValidationError(
                        f"Task {task.id} depends on unknown task {dep_id}"
                    )
                if dep_id == task.id:
                    raise PlanValidationError(f"Task {task.id} depends on itself")

    @staticmethod
    def _validate_single_root(tasks: list[Task]) -> None:
        roots = [t.id for t in tasks if not t.dependencies]
        if len(roots) != 1:
            raise PlanValidationError(
                f"Expected exactly one root task, found {len(roots)}: {roots}"
            )

    @staticmethod
    def _topological_sort(
        tasks: list[Task],
        task_map: dict[str, Task],
    ) -> list[list[str]]:
        """Return waves of task IDs via Kahn's algorithm.

        Raises :class:`PlanValidationError` if the graph has a cycle.
        """
        in_degree: dict[str, int] = {t.id: 0 for t in tasks}
        dependents: dict[str, list[str]] = defaultdict(list)

        for task in tasks:
            for dep_id in set(task.dependencies):
                in_degree[task.id] += 1
                dependents[dep_id].append(task.id)

        current_wave: deque[str] = deque(
            tid for tid, deg in in_degree.items() if deg == 0
        )

        waves: list[list[str]] = []
        processed = 0

        while current_wave:
            # Highest priority first inside a wave.
            wave = sorted(current_wave, key=lambda tid: -task_map[tid].priority)
            waves.append(wave)
            next_wave: deque[str] = deque()
            for tid in wave:
                processed += 1
                for dependent_id in dependents[tid]:
                    in_degree[dependent_id] -= 1
                    if in_degree[dependent_id] == 0:
                        next_wave.append(dependent_id)
            current_wave = next_wave

        if processed != len(tasks):
            raise PlanValidationError(
                f"Cyclic dependency detected among tasks: "
                f"processed {processed}/{len(tasks)}."
            )

        return waves

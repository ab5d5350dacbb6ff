"""Task decomposition module.

Breaks a list of classified objectives down into dependency-linked
:class:`~src.core.task.models.Task` objects:

1. **Scaffold** -- the single root task, highest priority.
2. **Implementation** -- one per feature objective, each depending on the
   scaffold.  Features the repository already has become refactor tasks.
3. **Test generation** -- when a testing objective is present, depends on
   every implementation task.
4. **Documentation** -- depends on every other task, always lowest priority.
"""

from __future__ import annotations

from src.core.planning.classifier import Objective
from src.core.task.models import Task, TaskType
from src.utils.logging import get_logger

logger = get_logger("task.decomposer")

ROOT_PRIORITY = 100
DOCS_PRIORITY = 1


# ---------------------------------------------------------------------------
# Objective key -> implementation task template (description, files)
# ---------------------------------------------------------------------------

_FEATURE_TASKS: dict[str, tuple[str, list[str]]] = {
    "content": (
        "Create blog components and pages",
        ["client/src/pages/blog.tsx", "client/src/components/PostCard.tsx"],
    ),
    "dashboard": (
        "Build dashboard with analytics",
        ["client/src/pages/dashboard.tsx", "client/src/components/StatsCard.tsx"],
    ),
    "identity": (
        "Implement authentication system",
        ["server/routes/auth.ts", "client/src/pages/login.tsx"],
    ),
    "theming": (
        "Add theme provider with dark mode toggle",
        ["client/src/components/ThemeToggle.tsx"],
    ),
    "forms": (
        "Create validated contact form",
        ["client/src/components/ContactForm.tsx"],
    ),
    "api": (
        "Set up backend API routes and services",
        ["server/routes/api.ts"],
    ),
    "data": (
        "Design database schema and data access layer",
        ["shared/schema.ts"],
    ),
    "generic": (
        "Implement core application features",
        ["client/src/pages/index.tsx"],
    ),
}

_SCAFFOLD_FILES = [
    "package.json",
    "tsconfig.json",
    "vite.config.ts",
    "tailwind.config.ts",
]


class TaskDecomposer:
    """Decomposes objectives into a dependency-ordered list of tasks."""

    def decompose(
        self,
        objectives: list[Objective],
        existing_features: set[str] | None = None,
    ) -> list[Task]:
        """Return the tasks for *objectives*.

        Parameters
        ----------
        objectives:
            Output of :class:`~src.core.planning.classifier.ObjectiveClassifier`.
        existing_features:
            Objective keys the target repository already implements; those
            produce refactor tasks instead of implementation tasks.
        """
        existing_features = existing_features or set()
        priority = ROOT_PRIORITY

        root = Task(
            type=TaskType.SCAFFOLD,
            description="Initialize project structure and configuration",
            priority=priority,
            files=list(_SCAFFOLD_FILES),
        )
        tasks: list[Task] = [root]
        implementation: list[Task] = []

        for objective in objectives:
            if not objective.feature:
                continue
            priority -= 1
            description, files = _FEATURE_TASKS.get(
                objective.key, (objective.text, []),
            )
            task_type = TaskType.IMPLEMENT
            if objective.key in existing_features:
                task_type = TaskType.REFACTOR
                description = f"Extend existing feature: {description[0].lower()}{description[1:]}"
            task = Task(
                type=task_type,
                description=description,
                dependencies=[root.id],
                priority=priority,
                files=list(files),
            )
            implementation.append(task)
            tasks.append(task)

        if any(o.key == "testing" for o in objectives):
            priority -= 1
            tasks.append(
                Task(
                    type=TaskType.TEST_GEN,
                    description="Generate comprehensive test suite",
                    dependencies=[t.id for t in implementation] or [root.id],
                    priority=priority,
                )
            )

        tasks.append(
            Task(
                type=TaskType.DOCS,
                description="Generate documentation and README",
                dependencies=[t.id for t in tasks],
                priority=DOCS_PRIORITY,
                files=["README.md"],
            )
        )

        logger.debug(
            "tasks_decomposed",
            task_count=len(tasks),
            implementation=len(implementation),
        )
        return tasks

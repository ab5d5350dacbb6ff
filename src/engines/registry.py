"""Capability registry that stores engines and selects one per task."""

from __future__ import annotations

from itertools import count

from src.core.task.models import TaskType
from src.engines.base import GenerationBackend
from src.engines.models import EngineConfig, SelectionPreferences
from src.utils.exceptions import UnsupportedTaskError
from src.utils.logging import get_logger

logger = get_logger(__name__)


class EngineRegistry:
    """Explicitly constructed registry of generation engines.

    Typical lifecycle::

        registry = EngineRegistry(default_backend=TemplateBackend())
        registry.register(EngineConfig(name="gpt-5-codex", ...))
        engine = registry.select(TaskType.IMPLEMENT, SelectionPreferences())
        backend = registry.backend_for(engine)

    Parameters
    ----------
    default_backend:
        Backend used for engines without an engine- or provider-specific
        binding.
    """

    def __init__(self, default_backend: GenerationBackend | None = None) -> None:
        self._engines: dict[str, EngineConfig] = {}
        self._order: dict[str, int] = {}
        self._counter = count()
        self._engine_backends: dict[str, GenerationBackend] = {}
        self._provider_backends: dict[str, GenerationBackend] = {}
        self.default_backend = default_backend

    # ------------------------------------------------------------------
    # Registration & lookup
    # ------------------------------------------------------------------

    def register(
        self,
        engine: EngineConfig,
        backend: GenerationBackend | None = None,
    ) -> None:
        """Add *engine* to the registry, keyed by its name.

        Re-registering an identical config is a no-op.  A different config
        under an existing name overwrites it and counts as the most recent
        registration.
        """
        existing = self._engines.get(engine.name)
        if existing is not None and existing == engine:
            if backend is not None:
                self._engine_backends[engine.name] = backend
            return
        if existing is not None:
            logger.warning("engine_overwritten", engine=engine.name)

        self._engines[engine.name] = engine
        self._order[engine.name] = next(self._counter)
        if backend is not None:
            self._engine_backends[engine.name] = backend
        logger.debug("engine_registered", engine=engine.name, provider=engine.provider)

    def bind_provider(self, provider: str, backend: GenerationBackend) -> None:
        """Route every engine of *provider* to *backend*."""
        self._provider_backends[provider] = backend

    def get(self, name: str) -> EngineConfig | None:
        return self._engines.get(name)

    def backend_for(self, engine: EngineConfig) -> GenerationBackend | None:
        """Resolve the backend for *engine*: engine, then provider, then default."""
        return (
            self._engine_backends.get(engine.name)
            or self._provider_backends.get(engine.provider)
            or self.default_backend
        )

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def candidates(self, task_type: TaskType) -> list[EngineConfig]:
        """Return every engine advertising *task_type*, best priority first."""
        capable = [e for e in self._engines.values() if task_type in e.capabilities]
        return sorted(capable, key=lambda e: (-e.priority, -self._order[e.name]))

    def select(
        self,
        task_type: TaskType,
        preferences: SelectionPreferences | None = None,
    ) -> EngineConfig:
        """Pick the best-fit engine for *task_type*.

        1. Keep engines advertising the task type; none raises
           :class:`UnsupportedTaskError`.
        2. ``prefer_speed`` keeps only fast engines, if there are any.
        3. ``prefer_quality`` orders by descending cost weight.
        4. ``budget == "low"`` orders by ascending cost weight and wins over 3.
        5. Ties go to higher priority, then to the most recent registration.
        """
        preferences = preferences or SelectionPreferences()
        candidates = [e for e in self._engines.values() if task_type in e.capabilities]
        if not candidates:
            raise UnsupportedTaskError(
                task_type.value if isinstance(task_type, TaskType) else str(task_type)
            )

        if preferences.prefer_speed:
            fast = [e for e in candidates if e.fast]
            if fast:
                candidates = fast

        if preferences.budget == "low":
            cost_key = lambda e: e.cost_weight  # noqa: E731
        elif preferences.prefer_quality:
            cost_key = lambda e: -e.cost_weight  # noqa: E731
        else:
            cost_key = lambda e: 0.0  # noqa: E731

        candidates.sort(
            key=lambda e: (cost_key(e), -e.priority, -self._order[e.name])
        )
        selected = candidates[0]
        logger.debug(
            "engine_selected",
            task_type=task_type.value if isinstance(task_type, TaskType) else task_type,
            engine=selected.name,
            candidates=len(candidates),
        )
        return selected

    def explain(
        self,
        task_type: TaskType,
        preferences: SelectionPreferences | None = None,
    ) -> str:
        """Return a human-readable explanation of :meth:`select`'s choice."""
        preferences = preferences or SelectionPreferences()
        selected = self.select(task_type, preferences)
        alternatives = [
            e for e in self.candidates(task_type) if e.name != selected.name
        ][:2]

        lines = [
            f"Selected {selected.display_name or selected.name} for {task_type.value}",
            f"Reasoning: {self._reasoning(selected, preferences)}",
        ]
        if alternatives:
            lines.append("")
            lines.append("Alternatives considered:")
            for alt in alternatives:
                lines.append(
                    f"- {alt.display_name or alt.name}: {self._reasoning(alt, preferences)}"
                )
        return "\n".join(lines) + "\n"

    @staticmethod
    def _reasoning(engine: EngineConfig, preferences: SelectionPreferences) -> str:
        reasons: list[str] = []
        if preferences.prefer_speed and engine.fast:
            reasons.append("optimized for speed")
        if preferences.prefer_quality and engine.priority >= 9:
            reasons.append("highest quality output")
        if preferences.budget == "low" and engine.cost_weight < 3.0:
            reasons.append("cost-effective")
        reasons.append(f"priority {engine.priority}/10")
        return ", ".join(reasons)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def list_all(self) -> list[EngineConfig]:
        """Return every registered engine in registration order."""
        return sorted(self._engines.values(), key=lambda e: self._order[e.name])

    def __len__(self) -> int:
        return len(self._engines)

    def __contains__(self, name: str) -> bool:
        return name in self._engines

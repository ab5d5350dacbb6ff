"""Tests for engine registration and selection."""
import pytest

from src.core.task.models import TaskType
from src.engines.models import EngineConfig, SelectionPreferences
from src.utils.exceptions import UnsupportedTaskError


def _engine(name, caps, priority=5, cost=1.0, fast=False, provider="test"):
    return EngineConfig(
        name=name,
        provider=provider,
        capabilities=caps,
        priority=priority,
        cost_weight=cost,
        fast=fast,
    )


class TestRegistration:
    def test_register_and_get(self):
        from src.engines.registry import EngineRegistry

        registry = EngineRegistry()
        engine = _engine("a", [TaskType.IMPLEMENT])
        registry.register(engine)
        assert registry.get("a") == engine
        assert "a" in registry
        assert len(registry) == 1
        assert registry.get("missing") is None

    def test_identical_reregistration_is_noop(self):
        from src.engines.registry import EngineRegistry

        registry = EngineRegistry()
        registry.register(_engine("a", [TaskType.IMPLEMENT], priority=5))
        registry.register(_engine("b", [TaskType.IMPLEMENT], priority=5))
        registry.register(_engine("a", [TaskType.IMPLEMENT], priority=5))
        # "a" kept its original registration slot, so "b" is still most recent.
        assert [e.name for e in registry.list_all()] == ["a", "b"]
        assert registry.select(TaskType.IMPLEMENT).name == "b"

    def test_changed_config_overwrites(self):
        from src.engines.registry import EngineRegistry

        registry = EngineRegistry()
        registry.register(_engine("a", [TaskType.IMPLEMENT]))
        registry.register(_engine("a", [TaskType.DOCS]))
        assert len(registry) == 1
        assert registry.get("a").capabilities == [TaskType.DOCS]
        with pytest.raises(UnsupportedTaskError):
            registry.select(TaskType.IMPLEMENT)

    def test_backend_resolution_order(self):
        from src.engines.backends import TemplateBackend
        from src.engines.registry import EngineRegistry

        default, by_provider, by_engine = TemplateBackend(), TemplateBackend(), TemplateBackend()
        registry = EngineRegistry(default_backend=default)
        a = _engine("a", [TaskType.IMPLEMENT], provider="p")
        b = _engine("b", [TaskType.IMPLEMENT], provider="p")
        c = _engine("c", [TaskType.IMPLEMENT], provider="q")
        registry.register(a, backend=by_engine)
        registry.register(b)
        registry.register(c)
        registry.bind_provider("p", by_provider)

        assert registry.backend_for(a) is by_engine
        assert registry.backend_for(b) is by_provider
        assert registry.backend_for(c) is default


class TestSelection:
    @pytest.fixture
    def registry(self):
        from src.engines.defaults import build_default_registry

        return build_default_registry()

    def test_unsupported_task(self):
        from src.engines.registry import EngineRegistry

        with pytest.raises(UnsupportedTaskError, match="implement"):
            EngineRegistry().select(TaskType.IMPLEMENT)

    def test_default_prefers_priority(self, registry):
        assert registry.select(TaskType.IMPLEMENT).name == "gpt-5-codex"
        assert registry.select(TaskType.PLAN).name == "claude-sonnet-4.5"

    def test_prefer_speed_keeps_fast_engines(self, registry):
        prefs = SelectionPreferences(prefer_speed=True)
        assert registry.select(TaskType.IMPLEMENT, prefs).name == "gpt-4-turbo-preview"
        assert registry.select(TaskType.REFACTOR, prefs).name == "grok-code-fast-1"

    def test_prefer_speed_without_fast_engines_falls_back(self, registry):
        prefs = SelectionPreferences(prefer_speed=True)
        assert registry.select(TaskType.TEST_GEN, prefs).name == "gpt-5-codex"

    def test_prefer_quality_picks_highest_cost(self, registry):
        prefs = SelectionPreferences(prefer_quality=True)
        assert registry.select(TaskType.IMPLEMENT, prefs).name == "gpt-4-turbo-preview"

    def test_low_budget_picks_cheapest(self, registry):
        prefs = SelectionPreferences(budget="low")
        assert registry.select(TaskType.DOCS, prefs).name == "gemini-2.5-pro"
        assert registry.select(TaskType.IMPLEMENT, prefs).name == "gpt-5-codex"

    def test_low_budget_beats_quality(self, registry):
        prefs = SelectionPreferences(budget="low", prefer_quality=True)
        assert registry.select(TaskType.IMPLEMENT, prefs).name == "gpt-5-codex"

    def test_cost_tie_goes_to_priority(self, registry):
        # claude-sonnet-4.5 and claude-3-5-sonnet both cost 3.0.
        prefs = SelectionPreferences(budget="low")
        assert registry.select(TaskType.PLAN, prefs).name == "claude-sonnet-4.5"

    def test_full_tie_goes_to_most_recent(self):
        from src.engines.registry import EngineRegistry

        registry = EngineRegistry()
        registry.register(_engine("first", [TaskType.DOCS]))
        registry.register(_engine("second", [TaskType.DOCS]))
        assert registry.select(TaskType.DOCS).name == "second"

    def test_selection_is_deterministic(self, registry):
        prefs = SelectionPreferences(prefer_quality=True)
        picks = {registry.select(TaskType.VALIDATE, prefs).name for _ in range(5)}
        assert len(picks) == 1

    def test_candidates(self, registry):
        names = [e.name for e in registry.candidates(TaskType.REFACTOR)]
        assert names == ["gpt-5-codex", "grok-code-fast-1"]


class TestExplain:
    def test_explanation_names_choice_and_alternatives(self):
        from src.engines.defaults import build_default_registry

        text = build_default_registry().explain(TaskType.IMPLEMENT)
        assert text.startswith("Selected GPT-5 Codex for implement")
        assert "Reasoning: priority 10/10" in text
        assert "Alternatives considered:" in text
        assert "- GPT-4 Turbo:" in text

    def test_at_most_two_alternatives(self):
        from src.engines.defaults import build_default_registry

        text = build_default_registry().explain(TaskType.VALIDATE)
        alternatives = [line for line in text.splitlines() if line.startswith("- ")]
        assert len(alternatives) == 2

    def test_speed_reasoning(self):
        from src.engines.defaults import build_default_registry

        text = build_default_registry().explain(
            TaskType.QUICK_FIX, SelectionPreferences(prefer_speed=True),
        )
        assert "optimized for speed" in text
        assert "Alternatives" not in text


class TestDefaultRegistry:
    def test_llm_client_binds_provider(self):
        from src.engines.backends import LLMBackend, TemplateBackend
        from src.engines.defaults import build_default_registry

        class _Client:
            provider = "openai"
            model = "gpt-5-codex"

        registry = build_default_registry(_Client())
        assert isinstance(registry.backend_for(registry.get("gpt-5-codex")), LLMBackend)
        assert isinstance(registry.backend_for(registry.get("gemini-2.5-pro")), TemplateBackend)

"""Tests for objective classification, decomposition and plan building."""
import pytest

from src.core.task.models import Complexity, TaskStatus, TaskType

PROMPTS = [
    "",
    "   ",
    "build a blog with authentication",
    "admin dashboard with dark mode, contact form, REST api and a database",
    "something completely unstructured !!! ???",
    "blog blog blog posts articles",
]


class TestObjectiveClassifier:
    def test_blog_with_auth(self):
        from src.core.planning.classifier import ObjectiveClassifier

        keys = [o.key for o in ObjectiveClassifier().classify("build a blog with authentication")]
        assert keys == ["content", "identity", "accessibility", "testing"]

    def test_generic_fallback(self):
        from src.core.planning.classifier import ObjectiveClassifier

        objectives = ObjectiveClassifier().classify("make me something nice")
        assert objectives[0].key == "generic"
        assert objectives[0].feature is True
        assert [o.key for o in objectives[1:]] == ["accessibility", "testing"]

    def test_word_boundaries(self):
        """'catalogue' must not trigger the identity 'log in' rule."""
        from src.core.planning.classifier import ObjectiveClassifier

        keys = [o.key for o in ObjectiveClassifier().classify("a product catalogue")]
        assert "identity" not in keys

    def test_deterministic(self):
        from src.core.planning.classifier import ObjectiveClassifier

        classifier = ObjectiveClassifier()
        assert classifier.classify("blog with api") == classifier.classify("blog with api")


class TestEstimateComplexity:
    def test_bands(self):
        from src.core.planning.builder import estimate_complexity

        assert estimate_complexity(3, 5) == Complexity.LOW
        assert estimate_complexity(4, 5) == Complexity.MEDIUM
        assert estimate_complexity(6, 10) == Complexity.MEDIUM
        assert estimate_complexity(6, 11) == Complexity.HIGH
        assert estimate_complexity(7, 3) == Complexity.HIGH

    def test_monotonic(self):
        from src.core.planning.builder import estimate_complexity

        order = [Complexity.LOW, Complexity.MEDIUM, Complexity.HIGH]
        for objectives in range(0, 10):
            for tasks in range(0, 14):
                here = order.index(estimate_complexity(objectives, tasks))
                assert order.index(estimate_complexity(objectives + 1, tasks)) >= here
                assert order.index(estimate_complexity(objectives, tasks + 1)) >= here


class TestPlanBuilder:
    def test_blog_with_authentication_scenario(self):
        from src.core.planning.builder import PlanBuilder

        plan = PlanBuilder().build("build a blog with authentication")
        by_type = {}
        for task in plan.tasks:
            by_type.setdefault(task.type, []).append(task)

        root = by_type[TaskType.SCAFFOLD]
        assert len(root) == 1
        assert root[0].priority == 100
        assert root[0].dependencies == []

        impl = by_type[TaskType.IMPLEMENT]
        assert [t.description for t in impl] == [
            "Create blog components and pages",
            "Implement authentication system",
        ]
        assert all(t.dependencies == [root[0].id] for t in impl)

        tests = by_type[TaskType.TEST_GEN]
        assert len(tests) == 1
        assert set(tests[0].dependencies) == {t.id for t in impl}

        docs = by_type[TaskType.DOCS]
        assert len(docs) == 1
        assert docs[0].priority == 1
        assert set(docs[0].dependencies) == {t.id for t in plan.tasks if t is not docs[0]}

        assert plan.complexity == Complexity.MEDIUM
        assert plan.execution_order[0] == [root[0].id]
        assert plan.execution_order[-1] == [docs[0].id]

    @pytest.mark.parametrize("prompt", PROMPTS)
    def test_single_root_and_acyclic(self, prompt):
        from src.core.planning.builder import PlanBuilder

        plan = PlanBuilder().build(prompt)
        roots = [t for t in plan.tasks if not t.dependencies]
        assert len(roots) == 1
        # Every task appears in exactly one wave, after all its dependencies.
        position = {tid: i for i, wave in enumerate(plan.execution_order) for tid in wave}
        assert set(position) == {t.id for t in plan.tasks}
        for task in plan.tasks:
            for dep in task.dependencies:
                assert position[dep] < position[task.id]

    @pytest.mark.parametrize("prompt", PROMPTS)
    def test_dependencies_refer_to_plan_tasks(self, prompt):
        from src.core.planning.builder import PlanBuilder

        plan = PlanBuilder().build(prompt)
        ids = {t.id for t in plan.tasks}
        assert len(ids) == len(plan.tasks)
        for task in plan.tasks:
            assert set(task.dependencies) <= ids
            assert task.status == TaskStatus.PENDING

    def test_empty_prompt_yields_minimal_plan(self):
        from src.core.planning.builder import PlanBuilder

        plan = PlanBuilder().build("")
        types = [t.type for t in plan.tasks]
        assert types == [TaskType.SCAFFOLD, TaskType.IMPLEMENT, TaskType.TEST_GEN, TaskType.DOCS]
        assert plan.objectives[0] == "Build application based on requirements"

    def test_architecture_for_blog_with_auth(self):
        from src.core.planning.builder import PlanBuilder

        plan = PlanBuilder().build("build a blog with authentication")
        arch = plan.architecture
        assert arch.tech_stack[:4] == ["React 18", "TypeScript", "Tailwind CSS", "Vite"]
        assert "Session-based Auth" in arch.tech_stack
        names = [m.name for m in arch.data_models]
        assert names == ["Post", "User"]
        user = arch.data_models[1]
        assert [(r.type, r.target) for r in user.relationships] == [("one-to-many", "Post")]

    def test_data_models_can_be_disabled(self):
        from src.core.planning.builder import PlanBuilder

        plan = PlanBuilder(include_data_models=False).build("build a blog with authentication")
        assert plan.architecture.data_models == []

    def test_existing_feature_becomes_refactor(self):
        from src.core.planning.builder import PlanBuilder
        from src.core.planning.repository import RepositoryContext

        context = RepositoryContext(
            files=["client/src/pages/blog.tsx"],
            structure={"client/src/pages": ["blog.tsx"]},
            existing_features=["content"],
        )
        plan = PlanBuilder().build("build a blog with authentication", context)
        refactors = [t for t in plan.tasks if t.type == TaskType.REFACTOR]
        assert len(refactors) == 1
        assert refactors[0].description.startswith("Extend existing feature")

    def test_failing_provider_degrades_to_baseline(self):
        from src.core.planning.builder import PlanBuilder

        class BrokenProvider:
            def get_context(self):
                raise OSError("repository unreachable")

        baseline = PlanBuilder().build("build a blog")
        plan = PlanBuilder().build("build a blog", BrokenProvider())
        assert [t.type for t in plan.tasks] == [t.type for t in baseline.tasks]
        assert plan.architecture == baseline.architecture

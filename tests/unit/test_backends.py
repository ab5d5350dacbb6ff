"""Tests for the template and LLM generation backends."""
import json

import pytest

from src.core.task.models import TaskType
from src.engines.models import GenerationRequest
from src.utils.exceptions import LLMError


def _request(task_type, description="do something", **ctx):
    return GenerationRequest(task_type=task_type, description=description, style_context=ctx)


class TestTemplateBackend:
    @pytest.mark.asyncio
    async def test_scaffold(self):
        from src.engines.backends import TemplateBackend

        response = await TemplateBackend().invoke(_request(TaskType.SCAFFOLD, title="My Blog"))
        paths = [f.path for f in response.files]
        assert paths == [
            "package.json",
            "tsconfig.json",
            "vite.config.ts",
            "tailwind.config.ts",
            "index.html",
            "src/main.tsx",
            "src/App.tsx",
            "src/styles/tokens.ts",
        ]
        package = json.loads(response.files[0].content)
        assert package["name"] == "my-blog"
        assert "My Blog" in response.files[4].content
        assert response.errors == []
        assert response.metadata["backend"] == "template"

    @pytest.mark.asyncio
    async def test_scaffold_without_tokens(self):
        from src.engines.backends import TemplateBackend

        response = await TemplateBackend().invoke(
            _request(TaskType.SCAFFOLD, use_design_tokens=False),
        )
        paths = [f.path for f in response.files]
        assert "src/styles/tokens.ts" not in paths
        app = next(f for f in response.files if f.path == "src/App.tsx")
        assert "designTokens" not in app.content

    @pytest.mark.asyncio
    async def test_implement_blog_and_auth(self):
        from src.engines.backends import TemplateBackend

        backend = TemplateBackend()
        blog = await backend.invoke(_request(TaskType.IMPLEMENT, "Create blog components and pages"))
        auth = await backend.invoke(_request(TaskType.IMPLEMENT, "Implement authentication system"))
        assert [f.path for f in blog.files] == [
            "client/src/pages/blog.tsx",
            "client/src/components/PostCard.tsx",
        ]
        assert [f.path for f in auth.files] == ["client/src/pages/login.tsx"]
        assert all(f.language == "typescript" for f in blog.files + auth.files)

    @pytest.mark.asyncio
    async def test_implement_generic_page(self):
        from src.engines.backends import TemplateBackend

        response = await TemplateBackend().invoke(
            _request(TaskType.IMPLEMENT, "Build dashboard with analytics"),
        )
        assert [f.path for f in response.files] == ["client/src/pages/build-dashboard-with-analytics.tsx"]
        assert "BuildDashboardWithAnalyticsPage" in response.files[0].content

    @pytest.mark.asyncio
    async def test_test_gen_and_docs(self):
        from src.engines.backends import TemplateBackend

        backend = TemplateBackend()
        tests = await backend.invoke(_request(TaskType.TEST_GEN))
        docs = await backend.invoke(
            _request(TaskType.DOCS, title="Demo", summary="A demo app", tech_stack=["React 18", "Vite"]),
        )
        assert tests.files[0].path == "src/App.test.tsx"
        assert "expect(" in tests.files[0].content
        readme = docs.files[0]
        assert readme.path == "README.md"
        assert readme.language == "markdown"
        assert readme.content.startswith("# Demo\n")
        assert "- React 18\n- Vite\n" in readme.content

    @pytest.mark.asyncio
    async def test_other_types_write_notes_with_feedback(self):
        from src.engines.backends import TemplateBackend

        response = await TemplateBackend().invoke(
            _request(TaskType.REFACTOR, "Extend existing feature: blog", feedback=["Add alt text"]),
        )
        note = response.files[0]
        assert note.path == "notes/refactor-extend-existing-feature-blog.md"
        assert "- Add alt text" in note.content
        assert response.metadata["feedback_items"] == 1

    @pytest.mark.asyncio
    async def test_deterministic(self):
        from src.engines.backends import TemplateBackend

        backend = TemplateBackend()
        first = await backend.invoke(_request(TaskType.SCAFFOLD, title="X"))
        second = await backend.invoke(_request(TaskType.SCAFFOLD, title="X"))
        assert first == second


class _FakeLLM:
    provider = "openai"
    model = "gpt-test"

    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = []

    async def complete_json(self, system, user, temperature=None):
        self.calls.append((system, user, temperature))
        if self.error:
            raise self.error
        return self.payload


class TestLLMBackend:
    @pytest.mark.asyncio
    async def test_files_are_parsed(self):
        from src.engines.backends import LLMBackend

        llm = _FakeLLM({
            "files": [{"path": "src/App.tsx", "content": "x", "language": "typescript"}],
            "warnings": ["check styling"],
        })
        response = await LLMBackend(llm).invoke(_request(TaskType.IMPLEMENT, "Build it"))
        assert [f.path for f in response.files] == ["src/App.tsx"]
        assert response.warnings == ["check styling"]
        assert response.metadata == {"backend": "llm", "provider": "openai", "model": "gpt-test"}

    @pytest.mark.asyncio
    async def test_prompt_carries_description_and_feedback(self):
        from src.engines.backends import LLMBackend
        from src.engines.models import EngineConfig

        llm = _FakeLLM({"files": [{"path": "a.ts", "content": "x"}]})
        engine = EngineConfig(name="e", provider="openai", capabilities=[TaskType.IMPLEMENT], temperature=0.3)
        request = GenerationRequest(
            task_type=TaskType.IMPLEMENT,
            description="Build the login page",
            style_context={"title": "App", "feedback": ["Label every input"]},
            engine=engine,
        )
        await LLMBackend(llm).invoke(request)
        system, user, temperature = llm.calls[0]
        assert "implement" in system
        assert "Build the login page" in user
        assert "Label every input" in user
        assert temperature == 0.3

    @pytest.mark.asyncio
    async def test_llm_error_becomes_runtime_error(self):
        from src.engines.backends import LLMBackend

        llm = _FakeLLM(error=LLMError("openai", "rate limited"))
        response = await LLMBackend(llm).invoke(_request(TaskType.IMPLEMENT))
        assert response.files == []
        assert response.errors[0].kind == "runtime"
        assert "rate limited" in response.errors[0].message

    @pytest.mark.asyncio
    async def test_malformed_entry_is_a_warning(self):
        from src.engines.backends import LLMBackend

        llm = _FakeLLM({"files": [{"path": "ok.ts", "content": "x"}, {"path": "broken.ts"}]})
        response = await LLMBackend(llm).invoke(_request(TaskType.IMPLEMENT))
        assert [f.path for f in response.files] == ["ok.ts"]
        assert response.errors[0].kind == "validation"
        assert response.errors[0].severity == "warning"

    @pytest.mark.asyncio
    async def test_empty_response_is_an_error(self):
        from src.engines.backends import LLMBackend

        response = await LLMBackend(_FakeLLM({"files": []})).invoke(_request(TaskType.DOCS))
        assert response.errors[0].message == "LLM response contained no files"

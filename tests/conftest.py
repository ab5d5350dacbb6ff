import pytest


@pytest.fixture
def output_dir(tmp_path):
    out = tmp_path / "output"
    out.mkdir()
    return str(out)


@pytest.fixture
def make_file():
    """Build a GeneratedFile, inferring the language from the path."""
    from src.engines.models import GeneratedFile

    def _make(path: str, content: str, language: str | None = None):
        if language is None:
            language = "typescript" if path.endswith((".ts", ".tsx")) else "text"
        return GeneratedFile(path=path, content=content, language=language)

    return _make


@pytest.fixture
def make_result(make_file):
    """Build a successful ExecutionResult from ``{path: content}``."""
    from src.engine.models import ExecutionResult

    def _make(files: dict[str, str], task_id: str = "t1", errors=None):
        return ExecutionResult(
            task_id=task_id,
            success=not errors,
            files_generated=[make_file(p, c) for p, c in files.items()],
            errors=errors or [],
        )

    return _make


@pytest.fixture
def make_score():
    """Build a Score with the given overall and optional issues."""
    from datetime import datetime, timezone

    from src.engine.models import Score, ScoreMetrics

    def _make(overall: int, issues=None, **metrics):
        return Score(
            overall=overall,
            metrics=ScoreMetrics(**metrics),
            issues=issues or [],
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

    return _make


@pytest.fixture
def clean_files():
    """A small artifact set that triggers no scoring rule."""
    return {
        "src/App.tsx": (
            "export default function App(): JSX.Element {\n"
            "  return (\n"
            "    <main>\n"
            "      <h1>Hello</h1>\n"
            "    </main>\n"
            "  )\n"
            "}\n"
        ),
        "src/App.test.tsx": (
            "import { it, expect } from 'vitest'\n"
            "it('renders', () => {\n"
            "  expect(true).toBe(true)\n"
            "})\n"
        ),
    }

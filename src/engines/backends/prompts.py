"""Prompt templates for LLM-backed artifact generation.

These templates are consumed by :class:`~src.engines.backends.llm_backend.LLMBackend`
to ask the model for a set of files in a fixed JSON shape.
"""

GENERATION_SYSTEM_PROMPT: str = """You are a senior software engineer working inside an automated build loop.
Produce the files needed to complete one task of a larger plan.

Task type: {task_type}

Rules:
- Use React 18, TypeScript and Tailwind CSS unless the context says otherwise.
- Keep every component under 200 lines.
- Use design tokens instead of raw hex colours when the context asks for them.
- Never hardcode secrets; read them from configuration or the environment.
- Give images alt text and form controls labels.

Return JSON: {{"files": [{{"path": "...", "content": "...", "language": "..."}}], "warnings": ["..."]}}
"""

GENERATION_USER_TEMPLATE: str = (
    "Task: {description}\n"
    "Context: {context}\n"
    "{feedback}"
)

FEEDBACK_TEMPLATE: str = (
    "A reviewer flagged these issues in the previous attempt; fix them:\n"
    "{items}\n"
)

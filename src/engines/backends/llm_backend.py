"""Generation backend that asks an LLM for files."""

from __future__ import annotations

import json

from pydantic import ValidationError

from src.core.llm.client import LLMClient
from src.engines.backends.prompts import (
    FEEDBACK_TEMPLATE,
    GENERATION_SYSTEM_PROMPT,
    GENERATION_USER_TEMPLATE,
)
from src.engines.base import GenerationBackend
from src.engines.models import (
    ExecutionError,
    GeneratedFile,
    GenerationRequest,
    GenerationResponse,
)
from src.utils.exceptions import LLMError
from src.utils.logging import get_logger

logger = get_logger("engines.llm")


class LLMBackend(GenerationBackend):
    """Backend delegating generation to an :class:`LLMClient`.

    Provider failures and malformed responses are reported as ``runtime``
    errors in the response.
    """

    name = "llm"

    def __init__(self, llm_client: LLMClient):
        self.llm = llm_client

    async def invoke(self, request: GenerationRequest) -> GenerationResponse:
        context = {k: v for k, v in request.style_context.items() if k != "feedback"}
        feedback = request.style_context.get("feedback") or []
        system = GENERATION_SYSTEM_PROMPT.format(task_type=request.task_type.value)
        user = GENERATION_USER_TEMPLATE.format(
            description=request.description,
            context=json.dumps(context, default=str, sort_keys=True),
            feedback=FEEDBACK_TEMPLATE.format(
                items="\n".join(f"- {item}" for item in feedback),
            ) if feedback else "",
        )
        temperature = request.engine.temperature if request.engine else None

        try:
            data = await self.llm.complete_json(system, user, temperature)
        except LLMError as exc:
            logger.warning("llm_generation_failed", task_type=request.task_type.value, error=str(exc))
            return GenerationResponse(errors=[ExecutionError(kind="runtime", message=str(exc))])

        return self._to_response(data)

    def _to_response(self, data: dict) -> GenerationResponse:
        files: list[GeneratedFile] = []
        errors: list[ExecutionError] = []
        for index, raw in enumerate(data.get("files") or []):
            try:
                files.append(GeneratedFile.model_validate(raw))
            except ValidationError as exc:
                errors.append(
                    ExecutionError(
                        kind="validation",
                        message=f"Malformed file entry #{index}: {exc.error_count()} problem(s)",
                        severity="warning",
                    )
                )

        warnings = [str(w) for w in data.get("warnings") or []]
        if not files and not errors:
            errors.append(ExecutionError(kind="runtime", message="LLM response contained no files"))

        return GenerationResponse(
            files=files,
            errors=errors,
            warnings=warnings,
            metadata={"backend": self.name, "provider": self.llm.provider, "model": self.llm.model},
        )

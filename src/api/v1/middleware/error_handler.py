"""Translate build-loop exceptions into JSON error responses.

Every :class:`BuildLoopError` becomes ``{"error", "detail", "context"}``
where ``context`` carries the structured attributes of the exception
(session id, task type, transition endpoints).  Anything else is logged
with its traceback and answered with a generic 500.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from src.utils.exceptions import (
    BuildLoopError,
    InvalidTransitionError,
    LLMError,
    PlanValidationError,
    RepositoryPathError,
    SessionNotFoundError,
    UnsupportedTaskError,
)
from src.utils.logging import get_logger

logger = get_logger(__name__)

_STATUS_MAP: dict[type, int] = {
    SessionNotFoundError: 404,
    UnsupportedTaskError: 422,
    InvalidTransitionError: 422,
    PlanValidationError: 422,
    RepositoryPathError: 422,
    LLMError: 502,
}

# Exception attributes exposed to clients.
_CONTEXT_ATTRS = (
    "session_id", "task_type", "task_id", "subject", "from_state", "to_state", "provider", "repo_path",
)


def status_for(exc: BuildLoopError) -> int:
    """Return the HTTP status for *exc*, honouring subclasses."""
    for exc_type in type(exc).__mro__:
        if exc_type in _STATUS_MAP:
            return _STATUS_MAP[exc_type]
    return 500


def error_context(exc: BuildLoopError) -> dict[str, str]:
    return {
        attr: str(getattr(exc, attr))
        for attr in _CONTEXT_ATTRS
        if getattr(exc, attr, None) is not None
    }


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Catch exceptions escaping the endpoints and answer with JSON."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)

        except BuildLoopError as exc:
            status_code = status_for(exc)
            context = error_context(exc)
            logger.warning(
                "handled_error",
                error_type=type(exc).__name__,
                status_code=status_code,
                detail=str(exc),
                path=request.url.path,
                **context,
            )
            return JSONResponse(
                status_code=status_code,
                content={"error": type(exc).__name__, "detail": str(exc), "context": context},
            )

        except Exception as exc:
            logger.error(
                "unhandled_error",
                error_type=type(exc).__name__,
                detail=str(exc),
                path=request.url.path,
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={
                    "error": "InternalServerError",
                    "detail": "An unexpected error occurred.",
                    "context": {},
                },
            )

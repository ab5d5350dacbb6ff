"""Automation run endpoints.

Runs execute to completion (or to ``awaiting-input``) within the request
and are kept in the in-memory :class:`RunStore` for later inspection and
resumption.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from src.api.v1.schemas.automation import (
    EventListResponse,
    ResumeRequest,
    RunRequest,
    RunSummary,
)
from src.api.v1.schemas.common import ErrorResponse
from src.config import settings
from src.core.planning.repository import DirectoryContextProvider
from src.dependencies import RunStore, get_run_store
from src.engine.models import AutomationConfig
from src.utils.exceptions import RepositoryPathError
from src.utils.file_utils import resolve_within
from src.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


def _repository(repo_path: str | None) -> DirectoryContextProvider | None:
    """Resolve a client-supplied repository path under the workspace root."""
    if not repo_path:
        return None
    try:
        root = resolve_within(settings.workspace_dir, repo_path)
    except ValueError as exc:
        raise RepositoryPathError(repo_path) from exc
    return DirectoryContextProvider(root)


@router.post(
    "/automation/runs",
    response_model=RunSummary,
    summary="Start an automation run",
    description="Plan, execute, score and decide until the session completes, fails or needs input.",
)
async def create_run(
    request: RunRequest,
    store: RunStore = Depends(get_run_store),
) -> RunSummary:
    repo = _repository(request.repo_path)
    config = request.config or AutomationConfig.from_settings(settings)
    orchestrator = store.create(config)

    logger.info("run_requested", session_id=orchestrator.session_id, prompt_len=len(request.prompt))
    context = await orchestrator.run(request.prompt, repo_context=repo)
    return RunSummary.from_context(context)


@router.get(
    "/automation/runs/{session_id}",
    response_model=RunSummary,
    responses={404: {"model": ErrorResponse}},
    summary="Get a run",
)
async def get_run(
    session_id: str,
    store: RunStore = Depends(get_run_store),
) -> RunSummary:
    return RunSummary.from_context(store.get(session_id).get_context())


@router.get(
    "/automation/runs/{session_id}/events",
    response_model=EventListResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get a run's event log",
)
async def get_run_events(
    session_id: str,
    store: RunStore = Depends(get_run_store),
) -> EventListResponse:
    events = [e.model_dump(mode="json") for e in store.get(session_id).get_history()]
    return EventListResponse(session_id=session_id, events=events, total=len(events))


@router.post(
    "/automation/runs/{session_id}/resume",
    response_model=RunSummary,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Resume a run awaiting input",
)
async def resume_run(
    session_id: str,
    request: ResumeRequest,
    store: RunStore = Depends(get_run_store),
) -> RunSummary:
    orchestrator = store.get(session_id)
    repo = _repository(request.repo_path)
    context = await orchestrator.run(repo_context=repo, user_input=request.user_input)
    return RunSummary.from_context(context)

"""Engine registry inspection endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from src.api.v1.schemas.common import ErrorResponse
from src.api.v1.schemas.engine import (
    EngineListResponse,
    EngineSelectRequest,
    EngineSelectResponse,
)
from src.dependencies import get_engine_registry
from src.engines.registry import EngineRegistry

router = APIRouter()


@router.get(
    "/engines",
    response_model=EngineListResponse,
    summary="List registered engines",
)
async def list_engines(
    registry: EngineRegistry = Depends(get_engine_registry),
) -> EngineListResponse:
    engines = registry.list_all()
    return EngineListResponse(engines=engines, total=len(engines))


@router.post(
    "/engines/select",
    response_model=EngineSelectResponse,
    responses={422: {"model": ErrorResponse}},
    summary="Preview engine selection",
    description="Return the engine the registry would pick for a task type, with its reasoning.",
)
async def select_engine(
    request: EngineSelectRequest,
    registry: EngineRegistry = Depends(get_engine_registry),
) -> EngineSelectResponse:
    engine = registry.select(request.task_type, request.preferences)
    return EngineSelectResponse(
        engine=engine,
        explanation=registry.explain(request.task_type, request.preferences),
    )

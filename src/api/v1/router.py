from fastapi import APIRouter

from src.api.v1.endpoints import automation, engines, health

v1_router = APIRouter()
v1_router.include_router(health.router, tags=["health"])
v1_router.include_router(engines.router, tags=["engines"])
v1_router.include_router(automation.router, tags=["automation"])

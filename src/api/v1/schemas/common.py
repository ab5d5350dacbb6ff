"""Common response schemas used across all API endpoints."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body returned with every 4xx/5xx produced by the error middleware."""

    error: str
    detail: str = ""
    context: dict[str, str] = {}

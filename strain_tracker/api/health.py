"""
Health check endpoint.
"""
from fastapi import APIRouter, Request
from pydantic import BaseModel


router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    store: str


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint.

    Returns:
        200: Service is up; ``store`` is "ok" or "misconfigured"
    """
    configured = getattr(request.app.state, "config_error", None) is None
    return HealthResponse(status="ok", store="ok" if configured else "misconfigured")

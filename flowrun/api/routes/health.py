"""GET /v1/health — Liveness plus registered step count."""

from fastapi import APIRouter, Request

from flowrun.api.schemas import HealthResponse
from flowrun.version import __version__

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    runtime = request.app.state.runtime
    return HealthResponse(status="ok", version=__version__, steps=len(runtime.registry.list_steps()))

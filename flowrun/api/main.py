"""FastAPI application factory with lifespan management."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from flowrun.core.runtime import Runtime, build_runtime
from flowrun.version import __version__

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    # ── Startup ──
    logger.info(f"flowrun v{__version__} starting...")
    if getattr(app.state, "runtime", None) is None:
        app.state.runtime = build_runtime()
    logger.info(f"flowrun v{__version__} ready, {len(app.state.runtime.registry.list_steps())} steps registered")

    yield

    # ── Shutdown ──
    logger.info("flowrun shutting down...")


def create_app(runtime: Optional[Runtime] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        runtime: Pre-built runtime (integrations, registry, executor). Built
            from ``FlowrunConfig`` at startup when omitted.
    """
    app = FastAPI(
        title="flowrun",
        description="Execute trigger/action workflow graphs.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.runtime = runtime

    from flowrun.api.routes import executions, health, integrations
    app.include_router(health.router, prefix="/v1")
    app.include_router(executions.router, prefix="/v1")
    app.include_router(integrations.router, prefix="/v1")

    return app


app = create_app()

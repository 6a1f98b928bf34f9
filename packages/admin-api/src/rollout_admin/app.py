"""FastAPI application -- HTTP surface for the rollout control system."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rollout.config import RolloutSettings
from rollout.control.errors import InvalidStateError, NotFoundError
from rollout.system import RolloutSystem
from rollout_admin.routes import audit, brands, flags

logger = logging.getLogger(__name__)


def create_app(
    settings: RolloutSettings | None = None,
    system: RolloutSystem | None = None,
) -> FastAPI:
    """Build the app; *system* is created on startup when not supplied."""
    settings = settings or RolloutSettings()
    logging.basicConfig(level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.system is None
        if owned:
            app.state.system = await RolloutSystem.create(settings)
        try:
            yield
        finally:
            if owned:
                await app.state.system.close()
                app.state.system = None

    app = FastAPI(
        title="Rollout Admin API",
        version="0.1.0",
        description="Feature flag and brand canary controls.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.system = system

    # CORS -- allow the local dashboard frontends
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(InvalidStateError)
    async def invalid_state_handler(request: Request, exc: InvalidStateError):
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    app.include_router(flags.router)
    app.include_router(brands.router)
    app.include_router(audit.router)

    @app.get("/health")
    async def health():
        """Unauthenticated health-check endpoint."""
        return {"status": "ok"}

    return app


app = create_app()

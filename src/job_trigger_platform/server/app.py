"""FastAPI app factory.

Endpoints are thin wrappers over the job registry and the trigger engine.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from job_trigger_platform import __version__
from job_trigger_platform.engine.config import TriggerSettings
from job_trigger_platform.engine.jenkins.service import JenkinsTriggerService
from job_trigger_platform.engine.jobs.builtin import build_default_registry
from job_trigger_platform.engine.jobs.registry import JobRegistry
from job_trigger_platform.server.config import ServerSettings
from job_trigger_platform.server.jobs_router import router as jobs_router

logger = logging.getLogger(__name__)


def _service_from_env() -> JenkinsTriggerService | None:
    try:
        return JenkinsTriggerService.from_settings(TriggerSettings())
    except (ValidationError, ValueError) as e:
        logger.warning("Jenkins not configured; trigger endpoints disabled", extra={"error": str(e)})
        return None


def create_app(
    settings: ServerSettings | None = None,
    registry: JobRegistry | None = None,
    service: JenkinsTriggerService | None = None,
) -> FastAPI:
    settings = settings or ServerSettings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        if app.state.trigger_service is not None:
            app.state.trigger_service.close()

    app = FastAPI(
        title="Jenkins Job Trigger Platform",
        version=__version__,
        description="REST API for triggering registered Jenkins jobs.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.registry = registry if registry is not None else build_default_registry()
    app.state.trigger_service = service if service is not None else _service_from_env()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(jobs_router, prefix="/api")

    @app.get("/api/v1/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app

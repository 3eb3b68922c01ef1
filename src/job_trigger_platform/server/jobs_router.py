"""Job listing and triggering endpoints.

All routes are mounted under `/api`. Caller identity is asserted by the
upstream authentication layer through request headers:

- ``X-User-Id``: caller id (required)
- ``X-User-Roles``: comma-separated roles
- ``X-Job-Access``: comma-separated job names granted directly
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from job_trigger_platform.engine.jenkins.cancellation import CancellationToken
from job_trigger_platform.engine.jenkins.service import JenkinsTriggerService
from job_trigger_platform.engine.jobs.parameters import ParameterValidationError
from job_trigger_platform.engine.jobs.registry import (
    JobContext,
    JobDefinition,
    JobRegistry,
    Principal,
    can_trigger,
    run_job,
)
from job_trigger_platform.server.config import ServerSettings
from job_trigger_platform.server.models import ApiJob, ApiPlugin, TriggerJobRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def _split_header(value: str | None) -> frozenset[str]:
    if not value:
        return frozenset()
    return frozenset(p.strip() for p in value.split(",") if p.strip())


def _principal(request: Request) -> Principal:
    user_id = (request.headers.get("X-User-Id") or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing caller identity")
    return Principal(
        user_id=user_id,
        roles=_split_header(request.headers.get("X-User-Roles")),
        job_grants=_split_header(request.headers.get("X-Job-Access")),
    )


def _registry(request: Request) -> JobRegistry:
    registry = getattr(request.app.state, "registry", None)
    if not isinstance(registry, JobRegistry):
        raise HTTPException(status_code=500, detail="Job registry not configured")
    return registry


def _settings(request: Request) -> ServerSettings:
    settings = getattr(request.app.state, "settings", None)
    if not isinstance(settings, ServerSettings):
        raise HTTPException(status_code=500, detail="Server settings not configured")
    return settings


def _service(request: Request) -> JenkinsTriggerService:
    service = getattr(request.app.state, "trigger_service", None)
    if service is None:
        raise HTTPException(
            status_code=503,
            detail="Jenkins is not configured (JENKINS_URL, JENKINS_USERNAME, JENKINS_API_TOKEN)",
        )
    return service


def _permitted_job(request: Request, job_name: str) -> tuple[Principal, JobDefinition]:
    principal = _principal(request)
    definition = _registry(request).get(job_name)
    if definition is None:
        raise HTTPException(status_code=404, detail=f"Job '{job_name}' not found")
    if not can_trigger(principal, definition):
        raise HTTPException(status_code=403, detail=f"Not permitted to access job '{job_name}'")
    return principal, definition


def _require_admin(request: Request) -> Principal:
    principal = _principal(request)
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return principal


def _token(settings: ServerSettings) -> CancellationToken:
    if settings.trigger_timeout_seconds > 0:
        return CancellationToken.with_timeout(settings.trigger_timeout_seconds)
    return CancellationToken.none()


@router.get("/jobs", response_model=list[ApiJob])
def list_jobs(request: Request) -> list[dict[str, object]]:
    principal = _principal(request)
    return [d.to_json() for d in _registry(request).accessible_to(principal)]


@router.get("/jobs/{job_name}", response_model=ApiJob)
def get_job(request: Request, job_name: str) -> dict[str, object]:
    _, definition = _permitted_job(request, job_name)
    return definition.to_json()


@router.post("/jobs/{job_name}", response_model=None)
def trigger_job(
    request: Request, job_name: str, payload: TriggerJobRequest
) -> dict[str, object] | JSONResponse:
    principal, definition = _permitted_job(request, job_name)
    service = _service(request)
    executed_at = datetime.now(tz=UTC).isoformat()

    context = JobContext(service=service, token=_token(_settings(request)))
    try:
        outcome = run_job(definition, payload.parameters, context)
    except ParameterValidationError as e:
        raise HTTPException(status_code=422, detail={"errors": e.errors}) from e

    logger.info(
        "Job triggered",
        extra={
            "job_name": job_name,
            "user_id": principal.user_id,
            "success": outcome.success,
        },
    )

    if not outcome.success:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "jobName": job_name,
                "executedAt": executed_at,
                "parameters": payload.parameters,
                "errorMessage": outcome.error_message,
                "details": outcome.details,
                "logs": list(outcome.logs),
            },
        )

    return {
        "success": True,
        "jobName": job_name,
        "executedAt": executed_at,
        "parameters": payload.parameters,
        "result": outcome.to_json(),
    }


@router.get("/plugins", response_model=list[ApiPlugin])
def list_plugins(request: Request) -> list[dict[str, object]]:
    _require_admin(request)
    return [d.to_json(include_roles=True) for d in _registry(request).all()]


@router.get("/plugins/{job_name}", response_model=ApiPlugin)
def get_plugin(request: Request, job_name: str) -> dict[str, object]:
    _require_admin(request)
    definition = _registry(request).get(job_name)
    if definition is None:
        raise HTTPException(status_code=404, detail=f"Job '{job_name}' not found")
    return definition.to_json(include_roles=True)

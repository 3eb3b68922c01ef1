"""Registered jobs and who may trigger them."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from job_trigger_platform.engine.jenkins.cancellation import CancellationToken
from job_trigger_platform.engine.jenkins.service import JenkinsTriggerService
from job_trigger_platform.engine.jobs.parameters import JobParameter, check_parameters

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class JobRunResult:
    success: bool
    error_message: str | None = None
    details: str | None = None
    data: Mapping[str, Any] | None = None
    logs: tuple[str, ...] = ()

    @classmethod
    def ok(
        cls,
        *,
        data: Mapping[str, Any] | None = None,
        details: str | None = None,
        logs: Iterable[str] = (),
    ) -> JobRunResult:
        return cls(success=True, data=data, details=details, logs=tuple(logs))

    @classmethod
    def failed(
        cls, error_message: str, *, details: str | None = None, logs: Iterable[str] = ()
    ) -> JobRunResult:
        return cls(success=False, error_message=error_message, details=details, logs=tuple(logs))

    def to_json(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "errorMessage": self.error_message,
            "details": self.details,
            "data": dict(self.data) if self.data is not None else None,
            "logs": list(self.logs),
        }


@dataclass(frozen=True, slots=True)
class JobContext:
    """What a job gets to work with when it runs."""

    service: JenkinsTriggerService
    token: CancellationToken = field(default_factory=CancellationToken.none)


JobTrigger = Callable[[Mapping[str, str], JobContext], JobRunResult]


@dataclass(frozen=True, slots=True)
class JobDefinition:
    name: str
    required_roles: tuple[str, ...]
    parameters: tuple[JobParameter, ...]
    trigger: JobTrigger
    description: str | None = None

    def to_json(self, *, include_roles: bool = False) -> dict[str, object]:
        out: dict[str, object] = {
            "jobName": self.name,
            "description": self.description,
            "parameters": [p.to_json() for p in self.parameters],
        }
        if include_roles:
            out["requiredRoles"] = list(self.required_roles)
        return out


@dataclass(frozen=True, slots=True)
class Principal:
    """The caller, as asserted by the upstream authentication layer."""

    user_id: str
    roles: frozenset[str] = frozenset()
    job_grants: frozenset[str] = frozenset()

    @property
    def is_admin(self) -> bool:
        return "Admin" in self.roles


def can_trigger(principal: Principal, definition: JobDefinition) -> bool:
    """Direct per-job grant wins; otherwise any shared role is enough."""

    if definition.name in principal.job_grants:
        logger.info(
            "Job access granted by direct grant",
            extra={"user_id": principal.user_id, "job_name": definition.name},
        )
        return True

    if principal.roles.intersection(definition.required_roles):
        logger.info(
            "Job access granted by role membership",
            extra={"user_id": principal.user_id, "job_name": definition.name},
        )
        return True

    logger.info(
        "Job access denied",
        extra={
            "user_id": principal.user_id,
            "job_name": definition.name,
            "user_roles": sorted(principal.roles),
            "required_roles": list(definition.required_roles),
        },
    )
    return False


class JobRegistry:
    def __init__(self) -> None:
        self._jobs: dict[str, JobDefinition] = {}

    def register(self, definition: JobDefinition) -> None:
        if not definition.name.strip():
            raise ValueError("Job name must not be empty")
        if definition.name in self._jobs:
            raise ValueError(f"Job already registered: {definition.name}")
        self._jobs[definition.name] = definition

    def get(self, name: str) -> JobDefinition | None:
        return self._jobs.get(name)

    def all(self) -> list[JobDefinition]:  # noqa: A003
        return list(self._jobs.values())

    def accessible_to(self, principal: Principal) -> list[JobDefinition]:
        return [d for d in self._jobs.values() if can_trigger(principal, d)]

    def __contains__(self, name: object) -> bool:
        return name in self._jobs

    def __len__(self) -> int:
        return len(self._jobs)


def run_job(
    definition: JobDefinition, parameters: Mapping[str, str], context: JobContext
) -> JobRunResult:
    """Validate ``parameters`` against ``definition`` and run the job.

    Raises:
        ParameterValidationError: if the parameters do not satisfy the job's contract.
    """

    filled = check_parameters(parameters, definition.parameters)
    logger.info(
        "Running job",
        extra={"job_name": definition.name, "parameter_names": sorted(filled)},
    )
    try:
        return definition.trigger(filled, context)
    except Exception as e:
        logger.exception("Error running job", extra={"job_name": definition.name})
        return JobRunResult.failed(
            "An error occurred while triggering the job.", details=str(e)
        )

"""Named jobs, their declared parameters, and access rules."""

from __future__ import annotations

from job_trigger_platform.engine.jobs.builtin import build_default_registry
from job_trigger_platform.engine.jobs.parameters import (
    JobParameter,
    ParameterType,
    ParameterValidationError,
)
from job_trigger_platform.engine.jobs.registry import (
    JobContext,
    JobDefinition,
    JobRegistry,
    JobRunResult,
    Principal,
    can_trigger,
    run_job,
)

__all__ = [
    "JobContext",
    "JobDefinition",
    "JobParameter",
    "JobRegistry",
    "JobRunResult",
    "ParameterType",
    "ParameterValidationError",
    "Principal",
    "build_default_registry",
    "can_trigger",
    "run_job",
]

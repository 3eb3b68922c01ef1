"""Jobs shipped with the platform.

Each job maps its user-facing parameters onto the parameters of one Jenkins
job and hands the actual triggering to the shared trigger service.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import timedelta

from job_trigger_platform.engine.jenkins.models import TriggerResult
from job_trigger_platform.engine.jobs.parameters import JobParameter, ParameterType, parse_bool
from job_trigger_platform.engine.jobs.registry import (
    JobContext,
    JobDefinition,
    JobRegistry,
    JobRunResult,
)

logger = logging.getLogger(__name__)

SINGLE_TENANT_JENKINS_JOB = "deploy-single-tenant"
SAMPLE_JENKINS_JOB = "sample-job"
ADVANCED_JENKINS_JOB = "advanced-deployment"


def _flag(parameters: Mapping[str, str], name: str, default: bool) -> bool:
    raw = parameters.get(name)
    if not raw:
        return default
    parsed = parse_bool(raw)
    return default if parsed is None else parsed


def _lower(value: bool) -> str:
    return "true" if value else "false"


def _run_jenkins_job(
    jenkins_job: str,
    jenkins_parameters: Mapping[str, str],
    context: JobContext,
    *,
    summary: str,
    data: Mapping[str, object],
) -> JobRunResult:
    result = context.service.trigger_build(jenkins_job, jenkins_parameters, token=context.token)
    if not result.is_successful:
        logger.error(
            "Failed to trigger Jenkins job",
            extra={"jenkins_job": jenkins_job, "error": result.error_message},
        )
        return JobRunResult.failed(
            result.error_message or "Failed to trigger Jenkins job.",
            details="The Jenkins server returned an error when attempting to trigger the build.",
        )

    estimated_completion = None
    if result.timestamp is not None:
        estimated_completion = result.timestamp + timedelta(
            milliseconds=result.estimated_duration_ms
        )

    return JobRunResult.ok(
        data={
            "buildNumber": result.build_number,
            "buildUrl": result.build_url,
            "outcome": result.outcome.value,
            **data,
            "estimatedCompletion": estimated_completion.isoformat()
            if estimated_completion
            else None,
        },
        details=f"{summary} {_build_sentence(result)}",
        logs=_build_logs(summary, result),
    )


def _build_sentence(result: TriggerResult) -> str:
    if result.build_number:
        return f"Jenkins build #{result.build_number} has been started."
    return "Jenkins accepted the build request."


def _build_logs(summary: str, result: TriggerResult) -> list[str]:
    logs = [summary]
    if result.build_number:
        logs.append(f"Jenkins build #{result.build_number} triggered successfully")
    else:
        logs.append("Jenkins build queued; build number not yet assigned")
    if result.build_url:
        logs.append(f"Build URL: {result.build_url}")
    if result.estimated_duration_ms:
        logs.append(
            f"Estimated build duration: {timedelta(milliseconds=result.estimated_duration_ms)}"
        )
    if result.timestamp is not None:
        logs.append(f"Build started at: {result.timestamp:%Y-%m-%d %H:%M:%S}")
    return logs


# --- SingleTenantDeployment -------------------------------------------------

SINGLE_TENANT_PARAMETERS: tuple[JobParameter, ...] = (
    JobParameter(
        name="product",
        display_name="Product",
        description="The product to deploy",
        type=ParameterType.SELECT,
        choices=("WebApp", "API", "UserService", "PaymentService", "NotificationService"),
    ),
    JobParameter(
        name="environment",
        display_name="Environment",
        description="The environment to deploy to",
        type=ParameterType.SELECT,
        choices=("Development", "Testing", "Staging", "Production"),
    ),
    JobParameter(
        name="version",
        display_name="Version",
        description="The version to deploy (format: x.y.z)",
    ),
    JobParameter(
        name="repositories",
        display_name="Git Repositories",
        description="Comma-separated list of Git repositories to include in the deployment",
        default="main-repo",
    ),
    JobParameter(
        name="runDatabaseMigrations",
        display_name="Run Database Migrations",
        description="Whether to run database migrations as part of the deployment",
        type=ParameterType.BOOLEAN,
        required=False,
        default="true",
    ),
    JobParameter(
        name="environmentVariables",
        display_name="Environment Variables",
        description='JSON string of environment variables to set (e.g., {"VAR1":"value1"})',
        required=False,
        default="{}",
    ),
    JobParameter(
        name="notificationEmails",
        display_name="Notification Emails",
        description="Comma-separated list of email addresses to notify on completion",
        required=False,
    ),
    JobParameter(
        name="skipTests",
        display_name="Skip Tests",
        description="Whether to skip running tests during deployment",
        type=ParameterType.BOOLEAN,
        required=False,
        default="false",
    ),
    JobParameter(
        name="timeoutMinutes",
        display_name="Timeout (Minutes)",
        description="Maximum time in minutes to wait for deployment to complete",
        type=ParameterType.NUMBER,
        required=False,
        default="30",
    ),
    JobParameter(
        name="rollbackOnFailure",
        display_name="Rollback On Failure",
        description="Whether to automatically rollback if deployment fails",
        type=ParameterType.BOOLEAN,
        required=False,
        default="true",
    ),
)


def single_tenant_jenkins_parameters(parameters: Mapping[str, str]) -> dict[str, str]:
    """Map the form fields onto the ``deploy-single-tenant`` job's parameters."""

    try:
        timeout_minutes = int(parameters.get("timeoutMinutes") or "30")
    except ValueError:
        timeout_minutes = 30

    return {
        "PRODUCT": parameters["product"],
        "ENVIRONMENT": parameters["environment"],
        "VERSION": parameters["version"],
        "REPOSITORIES": parameters["repositories"],
        "RUN_DB_MIGRATIONS": _lower(_flag(parameters, "runDatabaseMigrations", False)),
        "ENV_VARS": parameters.get("environmentVariables", "{}"),
        "NOTIFICATION_EMAILS": parameters.get("notificationEmails", ""),
        "SKIP_TESTS": _lower(_flag(parameters, "skipTests", False)),
        "TIMEOUT_MINUTES": str(timeout_minutes),
        "ROLLBACK_ON_FAILURE": _lower(_flag(parameters, "rollbackOnFailure", True)),
    }


def trigger_single_tenant(parameters: Mapping[str, str], context: JobContext) -> JobRunResult:
    for key, label in (
        ("product", "Product is required."),
        ("environment", "Environment is required."),
        ("version", "Version is required."),
        ("repositories", "Repositories are required."),
    ):
        if not parameters.get(key):
            return JobRunResult.failed(label)

    jenkins_parameters = single_tenant_jenkins_parameters(parameters)
    product = parameters["product"]
    version = parameters["version"]
    environment = parameters["environment"]

    return _run_jenkins_job(
        SINGLE_TENANT_JENKINS_JOB,
        jenkins_parameters,
        context,
        summary=f"Started deployment of {product} version {version} to {environment}.",
        data={
            "product": product,
            "environment": environment,
            "version": version,
            "repositories": [r.strip() for r in parameters["repositories"].split(",") if r.strip()],
            "runDatabaseMigrations": jenkins_parameters["RUN_DB_MIGRATIONS"] == "true",
            "skipTests": jenkins_parameters["SKIP_TESTS"] == "true",
            "rollbackOnFailure": jenkins_parameters["ROLLBACK_ON_FAILURE"] == "true",
            "timeoutMinutes": int(jenkins_parameters["TIMEOUT_MINUTES"]),
        },
    )


# --- SampleJob --------------------------------------------------------------

SAMPLE_PARAMETERS: tuple[JobParameter, ...] = (
    JobParameter(
        name="environment",
        display_name="Environment",
        description="The environment to deploy to",
        type=ParameterType.SELECT,
        choices=("Development", "Staging", "Production"),
    ),
    JobParameter(name="version", display_name="Version", description="The version to deploy"),
    JobParameter(
        name="skipTests",
        display_name="Skip Tests",
        description="Whether to skip tests during deployment",
        type=ParameterType.BOOLEAN,
        required=False,
        default="false",
    ),
)


def trigger_sample(parameters: Mapping[str, str], context: JobContext) -> JobRunResult:
    environment = parameters.get("environment") or "Development"
    version = parameters.get("version") or "1.0.0"
    skip_tests = _flag(parameters, "skipTests", False)

    return _run_jenkins_job(
        SAMPLE_JENKINS_JOB,
        {"ENVIRONMENT": environment, "VERSION": version, "SKIP_TESTS": _lower(skip_tests)},
        context,
        summary=f"Started deployment of version {version} to {environment}.",
        data={"environment": environment, "version": version, "skippedTests": skip_tests},
    )


# --- AdvancedDeployment -----------------------------------------------------

ADVANCED_PARAMETERS: tuple[JobParameter, ...] = (
    JobParameter(
        name="environment",
        display_name="Environment",
        description="The environment to deploy to",
        type=ParameterType.SELECT,
        choices=("QA", "UAT", "Production"),
    ),
    JobParameter(name="version", display_name="Version", description="The version to deploy"),
    JobParameter(
        name="notifyUsers",
        display_name="Notify Users",
        description="Whether to notify users about the deployment",
        type=ParameterType.BOOLEAN,
        required=False,
        default="true",
    ),
    JobParameter(
        name="deploymentScript",
        display_name="Deployment Script",
        description="Custom deployment script to run",
        type=ParameterType.FILE,
        required=False,
    ),
)


def trigger_advanced(parameters: Mapping[str, str], context: JobContext) -> JobRunResult:
    environment = parameters.get("environment") or "QA"
    version = parameters.get("version") or "1.0.0"
    notify_users = _flag(parameters, "notifyUsers", False)
    script = parameters.get("deploymentScript") or ""

    jenkins_parameters = {
        "ENVIRONMENT": environment,
        "VERSION": version,
        "NOTIFY_USERS": _lower(notify_users),
    }
    if script:
        jenkins_parameters["DEPLOYMENT_SCRIPT"] = script

    return _run_jenkins_job(
        ADVANCED_JENKINS_JOB,
        jenkins_parameters,
        context,
        summary=f"Started advanced deployment of version {version} to {environment}.",
        data={
            "environment": environment,
            "version": version,
            "notifiedUsers": notify_users,
            "usedCustomScript": bool(script),
        },
    )


def build_default_registry() -> JobRegistry:
    registry = JobRegistry()
    registry.register(
        JobDefinition(
            name="SingleTenantDeployment",
            description="Deploy a single-tenant application to an environment",
            required_roles=("Admin", "Dev"),
            parameters=SINGLE_TENANT_PARAMETERS,
            trigger=trigger_single_tenant,
        )
    )
    registry.register(
        JobDefinition(
            name="SampleJob",
            description="Sample deployment job",
            required_roles=("Admin", "Dev"),
            parameters=SAMPLE_PARAMETERS,
            trigger=trigger_sample,
        )
    )
    registry.register(
        JobDefinition(
            name="AdvancedDeployment",
            description="Deployment with custom scripts and user notification",
            required_roles=("Admin",),
            parameters=ADVANCED_PARAMETERS,
            trigger=trigger_advanced,
        )
    )
    return registry

"""CLI entrypoint for triggering Jenkins jobs."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from job_trigger_platform import __version__
from job_trigger_platform.engine.config import TriggerSettings
from job_trigger_platform.engine.jenkins.cancellation import CancellationToken
from job_trigger_platform.engine.jenkins.service import JenkinsTriggerService
from job_trigger_platform.engine.jobs.builtin import build_default_registry
from job_trigger_platform.engine.jobs.parameters import ParameterValidationError
from job_trigger_platform.engine.jobs.registry import JobContext, JobRegistry, run_job
from job_trigger_platform.engine.logging import configure_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG = 2
EXIT_VALIDATION = 3
EXIT_TRIGGER_FAILED = 4
EXIT_INTERRUPTED = 130


def _parse_params(values: list[str] | None) -> dict[str, str]:
    params: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected KEY=VALUE, got {item!r}")
        params[key.strip()] = value
    return params


def _add_trigger_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--param",
        "-p",
        action="append",
        default=None,
        metavar="KEY=VALUE",
        help="Build parameter; repeat for several",
    )
    parser.add_argument(
        "--timeout-seconds",
        type=float,
        default=0.0,
        help="Give up after this many seconds (0 means no timeout)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jenkins-trigger",
        description="Trigger parameterized Jenkins builds and wait for them to start",
    )
    parser.add_argument(
        "--version", action="version", version=f"jenkins-job-trigger {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list-jobs", help="List registered jobs and their parameters")

    trigger = subparsers.add_parser("trigger", help="Run a registered job")
    trigger.add_argument("--job", required=True, help="Registered job name, e.g. SampleJob")
    _add_trigger_options(trigger)

    trigger_raw = subparsers.add_parser(
        "trigger-raw",
        help="Trigger a Jenkins job directly, without a registered definition",
    )
    trigger_raw.add_argument(
        "--jenkins-job",
        required=True,
        help="Jenkins job name; folders as 'folder/job'",
    )
    _add_trigger_options(trigger_raw)

    return parser


def _print_jobs(registry: JobRegistry) -> None:
    for definition in registry.all():
        roles = ", ".join(definition.required_roles)
        print(f"{definition.name} (roles: {roles})")
        for param in definition.parameters:
            flags = "required" if param.required else "optional"
            line = f"  - {param.name} [{param.type.value}, {flags}]"
            if param.default is not None:
                line += f" default={param.default!r}"
            if param.choices:
                line += f" choices={','.join(param.choices)}"
            print(line)


def _token(timeout_seconds: float) -> CancellationToken:
    if timeout_seconds > 0:
        return CancellationToken.with_timeout(timeout_seconds)
    return CancellationToken.none()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    registry = build_default_registry()

    if args.command == "list-jobs":
        _print_jobs(registry)
        return EXIT_OK

    try:
        params = _parse_params(args.param)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return EXIT_VALIDATION

    try:
        settings = TriggerSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return EXIT_CONFIG

    configure_logging(settings.log_level)

    try:
        service = JenkinsTriggerService.from_settings(settings)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    token = _token(args.timeout_seconds)
    try:
        if args.command == "trigger":
            definition = registry.get(args.job)
            if definition is None:
                print(f"Unknown job: {args.job}", file=sys.stderr)
                return EXIT_VALIDATION

            try:
                outcome = run_job(definition, params, JobContext(service=service, token=token))
            except ParameterValidationError as e:
                print(json.dumps({"errors": e.errors}, indent=2), file=sys.stderr)
                return EXIT_VALIDATION

            print(json.dumps(outcome.to_json(), indent=2, default=str))
            return EXIT_OK if outcome.success else EXIT_TRIGGER_FAILED

        if args.command == "trigger-raw":
            result = service.trigger_build(args.jenkins_job, params, token=token)
            print(json.dumps(result.to_json(), indent=2))
            return EXIT_OK if result.is_successful else EXIT_TRIGGER_FAILED

        logger.error("Unknown command", extra={"command": args.command})
        return EXIT_CONFIG

    except KeyboardInterrupt:
        token.cancel()
        logger.warning("Interrupted", extra={"command": args.command})
        print("Cancelled", file=sys.stderr)
        return EXIT_INTERRUPTED

    finally:
        service.close()


if __name__ == "__main__":
    raise SystemExit(main())

#!/usr/bin/env python3
"""Programmatic trigger example.

This demonstrates using the engine directly:

* load Jenkins settings from `.env`
* trigger a parameterized Jenkins job
* print the normalized result

The job name and parameters are passed as arguments (not read from `.env`).
"""

from __future__ import annotations

import argparse
import json
from typing import Sequence

from job_trigger_platform.engine.config import TriggerSettings
from job_trigger_platform.engine.jenkins.cancellation import CancellationToken
from job_trigger_platform.engine.jenkins.service import JenkinsTriggerService
from job_trigger_platform.engine.logging import configure_logging


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Trigger a Jenkins job (programmatic example).")
    parser.add_argument("--job", required=True, help='Jenkins job name, e.g. "team/deploy"')
    parser.add_argument(
        "--param",
        action="append",
        default=[],
        help='Build parameter as "KEY=VALUE" (repeatable)',
    )
    parser.add_argument("--timeout-seconds", type=float, default=120.0)
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    params = dict(p.split("=", 1) for p in args.param if "=" in p)

    settings = TriggerSettings()
    configure_logging(settings.log_level)

    service = JenkinsTriggerService.from_settings(settings)
    try:
        result = service.trigger_build(
            args.job,
            params,
            token=CancellationToken.with_timeout(args.timeout_seconds),
        )
    finally:
        service.close()

    print(json.dumps(result.to_json(), indent=2))
    if result.build_number:
        print(f"Build #{result.build_number}: {result.build_url}")
    return 0 if result.is_successful else 1


if __name__ == "__main__":
    raise SystemExit(main())

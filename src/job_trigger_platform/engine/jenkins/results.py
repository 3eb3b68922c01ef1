"""Constructors for every shape of :class:`TriggerResult` the engine emits.

Keeping them in one place guarantees the result invariants: a timestamp on
every success, and zeros instead of missing numbers.
"""

from __future__ import annotations

from datetime import UTC, datetime

from job_trigger_platform.engine.jenkins.models import (
    BuildDetails,
    ExecutableRef,
    QueueItemLocator,
    TriggerOutcome,
    TriggerResult,
)


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def failure(message: str) -> TriggerResult:
    return TriggerResult(
        is_successful=False,
        outcome=TriggerOutcome.FAILED,
        timestamp=utc_now(),
        error_message=message,
    )


def cancelled(stage: str) -> TriggerResult:
    return TriggerResult(
        is_successful=False,
        outcome=TriggerOutcome.CANCELLED,
        timestamp=utc_now(),
        error_message=f"Trigger cancelled during {stage}",
        cancelled=True,
    )


def accepted_without_location(now: datetime) -> TriggerResult:
    """Jenkins accepted the request but returned no queue item to track."""

    return TriggerResult(
        is_successful=True,
        outcome=TriggerOutcome.ACCEPTED_WITHOUT_LOCATION,
        build_number=0,
        build_url=None,
        timestamp=now,
    )


def from_build_details(details: BuildDetails) -> TriggerResult:
    return TriggerResult(
        is_successful=True,
        outcome=TriggerOutcome.STARTED,
        build_number=details.number,
        build_url=details.url,
        timestamp=details.timestamp,
        estimated_duration_ms=details.estimated_duration_ms,
    )


def from_executable(executable: ExecutableRef, now: datetime) -> TriggerResult:
    """The build started, but its details could not be read."""

    return TriggerResult(
        is_successful=True,
        outcome=TriggerOutcome.STARTED_WITHOUT_DETAILS,
        build_number=executable.number,
        build_url=executable.url,
        timestamp=now,
    )


def queued_unconfirmed(locator: QueueItemLocator, now: datetime) -> TriggerResult:
    """Polling ran out before the queue item turned into a build.

    Reported as success: a confirmed submission means Jenkins has committed to
    running it.
    """

    return TriggerResult(
        is_successful=True,
        outcome=TriggerOutcome.QUEUED_UNCONFIRMED,
        build_number=0,
        build_url=locator.url,
        timestamp=now,
    )

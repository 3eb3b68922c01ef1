"""Submit parameterized builds to Jenkins and confirm they started."""

from __future__ import annotations

from job_trigger_platform.engine.jenkins.cancellation import CancellationToken, OperationCancelled
from job_trigger_platform.engine.jenkins.client import JenkinsClient
from job_trigger_platform.engine.jenkins.models import TriggerOutcome, TriggerResult
from job_trigger_platform.engine.jenkins.queue_resolver import PollSchedule
from job_trigger_platform.engine.jenkins.retry import RetryPolicy
from job_trigger_platform.engine.jenkins.service import JenkinsTriggerService

__all__ = [
    "CancellationToken",
    "JenkinsClient",
    "JenkinsTriggerService",
    "OperationCancelled",
    "PollSchedule",
    "RetryPolicy",
    "TriggerOutcome",
    "TriggerResult",
]

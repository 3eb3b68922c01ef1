"""Trigger a parameterized Jenkins build and report what happened.

This is the engine's public boundary: whatever Jenkins does, the caller gets
exactly one :class:`TriggerResult` back and no exception.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from job_trigger_platform.engine.config import TriggerSettings
from job_trigger_platform.engine.jenkins import results
from job_trigger_platform.engine.jenkins.cancellation import (
    CancellationToken,
    OperationCancelled,
)
from job_trigger_platform.engine.jenkins.client import JenkinsClient
from job_trigger_platform.engine.jenkins.crumb import CrumbProvider
from job_trigger_platform.engine.jenkins.models import TriggerRequest, TriggerResult
from job_trigger_platform.engine.jenkins.queue_resolver import PollSchedule, QueueResolver
from job_trigger_platform.engine.jenkins.retry import RetryPolicy
from job_trigger_platform.engine.jenkins.submitter import BuildSubmitter, SubmissionAccepted

logger = logging.getLogger(__name__)


class JenkinsTriggerService:
    """Submit builds and track them until they start.

    Holds no per-call state, so one instance can serve concurrent callers.
    Re-triggering the same job with the same parameters always creates a new
    build.
    """

    def __init__(
        self,
        *,
        client: JenkinsClient,
        retry_policy: RetryPolicy | None = None,
        poll_schedule: PollSchedule | None = None,
        use_crumb: bool = True,
        crumb_on_reads: bool = False,
    ) -> None:
        self._client = client
        retry = retry_policy or RetryPolicy()
        crumbs = CrumbProvider(client=client, retry_policy=retry) if use_crumb else None

        self._submitter = BuildSubmitter(client=client, retry_policy=retry, crumbs=crumbs)
        self._resolver = QueueResolver(
            client=client,
            retry_policy=retry,
            schedule=poll_schedule,
            crumbs=crumbs if crumb_on_reads else None,
        )

    @classmethod
    def from_settings(cls, settings: TriggerSettings) -> JenkinsTriggerService:
        client = JenkinsClient(
            base_url=settings.jenkins_url,
            username=settings.jenkins_username,
            api_token=settings.jenkins_api_token,
            timeout_seconds=settings.jenkins_timeout_seconds,
        )
        return cls(
            client=client,
            retry_policy=RetryPolicy(
                max_attempts=settings.retry_max_attempts,
                backoff_base_seconds=settings.retry_backoff_base_seconds,
            ),
            poll_schedule=PollSchedule(
                max_attempts=settings.poll_max_attempts,
                initial_delay_seconds=settings.poll_initial_delay_seconds,
                backoff_factor=settings.poll_backoff_factor,
            ),
            use_crumb=settings.jenkins_use_crumb,
            crumb_on_reads=settings.jenkins_crumb_on_reads,
        )

    def trigger_build(
        self,
        job_name: str,
        parameters: Mapping[str, str],
        *,
        token: CancellationToken | None = None,
    ) -> TriggerResult:
        token = token or CancellationToken.none()
        stage = "submission"
        try:
            request = TriggerRequest(job_name=job_name, parameters=parameters)
            logger.info(
                "Triggering Jenkins build",
                extra={"job_name": job_name, "parameter_names": sorted(request.parameters)},
            )

            outcome = self._submitter.submit(request, token)
            if not isinstance(outcome, SubmissionAccepted):
                return outcome

            stage = "queue polling"
            return self._resolver.resolve(outcome.locator, token)

        except OperationCancelled as e:
            logger.warning(
                "Jenkins trigger cancelled",
                extra={"job_name": job_name, "stage": stage, "reason": e.reason},
            )
            return results.cancelled(stage)

        except Exception as e:
            logger.exception("Error triggering Jenkins build", extra={"job_name": job_name})
            return results.failure(f"Error triggering Jenkins build: {e}")

    def close(self) -> None:
        self._client.close()

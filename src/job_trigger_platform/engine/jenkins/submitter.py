"""Submit a parameterized build and pick up its queue item locator."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

from job_trigger_platform.engine.jenkins import results
from job_trigger_platform.engine.jenkins.cancellation import (
    CancellationToken,
    OperationCancelled,
)
from job_trigger_platform.engine.jenkins.client import JenkinsClient
from job_trigger_platform.engine.jenkins.crumb import CrumbProvider
from job_trigger_platform.engine.jenkins.models import (
    QueueItemLocator,
    TriggerRequest,
    TriggerResult,
)
from job_trigger_platform.engine.jenkins.retry import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SubmissionAccepted:
    locator: QueueItemLocator


SubmissionOutcome = SubmissionAccepted | TriggerResult


class BuildSubmitter:
    def __init__(
        self,
        *,
        client: JenkinsClient,
        retry_policy: RetryPolicy,
        crumbs: CrumbProvider | None,
    ) -> None:
        self._client = client
        self._retry = retry_policy
        self._crumbs = crumbs

    def submit(self, request: TriggerRequest, token: CancellationToken) -> SubmissionOutcome:
        """POST ``buildWithParameters`` once (with retries for transient failures).

        ``OperationCancelled`` propagates; every other error becomes a failed
        result.
        """

        path = self._client.build_with_parameters_path(request.job_name, request.parameters)

        def post() -> requests.Response:
            # Fresh crumb per attempt: a crumb can expire between retries.
            crumb = self._crumbs.fetch(token) if self._crumbs is not None else None
            response = self._client.post(path, crumb=crumb, token=token)
            if not response.ok:
                logger.warning(
                    "Jenkins returned non-success status for build submission",
                    extra={
                        "job_name": request.job_name,
                        "status_code": response.status_code,
                        "body": response.text[:500],
                    },
                )
            return response

        try:
            response = self._retry.execute(post, token=token, description="submit")
        except OperationCancelled:
            raise
        except Exception as e:
            logger.exception(
                "Error triggering Jenkins build", extra={"job_name": request.job_name}
            )
            return results.failure(f"Error triggering Jenkins build: {e}")

        if not response.ok:
            body = response.text
            logger.error(
                "Failed to trigger Jenkins build",
                extra={"job_name": request.job_name, "status_code": response.status_code},
            )
            return results.failure(
                f"Failed to trigger Jenkins build. Status: {response.status_code}, Error: {body}"
            )

        location = response.headers.get("Location")
        if not location:
            logger.warning(
                "Jenkins build triggered, but no queue item URL was returned",
                extra={"job_name": request.job_name},
            )
            return results.accepted_without_location(results.utc_now())

        try:
            locator = QueueItemLocator.from_location(location)
        except ValueError as e:
            # Accepted, just untrackable: same footing as a missing header.
            logger.warning(
                "Jenkins returned an unusable queue item location",
                extra={"job_name": request.job_name, "location": location, "error": str(e)},
            )
            return results.accepted_without_location(results.utc_now())

        logger.info(
            "Jenkins build queued",
            extra={"job_name": request.job_name, "queue_item": locator.item_id},
        )
        return SubmissionAccepted(locator=locator)

"""Best-effort CSRF crumb acquisition.

Many Jenkins controllers reject state-changing calls without a crumb, but
some have CSRF protection disabled and 404 the crumb issuer. Absence of a
crumb is therefore never fatal: we log and carry on without one.
"""

from __future__ import annotations

import logging

import requests

from job_trigger_platform.engine.jenkins.cancellation import CancellationToken
from job_trigger_platform.engine.jenkins.client import JenkinsClient
from job_trigger_platform.engine.jenkins.models import CrumbToken, parse_crumb
from job_trigger_platform.engine.jenkins.retry import RetryPolicy

logger = logging.getLogger(__name__)


class CrumbProvider:
    def __init__(self, *, client: JenkinsClient, retry_policy: RetryPolicy) -> None:
        self._client = client
        self._retry = retry_policy

    def fetch(self, token: CancellationToken) -> CrumbToken | None:
        path = self._client.crumb_issuer_path()
        try:
            response = self._retry.execute(
                lambda: self._client.get(path, token=token), token=token, description="crumb"
            )
        except requests.RequestException as e:
            logger.warning(
                "Failed to get CSRF crumb; the controller might not have CSRF protection enabled",
                extra={"error": str(e)},
            )
            return None

        if not response.ok:
            logger.debug(
                "Crumb issuer returned non-success status",
                extra={"status_code": response.status_code},
            )
            return None

        try:
            crumb = parse_crumb(response.json())
        except ValueError as e:
            # requests' JSONDecodeError is a ValueError too.
            logger.debug("Crumb issuer response not usable", extra={"error": str(e)})
            return None

        logger.debug("Obtained CSRF crumb", extra={"crumb_field": crumb.field})
        return crumb

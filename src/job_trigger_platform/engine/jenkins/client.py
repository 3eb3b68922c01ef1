"""Thin requests-based wrapper over the Jenkins REST surface.

The client owns URL construction and authentication only. Retries, crumbs and
polling live in the stages that call it, which keeps every HTTP call easy to
fake in tests.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Mapping
from types import MappingProxyType
from urllib.parse import quote, urljoin, urlparse

import requests

from job_trigger_platform.engine.jenkins.cancellation import CancellationToken
from job_trigger_platform.engine.jenkins.models import CrumbToken, QueueItemLocator

logger = logging.getLogger(__name__)

# Floor for a request timeout cut short by a nearly expired deadline.
MIN_TIMEOUT_SECONDS = 0.1


def _encode(value: str) -> str:
    return quote(value, safe="")


def job_path(job_name: str) -> str:
    """Return the ``job/...`` path for a (possibly foldered) job name.

    ``team/deploy`` becomes ``job/team/job/deploy``.
    """

    segments = [s for s in job_name.strip().split("/") if s]
    if not segments:
        raise ValueError("job_name is required")
    return "/".join(f"job/{_encode(s)}" for s in segments)


class JenkinsClient:
    """Authenticated access to one Jenkins controller."""

    def __init__(
        self,
        *,
        base_url: str,
        username: str,
        api_token: str,
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("Jenkins base URL is required")
        if not username.strip():
            raise ValueError("Jenkins username is required")
        if not api_token:
            raise ValueError("Jenkins API token is required")

        self._base_url = base_url.strip().rstrip("/")
        self._timeout = timeout_seconds
        self._owns_session = session is None
        self._session = session or requests.Session()

        credentials = base64.b64encode(f"{username}:{api_token}".encode()).decode("ascii")
        self._base_headers: Mapping[str, str] = MappingProxyType(
            {
                "Authorization": f"Basic {credentials}",
                "Accept": "application/json",
                "User-Agent": "jenkins-job-trigger",
            }
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def headers(self, crumb: CrumbToken | None = None) -> dict[str, str]:
        """Build a fresh header set for one call.

        The crumb header (when present) replaces any same-named header, and
        nothing is written back to the shared session.
        """

        out = dict(self._base_headers)
        if crumb is not None:
            out.update(crumb.as_headers())
        return out

    def url(self, path_or_url: str) -> str:
        if urlparse(path_or_url).scheme:
            return path_or_url
        return urljoin(self._base_url + "/", path_or_url.lstrip("/"))

    def build_with_parameters_path(self, job_name: str, parameters: Mapping[str, str]) -> str:
        path = f"{job_path(job_name)}/buildWithParameters"
        if not parameters:
            return path
        query = "&".join(f"{_encode(k)}={_encode(v)}" for k, v in parameters.items())
        return f"{path}?{query}"

    def crumb_issuer_path(self) -> str:
        return "crumbIssuer/api/json"

    def queue_item_path(self, locator: QueueItemLocator) -> str:
        return f"queue/item/{_encode(locator.item_id)}/api/json"

    def build_api_url(self, build_url: str) -> str:
        return f"{build_url.rstrip('/')}/api/json"

    def timeout_for(self, token: CancellationToken | None) -> float:
        """Per-request timeout, shortened so a call never outlives the token's deadline."""

        remaining = token.remaining() if token is not None else None
        if remaining is None:
            return self._timeout
        return max(min(self._timeout, remaining), MIN_TIMEOUT_SECONDS)

    def post(
        self,
        path_or_url: str,
        *,
        crumb: CrumbToken | None = None,
        token: CancellationToken | None = None,
    ) -> requests.Response:
        url = self.url(path_or_url)
        # Query strings carry job parameters, which may include secrets.
        logger.debug("POST %s", url.split("?", 1)[0])
        return self._session.post(
            url, headers=self.headers(crumb), timeout=self.timeout_for(token)
        )

    def get(
        self,
        path_or_url: str,
        *,
        crumb: CrumbToken | None = None,
        token: CancellationToken | None = None,
    ) -> requests.Response:
        url = self.url(path_or_url)
        logger.debug("GET %s", url)
        return self._session.get(
            url, headers=self.headers(crumb), timeout=self.timeout_for(token)
        )

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

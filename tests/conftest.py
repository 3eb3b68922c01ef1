"""Test configuration and fixtures."""

from __future__ import annotations

import json
from dataclasses import dataclass
from urllib.parse import urlparse

import pytest
import requests

from job_trigger_platform.engine.jenkins.cancellation import CancellationToken
from job_trigger_platform.engine.jenkins.client import JenkinsClient

JENKINS_URL = "https://jenkins.example.com"


def make_response(
    status_code: int = 200,
    *,
    json_body: object | None = None,
    text: str = "",
    headers: dict[str, str] | None = None,
) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.reason = "OK" if status_code < 400 else "Error"
    response.encoding = "utf-8"
    body = json.dumps(json_body) if json_body is not None else text
    response._content = body.encode("utf-8")
    if headers:
        response.headers.update(headers)
    return response


@dataclass(frozen=True)
class FakeCall:
    method: str
    path: str
    url: str
    headers: dict[str, str]
    timeout: float | None = None


class FakeJenkins:
    """Stands in for a ``requests.Session`` talking to one Jenkins controller.

    Each route holds a script of responses (or exceptions to raise). Calls pop
    from the script; the last entry repeats. Unscripted routes answer 404.
    """

    def __init__(self) -> None:
        self.calls: list[FakeCall] = []
        self.closed = False
        self._routes: dict[tuple[str, str], list[requests.Response | Exception]] = {}

    def script(self, method: str, path: str, *outcomes: requests.Response | Exception) -> None:
        self._routes.setdefault((method, path.strip("/")), []).extend(outcomes)

    def calls_to(self, method: str, path: str) -> list[FakeCall]:
        path = path.strip("/")
        return [c for c in self.calls if c.method == method and c.path == path]

    def _dispatch(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None,
        timeout: float | None = None,
    ) -> requests.Response:
        path = urlparse(url).path.strip("/")
        self.calls.append(
            FakeCall(
                method=method,
                path=path,
                url=url,
                headers=dict(headers or {}),
                timeout=timeout,
            )
        )
        script = self._routes.get((method, path))
        if not script:
            return make_response(404, text="Not Found")
        outcome = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def post(self, url: str, headers: dict[str, str] | None = None, timeout: float | None = None) -> requests.Response:
        return self._dispatch("POST", url, headers, timeout)

    def get(self, url: str, headers: dict[str, str] | None = None, timeout: float | None = None) -> requests.Response:
        return self._dispatch("GET", url, headers, timeout)

    def close(self) -> None:
        self.closed = True


class RecordingToken(CancellationToken):
    """A token whose waits return immediately and are recorded instead."""

    def __init__(self) -> None:
        super().__init__()
        self.sleeps: list[float] = []
        self._cancel_after: int | None = None

    def cancel_after_sleeps(self, count: int) -> None:
        self._cancel_after = count

    def sleep(self, seconds: float) -> None:
        self.raise_if_cancelled()
        self.sleeps.append(seconds)
        if self._cancel_after is not None and len(self.sleeps) >= self._cancel_after:
            self.cancel()
        self.raise_if_cancelled()


@pytest.fixture
def fake_jenkins() -> FakeJenkins:
    return FakeJenkins()


@pytest.fixture
def client(fake_jenkins: FakeJenkins) -> JenkinsClient:
    return JenkinsClient(
        base_url=JENKINS_URL,
        username="svc-trigger",
        api_token="s3cret-token",
        session=fake_jenkins,  # type: ignore[arg-type]
    )


@pytest.fixture
def token() -> RecordingToken:
    return RecordingToken()


@pytest.fixture
def respond():
    """Factory for real ``requests.Response`` objects."""
    return make_response

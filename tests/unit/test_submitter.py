"""Unit tests for build submission."""

from __future__ import annotations

import requests

from job_trigger_platform.engine.jenkins.crumb import CrumbProvider
from job_trigger_platform.engine.jenkins.models import TriggerOutcome, TriggerRequest, TriggerResult
from job_trigger_platform.engine.jenkins.retry import RetryPolicy
from job_trigger_platform.engine.jenkins.submitter import BuildSubmitter, SubmissionAccepted

SUBMIT = "job/deploy/buildWithParameters"
CRUMB = "crumbIssuer/api/json"


def _submitter(client, *, with_crumb: bool = True) -> BuildSubmitter:
    retry = RetryPolicy()
    crumbs = CrumbProvider(client=client, retry_policy=retry) if with_crumb else None
    return BuildSubmitter(client=client, retry_policy=retry, crumbs=crumbs)


def test_accepted_submission_returns_locator(client, fake_jenkins, token, respond) -> None:
    fake_jenkins.script("GET", CRUMB, respond(json_body={"crumb": "c1", "crumbRequestField": "Jenkins-Crumb"}))
    fake_jenkins.script(
        "POST", SUBMIT, respond(201, headers={"Location": "https://jenkins.example.com/queue/item/42/"})
    )

    outcome = _submitter(client).submit(
        TriggerRequest(job_name="deploy", parameters={"VERSION": "1.2.3"}), token
    )

    assert isinstance(outcome, SubmissionAccepted)
    assert outcome.locator.item_id == "42"
    (call,) = fake_jenkins.calls_to("POST", SUBMIT)
    assert call.headers["Jenkins-Crumb"] == "c1"
    assert "VERSION=1.2.3" in call.url


def test_crumb_refetched_for_each_attempt(client, fake_jenkins, token, respond) -> None:
    fake_jenkins.script(
        "GET",
        CRUMB,
        respond(json_body={"crumb": "first"}),
        respond(json_body={"crumb": "second"}),
    )
    fake_jenkins.script(
        "POST",
        SUBMIT,
        respond(503),
        respond(201, headers={"Location": "https://jenkins.example.com/queue/item/9/"}),
    )

    outcome = _submitter(client).submit(TriggerRequest(job_name="deploy"), token)

    assert isinstance(outcome, SubmissionAccepted)
    posts = fake_jenkins.calls_to("POST", SUBMIT)
    assert [p.headers["Jenkins-Crumb"] for p in posts] == ["first", "second"]


def test_missing_crumb_is_not_fatal(client, fake_jenkins, token, respond) -> None:
    fake_jenkins.script(
        "POST", SUBMIT, respond(201, headers={"Location": "https://jenkins.example.com/queue/item/1/"})
    )

    outcome = _submitter(client).submit(TriggerRequest(job_name="deploy"), token)

    assert isinstance(outcome, SubmissionAccepted)
    (call,) = fake_jenkins.calls_to("POST", SUBMIT)
    assert "Jenkins-Crumb" not in call.headers


def test_client_error_fails_without_retry(client, fake_jenkins, token, respond) -> None:
    fake_jenkins.script("POST", SUBMIT, respond(400, text="Nope: bad parameter"))

    outcome = _submitter(client, with_crumb=False).submit(TriggerRequest(job_name="deploy"), token)

    assert isinstance(outcome, TriggerResult)
    assert outcome.is_successful is False
    assert outcome.outcome is TriggerOutcome.FAILED
    assert outcome.error_message == (
        "Failed to trigger Jenkins build. Status: 400, Error: Nope: bad parameter"
    )
    assert len(fake_jenkins.calls_to("POST", SUBMIT)) == 1
    assert token.sleeps == []


def test_transport_failure_becomes_failed_result(client, fake_jenkins, token) -> None:
    fake_jenkins.script("POST", SUBMIT, requests.ConnectionError("connection refused"))

    outcome = _submitter(client, with_crumb=False).submit(TriggerRequest(job_name="deploy"), token)

    assert isinstance(outcome, TriggerResult)
    assert outcome.is_successful is False
    assert outcome.error_message is not None
    assert outcome.error_message.startswith("Error triggering Jenkins build:")
    assert len(fake_jenkins.calls_to("POST", SUBMIT)) == 3


def test_unusable_location_degrades_to_untracked_success(
    client, fake_jenkins, token, respond
) -> None:
    fake_jenkins.script("POST", SUBMIT, respond(201, headers={"Location": "https://jenkins.example.com/"}))

    outcome = _submitter(client, with_crumb=False).submit(TriggerRequest(job_name="deploy"), token)

    assert isinstance(outcome, TriggerResult)
    assert outcome.is_successful is True
    assert outcome.outcome is TriggerOutcome.ACCEPTED_WITHOUT_LOCATION
    assert outcome.build_number == 0

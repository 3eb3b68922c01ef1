"""Unit tests for the jenkins-trigger CLI (engine mocked)."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import Mock

import pytest

import job_trigger_platform.engine.main as cli
from job_trigger_platform.engine.jenkins.models import TriggerOutcome, TriggerResult
from job_trigger_platform.engine.jenkins.service import JenkinsTriggerService

STARTED = TriggerResult(
    is_successful=True,
    outcome=TriggerOutcome.STARTED,
    build_number=12,
    build_url="https://jenkins.example.com/job/sample-job/12/",
    timestamp=datetime(2025, 1, 1, tzinfo=UTC),
)


@pytest.fixture
def jenkins_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("JENKINS_URL", "https://jenkins.example.com")
    monkeypatch.setenv("JENKINS_USERNAME", "svc")
    monkeypatch.setenv("JENKINS_API_TOKEN", "t")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)


@pytest.fixture
def service(monkeypatch: pytest.MonkeyPatch, jenkins_env: None) -> Mock:
    mock_service = Mock(spec=JenkinsTriggerService)
    mock_service.trigger_build.return_value = STARTED
    monkeypatch.setattr(
        cli.JenkinsTriggerService, "from_settings", classmethod(lambda cls, s: mock_service)
    )
    return mock_service


def test_list_jobs_needs_no_configuration(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("JENKINS_URL", raising=False)

    assert cli.main(["list-jobs"]) == 0

    out = capsys.readouterr().out
    assert "SingleTenantDeployment (roles: Admin, Dev)" in out
    assert "  - environment [select, required] choices=QA,UAT,Production" in out


def test_trigger_registered_job(service: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.main(
        ["trigger", "--job", "SampleJob", "-p", "environment=Staging", "-p", "version=1.0.0"]
    )

    assert code == 0
    service.trigger_build.assert_called_once()
    assert service.trigger_build.call_args.args[0] == "sample-job"
    printed = json.loads(capsys.readouterr().out)
    assert printed["success"] is True
    assert printed["data"]["buildNumber"] == 12
    service.close.assert_called_once()


def test_trigger_validation_failure(service: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.main(["trigger", "--job", "SampleJob", "-p", "environment=Mars"])

    assert code == 3
    errors = json.loads(capsys.readouterr().err)["errors"]
    assert set(errors) == {"environment", "version"}
    service.trigger_build.assert_not_called()


def test_trigger_unknown_job(service: Mock) -> None:
    assert cli.main(["trigger", "--job", "Nope"]) == 3


def test_trigger_raw_reports_failure_exit_code(
    service: Mock, capsys: pytest.CaptureFixture[str]
) -> None:
    service.trigger_build.return_value = TriggerResult(
        is_successful=False,
        outcome=TriggerOutcome.FAILED,
        timestamp=datetime(2025, 1, 1, tzinfo=UTC),
        error_message="Failed to trigger Jenkins build. Status: 404, Error: ",
    )

    code = cli.main(["trigger-raw", "--jenkins-job", "team/build", "-p", "A=1"])

    assert code == 4
    job_name, params = service.trigger_build.call_args.args
    assert (job_name, params) == ("team/build", {"A": "1"})
    assert json.loads(capsys.readouterr().out)["isSuccessful"] is False


def test_keyboard_interrupt_exits_130(service: Mock) -> None:
    service.trigger_build.side_effect = KeyboardInterrupt

    assert cli.main(["trigger-raw", "--jenkins-job", "deploy"]) == 130


def test_malformed_param_rejected(service: Mock) -> None:
    assert cli.main(["trigger-raw", "--jenkins-job", "deploy", "-p", "novalue"]) == 3


def test_missing_configuration_exits_2(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("JENKINS_URL", "JENKINS_USERNAME", "JENKINS_API_TOKEN"):
        monkeypatch.delenv(name, raising=False)

    assert cli.main(["trigger-raw", "--jenkins-job", "deploy"]) == 2
    assert "Configuration error" in capsys.readouterr().err

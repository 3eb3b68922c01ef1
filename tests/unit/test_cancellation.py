from __future__ import annotations

import threading
import time

import pytest

from job_trigger_platform.engine.jenkins.cancellation import CancellationToken, OperationCancelled


def test_none_token_never_fires_on_its_own() -> None:
    token = CancellationToken.none()
    assert token.cancelled is False
    assert token.remaining() is None
    token.sleep(0)


def test_cancel_interrupts_sleep() -> None:
    token = CancellationToken.none()
    threading.Timer(0.05, token.cancel).start()

    started = time.monotonic()
    with pytest.raises(OperationCancelled) as exc_info:
        token.sleep(10)

    assert time.monotonic() - started < 5
    assert exc_info.value.reason == "cancelled"


def test_deadline_caps_sleep() -> None:
    token = CancellationToken.with_timeout(0.05)

    with pytest.raises(OperationCancelled) as exc_info:
        token.sleep(10)

    assert exc_info.value.reason == "deadline exceeded"
    assert token.deadline_expired is True


def test_with_timeout_requires_positive_seconds() -> None:
    with pytest.raises(ValueError):
        CancellationToken.with_timeout(0)

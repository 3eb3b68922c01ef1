"""Bounded, classified retries for single Jenkins calls."""

from __future__ import annotations

import logging
from collections.abc import Callable

import requests
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from job_trigger_platform.engine.jenkins.cancellation import CancellationToken

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_STATUS = 408


def is_transient_status(status_code: int) -> bool:
    return status_code >= 500 or status_code == REQUEST_TIMEOUT_STATUS


def _is_transient_response(response: requests.Response) -> bool:
    return is_transient_status(response.status_code)


def _last_outcome(retry_state: RetryCallState) -> requests.Response:
    # Hand back the final response (or re-raise the final exception) untouched.
    assert retry_state.outcome is not None
    return retry_state.outcome.result()


class RetryPolicy:
    """Retry transient failures with exponential backoff.

    Transient means: a ``requests`` exception, a 5xx status, or 408. Anything
    else (success or a non-retryable status) is returned on the first try.
    """

    def __init__(self, *, max_attempts: int = 3, backoff_base_seconds: float = 2.0) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if backoff_base_seconds < 0:
            raise ValueError("backoff_base_seconds must be >= 0")
        self.max_attempts = max_attempts
        self.backoff_base_seconds = backoff_base_seconds

    def delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt ``attempt`` (1-based): 2, 4, 8, ..."""

        if attempt < 1:
            raise ValueError("attempt must be >= 1")
        return self.backoff_base_seconds * 2 ** (attempt - 1)

    def execute(
        self,
        operation: Callable[[], requests.Response],
        *,
        token: CancellationToken,
        description: str,
    ) -> requests.Response:
        def attempt() -> requests.Response:
            token.raise_if_cancelled()
            logger.debug("Issuing Jenkins request", extra={"request": description})
            return operation()

        def log_retry(retry_state: RetryCallState) -> None:
            outcome = retry_state.outcome
            delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
            status_code: int | None = None
            error: str | None = None
            if outcome is not None and outcome.failed:
                exc = outcome.exception()
                error = type(exc).__name__ if exc is not None else None
            elif outcome is not None:
                status_code = outcome.result().status_code
            logger.warning(
                "Retrying Jenkins request after %ss delay (attempt %s/%s, status %s)",
                delay,
                retry_state.attempt_number,
                self.max_attempts,
                status_code if status_code is not None else error,
                extra={
                    "request": description,
                    "status_code": status_code,
                    "error": error,
                    "delay_seconds": delay,
                },
            )

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_base_seconds, exp_base=2),
            retry=(
                retry_if_exception_type(requests.RequestException)
                | retry_if_result(_is_transient_response)
            ),
            before_sleep=log_retry,
            retry_error_callback=_last_outcome,
            sleep=token.sleep,
        )
        return retrying(attempt)

"""Turn a queue item locator into a confirmed build, as an explicit state machine.

The transition function is pure: it takes the current state and the outcome of
one remote call and returns the next state plus, for terminal states, the
result. :class:`QueueResolver` is the thin loop that performs the calls and the
waits in between.

    polling --(pending | unavailable)--> polling
    polling --(pending | unavailable, budget spent)--> exhausted
    polling --(resolved)--> resolved
    resolved --(details fetched)--> details_fetched
    resolved --(details unavailable)--> details_unavailable
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

import requests

from job_trigger_platform.engine.jenkins import results
from job_trigger_platform.engine.jenkins.cancellation import (
    CancellationToken,
    OperationCancelled,
)
from job_trigger_platform.engine.jenkins.client import JenkinsClient
from job_trigger_platform.engine.jenkins.crumb import CrumbProvider
from job_trigger_platform.engine.jenkins.models import (
    BuildDetails,
    ExecutableRef,
    QueueItemLocator,
    QueueItemPending,
    QueueItemResolved,
    TriggerResult,
    parse_build_details,
    parse_queue_item,
)
from job_trigger_platform.engine.jenkins.retry import RetryPolicy

logger = logging.getLogger(__name__)


class ResolverPhase(str, Enum):
    POLLING = "polling"
    RESOLVED = "resolved"
    DETAILS_FETCHED = "details_fetched"
    DETAILS_UNAVAILABLE = "details_unavailable"
    EXHAUSTED = "exhausted"


TERMINAL_PHASES: frozenset[ResolverPhase] = frozenset(
    {ResolverPhase.DETAILS_FETCHED, ResolverPhase.DETAILS_UNAVAILABLE, ResolverPhase.EXHAUSTED}
)


class IllegalTransitionError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class QueueItemUnavailable:
    """The status call failed or its body could not be parsed.

    Treated like "still pending": one failed poll never aborts resolution.
    """

    reason: str


@dataclass(frozen=True, slots=True)
class BuildDetailsFetched:
    details: BuildDetails


@dataclass(frozen=True, slots=True)
class BuildDetailsUnavailable:
    reason: str


ResolverEvent = (
    QueueItemUnavailable
    | QueueItemPending
    | QueueItemResolved
    | BuildDetailsFetched
    | BuildDetailsUnavailable
)


@dataclass(frozen=True, slots=True)
class PollSchedule:
    max_attempts: int = 5
    initial_delay_seconds: float = 2.0
    backoff_factor: float = 1.5

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_delay_seconds < 0:
            raise ValueError("initial_delay_seconds must be >= 0")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be >= 1")

    def delay_after(self, attempt: int) -> float:
        """Wait after poll ``attempt`` (1-based): 2, 3, 4.5, 6.75, 10.125 by default."""

        return self.initial_delay_seconds * self.backoff_factor ** (attempt - 1)


@dataclass(frozen=True, slots=True)
class ResolverState:
    phase: ResolverPhase
    locator: QueueItemLocator
    schedule: PollSchedule
    attempts: int = 0
    executable: ExecutableRef | None = None

    @property
    def terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    @property
    def next_delay_seconds(self) -> float | None:
        """How long to wait before the next poll, or None if no poll follows."""

        if self.phase is not ResolverPhase.POLLING or self.attempts == 0:
            return None
        return self.schedule.delay_after(self.attempts)


def initial_state(locator: QueueItemLocator, schedule: PollSchedule | None = None) -> ResolverState:
    return ResolverState(
        phase=ResolverPhase.POLLING, locator=locator, schedule=schedule or PollSchedule()
    )


def transition(
    state: ResolverState, event: ResolverEvent, *, now: datetime
) -> tuple[ResolverState, TriggerResult | None]:
    if state.terminal:
        raise IllegalTransitionError(
            f"Illegal transition: {state.phase.value} is terminal ({type(event).__name__})"
        )

    if state.phase is ResolverPhase.POLLING:
        if isinstance(event, QueueItemResolved):
            resolved = replace(
                state,
                phase=ResolverPhase.RESOLVED,
                attempts=state.attempts + 1,
                executable=event.executable,
            )
            return resolved, None

        if isinstance(event, QueueItemPending | QueueItemUnavailable):
            attempts = state.attempts + 1
            if attempts >= state.schedule.max_attempts:
                exhausted = replace(state, phase=ResolverPhase.EXHAUSTED, attempts=attempts)
                return exhausted, results.queued_unconfirmed(state.locator, now)
            return replace(state, attempts=attempts), None

    elif state.phase is ResolverPhase.RESOLVED:
        assert state.executable is not None
        if isinstance(event, BuildDetailsFetched):
            fetched = replace(state, phase=ResolverPhase.DETAILS_FETCHED)
            return fetched, results.from_build_details(event.details)

        if isinstance(event, BuildDetailsUnavailable):
            unavailable = replace(state, phase=ResolverPhase.DETAILS_UNAVAILABLE)
            return unavailable, results.from_executable(state.executable, now)

    raise IllegalTransitionError(
        f"Illegal transition: {type(event).__name__} in {state.phase.value}"
    )


class QueueResolver:
    """Poll a queue item until it starts, then fetch the build's details."""

    def __init__(
        self,
        *,
        client: JenkinsClient,
        retry_policy: RetryPolicy,
        schedule: PollSchedule | None = None,
        crumbs: CrumbProvider | None = None,
    ) -> None:
        self._client = client
        self._retry = retry_policy
        self._schedule = schedule or PollSchedule()
        # Only set when the controller also guards reads with a crumb.
        self._crumbs = crumbs

    def resolve(self, locator: QueueItemLocator, token: CancellationToken) -> TriggerResult:
        state = initial_state(locator, self._schedule)

        while True:
            if state.phase is ResolverPhase.POLLING:
                event: ResolverEvent = self._poll(state, token)
            else:
                assert state.executable is not None
                event = self._fetch_details(state.executable, token)

            state, result = transition(state, event, now=results.utc_now())

            if result is not None:
                self._log_result(state, result)
                return result

            delay = state.next_delay_seconds
            if delay is not None:
                logger.debug(
                    "Build not yet started; waiting before checking again",
                    extra={
                        "queue_item": locator.item_id,
                        "attempt": state.attempts,
                        "max_attempts": self._schedule.max_attempts,
                        "delay_seconds": delay,
                    },
                )
                token.sleep(delay)

    def _read(
        self, path_or_url: str, token: CancellationToken, description: str
    ) -> requests.Response:
        crumb = self._crumbs.fetch(token) if self._crumbs is not None else None
        return self._retry.execute(
            lambda: self._client.get(path_or_url, crumb=crumb, token=token),
            token=token,
            description=description,
        )

    def _poll(
        self, state: ResolverState, token: CancellationToken
    ) -> QueueItemPending | QueueItemResolved | QueueItemUnavailable:
        attempt = state.attempts + 1
        extra = {
            "queue_item": state.locator.item_id,
            "attempt": attempt,
            "max_attempts": self._schedule.max_attempts,
        }
        try:
            response = self._read(
                self._client.queue_item_path(state.locator), token, "queue-item"
            )
        except OperationCancelled:
            raise
        except Exception as e:
            logger.warning("Error reading queue item status", extra={**extra, "error": str(e)})
            return QueueItemUnavailable(reason=str(e))

        if not response.ok:
            logger.warning(
                "Failed to get queue item status",
                extra={**extra, "status_code": response.status_code},
            )
            return QueueItemUnavailable(reason=f"HTTP {response.status_code}")

        try:
            return parse_queue_item(response.json())
        except ValueError as e:
            logger.warning(
                "Failed to parse queue item response", extra={**extra, "error": str(e)}
            )
            return QueueItemUnavailable(reason=str(e))

    def _fetch_details(
        self, executable: ExecutableRef, token: CancellationToken
    ) -> BuildDetailsFetched | BuildDetailsUnavailable:
        extra = {"build_number": executable.number, "build_url": executable.url}
        try:
            response = self._read(self._client.build_api_url(executable.url), token, "build")
        except OperationCancelled:
            raise
        except Exception as e:
            logger.warning("Error reading build details", extra={**extra, "error": str(e)})
            return BuildDetailsUnavailable(reason=str(e))

        if not response.ok:
            logger.warning(
                "Failed to get build details",
                extra={**extra, "status_code": response.status_code},
            )
            return BuildDetailsUnavailable(reason=f"HTTP {response.status_code}")

        try:
            return BuildDetailsFetched(details=parse_build_details(response.json()))
        except ValueError as e:
            logger.warning("Failed to parse build details", extra={**extra, "error": str(e)})
            return BuildDetailsUnavailable(reason=str(e))

    def _log_result(self, state: ResolverState, result: TriggerResult) -> None:
        extra = {
            "queue_item": state.locator.item_id,
            "phase": state.phase.value,
            "build_number": result.build_number,
            "build_url": result.build_url,
        }
        if state.phase is ResolverPhase.EXHAUSTED:
            logger.warning(
                "Could not confirm build start within polling budget; assuming it was triggered",
                extra={**extra, "attempts": state.attempts},
            )
        elif state.phase is ResolverPhase.DETAILS_UNAVAILABLE:
            logger.info("Jenkins build started but details not available", extra=extra)
        else:
            logger.info("Jenkins build started", extra=extra)

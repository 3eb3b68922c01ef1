"""Value types exchanged between the stages of a single trigger call.

None of these are persisted: they are created, consumed and discarded within
the lifetime of one ``trigger_build`` call.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any
from urllib.parse import urlparse

DEFAULT_CRUMB_FIELD = "Jenkins-Crumb"


class TriggerOutcome(str, Enum):
    """How far the engine got in confirming a build.

    ``is_successful`` stays the coarse signal; this lets callers tell a
    confirmed start apart from an accepted-but-unconfirmed request.
    """

    STARTED = "started"
    STARTED_WITHOUT_DETAILS = "started_without_details"
    QUEUED_UNCONFIRMED = "queued_unconfirmed"
    ACCEPTED_WITHOUT_LOCATION = "accepted_without_location"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class TriggerRequest:
    """A job name plus a parameter map already checked by the job contract."""

    job_name: str
    parameters: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.job_name.strip():
            raise ValueError("job_name is required")
        # Freeze a private copy so later mutation of the caller's dict is invisible.
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))


@dataclass(frozen=True, slots=True)
class CrumbToken:
    field: str
    value: str

    def as_headers(self) -> dict[str, str]:
        return {self.field: self.value}


@dataclass(frozen=True, slots=True)
class QueueItemLocator:
    """Where the orchestrator parked an accepted build request."""

    url: str
    item_id: str

    @staticmethod
    def from_location(location: str) -> QueueItemLocator:
        path = urlparse(location).path
        segments = [s for s in path.split("/") if s]
        if not segments:
            raise ValueError(f"Location header has no queue item id: {location!r}")
        return QueueItemLocator(url=location, item_id=segments[-1])


@dataclass(frozen=True, slots=True)
class ExecutableRef:
    number: int
    url: str


@dataclass(frozen=True, slots=True)
class QueueItemPending:
    """The queue item exists but no executor has picked it up yet."""


@dataclass(frozen=True, slots=True)
class QueueItemResolved:
    executable: ExecutableRef


QueueItemStatus = QueueItemPending | QueueItemResolved


@dataclass(frozen=True, slots=True)
class BuildDetails:
    number: int
    url: str
    timestamp: datetime
    estimated_duration_ms: int


@dataclass(frozen=True, slots=True)
class TriggerResult:
    """The single normalized record produced for every trigger request."""

    is_successful: bool
    outcome: TriggerOutcome
    build_number: int = 0
    build_url: str | None = None
    timestamp: datetime | None = None
    estimated_duration_ms: int = 0
    error_message: str | None = None
    cancelled: bool = False

    def __post_init__(self) -> None:
        if self.is_successful and self.timestamp is None:
            raise ValueError("a successful TriggerResult must carry a timestamp")
        if self.build_number < 0:
            raise ValueError("build_number must be >= 0")
        if self.estimated_duration_ms < 0:
            raise ValueError("estimated_duration_ms must be >= 0")

    def to_json(self) -> dict[str, object]:
        return {
            "isSuccessful": self.is_successful,
            "outcome": self.outcome.value,
            "buildNumber": self.build_number,
            "buildUrl": self.build_url,
            "timestamp": self.timestamp.isoformat() if self.timestamp is not None else None,
            "estimatedDurationMs": self.estimated_duration_ms,
            "errorMessage": self.error_message,
            "cancelled": self.cancelled,
        }


def _require_dict(body: object, what: str) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise ValueError(f"Unexpected {what} response: expected a JSON object")
    return body


def _int(value: object, *, name: str) -> int:
    # bool is an int subclass; a JSON true is never a build number.
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
    raise ValueError(f"{name} must be an integer")


def _count(value: object, *, name: str) -> int:
    number = _int(value, name=name)
    if number < 0:
        raise ValueError(f"{name} must be >= 0")
    return number


def _epoch_millis(value: object) -> datetime:
    millis = _count(value, name="timestamp")
    try:
        return datetime.fromtimestamp(millis / 1000, tz=UTC)
    except (OverflowError, OSError) as e:
        raise ValueError(f"timestamp out of range: {millis}") from e


def parse_crumb(body: object) -> CrumbToken:
    data = _require_dict(body, "crumb issuer")
    crumb = data.get("crumb")
    if not isinstance(crumb, str) or not crumb:
        raise ValueError("Unexpected crumb issuer response: missing crumb")
    field_raw = data.get("crumbRequestField")
    field_name = field_raw if isinstance(field_raw, str) and field_raw else DEFAULT_CRUMB_FIELD
    return CrumbToken(field=field_name, value=crumb)


def parse_queue_item(body: object) -> QueueItemStatus:
    data = _require_dict(body, "queue item")
    executable = data.get("executable")
    if executable is None:
        return QueueItemPending()
    exe = _require_dict(executable, "queue item executable")
    url = exe.get("url")
    if not isinstance(url, str) or not url.strip():
        raise ValueError("Unexpected queue item response: executable has no url")
    return QueueItemResolved(
        executable=ExecutableRef(
            number=_count(exe.get("number"), name="executable.number"), url=url
        )
    )


def parse_build_details(body: object) -> BuildDetails:
    data = _require_dict(body, "build")
    url = data.get("url")
    if not isinstance(url, str) or not url.strip():
        raise ValueError("Unexpected build response: missing url")
    raw_duration = data.get("estimatedDuration")
    # Jenkins reports -1 when it has no history to estimate from.
    duration = _int(raw_duration, name="estimatedDuration") if raw_duration is not None else 0
    return BuildDetails(
        number=_count(data.get("number"), name="number"),
        url=url,
        timestamp=_epoch_millis(data.get("timestamp")),
        estimated_duration_ms=max(duration, 0),
    )

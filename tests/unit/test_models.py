from __future__ import annotations

from datetime import UTC, datetime

import pytest

from job_trigger_platform.engine.jenkins.models import (
    ExecutableRef,
    QueueItemLocator,
    QueueItemPending,
    QueueItemResolved,
    TriggerOutcome,
    TriggerRequest,
    TriggerResult,
    parse_build_details,
    parse_queue_item,
)


def test_trigger_request_copies_parameters() -> None:
    params = {"VERSION": "1.0.0"}
    request = TriggerRequest(job_name="deploy", parameters=params)
    params["VERSION"] = "2.0.0"

    assert request.parameters["VERSION"] == "1.0.0"
    with pytest.raises(TypeError):
        request.parameters["VERSION"] = "3.0.0"  # type: ignore[index]


def test_trigger_request_requires_job_name() -> None:
    with pytest.raises(ValueError):
        TriggerRequest(job_name="  ")


def test_locator_takes_last_path_segment() -> None:
    locator = QueueItemLocator.from_location("https://jenkins.example.com/queue/item/42/")
    assert locator.item_id == "42"
    assert locator.url == "https://jenkins.example.com/queue/item/42/"

    with pytest.raises(ValueError):
        QueueItemLocator.from_location("https://jenkins.example.com/")


def test_parse_queue_item() -> None:
    assert parse_queue_item({"id": 42, "executable": None}) == QueueItemPending()
    assert parse_queue_item({"id": 42}) == QueueItemPending()
    assert parse_queue_item(
        {"executable": {"number": 7, "url": "https://jenkins.example.com/job/deploy/7/"}}
    ) == QueueItemResolved(
        executable=ExecutableRef(number=7, url="https://jenkins.example.com/job/deploy/7/")
    )

    with pytest.raises(ValueError):
        parse_queue_item({"executable": {"number": 7}})
    with pytest.raises(ValueError):
        parse_queue_item(["not", "an", "object"])


def test_parse_build_details_converts_epoch_millis() -> None:
    details = parse_build_details(
        {
            "number": 7,
            "url": "https://jenkins.example.com/job/deploy/7/",
            "timestamp": 1_700_000_000_000,
            "estimatedDuration": 120_000,
        }
    )

    assert details.number == 7
    assert details.timestamp == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)
    assert details.estimated_duration_ms == 120_000


def test_parse_build_details_clamps_unknown_duration() -> None:
    details = parse_build_details(
        {"number": 1, "url": "u", "timestamp": 0, "estimatedDuration": -1}
    )
    assert details.estimated_duration_ms == 0


def test_parse_build_details_rejects_booleans_as_numbers() -> None:
    with pytest.raises(ValueError):
        parse_build_details({"number": True, "url": "u", "timestamp": 0})


@pytest.mark.parametrize("timestamp", [10**20, -1, 1e300])
def test_parse_build_details_rejects_out_of_range_timestamps(timestamp) -> None:
    with pytest.raises(ValueError):
        parse_build_details({"number": 1, "url": "u", "timestamp": timestamp})


def test_negative_build_numbers_rejected() -> None:
    with pytest.raises(ValueError, match="number"):
        parse_build_details({"number": -1, "url": "u", "timestamp": 0})
    with pytest.raises(ValueError, match="executable.number"):
        parse_queue_item({"executable": {"number": -3, "url": "u"}})


def test_successful_result_requires_timestamp() -> None:
    with pytest.raises(ValueError):
        TriggerResult(is_successful=True, outcome=TriggerOutcome.STARTED)


def test_result_to_json_uses_wire_names() -> None:
    result = TriggerResult(
        is_successful=True,
        outcome=TriggerOutcome.STARTED,
        build_number=7,
        build_url="https://jenkins.example.com/job/deploy/7/",
        timestamp=datetime(2025, 1, 1, tzinfo=UTC),
        estimated_duration_ms=1000,
    )

    assert result.to_json() == {
        "isSuccessful": True,
        "outcome": "started",
        "buildNumber": 7,
        "buildUrl": "https://jenkins.example.com/job/deploy/7/",
        "timestamp": "2025-01-01T00:00:00+00:00",
        "estimatedDurationMs": 1000,
        "errorMessage": None,
        "cancelled": False,
    }

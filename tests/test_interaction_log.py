from datetime import datetime, timedelta, timezone

import pytest

from aiden_gateway.errors import ValidationError
from aiden_gateway.interaction_log import InteractionLog


def _entry(n: int, registry_id: str = "ollama-local", **overrides) -> dict:
    data = {
        "registryId": registry_id,
        "requestedModel": "llama2",
        "promptExcerpt": f"prompt {n}",
        "responseExcerpt": f"response {n}",
        "latencyMs": n,
        "succeeded": True,
        "createdAt": (datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=n)).isoformat(),
    }
    data.update(overrides)
    return data


def test_capacity_evicts_oldest_and_keeps_order():
    log = InteractionLog(capacity=1000)
    for n in range(1001):
        log.append(_entry(n))

    retained = log.entries()
    assert len(retained) == 1000
    assert [e.latency_ms for e in retained] == list(range(1, 1001))
    assert log.stats() == {"size": 1000, "capacity": 1000, "evicted": 1}


def test_append_assigns_id_and_timestamp():
    log = InteractionLog()

    stored = log.append({"registryId": "r1", "succeeded": False, "errorMessage": "boom"})

    assert stored.id.startswith("log-")
    assert stored.created_at.tzinfo is not None


def test_append_keeps_supplied_id():
    log = InteractionLog()

    assert log.append(_entry(1, id="log-custom")).id == "log-custom"


def test_duplicate_supplied_id_is_rejected():
    log = InteractionLog()
    log.append(_entry(1, id="log-dup"))

    with pytest.raises(ValidationError):
        log.append(_entry(2, id="log-dup"))

    assert [e.id for e in log.entries()] == ["log-dup"]



def test_failed_entry_requires_error_message():
    log = InteractionLog()

    with pytest.raises(ValidationError):
        log.append(_entry(1, succeeded=False))


def test_successful_entry_rejects_error_message():
    log = InteractionLog()

    with pytest.raises(ValidationError):
        log.append(_entry(1, errorMessage="should not be here"))


def test_blank_error_message_counts_as_missing():
    log = InteractionLog()

    stored = log.append(_entry(1, errorMessage=""))

    assert stored.error_message is None
    assert "errorMessage" not in stored.to_wire(exclude_none=True)
    with pytest.raises(ValidationError):
        log.append(_entry(2, succeeded=False, errorMessage="  "))



def test_negative_latency_rejected():
    log = InteractionLog()

    with pytest.raises(ValidationError):
        log.append(_entry(1, latencyMs=-5))


@pytest.mark.parametrize("length", [101, 102, 103, 250])
def test_posted_long_prompt_is_bounded(length):
    log = InteractionLog()

    stored = log.append(_entry(1, promptExcerpt="x" * length))

    assert stored.prompt_excerpt == "x" * 100 + "..."


@pytest.mark.parametrize("length", [201, 203])
def test_posted_long_response_is_bounded(length):
    log = InteractionLog()

    stored = log.append(_entry(1, responseExcerpt="r" * length))

    assert stored.response_excerpt == "r" * 200 + "..."


def test_already_cut_excerpt_is_kept():
    log = InteractionLog()
    cut = "x" * 100 + "..."

    assert log.append(_entry(1, promptExcerpt=cut)).prompt_excerpt == cut
    assert log.append(_entry(2, promptExcerpt="x" * 100)).prompt_excerpt == "x" * 100



def test_query_newest_first_with_pagination():
    log = InteractionLog()
    for n in range(5):
        log.append(_entry(n))

    page = log.query(limit=2, offset=1)

    assert [e.latency_ms for e in page.logs] == [3, 2]
    assert page.total == 5
    assert page.has_more is True

    last = log.query(limit=2, offset=3)
    assert [e.latency_ms for e in last.logs] == [1, 0]
    assert last.has_more is False


def test_query_filters_by_registry_id():
    log = InteractionLog()
    log.append(_entry(1, registry_id="a"))
    log.append(_entry(2, registry_id="b"))
    log.append(_entry(3, registry_id="a"))

    page = log.query(registry_id="a")

    assert [e.latency_ms for e in page.logs] == [3, 1]
    assert page.total == 2


def test_equal_timestamps_fall_back_to_insertion_order():
    log = InteractionLog()
    same = "2026-01-01T00:00:00+00:00"
    log.append(_entry(1, createdAt=same))
    log.append(_entry(2, createdAt=same))

    assert [e.latency_ms for e in log.query().logs] == [2, 1]


def test_clear_returns_count():
    log = InteractionLog()
    log.append(_entry(1))
    log.append(_entry(2))

    assert log.clear() == 2
    assert len(log) == 0
    assert log.query().total == 0


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        InteractionLog(capacity=0)

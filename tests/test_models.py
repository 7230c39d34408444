from datetime import datetime, timezone

import pytest

from rankrent.models import (
    CallLog,
    call_log_from_storage,
    call_log_to_storage,
    coerce_contacted,
    lead_from_api,
    lead_to_api,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(True, True), (1, True), ("1", True), (False, False), (0, False), ("0", False), ("true", False), (None, False)],
)
def test_coerce_contacted(raw, expected) -> None:
    assert coerce_contacted(raw) is expected


def test_lead_from_api_normalizes_wire_record() -> None:
    lead = lead_from_api(
        {
            "id": 42,
            "name": "Acme",
            "phone": None,
            "city": "",
            "reviews": None,
            "contacted": "1",
            "created_at": "2024-01-10T12:00:00Z",
            "updated_at": None,
        }
    )

    assert lead.id == "42"
    assert lead.phone == ""
    assert lead.website == ""
    assert lead.city == "Unknown"
    assert lead.reviews == 0
    assert lead.contacted is True
    assert lead.created_at == datetime(2024, 1, 10, 12, tzinfo=timezone.utc)
    assert lead.updated_at is None


def test_lead_from_api_rejects_malformed_record() -> None:
    with pytest.raises(KeyError):
        lead_from_api({"name": "no id"})


def test_lead_to_api_partial_fields() -> None:
    lead = lead_from_api({"id": 1, "name": "Acme", "phone": "1", "city": None, "notes": "hi"})

    assert lead_to_api(lead, ["contacted"]) == {"contacted": False}
    assert lead_to_api(lead, ["city", "notes"]) == {"city": None, "notes": "hi"}
    assert "call_logs" not in lead_to_api(lead)
    with pytest.raises(ValueError):
        lead_to_api(lead, ["call_logs"])


def test_call_log_storage_round_trip() -> None:
    log = CallLog(
        id="call_1",
        lead_id="7",
        outcome="follow_up_next_week",
        notes="gatekeeper",
        call_date=datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc),
        next_follow_up="2024-03-08T09:30:00.000Z",
    )

    record = call_log_to_storage(log)
    assert record["callDate"] == "2024-03-01T09:30:00.000Z"
    assert call_log_from_storage(record, "7") == log

from __future__ import annotations

from dataclasses import dataclass, field, fields as dataclass_fields
from datetime import datetime
from typing import Any

from rankrent.utils import parse_timestamp, to_iso

UNKNOWN_CITY = "Unknown"
LEAD_STATUSES = ("New", "Contacted", "Qualified", "Converted", "Lost")


@dataclass
class CallLog:
    id: str
    lead_id: str
    outcome: str
    notes: str
    call_date: datetime
    next_follow_up: str | None = None
    duration: int | None = None


@dataclass
class Lead:
    id: str
    name: str
    phone: str
    email: str | None = None
    company: str | None = None
    website: str = ""
    city: str = UNKNOWN_CITY
    status: str | None = None
    reviews: int = 0
    contacted: bool = False
    notes: str | None = None
    follow_up_at: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    call_logs: list[CallLog] = field(default_factory=list)


@dataclass
class Client:
    id: str
    name: str
    email: str = ""
    phone: str = ""
    city: str | None = None
    reviews: int = 0
    website: str | None = None
    contacted: bool = False
    follow_up_at: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


LEAD_FIELDS = {f.name for f in dataclass_fields(Lead)}
CLIENT_FIELDS = {f.name for f in dataclass_fields(Client)}

# Fields sent on a full lead update, in wire order.
LEAD_API_FIELDS = [
    "name",
    "email",
    "phone",
    "company",
    "website",
    "status",
    "reviews",
    "contacted",
    "city",
    "follow_up_at",
    "notes",
]


def coerce_contacted(value: Any) -> bool:
    """Decode the backend's `contacted` flag.

    The API sends booleans, 0/1 integers or "0"/"1" strings depending on the
    endpoint; only `True`, `1` and `"1"` mean contacted.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value == "1"
    return False


def normalize_city(city: Any) -> str:
    return city if isinstance(city, str) and city else UNKNOWN_CITY


def city_for_api(city: str | None) -> str | None:
    if not city or city == UNKNOWN_CITY:
        return None
    return city


def lead_from_api(record: dict[str, Any]) -> Lead:
    return Lead(
        id=str(record["id"]),
        name=record.get("name") or "",
        phone=record.get("phone") or "",
        email=record.get("email"),
        company=record.get("company"),
        website=record.get("website") or "",
        city=normalize_city(record.get("city")),
        status=record.get("status"),
        reviews=int(record.get("reviews") or 0),
        contacted=coerce_contacted(record.get("contacted")),
        notes=record.get("notes"),
        follow_up_at=record.get("follow_up_at"),
        created_at=parse_timestamp(record.get("created_at")),
        updated_at=parse_timestamp(record.get("updated_at")),
    )


def lead_to_api(lead: Lead, fields: list[str] | None = None) -> dict[str, Any]:
    selected = LEAD_API_FIELDS if fields is None else fields
    payload: dict[str, Any] = {}
    for name in selected:
        if name not in LEAD_FIELDS or name == "call_logs":
            raise ValueError(f"Unknown lead field: {name}")
        value = getattr(lead, name)
        if name == "city":
            value = city_for_api(value)
        elif isinstance(value, datetime):
            value = to_iso(value)
        payload[name] = value
    return payload


def lead_create_body(data: dict[str, Any], user_id: Any = None) -> dict[str, Any]:
    return {
        "user_id": user_id,
        "name": data.get("name") or "",
        "email": data.get("email") or "",
        "phone": data.get("phone") or "",
        "company": data.get("company") or "",
        "website": data.get("website") or "",
        "city": city_for_api(data.get("city")),
        "status": data.get("status") or "New",
        "notes": data.get("notes") or "",
        "reviews": data.get("reviews") or 0,
        "contacted": bool(data.get("contacted", False)),
    }


def call_log_to_storage(log: CallLog) -> dict[str, Any]:
    return {
        "id": log.id,
        "leadId": log.lead_id,
        "outcome": log.outcome,
        "notes": log.notes,
        "callDate": to_iso(log.call_date),
        "nextFollowUp": log.next_follow_up or None,
        "duration": log.duration,
    }


def call_log_from_storage(record: dict[str, Any], lead_id: str) -> CallLog:
    call_date = parse_timestamp(record.get("callDate"))
    if call_date is None:
        raise ValueError(f"Call log {record.get('id')!r} has no valid callDate")
    return CallLog(
        id=str(record["id"]),
        lead_id=str(record.get("leadId") or lead_id),
        outcome=record.get("outcome") or "",
        notes=record.get("notes") or "",
        call_date=call_date,
        next_follow_up=record.get("nextFollowUp") or None,
        duration=record.get("duration"),
    )


def client_from_api(record: dict[str, Any]) -> Client:
    return Client(
        id=str(record["id"]),
        name=record.get("name") or "",
        email=record.get("email") or "",
        phone=record.get("phone") or "",
        city=record.get("city"),
        reviews=int(record.get("reviews") or 0),
        website=record.get("website"),
        contacted=coerce_contacted(record.get("contacted")),
        follow_up_at=record.get("follow_up_at"),
        notes=record.get("notes"),
        created_at=parse_timestamp(record.get("created_at")),
        updated_at=parse_timestamp(record.get("updated_at")),
    )


def client_to_api(client: Client, fields: list[str] | None = None) -> dict[str, Any]:
    payload = {
        "name": client.name,
        "email": client.email,
        "phone": client.phone,
        "city": client.city or None,
        "reviews": client.reviews or 0,
        "website": client.website or None,
        "contacted": bool(client.contacted),
        "follow_up_at": client.follow_up_at or None,
        "notes": client.notes or None,
    }
    if fields is None:
        return payload
    return {name: payload[name] for name in fields if name in payload}

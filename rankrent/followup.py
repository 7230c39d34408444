from __future__ import annotations

from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from rankrent.models import CallLog, Lead
from rankrent.utils import parse_timestamp, to_iso, utc_now

FOLLOW_UP_OFFSETS = {
    "follow_up_1_day": timedelta(days=1),
    "follow_up_72_hours": timedelta(days=3),
    "follow_up_next_week": timedelta(days=7),
    # relativedelta clamps month-end overflow: Jan 31 + 1 month is the last day of February
    "follow_up_next_month": relativedelta(months=1),
    "follow_up_3_months": relativedelta(months=3),
}

FOLLOW_UP_OUTCOMES = tuple(FOLLOW_UP_OFFSETS)

OUTCOME_LABELS = {
    "follow_up_1_day": "Follow up in 1 day",
    "follow_up_72_hours": "Follow up in 72 hours",
    "follow_up_next_week": "Follow up next week",
    "follow_up_next_month": "Follow up next month",
    "follow_up_3_months": "Follow up in 3 months",
}


def calculate_next_follow_up(outcome: str, now: datetime | None = None) -> str:
    offset = FOLLOW_UP_OFFSETS.get(outcome)
    if offset is None:
        return ""
    moment = parse_timestamp(now) if now is not None else utc_now()
    return to_iso(moment + offset) or ""


def sorted_call_logs(lead: Lead) -> list[CallLog]:
    return sorted(lead.call_logs, key=lambda log: log.call_date, reverse=True)


def latest_call_log(lead: Lead) -> CallLog | None:
    logs = sorted_call_logs(lead)
    return logs[0] if logs else None


def latest_note(lead: Lead) -> str:
    log = latest_call_log(lead)
    if log is not None:
        return log.notes or ""
    return lead.notes or ""


def next_follow_up(lead: Lead) -> datetime | None:
    log = latest_call_log(lead)
    if log is None:
        return None
    return parse_timestamp(log.next_follow_up)


def is_follow_up_due(lead: Lead, now: datetime | None = None) -> bool:
    moment = next_follow_up(lead)
    if moment is None:
        return False
    reference = parse_timestamp(now) if now is not None else utc_now()
    return moment <= reference


def due_leads(leads: list[Lead], now: datetime | None = None) -> list[Lead]:
    reference = now if now is not None else utc_now()
    return [lead for lead in leads if is_follow_up_due(lead, reference)]

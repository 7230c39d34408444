from __future__ import annotations

import locale
from dataclasses import dataclass
from typing import Callable

from rankrent.models import Lead

SORT_FIELDS = ("name", "reviews", "phone", "website")
SORT_DIRECTIONS = ("asc", "desc")
DEFAULT_SORT_FIELD = "reviews"
DEFAULT_SORT_DIRECTION = "desc"


@dataclass(frozen=True)
class Filters:
    show_contacted_only: bool = False


def _text_key(value: str | None) -> str:
    return locale.strxfrm((value or "").casefold())


# Phone numbers compare raw: "(555) 010-1234" and "555-010-1234" do not sort together.
SORT_KEYS: dict[str, Callable[[Lead], object]] = {
    "name": lambda lead: _text_key(lead.name),
    "website": lambda lead: _text_key(lead.website),
    "phone": lambda lead: lead.phone or "",
    "reviews": lambda lead: abs(lead.reviews or 0),
}


def apply_filters(leads: list[Lead], filters: Filters) -> list[Lead]:
    if filters.show_contacted_only:
        return [lead for lead in leads if lead.contacted is True]
    return list(leads)


def sort_leads(leads: list[Lead], field: str | None, direction: str = "asc") -> list[Lead]:
    if field is None:
        return list(leads)
    if field not in SORT_KEYS:
        raise ValueError(f"Unsupported sort field: {field}")
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Unsupported sort direction: {direction}")
    # sorted() stays stable with reverse=True, so tied leads keep input order both ways
    return sorted(leads, key=SORT_KEYS[field], reverse=direction == "desc")


def next_sort(current_field: str | None, current_direction: str, clicked: str) -> tuple[str, str]:
    if clicked not in SORT_KEYS:
        raise ValueError(f"Unsupported sort field: {clicked}")
    if clicked == current_field:
        return clicked, "desc" if current_direction == "asc" else "asc"
    return clicked, "asc"


def displayed_leads(leads: list[Lead], filters: Filters, field: str | None, direction: str) -> list[Lead]:
    return sort_leads(apply_filters(leads, filters), field, direction)

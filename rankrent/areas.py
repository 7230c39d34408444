from __future__ import annotations

import re
from dataclasses import dataclass

from rankrent.models import UNKNOWN_CITY, Lead

WHITESPACE_RUN = re.compile(r"\s+")


@dataclass(frozen=True)
class AreaData:
    id: str
    name: str
    leads: tuple[Lead, ...]


def area_slug(city: str | None) -> str:
    """Area id for a city: lowercased, whitespace runs collapsed to one hyphen.

    Cities that differ only in case or spacing share a slug and therefore an area.
    """
    return WHITESPACE_RUN.sub("-", (city or UNKNOWN_CITY).lower())


def partition_areas(leads: list[Lead]) -> list[AreaData]:
    order: list[str] = []
    names: dict[str, str] = {}
    members: dict[str, list[Lead]] = {}

    for lead in leads:
        city = lead.city or UNKNOWN_CITY
        slug = area_slug(city)
        if slug not in members:
            order.append(slug)
            names[slug] = city
            members[slug] = []
        members[slug].append(lead)

    return [AreaData(id=slug, name=names[slug], leads=tuple(members[slug])) for slug in order]


def find_area(areas: list[AreaData], area_id: str) -> AreaData | None:
    for area in areas:
        if area.id == area_id:
            return area
    return None

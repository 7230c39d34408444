from rankrent.areas import area_slug, find_area, partition_areas
from rankrent.models import Lead


def _lead(lead_id: str, city: str) -> Lead:
    return Lead(id=lead_id, name=lead_id, phone="", city=city)


def test_slug_lowercases_and_collapses_whitespace() -> None:
    assert area_slug("San   Antonio") == "san-antonio"
    assert area_slug("San Antonio") == area_slug("san\tantonio")
    assert area_slug(None) == "unknown"


def test_partition_keeps_first_seen_order() -> None:
    leads = [_lead("1", "Waco"), _lead("2", "Austin"), _lead("3", "Waco"), _lead("4", "Unknown")]

    areas = partition_areas(leads)

    assert [area.id for area in areas] == ["waco", "austin", "unknown"]
    assert [lead.id for lead in areas[0].leads] == ["1", "3"]


def test_partition_covers_every_lead_exactly_once() -> None:
    leads = [_lead(str(i), city) for i, city in enumerate(["A", "B", "A", "C", "b", "Unknown", "C"])]

    areas = partition_areas(leads)
    members = [lead.id for area in areas for lead in area.leads]

    assert sorted(members) == sorted(lead.id for lead in leads)
    assert len(members) == len(set(members))


def test_colliding_city_spellings_merge() -> None:
    leads = [_lead("1", "New York"), _lead("2", "new  york")]

    areas = partition_areas(leads)

    assert len(areas) == 1
    assert areas[0].name == "New York"
    assert find_area(areas, "new-york") is areas[0]
    assert find_area(areas, "boston") is None

from datetime import datetime, timezone

import pytest

from src.pharmagarde.models.domain import CandidatePharmacy, DutyPeriod, Pharmacy, PharmacyStatus, Rating
from src.pharmagarde.services.discovery import SearchCriteria, collation_key, search
from src.pharmagarde.services.discovery.engine import normalize_paging

UTC = timezone.utc
NIGHT = datetime(2024, 1, 2, 3, 0, tzinfo=UTC)

# requester stands in central Casablanca
ORIGIN = (33.5731, -7.5898)


def _candidate(
    pid: str,
    name: str,
    lat: float = 33.5731,
    lon: float = -7.5898,
    *,
    city: str = "Casablanca",
    district: str | None = None,
    address: str = "Rue Principale",
    status: PharmacyStatus = PharmacyStatus.APPROVED,
    on_duty: bool = False,
    scores: tuple[int, ...] = (),
) -> CandidatePharmacy:
    pharmacy = Pharmacy(
        id=pid,
        name=name,
        address=address,
        city=city,
        district=district,
        phone="0522000000",
        latitude=lat,
        longitude=lon,
        status=status,
    )
    periods: tuple[DutyPeriod, ...] = ()
    if on_duty:
        periods = (
            DutyPeriod(
                id=f"D-{pid}",
                pharmacy_id=pid,
                start=datetime(2024, 1, 1, 20, tzinfo=UTC),
                end=datetime(2024, 1, 2, 8, tzinfo=UTC),
            ),
        )
    ratings = tuple(
        Rating(id=f"R-{pid}-{index}", pharmacy_id=pid, score=score, anonymous_id=f"anon-{index}")
        for index, score in enumerate(scores)
    )
    return CandidatePharmacy(pharmacy=pharmacy, duty_periods=periods, ratings=ratings)


def _ids(page) -> list[str]:
    return [item.pharmacy.id for item in page.items]


def test_only_approved_pharmacies_are_returned() -> None:
    candidates = [
        _candidate("A", "Alpha"),
        _candidate("B", "Beta", status=PharmacyStatus.PENDING),
        _candidate("C", "Gamma", status=PharmacyStatus.REJECTED),
    ]

    page = search(candidates, SearchCriteria(), NIGHT)

    assert _ids(page) == ["A"]
    assert page.total == 1


def test_text_search_matches_name_address_or_city_case_insensitively() -> None:
    candidates = [
        _candidate("A", "Pharmacie du Centre"),
        _candidate("B", "Pharmacie Atlas", address="Boulevard du CENTRE"),
        _candidate("C", "Pharmacie Ocean", city="Centreville"),
        _candidate("D", "Pharmacie Anfa"),
    ]

    page = search(candidates, SearchCriteria(search="centre"), NIGHT)

    assert sorted(_ids(page)) == ["A", "B", "C"]


def test_city_and_district_filters_are_substring_matches() -> None:
    candidates = [
        _candidate("A", "Alpha", city="Casablanca", district="Maarif"),
        _candidate("B", "Beta", city="Casablanca", district="Anfa"),
        _candidate("C", "Gamma", city="Rabat", district="Agdal"),
    ]

    assert _ids(search(candidates, SearchCriteria(city="casa"), NIGHT)) == ["A", "B"]
    assert _ids(search(candidates, SearchCriteria(city="casa", district="maa"), NIGHT)) == ["A"]


def test_duty_only_keeps_pharmacies_on_duty_at_reference_instant() -> None:
    candidates = [_candidate("A", "Alpha", on_duty=True), _candidate("B", "Beta")]

    page = search(candidates, SearchCriteria(duty_only=True), NIGHT)

    assert _ids(page) == ["A"]
    assert page.items[0].is_on_duty is True


def test_duty_flag_is_annotated_without_filtering() -> None:
    candidates = [_candidate("A", "Alpha", on_duty=True), _candidate("B", "Beta")]
    morning = datetime(2024, 1, 2, 9, 0, tzinfo=UTC)

    flags = {item.pharmacy.id: item.is_on_duty for item in search(candidates, SearchCriteria(), morning).items}

    assert flags == {"A": False, "B": False}


def test_radius_drops_far_pharmacies() -> None:
    candidates = [
        _candidate("NEAR", "Near", 33.5800, -7.5900),
        _candidate("RABAT", "Rabat", 34.0209, -6.8416),
    ]
    criteria = SearchCriteria(latitude=ORIGIN[0], longitude=ORIGIN[1], radius_km=10.0)

    page = search(candidates, criteria, NIGHT)

    assert _ids(page) == ["NEAR"]
    assert page.total == 1
    assert page.items[0].distance_km == pytest.approx(0.77, abs=0.05)


def test_radius_without_origin_is_ignored() -> None:
    candidates = [_candidate("A", "Alpha"), _candidate("B", "Beta", 34.0209, -6.8416)]

    page = search(candidates, SearchCriteria(radius_km=1.0), NIGHT)

    assert page.total == 2
    assert all(item.distance_km is None for item in page.items)


def test_sort_by_distance_ascending() -> None:
    candidates = [
        _candidate("FAR", "Far", 33.70, -7.40),
        _candidate("NEAR", "Near", 33.58, -7.59),
        _candidate("MID", "Mid", 33.62, -7.55),
    ]
    criteria = SearchCriteria(latitude=ORIGIN[0], longitude=ORIGIN[1], sort_by="distance")

    page = search(candidates, criteria, NIGHT)

    assert _ids(page) == ["NEAR", "MID", "FAR"]
    distances = [item.distance_km for item in page.items]
    assert distances == sorted(distances)


def test_sort_by_distance_without_origin_falls_back_to_name() -> None:
    candidates = [_candidate("B", "Beta"), _candidate("A", "Alpha")]

    assert _ids(search(candidates, SearchCriteria(sort_by="distance"), NIGHT)) == ["A", "B"]


def test_sort_by_rating_descending_with_stable_ties() -> None:
    candidates = [
        _candidate("LOW", "Low", scores=(2,)),
        _candidate("TIE1", "Tie one", scores=(4, 4)),
        _candidate("TOP", "Top", scores=(5,)),
        _candidate("TIE2", "Tie two", scores=(3, 5)),
        _candidate("NONE", "Unrated"),
    ]

    page = search(candidates, SearchCriteria(sort_by="rating"), NIGHT)

    assert _ids(page) == ["TOP", "TIE1", "TIE2", "LOW", "NONE"]
    assert page.items[1].average_rating == 4.0
    assert page.items[1].rating_count == 2


def test_sort_by_name_ignores_accents_and_case() -> None:
    candidates = [
        _candidate("F", "fox"),
        _candidate("E", "Élan"),
        _candidate("A", "Eagle"),
    ]

    assert _ids(search(candidates, SearchCriteria(sort_by="name"), NIGHT)) == ["A", "E", "F"]


def test_collation_key_orders_accented_names_beside_base_letters() -> None:
    assert collation_key("Eagle") < collation_key("Élan") < collation_key("Fox")


def test_name_sort_puts_lowercase_before_uppercase_when_otherwise_equal() -> None:
    candidates = [_candidate("UP", "Pharmacie Atlas"), _candidate("LOW", "pharmacie atlas")]

    assert _ids(search(candidates, SearchCriteria(sort_by="name"), NIGHT)) == ["LOW", "UP"]
    assert sorted(["Pharmacie Atlas", "pharmacie atlas"], key=collation_key) == ["pharmacie atlas", "Pharmacie Atlas"]


def test_pages_concatenate_to_the_full_result_exactly_once() -> None:
    candidates = [_candidate(f"P{index}", f"Pharmacy {index:02d}") for index in range(7)]

    full = search(candidates, SearchCriteria(page_size=100), NIGHT)
    first = search(candidates, SearchCriteria(page=1, page_size=3), NIGHT)
    assert first.total == 7
    assert first.total_pages == 3

    collected: list[str] = []
    for page_number in range(1, first.total_pages + 1):
        page = search(candidates, SearchCriteria(page=page_number, page_size=3), NIGHT)
        collected.extend(_ids(page))
        assert page.has_next_page is (page_number < 3)

    assert collected == _ids(full)


def test_radius_shrinks_total_not_just_the_page() -> None:
    near = [_candidate(f"N{index}", f"Near {index}", 33.575, -7.59) for index in range(3)]
    far = [_candidate(f"F{index}", f"Far {index}", 34.02, -6.84) for index in range(4)]
    criteria = SearchCriteria(latitude=ORIGIN[0], longitude=ORIGIN[1], radius_km=5.0, page=1, page_size=2)

    page = search(near + far, criteria, NIGHT)

    assert page.total == 3
    assert page.total_pages == 2


def test_page_past_the_end_is_empty() -> None:
    page = search([_candidate("A", "Alpha")], SearchCriteria(page=5, page_size=10), NIGHT)

    assert page.items == []
    assert page.total == 1


@pytest.mark.parametrize(("page", "page_size"), [(0, 0), (-3, -10)])
def test_non_positive_paging_is_clamped_to_defaults(page: int, page_size: int) -> None:
    assert normalize_paging(page, page_size) == (1, 20)

    result = search([_candidate("A", "Alpha")], SearchCriteria(page=page, page_size=page_size), NIGHT)
    assert (result.page, result.page_size) == (1, 20)
    assert _ids(result) == ["A"]

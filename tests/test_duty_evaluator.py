from datetime import datetime, timedelta, timezone

import pytest

from src.pharmagarde.errors import ValidationError
from src.pharmagarde.models.domain import CandidatePharmacy, DutyPeriod, Pharmacy, PharmacyStatus
from src.pharmagarde.services.duty import active_period, filter_on_duty, is_on_duty, upcoming_periods

UTC = timezone.utc


def _at(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 1, day, hour, minute, tzinfo=UTC)


def _period(pid: str, start: datetime, end: datetime, pharmacy_id: str = "P1") -> DutyPeriod:
    return DutyPeriod(id=pid, pharmacy_id=pharmacy_id, start=start, end=end)


def _candidate(pid: str, *periods: DutyPeriod) -> CandidatePharmacy:
    pharmacy = Pharmacy(
        id=pid,
        name=f"Pharmacy {pid}",
        address="1 Rue Test",
        city="Casablanca",
        phone="0522000000",
        latitude=33.57,
        longitude=-7.59,
        status=PharmacyStatus.APPROVED,
    )
    return CandidatePharmacy(pharmacy=pharmacy, duty_periods=periods)


def test_overnight_period_covers_night_but_not_next_morning() -> None:
    periods = [_period("D1", _at(1, 20), _at(2, 8))]

    assert is_on_duty(periods, _at(2, 3)) is True
    assert is_on_duty(periods, _at(2, 9)) is False


def test_both_bounds_are_inclusive() -> None:
    start, end = _at(1, 20), _at(2, 8)
    periods = [_period("D1", start, end)]

    assert is_on_duty(periods, start)
    assert is_on_duty(periods, end)
    assert not is_on_duty(periods, start - timedelta(microseconds=1))
    assert not is_on_duty(periods, end + timedelta(microseconds=1))


def test_no_periods_means_off_duty() -> None:
    assert is_on_duty([], _at(1, 12)) is False


def test_offsets_are_compared_as_instants() -> None:
    casablanca_winter = timezone(timedelta(hours=1))
    periods = [_period("D1", _at(1, 20), _at(2, 8))]

    # 08:30 at UTC+1 is 07:30 UTC
    assert is_on_duty(periods, datetime(2024, 1, 2, 8, 30, tzinfo=casablanca_winter))


def test_naive_instant_is_rejected() -> None:
    with pytest.raises(ValidationError):
        is_on_duty([_period("D1", _at(1, 20), _at(2, 8))], datetime(2024, 1, 2, 3, 0))


def test_active_period_returns_the_covering_period() -> None:
    first = _period("D1", _at(1, 8), _at(1, 12))
    second = _period("D2", _at(1, 20), _at(2, 8))

    assert active_period([first, second], _at(1, 22)) == second
    assert active_period([first, second], _at(1, 15)) is None


def test_filter_on_duty_keeps_input_order() -> None:
    night = _period("D1", _at(1, 20), _at(2, 8))
    candidates = [
        _candidate("A", night),
        _candidate("B"),
        _candidate("C", _period("D2", _at(1, 22), _at(2, 6), pharmacy_id="C")),
    ]

    on_duty = filter_on_duty(candidates, _at(2, 1))

    assert [candidate.pharmacy.id for candidate in on_duty] == ["A", "C"]


def test_upcoming_periods_skip_finished_ones_and_sort_by_start() -> None:
    past = _period("D1", _at(1, 8), _at(1, 12))
    later = _period("D3", _at(3, 8), _at(3, 20))
    current = _period("D2", _at(2, 8), _at(2, 20))

    assert upcoming_periods([later, past, current], _at(2, 10)) == [current, later]

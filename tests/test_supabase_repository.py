from datetime import datetime, timezone
from typing import Any

import pytest
from postgrest.exceptions import APIError

from src.pharmagarde.errors import ConcurrencyConflict, NotFoundError, OverlapError, ValidationError
from src.pharmagarde.models.domain import DutyPeriod, PharmacyStatus
from src.pharmagarde.persistence.database import SupabaseRepository

UTC = timezone.utc


class _Result:
    def __init__(self, data: Any) -> None:
        self.data = data


class FakeQuery:
    """Records chained PostgREST builder calls and returns canned rows."""

    def __init__(self, data: Any) -> None:
        self._data = data
        self.calls: list[tuple[str, tuple, dict]] = []

    def __getattr__(self, name: str):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return method

    def execute(self) -> _Result:
        return _Result(self._data)


class FakeRpc:
    def __init__(self, outcome: Any) -> None:
        self._outcome = outcome

    def execute(self) -> _Result:
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return _Result(self._outcome)


class FakeClient:
    def __init__(self, tables: dict[str, Any] | None = None, rpc: dict[str, Any] | None = None) -> None:
        self.tables = tables or {}
        self.rpc_outcomes = rpc or {}
        self.queries: dict[str, FakeQuery] = {}
        self.rpc_calls: list[tuple[str, dict]] = []

    def table(self, name: str) -> FakeQuery:
        query = FakeQuery(self.tables.get(name, []))
        self.queries[name] = query
        return query

    def rpc(self, name: str, params: dict) -> FakeRpc:
        self.rpc_calls.append((name, params))
        return FakeRpc(self.rpc_outcomes.get(name))


def _pg_error(code: str, message: str = "boom") -> APIError:
    return APIError({"message": message, "code": code, "hint": None, "details": None})


def _pharmacy_row(pid: str = "P1", **overrides) -> dict:
    row = {
        "id": pid,
        "name": "Pharmacie Atlas",
        "address": "45 Rue Atlas",
        "city": "Casablanca",
        "district": None,
        "phone": "0522112233",
        "latitude": 33.57,
        "longitude": -7.59,
        "status": "APPROVED",
        "view_count": 3,
        "owner_id": "owner-1",
        "schedule_version": 4,
        "created_at": "2024-01-01T10:00:00+00:00",
    }
    row.update(overrides)
    return row


def _period_row(pid: str, start: str, end: str) -> dict:
    return {"id": pid, "pharmacy_id": "P1", "start_at": start, "end_at": end, "note": None}


def test_get_pharmacy_maps_row_and_missing_is_not_found() -> None:
    repo = SupabaseRepository(FakeClient(tables={"pharmacies": [_pharmacy_row()]}))

    pharmacy = repo.get_pharmacy("P1")
    assert pharmacy.status == PharmacyStatus.APPROVED
    assert pharmacy.created_at == datetime(2024, 1, 1, 10, tzinfo=UTC)

    with pytest.raises(NotFoundError):
        SupabaseRepository(FakeClient()).get_pharmacy("missing")


def test_load_schedule_reads_version_and_sorts_periods() -> None:
    row = _pharmacy_row(
        duty_periods=[
            _period_row("D2", "2024-01-03T20:00:00Z", "2024-01-04T08:00:00Z"),
            _period_row("D1", "2024-01-01T20:00:00+00:00", "2024-01-02T08:00:00+00:00"),
        ]
    )
    repo = SupabaseRepository(FakeClient(tables={"pharmacies": [row]}))

    schedule = repo.load_schedule("P1")

    assert schedule.version == 4
    assert [period.id for period in schedule.periods] == ["D1", "D2"]
    assert schedule.periods[1].start == datetime(2024, 1, 3, 20, tzinfo=UTC)


def test_insert_duty_period_calls_function_with_expected_version() -> None:
    created = _period_row("D9", "2024-01-01T20:00:00+00:00", "2024-01-02T08:00:00+00:00")
    client = FakeClient(rpc={"schedule_duty_period": created})
    repo = SupabaseRepository(client)

    period = repo.insert_duty_period(
        "P1",
        datetime(2024, 1, 1, 20, tzinfo=UTC),
        datetime(2024, 1, 2, 8, tzinfo=UTC),
        "night",
        expected_version=7,
    )

    name, params = client.rpc_calls[0]
    assert name == "schedule_duty_period"
    assert params["p_expected_version"] == 7
    assert params["p_start"] == "2024-01-01T20:00:00+00:00"
    assert period.id == "D9"


@pytest.mark.parametrize(
    ("code", "expected"),
    [("23P01", OverlapError), ("40001", ConcurrencyConflict), ("P0002", NotFoundError), ("23514", ValidationError)],
)
def test_function_errors_map_to_domain_errors(code: str, expected: type) -> None:
    repo = SupabaseRepository(FakeClient(rpc={"schedule_duty_period": _pg_error(code)}))

    with pytest.raises(expected):
        repo.insert_duty_period(
            "P1",
            datetime(2024, 1, 1, 20, tzinfo=UTC),
            datetime(2024, 1, 2, 8, tzinfo=UTC),
            None,
            expected_version=0,
        )


def test_unmapped_database_errors_propagate() -> None:
    repo = SupabaseRepository(FakeClient(rpc={"reschedule_duty_period": _pg_error("42501", "permission denied")}))
    period = DutyPeriod(
        id="D1",
        pharmacy_id="P1",
        start=datetime(2024, 1, 1, 20, tzinfo=UTC),
        end=datetime(2024, 1, 2, 8, tzinfo=UTC),
    )

    with pytest.raises(APIError):
        repo.replace_duty_period(period, expected_version=1)


def test_upsert_rating_reports_whether_row_was_created() -> None:
    row = {
        "id": "R1",
        "pharmacy_id": "P1",
        "anonymous_id": "anon",
        "score": 5,
        "comment": "Great",
        "approved": True,
        "created_at": "2024-01-02T10:00:00+00:00",
        "updated_at": "2024-01-02T11:00:00+00:00",
        "created": False,
    }
    client = FakeClient(rpc={"upsert_rating": row})

    rating, created = SupabaseRepository(client).upsert_rating("P1", "anon", 5, "Great", approved_on_create=True)

    assert created is False
    assert rating.score == 5
    assert client.rpc_calls[0][1]["p_approved"] is True


def test_list_candidates_joins_periods_and_approved_ratings() -> None:
    row = _pharmacy_row(
        duty_periods=[_period_row("D1", "2024-01-01T20:00:00+00:00", "2024-01-02T08:00:00+00:00")],
        ratings=[
            {"id": "R1", "pharmacy_id": "P1", "anonymous_id": "a", "score": 4, "approved": True},
        ],
    )
    client = FakeClient(tables={"pharmacies": [row]})

    candidates = SupabaseRepository(client).list_candidates()

    assert len(candidates) == 1
    assert [period.id for period in candidates[0].duty_periods] == ["D1"]
    assert [rating.score for rating in candidates[0].ratings] == [4]
    filters = [call for call in client.queries["pharmacies"].calls if call[0] == "eq"]
    assert ("eq", ("status", "APPROVED"), {}) in filters
    assert ("eq", ("ratings.approved", True), {}) in filters


def test_update_pharmacy_only_sends_profile_columns() -> None:
    client = FakeClient(tables={"pharmacies": [_pharmacy_row(phone="0500000000")]})

    updated = SupabaseRepository(client).update_pharmacy("P1", {"phone": "0500000000", "status": "APPROVED"})

    update_call = next(call for call in client.queries["pharmacies"].calls if call[0] == "update")
    assert update_call[1][0] == {"phone": "0500000000"}
    assert updated.phone == "0500000000"


def test_delete_missing_period_is_not_found() -> None:
    with pytest.raises(NotFoundError):
        SupabaseRepository(FakeClient(tables={"duty_periods": []})).delete_duty_period("D1")


def test_recent_ratings_are_ordered_by_creation() -> None:
    client = FakeClient(tables={"ratings": []})

    SupabaseRepository(client).list_approved_ratings("P1")

    assert ("order", ("created_at",), {"desc": True}) in client.queries["ratings"].calls


def test_delete_pharmacy_reports_missing_rows() -> None:
    client = FakeClient(tables={"pharmacies": [_pharmacy_row()]})
    SupabaseRepository(client).delete_pharmacy("P1")

    assert ("delete", (), {}) in client.queries["pharmacies"].calls
    with pytest.raises(NotFoundError):
        SupabaseRepository(FakeClient()).delete_pharmacy("missing")


def test_count_related_totals_ratings_and_periods_per_pharmacy() -> None:
    client = FakeClient(
        tables={
            "ratings": [{"pharmacy_id": "P1"}, {"pharmacy_id": "P1"}, {"pharmacy_id": "P2"}],
            "duty_periods": [{"pharmacy_id": "P1"}],
        }
    )

    counts = SupabaseRepository(client).count_related(["P1", "P2", "P3"])

    assert counts == {"P1": (2, 1), "P2": (1, 0), "P3": (0, 0)}
    assert SupabaseRepository(FakeClient()).count_related([]) == {}

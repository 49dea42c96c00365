"""Unit tests for the timezone-aware timestamp column type."""

from datetime import datetime, timedelta, timezone

from scorekeeper.models.seasons import SeasonCreate
from scorekeeper.schemas.base import UTCDateTime, utcnow
from scorekeeper.schemas.leagues import League

CET = timezone(timedelta(hours=1))


def test_utcnow_is_aware() -> None:
    assert utcnow().tzinfo is timezone.utc


def test_bind_attaches_utc_to_naive_values() -> None:
    column_type = UTCDateTime()

    bound = column_type.process_bind_param(datetime(2026, 5, 1, 18, 0), None)

    assert bound == datetime(2026, 5, 1, 18, 0, tzinfo=timezone.utc)
    assert bound.tzinfo is timezone.utc


def test_bind_converts_other_zones_to_utc() -> None:
    bound = UTCDateTime().process_bind_param(datetime(2026, 5, 1, 19, 0, tzinfo=CET), None)

    assert bound.tzinfo is timezone.utc
    assert bound.hour == 18


def test_naive_results_are_read_as_utc() -> None:
    value = UTCDateTime().process_result_value(datetime(2026, 5, 1, 18, 0), None)

    assert value == datetime(2026, 5, 1, 18, 0, tzinfo=timezone.utc)


def test_none_passes_through() -> None:
    column_type = UTCDateTime()

    assert column_type.process_bind_param(None, None) is None
    assert column_type.process_result_value(None, None) is None


def test_timestamp_columns_are_timezone_aware() -> None:
    for name in ("created_at", "updated_at"):
        assert League.__table__.c[name].type.impl.timezone is True  # type: ignore[attr-defined]


def test_season_dates_are_normalised_to_utc() -> None:
    payload = SeasonCreate(
        name="Spring",
        start_date=datetime(2026, 3, 1),
        end_date=datetime(2026, 6, 1, 2, 0, tzinfo=CET),
    )

    assert payload.start_date == datetime(2026, 3, 1, tzinfo=timezone.utc)
    assert payload.end_date is not None
    assert payload.end_date.tzinfo is timezone.utc
    assert payload.end_date.hour == 1

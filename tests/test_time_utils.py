from datetime import UTC, datetime, timedelta, timezone

from leadboard.core.time import parse_timestamp, utc_now


def test_utc_now_is_timezone_aware_utc():
    value = utc_now()
    assert value.tzinfo is UTC


def test_parse_timestamp_accepts_iso_strings():
    assert parse_timestamp("2024-06-01T12:00:00Z") == datetime(2024, 6, 1, 12, tzinfo=UTC)
    assert parse_timestamp("2024-06-01") == datetime(2024, 6, 1, tzinfo=UTC)


def test_parse_timestamp_converts_offsets_and_naive_values():
    offset = datetime(2024, 6, 1, 17, 30, tzinfo=timezone(timedelta(hours=5, minutes=30)))
    assert parse_timestamp(offset) == datetime(2024, 6, 1, 12, tzinfo=UTC)
    assert parse_timestamp(datetime(2024, 6, 1, 12)).tzinfo is UTC


def test_parse_timestamp_unreadable_is_none():
    assert parse_timestamp("next tuesday") is None
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None
    assert parse_timestamp(12345) is None

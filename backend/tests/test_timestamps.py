from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from docmeta.timestamps import EPOCH, Instant, decode_instant, encode_instant


def test_encode_uses_fixed_nine_digit_fraction():
    assert encode_instant(Instant.parse("2024-01-15T10:30:00Z")) == "2024-01-15T10:30:00.000000000Z"
    assert encode_instant(Instant.parse("2024-01-15T10:30:00.123Z")) == "2024-01-15T10:30:00.123000000Z"
    assert encode_instant(Instant.parse("2024-01-15T10:30:00.123456789Z")) == "2024-01-15T10:30:00.123456789Z"
    assert encode_instant(EPOCH) == "1970-01-01T00:00:00.000000000Z"


def test_decode_accepts_short_fractions_and_offset():
    assert decode_instant("2024-01-15T10:30:00Z") == Instant.of_epoch_second(1705314600)
    assert decode_instant("2024-01-15T10:30:00.5Z") == Instant.of_epoch_second(1705314600, 500_000_000)
    assert decode_instant("2024-01-15T10:30:00+00:00") == Instant.of_epoch_second(1705314600)
    assert decode_instant("1970-01-01T00:00:00Z") == EPOCH


@pytest.mark.parametrize(
    "bad",
    ["", "2024-01-15", "2024-01-15T10:30:00", "2024-01-15T10:30:00+02:00", "2024-01-15T10:30:00.1234567891Z"],
)
def test_decode_rejects_malformed(bad):
    with pytest.raises(ValueError):
        decode_instant(bad)


@pytest.mark.parametrize(
    "value",
    [
        EPOCH,
        Instant.parse("2024-01-15T10:30:00.123456789Z"),
        Instant.of_epoch_second(1, 1),
        Instant.now(),
    ],
)
def test_round_trip_preserves_value(value):
    assert decode_instant(encode_instant(value)) == value


def test_none_round_trips_to_none():
    assert encode_instant(None) is None
    assert decode_instant(None) is None


def test_string_order_matches_time_order():
    a = Instant.parse("2024-01-15T10:30:00Z")
    b = Instant.parse("2024-01-15T10:30:00.5Z")
    c = Instant.parse("2024-01-15T10:30:01Z")
    assert a < b < c
    assert encode_instant(a) < encode_instant(b) < encode_instant(c)


def test_timedelta_arithmetic_and_datetime_conversion():
    t = Instant.parse("2024-01-15T10:30:00.000000999Z")
    assert (t + timedelta(days=1)).isoformat() == "2024-01-16T10:30:00.000000999Z"
    assert (t - timedelta(seconds=1)).isoformat() == "2024-01-15T10:29:59.000000999Z"
    assert EPOCH - timedelta(microseconds=1) == Instant(-1, 999_999_000)

    dt = datetime(2024, 1, 15, 10, 30, 0, 123456, tzinfo=timezone.utc)
    assert Instant.from_datetime(dt).to_datetime() == dt
    with pytest.raises(ValueError):
        Instant.from_datetime(datetime(2024, 1, 15))


def test_nanos_must_be_in_range():
    with pytest.raises(ValueError):
        Instant(0, 1_000_000_000)
    assert Instant.of_epoch_second(0, 1_000_000_001) == Instant(1, 1)


@pytest.mark.parametrize(
    "dt,text",
    [
        (datetime(1, 1, 1, tzinfo=timezone.utc), "0001-01-01T00:00:00.000000000Z"),
        (datetime(999, 12, 31, tzinfo=timezone.utc), "0999-12-31T00:00:00.000000000Z"),
        (datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc), "9999-12-31T23:59:59.000000000Z"),
    ],
)
def test_four_digit_years_round_trip(dt, text):
    value = Instant.from_datetime(dt)
    assert encode_instant(value) == text
    assert decode_instant(text) == value


def test_early_years_keep_string_order():
    old = Instant.from_datetime(datetime(999, 12, 31, tzinfo=timezone.utc))
    newer = Instant.from_datetime(datetime(1000, 1, 1, tzinfo=timezone.utc))
    assert old < newer
    assert encode_instant(old) < encode_instant(newer)


def test_instants_outside_four_digit_years_are_rejected():
    last = Instant.from_datetime(datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc))
    with pytest.raises(ValueError):
        Instant.of_epoch_second(last.epoch_seconds + 1)
    with pytest.raises(ValueError):
        last + timedelta(seconds=1)
    first = Instant.from_datetime(datetime(1, 1, 1, tzinfo=timezone.utc))
    with pytest.raises(ValueError):
        first - timedelta(seconds=1)

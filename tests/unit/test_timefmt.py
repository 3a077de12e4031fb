"""Tests for ledger timestamp rendering."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from dpplink.core.timefmt import NOT_AVAILABLE, format_iso, to_iso_timestamp, utc_now_iso

SECONDS = 1714557600
EXPECTED = "2024-05-01T10:00:00.000Z"


class TestToIsoTimestamp:
    def test_none_is_not_available(self):
        assert to_iso_timestamp(None) == NOT_AVAILABLE == "n/d"

    def test_seconds(self):
        assert to_iso_timestamp(SECONDS) == EXPECTED

    def test_milliseconds(self):
        assert to_iso_timestamp(SECONDS * 1000) == EXPECTED

    def test_microseconds(self):
        assert to_iso_timestamp(SECONDS * 1_000_000) == EXPECTED

    def test_millisecond_precision_is_kept(self):
        assert to_iso_timestamp(SECONDS * 1000 + 123) == "2024-05-01T10:00:00.123Z"

    def test_epoch_zero(self):
        assert to_iso_timestamp(0) == "1970-01-01T00:00:00.000Z"

    def test_out_of_range_falls_back_to_raw_value(self):
        # Exactly 1e12 is read as seconds, which is past year 9999.
        assert to_iso_timestamp(10**12) == str(10**12)


class TestFormatIso:
    def test_converts_to_utc(self):
        moment = datetime(2024, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_iso(moment) == EXPECTED

    def test_now_has_z_suffix(self):
        assert utc_now_iso().endswith("Z")

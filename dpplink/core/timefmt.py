"""Ledger timestamp rendering.

The ledger hands out integer timestamps without a stable unit. The unit
is picked by magnitude: above 1e14 is microseconds, above 1e12 is
milliseconds, anything smaller is seconds. The thresholds are unverified
against the ledger's documented epoch unit.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

NOT_AVAILABLE = "n/d"

_MICROS_THRESHOLD = 10**14
_MILLIS_THRESHOLD = 10**12
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def format_iso(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    utc = moment.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def to_iso_timestamp(value: int | None) -> str:
    """Render a ledger timestamp, or ``"n/d"`` when absent."""
    if value is None:
        return NOT_AVAILABLE

    numeric = int(value)
    if numeric > _MICROS_THRESHOLD:
        millis = numeric // 1_000
    elif numeric > _MILLIS_THRESHOLD:
        millis = numeric
    else:
        millis = numeric * 1_000

    try:
        return format_iso(_EPOCH + timedelta(milliseconds=millis))
    except OverflowError:
        return str(value)


def utc_now_iso() -> str:
    return format_iso(datetime.now(timezone.utc))

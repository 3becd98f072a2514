"""Time helpers — epoch milliseconds, ISO parsing, ledger partitions."""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

HOUR_MS = 3_600_000


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def parse_iso(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed) into aware UTC."""
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_ms(dt: datetime) -> int:
    """Epoch milliseconds for an aware datetime."""
    return int(parse_iso(dt).timestamp() * 1000)


def from_ms(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def local_date(dt: datetime, tz: str) -> date:
    """Calendar date of *dt* as seen on an exchange in timezone *tz*."""
    return parse_iso(dt).astimezone(ZoneInfo(tz)).date()


def partition_key(dt: datetime) -> tuple[str, str]:
    """(YYYY, MM) ledger partition for a publish timestamp, in UTC."""
    utc = parse_iso(dt)
    return f"{utc.year:04d}", f"{utc.month:02d}"

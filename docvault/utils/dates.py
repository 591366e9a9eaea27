"""ISO-8601 helpers; every timestamp DocVault writes is UTC with a `Z` suffix."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 string, treating naive values as UTC. Returns None when unparseable."""

    if not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def next_timestamp(previous: Optional[str]) -> str:
    """Current time, nudged past `previous` so successive stamps strictly increase."""

    now = utc_now()
    # Stamps are stored at millisecond precision; compare at the same precision
    now = now.replace(microsecond=now.microsecond - now.microsecond % 1000)
    last = parse_iso(previous) if previous else None
    if last is not None and now <= last:
        now = last + timedelta(milliseconds=1)
    return to_iso(now)


def normalize_date(value: Optional[str]) -> Optional[str]:
    """Normalise a caller-supplied date to a UTC ISO string; blank becomes None."""

    if value is None or not str(value).strip():
        return None
    parsed = parse_iso(str(value))
    if parsed is None:
        raise ValueError(f"Invalid date: {value!r}")
    return to_iso(parsed)

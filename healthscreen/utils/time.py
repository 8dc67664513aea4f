from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from dateutil.parser import isoparse

_DATE_ONLY = re.compile(r"^\d{4}-?\d{2}-?\d{2}$")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def now_utc_iso() -> str:
    """Return current time as a UTC ISO 8601 string."""
    return now_utc().isoformat()


def parse_to_utc_aware(ts: Any) -> datetime:
    """Convert a string or datetime to a timezone-aware UTC datetime.

    - naive datetime / ISO string without tz -> assume UTC
    - aware values are converted to UTC
    Raises ValueError for strings that are not ISO 8601.
    """
    if isinstance(ts, datetime):
        dt = ts
    else:
        dt = isoparse(str(ts).strip())
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def normalize_to_utc_iso(ts: Optional[str]) -> str:
    """Normalize an optional client timestamp to UTC ISO 8601; empty means now."""
    if not ts:
        return now_utc_iso()
    return parse_to_utc_aware(ts).isoformat()


def normalize_range_end(ts: str) -> str:
    """Upper bound of a date range as UTC ISO 8601; a bare date covers that whole day."""
    dt = parse_to_utc_aware(ts)
    if isinstance(ts, str) and _DATE_ONLY.match(ts.strip()):
        dt = dt + timedelta(days=1) - timedelta(microseconds=1)
    return dt.isoformat()

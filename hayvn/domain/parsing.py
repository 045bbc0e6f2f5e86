# hayvn/domain/parsing.py
from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Mapping

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# vendor formats seen outside ISO 8601; offset-less, taken as UTC
_FALLBACK_FORMATS = (
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%Y%m%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %b %Y",
)


def get_first(payload: Mapping[str, Any], *keys: str) -> Any:
    """Return the first non-null value among `keys` (priority order)."""
    for k in keys:
        v = payload.get(k)
        if v is not None:
            return v
    return None


def to_number(x: Any) -> float | None:
    """Numeric coercion; NaN/inf and unparseable input are treated as absent."""
    if x is None or isinstance(x, bool):
        return None
    if isinstance(x, str):
        x = x.strip()
        if not x:
            return None
    try:
        n = float(x)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(n):
        return None
    return n


def to_int(x: Any) -> int | None:
    n = to_number(x)
    if n is None:
        return None
    return int(n)


def to_str(x: Any) -> str | None:
    if x is None:
        return None
    s = str(x)
    return s if s.strip() else None


def _parse_timestamp(s: str) -> datetime | None:
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        pass

    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue

    # RFC 2822 / HTTP-date: "Fri, 01 Mar 2024 10:00:00 GMT"
    try:
        return parsedate_to_datetime(s)
    except (TypeError, ValueError, IndexError):
        return None


def to_datetime(x: Any) -> datetime | None:
    """
    General timestamp parsing -> naive UTC datetime.
    Offset-less literals are taken as UTC. Never raises.
    """
    if x is None:
        return None
    if isinstance(x, datetime):
        dt = x
    elif isinstance(x, date):
        dt = datetime(x.year, x.month, x.day)
    else:
        s = str(x).strip()
        if not s:
            return None
        dt = _parse_timestamp(s)
        if dt is None:
            return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def to_date_only(x: Any) -> date | None:
    if x is None:
        return None
    s = str(x).strip()
    if _DATE_ONLY.match(s):
        try:
            return date.fromisoformat(s)
        except ValueError:
            return None
    dt = to_datetime(s)
    return dt.date() if dt is not None else None


def days_since(ts: datetime | None, *, now: datetime) -> float | None:
    if ts is None:
        return None
    return (now - ts).total_seconds() / 86400.0

"""Shared date parsing helpers."""
from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Optional

# Scanner dates look like "2024-01-15", "2024-01-15T10:30:00Z" or git's
# "2024-01-15 10:30:00 +0200"; bare numbers are never treated as dates.
_DATE_PREFIX_RE = re.compile(r"^\d{4}[-/]\d{1,2}[-/]\d{1,2}|^\d{1,2}/\d{1,2}/\d{4}")


def _parse_datetime_token(token: str) -> Optional[datetime]:
    cleaned = token.strip()
    if not cleaned or not _DATE_PREFIX_RE.match(cleaned):
        return None
    try:
        return datetime.fromisoformat(cleaned.replace("Z", "+00:00"))
    except Exception:
        pass
    for fmt in ("%Y/%m/%d", "%m/%d/%Y", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M:%S %z"):
        try:
            return datetime.strptime(cleaned, fmt)
        except Exception:
            continue
    return None


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse mixed date inputs into an aware UTC datetime, or None."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        parsed = _parse_datetime_token(value)
    else:
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_epoch(value: Any) -> Optional[float]:
    parsed = parse_datetime(value)
    if parsed is None:
        return None
    return parsed.timestamp()

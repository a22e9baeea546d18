"""Helpers for normalizing stored timestamps."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def coerce_utc(value: Any) -> datetime | None:
    """Normalize datetimes and ISO strings into timezone-aware UTC datetimes.

    SQLite hands back naive datetimes even for timezone-aware columns, so
    naive values are assumed to already be UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    return None

"""Utility helpers for the WatchNext service."""

from __future__ import annotations

import calendar
import re
from datetime import date
from typing import Any

_DETAIL_PATH_RE = re.compile(r"^(movie|tv)/(\d+)(?:/|$)")


def shift_months(day: date, months: int) -> date:
    """Move ``day`` by whole calendar months, clamping to the month's end."""

    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def build_image_url(path: str | None, base_url: str, size: str) -> str | None:
    """Expand a vendor image path into a full URL at a fixed size."""

    if not path:
        return None
    if path.startswith("http"):
        return path
    return f"{base_url.rstrip('/')}/{size}{path}"


def coerce_int(value: Any, *, default: int | None = None) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def media_id_from_path(path: str) -> int | None:
    """Return the numeric movie/tv ID a vendor path refers to, if any."""

    match = _DETAIL_PATH_RE.match(path.strip("/"))
    if not match:
        return None
    return int(match.group(2))

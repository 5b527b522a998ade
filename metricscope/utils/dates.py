"""Date key helpers for the chart x-axis."""
from __future__ import annotations

from typing import Any, Iterable, List


def date_only(value: Any) -> str:
    """Truncate an ISO-8601 timestamp to its ``YYYY-MM-DD`` prefix."""

    return str(value).split("T")[0]


def normalise_dates(values: Iterable[Any] | None) -> List[str]:
    if values is None or isinstance(values, (str, bytes)):
        return []
    try:
        return [date_only(value) for value in values]
    except TypeError:
        return []


def month_day(value: str) -> str:
    """Short ``MM-DD`` label used on the category axis."""

    return str(value)[5:]

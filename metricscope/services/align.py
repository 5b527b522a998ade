"""Alignment of raw metric arrays against the response date axis."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from ..utils.dates import date_only, normalise_dates

ALIGN_MODES = ("pad", "direct", "truncate")


@dataclass(slots=True, frozen=True)
class Point:
    """Single observation on the category x-axis."""

    x: str
    y: float | None

    def as_dict(self) -> Dict[str, object]:
        return {"x": self.x, "y": self.y}


def to_number(value: Any) -> float | None:
    """Coerce a raw JSON value to a finite float, ``None`` when it has no data."""

    if value is None:
        return None
    if isinstance(value, (int, float)):
        numeric = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            numeric = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(numeric):
        return None
    return numeric


def _as_list(values: Any) -> List[Any]:
    if values is None or isinstance(values, (str, bytes)):
        return []
    if isinstance(values, Sequence):
        return list(values)
    try:
        return list(values)
    except TypeError:
        return []


def left_pad(values: Any, total: int) -> List[Any]:
    """Prepend missing markers so the tail of ``values`` meets the tail of the axis.

    The result always has ``total`` entries; surplus values are cut from the
    trailing end.
    """

    raw = _as_list(values)
    pad = max(0, total - len(raw))
    return ([None] * pad + raw)[:total]


def align(
    date_axis: Sequence[str],
    raw_values: Any,
    mode: str = "pad",
) -> List[Point]:
    """Map ``raw_values`` onto ``date_axis`` and return one point per date.

    ``pad`` assumes shorter arrays lost their leading entries to an indicator
    warm-up. ``direct`` maps index for index and is used once the source emits
    equal-length arrays. ``truncate`` keeps only the indices both sides have.
    """

    if mode not in ALIGN_MODES:
        raise ValueError(f"Unsupported alignment mode: {mode}")
    total = len(date_axis)
    if mode == "pad":
        aligned = left_pad(raw_values, total)
        return [Point(x=x, y=to_number(v)) for x, v in zip(date_axis, aligned)]
    if mode == "direct":
        raw = _as_list(raw_values)
        return [
            Point(x=x, y=to_number(raw[index]) if index < len(raw) else None)
            for index, x in enumerate(date_axis)
        ]
    # truncate
    raw = _as_list(raw_values)
    return [Point(x=x, y=to_number(v)) for x, v in zip(date_axis, raw)]


def align_payload(
    payload: Dict[str, Any],
    fields: Sequence[str],
    *,
    mode: str = "pad",
    dates_key: str = "dates",
) -> Dict[str, List[Point]]:
    """Align several fields of one response to its own date axis."""

    date_axis = normalise_dates(payload.get(dates_key))
    return {name: align(date_axis, payload.get(name), mode) for name in fields}


__all__ = [
    "ALIGN_MODES",
    "Point",
    "align",
    "align_payload",
    "date_only",
    "left_pad",
    "normalise_dates",
    "to_number",
]

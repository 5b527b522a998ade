"""Label formatting for chart axes and tooltips."""
from __future__ import annotations

from typing import Any, Tuple

from ..utils.dates import month_day
from .align import to_number

COMPACT_UNITS: Tuple[Tuple[float, str], ...] = (
    (1e12, "T"),
    (1e9, "B"),
    (1e6, "M"),
    (1e3, "K"),
)


def _trim_zeros(text: str) -> str:
    if "." not in text:
        return text
    return text.rstrip("0").rstrip(".")


def _scaled(number: float) -> str:
    digits = 2 if number < 10 else 1 if number < 100 else 0
    return _trim_zeros(f"{number:.{digits}f}")


def format_short(value: Any) -> str:
    """Compact label such as ``1.5M`` or ``-2K``; empty for missing values."""

    number = to_number(value)
    if number is None:
        return ""
    if number == 0:
        return "0"
    sign = "-" if number < 0 else ""
    magnitude = abs(number)
    for unit, suffix in COMPACT_UNITS:
        if magnitude >= unit:
            return sign + _scaled(magnitude / unit) + suffix
    text = _scaled(magnitude)
    return "0" if text == "0" else sign + text


def format_fixed(value: Any, digits: int = 2) -> str:
    number = to_number(value)
    if number is None:
        return ""
    text = _trim_zeros(f"{number:.{digits}f}")
    return "0" if text in {"-0", ""} else text


def format_tooltip_value(value: Any) -> str:
    number = to_number(value)
    if number is None:
        return ""
    return f"{number:.4f}"


def format_date_tick(value: str) -> str:
    return month_day(value)


def format_tooltip_label(value: str) -> str:
    return f"Date: {value}"


TICK_FORMATTERS = {
    "short": format_short,
    "fixed": format_fixed,
}


def get_tick_formatter(name: str):
    try:
        return TICK_FORMATTERS[name]
    except KeyError:
        raise ValueError(f"Unknown tick formatter: {name}") from None


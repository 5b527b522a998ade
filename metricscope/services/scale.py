"""Y-axis domain and tick computation for the visible slice of a chart."""
from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Sequence, Tuple

import numpy as np

from .align import to_number
from .combine import column_values

DOMAIN_PADDING = 0.1
FALLBACK_DOMAIN: Tuple[float, float] = (0.0, 1.0)
NICE_MULTIPLIERS: Tuple[float, ...] = (1.0, 2.0, 2.5, 5.0)
ZERO_SNAP = 1e-12
FLOAT_MAX = sys.float_info.max


@dataclass(slots=True, frozen=True)
class AxisScale:
    domain: Tuple[float, float]
    ticks: List[float]

    def as_dict(self) -> dict[str, object]:
        return {"domain": list(self.domain), "ticks": list(self.ticks)}


def _finite_array(values: Iterable[Any]) -> np.ndarray:
    numeric = [to_number(value) for value in values]
    array = np.asarray([np.nan if value is None else value for value in numeric], dtype=float)
    return array[np.isfinite(array)]


def compute_domain(values: Iterable[Any], padding: float = DOMAIN_PADDING) -> Tuple[float, float]:
    """Return a padded ``(min, max)`` over the finite values.

    No finite values gives ``(0, 1)``. A constant series is widened by one
    unit on each side before the padding is applied.
    """

    finite = _finite_array(values)
    if finite.size == 0:
        return FALLBACK_DOMAIN
    lo = float(finite.min())
    hi = float(finite.max())
    if lo == hi:
        lo -= 1.0
        hi += 1.0
        if lo == hi:
            # One unit is below the float resolution at this magnitude.
            lo, hi = _expand_degenerate(lo, hi)
    pad = (hi - lo) * padding
    return _clamp(lo - pad), _clamp(hi + pad)


def compute_domain_multi(
    rows: Sequence[Mapping[str, Any]],
    keys: Sequence[str],
    padding: float = DOMAIN_PADDING,
) -> Tuple[float, float]:
    return compute_domain(column_values(rows, keys), padding)


def _clamp(value: float) -> float:
    return min(max(value, -FLOAT_MAX), FLOAT_MAX)


def _expand_degenerate(lo: float, hi: float) -> Tuple[float, float]:
    if not (math.isfinite(lo) and math.isfinite(hi)):
        return FALLBACK_DOMAIN
    if lo == hi:
        pad = abs(lo) * 0.1 if lo != 0 else 1.0
        return _clamp(lo - pad), _clamp(hi + pad)
    return lo, hi


def _tick_count(lo: float, hi: float, step: float) -> int:
    return math.ceil(hi / step) - math.floor(lo / step) + 1


def nice_step(lo: float, hi: float, desired_count: int = 5) -> float:
    """Pick the ``{1, 2, 2.5, 5} x 10^k`` step whose tick count is closest to desired.

    Ties go to the earlier multiplier. Raises ``ValueError`` when the span
    is not a finite positive number.
    """

    desired_count = max(1, int(desired_count))
    raw_step = (hi - lo) / desired_count
    if not (math.isfinite(raw_step) and raw_step > 0):
        raise ValueError(f"Cannot derive a tick step for [{lo}, {hi}]")
    magnitude = 10.0 ** math.floor(math.log10(raw_step))
    if magnitude == 0:
        raise ValueError(f"Tick step for [{lo}, {hi}] underflows")
    best_step = NICE_MULTIPLIERS[0] * magnitude
    best_distance = math.inf
    for multiplier in NICE_MULTIPLIERS:
        candidate = multiplier * magnitude
        if not math.isfinite(candidate):
            break
        distance = abs(_tick_count(lo, hi, candidate) - desired_count)
        if distance < best_distance:
            best_step = candidate
            best_distance = distance
    return best_step


def nice_ticks(lo: float, hi: float, desired_count: int = 5) -> List[float]:
    """Evenly spaced round tick values inside ``[lo, hi]``."""

    lo, hi = _expand_degenerate(float(lo), float(hi))
    if lo > hi:
        lo, hi = hi, lo

    try:
        step = nice_step(lo, hi, desired_count)
    except ValueError:
        # Spans beyond float range or below its resolution get no inner ticks.
        return [lo, hi]
    first = math.ceil(lo / step)
    last = math.floor(hi / step)

    ticks: List[float] = []
    for index in range(first, last + 1):
        tick = index * step
        if abs(tick) < ZERO_SNAP:
            tick = 0.0
        ticks.append(tick)

    if not ticks:
        return [lo, hi]
    return ticks


def build_axis(values: Iterable[Any], desired_count: int = 5) -> AxisScale:
    domain = compute_domain(values)
    return AxisScale(domain=domain, ticks=nice_ticks(domain[0], domain[1], desired_count))

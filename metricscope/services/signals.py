"""Signal markers overlaid on a base metric series."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from ..meta import Meta
from ..utils.dates import normalise_dates
from .align import align, left_pad

SIGNAL_METRICS = tuple(Meta.METRIC_TO_COINS_KEY)


@dataclass(slots=True)
class SignalSeries:
    """Base metric points flagged with the signals that fired on each date."""

    metric: str
    points: List[Dict[str, Any]] = field(default_factory=list)
    names: List[str] = field(default_factory=list)

    @property
    def flagged(self) -> List[Dict[str, Any]]:
        return [point for point in self.points if point["signal"]]


def signal_names(payload: Mapping[str, Any]) -> List[str]:
    return [key for key in payload if key != "dates"]


def build_signal_series(
    coins_payload: Mapping[str, Any],
    signals_payload: Mapping[str, Any],
    metric: str,
) -> SignalSeries:
    """Combine a coins response and a signals response on the coins date axis.

    Signal arrays are left-padded like indicator arrays; a date is flagged
    only when a signal value is literally ``True``.
    """

    date_axis = normalise_dates(coins_payload.get("dates"))
    base = align(date_axis, coins_payload.get(Meta.coins_key(metric)), "pad")
    names = signal_names(signals_payload)
    total = len(date_axis)
    flags = {name: left_pad(signals_payload.get(name), total) for name in names}

    points: List[Dict[str, Any]] = []
    for index, point in enumerate(base):
        triggered = [name for name in names if flags[name][index] is True]
        points.append(
            {
                "x": point.x,
                "y": point.y,
                "signal": bool(triggered),
                "signals": triggered,
            }
        )
    return SignalSeries(metric=metric, points=points, names=names)

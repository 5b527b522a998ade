"""Chart payload assembly: align, combine, window and scale one response."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..utils.logging import get_logger
from .align import align_payload
from .combine import Row, combine_by_x, combine_positional
from .formatting import (
    format_date_tick,
    format_tooltip_label,
    format_tooltip_value,
    get_tick_formatter,
)
from .scale import compute_domain_multi, nice_ticks
from .signals import build_signal_series
from .window import ZoomState

LOGGER = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class PanelSpec:
    """One y-axis worth of lines sharing a domain."""

    key: str
    title: str
    fields: Tuple[str, ...]
    formatter: str = "fixed"
    optional: bool = False


@dataclass(slots=True, frozen=True)
class ChartLayout:
    kind: str
    panels: Tuple[PanelSpec, ...]
    mode: str = "pad"
    positional: bool = False
    aliases: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()


CHART_LAYOUTS: Dict[str, ChartLayout] = {
    "coins": ChartLayout(
        kind="coins",
        mode="direct",
        panels=(
            PanelSpec("volume", "Volume", ("volume",)),
            PanelSpec("marketCap", "Market cap", ("marketCap",)),
            PanelSpec("tokenTurnover", "Token turnover", ("tokenTurnover",)),
            PanelSpec("price", "Price", ("price",)),
        ),
    ),
    "coin-indicators": ChartLayout(
        kind="coin-indicators",
        panels=(
            PanelSpec("ema14", "EMA14", ("ema14",)),
            PanelSpec("macd", "MACD", ("macd",)),
            PanelSpec("price", "Price", ("price",), optional=True),
        ),
    ),
    "volume-indicators": ChartLayout(
        kind="volume-indicators",
        panels=(
            PanelSpec("ema", "EMA 7 / 14 / 21", ("ema7", "ema14", "ema21")),
            PanelSpec("macd", "MACD / Sigma / Histogram", ("macd", "sigma", "histogram")),
            PanelSpec("rsi14", "RSI 14", ("rsi14",)),
            PanelSpec("roc14", "ROC 14", ("roc14",), optional=True),
            PanelSpec("zscore14", "Z-score 14", ("zscore14",), optional=True),
        ),
    ),
    "mcap-indicators": ChartLayout(
        kind="mcap-indicators",
        mode="direct",
        panels=(
            PanelSpec("ema", "EMA 21 / 50", ("ema21", "ema50")),
            PanelSpec("roc21", "ROC 21", ("roc21",)),
        ),
    ),
    "token-flows": ChartLayout(
        kind="token-flows",
        positional=True,
        panels=(
            PanelSpec("flows", "Token flows", ("inflows", "outflows", "netflows"), formatter="short"),
        ),
        aliases=(
            ("dates", ("dates", "x")),
            ("inflows", ("inflows", "in")),
            ("outflows", ("outflows", "out")),
            ("netflows", ("netflows", "net")),
        ),
    ),
}

SIGNALS_KIND = "signals"
CHART_KINDS: Tuple[str, ...] = tuple(CHART_LAYOUTS) + (SIGNALS_KIND,)


def _first_present(payload: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def _resolve_aliases(layout: ChartLayout, payload: Mapping[str, Any]) -> Dict[str, Any]:
    resolved = dict(payload)
    for name, keys in layout.aliases:
        resolved[name] = _first_present(payload, keys)
    return resolved


def _panel_present(spec: PanelSpec, payload: Mapping[str, Any]) -> bool:
    if not spec.optional:
        return True
    return any(payload.get(name) is not None for name in spec.fields)


def _build_panel(
    spec: PanelSpec,
    rows: List[Row],
    zoom: ZoomState,
    tick_count: int,
    length: int,
) -> Dict[str, Any]:
    visible = zoom.resolve_visible_range(length).slice(rows)
    domain = compute_domain_multi(visible, spec.fields)
    ticks = nice_ticks(domain[0], domain[1], tick_count)
    formatter = get_tick_formatter(spec.formatter)
    return {
        "key": spec.key,
        "title": spec.title,
        "fields": list(spec.fields),
        "rows": visible,
        "x_labels": [format_date_tick(row["x"]) for row in visible],
        "tooltips": [
            {
                "label": format_tooltip_label(row["x"]),
                "values": {name: format_tooltip_value(row.get(name)) for name in spec.fields},
            }
            for row in visible
        ],
        "domain": [domain[0], domain[1]],
        "ticks": ticks,
        "tick_labels": [formatter(tick) for tick in ticks],
    }


def _layout_rows(layout: ChartLayout, payload: Mapping[str, Any]) -> List[Tuple[PanelSpec, List[Row]]]:
    resolved = _resolve_aliases(layout, payload)
    panels: List[Tuple[PanelSpec, List[Row]]] = []
    for spec in layout.panels:
        if not _panel_present(spec, resolved):
            continue
        if layout.positional:
            rows = combine_positional(
                resolved.get("dates"),
                {name: resolved.get(name) for name in spec.fields},
            )
        else:
            rows = combine_by_x(align_payload(resolved, spec.fields, mode=layout.mode))
        panels.append((spec, rows))
    return panels


def _chart_rows(
    kind: str,
    payload: Mapping[str, Any],
    metric: str,
) -> Tuple[List[Tuple[PanelSpec, List[Row]]], Dict[str, Any]]:
    if kind == SIGNALS_KIND:
        coins = payload.get("coins") if isinstance(payload.get("coins"), Mapping) else {}
        signals = payload.get("signals") if isinstance(payload.get("signals"), Mapping) else {}
        series = build_signal_series(coins, signals, metric)
        spec = PanelSpec(metric, f"{metric} signals", ("y",))
        return [(spec, series.points)], {"metric": metric, "signal_names": series.names}

    layout = CHART_LAYOUTS.get(kind)
    if layout is None:
        raise ValueError(f"Unsupported chart kind: {kind}")
    return _layout_rows(layout, payload), {}


def _rows_length(panel_rows: Sequence[Tuple[PanelSpec, List[Row]]]) -> int:
    return max((len(rows) for _, rows in panel_rows), default=0)


def build_chart(
    kind: str,
    payload: Mapping[str, Any],
    zoom: Optional[ZoomState] = None,
    *,
    tick_count: int = 5,
    metric: str = "volume",
) -> Dict[str, Any]:
    """Turn one data-source response into windowed, scaled chart panels.

    For ``signals`` the payload carries the coins response under ``coins``
    and the signals response under ``signals``.
    """

    zoom = zoom or ZoomState()
    panel_rows, extra = _chart_rows(kind, payload, metric)
    length = _rows_length(panel_rows)
    visible_range = zoom.resolve_visible_range(length)
    panels = [_build_panel(spec, rows, zoom, tick_count, length) for spec, rows in panel_rows]

    LOGGER.debug(
        "Built chart payload",
        extra={"kind": kind, "length": length, "panels": len(panels)},
    )

    chart: Dict[str, Any] = {
        "kind": kind,
        "requested_count": zoom.requested_count,
        "length": length,
        "range": visible_range.as_dict() if length else None,
        "panels": panels,
    }
    chart.update(extra)
    return chart


def reference_length(kind: str, payload: Mapping[str, Any], metric: str = "volume") -> int:
    """Number of chart rows the zoom window is resolved against.

    Token flow arrays may be shorter than their date axis, so the length
    is taken from the combined rows rather than from ``dates``.
    """

    panel_rows, _ = _chart_rows(kind, payload, metric)
    return _rows_length(panel_rows)

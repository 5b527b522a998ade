"""Service layer exports for the chart backend."""

from .align import Point, align, align_payload, left_pad, to_number
from .charts import CHART_KINDS, CHART_LAYOUTS, build_chart, reference_length
from .combine import column_values, combine_by_x, combine_positional
from .formatting import (
    format_date_tick,
    format_fixed,
    format_short,
    format_tooltip_label,
    format_tooltip_value,
)
from .scale import AxisScale, build_axis, compute_domain, compute_domain_multi, nice_ticks
from .session import ChartSession
from .signals import SignalSeries, build_signal_series
from .window import PRESET_PERIODS, PresetSelection, Range, ZoomState

__all__ = [
    "AxisScale",
    "CHART_KINDS",
    "CHART_LAYOUTS",
    "ChartSession",
    "PRESET_PERIODS",
    "Point",
    "PresetSelection",
    "Range",
    "SignalSeries",
    "ZoomState",
    "align",
    "align_payload",
    "build_axis",
    "build_chart",
    "build_signal_series",
    "column_values",
    "combine_by_x",
    "combine_positional",
    "compute_domain",
    "compute_domain_multi",
    "format_date_tick",
    "format_fixed",
    "format_short",
    "format_tooltip_label",
    "format_tooltip_value",
    "left_pad",
    "nice_ticks",
    "reference_length",
    "to_number",
]

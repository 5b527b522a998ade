"""Command line interface for inspecting chart payloads."""
from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from .config import get_settings
from .io.source import DataSourceError, MetricsSourceClient, UnknownTokenError
from .meta import Meta
from .services import CHART_KINDS, PRESET_PERIODS
from .services.session import load_chart
from .utils.logging import configure_logging, get_logger

configure_logging()
LOGGER = get_logger(__name__)


def panel_frame(panel: Dict[str, Any]) -> pd.DataFrame:
    """Visible rows of one panel as a date-indexed frame."""

    columns = ["x", *panel.get("fields", [])]
    frame = pd.DataFrame(panel.get("rows", []), columns=columns)
    frame = frame.rename(columns={"x": "date"}).set_index("date")
    return frame


def chart_frame(chart: Dict[str, Any]) -> pd.DataFrame:
    """Join every panel of a chart on the date index."""

    frames = [panel_frame(panel) for panel in chart.get("panels", [])]
    if not frames:
        return pd.DataFrame()
    frame = frames[0]
    for other in frames[1:]:
        frame = frame.join(other.loc[:, ~other.columns.isin(frame.columns)], how="outer")
    return frame.sort_index()


def cmd_chart(
    kind: str,
    coin_id: int,
    count: int,
    days: Optional[int],
    metric: str,
    csv_path: Optional[Path],
    as_json: bool,
) -> int:
    try:
        chart = asyncio.run(
            load_chart(
                MetricsSourceClient(),
                kind,
                coin_id,
                count=count,
                days=days,
                metric=metric,
                tick_count=get_settings().chart.tick_count,
            )
        )
    except (DataSourceError, UnknownTokenError) as exc:
        LOGGER.error("Failed to load %s for %s: %s", kind, coin_id, exc)
        return 1

    if as_json:
        print(json.dumps(chart, ensure_ascii=False, indent=2))
        return 0

    frame = chart_frame(chart)
    if csv_path is not None:
        csv_path.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(csv_path)
        LOGGER.info("Wrote %s rows for %s %s to %s", len(frame), kind, coin_id, csv_path.as_posix())
        return 0

    print(frame.to_string())
    for panel in chart.get("panels", []):
        print(f"{panel['title']}: domain={panel['domain']} ticks={', '.join(panel['tick_labels'])}")
    return 0


def cmd_presets() -> int:
    settings = get_settings()
    periods: List[int] = list(settings.chart.preset_periods or PRESET_PERIODS)
    print("Periods:", ", ".join(str(days) for days in periods))
    tokens = pd.DataFrame(
        [{"id": token.id, "label": token.label, "address": token.address} for token in Meta.iter_tokens()]
    )
    print(tokens.to_string(index=False))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Metrics chart CLI")
    sub = parser.add_subparsers(dest="command")

    chart = sub.add_parser("chart")
    chart.add_argument("kind", choices=CHART_KINDS)
    chart.add_argument("coin_id", type=int, nargs="?", default=settings.chart.default_coin_id)
    chart.add_argument("--count", type=int, default=settings.chart.default_count)
    chart.add_argument("--days", type=int, default=None)
    chart.add_argument("--metric", default="volume", choices=tuple(Meta.METRIC_TO_COINS_KEY))
    chart.add_argument("--csv", type=Path, default=None)
    chart.add_argument("--json", action="store_true")

    sub.add_parser("presets")

    args = parser.parse_args(argv)

    if args.command == "chart":
        return cmd_chart(args.kind, args.coin_id, args.count, args.days, args.metric, args.csv, args.json)
    if args.command == "presets":
        return cmd_presets()
    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""Merging of aligned series into date-keyed rows for multi-line charts."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Sequence

from ..utils.dates import normalise_dates
from .align import Point, align, to_number

Row = Dict[str, Any]


def combine_by_x(series_by_name: Mapping[str, Sequence[Point]]) -> List[Row]:
    """Outer-join named series on ``x``.

    A date present in only one series still produces a row; the other fields
    are simply absent from it. Rows come back sorted by ``x`` as strings,
    which is chronological for ISO dates.
    """

    rows: Dict[str, Row] = {}
    for name, points in series_by_name.items():
        if isinstance(points, (str, bytes)) or not isinstance(points, Sequence):
            continue
        for point in points:
            row = rows.get(point.x)
            if row is None:
                row = {"x": point.x}
                rows[point.x] = row
            row[name] = point.y
    return [rows[key] for key in sorted(rows)]


def combine_positional(dates: Sequence[Any], fields: Mapping[str, Any]) -> List[Row]:
    """Build rows index by index from parallel arrays of unequal length.

    Each series is first cut to the dates it has; row ``i`` takes its ``x``
    from the first series that reaches index ``i``.
    """

    date_axis = normalise_dates(dates)
    aligned = {name: align(date_axis, values, "truncate") for name, values in fields.items()}
    length = max((len(points) for points in aligned.values()), default=0)

    rows: List[Row] = []
    for index in range(length):
        x = next(
            (points[index].x for points in aligned.values() if index < len(points)),
            None,
        )
        row: Row = {"x": x}
        for name, points in aligned.items():
            row[name] = points[index].y if index < len(points) else None
        rows.append(row)
    return rows


def column_values(rows: Iterable[Mapping[str, Any]], keys: Sequence[str]) -> List[float | None]:
    """Flatten the numeric values of ``keys`` across ``rows``."""

    values: List[float | None] = []
    for row in rows:
        for key in keys:
            values.append(to_number(row.get(key)))
    return values

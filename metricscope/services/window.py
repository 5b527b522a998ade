"""Zoom window state: requested lookback, preset periods and explicit ranges."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple, TypeVar

from ..utils.logging import get_logger

LOGGER = get_logger(__name__)

PRESET_PERIODS: Tuple[int, ...] = (7, 14, 30, 60, 90, 180)
DEFAULT_REQUESTED_COUNT = 60

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class Range:
    """Inclusive index range into the chronological data."""

    start: int
    end: int

    def fits(self, length: int) -> bool:
        return 0 <= self.start <= self.end < length

    def slice(self, items: Sequence[T]) -> List[T]:
        if not items:
            return []
        return list(items[self.start : self.end + 1])

    def as_dict(self) -> Dict[str, int]:
        return {"start": self.start, "end": self.end}


def tail_range(length: int, count: int) -> Range:
    """Range covering the last ``count`` points, or all of them if fewer exist."""

    return Range(start=max(0, length - min(count, length)), end=max(0, length - 1))


@dataclass(slots=True, frozen=True)
class ZoomState:
    """Per-chart zoom selection.

    ``requested_count`` is the lookback asked from the data source and the
    default visible window. ``explicit_range`` overrides it while it still
    fits the data. ``pending_days`` marks a preset waiting for a larger fetch.
    """

    requested_count: int = DEFAULT_REQUESTED_COUNT
    explicit_range: Optional[Range] = None
    pending_days: Optional[int] = None

    def __post_init__(self) -> None:
        if self.requested_count < 1:
            raise ValueError("requested_count must be at least 1")

    def resolve_visible_range(self, length: int) -> Range:
        length = max(0, int(length))
        explicit = self.explicit_range
        if explicit is not None:
            if explicit.fits(length):
                return explicit
            # Stale ranges from a differently sized dataset are dropped, not clamped.
            LOGGER.debug(
                "Discarding stale explicit range",
                extra={"range": explicit.as_dict(), "length": length},
            )
        return tail_range(length, self.requested_count)

    def visible(self, items: Sequence[T]) -> List[T]:
        return self.resolve_visible_range(len(items)).slice(items)

    def select_preset(self, days: int, current_length: int) -> "PresetSelection":
        """Apply a preset period against the data currently loaded.

        Periods longer than ``requested_count`` need a larger backing window:
        the returned selection asks for a refetch and keeps a provisional
        range over the current data until :meth:`finalize` runs.
        """

        days = int(days)
        if days < 1:
            raise ValueError("days must be at least 1")
        current_length = max(0, int(current_length))
        provisional = tail_range(current_length, days) if current_length else None

        if days > self.requested_count:
            state = ZoomState(
                requested_count=days,
                explicit_range=provisional,
                pending_days=days,
            )
            LOGGER.debug(
                "Preset requires a larger window",
                extra={"days": days, "previous_count": self.requested_count},
            )
            return PresetSelection(state=state, refetch=True)

        state = replace(self, explicit_range=provisional, pending_days=None)
        return PresetSelection(state=state, refetch=False)

    def finalize(self, length: int) -> "ZoomState":
        """Settle a pending preset once the larger dataset has arrived."""

        if self.pending_days is None:
            return self
        length = max(0, int(length))
        explicit = tail_range(length, self.pending_days) if length else None
        return replace(self, explicit_range=explicit, pending_days=None)

    def with_range(self, start: int, end: int) -> "ZoomState":
        return replace(self, explicit_range=Range(int(start), int(end)), pending_days=None)

    def reset(self) -> "ZoomState":
        return replace(self, explicit_range=None, pending_days=None)


@dataclass(slots=True, frozen=True)
class PresetSelection:
    state: ZoomState
    refetch: bool

    @property
    def requested_count(self) -> int:
        return self.state.requested_count

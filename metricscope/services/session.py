"""Per-chart session state and stale-response handling."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Protocol, Tuple

from ..utils.logging import get_logger
from .charts import build_chart, reference_length
from .window import ZoomState

LOGGER = get_logger(__name__)

Loader = Callable[[Hashable, ZoomState], Awaitable[Dict[str, Any]]]


@dataclass(slots=True)
class ChartSession:
    """State owned by a single chart instance.

    A response is applied only while the selection it was issued for is
    still selected: among loads for the current selection the last one to
    complete wins, and a slow answer for a superseded entity is dropped.
    """

    selection: Optional[Hashable] = None
    zoom: ZoomState = field(default_factory=ZoomState)
    payload: Optional[Dict[str, Any]] = None
    loading: bool = False
    error: Optional[str] = None
    _pending: int = 0

    def select(self, selection: Hashable) -> None:
        if selection != self.selection:
            self.selection = selection
            self.zoom = self.zoom.reset()
            self.payload = None

    async def load(self, selection: Hashable, loader: Loader) -> Optional[Dict[str, Any]]:
        self.select(selection)
        self._pending += 1
        self.loading = True
        self.error = None
        zoom = self.zoom

        try:
            result = await loader(selection, zoom)
        except Exception as exc:
            self._finish()
            if selection != self.selection:
                LOGGER.debug("Ignoring failure of superseded load", extra={"selection": selection})
                return None
            self.error = str(exc) or exc.__class__.__name__
            raise

        self._finish()
        if selection != self.selection:
            LOGGER.debug(
                "Discarding stale response",
                extra={"selection": selection, "current": self.selection},
            )
            return None

        self.payload = result
        return result

    def apply_preset(self, days: int, length: int) -> bool:
        """Update the zoom for a preset period; ``True`` when a refetch is needed."""

        selection = self.zoom.select_preset(days, length)
        self.zoom = selection.state
        return selection.refetch

    def settle(self, length: int) -> None:
        self.zoom = self.zoom.finalize(length)

    def set_range(self, start: int, end: int) -> None:
        self.zoom = self.zoom.with_range(start, end)

    def _finish(self) -> None:
        self._pending = max(0, self._pending - 1)
        self.loading = self._pending > 0


class ChartSource(Protocol):
    async def fetch_chart_source(
        self, kind: str, coin_id: int, count: int, *, metric: str = "volume"
    ) -> Dict[str, Any]: ...


async def load_chart(
    source: ChartSource,
    kind: str,
    coin_id: int,
    *,
    count: int,
    days: Optional[int] = None,
    bounds: Optional[Tuple[int, int]] = None,
    metric: str = "volume",
    tick_count: int = 5,
) -> Dict[str, Any]:
    """Fetch, apply the zoom selection and build one chart.

    A preset longer than ``count`` triggers a second, larger fetch; the
    window is settled against the length of that second response.
    """

    session = ChartSession(zoom=ZoomState(requested_count=count))

    async def loader(selection: Hashable, zoom: ZoomState) -> Dict[str, Any]:
        return await source.fetch_chart_source(
            kind, int(selection), zoom.requested_count, metric=metric
        )

    raw = await session.load(coin_id, loader)
    if days is not None and session.apply_preset(days, reference_length(kind, raw, metric)):
        LOGGER.info(
            "Refetching %s for %s with count=%s",
            kind,
            coin_id,
            session.zoom.requested_count,
        )
        raw = await session.load(coin_id, loader)
        session.settle(reference_length(kind, raw, metric))
    if bounds is not None:
        session.set_range(*bounds)

    return build_chart(kind, raw, session.zoom, tick_count=tick_count, metric=metric)

"""FastAPI app that serves windowed, scaled chart payloads for the dashboard."""
from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import get_settings
from ..io.source import DataSourceError, MetricsSourceClient, UnknownTokenError
from ..meta import Meta
from ..services import (
    CHART_KINDS,
    PRESET_PERIODS,
    ZoomState,
    build_chart,
    reference_length,
)
from ..services.session import load_chart
from ..services.signals import SIGNAL_METRICS
from ..utils.logging import get_logger
from ..version import APP_VERSION
from .dto import PresetsResponse, RenderRequest, TokenInfo

LOGGER = get_logger(__name__)

app = FastAPI(title="Metrics Chart API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_source_client() -> MetricsSourceClient:
    return MetricsSourceClient(get_settings().source)


def _check_kind(kind: str, metric: str) -> None:
    if kind not in CHART_KINDS:
        raise HTTPException(status_code=404, detail=f"Unknown chart kind: {kind}")
    if kind == "signals" and metric not in SIGNAL_METRICS:
        raise HTTPException(status_code=400, detail=f"Unsupported signal metric: {metric}")


def _explicit_range(start: Optional[int], end: Optional[int]) -> Optional[tuple[int, int]]:
    if start is None and end is None:
        return None
    if start is None or end is None:
        raise HTTPException(status_code=400, detail="start and end must be given together")
    if start > end:
        raise HTTPException(status_code=400, detail="start must not exceed end")
    return start, end


@app.get("/charts/{kind}/{coin_id}")
async def chart_endpoint(
    kind: str,
    coin_id: int,
    count: int | None = Query(None, ge=1, description="Lookback requested from the source"),
    days: int | None = Query(None, ge=1, description="Preset period to zoom to"),
    start: int | None = Query(None, ge=0, description="Explicit range start index"),
    end: int | None = Query(None, ge=0, description="Explicit range end index"),
    metric: str = Query("volume", description="Signal metric for the signals chart"),
    ticks: int | None = Query(None, ge=2, le=20, description="Desired tick count"),
) -> JSONResponse:
    _check_kind(kind, metric)
    settings = get_settings().chart
    bounds = _explicit_range(start, end)

    try:
        chart = await load_chart(
            get_source_client(),
            kind,
            coin_id,
            count=count or settings.default_count,
            days=days,
            bounds=bounds,
            metric=metric,
            tick_count=ticks or settings.tick_count,
        )
    except UnknownTokenError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except DataSourceError as exc:
        LOGGER.warning("Chart %s for %s unavailable: %s", kind, coin_id, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    chart["coin_id"] = coin_id
    chart["label"] = Meta.token_label(coin_id)
    return JSONResponse(chart)


@app.post("/charts/{kind}/render")
async def render_endpoint(kind: str, request: RenderRequest) -> JSONResponse:
    _check_kind(kind, request.metric)
    bounds = _explicit_range(request.start, request.end)
    zoom = ZoomState(requested_count=request.count)
    refetch = False

    try:
        if request.days is not None:
            length = reference_length(kind, request.payload, request.metric)
            selection = zoom.select_preset(request.days, length)
            refetch = selection.refetch
            # Nothing larger can be loaded here; settle on the posted data.
            zoom = selection.state.finalize(length)
        if bounds is not None:
            zoom = zoom.with_range(*bounds)
        chart = build_chart(
            kind,
            request.payload,
            zoom,
            tick_count=request.ticks,
            metric=request.metric,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    chart["refetch_required"] = refetch
    return JSONResponse(chart)


@app.get("/presets")
async def presets_endpoint() -> JSONResponse:
    settings = get_settings()
    periods = list(settings.chart.preset_periods or PRESET_PERIODS)
    tokens = [
        TokenInfo(id=token.id, label=token.label, has_flows=bool(token.address))
        for token in Meta.iter_tokens()
    ]
    body = PresetsResponse(
        periods=periods,
        default_count=settings.chart.default_count,
        default_coin_id=settings.chart.default_coin_id,
        tokens=tokens,
        chart_kinds=list(CHART_KINDS),
    )
    return JSONResponse(body.model_dump())


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/version")
async def version() -> dict[str, str]:
    return {"version": APP_VERSION}

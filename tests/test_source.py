"""Tests for the metrics service client using an in-memory transport."""
from __future__ import annotations

import asyncio

import httpx
import pytest

from metricscope.config import SourceSettings
from metricscope.io.source import (
    DataSourceError,
    InvalidPayloadError,
    MetricsSourceClient,
    UnknownTokenError,
)

SETTINGS = SourceSettings(base_url="http://metrics.test", max_attempts=3, backoff_seconds=0.0)
DATES = ["2024-01-01T00:00:00.000Z", "2024-01-02T00:00:00.000Z"]


def _client(handler) -> MetricsSourceClient:
    return MetricsSourceClient(SETTINGS, transport=httpx.MockTransport(handler))


def test_coins_request_path_and_count() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"dates": DATES, "volume": [1, 2]})

    data = asyncio.run(_client(handler).coins(22691, 30))

    assert data["volume"] == [1, 2]
    assert seen[0].url.path == "/coins/22691"
    assert seen[0].url.params["count"] == "30"


@pytest.mark.parametrize(
    "method, args, path",
    [
        ("coin_indicators", (5,), "/indicators/5"),
        ("volume_indicators", (5,), "/indicators/volume/5"),
        ("mcap_indicators", (5,), "/indicators/mcap/5"),
        ("signals", ("mcap", 5), "/signals/mcap/5"),
    ],
)
def test_endpoint_paths(method, args, path) -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"dates": DATES})

    asyncio.run(getattr(_client(handler), method)(*args))

    assert seen[0].url.path == path
    assert "count" not in seen[0].url.params


def test_transport_errors_are_retried() -> None:
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) < 3:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"dates": DATES})

    data = asyncio.run(_client(handler).coins(1))

    assert data["dates"] == DATES
    assert len(attempts) == 3


def test_retries_exhausted_raise_data_source_error() -> None:
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DataSourceError):
        asyncio.run(_client(handler).coins(1))
    assert len(attempts) == SETTINGS.max_attempts


def test_http_error_status_is_not_retried() -> None:
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        return httpx.Response(500, json={"error": "boom"})

    with pytest.raises(DataSourceError) as excinfo:
        asyncio.run(_client(handler).coins(1))
    assert excinfo.value.status_code == 500
    assert len(attempts) == 1


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"volume": [1, 2]}),
        httpx.Response(200, json=[1, 2, 3]),
        httpx.Response(200, text="not json"),
    ],
)
def test_malformed_payloads_are_rejected(response) -> None:
    with pytest.raises(InvalidPayloadError):
        asyncio.run(_client(lambda request: response).coins(1))


def test_token_flows_use_configured_address() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"x": ["2024-01-01"], "in": [1], "out": [2], "net": [-1]})

    data = asyncio.run(_client(handler).token_flows(7083, 30))

    assert data["net"] == [-1]
    assert seen[0].url.path == "/token/flows"
    assert seen[0].url.params["address"] == "0x1f9840a85d5af5bf1d1762f925bdaddc4201f984"
    assert seen[0].url.params["count"] == "30"


def test_token_flows_without_date_axis_are_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"in": [1], "out": [2], "net": [-1]})

    with pytest.raises(InvalidPayloadError):
        asyncio.run(_client(handler).token_flows(7083, 30))


def test_token_without_address_is_unknown() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(UnknownTokenError):
        asyncio.run(_client(handler).token_flows(38462, 30))


def test_signals_bundle_fetches_both_responses() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.startswith("/signals/"):
            return httpx.Response(200, json={"dates": DATES, "spike": [True, False]})
        return httpx.Response(200, json={"dates": DATES, "volume": [1, 2]})

    bundle = asyncio.run(_client(handler).fetch_chart_source("signals", 9, 2, metric="volume"))

    assert bundle["coins"]["volume"] == [1, 2]
    assert bundle["signals"]["spike"] == [True, False]


def test_signals_bundle_requires_volume() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"dates": DATES})

    with pytest.raises(InvalidPayloadError):
        asyncio.run(_client(handler).signals_bundle("volume", 9))


def test_unknown_chart_kind() -> None:
    with pytest.raises(ValueError):
        asyncio.run(_client(lambda request: httpx.Response(200)).fetch_chart_source("candles", 1, 10))

"""Async client for the local market metrics HTTP service.

The service answers JSON objects with a ``dates`` array and parallel value
arrays. This module only transports and sanity-checks those objects; all
shaping for the charts happens in :mod:`metricscope.services`.
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, Mapping, Optional

import httpx

from ..config import SourceSettings, get_settings
from ..meta import Meta
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)

USER_AGENT = "metricscope-dashboard"


class DataSourceError(RuntimeError):
    """The metrics service could not be reached or answered with an error."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidPayloadError(DataSourceError):
    """The metrics service answered, but not with the expected JSON shape."""


class UnknownTokenError(LookupError):
    """No contract address is configured for the requested coin id."""


class MetricsSourceClient:
    """Thin wrapper over :class:`httpx.AsyncClient` with retry on transport errors."""

    def __init__(
        self,
        settings: SourceSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or get_settings().source
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=self.settings.timeout,
            headers={"User-Agent": USER_AGENT},
            transport=self._transport,
        )

    async def fetch_json(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        dates_keys: tuple[str, ...] = ("dates",),
    ) -> Dict[str, Any]:
        """GET ``path`` and return the decoded object.

        Transport failures are retried with exponential backoff. HTTP error
        statuses are not retried.
        """

        query = {key: value for key, value in (params or {}).items() if value is not None}
        max_attempts = self.settings.max_attempts
        delay = self.settings.backoff_seconds
        attempt = 0
        response: httpx.Response | None = None

        while attempt < max_attempts:
            attempt += 1
            try:
                async with self._client() as client:
                    response = await client.get(path, params=query)
                break
            except httpx.RequestError as exc:
                if attempt >= max_attempts:
                    LOGGER.warning("Metrics source error after retries: %s", exc)
                    raise DataSourceError(f"Request to {path} failed: {exc}") from exc
                LOGGER.warning(
                    "Metrics source request failed (%s), retrying (attempt %s/%s)",
                    exc,
                    attempt,
                    max_attempts,
                )
                await asyncio.sleep(delay)
                delay = min(delay * 2, 5.0)

        assert response is not None
        if response.status_code >= 400:
            LOGGER.warning("HTTP %s from metrics source for %s", response.status_code, path)
            raise DataSourceError(
                f"HTTP {response.status_code} for {path}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise InvalidPayloadError(f"Response for {path} is not JSON") from exc

        if not isinstance(data, dict):
            raise InvalidPayloadError(f"Unexpected response format for {path}")
        if dates_keys and not any(data.get(key) is not None for key in dates_keys):
            raise InvalidPayloadError(f"Response for {path} has no {'/'.join(dates_keys)} field")
        return data

    async def coins(self, coin_id: int, count: int | None = None) -> Dict[str, Any]:
        return await self.fetch_json(f"/coins/{coin_id}", {"count": count})

    async def coin_indicators(self, coin_id: int, count: int | None = None) -> Dict[str, Any]:
        return await self.fetch_json(f"/indicators/{coin_id}", {"count": count})

    async def volume_indicators(self, coin_id: int, count: int | None = None) -> Dict[str, Any]:
        return await self.fetch_json(f"/indicators/volume/{coin_id}", {"count": count})

    async def mcap_indicators(self, coin_id: int, count: int | None = None) -> Dict[str, Any]:
        return await self.fetch_json(f"/indicators/mcap/{coin_id}", {"count": count})

    async def signals(self, metric: str, coin_id: int, count: int | None = None) -> Dict[str, Any]:
        return await self.fetch_json(f"/signals/{metric}/{coin_id}", {"count": count})

    async def token_flows(self, coin_id: int, count: int) -> Dict[str, Any]:
        address = Meta.token_address(coin_id)
        if not address:
            raise UnknownTokenError(f"No token address configured for coin {coin_id}")
        return await self.fetch_json(
            "/token/flows",
            {"address": address, "count": count},
            dates_keys=("dates", "x"),
        )

    async def signals_bundle(self, metric: str, coin_id: int, count: int | None = None) -> Dict[str, Any]:
        """Fetch the coins and signals responses concurrently."""

        coins, signals = await asyncio.gather(
            self.coins(coin_id, count),
            self.signals(metric, coin_id, count),
        )
        if coins.get("volume") is None:
            raise InvalidPayloadError(f"Coins response for {coin_id} has no volume field")
        return {"coins": coins, "signals": signals}

    async def fetch_chart_source(
        self,
        kind: str,
        coin_id: int,
        count: int,
        *,
        metric: str = "volume",
    ) -> Dict[str, Any]:
        """Fetch the raw response(s) a chart kind is built from."""

        if kind == "coins":
            return await self.coins(coin_id, count)
        if kind == "coin-indicators":
            return await self.coin_indicators(coin_id, count)
        if kind == "volume-indicators":
            return await self.volume_indicators(coin_id, count)
        if kind == "mcap-indicators":
            return await self.mcap_indicators(coin_id, count)
        if kind == "token-flows":
            return await self.token_flows(coin_id, count)
        if kind == "signals":
            return await self.signals_bundle(metric, coin_id, count)
        raise ValueError(f"Unsupported chart kind: {kind}")

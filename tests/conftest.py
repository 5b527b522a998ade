from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pandas as pd
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def daily_dates(length: int, start: str = "2024-01-01") -> List[str]:
    return pd.date_range(start, periods=length, freq="D").strftime("%Y-%m-%dT00:00:00.000Z").tolist()


def coins_payload(length: int) -> Dict[str, Any]:
    return {
        "dates": daily_dates(length),
        "volume": [float(100 + index) for index in range(length)],
        "marketCap": [float(1_000_000 + index * 1_000) for index in range(length)],
        "tokenTurnover": [0.01 * (index + 1) for index in range(length)],
        "price": [1.0 + index / 10 for index in range(length)],
    }


class FakeSource:
    """Stand-in for :class:`MetricsSourceClient` that records requested counts."""

    def __init__(
        self,
        length: Optional[int] = None,
        error: Optional[Exception] = None,
        builder: Callable[[int], Dict[str, Any]] = coins_payload,
    ) -> None:
        self.length = length
        self.error = error
        self.builder = builder
        self.calls: List[Dict[str, Any]] = []

    async def fetch_chart_source(self, kind: str, coin_id: int, count: int, *, metric: str = "volume") -> Dict[str, Any]:
        self.calls.append({"kind": kind, "coin_id": coin_id, "count": count, "metric": metric})
        if self.error is not None:
            raise self.error
        payload = self.builder(self.length if self.length is not None else count)
        if kind == "signals":
            return {"coins": payload, "signals": {"dates": payload["dates"], "spike": [True] * len(payload["dates"])}}
        return payload

    @property
    def counts(self) -> List[int]:
        return [call["count"] for call in self.calls]


@pytest.fixture()
def fake_source_factory() -> Callable[..., FakeSource]:
    return FakeSource


@pytest.fixture()
def make_coins_payload() -> Callable[[int], Dict[str, Any]]:
    return coins_payload

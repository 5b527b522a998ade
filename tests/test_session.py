"""Tests for chart session state and stale-response handling."""
from __future__ import annotations

import asyncio

import pytest

from metricscope.io.source import DataSourceError
from metricscope.services.session import ChartSession, load_chart
from metricscope.services.window import Range, ZoomState


def test_response_for_superseded_selection_is_dropped() -> None:
    session = ChartSession()
    gate = asyncio.Event()

    async def loader(selection, zoom):
        if selection == 1:
            await gate.wait()
        return {"coin": selection}

    async def scenario():
        slow = asyncio.create_task(session.load(1, loader))
        await asyncio.sleep(0)
        fast = await session.load(2, loader)
        gate.set()
        stale = await slow
        return fast, stale

    fast, stale = asyncio.run(scenario())

    assert fast == {"coin": 2}
    assert stale is None
    assert session.selection == 2
    assert session.payload == {"coin": 2}
    assert session.loading is False


def test_last_completed_load_for_current_selection_wins() -> None:
    session = ChartSession()
    gate = asyncio.Event()
    issued = []

    async def loader(selection, zoom):
        issued.append(selection)
        order = len(issued)
        if order == 1:
            await gate.wait()
        return {"order": order}

    async def scenario():
        first = asyncio.create_task(session.load(7, loader))
        await asyncio.sleep(0)
        await session.load(7, loader)
        assert session.loading is True
        gate.set()
        await first

    asyncio.run(scenario())

    assert session.payload == {"order": 1}
    assert session.loading is False


def test_failed_load_records_error_for_current_selection() -> None:
    session = ChartSession()

    async def loader(selection, zoom):
        raise DataSourceError("metrics service down")

    with pytest.raises(DataSourceError):
        asyncio.run(session.load(3, loader))

    assert session.error == "metrics service down"
    assert session.loading is False


def test_failure_of_superseded_load_is_ignored() -> None:
    session = ChartSession()
    gate = asyncio.Event()

    async def loader(selection, zoom):
        if selection == 1:
            await gate.wait()
            raise DataSourceError("late failure")
        return {"coin": selection}

    async def scenario():
        slow = asyncio.create_task(session.load(1, loader))
        await asyncio.sleep(0)
        await session.load(2, loader)
        gate.set()
        return await slow

    assert asyncio.run(scenario()) is None
    assert session.error is None
    assert session.payload == {"coin": 2}


def test_selecting_new_entity_resets_zoom_but_keeps_count() -> None:
    session = ChartSession(zoom=ZoomState(requested_count=30, explicit_range=Range(0, 5)))
    session.select(1)
    session.payload = {"coin": 1}
    session.set_range(2, 4)

    session.select(2)

    assert session.zoom == ZoomState(requested_count=30)
    assert session.payload is None


def test_preset_refetch_then_settle() -> None:
    session = ChartSession(zoom=ZoomState(requested_count=60))
    assert session.apply_preset(90, 60) is True
    assert session.zoom.requested_count == 90
    session.settle(120)
    assert session.zoom.explicit_range == Range(30, 119)
    assert session.zoom.pending_days is None


def test_load_chart_refetches_for_longer_preset(fake_source_factory) -> None:
    source = fake_source_factory(length=120)
    chart = asyncio.run(load_chart(source, "coins", 22691, count=60, days=90))

    assert source.counts == [60, 90]
    assert chart["requested_count"] == 90
    assert chart["range"] == {"start": 30, "end": 119}
    assert len(chart["panels"][0]["rows"]) == 90


def test_load_chart_without_refetch(fake_source_factory) -> None:
    source = fake_source_factory(length=120)
    chart = asyncio.run(load_chart(source, "coins", 22691, count=60, days=30))

    assert source.counts == [60]
    assert chart["range"] == {"start": 90, "end": 119}


def test_load_chart_explicit_bounds(fake_source_factory) -> None:
    source = fake_source_factory()
    chart = asyncio.run(load_chart(source, "coins", 22691, count=20, bounds=(0, 9)))

    assert source.counts == [20]
    assert chart["range"] == {"start": 0, "end": 9}
    assert chart["panels"][0]["rows"][0]["x"] == "2024-01-01"


def test_load_chart_propagates_source_errors(fake_source_factory) -> None:
    source = fake_source_factory(error=DataSourceError("boom", status_code=503))
    with pytest.raises(DataSourceError):
        asyncio.run(load_chart(source, "coins", 22691, count=20))


def test_load_chart_token_flow_preset_with_short_arrays(fake_source_factory) -> None:
    def flows(length):
        dates = [f"2024-03-{day:02d}" for day in range(1, length + 1)]
        return {"x": dates, "in": [10.0] * (length - 2), "out": [4.0] * (length - 2), "net": [6.0] * (length - 2)}

    source = fake_source_factory(length=12, builder=flows)
    chart = asyncio.run(load_chart(source, "token-flows", 7083, count=60, days=7))

    assert source.counts == [60]
    assert chart["length"] == 10
    assert chart["range"] == {"start": 3, "end": 9}
    assert len(chart["panels"][0]["rows"]) == 7

"""Tests for the best-effort log sink."""

import asyncio
import threading

import pytest

from tooldeck.session.logsink import LogSink


@pytest.mark.asyncio
async def test_drain_delivers_in_order():
    sink = LogSink().bind()
    assert sink.send("one")
    assert sink.send("two")
    sink.close()

    lines = []
    await sink.drain(lines.append)
    assert lines == ["one", "two"]


@pytest.mark.asyncio
async def test_full_sink_drops_without_blocking():
    sink = LogSink(maxsize=2).bind()
    assert sink.send("a")
    assert sink.send("b")
    assert not sink.send("c")
    assert sink.dropped == 1


@pytest.mark.asyncio
async def test_closed_sink_drops():
    sink = LogSink().bind()
    sink.close()
    assert sink.closed
    assert not sink.send("late")
    assert sink.dropped == 1


def test_unbound_sink_drops():
    sink = LogSink()
    assert not sink.send("nobody listening")
    assert sink.dropped == 1


@pytest.mark.asyncio
async def test_close_on_full_sink_still_stops_consumer():
    sink = LogSink(maxsize=1).bind()
    sink.send("a")
    sink.close()

    lines = []
    await sink.drain(lines.append)
    assert lines == []
    assert sink.dropped == 1


@pytest.mark.asyncio
async def test_send_from_another_thread():
    sink = LogSink().bind()
    worker = threading.Thread(target=lambda: sink.send("from worker"))
    worker.start()
    worker.join()
    await asyncio.sleep(0)
    sink.close()

    lines = []
    await sink.drain(lines.append)
    assert lines == ["from worker"]

# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Tests for the @log_method decorator."""

from collections.abc import AsyncGenerator
from typing import Any

import pytest

from tandem.provider.base import Completed, Fragment, TextResult
from tandem.telemetry import log_method


class MemorySink:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any] | None]] = []

    def log(self, event: str, data: dict[str, Any] | None = None) -> None:
        self.events.append((event, data))


class FakeAdapter:
    """Adapter-shaped class exercising both decorated method kinds."""

    def __init__(self, telemetry: MemorySink | None = None) -> None:
        self._telemetry = telemetry

    @log_method(before=True, after=True)
    async def generate(self, prompt: str) -> AsyncGenerator[Any, None]:
        yield Fragment("hello ")
        yield Fragment("world")
        yield Completed(TextResult("hello world"))

    @log_method(after=True)
    async def snapshot(self) -> bytes:
        return b"state-blob"

    @log_method(after=True, event="sandbox.stop")
    async def stop(self) -> None:
        pass

    @log_method(before=True, after=True)
    async def generate_error(self, prompt: str) -> AsyncGenerator[Any, None]:
        yield Fragment("partial")
        raise RuntimeError("boom")


async def test_generator_logs_before_and_after() -> None:
    sink = MemorySink()
    items = [i async for i in FakeAdapter(sink).generate("hi")]
    assert len(items) == 3
    assert sink.events[0] == ("generate", {"prompt": "hi"})
    assert sink.events[1] == ("generate.result", {"prompt": "hi", "result": "hello world"})


async def test_coroutine_result_is_base64_for_bytes() -> None:
    sink = MemorySink()
    assert await FakeAdapter(sink).snapshot() == b"state-blob"
    assert sink.events == [("snapshot.result", {"result": "c3RhdGUtYmxvYg=="})]


async def test_custom_event_name_and_none_result() -> None:
    sink = MemorySink()
    await FakeAdapter(sink).stop()
    assert sink.events == [("sandbox.stop.result", {})]


async def test_no_sink_still_works() -> None:
    adapter = FakeAdapter(None)
    assert len([i async for i in adapter.generate("hi")]) == 3
    assert await adapter.snapshot() == b"state-blob"


async def test_error_in_generator_logs_partial() -> None:
    sink = MemorySink()
    with pytest.raises(RuntimeError, match="boom"):
        async for _ in FakeAdapter(sink).generate_error("hi"):
            pass
    assert [name for name, _ in sink.events] == ["generate_error", "generate_error.result"]
    assert sink.events[1][1] == {"prompt": "hi", "result": "partial"}


class BrokenSink:
    def log(self, event: str, data: dict[str, Any] | None = None) -> None:
        raise RuntimeError("event log is not open")


async def test_failing_sink_is_contained() -> None:
    adapter = FakeAdapter(BrokenSink())  # type: ignore[arg-type]
    assert len([i async for i in adapter.generate("hi")]) == 3
    assert await adapter.snapshot() == b"state-blob"

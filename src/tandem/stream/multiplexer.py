# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Streaming multiplexer — relays provider fragments to the caller.

Providers push StreamEvents; the multiplexer forwards each Fragment to an
UpdateSink in arrival order and returns the Completed result. The public
on_update/on_error callback pair is one sink (CallbackSink); RecordingSink
keeps the ordered sequence instead.
"""

import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

from tandem.errors import ProviderError
from tandem.provider.base import Completed, Fragment, GenerationResult, StreamEvent

_log = logging.getLogger(__name__)

UpdateCallback = Callable[[str], None | Awaitable[None]]
ErrorCallback = Callable[[str], None | Awaitable[None]]


@dataclass(frozen=True)
class StreamCallbacks:
    """Optional caller hooks. A missing hook drops its events."""

    on_update: UpdateCallback | None = None
    on_error: ErrorCallback | None = None


class UpdateSink(Protocol):
    async def emit(self, text: str) -> None: ...

    async def fail(self, message: str) -> None: ...


class CallbackSink:
    """Adapts StreamCallbacks to the sink protocol.

    An exception from on_update is reported once through on_error and then
    forgotten; delivery of later fragments continues. An exception from
    on_error itself is logged.
    """

    def __init__(self, callbacks: StreamCallbacks | None = None) -> None:
        self._callbacks = callbacks or StreamCallbacks()

    async def emit(self, text: str) -> None:
        hook = self._callbacks.on_update
        if hook is None:
            return
        try:
            await _call(hook, text)
        except Exception as exc:
            await self.fail(f"on_update callback raised {type(exc).__name__}: {exc}")

    async def fail(self, message: str) -> None:
        hook = self._callbacks.on_error
        if hook is None:
            _log.warning("stream error with no on_error callback: %s", message)
            return
        try:
            await _call(hook, message)
        except Exception:
            _log.exception("on_error callback raised while reporting: %s", message)


@dataclass
class RecordingSink:
    """Keeps every fragment and error, in order."""

    updates: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    async def emit(self, text: str) -> None:
        self.updates.append(text)

    async def fail(self, message: str) -> None:
        self.errors.append(message)


class StreamMultiplexer:
    """Relays one provider stream into one sink."""

    def __init__(self, sink: UpdateSink | None = None) -> None:
        self._sink = sink or CallbackSink()

    async def relay(self, events: AsyncIterator[StreamEvent]) -> GenerationResult:
        """Forward fragments, return the terminal result.

        Provider errors propagate unchanged. A stream that ends without a
        Completed event raises ProviderError.
        """
        result: GenerationResult | None = None
        async for event in events:
            if isinstance(event, Fragment):
                await self._sink.emit(event.text)
            elif isinstance(event, Completed):
                if result is not None:
                    raise ProviderError("provider stream completed twice")
                result = event.result
        if result is None:
            raise ProviderError("provider stream ended without a result")
        return result


async def _call(hook: Callable[[str], object], text: str) -> None:
    ret = hook(text)
    if inspect.isawaitable(ret):
        await ret

# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Method-level telemetry decorator for adapters and lifecycle operations."""

import base64
import functools
import inspect
from collections.abc import AsyncGenerator, Callable
from typing import Any, TypeVar

from tandem.telemetry.event_log import TelemetrySink, notify


def _bind_args(
    fn: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]
) -> dict[str, Any]:
    """Name positional + keyword args, minus self, in loggable form."""
    bound = inspect.signature(fn).bind(None, *args, **kwargs)
    bound.arguments.pop("self", None)
    return {k: _loggable(v) for k, v in bound.arguments.items()}


def _loggable(value: Any) -> Any:
    if isinstance(value, bytes):
        return base64.b64encode(value).decode()
    if isinstance(value, str | int | float | bool | type(None)):
        return value
    return str(value)


_F = TypeVar("_F", bound=Callable[..., Any])


def log_method(
    *,
    before: bool = False,
    after: bool = False,
    event: str | None = None,
) -> Callable[[_F], _F]:
    """Report calls to the instance's `_telemetry` sink.

    `before` logs `<event>` with the arguments, `after` logs
    `<event>.result`. For async generators the result is the concatenated
    text of everything yielded, logged even when the stream fails.
    """

    def decorator(fn: _F) -> _F:
        name = event or fn.__name__

        if inspect.isasyncgenfunction(fn):

            @functools.wraps(fn)
            async def gen_wrapper(
                self: Any, *args: Any, **kwargs: Any
            ) -> AsyncGenerator[Any, None]:
                sink: TelemetrySink | None = getattr(self, "_telemetry", None)
                call = _bind_args(fn, args, kwargs) if sink else {}
                if before:
                    notify(sink, name, call)
                parts: list[str] = []
                try:
                    async for item in fn(self, *args, **kwargs):
                        text = item if isinstance(item, str) else getattr(item, "text", None)
                        if isinstance(text, str):
                            parts.append(text)
                        yield item
                finally:
                    if after:
                        notify(sink, f"{name}.result", {**call, "result": "".join(parts)})

            return gen_wrapper  # type: ignore[return-value]

        @functools.wraps(fn)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            sink: TelemetrySink | None = getattr(self, "_telemetry", None)
            call = _bind_args(fn, args, kwargs) if sink else {}
            if before:
                notify(sink, name, call)
            result = await fn(self, *args, **kwargs)
            if sink and after:
                data = {**call}
                if result is not None:
                    data["result"] = _loggable(result)
                notify(sink, f"{name}.result", data)
            return result

        return wrapper  # type: ignore[return-value]

    return decorator

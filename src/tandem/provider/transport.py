# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Chat-completions model transport over HTTP."""

import json
import logging
from collections.abc import AsyncGenerator, Sequence
from typing import Any, Protocol, runtime_checkable

import httpx

from tandem.errors import ProviderError

_log = logging.getLogger(__name__)

Message = dict[str, str]

_DONE = ("[DONE]", "DONE")


@runtime_checkable
class ModelTransport(Protocol):
    """Opaque model call: messages in, text or text deltas out."""

    async def complete(self, messages: Sequence[Message]) -> str:
        """Return the full assistant reply."""
        ...

    def stream(self, messages: Sequence[Message]) -> AsyncGenerator[str, None]:
        """Yield assistant text deltas in arrival order."""
        ...

    async def aclose(self) -> None: ...


class ChatCompletionsTransport:
    """OpenAI-compatible `/chat/completions` client.

    HTTP and network errors surface as httpx exceptions; retry policy is the
    caller's business.
    """

    def __init__(
        self,
        *,
        model: str,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 120.0,
        max_tokens: int | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._model = model
        self._max_tokens = max_tokens
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
        )
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    @property
    def model(self) -> str:
        return self._model

    async def aclose(self) -> None:
        await self._client.aclose()

    async def complete(self, messages: Sequence[Message]) -> str:
        resp = await self._client.post(
            "/chat/completions",
            json=self._payload(messages, stream=False),
            headers=self._headers,
        )
        resp.raise_for_status()
        try:
            return resp.json()["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise ProviderError(f"malformed completion response: {exc}") from exc

    async def stream(self, messages: Sequence[Message]) -> AsyncGenerator[str, None]:
        payload = self._payload(messages, stream=True)
        async with self._client.stream(
            "POST", "/chat/completions", json=payload, headers=self._headers
        ) as resp:
            if resp.status_code >= 400:
                # Keep the error body readable on the raised exception.
                await resp.aread()
            resp.raise_for_status()
            async for line in resp.aiter_lines():
                if not line.startswith("data:"):
                    continue
                data = line[len("data:") :].strip()
                if data in _DONE:
                    return
                delta = _delta_text(data)
                if delta:
                    yield delta

    def _payload(self, messages: Sequence[Message], *, stream: bool) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self._model,
            "messages": list(messages),
            "stream": stream,
        }
        if self._max_tokens is not None:
            payload["max_tokens"] = self._max_tokens
        return payload


def _delta_text(data: str) -> str:
    """Text of one SSE chunk. Unparseable chunks are skipped."""
    try:
        obj = json.loads(data)
    except json.JSONDecodeError:
        _log.warning("skipping malformed stream chunk: %.80s", data)
        return ""
    parts: list[str] = []
    for choice in obj.get("choices") or []:
        content = (choice.get("delta") or {}).get("content")
        if isinstance(content, str):
            parts.append(content)
    return "".join(parts)

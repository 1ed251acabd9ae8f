# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""HTTP sandbox provider — talks to a REST sandbox control plane.

Endpoints (relative to `base_url`):

    POST   /sandboxes                  {"template", "workdir", "envVars"} -> {"sandboxID"}
    POST   /sandboxes/{id}/pause
    POST   /sandboxes/{id}/resume
    DELETE /sandboxes/{id}
    POST   /sandboxes/{id}/commands    {"cmd", "cwd", "envs"} -> NDJSON stream

Command output lines look like {"type": "stdout"|"stderr", "data": "..."}
and the stream ends with {"type": "exit", "exitCode": N}.
"""

import json
import logging
from collections.abc import AsyncGenerator, Mapping
from typing import Any

import httpx

from tandem.sandbox.base import (
    ExecEvent,
    SandboxConnectionError,
    SandboxError,
    SandboxNotFoundError,
)

_log = logging.getLogger(__name__)


class HttpSandboxProvider:
    """Sandbox control-plane client over httpx.

    Transport failures become SandboxConnectionError so callers can retry
    idempotent calls. A 404 becomes SandboxNotFoundError. Any other HTTP
    error is raised as httpx.HTTPStatusError.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        template: str = "base",
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._template = template
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
        )
        self._headers = {"X-API-Key": api_key}

    @property
    def name(self) -> str:
        return "http"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def provision(
        self, *, workdir: str, env: Mapping[str, str] | None = None
    ) -> str:
        body = {"template": self._template, "workdir": workdir, "envVars": dict(env or {})}
        resp = await self._request("POST", "/sandboxes", json=body)
        sandbox_id = resp.json().get("sandboxID")
        if not sandbox_id:
            raise SandboxError("control plane returned no sandbox id")
        return str(sandbox_id)

    async def pause(self, sandbox_id: str) -> None:
        await self._request("POST", f"/sandboxes/{sandbox_id}/pause", sandbox_id=sandbox_id)

    async def resume(self, sandbox_id: str) -> None:
        await self._request("POST", f"/sandboxes/{sandbox_id}/resume", sandbox_id=sandbox_id)

    async def kill(self, sandbox_id: str) -> None:
        await self._request("DELETE", f"/sandboxes/{sandbox_id}", sandbox_id=sandbox_id)

    async def exec(
        self,
        sandbox_id: str,
        command: str,
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> AsyncGenerator[ExecEvent, None]:
        body: dict[str, Any] = {"cmd": command, "envs": dict(env or {})}
        if cwd is not None:
            body["cwd"] = cwd
        url = f"/sandboxes/{sandbox_id}/commands"
        try:
            async with self._client.stream("POST", url, json=body, headers=self._headers) as resp:
                if resp.status_code >= 400:
                    await resp.aread()
                self._check(resp, sandbox_id)
                exited = False
                async for line in resp.aiter_lines():
                    ev = _parse_exec_line(line)
                    if ev is None:
                        continue
                    exited = exited or ev.kind == "exit"
                    yield ev
                if not exited:
                    raise SandboxConnectionError(
                        f"command stream for {sandbox_id} ended without exit status"
                    )
        except httpx.TransportError as exc:
            raise SandboxConnectionError(f"{type(exc).__name__}: {exc}") from exc

    async def _request(
        self,
        method: str,
        url: str,
        *,
        sandbox_id: str | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            resp = await self._client.request(method, url, json=json, headers=self._headers)
        except httpx.TransportError as exc:
            raise SandboxConnectionError(f"{type(exc).__name__}: {exc}") from exc
        self._check(resp, sandbox_id)
        return resp

    @staticmethod
    def _check(resp: httpx.Response, sandbox_id: str | None) -> None:
        if resp.status_code == 404 and sandbox_id is not None:
            raise SandboxNotFoundError(sandbox_id)
        resp.raise_for_status()


def _parse_exec_line(line: str) -> ExecEvent | None:
    line = line.strip()
    if not line:
        return None
    try:
        obj = json.loads(line)
    except json.JSONDecodeError:
        _log.warning("ignoring malformed command output line: %.80s", line)
        return None
    kind = obj.get("type")
    if kind in ("stdout", "stderr"):
        return ExecEvent(kind, str(obj.get("data", "")))
    if kind == "exit":
        return ExecEvent("exit", exit_code=int(obj.get("exitCode", -1)))
    return None

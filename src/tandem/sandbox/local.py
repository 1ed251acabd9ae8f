# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Local sandbox provider — one directory per sandbox, commands as subprocesses.

Pause freezes running commands with SIGSTOP and refuses new ones; resume
sends SIGCONT. Files survive pause/resume and are deleted on kill. Useful
for development and tests; it offers no isolation beyond the directory.
"""

import asyncio
import contextlib
import logging
import os
import shutil
import signal
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from uuid import uuid4

from tandem.sandbox.base import ExecEvent, SandboxError, SandboxNotFoundError

_log = logging.getLogger(__name__)

_CHUNK = 64 * 1024


@dataclass
class _Box:
    root: Path
    workdir: str
    env: dict[str, str] = field(default_factory=dict)
    paused: bool = False
    procs: set[asyncio.subprocess.Process] = field(default_factory=set)


class LocalSandboxProvider:
    """Sandboxes rooted under a host directory, keyed by sandbox id."""

    def __init__(self, root: Path) -> None:
        self._root = root
        self._boxes: dict[str, _Box] = {}

    @property
    def name(self) -> str:
        return "local"

    async def aclose(self) -> None:
        """Nothing pooled; sandboxes outlive the provider object."""

    def path_of(self, sandbox_id: str, path: str | None = None) -> Path:
        """Host path for a sandbox-relative absolute path."""
        base = self._root / sandbox_id
        if path is None:
            return base
        return base / path.lstrip("/")

    async def provision(
        self, *, workdir: str, env: Mapping[str, str] | None = None
    ) -> str:
        sandbox_id = uuid4().hex
        root = self.path_of(sandbox_id)
        self.path_of(sandbox_id, workdir).mkdir(parents=True, exist_ok=True)
        self._boxes[sandbox_id] = _Box(root=root, workdir=workdir, env=dict(env or {}))
        _log.debug("provisioned local sandbox %s at %s", sandbox_id, root)
        return sandbox_id

    async def pause(self, sandbox_id: str) -> None:
        box = self._box(sandbox_id)
        for proc in box.procs:
            self._signal(proc, signal.SIGSTOP)
        box.paused = True

    async def resume(self, sandbox_id: str) -> None:
        box = self._boxes.get(sandbox_id)
        if box is None:
            # A sandbox from an earlier process: adopt it if its files exist.
            root = self.path_of(sandbox_id)
            if not root.is_dir():
                raise SandboxNotFoundError(sandbox_id)
            box = _Box(root=root, workdir="/")
            self._boxes[sandbox_id] = box
        for proc in box.procs:
            self._signal(proc, signal.SIGCONT)
        box.paused = False

    async def kill(self, sandbox_id: str) -> None:
        box = self._boxes.pop(sandbox_id, None)
        root = self.path_of(sandbox_id)
        if box is None and not root.is_dir():
            raise SandboxNotFoundError(sandbox_id)
        if box is not None:
            for proc in box.procs:
                self._signal(proc, signal.SIGKILL)
        shutil.rmtree(root, ignore_errors=True)

    async def exec(
        self,
        sandbox_id: str,
        command: str,
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> AsyncGenerator[ExecEvent, None]:
        box = self._box(sandbox_id)
        if box.paused:
            raise SandboxError(f"sandbox {sandbox_id} is paused")
        proc = await asyncio.create_subprocess_shell(
            command,
            cwd=self.path_of(sandbox_id, cwd or box.workdir),
            env={**os.environ, **box.env, **(env or {})},
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=True,
        )
        box.procs.add(proc)
        # Both pipes feed one queue so lines come out in arrival order.
        queue: asyncio.Queue[ExecEvent | None] = asyncio.Queue()

        async def pump(stream: asyncio.StreamReader | None, kind: str) -> None:
            # Chunked reads: no line-length limit. Lines are decoded whole.
            assert stream is not None
            buf = b""
            try:
                while chunk := await stream.read(_CHUNK):
                    lines = (buf + chunk).split(b"\n")
                    buf = lines.pop()
                    for line in lines:
                        queue.put_nowait(ExecEvent(kind, (line + b"\n").decode(errors="replace")))  # type: ignore[arg-type]
                if buf:
                    queue.put_nowait(ExecEvent(kind, buf.decode(errors="replace")))  # type: ignore[arg-type]
            finally:
                queue.put_nowait(None)

        pumps = [
            asyncio.create_task(pump(proc.stdout, "stdout")),
            asyncio.create_task(pump(proc.stderr, "stderr")),
        ]
        try:
            open_pipes = len(pumps)
            while open_pipes:
                ev = await queue.get()
                if ev is None:
                    open_pipes -= 1
                    continue
                yield ev
            # Surface a pump failure instead of a truncated transcript.
            await asyncio.gather(*pumps)
            exit_code = await proc.wait()
            yield ExecEvent("exit", exit_code=exit_code)
        finally:
            for task in pumps:
                task.cancel()
            box.procs.discard(proc)
            if proc.returncode is None:
                self._signal(proc, signal.SIGKILL)

    def _box(self, sandbox_id: str) -> _Box:
        try:
            return self._boxes[sandbox_id]
        except KeyError:
            raise SandboxNotFoundError(sandbox_id) from None

    @staticmethod
    def _signal(proc: asyncio.subprocess.Process, sig: signal.Signals) -> None:
        # Commands run in their own session, so the group id is the pid.
        with contextlib.suppress(ProcessLookupError):
            os.killpg(proc.pid, sig)

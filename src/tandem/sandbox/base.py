# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Sandbox control plane protocol and the result types every backend shares."""

from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass
from typing import Literal, Protocol, runtime_checkable


class SandboxError(Exception):
    """Base class for control-plane failures."""


class SandboxNotFoundError(SandboxError):
    """The control plane does not know the sandbox id."""


class SandboxConnectionError(SandboxError):
    """Transient transport failure. Safe to retry idempotent calls."""


@dataclass(frozen=True)
class ExecEvent:
    """One event from a running command: an output line or the exit status."""

    kind: Literal["stdout", "stderr", "exit"]
    text: str = ""
    exit_code: int | None = None


@dataclass(frozen=True)
class CommandResult:
    """Collected output of a finished command."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


async def collect(events: AsyncGenerator[ExecEvent, None]) -> CommandResult:
    """Drain an exec stream into a CommandResult."""
    stdout: list[str] = []
    stderr: list[str] = []
    exit_code = -1
    async for ev in events:
        if ev.kind == "stdout":
            stdout.append(ev.text)
        elif ev.kind == "stderr":
            stderr.append(ev.text)
        else:
            exit_code = ev.exit_code if ev.exit_code is not None else -1
    return CommandResult(exit_code, "".join(stdout), "".join(stderr))


@runtime_checkable
class SandboxProvider(Protocol):
    """Remote, stateful, pausable execution environments.

    Implementations own the network plumbing. Callers own lifecycle
    bookkeeping: a provider never tracks which session a sandbox serves.
    """

    @property
    def name(self) -> str:
        """Backend identifier (e.g. "local", "http")."""
        ...

    async def provision(
        self, *, workdir: str, env: Mapping[str, str] | None = None
    ) -> str:
        """Create an empty sandbox and return its id."""
        ...

    async def pause(self, sandbox_id: str) -> None:
        """Freeze the sandbox, keeping files, env and suspended processes."""
        ...

    async def resume(self, sandbox_id: str) -> None:
        """Thaw a paused sandbox under the same id."""
        ...

    async def kill(self, sandbox_id: str) -> None:
        """Destroy the sandbox and everything in it."""
        ...

    def exec(
        self,
        sandbox_id: str,
        command: str,
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> AsyncGenerator[ExecEvent, None]:
        """Run a shell command, yielding output lines then one exit event."""
        ...

    async def aclose(self) -> None:
        """Release transport resources held by the provider."""
        ...

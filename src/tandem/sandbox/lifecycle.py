# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""State gate between sessions and the sandbox control plane."""

import asyncio
import logging
from typing import Any

from tandem.errors import UnsupportedOperationError
from tandem.sandbox.base import SandboxConnectionError, SandboxNotFoundError, SandboxProvider
from tandem.sandbox.model import SandboxHandle, SandboxState, SandboxStateError
from tandem.session.model import Session
from tandem.telemetry import TelemetrySink, notify

_log = logging.getLogger(__name__)


class SandboxLifecycleController:
    """Drives a session's sandbox through absent → active ⇄ paused → killed.

    Every transition calls the provider first and moves the handle only
    once the call has succeeded, so a failed pause leaves the handle active.
    Without a provider (adapters with no sandbox) ensure_active() is a no-op
    and the explicit operations raise UnsupportedOperationError.
    """

    def __init__(
        self,
        provider: SandboxProvider | None,
        *,
        resume_attempts: int = 3,
        retry_delay: float = 0.5,
        telemetry: TelemetrySink | None = None,
    ) -> None:
        self._provider = provider
        self._resume_attempts = max(1, resume_attempts)
        self._retry_delay = retry_delay
        self._telemetry = telemetry

    def require_support(self, operation: str) -> SandboxProvider:
        if self._provider is None:
            raise UnsupportedOperationError(
                f"{operation} is only supported for sandboxed agents such as codex"
            )
        return self._provider

    async def ensure_active(self, session: Session) -> bool:
        """Make the sandbox usable. Returns True if it was just provisioned."""
        if self._provider is None:
            return False
        handle = session.sandbox
        if handle.state is SandboxState.ABSENT:
            sandbox_id = await self._provider.provision(workdir=session.workdir)
            handle.activate(sandbox_id)
            self._emit("sandbox.provisioned", session)
            return True
        if handle.state is SandboxState.PAUSED:
            await self.resume(session)
        elif handle.state is SandboxState.KILLED:
            raise SandboxStateError(f"sandbox of session {session.id} was killed")
        return False

    async def pause(self, session: Session) -> None:
        """ACTIVE → PAUSED. No-op when already paused."""
        provider = self.require_support("pause")
        handle = session.sandbox
        if handle.state is SandboxState.PAUSED:
            return
        sandbox_id = _expect(handle, SandboxState.ACTIVE, "pause")
        await provider.pause(sandbox_id)
        handle.pause()
        self._emit("sandbox.paused", session)

    async def resume(self, session: Session) -> None:
        """PAUSED → ACTIVE. No-op when already active.

        Connection failures are retried: the control plane may have dropped
        its connections while the sandbox was paused.
        """
        provider = self.require_support("resume")
        handle = session.sandbox
        if handle.state is SandboxState.ACTIVE:
            return
        sandbox_id = _expect(handle, SandboxState.PAUSED, "resume")
        for attempt in range(self._resume_attempts):
            try:
                await provider.resume(sandbox_id)
                break
            except SandboxConnectionError as exc:
                if attempt + 1 >= self._resume_attempts:
                    raise
                delay = self._retry_delay * (2**attempt)
                _log.warning(
                    "resume of sandbox %s failed (%s), retrying in %.2fs",
                    sandbox_id,
                    exc,
                    delay,
                )
                await asyncio.sleep(delay)
        handle.resume()
        self._emit("sandbox.resumed", session)

    async def kill(self, session: Session) -> None:
        """ACTIVE/PAUSED → KILLED. Irreversible."""
        provider = self.require_support("kill")
        handle = session.sandbox
        if not handle.is_live or handle.sandbox_id is None:
            raise SandboxStateError(f"cannot kill a sandbox that is {handle.state.value}")
        try:
            await provider.kill(handle.sandbox_id)
        except SandboxNotFoundError:
            _log.warning("sandbox %s already gone; marking killed", handle.sandbox_id)
        handle.kill()
        self._emit("sandbox.killed", session)

    def _emit(self, event: str, session: Session) -> None:
        data: dict[str, Any] = {
            "session_id": session.id,
            "sandbox_id": session.sandbox.sandbox_id,
            "state": session.sandbox.state.value,
        }
        notify(self._telemetry, event, data)


def _expect(handle: SandboxHandle, state: SandboxState, operation: str) -> str:
    if handle.state is not state or handle.sandbox_id is None:
        raise SandboxStateError(f"cannot {operation} a sandbox that is {handle.state.value}")
    return handle.sandbox_id

# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Stateful fuzzer for the sandbox lifecycle controller.

Drives pause, resume, kill and ensure_active in random order against a
flaky control plane and checks that the handle never disagrees with the
control plane after any step. Gated behind --run-stress.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Mapping
from typing import Any

import pytest
from hypothesis import settings
from hypothesis import strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, rule

from tandem.errors import UnsupportedOperationError
from tandem.sandbox import (
    ExecEvent,
    SandboxConnectionError,
    SandboxStateError,
)
from tandem.sandbox.lifecycle import SandboxLifecycleController
from tandem.session import Session

pytestmark = pytest.mark.stress


# -- Fakes -----------------------------------------------------------------


class FlakyControlPlane:
    """Tracks remote sandbox state. The next call fails when `flaky` is set."""

    def __init__(self) -> None:
        self.remote: dict[str, str] = {}
        self.flaky = False
        self._counter = 0

    @property
    def name(self) -> str:
        return "flaky"

    def _trip(self) -> None:
        if self.flaky:
            self.flaky = False
            raise SandboxConnectionError("connection reset")

    async def provision(self, *, workdir: str, env: Mapping[str, str] | None = None) -> str:
        self._trip()
        self._counter += 1
        sid = f"sbx-{self._counter}"
        self.remote[sid] = "active"
        return sid

    async def pause(self, sandbox_id: str) -> None:
        self._trip()
        self.remote[sandbox_id] = "paused"

    async def resume(self, sandbox_id: str) -> None:
        self._trip()
        self.remote[sandbox_id] = "active"

    async def kill(self, sandbox_id: str) -> None:
        self._trip()
        del self.remote[sandbox_id]

    async def aclose(self) -> None:
        pass

    async def exec(
        self,
        sandbox_id: str,
        command: str,
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> AsyncGenerator[ExecEvent, None]:
        yield ExecEvent("exit", exit_code=0)


def _run(coro: Any) -> Any:
    # Hypothesis drives rules synchronously; each step gets its own loop.
    return asyncio.run(coro)


# -- State machine ---------------------------------------------------------


class LifecycleStateMachine(RuleBasedStateMachine):
    """Shadow model: the remote state of the session's current sandbox."""

    def __init__(self) -> None:
        super().__init__()
        self.plane = FlakyControlPlane()
        self.ctl = SandboxLifecycleController(self.plane, resume_attempts=2, retry_delay=0.0)
        self.session = Session(agent="codex")
        self.seen_ids: set[str] = set()

    def _call(self, op: str, flaky: bool) -> None:
        self.plane.flaky = flaky
        try:
            _run(getattr(self.ctl, op)(self.session))
        except (SandboxConnectionError, SandboxStateError, UnsupportedOperationError):
            pass
        finally:
            self.plane.flaky = False

    @rule(flaky=st.booleans())
    def ensure_active(self, flaky: bool) -> None:
        before = self.session.sandbox.sandbox_id
        self._call("ensure_active", flaky)
        sid = self.session.sandbox.sandbox_id
        if sid is not None and sid != before:
            assert sid not in self.seen_ids, f"sandbox id {sid} reused"
            self.seen_ids.add(sid)

    @rule(flaky=st.booleans())
    def pause(self, flaky: bool) -> None:
        self._call("pause", flaky)

    @rule(flaky=st.booleans())
    def resume(self, flaky: bool) -> None:
        self._call("resume", flaky)

    @rule(flaky=st.booleans())
    def kill(self, flaky: bool) -> None:
        self._call("kill", flaky)

    @rule()
    def replace_killed_session(self) -> None:
        if self.session.sandbox.state.value == "killed":
            self.session = Session(agent="codex")

    # -- Invariants --------------------------------------------------------

    @invariant()
    def handle_matches_control_plane(self) -> None:
        handle = self.session.sandbox
        state = handle.state.value
        if state in ("active", "paused"):
            assert handle.sandbox_id is not None
            assert self.plane.remote.get(handle.sandbox_id) == state
        elif state == "killed":
            assert handle.sandbox_id not in self.plane.remote
        else:
            assert handle.sandbox_id is None

    @invariant()
    def paused_at_only_when_paused(self) -> None:
        handle = self.session.sandbox
        assert (handle.paused_at is not None) == (handle.state.value == "paused")


TestLifecycleFuzz = LifecycleStateMachine.TestCase
TestLifecycleFuzz.settings = settings(
    max_examples=200,
    stateful_step_count=40,
    deadline=None,
)

# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Tests for the sandbox handle state machine."""

import pytest

from tandem.sandbox import SandboxHandle, SandboxState, SandboxStateError


def _active(sandbox_id: str = "sbx-1") -> SandboxHandle:
    h = SandboxHandle()
    h.activate(sandbox_id)
    return h


def test_defaults() -> None:
    h = SandboxHandle()
    assert h.state == SandboxState.ABSENT
    assert h.sandbox_id is None
    assert not h.is_live


def test_activate_binds_identity() -> None:
    h = _active("sbx-42")
    assert h.state == SandboxState.ACTIVE
    assert h.sandbox_id == "sbx-42"
    assert h.is_live


def test_pause_and_resume_keep_identity() -> None:
    h = _active("sbx-42")
    h.pause()
    assert h.state == SandboxState.PAUSED
    assert h.paused_at is not None
    h.resume()
    assert h.state == SandboxState.ACTIVE
    assert h.paused_at is None
    assert h.sandbox_id == "sbx-42"


@pytest.mark.parametrize("paused", [False, True])
def test_kill_from_live_states(paused: bool) -> None:
    h = _active()
    if paused:
        h.pause()
    h.kill()
    assert h.state == SandboxState.KILLED
    assert not h.is_live


def test_cannot_pause_absent() -> None:
    with pytest.raises(SandboxStateError):
        SandboxHandle().pause()


def test_cannot_kill_absent() -> None:
    with pytest.raises(SandboxStateError):
        SandboxHandle().kill()


def test_cannot_double_activate() -> None:
    h = _active()
    with pytest.raises(SandboxStateError):
        h.activate("other")
    assert h.sandbox_id == "sbx-1"


def test_cannot_resume_active() -> None:
    with pytest.raises(SandboxStateError):
        _active().resume()


@pytest.mark.parametrize("op", ["pause", "resume", "kill"])
def test_killed_is_terminal(op: str) -> None:
    h = _active()
    h.kill()
    with pytest.raises(SandboxStateError):
        getattr(h, op)()
    with pytest.raises(SandboxStateError):
        h.activate("again")
    assert h.state == SandboxState.KILLED

# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Sandbox handle and its lifecycle state machine."""

import enum
from dataclasses import dataclass

from tandem import now_iso


class SandboxState(enum.Enum):
    ABSENT = "absent"
    ACTIVE = "active"
    PAUSED = "paused"
    KILLED = "killed"


# Valid state transitions.
_TRANSITIONS: dict[SandboxState, frozenset[SandboxState]] = {
    SandboxState.ABSENT: frozenset({SandboxState.ACTIVE}),
    SandboxState.ACTIVE: frozenset({SandboxState.PAUSED, SandboxState.KILLED}),
    SandboxState.PAUSED: frozenset({SandboxState.ACTIVE, SandboxState.KILLED}),
    SandboxState.KILLED: frozenset(),
}


class SandboxStateError(Exception):
    """Raised on invalid sandbox state transition."""


@dataclass
class SandboxHandle:
    """Identity and lifecycle state of the sandbox behind one session.

    The handle only records state. Talking to the control plane is the
    lifecycle controller's job, which transitions the handle after the
    provider call has succeeded.
    """

    sandbox_id: str | None = None
    state: SandboxState = SandboxState.ABSENT
    paused_at: str | None = None

    def transition(self, target: SandboxState) -> None:
        """Transition to a new state. Raises SandboxStateError if invalid."""
        if target not in _TRANSITIONS[self.state]:
            raise SandboxStateError(f"{self.state.value} → {target.value}")
        self.paused_at = now_iso() if target == SandboxState.PAUSED else None
        self.state = target

    def activate(self, sandbox_id: str) -> None:
        """ABSENT → ACTIVE. Binds the provider-assigned identity."""
        self.transition(SandboxState.ACTIVE)
        self.sandbox_id = sandbox_id

    def pause(self) -> None:
        """ACTIVE → PAUSED."""
        self.transition(SandboxState.PAUSED)

    def resume(self) -> None:
        """PAUSED → ACTIVE. Identity is unchanged."""
        self.transition(SandboxState.ACTIVE)

    def kill(self) -> None:
        """ACTIVE/PAUSED → KILLED. Terminal."""
        self.transition(SandboxState.KILLED)

    @property
    def is_live(self) -> bool:
        """Whether a remote sandbox exists behind this handle."""
        return self.state in (SandboxState.ACTIVE, SandboxState.PAUSED)

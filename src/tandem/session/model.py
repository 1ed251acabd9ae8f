# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Session and conversation-turn data model."""

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from tandem import now_iso
from tandem.sandbox.model import SandboxHandle, SandboxState


class Role(enum.Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Turn:
    """One role-tagged message. Immutable once appended."""

    role: Role
    content: str

    @classmethod
    def coerce(cls, value: "Turn | Mapping[str, Any]") -> "Turn":
        """Accept a Turn or a {"role", "content"} mapping."""
        if isinstance(value, Turn):
            return value
        try:
            role = Role(value["role"])
        except (KeyError, ValueError) as exc:
            raise ValueError(f"invalid history turn: {value!r}") from exc
        return cls(role=role, content=str(value.get("content", "")))

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


def _new_session_id() -> str:
    return uuid4().hex


@dataclass
class Session:
    """A logical conversation bound to an optional sandbox.

    Knows nothing about providers. The registry owns it; the lifecycle
    controller mutates `sandbox`, the history reconciler mutates `history`.
    """

    id: str = field(default_factory=_new_session_id)
    agent: str = ""
    sandbox: SandboxHandle = field(default_factory=SandboxHandle)
    history: list[Turn] = field(default_factory=list)
    workdir: str = "/workspace"
    created_at: str = field(default_factory=now_iso)
    # Set once the adapter has prepared the sandbox (e.g. cloned the repo).
    prepared: bool = False

    @property
    def state(self) -> SandboxState:
        return self.sandbox.state

    def append(self, turn: Turn) -> None:
        self.history.append(turn)

# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Persistent session store backed by one JSON file per session."""

import contextlib
import json
import shutil
from pathlib import Path

from tandem.persistence import atomic_write
from tandem.sandbox.model import SandboxHandle, SandboxState
from tandem.session.model import Session, Turn

_SESSION_FILE = "session.json"


class SessionStore:
    """Thin I/O layer for session records. No in-memory cache."""

    def __init__(self, root: Path) -> None:
        self._root = root

    def session_dir(self, session_id: str) -> Path:
        """Return root/<session-id>/."""
        if not session_id or "/" in session_id or session_id.startswith("."):
            raise ValueError(f"invalid session id: {session_id!r}")
        return self._root / session_id

    def save(self, session: Session) -> None:
        """Serialize and atomically write session.json."""
        atomic_write(self.session_dir(session.id) / _SESSION_FILE, self._serialize(session))

    def load(self, session_id: str) -> Session:
        """Load one record. Raises FileNotFoundError if missing."""
        path = self.session_dir(session_id) / _SESSION_FILE
        return self._deserialize(path.read_bytes())

    def exists(self, session_id: str) -> bool:
        return (self.session_dir(session_id) / _SESSION_FILE).is_file()

    def delete(self, session_id: str) -> None:
        """Remove a record. No-op if it does not exist."""
        with contextlib.suppress(FileNotFoundError):
            shutil.rmtree(self.session_dir(session_id))

    def scan(self) -> list[Session]:
        """Load all records under root."""
        if not self._root.is_dir():
            return []
        return [
            self._deserialize(child.joinpath(_SESSION_FILE).read_bytes())
            for child in sorted(self._root.iterdir())
            if child.joinpath(_SESSION_FILE).is_file()
        ]

    @staticmethod
    def _serialize(session: Session) -> bytes:
        obj = {
            "id": session.id,
            "agent": session.agent,
            "workdir": session.workdir,
            "prepared": session.prepared,
            "created_at": session.created_at,
            "sandbox": {
                "id": session.sandbox.sandbox_id,
                "state": session.sandbox.state.value,
                "paused_at": session.sandbox.paused_at,
            },
            "history": [t.to_dict() for t in session.history],
        }
        return json.dumps(obj, indent=2).encode()

    @staticmethod
    def _deserialize(data: bytes) -> Session:
        obj = json.loads(data)
        box = obj["sandbox"]
        return Session(
            id=obj["id"],
            agent=obj["agent"],
            workdir=obj["workdir"],
            prepared=bool(obj.get("prepared", False)),
            created_at=obj["created_at"],
            sandbox=SandboxHandle(
                sandbox_id=box["id"],
                state=SandboxState(box["state"]),
                paused_at=box["paused_at"],
            ),
            history=[Turn.coerce(t) for t in obj["history"]],
        )

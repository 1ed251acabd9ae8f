# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Lifecycle telemetry: the observer protocol and a durable JSONL sink."""

import contextlib
import json
import logging
import os
from pathlib import Path
from types import TracebackType
from typing import Any, Protocol, runtime_checkable

from tandem import now_iso
from tandem.persistence import fsync_dir, full_write

_log = logging.getLogger(__name__)

# Entry keys owned by the log itself. Context cannot override them.
_RESERVED = ("ts", "event")


@runtime_checkable
class TelemetrySink(Protocol):
    """Pure observer of lifecycle events.

    Implementations may raise (a closed log, a full disk). Callers deliver
    through notify(), which keeps such failures out of the operation.
    """

    def log(self, event: str, data: dict[str, Any] | None = None) -> None: ...


def notify(sink: TelemetrySink | None, event: str, data: dict[str, Any] | None = None) -> None:
    """Deliver one event to an optional sink. Sink failures are logged."""
    if sink is None:
        return
    try:
        sink.log(event, data)
    except Exception:
        _log.exception("telemetry sink failed to record %s", event)


class EventLog:
    """Append-only JSONL event log, one entry per line.

    Every entry is fsynced before log() returns. The entry is staged in a
    sibling `.pending` file first, so an append interrupted by a crash is
    replayed by the next open().
    """

    def __init__(self, path: Path, context: dict[str, str] | None = None) -> None:
        self._path = path
        self._pending = path.with_suffix(".pending")
        self._context = {
            k: v for k, v in (context or {}).items() if k not in _RESERVED
        }
        self._fd: int | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._fd is not None

    def open(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._replay_pending()
        self._fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o644)
        fsync_dir(self._path.parent)

    def close(self) -> None:
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None

    def __enter__(self) -> "EventLog":
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def log(self, event: str, data: dict[str, Any] | None = None) -> None:
        """Append one event. Durable on return."""
        if self._fd is None:
            raise RuntimeError(f"event log {self._path} is not open")
        line = self._encode(event, data)
        self._stage(line)
        full_write(self._fd, line)
        os.fsync(self._fd)
        with contextlib.suppress(FileNotFoundError):
            os.unlink(self._pending)

    def _encode(self, event: str, data: dict[str, Any] | None) -> bytes:
        entry: dict[str, Any] = {**self._context, "ts": now_iso(), "event": event}
        if data is not None:
            entry["data"] = data
        return (json.dumps(entry, separators=(",", ":"), default=str) + "\n").encode()

    def _stage(self, line: bytes) -> None:
        fd = os.open(self._pending, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)
        try:
            full_write(fd, line)
            os.fsync(fd)
        finally:
            os.close(fd)

    def _replay_pending(self) -> None:
        """Finish an append that a crash interrupted, exactly once."""
        if not self._pending.exists():
            return
        staged = self._pending.read_bytes()
        existing = self._path.read_bytes() if self._path.exists() else b""
        intact = existing[: existing.rfind(b"\n") + 1]
        if intact != existing:
            _log.warning("dropping partial trailing entry in %s", self._path)
            self._path.write_bytes(intact)
        if staged and not intact.endswith(staged):
            with self._path.open("ab") as f:
                f.write(staged)
                f.flush()
                os.fsync(f.fileno())
        self._pending.unlink()


def read_log(path: Path) -> list[dict[str, Any]]:
    """Parse every well-formed entry of a log. Missing file reads as empty."""
    if not path.exists():
        return []
    entries: list[dict[str, Any]] = []
    for raw in path.read_text().splitlines():
        if not raw.strip():
            continue
        try:
            entries.append(json.loads(raw))
        except json.JSONDecodeError:
            _log.warning("skipping malformed entry in %s", path)
    return entries


__all__ = ["EventLog", "TelemetrySink", "notify", "read_log"]

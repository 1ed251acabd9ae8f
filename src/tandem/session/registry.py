# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Shared map from session id to session, with per-session call claims."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from tandem.errors import SessionBusyError, SessionNotFoundError
from tandem.session.model import Session
from tandem.session.store import SessionStore

_log = logging.getLogger(__name__)


class SessionRegistry:
    """Maps session ids to sessions, optionally backed by a SessionStore.

    One registry can be shared by several clients. Every mutation of the
    map runs under a single lock, so a lookup never observes a session that
    is half created or half dropped. The registry also tracks which sessions
    have a call in flight.
    """

    def __init__(self, store: SessionStore | None = None) -> None:
        self._store = store
        self._sessions: dict[str, Session] = {}
        self._busy: set[str] = set()
        self._lock = asyncio.Lock()

    @property
    def store(self) -> SessionStore | None:
        return self._store

    async def resolve_or_create(
        self,
        session_id: str | None = None,
        *,
        agent: str,
        workdir: str,
    ) -> Session:
        """Return the named session, or a fresh one when no id is given.

        A named session that is unknown here and in the store raises
        SessionNotFoundError.
        """
        async with self._lock:
            if session_id is not None:
                return self._lookup(session_id)
            session = Session(agent=agent, workdir=workdir)
            self._sessions[session.id] = session
            self._persist(session)
            _log.debug("created session %s (%s)", session.id, agent)
            return session

    async def get(self, session_id: str) -> Session:
        """Return a known session. Raises SessionNotFoundError."""
        async with self._lock:
            return self._lookup(session_id)

    async def contains(self, session_id: str) -> bool:
        async with self._lock:
            if session_id in self._sessions:
                return True
            return self._stored(session_id)

    async def save(self, session: Session) -> None:
        """Persist a session's current state. No-op without a store."""
        async with self._lock:
            self._persist(session)

    async def drop(self, session_id: str) -> None:
        """Forget a session here and in the store. No-op if unknown."""
        async with self._lock:
            self._sessions.pop(session_id, None)
            self._busy.discard(session_id)
            if self._store is not None:
                self._store.delete(session_id)

    @contextlib.asynccontextmanager
    async def claim(self, session_id: str) -> AsyncIterator[None]:
        """Hold a session for one call. Raises SessionBusyError if held."""
        async with self._lock:
            if session_id in self._busy:
                raise SessionBusyError(f"session {session_id} has a call in flight")
            self._busy.add(session_id)
        try:
            yield
        finally:
            async with self._lock:
                self._busy.discard(session_id)

    def is_busy(self, session_id: str) -> bool:
        return session_id in self._busy

    def __len__(self) -> int:
        return len(self._sessions)

    def _lookup(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is not None:
            return session
        if self._stored(session_id):
            assert self._store is not None
            session = self._store.load(session_id)
            self._sessions[session_id] = session
            _log.debug("restored session %s from store", session_id)
            return session
        raise SessionNotFoundError(f"unknown session: {session_id}")

    def _stored(self, session_id: str) -> bool:
        if self._store is None:
            return False
        try:
            return self._store.exists(session_id)
        except ValueError:
            # Not a valid record name, so never a stored session.
            return False

    def _persist(self, session: Session) -> None:
        if self._store is not None:
            self._store.save(session)

# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Agent client — composition root for sessions, sandboxes and streaming."""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any

from tandem.config import AgentConfig
from tandem.errors import AgentNotInitializedError, UnsupportedOperationError
from tandem.provider.base import (
    AgentAdapter,
    ExecutionResult,
    GenerationRequest,
    GenerationResult,
    Mode,
    PullRequest,
)
from tandem.provider.codex import stream_command
from tandem.provider.factory import create_adapter
from tandem.sandbox.lifecycle import SandboxLifecycleController
from tandem.session.history import HistoryInput, HistoryReconciler
from tandem.session.model import Session
from tandem.session.registry import SessionRegistry
from tandem.session.store import SessionStore
from tandem.stream.multiplexer import CallbackSink, StreamCallbacks, StreamMultiplexer
from tandem.telemetry import EventLog, TelemetrySink, notify

_log = logging.getLogger(__name__)


class AgentClient:
    """One consistent session contract over heterogeneous agent backends.

    Holds a pointer to at most one bound session. The registry is shared
    state and may be passed in so several clients see the same sessions.
    Every operation other than get_session() requires setup() first.
    """

    def __init__(
        self,
        adapter: AgentAdapter,
        *,
        registry: SessionRegistry | None = None,
        telemetry: TelemetrySink | None = None,
        workdir: str = "/workspace",
        resume_attempts: int = 3,
        retry_delay: float = 0.5,
    ) -> None:
        self._adapter = adapter
        self._registry = registry if registry is not None else SessionRegistry()
        self._telemetry = telemetry
        self._workdir = workdir
        caps = adapter.capabilities
        self._lifecycle = SandboxLifecycleController(
            adapter.sandbox_provider if caps.sandbox else None,
            resume_attempts=resume_attempts,
            retry_delay=retry_delay,
            telemetry=telemetry,
        )
        self._history = HistoryReconciler(caps)
        self._session_id: str | None = None
        self._ready = False
        self._owned_log: EventLog | None = None

    @classmethod
    async def create(cls, config: AgentConfig) -> AgentClient:
        """Build the configured adapter and run setup()."""
        log: EventLog | None = None
        if config.telemetry_path is not None:
            log = EventLog(config.telemetry_path, context={"agent": config.agent})
            log.open()
        registry = SessionRegistry(
            SessionStore(config.session_root) if config.session_root is not None else None
        )
        client = cls(
            create_adapter(config, telemetry=log),
            registry=registry,
            telemetry=log,
            workdir=config.sandbox.workdir,
            resume_attempts=config.sandbox.resume_attempts,
        )
        client._owned_log = log
        await client.setup()
        return client

    @property
    def adapter(self) -> AgentAdapter:
        return self._adapter

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def ready(self) -> bool:
        return self._ready

    async def setup(self) -> None:
        """Run the adapter's async initialization, then accept operations."""
        if self._ready:
            return
        await self._adapter.setup()
        self._ready = True

    async def close(self) -> None:
        await self._adapter.close()
        if self._owned_log is not None:
            self._owned_log.close()
        self._ready = False

    async def __aenter__(self) -> AgentClient:
        await self.setup()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # -- Generation -----------------------------------------------------------

    async def generate_code(
        self,
        prompt: str,
        mode: Mode | str = Mode.CODE,
        *,
        branch: str | None = None,
        history: HistoryInput | None = None,
        callbacks: StreamCallbacks | None = None,
    ) -> GenerationResult:
        """Run one generation on the bound session, creating it if needed.

        Fragments go to callbacks as they arrive; the result is returned
        either way. History is recorded only when the call succeeds.
        """
        self._require_ready()
        request = GenerationRequest(prompt=prompt, mode=mode, branch=branch, history=history)
        session = await self._bind_session()
        async with self._registry.claim(session.id):
            self._emit("generation.start", session, mode=request.mode.value)
            try:
                await self._activate(session)
                context = self._history.effective(session, request.history)
                mux = StreamMultiplexer(CallbackSink(callbacks))
                result = await mux.relay(
                    self._adapter.generate(request, context, session.sandbox, session.workdir)
                )
            except Exception as exc:
                self._emit("generation.failed", session, error=f"{type(exc).__name__}: {exc}")
                raise
            self._history.record(session, request.prompt, result.text)
            await self._registry.save(session)
            self._emit("generation.complete", session, turns=len(session.history))
        return result

    async def execute_command(
        self,
        command: str,
        *,
        callbacks: StreamCallbacks | None = None,
    ) -> ExecutionResult:
        """Run a shell command in the bound session's sandbox working directory."""
        provider = self._lifecycle.require_support("execute_command")
        self._require_ready()
        session = await self._bind_session()
        async with self._registry.claim(session.id):
            await self._activate(session)
            assert session.sandbox.sandbox_id is not None
            mux = StreamMultiplexer(CallbackSink(callbacks))
            result = await mux.relay(
                stream_command(provider, session.sandbox.sandbox_id, command, cwd=session.workdir)
            )
        assert isinstance(result, ExecutionResult)
        return result

    # -- Session binding ------------------------------------------------------

    async def set_session(self, session_id: str, *, validate: bool = False) -> None:
        """Bind the client to a session id.

        Existence is checked lazily by the next call unless validate=True,
        in which case an unknown id raises SessionNotFoundError now.
        """
        self._require_ready()
        if validate:
            await self._registry.get(session_id)
        self._session_id = session_id
        notify(self._telemetry, "session.bound", {"session_id": session_id})

    def get_session(self) -> str | None:
        return self._session_id

    # -- Sandbox lifecycle ----------------------------------------------------

    async def pause(self) -> None:
        self._lifecycle.require_support("pause")
        session = await self._current_session("pause")
        async with self._registry.claim(session.id):
            await self._lifecycle.pause(session)
            await self._registry.save(session)

    async def resume(self) -> None:
        self._lifecycle.require_support("resume")
        session = await self._current_session("resume")
        async with self._registry.claim(session.id):
            await self._lifecycle.resume(session)
            await self._registry.save(session)

    async def kill(self) -> None:
        """Destroy the sandbox and forget the session. Irreversible."""
        self._lifecycle.require_support("kill")
        session = await self._current_session("kill")
        async with self._registry.claim(session.id):
            await self._lifecycle.kill(session)
        await self._registry.drop(session.id)
        self._session_id = None
        _log.debug("killed session %s", session.id)

    # -- Git ------------------------------------------------------------------

    async def push_to_branch(self, branch: str | None = None) -> str:
        """Commit and push the latest working tree. Returns the commit sha."""
        self._require_git("push_to_branch")
        session = await self._current_session("push_to_branch")
        async with self._registry.claim(session.id):
            await self._activate(session)
            return await self._adapter.push_to_branch(session.sandbox, session.workdir, branch)

    async def create_pull_request(
        self,
        *,
        title: str | None = None,
        body: str | None = None,
    ) -> PullRequest:
        self._require_git("create_pull_request")
        session = await self._current_session("create_pull_request")
        async with self._registry.claim(session.id):
            await self._activate(session)
            return await self._adapter.create_pull_request(
                session.sandbox, session.workdir, title=title, body=body
            )

    # -- Private --------------------------------------------------------------

    def _require_ready(self) -> None:
        if not self._ready:
            raise AgentNotInitializedError("agent not initialized; await setup() first")

    def _require_git(self, operation: str) -> None:
        if not self._adapter.capabilities.git:
            raise UnsupportedOperationError(
                f"{operation} is only supported for the codex agent with a repository"
            )
        self._require_ready()

    async def _bind_session(self) -> Session:
        """Resolve the bound session or create one and bind it."""
        created = self._session_id is None
        session = await self._registry.resolve_or_create(
            self._session_id,
            agent=self._adapter.family.value,
            workdir=self._workdir,
        )
        if created:
            self._session_id = session.id
            self._emit("session.created", session)
        return session

    async def _activate(self, session: Session) -> None:
        """Make the sandbox active, then prepare it until preparation succeeds.

        A failed prepare() leaves the session unprepared, so the next call
        retries it instead of running in a half-set-up sandbox.
        """
        try:
            await self._lifecycle.ensure_active(session)
            if not session.prepared:
                await self._adapter.prepare(session.sandbox, session.workdir)
                session.prepared = True
        finally:
            await self._registry.save(session)

    async def _current_session(self, operation: str) -> Session:
        self._require_ready()
        if self._session_id is None:
            raise AgentNotInitializedError(
                f"cannot {operation}: no sandbox session yet; call generate_code() first"
            )
        return await self._registry.get(self._session_id)

    def _emit(self, event: str, session: Session, **extra: Any) -> None:
        data: dict[str, Any] = {"session_id": session.id, "agent": session.agent, **extra}
        notify(self._telemetry, event, data)


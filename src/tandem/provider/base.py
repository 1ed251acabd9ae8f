# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Agent adapter protocol — the contract every backend family implements."""

import enum
from collections.abc import AsyncGenerator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, runtime_checkable

from tandem.errors import InvalidModeError
from tandem.sandbox.base import SandboxProvider
from tandem.sandbox.model import SandboxHandle
from tandem.session.model import Turn


class AgentFamily(enum.Enum):
    CODEX = "codex"  # Coding CLI inside a sandbox.
    DIRECT = "direct"  # Model API called directly, no sandbox.


class Mode(enum.Enum):
    ASK = "ask"
    CODE = "code"

    @classmethod
    def parse(cls, value: "Mode | str") -> "Mode":
        """Mode or its string value. Raises InvalidModeError otherwise."""
        if isinstance(value, Mode):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(repr(m.value) for m in cls)
            raise InvalidModeError(
                f"invalid mode {value!r}; expected one of {allowed}"
            ) from None


@dataclass(frozen=True)
class Capabilities:
    """Which optional contracts an adapter honors. Fixed at construction."""

    streaming: bool
    sandbox: bool
    history: bool
    git: bool = False
    # Most recent turns sent per request. None keeps everything.
    max_history_turns: int | None = None


@dataclass(frozen=True)
class GenerationRequest:
    """One generation call. Constructed per call, never persisted."""

    prompt: str
    mode: Mode = Mode.CODE
    branch: str | None = None
    history: Sequence[Turn | Mapping[str, Any]] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", Mode.parse(self.mode))


@dataclass(frozen=True)
class ExecutionResult:
    """Transcript of an agent run inside a sandbox."""

    sandbox_id: str
    exit_code: int
    stdout: str
    stderr: str
    family: Literal[AgentFamily.CODEX] = field(default=AgentFamily.CODEX, repr=False)

    @property
    def text(self) -> str:
        return self.stdout


@dataclass(frozen=True)
class TextResult:
    """Text produced by a direct model call."""

    text: str
    family: Literal[AgentFamily.DIRECT] = field(default=AgentFamily.DIRECT, repr=False)


GenerationResult = ExecutionResult | TextResult


@dataclass(frozen=True)
class Fragment:
    """One incremental update, relayed to on_update as-is."""

    text: str


@dataclass(frozen=True)
class Completed:
    """Terminal event carrying the final result."""

    result: GenerationResult


StreamEvent = Fragment | Completed


@dataclass(frozen=True)
class PullRequest:
    html_url: str
    number: int
    branch_name: str
    commit_sha: str | None = None


@runtime_checkable
class AgentAdapter(Protocol):
    """Translates the unified generation contract into backend calls.

    One implementation per AgentFamily. Adapters are stateless with respect
    to sessions: the client hands in the effective history and the sandbox
    handle on every call.
    """

    @property
    def family(self) -> AgentFamily: ...

    @property
    def capabilities(self) -> Capabilities: ...

    @property
    def sandbox_provider(self) -> SandboxProvider | None:
        """Control plane for sandbox-capable adapters, else None."""
        ...

    async def setup(self) -> None:
        """One-time asynchronous initialization."""
        ...

    async def prepare(self, sandbox: SandboxHandle, workdir: str) -> None:
        """Prepare a freshly provisioned sandbox (e.g. clone the repo)."""
        ...

    def generate(
        self,
        request: GenerationRequest,
        history: Sequence[Turn],
        sandbox: SandboxHandle | None,
        workdir: str,
    ) -> AsyncGenerator[StreamEvent, None]:
        """Yield fragments in provider order, then exactly one Completed."""
        ...

    async def push_to_branch(
        self, sandbox: SandboxHandle, workdir: str, branch: str | None = None
    ) -> str:
        """Commit and push the working tree. Returns the commit sha."""
        ...

    async def create_pull_request(
        self,
        sandbox: SandboxHandle,
        workdir: str,
        *,
        title: str | None = None,
        body: str | None = None,
    ) -> PullRequest:
        """Push the working tree to a new branch and open a pull request."""
        ...

    async def close(self) -> None:
        """Release transports."""
        ...

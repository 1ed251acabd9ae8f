# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Direct agent — calls a model API with no sandbox behind it."""

import json
from collections.abc import AsyncGenerator, Sequence

from tandem.errors import UnsupportedOperationError
from tandem.provider.base import (
    AgentFamily,
    Capabilities,
    Completed,
    Fragment,
    GenerationRequest,
    Mode,
    PullRequest,
    StreamEvent,
    TextResult,
)
from tandem.provider.transport import Message, ModelTransport
from tandem.sandbox.model import SandboxHandle
from tandem.session.model import Turn
from tandem.telemetry import TelemetrySink, log_method

SYSTEM_PROMPTS = {
    Mode.ASK: (
        "You are a senior software engineer answering questions about code. "
        "Explain clearly and do not propose file changes unless asked."
    ),
    Mode.CODE: (
        "You are a senior software engineer. Respond with complete, working "
        "code for the request, followed by a short explanation."
    ),
}


def build_messages(request: GenerationRequest, history: Sequence[Turn]) -> list[Message]:
    """System prompt for the mode, then history verbatim, then the prompt."""
    messages: list[Message] = [{"role": "system", "content": SYSTEM_PROMPTS[request.mode]}]
    messages.extend(t.to_dict() for t in history)
    messages.append({"role": "user", "content": request.prompt})
    return messages


class DirectAgent:
    """Model-API agent.

    In streaming mode every token delta becomes a fragment. Otherwise the
    stream carries exactly two synthetic fragments, a JSON `start` marker
    before the call and a JSON `end` marker holding the output after it.
    """

    def __init__(
        self,
        transport: ModelTransport,
        *,
        streaming: bool = False,
        max_history_turns: int | None = None,
        telemetry: TelemetrySink | None = None,
    ) -> None:
        self._transport = transport
        self._telemetry = telemetry
        self._capabilities = Capabilities(
            streaming=streaming,
            sandbox=False,
            history=True,
            git=False,
            max_history_turns=max_history_turns,
        )

    @property
    def family(self) -> AgentFamily:
        return AgentFamily.DIRECT

    @property
    def capabilities(self) -> Capabilities:
        return self._capabilities

    @property
    def sandbox_provider(self) -> None:
        return None

    async def setup(self) -> None:
        if not isinstance(self._transport, ModelTransport):
            raise TypeError(f"{self._transport!r} is not a ModelTransport")

    async def prepare(self, sandbox: SandboxHandle, workdir: str) -> None:
        """Nothing to prepare without a sandbox."""

    @log_method(before=True, after=True)
    async def generate(
        self,
        request: GenerationRequest,
        history: Sequence[Turn],
        sandbox: SandboxHandle | None,
        workdir: str,
    ) -> AsyncGenerator[StreamEvent, None]:
        messages = build_messages(request, history)
        if self._capabilities.streaming:
            parts: list[str] = []
            async for delta in self._transport.stream(messages):
                parts.append(delta)
                yield Fragment(delta)
            yield Completed(TextResult("".join(parts)))
            return
        yield Fragment(json.dumps({"type": "start", "agent": self.family.value, "mode": request.mode.value}))
        text = await self._transport.complete(messages)
        yield Fragment(json.dumps({"type": "end", "agent": self.family.value, "output": text}))
        yield Completed(TextResult(text))

    async def push_to_branch(
        self, sandbox: SandboxHandle, workdir: str, branch: str | None = None
    ) -> str:
        raise UnsupportedOperationError("push_to_branch is only supported for the codex agent")

    async def create_pull_request(
        self,
        sandbox: SandboxHandle,
        workdir: str,
        *,
        title: str | None = None,
        body: str | None = None,
    ) -> PullRequest:
        raise UnsupportedOperationError("create_pull_request is only supported for the codex agent")

    async def close(self) -> None:
        await self._transport.aclose()

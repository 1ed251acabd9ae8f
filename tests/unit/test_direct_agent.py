# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Tests for the direct model-API agent."""

import json
from collections.abc import AsyncGenerator, Sequence

import pytest

from tandem.errors import UnsupportedOperationError
from tandem.provider import (
    AgentAdapter,
    Completed,
    DirectAgent,
    Fragment,
    GenerationRequest,
    Mode,
    TextResult,
)
from tandem.provider.direct import SYSTEM_PROMPTS, build_messages
from tandem.sandbox import SandboxHandle
from tandem.session import Role, Turn

# -- Fakes -----------------------------------------------------------------


class FakeTransport:
    """Canned reply; records every message list it receives."""

    def __init__(self, reply: str = "42", deltas: Sequence[str] = ("4", "2")) -> None:
        self.reply = reply
        self.deltas = list(deltas)
        self.requests: list[list[dict[str, str]]] = []
        self.closed = False

    async def complete(self, messages: Sequence[dict[str, str]]) -> str:
        self.requests.append(list(messages))
        return self.reply

    async def stream(self, messages: Sequence[dict[str, str]]) -> AsyncGenerator[str, None]:
        self.requests.append(list(messages))
        for d in self.deltas:
            yield d

    async def aclose(self) -> None:
        self.closed = True


async def _drain(agent: DirectAgent, request: GenerationRequest, history: Sequence[Turn] = ()):  # type: ignore[no-untyped-def]
    return [ev async for ev in agent.generate(request, history, None, "/workspace")]


# -- Tests ------------------------------------------------------------------


async def test_protocol_and_capabilities() -> None:
    agent = DirectAgent(FakeTransport())
    assert isinstance(agent, AgentAdapter)
    await agent.setup()
    caps = agent.capabilities
    assert not caps.sandbox
    assert not caps.git
    assert caps.history
    assert agent.sandbox_provider is None


async def test_setup_rejects_non_transport() -> None:
    with pytest.raises(TypeError):
        await DirectAgent(object()).setup()  # type: ignore[arg-type]


def test_build_messages_order() -> None:
    history = [Turn(Role.USER, "q1"), Turn(Role.ASSISTANT, "a1")]
    messages = build_messages(GenerationRequest("q2", mode="ask"), history)
    assert messages == [
        {"role": "system", "content": SYSTEM_PROMPTS[Mode.ASK]},
        {"role": "user", "content": "q1"},
        {"role": "assistant", "content": "a1"},
        {"role": "user", "content": "q2"},
    ]


async def test_non_streaming_emits_start_and_end_markers() -> None:
    agent = DirectAgent(FakeTransport(reply="the answer"))
    events = await _drain(agent, GenerationRequest("why?", mode=Mode.ASK))
    assert len(events) == 3
    start, end, done = events
    assert isinstance(start, Fragment) and isinstance(end, Fragment)
    assert json.loads(start.text) == {"type": "start", "agent": "direct", "mode": "ask"}
    assert json.loads(end.text) == {"type": "end", "agent": "direct", "output": "the answer"}
    assert done == Completed(TextResult("the answer"))


async def test_streaming_emits_one_fragment_per_delta() -> None:
    agent = DirectAgent(FakeTransport(deltas=["a", "b", "c"]), streaming=True)
    events = await _drain(agent, GenerationRequest("go"))
    assert events == [Fragment("a"), Fragment("b"), Fragment("c"), Completed(TextResult("abc"))]


async def test_history_passed_through() -> None:
    transport = FakeTransport()
    agent = DirectAgent(transport)
    await _drain(agent, GenerationRequest("next"), [Turn(Role.USER, "prev")])
    assert transport.requests[0][1] == {"role": "user", "content": "prev"}


async def test_git_operations_unsupported() -> None:
    agent = DirectAgent(FakeTransport())
    with pytest.raises(UnsupportedOperationError, match="codex"):
        await agent.push_to_branch(SandboxHandle(), "/workspace")
    with pytest.raises(UnsupportedOperationError, match="codex"):
        await agent.create_pull_request(SandboxHandle(), "/workspace")


async def test_close_releases_transport() -> None:
    transport = FakeTransport()
    await DirectAgent(transport).close()
    assert transport.closed

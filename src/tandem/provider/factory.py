# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Builds the one adapter a config asks for."""

from tandem.config import AgentConfig
from tandem.git.github import GitHubClient
from tandem.provider.base import AgentAdapter, AgentFamily
from tandem.provider.codex import CodexAgent
from tandem.provider.direct import DirectAgent
from tandem.provider.transport import ChatCompletionsTransport
from tandem.sandbox.base import SandboxProvider
from tandem.sandbox.local import LocalSandboxProvider
from tandem.sandbox.remote import HttpSandboxProvider
from tandem.telemetry import TelemetrySink


def create_sandbox_provider(config: AgentConfig) -> SandboxProvider:
    sandbox = config.sandbox
    if sandbox.kind == "http":
        assert sandbox.api_url is not None and sandbox.api_key is not None
        return HttpSandboxProvider(sandbox.api_url, sandbox.api_key, template=sandbox.template)
    return LocalSandboxProvider(sandbox.root)


def create_adapter(
    config: AgentConfig,
    *,
    telemetry: TelemetrySink | None = None,
) -> AgentAdapter:
    """Dispatch on the agent family once. Nothing downstream re-checks it."""
    family = AgentFamily(config.agent)
    if family is AgentFamily.DIRECT:
        if not config.model.api_key:
            raise ValueError("the direct agent needs a model api key")
        transport = ChatCompletionsTransport(
            model=config.model.name,
            api_key=config.model.api_key,
            base_url=config.model.base_url,
            timeout=config.model.timeout,
        )
        return DirectAgent(
            transport,
            streaming=config.model.streaming,
            max_history_turns=config.max_history_turns,
            telemetry=telemetry,
        )
    github = config.github
    hosting = (
        GitHubClient(github.token, base_url=github.api_url)
        if github.token and github.repository
        else None
    )
    return CodexAgent(
        create_sandbox_provider(config),
        model=config.model.name,
        api_key=config.model.api_key,
        repository=github.repository,
        github_token=github.token,
        base_branch=github.base_branch,
        hosting=hosting,
        max_history_turns=config.max_history_turns,
        telemetry=telemetry,
    )

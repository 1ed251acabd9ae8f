# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Tests for client configuration."""

from pathlib import Path

import pytest

from tandem.config import AgentConfig, SandboxConfig
from tandem.provider import CodexAgent, DirectAgent
from tandem.provider.factory import create_adapter, create_sandbox_provider
from tandem.sandbox import HttpSandboxProvider, LocalSandboxProvider


def test_defaults() -> None:
    config = AgentConfig()
    assert config.agent == "codex"
    assert config.sandbox.kind == "local"
    assert config.max_history_turns is None
    assert config.session_root is None


def test_from_env_reads_everything() -> None:
    env = {
        "TANDEM_AGENT": "direct",
        "TANDEM_MODEL": "m-2",
        "OPENAI_API_KEY": "sk-fallback",
        "TANDEM_STREAMING": "yes",
        "TANDEM_TIMEOUT": "5",
        "TANDEM_SANDBOX": "http",
        "TANDEM_SANDBOX_URL": "https://sbx.test",
        "TANDEM_SANDBOX_API_KEY": "k",
        "TANDEM_RESUME_ATTEMPTS": "5",
        "GITHUB_TOKEN": "ghp",
        "TANDEM_REPOSITORY": "o/r",
        "TANDEM_MAX_HISTORY_TURNS": "8",
        "TANDEM_SESSION_ROOT": "/tmp/sessions",
    }
    config = AgentConfig.from_env(env)
    assert config.agent == "direct"
    assert config.model.name == "m-2"
    assert config.model.api_key == "sk-fallback"
    assert config.model.streaming is True
    assert config.model.timeout == 5.0
    assert config.sandbox.kind == "http"
    assert config.sandbox.resume_attempts == 5
    assert config.github.repository == "o/r"
    assert config.max_history_turns == 8
    assert config.session_root == Path("/tmp/sessions")
    assert config.telemetry_path is None


def test_from_env_prefers_tandem_key() -> None:
    config = AgentConfig.from_env({"TANDEM_API_KEY": "a", "OPENAI_API_KEY": "b"})
    assert config.model.api_key == "a"


def test_from_env_empty_keeps_defaults() -> None:
    assert AgentConfig.from_env({}) == AgentConfig()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"agent": "cursor"},
        {"max_history_turns": -1},
    ],
)
def test_invalid_agent_config(kwargs: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        AgentConfig(**kwargs)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"kind": "docker"},
        {"kind": "http"},
        {"resume_attempts": 0},
    ],
)
def test_invalid_sandbox_config(kwargs: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        SandboxConfig(**kwargs)  # type: ignore[arg-type]


def test_factory_builds_codex_with_local_sandbox(tmp_path: Path) -> None:
    config = AgentConfig(sandbox=SandboxConfig(root=tmp_path))
    adapter = create_adapter(config)
    assert isinstance(adapter, CodexAgent)
    assert isinstance(adapter.sandbox_provider, LocalSandboxProvider)
    assert not adapter.capabilities.git


def test_factory_builds_http_sandbox() -> None:
    config = AgentConfig(
        sandbox=SandboxConfig(kind="http", api_url="https://sbx.test", api_key="k")
    )
    assert isinstance(create_sandbox_provider(config), HttpSandboxProvider)


def test_factory_codex_with_repository_has_git() -> None:
    config = AgentConfig.from_env({"TANDEM_REPOSITORY": "o/r", "GITHUB_TOKEN": "ghp"})
    adapter = create_adapter(config)
    assert adapter.capabilities.git


def test_factory_direct_needs_key() -> None:
    with pytest.raises(ValueError, match="api key"):
        create_adapter(AgentConfig(agent="direct"))


def test_factory_builds_direct() -> None:
    config = AgentConfig.from_env({"TANDEM_AGENT": "direct", "TANDEM_API_KEY": "sk"})
    adapter = create_adapter(config)
    assert isinstance(adapter, DirectAgent)
    assert adapter.sandbox_provider is None

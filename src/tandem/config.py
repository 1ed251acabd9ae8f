# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Client configuration. Plain frozen dataclasses, optionally read from env."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

AGENTS = ("codex", "direct")
SANDBOX_KINDS = ("local", "http")


@dataclass(frozen=True)
class ModelConfig:
    name: str = "gpt-5-codex"
    api_key: str | None = None
    base_url: str = "https://api.openai.com/v1"
    streaming: bool = False
    timeout: float = 120.0


@dataclass(frozen=True)
class SandboxConfig:
    kind: str = "local"
    # Host directory for local sandboxes.
    root: Path = Path(".tandem/sandboxes")
    api_url: str | None = None
    api_key: str | None = None
    template: str = "base"
    workdir: str = "/workspace"
    resume_attempts: int = 3

    def __post_init__(self) -> None:
        if self.kind not in SANDBOX_KINDS:
            raise ValueError(f"unknown sandbox kind {self.kind!r}; expected one of {SANDBOX_KINDS}")
        if self.kind == "http" and not (self.api_url and self.api_key):
            raise ValueError("http sandbox needs api_url and api_key")
        if self.resume_attempts < 1:
            raise ValueError("resume_attempts must be at least 1")


@dataclass(frozen=True)
class GitHubConfig:
    token: str | None = None
    repository: str | None = None  # "owner/name"
    base_branch: str = "main"
    api_url: str = "https://api.github.com"


@dataclass(frozen=True)
class AgentConfig:
    agent: str = "codex"
    model: ModelConfig = field(default_factory=ModelConfig)
    sandbox: SandboxConfig = field(default_factory=SandboxConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    max_history_turns: int | None = None
    # Persist sessions here so ids survive the process. None keeps them in memory.
    session_root: Path | None = None
    telemetry_path: Path | None = None

    def __post_init__(self) -> None:
        if self.agent not in AGENTS:
            raise ValueError(f"unknown agent {self.agent!r}; expected one of {AGENTS}")
        if self.max_history_turns is not None and self.max_history_turns < 0:
            raise ValueError("max_history_turns must be non-negative")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AgentConfig":
        """Build a config from TANDEM_* variables. Unset keys keep defaults."""
        env = os.environ if environ is None else environ
        model_defaults = ModelConfig()
        sandbox_defaults = SandboxConfig()
        github_defaults = GitHubConfig()
        model = ModelConfig(
            name=env.get("TANDEM_MODEL", model_defaults.name),
            api_key=env.get("TANDEM_API_KEY") or env.get("OPENAI_API_KEY"),
            base_url=env.get("TANDEM_BASE_URL", model_defaults.base_url),
            streaming=_flag(env.get("TANDEM_STREAMING")),
            timeout=float(env.get("TANDEM_TIMEOUT", model_defaults.timeout)),
        )
        sandbox = SandboxConfig(
            kind=env.get("TANDEM_SANDBOX", sandbox_defaults.kind),
            root=Path(env.get("TANDEM_SANDBOX_ROOT", str(sandbox_defaults.root))),
            api_url=env.get("TANDEM_SANDBOX_URL"),
            api_key=env.get("TANDEM_SANDBOX_API_KEY"),
            template=env.get("TANDEM_SANDBOX_TEMPLATE", sandbox_defaults.template),
            workdir=env.get("TANDEM_WORKDIR", sandbox_defaults.workdir),
            resume_attempts=int(env.get("TANDEM_RESUME_ATTEMPTS", sandbox_defaults.resume_attempts)),
        )
        github = GitHubConfig(
            token=env.get("GITHUB_TOKEN"),
            repository=env.get("TANDEM_REPOSITORY"),
            base_branch=env.get("TANDEM_BASE_BRANCH", github_defaults.base_branch),
        )
        history = env.get("TANDEM_MAX_HISTORY_TURNS")
        session_root = env.get("TANDEM_SESSION_ROOT")
        telemetry = env.get("TANDEM_TELEMETRY_PATH")
        return cls(
            agent=env.get("TANDEM_AGENT", "codex"),
            model=model,
            sandbox=sandbox,
            github=github,
            max_history_turns=int(history) if history else None,
            session_root=Path(session_root) if session_root else None,
            telemetry_path=Path(telemetry) if telemetry else None,
        )


def _flag(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")

# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

from tandem.provider.base import (
    AgentAdapter,
    AgentFamily,
    Capabilities,
    Completed,
    ExecutionResult,
    Fragment,
    GenerationRequest,
    GenerationResult,
    Mode,
    PullRequest,
    StreamEvent,
    TextResult,
)
from tandem.provider.codex import CodexAgent
from tandem.provider.direct import DirectAgent
from tandem.provider.transport import ChatCompletionsTransport, ModelTransport

__all__ = [
    "AgentAdapter",
    "AgentFamily",
    "Capabilities",
    "ChatCompletionsTransport",
    "CodexAgent",
    "Completed",
    "DirectAgent",
    "ExecutionResult",
    "Fragment",
    "GenerationRequest",
    "GenerationResult",
    "Mode",
    "ModelTransport",
    "PullRequest",
    "StreamEvent",
    "TextResult",
]

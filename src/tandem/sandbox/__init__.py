# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

from tandem.sandbox.base import (
    CommandResult,
    ExecEvent,
    SandboxConnectionError,
    SandboxError,
    SandboxNotFoundError,
    SandboxProvider,
    collect,
)
from tandem.sandbox.local import LocalSandboxProvider
from tandem.sandbox.model import SandboxHandle, SandboxState, SandboxStateError
from tandem.sandbox.remote import HttpSandboxProvider

__all__ = [
    "CommandResult",
    "ExecEvent",
    "HttpSandboxProvider",
    "LocalSandboxProvider",
    "SandboxConnectionError",
    "SandboxError",
    "SandboxHandle",
    "SandboxNotFoundError",
    "SandboxProvider",
    "SandboxState",
    "SandboxStateError",
    "collect",
]

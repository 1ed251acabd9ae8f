# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Error taxonomy shared by the client, adapters and session layer."""


class AgentError(Exception):
    """Base class for all client-level failures."""


class AgentNotInitializedError(AgentError):
    """Raised when an operation runs before setup() has completed."""


class UnsupportedOperationError(AgentError):
    """Raised when the adapter's capabilities do not cover an operation."""


class InvalidModeError(AgentError, ValueError):
    """Raised when a generation request names an unknown mode."""


class SessionNotFoundError(AgentError):
    """Raised when a session id is not known to the registry or its store."""


class SessionBusyError(AgentError):
    """Raised when a second call targets a session with a call in flight."""


class NothingToCommitError(AgentError):
    """Raised by git operations when the working tree has no changes."""


class ProviderError(AgentError):
    """Raised when a backend misbehaves (malformed stream, missing result)."""

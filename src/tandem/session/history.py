# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

"""Builds the context sent with each generation request."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from tandem.session.model import Role, Session, Turn

if TYPE_CHECKING:
    from tandem.provider.base import Capabilities

_log = logging.getLogger(__name__)

HistoryInput = Sequence[Turn | Mapping[str, Any]]


class HistoryReconciler:
    """Chooses between session history and a caller override.

    An override replaces the session's turns for that call; it is never
    merged in. Truncation comes from the adapter's capability descriptor.
    """

    def __init__(self, capabilities: Capabilities) -> None:
        self._caps = capabilities

    def effective(
        self,
        session: Session,
        override: HistoryInput | None = None,
    ) -> tuple[Turn, ...]:
        if not self._caps.history:
            if override:
                _log.warning("adapter ignores history; dropping %d turns", len(override))
            return ()
        if override is not None:
            turns = tuple(Turn.coerce(t) for t in override)
        else:
            turns = tuple(session.history)
        limit = self._caps.max_history_turns
        if limit is not None and len(turns) > limit:
            turns = turns[len(turns) - limit :] if limit > 0 else ()
        return turns

    def record(self, session: Session, prompt: str, reply: str) -> None:
        """Append the exchange to the session's own history."""
        session.append(Turn(Role.USER, prompt))
        session.append(Turn(Role.ASSISTANT, reply))

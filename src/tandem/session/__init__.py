# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

from tandem.session.history import HistoryReconciler
from tandem.session.model import Role, Session, Turn
from tandem.session.registry import SessionRegistry
from tandem.session.store import SessionStore

__all__ = [
    "HistoryReconciler",
    "Role",
    "Session",
    "SessionRegistry",
    "SessionStore",
    "Turn",
]

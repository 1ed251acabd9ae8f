# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

from tandem.stream.multiplexer import (
    CallbackSink,
    RecordingSink,
    StreamCallbacks,
    StreamMultiplexer,
    UpdateSink,
)

__all__ = [
    "CallbackSink",
    "RecordingSink",
    "StreamCallbacks",
    "StreamMultiplexer",
    "UpdateSink",
]

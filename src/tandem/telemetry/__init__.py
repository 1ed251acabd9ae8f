# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

from tandem.telemetry.decorator import log_method
from tandem.telemetry.event_log import EventLog, TelemetrySink, notify, read_log

__all__ = ["EventLog", "TelemetrySink", "log_method", "notify", "read_log"]

# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Input model: one log event as handed over by the logging engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO

__all__ = ["Caller", "LogEvent"]


@dataclass(frozen=True)
class Caller:
    """Source location that emitted a log event."""

    file: str
    line: int
    function: str


@dataclass
class LogEvent:
    """A log event to be formatted.

    Attributes:
        time: When the event happened.  Naive values are taken as local time.
        level: Level name, e.g. ``"info"``.
        message: The rendered log message.
        data: Free-form fields.  Reserved names (``channel``, ``user``,
            ``status``, ``duration``, ``request``) fill dedicated slots of
            the record; everything else lands in ``ctx``.
        caller: Optional source location, added to ``ctx`` as ``file`` and
            ``func``.
        buffer: Optional output buffer to reuse.  It is cleared before
            the record is written into it.

    """

    time: datetime
    level: str
    message: str
    data: dict[str, object] = field(default_factory=dict)
    caller: Caller | None = None
    buffer: BytesIO | None = None

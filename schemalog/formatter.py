# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Assemble and encode ``general.logs.v1`` / ``http.request.v1`` records.

:class:`LogsV1Formatter` is the core of the package: it classifies an
event's fields, attaches HTTP request context when the event carries a
``request`` field holding a :class:`falcon.Request`, and serializes the
result as one newline-terminated JSON object.

Formatters hold only immutable configuration, so one instance can be
shared by every thread of a process.  Per-call state lives in a record
borrowed from a :class:`~schemalog.record.RecordPool`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime

import falcon

from schemalog.errors import MAX_STACK_TRACE, EncodingError
from schemalog.event import LogEvent
from schemalog.fields import REQUEST_KEY, classify_fields
from schemalog.record import RecordPool, Schema, default_pool
from schemalog.request import enrich_request

__all__ = [
    "FormatterConfig",
    "LogsV1Formatter",
    "format_time",
    "new_formatter",
]


@dataclass(frozen=True)
class FormatterConfig:
    """Per-formatter settings, fixed for the formatter's lifetime.

    Attributes:
        service: Value of the ``s`` field.
        environment: Value of the ``e`` field.
        time_layout: ``strftime`` pattern for the ``t`` field.  ``None``
            selects ISO-8601 with milliseconds and a UTC offset.
        max_stack_trace: Maximum number of frames kept per error field.

    """

    service: str
    environment: str
    time_layout: str | None = None
    max_stack_trace: int = MAX_STACK_TRACE

    def __post_init__(self) -> None:
        """Validate settings."""
        if self.max_stack_trace < 0:
            raise ValueError(f"max_stack_trace must be non-negative, got {self.max_stack_trace}")


def format_time(when: datetime, layout: str | None = None) -> str:
    """Format *when* for the ``t`` field; naive values are taken as local time.

    Without *layout* the result is ISO 8601 with exactly three fractional
    digits and a numeric UTC offset, so UTC renders as ``+00:00`` rather
    than ``Z`` and trailing zeros are kept (``2024-01-02T03:04:05.600+00:00``).
    The fixed width keeps lines lexically sortable by time.
    """
    if when.tzinfo is None:
        when = when.astimezone()
    if layout is None:
        return when.isoformat(timespec="milliseconds")
    return when.strftime(layout)


class LogsV1Formatter:
    """Encodes :class:`~schemalog.event.LogEvent` objects as JSON lines.

    Args:
        config: Service, environment and encoding settings.
        pool: Record pool to borrow from.  Defaults to the process-wide
            pool returned by :func:`~schemalog.record.default_pool`.

    """

    __slots__ = ("_config", "_pool")

    def __init__(self, config: FormatterConfig, pool: RecordPool | None = None) -> None:
        """Initialize with immutable *config*."""
        self._config = config
        self._pool = pool if pool is not None else default_pool()

    @property
    def config(self) -> FormatterConfig:
        """The formatter's settings."""
        return self._config

    def format(self, event: LogEvent) -> bytes:
        """Encode *event* as one newline-terminated JSON object.

        When ``event.buffer`` is set it is cleared, receives the encoded
        line and is left holding exactly the returned bytes.

        Raises:
            EncodingError: If a field value cannot be serialized as JSON.

        """
        cfg = self._config
        fields = classify_fields(event.data, event.caller, cfg.max_stack_trace)
        schema = Schema.GENERAL_LOGS_V1

        with self._pool.borrow() as record:
            record.time = format_time(event.time, cfg.time_layout)
            record.level = event.level
            record.service = cfg.service
            record.channel = fields.channel
            record.environment = cfg.environment
            record.user = fields.user
            record.message = event.message
            record.context = fields.context

            req = event.data.get(REQUEST_KEY)
            if isinstance(req, falcon.Request):
                schema = Schema.HTTP_REQUEST_V1
                record.request = enrich_request(req, fields.status, fields.duration)
            record.schema = schema.value

            try:
                line = json.dumps(record.to_dict(), ensure_ascii=False, allow_nan=False, separators=(",", ":"))
            except (TypeError, ValueError) as exc:
                raise EncodingError(schema.value, exc) from exc

        data = (line + "\n").encode("utf-8")
        if event.buffer is None:
            return data
        event.buffer.seek(0)
        event.buffer.truncate()
        event.buffer.write(data)
        return event.buffer.getvalue()


def new_formatter(
    service: str,
    environment: str,
    *,
    time_layout: str | None = None,
    max_stack_trace: int = MAX_STACK_TRACE,
    pool: RecordPool | None = None,
) -> LogsV1Formatter:
    """Return a formatter for *service* running in *environment*."""
    config = FormatterConfig(
        service=service,
        environment=environment,
        time_layout=time_layout,
        max_stack_trace=max_stack_trace,
    )
    return LogsV1Formatter(config, pool=pool)

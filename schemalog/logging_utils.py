# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Standard library :mod:`logging` integration.

Provides :class:`SchemaJsonFormatter`, a :class:`logging.Formatter` subclass
that renders records through :class:`~schemalog.formatter.LogsV1Formatter`,
and :func:`new_logger` which wires one up on a named logger.  All ``extra``
fields attached to a record become log fields::

    log = new_logger("api", service="billing", environment="prod")
    log.info("charged", extra={"user": 42, "channel": "payments", "amount": 10})

An exception logged with ``exc_info`` (e.g. via ``log.exception``) is
rendered as the ``error`` field unless the call supplies one explicitly.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TextIO

from schemalog.errors import MAX_STACK_TRACE
from schemalog.event import Caller, LogEvent
from schemalog.formatter import FormatterConfig, LogsV1Formatter
from schemalog.record import RecordPool

__all__ = [
    "ERROR_KEY",
    "SchemaJsonFormatter",
    "event_from_record",
    "new_logger",
]

ERROR_KEY = "error"

# Build the set of attribute names that every LogRecord has by default.
# Anything *not* in this set was injected via ``extra``.
_DEFAULT_RECORD_ATTRS: frozenset[str] = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()) | {
    "message",
    "asctime",
}


def event_from_record(record: logging.LogRecord, report_caller: bool = False) -> LogEvent:
    """Convert a stdlib log record into a :class:`~schemalog.event.LogEvent`."""
    data: dict[str, object] = {k: v for k, v in record.__dict__.items() if k not in _DEFAULT_RECORD_ATTRS}
    if record.exc_info and record.exc_info[1] is not None:
        data.setdefault(ERROR_KEY, record.exc_info[1])
    caller = Caller(record.pathname, record.lineno, record.funcName) if report_caller else None
    return LogEvent(
        time=datetime.fromtimestamp(record.created).astimezone(),
        level=record.levelname.lower(),
        message=record.getMessage(),
        data=data,
        caller=caller,
    )


class SchemaJsonFormatter(logging.Formatter):
    """Formatter that emits ``general.logs.v1`` / ``http.request.v1`` JSON.

    The returned string has no trailing newline; the handler appends its
    own terminator.  Encoding failures raise
    :class:`~schemalog.errors.EncodingError`, which the handler reports
    through ``Handler.handleError`` like any other formatting error.

    Args:
        service: Value of the ``s`` field.
        environment: Value of the ``e`` field.
        datefmt: Optional ``strftime`` pattern for the ``t`` field.
        max_stack_trace: Maximum frames kept per error field.
        report_caller: Add ``file`` and ``func`` to ``ctx``.
        pool: Record pool; defaults to the process-wide pool.

    """

    def __init__(
        self,
        service: str,
        environment: str,
        datefmt: str | None = None,
        *,
        max_stack_trace: int = MAX_STACK_TRACE,
        report_caller: bool = False,
        pool: RecordPool | None = None,
    ) -> None:
        """Initialize the formatter."""
        super().__init__(datefmt=datefmt)
        self.report_caller = report_caller
        self.encoder = LogsV1Formatter(
            FormatterConfig(
                service=service,
                environment=environment,
                time_layout=datefmt,
                max_stack_trace=max_stack_trace,
            ),
            pool=pool,
        )

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a single-line JSON string."""
        record.message = record.getMessage()
        line = self.encoder.format(event_from_record(record, self.report_caller))
        return line.decode("utf-8").rstrip("\n")


def new_logger(
    name: str,
    service: str,
    environment: str,
    *,
    stream: TextIO | None = None,
    level: int = logging.INFO,
    report_caller: bool = False,
) -> logging.Logger:
    """Return logger *name* writing schema JSON lines to *stream* (stderr by default).

    The logger does not propagate to its ancestors.  Calling this again for
    the same *name* replaces the previously installed handler.
    """
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        if isinstance(handler.formatter, SchemaJsonFormatter):
            logger.removeHandler(handler)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(SchemaJsonFormatter(service, environment, report_caller=report_caller))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger

# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Versioned JSON log records for log pipelines."""

from schemalog.errors import (
    MAX_STACK_TRACE,
    EncodingError,
    ErrorInfo,
    FormatError,
    StackTracer,
    extract_error,
)
from schemalog.event import Caller, LogEvent
from schemalog.formatter import FormatterConfig, LogsV1Formatter, new_formatter
from schemalog.logging_utils import SchemaJsonFormatter, new_logger
from schemalog.middleware import AccessLogMiddleware
from schemalog.netaddr import parse_ip
from schemalog.record import LogRecord, PoolMetrics, RecordPool, Schema, default_pool
from schemalog.request import RequestRecord, enrich_request, preload_body

__all__ = [
    "MAX_STACK_TRACE",
    "AccessLogMiddleware",
    "Caller",
    "EncodingError",
    "ErrorInfo",
    "FormatError",
    "FormatterConfig",
    "LogEvent",
    "LogRecord",
    "LogsV1Formatter",
    "PoolMetrics",
    "RecordPool",
    "RequestRecord",
    "Schema",
    "SchemaJsonFormatter",
    "StackTracer",
    "default_pool",
    "enrich_request",
    "extract_error",
    "new_formatter",
    "new_logger",
    "parse_ip",
    "preload_body",
]

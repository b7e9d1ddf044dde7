"""Shared test fixtures for schemalog tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import falcon
import falcon.testing
import pytest

from schemalog import FormatterConfig, LogEvent, LogsV1Formatter, RecordPool

RequestFactory = Callable[..., falcon.Request]
"""Type alias for the ``make_request`` fixture return type."""

FIXED_TIME = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=UTC)


def build_request(
    method: str = "GET",
    path: str = "/api",
    query_string: str = "",
    headers: dict[str, str] | None = None,
    body: str | bytes = "",
    remote_addr: str = "1.2.3.4:1234",
) -> falcon.Request:
    """Build a WSGI falcon request without running an app."""
    return falcon.testing.create_req(
        method=method,
        path=path,
        query_string=query_string,
        headers=headers,
        body=body,
        remote_addr=remote_addr,
    )


def make_event(message: str = "hello", level: str = "info", **data: Any) -> LogEvent:
    """Return an event at a fixed time carrying *data* as fields."""
    return LogEvent(time=FIXED_TIME, level=level, message=message, data=dict(data))


@pytest.fixture
def make_request() -> RequestFactory:
    """Factory fixture for falcon requests."""
    return build_request


@pytest.fixture
def pool() -> RecordPool:
    """A private record pool so tests can inspect its counters."""
    return RecordPool(max_idle=4)


@pytest.fixture
def formatter(pool: RecordPool) -> LogsV1Formatter:
    """A formatter for service ``test`` in environment ``test``."""
    return LogsV1Formatter(FormatterConfig(service="test", environment="test"), pool=pool)

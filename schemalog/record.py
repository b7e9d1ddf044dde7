# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Output record shape and the pool that recycles record objects.

A :class:`LogRecord` is the versioned document serialized for every log
line.  Its top-level key order is fixed by :meth:`LogRecord.to_dict`, so
repeated formatting of the same event yields the same bytes.

Records are borrowed from a :class:`RecordPool` for the duration of one
format call and handed back afterwards::

    with pool.borrow() as record:
        record.message = "..."
        payload = json.dumps(record.to_dict())

A released record is reset before it goes back on the free list, so no
field of one log event can leak into the next.
"""

from __future__ import annotations

import contextlib
import threading
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from schemalog.request import RequestRecord

__all__ = [
    "LogRecord",
    "PoolMetrics",
    "RecordPool",
    "Schema",
    "default_pool",
]


class Schema(str, Enum):
    """Schema identifiers written to the ``schema`` field."""

    GENERAL_LOGS_V1 = "general.logs.v1"
    HTTP_REQUEST_V1 = "http.request.v1"


@dataclass
class LogRecord:
    """One log line, before serialization."""

    schema: str = ""
    time: str = ""
    level: str = ""
    service: str = ""
    channel: str = ""
    environment: str = ""
    user: str = ""
    message: str = ""
    context: dict[str, object] = field(default_factory=dict)
    request: RequestRecord | None = None

    def reset(self) -> None:
        """Clear every field back to its zero value."""
        self.schema = ""
        self.time = ""
        self.level = ""
        self.service = ""
        self.channel = ""
        self.environment = ""
        self.user = ""
        self.message = ""
        self.context = {}
        self.request = None

    def to_dict(self) -> dict[str, object]:
        """Render with the fixed top-level key order; ``request`` only if set."""
        data: dict[str, object] = {
            "schema": self.schema,
            "t": self.time,
            "l": self.level,
            "s": self.service,
            "c": self.channel,
            "e": self.environment,
            "u": self.user,
            "m": self.message,
            "ctx": self.context,
        }
        if self.request is not None:
            data["request"] = self.request.to_dict()
        return data


# ---------------------------------------------------------------------------
# PoolMetrics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PoolMetrics:
    """Snapshot of pool counters and current state.

    Attributes:
        acquires: Total ``acquire()`` calls.
        allocations: Records created because the free list was empty.
        reuses: Records taken from the free list.
        releases: Records put back on the free list.
        discards: Released records dropped because ``max_idle`` was reached.
        idle: Current free-list length.

    """

    acquires: int
    allocations: int
    reuses: int
    releases: int
    discards: int
    idle: int


# ---------------------------------------------------------------------------
# RecordPool
# ---------------------------------------------------------------------------


class RecordPool:
    """Thread-safe free list of :class:`LogRecord` objects.

    Each ``acquire()`` hands a record exclusively to the caller; the caller
    must not touch it after ``release()``.  Idle records are kept LIFO up to
    *max_idle*; surplus releases are dropped for the garbage collector.

    Args:
        max_idle: Cap on idle records held by the pool.

    """

    def __init__(self, max_idle: int = 64) -> None:
        """Initialize an empty pool."""
        if max_idle < 0:
            raise ValueError(f"max_idle must be non-negative, got {max_idle}")
        self._max_idle = max_idle
        self._lock = threading.Lock()
        self._idle: deque[LogRecord] = deque()

        # Counters
        self._acquires = 0
        self._allocations = 0
        self._reuses = 0
        self._releases = 0
        self._discards = 0

    def acquire(self) -> LogRecord:
        """Take a reset record from the pool, allocating one if none is idle."""
        with self._lock:
            self._acquires += 1
            if self._idle:
                self._reuses += 1
                return self._idle.pop()
            self._allocations += 1
        return LogRecord()

    def release(self, record: LogRecord) -> None:
        """Reset *record* and return it to the pool."""
        record.reset()
        with self._lock:
            if len(self._idle) >= self._max_idle:
                self._discards += 1
                return
            self._releases += 1
            self._idle.append(record)

    @contextlib.contextmanager
    def borrow(self) -> Iterator[LogRecord]:
        """Acquire a record for the duration of a ``with`` block."""
        record = self.acquire()
        try:
            yield record
        finally:
            self.release(record)

    @property
    def idle_count(self) -> int:
        """Current number of idle records."""
        with self._lock:
            return len(self._idle)

    @property
    def metrics(self) -> PoolMetrics:
        """Snapshot of pool counters and current state."""
        with self._lock:
            return PoolMetrics(
                acquires=self._acquires,
                allocations=self._allocations,
                reuses=self._reuses,
                releases=self._releases,
                discards=self._discards,
                idle=len(self._idle),
            )


_default_pool = RecordPool()


def default_pool() -> RecordPool:
    """Return the process-wide pool shared by formatters without their own."""
    return _default_pool

# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Error provenance for log fields, and the formatter's own exceptions.

Any exception placed in a log field is rendered as ``{"msg": ..., "trace": [...]}``
where ``trace`` is a bounded list of single-line frames, innermost call
site first.  Frames come from one of two places:

1. An explicit :class:`StackTracer` capability -- any object exposing
   ``stack_trace()`` that returns frame descriptors.
2. The ``__traceback__`` of an exception that has actually been raised.

An exception that was never raised (and has no ``stack_trace()``) simply
has no trace; that is a normal outcome, not a failure.
"""

from __future__ import annotations

import re
import traceback
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

__all__ = [
    "MAX_STACK_TRACE",
    "EncodingError",
    "ErrorInfo",
    "FormatError",
    "StackTracer",
    "extract_error",
    "stack_trace",
]

MAX_STACK_TRACE = 10
"""Default maximum number of frames kept in an error's ``trace``."""

# A newline followed by the indentation of a continuation line.
_FRAME_BREAK = re.compile(r"\n[ \t]*")


class FormatError(Exception):
    """Base class for errors raised by schemalog formatters."""


class EncodingError(FormatError):
    """JSON serialization of a log record failed.

    Attributes:
        schema: The schema identifier of the record being encoded.

    """

    def __init__(self, schema: str, cause: BaseException) -> None:
        """Wrap *cause*, naming the *schema* whose encoding failed."""
        super().__init__(f"json encode {schema} log: {cause}")
        self.schema = schema


@runtime_checkable
class StackTracer(Protocol):
    """Capability of an error that can report its own call stack."""

    def stack_trace(self) -> Sequence[object]:
        """Return frame descriptors, innermost call site first."""
        ...


@dataclass(frozen=True)
class ErrorInfo:
    """Display message and bounded stack trace of an error."""

    message: str
    trace: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        """Render as a context value; ``trace`` only appears when non-empty."""
        data: dict[str, object] = {"msg": self.message}
        if self.trace:
            data["trace"] = list(self.trace)
        return data


def _one_line(frame: object) -> str:
    return _FRAME_BREAK.sub(" ", str(frame).strip("\n"))


def stack_trace(err: BaseException) -> list[str]:
    """Return the frames of *err* as single-line strings, innermost first.

    Returns an empty list when *err* exposes no frames.
    """
    if isinstance(err, StackTracer):
        return [_one_line(frame) for frame in err.stack_trace()]
    if err.__traceback__ is not None:
        frames = traceback.extract_tb(err.__traceback__)
        return [f"{f.name} {f.filename}:{f.lineno}" for f in reversed(frames)]
    return []


def extract_error(err: BaseException, max_stack_trace: int = MAX_STACK_TRACE) -> ErrorInfo:
    """Return the message and at most *max_stack_trace* frames of *err*."""
    return ErrorInfo(message=str(err), trace=stack_trace(err)[:max_stack_trace])

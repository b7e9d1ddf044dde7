# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Split free-form log fields into reserved record slots and ``ctx``."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from schemalog.errors import MAX_STACK_TRACE, extract_error

if TYPE_CHECKING:
    from schemalog.event import Caller

__all__ = [
    "CHANNEL_KEY",
    "DURATION_KEY",
    "FILE_KEY",
    "FUNC_KEY",
    "REQUEST_KEY",
    "RESERVED_KEYS",
    "STATUS_KEY",
    "USER_KEY",
    "ClassifiedFields",
    "classify_fields",
]

CHANNEL_KEY = "channel"
REQUEST_KEY = "request"
USER_KEY = "user"
STATUS_KEY = "status"
DURATION_KEY = "duration"

RESERVED_KEYS: frozenset[str] = frozenset({CHANNEL_KEY, REQUEST_KEY, USER_KEY, STATUS_KEY, DURATION_KEY})

# Context keys for caller information.
FILE_KEY = "file"
FUNC_KEY = "func"


@dataclass
class ClassifiedFields:
    """Reserved values pulled out of an event's fields, plus the rest."""

    channel: str = ""
    user: str = ""
    status: str = ""
    duration: str = ""
    context: dict[str, object] = field(default_factory=dict)


def classify_fields(
    data: Mapping[str, object],
    caller: Caller | None = None,
    max_stack_trace: int = MAX_STACK_TRACE,
) -> ClassifiedFields:
    """Partition *data* into reserved fields and a context mapping.

    Caller information goes into the context first so that an explicit
    ``file`` or ``func`` field overrides it.  Exceptions are replaced by
    their message and stack trace.  The ``request`` field is left for the
    request enricher and never appears in the result.
    """
    out = ClassifiedFields()
    if caller is not None:
        out.context[FILE_KEY] = f"{caller.file}:{caller.line}"
        out.context[FUNC_KEY] = caller.function

    for key, value in data.items():
        if key == CHANNEL_KEY:
            out.channel = value if isinstance(value, str) else ""
        elif key == REQUEST_KEY:
            continue
        elif key == USER_KEY:
            out.user = str(value)
        elif key == STATUS_KEY:
            out.status = str(value)
        elif key == DURATION_KEY:
            out.duration = str(value)
        elif isinstance(value, BaseException):
            out.context[key] = extract_error(value, max_stack_trace).to_dict()
        else:
            out.context[key] = value
    return out

# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""HTTP request context for ``http.request.v1`` records.

:func:`enrich_request` turns a :class:`falcon.Request` into the ``request``
object of a log line.  Parameters are merged from three sources, later
ones overwriting earlier ones on key collision:

1. the query string,
2. an ``application/x-www-form-urlencoded`` body (``POST``/``PUT``/``PATCH``),
3. a JSON object body (``Content-Type`` containing ``application/json``).

Reading the body for (2) or (3) must not starve the application, so the
bytes are buffered once and the WSGI input stream is replaced with an
in-memory replay of the same bytes.  ASGI requests contribute headers and
query parameters only; their body is never awaited here.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from io import BytesIO

import falcon
from falcon.asgi import Request as AsgiRequest
from falcon.uri import parse_query_string

from schemalog.netaddr import parse_ip

__all__ = [
    "RequestRecord",
    "enrich_request",
    "normalize_headers",
    "preload_body",
]

_logger = logging.getLogger(__name__)

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
_JSON_CONTENT_TYPE = "application/json"
_FORM_METHODS = frozenset({"POST", "PUT", "PATCH"})

# req.context attribute holding the buffered body bytes.
_BODY_ATTR = "schemalog_body"


@dataclass
class RequestRecord:
    """Normalized view of an HTTP request attached to a log record."""

    ip: str = ""
    method: str = ""
    path: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    status: str = ""
    duration: str = ""
    params: dict[str, object] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        """Render with the fixed ``http.request.v1`` key order."""
        return {
            "ip": self.ip,
            "method": self.method,
            "path": self.path,
            "header": self.headers,
            "status": self.status,
            "duration": self.duration,
            "param": self.params,
        }


def normalize_headers(headers: Mapping[str, str | list[str] | tuple[str, ...]]) -> dict[str, str]:
    """Lower-case header names and join multi-value headers with ``", "``."""
    result: dict[str, str] = {}
    for name, value in headers.items():
        if isinstance(value, (list, tuple)):
            result[name.lower()] = ", ".join(value)
        else:
            result[name.lower()] = value
    return result


class _BufferedBody:
    """Reads a request body at most once and replays it to later readers.

    The bytes are also kept on ``req.context`` so that a body buffered
    before the responder ran is still available after the responder
    consumed the replay.  An unreadable body counts as empty.
    """

    __slots__ = ("_data", "_req")

    def __init__(self, req: falcon.Request) -> None:
        self._req = req
        self._data: bytes | None = None

    def read(self) -> bytes:
        if self._data is None:
            self._data = self._load()
        return self._data

    def _load(self) -> bytes:
        req = self._req
        cached = getattr(req.context, _BODY_ATTR, None)
        if isinstance(cached, bytes):
            return cached
        if isinstance(req, AsgiRequest):
            _logger.debug("Not reading asynchronous body of %s %s", req.method, req.path)
            return b""
        try:
            data = req.bounded_stream.read()
        except (OSError, falcon.HTTPError):
            _logger.debug("Ignoring unreadable body on %s %s", req.method, req.path, exc_info=True)
            return b""
        replay = BytesIO(data)
        req.env["wsgi.input"] = replay
        req.stream = replay
        # falcon 3.x and 4.x cache the bounded_stream wrapper in _bounded_stream;
        # clearing it makes the next access rewrap the replay.
        req._bounded_stream = None
        setattr(req.context, _BODY_ATTR, data)
        return data


def _wants_form(method: str, content_type: str) -> bool:
    return method in _FORM_METHODS and content_type.split(";", 1)[0].strip() == _FORM_CONTENT_TYPE


def _wants_json(content_type: str) -> bool:
    return _JSON_CONTENT_TYPE in content_type


def preload_body(req: falcon.Request) -> None:
    """Buffer the body of *req* now if enrichment would parse it later.

    Call this before the responder reads the body (e.g. from middleware)
    so that form and JSON parameters survive the responder's own read.
    Bodies of other content types are left untouched.
    """
    content_type = (req.content_type or "").lower()
    if _wants_form(req.method, content_type) or _wants_json(content_type):
        _BufferedBody(req).read()


def _merge_multi(params: dict[str, object], values: Mapping[str, str | list[str]]) -> None:
    for key, value in values.items():
        if isinstance(value, list) and len(value) == 1:
            params[key] = value[0]
        else:
            params[key] = value


def _form_params(req: falcon.Request, content_type: str, body: _BufferedBody) -> Mapping[str, str | list[str]]:
    if not _wants_form(req.method, content_type):
        return {}
    try:
        return parse_query_string(body.read().decode("utf-8"), keep_blank=True, csv=False)
    except (UnicodeDecodeError, ValueError):
        _logger.debug("Ignoring undecodable form body on %s %s", req.method, req.path, exc_info=True)
        return {}


def _json_params(req: falcon.Request, content_type: str, body: _BufferedBody) -> Mapping[str, object]:
    if not _wants_json(content_type):
        return {}
    try:
        parsed = json.loads(body.read())
    except (ValueError, RecursionError):
        _logger.debug("Ignoring malformed JSON body on %s %s", req.method, req.path, exc_info=True)
        return {}
    if not isinstance(parsed, dict):
        _logger.debug("Ignoring non-object JSON body on %s %s", req.method, req.path)
        return {}
    return parsed


def enrich_request(req: falcon.Request, status: str, duration: str) -> RequestRecord:
    """Build the ``request`` object of a log record from *req*.

    Args:
        req: The request being logged.  For a WSGI request the body stream
            is replaced by an equivalent in-memory stream if the body had
            to be read; an ASGI request's body is not read.
        status: Response status, already stringified by the caller.
        duration: Request duration, already stringified by the caller.

    Returns:
        A fully populated :class:`RequestRecord`.  Unreadable or unparseable
        bodies contribute no parameters; they never raise.

    """
    headers = normalize_headers(req.headers)
    record = RequestRecord(
        ip=parse_ip(req.remote_addr or ""),
        method=req.method,
        path=req.path,
        headers=headers,
        status=status,
        duration=duration,
    )

    content_type = headers.get("content-type", "").lower()
    body = _BufferedBody(req)
    _merge_multi(record.params, parse_query_string(req.query_string, keep_blank=True, csv=False))
    _merge_multi(record.params, _form_params(req, content_type, body))
    record.params.update(_json_params(req, content_type, body))
    return record

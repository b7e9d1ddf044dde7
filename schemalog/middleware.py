# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Falcon middleware emitting one ``http.request.v1`` line per request."""

from __future__ import annotations

import logging
import time

import falcon

from schemalog.fields import CHANNEL_KEY, DURATION_KEY, REQUEST_KEY, STATUS_KEY
from schemalog.request import preload_body

__all__ = ["AccessLogMiddleware"]

_logger = logging.getLogger(__name__)

_START_ATTR = "schemalog_started_at"


class AccessLogMiddleware:
    """Log every handled request with its status and duration.

    The record carries the falcon request under ``request``, so a logger
    using :class:`~schemalog.logging_utils.SchemaJsonFormatter` renders it
    with the ``http.request.v1`` schema.  Form and JSON bodies are buffered
    before the responder runs, so their parameters are logged even when
    the responder reads the body itself.

    Args:
        logger: Destination logger.  Defaults to ``schemalog.access``.
        channel: Value of the ``channel`` field.

    """

    def __init__(self, logger: logging.Logger | None = None, channel: str = "access") -> None:
        """Initialize with the destination *logger*."""
        self._access_logger = logger if logger is not None else logging.getLogger("schemalog.access")
        self._channel = channel

    def process_request(self, req: falcon.Request, resp: falcon.Response) -> None:
        """Record the start time and buffer a form or JSON body for the log line."""
        setattr(req.context, _START_ATTR, time.monotonic())
        preload_body(req)

    def process_response(
        self,
        req: falcon.Request,
        resp: falcon.Response,
        resource: object,
        req_succeeded: bool,
    ) -> None:
        """Emit the access log line."""
        if not self._access_logger.isEnabledFor(logging.INFO):
            return
        started = getattr(req.context, _START_ATTR, None)
        duration_ms = (time.monotonic() - started) * 1000 if started is not None else 0.0
        try:
            status = falcon.http_status_to_code(resp.status)
            self._access_logger.info(
                "%s %s %d",
                req.method,
                req.path,
                status,
                extra={
                    CHANNEL_KEY: self._channel,
                    REQUEST_KEY: req,
                    STATUS_KEY: status,
                    DURATION_KEY: f"{duration_ms:.2f}ms",
                },
            )
        except Exception:
            _logger.debug("Access log emission failed", exc_info=True)

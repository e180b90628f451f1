"""Structured JSON logging for adoptify.

Every log record is emitted as a single-line JSON object.  Structured
context travels in ``extra=log_fields(...)`` and lands as top-level keys,
always including an ``op`` naming the operation.  Field values pass
through :func:`~adoptify.utils.redact.redact` first, so an error string
that quotes a bearer header or personal access token never reaches the
stream.

Loggers and the events they emit:

=======================  =========  ======================================
Logger                   Level      Message
=======================  =========  ======================================
``adoptify.gateway``     WARNING    ``Rate limited, backing off``
``adoptify.transport``   WARNING    ``Request network error``
``adoptify.adopt``       INFO       ``Record adopted``
``adoptify.adopt``       ERROR      ``Version conflict while writing record``
``adoptify.adopt``       INFO       ``Adoption complete``
``adoptify.diff_tree``   DEBUG      ``Diff tree built``
``adoptify.client``      INFO       ``Skipping disallowed locale pair``
=======================  =========  ======================================

A record write looks like::

    {"ts": "2025-07-01T12:00:00.123456+00:00", "level": "INFO",
     "logger": "adoptify.adopt", "message": "Record adopted",
     "op": "adopt", "record_id": "abc123", "version": 4, "changed_fields": 2}

Usage::

    from adoptify.observability import get_logger, log_fields

    log = get_logger("adoptify.adopt")
    log.info("Adoption complete", extra=log_fields(op="adopt", root_id="abc"))
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from adoptify.utils.redact import redact


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    The formatter produces a JSON object with the following guaranteed keys:

    * ``ts`` -- ISO-8601 UTC time the record was created
    * ``level`` -- Python log level name (``DEBUG``, ``INFO``, ...)
    * ``logger`` -- Logger name
    * ``message`` -- Formatted log message

    Structured fields passed via ``extra=log_fields(...)`` are redacted and
    merged into the top-level JSON object.  ``exc_info`` and ``stack_info``
    are serialised when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(
            record, "extra_fields", None
        )
        if extra_fields is not None:
            log_entry.update(redact(extra_fields))

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_entry, default=str)


# One handler per logger name so that ``get_logger`` is idempotent.
_configured_loggers: set[str] = set()


def get_logger(
    name: str = "adoptify",
    *,
    level: int | str = logging.DEBUG,
    stream: Any | None = None,
) -> logging.Logger:
    """Get or create a structured JSON logger.

    Parameters
    ----------
    name:
        Logger name.  Defaults to ``"adoptify"``.
    level:
        Minimum log level.  Accepts an ``int`` (e.g. ``logging.INFO``) or a
        case-insensitive string (``"INFO"``).
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        A logger instance with a :class:`StructuredFormatter` handler
        attached.  Repeated calls with the same *name* return the same
        logger and do **not** add duplicate handlers.
    """
    logger = logging.getLogger(name)

    if name not in _configured_loggers:
        resolved_level = (
            logging.getLevelName(level.upper())
            if isinstance(level, str)
            else level
        )
        logger.setLevel(resolved_level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.propagate = False

        _configured_loggers.add(name)

    return logger


def log_fields(**fields: Any) -> dict[str, Any]:
    """Wrap *fields* for the ``extra=`` argument of a logging call.

    ``log.warning("backoff", extra=log_fields(attempt=2))`` is shorthand for
    ``extra={"extra_fields": {"attempt": 2}}``.
    """
    return {"extra_fields": fields}

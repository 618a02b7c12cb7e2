"""Structured logging setup using structlog.

The library itself only calls ``structlog.get_logger()``; applications that
want formatted output call :func:`setup_logging` once at start-up.

Events emitted by mailtools:

- ``unmatched_angle_brackets`` (warning): an address list had a ``<``
  without its ``>``; the address was completed anyway.
- ``bad_field_name`` (warning): a header line was rejected because its tag
  is not a valid field name.
- ``unadorned_from_ignored`` (error): a ``From `` envelope line was dropped
  under the ``ERROR`` mail-from policy.
- ``field_registered``, ``mbox_read``, ``filter_chain_stopped`` (debug).
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog


def setup_logging(
    *,
    json: bool = False,
    level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Route structlog events through the stdlib root logger.

    Parameters
    ----------
    json:
        If *True*, render each event as one JSON line.  The default is the
        human-friendly console renderer, which suits scripts and tests.
    level:
        Root log level name (e.g. ``"DEBUG"``, ``"warning"``).
    stream:
        Where to write; defaults to ``sys.stderr`` so header output written
        to stdout stays clean.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

"""Structured logging configuration using structlog."""

import logging
import sys
from typing import TextIO

import structlog

RENDERERS = ("json", "console")


def configure_logging(
    component: str,
    level: str = "INFO",
    fmt: str = "json",
    stream: TextIO | None = None,
) -> structlog.BoundLogger:
    """
    Configure structlog and return a logger bound to the component.

    Logs go to stderr unless a stream is given, so that stdout stays free
    for fit reports. "console" renders key=value lines for interactive use.
    """
    if fmt not in RENDERERS:
        raise ValueError(f"Unknown log format: {fmt!r}")
    renderer = (
        structlog.processors.JSONRenderer()
        if fmt == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=True,
    )
    return structlog.get_logger(component=component)

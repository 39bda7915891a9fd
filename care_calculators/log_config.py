"""structlog setup shared by the command-line entry points."""

from __future__ import annotations

import logging
import sys

import structlog


def configure_logging(verbose: bool = False) -> None:
    """Render key-value log events to stderr; DEBUG when verbose, else INFO."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.INFO
        ),
        # Resolve stderr per logger so redirected streams are honored
        logger_factory=lambda *args: structlog.PrintLogger(file=sys.stderr),
    )

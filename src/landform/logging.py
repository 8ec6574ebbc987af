"""Structured logging setup."""

import logging

import structlog


def configure_logging(verbose: bool = False) -> None:
    """Install the console logging pipeline.

    Args:
        verbose: Emit debug events (per-step erosion, placement exhaustion).
    """
    level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )

"""Structured logging configuration for gitpublisher.

This module configures structlog with support for:
- JSON and console output formats
- File rotation based on size
- Job and build number context binding

The structured log is the operator-facing record of a publish run. The
human-readable narration that ends up in the build's console lives in
:class:`gitpublisher.build.BuildLog`.

Example usage:
    >>> from gitpublisher.config import LoggingConfig
    >>> from gitpublisher.logging import setup_logging, get_logger, bind_build_context
    >>>
    >>> setup_logging(LoggingConfig(level="INFO", format="json"))
    >>> logger = get_logger(__name__)
    >>> bind_build_context(job_name="api", build_number=42)
    >>> logger.info("publish_started")
"""

from __future__ import annotations

import logging
import logging.handlers
import sys

import structlog

from gitpublisher.config import LoggingConfig


def bind_build_context(job_name: str, build_number: int) -> None:
    """Bind job and build context to all subsequent logs.

    Args:
        job_name: Name of the job being published
        build_number: Number of the build being published
    """
    structlog.contextvars.bind_contextvars(job_name=job_name, build_number=build_number)


def clear_build_context() -> None:
    """Remove any job and build context bound by :func:`bind_build_context`."""
    structlog.contextvars.unbind_contextvars("job_name", "build_number")


def setup_logging(config: LoggingConfig) -> None:
    """Configure structlog with the given configuration.

    This function sets up the complete logging pipeline including:
    - JSON or console rendering based on config.format
    - File rotation if config.file is specified
    - Timestamp, log level, and logger name processors

    Args:
        config: Logging configuration from GitPublisherConfig
    """
    log_level = getattr(logging, config.level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    if config.file is not None:
        config.file.parent.mkdir(parents=True, exist_ok=True)

        handler: logging.Handler = logging.handlers.RotatingFileHandler(
            filename=config.file,
            maxBytes=config.rotation_size_mb * 1024 * 1024,
            backupCount=config.retention_count,
            encoding="utf-8",
        )
    else:
        # stdout carries the build log
        handler = logging.StreamHandler(sys.stderr)

    handler.setLevel(log_level)
    root_logger.addHandler(handler)

    if config.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:  # console
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            # job_name / build_number from bind_build_context
            structlog.contextvars.merge_contextvars,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured structlog BoundLogger instance
    """
    return structlog.get_logger(name)

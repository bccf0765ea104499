"""structlog over stdlib logging, plus per-pool context binding."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

# Third-party loggers that are chatty at INFO (one line per HTTP request / RPC call).
NOISY_LOGGERS = ("httpx", "httpcore", "web3", "urllib3")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "console":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
) -> None:
    """Route structlog and stdlib records through one stderr handler.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: "json" for deployments, "console" for a terminal.
    """
    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(log_format),
        ],
    ))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None, **initial_context) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, optionally pre-bound with context."""
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


@contextmanager
def pool_context(pool_id: str, **extra) -> Iterator[None]:
    """Bind ``pool_id`` (and *extra*) to every log line emitted inside the block.

    Previous values are restored on exit, so nested contexts behave.
    """
    with structlog.contextvars.bound_contextvars(pool_id=pool_id, **extra):
        yield

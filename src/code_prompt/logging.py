from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

_STRUCTLOG_CONFIGURED = False


def setup_logging(
    filename: str | Path | None = None,
    *,
    level: int = logging.INFO,
) -> structlog.BoundLogger:
    """Set up structured logging for the code_prompt package.

    The stdlib root handler is (re)installed on every call so the CLI can redirect
    logs to a file or raise verbosity after the module-level default was set up.

    Args:
        filename: Optional path to a log file. If None, logs are written to stderr.
        level: Minimum stdlib level that reaches the handler.

    Returns:
        A structlog logger instance configured for the code_prompt package.
    """
    global _STRUCTLOG_CONFIGURED  # noqa: PLW0603
    handlers: list[logging.Handler] = []
    if filename:
        handlers.append(logging.FileHandler(str(filename), encoding="utf-8"))
    else:
        handlers.append(logging.StreamHandler(sys.stderr))

    logging.basicConfig(
        level=level,
        handlers=handlers,
        format="%(message)s",
        force=True,
    )
    if not _STRUCTLOG_CONFIGURED:
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            # stdlib decides the effective level, see basicConfig above
            wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _STRUCTLOG_CONFIGURED = True

    return structlog.get_logger("code_prompt")


logger = setup_logging()

"""
Logging for pre-flight checks.

Module loggers are plain stdlib loggers; feasibility verdicts are emitted as
structured ``feasibility_verdict`` events bound to the call being checked
(method, relay worker, gas price). ``setup_logging`` renders both through
structlog on stderr, so a CLI verdict printed on stdout stays parseable:
JSON lines by default, the console renderer at DEBUG.
"""

import logging
import sys
from typing import Any, Optional

import structlog

from .config import settings


VERDICT_LOGGER_NAME = "preflight.feasibility"


def get_verdict_logger(**context: Any) -> structlog.stdlib.BoundLogger:
    """Logger for ``feasibility_verdict`` events, bound to ``context``."""
    return structlog.stdlib.get_logger(VERDICT_LOGGER_NAME).bind(**context)


def setup_logging(log_level: Optional[str] = None) -> None:
    """Route stdlib and structlog records through one stderr handler.

    Args:
        log_level: Override log level (default: from settings.log_level)
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if level == logging.DEBUG:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Per-request transport chatter
    for name in ("httpcore", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)

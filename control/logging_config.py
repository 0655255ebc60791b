"""structlog setup for the simulator CLI and tools."""
from __future__ import annotations
import logging
import sys

import structlog

VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

def configure_logging(log_level: str = "WARNING", json_output: bool = False) -> None:
    level = log_level.upper()
    if level not in VALID_LEVELS:
        logging.warning(f"Invalid log level '{log_level}', defaulting to WARNING")
        level = "WARNING"

    # logs go to stderr so they never interleave with maps on stdout
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=getattr(logging, level))

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors += [structlog.dev.ConsoleRenderer(colors=False)]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

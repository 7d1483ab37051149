# flowdeps/logging_setup.py
"""
structlog setup for the CLI.

flowdeps library code only logs through ``structlog.get_logger``; nothing is
printed until ``configure_logging`` attaches a handler to the ``flowdeps``
logger. Logs go to stderr so stdout stays clean for plans and JSON.
"""
import logging
import sys
from typing import List

import structlog

LOGGER_NAME = "flowdeps"
VERBOSITY_LEVELS = ("warning", "info", "debug")


def log_level_for_verbosity(verbosity: int) -> str:
    # -v -> info, -vv (or more) -> debug
    return VERBOSITY_LEVELS[max(0, min(verbosity, len(VERBOSITY_LEVELS) - 1))]


def _pre_chain() -> List:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.format_exc_info,
    ]


def _renderer(json_logs: bool):
    if json_logs:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(log_level_str: str = "warning", force_json_logs: bool = False) -> logging.Logger:
    """Route flowdeps structlog events through a stderr handler.

    Calling it again replaces the previous handler, so the level and renderer
    always match the last call. Returns the configured ``flowdeps`` logger.
    """
    level = logging.getLevelName(log_level_str.upper())
    if not isinstance(level, int):
        level = logging.WARNING

    structlog.configure(
        processors=_pre_chain() + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processor=_renderer(force_json_logs),
        foreign_pre_chain=[structlog.stdlib.add_log_level],
    ))

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    structlog.get_logger(__name__).debug("logging_configured", level=logging.getLevelName(level), json=force_json_logs)
    return logger

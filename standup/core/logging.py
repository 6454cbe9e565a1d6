"""
structlog setup — key/value events on stderr so they never mix with the report.
"""

import logging
import sys

import structlog

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def level_for(base_level: str, verbose: int = 0) -> int:
    """Resolve the effective level; each -v step lowers it by one notch."""
    level = _LEVELS.get(base_level.upper(), logging.WARNING)
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return min(level, logging.INFO)
    return level


def setup_logging(base_level: str = "WARNING", verbose: int = 0) -> None:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            level_for(base_level, verbose)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

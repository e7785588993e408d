"""
Centralized logging configuration for fastixe runs.

Provides:
- Rich console handler on stderr (stdout may carry FASTA output)
- A TRACE level below DEBUG for per-record diagnostics
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Module-level state
_logging_initialized = False


def level_from_flags(debug: bool = False, trace: bool = False) -> int:
    """Map the --debug/--trace flags to a logging level."""
    if trace:
        return TRACE
    if debug:
        return logging.DEBUG
    return logging.INFO


def setup_logging(level: int = logging.INFO, console: Console | None = None) -> None:
    """
    Initialize process-wide logging once.

    Later calls are ignored so that library entry points can call this
    defensively without re-initializing handlers.

    Args:
        level: Root log level (TRACE, DEBUG or INFO).
        console: Console to log to. Defaults to a stderr console.
    """
    global _logging_initialized

    if _logging_initialized:
        return

    handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        markup=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    _logging_initialized = True


def reset_logging() -> None:
    """Reset logging state. Useful for testing."""
    global _logging_initialized
    _logging_initialized = False

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

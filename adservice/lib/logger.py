"""
Logging setup for adservice.

Every module logs through the "adservice" logger exported here as `logging`.
The command line installs a handler with init(); library callers may attach
their own handlers instead.
"""

import logging as _logging
import sys
from typing import Dict, Optional, TextIO

LOGGER_NAME = "adservice"

_IS_VERBOSE = False

BULLET_POINTS: Dict[int, str] = {
    _logging.INFO: "[*]",
    _logging.DEBUG: "[+]",
    _logging.WARNING: "[!]",
    _logging.ERROR: "[-]",
    _logging.CRITICAL: "[-]",
}


def set_verbose(is_verbose: bool) -> None:
    """
    Switch debug output on or off.

    Verbose mode lowers the logger to DEBUG, which shows rights resolution,
    ledger activity and operation refusals, and makes handle_error print
    stack traces.
    """
    global _IS_VERBOSE
    _IS_VERBOSE = is_verbose
    logging.setLevel(_logging.DEBUG if is_verbose else _logging.INFO)


def is_verbose() -> bool:
    return _IS_VERBOSE


class Formatter(_logging.Formatter):
    """Prefixes each record with the bullet of its level ([-] when unknown)."""

    def __init__(self) -> None:
        super().__init__("%(bullet)s %(message)s")

    def format(self, record: _logging.LogRecord) -> str:
        record.bullet = BULLET_POINTS.get(record.levelno, "[-]")
        return super().format(record)


def init(
    level: int = _logging.INFO,
    logger_name: str = LOGGER_NAME,
    propagate: bool = False,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Install the bullet formatter on a logger.

    Calling it again replaces the handler instead of adding a second one.

    Args:
        level: Initial level
        logger_name: Logger to configure
        propagate: Whether records also reach the parent loggers
        stream: Output stream, standard output by default
    """
    handler = _logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(Formatter())

    logger = _logging.getLogger(logger_name)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


logging = _logging.getLogger(LOGGER_NAME)

"""
Logging configuration for health-audit.

Hosts may be audited concurrently, so engine records carry the host they
belong to (see host_logger) and the console format shows it.
"""

import logging
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(host)s%(message)s"
DATE_FORMAT = "%H:%M:%S"

LEVEL_COLORS = {
    logging.DEBUG: "\033[90m",
    logging.INFO: "\033[94m",
    logging.WARNING: "\033[93m",
    logging.ERROR: "\033[91m",
    logging.CRITICAL: "\033[1m\033[91m",
}
RESET = "\033[0m"

AnyLogger = Union[logging.Logger, logging.LoggerAdapter]


class HostFormatter(logging.Formatter):
    """Formatter rendering the optional ``host`` attribute as a ``[host] `` prefix."""

    def __init__(self, use_colors: bool = False):
        super().__init__(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
        self.use_colors = use_colors

    def format(self, record):
        record = logging.makeLogRecord(record.__dict__)
        host = getattr(record, "host", None)
        record.host = f"[{host}] " if host else ""
        color = LEVEL_COLORS.get(record.levelno) if self.use_colors else None
        if color:
            record.levelname = f"{color}{record.levelname}{RESET}"
        return super().format(record)


class HostLogAdapter(logging.LoggerAdapter):
    """Adds the audited host to every record."""

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("host", self.extra["host"])
        kwargs["extra"] = extra
        return msg, kwargs


def host_logger(logger: logging.Logger, host: str) -> HostLogAdapter:
    return HostLogAdapter(logger, {"host": host})


def setup_logging(
    verbosity: int = 0, use_colors: bool = True, log_file: Optional[str] = None
) -> None:
    """
    Setup logging configuration based on verbosity level.

    Args:
        verbosity: Verbosity level (0-2)
            0: Only show warnings and errors
            1: Show DEBUG messages from health_audit modules (-v)
            2: Show all DEBUG messages including paramiko transport logs (-vv)
        use_colors: Whether to color level names on a terminal
        log_file: Also append every health_audit record (DEBUG and up) here
    """
    level = logging.DEBUG if verbosity >= 1 else logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(HostFormatter(use_colors and sys.stderr.isatty()))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(HostFormatter())
        root_logger.addHandler(file_handler)

    # paramiko is chatty at DEBUG, keep it quiet unless -vv
    logging.getLogger("paramiko").setLevel(
        logging.DEBUG if verbosity >= 2 else logging.WARNING
    )
    logging.getLogger("health_audit").setLevel(
        logging.DEBUG if log_file or verbosity >= 1 else logging.WARNING
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the health_audit namespace.

    Args:
        name: Module name (usually __name__)

    Returns:
        Configured logger instance
    """
    if name == "__main__":
        name = "health_audit.cli"
    elif not name.startswith("health_audit") and "." not in name:
        name = f"health_audit.{name}"

    return logging.getLogger(name)


def log_success(message: str, logger: Optional[AnyLogger] = None) -> None:
    """Log a success message."""
    (logger or get_logger("health_audit")).info("✓ %s", message)


def log_error(message: str, logger: Optional[AnyLogger] = None) -> None:
    (logger or get_logger("health_audit")).error("✗ %s", message)


def log_warning(message: str, logger: Optional[AnyLogger] = None) -> None:
    (logger or get_logger("health_audit")).warning("⚠ %s", message)

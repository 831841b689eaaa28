"""
Tests for health_audit.core.logging_config module.
"""

import logging

from health_audit.core.logging_config import (
    HostFormatter,
    get_logger,
    host_logger,
    setup_logging,
)


def make_record(**extra):
    record = logging.LogRecord(
        "health_audit.audit.engine",
        logging.WARNING,
        __file__,
        1,
        "unreachable: %s",
        ("timeout",),
        None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLoggingConfig:
    """Test cases for the logging setup."""

    def test_get_logger_namespace(self):
        """Test that loggers are placed under health_audit."""
        assert get_logger("health_audit.checks.oss").name == "health_audit.checks.oss"
        assert get_logger("engine").name == "health_audit.engine"
        assert get_logger("__main__").name == "health_audit.cli"
        assert get_logger("paramiko.transport").name == "paramiko.transport"

    def test_formatter_host_prefix(self):
        """Test that records of a host are prefixed with it."""
        line = HostFormatter().format(make_record(host="eniq-engine"))

        assert line.endswith("WARNING [eniq-engine] unreachable: timeout")

    def test_formatter_without_host(self):
        """Test records logged outside a host audit."""
        line = HostFormatter().format(make_record())

        assert line.endswith("WARNING unreachable: timeout")

    def test_formatter_colors(self):
        """Test that colored output wraps the level name only."""
        record = make_record(host="oss-master")

        line = HostFormatter(use_colors=True).format(record)

        assert "\033[93mWARNING\033[0m" in line
        assert record.levelname == "WARNING"

    def test_host_logger(self):
        """Test that the adapter tags records with the host."""
        records = []

        class Collect(logging.Handler):
            def emit(self, record):
                records.append(record)

        logger = logging.getLogger("health_audit.test_host_logger")
        handler = Collect()
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        try:
            host_logger(logger, "ombs-site-a").info("checks passed")
        finally:
            logger.removeHandler(handler)

        assert records[0].host == "ombs-site-a"

    def test_setup_logging_levels(self):
        """Test verbosity levels for health_audit and paramiko."""
        setup_logging(0)
        assert logging.getLogger("health_audit").level == logging.WARNING
        assert logging.getLogger("paramiko").level == logging.WARNING

        setup_logging(2)
        assert logging.getLogger("health_audit").level == logging.DEBUG
        assert logging.getLogger("paramiko").level == logging.DEBUG

    def test_setup_logging_file(self, tmp_path):
        """Test that a log file receives debug records."""
        log_file = tmp_path / "audit.log"
        setup_logging(0, log_file=str(log_file))

        get_logger("health_audit.audit.engine").debug("running %s", "CheckBeadm")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "running CheckBeadm" in log_file.read_text()
        setup_logging(0)

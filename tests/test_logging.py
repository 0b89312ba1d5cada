"""Tests for structured logging setup."""
import json
import logging

import pytest
import structlog

from license_attributor.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
    logging.basicConfig(force=True, level=logging.WARNING)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_default_level(self) -> None:
        """Test that info is the default level."""
        configure_logging()

        assert logging.getLogger().level == logging.INFO

    def test_verbose(self) -> None:
        """Test that verbose enables debug output."""
        configure_logging(verbose=True)

        assert logging.getLogger().level == logging.DEBUG

    def test_quiet_wins(self) -> None:
        """Test that quiet keeps only warnings and errors."""
        configure_logging(verbose=True, quiet=True)

        assert logging.getLogger().level == logging.WARNING

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that JSON mode writes one object per line to stderr."""
        configure_logging(json_log=True)

        get_logger("test_json_output").info("gathered evidence", crate="serde 1.0.0")

        captured = capsys.readouterr()
        assert captured.out == ""
        record = json.loads(captured.err.strip().splitlines()[-1])
        assert record["event"] == "gathered evidence"
        assert record["crate"] == "serde 1.0.0"
        assert record["level"] == "info"


def test_get_logger_binds() -> None:
    """Test that loggers support binding context."""
    log = get_logger().bind(crate="serde 1.0.0")

    assert log is not None

"""
Tests for logging infrastructure.
"""

import json
import logging
import logging.handlers
import sys

import pytest
from pydantic import ValidationError

from blobfilestore.core.config_manager import LoggingConfig
from blobfilestore.core.logging_config import (
    JSONFormatter,
    SensitiveDataFilter,
    TextFormatter,
    parse_size,
    redact,
    setup_logging,
)

ACCOUNT_KEY = "c2VjcmV0a2V5"
CONNECTION_STRING = (
    f"DefaultEndpointsProtocol=https;AccountName=dev;AccountKey={ACCOUNT_KEY};"
    "EndpointSuffix=core.windows.net"
)


@pytest.fixture(autouse=True)
def restore_logging():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name in ("azure", "blobfilestore.store"):
        logging.getLogger(name).setLevel(logging.NOTSET)


def _record(msg, args=None, level=logging.INFO, name="test", exc_info=None):
    return logging.LogRecord(name, level, __file__, 1, msg, args, exc_info)


class TestSetupLogging:
    """Test configuring the root logger from LoggingConfig."""

    def test_defaults(self):
        """Test the default configuration: INFO, JSON, stderr only."""
        handlers = setup_logging(LoggingConfig())

        root = logging.getLogger()
        assert root.level == logging.INFO
        assert root.handlers == handlers
        assert len(handlers) == 1
        assert handlers[0].stream is sys.stderr
        assert isinstance(handlers[0].formatter, JSONFormatter)
        assert any(isinstance(f, SensitiveDataFilter) for f in handlers[0].filters)

    def test_text_format(self):
        """Test selecting the text formatter."""
        setup_logging(LoggingConfig(level="DEBUG", format="text"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, TextFormatter)

    def test_rotating_file(self, tmp_path):
        """Test that a file handler honours the rotation settings."""
        log_file = tmp_path / "logs" / "store.log"
        handlers = setup_logging(
            LoggingConfig(file=str(log_file), rotation_size="1KB", rotation_count=3)
        )

        file_handler = handlers[1]
        assert isinstance(file_handler, logging.handlers.RotatingFileHandler)
        assert file_handler.maxBytes == 1024
        assert file_handler.backupCount == 3

        logging.getLogger("blobfilestore.store").info("Provisioned container '%s'", "files")
        file_handler.flush()

        line = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert line["message"] == "Provisioned container 'files'"
        assert line["logger"] == "blobfilestore.store"

    def test_reconfigure_closes_previous_handlers(self, tmp_path):
        """Test that handlers from an earlier setup are closed and replaced."""
        first = setup_logging(LoggingConfig(file=str(tmp_path / "first.log")))
        second = setup_logging(LoggingConfig(format="text"))

        root = logging.getLogger()
        assert root.handlers == second
        assert first[1].stream is None

    def test_module_levels(self):
        """Test per-module levels on top of the Azure SDK default."""
        setup_logging(LoggingConfig(module_levels={"blobfilestore.store": "debug"}))

        assert logging.getLogger("blobfilestore.store").level == logging.DEBUG
        assert logging.getLogger("azure").level == logging.WARNING

    def test_module_levels_can_raise_azure_verbosity(self):
        """Test that configured module levels win over the SDK default."""
        setup_logging(LoggingConfig(module_levels={"azure": "INFO"}))

        assert logging.getLogger("azure").level == logging.INFO

    def test_invalid_module_level(self):
        with pytest.raises(ValidationError):
            LoggingConfig(module_levels={"azure": "LOUD"})

    def test_invalid_rotation_size(self):
        with pytest.raises(ValidationError):
            LoggingConfig(rotation_size="ten megabytes")


class TestRedaction:
    """Test redaction of storage credentials."""

    def test_redact_account_key(self):
        text = redact(CONNECTION_STRING)

        assert ACCOUNT_KEY not in text
        assert "AccountKey=***REDACTED***" in text
        assert "AccountName=dev" in text
        assert "EndpointSuffix=core.windows.net" in text

    def test_redact_sas_signature(self):
        text = redact("url=https://dev.blob.core.windows.net/files?sv=2021&sig=abc123&se=2025")

        assert "abc123" not in text
        assert "se=2025" in text

    def test_redact_shared_access_signature(self):
        text = redact("SharedAccessSignature=sv=2021&sig=xyz;BlobEndpoint=https://x")

        assert "sv=2021" not in text
        assert "BlobEndpoint=https://x" in text

    @pytest.mark.parametrize(
        "header",
        ["Authorization: Bearer token-value", "'Authorization': 'SharedKey token-value'"],
    )
    def test_redact_authorization_header(self, header):
        assert "token-value" not in redact(header)

    def test_plain_text_unchanged(self):
        assert redact("Provisioned container 'files'") == "Provisioned container 'files'"

    def test_filter_redacts_arguments(self):
        """Test that secrets passed as %-style arguments are masked."""
        record = _record("Connecting with %s", (CONNECTION_STRING,))

        assert SensitiveDataFilter().filter(record) is True

        assert ACCOUNT_KEY not in record.getMessage()
        assert "AccountKey=***REDACTED***" in record.getMessage()
        assert record.args is None

    def test_filter_redacts_message(self):
        record = _record(f"conn={CONNECTION_STRING}")

        SensitiveDataFilter().filter(record)

        assert ACCOUNT_KEY not in record.getMessage()

    def test_filter_leaves_mismatched_arguments(self):
        """Test that a broken format string is left for the handler to report."""
        record = _record("%s and %s", ("only one",))

        assert SensitiveDataFilter().filter(record) is True
        assert record.args == ("only one",)

    def test_sdk_logger_output_is_redacted(self, tmp_path):
        """Test end to end that an SDK-style log call never writes the key."""
        log_file = tmp_path / "sdk.log"
        handlers = setup_logging(LoggingConfig(file=str(log_file), module_levels={"azure": "INFO"}))

        logging.getLogger("azure.core.pipeline").info("Request headers: %r", {"x-conn": CONNECTION_STRING})
        handlers[1].flush()

        assert ACCOUNT_KEY not in log_file.read_text()


class TestFormatters:
    """Test log formatters."""

    def test_json_formatter(self):
        record = _record("hello %s", ("world",), level=logging.WARNING, name="blobfilestore.store")
        data = json.loads(JSONFormatter().format(record))

        assert data["level"] == "WARNING"
        assert data["logger"] == "blobfilestore.store"
        assert data["message"] == "hello world"
        assert "timestamp" in data
        assert "exception" not in data

    def test_json_formatter_with_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record("failed", level=logging.ERROR, exc_info=sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError: boom" in data["exception"]

    def test_text_formatter(self):
        line = TextFormatter().format(_record("hello", name="blobfilestore.cli"))

        assert "[INFO] blobfilestore.cli: hello" in line


class TestParseSize:
    """Test size parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("10MB", 10 * 1024 ** 2),
            ("1GB", 1024 ** 3),
            ("512KB", 512 * 1024),
            ("100B", 100),
            ("2048", 2048),
            (" 1.5mb ", int(1.5 * 1024 ** 2)),
        ],
    )
    def test_parse_size(self, value, expected):
        assert parse_size(value) == expected

    @pytest.mark.parametrize("value", ["", "MB", "10TB", "ten"])
    def test_invalid_size(self, value):
        with pytest.raises(ValueError):
            parse_size(value)

"""
Tests for the command-line interface.

Commands run against an in-memory backend injected through the click
context object.
"""

import asyncio
import json
import logging
import warnings

import pytest
import yaml
from click.testing import CliRunner

from blobfilestore.backends.memory import InMemoryBlobBackend
from blobfilestore.cli import cli
from blobfilestore.core.logging_config import JSONFormatter
from blobfilestore.store.file_store import BlobFileStore
from blobfilestore.store.provisioning import ProvisionedContainerSet


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "BLOBFILESTORE_CONNECTION_STRING",
        "AZURE_STORAGE_CONNECTION_STRING",
        "BLOBFILESTORE_PAGE_SIZE",
        "BLOBFILESTORE_AZURE_DISABLED",
        "BLOBFILESTORE_LOG_LEVEL",
        "BLOBFILESTORE_LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Drop the handlers each command attaches to the runner's streams."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("azure").setLevel(logging.NOTSET)


@pytest.fixture
def memory_backend():
    return InMemoryBlobBackend()


@pytest.fixture
def store_factory(memory_backend):
    memo = ProvisionedContainerSet()
    return lambda config: BlobFileStore(memory_backend, memo)


@pytest.fixture
def invoke(store_factory):
    """Run a CLI command against the shared in-memory backend, logging errors only."""
    runner = CliRunner()

    def run(*args, input=None):
        obj = {"store_factory": store_factory}
        return runner.invoke(cli, ["--log-level", "ERROR", *args], obj=obj, input=input)

    return run


def _names(backend, container):
    page = asyncio.run(backend.list_blobs_page(container))
    return [entry.name for entry in page.entries]


class TestFileCommands:
    """Test single-file commands."""

    def test_put_and_get(self, invoke, tmp_path):
        source = tmp_path / "report.txt"
        source.write_bytes(b"quarterly numbers")

        result = invoke("put", "Files", "reports/q1.txt", str(source))
        assert result.exit_code == 0, result.output
        assert "Uploaded 17 bytes to Files/reports/q1.txt" in result.output

        result = invoke("get", "files", "reports/q1.txt")
        assert result.exit_code == 0
        assert result.stdout_bytes == b"quarterly numbers"

    def test_get_to_file(self, invoke, tmp_path):
        invoke("put", "files", "a.txt", "-", input=b"hello")
        output = tmp_path / "out.txt"

        result = invoke("get", "files", "a.txt", "-o", str(output))

        assert result.exit_code == 0
        assert output.read_bytes() == b"hello"

    def test_get_missing(self, invoke):
        result = invoke("get", "files", "missing.txt")

        assert result.exit_code == 1
        assert "File not found: files/missing.txt" in result.output

    def test_exists(self, invoke):
        assert invoke("exists", "files", "a.txt").output.strip() == "false"
        invoke("put", "files", "a.txt", "-", input=b"x")
        assert invoke("exists", "files", "a.txt").output.strip() == "true"

    def test_put_create_conflict(self, invoke):
        invoke("put", "files", "a.txt", "-", input=b"one")

        result = invoke("put", "files", "a.txt", "-", input=b"two")

        assert result.exit_code == 1
        assert "File already exists: files/a.txt" in result.output

    def test_put_replace(self, invoke):
        invoke("put", "files", "a.txt", "-", input=b"one")

        result = invoke("put", "files", "a.txt", "-", "--mode", "replace", input=b"two")

        assert result.exit_code == 0
        assert invoke("get", "files", "a.txt").stdout_bytes == b"two"

    def test_put_if_not_exists(self, invoke):
        invoke("put", "files", "a.txt", "-", input=b"one")

        result = invoke("put", "files", "a.txt", "-", "--mode", "if-not-exists", input=b"two")

        assert result.exit_code == 0
        assert "Kept existing file files/a.txt" in result.output
        assert invoke("get", "files", "a.txt").stdout_bytes == b"one"

    def test_rm(self, invoke):
        invoke("put", "files", "a.txt", "-", input=b"x")

        assert invoke("rm", "files", "a.txt").exit_code == 0
        assert invoke("rm", "files", "a.txt").exit_code == 0
        assert invoke("exists", "files", "a.txt").output.strip() == "false"


class TestDirectoryCommands:
    """Test bulk delete commands."""

    @pytest.fixture
    def populated(self, invoke):
        for key in ("docs/a.txt", "docs/sub/b.txt", "docsx/c.txt", "root.txt"):
            invoke("put", "files", key, "-", input=b"x")
        return invoke

    def test_rmdir(self, populated, memory_backend):
        result = populated("rmdir", "files", "docs")

        assert result.exit_code == 0
        assert _names(memory_backend, "files") == ["docsx/c.txt", "root.txt"]

    def test_clear_dir(self, populated, memory_backend):
        result = populated("clear-dir", "files", "docs/")

        assert result.exit_code == 0
        assert _names(memory_backend, "files") == ["docsx/c.txt", "root.txt"]

    def test_clear_container(self, populated, memory_backend):
        result = populated("clear-container", "files", "--yes")

        assert result.exit_code == 0
        assert _names(memory_backend, "files") == []

    def test_clear_container_aborted(self, populated, memory_backend):
        result = populated("clear-container", "files", input="n\n")

        assert result.exit_code == 1
        assert len(_names(memory_backend, "files")) == 4


class TestConfiguration:
    """Test configuration handling."""

    def test_missing_connection_string(self):
        """Test that the default factory reports a missing connection string."""
        result = CliRunner().invoke(cli, ["exists", "files", "a.txt"], obj={})

        assert result.exit_code == 1
        assert "connection_string is required" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"], obj={})

        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_invalid_configuration(self, tmp_path):
        """Test that a config that fails validation is reported, not raised."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"logging": {"format": "xml"}}))

        result = CliRunner().invoke(cli, ["--config", str(config_file), "exists", "files", "a.txt"], obj={})

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestLoggingConfiguration:
    """Test that the logging section of the configuration drives the CLI's logging."""

    def _config_file(self, tmp_path, **logging_settings):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"logging": logging_settings}))
        return config_file

    def test_config_file_logging_settings_applied(self, tmp_path, store_factory):
        log_file = tmp_path / "out.log"
        config_file = self._config_file(tmp_path, level="DEBUG", format="json", file=str(log_file))

        result = CliRunner().invoke(
            cli,
            ["--config", str(config_file), "exists", "files", "a.txt"],
            obj={"store_factory": store_factory},
        )

        assert result.exit_code == 0, result.output
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert root.handlers
        assert all(isinstance(handler.formatter, JSONFormatter) for handler in root.handlers)

        messages = [json.loads(line)["message"] for line in log_file.read_text().splitlines()]
        assert "Provisioned container 'files' (created=True)" in messages

    def test_log_level_option_wins_over_config(self, tmp_path, store_factory):
        config_file = self._config_file(tmp_path, level="DEBUG", format="text")

        result = CliRunner().invoke(
            cli,
            ["--config", str(config_file), "--log-level", "error", "exists", "files", "a.txt"],
            obj={"store_factory": store_factory},
        )

        assert result.exit_code == 0
        assert logging.getLogger().level == logging.ERROR
        assert result.output.strip() == "false"

    def test_log_level_from_environment(self, monkeypatch, store_factory):
        monkeypatch.setenv("BLOBFILESTORE_LOG_LEVEL", "critical")

        result = CliRunner().invoke(cli, ["exists", "files", "a.txt"], obj={"store_factory": store_factory})

        assert result.exit_code == 0
        assert logging.getLogger().level == logging.CRITICAL
        assert result.output.strip() == "false"


class TestBinaryOutput:
    """Test writing file content to stdout."""

    def test_get_writes_bytes_without_deprecation_warnings(self, invoke):
        content = bytes(range(256))
        invoke("put", "files", "blob.bin", "-", input=content)

        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            result = invoke("get", "files", "blob.bin")

        assert result.exit_code == 0, result.exception
        assert result.stdout_bytes == content

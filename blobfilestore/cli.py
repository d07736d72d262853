"""
blobfilestore Command-Line Interface

Runs file store operations against a storage account from the shell.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional

import click

from blobfilestore import __version__
from blobfilestore.core.config_manager import BlobFileStoreAppConfig, ConfigManager
from blobfilestore.core.logging_config import setup_logging
from blobfilestore.exceptions import FileStoreError
from blobfilestore.store.file_store import BlobFileStore

logger = logging.getLogger("blobfilestore.cli")

StoreFactory = Callable[[BlobFileStoreAppConfig], BlobFileStore]


@click.group()
@click.version_option(version=__version__, prog_name="blobfilestore")
@click.option(
    "--connection-string",
    envvar="BLOBFILESTORE_CONNECTION_STRING",
    help="Storage account connection string",
)
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level (overrides the logging.level setting)",
)
@click.pass_context
def cli(ctx, connection_string: Optional[str], config_file: Optional[Path], log_level: Optional[str]):
    """
    blobfilestore - files in cloud blob storage

    Files are addressed by CONTAINER and KEY; directories are key prefixes.
    """
    ctx.ensure_object(dict)

    overrides: Dict[str, Any] = {}
    if connection_string:
        overrides["blob_file_store"] = {"connection_string": connection_string}
    if log_level:
        overrides["logging"] = {"level": log_level.upper()}

    try:
        config = ConfigManager().load(
            config_file=str(config_file) if config_file else None,
            overrides=overrides,
        )
    except ValueError as e:
        # pydantic's ValidationError is a ValueError
        raise click.ClickException(f"Invalid configuration: {e}")
    setup_logging(config.logging)

    ctx.obj["config"] = config
    ctx.obj.setdefault("store_factory", BlobFileStore.from_config)


def _run(ctx: click.Context, operation: Callable[[BlobFileStore], Awaitable[Any]]) -> Any:
    """Build a store, run one operation on it and map file store errors to exit codes."""
    factory: StoreFactory = ctx.obj["store_factory"]

    async def runner() -> Any:
        store = factory(ctx.obj["config"])
        async with store:
            return await operation(store)

    try:
        return asyncio.run(runner())
    except FileStoreError as e:
        logger.debug(f"Command failed: {e}")
        raise click.ClickException(str(e))


@cli.command()
@click.argument("container")
@click.argument("key")
@click.pass_context
def exists(ctx, container: str, key: str):
    """Print whether a file exists."""
    found = _run(ctx, lambda store: store.exists(container, key))
    click.echo("true" if found else "false")


@cli.command()
@click.argument("container")
@click.argument("key")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Write the file here instead of stdout",
)
@click.pass_context
def get(ctx, container: str, key: str, output: Optional[Path]):
    """Download a file."""

    async def read(store: BlobFileStore) -> Optional[bytes]:
        stream = await store.get(container, key)
        if stream is None:
            return None
        with stream:
            return stream.read()

    data = _run(ctx, read)
    if data is None:
        raise click.ClickException(f"File not found: {container}/{key}")

    if output:
        output.write_bytes(data)
    else:
        click.echo(data, nl=False)


@cli.command()
@click.argument("container")
@click.argument("key")
@click.argument("source", type=click.File("rb"))
@click.option(
    "--mode",
    type=click.Choice(["create", "replace", "if-not-exists"]),
    default="create",
    show_default=True,
    help="create fails if the file exists; replace overwrites; if-not-exists keeps the existing file",
)
@click.pass_context
def put(ctx, container: str, key: str, source, mode: str):
    """Upload SOURCE (a path or - for stdin) to a file."""
    data = source.read()

    if mode == "replace":
        _run(ctx, lambda store: store.create_or_replace(container, key, data))
    elif mode == "if-not-exists":
        written = _run(ctx, lambda store: store.create_if_not_exists(container, key, data))
        if not written:
            click.echo(f"Kept existing file {container}/{key}")
            return
    else:
        _run(ctx, lambda store: store.create(container, key, data))

    click.echo(f"Uploaded {len(data)} bytes to {container}/{key}")


@cli.command()
@click.argument("container")
@click.argument("key")
@click.pass_context
def rm(ctx, container: str, key: str):
    """Delete a file if it exists."""
    _run(ctx, lambda store: store.delete(container, key))


@cli.command()
@click.argument("container")
@click.argument("directory")
@click.pass_context
def rmdir(ctx, container: str, directory: str):
    """Delete a directory and everything under it."""
    _run(ctx, lambda store: store.delete_directory(container, directory))


@cli.command("clear-dir")
@click.argument("container")
@click.argument("directory")
@click.pass_context
def clear_dir(ctx, container: str, directory: str):
    """Delete everything under a directory."""
    _run(ctx, lambda store: store.clear_directory(container, directory))


@cli.command("clear-container")
@click.argument("container")
@click.confirmation_option(prompt="Delete every file in the container?")
@click.pass_context
def clear_container(ctx, container: str):
    """Delete every file in a container, keeping the container."""
    _run(ctx, lambda store: store.clear_container(container))


def main():
    """Main entry point for CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()

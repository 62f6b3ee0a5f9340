"""CLI entry point for todo-tracker.

Both front-ends share one backing file, so they can run as separate
processes (`mcp` launched by the assistant client, `web` by the user) or
together with `serve`.

Usage:
    todo-tracker mcp                  # MCP stdio server
    todo-tracker web --port 3456      # REST API + dashboard
    todo-tracker serve                # Both in one process
    todo-tracker init-config          # Create config file
    todo-tracker seed --force         # Reset the data file to seed data
    todo-tracker --version            # Show version
"""

import asyncio
import contextlib
import signal
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import click

from todo_tracker import __version__
from todo_tracker.config import (
    Settings,
    get_config_path,
    get_default_config,
    load_settings_with_toml,
)
from todo_tracker.core.store import TodoStore, default_data
from todo_tracker.storage import JsonFileStorage, StorageError
from todo_tracker.utils.logging import get_logger, setup_logging


def build_store(settings: Settings) -> TodoStore:
    """Create the store over the configured backing file."""
    return TodoStore(JsonFileStorage(settings.resolved_data_path))


def _settings_from_context(ctx: click.Context, **overrides: Any) -> Settings:
    config_path = ctx.obj.get("config_path")
    return load_settings_with_toml(
        Path(config_path) if config_path else None,
        data_path=ctx.obj.get("data_path"),
        log_level=ctx.obj.get("log_level"),
        **overrides,
    )


@click.group()
@click.option(
    "--config",
    type=click.Path(exists=False),
    help="Override global config file path",
)
@click.option(
    "--data-path",
    type=click.Path(dir_okay=False),
    help="Override the JSON data file",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Override log level",
)
@click.version_option(version=__version__, prog_name="todo-tracker")
@click.pass_context
def main(
    ctx: click.Context,
    config: str | None,
    data_path: str | None,
    log_level: str | None,
) -> None:
    """Multi-user todo tracker with an MCP server and a web dashboard.

    Configuration is loaded from (in priority order):
    1. CLI arguments
    2. Environment variables (TODO_*)
    3. Global config file (~/.config/todo-tracker/config.toml)
    4. Built-in defaults
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["data_path"] = data_path
    ctx.obj["log_level"] = log_level


@main.command()
@click.pass_context
def mcp(ctx: click.Context) -> None:
    """Run the MCP server on stdin/stdout."""
    from todo_tracker.api.mcp_server import MCPServer

    settings = _settings_from_context(ctx)
    # stdout carries JSON-RPC frames
    setup_logging(settings, use_stderr=True)
    logger = get_logger(__name__)
    logger.info("starting_mcp_server", version=__version__, data_path=str(settings.resolved_data_path))

    server = MCPServer(build_store(settings))
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(server.run())


@main.command()
@click.option("--host", type=str, help="Bind address")
@click.option("--port", type=int, help="Port to listen on")
@click.pass_context
def web(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Run the REST API and dashboard."""
    import uvicorn

    from todo_tracker.api.http_server import create_http_server

    settings = _settings_from_context(ctx, web_host=host, web_port=port)
    setup_logging(settings)
    logger = get_logger(__name__)
    logger.info(
        "starting_web_server",
        version=__version__,
        host=settings.web_host,
        port=settings.web_port,
        data_path=str(settings.resolved_data_path),
    )

    app = create_http_server(build_store(settings), settings=settings)
    uvicorn.run(app, host=settings.web_host, port=settings.web_port, log_level="warning")


@main.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Run the MCP server and the dashboard in one process."""
    settings = _settings_from_context(ctx)
    setup_logging(settings, use_stderr=True)
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(run_services(settings))


async def run_services(settings: Settings) -> None:
    """Run the MCP stdio server and the HTTP server until either stops.

    Both front-ends share one store. Each reloads it before every request,
    so writes from another process are still picked up.
    """
    import uvicorn

    from todo_tracker.api.http_server import create_http_server
    from todo_tracker.api.mcp_server import MCPServer

    logger = get_logger(__name__)
    logger.info(
        "starting_todo_tracker",
        version=__version__,
        port=settings.web_port,
        data_path=str(settings.resolved_data_path),
    )

    store = build_store(settings)
    mcp_server = MCPServer(store)
    http_app = create_http_server(store, settings=settings)
    http_server = uvicorn.Server(
        uvicorn.Config(http_app, host=settings.web_host, port=settings.web_port, log_level="warning")
    )

    shutdown_event = asyncio.Event()

    def handle_signal(sig: signal.Signals) -> None:
        logger.info("shutdown_signal_received", signal=sig.name)
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, handle_signal, sig)

    tasks = [
        asyncio.create_task(mcp_server.run()),
        asyncio.create_task(http_server.serve()),
        asyncio.create_task(shutdown_event.wait()),
    ]
    try:
        # stdin closing ends the MCP side; that stops the dashboard too
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.error("service_error", error=str(task.exception()))
    finally:
        http_server.should_exit = True
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("todo_tracker_stopped")


@main.command()
@click.pass_context
def init_config(ctx: click.Context) -> None:
    """Create global configuration file with defaults.

    Creates the configuration file at ~/.config/todo-tracker/config.toml
    (or %APPDATA%/todo-tracker/config.toml on Windows).
    """
    import tomli_w

    config_path = Path(ctx.obj.get("config_path") or get_config_path())

    if config_path.exists():
        click.echo(f"Config file already exists: {config_path}")
        if not click.confirm("Overwrite?"):
            sys.exit(0)

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "wb") as f:
        tomli_w.dump(get_default_config(), f)

    # chmod may not be supported on Windows
    with contextlib.suppress(OSError):
        config_path.chmod(0o600)

    click.echo(f"Created config file: {config_path}")
    click.echo()
    click.echo("Next steps:")
    click.echo("  1. Edit storage.data_path if the data file should live elsewhere")
    click.echo("  2. Start the dashboard: todo-tracker web")
    click.echo("  3. Register `todo-tracker mcp` as a stdio server in your MCP client")


@main.command()
@click.option("--force", is_flag=True, help="Overwrite an existing data file")
@click.pass_context
def seed(ctx: click.Context, force: bool) -> None:
    """Write the seed users and projects to the data file."""
    settings = _settings_from_context(ctx)
    storage = JsonFileStorage(settings.resolved_data_path)

    if settings.resolved_data_path.exists() and not force:
        click.echo(f"Data file already exists: {storage.location}", err=True)
        click.echo("Use --force to replace it.", err=True)
        sys.exit(1)

    try:
        storage.save(default_data(datetime.now(timezone.utc)))
    except StorageError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Seeded {storage.location}")


if __name__ == "__main__":
    main()

"""changecov serve command - run the coverage ingestion server."""

import asyncio

import click

from changecov.cli.utils import load_settings
from changecov.coordinator import AnalysisCoordinator
from changecov.daemon.lifecycle import run_server


@click.command()
@click.option("--host", help="Bind address (default: server.host)")
@click.option("--port", type=int, help="Port (default: server.port)")
@click.option("--base", help="Git ref to compare against (default: git.diff_base)")
@click.pass_context
def serve_command(ctx: click.Context, host: str | None, port: int | None, base: str | None) -> None:
    """Accept coverage uploads and regenerate the report as they arrive.

    SIGINT/SIGTERM stop the server after a final report (bounded by
    server.shutdown_timeout_sec).
    """
    root, config = load_settings(ctx)
    if host:
        config.server.host = host
    if port is not None:
        config.server.port = port
    if base:
        config.git.diff_base = base

    coordinator = AnalysisCoordinator.from_config(root, config)
    click.echo(f"changecov listening on http://{config.server.host}:{config.server.port}")
    asyncio.run(run_server(coordinator, config))

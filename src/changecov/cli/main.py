"""changecov CLI."""

from pathlib import Path

import click

from changecov.cli.graph import graph_command
from changecov.cli.report import diff_command, report_command
from changecov.cli.serve import serve_command
from changecov.cli.status import push_command, status_command
from changecov.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="changecov")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Start directory; its enclosing git repository is the project root (default: cwd)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, root: Path | None) -> None:
    """changecov - incremental coverage and change impact for JS/TS projects."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["root"] = root
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(report_command, name="report")
cli.add_command(diff_command, name="diff")
cli.add_command(graph_command, name="graph")
cli.add_command(serve_command, name="serve")
cli.add_command(status_command, name="status")
cli.add_command(push_command, name="push")


if __name__ == "__main__":
    cli()

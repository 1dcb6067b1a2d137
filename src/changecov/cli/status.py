"""changecov status / push commands - talk to a running server."""

import json
from pathlib import Path

import click
import httpx

from changecov.cli.utils import load_settings
from changecov.coverage.istanbul import IstanbulParser
from changecov.coverage.models import CoverageParseError


def _base_url(host: str, port: int) -> str:
    return f"http://{'127.0.0.1' if host == '0.0.0.0' else host}:{port}"


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def status_command(ctx: click.Context, as_json: bool) -> None:
    """Show the latest coverage summary of a running server."""
    _, config = load_settings(ctx)
    url = _base_url(config.server.host, config.server.port)

    try:
        response = httpx.get(f"{url}/coverage/info", timeout=5.0)
        data = response.json()
    except (httpx.RequestError, json.JSONDecodeError) as e:
        if as_json:
            click.echo(json.dumps({"running": False, "error": str(e)}))
        else:
            click.echo(f"Server: not reachable at {url} ({e})")
        return

    if as_json:
        click.echo(json.dumps({"running": True, **data}))
        return

    click.echo(f"Server: running at {url}")
    coverage = data.get("coverage")
    if not data.get("success") or not coverage:
        click.echo(data.get("message", "No report yet"))
        return
    click.echo(
        f"Coverage: {coverage['rate']}% "
        f"({coverage['coveredLines']}/{coverage['totalLines']} changed lines, "
        f"{coverage['fileCount']} files)"
    )
    if coverage.get("impactLevel"):
        click.echo(f"Impact: {coverage['impactLevel']}")
    click.echo(f"Gate: {'passed' if coverage.get('passed') else 'failed'}")


@click.command()
@click.argument("coverage_path", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def push_command(ctx: click.Context, coverage_path: Path) -> None:
    """Upload an Istanbul coverage file to a running server."""
    _, config = load_settings(ctx)
    url = _base_url(config.server.host, config.server.port)

    try:
        coverage = IstanbulParser().parse(coverage_path)
    except CoverageParseError as e:
        raise click.ClickException(str(e)) from e

    payload = {"data": {path: data.to_istanbul() for path, data in coverage.items()}}
    try:
        response = httpx.post(f"{url}/coverage", json=payload, timeout=30.0)
    except httpx.RequestError as e:
        raise click.ClickException(f"Server not reachable at {url}: {e}") from e

    body = response.json()
    if response.status_code != 200 or not body.get("success"):
        raise click.ClickException(f"Upload rejected: {body.get('error', response.status_code)}")
    click.echo(f"Uploaded {body['files']} files")

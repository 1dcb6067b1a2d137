"""changecov graph command - dependency graph and impact of changes."""

import json
from pathlib import Path

import click
from rich.console import Console

from changecov.cli.utils import load_settings
from changecov.coordinator import open_vcs
from changecov.diff.changes import ChangeCollector
from changecov.graph.analyzer import DependencyGraphAnalyzer
from changecov.graph.cache import DependencyCache


@click.command()
@click.option(
    "--changed",
    multiple=True,
    type=click.Path(path_type=Path),
    help="Changed file (repeatable). Default: files changed since git.diff_base",
)
@click.option("--base", help="Git ref to compare against (default: git.diff_base)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def graph_command(
    ctx: click.Context, changed: tuple[Path, ...], base: str | None, as_json: bool
) -> None:
    """Build the dependency graph and show which pages and components a change reaches."""
    root, config = load_settings(ctx)
    cache = DependencyCache(root / config.cache.dependency_cache_path)
    analyzer = DependencyGraphAnalyzer.from_config(root, config.impact, cache=cache)
    stats = analyzer.init_graph()

    if changed:
        files = [str(p if p.is_absolute() else root / p) for p in changed]
    else:
        collector = ChangeCollector(open_vcs(root), root)
        files = collector.get_changed_files(base or config.git.diff_base).files

    impact = analyzer.analyze_impact(files)

    if as_json:
        payload = {
            "graph": {
                "files": stats.files,
                "cacheHits": stats.cache_hits,
                "parsed": stats.parsed,
                "failed": stats.failed,
                "durationMs": stats.duration_ms,
            },
            "impact": impact.to_dict(),
        }
        click.echo(json.dumps(payload, indent=2))
        return

    console = Console()
    console.print(
        f"Graph: {stats.files} files ({stats.cache_hits} cached, {stats.parsed} parsed, "
        f"{stats.failed} failed) in {stats.duration_ms}ms"
    )
    console.print(f"Impact: [bold]{impact.impact_level.value}[/bold]")
    for page in impact.affected_pages:
        console.print(f"  page       {page}", highlight=False)
    for component in impact.affected_components:
        console.print(f"  component  {component}", highlight=False)
    for path in impact.propagation_paths:
        console.print("  " + " <- ".join(path), highlight=False)
    if impact.regression_command:
        console.print(f"$ {impact.regression_command}", highlight=False)

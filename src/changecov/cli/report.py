"""changecov report / diff commands."""

import json
from pathlib import Path

import click
from rich.console import Console

from changecov.cli.render import render_report
from changecov.cli.utils import load_settings
from changecov.coordinator import AnalysisCoordinator, open_vcs
from changecov.coverage.istanbul import IstanbulParser
from changecov.coverage.models import CoverageParseError
from changecov.diff.changes import ChangeCollector
from changecov.report.assembler import build_text_summary

DEFAULT_ARTIFACT = Path("coverage") / "coverage-final.json"


@click.command()
@click.option(
    "--coverage",
    "coverage_path",
    type=click.Path(exists=True, path_type=Path),
    help="Istanbul coverage-final.json (or its directory). Default: coverage/coverage-final.json",
)
@click.option("--base", help="Git ref to compare against (default: git.diff_base)")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["rich", "text", "json"]),
    default="rich",
    show_default=True,
)
@click.option(
    "--fail-on-gate/--no-fail-on-gate",
    default=None,
    help="Exit 1 when a quality gate fails (default: gate.fail_on_error)",
)
@click.option("--no-impact", is_flag=True, help="Skip dependency graph analysis")
@click.option("--no-write", is_flag=True, help="Do not write report files or the baseline")
@click.pass_context
def report_command(
    ctx: click.Context,
    coverage_path: Path | None,
    base: str | None,
    output_format: str,
    fail_on_gate: bool | None,
    no_impact: bool,
    no_write: bool,
) -> None:
    """Compute incremental coverage and blast radius of the working tree changes."""
    root, config = load_settings(ctx)
    if no_impact:
        config.impact.enabled = False
    if no_write:
        config.baseline.auto_save = False

    coordinator = AnalysisCoordinator.from_config(root, config, persist=not no_write)

    artifact = coverage_path or (root / DEFAULT_ARTIFACT)
    if coverage_path is not None or artifact.exists():
        try:
            coordinator.ingest(IstanbulParser().parse(artifact))
        except CoverageParseError as e:
            raise click.ClickException(str(e)) from e

    report = coordinator.generate_report(base)

    if output_format == "json":
        click.echo(json.dumps(report.to_dict(), indent=2))
    elif output_format == "text":
        click.echo(build_text_summary(report))
    else:
        render_report(Console(), report, threshold=config.gate.min_coverage_rate)

    should_fail = config.gate.fail_on_error if fail_on_gate is None else fail_on_gate
    if should_fail and not report.verdict.passed:
        ctx.exit(1)


@click.command()
@click.option("--base", help="Git ref to compare against (default: git.diff_base)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def diff_command(ctx: click.Context, base: str | None, as_json: bool) -> None:
    """Show changed lines per file."""
    root, config = load_settings(ctx)
    result = ChangeCollector(open_vcs(root), root).get_changed_files(base or config.git.diff_base)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return
    if result.is_empty:
        click.echo("No changes")
        return
    for path in result.files:
        added = result.additions.get(path, [])
        deleted = result.deletions.get(path, [])
        click.echo(f"{path}: +{len(added)} -{len(deleted)}")
        if added:
            click.echo(f"  added: {', '.join(str(n) for n in added)}")

"""Rich rendering of analysis reports."""

from rich.console import Console
from rich.table import Table

from changecov.report.assembler import AnalysisReport


def _rate_style(rate: int, threshold: float | None) -> str:
    if threshold is None:
        return "bold"
    return "green" if rate >= threshold else "red"


def render_report(
    console: Console, report: AnalysisReport, threshold: float | None = None, max_files: int = 30
) -> None:
    overall = report.coverage.overall
    style = _rate_style(overall.coverage_rate, threshold)
    console.print(
        f"Incremental coverage vs [cyan]{report.diff_base}[/cyan]: "
        f"[{style}]{overall.coverage_rate}%[/{style}] "
        f"({overall.covered_changed_lines}/{overall.total_changed_lines} changed lines)"
    )
    if report.baseline_rate is not None:
        console.print(f"Baseline: {report.baseline_rate}%")

    if report.coverage.files:
        table = Table(show_header=True, header_style="bold")
        table.add_column("File")
        table.add_column("Changed", justify="right")
        table.add_column("Uncovered", justify="right")
        table.add_column("Rate", justify="right")
        files = sorted(report.coverage.files, key=lambda f: (f.coverage_rate, f.file))
        for entry in files[:max_files]:
            rate_style = _rate_style(entry.coverage_rate, threshold)
            table.add_row(
                entry.file,
                str(len(entry.changed_lines)),
                str(len(entry.uncovered_lines)),
                f"[{rate_style}]{entry.coverage_rate}%[/{rate_style}]",
            )
        console.print(table)
        if len(files) > max_files:
            console.print(f"... and {len(files) - max_files} more files")

    if report.impact is not None:
        impact = report.impact
        console.print(
            f"Impact: [bold]{impact.impact_level.value}[/bold] "
            f"({len(impact.affected_pages)} pages, {len(impact.affected_components)} components)"
        )
        for suggestion in impact.regression_suggestions:
            console.print(f"  - {suggestion}")
        if impact.regression_command:
            console.print(f"  $ {impact.regression_command}", highlight=False)

    for gate in report.verdict.gates:
        mark = "[green]PASS[/green]" if gate.passed else "[red]FAIL[/red]"
        console.print(f"{mark} {gate.message}")

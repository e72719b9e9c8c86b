"""
Report output: rich console, JSON and GitHub annotations.
"""

import json
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from .models import ScanReport

FORMATS = ("console", "json", "github")


def to_json(report: ScanReport) -> str:
    return json.dumps(report.to_dict(), indent=2)


def write_results(report: ScanReport, path) -> Path:
    path = Path(path)
    path.write_text(to_json(report) + "\n", encoding="utf-8")
    return path


def github_annotations(report: ScanReport) -> List[str]:
    """One ``::warning`` workflow command per finding."""
    lines = []
    for file_report in report.file_reports:
        for finding in file_report.findings:
            message = finding.message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
            lines.append(
                f"::warning file={file_report.path},line={finding.line},col={finding.column}::{message}"
            )
    return lines


def render_console(report: ScanReport, console: Optional[Console] = None):
    console = console or Console()
    if report.total_issues == 0:
        console.print(f"[bold green]✓ No Baseline issues found in {report.total_files} file(s).[/bold green]")
        return

    for file_report in report.file_reports:
        console.print(f"\n[bold]{escape(file_report.path)}[/bold]")
        for finding in file_report.findings:
            console.print(
                f"  Line {finding.line}:{finding.column} - {escape(finding.message)} "
                f"[dim]({escape(finding.feature_id)})[/dim]"
            )

    breakdown = ", ".join(f"{status}: {count}" for status, count in report.status_breakdown.items() if count)
    console.print(
        f"\n[bold red]✗ Found {report.total_issues} Baseline issue(s) in "
        f"{len(report.file_reports)} of {report.total_files} file(s).[/bold red]"
    )
    if breakdown:
        console.print(f"[dim]Feature status breakdown: {breakdown}[/dim]")


def render(report: ScanReport, fmt: str = "console", console: Optional[Console] = None):
    console = console or Console()
    if fmt == "json":
        console.out(to_json(report), highlight=False)
    elif fmt == "github":
        for line in github_annotations(report):
            # workflow commands must reach stdout verbatim
            console.out(line, highlight=False)
        render_console(report, console)
    else:
        render_console(report, console)

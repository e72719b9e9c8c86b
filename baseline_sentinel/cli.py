"""
Command line interface: ``baseline-sentinel scan|fix|feature|refresh-data|serve``.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import SentinelConfig
from .context import ScanContext
from .dataset import refresh_dataset
from .engine import fix_path, scan_path
from .errors import SentinelError
from .report import FORMATS, render, write_results
from .server import serve

logger = logging.getLogger("baseline_sentinel")

EXIT_OK = 0
EXIT_ISSUES = 1
EXIT_ERROR = 2


def configure_logging(verbose: bool = False, console: Optional[Console] = None):
    handler = RichHandler(console=console or Console(stderr=True), show_path=False, markup=False)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="baseline-sentinel",
        description="Find web features below the Baseline threshold and fix them.",
    )
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    ap.add_argument("-v", "--verbose", action="store_true", help="Verbose debug logs")
    ap.add_argument("--dataset", help="Baseline status dataset overriding the bundled one.")
    sub = ap.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Scan a file or directory and report findings.")
    scan.add_argument("path", help="File or directory to scan.")
    scan.add_argument("--format", choices=FORMATS, default="console", help="Report format.")
    scan.add_argument("--output", help="Where to write the JSON results file.")
    scan.add_argument("--target", choices=("widely", "newly"), help="Baseline level the code must meet.")
    scan.add_argument("--workers", type=int, help="Number of files scanned in parallel.")

    fix = sub.add_parser("fix", help="Apply the preferred fixes to style and script files in place.")
    fix.add_argument("path", help="File or directory to fix.")
    fix.add_argument("--target", choices=("widely", "newly"), help="Baseline level the code must meet.")

    feature = sub.add_parser("feature", help="Show the Baseline status and remediation of a feature.")
    feature.add_argument("key", help="Feature identifier, e.g. style-property.text-wrap")

    refresh = sub.add_parser("refresh-data", help="Refresh the Baseline status dataset.")
    refresh.add_argument("--output", help="Dataset file to write (defaults to --dataset).")

    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return ap


# ============================================================================
# COMMANDS
# ============================================================================

def cmd_scan(args, config: SentinelConfig, console: Console) -> int:
    report = scan_path(args.path, ScanContext.from_config(config), config)
    render(report, args.format, console)
    results = write_results(report, args.output or config.results_file)
    logger.info("Results written to %s", results)
    return EXIT_ISSUES if report.total_issues else EXIT_OK


def cmd_fix(args, config: SentinelConfig, console: Console) -> int:
    applied = fix_path(args.path, ScanContext.from_config(config), config)
    if not applied:
        console.print("[green]Nothing to fix.[/green]")
        return EXIT_OK
    for path, count in applied.items():
        console.print(f"  {path}: {count} fix(es) applied")
    console.print(f"[bold green]✓ Applied {sum(applied.values())} fix(es) to {len(applied)} file(s).[/bold green]")
    return EXIT_OK


def cmd_feature(args, config: SentinelConfig, console: Console) -> int:
    context = ScanContext.from_config(config)
    key = args.key
    remediation = context.catalog.lookup(key)
    if remediation is None and key not in context.oracle:
        console.print(f"[red]Feature '{escape(key)}' not found[/red]")
        return EXIT_ERROR

    status = context.oracle.classify(key)
    console.print(f"[bold]{escape(key)}[/bold]: {status.value}")
    if context.oracle.doc_url(key):
        console.print(f"  Docs: {context.oracle.doc_url(key)}")
    if remediation:
        table = Table(title="Remediations")
        table.add_column("#", justify="right")
        table.add_column("Kind")
        table.add_column("Description")
        table.add_column("Payload")
        for index, fix in enumerate(remediation.fixes, 1):
            table.add_row(str(index), fix.kind, fix.description, json.dumps(fix.payload()))
        console.print(table)
    return EXIT_OK


def cmd_refresh(args, config: SentinelConfig, console: Console) -> int:
    output = args.output or config.dataset_path
    if not output:
        console.print("[red]refresh-data needs --output or --dataset[/red]")
        return EXIT_ERROR
    document = refresh_dataset(output)
    console.print(f"[green]✓ Wrote {len(document['features'])} features to {output}[/green]")
    return EXIT_OK


def cmd_serve(args, config: SentinelConfig, console: Console) -> int:
    serve(args.host, args.port, config)
    return EXIT_OK


COMMANDS = {
    "scan": cmd_scan,
    "fix": cmd_fix,
    "feature": cmd_feature,
    "refresh-data": cmd_refresh,
    "serve": cmd_serve,
}


def main(argv: Optional[List[str]] = None, console: Optional[Console] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    console = console or Console()
    configure_logging(args.verbose)

    try:
        config = SentinelConfig.from_env(
            dataset_path=args.dataset,
            target=getattr(args, "target", None),
            workers=getattr(args, "workers", None),
        )
        return COMMANDS[args.command](args, config, console)
    except ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        return EXIT_ERROR
    except SentinelError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())

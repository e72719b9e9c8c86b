import io
import json

from rich.console import Console

from baseline_sentinel.models import Category, FileReport, Finding, ScanReport, Span
from baseline_sentinel.report import github_annotations, render, render_console, to_json, write_results


def _console():
    return Console(file=io.StringIO(), width=200, color_system=None)


def _report():
    finding = Finding(
        feature_id="style-property.text-wrap",
        category=Category.STYLE,
        message="The CSS property 'text-wrap' is 100% [new]\nstill.",
        span=Span(2, 3, 2, 21),
        fix_id="style-property.text-wrap",
    )
    return ScanReport(
        total_files=3,
        file_reports=[FileReport(path="styles/main.css", findings=[finding])],
        status_breakdown={"widely": 0, "newly": 1, "limited": 0, "unknown": 0},
    )


def test_github_annotations_escape_message():
    assert github_annotations(_report()) == [
        "::warning file=styles/main.css,line=2,col=3::"
        "The CSS property 'text-wrap' is 100%25 [new]%0Astill."
    ]


def test_console_lists_findings_and_summary():
    console = _console()
    render_console(_report(), console)
    out = console.file.getvalue()
    assert "styles/main.css" in out
    assert "Line 2:3 - The CSS property 'text-wrap' is 100% [new]" in out
    assert "(style-property.text-wrap)" in out
    assert "✗ Found 1 Baseline issue(s) in 1 of 3 file(s)." in out
    assert "Feature status breakdown: newly: 1" in out


def test_console_clean_report():
    console = _console()
    render_console(ScanReport(total_files=2), console)
    assert console.file.getvalue().strip() == "✓ No Baseline issues found in 2 file(s)."


def test_render_json_is_parseable():
    console = _console()
    render(_report(), "json", console)
    data = json.loads(console.file.getvalue())
    assert data["totalIssues"] == 1
    assert data["fileReports"][0]["findings"][0]["endColumn"] == 21


def test_render_github_prints_commands_first():
    console = _console()
    render(_report(), "github", console)
    assert console.file.getvalue().startswith("::warning file=styles/main.css,line=2,col=3::")


def test_write_results(tmp_path):
    path = write_results(_report(), tmp_path / "results.json")
    assert path.read_text(encoding="utf-8") == to_json(_report()) + "\n"
    assert json.loads(path.read_text(encoding="utf-8"))["totalFiles"] == 3

"""
Scan entry points: language dispatch, file and directory scans, fix
application.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

from .composer import apply_edits, compose_all
from .config import SentinelConfig
from .context import ScanContext, default_context
from .errors import ScanTargetError
from .markup import scan_markup
from .models import FeatureStatus, FileReport, Finding, ScanReport, SourceKind
from .script import scan_script
from .style import scan_style

logger = logging.getLogger(__name__)

LANGUAGE_KINDS = {
    "css": SourceKind.STYLE,
    "javascript": SourceKind.SCRIPT,
    "javascriptreact": SourceKind.SCRIPT,
    "typescript": SourceKind.SCRIPT,
    "typescriptreact": SourceKind.SCRIPT,
    "html": SourceKind.MARKUP,
}

_SCANNERS = {
    SourceKind.STYLE: scan_style,
    SourceKind.MARKUP: scan_markup,
}

SCRIPT_DIALECTS = {
    "typescript": "typescript",
    "typescriptreact": "tsx",
}


def source_kind_for(language: str) -> Optional[SourceKind]:
    return LANGUAGE_KINDS.get((language or "").lower())


def scan_code(text: str, language: str, context: Optional[ScanContext] = None) -> List[Finding]:
    """Scan ``text`` with the scanner for ``language``; unknown languages yield nothing."""
    kind = source_kind_for(language)
    if kind is None:
        logger.debug("No scanner for language %r", language)
        return []
    context = context or default_context()
    if kind == SourceKind.SCRIPT:
        return scan_script(text, context, SCRIPT_DIALECTS.get(language.lower(), "javascript"))
    return _SCANNERS[kind](text, context)


def language_for_path(path, config: Optional[SentinelConfig] = None) -> Optional[str]:
    config = config or SentinelConfig()
    return config.extensions.get(Path(path).suffix.lower())


def read_source(path: Path, errors: str = "replace") -> str:
    # newline="" keeps CRLF so positions and fixes match the file on disk
    with open(path, "r", encoding="utf-8", errors=errors, newline="") as f:
        return f.read()


def iter_source_files(root: Path, config: SentinelConfig) -> Iterator[Path]:
    """Supported files under ``root``, excluded directories pruned."""
    excluded = set(config.exclude_dirs)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if language_for_path(path, config):
                yield path


def _collect_targets(path, config: SentinelConfig):
    root = Path(path)
    if not root.exists():
        raise ScanTargetError(f"Path does not exist: {path}")
    if root.is_file():
        files = [root] if language_for_path(root, config) else []
        return root.parent, files
    return root, list(iter_source_files(root, config))


def scan_file(path: Path, context: ScanContext, config: SentinelConfig) -> List[Finding]:
    return scan_code(read_source(path), language_for_path(path, config), context)


def status_breakdown(findings: Iterable[Finding], context: ScanContext) -> Dict[str, int]:
    """Counts of Baseline statuses over the distinct feature ids found."""
    breakdown = {status.value: 0 for status in FeatureStatus}
    for feature_id in sorted({f.feature_id for f in findings}):
        breakdown[context.oracle.classify(feature_id).value] += 1
    return breakdown


def scan_path(path, context: Optional[ScanContext] = None, config: Optional[SentinelConfig] = None) -> ScanReport:
    """Scan a file or a directory tree into a report with relative paths."""
    config = config or SentinelConfig()
    context = context or ScanContext.from_config(config)
    base, files = _collect_targets(path, config)
    logger.info("Scanning %d file(s) under %s", len(files), base)

    results: Dict[Path, List[Finding]] = {}
    with ThreadPoolExecutor(max_workers=config.workers) as pool:
        futures = {pool.submit(scan_file, file_path, context, config): file_path for file_path in files}
        for future in as_completed(futures):
            file_path = futures[future]
            try:
                results[file_path] = future.result()
            except Exception as e:
                logger.error("Error scanning %s: %s", file_path, e)
                results[file_path] = []

    report = ScanReport(total_files=len(files))
    all_findings: List[Finding] = []
    for file_path in files:
        findings = sorted(results[file_path], key=lambda f: (f.line, f.column, f.feature_id))
        if findings:
            relative = file_path.relative_to(base).as_posix()
            report.file_reports.append(FileReport(path=relative, findings=findings))
            all_findings.extend(findings)
    report.status_breakdown = status_breakdown(all_findings, context)
    logger.info("Found %d issue(s) in %d file(s)", report.total_issues, len(report.file_reports))
    return report


def fix_text(text: str, language: str, context: Optional[ScanContext] = None):
    """Scan and apply every preferred fix in one batch. Returns (new text, edits)."""
    context = context or default_context()
    kind = source_kind_for(language)
    if kind is None:
        return text, []
    findings = scan_code(text, language, context)
    edits = compose_all(text, findings, kind, context.catalog)
    return apply_edits(text, edits), edits


def fix_file(path, context: Optional[ScanContext] = None, config: Optional[SentinelConfig] = None) -> int:
    """Apply the batch of preferred fixes to a style or script file in place.

    Returns the number of edits written. Markup files are left untouched.
    """
    config = config or SentinelConfig()
    file_path = Path(path)
    if not file_path.is_file():
        raise ScanTargetError(f"Not a file: {path}")
    language = language_for_path(file_path, config)
    if source_kind_for(language) in (None, SourceKind.MARKUP):
        return 0

    try:
        # only text that decodes cleanly can be written back byte for byte
        text = read_source(file_path, errors="strict")
    except UnicodeDecodeError as e:
        logger.warning("Not fixing %s: file is not valid UTF-8 (%s)", file_path, e)
        return 0
    fixed, edits = fix_text(text, language, context or ScanContext.from_config(config))
    if fixed != text:
        with open(file_path, "w", encoding="utf-8", newline="") as f:
            f.write(fixed)
        logger.info("Applied %d fix(es) to %s", len(edits), file_path)
    return len(edits)


def fix_path(path, context: Optional[ScanContext] = None, config: Optional[SentinelConfig] = None) -> Dict[str, int]:
    """``fix_file`` over a file or directory; maps relative path -> edits applied."""
    config = config or SentinelConfig()
    context = context or ScanContext.from_config(config)
    base, files = _collect_targets(path, config)
    applied = {}
    for file_path in files:
        count = fix_file(file_path, context, config)
        if count:
            applied[file_path.relative_to(base).as_posix()] = count
    return applied

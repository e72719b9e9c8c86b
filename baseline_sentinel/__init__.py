"""
Baseline Sentinel: finds web-platform features below the Baseline
cross-browser threshold in style, script and markup sources, and composes
fixes for them.
"""

__version__ = "1.0.0"

from .catalog import DEFAULT_CATALOG, RemediationCatalog, lookup
from .composer import apply_edits, compose_all, compose_single
from .config import SentinelConfig
from .context import ScanContext, default_context
from .engine import fix_file, language_for_path, scan_code, scan_path
from .markup import MarkupScanner, scan_markup
from .models import Category, FeatureStatus, Finding, Remediation, ScanReport, SourceKind, Span
from .oracle import FeatureOracle
from .script import ScriptScanner, scan_script
from .style import StyleScanner, scan_style
from .suppression import is_suppressed

__all__ = [
    "DEFAULT_CATALOG",
    "Category",
    "FeatureOracle",
    "FeatureStatus",
    "Finding",
    "MarkupScanner",
    "Remediation",
    "RemediationCatalog",
    "ScanContext",
    "ScanReport",
    "ScriptScanner",
    "SentinelConfig",
    "SourceKind",
    "Span",
    "StyleScanner",
    "apply_edits",
    "compose_all",
    "compose_single",
    "default_context",
    "fix_file",
    "is_suppressed",
    "language_for_path",
    "lookup",
    "scan_code",
    "scan_markup",
    "scan_path",
    "scan_script",
    "scan_style",
]

"""
Finding emission shared by the three scanners.
"""

from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from .context import ScanContext
from .models import Category, FeatureStatus, Finding, Span
from .suppression import is_suppressed


class Scanner(Protocol):
    """Anything that turns source text into findings."""

    def produce_findings(self, text: str) -> List[Finding]:
        ...


class FindingCollector:
    """Gates candidate findings through catalog, oracle and suppression.

    Findings are unique by (feature id, line, column); a second candidate at
    the same key is dropped.
    """

    def __init__(self, context: ScanContext, category: Category):
        self.context = context
        self.category = category
        self._findings: Dict[Tuple[str, int, int], Finding] = {}

    def add(
        self,
        feature_id: str,
        subject: str,
        span: Span,
        preceding_comments: Sequence[str] = (),
    ) -> Optional[Finding]:
        if not self.context.should_report(feature_id):
            return None
        if is_suppressed(preceding_comments, feature_id):
            return None

        finding = Finding(
            feature_id=feature_id,
            category=self.category,
            message=self.describe(feature_id, subject),
            span=span,
            fix_id=feature_id,
            doc_url=self.context.oracle.doc_url(feature_id),
        )
        if finding.key in self._findings:
            return None
        self._findings[finding.key] = finding
        return finding

    def describe(self, feature_id: str, subject: str) -> str:
        status = self.context.oracle.classify(feature_id)
        if status == FeatureStatus.LIMITED:
            return f"{subject} has limited availability and is not part of Baseline."
        return f"{subject} is only newly available in Baseline, not yet widely available."

    def extend(self, findings: Iterable[Finding]):
        """Merge already-gated findings (from a delegated fragment)."""
        for finding in findings:
            self._findings.setdefault(finding.key, finding)

    @property
    def findings(self) -> List[Finding]:
        return list(self._findings.values())

    def __len__(self) -> int:
        return len(self._findings)

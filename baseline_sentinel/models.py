"""
Data models shared by the scanners, the fix composer and the report layer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union


# ============================================================================
# FEATURE STATUS
# ============================================================================

class FeatureStatus(str, Enum):
    WIDELY = "widely"
    NEWLY = "newly"
    LIMITED = "limited"
    UNKNOWN = "unknown"


class Category(str, Enum):
    STYLE = "style-feature"
    SCRIPT = "script-feature"
    MARKUP = "markup-feature"


class SourceKind(str, Enum):
    """Kind of document a finding was raised in; drives comment syntax."""
    STYLE = "style"
    SCRIPT = "script"
    MARKUP = "markup"


# ============================================================================
# FINDINGS
# ============================================================================

@dataclass(frozen=True)
class Span:
    """1-based source range, end column exclusive."""
    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def shifted(self, line_offset: int, col_offset: int) -> "Span":
        """Move a fragment-relative span into document coordinates.

        Only positions on the fragment's first line get the column offset.
        """
        start_col = self.start_col + col_offset if self.start_line == 1 else self.start_col
        end_col = self.end_col + col_offset if self.end_line == 1 else self.end_col
        return Span(
            start_line=self.start_line + line_offset,
            start_col=start_col,
            end_line=self.end_line + line_offset,
            end_col=end_col,
        )


@dataclass
class Finding:
    feature_id: str
    category: Category
    message: str
    span: Span
    fix_id: str
    doc_url: Optional[str] = None

    @property
    def key(self) -> Tuple[str, int, int]:
        return (self.feature_id, self.span.start_line, self.span.start_col)

    @property
    def line(self) -> int:
        return self.span.start_line

    @property
    def column(self) -> int:
        return self.span.start_col

    def to_dict(self) -> Dict:
        data = {
            "featureId": self.feature_id,
            "category": self.category.value,
            "message": self.message,
            "line": self.span.start_line,
            "column": self.span.start_col,
            "endLine": self.span.end_line,
            "endColumn": self.span.end_col,
            "fixId": self.fix_id,
        }
        if self.doc_url:
            data["docUrl"] = self.doc_url
        return data


# ============================================================================
# REMEDIATIONS
# ============================================================================

@dataclass(frozen=True)
class AddDeclaration:
    property: str
    value: str
    description: str = ""
    kind = "add-declaration"

    def payload(self) -> Dict:
        return {"property": self.property, "value": self.value}


@dataclass(frozen=True)
class ReplaceText:
    old: str
    new: str
    description: str = ""
    kind = "replace-text"

    def payload(self) -> Dict:
        return {"old": self.old, "new": self.new}


@dataclass(frozen=True)
class RemoveLine:
    description: str = ""
    kind = "remove-line"

    def payload(self) -> Dict:
        return {}


@dataclass(frozen=True)
class AddComment:
    text: str
    description: str = ""
    kind = "add-comment"

    def payload(self) -> Dict:
        return {"text": self.text}


@dataclass(frozen=True)
class RecommendPolyfill:
    text: str
    description: str = ""
    kind = "recommend-polyfill"

    def payload(self) -> Dict:
        return {"text": self.text}


@dataclass(frozen=True)
class ReplaceDeclaration:
    new_property: str
    new_value: Optional[str] = None
    description: str = ""
    kind = "replace-declaration"

    def payload(self) -> Dict:
        data = {"newProperty": self.new_property}
        if self.new_value is not None:
            data["newValue"] = self.new_value
        return data


Fix = Union[AddDeclaration, ReplaceText, RemoveLine, AddComment, RecommendPolyfill, ReplaceDeclaration]


@dataclass(frozen=True)
class Remediation:
    feature_id: str
    fixes: Tuple[Fix, ...]

    @property
    def preferred(self) -> Optional[Fix]:
        return self.fixes[0] if self.fixes else None

    def to_dict(self) -> Dict:
        return {
            "featureId": self.feature_id,
            "fixes": [
                {"kind": fix.kind, "description": fix.description, "payload": fix.payload()}
                for fix in self.fixes
            ],
        }


# ============================================================================
# EDITS & REPORTS
# ============================================================================

@dataclass(frozen=True)
class Edit:
    """A text edit against the original, unmodified document."""
    start: int
    end: int
    new_text: str
    span: Span

    @property
    def is_insertion(self) -> bool:
        return self.start == self.end

    def to_dict(self) -> Dict:
        return {
            "line": self.span.start_line,
            "column": self.span.start_col,
            "endLine": self.span.end_line,
            "endColumn": self.span.end_col,
            "newText": self.new_text,
        }


@dataclass
class FileReport:
    path: str
    findings: List[Finding] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {"path": self.path, "findings": [f.to_dict() for f in self.findings]}


@dataclass
class ScanReport:
    total_files: int = 0
    file_reports: List[FileReport] = field(default_factory=list)
    status_breakdown: Dict[str, int] = field(default_factory=dict)

    @property
    def total_issues(self) -> int:
        return sum(len(r.findings) for r in self.file_reports)

    @property
    def exit_code(self) -> int:
        return 0 if self.total_issues == 0 else 1

    def to_dict(self) -> Dict:
        return {
            "totalIssues": self.total_issues,
            "fileReports": [r.to_dict() for r in self.file_reports],
            "totalFiles": self.total_files,
            "statusBreakdown": dict(self.status_breakdown),
        }

"""
Fix composer: turns findings and their fixes into text edits.

Every edit is computed against the original, unmodified document. A batch
is built bottom-up (line, then column, descending) so that applying it in
offset order never invalidates an edit computed for an earlier line.
"""

import logging
import re
from typing import Iterable, List, Optional, Set

from .catalog import DEFAULT_CATALOG, RemediationCatalog
from .document import TextDocument
from .markup import embedded_kind_at
from .models import (
    AddComment,
    AddDeclaration,
    Category,
    Edit,
    Finding,
    Fix,
    RecommendPolyfill,
    RemoveLine,
    ReplaceDeclaration,
    ReplaceText,
    SourceKind,
    Span,
)

logger = logging.getLogger(__name__)

COMMENT_SYNTAX = {
    SourceKind.STYLE: ("/* ", " */"),
    SourceKind.SCRIPT: ("// ", ""),
    SourceKind.MARKUP: ("<!-- ", " -->"),
}

_TRAILING_SEMICOLON = re.compile(r"[ \t]*;")


# ============================================================================
# SINGLE FIX
# ============================================================================

def _insert_line(document: TextDocument, line: int, content: str) -> Edit:
    """New line above ``line``, indented like it."""
    offset = document.line_start(line)
    text = document.indentation(line) + content + document.eol
    return Edit(offset, offset, text, Span(line, 1, line, 1))


def _insert_declaration(document: TextDocument, finding: Finding, fix: AddDeclaration) -> Edit:
    declaration = f"{fix.property}: {fix.value};"
    span = finding.span
    start = document.offset_at(span.start_line, span.start_col)
    if document.text[document.line_start(span.start_line):start].strip():
        # the declaration shares its line with other code, e.g. `.a { backdrop-filter: ... }`
        return Edit(start, start, declaration + " ",
                    Span(span.start_line, span.start_col, span.start_line, span.start_col))
    return _insert_line(document, span.start_line, declaration)


def _remove(document: TextDocument, span: Span) -> Edit:
    start = document.offset_at(span.start_line, span.start_col)
    end = document.offset_at(span.end_line, span.end_col)
    semicolon = _TRAILING_SEMICOLON.match(document.text, end)
    if semicolon:
        end = semicolon.end()

    before = document.text[document.line_start(span.start_line):start]
    after = document.text[end:document.line_end(span.end_line)]
    if not before.strip() and not after.strip():
        start = document.line_start(span.start_line)
        end = document.line_break_end(span.end_line)
    return Edit(start, end, "", span)


def _span_offsets(document: TextDocument, span: Span):
    return (document.offset_at(span.start_line, span.start_col),
            document.offset_at(span.end_line, span.end_col))


def _comment_syntax(document: TextDocument, finding: Finding, source_kind: SourceKind):
    """Comment delimiters for a note above the finding's line.

    Style and script findings inside a markup document are written in the
    syntax of the block they sit in; anywhere else markup comments are used.
    """
    if source_kind == SourceKind.MARKUP and finding.category != Category.MARKUP:
        source_kind = embedded_kind_at(document.text, finding.line) or SourceKind.MARKUP
    return COMMENT_SYNTAX[source_kind]


def _edits_for(document: TextDocument, finding: Finding, fix: Fix, source_kind: SourceKind) -> List[Edit]:
    span = finding.span

    if isinstance(fix, AddDeclaration):
        return [_insert_declaration(document, finding, fix)]

    if isinstance(fix, (AddComment, RecommendPolyfill)):
        opener, closer = _comment_syntax(document, finding, source_kind)
        return [_insert_line(document, span.start_line, f"{opener}{fix.text}{closer}")]

    if isinstance(fix, ReplaceText):
        start, end = _span_offsets(document, span)
        if document.text[start:end] != fix.old:
            logger.debug("Skipping replace-text for %s: span no longer reads %r", finding.feature_id, fix.old)
            return []
        return [Edit(start, end, fix.new, span)]

    if isinstance(fix, RemoveLine):
        return [_remove(document, span)]

    if isinstance(fix, ReplaceDeclaration):
        start, end = _span_offsets(document, span)
        _, colon, value = document.text[start:end].partition(":")
        if not colon:
            return []
        new_value = fix.new_value if fix.new_value is not None else value.strip()
        return [Edit(start, end, f"{fix.new_property}: {new_value}", span)]

    raise TypeError(f"Unknown fix kind: {fix!r}")


def compose_single(text: str, finding: Finding, fix: Fix, source_kind: SourceKind) -> List[Edit]:
    """Edits applying one fix for one finding."""
    return _edits_for(TextDocument(text), finding, fix, source_kind)


# ============================================================================
# BATCH
# ============================================================================

def _overlaps(a: Edit, b: Edit) -> bool:
    if a.is_insertion and b.is_insertion:
        return False
    if a.is_insertion:
        return b.start < a.start < b.end
    if b.is_insertion:
        return a.start < b.start < a.end
    return a.start < b.end and b.start < a.end


def compose_all(
    text: str,
    findings: Iterable[Finding],
    source_kind: SourceKind,
    catalog: Optional[RemediationCatalog] = None,
) -> List[Edit]:
    """Preferred fix for every finding, as one conflict-free batch.

    Markup documents get no batch; their fixes are offered one at a time.
    """
    if source_kind == SourceKind.MARKUP:
        return []
    catalog = catalog or DEFAULT_CATALOG
    document = TextDocument(text)

    edits: List[Edit] = []
    insert_positions: Set[int] = set()
    for finding in sorted(findings, key=lambda f: (f.line, f.column), reverse=True):
        fix = catalog.preferred_fix(finding.fix_id)
        if fix is None:
            continue
        for edit in _edits_for(document, finding, fix, source_kind):
            if edit.is_insertion and edit.start in insert_positions:
                continue
            if any(_overlaps(edit, other) for other in edits):
                logger.debug("Skipping overlapping fix for %s at %s:%s",
                             finding.feature_id, finding.line, finding.column)
                continue
            if edit.is_insertion:
                insert_positions.add(edit.start)
            edits.append(edit)
    return edits


def apply_edits(text: str, edits: Iterable[Edit]) -> str:
    """Apply edits computed against ``text``, last offset first."""
    for edit in sorted(edits, key=lambda e: (e.start, e.end), reverse=True):
        text = text[:edit.start] + edit.new_text + text[edit.end:]
    return text

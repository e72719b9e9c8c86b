"""
Markup scanner.

Builds a small location-aware element tree with ``html.parser``, checks
elements and attributes directly, and hands ``style`` attributes, ``<style>``
blocks and ``<script>`` blocks to the style and script scanners, moving the
positions they report into document coordinates.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from html.parser import HTMLParser
from typing import Dict, List, Optional, Tuple

from .context import ScanContext, default_context
from .findings import FindingCollector, Scanner
from .models import Category, Finding, SourceKind, Span
from .script import ScriptScanner
from .style import StyleScanner

logger = logging.getLogger(__name__)

DEPRECATED_ELEMENTS = {"marquee", "blink", "center", "font", "big", "strike", "tt"}
MODERN_ELEMENTS = {"dialog", "details", "summary", "search", "selectedcontent"}
GLOBAL_ATTRIBUTES = {"popover", "inert", "enterkeyhint", "writingsuggestions"}
INPUT_TYPES = {"date", "color", "datetime-local", "month", "week", "time"}
LAZY_LOADING_ELEMENTS = {"img", "iframe"}

VOID_ELEMENTS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta",
    "param", "source", "track", "wbr",
}
SCRIPT_TYPES = {"", "text/javascript", "application/javascript", "module", "text/ecmascript"}
EMBEDDED_KINDS = {"style": SourceKind.STYLE, "script": SourceKind.SCRIPT}

_ATTRIBUTE = re.compile(r"""([^\s"'<>/=]+)(?:\s*=\s*("[^"]*"|'[^']*'|[^\s>]+))?""")

Position = Tuple[int, int]


@dataclass
class MarkupNode:
    tag: str
    line: int
    column: int
    attrs: Dict[str, Optional[str]] = field(default_factory=dict)
    attr_positions: Dict[str, Position] = field(default_factory=dict)
    value_positions: Dict[str, Position] = field(default_factory=dict)
    raw_values: Dict[str, str] = field(default_factory=dict)
    children: List["MarkupNode"] = field(default_factory=list)
    text: str = ""
    text_position: Optional[Position] = None


def _advance(line: int, column: int, text: str) -> Position:
    """Position reached after ``text`` when it starts at (line, column)."""
    breaks = text.count("\n")
    if not breaks:
        return line, column + len(text)
    return line + breaks, len(text) - text.rindex("\n")


class MarkupTreeBuilder(HTMLParser):
    """Element tree with 1-based source positions."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.root = MarkupNode(tag="#document", line=1, column=1)
        self._stack: List[MarkupNode] = [self.root]

    def _position(self) -> Position:
        line, offset = self.getpos()
        return line, offset + 1

    def _make_node(self, tag: str, attrs) -> MarkupNode:
        line, column = self._position()
        node = MarkupNode(tag=tag, line=line, column=column)
        for name, value in attrs:
            node.attrs.setdefault(name, value)

        raw = self.get_starttag_text() or ""
        head = len(tag) + 1
        for match in _ATTRIBUTE.finditer(raw, head):
            name = match.group(1).lower()
            if name in node.attr_positions:
                continue
            node.attr_positions[name] = _advance(line, column, raw[:match.start(1)])
            value = match.group(2)
            if value is not None:
                start = match.start(2)
                if value[0] in "\"'":
                    value, start = value[1:-1], start + 1
                node.raw_values[name] = value
                node.value_positions[name] = _advance(line, column, raw[:start])

        self._stack[-1].children.append(node)
        return node

    def handle_starttag(self, tag, attrs):
        node = self._make_node(tag, attrs)
        if tag not in VOID_ELEMENTS:
            self._stack.append(node)

    def handle_startendtag(self, tag, attrs):
        self._make_node(tag, attrs)

    def handle_endtag(self, tag):
        for depth in range(len(self._stack) - 1, 0, -1):
            if self._stack[depth].tag == tag:
                del self._stack[depth:]
                return

    def handle_data(self, data):
        node = self._stack[-1]
        if node.tag not in ("style", "script"):
            return
        if node.text_position is None:
            node.text_position = self._position()
        node.text += data


def parse_markup(text: str) -> MarkupNode:
    builder = MarkupTreeBuilder()
    builder.feed(text)
    builder.close()
    return builder.root


def embedded_kind_at(text: str, line: int) -> Optional[SourceKind]:
    """Kind of the <style> or <script> block that holds the start of ``line``, if any.

    A block that opens on ``line`` itself does not count, since a new line
    inserted there would land before the opening tag.
    """
    stack = [parse_markup(text)]
    while stack:
        node = stack.pop()
        stack.extend(node.children)
        if node.tag not in EMBEDDED_KINDS or node.text_position is None:
            continue
        first = node.text_position[0]
        last = _advance(*node.text_position, node.text)[0]
        if first < line <= last:
            return EMBEDDED_KINDS[node.tag]
    return None


# ============================================================================
# SCANNER
# ============================================================================

class MarkupScanner:
    """Element/attribute checks plus delegation to the embedded-content scanners."""

    def __init__(
        self,
        context: Optional[ScanContext] = None,
        style_scanner: Optional[Scanner] = None,
        inline_style_scanner: Optional[Scanner] = None,
        script_scanner: Optional[Scanner] = None,
    ):
        self.context = context or default_context()
        self.style_scanner = style_scanner or StyleScanner(self.context)
        self.inline_style_scanner = inline_style_scanner or StyleScanner(self.context, inline=True)
        self.script_scanner = script_scanner or ScriptScanner(self.context)

    def produce_findings(self, text: str) -> List[Finding]:
        collector = FindingCollector(self.context, Category.MARKUP)
        try:
            root = parse_markup(text)
        except Exception as e:
            logger.warning("Could not parse markup: %s", e)
            return []

        self._visit(root, collector)
        return collector.findings

    def _visit(self, node: MarkupNode, collector: FindingCollector):
        if node.tag != "#document":
            self._check_element(node, collector)
            self._delegate(node, collector)
        for child in node.children:
            self._visit(child, collector)

    def _check_element(self, node: MarkupNode, collector: FindingCollector):
        tag = node.tag
        if tag in DEPRECATED_ELEMENTS or tag in MODERN_ELEMENTS:
            span = Span(node.line, node.column, node.line, node.column + len(tag) + 1)
            collector.add(f"markup-element.{tag}", f"The <{tag}> element", span)

        for name in node.attrs:
            if name in GLOBAL_ATTRIBUTES:
                collector.add(f"markup-attribute.{name}", f"The '{name}' attribute",
                              self._attribute_span(node, name))

        if tag == "input" and "type" in node.attrs:
            kind = (node.attrs["type"] or "").strip().lower()
            if kind in INPUT_TYPES:
                collector.add("markup-element.input.type_" + kind.replace("-", "_"),
                              f'<input type="{kind}">', self._attribute_span(node, "type"))

        if tag in LAZY_LOADING_ELEMENTS and "loading" in node.attrs:
            collector.add(f"markup-element.{tag}.loading", f"The 'loading' attribute on <{tag}>",
                          self._attribute_span(node, "loading"))

    @staticmethod
    def _attribute_span(node: MarkupNode, name: str) -> Span:
        line, column = node.attr_positions.get(name, (node.line, node.column))
        return Span(line, column, line, column + len(name))

    def _delegate(self, node: MarkupNode, collector: FindingCollector):
        if "style" in node.value_positions:
            self._scan_fragment(self.inline_style_scanner, node.raw_values["style"],
                                node.value_positions["style"], collector)

        if node.text_position is None or not node.text.strip():
            return
        if node.tag == "style":
            self._scan_fragment(self.style_scanner, node.text, node.text_position, collector)
        elif node.tag == "script" and (node.attrs.get("type") or "").strip().lower() in SCRIPT_TYPES:
            self._scan_fragment(self.script_scanner, node.text, node.text_position, collector)

    def _scan_fragment(self, scanner: Scanner, text: str, start: Position, collector: FindingCollector):
        line, column = start
        try:
            findings = scanner.produce_findings(text)
        except Exception as e:
            logger.warning("Error scanning embedded fragment at line %s: %s", line, e)
            return
        collector.extend(
            replace(finding, span=finding.span.shifted(line - 1, column - 1)) for finding in findings
        )


def scan_markup(text: str, context: Optional[ScanContext] = None) -> List[Finding]:
    return MarkupScanner(context).produce_findings(text)

"""
Style sheet scanner (tinycss2).

Walks rules, at-rules, declarations and selectors of a style sheet and
reports the ones below the Baseline target. Comments are kept in the tree so
``baseline-disable-next-line`` directives can be read from the siblings that
precede a node.
"""

import logging
import re
from typing import Iterator, List, Optional, Sequence, Tuple

import tinycss2

from .context import ScanContext, default_context
from .document import TextDocument
from .findings import FindingCollector
from .models import Category, Finding, Span

logger = logging.getLogger(__name__)

PROPERTY_PREFIX = "style-property."
AT_RULE_PREFIX = "style-at-rule."

FUNCTION_FEATURES = {
    "color-mix": "style-function.color-mix",
    "oklch": "style-function.oklch",
    "oklab": "style-function.oklab",
    "sin": "style-function.trigonometric",
    "cos": "style-function.trigonometric",
    "tan": "style-function.trigonometric",
    "asin": "style-function.trigonometric",
    "acos": "style-function.trigonometric",
    "atan": "style-function.trigonometric",
    "atan2": "style-function.trigonometric",
    "conic-gradient": "style-function.conic-gradient",
    "repeating-conic-gradient": "style-function.conic-gradient",
    "clamp": "style-function.clamp",
    "light-dark": "style-function.light-dark",
}

AT_RULE_FEATURES = {"container", "property", "layer", "scope", "starting-style"}

GRID_TEMPLATE_PROPERTIES = {"grid-template-columns", "grid-template-rows", "grid-template", "grid"}

# at-rules whose block holds declarations rather than rules
DECLARATION_AT_RULES = {"font-face", "property", "page", "counter-style", "font-palette-values", "viewport"}

# one lexical unit of source: escape, string, comment, bracket, terminator or a plain run
_SOURCE_UNIT = re.compile(
    r"""\\.|"(?:\\.|[^"\\])*"?|'(?:\\.|[^'\\])*'?|/\*.*?(?:\*/|\Z)|[()\[\]{};]|[^\\"'/()\[\]{};]+|/""",
    re.DOTALL,
)


# ============================================================================
# TREE HELPERS
# ============================================================================

def _preceding_comments(siblings: Sequence, index: int) -> List[str]:
    """Text of the run of comment nodes directly before ``siblings[index]``."""
    comments = []
    for node in reversed(siblings[:index]):
        if node.type != "comment":
            break
        comments.append(node.value)
    return comments


def _has_background_fallback(siblings: Sequence, index: int) -> bool:
    """True when the nearest non-comment sibling before ``index`` sets background-color."""
    for node in reversed(siblings[:index]):
        if node.type == "comment":
            continue
        return node.type == "declaration" and node.lower_name == "background-color"
    return False


def _iter_tokens(tokens: Sequence, previous=None) -> Iterator[Tuple[Optional[object], object]]:
    """Depth-first (previous token, token) pairs over a component value list."""
    for token in tokens:
        yield previous, token
        if token.type == "function":
            yield from _iter_tokens(token.arguments)
        elif token.type in ("() block", "[] block", "{} block"):
            yield from _iter_tokens(token.content)
        previous = token


def _declaration_end(text: str, start: int) -> int:
    """Offset just past the last significant character of the declaration at ``start``.

    The declaration ends at a top-level `;`, at the `}` closing its block or
    at the end of input. Trailing whitespace and comments are not included.
    """
    depth = 0
    end = start
    for match in _SOURCE_UNIT.finditer(text, start):
        unit = match.group()
        if unit in ("(", "[", "{"):
            depth += 1
        elif unit in (")", "]", "}"):
            if depth == 0:
                break
            depth -= 1
        elif unit == ";" and depth == 0:
            break
        elif unit.startswith("/*"):
            continue
        if unit.strip():
            end = match.start() + len(unit.rstrip())
    return end


def _declaration_span(declaration, document: TextDocument) -> Span:
    start = document.offset_at(declaration.source_line, declaration.source_column)
    end_line, end_col = document.position_at(_declaration_end(document.text, start))
    return Span(declaration.source_line, declaration.source_column, end_line, end_col)


def _name_span(token, length: int) -> Span:
    return Span(token.source_line, token.source_column, token.source_line, token.source_column + length)


# ============================================================================
# SCANNER
# ============================================================================

class StyleScanner:
    """Scans a style sheet, or with ``inline=True`` a bare declaration list
    such as the value of a markup ``style`` attribute."""

    def __init__(self, context: Optional[ScanContext] = None, inline: bool = False):
        self.context = context or default_context()
        self.inline = inline

    def produce_findings(self, text: str) -> List[Finding]:
        collector = FindingCollector(self.context, Category.STYLE)
        document = TextDocument(text)
        try:
            if self.inline:
                nodes = tinycss2.parse_blocks_contents(text, skip_comments=False, skip_whitespace=True)
            else:
                nodes = tinycss2.parse_stylesheet(text, skip_comments=False, skip_whitespace=True)
        except Exception as e:
            logger.warning("Could not parse style sheet: %s", e)
            return []

        self._walk(nodes, collector, document, nested=self.inline)
        return collector.findings

    def _walk(self, nodes: Sequence, collector: FindingCollector, document: TextDocument, nested: bool):
        for index, node in enumerate(nodes):
            try:
                self._visit(nodes, index, collector, document, nested)
            except Exception as e:
                logger.warning(
                    "Error scanning style rule at line %s: %s", getattr(node, "source_line", "?"), e
                )

    def _visit(self, siblings: Sequence, index: int, collector: FindingCollector,
               document: TextDocument, nested: bool):
        node = siblings[index]
        comments = _preceding_comments(siblings, index)

        if node.type == "declaration":
            self._check_declaration(siblings, index, comments, collector, document)

        elif node.type == "qualified-rule":
            self._check_selector(node, comments, collector)
            children = tinycss2.parse_blocks_contents(node.content, skip_comments=False, skip_whitespace=True)
            self._walk(children, collector, document, nested=True)

        elif node.type == "at-rule":
            keyword = node.lower_at_keyword
            if keyword in AT_RULE_FEATURES:
                collector.add(AT_RULE_PREFIX + keyword, f"The '@{keyword}' at-rule",
                              _name_span(node, len(keyword) + 1), comments)
            if node.content is not None:
                if nested or keyword in DECLARATION_AT_RULES:
                    children = tinycss2.parse_blocks_contents(
                        node.content, skip_comments=False, skip_whitespace=True)
                else:
                    children = tinycss2.parse_rule_list(
                        node.content, skip_comments=False, skip_whitespace=True)
                self._walk(children, collector, document, nested=nested or keyword in DECLARATION_AT_RULES)

        elif node.type == "error":
            logger.debug("Style parse error at %s:%s: %s", node.source_line, node.source_column, node.message)

    def _check_declaration(self, siblings: Sequence, index: int, comments: List[str],
                           collector: FindingCollector, document: TextDocument):
        declaration = siblings[index]
        name = declaration.lower_name

        if not (name == "backdrop-filter" and _has_background_fallback(siblings, index)):
            collector.add(PROPERTY_PREFIX + name, f"The CSS property '{name}'",
                          _declaration_span(declaration, document), comments)

        for _, token in _iter_tokens(declaration.value):
            if token.type == "function":
                feature_id = FUNCTION_FEATURES.get(token.lower_name)
                if feature_id:
                    collector.add(feature_id, f"The CSS function '{token.lower_name}()'",
                                  _name_span(token, len(token.name) + 1), comments)
            elif token.type == "ident":
                if token.lower_value == "subgrid" and name in GRID_TEMPLATE_PROPERTIES:
                    collector.add("style-value.subgrid", "The 'subgrid' value",
                                  _name_span(token, len(token.value)), comments)
                elif token.lower_value in ("sticky", "-webkit-sticky") and name == "position":
                    collector.add("style-value.position-sticky", "'position: sticky'",
                                  _name_span(token, len(token.value)), comments)

    def _check_selector(self, rule, comments: List[str], collector: FindingCollector):
        for previous, token in _iter_tokens(rule.prelude):
            if previous is None or previous.type != "literal" or previous.value != ":":
                continue
            if token.type == "function" and token.lower_name == "has":
                span = Span(previous.source_line, previous.source_column,
                            token.source_line, token.source_column + len("has("))
                collector.add("style-selector.has", "The ':has()' selector", span, comments)
            elif token.type == "ident" and token.lower_value == "focus-visible":
                span = Span(previous.source_line, previous.source_column,
                            token.source_line, token.source_column + len(token.value))
                collector.add("style-selector.focus-visible", "The ':focus-visible' pseudo-class",
                              span, comments)


def scan_style(text: str, context: Optional[ScanContext] = None) -> List[Finding]:
    return StyleScanner(context).produce_findings(text)


def scan_inline_style(text: str, context: Optional[ScanContext] = None) -> List[Finding]:
    return StyleScanner(context, inline=True).produce_findings(text)

"""
Script scanner (tree-sitter).

Reports references to watched globals that are not shadowed by a local
binding, and watched member names on non-computed property accesses.
JavaScript, TypeScript and TSX sources each use their own grammar; syntax
errors are recovered locally, so the rest of the file is still scanned.
"""

import logging
from bisect import bisect_right
from functools import lru_cache
from typing import Dict, FrozenSet, List, Optional, Sequence, Set

import tree_sitter
import tree_sitter_javascript
import tree_sitter_typescript

from .context import ScanContext, default_context
from .findings import FindingCollector
from .models import Category, Finding, Span

logger = logging.getLogger(__name__)

DIALECTS = ("javascript", "typescript", "tsx")

GLOBAL_WATCHLIST = {
    name: "script-api." + name
    for name in (
        "structuredClone", "Temporal", "ReadableStream", "CompressionStream", "WeakRef",
        "FinalizationRegistry", "ResizeObserver", "IntersectionObserver", "globalThis",
        "BigInt", "Symbol", "Map", "Set", "Worker", "WebSocket", "PaymentRequest",
        "RTCPeerConnection", "EyeDropper", "IdleDetector", "WakeLock",
        "localStorage", "sessionStorage",
    )
}

MEMBER_WATCHLIST = {
    "keyCode": "script-api.keyCode",
    "hasOwn": "script-api.Object.hasOwn",
    "fromEntries": "script-api.Object.fromEntries",
    "at": "script-api.Array.at",
    "flat": "script-api.Array.flat",
    "flatMap": "script-api.Array.flat",
    "findLast": "script-api.Array.findLast",
    "findLastIndex": "script-api.Array.findLast",
    "toReversed": "script-api.Array.toReversed",
    "toSorted": "script-api.Array.toSorted",
    "toSpliced": "script-api.Array.toSpliced",
    "with": "script-api.Array.with",
    "fromAsync": "script-api.Array.fromAsync",
    "any": "script-api.Promise.any",
    "allSettled": "script-api.Promise.allSettled",
    "withResolvers": "script-api.Promise.withResolvers",
    "matchAll": "script-api.String.matchAll",
    "replaceAll": "script-api.String.replaceAll",
    "Segmenter": "script-api.Intl.Segmenter",
    "clipboard": "script-api.navigator.clipboard",
    "connection": "script-api.navigator.connection",
    "credentials": "script-api.navigator.credentials",
    "geolocation": "script-api.navigator.geolocation",
    "mediaDevices": "script-api.navigator.mediaDevices",
    "serviceWorker": "script-api.navigator.serviceWorker",
    "vibrate": "script-api.Navigator.vibrate",
    "share": "script-api.Navigator.share",
    "requestMIDIAccess": "script-api.Navigator.requestMIDIAccess",
    "getDisplayMedia": "script-api.Navigator.getDisplayMedia",
    "wakeLock": "script-api.WakeLock",
    "usb": "script-api.USB",
    "requestFullscreen": "script-api.Element.requestFullscreen",
    "showPicker": "script-api.HTMLSelectElement.showPicker",
}

FUNCTION_TYPES = {
    "function_declaration", "generator_function_declaration", "function_expression",
    "function", "generator_function", "arrow_function", "method_definition",
}
CLASS_TYPES = {"class_declaration", "abstract_class_declaration", "class"}
SCOPE_TYPES = FUNCTION_TYPES | {
    "program", "statement_block", "switch_statement", "catch_clause",
    "for_statement", "for_in_statement", "class",
}

# subtrees that hold no value references: imports, comments and type positions
_SKIPPED_TYPES = {
    "comment", "import_statement", "type_annotation", "type_arguments", "type_parameters",
    "type_alias_declaration", "interface_declaration", "type_query", "implements_clause",
}

_REFERENCE_TYPES = {"identifier", "shorthand_property_identifier"}


# ============================================================================
# TREE HELPERS
# ============================================================================

@lru_cache(maxsize=None)
def _language(dialect: str) -> tree_sitter.Language:
    if dialect == "typescript":
        return tree_sitter.Language(tree_sitter_typescript.language_typescript())
    if dialect == "tsx":
        return tree_sitter.Language(tree_sitter_typescript.language_tsx())
    return tree_sitter.Language(tree_sitter_javascript.language())


def parse_script(source: bytes, dialect: str = "javascript") -> tree_sitter.Tree:
    # parsers hold per-parse state, so each call gets its own
    parser = tree_sitter.Parser(_language(dialect))
    return parser.parse(source)


def _text(node: tree_sitter.Node) -> str:
    return node.text.decode("utf-8", errors="replace")


def _field(node: tree_sitter.Node, name: str) -> Optional[tree_sitter.Node]:
    return node.child_by_field_name(name)


def _pattern_names(pattern: Optional[tree_sitter.Node]) -> Set[str]:
    """Names bound by a binding pattern or a parameter list."""
    if pattern is None:
        return set()
    kind = pattern.type
    if kind in ("identifier", "shorthand_property_identifier_pattern"):
        return {_text(pattern)}
    if kind in ("formal_parameters", "object_pattern", "array_pattern", "rest_pattern"):
        names = set()
        for child in pattern.named_children:
            names |= _pattern_names(child)
        return names
    if kind == "pair_pattern":
        return _pattern_names(_field(pattern, "value"))
    if kind in ("assignment_pattern", "object_assignment_pattern"):
        return _pattern_names(_field(pattern, "left"))
    if kind in ("required_parameter", "optional_parameter"):
        return _pattern_names(_field(pattern, "pattern"))
    return set()


def _declaration_names(declaration: tree_sitter.Node) -> Set[str]:
    names = set()
    for declarator in declaration.named_children:
        if declarator.type == "variable_declarator":
            names |= _pattern_names(_field(declarator, "name"))
    return names


def _loop_binding(node: tree_sitter.Node) -> Optional[str]:
    """``var``, ``let`` or ``const`` when a for-in/of loop declares its variable."""
    kind = _field(node, "kind")
    return kind.type if kind is not None else None


def _hoisted_names(node: tree_sitter.Node) -> Set[str]:
    """``var`` names declared anywhere under ``node`` without crossing a function."""
    names = set()
    for child in node.named_children:
        if child.type in FUNCTION_TYPES or child.type in CLASS_TYPES:
            continue
        if child.type == "variable_declaration":
            names |= _declaration_names(child)
        elif child.type == "for_in_statement" and _loop_binding(child) == "var":
            names |= _pattern_names(_field(child, "left"))
        names |= _hoisted_names(child)
    return names


def _import_names(statement: tree_sitter.Node) -> Set[str]:
    names = set()
    for clause in statement.named_children:
        if clause.type != "import_clause":
            continue
        for part in clause.named_children:
            if part.type == "identifier":
                names.add(_text(part))
            elif part.type == "namespace_import":
                names |= {_text(c) for c in part.named_children if c.type == "identifier"}
            elif part.type == "named_imports":
                for spec in part.named_children:
                    if spec.type != "import_specifier":
                        continue
                    local = _field(spec, "alias")
                    if local is None:
                        local = _field(spec, "name")
                    if local is not None:
                        names.add(_text(local))
    return names


def _lexical_names(statements: Sequence[tree_sitter.Node]) -> Set[str]:
    """let/const/class/function/import names declared directly in a statement list."""
    names = set()
    for statement in statements:
        if statement.type == "export_statement":
            statement = _field(statement, "declaration")
            if statement is None:
                continue
        kind = statement.type
        if kind == "lexical_declaration":
            names |= _declaration_names(statement)
        elif kind in ("function_declaration", "generator_function_declaration") or kind in CLASS_TYPES:
            name = _field(statement, "name")
            if name is not None:
                names.add(_text(name))
        elif kind == "import_statement":
            names |= _import_names(statement)
    return names


def _scope_names(node: tree_sitter.Node) -> FrozenSet[str]:
    kind = node.type
    names: Set[str] = set()
    if kind == "program":
        names = _lexical_names(node.named_children) | _hoisted_names(node)
    elif kind in FUNCTION_TYPES:
        names = _pattern_names(_field(node, "parameters")) | _pattern_names(_field(node, "parameter"))
        if kind in ("function_expression", "function", "generator_function"):
            names |= _pattern_names(_field(node, "name"))
        body = _field(node, "body")
        if body is not None and body.type == "statement_block":
            names |= _hoisted_names(body)
    elif kind == "statement_block":
        names = _lexical_names(node.named_children)
    elif kind == "switch_statement":
        body = _field(node, "body")
        for case in body.named_children if body is not None else ():
            names |= _lexical_names(case.named_children)
    elif kind == "catch_clause":
        names = _pattern_names(_field(node, "parameter"))
    elif kind == "for_statement":
        for child in node.named_children:
            if child.type == "lexical_declaration":
                names |= _declaration_names(child)
    elif kind == "for_in_statement":
        if _loop_binding(node) in ("let", "const"):
            names = _pattern_names(_field(node, "left"))
    elif kind == "class":
        names = _pattern_names(_field(node, "name"))
    return frozenset(names)


def _is_statement(node: tree_sitter.Node) -> bool:
    return node.type.endswith("_statement") or node.type.endswith("_declaration")


def _comment_value(text: str) -> str:
    if text.startswith("//"):
        return text[2:]
    if text.startswith("/*"):
        return text[2:-2] if text.endswith("*/") else text[2:]
    return text


# ============================================================================
# SCANNER
# ============================================================================

class ScriptScanner:
    def __init__(self, context: Optional[ScanContext] = None, dialect: str = "javascript"):
        self.context = context or default_context()
        self.dialect = dialect if dialect in DIALECTS else "javascript"

    def produce_findings(self, text: str) -> List[Finding]:
        source = text.encode("utf-8", errors="replace")
        try:
            tree = parse_script(source, self.dialect)
        except Exception as e:
            logger.warning("Could not parse script: %s", e)
            return []
        if tree.root_node.has_error:
            logger.debug("Script has syntax errors; scanning the recovered tree")

        walk = _ScriptWalk(source, tree, FindingCollector(self.context, Category.SCRIPT))
        return walk.run()


class _ScriptWalk:
    """State for one walk over one parsed program."""

    def __init__(self, source: bytes, tree: tree_sitter.Tree, collector: FindingCollector):
        self.source = source
        self.root = tree.root_node
        self.collector = collector
        self.lines = source.split(b"\n")
        self.comments: List[tree_sitter.Node] = []
        self._collect_comments(self.root)
        self._comment_ends = [c.end_byte for c in self.comments]
        self._leading: Dict[int, List[str]] = {}

    def _collect_comments(self, node: tree_sitter.Node):
        for child in node.children:
            if child.type == "comment":
                self.comments.append(child)
            else:
                self._collect_comments(child)

    def run(self) -> List[Finding]:
        scopes = [_scope_names(self.root)]
        for statement in self.root.named_children:
            if statement.type == "comment":
                continue
            try:
                self._visit(statement, self.root, scopes, statement)
            except Exception as e:
                logger.warning("Error scanning script statement at line %s: %s",
                               statement.start_point[0] + 1, e)
        return self.collector.findings

    def _visit(self, node, parent, scopes: List[FrozenSet[str]], statement):
        kind = node.type
        if kind in SCOPE_TYPES:
            scopes = scopes + [_scope_names(node)]
        if _is_statement(node) and parent.type != "export_statement":
            statement = node

        if kind in _REFERENCE_TYPES:
            self._check_reference(node, scopes, statement)
        elif kind == "member_expression":
            self._check_member(_field(node, "property"), statement)
        elif kind == "export_statement" and _field(node, "source") is not None:
            # re-exported names belong to the other module
            return

        alias = _field(node, "alias") if kind == "export_specifier" else None
        for child in node.named_children:
            if child.type in _SKIPPED_TYPES or (alias is not None and child == alias):
                continue
            self._visit(child, node, scopes, statement)

    def _column(self, point) -> int:
        row, byte_column = point
        return len(self.lines[row][:byte_column].decode("utf-8", errors="replace")) + 1

    def _span(self, node: tree_sitter.Node) -> Span:
        return Span(node.start_point[0] + 1, self._column(node.start_point),
                    node.end_point[0] + 1, self._column(node.end_point))

    def _check_reference(self, identifier, scopes: List[FrozenSet[str]], statement):
        name = _text(identifier)
        feature_id = GLOBAL_WATCHLIST.get(name)
        if feature_id is None:
            return
        if any(name in names for names in scopes):
            return
        self.collector.add(feature_id, f"'{name}'", self._span(identifier),
                           self._leading_comments(statement))

    def _check_member(self, prop, statement):
        if prop is None or prop.type != "property_identifier":
            return
        name = _text(prop)
        feature_id = MEMBER_WATCHLIST.get(name)
        if feature_id is None:
            return
        owner = feature_id[len("script-api."):].rpartition(".")[0]
        subject = f"'{owner}.{name}'" if owner else f"'{name}'"
        self.collector.add(feature_id, subject, self._span(prop), self._leading_comments(statement))

    def _leading_comments(self, statement) -> List[str]:
        """Comments separated from the statement's start by whitespace only."""
        if statement is None:
            return []
        start = statement.start_byte
        if start in self._leading:
            return self._leading[start]

        comments = []
        cursor = start
        index = bisect_right(self._comment_ends, start) - 1
        while index >= 0:
            comment = self.comments[index]
            if self.source[comment.end_byte:cursor].strip():
                break
            comments.append(_comment_value(_text(comment)))
            cursor = comment.start_byte
            index -= 1

        self._leading[start] = comments
        return comments


def scan_script(text: str, context: Optional[ScanContext] = None, dialect: str = "javascript") -> List[Finding]:
    return ScriptScanner(context, dialect).produce_findings(text)

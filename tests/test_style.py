import pytest

from baseline_sentinel.catalog import DEFAULT_CATALOG
from baseline_sentinel.composer import apply_edits, compose_single
from baseline_sentinel.context import default_context
from baseline_sentinel.models import Category, FeatureStatus, SourceKind, Span
from baseline_sentinel.style import scan_inline_style, scan_style

from conftest import make_context


def _ids(findings):
    return [f.feature_id for f in findings]


def _apply_preferred(text, finding, ctx):
    fix = ctx.catalog.preferred_fix(finding.fix_id)
    return apply_edits(text, compose_single(text, finding, fix, SourceKind.STYLE))


def test_text_wrap_is_removed_from_single_line_rule(ctx):
    text = ".a { text-wrap: balance; }"
    findings = scan_style(text, ctx)

    assert _ids(findings) == ["style-property.text-wrap"]
    finding = findings[0]
    assert finding.category == Category.STYLE
    assert finding.span == Span(1, 6, 1, 24)
    assert ctx.catalog.preferred_fix(finding.fix_id).kind == "remove-line"
    assert _apply_preferred(text, finding, ctx) == ".a {  }"


def test_catalogued_property_yields_exactly_one_finding(ctx):
    findings = scan_style(".a {\n  color: red;\n  accent-color: hotpink;\n}\n", ctx)
    assert _ids(findings) == ["style-property.accent-color"]
    assert (findings[0].line, findings[0].column) == (3, 3)


def test_uncatalogued_property_is_ignored(ctx):
    assert scan_style(".a { color: red; margin: 0 auto; }", ctx) == []


def test_backdrop_filter_with_background_fallback(ctx):
    text = ".a {\n  background-color: #000;\n  /* frosted */\n  backdrop-filter: blur(4px);\n}"
    assert "style-property.backdrop-filter" not in _ids(scan_style(text, ctx))


def test_backdrop_filter_without_fallback(ctx):
    text = ".a {\n  color: white;\n  backdrop-filter: blur(4px);\n}"
    assert _ids(scan_style(text, ctx)) == ["style-property.backdrop-filter"]
    assert _ids(scan_style(".a { backdrop-filter: blur(4px); }", ctx)) == ["style-property.backdrop-filter"]


def test_backdrop_filter_fallback_must_be_nearest_declaration(ctx):
    text = ".a {\n  background-color: #000;\n  color: white;\n  backdrop-filter: blur(4px);\n}"
    assert _ids(scan_style(text, ctx)) == ["style-property.backdrop-filter"]


def test_suppression_directive_before_declaration(ctx):
    text = ".a {\n  /* baseline-disable-next-line style-property.text-wrap */\n  text-wrap: balance;\n}"
    assert scan_style(text, ctx) == []


def test_suppression_is_exact_token(ctx):
    text = (
        ".a {\n"
        "  /* baseline-disable-next-line style-function.color */\n"
        "  color: color-mix(in srgb, red, blue);\n"
        "}"
    )
    assert _ids(scan_style(text, ctx)) == ["style-function.color-mix"]


def test_directive_only_covers_the_next_node(ctx):
    text = (
        ".a {\n"
        "  /* baseline-disable-next-line style-property.text-wrap */\n"
        "  color: red;\n"
        "  text-wrap: balance;\n"
        "}"
    )
    assert _ids(scan_style(text, ctx)) == ["style-property.text-wrap"]


def test_value_functions_are_reported_at_the_function(ctx):
    findings = scan_style(".a { color: oklch(70% 0.1 200); }", ctx)
    assert _ids(findings) == ["style-function.oklch"]
    assert findings[0].span == Span(1, 13, 1, 19)


def test_trigonometric_functions_inside_calc(ctx):
    findings = scan_style(".a {\n  width: calc(10px * sin(30deg));\n}", ctx)
    assert _ids(findings) == ["style-function.trigonometric"]
    assert findings[0].line == 2


def test_value_keywords(ctx):
    text = ".grid { grid-template-columns: subgrid; }\n.bar { position: sticky; }"
    assert sorted(_ids(scan_style(text, ctx))) == ["style-value.position-sticky", "style-value.subgrid"]


def test_at_rules(ctx):
    text = "@container card (min-width: 400px) {\n  .a { color: red; }\n}\n@layer base;"
    findings = scan_style(text, ctx)
    assert _ids(findings) == ["style-at-rule.container", "style-at-rule.layer"]
    assert (findings[0].line, findings[0].column) == (1, 1)
    assert (findings[1].line, findings[1].column) == (4, 1)


def test_declarations_inside_conditional_rules(ctx):
    text = "@media (min-width: 600px) {\n  .a { text-wrap: balance; }\n}"
    findings = scan_style(text, ctx)
    assert _ids(findings) == ["style-property.text-wrap"]
    assert (findings[0].line, findings[0].column) == (2, 8)


def test_has_selector(ctx):
    findings = scan_style(".card:has(> img) { color: red; }", ctx)
    assert _ids(findings) == ["style-selector.has"]
    assert (findings[0].line, findings[0].column) == (1, 6)


def test_rule_directive_covers_selector(ctx):
    text = "/* baseline-disable-next-line style-selector.has */\n.card:has(> img) { color: red; }"
    assert scan_style(text, ctx) == []


def test_malformed_input_never_raises(ctx):
    assert scan_style("", ctx) == []
    assert isinstance(scan_style("a { color: red; ;; } }}} @media {", ctx), list)
    assert _ids(scan_style("}}} .a { text-wrap: balance; }", ctx)) == ["style-property.text-wrap"]


def test_unknown_status_fails_open():
    ctx = make_context(overrides={"style-property.text-wrap": "unknown"})
    assert scan_style(".a { text-wrap: balance; }", ctx) == []


def test_newly_target_only_reports_limited():
    ctx = make_context(
        status="newly",
        overrides={"style-property.field-sizing": "limited"},
        target=FeatureStatus.NEWLY,
    )
    text = ".a { text-wrap: balance; field-sizing: content; }"
    assert _ids(scan_style(text, ctx)) == ["style-property.field-sizing"]


def test_finding_carries_doc_url():
    ctx = make_context()
    assert scan_style(".a { text-wrap: balance; }", ctx)[0].doc_url is None

    findings = scan_style(".a { text-wrap: balance; }")
    assert findings[0].doc_url == "https://developer.mozilla.org/docs/Web/CSS/text-wrap"


def test_remove_then_rescan_has_no_finding(ctx):
    text = ".a {\n  color: red;\n  text-wrap: balance;\n}\n"
    finding = scan_style(text, ctx)[0]
    fixed = _apply_preferred(text, finding, ctx)
    assert fixed == ".a {\n  color: red;\n}\n"
    assert scan_style(fixed, ctx) == []


def test_remove_covers_important(ctx):
    text = ".a {\n  text-wrap: balance !important;\n}"
    finding = scan_style(text, ctx)[0]
    assert _apply_preferred(text, finding, ctx) == ".a {\n}"


def test_inline_declaration_list(ctx):
    findings = scan_inline_style("color: red; text-wrap: balance", ctx)
    assert _ids(findings) == ["style-property.text-wrap"]
    assert findings[0].span.start_col == 13


def test_remove_spans_unnormalized_url_value(ctx):
    text = ".a {\n  mask-image: url( a.png );\n}\n"
    finding = scan_style(text, ctx)[0]
    assert finding.span == Span(2, 3, 2, 27)
    assert _apply_preferred(text, finding, ctx) == ".a {\n}\n"


def test_remove_spans_multiline_value_and_quoted_semicolon(ctx):
    text = '.a {\n  mask-image: url("a;b.png"),\n    linear-gradient(red, blue);\n}\n'
    finding = scan_style(text, ctx)[0]
    assert finding.span == Span(2, 3, 3, 31)
    assert _apply_preferred(text, finding, ctx) == ".a {\n}\n"


def test_span_ends_before_trailing_comment(ctx):
    text = ".a { text-wrap: balance /* note */; }"
    assert scan_style(text, ctx)[0].span == Span(1, 6, 1, 24)


@pytest.mark.parametrize(
    "feature_id", sorted(key for key in DEFAULT_CATALOG if key.startswith("style-property."))
)
def test_bundled_statuses_report_every_catalogued_property(feature_id):
    prop = feature_id[len("style-property."):]
    findings = scan_style(".a { %s: x; }" % prop, default_context())
    assert [f.feature_id for f in findings] == [feature_id]

from baseline_sentinel.context import default_context
from baseline_sentinel.markup import MarkupScanner, parse_markup, scan_markup
from baseline_sentinel.models import Category, Span


def _ids(findings):
    return [f.feature_id for f in findings]


def test_non_baseline_input_type(ctx):
    findings = scan_markup('<input type="date">', ctx)
    assert _ids(findings) == ["markup-element.input.type_date"]
    assert findings[0].category == Category.MARKUP
    assert findings[0].span == Span(1, 8, 1, 12)


def test_plain_input_type_is_clean(ctx):
    assert scan_markup('<input type="text">', ctx) == []
    assert scan_markup("<input>", ctx) == []


def test_input_type_is_case_insensitive(ctx):
    findings = scan_markup('<INPUT TYPE="Datetime-Local">', ctx)
    assert _ids(findings) == ["markup-element.input.type_datetime_local"]


def test_deprecated_element(ctx):
    findings = scan_markup("<center>hi</center>", ctx)
    assert _ids(findings) == ["markup-element.center"]
    assert findings[0].span == Span(1, 1, 1, 8)
    assert findings[0].message == "The <center> element has limited availability and is not part of Baseline."


def test_elements_without_remediation_are_not_reported(ctx):
    assert scan_markup("<details><summary>More</summary>text</details>", ctx) == []


def test_global_attribute_position(ctx):
    findings = scan_markup("<div popover>menu</div>", ctx)
    assert _ids(findings) == ["markup-attribute.popover"]
    assert findings[0].span == Span(1, 6, 1, 13)


def test_lazy_loading_attribute(ctx):
    findings = scan_markup('<img src="a.png" loading="lazy">', ctx)
    assert _ids(findings) == ["markup-element.img.loading"]
    assert findings[0].span == Span(1, 18, 1, 25)


def test_attribute_on_later_line(ctx):
    text = "<dialog\n    inert\n    open>x</dialog>"
    findings = scan_markup(text, ctx)
    assert _ids(findings) == ["markup-element.dialog", "markup-attribute.inert"]
    assert findings[1].span == Span(2, 5, 2, 10)


def test_inline_style_attribute_is_scanned_in_place(ctx):
    text = '<div>\n  <p style="text-wrap: balance">x</p>\n</div>'
    findings = scan_markup(text, ctx)
    assert _ids(findings) == ["style-property.text-wrap"]
    assert findings[0].category == Category.STYLE
    assert (findings[0].line, findings[0].column) == (2, 13)


def test_style_block(ctx):
    text = "<html>\n<head>\n<style>\n.a { text-wrap: balance; }\n</style>\n</head>\n</html>"
    findings = scan_markup(text, ctx)
    assert _ids(findings) == ["style-property.text-wrap"]
    assert (findings[0].line, findings[0].column) == (4, 6)


def test_style_block_on_element_line(ctx):
    findings = scan_markup("<p>x</p><style>.a { text-wrap: balance; }</style>", ctx)
    assert (findings[0].line, findings[0].column) == (1, 21)


def test_script_block(ctx):
    text = "<body>\n<script>\nif (e.keyCode === 27) {}\n</script>\n</body>"
    findings = scan_markup(text, ctx)
    assert _ids(findings) == ["script-api.keyCode"]
    assert findings[0].category == Category.SCRIPT
    assert findings[0].span == Span(3, 7, 3, 14)


def test_module_script_is_scanned(ctx):
    findings = scan_markup('<script type="module">\nnew WeakRef(x);\n</script>', ctx)
    assert _ids(findings) == ["script-api.WeakRef"]


def test_non_script_type_is_ignored(ctx):
    assert scan_markup('<script type="text/template">if (e.keyCode) {}</script>', ctx) == []
    assert scan_markup('<script type="application/json">{"Map": 1}</script>', ctx) == []


def test_broken_fragment_does_not_stop_the_scan(ctx):
    text = "<script>function (</script>\n<marquee>x</marquee>"
    findings = scan_markup(text, ctx)
    assert _ids(findings) == ["markup-element.marquee"]
    assert findings[0].line == 2


def test_fragment_suppression_directive(ctx):
    text = "<style>\n/* baseline-disable-next-line style-property.text-wrap */\n.a { text-wrap: balance; }\n</style>"
    assert scan_markup(text, ctx) == []


def test_fragment_findings_never_precede_their_element(ctx):
    text = '<p>\n  intro\n</p>\n<div style="color: oklch(70% 0.1 200)">\n<script>\nnew WeakRef(x)\n</script>\n</div>'
    findings = scan_markup(text, ctx)
    assert _ids(findings) == ["style-function.oklch", "script-api.WeakRef"]
    assert findings[0].line >= 4
    assert findings[1].line >= 5


def test_injected_fragment_scanner(ctx):
    seen = []

    class RecordingScanner:
        def produce_findings(self, text):
            seen.append(text)
            return []

    scanner = MarkupScanner(ctx, script_scanner=RecordingScanner())
    assert scanner.produce_findings("<script>let a = 1;</script>") == []
    assert seen == ["let a = 1;"]


def test_tree_positions():
    root = parse_markup("<ul>\n  <li>one</li>\n  <li>two<br></li>\n</ul>")
    (ul,) = root.children
    assert (ul.tag, ul.line, ul.column) == ("ul", 1, 1)
    assert [(li.line, li.column) for li in ul.children] == [(2, 3), (3, 3)]
    assert [child.tag for child in ul.children[1].children] == ["br"]


def test_bundled_statuses_report_catalogued_markup():
    findings = scan_markup('<dialog open>\n  <input type="date" popover>\n</dialog>\n', default_context())
    assert sorted(f.feature_id for f in findings) == [
        "markup-attribute.popover",
        "markup-element.dialog",
        "markup-element.input.type_date",
    ]

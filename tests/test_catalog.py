import pytest

from baseline_sentinel.catalog import DEFAULT_CATALOG, RemediationCatalog, lookup
from baseline_sentinel.models import (
    AddComment,
    AddDeclaration,
    RecommendPolyfill,
    Remediation,
    RemoveLine,
    ReplaceDeclaration,
    ReplaceText,
)


def test_lookup_returns_ordered_fixes():
    remediation = lookup("style-property.backdrop-filter")
    assert isinstance(remediation.preferred, AddDeclaration)
    assert remediation.preferred.property == "background-color"
    assert isinstance(remediation.fixes[1], AddComment)


def test_scenario_remediations():
    assert isinstance(DEFAULT_CATALOG.preferred_fix("style-property.text-wrap"), RemoveLine)
    fix = DEFAULT_CATALOG.preferred_fix("script-api.keyCode")
    assert fix == ReplaceText(old="keyCode", new="key", description=fix.description)
    assert isinstance(DEFAULT_CATALOG.preferred_fix("markup-element.input.type_date"), RecommendPolyfill)
    assert DEFAULT_CATALOG.preferred_fix("style-property.color-adjust") == ReplaceDeclaration(
        new_property="print-color-adjust",
        description=DEFAULT_CATALOG.preferred_fix("style-property.color-adjust").description,
    )


def test_lookup_miss_is_none():
    assert lookup("style-property.color") is None
    assert DEFAULT_CATALOG.preferred_fix("nope") is None
    assert "nope" not in DEFAULT_CATALOG


def test_catalog_is_read_only():
    with pytest.raises(TypeError):
        DEFAULT_CATALOG._table["style-property.color"] = Remediation("style-property.color", ())


def test_every_entry_has_a_described_fix():
    assert len(DEFAULT_CATALOG) > 100
    for key in DEFAULT_CATALOG:
        remediation = DEFAULT_CATALOG.lookup(key)
        assert remediation.feature_id == key
        assert remediation.fixes
        assert all(fix.description for fix in remediation.fixes)


def test_comment_fixes_carry_their_own_directive():
    for key in DEFAULT_CATALOG:
        for fix in DEFAULT_CATALOG.lookup(key).fixes:
            if isinstance(fix, (AddComment, RecommendPolyfill)):
                assert f"baseline-disable-next-line {key}" in fix.text, key


def test_remediation_json_shape():
    data = lookup("style-property.backdrop-filter").to_dict()
    assert data["featureId"] == "style-property.backdrop-filter"
    assert [f["kind"] for f in data["fixes"]] == ["add-declaration", "add-comment"]
    assert data["fixes"][0]["payload"] == {"property": "background-color", "value": "rgba(0, 0, 0, 0.5)"}
    assert lookup("style-property.color-adjust").to_dict()["fixes"][0]["payload"] == {
        "newProperty": "print-color-adjust"
    }


def test_custom_catalog():
    catalog = RemediationCatalog([Remediation("x.y", (RemoveLine(description="drop"),))])
    assert list(catalog) == ["x.y"]
    assert catalog.preferred_fix("x.y").kind == "remove-line"

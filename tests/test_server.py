import pytest
from fastapi.testclient import TestClient

from baseline_sentinel.config import SentinelConfig
from baseline_sentinel.server import create_app


@pytest.fixture
def client(ctx):
    return TestClient(create_app(context=ctx, config=SentinelConfig()))


def test_root_lists_endpoints(client):
    data = client.get("/").json()
    assert data["message"] == "Baseline Sentinel API"
    assert data["endpoints"]["scan"] == "/scan"


def test_health(client, ctx):
    data = client.get("/health").json()
    assert data["status"] == "healthy"
    assert data["remediations"] == len(ctx.catalog)
    assert data["features_loaded"] == len(ctx.oracle)
    assert data["target"] == "widely"


def test_feature_details(client):
    data = client.get("/features/script-api.keyCode").json()
    assert data["featureId"] == "script-api.keyCode"
    assert data["status"] == "limited"
    assert data["compliant"] is False
    assert data["remediation"]["fixes"][0] == {
        "kind": "replace-text",
        "description": "Replace deprecated 'keyCode' with modern 'key' property.",
        "payload": {"old": "keyCode", "new": "key"},
    }


def test_feature_details_unknown(client):
    response = client.get("/features/style-property.nope")
    assert response.status_code == 404


def test_scan(client):
    response = client.post("/scan", json={"language": "css", "content": ".a { text-wrap: balance; }"})
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    finding = data["findings"][0]
    assert finding["featureId"] == "style-property.text-wrap"
    assert (finding["line"], finding["column"], finding["endColumn"]) == (1, 6, 24)
    assert finding["category"] == "style-feature"


def test_scan_unsupported_language(client):
    response = client.post("/scan", json={"language": "cobol", "content": "MOVE A TO B."})
    assert response.status_code == 400


def test_scan_path(client, tmp_path):
    (tmp_path / "a.js").write_text("new WeakRef(x);\n", encoding="utf-8")
    data = client.post("/scan/path", json={"path": str(tmp_path)}).json()
    assert data["totalIssues"] == 1
    assert data["fileReports"][0]["path"] == "a.js"


def test_scan_path_missing(client, tmp_path):
    response = client.post("/scan/path", json={"path": str(tmp_path / "missing")})
    assert response.status_code == 400


def test_fix_all(client):
    response = client.post("/fix", json={"language": "javascript", "content": "if (e.keyCode === 27) {}"})
    data = response.json()
    assert data["content"] == "if (e.key === 27) {}"
    assert data["edits"] == [{"line": 1, "column": 7, "endLine": 1, "endColumn": 14, "newText": "key"}]


def test_fix_single_finding(client):
    content = ".a { text-wrap: balance; }\n.b { field-sizing: content; }\n"
    response = client.post("/fix", json={"language": "css", "content": content, "line": 2})
    data = response.json()
    assert len(data["findings"]) == 2
    assert data["content"] == ".a { text-wrap: balance; }\n.b {  }\n"


def test_fix_markup_batch_is_empty(client):
    content = '<input type="date">'
    response = client.post("/fix", json={"language": "html", "content": content})
    assert response.status_code == 200
    assert response.json()["content"] == content


def test_fix_markup_by_feature(client):
    content = '<input type="date">'
    response = client.post("/fix", json={
        "language": "html", "content": content, "feature_id": "markup-element.input.type_date",
    })
    assert response.json()["content"].startswith("<!-- Consider using a date picker polyfill")


def test_fix_no_matching_finding(client):
    response = client.post("/fix", json={"language": "css", "content": ".a {}", "line": 1})
    assert response.status_code == 404

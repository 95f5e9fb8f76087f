# tests/core/test_cli.py
import json

import pytest

from imgaudit.cli import main
from imgaudit.managers.config_manager import config_manager

HTML = """<html><body>
<img src="ok.png" width="10" height="10">
<img src="bad.png" width="10">
</body></html>"""


@pytest.fixture(autouse=True)
def fresh_config():
    """Drops in-memory overrides made by --set."""
    yield
    config_manager.reset()


@pytest.fixture
def artifacts_file(tmp_path):
    path = tmp_path / "artifacts.json"
    path.write_text(json.dumps({"pages": [
        {"url": "https://example.com/", "artifacts": {"ImageElements": [
            {"src": "a.png", "isCss": False, "attributeWidth": "100", "attributeHeight": "100"},
        ]}},
        {"url": "https://example.com/empty", "artifacts": {"ImageElements": []}},
    ]}))
    return path


def test_audit_passing_file(artifacts_file, capsys):
    code = main(["--log-level", "ERROR", "audit", str(artifacts_file), "--format", "json", "--no-progress"])
    assert code == 0

    output = json.loads(capsys.readouterr().out)
    assert [p["url"] for p in output["pages"]] == ["https://example.com/", "https://example.com/empty"]
    assert output["pages"][1]["audits"]["unsized-images"]["notApplicable"] is True
    assert output["stats"]["pages"] == 2


def test_audit_single_page_document_fails(tmp_path, capsys):
    path = tmp_path / "page.json"
    path.write_text(json.dumps({"ImageElements": [{"src": "x.png", "attributeWidth": "", "attributeHeight": ""}]}))

    code = main(["--log-level", "ERROR", "audit", str(path), "--format", "text", "--no-progress"])
    assert code == 1
    out = capsys.readouterr().out
    assert "[FAIL] page.json" in out
    assert "x.png" in out


def test_audit_unreadable_file(tmp_path, capsys):
    path = tmp_path / "broken.json"
    path.write_text("{not json")

    code = main(["--log-level", "ERROR", "audit", str(path), "--no-progress"])
    assert code == 2
    assert "Could not read" in capsys.readouterr().err


def test_collect_prints_artifact(tmp_path, capsys):
    page = tmp_path / "page.html"
    page.write_text(HTML)

    code = main(["--log-level", "ERROR", "collect", str(page), "--base-url", "https://example.com/"])
    assert code == 0
    artifact = json.loads(capsys.readouterr().out)
    images = artifact["ImageElements"]
    assert [i["src"] for i in images] == ["https://example.com/ok.png", "https://example.com/bad.png"]
    assert images[1]["attributeHeight"] is None
    assert images[0]["isCss"] is False


def test_scan_html_files(tmp_path, capsys):
    page = tmp_path / "page.html"
    page.write_text(HTML)

    code = main(["--log-level", "ERROR", "scan", str(page), "--format", "json", "--no-progress"])
    assert code == 1
    output = json.loads(capsys.readouterr().out)
    items = output["pages"][0]["audits"]["unsized-images"]["details"]["items"]
    assert [i["url"] for i in items] == ["bad.png"]


def test_set_overrides_configuration(artifacts_file, capsys):
    code = main(["--log-level", "ERROR", "--set", "report.format=json", "--set", "audit.show_progress=false",
                 "audit", str(artifacts_file)])
    assert code == 0

    output = json.loads(capsys.readouterr().out)
    assert output["stats"]["pages"] == 2
    assert config_manager.get_nested("report.format") == "json"
    assert config_manager.get_nested("audit.show_progress") is False


def test_set_rejects_malformed_override(artifacts_file, capsys):
    code = main(["--set", "report.format", "audit", str(artifacts_file)])
    assert code == 2
    assert "expected KEY=VALUE" in capsys.readouterr().err

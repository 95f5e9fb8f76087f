# tests/controllers/test_audit_controller.py
import json

import pytest

from imgaudit.controllers.audit_controller import AuditController
from imgaudit.controllers.report_controller import ReportController


def image(src, width="", height="", is_css=False):
    return {
        "src": src, "isCss": is_css, "attributeWidth": width, "attributeHeight": height,
        "path": "1,HTML,1,BODY,0,IMG", "selector": "body > img", "nodeLabel": "img",
        "snippet": f'<img src="{src}">',
    }


PAGES = [
    {"url": "https://example.com/a", "artifacts": {"ImageElements": [image("a1.png", "10", "10")]}},
    {"url": "https://example.com/b", "artifacts": {"ImageElements": [
        image("b1.png"), image("b2.png", "10", "10"), image("b3.png", "5", "x"),
    ]}},
    {"url": "https://example.com/c", "artifacts": {"ImageElements": []}},
]


@pytest.fixture
def controller():
    return AuditController()


def test_run_keeps_page_order(controller):
    results = controller.run(PAGES)
    assert [r.url for r in results] == ["https://example.com/a", "https://example.com/b", "https://example.com/c"]


def test_run_outcomes(controller):
    a, b, c = controller.run(PAGES)

    assert a.outcomes["unsized-images"].score == 1
    assert a.passed

    outcome_b = b.outcomes["unsized-images"]
    assert outcome_b.score == 0
    assert [item.url for item in outcome_b.items] == ["b1.png", "b3.png"]
    assert not b.passed

    assert c.outcomes["unsized-images"].not_applicable is True
    assert c.passed


def test_stats(controller):
    controller.run(PAGES)
    stats = controller.summary()
    assert stats["pages"] == 3
    assert stats["passed"] == 1
    assert stats["failed"] == 1
    assert stats["not_applicable"] == 1
    assert stats["unsized_images"] == 2
    assert stats.get("errors", 0) == 0


def test_invalid_page_is_recorded_and_others_continue(controller):
    pages = [
        ("https://example.com/bad", {"ImageElements": [{"src": "x.png", "attributeWidth": 100}]}),
        ("https://example.com/good", {"ImageElements": [image("g.png", "1", "1")]}),
    ]
    bad, good = controller.run(pages)
    assert bad.error is not None
    assert bad.outcomes == {}
    assert not bad.passed
    assert good.passed
    assert controller.summary()["errors"] == 1


def test_run_with_process_pool_keeps_order(controller):
    pages = [(f"https://example.com/{i}", {"ImageElements": [image(f"{i}.png")]}) for i in range(6)]
    results = controller.run(pages, workers=2)
    assert [r.url for r in results] == [p[0] for p in pages]
    assert all(r.outcomes["unsized-images"].score == 0 for r in results)


def test_report_to_dict_is_json_serializable(controller):
    results = controller.run(PAGES)
    report = ReportController().to_dict(results)

    encoded = json.loads(json.dumps(report))
    audit_b = encoded[1]["audits"]["unsized-images"]
    assert audit_b["score"] == 0
    assert audit_b["notApplicable"] is False
    assert [i["url"] for i in audit_b["details"]["items"]] == ["b1.png", "b3.png"]
    assert encoded[2]["audits"]["unsized-images"]["notApplicable"] is True


def test_report_includes_audit_metadata(controller):
    results = controller.run(PAGES)
    audit_a, audit_b = (ReportController().to_dict(results)[i]["audits"]["unsized-images"] for i in (0, 1))

    assert audit_a["id"] == "unsized-images"
    assert audit_a["requiredArtifacts"] == ["ImageElements"]
    assert "reduce layout shifts" in audit_a["description"]
    assert audit_a["title"] == "Image elements have explicit `width` and `height`"
    assert audit_b["title"] == audit_b["failureTitle"]


def test_report_to_text(controller):
    results = controller.run(PAGES)
    text = ReportController().to_text(results, controller.summary())
    lines = text.splitlines()

    assert lines[0].startswith("[PASS] https://example.com/a")
    assert lines[1].startswith("[FAIL] https://example.com/b")
    assert "do not have explicit" in lines[1]
    assert lines[2] == "    b1.png  body > img"
    assert lines[3] == "    b3.png  body > img"
    assert lines[4].startswith("[N/A] https://example.com/c")
    assert "unsized images: 2" in lines[-1]

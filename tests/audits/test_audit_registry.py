# tests/audits/test_audit_registry.py
import pytest

from imgaudit.audits.core import AuditDefinition, audit_spec
from imgaudit.audits.registry import AuditRegistry
from imgaudit.model import AuditOutcome


@pytest.fixture
def registry():
    """Resets the class-level registry around each test."""
    AuditRegistry.reset()
    yield AuditRegistry
    AuditRegistry.reset()


def test_discover_finds_sized_images_audit(registry):
    registry.discover()
    defn = registry.get("unsized-images")
    assert defn is not None
    assert "unsized-images" in [d.audit_id for d in registry.get_all()]


def test_discover_is_idempotent(registry):
    registry.discover()
    count = len(registry.get_all())
    registry.discover()
    assert len(registry.get_all()) == count


def test_audit_spec_declares_required_artifacts():
    @audit_spec(artifacts=["Foo"])
    def my_audit(artifacts):
        return AuditOutcome(score=1)

    defn = AuditDefinition("my-audit", "ok", "not ok", "desc", my_audit, required_artifacts=["Bar"])
    assert defn.required_artifacts == ["Bar", "Foo"]
    assert defn.run({}).score == 1
    assert defn.to_meta()["requiredArtifacts"] == ["Bar", "Foo"]


def test_register_custom_definition(registry):
    defn = AuditDefinition("custom", "ok", "not ok", "desc", lambda artifacts: AuditOutcome(score=0))
    registry.register(defn)
    assert registry.get("custom") is defn
    assert registry.get("missing") is None

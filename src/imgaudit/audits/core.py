# src/imgaudit/audits/core.py
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..model import AuditOutcome


def audit_spec(artifacts: List[str]):
    """
    Decorator to declare which collector artifacts an audit function reads.
    Facilitates auto-discovery by the AuditRegistry.
    """
    def decorator(func):
        func.required_artifacts = artifacts
        return func
    return decorator


# Signature of an audit function: artifacts in, outcome out
AuditFunction = Callable[[Mapping[str, Any]], AuditOutcome]


class AuditDefinition:
    """
    Configuration object binding an audit id to its metadata and audit function.
    """

    def __init__(
            self,
            audit_id: str,
            title: str,
            failure_title: str,
            description: str,
            audit: AuditFunction,
            required_artifacts: Optional[List[str]] = None
    ):
        self.audit_id = audit_id
        self.title = title
        self.failure_title = failure_title
        self.description = description
        self.audit = audit

        # Artifacts declared on the function via @audit_spec are merged in
        artifacts = set(required_artifacts or [])
        if hasattr(audit, 'required_artifacts'):
            artifacts.update(audit.required_artifacts)
        self.required_artifacts = sorted(artifacts)

    def run(self, artifacts: Mapping[str, Any]) -> AuditOutcome:
        return self.audit(artifacts)

    def title_for(self, outcome: AuditOutcome) -> str:
        """Returns the title matching the outcome (failure title when the audit failed)."""
        return self.title if outcome.passed else self.failure_title

    def to_meta(self) -> Dict[str, Any]:
        return {
            "id": self.audit_id,
            "title": self.title,
            "failureTitle": self.failure_title,
            "description": self.description,
            "requiredArtifacts": list(self.required_artifacts),
        }

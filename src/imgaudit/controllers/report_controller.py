# src/imgaudit/controllers/report_controller.py
import logging
from typing import Any, Dict, List, Optional, Sequence

from imgaudit.audits.registry import AuditRegistry
from imgaudit.model import AuditOutcome, PageAuditResult

logger = logging.getLogger(__name__)


class ReportController:
    """
    Turns page audit results into JSON-ready dictionaries or a plain-text summary.
    """

    def __init__(self):
        AuditRegistry.discover()

    # --- HELPERS ---

    @staticmethod
    def _status(outcome: AuditOutcome) -> str:
        if outcome.not_applicable:
            return "N/A"
        return "PASS" if outcome.passed else "FAIL"

    @staticmethod
    def _title(audit_id: str, outcome: AuditOutcome) -> str:
        defn = AuditRegistry.get(audit_id)
        return defn.title_for(outcome) if defn else audit_id

    # --- JSON ---

    def outcome_to_dict(self, audit_id: str, outcome: AuditOutcome) -> Dict[str, Any]:
        """Audit metadata merged with the outcome; 'title' reflects pass or fail."""
        defn = AuditRegistry.get(audit_id)
        entry: Dict[str, Any] = defn.to_meta() if defn else {"id": audit_id}
        entry.update({
            "title": self._title(audit_id, outcome),
            "score": outcome.score,
            "notApplicable": outcome.not_applicable,
            "details": outcome.details,
        })
        return entry

    def to_dict(self, results: Sequence[PageAuditResult]) -> List[Dict[str, Any]]:
        """JSON-serializable representation, one entry per page in input order."""
        report = []
        for page in results:
            entry: Dict[str, Any] = {"url": page.url, "audits": {}}
            if page.error is not None:
                entry["error"] = page.error
            for audit_id, outcome in page.outcomes.items():
                entry["audits"][audit_id] = self.outcome_to_dict(audit_id, outcome)
            report.append(entry)
        return report

    # --- TEXT ---

    def to_text(self, results: Sequence[PageAuditResult], stats: Optional[Dict[str, int]] = None) -> str:
        lines: List[str] = []
        for page in results:
            label = page.url or "<page>"
            if page.error is not None:
                lines.append(f"[ERROR] {label}: {page.error}")
                continue
            for audit_id, outcome in page.outcomes.items():
                lines.append(f"[{self._status(outcome)}] {label} - {self._title(audit_id, outcome)}")
                for item in outcome.items:
                    lines.append(f"    {item.url}  {item.node.selector or ''}".rstrip())

        if stats:
            lines.append("")
            lines.append(
                f"Pages: {stats.get('pages', 0)} | passed: {stats.get('passed', 0)} | "
                f"failed: {stats.get('failed', 0)} | n/a: {stats.get('not_applicable', 0)} | "
                f"errors: {stats.get('errors', 0)} | unsized images: {stats.get('unsized_images', 0)}"
            )
        return "\n".join(lines)

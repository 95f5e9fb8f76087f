# src/imgaudit/controllers/audit_controller.py
import logging
from collections import Counter
from concurrent.futures import ProcessPoolExecutor
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError
from tqdm.auto import tqdm

from imgaudit.audits.core import AuditDefinition
from imgaudit.audits.registry import AuditRegistry
from imgaudit.model import PageAuditResult

logger = logging.getLogger(__name__)

PageInput = Union[Mapping[str, Any], Tuple[str, Mapping[str, Any]]]


def _normalize_page(page: PageInput) -> Tuple[str, Mapping[str, Any]]:
    """Accepts {'url': ..., 'artifacts': {...}} or a (url, artifacts) pair."""
    if isinstance(page, Mapping):
        return str(page.get("url", "")), page.get("artifacts") or {}
    url, artifacts = page
    return str(url), artifacts or {}


def _run_definitions(
        url: str,
        artifacts: Mapping[str, Any],
        definitions: Sequence[AuditDefinition]
) -> PageAuditResult:
    result = PageAuditResult(url=url)
    try:
        for defn in definitions:
            result.outcomes[defn.audit_id] = defn.run(artifacts)
    except (ValidationError, TypeError, ValueError, AttributeError) as e:
        logger.error("Audit failed on %s: %s", url or "<page>", e)
        return PageAuditResult(url=url, error=str(e))
    return result


def _worker_audit_page(page: Tuple[str, Mapping[str, Any]]) -> PageAuditResult:
    """
    Worker function to audit a single page in a separate process.
    The registry is discovered per process.
    """
    AuditRegistry.discover()
    url, artifacts = page
    return _run_definitions(url, artifacts, AuditRegistry.get_all())


class AuditController:
    """
    Runs every registered audit over a batch of pages and keeps running statistics.
    Results are always returned in the order the pages were given.
    """

    def __init__(self, definitions: Optional[Sequence[AuditDefinition]] = None):
        if definitions is None:
            AuditRegistry.discover()
            definitions = AuditRegistry.get_all()
        self.definitions: List[AuditDefinition] = list(definitions)
        self.stats: Counter = Counter()

    def audit_page(self, url: str, artifacts: Mapping[str, Any]) -> PageAuditResult:
        """Audits a single page in the current process."""
        result = _run_definitions(url, artifacts, self.definitions)
        self._record(result)
        return result

    def run(
            self,
            pages: Iterable[PageInput],
            workers: int = 1,
            show_progress: bool = False
    ) -> List[PageAuditResult]:
        """
        Audits all pages.

        With workers > 1 pages are spread over a process pool; executor.map keeps
        input order, so the output order never depends on scheduling.
        """
        normalized = [_normalize_page(p) for p in pages]
        total = len(normalized)
        logger.info("Auditing %d page(s) with %d audit(s), workers=%d", total, len(self.definitions), workers)

        use_pool = workers > 1 and total > 1
        if use_pool and not self._uses_registry():
            logger.warning("Custom audit definitions cannot be shipped to worker processes; running inline.")
            use_pool = False

        results: List[PageAuditResult] = []
        with tqdm(total=total, desc="Auditing", unit="page", disable=not show_progress) as pbar:
            if use_pool:
                with ProcessPoolExecutor(max_workers=workers) as executor:
                    for result in executor.map(_worker_audit_page, normalized):
                        self._record(result)
                        results.append(result)
                        pbar.update(1)
            else:
                for url, artifacts in normalized:
                    results.append(self.audit_page(url, artifacts))
                    pbar.update(1)

        logger.info(
            "Audit finished: %d passed, %d failed, %d not applicable, %d error(s)",
            self.stats["passed"], self.stats["failed"], self.stats["not_applicable"], self.stats["errors"]
        )
        return results

    def _uses_registry(self) -> bool:
        registered = {d.audit_id for d in AuditRegistry.get_all()}
        return {d.audit_id for d in self.definitions} == registered

    def _record(self, result: PageAuditResult) -> None:
        self.stats["pages"] += 1
        if result.error is not None:
            self.stats["errors"] += 1
            return
        for outcome in result.outcomes.values():
            if outcome.not_applicable:
                self.stats["not_applicable"] += 1
            elif outcome.passed:
                self.stats["passed"] += 1
            else:
                self.stats["failed"] += 1
            self.stats["unsized_images"] += len(outcome.items)

    def summary(self) -> Dict[str, int]:
        return dict(self.stats)

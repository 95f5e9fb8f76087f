# src/imgaudit/audits/registry.py
import importlib
import pkgutil
import logging
from typing import Dict, List, Optional

from .core import AuditDefinition

logger = logging.getLogger(__name__)


class AuditRegistry:
    """
    Central registry for audit definitions.

    Dynamically discovers and loads AuditDefinition modules from the
    'imgaudit.audits.rules' package.
    """

    _definitions: Dict[str, AuditDefinition] = {}
    _loaded: bool = False

    @classmethod
    def discover(cls) -> None:
        """
        Registers every module in `imgaudit.audits.rules` that exposes a
        `DEFINITION` attribute (instance of `AuditDefinition`).
        """
        if cls._loaded:
            return

        try:
            import imgaudit.audits.rules as rules_pkg

            for _, name, _ in pkgutil.iter_modules(rules_pkg.__path__):
                full_name = f"imgaudit.audits.rules.{name}"
                try:
                    module = importlib.import_module(full_name)
                except ImportError as e:
                    logger.error("Error loading audit module %s: %s", name, e)
                    continue

                defn = getattr(module, "DEFINITION", None)
                if isinstance(defn, AuditDefinition):
                    cls.register(defn)

            cls._loaded = True
        except ImportError as e:
            logger.error("Could not find audit rules package: %s", e)

    @classmethod
    def register(cls, definition: AuditDefinition) -> None:
        if definition.audit_id in cls._definitions:
            logger.warning("Audit '%s' registered twice; keeping the latest.", definition.audit_id)
        cls._definitions[definition.audit_id] = definition
        logger.debug("Audit loaded: %s", definition.audit_id)

    @classmethod
    def get(cls, audit_id: str) -> Optional[AuditDefinition]:
        """Retrieves a definition by its audit id."""
        return cls._definitions.get(audit_id)

    @classmethod
    def get_all(cls) -> List[AuditDefinition]:
        """Returns all registered definitions, ordered by audit id."""
        return [cls._definitions[k] for k in sorted(cls._definitions)]

    @classmethod
    def reset(cls) -> None:
        cls._definitions = {}
        cls._loaded = False

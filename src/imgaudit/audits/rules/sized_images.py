# src/imgaudit/audits/rules/sized_images.py
import logging
import re
from typing import Any, Iterable, List, Mapping, Union

from ...model import AuditOutcome, ImageElement, UnsizedImageItem
from ..core import AuditDefinition, audit_spec

logger = logging.getLogger(__name__)

# ASCII digits only, at least one of them non-zero; \d would also accept other Unicode digit classes
_POSITIVE_INTEGER = re.compile(r"0*[1-9][0-9]*")


def is_valid(attr: Any) -> bool:
    """
    Returns True if a width/height attribute value is a positive integer.

    The whole string must consist of digits, so values such as '100px', '100.0',
    '3,000', '+20' or '1e2' are rejected instead of being coerced to a number.
    The value is never converted to int, so digit strings of any length are accepted.
    Non-string input (including a missing attribute) is never valid.
    """
    if not isinstance(attr, str):
        return False
    return _POSITIVE_INTEGER.fullmatch(attr) is not None


def is_sized(image: ImageElement) -> bool:
    """CSS background images are exempt; anything else needs a valid width and height."""
    if image.is_css:
        return True
    return is_valid(image.attribute_width) and is_valid(image.attribute_height)


def evaluate(images: Iterable[Union[ImageElement, Mapping[str, Any]]]) -> AuditOutcome:
    """
    Classifies every image as sized or unsized and scores the page.

    An empty input is not applicable and passes. Otherwise the outcome passes
    only when no image is unsized; the unsized ones are reported in input order.
    """
    elements: List[ImageElement] = [
        img if isinstance(img, ImageElement) else ImageElement.model_validate(img)
        for img in images
    ]

    if not elements:
        return AuditOutcome(score=1, not_applicable=True, items=[])

    unsized = [UnsizedImageItem.from_image(img) for img in elements if not is_sized(img)]
    logger.debug("Sized images audit: %d of %d images unsized", len(unsized), len(elements))

    return AuditOutcome(score=0 if unsized else 1, items=unsized)


@audit_spec(artifacts=["ImageElements"])
def audit(artifacts: Mapping[str, Any]) -> AuditOutcome:
    """Runs the audit on a collector artifacts mapping."""
    return evaluate(artifacts.get("ImageElements") or [])


# --- DEFINITION ---
DEFINITION = AuditDefinition(
    audit_id="unsized-images",
    title="Image elements have explicit `width` and `height`",
    failure_title="Image elements do not have explicit `width` and `height`",
    description=(
        "Set an explicit width and height on image elements to reduce layout shifts "
        "and improve CLS. [Learn more](https://web.dev/optimize-cls/#images-without-dimensions)"
    ),
    audit=audit,
)

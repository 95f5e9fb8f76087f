# src/imgaudit/model.py
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


class ImageElement(BaseModel):
    """
    A single image detected on a page, as delivered by the collector.

    Width and height hold the raw attribute text exactly as authored. They are
    never parsed here; `sized_images.is_valid` is the only place that interprets them.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    src: str = ""
    is_css: bool = Field(default=False, alias="isCss")

    # Raw attribute text; None when the attribute is absent
    attribute_width: Optional[str] = Field(default=None, alias="attributeWidth", strict=True)
    attribute_height: Optional[str] = Field(default=None, alias="attributeHeight", strict=True)

    # Presentation metadata, passed through untouched
    path: Optional[str] = None
    selector: Optional[str] = None
    node_label: Optional[str] = Field(default=None, alias="nodeLabel")
    snippet: Optional[str] = None


class NodeDetails(BaseModel):
    """Location of an element in the page structure, used by report renderers."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    path: Optional[str] = None
    selector: Optional[str] = None
    node_label: Optional[str] = Field(default=None, alias="nodeLabel")
    snippet: Optional[str] = None


class UnsizedImageItem(BaseModel):
    """Report entry for one image without valid explicit dimensions."""
    model_config = ConfigDict(frozen=True)

    url: str
    node: NodeDetails

    @classmethod
    def from_image(cls, image: ImageElement) -> "UnsizedImageItem":
        return cls(
            url=image.src,
            node=NodeDetails(
                path=image.path,
                selector=image.selector,
                node_label=image.node_label,
                snippet=image.snippet,
            ),
        )


# Column definitions for the details table: (key, itemType, text)
TABLE_HEADINGS: List[Dict[str, str]] = [
    {"key": "url", "itemType": "thumbnail", "text": ""},
    {"key": "url", "itemType": "url", "text": "URL"},
    {"key": "node", "itemType": "node", "text": ""},
]


class AuditOutcome(BaseModel):
    """
    Result of a single audit run.

    score is 1 (pass) or 0 (fail). not_applicable marks a vacuous pass,
    e.g. a page without any images.
    """
    model_config = ConfigDict(frozen=True)

    score: Optional[int] = None
    not_applicable: bool = False
    items: List[UnsizedImageItem] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.score == 1

    @property
    def details(self) -> Dict[str, Any]:
        """Table structure consumed by report renderers."""
        return {
            "type": "table",
            "headings": [dict(h) for h in TABLE_HEADINGS],
            "items": [item.model_dump(by_alias=True) for item in self.items],
        }


class PageAuditResult(BaseModel):
    """All audit outcomes for one page, keyed by audit id."""
    url: str
    outcomes: Dict[str, AuditOutcome] = Field(default_factory=dict)
    error: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.error is None and all(o.passed for o in self.outcomes.values())

# src/imgaudit/services/image_collect_service.py
from __future__ import annotations

import logging
import re
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag

from imgaudit.model import ImageElement

logger = logging.getLogger(__name__)

SNIPPET_MAX_LENGTH = 500

# url(...) inside an inline background / background-image declaration
_BACKGROUND_URL = re.compile(
    r"background(?:-image)?\s*:[^;]*?url\(\s*(['\"]?)(.*?)\1\s*\)",
    re.IGNORECASE,
)


def _pick_from_srcset(srcset: str) -> Optional[str]:
    """
    Extracts the first URL found in a srcset attribute.

    A candidate URL runs up to the first whitespace, so commas inside data: URLs
    are kept; only a trailing comma (candidate without descriptor) is dropped.
    """
    tokens = srcset.strip().lstrip(",").split()
    if not tokens:
        return None
    return tokens[0].rstrip(",") or None


def _counts_as_sibling(node: PageElement) -> bool:
    # Whitespace-only text is skipped; doctype, comments and other text count
    if type(node) is NavigableString:
        return bool(node.strip())
    return True


def _devtools_path(tag: Tag) -> str:
    """
    Builds a path of (sibling index, NODE NAME) pairs from the document down,
    e.g. '1,HTML,1,BODY,0,IMG' when the page starts with a doctype.
    """
    parts: List[str] = []
    node = tag
    while isinstance(node, Tag) and node.parent is not None:
        index = sum(1 for s in node.previous_siblings if _counts_as_sibling(s))
        parts.insert(0, f"{index},{node.name.upper()}")
        node = node.parent
    return ",".join(parts)


def _simple_selector(tag: Tag) -> str:
    selector = tag.name
    if tag.get("id"):
        selector += f"#{tag['id']}"
    classes = tag.get("class") or []
    if classes:
        selector += "." + ".".join(classes)
    return selector


def _selector(tag: Tag) -> str:
    parent = tag.parent
    if isinstance(parent, Tag) and parent.name != "[document]":
        return f"{_simple_selector(parent)} > {_simple_selector(tag)}"
    return _simple_selector(tag)


def _node_label(tag: Tag) -> str:
    alt = (tag.get("alt") or "").strip()
    if alt:
        return alt
    text = tag.get_text(" ", strip=True)
    if text:
        return text[:80]
    return tag.name


def _snippet(tag: Tag) -> str:
    """Markup of the opening tag only."""
    attrs = "".join(
        f' {k}="{" ".join(v) if isinstance(v, list) else v}"' for k, v in tag.attrs.items()
    )
    snippet = f"<{tag.name}{attrs}>"
    if len(snippet) > SNIPPET_MAX_LENGTH:
        snippet = snippet[:SNIPPET_MAX_LENGTH] + "..."
    return snippet


class ImageCollectService:
    """
    Service responsible for extracting image descriptors from a static HTML snapshot.
    Nothing is fetched or rendered; only authored markup is inspected.
    """

    def collect(self, html: str, base_url: Optional[str] = None) -> List[ImageElement]:
        """
        Returns one ImageElement per <img> and per element with an inline
        background image, in document order.
        """
        if not html:
            return []

        soup = BeautifulSoup(html.replace('\ufeff', ''), 'html.parser')
        images: List[ImageElement] = []

        for tag in soup.find_all(True):
            if tag.name == "img":
                image = self._from_img(tag, base_url)
                if image is not None:
                    images.append(image)

            style = tag.get("style")
            if style:
                match = _BACKGROUND_URL.search(style)
                if match and match.group(2):
                    images.append(self._describe(tag, match.group(2), base_url, is_css=True))

        logger.debug("Collected %d images from %s", len(images), base_url or "<html>")
        return images

    def _from_img(self, tag: Tag, base_url: Optional[str]) -> Optional[ImageElement]:
        # Priority: src -> data-src (lazy loading) -> srcset
        src = tag.get("src") or tag.get("data-src") or ""
        if not src and tag.get("srcset"):
            src = _pick_from_srcset(tag["srcset"]) or ""
        if not src:
            logger.debug("Skipping <img> without a source: %s", _snippet(tag))
            return None
        return self._describe(tag, src, base_url, is_css=False)

    def _describe(self, tag: Tag, src: str, base_url: Optional[str], is_css: bool) -> ImageElement:
        return ImageElement(
            src=urljoin(base_url, src) if base_url else src,
            is_css=is_css,
            attribute_width=None if is_css else tag.get("width"),
            attribute_height=None if is_css else tag.get("height"),
            path=_devtools_path(tag),
            selector=_selector(tag),
            node_label=_node_label(tag),
            snippet=_snippet(tag),
        )

# pricewatch/extraction/document.py

"""Queryable page abstraction consumed by the extraction layers.

The extractor never talks to a parser directly. It sees a
:class:`PageDocument` of :class:`PageNode` objects exposing only what the
layers need: JSON-LD blocks, meta tags, CSS queries, text, attributes,
parent links and coarse rendering hints (visibility, font size). Tests
feed synthetic HTML through :class:`SoupDocument`; another provider
could wrap a headless browser without touching the extractor.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger("pricewatch.document")

CANDIDATE_TAGS: tuple[str, ...] = (
    "span", "div", "p", "b", "strong", "td", "li",
)

_HIDDEN_STYLE_RE = re.compile(
    r"display\s*:\s*none|visibility\s*:\s*hidden", re.IGNORECASE
)
_FONT_SIZE_RE = re.compile(
    r"font-size\s*:\s*([\d.]+)\s*(px|pt|r?em)?", re.IGNORECASE
)
_NON_RENDERED = frozenset({"script", "style", "noscript", "template"})


class PageNode(ABC):
    """One element of a page."""

    @property
    @abstractmethod
    def tag(self) -> str: ...

    @property
    @abstractmethod
    def text(self) -> str:
        """Whitespace-collapsed text content."""

    @abstractmethod
    def get(self, attr: str) -> str | None: ...

    @property
    @abstractmethod
    def parent(self) -> "PageNode | None": ...

    @property
    @abstractmethod
    def is_visible(self) -> bool: ...

    @property
    @abstractmethod
    def font_size(self) -> float | None:
        """Rendered font size in px when it can be inferred."""

    @abstractmethod
    def select(self, css: str) -> list["PageNode"]: ...

    @abstractmethod
    def select_one(self, css: str) -> "PageNode | None": ...

    @property
    def node_id(self) -> str:
        return self.get("id") or ""

    @property
    def classes(self) -> list[str]:
        return (self.get("class") or "").split()

    def ancestors(self, limit: int | None = None) -> Iterator["PageNode"]:
        """Yield parents from nearest outward, at most *limit* of them."""
        node = self.parent
        depth = 0
        while node is not None and (limit is None or depth < limit):
            yield node
            node = node.parent
            depth += 1


class PageDocument(ABC):
    """A parsed page."""

    @property
    @abstractmethod
    def lang(self) -> str: ...

    @property
    @abstractmethod
    def title(self) -> str: ...

    @abstractmethod
    def json_ld_blocks(self) -> list[Any]:
        """Decoded ``application/ld+json`` payloads, invalid ones skipped."""

    @abstractmethod
    def meta(self, key: str) -> str | None:
        """Content of the meta tag whose property/name/itemprop is *key*."""

    @abstractmethod
    def select(self, css: str) -> list[PageNode]: ...

    @abstractmethod
    def select_one(self, css: str) -> PageNode | None: ...

    @abstractmethod
    def candidate_nodes(self) -> list[PageNode]:
        """Elements that may hold a short price fragment."""

    def purchase_controls(self) -> list[PageNode]:
        """Buttons and button-like links."""
        return self.select('button, input[type="submit"], a[role="button"]')


class SoupNode(PageNode):
    """:class:`PageNode` backed by a BeautifulSoup ``Tag``."""

    def __init__(self, element: Tag) -> None:
        self._tag = element

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SoupNode) and other._tag is self._tag

    def __hash__(self) -> int:
        return id(self._tag)

    def __repr__(self) -> str:
        return f"SoupNode(<{self._tag.name}> {self.text[:30]!r})"

    @property
    def tag(self) -> str:
        return self._tag.name or ""

    @property
    def text(self) -> str:
        if self._tag.name == "input":
            return (self.get("value") or "").strip()
        return " ".join(self._tag.get_text(" ", strip=True).split())

    def get(self, attr: str) -> str | None:
        value = self._tag.get(attr)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    @property
    def parent(self) -> "SoupNode | None":
        parent = self._tag.parent
        if isinstance(parent, Tag) and parent.name != "[document]":
            return SoupNode(parent)
        return None

    @property
    def is_visible(self) -> bool:
        element: Tag | None = self._tag
        while isinstance(element, Tag):
            if element.name in _NON_RENDERED:
                return False
            if element.has_attr("hidden"):
                return False
            style = element.get("style")
            if isinstance(style, str) and _HIDDEN_STYLE_RE.search(style):
                return False
            element = element.parent
        return True

    @property
    def font_size(self) -> float | None:
        element: Tag | None = self._tag
        while isinstance(element, Tag):
            style = element.get("style")
            if isinstance(style, str):
                match = _FONT_SIZE_RE.search(style)
                if match:
                    return _to_px(float(match.group(1)), match.group(2))
            element = element.parent
        return None

    def select(self, css: str) -> list[PageNode]:
        return [SoupNode(t) for t in self._tag.select(css)]

    def select_one(self, css: str) -> "SoupNode | None":
        found = self._tag.select_one(css)
        return SoupNode(found) if found is not None else None


class SoupDocument(PageDocument):
    """:class:`PageDocument` parsed with BeautifulSoup and lxml."""

    def __init__(self, html: str, url: str = "") -> None:
        self.url = url
        self._soup = BeautifulSoup(html, "lxml")

    @property
    def lang(self) -> str:
        html_tag = self._soup.find("html")
        if isinstance(html_tag, Tag):
            lang = html_tag.get("lang")
            if isinstance(lang, str):
                return lang.strip()
        return ""

    @property
    def title(self) -> str:
        title_tag = self._soup.find("title")
        return title_tag.get_text(strip=True) if title_tag else ""

    def json_ld_blocks(self) -> list[Any]:
        blocks: list[Any] = []
        for script in self._soup.find_all(
            "script", attrs={"type": "application/ld+json"}
        ):
            raw = script.string or script.get_text()
            if not raw or not raw.strip():
                continue
            try:
                blocks.append(json.loads(raw))
            except json.JSONDecodeError:
                logger.debug("Skipping malformed JSON-LD block")
        return blocks

    def meta(self, key: str) -> str | None:
        for attr in ("property", "name", "itemprop"):
            tag = self._soup.find("meta", attrs={attr: key})
            if isinstance(tag, Tag):
                content = tag.get("content")
                if isinstance(content, str) and content.strip():
                    return content.strip()
        return None

    def select(self, css: str) -> list[PageNode]:
        return [SoupNode(t) for t in self._soup.select(css)]

    def select_one(self, css: str) -> PageNode | None:
        found = self._soup.select_one(css)
        return SoupNode(found) if found is not None else None

    def candidate_nodes(self) -> list[PageNode]:
        return [
            SoupNode(t) for t in self._soup.find_all(list(CANDIDATE_TAGS))
        ]


def _to_px(value: float, unit: str | None) -> float:
    unit = (unit or "px").lower()
    if unit in ("em", "rem"):
        return value * 16
    if unit == "pt":
        return value * 4 / 3
    return value

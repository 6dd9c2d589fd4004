"""Read-only view of a job page.

A :class:`Page` is parsed once. JSON-LD blocks and meta tags are captured
before non-visible elements are dropped, so selector text matches what a
reader of the page would see.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

_INVISIBLE_TAGS = ["script", "style", "noscript", "template"]


class Page:
    """Parsed HTML page plus the address it was loaded from.

    Attributes:
        url: Address of the page.
        json_ld: Decoded ``application/ld+json`` blocks, in document order.
        title: Text of the ``<title>`` element.
    """

    def __init__(self, soup: BeautifulSoup, url: str) -> None:
        self.url = url
        self.json_ld = _read_json_ld(soup)
        self._meta = _read_meta(soup)
        self.title = soup.title.get_text(strip=True) if soup.title else ""

        for element in soup(_INVISIBLE_TAGS):
            element.decompose()
        self._soup = soup

    @classmethod
    def from_html(cls, markup: str, url: str) -> Page:
        return cls(BeautifulSoup(markup, "html.parser"), url)

    @property
    def hostname(self) -> str:
        return (urlparse(self.url).hostname or "").lower()

    def meta(self, name: str) -> str:
        """Content of ``<meta property=name>`` or ``<meta name=name>``."""
        return self._meta.get(name, "")

    def select(self, selector: str, scope: str | None = None) -> Tag | None:
        """First element matching ``selector``.

        When ``scope`` is given and matches, the search is limited to that
        element; otherwise the whole document is searched.
        """
        root: BeautifulSoup | Tag = self._soup
        if scope:
            root = self._soup.select_one(scope) or self._soup
        return root.select_one(selector)

    def select_text(self, selector: str, scope: str | None = None) -> str:
        """Visible text of the first element matching ``selector``."""
        element = self.select(selector, scope)
        if element is None:
            return ""
        return visible_text(element)

    def body_text(self) -> str:
        """Visible text of the whole page body."""
        body = self._soup.body or self._soup
        return visible_text(body)


def visible_text(element: Tag) -> str:
    """Text of an element with one line per block, blank runs removed."""
    return element.get_text("\n", strip=True)


def _read_json_ld(soup: BeautifulSoup) -> list[Any]:
    blocks: list[Any] = []
    for script in soup.find_all("script", type="application/ld+json"):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            blocks.append(json.loads(raw))
        except json.JSONDecodeError as e:
            logger.debug(f"Skipping malformed JSON-LD block: {e}")
    return blocks


def _read_meta(soup: BeautifulSoup) -> dict[str, str]:
    meta: dict[str, str] = {}
    # First property= match wins, then the first name= match
    for attribute in ("property", "name"):
        for tag in soup.find_all("meta", attrs={attribute: True}):
            content = tag.get("content")
            if content:
                meta.setdefault(tag[attribute], content)
    return meta

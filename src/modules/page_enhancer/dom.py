"""Parsed-page wrapper shared by the enhancement passes."""

import logging
from dataclasses import dataclass
from typing import Optional

from bs4 import BeautifulSoup, Tag

from src.utils.helpers import extract_origin
from src.utils.text_processing import collapse_whitespace, element_text

logger = logging.getLogger(__name__)

# Off-screen but present in the DOM: readable by crawlers and screen readers.
OFFSCREEN_STYLE = (
    "position:absolute;left:-9999px;top:-9999px;"
    "height:1px;width:1px;overflow:hidden;"
)
SITEMAP_STYLE = "position:absolute;left:-9999px;width:1px;height:1px;overflow:hidden;"


@dataclass
class Page:
    """A loaded HTML document owned by the caller.

    The enhancer mutates ``soup`` in place and keeps no reference to the
    page once a pass returns.

    Attributes:
        soup: Parsed document.
        url: Address the page was loaded from, used to resolve relative
            ``href``/``src`` values and derive the site origin.
    """

    soup: BeautifulSoup
    url: Optional[str] = None

    @classmethod
    def from_html(cls, html: str, url: Optional[str] = None) -> "Page":
        """Parse *html* with the built-in ``html.parser`` backend.

        Args:
            html: Document markup; partial fragments are accepted.
            url: Address the page was loaded from, if known.

        Returns:
            A new ``Page`` wrapping the parsed tree.
        """
        return cls(soup=BeautifulSoup(html, "html.parser"), url=url)

    @property
    def root(self) -> Optional[Tag]:
        """The ``<html>`` element, or None for a bare fragment."""
        return self.soup.find("html")

    @property
    def head(self) -> Optional[Tag]:
        """The ``<head>`` element, if the document has one."""
        return self.soup.find("head")

    @property
    def body(self) -> Optional[Tag]:
        """The ``<body>`` element, if the document has one."""
        return self.soup.find("body")

    @property
    def title(self) -> str:
        """Document title with whitespace collapsed, ``""`` when absent."""
        tag = self.soup.find("title")
        if tag is None:
            return ""
        return collapse_whitespace(tag.get_text())

    @property
    def origin(self) -> str:
        """Scheme and host of ``url``; ``""`` when unknown or relative."""
        return extract_origin(self.url) if self.url else ""

    def body_text(self) -> str:
        """Text content of the body, or of the whole document without one."""
        return element_text(self.body if self.body is not None else self.soup)

    def append_to_body(self, element: Tag) -> None:
        """Append *element* to the body, falling back to the document end."""
        container = self.body or self.root or self.soup
        container.append(element)

    def to_html(self) -> str:
        """Serialize the (possibly mutated) document."""
        return str(self.soup)

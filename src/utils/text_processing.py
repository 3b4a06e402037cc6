"""Text processing utilities for page keyword checks."""

import re
from collections.abc import Iterable

from bs4 import BeautifulSoup, Tag
from bs4.element import PreformattedString

# Elements whose text never renders as page copy.
_NON_TEXT_TAGS = ["script", "style", "template"]


def count_words(text: str) -> int:
    """Number of whitespace-separated words in *text*."""
    return len(text.split())


def element_text(element: Tag | BeautifulSoup | None) -> str:
    """Return the text content of *element* minus script/style/template.

    Comments and doctypes are skipped. ``None`` yields an empty string.
    """
    if element is None:
        return ""
    parts = []
    for node in element.find_all(string=True):
        if isinstance(node, PreformattedString):
            continue
        if node.find_parent(_NON_TEXT_TAGS) is not None:
            continue
        parts.append(str(node))
    return "".join(parts)


def count_keyword_occurrences(text: str, keyword: str) -> int:
    """Count case-insensitive, non-overlapping occurrences of *keyword*.

    The keyword is matched literally (regex metacharacters are escaped).
    An empty keyword counts as zero.
    """
    keyword = keyword.strip()
    if not keyword:
        return 0
    pattern = re.compile(re.escape(keyword), re.IGNORECASE)
    return len(pattern.findall(text))


def keyword_report(text: str, keywords: Iterable[str]) -> dict[str, int]:
    """Build a ``{keyword: count}`` mapping over lower-cased *text*.

    Counts for different keywords are computed independently, so
    overlapping keywords (``"seo"`` and ``"technical seo"``) each see
    every match of their own.
    """
    content = text.lower()
    return {kw: count_keyword_occurrences(content, kw) for kw in keywords}


def keyword_density(text: str, keywords: Iterable[str]) -> dict[str, float]:
    """Percentage of the words in *text* covered by each keyword's matches."""
    total = count_words(text)
    report = keyword_report(text, keywords)
    if not total:
        return {kw: 0.0 for kw in report}
    return {
        kw: round(100 * count * len(kw.split()) / total, 2)
        for kw, count in report.items()
    }


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace to single spaces and strip the ends."""
    return re.sub(r"\s+", " ", text).strip()

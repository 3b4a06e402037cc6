"""General-purpose URL helpers for the page enhancer."""

from typing import Optional
from urllib.parse import quote, urljoin, urlparse

# Characters encodeURIComponent leaves alone besides alphanumerics.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_uri_component(value: str) -> str:
    """Percent-encode *value* the way JavaScript's encodeURIComponent does.

    Examples:
        >>> encode_uri_component("https://example.com/sitemap.xml")
        'https%3A%2F%2Fexample.com%2Fsitemap.xml'
    """
    return quote(value, safe=_URI_COMPONENT_SAFE)


def resolve_url(href: str, base_url: Optional[str] = None) -> str:
    """Resolve *href* against *base_url*, returning *href* unchanged without one."""
    href = href.strip()
    if not base_url:
        return href
    try:
        return urljoin(base_url, href)
    except ValueError:
        return href


def extract_origin(url: str) -> str:
    """Return ``scheme://host[:port]`` for *url*, or ``""`` if it has none.

    Examples:
        >>> extract_origin("https://example.com:8080/a/b?q=1")
        'https://example.com:8080'
        >>> extract_origin("/relative/path")
        ''
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return ""
    if not parsed.scheme or not parsed.netloc:
        return ""
    return parsed.scheme + "://" + parsed.netloc


def url_path(url: str) -> str:
    """Return the path component of an absolute URL.

    Hierarchical URLs with an empty path report ``/``. Relative or
    unparseable URLs are returned unchanged.

    Examples:
        >>> url_path("https://example.com/portfolio?page=2")
        '/portfolio'
        >>> url_path("https://example.com")
        '/'
        >>> url_path("#contact")
        '#contact'
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    if not parsed.scheme:
        return url
    if parsed.netloc and not parsed.path:
        return "/"
    return parsed.path

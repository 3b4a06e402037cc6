"""Input validation utilities for URLs and site settings."""

from typing import Any
from urllib.parse import urlparse


_WEB_SCHEMES = ("http", "https")


def validate_url(url: str) -> tuple[bool, str]:
    """Check that *url* is an absolute http(s) URL with a host.

    Returns ``(ok, reason)``; *reason* is empty when ok.
    """
    if not isinstance(url, str) or not url.strip():
        return False, "empty URL"
    try:
        parsed = urlparse(url.strip())
        host = parsed.hostname
    except ValueError as exc:
        return False, "unparseable URL (" + str(exc) + ")"
    if parsed.scheme not in _WEB_SCHEMES:
        return False, "scheme must be http or https, got " + repr(parsed.scheme)
    if not host:
        return False, "missing host"
    return True, ""


def is_http_url(value: str) -> bool:
    """Return True when *value* is an absolute http(s) URL."""
    valid, _ = validate_url(value)
    return valid


def validate_settings(settings: dict[str, Any]) -> list[str]:
    """Check the settings that feed URLs into the page.

    Returns:
        List of problems; empty when the settings are usable.
    """
    problems: list[str] = []

    site_url = settings.get("site", {}).get("url", "")
    if site_url:
        valid, err = validate_url(site_url)
        if not valid:
            problems.append("site.url: " + err)

    sitemap_path = settings.get("site", {}).get("sitemap_path", "")
    if sitemap_path and not sitemap_path.startswith("/"):
        problems.append("site.sitemap_path must start with '/'")

    indexing = settings.get("indexing", {})
    if indexing.get("enabled", True):
        valid, err = validate_url(indexing.get("ping_endpoint", ""))
        if not valid:
            problems.append("indexing.ping_endpoint: " + err)

    keywords = settings.get("keywords", [])
    if not isinstance(keywords, list) or not all(isinstance(k, str) for k in keywords):
        problems.append("keywords must be a list of strings")

    return problems

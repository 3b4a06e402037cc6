"""Shared pytest fixtures for SEO Page Enhancer tests."""

import copy
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Ensure project root is on sys.path so 'src' is importable.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)


PORTFOLIO_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Mansoor Ahmad | Portfolio</title>
</head>
<body>
  <nav>
    <a href="/">Home</a>
    <a href="/portfolio">Work</a>
    <a href="#contact">Contact</a>
  </nav>
  <main>
    <section id="about">
      <h2>About</h2>
      <p>Helping local brands grow through search.</p>
    </section>
    <section id="portfolio">
      <div class="portfolio-item">
        <h3>Local Bakery Ranking</h3>
        <img src="/images/bakery.png" alt="Bakery site">
      </div>
      <div class="portfolio-item">
        <p>Case study coming soon.</p>
        <img class="thumb" src="https://cdn.example.com/shot.jpg">
      </div>
    </section>
    <section id="services">
      <a href="/portfolio">See the work</a>
    </section>
    <img src="/images/hero.jpg" loading="eager" alt="Hero">
  </main>
</body>
</html>
"""

PAGE_URL = "https://example.com/index.html"


@pytest.fixture()
def portfolio_html():
    """Return a small portfolio page exercising every enhancement pass."""
    return PORTFOLIO_HTML


@pytest.fixture()
def settings():
    """Return a private copy of the built-in settings."""
    from src.config import DEFAULT_SETTINGS
    return copy.deepcopy(DEFAULT_SETTINGS)


@pytest.fixture()
def make_page():
    """Return a factory building a Page from HTML (defaults to the portfolio page)."""
    from src.modules.page_enhancer import Page

    def _make(html: str = PORTFOLIO_HTML, url: str | None = PAGE_URL):
        return Page.from_html(html, url=url)

    return _make


@pytest.fixture()
def mock_notifier():
    """Return a mock BeaconNotifier that accepts every ping."""
    notifier = MagicMock()
    notifier.can_send = MagicMock(return_value=True)
    notifier.send_beacon = MagicMock(return_value=True)
    return notifier


@pytest.fixture()
def enhancer(settings, mock_notifier):
    """Return a PageEnhancer wired to the mock notifier."""
    from src.modules.page_enhancer import PageEnhancer
    return PageEnhancer(settings, notifier=mock_notifier)

"""Page Enhancer: one-shot SEO annotation passes over a loaded page.

On the ready signal the passes run in a fixed order:

    1. Structural annotation (ARIA roles, microdata)
    2. Hidden bot-only content block
    3. Lazy-loading rewrite with ``<noscript>`` fallbacks
    4. In-page sitemap block
    5. Indexing ping and the ``data-seo-enhanced`` root marker
    6. Priority tagging of key sections
    7. Keyword density self-check (logged only)

The Person, BreadcrumbList and FAQPage JSON-LD blocks are emitted
afterwards as three independent calls.  Every pass is best-effort: a
missing element or malformed URL skips that piece of work, and an
unexpected failure is logged and recorded without aborting the rest.
"""

import logging
import time
from typing import Any, Callable, Optional

from bs4 import Tag

from src.config import DEFAULT_SETTINGS
from src.modules.page_enhancer.dom import OFFSCREEN_STYLE, SITEMAP_STYLE, Page
from src.modules.page_enhancer.notifier import BeaconNotifier, build_ping_url
from src.modules.page_enhancer.structured_data import SchemaGenerator
from src.utils.helpers import extract_origin, resolve_url, url_path
from src.utils.text_processing import collapse_whitespace, keyword_report

logger = logging.getLogger(__name__)

NAVIGATION_ITEMTYPE = "https://schema.org/SiteNavigationElement"
CREATIVE_WORK_ITEMTYPE = "https://schema.org/CreativeWork"
LAZY_CLASS = "lazyload"
ENHANCED_FLAG = "data-seo-enhanced"

_SERVICE_LINES = (
    "On-page optimization techniques",
    "Technical SEO audits",
    "Off-page link building strategies",
    "Local SEO for Pakistani businesses",
)


class PageEnhancer:
    """Run the enhancement passes over a :class:`Page`.

    The enhancer holds configuration and collaborators only; all page
    state lives in the ``Page`` passed to each call.

    Usage::

        enhancer = PageEnhancer(settings, notifier=HttpBeaconNotifier())
        page = Page.from_html(html, url="https://example.com/")
        result = enhancer.enhance(page)
        output = page.to_html()
    """

    def __init__(
        self,
        settings: Optional[dict[str, Any]] = None,
        notifier: Optional[BeaconNotifier] = None,
        schema_generator: Optional[SchemaGenerator] = None,
    ) -> None:
        self._settings = settings or DEFAULT_SETTINGS
        self._notifier = notifier
        self._schemas = schema_generator or SchemaGenerator(self._settings)
        self._opts: dict[str, Any] = self._settings.get(
            "enhancer", DEFAULT_SETTINGS["enhancer"]
        )

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def enhance(self, page: Page) -> dict[str, Any]:
        """Run the ready-signal passes, then the structured-data emissions."""
        started = time.monotonic()
        steps = self.on_ready(page)
        steps.update(self.emit_structured_data(page))
        report = steps.get("keyword_density", {}).get("report", {})
        return {
            "url": page.url,
            "steps": steps,
            "keyword_report": report,
            "elapsed_seconds": round(time.monotonic() - started, 3),
        }

    def on_ready(self, page: Page) -> dict[str, dict]:
        """Run passes 1-7 in order and return per-step results."""
        passes: list[tuple[str, Callable[[Page], dict]]] = [
            ("semantic_structure", self.annotate_structure),
            ("bot_only_content", self.add_bot_only_content),
            ("media_loading", self.optimize_media_loading),
            ("dynamic_sitemap", self.generate_dynamic_sitemap),
            ("indexing_signals", self.send_indexing_signals),
            ("priority_tags", self.add_priority_tags),
            ("keyword_density", self._keyword_density_step),
        ]
        return {name: self._run_step(name, fn, page) for name, fn in passes}

    def emit_structured_data(self, page: Page) -> dict[str, dict]:
        """Insert the Person, BreadcrumbList and FAQPage blocks independently."""
        emissions: list[tuple[str, Callable[[Page], bool]]] = [
            ("person_schema", self._schemas.inject_person_schema),
            ("breadcrumb_schema", self._schemas.inject_breadcrumb_schema),
            ("faq_schema", self._schemas.inject_faq_schema),
        ]
        results = {}
        for name, inject in emissions:
            results[name] = self._run_step(name, self._injection_step(inject), page)
        return results

    @staticmethod
    def _injection_step(inject: Callable[[Page], bool]) -> Callable[[Page], dict]:
        def step(page: Page) -> dict:
            if not inject(page):
                return {"skipped": "no <head> element"}
            return {}
        return step

    def _run_step(self, name: str, fn: Callable[[Page], dict], page: Page) -> dict:
        try:
            details = dict(fn(page) or {})
        except Exception as exc:
            logger.exception("Enhancement step %s failed: %s", name, exc)
            return {"status": "error", "error": str(exc)}
        reason = details.pop("skipped", None)
        if reason:
            logger.debug("Enhancement step %s skipped: %s", name, reason)
            return {"status": "skipped", "reason": reason, **details}
        logger.debug("Enhancement step %s done: %s", name, details)
        return {"status": "success", **details}

    # ------------------------------------------------------------------
    # 1. Structural annotation
    # ------------------------------------------------------------------

    def annotate_structure(self, page: Page) -> dict:
        """Add ARIA roles and schema.org microdata to landmark elements.

        The first main element gets ``role="main"``, the first nav becomes a
        SiteNavigationElement, and every portfolio item becomes a
        CreativeWork labelled with its heading text.

        Args:
            page: Page to annotate in place.

        Returns:
            Dict with ``annotated`` (landmarks found) and
            ``portfolio_items`` (number of items labelled).
        """
        soup = page.soup
        annotated = []

        main = soup.select_one(self._opts.get("main_selector", "main"))
        if main is not None:
            main["role"] = "main"
            annotated.append("main")

        nav = soup.select_one(self._opts.get("nav_selector", "nav"))
        if nav is not None:
            nav["itemscope"] = ""
            nav["itemtype"] = NAVIGATION_ITEMTYPE
            annotated.append("nav")

        heading_name = self._opts.get("portfolio_heading", "h3")
        items = soup.select(self._opts.get("portfolio_item_selector", ".portfolio-item"))
        for item in items:
            heading = item.find(heading_name)
            title = heading.get_text() if heading is not None else ""
            item["itemscope"] = ""
            item["itemtype"] = CREATIVE_WORK_ITEMTYPE
            item["aria-label"] = "Portfolio project: " + title

        return {"annotated": annotated, "portfolio_items": len(items)}

    # ------------------------------------------------------------------
    # 2. Hidden content
    # ------------------------------------------------------------------

    def add_bot_only_content(self, page: Page) -> dict:
        """Append the off-screen promotional block.

        Not idempotent: each call appends another block.

        Args:
            page: Page to extend; its title is quoted in the first service.

        Returns:
            Dict with the ``title`` that was used.
        """
        soup = page.soup
        owner = self._settings.get("site", {}).get("owner", "")
        title = page.title

        block = soup.new_tag("div", attrs={"class": "bot-only-content", "style": OFFSCREEN_STYLE})

        heading = soup.new_tag("h2")
        heading.string = collapse_whitespace(owner + " SEO Services")
        block.append(heading)

        intro = soup.new_tag("p")
        intro.string = "Professional SEO services including:"
        block.append(intro)

        services = soup.new_tag("ul")
        for line in ('Keyword research for "' + title + '"',) + _SERVICE_LINES:
            li = soup.new_tag("li")
            li.string = line
            services.append(li)
        block.append(services)

        outro = soup.new_tag("p")
        outro.string = collapse_whitespace(
            "Contact " + owner + " for top-ranking SEO solutions in Pakistan."
        )
        block.append(outro)

        page.append_to_body(block)
        return {"title": title}

    # ------------------------------------------------------------------
    # 3. Media loading
    # ------------------------------------------------------------------

    def optimize_media_loading(self, page: Page) -> dict:
        """Defer images that carry no ``loading`` attribute.

        Each such image moves its resolved ``src`` into ``data-src``, gains
        the ``lazyload`` class and is preceded by a ``<noscript>`` copy.

        Args:
            page: Page to rewrite in place.

        Returns:
            Dict with ``count``, the number of images converted.
        """
        soup = page.soup
        fallback_alt = self._opts.get("fallback_alt", "Portfolio image")
        converted = 0

        # Snapshot first: the fallback images added below are not revisited.
        for img in list(soup.find_all("img")):
            if img.get("loading"):
                continue
            # Browsers treat <noscript> content as text when scripting is on.
            if img.find_parent("noscript") is not None:
                continue

            raw_src = img.get("src")
            original_src = resolve_url(raw_src, page.url) if raw_src is not None else ""

            img["data-src"] = original_src
            if "src" in img.attrs:
                del img["src"]
            classes = img.get("class", [])
            if isinstance(classes, str):
                classes = classes.split()
            if LAZY_CLASS not in classes:
                img["class"] = list(classes) + [LAZY_CLASS]

            fallback = soup.new_tag(
                "img", attrs={"src": original_src, "alt": img.get("alt") or fallback_alt}
            )
            noscript = soup.new_tag("noscript")
            noscript.append(fallback)
            img.insert_before(noscript)
            converted += 1

        return {"count": converted}

    # ------------------------------------------------------------------
    # 4. In-page sitemap
    # ------------------------------------------------------------------

    def collect_links(self, page: Page) -> list[str]:
        """Unique resolved anchor hrefs in order of first appearance."""
        links = [
            resolve_url(a["href"], page.url)
            for a in page.soup.find_all("a", href=True)
        ]
        return list(dict.fromkeys(links))

    def generate_dynamic_sitemap(self, page: Page) -> dict:
        """Append an off-screen list linking every unique anchor target.

        Args:
            page: Page to extend.

        Returns:
            Dict with ``count``, the number of links listed.
        """
        soup = page.soup
        links = self.collect_links(page)

        block = soup.new_tag("div", attrs={"class": "hidden-sitemap", "style": SITEMAP_STYLE})
        heading = soup.new_tag("h2")
        heading.string = "Website Structure"
        block.append(heading)

        listing = soup.new_tag("ul")
        for link in links:
            li = soup.new_tag("li")
            anchor = soup.new_tag("a", attrs={"href": link})
            anchor.string = url_path(link)
            li.append(anchor)
            listing.append(li)
        block.append(listing)

        page.append_to_body(block)
        return {"count": len(links)}

    # ------------------------------------------------------------------
    # 5. Indexing signals
    # ------------------------------------------------------------------

    def send_indexing_signals(self, page: Page) -> dict:
        """Queue the sitemap ping and mark the root element as enhanced.

        The ping is skipped when indexing is disabled, no origin is known
        or no notifier can send; the marker is set regardless.

        Args:
            page: Page being enhanced.

        Returns:
            Dict with ``pinged``, ``marked`` and, when sent, ``ping_url``.
        """
        details: dict[str, Any] = {"pinged": False}
        ping_url = self._ping_url(page)

        if ping_url and self._notifier is not None and self._notifier.can_send():
            try:
                details["pinged"] = bool(self._notifier.send_beacon(ping_url))
                details["ping_url"] = ping_url
            except Exception as exc:
                logger.warning("Indexing ping not sent: %s", exc)

        root = page.root
        if root is not None:
            root[ENHANCED_FLAG] = "true"
        details["marked"] = root is not None
        return details

    def _ping_url(self, page: Page) -> str:
        indexing = self._settings.get("indexing", {})
        if not indexing.get("enabled", True):
            return ""
        site = self._settings.get("site", {})
        origin = page.origin or extract_origin(site.get("url", ""))
        if not origin:
            return ""
        return build_ping_url(
            origin,
            endpoint=indexing.get("ping_endpoint", "https://www.google.com/ping"),
            sitemap_path=site.get("sitemap_path", "/sitemap.xml"),
        )

    # ------------------------------------------------------------------
    # 6. Priority tagging
    # ------------------------------------------------------------------

    def add_priority_tags(self, page: Page) -> dict:
        """Flag the configured key sections as high priority.

        Args:
            page: Page to tag in place.

        Returns:
            Dict with ``tagged``, the ids of the sections found.
        """
        tagged = []
        for section_id in self._opts.get("priority_sections", []):
            section = page.soup.find(id=section_id)
            if isinstance(section, Tag):
                section["data-seo-priority"] = "high"
                section["aria-live"] = "polite"
                tagged.append(section_id)
        return {"tagged": tagged}

    # ------------------------------------------------------------------
    # 7. Keyword density self-check
    # ------------------------------------------------------------------

    def analyze_keyword_density(self, page: Page) -> dict[str, int]:
        """Count configured keywords in the body text and log the mapping.

        Diagnostic only: nothing else reads the result.
        """
        keywords = self._settings.get("keywords", DEFAULT_SETTINGS["keywords"])
        report = keyword_report(page.body_text(), keywords)
        logger.info("Keyword Density Report: %s", report)
        return report

    def _keyword_density_step(self, page: Page) -> dict:
        return {"report": self.analyze_keyword_density(page)}

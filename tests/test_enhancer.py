"""Tests for the PageEnhancer passes.

Each pass is exercised on its own against the shared portfolio page,
followed by the full ready-signal sequence and its failure isolation.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

PAGE_URL = "https://example.com/index.html"

EMPTY_PAGE = "<html><head><title>Empty</title></head><body><p>Nothing to link.</p></body></html>"


# ===========================================================================
# 1. Structural annotation
# ===========================================================================
class TestStructuralAnnotation:

    def test_main_and_nav_annotated(self, enhancer, make_page):
        page = make_page()
        result = enhancer.annotate_structure(page)

        main = page.soup.find("main")
        nav = page.soup.find("nav")
        assert main["role"] == "main"
        assert nav["itemscope"] == ""
        assert nav["itemtype"] == "https://schema.org/SiteNavigationElement"
        assert result["annotated"] == ["main", "nav"]

    def test_portfolio_items_labelled_from_heading(self, enhancer, make_page):
        page = make_page()
        enhancer.annotate_structure(page)

        items = page.soup.select(".portfolio-item")
        assert len(items) == 2
        for item in items:
            assert item["itemscope"] == ""
            assert item["itemtype"] == "https://schema.org/CreativeWork"
        assert items[0]["aria-label"] == "Portfolio project: Local Bakery Ranking"

    def test_portfolio_item_without_heading_gets_safe_label(self, enhancer, make_page):
        page = make_page()
        enhancer.annotate_structure(page)

        second = page.soup.select(".portfolio-item")[1]
        assert second["aria-label"] == "Portfolio project: "

    def test_missing_containers_are_skipped(self, enhancer, make_page):
        page = make_page(EMPTY_PAGE)
        result = enhancer.annotate_structure(page)

        assert result["annotated"] == []
        assert result["portfolio_items"] == 0
        assert page.soup.find(attrs={"role": "main"}) is None


# ===========================================================================
# 2. Hidden content
# ===========================================================================
class TestBotOnlyContent:

    def test_block_appended_to_body_with_title(self, enhancer, make_page):
        page = make_page()
        enhancer.add_bot_only_content(page)

        blocks = page.soup.select("div.bot-only-content")
        assert len(blocks) == 1
        block = blocks[0]
        assert block.parent is page.body
        assert "left:-9999px" in block["style"]
        assert block.find("h2").get_text() == "Mansoor Ahmad SEO Services"
        items = [li.get_text() for li in block.find_all("li")]
        assert items[0] == 'Keyword research for "Mansoor Ahmad | Portfolio"'
        assert len(items) == 5

    def test_running_twice_appends_duplicate_blocks(self, enhancer, make_page):
        page = make_page()
        enhancer.add_bot_only_content(page)
        enhancer.add_bot_only_content(page)

        assert len(page.soup.select("div.bot-only-content")) == 2

    def test_title_is_escaped_in_output(self, enhancer, make_page):
        html = "<html><head><title>A <b> & B</title></head><body></body></html>"
        page = make_page(html)
        enhancer.add_bot_only_content(page)

        output = page.to_html()
        assert "&amp; B" in output


# ===========================================================================
# 3. Media loading
# ===========================================================================
class TestMediaLoading:

    def test_images_without_loading_marker_are_deferred(self, enhancer, make_page):
        page = make_page()
        result = enhancer.optimize_media_loading(page)

        assert result["count"] == 2
        lazy = page.soup.find_all("img", class_="lazyload")
        assert len(lazy) == 2
        bakery = lazy[0]
        assert "src" not in bakery.attrs
        assert bakery["data-src"] == "https://example.com/images/bakery.png"

    def test_noscript_fallback_precedes_image(self, enhancer, make_page):
        page = make_page()
        enhancer.optimize_media_loading(page)

        for img in page.soup.find_all("img", class_="lazyload"):
            noscript = img.previous_sibling
            assert noscript.name == "noscript"
            fallback = noscript.find("img")
            assert fallback["src"] == img["data-src"]

    def test_fallback_alt_uses_original_or_generic_label(self, enhancer, make_page):
        page = make_page()
        enhancer.optimize_media_loading(page)

        alts = [n.find("img")["alt"] for n in page.soup.find_all("noscript")]
        assert alts == ["Bakery site", "Portfolio image"]

    def test_existing_classes_are_kept(self, enhancer, make_page):
        page = make_page()
        enhancer.optimize_media_loading(page)

        thumb = page.soup.find("img", class_="thumb")
        assert thumb["class"] == ["thumb", "lazyload"]

    def test_native_lazy_images_untouched(self, enhancer, make_page):
        page = make_page()
        enhancer.optimize_media_loading(page)

        hero = page.soup.find("img", alt="Hero")
        assert hero["src"] == "/images/hero.jpg"
        assert "data-src" not in hero.attrs
        assert hero.previous_sibling is None or getattr(hero.previous_sibling, "name", None) != "noscript"

    def test_fallback_images_not_reprocessed(self, enhancer, make_page):
        page = make_page()
        enhancer.optimize_media_loading(page)
        second = enhancer.optimize_media_loading(page)

        # Second run: originals lost their src but still lack a loading marker,
        # fallbacks inside <noscript> are skipped.
        assert second["count"] == 2
        assert len(page.soup.find_all("noscript")) == 4


# ===========================================================================
# 4. In-page sitemap
# ===========================================================================
class TestDynamicSitemap:

    def test_links_deduplicated_in_first_seen_order(self, enhancer, make_page):
        page = make_page()
        result = enhancer.generate_dynamic_sitemap(page)

        block = page.soup.find("div", class_="hidden-sitemap")
        hrefs = [a["href"] for a in block.find_all("a")]
        assert hrefs == [
            "https://example.com/",
            "https://example.com/portfolio",
            "https://example.com/index.html#contact",
        ]
        assert result["count"] == 3
        assert len(block.find_all("li")) == 3

    def test_display_text_is_url_path(self, enhancer, make_page):
        page = make_page()
        enhancer.generate_dynamic_sitemap(page)

        block = page.soup.find("div", class_="hidden-sitemap")
        texts = [a.get_text() for a in block.find_all("a")]
        assert texts == ["/", "/portfolio", "/index.html"]
        assert block.find("h2").get_text() == "Website Structure"

    def test_page_without_anchors_gets_empty_list(self, enhancer, make_page):
        page = make_page(EMPTY_PAGE)
        result = enhancer.generate_dynamic_sitemap(page)

        block = page.soup.find("div", class_="hidden-sitemap")
        assert block is not None
        assert block.find("ul") is not None
        assert block.find_all("li") == []
        assert result["count"] == 0

    def test_unresolvable_links_fall_back_to_raw_text(self, enhancer, make_page):
        html = (
            "<html><body>"
            '<a href="/about">About</a>'
            '<a href="http://[broken/path">Broken</a>'
            '<a href="mailto:hello@example.com">Mail</a>'
            "</body></html>"
        )
        page = make_page(html, url=None)
        enhancer.generate_dynamic_sitemap(page)

        block = page.soup.find("div", class_="hidden-sitemap")
        texts = [a.get_text() for a in block.find_all("a")]
        assert texts == ["/about", "http://[broken/path", "hello@example.com"]

    def test_many_duplicates_collapse(self, enhancer, make_page):
        anchors = "".join('<a href="/p%d">x</a>' % (i % 4) for i in range(20))
        page = make_page("<html><body>" + anchors + "</body></html>")
        enhancer.generate_dynamic_sitemap(page)

        hrefs = [a["href"] for a in page.soup.find("div", class_="hidden-sitemap").find_all("a")]
        assert hrefs == ["https://example.com/p0", "https://example.com/p1",
                         "https://example.com/p2", "https://example.com/p3"]


# ===========================================================================
# 5. Indexing signals
# ===========================================================================
class TestIndexingSignals:

    def test_ping_sent_with_encoded_sitemap_url(self, enhancer, make_page, mock_notifier):
        page = make_page()
        result = enhancer.send_indexing_signals(page)

        mock_notifier.send_beacon.assert_called_once_with(
            "https://www.google.com/ping?sitemap=https%3A%2F%2Fexample.com%2Fsitemap.xml"
        )
        assert result["pinged"] is True
        assert page.root["data-seo-enhanced"] == "true"

    def test_site_url_used_when_page_url_unknown(self, enhancer, make_page, mock_notifier):
        page = make_page(url=None)
        enhancer.send_indexing_signals(page)

        mock_notifier.send_beacon.assert_called_once_with(
            "https://www.google.com/ping?sitemap=https%3A%2F%2Fyourportfolio.com%2Fsitemap.xml"
        )

    def test_skipped_without_send_capability(self, settings, make_page):
        from src.modules.page_enhancer import PageEnhancer

        notifier = MagicMock()
        notifier.can_send.return_value = False
        page = make_page()
        result = PageEnhancer(settings, notifier=notifier).send_indexing_signals(page)

        notifier.send_beacon.assert_not_called()
        assert result["pinged"] is False
        assert page.root["data-seo-enhanced"] == "true"

    def test_skipped_without_notifier(self, settings, make_page):
        from src.modules.page_enhancer import PageEnhancer

        page = make_page()
        result = PageEnhancer(settings).send_indexing_signals(page)
        assert result["pinged"] is False
        assert page.root["data-seo-enhanced"] == "true"

    def test_disabled_in_settings(self, settings, make_page, mock_notifier):
        from src.modules.page_enhancer import PageEnhancer

        settings["indexing"]["enabled"] = False
        PageEnhancer(settings, notifier=mock_notifier).send_indexing_signals(make_page())
        mock_notifier.send_beacon.assert_not_called()

    def test_notifier_failure_still_marks_root(self, enhancer, make_page, mock_notifier):
        mock_notifier.send_beacon.side_effect = RuntimeError("no network")
        page = make_page()
        result = enhancer.send_indexing_signals(page)

        assert result["pinged"] is False
        assert page.root["data-seo-enhanced"] == "true"


# ===========================================================================
# 6. Priority tagging
# ===========================================================================
class TestPriorityTags:

    def test_present_sections_tagged(self, enhancer, make_page):
        page = make_page()
        result = enhancer.add_priority_tags(page)

        assert result["tagged"] == ["about", "portfolio", "services"]
        for section_id in result["tagged"]:
            section = page.soup.find(id=section_id)
            assert section["data-seo-priority"] == "high"
            assert section["aria-live"] == "polite"

    def test_absent_sections_skipped(self, enhancer, make_page):
        page = make_page(EMPTY_PAGE)
        assert enhancer.add_priority_tags(page)["tagged"] == []


# ===========================================================================
# 7. Keyword density self-check
# ===========================================================================
class TestKeywordDensity:

    def test_counts_are_case_insensitive(self, enhancer, make_page):
        html = (
            "<html><body>"
            "<p>SEO Specialist</p><p>seo specialist and SEO SPECIALIST</p>"
            "<p>Portfolio, portfolio.</p>"
            "</body></html>"
        )
        report = enhancer.analyze_keyword_density(make_page(html))

        assert report["seo specialist"] == 3
        assert report["portfolio"] == 2
        assert report["mansoor ahmad"] == 0
        assert list(report) == [
            "mansoor ahmad",
            "seo specialist",
            "portfolio",
            "keyword research",
            "technical seo",
            "pakistan seo expert",
        ]

    def test_script_text_not_counted(self, enhancer, make_page):
        html = "<html><body><script>var x = 'technical seo';</script><p>Technical SEO</p></body></html>"
        report = enhancer.analyze_keyword_density(make_page(html))
        assert report["technical seo"] == 1

    def test_report_is_logged(self, enhancer, make_page, caplog):
        with caplog.at_level("INFO", logger="src.modules.page_enhancer.enhancer"):
            enhancer.analyze_keyword_density(make_page())
        assert "Keyword Density Report" in caplog.text


# ===========================================================================
# 8. Full sequence
# ===========================================================================
class TestEnhanceSequence:

    def test_all_steps_succeed(self, enhancer, make_page):
        page = make_page()
        result = enhancer.enhance(page)

        expected = [
            "semantic_structure",
            "bot_only_content",
            "media_loading",
            "dynamic_sitemap",
            "indexing_signals",
            "priority_tags",
            "keyword_density",
            "person_schema",
            "breadcrumb_schema",
            "faq_schema",
        ]
        assert list(result["steps"]) == expected
        for name in expected:
            assert result["steps"][name]["status"] == "success", (
                "Step " + name + " did not succeed: " + str(result["steps"][name])
            )
        assert result["url"] == PAGE_URL

    def test_structured_data_blocks_in_head(self, enhancer, make_page):
        page = make_page()
        enhancer.enhance(page)

        scripts = page.head.find_all("script", attrs={"type": "application/ld+json"})
        types = [json.loads(s.string)["@type"] for s in scripts]
        assert types == ["Person", "BreadcrumbList", "FAQPage"]

    def test_keyword_count_sees_injected_title(self, enhancer, make_page):
        result = enhancer.enhance(make_page())
        # The hidden block interpolates the title "Mansoor Ahmad | Portfolio".
        assert result["keyword_report"]["mansoor ahmad"] >= 2
        assert result["keyword_report"]["portfolio"] >= 1

    def test_failing_step_does_not_abort_others(self, enhancer, make_page):
        page = make_page()
        with patch.object(enhancer, "annotate_structure", side_effect=RuntimeError("boom")):
            result = enhancer.enhance(page)

        assert result["steps"]["semantic_structure"] == {"status": "error", "error": "boom"}
        assert result["steps"]["dynamic_sitemap"]["status"] == "success"
        assert result["steps"]["faq_schema"]["status"] == "success"
        assert page.root["data-seo-enhanced"] == "true"

    def test_page_without_head_skips_schemas(self, enhancer, make_page):
        page = make_page("<body><p>Fragment</p></body>")
        result = enhancer.enhance(page)

        for name in ("person_schema", "breadcrumb_schema", "faq_schema"):
            assert result["steps"][name]["status"] == "skipped"
        assert result["steps"]["indexing_signals"]["marked"] is False

    @pytest.mark.parametrize("html", [
        "",
        "<p>just a fragment</p>",
        "<html><body><div class='portfolio-item'></div><img></body></html>",
    ])
    def test_degenerate_documents_do_not_raise(self, enhancer, make_page, html):
        result = enhancer.enhance(make_page(html, url=None))
        statuses = {step["status"] for step in result["steps"].values()}
        assert "error" not in statuses

    def test_visible_markup_preserved(self, enhancer, make_page):
        page = make_page()
        enhancer.enhance(page)
        output = page.to_html()

        assert "Local Bakery Ranking" in output
        assert "Helping local brands grow through search." in output

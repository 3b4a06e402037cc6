"""Workflow engine wiring page loading, enhancement and output together."""

import asyncio
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import aiohttp

from src.config import load_settings

logger = logging.getLogger(__name__)


class EnhancementWorkflow:
    """Load pages, run the enhancer over them and write the results.

    Each page is processed independently; a failure on one file is
    recorded in its result and does not stop the others.

    Usage::

        workflow = EnhancementWorkflow()
        result = workflow.enhance_file("public/index.html", "dist/index.html")
        results = workflow.enhance_directory("public", "dist")
        workflow.close()
    """

    _HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/121.0.0.0 Safari/537.36"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
    }

    def __init__(
        self,
        settings: Optional[dict[str, Any]] = None,
        notifier: Optional[Any] = None,
        ping: bool = True,
    ) -> None:
        self._settings = settings if settings is not None else load_settings()
        self._notifier = notifier
        self._ping = ping
        self._owns_notifier = False
        self._enhancer = None
        self._pipeline_status: dict[str, Any] = {}
        logger.info("EnhancementWorkflow initialized.")

    # ------------------------------------------------------------------
    # Lazy-loaded collaborators
    # ------------------------------------------------------------------

    def _get_notifier(self):
        if not self._ping:
            return None
        if self._notifier is None:
            from src.modules.page_enhancer import HttpBeaconNotifier
            timeout = self._settings.get("indexing", {}).get("timeout", 10)
            self._notifier = HttpBeaconNotifier(timeout=timeout)
            self._owns_notifier = True
            logger.debug("HttpBeaconNotifier created.")
        return self._notifier

    def _get_enhancer(self):
        if self._enhancer is None:
            from src.modules.page_enhancer import PageEnhancer
            self._enhancer = PageEnhancer(self._settings, notifier=self._get_notifier())
            logger.debug("PageEnhancer created.")
        return self._enhancer

    def close(self) -> None:
        """Release the notifier this workflow created, if any."""
        if self._owns_notifier and self._notifier is not None:
            self._notifier.close()
            self._notifier = None
            self._owns_notifier = False
            self._enhancer = None

    # ------------------------------------------------------------------
    # Logging helper
    # ------------------------------------------------------------------

    def _log_step(
        self,
        pipeline: str,
        step: int,
        total: int,
        description: str,
        status: str = "running",
    ) -> None:
        """Log and record a pipeline step transition."""
        msg = f"[{pipeline}] Step {step}/{total}: {description} - {status}"
        if status == "error":
            logger.error(msg)
        else:
            logger.info(msg)
        self._pipeline_status[pipeline] = {
            "current_step": step,
            "total_steps": total,
            "description": description,
            "status": status,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

    def get_pipeline_status(self) -> dict[str, Any]:
        """Return the last recorded status of every pipeline that has run."""
        return dict(self._pipeline_status)

    # ------------------------------------------------------------------
    # HTML
    # ------------------------------------------------------------------

    def enhance_html(self, html: str, page_url: Optional[str] = None) -> dict[str, Any]:
        """Enhance an HTML string and return the result with the new markup."""
        from src.modules.page_enhancer import Page

        page = Page.from_html(html, url=page_url)
        result = self._get_enhancer().enhance(page)
        result["html"] = page.to_html()
        failed = [name for name, step in result["steps"].items() if step.get("status") == "error"]
        result["status"] = "partial" if failed else "success"
        return result

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def enhance_file(
        self,
        source: str | Path,
        destination: Optional[str | Path] = None,
        page_url: Optional[str] = None,
    ) -> dict[str, Any]:
        """Enhance one HTML file, writing in place when no destination is given."""
        pipeline = "file"
        total = 3
        source = Path(source)
        destination = Path(destination) if destination else source
        results: dict[str, Any] = {"source": str(source), "destination": str(destination)}

        self._log_step(pipeline, 1, total, "Read " + str(source))
        try:
            html = source.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Failed to read %s: %s", source, exc)
            self._log_step(pipeline, 1, total, "Read " + str(source), "error")
            results.update({"status": "error", "error": str(exc)})
            return results

        self._log_step(pipeline, 2, total, "Enhance " + str(source))
        enhanced = self.enhance_html(html, page_url=page_url)

        self._log_step(pipeline, 3, total, "Write " + str(destination))
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(enhanced.pop("html"), encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to write %s: %s", destination, exc)
            self._log_step(pipeline, 3, total, "Write " + str(destination), "error")
            results.update({"status": "error", "error": str(exc)})
            return results

        self._log_step(pipeline, 3, total, "Write " + str(destination), "done")
        results.update(enhanced)
        return results

    def enhance_directory(
        self,
        directory: str | Path,
        output_dir: Optional[str | Path] = None,
        base_url: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Enhance every ``*.html`` file under *directory*.

        When *base_url* is given each page URL is derived from the file's
        path relative to *directory*.
        """
        directory = Path(directory)
        output_root = Path(output_dir) if output_dir else directory
        started = time.time()
        results = []

        html_files = sorted(directory.rglob("*.html"))
        logger.info("Enhancing %d HTML files under %s", len(html_files), directory)
        for path in html_files:
            relative = path.relative_to(directory)
            page_url = None
            if base_url:
                page_url = base_url.rstrip("/") + "/" + relative.as_posix()
            results.append(self.enhance_file(path, output_root / relative, page_url=page_url))

        failed = sum(1 for r in results if r.get("status") == "error")
        logger.info(
            "Directory enhancement finished: %d files, %d failed, %.2fs",
            len(results), failed, time.time() - started,
        )
        return results

    # ------------------------------------------------------------------
    # URLs
    # ------------------------------------------------------------------

    async def _fetch_page(self, url: str) -> tuple[str, int]:
        """Fetch a URL and return (html, status_code)."""
        timeout = aiohttp.ClientTimeout(
            total=self._settings.get("fetch", {}).get("timeout", 30)
        )
        try:
            async with aiohttp.ClientSession(timeout=timeout, headers=self._HEADERS) as session:
                async with session.get(url, allow_redirects=True) as resp:
                    html = await resp.text(errors="replace")
                    return html, resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error("Failed to fetch %s: %s", url, exc)
            return "", 0

    async def enhance_url(self, url: str) -> dict[str, Any]:
        """Fetch *url* and enhance it, using the URL to resolve links."""
        pipeline = "url"
        total = 2
        self._log_step(pipeline, 1, total, "Fetch " + url)
        html, status = await self._fetch_page(url)
        if not html or status >= 400:
            self._log_step(pipeline, 1, total, "Fetch " + url, "error")
            return {
                "url": url,
                "status": "error",
                "status_code": status,
                "error": "Failed to fetch page",
            }

        self._log_step(pipeline, 2, total, "Enhance " + url)
        result = self.enhance_html(html, page_url=url)
        result["status_code"] = status
        self._log_step(pipeline, 2, total, "Enhance " + url, "done")
        return result

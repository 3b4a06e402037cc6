"""Best-effort sitemap ping notifier.

The enhancer never waits on the network: a notifier either queues the
request in the background and returns at once, or reports that it
cannot send and the ping is skipped.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, Protocol, runtime_checkable

import httpx

from src.utils.helpers import encode_uri_component

logger = logging.getLogger(__name__)

DEFAULT_PING_ENDPOINT = "https://www.google.com/ping"
DEFAULT_SITEMAP_PATH = "/sitemap.xml"


def build_ping_url(
    origin: str,
    endpoint: str = DEFAULT_PING_ENDPOINT,
    sitemap_path: str = DEFAULT_SITEMAP_PATH,
) -> str:
    """Build ``<endpoint>?sitemap=<encoded origin + sitemap_path>``.

    Examples:
        >>> build_ping_url("https://example.com")
        'https://www.google.com/ping?sitemap=https%3A%2F%2Fexample.com%2Fsitemap.xml'
    """
    sitemap_url = origin.rstrip("/") + sitemap_path
    return endpoint + "?sitemap=" + encode_uri_component(sitemap_url)


@runtime_checkable
class BeaconNotifier(Protocol):
    """Fire-and-forget sender for indexing pings."""

    def can_send(self) -> bool:
        ...

    def send_beacon(self, url: str) -> bool:
        """Queue a GET to *url*; True when it was queued."""
        ...


class HttpBeaconNotifier:
    """Send pings with httpx on a background thread.

    Usage::

        notifier = HttpBeaconNotifier(timeout=10)
        notifier.send_beacon(build_ping_url("https://example.com"))
        notifier.close()
    """

    _HEADERS = {
        "User-Agent": "seo-page-enhancer/1.0 (+sitemap ping)",
    }

    def __init__(self, timeout: float = 10, max_workers: int = 1) -> None:
        self._timeout = timeout
        self._executor: Optional[ThreadPoolExecutor] = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="seo-beacon"
        )

    def can_send(self) -> bool:
        return self._executor is not None

    def send_beacon(self, url: str) -> bool:
        if self._executor is None:
            return False
        future = self._executor.submit(self._send, url)
        future.add_done_callback(self._on_done)
        logger.debug("Queued indexing ping: %s", url)
        return True

    def _send(self, url: str) -> int:
        with httpx.Client(timeout=self._timeout, headers=self._HEADERS) as client:
            response = client.get(url)
            return response.status_code

    @staticmethod
    def _on_done(future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.debug("Indexing ping failed: %s", exc)
        else:
            logger.debug("Indexing ping answered with HTTP %s", future.result())

    def close(self) -> None:
        """Stop accepting pings; queued ones finish on their own.

        The enhancement passes never wait on a ping, but the interpreter
        joins pool threads at exit, so a process that ends right after
        ``close()`` can linger for up to ``timeout`` seconds while an
        in-flight request completes.
        """
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None

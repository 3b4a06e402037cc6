"""Page enhancer module: SEO annotation passes and structured data."""

from src.modules.page_enhancer.dom import Page
from src.modules.page_enhancer.enhancer import PageEnhancer
from src.modules.page_enhancer.notifier import (
    BeaconNotifier,
    HttpBeaconNotifier,
    build_ping_url,
)
from src.modules.page_enhancer.structured_data import SchemaGenerator

__all__ = [
    "BeaconNotifier",
    "HttpBeaconNotifier",
    "Page",
    "PageEnhancer",
    "SchemaGenerator",
    "build_ping_url",
]

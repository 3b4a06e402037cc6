"""Settings loader for the SEO page enhancer.

Values come from ``config/settings.yaml`` merged over the built-in
defaults below, so a missing or partial file still yields a complete
configuration.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SEO_ENHANCER_CONFIG"
DEFAULT_CONFIG_PATH = Path("config") / "settings.yaml"

DEFAULT_SETTINGS: dict[str, Any] = {
    "app": {
        "name": "SEO Page Enhancer",
        "version": "1.0.0",
    },
    "site": {
        "url": "https://yourportfolio.com",
        "owner": "Mansoor Ahmad",
        "sitemap_path": "/sitemap.xml",
    },
    "enhancer": {
        "main_selector": "main",
        "nav_selector": "nav",
        "portfolio_item_selector": ".portfolio-item",
        "portfolio_heading": "h3",
        "fallback_alt": "Portfolio image",
        "priority_sections": ["about", "portfolio", "services", "testimonials"],
    },
    "indexing": {
        "enabled": True,
        "ping_endpoint": "https://www.google.com/ping",
        "timeout": 10,
    },
    "keywords": [
        "mansoor ahmad",
        "seo specialist",
        "portfolio",
        "keyword research",
        "technical seo",
        "pakistan seo expert",
    ],
    "structured_data": {
        "person": {
            "name": "Mansoor Ahmad",
            "image": "https://yourportfolio.com/images/photo.jpg",
            "job_title": "SEO Specialist",
            "description": "I help businesses rank higher on Google with proven SEO strategies.",
            "url": "https://yourportfolio.com",
            "same_as": [
                "https://linkedin.com/in/yourprofile",
                "https://github.com/yourusername",
            ],
            "address": {
                "addressLocality": "Lahore",
                "addressRegion": "Punjab",
                "addressCountry": "Pakistan",
            },
        },
        "breadcrumbs": [
            {"name": "Home", "url": "https://yourportfolio.com/"},
            {"name": "Portfolio", "url": "https://yourportfolio.com/portfolio"},
            {"name": "SEO Services", "url": "https://yourportfolio.com/seo"},
        ],
        "faqs": [
            {
                "question": "What SEO services do you offer?",
                "answer": "I provide keyword research, on-page SEO, technical SEO, and link building.",
            },
            {
                "question": "How long does SEO take to show results?",
                "answer": "Typically 3-6 months for noticeable improvements.",
            },
        ],
    },
    "fetch": {
        "timeout": 30,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into a copy of *base*.

    Nested dicts merge key by key; any other value (lists included)
    replaces the default outright.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def resolve_config_path(path: Optional[str | Path] = None) -> Path:
    """Pick the settings file: explicit path, then env var, then default."""
    if path:
        return Path(path)
    env_path = os.getenv(CONFIG_ENV_VAR, "")
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def load_settings(path: Optional[str | Path] = None) -> dict[str, Any]:
    """Load settings from YAML merged over :data:`DEFAULT_SETTINGS`.

    Args:
        path: Optional settings file. Falls back to ``$SEO_ENHANCER_CONFIG``
            and then ``config/settings.yaml``.

    Returns:
        Complete settings dict.

    Raises:
        ValueError: If the file exists but is not a valid YAML mapping.
    """
    config_path = resolve_config_path(path)
    if not config_path.exists():
        logger.debug("Settings file %s not found; using defaults", config_path)
        return copy.deepcopy(DEFAULT_SETTINGS)

    with open(config_path, "r", encoding="utf-8") as fh:
        try:
            loaded = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ValueError("Settings file " + str(config_path) + " is not valid YAML: " + str(exc)) from exc
    if not isinstance(loaded, dict):
        raise ValueError(
            "Settings file " + str(config_path) + " must contain a mapping, got "
            + type(loaded).__name__
        )

    logger.debug("Loaded settings from %s", config_path)
    return _deep_merge(DEFAULT_SETTINGS, loaded)

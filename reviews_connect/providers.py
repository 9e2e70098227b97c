"""Sources of already-connected page data for the dashboard."""

from __future__ import annotations

import importlib
import importlib.util
import logging
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class PageDataProvider(Protocol):
    name: str

    @property
    def active(self) -> bool:
        ...

    def get_page_details(self) -> Optional[Dict[str, Any]]:
        ...

    def get_reviews(self) -> List[Dict[str, Any]]:
        ...


class NullProvider:
    """Used when no sibling data source is installed."""

    name = "standalone"
    active = False

    def get_page_details(self) -> Optional[Dict[str, Any]]:
        return None

    def get_reviews(self) -> List[Dict[str, Any]]:
        return []


class SiblingPluginProvider:
    """Delegates to a sibling object exposing ``getPageDetails()`` or ``get_page_details()``."""

    name = "integrated"
    active = True

    def __init__(self, plugin: Any) -> None:
        self._plugin = plugin
        self._fetch = getattr(plugin, "get_page_details", None) or getattr(plugin, "getPageDetails")

    def get_page_details(self) -> Optional[Dict[str, Any]]:
        try:
            details = self._fetch()
        except Exception as exc:  # noqa: BLE001
            logger.error("Error getting page details from sibling provider: %s", exc)
            return None
        return details if isinstance(details, dict) and details else None

    def get_reviews(self) -> List[Dict[str, Any]]:
        details = self.get_page_details() or {}
        reviews = details.get("reviews")
        return list(reviews) if isinstance(reviews, list) else []


def _has_page_details(plugin: Any) -> bool:
    return any(callable(getattr(plugin, attr, None)) for attr in ("get_page_details", "getPageDetails"))


def build_page_data_provider(target: str) -> PageDataProvider:
    """Resolve ``module:attribute`` once at startup into a provider."""
    if not target:
        return NullProvider()

    module_name, _, attr = target.partition(":")
    top_level = module_name.split(".")[0]
    if importlib.util.find_spec(top_level) is None or importlib.util.find_spec(module_name) is None:
        logger.warning("Sibling provider module %s is not installed; running standalone", module_name)
        return NullProvider()

    module = importlib.import_module(module_name)
    plugin = getattr(module, attr, None) if attr else module
    if plugin is None or not _has_page_details(plugin):
        logger.warning("Sibling provider %s exposes no page details; running standalone", target)
        return NullProvider()

    logger.info("Using sibling page data provider %s", target)
    return SiblingPluginProvider(plugin)

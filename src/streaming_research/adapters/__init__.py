"""Concrete search and scrape adapters and their registration."""

from ..config import EngineConfig, Settings
from ..logging import get_logger
from ..registry import CapabilityRegistry
from .scrape import BaseScraper, JinaScraper, TrafilaturaScraper
from .search import DuckDuckGoSearchAdapter, SearXNGSearchAdapter

logger = get_logger("adapters")

SEARCH_ADAPTERS = {
    "duckduckgo": DuckDuckGoSearchAdapter,
    "searxng": SearXNGSearchAdapter,
}

SCRAPE_ADAPTERS = {
    "trafilatura": TrafilaturaScraper,
    "jina": JinaScraper,
}


def _register_enabled(
    registry: CapabilityRegistry,
    engines: dict[str, EngineConfig],
    adapters: dict[str, type],
) -> list[str]:
    registered = []
    for name, engine_config in engines.items():
        if not engine_config.enabled:
            continue
        adapter_class = adapters.get(name)
        if adapter_class is None:
            logger.warning("adapter_unknown", kind=registry.kind, name=name)
            continue
        # bind loop variables so each factory builds its own engine
        registry.register(name, lambda cls=adapter_class, cfg=engine_config: cls(cfg))
        registered.append(name)
    return registered


def register_default_adapters(
    search_registry: CapabilityRegistry,
    scrape_registry: CapabilityRegistry,
    settings: Settings,
) -> None:
    """Register a factory for every enabled search engine and scraper."""
    search_names = _register_enabled(search_registry, settings.search_engines, SEARCH_ADAPTERS)
    scrape_names = _register_enabled(scrape_registry, settings.scrapers, SCRAPE_ADAPTERS)
    logger.info("adapters_registered", search=search_names, scrape=scrape_names)


__all__ = [
    "BaseScraper",
    "DuckDuckGoSearchAdapter",
    "JinaScraper",
    "SCRAPE_ADAPTERS",
    "SEARCH_ADAPTERS",
    "SearXNGSearchAdapter",
    "TrafilaturaScraper",
    "register_default_adapters",
]

"""Tests for the concrete search and scrape adapters."""

from unittest.mock import MagicMock

import pytest
import requests
import trafilatura

from src.streaming_research.capabilities import ScrapeFormat, ScrapeOptions, SearchRequest, WebContent
from src.streaming_research.config import EngineConfig, Settings
from src.streaming_research.errors import ConfigurationError, TransientCallError
from src.streaming_research.registry import CapabilityRegistry


def json_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status = MagicMock()
    return response


class TestDuckDuckGoSearchAdapter:
    """Tests for the DuckDuckGo adapter."""

    def test_search_maps_results(self, monkeypatch):
        """Test that ddgs hits become ranked search results."""
        from src.streaming_research.adapters.search import DuckDuckGoSearchAdapter

        mock_ddgs = MagicMock()
        mock_ddgs.text.return_value = [
            {"title": "Article 1", "href": "https://example.com/1", "body": "Snippet 1"},
            {"title": "Article 2", "href": "https://example.com/2", "body": "Snippet 2"},
        ]
        monkeypatch.setattr(
            "src.streaming_research.adapters.search.DDGS", lambda timeout: mock_ddgs
        )

        adapter = DuckDuckGoSearchAdapter(EngineConfig(name="duckduckgo"))
        response = adapter.search(SearchRequest(query="solar", num=2, region="us-en"))

        assert response.urls == ["https://example.com/1", "https://example.com/2"]
        assert [item.rank for item in response.results] == [1, 2]
        assert response.results[0].snippet == "Snippet 1"
        assert response.engine == "duckduckgo"
        mock_ddgs.text.assert_called_once_with("solar", max_results=2, region="us-en")

    def test_search_failure(self, monkeypatch):
        """Test that ddgs errors become TransientCallError."""
        from src.streaming_research.adapters.search import DuckDuckGoSearchAdapter

        mock_ddgs = MagicMock()
        mock_ddgs.text.side_effect = RuntimeError("rate limited")
        monkeypatch.setattr(
            "src.streaming_research.adapters.search.DDGS", lambda timeout: mock_ddgs
        )

        adapter = DuckDuckGoSearchAdapter(EngineConfig(name="duckduckgo"))

        with pytest.raises(TransientCallError, match="rate limited"):
            adapter.search(SearchRequest(query="solar"))


class TestSearXNGSearchAdapter:
    """Tests for the SearXNG adapter."""

    def test_requires_base_url(self):
        """Test that a SearXNG engine without a URL is a configuration error."""
        from src.streaming_research.adapters.search import SearXNGSearchAdapter

        with pytest.raises(ConfigurationError):
            SearXNGSearchAdapter(EngineConfig(name="searxng"))

    def test_search_maps_results(self):
        """Test that SearXNG JSON results are mapped and capped at num."""
        from src.streaming_research.adapters.search import SearXNGSearchAdapter

        adapter = SearXNGSearchAdapter(
            EngineConfig(name="searxng", base_url="http://searx.local/", extra={"categories": "news"})
        )
        adapter.session = MagicMock()
        adapter.session.get.return_value = json_response(
            {
                "results": [
                    {"url": "https://a.example", "title": "A", "content": "a", "score": 1.5},
                    {"url": "https://b.example", "title": "B", "content": "b"},
                    {"url": "https://c.example", "title": "C", "content": "c"},
                ]
            }
        )

        response = adapter.search(SearchRequest(query="solar", num=2))

        assert response.urls == ["https://a.example", "https://b.example"]
        assert response.results[0].score == 1.5
        url = adapter.session.get.call_args[0][0]
        params = adapter.session.get.call_args[1]["params"]
        assert url == "http://searx.local/search"
        assert params["q"] == "solar"
        assert params["format"] == "json"
        assert params["categories"] == "news"

    def test_http_error(self):
        """Test that HTTP failures become TransientCallError."""
        from src.streaming_research.adapters.search import SearXNGSearchAdapter

        adapter = SearXNGSearchAdapter(EngineConfig(name="searxng", base_url="http://searx.local"))
        adapter.session = MagicMock()
        adapter.session.get.side_effect = requests.Timeout("Connection timeout")

        with pytest.raises(TransientCallError):
            adapter.search(SearchRequest(query="solar"))


class TestTrafilaturaScraper:
    """Tests for the trafilatura scraper."""

    def _scraper(self, html="<html><body><p>Solar content</p></body></html>"):
        from src.streaming_research.adapters.scrape import TrafilaturaScraper

        scraper = TrafilaturaScraper(EngineConfig(name="trafilatura"))
        response = MagicMock()
        response.content = html.encode("utf-8")
        response.text = html
        response.raise_for_status = MagicMock()
        scraper.session = MagicMock()
        scraper.session.get.return_value = response
        return scraper

    def test_scrape_extracts_text(self, monkeypatch):
        """Test that the page is downloaded and its main text extracted."""
        monkeypatch.setattr(trafilatura, "extract", lambda *a, **k: "Solar content")
        monkeypatch.setattr(trafilatura, "extract_metadata", lambda *a, **k: MagicMock(title="Solar"))

        page = self._scraper().scrape("https://example.com", ScrapeOptions())

        assert page.url == "https://example.com"
        assert page.title == "Solar"
        assert page.content == "Solar content"

    def test_scrape_html_format(self, monkeypatch):
        """Test that HTML format returns the raw page."""
        monkeypatch.setattr(trafilatura, "extract_metadata", lambda *a, **k: None)

        page = self._scraper("<p>raw</p>").scrape(
            "https://example.com", ScrapeOptions(format=ScrapeFormat.HTML)
        )

        assert page.content == "<p>raw</p>"
        assert page.title == ""

    def test_empty_extraction(self, monkeypatch):
        """Test that a page without extractable content is an error."""
        monkeypatch.setattr(trafilatura, "extract", lambda *a, **k: None)

        with pytest.raises(TransientCallError):
            self._scraper().scrape("https://example.com", ScrapeOptions())

    def test_fetch_timeout(self):
        """Test that download failures become TransientCallError."""
        scraper = self._scraper()
        scraper.session.get.side_effect = requests.Timeout("Connection timeout")

        with pytest.raises(TransientCallError):
            scraper.scrape("https://example.com", ScrapeOptions())


class TestJinaScraper:
    """Tests for the Jina reader scraper."""

    def test_scrape_parses_payload(self):
        """Test that the reader payload becomes web content with links and images."""
        from src.streaming_research.adapters.scrape import JinaScraper

        scraper = JinaScraper(EngineConfig(name="jina", api_key="secret"))
        scraper.session = MagicMock()
        scraper.session.get.return_value = json_response(
            {
                "code": 200,
                "status": 20000,
                "data": {
                    "url": "https://example.com",
                    "title": "Example",
                    "content": "Body text",
                    "links": {"Docs": "https://example.com/docs"},
                    "images": {"Logo": "https://example.com/logo.png"},
                },
            }
        )

        page = scraper.scrape("https://example.com", ScrapeOptions())

        assert page.title == "Example"
        assert page.content == "Body text"
        assert page.links[0].url == "https://example.com/docs"
        assert page.images[0].title == "Logo"
        assert scraper.session.get.call_args[0][0] == "https://r.jina.ai/https://example.com"
        headers = scraper.session.get.call_args[1]["headers"]
        assert headers["X-Return-Format"] == "text"

    def test_error_code(self):
        """Test that a non-200 reader code is an error."""
        from src.streaming_research.adapters.scrape import JinaScraper

        scraper = JinaScraper(EngineConfig(name="jina"))
        scraper.session = MagicMock()
        scraper.session.get.return_value = json_response({"code": 422, "status": "bad url"})

        with pytest.raises(TransientCallError, match="422"):
            scraper.scrape("https://example.com", ScrapeOptions())


class TestBaseScraper:
    """Tests for the shared parallel batch scrape."""

    def test_scrape_many_keeps_order_and_omits_failures(self):
        """Test that failures are omitted and input order is kept."""
        from src.streaming_research.adapters.scrape import BaseScraper

        class PickyScraper(BaseScraper):
            def scrape(self, url, options):
                if "bad" in url:
                    raise TransientCallError("blocked")
                return WebContent(url=url, content=url)

        scraper = PickyScraper(EngineConfig(name="picky"))
        urls = ["https://1.example", "https://bad.example", "https://3.example"]

        pages = scraper.scrape_many(urls, ScrapeOptions())

        assert [page.url for page in pages] == ["https://1.example", "https://3.example"]
        assert scraper.scrape_many([], ScrapeOptions()) == []


class TestRegisterDefaultAdapters:
    """Tests for adapter registration."""

    def test_only_enabled_engines_registered(self, monkeypatch):
        """Test that factories exist only for enabled engines."""
        from src.streaming_research.adapters import (
            DuckDuckGoSearchAdapter,
            JinaScraper,
            register_default_adapters,
        )

        monkeypatch.setenv("SEARCH_ENGINES", "duckduckgo")
        monkeypatch.setenv("SCRAPERS", "jina")
        settings = Settings.from_env()
        search_registry = CapabilityRegistry("search")
        scrape_registry = CapabilityRegistry("scrape")

        register_default_adapters(search_registry, scrape_registry, settings)

        assert search_registry.names() == ["duckduckgo"]
        assert scrape_registry.names() == ["jina"]
        assert isinstance(search_registry.create("duckduckgo"), DuckDuckGoSearchAdapter)
        assert isinstance(scrape_registry.create("jina"), JinaScraper)

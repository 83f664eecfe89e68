"""Search adapters: DuckDuckGo (no API key) and SearXNG."""

import time

import requests
from ddgs import DDGS

from ..capabilities import SearchRequest, SearchResponse, SearchResultItem
from ..config import EngineConfig
from ..errors import ConfigurationError, TransientCallError
from ..logging import get_logger, preview

logger = get_logger("adapters.search")

USER_AGENT = "Mozilla/5.0 (compatible; ResearchBot/1.0)"


class DuckDuckGoSearchAdapter:
    """Web search through the ``ddgs`` metasearch client."""

    def __init__(self, config: EngineConfig):
        self.config = config

    def search(self, request: SearchRequest) -> SearchResponse:
        start_time = time.perf_counter()
        logger.debug("web_search", engine="duckduckgo", query=preview(request.query))

        kwargs = {"max_results": request.num}
        if request.region:
            kwargs["region"] = request.region
        if request.safe_search:
            kwargs["safesearch"] = request.safe_search
        if request.time_range:
            kwargs["timelimit"] = request.time_range

        try:
            hits = list(
                DDGS(timeout=int(self.config.timeout)).text(request.query, **kwargs)
            )
        except Exception as e:
            raise TransientCallError(f"duckduckgo search failed: {e}") from e

        results = [
            SearchResultItem(
                url=hit.get("href", ""),
                title=hit.get("title", ""),
                snippet=hit.get("body", ""),
                rank=rank,
            )
            for rank, hit in enumerate(hits, 1)
        ]
        return SearchResponse(
            query=request.query,
            results=results,
            total_count=len(results),
            time_taken_ms=int((time.perf_counter() - start_time) * 1000),
            engine="duckduckgo",
        )


class SearXNGSearchAdapter:
    """Web search through a SearXNG instance's JSON API.

    Adapter-specific ``extra`` keys: ``language``, ``categories``,
    ``safesearch`` and ``engines``.
    """

    def __init__(self, config: EngineConfig):
        if not config.base_url:
            raise ConfigurationError("searxng requires a base_url")
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})

    def _params(self, request: SearchRequest) -> dict:
        extra = self.config.extra
        params = {
            "q": request.query,
            "format": "json",
            "categories": extra.get("categories", "general"),
            "language": request.lang or extra.get("language", "en-US"),
            "safesearch": extra.get("safesearch", "1"),
        }
        engines = request.engine_params.get("engines") or extra.get("engines")
        if engines:
            params["engines"] = engines
        time_range = request.time_range or request.engine_params.get("time_range")
        if time_range:
            params["time_range"] = time_range
        return params

    def search(self, request: SearchRequest) -> SearchResponse:
        if not request.query:
            raise ValueError("query cannot be empty")

        start_time = time.perf_counter()
        try:
            response = self.session.get(
                f"{self.base_url}/search",
                params=self._params(request),
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise TransientCallError(f"searxng request failed: {e}") from e
        except ValueError as e:
            raise TransientCallError(f"searxng returned invalid JSON: {e}") from e

        results = [
            SearchResultItem(
                url=hit.get("url", ""),
                title=hit.get("title", ""),
                snippet=hit.get("content", ""),
                rank=rank,
                score=float(hit.get("score") or 0.0),
                published_date=hit.get("publishedDate") or "",
            )
            for rank, hit in enumerate(payload.get("results", [])[: request.num], 1)
        ]
        return SearchResponse(
            query=request.query,
            results=results,
            total_count=len(results),
            time_taken_ms=int((time.perf_counter() - start_time) * 1000),
            engine="searxng",
        )

"""Scrape adapters: local extraction with trafilatura and the Jina reader API."""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Sequence

import requests
import trafilatura

from ..capabilities import Image, Link, ScrapeFormat, ScrapeOptions, WebContent
from ..config import EngineConfig
from ..errors import TransientCallError
from ..logging import get_logger

logger = get_logger("adapters.scrape")

USER_AGENT = "Mozilla/5.0 (compatible; ResearchBot/1.0)"
MAX_PARALLEL_FETCHES = 5


class BaseScraper:
    """Scraper with a parallel ``scrape_many`` built on ``scrape``.

    Subclasses implement ``scrape``. ``scrape_many`` keeps the input URL
    order and silently omits URLs whose scrape failed.
    """

    name = "scraper"

    def __init__(self, config: EngineConfig, max_workers: int = MAX_PARALLEL_FETCHES):
        self.config = config
        self.max_workers = max_workers

    def scrape(self, url: str, options: ScrapeOptions) -> WebContent:
        raise NotImplementedError

    def scrape_many(self, urls: Sequence[str], options: ScrapeOptions) -> list[WebContent]:
        if not urls:
            return []

        pages: dict[int, WebContent] = {}
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(urls))) as executor:
            future_to_index = {
                executor.submit(self.scrape, url, options): index
                for index, url in enumerate(urls)
            }
            for future in as_completed(future_to_index):
                index = future_to_index[future]
                try:
                    pages[index] = future.result()
                except Exception as e:
                    logger.warning(
                        "fetch_url_error",
                        scraper=self.name,
                        url=urls[index],
                        error=str(e),
                        error_type=type(e).__name__,
                    )

        logger.debug(
            "scrape_many",
            scraper=self.name,
            requested=len(urls),
            succeeded=len(pages),
        )
        return [pages[index] for index in sorted(pages)]


class TrafilaturaScraper(BaseScraper):
    """Downloads pages with requests and extracts the main content locally."""

    name = "trafilatura"

    def __init__(self, config: EngineConfig, max_workers: int = MAX_PARALLEL_FETCHES):
        super().__init__(config, max_workers)
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})

    def scrape(self, url: str, options: ScrapeOptions) -> WebContent:
        timeout = min(options.timeout, self.config.timeout)
        try:
            response = self.session.get(url, timeout=timeout, allow_redirects=True)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransientCallError(f"fetching {url} failed: {e}") from e

        if options.format == ScrapeFormat.HTML:
            content = response.text
        else:
            output_format = "markdown" if options.format == ScrapeFormat.MARKDOWN else "txt"
            content = trafilatura.extract(
                response.content,
                output_format=output_format,
                include_comments=False,
                include_tables=True,
                include_links=options.links_summary,
                no_fallback=False,
            )
        if not content:
            raise TransientCallError(f"no content could be extracted from {url}")

        metadata = trafilatura.extract_metadata(response.content)
        title = metadata.title if metadata is not None and metadata.title else ""

        logger.debug("fetch_url_success", url=url, content_length=len(content))
        return WebContent(url=url, title=title, content=content)


class JinaScraper(BaseScraper):
    """Scrapes pages through the Jina reader API (``https://r.jina.ai/<url>``)."""

    name = "jina"

    def __init__(self, config: EngineConfig, max_workers: int = MAX_PARALLEL_FETCHES):
        super().__init__(config, max_workers)
        self.base_url = (config.base_url or "https://r.jina.ai").rstrip("/")
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if config.api_key:
            self.session.headers["Authorization"] = f"Bearer {config.api_key}"

    def _headers(self, options: ScrapeOptions) -> dict[str, str]:
        headers = {
            "X-Return-Format": options.format.value,
            "X-Timeout": str(int(options.timeout)),
        }
        if options.images_summary:
            headers["X-With-Images-Summary"] = "true"
        if options.links_summary:
            headers["X-With-Links-Summary"] = "true"
        return headers

    def scrape(self, url: str, options: ScrapeOptions) -> WebContent:
        try:
            response = self.session.get(
                f"{self.base_url}/{url}",
                headers=self._headers(options),
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise TransientCallError(f"jina request for {url} failed: {e}") from e
        except ValueError as e:
            raise TransientCallError(f"jina returned invalid JSON for {url}: {e}") from e

        if payload.get("code") != 200:
            raise TransientCallError(
                f"jina returned an error (code: {payload.get('code')}, status: {payload.get('status')})"
            )

        data = payload.get("data") or {}
        if options.format == ScrapeFormat.HTML:
            content = data.get("html", "")
        elif options.format == ScrapeFormat.MARKDOWN:
            content = data.get("content", "")
        else:
            content = data.get("text") or data.get("content", "")

        links = [
            Link(url=href, text=text)
            for text, href in (data.get("links") or {}).items()
            if text and href
        ]
        images = [
            Image(url=src, title=title)
            for title, src in (data.get("images") or {}).items()
            if src
        ]
        return WebContent(
            url=data.get("url") or url,
            title=data.get("title", ""),
            content=content,
            links=links,
            images=images,
        )

"""Capability contracts and the value objects that flow through them."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Protocol, Sequence, runtime_checkable

from langchain_core.messages import BaseMessage


class ScrapeFormat(str, Enum):
    """Content format requested from a scraper."""

    TEXT = "text"
    HTML = "html"
    MARKDOWN = "markdown"


@dataclass
class Provenance:
    """Where a retrieval item came from."""

    engine: str
    strategy: str
    attempt: int | None = None


@dataclass
class SearchRequest:
    """A single search call."""

    query: str
    num: int = 10
    lang: str = ""
    region: str = ""
    safe_search: str = ""
    time_range: str = ""
    engine_params: dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchResultItem:
    """One search hit."""

    url: str
    title: str = ""
    snippet: str = ""
    rank: int = 0
    score: float = 0.0
    published_date: str = ""
    provenance: Provenance | None = None


@dataclass
class SearchResponse:
    """Results of one search call (or of a merged strategy call)."""

    query: str
    results: list[SearchResultItem] = field(default_factory=list)
    total_count: int = 0
    time_taken_ms: int = 0
    engine: str = ""
    message: str = ""

    @property
    def urls(self) -> list[str]:
        return [item.url for item in self.results if item.url]


@dataclass
class ScrapeOptions:
    """Options for a scrape call."""

    format: ScrapeFormat = ScrapeFormat.TEXT
    timeout: float = 30.0
    links_summary: bool = True
    images_summary: bool = True


@dataclass
class Link:
    url: str
    text: str = ""


@dataclass
class Image:
    url: str
    title: str = ""


@dataclass
class WebContent:
    """Content extracted from one web page."""

    url: str
    title: str = ""
    content: str = ""
    links: list[Link] = field(default_factory=list)
    images: list[Image] = field(default_factory=list)
    provenance: Provenance | None = None


@dataclass
class ScrapeBatch:
    """Pages fetched for one scrape step."""

    results: list[WebContent] = field(default_factory=list)
    message: str = ""


@runtime_checkable
class SearchCapability(Protocol):
    def search(self, request: SearchRequest) -> SearchResponse: ...


@runtime_checkable
class ScrapeCapability(Protocol):
    def scrape(self, url: str, options: ScrapeOptions) -> WebContent: ...

    def scrape_many(
        self, urls: Sequence[str], options: ScrapeOptions
    ) -> list[WebContent]: ...


@runtime_checkable
class ChatCapability(Protocol):
    """Chat-completion backend.

    ``stream`` returns an iterator of text chunks; exhaustion is the end of
    the stream and any exception raised while iterating is a call failure.
    """

    def generate(self, messages: Sequence[BaseMessage]) -> str: ...

    def stream(self, messages: Sequence[BaseMessage]) -> Iterator[str]: ...

"""Typed configuration for the streaming research agent.

Values come from environment variables (optionally loaded from a ``.env``
file). Every dataclass validates itself on construction and raises
``ConfigurationError`` for values the agent cannot run with.
"""

import os
from dataclasses import dataclass, field, replace
from typing import Any, Iterable

from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()

# Research loop defaults
DEFAULT_MAX_ITERATIONS = 3
DEFAULT_MAX_STEPS = 50
DEFAULT_MIN_QUESTIONS = 2
DEFAULT_MAX_CONTENT_LENGTH = 35000  # characters across all pages
DEFAULT_MAX_SINGLE_CONTENT = 4000  # characters per page
DEFAULT_CHANNEL_BUFFER = 100

# Retrieval defaults
DEFAULT_BREADTH = 10
DEFAULT_ENGINE_TIMEOUT = 30.0  # seconds per capability call


def _env_str(name: str, default: str) -> str:
    return os.getenv(name, default).strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class ResearchConfig:
    """Budgets and limits for one research run.

    Attributes:
        max_iterations: Iteration budget; reaching it forces synthesis.
        max_steps: Step budget; upper bound on state-machine node visits.
        min_questions: Completed questions wanted before giving up on generation.
        max_content_length: Global character cap for an analysis context.
        max_single_content: Per-page character cap inside an analysis context.
        channel_buffer: Capacity of the progress event stream.
    """

    max_iterations: int = DEFAULT_MAX_ITERATIONS
    max_steps: int = DEFAULT_MAX_STEPS
    min_questions: int = DEFAULT_MIN_QUESTIONS
    max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH
    max_single_content: int = DEFAULT_MAX_SINGLE_CONTENT
    channel_buffer: int = DEFAULT_CHANNEL_BUFFER

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ConfigurationError("max_iterations must be at least 1")
        if self.max_steps < 1:
            raise ConfigurationError("max_steps must be at least 1")
        if self.min_questions < 0:
            raise ConfigurationError("min_questions cannot be negative")
        if self.max_content_length < 1 or self.max_single_content < 1:
            raise ConfigurationError("content limits must be positive")
        if self.channel_buffer < 1:
            raise ConfigurationError("channel_buffer must be at least 1")

    @classmethod
    def from_env(cls) -> "ResearchConfig":
        return cls(
            max_iterations=_env_int("RESEARCH_MAX_ITERATIONS", DEFAULT_MAX_ITERATIONS),
            max_steps=_env_int("RESEARCH_MAX_STEPS", DEFAULT_MAX_STEPS),
            min_questions=_env_int("RESEARCH_MIN_QUESTIONS", DEFAULT_MIN_QUESTIONS),
            max_content_length=_env_int(
                "RESEARCH_MAX_CONTENT_LENGTH", DEFAULT_MAX_CONTENT_LENGTH
            ),
            max_single_content=_env_int(
                "RESEARCH_MAX_SINGLE_CONTENT", DEFAULT_MAX_SINGLE_CONTENT
            ),
            channel_buffer=_env_int("RESEARCH_CHANNEL_BUFFER", DEFAULT_CHANNEL_BUFFER),
        )


@dataclass
class EngineConfig:
    """Configuration for a single search engine or scraper adapter.

    ``extra`` holds only values that are specific to one adapter
    (e.g. SearXNG categories); everything shared is a typed field.
    """

    name: str
    enabled: bool = True
    base_url: str = ""
    api_key: str = ""
    timeout: float = DEFAULT_ENGINE_TIMEOUT
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError("engine name cannot be empty")
        if self.timeout <= 0:
            raise ConfigurationError(f"engine '{self.name}' timeout must be positive")


@dataclass
class _StrategyConfig:
    default_engine: str
    fallback_order: list[str]
    mixed_engines: list[str] = field(default_factory=list)
    enable_fallback: bool = True
    fail_fast: bool = False

    def __post_init__(self):
        if not self.default_engine and not self.fallback_order:
            raise ConfigurationError("a default engine or a fallback order is required")
        if len(set(self.mixed_engines)) != len(self.mixed_engines):
            raise ConfigurationError("mixed engine list contains duplicates")

    def engine_order(self) -> list[str]:
        """Engines to try in fallback mode, in order."""
        if self.fallback_order:
            return list(self.fallback_order)
        return [self.default_engine]

    def restricted_to(self, enabled: Iterable[str]):
        """Return a copy whose fallback and mixed lists only name enabled engines.

        Raises:
            ConfigurationError: If no configured engine is enabled.
        """
        allowed = set(enabled)
        if not allowed:
            raise ConfigurationError("no enabled engines found")

        fallback = [name for name in self.engine_order() if name in allowed]
        mixed = [name for name in self.mixed_engines if name in allowed]
        if not fallback and not mixed:
            raise ConfigurationError(
                f"none of the configured engines are enabled (enabled: {sorted(allowed)})"
            )

        default = self.default_engine if self.default_engine in allowed else (fallback or mixed)[0]
        return replace(
            self, default_engine=default, fallback_order=fallback, mixed_engines=mixed
        )


@dataclass
class SearchStrategyConfig(_StrategyConfig):
    """Search retrieval policy.

    Attributes:
        default_engine: Engine used when no fallback order is configured.
        fallback_order: Engines tried in order by fallback mode.
        mixed_engines: Engines queried concurrently; non-empty selects mixed mode.
        enable_fallback: Whether a failure moves on to the next engine.
        fail_fast: Stop at the first failure regardless of enable_fallback.
        breadth: Maximum results kept per engine.
    """

    default_engine: str = "duckduckgo"
    fallback_order: list[str] = field(default_factory=lambda: ["duckduckgo", "searxng"])
    breadth: int = DEFAULT_BREADTH

    def __post_init__(self):
        super().__post_init__()
        if self.breadth < 1:
            raise ConfigurationError("breadth must be at least 1")

    @classmethod
    def from_env(cls) -> "SearchStrategyConfig":
        return cls(
            default_engine=_env_str("SEARCH_DEFAULT_ENGINE", "duckduckgo"),
            fallback_order=_env_list("SEARCH_FALLBACK_ORDER", ["duckduckgo", "searxng"]),
            mixed_engines=_env_list("SEARCH_MIXED_ENGINES", []),
            enable_fallback=_env_bool("SEARCH_ENABLE_FALLBACK", True),
            fail_fast=_env_bool("SEARCH_FAIL_FAST", False),
            breadth=_env_int("SEARCH_BREADTH", DEFAULT_BREADTH),
        )


@dataclass
class ScrapeStrategyConfig(_StrategyConfig):
    """Scrape retrieval policy; same fields as search minus breadth."""

    default_engine: str = "trafilatura"
    fallback_order: list[str] = field(default_factory=lambda: ["trafilatura", "jina"])

    @classmethod
    def from_env(cls) -> "ScrapeStrategyConfig":
        return cls(
            default_engine=_env_str("SCRAPE_DEFAULT_SCRAPER", "trafilatura"),
            fallback_order=_env_list("SCRAPE_FALLBACK_ORDER", ["trafilatura", "jina"]),
            mixed_engines=_env_list("SCRAPE_MIXED_SCRAPERS", []),
            enable_fallback=_env_bool("SCRAPE_ENABLE_FALLBACK", True),
            fail_fast=_env_bool("SCRAPE_FAIL_FAST", False),
        )


@dataclass
class ChatConfig:
    """Chat model settings."""

    model: str = "gpt-4o-mini"
    base_url: str | None = None
    temperature: float = 0.7
    timeout: float = 120.0
    max_tokens: int | None = None

    def __post_init__(self):
        if not self.model:
            raise ConfigurationError("chat model name cannot be empty")
        if self.timeout <= 0:
            raise ConfigurationError("chat timeout must be positive")

    @classmethod
    def from_env(cls) -> "ChatConfig":
        max_tokens = _env_int("OPENAI_MAX_TOKENS", 0)
        return cls(
            model=_env_str("OPENAI_MODEL", "gpt-4o-mini"),
            base_url=os.getenv("OPENAI_BASE_URL") or None,
            temperature=_env_float("OPENAI_TEMPERATURE", 0.7),
            timeout=_env_float("OPENAI_TIMEOUT", 120.0),
            max_tokens=max_tokens or None,
        )


@dataclass
class Settings:
    """Aggregate configuration for building an agent."""

    research: ResearchConfig = field(default_factory=ResearchConfig)
    search_strategy: SearchStrategyConfig = field(default_factory=SearchStrategyConfig)
    scrape_strategy: ScrapeStrategyConfig = field(default_factory=ScrapeStrategyConfig)
    search_engines: dict[str, EngineConfig] = field(default_factory=dict)
    scrapers: dict[str, EngineConfig] = field(default_factory=dict)
    chat: ChatConfig = field(default_factory=ChatConfig)

    def enabled_search_engines(self) -> list[str]:
        return [name for name, cfg in self.search_engines.items() if cfg.enabled]

    def enabled_scrapers(self) -> list[str]:
        return [name for name, cfg in self.scrapers.items() if cfg.enabled]

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        ``SEARCH_ENGINES`` and ``SCRAPERS`` list the enabled adapters; strategy
        lists are filtered down to those.
        """
        search_timeout = _env_float("SEARCH_TIMEOUT", DEFAULT_ENGINE_TIMEOUT)
        scrape_timeout = _env_float("SCRAPE_TIMEOUT", DEFAULT_ENGINE_TIMEOUT)

        search_engines = {
            "duckduckgo": EngineConfig(name="duckduckgo", timeout=search_timeout),
            "searxng": EngineConfig(
                name="searxng",
                base_url=_env_str("SEARXNG_BASE_URL", "http://localhost:8080"),
                timeout=search_timeout,
                extra={
                    "language": _env_str("SEARXNG_LANGUAGE", "en-US"),
                    "categories": _env_str("SEARXNG_CATEGORIES", "general"),
                    "safesearch": _env_str("SEARXNG_SAFESEARCH", "1"),
                },
            ),
        }
        scrapers = {
            "trafilatura": EngineConfig(name="trafilatura", timeout=scrape_timeout),
            "jina": EngineConfig(
                name="jina",
                base_url=_env_str("JINA_BASE_URL", "https://r.jina.ai"),
                api_key=os.getenv("JINA_API_KEY", ""),
                timeout=scrape_timeout,
            ),
        }

        enabled_search = set(_env_list("SEARCH_ENGINES", ["duckduckgo"]))
        enabled_scrape = set(_env_list("SCRAPERS", ["trafilatura"]))
        for name, cfg in search_engines.items():
            cfg.enabled = name in enabled_search
        for name, cfg in scrapers.items():
            cfg.enabled = name in enabled_scrape

        settings = cls(
            research=ResearchConfig.from_env(),
            search_engines=search_engines,
            scrapers=scrapers,
            chat=ChatConfig.from_env(),
        )
        settings.search_strategy = SearchStrategyConfig.from_env().restricted_to(
            settings.enabled_search_engines()
        )
        settings.scrape_strategy = ScrapeStrategyConfig.from_env().restricted_to(
            settings.enabled_scrapers()
        )
        return settings

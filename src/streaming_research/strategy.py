"""Retrieval strategies: fallback chains and concurrent mixed-engine fan-out."""

import time
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from typing import Any, Callable, Generic, Sequence, TypeVar

from .capabilities import (
    Provenance,
    ScrapeCapability,
    ScrapeOptions,
    SearchCapability,
    SearchRequest,
    SearchResponse,
    WebContent,
)
from .config import ScrapeStrategyConfig, SearchStrategyConfig
from .errors import AllEnginesFailed, ConfigurationError
from .logging import get_logger, log_duration
from .registry import CapabilityRegistry

logger = get_logger("strategy")

STRATEGY_FALLBACK = "fallback"
STRATEGY_MIXED = "mixed"

A = TypeVar("A")
R = TypeVar("R")


class _EngineStrategy(Generic[A]):
    """Shared engine bookkeeping for the search and scrape strategies."""

    kind = "engine"

    def __init__(self, registry: CapabilityRegistry, config, max_workers: int | None = None):
        self.registry = registry
        self.config = config
        self.max_workers = max_workers
        self._adapters: dict[str, A] = {}
        self._lock = threading.Lock()

    @property
    def is_mixed(self) -> bool:
        return bool(self.config.mixed_engines)

    def validate(self) -> None:
        """Fail early when none of the configured engines is registered."""
        engines = self.config.mixed_engines or self.config.engine_order()
        if not any(self.registry.is_registered(engine) for engine in engines):
            raise ConfigurationError(
                f"none of the configured {self.kind} engines is available: {', '.join(engines)} "
                f"(registered: {', '.join(self.registry.names()) or 'none'})"
            )

    def _get_adapter(self, engine: str) -> A:
        adapter = self._adapters.get(engine)
        if adapter is not None:
            return adapter

        with self._lock:
            adapter = self._adapters.get(engine)
            if adapter is None:
                adapter = self.registry.create(engine)
                self._adapters[engine] = adapter
            return adapter

    def _run_fallback(self, operation: str, call: Callable[[A], R]) -> tuple[str, int, R]:
        """Try engines in order until one succeeds.

        Returns:
            Tuple of (engine, 1-based attempt index, call result).

        Raises:
            AllEnginesFailed: If the policy stops before any engine succeeds.
        """
        engines = self.config.engine_order()
        errors: list[Exception] = []
        attempted: list[str] = []

        for attempt, engine in enumerate(engines, 1):
            attempted.append(engine)
            try:
                with log_duration(
                    logger,
                    "engine_attempt",
                    kind=self.kind,
                    operation=operation,
                    engine=engine,
                    attempt=attempt,
                    strategy=STRATEGY_FALLBACK,
                ):
                    adapter = self._get_adapter(engine)
                    result = call(adapter)
            except Exception as e:
                errors.append(e)
                is_last = attempt == len(engines)
                if not self.config.enable_fallback or self.config.fail_fast or is_last:
                    break
                continue
            return engine, attempt, result

        last = errors[-1] if errors else None
        raise AllEnginesFailed(
            f"all {self.kind} engines failed ({', '.join(attempted)}), last error: {last}",
            engines=attempted,
            errors=errors,
        )

    def _run_mixed(
        self, operation: str, call: Callable[[A], R]
    ) -> list[tuple[str, R | None, Exception | None]]:
        """Run the call on every mixed engine concurrently.

        Returns:
            (engine, result, error) tuples in completion order, after every
            engine has finished.
        """
        engines = list(self.config.mixed_engines)

        def run_one(engine: str) -> R:
            with log_duration(
                logger,
                "engine_attempt",
                kind=self.kind,
                operation=operation,
                engine=engine,
                strategy=STRATEGY_MIXED,
            ):
                return call(self._get_adapter(engine))

        outcomes: list[tuple[str, Any, Exception | None]] = []
        workers = self.max_workers or len(engines)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_engine = {executor.submit(run_one, engine): engine for engine in engines}
            for future in as_completed(future_to_engine):
                engine = future_to_engine[future]
                try:
                    outcomes.append((engine, future.result(), None))
                except Exception as e:
                    outcomes.append((engine, None, e))
        return outcomes

    def _mixed_failure(self, outcomes) -> AllEnginesFailed:
        errors = [error for _, _, error in outcomes if error is not None]
        engines = [engine for engine, _, _ in outcomes]
        if errors:
            detail = "; ".join(
                f"engine {engine} failed: {error}"
                for engine, _, error in outcomes
                if error is not None
            )
            message = f"all mixed {self.kind} engines failed: {detail}"
        else:
            message = f"no results from any mixed {self.kind} engine"
        return AllEnginesFailed(message, engines=engines, errors=errors)


class SearchStrategy(_EngineStrategy[SearchCapability]):
    """Executes searches through the configured engines.

    With a non-empty ``mixed_engines`` list every engine is queried
    concurrently and the results are merged; otherwise engines are tried
    one at a time following the fallback order.

    Args:
        registry: Registry the search adapters are created from.
        config: Retrieval policy; defaults to ``SearchStrategyConfig()``.
        max_workers: Thread pool size for mixed mode (defaults to one per engine).
    """

    kind = "search"

    def __init__(
        self,
        registry: CapabilityRegistry,
        config: SearchStrategyConfig | None = None,
        max_workers: int | None = None,
    ):
        super().__init__(registry, config or SearchStrategyConfig(), max_workers)

    def execute(self, request: SearchRequest) -> SearchResponse:
        """Run a search according to the configured strategy.

        Raises:
            AllEnginesFailed: When the fallback chain or every mixed engine fails.
        """
        start_time = time.perf_counter()
        if self.is_mixed:
            response = self._execute_mixed(request)
        else:
            response = self._execute_fallback(request)
        response.time_taken_ms = int((time.perf_counter() - start_time) * 1000)
        return response

    # lets a strategy stand wherever a single SearchCapability is expected
    search = execute

    def _execute_fallback(self, request: SearchRequest) -> SearchResponse:
        engine, attempt, response = self._run_fallback(
            "search", lambda adapter: adapter.search(request)
        )

        seen_urls: set[str] = set()
        results = []
        for rank, item in enumerate(response.results, 1):
            if not item.url or item.url in seen_urls:
                continue
            seen_urls.add(item.url)
            results.append(
                replace(
                    item,
                    rank=item.rank or rank,
                    provenance=Provenance(engine, STRATEGY_FALLBACK, attempt),
                )
            )
        results = results[: self.config.breadth]

        message = ""
        if attempt > 1:
            message = f"Fallback strategy was used, succeeded on attempt {attempt}"

        logger.info(
            "search_executed",
            strategy=STRATEGY_FALLBACK,
            engine=engine,
            attempt=attempt,
            result_count=len(results),
        )
        return SearchResponse(
            query=request.query,
            results=results,
            total_count=len(results),
            engine=engine,
            message=message,
        )

    def _execute_mixed(self, request: SearchRequest) -> SearchResponse:
        outcomes = self._run_mixed("search", lambda adapter: adapter.search(request))

        seen_urls: set[str] = set()
        merged = []
        used_engines: dict[str, int] = {}
        for engine, response, error in outcomes:
            if error is not None:
                logger.warning("mixed_engine_failed", kind=self.kind, engine=engine, error=str(error))
                continue
            kept = 0
            for rank, item in enumerate(response.results[: self.config.breadth], 1):
                if not item.url or item.url in seen_urls:
                    continue
                seen_urls.add(item.url)
                merged.append(
                    replace(
                        item,
                        rank=item.rank or rank,
                        provenance=Provenance(engine, STRATEGY_MIXED),
                    )
                )
                kept += 1
            used_engines[engine] = kept

        if not merged:
            raise self._mixed_failure(outcomes)

        logger.info(
            "search_executed",
            strategy=STRATEGY_MIXED,
            engines=used_engines,
            result_count=len(merged),
        )
        return SearchResponse(
            query=request.query,
            results=merged,
            total_count=len(merged),
            engine=",".join(used_engines),
        )


class ScrapeStrategy(_EngineStrategy[ScrapeCapability]):
    """Scrapes pages through the configured scrapers.

    Same policy as ``SearchStrategy``; in mixed mode every scraper receives the
    whole URL batch and pages are merged by URL (first to finish wins).
    """

    kind = "scrape"

    def __init__(
        self,
        registry: CapabilityRegistry,
        config: ScrapeStrategyConfig | None = None,
        max_workers: int | None = None,
    ):
        super().__init__(registry, config or ScrapeStrategyConfig(), max_workers)

    def scrape(self, url: str, options: ScrapeOptions | None = None) -> WebContent:
        """Scrape a single page."""
        options = options or ScrapeOptions()

        if self.is_mixed:
            outcomes = self._run_mixed("scrape", lambda adapter: adapter.scrape(url, options))
            for engine, content, error in outcomes:
                if error is None and content is not None:
                    return replace(content, provenance=Provenance(engine, STRATEGY_MIXED))
            raise self._mixed_failure(outcomes)

        engine, attempt, content = self._run_fallback(
            "scrape", lambda adapter: adapter.scrape(url, options)
        )
        return replace(content, provenance=Provenance(engine, STRATEGY_FALLBACK, attempt))

    def scrape_many(
        self, urls: Sequence[str], options: ScrapeOptions | None = None
    ) -> list[WebContent]:
        """Scrape a batch of pages; pages that fail individually are omitted."""
        options = options or ScrapeOptions()
        urls = list(urls)

        if self.is_mixed:
            outcomes = self._run_mixed(
                "scrape_many", lambda adapter: adapter.scrape_many(urls, options)
            )
            pages = []
            for engine, contents, error in outcomes:
                if error is not None:
                    logger.warning(
                        "mixed_engine_failed", kind=self.kind, engine=engine, error=str(error)
                    )
                    continue
                pages.extend(
                    replace(content, provenance=Provenance(engine, STRATEGY_MIXED))
                    for content in contents
                )
            merged = _unique_by_url(pages)
            if not merged:
                raise self._mixed_failure(outcomes)
            logger.info("scrape_executed", strategy=STRATEGY_MIXED, page_count=len(merged))
            return merged

        engine, attempt, contents = self._run_fallback(
            "scrape_many", lambda adapter: adapter.scrape_many(urls, options)
        )
        pages = _unique_by_url(
            replace(content, provenance=Provenance(engine, STRATEGY_FALLBACK, attempt))
            for content in contents
        )
        logger.info(
            "scrape_executed",
            strategy=STRATEGY_FALLBACK,
            engine=engine,
            attempt=attempt,
            requested=len(urls),
            page_count=len(pages),
        )
        return pages


def _unique_by_url(pages) -> list[WebContent]:
    seen_urls: set[str] = set()
    unique = []
    for page in pages:
        if not page.url or page.url in seen_urls:
            continue
        seen_urls.add(page.url)
        unique.append(page)
    return unique

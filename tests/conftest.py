"""Pytest configuration and fixtures."""

import json
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.streaming_research.capabilities import (  # noqa: E402
    SearchResponse,
    SearchResultItem,
    WebContent,
)

DEFAULT_QUESTIONS = [
    {"question": "What is the history of solar power?", "priority": 3},
    {"question": "How efficient are modern photovoltaic panels?", "priority": 5},
]


class FakeChat:
    """Chat capability that answers by prompt kind and records every call.

    Replies may be exceptions, which are raised instead of returned.
    ``on_chunk(kind, chunk)`` runs before each streamed chunk is yielded.
    """

    def __init__(
        self,
        questions=None,
        judge="false",
        analysis_chunks=("Panels reach 22% ", "efficiency [https://a.example/1]."),
        synthesis_chunks=("# Solar Report\n", "Final findings."),
        on_chunk=None,
    ):
        if questions is None:
            questions = DEFAULT_QUESTIONS
        self.questions_reply = questions if isinstance(questions, (str, Exception)) else json.dumps(questions)
        self.judge_reply = judge
        self.analysis_chunks = analysis_chunks
        self.synthesis_chunks = synthesis_chunks
        self.on_chunk = on_chunk
        self.calls: list[str] = []
        self.prompts: list[str] = []

    def generate(self, messages):
        prompt = messages[-1].content
        self.prompts.append(prompt)
        if "research strategist" in prompt:
            self.calls.append("generate_questions")
            reply = self.questions_reply
        else:
            self.calls.append("judge")
            reply = self.judge_reply
        if isinstance(reply, Exception):
            raise reply
        return reply

    def stream(self, messages):
        prompt = messages[-1].content
        self.prompts.append(prompt)
        if "writing the final report" in prompt:
            kind, chunks = "synthesis", self.synthesis_chunks
        else:
            kind, chunks = "analysis", self.analysis_chunks
        self.calls.append(kind)
        return self._chunks(kind, chunks)

    def _chunks(self, kind, chunks):
        for chunk in chunks:
            if isinstance(chunk, Exception):
                raise chunk
            if self.on_chunk is not None:
                self.on_chunk(kind, chunk)
            yield chunk


class FakeSearch:
    """Search capability returning fixed URLs, or raising ``error``."""

    def __init__(self, urls=None, error=None, engine="fake"):
        self.urls = urls if urls is not None else ["https://a.example/1", "https://b.example/2"]
        self.error = error
        self.engine = engine
        self.requests = []

    def search(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        results = [
            SearchResultItem(url=url, title=f"Title {rank}", rank=rank)
            for rank, url in enumerate(self.urls, 1)
        ]
        return SearchResponse(
            query=request.query,
            results=results,
            total_count=len(results),
            engine=self.engine,
        )


class FakeScraper:
    """Scrape capability producing a page per URL, skipping ``failing`` URLs."""

    def __init__(self, failing=(), error=None, content="Page body about solar power."):
        self.failing = set(failing)
        self.error = error
        self.content = content
        self.batches = []

    def scrape(self, url, options=None):
        if self.error is not None or url in self.failing:
            raise self.error or RuntimeError(f"cannot fetch {url}")
        return WebContent(url=url, title=f"Page {url}", content=f"{self.content} ({url})")

    def scrape_many(self, urls, options=None):
        self.batches.append(list(urls))
        if self.error is not None:
            raise self.error
        return [self.scrape(url, options) for url in urls if url not in self.failing]


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch):
    """Set mock environment variables for testing."""
    monkeypatch.setenv("OPENAI_API_KEY", "test-api-key")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4o-mini")


"""Tests for the capability registry."""

import threading
import time

import pytest

from src.streaming_research.errors import CapabilityUnavailable
from src.streaming_research.registry import CapabilityRegistry


class TestCapabilityRegistry:
    """Tests for registration and lazy construction."""

    def test_create_builds_once_and_caches(self):
        """Test that an instance is built on first use and then reused."""
        registry = CapabilityRegistry("search")
        calls = []
        registry.register("engine", lambda: calls.append(1) or object())

        first = registry.create("engine")
        second = registry.create("engine")

        assert first is second
        assert len(calls) == 1

    def test_unregistered_name(self):
        """Test that an unknown name raises CapabilityUnavailable."""
        registry = CapabilityRegistry("search")

        with pytest.raises(CapabilityUnavailable) as exc_info:
            registry.create("missing")

        assert exc_info.value.name == "missing"

    def test_failed_construction_not_cached(self):
        """Test that a failing factory is retried on the next create."""
        registry = CapabilityRegistry("scrape")
        attempts = []

        def flaky_factory():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("not ready")
            return "scraper"

        registry.register("flaky", flaky_factory)

        with pytest.raises(RuntimeError):
            registry.create("flaky")
        assert registry.create("flaky") == "scraper"
        assert len(attempts) == 2

    def test_reregister_evicts_instance(self):
        """Test that replacing a factory drops the stale instance."""
        registry = CapabilityRegistry()
        registry.register("engine", lambda: "old")
        assert registry.create("engine") == "old"

        registry.register("engine", lambda: "new")

        assert registry.create("engine") == "new"

    def test_register_same_factory_is_idempotent(self):
        """Test that re-registering the same factory keeps the instance."""
        registry = CapabilityRegistry()

        def factory():
            return object()

        registry.register("engine", factory)
        instance = registry.create("engine")
        registry.register("engine", factory)

        assert registry.create("engine") is instance
        assert registry.names() == ["engine"]
        assert registry.is_registered("engine")

    def test_concurrent_create_shares_instance(self):
        """Test that concurrent first use constructs a single instance."""
        registry = CapabilityRegistry()
        calls = []

        def slow_factory():
            calls.append(1)
            time.sleep(0.05)
            return object()

        registry.register("engine", slow_factory)
        barrier = threading.Barrier(8)
        results = []

        def worker():
            barrier.wait()
            results.append(registry.create("engine"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(calls) == 1
        assert len({id(instance) for instance in results}) == 1

    def test_registries_are_isolated(self):
        """Test that separate registries do not share registrations."""
        first = CapabilityRegistry()
        second = CapabilityRegistry()
        first.register("engine", lambda: "x")

        assert not second.is_registered("engine")

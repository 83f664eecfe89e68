"""Name-indexed registry of lazily constructed capability adapters."""

import threading
from typing import Callable, Generic, TypeVar

from .errors import CapabilityUnavailable
from .logging import get_logger

logger = get_logger("registry")

T = TypeVar("T")

AdapterFactory = Callable[[], T]


class CapabilityRegistry(Generic[T]):
    """Maps capability names to factories and caches the built instances.

    Lookups of already-built instances take no lock; the first construction
    of a name happens under the write lock with a second cache check, so
    concurrent callers share one instance. A factory that raises leaves
    nothing cached and is invoked again on the next ``create``.

    Args:
        kind: Label used in log lines (e.g. "search", "scrape").
    """

    def __init__(self, kind: str = "capability"):
        self.kind = kind
        self._factories: dict[str, AdapterFactory] = {}
        self._instances: dict[str, T] = {}
        self._lock = threading.Lock()

    def register(self, name: str, factory: AdapterFactory) -> None:
        """Register (or replace) the factory for a name."""
        with self._lock:
            if self._factories.get(name) is factory:
                return
            self._factories[name] = factory
            # an instance built by a replaced factory is stale
            self._instances.pop(name, None)
        logger.debug("capability_registered", kind=self.kind, name=name)

    def is_registered(self, name: str) -> bool:
        return name in self._factories

    def names(self) -> list[str]:
        return list(self._factories)

    def create(self, name: str) -> T:
        """Return the cached instance for a name, constructing it on first use.

        Raises:
            CapabilityUnavailable: If the name is not registered.
            Exception: Whatever the factory raises, unchanged.
        """
        instance = self._instances.get(name)
        if instance is not None:
            return instance

        with self._lock:
            instance = self._instances.get(name)
            if instance is not None:
                return instance

            factory = self._factories.get(name)
            if factory is None:
                raise CapabilityUnavailable(name, f"unregistered {self.kind} engine")

            try:
                instance = factory()
            except Exception as e:
                logger.warning(
                    "capability_construction_failed",
                    kind=self.kind,
                    name=name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise

            self._instances[name] = instance
            logger.info("capability_created", kind=self.kind, name=name)
            return instance
